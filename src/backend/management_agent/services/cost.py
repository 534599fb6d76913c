"""
Cost Tracker — usage-based dollar cost for Gemini calls.

Costs are computed from the token counts reported by the generation service,
never estimated from text length.
"""
from __future__ import annotations


# ──────────────────────────────────────────────
# Pricing constants (USD per 1M tokens)
# ──────────────────────────────────────────────

# Gemini 2.0 Flash, batch pricing
COST_PER_1M_INPUT_TOKENS = 0.075
COST_PER_1M_OUTPUT_TOKENS = 0.30


def calculate_input_cost(input_tokens: int) -> float:
    """USD cost of the prompt side of a call."""
    return COST_PER_1M_INPUT_TOKENS * input_tokens / 1e6


def calculate_output_cost(output_tokens: int) -> float:
    """USD cost of the completion side of a call."""
    return COST_PER_1M_OUTPUT_TOKENS * output_tokens / 1e6
