"""
Generation Service — handles all communication with Gemini.

Calls go through Gemini's OpenAI-compatible endpoint with a fixed generation
policy (temperature, output length, safety filter). Every call returns a
GenerationResult carrying token usage, cost, and wall-clock timing, so the
trace can report exactly what each call consumed.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from openai import AsyncOpenAI

from management_agent.config import settings
from management_agent.models.schemas import GenerationResult
from management_agent.services.cost import calculate_input_cost, calculate_output_cost

logger = logging.getLogger(__name__)

# Fixed generation policy (not per-call parameters)
TEMPERATURE = 1.0
MAX_OUTPUT_TOKENS = 8192
SAFETY_SETTINGS = [
    {
        "category": "HARM_CATEGORY_DANGEROUS_CONTENT",
        "threshold": "BLOCK_MEDIUM_AND_ABOVE",
    },
]

# Reported on every generation record in the trace
MODEL_PARAMETERS = {
    "temperature": TEMPERATURE,
    "maxOutputTokens": MAX_OUTPUT_TOKENS,
}


def build_openai_client() -> AsyncOpenAI:
    """Build the AsyncOpenAI client pointed at the Gemini endpoint."""
    return AsyncOpenAI(
        api_key=settings.gemini_api_key or "not-set",
        base_url=settings.gemini_base_url,
    )


class GenerationClient:
    """
    Unified interface for Gemini text generation.

    Usage:
        client = GenerationClient(build_openai_client())
        result = await client.generate("You are ...", "How do I ...?", "gemini-2.0-flash-001")
        result.content, result.input_tokens, result.output_cost
    """

    def __init__(self, client: AsyncOpenAI):
        self._client = client

    async def generate(
        self,
        system_instruction: str,
        user_text: str,
        model_id: str,
    ) -> GenerationResult:
        """
        Generate text for one system/user pair.

        Args:
            system_instruction: System prompt; may be empty (evaluator prompts
                carry everything in the user text).
            user_text: The user message
            model_id: Gemini model identifier

        Returns:
            GenerationResult with content, token counts, costs, and timing.
            Transport and service errors propagate; there is no retry.
        """
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": user_text})

        start_time = datetime.now(timezone.utc)
        response = await self._client.chat.completions.create(
            model=model_id,
            messages=messages,
            temperature=TEMPERATURE,
            max_tokens=MAX_OUTPUT_TOKENS,
            extra_body={"extra_body": {"google": {"safety_settings": SAFETY_SETTINGS}}},
        )
        end_time = datetime.now(timezone.utc)

        content = _first_choice_text(response)
        input_tokens, output_tokens = _token_counts(response)

        logger.debug(
            f"Gemini {model_id}: {input_tokens} in / {output_tokens} out "
            f"({(end_time - start_time).total_seconds():.2f}s)"
        )
        return GenerationResult(
            content=content,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            input_cost=calculate_input_cost(input_tokens),
            output_cost=calculate_output_cost(output_tokens),
            start_time=start_time,
            end_time=end_time,
        )


def _first_choice_text(response: Any) -> str:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None) or ""


def _token_counts(response: Any) -> tuple[int, int]:
    usage: Optional[Any] = getattr(response, "usage", None)
    if usage is None:
        return 0, 0
    return (
        getattr(usage, "prompt_tokens", None) or 0,
        getattr(usage, "completion_tokens", None) or 0,
    )
