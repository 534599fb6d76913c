"""
Base classes and utilities for the evaluation framework.

Provides:
  - EvaluatorDef: a named model-based evaluator backed by a Langfuse text prompt
  - EvaluationSummary: aggregate counts for one batch run
  - clean_evaluator_output() / parse_evaluator_output(): turn raw model text
    into a validated EvaluationScore
  - make_run_name(): the dataset run name shared by every item of one batch
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List

from pydantic import ValidationError

from management_agent.agent.advisors import USER_INPUT_PARAM
from management_agent.models.schemas import EvaluationScore


# ──────────────────────────────────────────────
# Evaluators
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class EvaluatorDef:
    """A model-based evaluator: score name + the prompt that produces it."""
    name: str
    prompt_name: str


EVALUATORS: List[EvaluatorDef] = [
    EvaluatorDef(name="Helpfulness", prompt_name="evaluate_management_agent_helpfulness"),
    EvaluatorDef(name="Hallucination", prompt_name="evaluate_management_agent_hallucination"),
]

LLM_OUTPUT_PARAM = "llm_output"


class MalformedEvaluatorOutput(ValueError):
    """An evaluator's output could not be read as {value: number, comment: string}."""

    def __init__(self, evaluator_name: str, raw: str, reason: str):
        self.evaluator_name = evaluator_name
        self.raw = raw
        self.reason = reason
        super().__init__(f"malformed {evaluator_name} output: {reason}. Raw: {raw[:200]!r}")


# ──────────────────────────────────────────────
# Output parsing
# ──────────────────────────────────────────────

_FENCE_TOKENS = re.compile(r"json|text|`")


def _reject_constant(token: str):
    raise ValueError(f"non-finite number {token}")


def clean_evaluator_output(text: str) -> str:
    """Strip markdown fence tokens (`json`, `text`, backticks) from model output."""
    return _FENCE_TOKENS.sub("", text).strip()


def parse_evaluator_output(evaluator_name: str, raw: str) -> EvaluationScore:
    """
    Parse an evaluator's raw output into a score.

    Raises:
        MalformedEvaluatorOutput: not JSON, not an object, or `value` / `comment`
        missing or of the wrong type. NaN and Infinity are rejected.
    """
    cleaned = clean_evaluator_output(raw)
    try:
        data = json.loads(cleaned, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise MalformedEvaluatorOutput(evaluator_name, raw, f"invalid JSON ({e.msg})") from e
    except ValueError as e:
        raise MalformedEvaluatorOutput(evaluator_name, raw, f"invalid JSON ({e})") from e

    if not isinstance(data, dict):
        raise MalformedEvaluatorOutput(evaluator_name, raw, f"expected an object, got {type(data).__name__}")
    if isinstance(data.get("value"), bool):
        raise MalformedEvaluatorOutput(evaluator_name, raw, "value must be a number")

    try:
        return EvaluationScore(name=evaluator_name, value=data.get("value"), comment=data.get("comment"))
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise MalformedEvaluatorOutput(evaluator_name, raw, f"invalid fields: {fields}") from e


# ──────────────────────────────────────────────
# Batch bookkeeping
# ──────────────────────────────────────────────

def make_run_name(prefix: str) -> str:
    """Dataset run name: one per batch invocation, shared by all of its items."""
    return f"{prefix}-{datetime.now(timezone.utc).isoformat()}"


@dataclass
class EvaluationSummary:
    """Aggregate counts for one batch evaluation run."""
    run_name: str
    dataset: str
    total_items: int = 0
    evaluated_items: int = 0               # engine ran and the item was linked
    skipped_items: int = 0                 # non-text input
    failed_items: int = 0                  # engine or link failed
    scores_submitted: int = 0
    evaluator_failures: Dict[str, int] = field(default_factory=dict)
    run_duration_sec: float = 0.0
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()


def print_summary(summary: EvaluationSummary):
    """Pretty-print batch results to console."""
    print(f"\n{'='*60}")
    print(f"  Evaluation Run: {summary.run_name}")
    print(f"{'='*60}")
    print(f"  Dataset:          {summary.dataset}")
    print(f"  Total items:      {summary.total_items}")
    print(f"  Evaluated:        {summary.evaluated_items}")
    print(f"  Skipped:          {summary.skipped_items}")
    print(f"  Failed:           {summary.failed_items}")
    print(f"  Scores submitted: {summary.scores_submitted}")
    print(f"  Duration:         {summary.run_duration_sec:.1f}s")
    if summary.evaluator_failures:
        print(f"\n  Evaluator failures:")
        for name, count in sorted(summary.evaluator_failures.items()):
            print(f"    {name:30s} {count}")
    print(f"{'='*60}\n")
