"""
Domain models for the Management Agent.

Generation outputs and evaluator scores are Pydantic models so that model
output can be validated at the boundary. Run artifacts that carry SDK handles
(prompt templates, trace clients) are frozen dataclasses.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, field_validator


# ──────────────────────────────────────────────
# Generation
# ──────────────────────────────────────────────

class GenerationResult(BaseModel):
    """Output of a single call to the generation service."""
    model_config = ConfigDict(frozen=True)

    content: str = ""
    input_tokens: int = Field(0, ge=0)
    output_tokens: int = Field(0, ge=0)
    input_cost: float = Field(0.0, ge=0)
    output_cost: float = Field(0.0, ge=0)
    start_time: datetime
    end_time: datetime

    @property
    def total_cost(self) -> float:
        return self.input_cost + self.output_cost


# ──────────────────────────────────────────────
# Evaluation
# ──────────────────────────────────────────────

class EvaluationScore(BaseModel):
    """A score parsed from an evaluator's output, submitted against a trace."""
    model_config = ConfigDict(frozen=True)

    name: str
    value: Union[StrictInt, StrictFloat]
    comment: StrictStr

    @field_validator("value")
    @classmethod
    def _finite(cls, v):
        if not math.isfinite(v):
            raise ValueError("value must be finite")
        return v


# ──────────────────────────────────────────────
# Run artifacts
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class AdviceRecord:
    """One advisor's answer, with the template and compiled messages that produced it."""
    prompt: Any                            # prompt template (exposes .name / .version)
    system: str                            # compiled system instruction
    user: str                              # compiled user message
    output: GenerationResult


@dataclass(frozen=True)
class ManagementRun:
    """
    Everything one run of the advice engine produced.

    `advices` is ordered by advisor index (1..5). `trace_handle` belongs to
    the caller; in evaluation mode scores are submitted against it.
    """
    input_text: str
    llm_version: str
    is_evaluation: bool
    advices: Tuple[AdviceRecord, ...]
    summary_prompt: Any
    summary_system: str
    summary_user: str
    summary: GenerationResult
    trace_handle: Any

    @property
    def response_text(self) -> str:
        return self.summary.content

    def _results(self) -> list[GenerationResult]:
        return [a.output for a in self.advices] + [self.summary]

    @property
    def total_input_tokens(self) -> int:
        return sum(r.input_tokens for r in self._results())

    @property
    def total_output_tokens(self) -> int:
        return sum(r.output_tokens for r in self._results())

    @property
    def total_cost(self) -> float:
        return sum(r.total_cost for r in self._results())


# ──────────────────────────────────────────────
# API Request / Response Models
# ──────────────────────────────────────────────

class ManagementRequest(BaseModel):
    """API request asking the advisors for advice."""
    model_config = ConfigDict(populate_by_name=True)

    input: str = Field(..., description="The user's question")
    llm_version: Optional[str] = Field(
        None, alias="llmVersion", description="Model override for every advisor and the summarizer"
    )


class ManagementResponse(BaseModel):
    message: str


class EvaluationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    llm_version: Optional[str] = Field(None, alias="llmVersion")


class EvaluationResponse(BaseModel):
    success: bool
