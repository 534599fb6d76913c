"""
Trace Recorder — mirrors one advice run into Langfuse.

Tree shape per run:

    trace "management_agent"            (tags=["evaluation"] only in evaluation mode)
    ├── span "Advise from each managers"
    │   └── generation manager1 … manager5
    └── span "Summary advices"
        └── generation summary

Usage, cost, and timing on every generation record come straight from the
GenerationResult of the call it documents.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Sequence

from management_agent.agent.advisors import AdvisorDef, USER_INPUT_PARAM, advice_params
from management_agent.models.schemas import AdviceRecord, EvaluationScore, GenerationResult
from management_agent.services.generation import MODEL_PARAMETERS

logger = logging.getLogger(__name__)

TRACE_NAME = "management_agent"
ADVICE_SPAN_NAME = "Advise from each managers"
SUMMARY_SPAN_NAME = "Summary advices"
SUMMARY_GENERATION_NAME = "summary"
EVALUATION_TAG = "evaluation"


class TraceRecorder:
    """Builds trace trees and submits scores through a Langfuse client."""

    def __init__(self, langfuse: Any):
        self._langfuse = langfuse

    def record(
        self,
        *,
        input_text: str,
        llm_version: str,
        is_evaluation: bool,
        advisors: Sequence[AdvisorDef],
        advices: Sequence[AdviceRecord],
        summary_prompt: Any,
        summary_system: str,
        summary_user: str,
        summary: GenerationResult,
    ) -> Any:
        """
        Submit the full trace for a completed run and return its handle.

        `advisors` and `advices` are parallel sequences in advisor order.
        """
        advice_by_ordinal = advice_params(advisors, [a.output.content for a in advices])

        trace_kwargs: Dict[str, Any] = {
            "name": TRACE_NAME,
            "input": input_text,
            "output": summary.content,
        }
        if is_evaluation:
            trace_kwargs["tags"] = [EVALUATION_TAG]
        trace = self._langfuse.trace(**trace_kwargs)

        advice_span = trace.span(
            name=ADVICE_SPAN_NAME,
            input=input_text,
            output=advice_by_ordinal,
        )
        for advisor, advice in zip(advisors, advices):
            _generation(
                advice_span,
                name=advisor.generation_name,
                model=llm_version,
                prompt=advice.prompt,
                system=advice.system,
                user=advice.user,
                result=advice.output,
            )

        summary_span = trace.span(
            name=SUMMARY_SPAN_NAME,
            input=advice_by_ordinal,
            output=summary.content,
        )
        _generation(
            summary_span,
            name=SUMMARY_GENERATION_NAME,
            model=llm_version,
            prompt=summary_prompt,
            system=summary_system,
            user=summary_user,
            result=summary,
            extra_input={USER_INPUT_PARAM: input_text, **advice_by_ordinal},
        )

        logger.info(
            f"Trace recorded: {TRACE_NAME} ({len(advices)} advices + summary"
            f"{', evaluation' if is_evaluation else ''})"
        )
        return trace

    @staticmethod
    def submit_score(trace: Any, score: EvaluationScore) -> None:
        trace.score(name=score.name, value=score.value, comment=score.comment)

    async def flush(self) -> None:
        """Block until every buffered trace and score event has been sent."""
        await asyncio.to_thread(self._langfuse.flush)


def _generation(
    parent: Any,
    *,
    name: str,
    model: str,
    prompt: Any,
    system: str,
    user: str,
    result: GenerationResult,
    extra_input: Dict[str, str] | None = None,
) -> Any:
    gen_input: Dict[str, Any] = {
        "name": prompt.name,
        "version": prompt.version,
        "system": system,
        "user": user,
    }
    if extra_input:
        gen_input.update(extra_input)

    return parent.generation(
        name=name,
        model=model,
        model_parameters=dict(MODEL_PARAMETERS),
        input=gen_input,
        output=result.content,
        prompt=prompt,
        usage_details={"input": result.input_tokens, "output": result.output_tokens},
        cost_details={"input": result.input_cost, "output": result.output_cost},
        start_time=result.start_time,
        # Non-streaming: the first token is observed when the response lands
        completion_start_time=result.end_time,
        end_time=result.end_time,
    )
