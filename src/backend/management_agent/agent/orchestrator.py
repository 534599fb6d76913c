"""
Advice Orchestrator — the brain of the Management Agent.

Runs one advice request end to end:
  1. Resolve the 5 advisor templates + the summarizer template (parallel)
  2. Compile every advisor prompt with the user's question
  3. Ask the 5 advisors (parallel)
  4. Compile the summarizer prompt with the question + all 5 answers, in advisor order
  5. Summarize (Gemini)
  6. Record the trace tree

There is no degraded mode: if any template, compile, or advisor call fails,
the run fails and nothing is summarized or traced.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, List, Optional, Sequence

from management_agent.agent.advisors import (
    ADVISORS,
    SUMMARY_PROMPT_NAME,
    USER_INPUT_PARAM,
    AdvisorDef,
    advice_params,
)
from management_agent.config import settings
from management_agent.models.schemas import AdviceRecord, GenerationResult, ManagementRun
from management_agent.services.generation import GenerationClient
from management_agent.services.prompts import PromptResolver
from management_agent.services.tracing import TraceRecorder

logger = logging.getLogger(__name__)


async def gather_all(aws: Sequence[Awaitable[Any]]) -> List[Any]:
    """
    Run awaitables concurrently and return their results in input order.

    The first failure propagates and cancels whatever is still pending.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


class AdviceEngine:
    """
    Fans a question out to the advisor personas and folds their answers
    into one summary.

    Usage:
        engine = AdviceEngine(generator, prompts, recorder)
        run = await engine.run("How do I give feedback?")
        run.response_text, run.trace_handle
    """

    def __init__(
        self,
        generator: GenerationClient,
        prompts: PromptResolver,
        recorder: TraceRecorder,
        advisors: Sequence[AdvisorDef] = ADVISORS,
        default_model: Optional[str] = None,
    ):
        self.generator = generator
        self.prompts = prompts
        self.recorder = recorder
        self.advisors = list(advisors)
        self.default_model = default_model or settings.default_model

    async def run(
        self,
        input_text: str,
        llm_version: Optional[str] = None,
        is_evaluation: bool = False,
    ) -> ManagementRun:
        """
        Run the full advice pipeline for one question.

        Args:
            input_text: The user's question
            llm_version: Model override applied to every advisor and the summarizer
            is_evaluation: Tag the trace as an evaluation run

        Returns:
            ManagementRun with every intermediate artifact and the trace handle.
        """
        model = llm_version or self.default_model
        t0 = time.monotonic()

        # ── Step 1: Resolve all templates (all-or-nothing) ──
        *advisor_prompts, summary_prompt = await gather_all(
            [self.prompts.resolve(a.prompt_name) for a in self.advisors]
            + [self.prompts.resolve(SUMMARY_PROMPT_NAME)]
        )

        # ── Step 2: Compile advisor prompts; validate every chat shape up front ──
        compiled = [
            self.prompts.split_chat(
                self.prompts.compile(prompt, {USER_INPUT_PARAM: input_text}),
                advisor.prompt_name,
            )
            for advisor, prompt in zip(self.advisors, advisor_prompts)
        ]
        self._check_summary_shape(summary_prompt, input_text)

        # ── Step 3: Ask every advisor (parallel, results in advisor order) ──
        outputs: List[GenerationResult] = await gather_all(
            [self.generator.generate(system, user, model) for system, user in compiled]
        )
        advices = tuple(
            AdviceRecord(prompt=prompt, system=system, user=user, output=output)
            for prompt, (system, user), output in zip(advisor_prompts, compiled, outputs)
        )
        logger.info(
            f"  [advisors] {len(advices)} advices in {time.monotonic() - t0:.1f}s "
            f"({sum(len(a.output.content) for a in advices)} chars)"
        )

        # ── Step 4: Compile the summarizer with every answer ──
        summary_params = {
            USER_INPUT_PARAM: input_text,
            **advice_params(self.advisors, [a.output.content for a in advices]),
        }
        summary_system, summary_user = self.prompts.split_chat(
            self.prompts.compile(summary_prompt, summary_params),
            SUMMARY_PROMPT_NAME,
        )

        # ── Step 5: Summarize ──
        summary = await self.generator.generate(summary_system, summary_user, model)

        # ── Step 6: Trace ──
        trace = self.recorder.record(
            input_text=input_text,
            llm_version=model,
            is_evaluation=is_evaluation,
            advisors=self.advisors,
            advices=advices,
            summary_prompt=summary_prompt,
            summary_system=summary_system,
            summary_user=summary_user,
            summary=summary,
        )

        run = ManagementRun(
            input_text=input_text,
            llm_version=model,
            is_evaluation=is_evaluation,
            advices=advices,
            summary_prompt=summary_prompt,
            summary_system=summary_system,
            summary_user=summary_user,
            summary=summary,
            trace_handle=trace,
        )
        logger.info(
            f"  [summary] done in {time.monotonic() - t0:.1f}s, "
            f"{run.total_input_tokens}+{run.total_output_tokens} tokens, ${run.total_cost:.6f}"
        )
        return run

    def _check_summary_shape(self, summary_prompt: Any, input_text: str) -> None:
        """Fail before any advisor call if the summarizer template is misconfigured."""
        placeholder = advice_params(self.advisors, [""] * len(self.advisors))
        self.prompts.split_chat(
            self.prompts.compile(summary_prompt, {USER_INPUT_PARAM: input_text, **placeholder}),
            SUMMARY_PROMPT_NAME,
        )
