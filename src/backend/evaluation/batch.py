"""
Batch Evaluator — replays the advice engine over a Langfuse dataset.

Flow per item (one item at a time):
  1. Skip items whose input is not text
  2. Run the advice engine in evaluation mode
  3. Score the summary with every evaluator; a failing evaluator is logged
     and skipped, the others still run
  4. Link the run's trace to the dataset item under the batch run name

After the last item, buffered traces and scores are flushed.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, List, Optional, Sequence

from evaluation.base import EVALUATORS, EvaluationSummary, EvaluatorDef, make_run_name
from evaluation.evaluators import Evaluator
from management_agent.agent.orchestrator import AdviceEngine
from management_agent.config import settings
from management_agent.models.schemas import ManagementRun
from management_agent.services.tracing import TraceRecorder

logger = logging.getLogger(__name__)


class BatchEvaluator:
    """
    Usage:
        batch = BatchEvaluator(langfuse, engine)
        summary = await batch.run(llm_version="gemini-2.0-flash-001")
    """

    def __init__(
        self,
        langfuse: Any,
        engine: AdviceEngine,
        evaluators: Optional[Sequence[Evaluator]] = None,
        evaluator_defs: Sequence[EvaluatorDef] = EVALUATORS,
        evaluator_model: Optional[str] = None,
        run_prefix: Optional[str] = None,
    ):
        self._langfuse = langfuse
        self.engine = engine
        self.recorder: TraceRecorder = engine.recorder
        self.run_prefix = run_prefix or settings.evaluation_run_prefix
        if evaluators is None:
            model = evaluator_model or settings.evaluator_model
            evaluators = [
                Evaluator(spec, engine.generator, engine.prompts, model)
                for spec in evaluator_defs
            ]
        self.evaluators: List[Evaluator] = list(evaluators)

    async def run(
        self,
        dataset_name: Optional[str] = None,
        llm_version: Optional[str] = None,
    ) -> EvaluationSummary:
        """
        Evaluate every text item of a dataset.

        Dataset fetch and the final flush propagate their errors; everything
        that fails inside a single item is logged and counted instead.
        """
        dataset_name = dataset_name or settings.evaluation_dataset
        start = time.monotonic()

        dataset = await asyncio.to_thread(self._langfuse.get_dataset, dataset_name)
        items = list(dataset.items)
        summary = EvaluationSummary(
            run_name=make_run_name(self.run_prefix),
            dataset=dataset_name,
            total_items=len(items),
        )
        logger.info(f"Evaluating {len(items)} items of '{dataset_name}' as run '{summary.run_name}'")

        for i, item in enumerate(items, 1):
            item_id = getattr(item, "id", f"#{i}")
            if not isinstance(item.input, str):
                logger.warning(f"  item {item_id}: input is {type(item.input).__name__}, not text -- skipped")
                summary.skipped_items += 1
                continue

            logger.info(f"  item {i}/{len(items)}: {item_id}")
            try:
                run = await self.engine.run(item.input, llm_version=llm_version, is_evaluation=True)
            except Exception as e:
                logger.error(f"  item {item_id}: advice run failed: {e}")
                summary.failed_items += 1
                continue

            await self._score(run, summary)

            try:
                await asyncio.to_thread(item.link, run.trace_handle, summary.run_name)
            except Exception as e:
                logger.error(f"  item {item_id}: linking to run '{summary.run_name}' failed: {e}")
                summary.failed_items += 1
                continue
            summary.evaluated_items += 1

        await self.recorder.flush()
        summary.run_duration_sec = round(time.monotonic() - start, 1)
        logger.info(
            f"Evaluation run '{summary.run_name}' complete: {summary.evaluated_items} evaluated, "
            f"{summary.skipped_items} skipped, {summary.failed_items} failed, "
            f"{summary.scores_submitted} scores"
        )
        return summary

    async def _score(self, run: ManagementRun, summary: EvaluationSummary) -> None:
        for evaluator in self.evaluators:
            try:
                score = await evaluator.evaluate(run.input_text, run.response_text)
                self.recorder.submit_score(run.trace_handle, score)
            except Exception as e:
                logger.error(f"Error while evaluating {evaluator.name}: {e}")
                summary.evaluator_failures[evaluator.name] = (
                    summary.evaluator_failures.get(evaluator.name, 0) + 1
                )
                continue
            summary.scores_submitted += 1
