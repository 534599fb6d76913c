"""
Run one batch evaluation of the Management Agent against a Langfuse dataset.

Usage:
    cd src/backend
    python -m evaluation.run_evaluation                               # default dataset + model
    python -m evaluation.run_evaluation --dataset "Management Agent"
    python -m evaluation.run_evaluation --llm-version gemini-2.0-flash-001

Scores land in Langfuse under the run name printed at the end.
"""
from __future__ import annotations

import asyncio
import logging

from evaluation.base import print_summary
from evaluation.batch import BatchEvaluator
from management_agent.agent.orchestrator import AdviceEngine
from management_agent.config import settings
from management_agent.services.generation import GenerationClient, build_openai_client
from management_agent.services.langfuse_client import build_langfuse
from management_agent.services.prompts import PromptResolver
from management_agent.services.tracing import TraceRecorder

logger = logging.getLogger(__name__)


async def main():
    import argparse
    parser = argparse.ArgumentParser(description="Batch-evaluate the Management Agent")
    parser.add_argument("--dataset", type=str, default=settings.evaluation_dataset)
    parser.add_argument("--llm-version", type=str, default=None)
    parser.add_argument("--quiet", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    langfuse = build_langfuse()
    engine = AdviceEngine(
        generator=GenerationClient(build_openai_client()),
        prompts=PromptResolver(langfuse),
        recorder=TraceRecorder(langfuse),
    )
    summary = await BatchEvaluator(langfuse, engine).run(
        dataset_name=args.dataset,
        llm_version=args.llm_version,
    )

    if not args.quiet:
        print_summary(summary)


if __name__ == "__main__":
    asyncio.run(main())
