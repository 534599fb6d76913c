"""
FastAPI dependencies: hand the shared clients built at startup to routes.
"""
from __future__ import annotations

from fastapi import Request

from evaluation.batch import BatchEvaluator
from management_agent.agent.orchestrator import AdviceEngine
from management_agent.services.generation import GenerationClient
from management_agent.services.prompts import PromptResolver
from management_agent.services.tracing import TraceRecorder


def get_engine(request: Request) -> AdviceEngine:
    state = request.app.state
    return AdviceEngine(
        generator=GenerationClient(state.openai),
        prompts=PromptResolver(state.langfuse),
        recorder=TraceRecorder(state.langfuse),
    )


def get_batch_evaluator(request: Request) -> BatchEvaluator:
    return BatchEvaluator(request.app.state.langfuse, get_engine(request))
