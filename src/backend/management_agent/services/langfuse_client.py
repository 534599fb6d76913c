"""
Langfuse client construction.

One client is built per process and shared by the prompt resolver, the trace
recorder, and the batch evaluator. It buffers trace and score events and
sends them in the background; call flush() before reporting completion.
"""
from __future__ import annotations

from langfuse import Langfuse

from management_agent.config import settings


def build_langfuse() -> Langfuse:
    return Langfuse(
        public_key=settings.langfuse_public_key or None,
        secret_key=settings.langfuse_secret_key or None,
        host=settings.langfuse_host,
    )
