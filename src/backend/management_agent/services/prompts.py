"""
Prompt Resolver — named, versioned prompt templates from Langfuse.

Templates are fetched fresh on every resolve (no client-side cache), so each
run uses whatever version the store serves at that moment. Chat templates
compile to a list of role-tagged messages; text templates compile to a string.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Sequence, Tuple

logger = logging.getLogger(__name__)


class PromptConfigurationError(ValueError):
    """A compiled chat prompt does not have exactly one system and one user message."""

    def __init__(self, prompt_name: str, problems: Sequence[str]):
        self.prompt_name = prompt_name
        self.problems = list(problems)
        super().__init__(
            f"prompt not correctly configured: '{prompt_name}' has {', '.join(self.problems)}"
        )


class PromptResolver:
    """
    Fetches and compiles prompt templates.

    Usage:
        resolver = PromptResolver(langfuse)
        template = await resolver.resolve("manager_1")
        system, user = resolver.split_chat(
            resolver.compile(template, {"user_input": text}), template.name
        )
    """

    def __init__(self, langfuse: Any):
        self._langfuse = langfuse

    async def resolve(self, name: str, chat: bool = True) -> Any:
        """Fetch the current version of a template. One round trip per call."""
        template = await asyncio.to_thread(
            self._langfuse.get_prompt,
            name,
            type="chat" if chat else "text",
            cache_ttl_seconds=0,
        )
        logger.debug(f"Resolved prompt '{name}' v{getattr(template, 'version', '?')}")
        return template

    @staticmethod
    def compile(template: Any, params: Mapping[str, str]) -> Any:
        """Compile a template against its variables (string or message list)."""
        return template.compile(**params)

    @staticmethod
    def split_chat(messages: Sequence[Mapping[str, Any]], prompt_name: str) -> Tuple[str, str]:
        """
        Locate the system and user messages of a compiled chat prompt.

        Raises:
            PromptConfigurationError: unless exactly one of each role is present.
        """
        by_role = {
            role: [m for m in messages if m.get("role") == role]
            for role in ("system", "user")
        }
        problems = [
            f"no {role} message" if not found else f"{len(found)} {role} messages"
            for role, found in by_role.items()
            if len(found) != 1
        ]
        if problems:
            raise PromptConfigurationError(prompt_name, problems)
        return by_role["system"][0].get("content") or "", by_role["user"][0].get("content") or ""
