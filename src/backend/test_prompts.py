"""Prompt resolver: fetch policy and chat-message validation."""
import asyncio

import pytest

from management_agent.services.prompts import PromptConfigurationError, PromptResolver


def test_resolve_fetches_chat_prompt_without_cache(langfuse):
    template = asyncio.run(PromptResolver(langfuse).resolve("manager_1"))

    assert template.name == "manager_1"
    assert langfuse.get_prompt_calls == [
        {"name": "manager_1", "type": "chat", "cache_ttl_seconds": 0}
    ]


def test_resolve_text_prompt(langfuse):
    resolver = PromptResolver(langfuse)
    template = asyncio.run(resolver.resolve("evaluate_management_agent_helpfulness", chat=False))

    assert langfuse.get_prompt_calls[0]["type"] == "text"
    assert resolver.compile(template, {"user_input": "Q", "llm_output": "A"}) == (
        "Rate helpfulness.\nQ: Q\nA: A"
    )


def test_resolve_every_call_is_a_round_trip(langfuse):
    resolver = PromptResolver(langfuse)

    asyncio.run(resolver.resolve("manager_2"))
    asyncio.run(resolver.resolve("manager_2"))

    assert len(langfuse.get_prompt_calls) == 2


def test_resolve_failure_propagates(langfuse):
    with pytest.raises(RuntimeError, match="not found"):
        asyncio.run(PromptResolver(langfuse).resolve("manager_9"))


def test_split_chat_returns_system_and_user():
    messages = [
        {"role": "system", "content": "be a manager"},
        {"role": "assistant", "content": "example"},
        {"role": "user", "content": "the question"},
    ]

    assert PromptResolver.split_chat(messages, "manager_1") == ("be a manager", "the question")


@pytest.mark.parametrize(
    "messages, problem",
    [
        ([{"role": "user", "content": "q"}], "no system message"),
        ([{"role": "system", "content": "s"}], "no user message"),
        ([], "no system message"),
        (
            [
                {"role": "system", "content": "s"},
                {"role": "user", "content": "q1"},
                {"role": "user", "content": "q2"},
            ],
            "2 user messages",
        ),
    ],
)
def test_split_chat_rejects_misconfigured_prompt(messages, problem):
    with pytest.raises(PromptConfigurationError) as exc:
        PromptResolver.split_chat(messages, "manager_3")

    assert "prompt not correctly configured" in str(exc.value)
    assert problem in exc.value.problems
    assert exc.value.prompt_name == "manager_3"
