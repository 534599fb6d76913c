"""
Shared fixtures: in-memory stand-ins for the Langfuse and AsyncOpenAI clients.

The fakes reproduce only the surface the agent touches (get_prompt / trace /
span / generation / score / get_dataset / link / flush, and
chat.completions.create), so every test exercises the real services.
"""
from __future__ import annotations

import inspect
import re
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import pytest

from management_agent.agent.orchestrator import AdviceEngine
from management_agent.services.generation import GenerationClient
from management_agent.services.prompts import PromptResolver
from management_agent.services.tracing import TraceRecorder

DEFAULT_TEST_MODEL = "gemini-test"


# ─────────────────────────────────────────────────
# Langfuse
# ─────────────────────────────────────────────────

def _render(text: str, params: Dict[str, Any]) -> str:
    return re.sub(
        r"\{\{\s*(\w+)\s*\}\}",
        lambda m: str(params[m.group(1)]) if m.group(1) in params else m.group(0),
        text,
    )


class FakeChatPrompt:
    def __init__(self, name: str, messages: List[Dict[str, str]], version: int = 1):
        self.name = name
        self.version = version
        self.messages = messages
        self.compile_calls: List[Dict[str, Any]] = []

    def compile(self, **kwargs):
        self.compile_calls.append(kwargs)
        return [{"role": m["role"], "content": _render(m["content"], kwargs)} for m in self.messages]


class FakeTextPrompt:
    def __init__(self, name: str, prompt: str, version: int = 1):
        self.name = name
        self.version = version
        self.prompt = prompt

    def compile(self, **kwargs):
        return _render(self.prompt, kwargs)


class FakeSpan:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.generations: List[Dict[str, Any]] = []

    def generation(self, **kwargs):
        self.generations.append(kwargs)
        return SimpleNamespace(**kwargs)


class FakeTrace:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.spans: List[FakeSpan] = []
        self.scores: List[Dict[str, Any]] = []

    def span(self, **kwargs):
        span = FakeSpan(**kwargs)
        self.spans.append(span)
        return span

    def score(self, **kwargs):
        self.scores.append(kwargs)


class FakeDatasetItem:
    def __init__(self, id: str, input: Any, fail_link: bool = False):
        self.id = id
        self.input = input
        self.fail_link = fail_link
        self.links: List[tuple] = []

    def link(self, trace_or_observation, run_name, **kwargs):
        if self.fail_link:
            raise RuntimeError("link rejected")
        self.links.append((trace_or_observation, run_name))


class FakeLangfuse:
    def __init__(self, prompts: Dict[str, Any], datasets: Optional[Dict[str, list]] = None):
        self.prompts = prompts
        self.datasets = datasets or {}
        self.get_prompt_calls: List[Dict[str, Any]] = []
        self.traces: List[FakeTrace] = []
        self.flush_calls = 0
        self.fail_flush = False

    def get_prompt(self, name, version=None, *, type="text", cache_ttl_seconds=None, **kwargs):
        self.get_prompt_calls.append({"name": name, "type": type, "cache_ttl_seconds": cache_ttl_seconds})
        if name not in self.prompts:
            raise RuntimeError(f"Prompt not found: '{name}'")
        return self.prompts[name]

    def trace(self, **kwargs):
        trace = FakeTrace(**kwargs)
        self.traces.append(trace)
        return trace

    def get_dataset(self, name):
        if name not in self.datasets:
            raise RuntimeError(f"Dataset not found: '{name}'")
        return SimpleNamespace(name=name, items=self.datasets[name])

    def flush(self):
        self.flush_calls += 1
        if self.fail_flush:
            raise RuntimeError("flush failed")


def default_prompts() -> Dict[str, Any]:
    prompts: Dict[str, Any] = {
        f"manager_{i}": FakeChatPrompt(
            f"manager_{i}",
            [
                {"role": "system", "content": f"You are manager {i}."},
                {"role": "user", "content": "Question: {{user_input}}"},
            ],
            version=i,
        )
        for i in range(1, 6)
    }
    prompts["summary_advices"] = FakeChatPrompt(
        "summary_advices",
        [
            {"role": "system", "content": "You summarize advice."},
            {
                "role": "user",
                "content": (
                    "Q: {{user_input}}\n"
                    "1: {{advice_manager_first}}\n"
                    "2: {{advice_manager_second}}\n"
                    "3: {{advice_manager_third}}\n"
                    "4: {{advice_manager_fourth}}\n"
                    "5: {{advice_manager_fifth}}"
                ),
            },
        ],
        version=7,
    )
    prompts["evaluate_management_agent_helpfulness"] = FakeTextPrompt(
        "evaluate_management_agent_helpfulness",
        "Rate helpfulness.\nQ: {{user_input}}\nA: {{llm_output}}",
    )
    prompts["evaluate_management_agent_hallucination"] = FakeTextPrompt(
        "evaluate_management_agent_hallucination",
        "Rate hallucination.\nQ: {{user_input}}\nA: {{llm_output}}",
    )
    return prompts


# ─────────────────────────────────────────────────
# OpenAI
# ─────────────────────────────────────────────────

def make_completion(content: Optional[str], prompt_tokens: Optional[int] = 0, completion_tokens: Optional[int] = 0):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


Responder = Callable[[str, str, str], Any]


class FakeCompletions:
    def __init__(self, responder: Responder):
        self.responder = responder
        self.calls: List[Dict[str, Any]] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        messages = kwargs["messages"]
        system = next((m["content"] for m in messages if m["role"] == "system"), "")
        user = next(m["content"] for m in messages if m["role"] == "user")
        reply = self.responder(system, user, kwargs["model"])
        if inspect.isawaitable(reply):
            reply = await reply
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, str):
            return make_completion(reply, prompt_tokens=len(system) + len(user), completion_tokens=len(reply))
        return reply


class FakeOpenAI:
    def __init__(self, responder: Responder):
        self.completions = FakeCompletions(responder)
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self) -> List[Dict[str, Any]]:
        return self.completions.calls


def system_of(call: Dict[str, Any]) -> str:
    return next((m["content"] for m in call["messages"] if m["role"] == "system"), "")


def user_of(call: Dict[str, Any]) -> str:
    return next(m["content"] for m in call["messages"] if m["role"] == "user")


def default_responder(system: str, user: str, model: str) -> Any:
    if system.startswith("You are manager "):
        return f"A{system[len('You are manager '):-1]}"
    if system == "You summarize advice.":
        return "SUMMARY|" + user
    if user.startswith("Rate helpfulness"):
        return '```json\n{"value": 0.8, "comment": "useful"}\n```'
    if user.startswith("Rate hallucination"):
        return '{"value": 0, "comment": "grounded"}'
    raise AssertionError(f"unexpected generation call: {system!r} / {user!r}")


# ─────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────

@pytest.fixture
def langfuse() -> FakeLangfuse:
    return FakeLangfuse(prompts=default_prompts())


@pytest.fixture
def openai_client() -> FakeOpenAI:
    return FakeOpenAI(default_responder)


@pytest.fixture
def engine(langfuse, openai_client) -> AdviceEngine:
    return AdviceEngine(
        generator=GenerationClient(openai_client),
        prompts=PromptResolver(langfuse),
        recorder=TraceRecorder(langfuse),
        default_model=DEFAULT_TEST_MODEL,
    )
