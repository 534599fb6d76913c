"""
Advisor personas and the prompt names that define them.

Each advisor is a Langfuse chat prompt compiled with the user's question.
The summarizer receives every advisor's answer under a fixed ordinal
parameter name; the ordinal identifies the advisor, so order must never
change between the fan-out, the summarizer, and the trace.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class AdvisorDef:
    """One simulated manager persona."""
    index: int                             # 1-based, stable advisor identity
    prompt_name: str                       # Langfuse chat prompt
    advice_param: str
    """
    Variable name under which this advisor's answer is passed to the
    summarizer prompt and keyed in the trace.
    """

    @property
    def generation_name(self) -> str:
        return f"manager{self.index}"


ADVISORS: List[AdvisorDef] = [
    AdvisorDef(index=1, prompt_name="manager_1", advice_param="advice_manager_first"),
    AdvisorDef(index=2, prompt_name="manager_2", advice_param="advice_manager_second"),
    AdvisorDef(index=3, prompt_name="manager_3", advice_param="advice_manager_third"),
    AdvisorDef(index=4, prompt_name="manager_4", advice_param="advice_manager_fourth"),
    AdvisorDef(index=5, prompt_name="manager_5", advice_param="advice_manager_fifth"),
]

SUMMARY_PROMPT_NAME = "summary_advices"
USER_INPUT_PARAM = "user_input"


def advice_params(advisors: Sequence[AdvisorDef], advices: Sequence[str]) -> dict[str, str]:
    """Key each advisor's text by its ordinal parameter name, in advisor order."""
    if len(advisors) != len(advices):
        raise ValueError(f"expected {len(advisors)} advices, got {len(advices)}")
    return {a.advice_param: text for a, text in zip(advisors, advices)}
