"""
Model-based evaluators (LLM-as-judge).

Each evaluator compiles its Langfuse text prompt with the user's question and
the agent's answer, asks Gemini with no system instruction, and parses the
reply into a score.
"""
from __future__ import annotations

import logging

from evaluation.base import (
    LLM_OUTPUT_PARAM,
    USER_INPUT_PARAM,
    EvaluatorDef,
    parse_evaluator_output,
)
from management_agent.models.schemas import EvaluationScore
from management_agent.services.generation import GenerationClient
from management_agent.services.prompts import PromptResolver

logger = logging.getLogger(__name__)


class Evaluator:
    """Scores one (question, answer) pair along a single dimension."""

    def __init__(
        self,
        spec: EvaluatorDef,
        generator: GenerationClient,
        prompts: PromptResolver,
        model: str,
    ):
        self.spec = spec
        self.generator = generator
        self.prompts = prompts
        self.model = model

    @property
    def name(self) -> str:
        return self.spec.name

    async def evaluate(self, user_input: str, llm_output: str) -> EvaluationScore:
        template = await self.prompts.resolve(self.spec.prompt_name, chat=False)
        prompt = self.prompts.compile(
            template,
            {USER_INPUT_PARAM: user_input, LLM_OUTPUT_PARAM: llm_output},
        )
        result = await self.generator.generate("", prompt, self.model)
        score = parse_evaluator_output(self.spec.name, result.content)
        logger.info(f"  [{self.spec.name}] {score.value}")
        return score
