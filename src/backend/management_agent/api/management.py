"""
REST API for advice requests and batch evaluation.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from evaluation.batch import BatchEvaluator
from management_agent.agent.orchestrator import AdviceEngine
from management_agent.api.deps import get_batch_evaluator, get_engine
from management_agent.models.schemas import (
    EvaluationRequest,
    EvaluationResponse,
    ManagementRequest,
    ManagementResponse,
)
from management_agent.services.prompts import PromptConfigurationError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/management", response_model=ManagementResponse)
async def management(req: ManagementRequest, engine: AdviceEngine = Depends(get_engine)):
    """
    Ask the 5 advisors and return the summarized advice.

    Any failure fails the whole request; there is no partial answer.
    """
    try:
        run = await engine.run(req.input, llm_version=req.llm_version, is_evaluation=False)
    except PromptConfigurationError as e:
        logger.error(f"Management run failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.exception("Management run failed")
        raise HTTPException(status_code=502, detail=f"Upstream service error: {e}")

    return ManagementResponse(message=run.response_text)


@router.post("/evaluate-management", response_model=EvaluationResponse)
async def evaluate_management(
    req: Optional[EvaluationRequest] = None,
    batch: BatchEvaluator = Depends(get_batch_evaluator),
):
    """
    Replay the agent over the evaluation dataset and score every answer.

    Per-item and per-evaluator failures are absorbed; only a failed dataset
    fetch or final flush fails the request.
    """
    llm_version = req.llm_version if req else None
    try:
        await batch.run(llm_version=llm_version)
    except Exception as e:
        logger.exception("Batch evaluation failed")
        raise HTTPException(status_code=502, detail=f"Evaluation failed: {e}")

    return EvaluationResponse(success=True)
