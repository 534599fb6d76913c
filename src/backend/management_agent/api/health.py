"""Health check endpoint."""
import logging

from fastapi import APIRouter

from management_agent.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "ok", "service": settings.app_name}


@router.get("/api/health/config")
async def config_check():
    """Diagnostic endpoint: shows whether critical env vars are configured (no secrets)."""
    return {
        "gemini_api_key_set": bool(settings.gemini_api_key),
        "gemini_base_url": settings.gemini_base_url,
        "default_model": settings.default_model,
        "evaluator_model": settings.evaluator_model,
        "langfuse_host": settings.langfuse_host,
        "langfuse_keys_set": bool(settings.langfuse_public_key and settings.langfuse_secret_key),
        "evaluation_dataset": settings.evaluation_dataset,
    }
