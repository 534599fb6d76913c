"""
Management Agent — FastAPI Backend
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from management_agent.api import health, management
from management_agent.config import settings
from management_agent.services.generation import build_openai_client
from management_agent.services.langfuse_client import build_langfuse

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Management Agent",
    description="Five simulated managers advise, one summary answers",
    version="0.1.0",
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(health.router, tags=["health"])
app.include_router(management.router, tags=["management"])


@app.on_event("startup")
async def startup():
    """Initialize services on startup."""
    # Log configuration (mask secrets)
    def _mask(val: str) -> str:
        if not val:
            return "(empty)"
        if len(val) <= 8:
            return "***"
        return val[:4] + "..." + val[-4:]

    logger.info("=== Management Agent Backend Starting ===")
    logger.info(f"  gemini_base_url     : {settings.gemini_base_url}")
    logger.info(f"  gemini_api_key      : {_mask(settings.gemini_api_key)}")
    logger.info(f"  default_model       : {settings.default_model}")
    logger.info(f"  evaluator_model     : {settings.evaluator_model}")
    logger.info(f"  langfuse_host       : {settings.langfuse_host}")
    logger.info(f"  langfuse_public_key : {_mask(settings.langfuse_public_key)}")
    logger.info(f"  langfuse_secret_key : {_mask(settings.langfuse_secret_key)}")
    logger.info(f"  cors_origins        : {settings.cors_origins}")

    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is empty -- generation calls will fail!")
    if not (settings.langfuse_public_key and settings.langfuse_secret_key):
        logger.warning("LANGFUSE keys are empty -- prompt fetches and tracing will fail!")

    app.state.openai = build_openai_client()
    app.state.langfuse = build_langfuse()


@app.on_event("shutdown")
async def shutdown():
    """Send any buffered traces and scores before exiting."""
    langfuse = getattr(app.state, "langfuse", None)
    if langfuse is not None:
        langfuse.flush()
