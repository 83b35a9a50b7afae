"""Health check endpoints."""
import asyncio

from fastapi import APIRouter

from relaybot.config import settings
from relaybot.db.repository import get_repository
from relaybot.errors import RegistryError
from relaybot.services.sessions import get_session_store

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    """Basic health check."""
    return {"status": "ok"}


@router.get("/health/detailed")
async def detailed_health_check() -> dict:
    """Detailed health check including subscriber database status."""
    try:
        subscribers = len(await asyncio.to_thread(get_repository().list))
        db_status = "connected"
    except RegistryError as e:
        subscribers = None
        db_status = f"error: {e}"

    return {
        "status": "ok",
        "database": db_status,
        "subscribers": subscribers,
        "active_sessions": len(get_session_store()),
        "llm_provider": settings.LLM_PROVIDER,
    }
