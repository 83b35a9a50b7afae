"""Rate-limit session inspection endpoints."""
from fastapi import APIRouter, HTTPException

from relaybot.models.schemas import SessionState
from relaybot.services.sessions import get_session_store

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("/{chat_id}", response_model=SessionState)
async def get_session(chat_id: int) -> SessionState:
    """Get the rate-limit session for a chat."""
    session = get_session_store().get(chat_id)
    if session is None:
        raise HTTPException(status_code=404, detail="No active session")
    return SessionState(
        chat_id=chat_id,
        request_counter=session.request_counter,
        is_allowed=session.is_allowed,
        is_notified=session.is_notified,
        window_started=session.last_message_time,
        last_seen=session.last_seen,
    )


@router.delete("/{chat_id}")
async def reset_session(chat_id: int) -> dict:
    """Forget a chat's session, lifting any active rate limit."""
    removed = get_session_store().discard(chat_id)
    return {"status": "reset" if removed else "absent", "chat_id": chat_id}
