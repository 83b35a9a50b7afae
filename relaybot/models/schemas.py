"""Pydantic schemas for the HTTP API."""
from pydantic import BaseModel, Field


class BroadcastRequest(BaseModel):
    """Broadcast request."""

    text: str = Field(min_length=1, max_length=4096)
    continue_on_error: bool = False


class BroadcastResponse(BaseModel):
    """Broadcast outcome."""

    sent: int
    failed: list[int] = []


class SubscriberList(BaseModel):
    """All registered chats."""

    chat_ids: list[int]
    count: int


class SessionState(BaseModel):
    """Snapshot of one conversation's rate-accounting session."""

    chat_id: int
    request_counter: int
    is_allowed: bool
    is_notified: bool
    window_started: float
    last_seen: float
