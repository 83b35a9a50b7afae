"""In-memory conversation session model."""
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ConversationSession:
    """Rolling rate-accounting state for one conversation.

    Sessions are immutable; the rate policy returns a new instance and the
    session store swaps it in under the conversation's shard lock.
    """

    last_message_time: float  # start of the current window
    request_counter: int = 0
    is_allowed: bool = True
    is_notified: bool = False
    last_seen: float = 0.0

    @classmethod
    def opened_at(cls, now: float) -> "ConversationSession":
        """Create a fresh session whose window starts at *now*."""
        return cls(last_message_time=now, last_seen=now)


class Admission(str, Enum):
    """Outcome of asking the session store whether a message may proceed."""

    ALLOWED = "allowed"
    DENIED_NOTIFY = "denied_notify"  # first denial of the episode, warn once
    DENIED_SILENT = "denied_silent"
