"""Transport-neutral inbound update."""
from dataclasses import dataclass


@dataclass(frozen=True)
class InboundUpdate:
    """A single message received from the messaging platform."""

    chat_id: int
    text: str | None = None
    is_command: bool = False
    command: str | None = None

    @classmethod
    def from_text(cls, chat_id: int, text: str | None) -> "InboundUpdate":
        """Build an update, detecting ``/command`` and ``/command@botname``."""
        if text and text.startswith("/"):
            head = text.split(maxsplit=1)[0][1:]
            command = head.split("@", 1)[0].lower()
            return cls(chat_id=chat_id, text=text, is_command=True, command=command)
        return cls(chat_id=chat_id, text=text)
