"""Logging setup shared by the bot loop and the admin API thread.

``setup_logging(role)`` is called once at startup. Dispatcher tasks set
``chat_id_var`` so every record emitted while handling an update carries the
conversation it belongs to; module loggers need no changes.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from contextvars import ContextVar
from pathlib import Path

chat_id_var: ContextVar[str] = ContextVar("chat_id_var", default="")



# ── Filter: stamps context onto every LogRecord ────────────────────────────

class ContextFilter(logging.Filter):
    """Injects ``role`` and ``chat_id`` onto each record."""

    def __init__(self, role: str) -> None:
        super().__init__()
        self.role = role

    def filter(self, record: logging.LogRecord) -> bool:
        record.role = self.role  # type: ignore[attr-defined]
        record.chat_id = chat_id_var.get("")  # type: ignore[attr-defined]
        return True


# ── Formatter: builds [Role][Chat][LEVEL] prefix ───────────────────────────

class ContextFormatter(logging.Formatter):
    """Produces lines like:

    2026-02-17 14:30:00 [Bot][INFO] relaybot.bot.poller:61 - Polling started
    2026-02-17 14:30:01 [Bot][Chat 42][WARNING] relaybot.bot.dispatcher:140 - Rate limited
    """

    def format(self, record: logging.LogRecord) -> str:
        role = getattr(record, "role", "")
        chat_id = getattr(record, "chat_id", "")

        parts = [f"[{role}]"] if role else []
        if chat_id:
            parts.append(f"[Chat {chat_id}]")
        parts.append(f"[{record.levelname}]")

        prefix = "".join(parts)
        timestamp = self.formatTime(record, self.datefmt)
        location = f"{record.name}:{record.lineno}"
        message = record.getMessage()

        formatted = f"{timestamp} {prefix} {location} - {message}"
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            formatted += "\n" + record.exc_text
        if record.stack_info:
            formatted += "\n" + record.stack_info
        return formatted


# ── Setup function ─────────────────────────────────────────────────────────

def _configured(root: logging.Logger) -> bool:
    return any(isinstance(h.formatter, ContextFormatter) for h in root.handlers)


def _attach(root: logging.Logger, handler: logging.Handler, role: str) -> None:
    handler.addFilter(ContextFilter(role))
    handler.setFormatter(ContextFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)


def setup_logging(role: str) -> None:
    """Route relaybot logging through the root logger for *role* (e.g. ``"Bot"``).

    Always logs to stderr, and additionally to a rotating file when
    ``settings.LOG_FILE`` is set. A second call is a no-op once a handler
    with the chat-aware formatter is installed.
    """
    from relaybot.config import settings

    root = logging.getLogger()
    if _configured(root):
        return

    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    _attach(root, logging.StreamHandler(sys.stderr), role)

    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _attach(
            root,
            logging.handlers.RotatingFileHandler(
                str(log_path),
                maxBytes=settings.LOG_MAX_BYTES,
                backupCount=settings.LOG_BACKUP_COUNT,
                encoding="utf-8",
            ),
            role,
        )

    # httpx logs every getUpdates long-poll at INFO
    for name in ("httpx", "httpcore", "telegram", "telegram.ext", "openai", "anthropic"):
        logging.getLogger(name).setLevel(logging.WARNING)

    # The admin API's uvicorn server shares the bot's handlers
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True
