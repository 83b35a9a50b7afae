"""Root conftest with shared fixtures for all relaybot tests."""

from __future__ import annotations

import os

# Settings are read at import time; provide the required token before any
# relaybot module is imported.
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("LLM_API_KEY", "test-key")

import pytest

from relaybot.db.repository import SubscriberRepository
from relaybot.errors import BackendError, BackendTimeout, TransportError
from relaybot.services.sessions import SessionStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport:
    """Records outbound messages instead of calling Telegram."""

    def __init__(self):
        self.sent: list[tuple[int, str]] = []
        self.typing: list[int] = []
        self.fail_for: set[int] = set()
        self.closed = False

    async def send(self, chat_id: int, text: str) -> list[dict]:
        if chat_id in self.fail_for:
            raise TransportError(f"chat {chat_id} unreachable")
        self.sent.append((chat_id, text))
        return [{"ok": True}]

    async def send_typing(self, chat_id: int) -> dict:
        self.typing.append(chat_id)
        return {"ok": True}

    async def close(self) -> None:
        self.closed = True

    def texts_for(self, chat_id: int) -> list[str]:
        return [text for cid, text in self.sent if cid == chat_id]


class FakeBackend:
    """Echoing backend; can be switched to time out or fail."""

    def __init__(self):
        self.prompts: list[str] = []
        self.error: Exception | None = None

    async def generate(self, prompt: str, timeout: float | None = None) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return f"answer: {prompt}"

    def time_out(self) -> None:
        self.error = BackendTimeout("no response within 1s")

    def fail(self, message: str = "quota exceeded") -> None:
        self.error = BackendError(message)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return SessionStore(shards=8, clock=clock)


@pytest.fixture
def repository(tmp_path):
    return SubscriberRepository(db_path=str(tmp_path / "subscribers.db"))


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def backend():
    return FakeBackend()
