"""Concurrent per-conversation session store."""
import asyncio
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import replace

from relaybot.config import settings
from relaybot.models.session import Admission, ConversationSession
from relaybot.services.rate_policy import WINDOW_SECONDS, evaluate

logger = logging.getLogger(__name__)


class _Shard:
    """One lock stripe and the sessions hashed onto it."""

    __slots__ = ("lock", "sessions")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.sessions: dict[int, ConversationSession] = {}


class SessionStore:
    """Maps chat ids to sessions with per-shard locking.

    Every read-modify-write for a chat id happens under its shard's lock, so
    operations on the same conversation are linearizable while unrelated
    conversations on other shards proceed in parallel. Critical sections are
    pure in-memory work and never await.
    """

    def __init__(
        self,
        shards: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        count = shards if shards is not None else settings.SESSION_SHARDS
        if count < 1:
            raise ValueError("shards must be positive")
        self._shards = [_Shard() for _ in range(count)]
        self._clock = clock

    def _shard(self, chat_id: int) -> _Shard:
        return self._shards[hash(chat_id) % len(self._shards)]

    def get_or_create(self, chat_id: int) -> tuple[ConversationSession, bool]:
        """Record a message for *chat_id*.

        Returns the resulting session and whether it already existed. The
        first message opens the window; later ones go through the rate policy.
        """
        shard = self._shard(chat_id)
        with shard.lock:
            now = self._clock()
            current = shard.sessions.get(chat_id)
            if current is None:
                session = ConversationSession.opened_at(now)
                shard.sessions[chat_id] = session
                return session, False
            session = evaluate(current, now)
            shard.sessions[chat_id] = session
            return session, True

    def admit(self, chat_id: int) -> Admission:
        """Decide whether the latest message for *chat_id* may proceed.

        The first caller to observe a denial gets ``DENIED_NOTIFY`` and is
        responsible for warning the user; ``is_notified`` is flipped in the
        same critical section so no other caller sees it. The conversation
        stays blocked until the window rolls over.
        """
        shard = self._shard(chat_id)
        with shard.lock:
            session = shard.sessions.get(chat_id)
            if session is None or session.is_allowed:
                return Admission.ALLOWED
            if session.is_notified:
                return Admission.DENIED_SILENT
            shard.sessions[chat_id] = replace(session, is_notified=True)
            return Admission.DENIED_NOTIFY

    def get(self, chat_id: int) -> ConversationSession | None:
        shard = self._shard(chat_id)
        with shard.lock:
            return shard.sessions.get(chat_id)

    def __contains__(self, chat_id: int) -> bool:
        return self.get(chat_id) is not None

    def discard(self, chat_id: int) -> bool:
        """Forget *chat_id*'s session. Returns True if one existed."""
        shard = self._shard(chat_id)
        with shard.lock:
            return shard.sessions.pop(chat_id, None) is not None

    def evict_idle(self, max_idle: float) -> int:
        """Drop sessions not seen for *max_idle* seconds. Returns the count.

        *max_idle* is raised to at least one rate window so a denied session
        cannot be evicted before its window expires.
        """
        max_idle = max(max_idle, WINDOW_SECONDS)
        evicted = 0
        for shard in self._shards:
            with shard.lock:
                cutoff = self._clock() - max_idle
                stale = [cid for cid, s in shard.sessions.items() if s.last_seen <= cutoff]
                for cid in stale:
                    del shard.sessions[cid]
                evicted += len(stale)
        return evicted

    def snapshot(self) -> dict[int, ConversationSession]:
        """Copy of all sessions, taken shard by shard."""
        result: dict[int, ConversationSession] = {}
        for shard in self._shards:
            with shard.lock:
                result.update(shard.sessions)
        return result

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.sessions)
        return total


async def run_session_sweeper(
    store: SessionStore,
    interval: float | None = None,
    max_idle: float | None = None,
) -> None:
    """Periodically evict idle sessions until cancelled."""
    interval = interval if interval is not None else settings.SESSION_SWEEP_INTERVAL
    max_idle = max_idle if max_idle is not None else settings.SESSION_IDLE_TTL
    while True:
        await asyncio.sleep(interval)
        evicted = store.evict_idle(max_idle)
        if evicted:
            logger.info(f"Evicted {evicted} idle sessions, {len(store)} remaining")


# Process-wide instance shared by the bot and the API thread
_session_store: SessionStore | None = None
_store_lock = threading.Lock()


def get_session_store() -> SessionStore:
    """Get or create the session store instance."""
    global _session_store
    with _store_lock:
        if _session_store is None:
            _session_store = SessionStore()
        return _session_store
