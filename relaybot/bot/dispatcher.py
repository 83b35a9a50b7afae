"""Inbound update dispatcher.

Every update runs as its own asyncio task. Commands go straight to the
subscriber registry; free text passes the registration gate, the length
check and the session store's rate policy before reaching the backend.
"""
import asyncio
import logging
from collections.abc import AsyncIterable

from relaybot.config import settings
from relaybot.db.repository import SubscriberRepository
from relaybot.errors import BackendError, BackendTimeout, RegistryError, TransportError
from relaybot.logging_config import chat_id_var
from relaybot.models.session import Admission
from relaybot.models.update import InboundUpdate
from relaybot.services.llm import BackendClient
from relaybot.services.sessions import SessionStore, get_session_store
from relaybot.services.telegram import TelegramTransport

logger = logging.getLogger(__name__)

WELCOME = "Glad to see you here! Ask me anything."
ALREADY_SUBSCRIBED = "You are already subscribed!"
DISCONNECTED = "You are successfully disconnected!"
UNKNOWN_COMMAND = "I don't know that command!"
HELP = (
    "Commands:\n"
    "/start - Subscribe and start asking questions\n"
    "/stop - Unsubscribe\n"
    "/help - Show this message"
)
TOO_SHORT = "Your message is too short. Please send a longer question."
RATE_LIMITED = (
    "You are sending messages too quickly. "
    "Further messages will be ignored for a minute."
)
OVERLOADED = "The service is under heavy load right now. Please retry later."
BACKEND_FAILED = "Sorry, I couldn't generate an answer. Please try again."
TRY_LATER = "Something went wrong, please try again later."


class Dispatcher:
    """Routes inbound updates to command handlers or the generation backend."""

    def __init__(
        self,
        registry: SubscriberRepository,
        backend: BackendClient,
        transport: TelegramTransport,
        store: SessionStore | None = None,
        min_length: int | None = None,
        max_concurrent: int | None = None,
    ):
        self.registry = registry
        self.backend = backend
        self.transport = transport
        self.store = store if store is not None else get_session_store()
        self.min_length = min_length if min_length is not None else settings.MIN_MESSAGE_LENGTH

        limit = max_concurrent if max_concurrent is not None else settings.MAX_CONCURRENT_UPDATES
        self._semaphore = asyncio.Semaphore(limit) if limit > 0 else None
        self._tasks: set[asyncio.Task] = set()

        self._commands = {
            "start": self._subscribe,
            "subscribe": self._subscribe,
            "stop": self._unsubscribe,
            "unsubscribe": self._unsubscribe,
            "help": self._help,
        }

    # ── Task management ────────────────────────────────────────────────────

    def submit(self, update: InboundUpdate) -> asyncio.Task:
        """Spawn an independent handling task for *update*."""
        task = asyncio.create_task(self._handle_safely(update))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run(self, updates: AsyncIterable[InboundUpdate]) -> None:
        """Consume an update stream, then wait for all spawned tasks."""
        async for update in updates:
            self.submit(update)
        await self.drain()

    async def drain(self) -> None:
        """Wait until every outstanding handling task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def _handle_safely(self, update: InboundUpdate) -> None:
        chat_id_var.set(str(update.chat_id))
        try:
            if self._semaphore is None:
                await self.handle(update)
            else:
                async with self._semaphore:
                    await self.handle(update)
        except Exception:
            logger.exception("Unhandled error while processing update")

    # ── Routing ────────────────────────────────────────────────────────────

    async def handle(self, update: InboundUpdate) -> None:
        """Process one update to completion."""
        if not update.text:
            return
        if update.is_command:
            await self._handle_command(update)
        else:
            await self._handle_text(update)

    async def _handle_command(self, update: InboundUpdate) -> None:
        handler = self._commands.get(update.command or "")
        if handler is None:
            await self._reply(update.chat_id, UNKNOWN_COMMAND)
            return
        try:
            text = await handler(update.chat_id)
        except RegistryError as e:
            logger.error(f"/{update.command} failed: {e}")
            text = TRY_LATER
        await self._reply(update.chat_id, text)

    async def _subscribe(self, chat_id: int) -> str:
        if await asyncio.to_thread(self.registry.exists, chat_id):
            return ALREADY_SUBSCRIBED
        await asyncio.to_thread(self.registry.insert, chat_id)
        return WELCOME

    async def _unsubscribe(self, chat_id: int) -> str:
        # The session is kept so resubscribing cannot reset a rate window
        await asyncio.to_thread(self.registry.delete, chat_id)
        return DISCONNECTED

    async def _help(self, chat_id: int) -> str:
        return HELP

    async def _handle_text(self, update: InboundUpdate) -> None:
        chat_id = update.chat_id

        try:
            registered = await asyncio.to_thread(self.registry.exists, chat_id)
        except RegistryError as e:
            logger.error(f"Registration check failed: {e}")
            await self._reply(chat_id, TRY_LATER)
            return
        if not registered:
            logger.debug("Dropping message from unregistered chat")
            return

        if len(update.text.strip()) < self.min_length:
            await self._reply(chat_id, TOO_SHORT)
            return

        self.store.get_or_create(chat_id)
        admission = self.store.admit(chat_id)
        if admission is Admission.DENIED_NOTIFY:
            logger.warning("Rate limit exceeded, warning sent")
            await self._reply(chat_id, RATE_LIMITED)
            return
        if admission is Admission.DENIED_SILENT:
            logger.debug("Rate limited, message dropped")
            return

        logger.info(f"Forwarding: {update.text[:50]}...")
        await self._send_typing(chat_id)
        try:
            answer = await self.backend.generate(update.text)
        except BackendTimeout as e:
            logger.warning(f"Backend timed out: {e}")
            await self._reply(chat_id, OVERLOADED)
            return
        except BackendError as e:
            logger.error(f"Backend error: {e}")
            await self._reply(chat_id, BACKEND_FAILED)
            return

        await self._reply(chat_id, answer)

    # ── Outbound ───────────────────────────────────────────────────────────

    async def _reply(self, chat_id: int, text: str) -> None:
        try:
            await self.transport.send(chat_id, text)
        except TransportError as e:
            logger.error(f"Failed to reply: {e}")

    async def _send_typing(self, chat_id: int) -> None:
        try:
            await self.transport.send_typing(chat_id)
        except TransportError as e:
            logger.warning(f"Failed to send typing indicator: {e}")
