"""Telegram polling setup using python-telegram-bot."""
import asyncio
import contextlib
import logging

from telegram import Update
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from relaybot.bot.dispatcher import Dispatcher
from relaybot.config import settings
from relaybot.db.repository import get_repository
from relaybot.models.update import InboundUpdate
from relaybot.services.llm import get_backend_client
from relaybot.services.sessions import get_session_store, run_session_sweeper
from relaybot.services.telegram import TelegramTransport

logger = logging.getLogger(__name__)

_dispatcher: Dispatcher | None = None
_transport: TelegramTransport | None = None
_sweeper: asyncio.Task | None = None


def to_inbound(update: Update) -> InboundUpdate | None:
    """Convert a Telegram update into a transport-neutral update."""
    message = update.effective_message
    chat = update.effective_chat
    if message is None or chat is None:
        return None
    return InboundUpdate.from_text(chat.id, message.text)


async def update_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Hand every message to the dispatcher without waiting for it."""
    inbound = to_inbound(update)
    if inbound is None or _dispatcher is None:
        return
    _dispatcher.submit(inbound)


async def on_startup(application: Application) -> None:
    """Initialize on startup."""
    global _dispatcher, _transport, _sweeper

    # A registry that cannot be opened is fatal; let it propagate
    registry = get_repository()
    store = get_session_store()

    _transport = TelegramTransport()
    _dispatcher = Dispatcher(
        registry=registry,
        backend=get_backend_client(),
        transport=_transport,
        store=store,
    )
    _sweeper = asyncio.create_task(run_session_sweeper(store))

    logger.info("Bot started with rate-limited session management")


async def on_shutdown(application: Application) -> None:
    """Cleanup on shutdown."""
    global _dispatcher, _transport, _sweeper

    if _dispatcher is not None:
        logger.info(f"Waiting for {_dispatcher.pending} in-flight updates")
        await _dispatcher.drain()
        _dispatcher = None

    if _sweeper is not None:
        _sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await _sweeper
        _sweeper = None

    if _transport is not None:
        await _transport.close()
        _transport = None

    logger.info("Bot shutdown complete")


def create_application() -> Application:
    """Create and configure the Telegram application."""
    app = Application.builder().token(settings.TELEGRAM_BOT_TOKEN).build()

    # Commands and text alike go through the dispatcher
    app.add_handler(MessageHandler(filters.ALL, update_handler))

    # Lifecycle hooks
    app.post_init = on_startup
    app.post_shutdown = on_shutdown

    return app


def run_polling() -> None:
    """Run the bot with polling."""
    logger.info("Starting Telegram bot with polling...")

    app = create_application()
    app.run_polling(allowed_updates=["message"], drop_pending_updates=True)
