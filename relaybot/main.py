#!/usr/bin/env python3
"""
Relay bot - Entry point.

Starts the Telegram poller and optionally the FastAPI server.
"""
import logging
import threading

import uvicorn
from fastapi import FastAPI

from relaybot import __version__
from relaybot.api.health import router as health_router
from relaybot.api.sessions import router as sessions_router
from relaybot.api.subscribers import router as subscribers_router
from relaybot.bot.poller import run_polling
from relaybot.config import settings
from relaybot.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_api() -> FastAPI:
    """Create FastAPI application."""
    app = FastAPI(
        title="Relay Bot API",
        description="Subscriber, broadcast and session endpoints for the relay bot",
        version=__version__,
    )

    app.include_router(health_router)
    app.include_router(subscribers_router)
    app.include_router(sessions_router)

    return app


def run_api_server() -> None:
    """Run the FastAPI server in a separate thread."""
    app = create_api()
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT, log_config=None)


def main() -> None:
    """Main entry point."""
    setup_logging("Bot")
    logger.info("Starting relay bot...")
    logger.info(f"API enabled: {settings.API_ENABLED}")

    if settings.API_ENABLED:
        api_thread = threading.Thread(target=run_api_server, daemon=True)
        api_thread.start()
        logger.info(f"API server started on port {settings.API_PORT}")

    # Run Telegram bot (blocking)
    run_polling()


if __name__ == "__main__":
    main()
