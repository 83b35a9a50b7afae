"""Tests for the python-telegram-bot polling glue."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from telegram import Chat, Message, Update
from telegram.ext import MessageHandler

from relaybot.bot import poller
from relaybot.models.update import InboundUpdate


def _make_update(text="hello", chat_id=42, update_id=100):
    message = Message(
        message_id=1,
        date=datetime.now(timezone.utc),
        chat=Chat(id=chat_id, type=Chat.PRIVATE),
        text=text,
    )
    return Update(update_id=update_id, message=message)


class TestToInbound:
    def test_text_message(self):
        inbound = poller.to_inbound(_make_update("what time is it?"))
        assert inbound == InboundUpdate(chat_id=42, text="what time is it?")

    def test_command_message(self):
        inbound = poller.to_inbound(_make_update("/start"))
        assert inbound.is_command is True
        assert inbound.command == "start"

    def test_message_without_text(self):
        inbound = poller.to_inbound(_make_update(text=None))
        assert inbound.text is None

    def test_update_without_message(self):
        assert poller.to_inbound(Update(update_id=1)) is None


class TestUpdateHandler:
    def test_submits_to_dispatcher(self):
        dispatcher = MagicMock()
        with patch.object(poller, "_dispatcher", dispatcher):
            asyncio.run(poller.update_handler(_make_update("hello"), None))
        dispatcher.submit.assert_called_once_with(InboundUpdate(chat_id=42, text="hello"))

    def test_ignored_before_startup(self):
        with patch.object(poller, "_dispatcher", None):
            asyncio.run(poller.update_handler(_make_update("hello"), None))


class TestLifecycle:
    def test_startup_and_shutdown(self, repository, backend, store):
        async def _run():
            with (
                patch("relaybot.bot.poller.get_repository", return_value=repository),
                patch("relaybot.bot.poller.get_backend_client", return_value=backend),
                patch("relaybot.bot.poller.get_session_store", return_value=store),
            ):
                await poller.on_startup(MagicMock())
                dispatcher = poller._dispatcher
                sweeper = poller._sweeper
                assert dispatcher is not None
                assert dispatcher.registry is repository
                assert dispatcher.store is store
                assert not sweeper.done()

                await poller.on_shutdown(MagicMock())
                assert sweeper.cancelled()
                assert poller._dispatcher is None
                assert poller._transport is None

        asyncio.run(_run())

    def test_startup_fails_when_registry_unavailable(self):
        from relaybot.errors import RegistryError

        with patch("relaybot.bot.poller.get_repository", side_effect=RegistryError("no db")):
            with pytest.raises(RegistryError):
                asyncio.run(poller.on_startup(MagicMock()))


class TestCreateApplication:
    def test_registers_single_catch_all_handler(self):
        app = poller.create_application()
        handlers = [h for group in app.handlers.values() for h in group]
        assert len(handlers) == 1
        assert isinstance(handlers[0], MessageHandler)
        assert handlers[0].callback is poller.update_handler
        assert app.post_init is poller.on_startup
        assert app.post_shutdown is poller.on_shutdown
