"""Telegram Bot API client for outbound messages."""
import logging

import httpx

from relaybot.config import settings
from relaybot.errors import TransportError

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4096


class TelegramTransport:
    """Asynchronous Telegram API client used by the dispatcher and broadcast."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
    ):
        """Initialize with optional HTTP client."""
        self._client = http_client
        self._owns_client = http_client is None
        self.base_url = base_url or settings.telegram_base_url

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=30.0)
        return self._client

    async def _call(self, method: str, payload: dict) -> dict:
        client = await self._get_client()
        try:
            response = await client.post(f"{self.base_url}/{method}", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise TransportError(f"Telegram {method} failed: {e}") from e
        if not data.get("ok", False):
            raise TransportError(
                f"Telegram {method} rejected: {data.get('description', 'unknown error')}"
            )
        return data

    async def send_message(self, chat_id: int, text: str) -> dict:
        """Send a single message to a chat."""
        return await self._call("sendMessage", {"chat_id": chat_id, "text": text})

    async def send(self, chat_id: int, text: str) -> list[dict]:
        """Send a message, splitting if too long."""
        results = []
        for i in range(0, len(text), MAX_MESSAGE_LENGTH):
            results.append(await self.send_message(chat_id, text[i : i + MAX_MESSAGE_LENGTH]))
        return results

    async def send_typing(self, chat_id: int) -> dict:
        """Send a typing indicator."""
        return await self._call("sendChatAction", {"chat_id": chat_id, "action": "typing"})

    async def close(self) -> None:
        """Close HTTP client if owned."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
