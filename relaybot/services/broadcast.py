"""Broadcast a notification to every subscriber."""
import asyncio
import logging
from dataclasses import dataclass, field

from relaybot.db.repository import SubscriberRepository
from relaybot.errors import BroadcastError, TransportError
from relaybot.services.telegram import TelegramTransport

logger = logging.getLogger(__name__)


@dataclass
class BroadcastResult:
    sent: int = 0
    failed: list[int] = field(default_factory=list)


async def broadcast(
    registry: SubscriberRepository,
    transport: TelegramTransport,
    text: str,
    continue_on_error: bool = False,
) -> BroadcastResult:
    """Send *text* to every subscribed chat.

    The subscriber list is read once. By default the first failed send aborts
    the remaining sends and raises BroadcastError; with ``continue_on_error``
    failures are collected in the result instead.
    """
    chat_ids = await asyncio.to_thread(registry.list)
    logger.info(f"Broadcasting to {len(chat_ids)} subscribers")

    result = BroadcastResult()
    for chat_id in chat_ids:
        try:
            await transport.send(chat_id, text)
        except TransportError as e:
            if not continue_on_error:
                raise BroadcastError(
                    f"broadcast aborted at chat {chat_id}: {e}",
                    sent=result.sent,
                    failed_chat_id=chat_id,
                ) from e
            logger.warning(f"Broadcast to {chat_id} failed: {e}")
            result.failed.append(chat_id)
            continue
        result.sent += 1

    return result
