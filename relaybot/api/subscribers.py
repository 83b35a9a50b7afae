"""Subscriber and broadcast endpoints."""
import asyncio

from fastapi import APIRouter, HTTPException

from relaybot.db.repository import get_repository
from relaybot.errors import BroadcastError, RegistryError
from relaybot.models.schemas import BroadcastRequest, BroadcastResponse, SubscriberList
from relaybot.services.broadcast import broadcast
from relaybot.services.telegram import TelegramTransport

router = APIRouter(tags=["subscribers"])


@router.get("/subscribers", response_model=SubscriberList)
async def list_subscribers() -> SubscriberList:
    """List all subscribed chats."""
    try:
        chat_ids = await asyncio.to_thread(get_repository().list)
    except RegistryError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return SubscriberList(chat_ids=chat_ids, count=len(chat_ids))


@router.post("/broadcast", response_model=BroadcastResponse)
async def broadcast_message(request: BroadcastRequest) -> BroadcastResponse:
    """Send a notification to every subscriber."""
    transport = TelegramTransport()
    try:
        result = await broadcast(
            get_repository(),
            transport,
            request.text,
            continue_on_error=request.continue_on_error,
        )
    except RegistryError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except BroadcastError as e:
        raise HTTPException(
            status_code=502,
            detail={"error": str(e), "sent": e.sent, "failed_chat_id": e.failed_chat_id},
        )
    finally:
        await transport.close()
    return BroadcastResponse(sent=result.sent, failed=result.failed)
