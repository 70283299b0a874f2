"""
Messenger Platform webhook endpoints.
"""

import asyncio
import json
from typing import Optional

import httpx
from fastapi import APIRouter, Query, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from chatwidget.api.deps import AppSettings, GraphClient, Messenger
from chatwidget.core.logger import setup_logger
from chatwidget.services.messenger_service import verify_signature

logger = setup_logger(__name__)

router = APIRouter()


@router.get("/webhook")
async def verify_webhook(
    messenger: Messenger,
    mode: Optional[str] = Query(None, alias="hub.mode"),
    token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
):
    """Subscription handshake."""
    echoed = messenger.verify_subscription(mode, token, challenge)
    if echoed is None:
        return PlainTextResponse("Forbidden", status_code=status.HTTP_403_FORBIDDEN)
    return PlainTextResponse(echoed)


@router.post("/webhook")
async def receive_webhook(request: Request, messenger: Messenger, settings: AppSettings):
    """Handle a page delivery."""
    raw_body = await request.body()
    if not verify_signature(
        settings.MESSENGER_APP_SECRET,
        raw_body,
        request.headers.get("x-hub-signature-256"),
    ):
        logger.warning("Rejected webhook delivery with invalid signature")
        return PlainTextResponse("Invalid signature", status_code=status.HTTP_403_FORBIDDEN)

    try:
        body = json.loads(raw_body)
    except json.JSONDecodeError:
        return PlainTextResponse("Bad Request", status_code=status.HTTP_400_BAD_REQUEST)

    if not isinstance(body, dict) or body.get("object") != "page":
        return PlainTextResponse("Not Found", status_code=status.HTTP_404_NOT_FOUND)

    handled = await messenger.handle_payload(body)
    logger.info("Webhook delivery processed (%s events answered)", handled)
    return PlainTextResponse("EVENT_RECEIVED")


@router.get("/test")
async def send_test_message(
    graph: GraphClient,
    settings: AppSettings,
    psid: Optional[str] = Query(None, description="Recipient page-scoped id"),
    message: str = Query("Test message", description="Text to send"),
):
    """Send typing_on then a text message to one recipient and report the Graph API answers."""
    if not psid:
        return JSONResponse({"error": "PSID requis"}, status_code=status.HTTP_400_BAD_REQUEST)
    if not settings.MESSENGER_PAGE_TOKEN:
        return JSONResponse(
            {"error": "PAGE_TOKEN manquant"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    try:
        typing = await graph.post_message({"recipient": {"id": psid}, "sender_action": "typing_on"})
        await asyncio.sleep(settings.MESSENGER_REPLY_DELAY_SECONDS)
        sent = await graph.post_message(
            {
                "recipient": {"id": psid},
                "message": {"text": message},
                "messaging_type": "RESPONSE",
            }
        )
    except httpx.HTTPError as e:
        logger.error("Messenger test send to %s failed: %s", psid, e)
        return JSONResponse(
            {"error": "Erreur lors du test", "details": str(e)},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return {
        "success": typing.is_success and sent.is_success,
        "typing": {"status": typing.status_code, "body": typing.text},
        "message": {"status": sent.status_code, "body": sent.text},
    }
