"""
Ask relay endpoint.

Forwards a question to the backend and streams its event stream back to the
widget unchanged.
"""

import httpx
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from chatwidget.api.deps import Relay
from chatwidget.core.logger import setup_logger
from chatwidget.models.relay import AskRequest

logger = setup_logger(__name__)

router = APIRouter()

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


@router.post("/ask")
async def ask(request: AskRequest, relay: Relay):
    """
    Relay a question as a Server-Sent Events stream.

    Returns 400 without a question, the backend's status with an error body
    when the backend refuses the call, and 500 when it cannot be reached.
    """
    if not request.question:
        return JSONResponse(
            {"error": "Question manquante"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        upstream = await relay.open_ask_stream(request)
    except httpx.HTTPError as e:
        logger.error("Ask backend unreachable: %s", e)
        return JSONResponse(
            {"error": "Erreur serveur", "details": str(e)},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if upstream.status_code >= 400:
        details = (await upstream.aread()).decode("utf-8", errors="replace")
        await upstream.aclose()
        logger.warning("Ask backend answered %s: %s", upstream.status_code, details)
        return JSONResponse(
            {
                "error": "Erreur du backend",
                "status": upstream.status_code,
                "statusText": upstream.reason_phrase,
                "details": details,
            },
            status_code=upstream.status_code,
        )

    async def relay_events():
        try:
            async for chunk in upstream.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            logger.error("Ask stream interrupted: %s", e)
        finally:
            await upstream.aclose()

    return StreamingResponse(
        relay_events(),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
        background=BackgroundTask(upstream.aclose),
    )
