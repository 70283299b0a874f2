"""
Session history relay endpoint.
"""

from typing import Optional

import httpx
from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from chatwidget.api.deps import Relay
from chatwidget.core.exceptions import BackendError
from chatwidget.core.logger import setup_logger
from chatwidget.models.relay import SessionMessagesResponse

logger = setup_logger(__name__)

router = APIRouter()


@router.get("/session-messages", response_model=SessionMessagesResponse)
async def session_messages(
    relay: Relay,
    session_id: Optional[str] = Query(None, description="Session ID"),
    company_id: Optional[str] = Query(None, description="Company ID"),
):
    """Return a session's backend history in widget message shape."""
    if not session_id:
        return JSONResponse(
            {"error": "session_id manquant"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        items = await relay.fetch_history(session_id)
    except BackendError as e:
        logger.warning("History backend answered %s for %s", e.status_code, session_id)
        return JSONResponse(
            {"error": e.message, "status": e.status_code, "statusText": e.details},
            status_code=e.status_code,
        )
    except (httpx.HTTPError, ValueError) as e:
        logger.error("History fetch for %s failed: %s", session_id, e)
        return JSONResponse(
            {"error": "Erreur serveur", "details": str(e)},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return SessionMessagesResponse.from_backend(items)
