"""
Feedback relay endpoint.

Feedback is always accepted; `backend_available` tells whether the RAG
backend actually stored it.
"""

import httpx
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from chatwidget.api.deps import Relay
from chatwidget.core.exceptions import BackendError
from chatwidget.core.logger import setup_logger
from chatwidget.models.enums import FeedbackValue
from chatwidget.models.relay import FeedbackRequest

logger = setup_logger(__name__)

router = APIRouter()

_FEEDBACK_VALUES = {value.value for value in FeedbackValue}


@router.post("/feedback")
async def submit_feedback(request: FeedbackRequest, relay: Relay):
    if not (request.session_id and request.message_id and request.feedback and request.company_id):
        return JSONResponse(
            {
                "error": "Paramètres manquants: session_id, message_id, feedback "
                "et company_id sont requis"
            },
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if request.feedback not in _FEEDBACK_VALUES:
        return JSONResponse(
            {"error": 'Le feedback doit être "like" ou "dislike"'},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    logger.info(
        "Forwarding feedback %s for message %s (session %s)",
        request.feedback,
        request.message_id,
        request.session_id,
    )

    try:
        result = await relay.submit_feedback(request)
    except BackendError as e:
        logger.warning("RAG backend refused feedback (%s), kept locally", e.status_code)
        return {
            "success": True,
            "message": "Feedback enregistré localement (backend RAG non disponible)",
            "backend_available": False,
        }
    except httpx.HTTPError as e:
        logger.warning("RAG backend unreachable (%s), feedback kept locally", e)
        return {
            "success": True,
            "message": "Feedback enregistré localement (backend RAG non accessible)",
            "backend_available": False,
        }

    return {
        "success": True,
        "message": "Feedback enregistré avec succès",
        "data": result,
        "backend_available": True,
    }
