"""
Integration tests for the Messenger webhook routes.
"""

import hashlib
import hmac
import json

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from chatwidget.api.deps import get_http_client, get_messenger_caches
from chatwidget.core.config import Settings, get_settings
from chatwidget.main import create_app
from chatwidget.services.messenger_service import MessengerCaches

APP_SECRET = "app-secret"


@pytest.fixture
def settings():
    return Settings(
        BACKEND_API_URL="http://backend.test",
        MESSENGER_VERIFY_TOKEN="verify-me",
        MESSENGER_APP_SECRET=APP_SECRET,
        MESSENGER_PAGE_TOKEN="page-token",
        MESSENGER_GRAPH_API_URL="http://graph.test/v20.0",
        MESSENGER_REPLY_DELAY_SECONDS=0,
    )


@pytest.fixture
def app(settings):
    app = create_app()
    caches = MessengerCaches.from_settings(settings)
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_messenger_caches] = lambda: caches
    return app


def _relay(app, outgoing) -> AsyncClient:
    app.dependency_overrides[get_http_client] = lambda: outgoing
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://relay")


def _signed(body: dict) -> tuple[bytes, dict]:
    raw = json.dumps(body).encode("utf-8")
    digest = hmac.new(APP_SECRET.encode("utf-8"), raw, hashlib.sha256).hexdigest()
    return raw, {"X-Hub-Signature-256": f"sha256={digest}", "Content-Type": "application/json"}


def _outgoing(request: httpx.Request) -> httpx.Response:
    if request.url.host == "backend.test":
        return httpx.Response(200, json={"answer": "Nous sommes ouverts de 8h à 17h."})
    return httpx.Response(200, json={"recipient_id": "psid-1"})


class TestVerifyWebhook:
    @pytest.mark.asyncio
    async def test_valid_token_echoes_challenge(self, app, mock_client_factory):
        params = {"hub.mode": "subscribe", "hub.verify_token": "verify-me", "hub.challenge": "987"}

        async with mock_client_factory(_outgoing) as outgoing:
            async with _relay(app, outgoing) as client:
                response = await client.get("/api/messenger/webhook", params=params)

        assert response.status_code == 200
        assert response.text == "987"

    @pytest.mark.asyncio
    async def test_wrong_token_forbidden(self, app, mock_client_factory):
        params = {"hub.mode": "subscribe", "hub.verify_token": "nope", "hub.challenge": "987"}

        async with mock_client_factory(_outgoing) as outgoing:
            async with _relay(app, outgoing) as client:
                response = await client.get("/api/messenger/webhook", params=params)

        assert response.status_code == 403


class TestReceiveWebhook:
    @pytest.mark.asyncio
    async def test_message_answered_through_graph_api(self, app, mock_client_factory, recorded_requests):
        raw, headers = _signed(
            {
                "object": "page",
                "entry": [
                    {
                        "messaging": [
                            {
                                "sender": {"id": "psid-1"},
                                "message": {"mid": "m-1", "text": "Quels sont vos horaires ?"},
                            }
                        ]
                    }
                ],
            }
        )

        async with mock_client_factory(_outgoing) as outgoing:
            async with _relay(app, outgoing) as client:
                response = await client.post("/api/messenger/webhook", content=raw, headers=headers)

        assert response.status_code == 200
        assert response.text == "EVENT_RECEIVED"

        ask = [r for r in recorded_requests if r.url.host == "backend.test"]
        assert len(ask) == 1
        assert json.loads(ask[0].content)["session_id"] == "messenger_psid-1"

        graph_bodies = [json.loads(r.content) for r in recorded_requests if r.url.host == "graph.test"]
        assert [b.get("sender_action") for b in graph_bodies] == [
            "mark_seen",
            "typing_on",
            None,
            "typing_off",
        ]
        assert graph_bodies[2]["message"]["text"] == "Nous sommes ouverts de 8h à 17h."

    @pytest.mark.asyncio
    async def test_invalid_signature_rejected(self, app, mock_client_factory, recorded_requests):
        raw, headers = _signed({"object": "page", "entry": []})
        headers["X-Hub-Signature-256"] = "sha256=" + "0" * 64

        async with mock_client_factory(_outgoing) as outgoing:
            async with _relay(app, outgoing) as client:
                response = await client.post("/api/messenger/webhook", content=raw, headers=headers)

        assert response.status_code == 403
        assert recorded_requests == []

    @pytest.mark.asyncio
    async def test_non_page_object_not_found(self, app, mock_client_factory):
        raw, headers = _signed({"object": "instagram", "entry": []})

        async with mock_client_factory(_outgoing) as outgoing:
            async with _relay(app, outgoing) as client:
                response = await client.post("/api/messenger/webhook", content=raw, headers=headers)

        assert response.status_code == 404


class TestDiagnosticRoute:
    @pytest.mark.asyncio
    async def test_requires_psid(self, app, mock_client_factory):
        async with mock_client_factory(_outgoing) as outgoing:
            async with _relay(app, outgoing) as client:
                response = await client.get("/api/messenger/test")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_page_token(self, app, settings, mock_client_factory):
        app.dependency_overrides[get_settings] = lambda: settings.model_copy(
            update={"MESSENGER_PAGE_TOKEN": ""}
        )

        async with mock_client_factory(_outgoing) as outgoing:
            async with _relay(app, outgoing) as client:
                response = await client.get("/api/messenger/test", params={"psid": "psid-1"})

        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_reports_graph_statuses(self, app, mock_client_factory, recorded_requests):
        async with mock_client_factory(_outgoing) as outgoing:
            async with _relay(app, outgoing) as client:
                response = await client.get(
                    "/api/messenger/test", params={"psid": "psid-1", "message": "ping"}
                )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["typing"]["status"] == 200
        assert body["message"]["status"] == 200
        assert json.loads(recorded_requests[1].content)["message"]["text"] == "ping"
