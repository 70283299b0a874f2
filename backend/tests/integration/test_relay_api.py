"""
Integration tests for the proxy relay routes.

The relay app runs in-process behind ASGITransport; its outgoing client is
replaced by a MockTransport playing the remote backend.
"""

import gzip
import json

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from chatwidget.api.deps import get_http_client
from chatwidget.main import create_app

BACKEND = "http://localhost:8000"


def _relay(app, backend_client) -> AsyncClient:
    app.dependency_overrides[get_http_client] = lambda: backend_client
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://relay")


@pytest.fixture
def app():
    return create_app()


class TestAsk:
    @pytest.mark.asyncio
    async def test_missing_question(self, app, mock_client_factory, recorded_requests):
        async with mock_client_factory(lambda r: httpx.Response(200)) as backend:
            async with _relay(app, backend) as client:
                response = await client.post("/api/ask", json={"company_id": "c1"})

        assert response.status_code == 400
        assert response.json() == {"error": "Question manquante"}
        assert recorded_requests == []

    @pytest.mark.asyncio
    async def test_stream_relayed_verbatim(
        self, app, mock_client_factory, recorded_requests, sse_response, sse_line
    ):
        chunks = [
            sse_line({"event": "heartbeat"}),
            b"\n",
            sse_line({"answer": "Bonjour !", "session_id": "backend-1"}),
        ]

        async with mock_client_factory(lambda r: sse_response(chunks)) as backend:
            async with _relay(app, backend) as client:
                response = await client.post("/api/ask", json={"question": "Salut"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.content == b"".join(chunks)

        upstream = recorded_requests[0]
        assert str(upstream.url) == f"{BACKEND}/ask_public/"
        assert upstream.headers["accept"] == "text/event-stream"
        assert json.loads(upstream.content) == {
            "question": "Salut",
            "company_id": "d6738c8d-7e4d-4406-a298-8a640620879c",
            "session_id": None,
            "external_user_id": None,
            "langue": "français",
        }

    @pytest.mark.asyncio
    async def test_compressed_upstream_relayed_decoded(self, app, mock_client_factory, sse_line):
        body = sse_line({"answer": "ok"})

        def gzipped(request):
            return httpx.Response(
                200,
                headers={"content-type": "text/event-stream", "content-encoding": "gzip"},
                content=gzip.compress(body),
            )

        async with mock_client_factory(gzipped) as backend:
            async with _relay(app, backend) as client:
                response = await client.post("/api/ask", json={"question": "Salut"})

        assert response.status_code == 200
        assert "content-encoding" not in response.headers
        assert response.content == body

    @pytest.mark.asyncio
    async def test_backend_error_forwarded(self, app, mock_client_factory):
        async with mock_client_factory(lambda r: httpx.Response(503, text="overloaded")) as backend:
            async with _relay(app, backend) as client:
                response = await client.post("/api/ask", json={"question": "Salut"})

        assert response.status_code == 503
        assert response.json() == {
            "error": "Erreur du backend",
            "status": 503,
            "statusText": "Service Unavailable",
            "details": "overloaded",
        }

    @pytest.mark.asyncio
    async def test_backend_unreachable(self, app, mock_client_factory):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client_factory(refuse) as backend:
            async with _relay(app, backend) as client:
                response = await client.post("/api/ask", json={"question": "Salut"})

        assert response.status_code == 500
        assert response.json()["error"] == "Erreur serveur"
        assert "connection refused" in response.json()["details"]


class TestSessionMessages:
    @pytest.mark.asyncio
    async def test_missing_session_id(self, app, mock_client_factory):
        async with mock_client_factory(lambda r: httpx.Response(200, json=[])) as backend:
            async with _relay(app, backend) as client:
                response = await client.get("/api/session-messages")

        assert response.status_code == 400
        assert response.json() == {"error": "session_id manquant"}

    @pytest.mark.asyncio
    async def test_history_mapped_to_widget_shape(self, app, mock_client_factory, recorded_requests):
        items = [
            {"content": "Bonjour", "role": "user", "created_at": "2024-05-01T10:00:00Z"},
            {"content": "Salut !", "role": "assistant", "created_at": "2024-05-01T10:00:01Z"},
        ]

        async with mock_client_factory(lambda r: httpx.Response(200, json=items)) as backend:
            async with _relay(app, backend) as client:
                response = await client.get(
                    "/api/session-messages", params={"session_id": "s1", "company_id": "c1"}
                )

        assert response.status_code == 200
        assert response.json() == {
            "messages": [
                {"text": "Bonjour", "isUser": True, "timestamp": "2024-05-01T10:00:00Z"},
                {"text": "Salut !", "isUser": False, "timestamp": "2024-05-01T10:00:01Z"},
            ]
        }
        assert str(recorded_requests[0].url) == f"{BACKEND}/messages_public/s1"

    @pytest.mark.asyncio
    async def test_upstream_status_forwarded(self, app, mock_client_factory):
        async with mock_client_factory(lambda r: httpx.Response(404)) as backend:
            async with _relay(app, backend) as client:
                response = await client.get("/api/session-messages", params={"session_id": "s1"})

        assert response.status_code == 404
        assert response.json()["error"] == "Erreur du backend"


class TestFeedback:
    VALID = {
        "session_id": "s1",
        "message_id": "bot_1_abcdefghi",
        "feedback": "like",
        "company_id": "c1",
    }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["session_id", "message_id", "feedback", "company_id"])
    async def test_missing_field(self, app, mock_client_factory, missing):
        body = {k: v for k, v in self.VALID.items() if k != missing}

        async with mock_client_factory(lambda r: httpx.Response(200)) as backend:
            async with _relay(app, backend) as client:
                response = await client.post("/api/feedback", json=body)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_feedback_value(self, app, mock_client_factory):
        async with mock_client_factory(lambda r: httpx.Response(200)) as backend:
            async with _relay(app, backend) as client:
                response = await client.post("/api/feedback", json={**self.VALID, "feedback": "meh"})

        assert response.status_code == 400
        assert "like" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_forwarded_to_rag_backend(self, app, mock_client_factory, recorded_requests):
        async with mock_client_factory(lambda r: httpx.Response(200, json={"stored": True})) as backend:
            async with _relay(app, backend) as client:
                response = await client.post("/api/feedback", json=self.VALID)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Feedback enregistré avec succès",
            "data": {"stored": True},
            "backend_available": True,
        }
        assert str(recorded_requests[0].url) == f"{BACKEND}/feedback"
        assert json.loads(recorded_requests[0].content) == self.VALID

    @pytest.mark.asyncio
    @pytest.mark.parametrize("unavailable", ["status", "transport"])
    async def test_backend_unavailable_still_succeeds(self, app, mock_client_factory, unavailable):
        def handler(request):
            if unavailable == "transport":
                raise httpx.ConnectTimeout("timed out", request=request)
            return httpx.Response(500)

        async with mock_client_factory(handler) as backend:
            async with _relay(app, backend) as client:
                response = await client.post("/api/feedback", json=self.VALID)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["backend_available"] is False
        assert body["message"].startswith("Feedback enregistré localement")


class TestStaticRoutes:
    @pytest.mark.asyncio
    async def test_widget_script(self, app, mock_client_factory):
        async with mock_client_factory(lambda r: httpx.Response(200)) as backend:
            async with _relay(app, backend) as client:
                response = await client.get("/api/widget-script")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/javascript")
        assert response.headers["cache-control"] == "public, max-age=3600"
        assert "iframe.src = 'http://relay/widget'" in response.text
        assert "window.ChatWidgetLoaded" in response.text

    @pytest.mark.asyncio
    async def test_health(self, app, mock_client_factory):
        async with mock_client_factory(lambda r: httpx.Response(200)) as backend:
            async with _relay(app, backend) as client:
                response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
