"""
Shared fixtures.

Outgoing HTTP is served by `httpx.MockTransport`; streamed answers are
delivered chunk by chunk so tests control where lines are split.
"""

import json
from typing import Callable, Optional

import httpx
import pytest

from chatwidget.infrastructure.local.memory_storage import InMemoryKeyValueStorage
from chatwidget.services.session_store import SessionStore


class ChunkedByteStream(httpx.AsyncByteStream):
    """Response body yielded as the given chunks, optionally failing at the end."""

    def __init__(self, chunks: list[bytes], error: Optional[Exception] = None):
        self._chunks = chunks
        self._error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error

    async def aclose(self) -> None:
        self.closed = True


def _sse_line(payload: dict) -> bytes:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n".encode("utf-8")


@pytest.fixture
def storage():
    """Empty in-memory storage."""
    return InMemoryKeyValueStorage()


@pytest.fixture
def store(storage):
    """Session store over in-memory storage."""
    return SessionStore(storage, max_sessions=10)


@pytest.fixture
def sse_response() -> Callable[..., httpx.Response]:
    """Build a streamed event-stream response from raw chunks."""

    def _build(chunks: list[bytes], status_code: int = 200) -> httpx.Response:
        return httpx.Response(
            status_code,
            headers={"content-type": "text/event-stream"},
            stream=ChunkedByteStream(chunks),
        )

    return _build


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def mock_client_factory(recorded_requests):
    """AsyncClient whose transport records requests and answers with `handler`."""

    def _build(handler) -> httpx.AsyncClient:
        async def _record(request: httpx.Request) -> httpx.Response:
            await request.aread()
            recorded_requests.append(request)
            result = handler(request)
            if hasattr(result, "__await__"):
                result = await result
            return result

        return httpx.AsyncClient(transport=httpx.MockTransport(_record))

    return _build


@pytest.fixture
def sse_line() -> Callable[[dict], bytes]:
    """Encode one `data: {json}` stream line."""
    return _sse_line


@pytest.fixture
def chunked_stream() -> type[ChunkedByteStream]:
    """Byte stream class recording whether the reader released it."""
    return ChunkedByteStream
