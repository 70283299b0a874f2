"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies for the shared HTTP client and
the services built on it. Tests replace them via `app.dependency_overrides`.
"""

from functools import lru_cache
from typing import Annotated

import httpx
from fastapi import Depends

from chatwidget.core.config import Settings, get_settings
from chatwidget.services.messenger_service import (
    GraphApiClient,
    MessengerCaches,
    MessengerService,
)
from chatwidget.services.relay_service import RelayService


# ===========================================
# Shared clients
# ===========================================


@lru_cache()
def get_http_client() -> httpx.AsyncClient:
    """Process-wide outgoing HTTP client, closed on application shutdown."""
    return httpx.AsyncClient(follow_redirects=True)


@lru_cache()
def get_messenger_caches() -> MessengerCaches:
    """Delivery de-duplication and throttle state, owned by this process."""
    return MessengerCaches.from_settings(get_settings())


# ===========================================
# Services
# ===========================================


def get_relay_service(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> RelayService:
    """Get upstream relay client."""
    return RelayService(http_client, settings)


def get_graph_client(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> GraphApiClient:
    """Get Messenger Send API client."""
    return GraphApiClient(http_client, settings)


def get_messenger_service(
    relay: RelayService = Depends(get_relay_service),
    graph: GraphApiClient = Depends(get_graph_client),
    caches: MessengerCaches = Depends(get_messenger_caches),
    settings: Settings = Depends(get_settings),
) -> MessengerService:
    """Get Messenger webhook handler."""
    return MessengerService(relay, graph, caches, settings)


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

AppSettings = Annotated[Settings, Depends(get_settings)]
Relay = Annotated[RelayService, Depends(get_relay_service)]
GraphClient = Annotated[GraphApiClient, Depends(get_graph_client)]
Messenger = Annotated[MessengerService, Depends(get_messenger_service)]
