"""Integration test fixtures for granola-sync.

Provides an async HTTP client over the FastAPI app, wired to a real
orchestrator and temporary vault with a mocked Granola client.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from granola_sync.api.app import create_app
from granola_sync.services.orchestrator import SyncOrchestrator
from tests.factories import make_document


@pytest.fixture
def granola_client():
    client = MagicMock()
    client.fetch_documents = AsyncMock(return_value=[make_document()])
    client.fetch_transcript = AsyncMock(return_value=[])
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def orchestrator(make_settings, store, granola_client):
    credentials = MagicMock()
    credentials.load = AsyncMock(return_value="tok")
    return SyncOrchestrator(
        settings=make_settings(save_as_individual_files=True),
        credentials=credentials,
        client=granola_client,
        store=store,
        notify=AsyncMock(),
    )


@pytest.fixture
def app(orchestrator):
    """Create a fresh FastAPI application around the test orchestrator."""
    return create_app(orchestrator=orchestrator)


@pytest.fixture
async def async_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
