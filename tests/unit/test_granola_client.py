"""Tests for the Granola API client, using ``httpx.MockTransport``."""

import json

import httpx
import pytest

from granola_sync.core.exceptions import GranolaAPIError, InvalidResponseError
from granola_sync.services.granola import GranolaClient
from granola_sync.services.granola.client import (
    DOCUMENTS_PATH,
    TRANSCRIPT_PATH,
    category_for_status,
)
from tests.factories import document_payload


def _client(settings, handler) -> GranolaClient:
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=settings.granola_api_url,
    )
    return GranolaClient(settings, http_client=http_client)


def _docs(start: int, count: int) -> list[dict]:
    return [document_payload(doc_id=f"doc-{i}") for i in range(start, start + count)]


# ---------------------------------------------------------------------------
# fetch_documents
# ---------------------------------------------------------------------------


class TestFetchDocuments:
    async def test_single_page(self, settings):
        requests: list[httpx.Request] = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"docs": _docs(0, 2)})

        async with _client(settings, handler) as client:
            docs = await client.fetch_documents("tok")

        assert [d.id for d in docs] == ["doc-0", "doc-1"]
        assert docs[0].body is not None
        assert len(requests) == 1
        assert requests[0].url.path == DOCUMENTS_PATH
        assert requests[0].headers["Authorization"] == "Bearer tok"
        assert json.loads(requests[0].content) == {
            "limit": 100,
            "offset": 0,
            "include_last_viewed_panel": True,
        }

    async def test_paginates_until_short_page(self, make_settings):
        settings = make_settings(granola_documents_limit=2)
        offsets: list[int] = []

        def handler(request):
            offset = json.loads(request.content)["offset"]
            offsets.append(offset)
            count = 2 if offset < 4 else 1
            return httpx.Response(200, json={"docs": _docs(offset, count)})

        async with _client(settings, handler) as client:
            docs = await client.fetch_documents("tok")

        assert offsets == [0, 2, 4]
        assert len(docs) == 5

    async def test_stops_at_max_documents(self, make_settings):
        settings = make_settings(granola_documents_limit=2, granola_max_documents=3)
        calls = 0

        def handler(request):
            nonlocal calls
            calls += 1
            offset = json.loads(request.content)["offset"]
            return httpx.Response(200, json={"docs": _docs(offset, 2)})

        async with _client(settings, handler) as client:
            docs = await client.fetch_documents("tok")

        assert calls == 2
        assert [d.id for d in docs] == ["doc-0", "doc-1", "doc-2"]

    async def test_unexpected_shape_raises(self, settings):
        def handler(request):
            return httpx.Response(200, json={"unexpected": True})

        async with _client(settings, handler) as client:
            with pytest.raises(InvalidResponseError):
                await client.fetch_documents("tok")

    async def test_record_without_id_raises(self, settings):
        def handler(request):
            return httpx.Response(200, json={"docs": [{"title": "no id"}]})

        async with _client(settings, handler) as client:
            with pytest.raises(InvalidResponseError):
                await client.fetch_documents("tok")

    async def test_invalid_json_raises(self, settings):
        def handler(request):
            return httpx.Response(200, content=b"<html>not json</html>")

        async with _client(settings, handler) as client:
            with pytest.raises(InvalidResponseError):
                await client.fetch_documents("tok")


# ---------------------------------------------------------------------------
# Error categories and retries
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "status,category",
    [(401, "auth"), (403, "auth"), (404, "not_found"), (500, "server"), (503, "server"), (400, "http")],
)
def test_category_for_status(status, category):
    assert category_for_status(status) == category


class TestErrors:
    async def test_auth_failure_is_not_retried(self, settings):
        calls = 0

        def handler(request):
            nonlocal calls
            calls += 1
            return httpx.Response(401, json={"error": "unauthorized"})

        async with _client(settings, handler) as client:
            with pytest.raises(GranolaAPIError) as exc_info:
                await client.fetch_documents("tok")

        assert exc_info.value.category == "auth"
        assert calls == 1

    async def test_server_error_is_retried(self, settings):
        calls = 0

        def handler(request):
            nonlocal calls
            calls += 1
            return httpx.Response(502)

        async with _client(settings, handler) as client:
            with pytest.raises(GranolaAPIError) as exc_info:
                await client.fetch_documents("tok")

        assert exc_info.value.category == "server"
        assert calls == 3

    async def test_transient_server_error_recovers(self, settings):
        responses = iter([httpx.Response(500), httpx.Response(200, json={"docs": _docs(0, 1)})])

        async with _client(settings, lambda request: next(responses)) as client:
            docs = await client.fetch_documents("tok")

        assert len(docs) == 1

    async def test_network_error(self, settings):
        calls = 0

        def handler(request):
            nonlocal calls
            calls += 1
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(settings, handler) as client:
            with pytest.raises(GranolaAPIError) as exc_info:
                await client.fetch_documents("tok")

        assert exc_info.value.category == "network"
        assert calls == 3


# ---------------------------------------------------------------------------
# fetch_transcript
# ---------------------------------------------------------------------------


class TestFetchTranscript:
    async def test_parses_entries(self, settings):
        entry = {
            "document_id": "doc-1",
            "start_timestamp": "2024-02-15T09:30:00.000Z",
            "end_timestamp": "2024-02-15T09:30:02.000Z",
            "text": "Hello",
            "source": "microphone",
            "id": "e1",
            "is_final": True,
        }
        seen: list[dict] = []

        def handler(request):
            assert request.url.path == TRANSCRIPT_PATH
            seen.append(json.loads(request.content))
            return httpx.Response(200, json=[entry])

        async with _client(settings, handler) as client:
            entries = await client.fetch_transcript("tok", "doc-1")

        assert seen == [{"document_id": "doc-1"}]
        assert entries[0].text == "Hello"

    async def test_invalid_transcript_raises(self, settings):
        def handler(request):
            return httpx.Response(200, json={"not": "a list"})

        async with _client(settings, handler) as client:
            with pytest.raises(InvalidResponseError):
                await client.fetch_transcript("tok", "doc-1")
