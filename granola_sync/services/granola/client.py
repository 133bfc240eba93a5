"""
Async client for the Granola API.

Uses ``httpx.AsyncClient`` for transport and ``tenacity`` to retry
connection failures, timeouts and 5xx responses. Every failure surfaces as a
``GranolaAPIError`` carrying a category the orchestrator can report on;
payloads that do not match the expected schema raise
``InvalidResponseError``. A fetch either returns every record or raises.
"""

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError
from tenacity import (
    retry,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from granola_sync.core.config import Settings, get_settings
from granola_sync.core.exceptions import GranolaAPIError, InvalidResponseError
from granola_sync.core.models import GranolaDocument, GranolaDocumentsResponse, TranscriptEntry

logger = logging.getLogger(__name__)

DOCUMENTS_PATH = "/v2/get-documents"
TRANSCRIPT_PATH = "/v1/get-document-transcript"

_TRANSCRIPT_ADAPTER = TypeAdapter(list[TranscriptEntry])


def _is_server_error(exc: BaseException) -> bool:
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code >= 500


def category_for_status(status_code: int) -> str:
    """Map an HTTP status code to a ``GranolaAPIError`` category."""
    if status_code in (401, 403):
        return "auth"
    if status_code == 404:
        return "not_found"
    if status_code >= 500:
        return "server"
    return "http"


class GranolaClient:
    """Thin async wrapper around the Granola document endpoints.

    Args:
        settings: Source of the base URL, page size and timeout.
        http_client: Pre-built ``httpx.AsyncClient`` (tests inject one with
            a ``MockTransport``); created from settings when omitted.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = http_client or httpx.AsyncClient(
            base_url=self._settings.granola_api_url,
            timeout=self._settings.granola_request_timeout,
        )

    async def __aenter__(self) -> "GranolaClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, access_token: str) -> dict[str, str]:
        version = self._settings.client_version
        return {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Accept": "*/*",
            "User-Agent": f"GranolaSync/{version}",
            "X-Client-Version": f"GranolaSync-{version}",
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=16),
        retry=(
            retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException))
            | retry_if_exception(_is_server_error)
        ),
        reraise=True,
    )
    async def _send(self, path: str, access_token: str, payload: dict[str, Any]) -> httpx.Response:
        response = await self._client.post(path, json=payload, headers=self._headers(access_token))
        response.raise_for_status()
        return response

    async def _post(self, path: str, access_token: str, payload: dict[str, Any]) -> Any:
        """POST ``payload`` and return the decoded JSON body.

        Raises:
            GranolaAPIError: On transport failures or non-2xx responses.
            InvalidResponseError: If the body is not JSON.
        """
        try:
            response = await self._send(path, access_token, payload)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("Granola API %s returned HTTP %d", path, status)
            raise GranolaAPIError(
                f"Granola API request failed with status {status}",
                category=category_for_status(status),
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("Granola API %s unreachable: %s", path, exc)
            raise GranolaAPIError(
                f"Could not reach the Granola API: {exc}", category="network"
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise InvalidResponseError(f"Granola API {path} returned invalid JSON") from exc

    async def fetch_documents(self, access_token: str) -> list[GranolaDocument]:
        """Fetch documents page by page, up to ``granola_max_documents``."""
        limit = max(1, self._settings.granola_documents_limit)
        max_documents = self._settings.granola_max_documents
        documents: list[GranolaDocument] = []
        offset = 0

        while len(documents) < max_documents:
            data = await self._post(
                DOCUMENTS_PATH,
                access_token,
                {"limit": limit, "offset": offset, "include_last_viewed_panel": True},
            )
            try:
                page = GranolaDocumentsResponse.model_validate(data).docs
            except ValidationError as exc:
                logger.error("Invalid documents payload at offset %d: %s", offset, exc)
                raise InvalidResponseError(
                    f"Granola API returned documents in an unexpected format "
                    f"({exc.error_count()} validation error(s))"
                ) from exc

            documents.extend(page)
            if len(page) < limit:
                break
            offset += limit

        documents = documents[:max_documents]
        logger.info("Fetched %d document(s) from Granola", len(documents))
        return documents

    async def fetch_transcript(self, access_token: str, document_id: str) -> list[TranscriptEntry]:
        """Fetch the transcript entries of one document."""
        data = await self._post(TRANSCRIPT_PATH, access_token, {"document_id": document_id})
        try:
            return _TRANSCRIPT_ADAPTER.validate_python(data)
        except ValidationError as exc:
            raise InvalidResponseError(
                f"Transcript for {document_id} has an unexpected format"
            ) from exc
