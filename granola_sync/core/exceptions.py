"""
granola-sync exception hierarchy.

All application-specific exceptions inherit from GranolaSyncError,
enabling centralized error handling in the API middleware layer and
in the sync orchestrator.
"""

from datetime import UTC, datetime


class GranolaSyncError(Exception):
    """Base exception for all granola-sync errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "GRANOLA_SYNC_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class CredentialsError(GranolaSyncError):
    """Raised when no usable access token can be loaded."""

    def __init__(self, detail: str = "No access token loaded") -> None:
        super().__init__(detail=detail, code="CREDENTIALS_ERROR", status_code=401)


class GranolaAPIError(GranolaSyncError):
    """Raised when the Granola API request fails.

    Categories: "auth", "not_found", "server", "network", "http".
    Used by the orchestrator to pick a user-facing notification.
    """

    def __init__(self, detail: str, category: str = "http") -> None:
        self.category = category
        super().__init__(detail=detail, code="GRANOLA_API_ERROR", status_code=502)


class InvalidResponseError(GranolaSyncError):
    """Raised when an API payload does not match the expected shape."""

    def __init__(self, detail: str = "Granola API returned an unexpected payload") -> None:
        super().__init__(detail=detail, code="INVALID_RESPONSE", status_code=502)


class DocumentContentError(GranolaSyncError):
    """Raised when a record has no body that can be rendered."""

    def __init__(self, document_id: str) -> None:
        super().__init__(
            detail=f"Document has no valid content to parse: {document_id}",
            code="DOCUMENT_CONTENT_ERROR",
            status_code=422,
        )


class FolderCreationError(GranolaSyncError):
    """Raised when a target folder cannot be created in the vault."""

    def __init__(self, folder: str, reason: str = "") -> None:
        detail = f"Could not create folder '{folder}'"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail=detail, code="FOLDER_CREATION_ERROR", status_code=500)


class SyncInProgressError(GranolaSyncError):
    """Raised when a sync cycle is triggered while another is still running."""

    def __init__(self) -> None:
        super().__init__(
            detail="A sync cycle is already in progress",
            code="SYNC_IN_PROGRESS",
            status_code=409,
        )
