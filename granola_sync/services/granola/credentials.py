"""
Access token loading from the Granola desktop app.

The desktop app stores its session in ``supabase.json``; the WorkOS token
set sits in the ``workos_tokens`` field as a JSON-encoded string. Tokens
that expire within five minutes are refreshed before use.
"""

import json
import logging
import sys
import time
from pathlib import Path

import httpx
from pydantic import BaseModel, ValidationError

from granola_sync.core.config import Settings, get_settings
from granola_sync.core.exceptions import CredentialsError

logger = logging.getLogger(__name__)

REFRESH_PATH = "/v1/refresh-access-token"
EXPIRY_BUFFER_SECONDS = 5 * 60


class WorkosTokens(BaseModel):
    access_token: str = ""
    expires_in: int | None = None
    refresh_token: str | None = None
    token_type: str | None = None
    obtained_at: int | None = None  # epoch milliseconds
    session_id: str | None = None
    external_id: str | None = None


class RefreshTokenResponse(BaseModel):
    access_token: str
    expires_in: int
    refresh_token: str | None = None
    token_type: str = "Bearer"


def default_credentials_path() -> Path:
    """Location of ``supabase.json`` for the current platform."""
    home = Path.home()
    if sys.platform.startswith("win"):
        return home / "AppData" / "Roaming" / "Granola" / "supabase.json"
    if sys.platform.startswith("linux"):
        return home / ".config" / "Granola" / "supabase.json"
    return home / "Library" / "Application Support" / "Granola" / "supabase.json"


def is_token_expired(tokens: WorkosTokens, now_ms: int | None = None) -> bool:
    """True when the token is expired or expires within the buffer.

    Tokens without ``obtained_at`` / ``expires_in`` are assumed valid.
    """
    if tokens.obtained_at is None or tokens.expires_in is None:
        return False
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    expires_at = tokens.obtained_at + tokens.expires_in * 1000
    return now_ms >= expires_at - EXPIRY_BUFFER_SECONDS * 1000


class CredentialProvider:
    """Loads a usable Granola access token.

    Args:
        settings: Source of the credentials path and API URL.
        http_client: Client used for token refresh; created per refresh
            when omitted.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._http_client = http_client
        self.path = (
            Path(self._settings.credentials_path).expanduser()
            if self._settings.credentials_path
            else default_credentials_path()
        )

    def _read_tokens(self) -> WorkosTokens:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise CredentialsError(
                f"Credentials file not found at {self.path}. "
                "Please ensure the Granola app has created the credentials file."
            ) from exc
        except PermissionError as exc:
            raise CredentialsError(
                f"Permission denied reading credentials file at {self.path}. "
                "Please check file permissions."
            ) from exc
        except OSError as exc:
            raise CredentialsError(
                f"Failed to read credentials file at {self.path}: {exc}"
            ) from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CredentialsError(
                f"Invalid JSON format in credentials file at {self.path}: {exc}"
            ) from exc

        workos = data.get("workos_tokens") if isinstance(data, dict) else None
        if not isinstance(workos, str) or not workos:
            raise CredentialsError(
                f"Missing or invalid 'workos_tokens' field in credentials file at {self.path}."
            )

        try:
            tokens = WorkosTokens.model_validate_json(workos)
        except ValidationError as exc:
            raise CredentialsError(
                f"Invalid 'workos_tokens' value in credentials file at {self.path}: "
                f"{exc.error_count()} error(s)"
            ) from exc

        if not tokens.access_token:
            raise CredentialsError(
                f"Missing 'access_token' field in credentials file at {self.path}. "
                "The token may have expired."
            )
        return tokens

    async def _refresh(self, tokens: WorkosTokens) -> WorkosTokens:
        if not tokens.refresh_token:
            raise CredentialsError("Access token has expired and no refresh token is available.")

        logger.info("Refreshing Granola access token")
        client = self._http_client or httpx.AsyncClient(
            base_url=self._settings.granola_api_url,
            timeout=self._settings.granola_request_timeout,
        )
        try:
            response = await client.post(
                REFRESH_PATH,
                json={"refresh_token": tokens.refresh_token, "provider": "workos"},
                headers={
                    "Authorization": f"Bearer {tokens.access_token}",
                    "Content-Type": "application/json",
                    "X-Client-Version": f"GranolaSync-{self._settings.client_version}",
                },
            )
            response.raise_for_status()
            refreshed = RefreshTokenResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            # Never log the token values themselves
            logger.error("Token refresh failed: %s", type(exc).__name__)
            raise CredentialsError(
                "Access token has expired and refresh failed. "
                "Please re-authenticate in the Granola app."
            ) from exc
        finally:
            if self._http_client is None:
                await client.aclose()

        return tokens.model_copy(
            update={
                "access_token": refreshed.access_token,
                "expires_in": refreshed.expires_in,
                "token_type": refreshed.token_type,
                "obtained_at": int(time.time() * 1000),
                "refresh_token": refreshed.refresh_token or tokens.refresh_token,
            }
        )

    async def load(self) -> str:
        """Return a valid access token.

        Raises:
            CredentialsError: With the specific reason no token is available.
        """
        tokens = self._read_tokens()
        if is_token_expired(tokens):
            logger.debug("Access token expired or expiring soon")
            tokens = await self._refresh(tokens)
        return tokens.access_token
