"""Shared pytest fixtures for the granola-sync test suite.

Provides settings bound to a temporary vault and a file store over that
vault. Payload builders live in ``tests/factories.py``.
"""

from typing import Any

import pytest
from tenacity import wait_none

from granola_sync.core.config import Settings
from granola_sync.services.granola.client import GranolaClient
from granola_sync.services.storage import VaultFileStore


@pytest.fixture(autouse=True)
def _no_retry_wait(monkeypatch):
    """Retry immediately so retry tests do not sleep."""
    monkeypatch.setattr(GranolaClient._send.retry, "wait", wait_none())


@pytest.fixture
def vault_dir(tmp_path):
    path = tmp_path / "vault"
    path.mkdir()
    return path


@pytest.fixture
def make_settings(vault_dir, tmp_path):
    """Factory for Settings bound to the temporary vault.

    Ignores any ``.env`` file; the date filter is disabled so fixture
    documents from 2024 are always in range.
    """

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "vault_path": str(vault_dir),
            "credentials_path": str(tmp_path / "supabase.json"),
            "sync_days_back": 0,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def store(vault_dir):
    return VaultFileStore(vault_dir)
