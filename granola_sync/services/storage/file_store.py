"""
Vault file I/O over a local directory.

All paths handed in and out are vault-relative POSIX strings; the store
resolves them against its root. Only markdown files are enumerated.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from granola_sync.core.config import get_settings
from granola_sync.core.exceptions import FolderCreationError
from granola_sync.services.storage.path_resolver import normalize_path


class LiveBuffer(Protocol):
    """In-editor buffer for files the user currently has open.

    ``get_text`` returns None when ``path`` is not open, in which case the
    caller falls back to the file on disk.
    """

    def get_text(self, path: str) -> str | None: ...

    def set_text(self, path: str, text: str) -> None: ...


class VaultFileStore:
    """Reads, writes and moves markdown files below a vault root."""

    def __init__(self, root: Path | str | None = None) -> None:
        self._root = Path(root if root is not None else get_settings().vault_path)

    @property
    def root(self) -> Path:
        return self._root

    def _abs(self, path: str) -> Path:
        return self._root / normalize_path(path)

    def exists(self, path: str) -> bool:
        return self._abs(path).exists()

    def read(self, path: str) -> str:
        return self._abs(path).read_text(encoding="utf-8")

    def write(self, path: str, text: str) -> None:
        """Write ``text`` to ``path``, creating parent folders as needed."""
        target = self._abs(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")

    def rename(self, old: str, new: str) -> None:
        """Move ``old`` to ``new``.

        Raises:
            FileExistsError: If ``new`` is already occupied.
        """
        source = self._abs(old)
        destination = self._abs(new)
        if destination.exists():
            raise FileExistsError(f"Destination already exists: {new}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        source.rename(destination)

    def create_folder(self, path: str) -> None:
        """Create ``path`` (and parents) if missing.

        Raises:
            FolderCreationError: If the folder cannot be created.
        """
        folder = normalize_path(path)
        if not folder:
            return
        try:
            self._abs(folder).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FolderCreationError(folder, str(exc)) from exc

    def enumerate(self) -> list[str]:
        """All markdown files below the root, sorted by relative path."""
        if not self._root.is_dir():
            return []
        return sorted(
            path.relative_to(self._root).as_posix()
            for path in self._root.rglob("*.md")
            if path.is_file()
        )
