"""
Identity cache: (granola_id, kind) -> current file location.

Built by scanning the metadata headers of every markdown file in the vault.
An instance lives for exactly one sync cycle and is mutated in place as
files are created or moved.
"""

import logging
from dataclasses import dataclass

from granola_sync.core.models import ArtifactKind
from granola_sync.services.rendering.frontmatter import parse_frontmatter
from granola_sync.services.storage.file_store import VaultFileStore

logger = logging.getLogger(__name__)


@dataclass
class IdentityCacheEntry:
    """Where a tracked artifact lives and its last recorded ``updated``."""

    path: str
    updated: str | None = None


def _kind_from_header(value: object) -> ArtifactKind:
    if value == ArtifactKind.transcript.value:
        return ArtifactKind.transcript
    return ArtifactKind.note


class IdentityCache:
    """Per-cycle map of artifact identities to vault paths.

    Args:
        store: File store to enumerate and read during ``rebuild``.
    """

    def __init__(self, store: VaultFileStore) -> None:
        self._store = store
        self._entries: dict[tuple[str, ArtifactKind], IdentityCacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def rebuild(self) -> None:
        """Scan the vault and index every file that carries a ``granola_id``.

        Files are visited in lexicographic path order; when two files carry
        the same identity the later path wins.
        """
        self.clear()
        for path in self._store.enumerate():
            try:
                text = self._store.read(path)
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable file %s: %s", path, exc)
                continue

            header = parse_frontmatter(text)
            granola_id = header.get("granola_id")
            if not granola_id:
                continue

            key = (granola_id, _kind_from_header(header.get("type")))
            previous = self._entries.get(key)
            if previous is not None:
                logger.warning(
                    "Duplicate identity %s/%s in %s and %s; using %s",
                    key[0], key[1].value, previous.path, path, path,
                )
            updated = header.get("updated") or header.get("updated_at")
            self._entries[key] = IdentityCacheEntry(
                path=path, updated=str(updated) if updated else None
            )

        logger.debug("Identity cache rebuilt with %d entries", len(self._entries))

    def find(self, granola_id: str, kind: ArtifactKind) -> IdentityCacheEntry | None:
        return self._entries.get((granola_id, kind))

    def update(
        self,
        granola_id: str,
        kind: ArtifactKind,
        path: str,
        updated: str | None = None,
    ) -> None:
        """Insert or replace the entry for ``(granola_id, kind)``."""
        self._entries[(granola_id, kind)] = IdentityCacheEntry(path=path, updated=updated)
