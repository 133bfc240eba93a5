"""
File sync engine: decides create / update / rename / skip for one artifact.

Identity wins over path: once a record's file is known to the identity
cache it is updated in place (and moved if its resolved path changed),
never duplicated. Unrelated files that happen to occupy the target path are
never overwritten; the new file gets a timestamp suffix instead.
"""

import logging
import posixpath
import re
from datetime import datetime

from granola_sync.core.exceptions import FolderCreationError
from granola_sync.core.models import Artifact, SaveOutcome
from granola_sync.core.utils import as_utc, parse_timestamp
from granola_sync.services.rendering.frontmatter import parse_frontmatter
from granola_sync.services.storage.file_store import VaultFileStore
from granola_sync.services.storage.identity_cache import IdentityCache
from granola_sync.services.storage.path_resolver import PathResolver

logger = logging.getLogger(__name__)

MAX_COLLISION_ATTEMPTS = 1000

_COLLISION_SUFFIX = re.compile(r"-\d{4}-\d{2}-\d{2}_\d{2}-\d{2}(?:-\d+)?\Z")


def is_remote_newer(remote_updated: str | None, local_updated: str | None) -> bool:
    """Whether the remote copy should overwrite the local file.

    Fail-open: a missing or unparseable timestamp on either side counts as
    newer. Returns False only when the local timestamp is strictly later.
    """
    remote = parse_timestamp(remote_updated)
    local = parse_timestamp(local_updated)
    if remote is None or local is None:
        return True
    return not as_utc(local) > as_utc(remote)


def _split_md(path: str) -> tuple[str, str]:
    stem, ext = posixpath.splitext(path)
    return stem, ext or ".md"


def _is_collision_variant(path: str, target: str) -> bool:
    """True when ``path`` is ``target`` with a collision suffix appended."""
    stem, ext = _split_md(target)
    if not path.startswith(stem) or not path.endswith(ext):
        return False
    suffix = path[len(stem):len(path) - len(ext)]
    return bool(_COLLISION_SUFFIX.match(suffix))


class FileSyncService:
    """Saves artifacts into the vault, keyed by (record id, kind).

    Args:
        store: Vault file I/O.
        resolver: Computes the target path of an artifact.
        cache: Identity cache for the current cycle; updated in place.
    """

    def __init__(
        self,
        store: VaultFileStore,
        resolver: PathResolver,
        cache: IdentityCache,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._cache = cache

    def save(self, artifact: Artifact, force: bool = False) -> SaveOutcome:
        """Write ``artifact`` to its file, creating or moving it as needed.

        Returns:
            ``created`` for a new file, ``updated`` when content changed or
            the file moved, ``unchanged`` when it already matches, and
            ``skipped`` when the local copy is newer or the target folder
            cannot be created.

        Raises:
            OSError: If reading or writing the file fails.
        """
        record = artifact.record
        target = self._resolver.resolve_path(record, artifact.kind)

        try:
            self._store.create_folder(posixpath.dirname(target))
        except FolderCreationError as exc:
            logger.warning("Skipping %s %s: %s", artifact.kind.value, record.id, exc.detail)
            return SaveOutcome.skipped

        entry = self._cache.find(record.id, artifact.kind)
        if entry is None or not self._store.exists(entry.path):
            path = self._free_path(target, artifact.owner_date)
            self._store.write(path, artifact.content)
            self._cache.update(record.id, artifact.kind, path, record.updated_at)
            logger.debug("Created %s", path)
            return SaveOutcome.created

        existing = self._store.read(entry.path)
        local_updated = _header_updated(existing) or entry.updated
        if not force and not is_remote_newer(record.updated_at, local_updated):
            logger.debug("Local copy of %s is newer, skipping", entry.path)
            return SaveOutcome.skipped

        outcome = SaveOutcome.unchanged
        if force or existing != artifact.content:
            self._store.write(entry.path, artifact.content)
            outcome = SaveOutcome.updated

        path = entry.path
        if path != target and not (
            _is_collision_variant(path, target) and self._store.exists(target)
        ):
            path = self._relocate(record.id, artifact, path, target)
            if path == target:
                outcome = SaveOutcome.updated

        self._cache.update(record.id, artifact.kind, path, record.updated_at)
        return outcome

    def _free_path(self, target: str, owner_date: datetime) -> str:
        """``target``, or a timestamp-suffixed variant when it is occupied."""
        if not self._store.exists(target):
            return target

        stem, ext = _split_md(target)
        base = f"{stem}-{owner_date.strftime('%Y-%m-%d_%H-%M')}"
        candidate = base + ext
        counter = 2
        while self._store.exists(candidate):
            if counter > MAX_COLLISION_ATTEMPTS:
                raise FileExistsError(f"No free filename for {target}")
            candidate = f"{base}-{counter}{ext}"
            counter += 1
        logger.info("Path %s is taken by another document, using %s", target, candidate)
        return candidate

    def _relocate(self, record_id: str, artifact: Artifact, old: str, new: str) -> str:
        """Move ``old`` to ``new``; on failure keep ``old``.

        The cache always ends up pointing at the path the file really has.
        """
        try:
            self._store.rename(old, new)
        except OSError as exc:
            logger.warning("Could not move %s to %s, keeping old path: %s", old, new, exc)
            final = old
        else:
            logger.info("Moved %s to %s", old, new)
            final = new
        self._cache.update(record_id, artifact.kind, final, artifact.record.updated_at)
        return final


def _header_updated(text: str) -> str | None:
    header = parse_frontmatter(text)
    value = header.get("updated") or header.get("updated_at")
    return str(value) if value else None
