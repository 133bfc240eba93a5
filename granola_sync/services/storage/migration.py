"""
One-time upgrade of metadata headers written by older releases.

Older files used ``granola_id: <id>-transcript`` for transcripts, had no
``type`` field and named their timestamps ``created_at`` / ``updated_at``.
Headers are rewritten line by line so the rest of the file is untouched.
"""

import logging
import re

from granola_sync.core.models import ArtifactKind
from granola_sync.services.rendering.frontmatter import escape_yaml_string, split_frontmatter
from granola_sync.services.storage.file_store import VaultFileStore

logger = logging.getLogger(__name__)

TRANSCRIPT_ID_SUFFIX = "-transcript"
TRANSCRIPT_MARKER = "# Transcript for:"

_KEY_RE = re.compile(r"^([A-Za-z_][\w-]*)\s*:(.*)$")
_LEGACY_KEYS = {"created_at": "created", "updated_at": "updated"}


def migrate_header(header: str, body: str) -> str | None:
    """Return the upgraded header text, or None when nothing changes."""
    lines = header.splitlines()
    keys = {m.group(1) for m in (_KEY_RE.match(line) for line in lines) if m}
    if "granola_id" not in keys:
        return None

    was_transcript = TRANSCRIPT_MARKER in body
    changed = False
    migrated: list[str] = []
    for line in lines:
        match = _KEY_RE.match(line)
        key = match.group(1) if match else None

        if key == "granola_id":
            value = match.group(2).strip().strip("\"'")
            if value.endswith(TRANSCRIPT_ID_SUFFIX):
                value = value[: -len(TRANSCRIPT_ID_SUFFIX)]
                was_transcript = True
                line = f"granola_id: {escape_yaml_string(value)}"
                changed = True
        elif key in _LEGACY_KEYS:
            new_key = _LEGACY_KEYS[key]
            changed = True
            if new_key in keys:
                continue
            line = f"{new_key}:{match.group(2)}"

        migrated.append(line)

    if "type" not in keys:
        kind = ArtifactKind.transcript if was_transcript else ArtifactKind.note
        anchor = "title" if "title" in keys else "granola_id"
        index = next(
            (i for i, line in enumerate(migrated) if line.startswith(f"{anchor}:")), -1
        )
        migrated.insert(index + 1, f"type: {kind.value}")
        changed = True

    return "\n".join(migrated) if changed else None


def migrate_legacy_frontmatter(store: VaultFileStore) -> int:
    """Upgrade every legacy header in the vault.

    Returns:
        Number of files rewritten. Files that cannot be read or written are
        logged and left alone.
    """
    migrated = 0
    for path in store.enumerate():
        try:
            text = store.read(path)
            header, body = split_frontmatter(text)
            if header is None:
                continue
            new_header = migrate_header(header, body)
            if new_header is None:
                continue
            store.write(path, f"---\n{new_header}\n---\n{body}")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not migrate %s: %s", path, exc)
            continue
        migrated += 1
        logger.debug("Migrated frontmatter of %s", path)

    if migrated:
        logger.info("Migrated frontmatter in %d file(s)", migrated)
    return migrated
