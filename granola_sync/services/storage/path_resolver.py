"""
Target path resolution for note and transcript files.

Paths are vault-relative POSIX strings. Resolution is deterministic for a
given record, artifact kind and ``Settings``.
"""

import re
from datetime import datetime

from granola_sync.core.config import Settings, get_settings
from granola_sync.core.models import ArtifactKind, GranolaDocument
from granola_sync.core.utils import format_date_for_filename, get_note_date

MAX_FILENAME_LENGTH = 200

# \t-\r are left to the whitespace collapse
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x08\x0e-\x1f]')
_WHITESPACE_RUN = re.compile(r"\s+")


def sanitize_filename(title: str) -> str:
    """Make ``title`` safe to use as a file name on all major platforms.

    Strips illegal characters, collapses whitespace runs to a single space
    and truncates to ``MAX_FILENAME_LENGTH`` characters.
    """
    cleaned = _INVALID_FILENAME_CHARS.sub("", title)
    cleaned = _WHITESPACE_RUN.sub(" ", cleaned).strip()
    cleaned = cleaned[:MAX_FILENAME_LENGTH].strip()
    return cleaned or "Untitled"


def title_or_default(doc: GranolaDocument) -> str:
    """Record title, or a timestamped placeholder for untitled records."""
    if doc.title:
        return doc.title
    return f"Untitled Granola Note at {format_date_for_filename(get_note_date(doc))}"


def normalize_path(path: str) -> str:
    """Use forward slashes, drop empty segments and surrounding slashes."""
    parts = [part for part in path.replace("\\", "/").split("/") if part and part != "."]
    return "/".join(parts)


def join_path(*parts: str) -> str:
    return normalize_path("/".join(part for part in parts if part))


def _quarter(value: datetime) -> int:
    return (value.month - 1) // 3 + 1


def subfolder_for(pattern: str, value: datetime, custom_pattern: str = "") -> str:
    """Render a subfolder strategy for ``value``.

    ``none`` | ``day`` (YYYY-MM-DD) | ``month`` (YYYY-MM) | ``year-month``
    (YYYY/MM) | ``year-quarter`` (YYYY/Q1) | ``custom`` ({year} {month}
    {day} {quarter}).
    """
    if pattern == "day":
        return value.strftime("%Y-%m-%d")
    if pattern == "month":
        return value.strftime("%Y-%m")
    if pattern == "year-month":
        return value.strftime("%Y/%m")
    if pattern == "year-quarter":
        return f"{value.year}/Q{_quarter(value)}"
    if pattern == "custom":
        return normalize_path(
            custom_pattern.replace("{year}", f"{value.year:04d}")
            .replace("{month}", f"{value.month:02d}")
            .replace("{day}", f"{value.day:02d}")
            .replace("{quarter}", str(_quarter(value)))
        )
    return ""


def format_filename(pattern: str, title: str, value: datetime) -> str:
    """Substitute filename variables and append the ``.md`` extension."""
    stem = (
        (pattern or "{title}")
        .replace("{title}", sanitize_filename(title))
        .replace("{date}", value.strftime("%Y-%m-%d"))
        .replace("{time}", value.strftime("%H-%M"))
        .replace("{year}", f"{value.year:04d}")
        .replace("{month}", f"{value.month:02d}")
        .replace("{day}", f"{value.day:02d}")
    )
    return sanitize_filename(stem) + ".md"


class PathResolver:
    """Computes where a record's note or transcript file belongs."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def compute_daily_note_folder(self, value: datetime) -> str:
        """Folder holding the daily note for ``value``.

        The daily note format may nest folders (e.g. ``%Y/%m/%Y-%m-%d``);
        every component except the last is part of the folder.
        """
        formatted = value.strftime(self._settings.daily_note_format or "%Y-%m-%d")
        folder_parts = formatted.split("/")[:-1]
        return join_path(self._settings.daily_note_folder, *folder_parts)

    def note_folder(self, value: datetime) -> str:
        s = self._settings
        if s.base_folder_type == "daily-notes":
            base = self.compute_daily_note_folder(value)
        else:
            base = s.custom_base_folder
        return join_path(base, subfolder_for(s.subfolder_pattern, value, s.custom_subfolder_pattern))

    def transcript_folder(self, value: datetime) -> str:
        s = self._settings
        if s.transcript_handling != "custom-location":
            return self.note_folder(value)
        return join_path(
            s.custom_transcript_base_folder,
            subfolder_for(
                s.transcript_subfolder_pattern, value, s.custom_transcript_subfolder_pattern
            ),
        )

    def resolve_folder(self, record: GranolaDocument, kind: ArtifactKind) -> str:
        value = get_note_date(record)
        if kind == ArtifactKind.transcript:
            return self.transcript_folder(value)
        return self.note_folder(value)

    def resolve_filename(self, record: GranolaDocument, kind: ArtifactKind) -> str:
        pattern = (
            self._settings.transcript_filename_pattern or "{title}-transcript"
            if kind == ArtifactKind.transcript
            else self._settings.filename_pattern
        )
        return format_filename(pattern, title_or_default(record), get_note_date(record))

    def resolve_path(self, record: GranolaDocument, kind: ArtifactKind) -> str:
        """Vault-relative target path for ``record``'s artifact of ``kind``."""
        return join_path(
            self.resolve_folder(record, kind),
            self.resolve_filename(record, kind),
        )
