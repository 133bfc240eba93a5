"""
Metadata header (YAML frontmatter) rendering and parsing.

The header is written by hand so the layout stays stable across runs
(quoted title, block-list attendees); it is read back with PyYAML.
"""

import logging
import re
from datetime import date, datetime
from typing import Any

import yaml

from granola_sync.core.models import ArtifactKind

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"

_FRONTMATTER_RE = re.compile(r"\A---\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)


def escape_yaml_string(value: str) -> str:
    """Wrap ``value`` in double quotes, escaping backslashes and quotes."""
    if value == "":
        return '""'
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_attendees_as_yaml(attendees: list[str]) -> str:
    """Format attendee names as a YAML block list value.

    Returns ``[]`` for an empty list, otherwise a newline followed by one
    indented ``- "name"`` item per attendee.
    """
    if not attendees:
        return "[]"
    return "\n" + "\n".join(f"  - {escape_yaml_string(name)}" for name in attendees)


def build_frontmatter(
    granola_id: str,
    title: str,
    kind: ArtifactKind,
    created: str | None = None,
    updated: str | None = None,
    attendees: list[str] | None = None,
    attendees_field_name: str = "attendees",
    note_link: str | None = None,
) -> str:
    """Build the ``---``-delimited metadata header, ending in a newline."""
    lines = [
        FRONTMATTER_DELIMITER,
        f"granola_id: {escape_yaml_string(granola_id)}",
        f"title: {escape_yaml_string(title)}",
        f"type: {kind.value}",
    ]
    if created:
        lines.append(f"created: {created}")
    if updated:
        lines.append(f"updated: {updated}")
    if attendees:
        lines.append(f"{attendees_field_name}:{format_attendees_as_yaml(attendees)}")
    if note_link:
        lines.append(f"note: {escape_yaml_string(note_link)}")
    lines.append(FRONTMATTER_DELIMITER)
    return "\n".join(lines) + "\n"


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """Split ``text`` into (raw header body, remaining content).

    The header body excludes the delimiter lines. Returns ``(None, text)``
    when the file does not start with a header.
    """
    match = _FRONTMATTER_RE.match(text)
    if match is None:
        return None, text
    return match.group(1), text[match.end():]


def _raw_scalar(header: str, key: str) -> str | None:
    # BaseLoader resolves no tags, so every scalar stays the string it was written as
    raw = yaml.load(header, Loader=yaml.BaseLoader)
    value = raw.get(key) if isinstance(raw, dict) else None
    return value if isinstance(value, str) else None


def parse_frontmatter(text: str) -> dict[str, Any]:
    """Parse the metadata header of ``text`` into a dict.

    Missing or malformed headers yield ``{}``. ``granola_id`` is read with
    PyYAML's ``BaseLoader`` so ids such as ``0123``, ``1:30`` or ``null``
    come back verbatim as strings. Timestamps are returned as ISO-8601
    strings.
    """
    header, _ = split_frontmatter(text)
    if header is None:
        return {}

    try:
        data = yaml.safe_load(header)
    except yaml.YAMLError as exc:
        logger.debug("Malformed frontmatter ignored: %s", exc)
        return {}
    if not isinstance(data, dict):
        return {}

    normalized: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        normalized[str(key)] = value

    if "granola_id" in normalized:
        normalized["granola_id"] = _raw_scalar(header, "granola_id")
    return normalized
