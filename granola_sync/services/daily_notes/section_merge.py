"""
Heading-scoped section merge for shared markdown files.

A section starts at a line whose trimmed text equals the section heading
and runs until the next heading of the same or a higher level (or the end
of the file). ``merge_section`` only computes the next file state; the
``SectionWriter`` performs the read-modify-write.
"""

import logging
import re
from dataclasses import dataclass

from granola_sync.services.storage.file_store import LiveBuffer, VaultFileStore

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^(#{1,6})\s+\S")

# Level given to boundaries whose text is not a markdown heading
FALLBACK_LEVEL = 6


def heading_level(line: str) -> int | None:
    """Markdown heading level of ``line``, or None if it is not a heading."""
    match = _HEADING_RE.match(line)
    return len(match.group(1)) if match else None


@dataclass(frozen=True)
class SectionBoundary:
    """Exact heading line of a section plus its level."""

    heading_text: str
    heading_level: int

    @classmethod
    def from_heading(cls, text: str) -> "SectionBoundary":
        heading = text.strip()
        level = heading_level(heading) or FALLBACK_LEVEL
        return cls(heading_text=heading, heading_level=level)


@dataclass(frozen=True)
class MergeResult:
    new_text: str
    changed: bool


def _replacement(boundary: SectionBoundary, new_body: str) -> str:
    body = new_body.strip()
    if not body:
        return boundary.heading_text + "\n"
    return f"{boundary.heading_text}\n{body}\n"


def merge_section(
    host_text: str,
    boundary: SectionBoundary,
    new_body: str,
    force: bool = False,
) -> MergeResult:
    """Replace the body of ``boundary``'s section in ``host_text``.

    When the heading is missing the section is appended after a blank
    line. Text outside the section is returned byte for byte. Blank lines
    between the section and the next heading stay where they are and do
    not count towards the no-op comparison.

    Args:
        host_text: Current file content.
        boundary: Section to replace.
        new_body: Section content without the heading line.
        force: Report a change even when the section already matches.

    Returns:
        MergeResult with the next file content and whether it differs.
    """
    replacement = _replacement(boundary, new_body)
    lines = host_text.splitlines(keepends=True)

    start = next(
        (i for i, line in enumerate(lines) if line.strip() == boundary.heading_text),
        None,
    )
    if start is None:
        if not host_text:
            return MergeResult(replacement, True)
        separator = "\n" if host_text.endswith("\n") else "\n\n"
        return MergeResult(host_text + separator + replacement, True)

    end = len(lines)
    for i in range(start + 1, len(lines)):
        level = heading_level(lines[i])
        if level is not None and level <= boundary.heading_level:
            end = i
            break

    # Trailing blank lines belong to the gap before the next section
    while end - 1 > start and not lines[end - 1].strip():
        end -= 1

    current = "".join(lines[start:end])
    if not force and current == replacement:
        return MergeResult(host_text, False)

    new_text = "".join(lines[:start]) + replacement + "".join(lines[end:])
    return MergeResult(new_text, True)


class SectionWriter:
    """Applies section merges to vault files.

    When a ``LiveBuffer`` is supplied and the file is open in the editor,
    the merge reads and writes the buffer so unsaved edits survive.
    """

    def __init__(self, store: VaultFileStore, live_buffer: LiveBuffer | None = None) -> None:
        self._store = store
        self._live_buffer = live_buffer

    def _read(self, path: str) -> tuple[str, bool]:
        buffered = self._live_buffer.get_text(path) if self._live_buffer else None
        if buffered is not None:
            return buffered, True
        if self._store.exists(path):
            return self._store.read(path), False
        return "", False

    def read_text(self, path: str) -> str:
        """Current text of ``path``, preferring the open editor buffer."""
        return self._read(path)[0]

    def update_section(
        self,
        path: str,
        boundary: SectionBoundary,
        new_body: str,
        force: bool = False,
    ) -> bool:
        """Merge ``new_body`` into ``path``; returns True if it was written.

        Raises:
            OSError: If the file cannot be read or written.
        """
        host_text, buffered = self._read(path)
        result = merge_section(host_text, boundary, new_body, force)
        if not result.changed:
            logger.debug("Section %r in %s already up to date", boundary.heading_text, path)
            return False

        if buffered:
            self._live_buffer.set_text(path, result.new_text)
        else:
            self._store.write(path, result.new_text)
        logger.debug("Updated section %r in %s", boundary.heading_text, path)
        return True
