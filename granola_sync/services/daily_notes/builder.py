"""
Daily note section content: full note sections and meeting link lists.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date

from granola_sync.core.models import GranolaDocument
from granola_sync.core.utils import as_utc, get_note_date, parse_timestamp
from granola_sync.services.daily_notes.section_merge import heading_level
from granola_sync.services.document_processor import DocumentProcessor, NoteData
from granola_sync.services.storage.path_resolver import title_or_default

logger = logging.getLogger(__name__)

_GRANOLA_ID_LINE = re.compile(r"^\*\*Granola ID:\*\*\s+(.+)$")
_UPDATED_LINE = re.compile(r"^\*\*Updated:\*\*\s+(.+)$")
_MARKDOWN_HEADING = re.compile(r"^(#{1,6})(\s+\S.*)$", re.MULTILINE)


@dataclass
class NoteLinkData:
    title: str
    path: str
    time: str  # HH:MM


def _demote_headings(markdown: str, offset: int) -> str:
    """Push every heading in ``markdown`` down by ``offset`` levels (max 6)."""
    return _MARKDOWN_HEADING.sub(
        lambda m: "#" * min(len(m.group(1)) + offset, 6) + m.group(2), markdown
    )


class DailyNoteBuilder:
    """Groups records by day and builds the bodies of daily note sections.

    Args:
        processor: Renders record bodies for the note sections.
    """

    def __init__(self, processor: DocumentProcessor) -> None:
        self._processor = processor

    def build_daily_notes_map(self, documents: list[GranolaDocument]) -> dict[date, list[NoteData]]:
        """Note data per calendar day; records without a body are left out."""
        notes_by_day: dict[date, list[NoteData]] = {}
        for doc in documents:
            note = self._processor.extract_note_for_daily_note(doc)
            if note is None:
                logger.debug("Document %s has no body, not added to daily note", doc.id)
                continue
            notes_by_day.setdefault(get_note_date(doc).date(), []).append(note)
        return notes_by_day

    def build_section_body(self, notes: list[NoteData], section_heading: str) -> str:
        """Section content (without the heading line) for one day's notes.

        Each note gets a heading one level below the section heading,
        followed by its id, timestamps and rendered markdown.
        """
        section_level = heading_level(section_heading.strip()) or 2
        note_level = min(section_level + 1, 6)
        prefix = "#" * note_level

        content = ""
        for note in notes:
            content += f"\n{prefix} {note.title}\n"
            content += f"**Granola ID:** {note.doc_id}\n"
            if note.created_at:
                content += f"**Created:** {note.created_at}\n"
            if note.updated_at:
                content += f"**Updated:** {note.updated_at}\n"
            content += f"\n{_demote_headings(note.markdown, note_level)}\n"

        return content.strip() + "\n" if content.strip() else ""

    def build_links_map(
        self,
        notes_with_paths: list[tuple[GranolaDocument, str]],
    ) -> dict[date, list[NoteLinkData]]:
        """Links to individual note files per day, sorted by meeting time."""
        links_by_day: dict[date, list[NoteLinkData]] = {}
        for doc, path in notes_with_paths:
            note_date = get_note_date(doc)
            links_by_day.setdefault(note_date.date(), []).append(
                NoteLinkData(
                    title=title_or_default(doc),
                    path=path,
                    time=note_date.strftime("%H:%M"),
                )
            )

        for links in links_by_day.values():
            links.sort(key=lambda link: link.time)
        return links_by_day

    def build_links_section_body(self, links: list[NoteLinkData]) -> str:
        lines = []
        for link in links:
            target = link.path.removesuffix(".md")
            lines.append(f"- {link.time} - [[{target}|{link.title}]]")
        return "\n".join(lines) + "\n" if lines else ""

    def extract_existing_notes(self, text: str, section_heading: str) -> dict[str, str | None]:
        """Granola ids in an existing section mapped to their ``Updated`` value."""
        heading = section_heading.strip()
        lines = text.splitlines()
        start = next((i for i, line in enumerate(lines) if line.strip() == heading), None)
        if start is None:
            return {}

        level = heading_level(heading) or 6
        existing: dict[str, str | None] = {}
        current_id: str | None = None
        for line in lines[start + 1:]:
            line_level = heading_level(line)
            if line_level is not None and line_level <= level:
                break
            id_match = _GRANOLA_ID_LINE.match(line)
            if id_match:
                current_id = id_match.group(1).strip()
                existing[current_id] = None
                continue
            updated_match = _UPDATED_LINE.match(line)
            if updated_match and current_id is not None:
                existing[current_id] = updated_match.group(1).strip()
        return existing

    def section_is_current(self, existing: dict[str, str | None], notes: list[NoteData]) -> bool:
        """True when the section holds exactly these notes, none of them stale.

        A note counts as stale when either timestamp is missing or
        unparseable, or the remote one is strictly later.
        """
        if set(existing) != {note.doc_id for note in notes}:
            return False
        for note in notes:
            local = parse_timestamp(existing.get(note.doc_id))
            remote = parse_timestamp(note.updated_at)
            if local is None or remote is None:
                return False
            if as_utc(remote) > as_utc(local):
                return False
        return True
