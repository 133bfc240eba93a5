"""
Turns Granola records into vault-ready artifacts.

Notes carry a metadata header, an optional link to the companion
transcript and the rendered body. With ``transcript_handling="combined"``
the transcript is appended to the note instead of living in its own file.
"""

from dataclasses import dataclass

from granola_sync.core.config import Settings, get_settings
from granola_sync.core.exceptions import DocumentContentError
from granola_sync.core.models import Artifact, ArtifactKind, GranolaDocument, TranscriptEntry
from granola_sync.core.utils import get_note_date
from granola_sync.services.rendering import (
    build_frontmatter,
    format_transcript,
    format_transcript_body,
    render,
)
from granola_sync.services.storage.path_resolver import PathResolver, title_or_default


@dataclass
class NoteData:
    """A note as it appears inside a daily note section."""

    title: str
    doc_id: str
    created_at: str | None
    updated_at: str | None
    markdown: str


def wikilink(path: str, label: str | None = None) -> str:
    target = path.removesuffix(".md")
    return f"[[{target}|{label}]]" if label else f"[[{target}]]"


class DocumentProcessor:
    """Builds note and transcript artifacts for Granola documents."""

    def __init__(
        self,
        settings: Settings | None = None,
        resolver: PathResolver | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._resolver = resolver or PathResolver(self._settings)

    def _attendees(self, doc: GranolaDocument) -> list[str] | None:
        if not self._settings.include_attendees:
            return None
        return doc.attendee_names or None

    def prepare_note(
        self,
        doc: GranolaDocument,
        transcript_path: str | None = None,
        transcript_entries: list[TranscriptEntry] | None = None,
    ) -> Artifact:
        """Build the note artifact for ``doc``.

        Args:
            doc: Source record.
            transcript_path: Vault path of the companion transcript file, if
                one was saved; linked from the note when enabled.
            transcript_entries: Transcript to append in combined mode.

        Raises:
            DocumentContentError: If the record has no renderable body.
        """
        markdown = render(doc.body)
        if not markdown:
            raise DocumentContentError(doc.id)

        s = self._settings
        content = build_frontmatter(
            granola_id=doc.id,
            title=title_or_default(doc),
            kind=ArtifactKind.note,
            created=doc.created_at,
            updated=doc.updated_at,
            attendees=self._attendees(doc),
            attendees_field_name=s.attendees_field_name,
        )

        combined = s.transcript_handling == "combined"
        if transcript_path and s.create_link_from_note_to_transcript and not combined:
            content += f"{wikilink(transcript_path, 'Transcript')}\n\n"

        content += markdown
        if combined and transcript_entries:
            transcript = format_transcript_body(transcript_entries, heading_level=3)
            content = f"{content.rstrip()}\n\n## Transcript\n\n{transcript.rstrip()}\n"

        return Artifact(
            kind=ArtifactKind.note,
            record=doc,
            filename=self._resolver.resolve_filename(doc, ArtifactKind.note),
            content=content,
            owner_date=get_note_date(doc),
        )

    def prepare_transcript(
        self,
        doc: GranolaDocument,
        entries: list[TranscriptEntry],
        note_path: str | None = None,
    ) -> Artifact:
        """Build the standalone transcript artifact for ``doc``.

        ``note_path`` adds a ``note`` back-link to the header.
        """
        content = format_transcript(
            entries,
            title=title_or_default(doc),
            granola_id=doc.id,
            created=doc.created_at,
            updated=doc.updated_at,
            attendees=self._attendees(doc),
            attendees_field_name=self._settings.attendees_field_name,
            note_link=wikilink(note_path) if note_path else None,
        )
        return Artifact(
            kind=ArtifactKind.transcript,
            record=doc,
            filename=self._resolver.resolve_filename(doc, ArtifactKind.transcript),
            content=content,
            owner_date=get_note_date(doc),
        )

    def extract_note_for_daily_note(self, doc: GranolaDocument) -> NoteData | None:
        """Note data for a daily note section, or None without a body."""
        markdown = render(doc.body)
        if not markdown:
            return None
        return NoteData(
            title=title_or_default(doc),
            doc_id=doc.id,
            created_at=doc.created_at,
            updated_at=doc.updated_at,
            markdown=markdown,
        )
