"""Transcript formatting: speaker-grouped markdown with a metadata header."""

from granola_sync.core.models import ArtifactKind, TranscriptEntry
from granola_sync.services.rendering.frontmatter import build_frontmatter


def speaker_for(source: str) -> str:
    """Map a transcript ``source`` to a display name."""
    return "You" if source == "microphone" else "Guest"


def format_transcript_body(entries: list[TranscriptEntry], heading_level: int = 2) -> str:
    """Group consecutive utterances by speaker.

    Each block is ``<heading> Speaker (start)`` followed by the joined text
    of that speaker's consecutive entries.
    """
    prefix = "#" * heading_level
    blocks: list[str] = []
    current_speaker: str | None = None
    current_start = ""
    current_text: list[str] = []

    for entry in entries:
        speaker = speaker_for(entry.source)
        if speaker == current_speaker:
            current_text.append(entry.text)
            continue
        if current_speaker is not None:
            blocks.append(_block(prefix, current_speaker, current_start, current_text))
        current_speaker = speaker
        current_start = entry.start_timestamp
        current_text = [entry.text]

    if current_speaker is not None:
        blocks.append(_block(prefix, current_speaker, current_start, current_text))

    return "".join(blocks)


def _block(prefix: str, speaker: str, start: str, texts: list[str]) -> str:
    return f"{prefix} {speaker} ({start})\n\n{' '.join(texts)}\n\n"


def format_transcript(
    entries: list[TranscriptEntry],
    title: str,
    granola_id: str,
    created: str | None = None,
    updated: str | None = None,
    attendees: list[str] | None = None,
    attendees_field_name: str = "attendees",
    note_link: str | None = None,
) -> str:
    """Render a standalone transcript file (header, title heading, body)."""
    header = build_frontmatter(
        granola_id=granola_id,
        title=f"{title} - Transcript",
        kind=ArtifactKind.transcript,
        created=created,
        updated=updated,
        attendees=attendees,
        attendees_field_name=attendees_field_name,
        note_link=note_link,
    )
    return f"{header}\n# Transcript for: {title}\n\n{format_transcript_body(entries)}"
