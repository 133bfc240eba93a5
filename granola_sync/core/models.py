"""
Pydantic v2 models shared across the sync pipeline and the API layer.

Granola payloads:  StructuredNode, GranolaDocument, TranscriptEntry
Sync artifacts:    Artifact, SaveOutcome, SyncReport
API responses:     HealthResponse, SyncStatusResponse
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Structured document tree (ProseMirror JSON)
# ---------------------------------------------------------------------------


class NodeKind(StrEnum):
    """Node kinds the markdown renderer knows how to lay out."""

    doc = "doc"
    heading = "heading"
    paragraph = "paragraph"
    bullet_list = "bulletList"
    list_item = "listItem"
    text = "text"


class StructuredNode(BaseModel):
    """A tagged node in the rich-text tree.

    Field names follow the renderer's vocabulary; aliases match the wire
    format (``type`` / ``content`` / ``attrs``).
    """

    model_config = ConfigDict(populate_by_name=True)

    kind: str = Field(alias="type")
    children: list[StructuredNode] | None = Field(default=None, alias="content")
    text: str | None = None
    attributes: dict[str, Any] | None = Field(default=None, alias="attrs")


class StructuredDocument(StructuredNode):
    """Root of a structured document tree (``type == "doc"``)."""

    kind: Literal["doc"] = Field(alias="type")
    children: list[StructuredNode] = Field(alias="content")


# ---------------------------------------------------------------------------
# Granola API records
# ---------------------------------------------------------------------------


class Attendee(BaseModel):
    name: str | None = None
    email: str | None = None


class People(BaseModel):
    attendees: list[Attendee] | None = None


class LastViewedPanel(BaseModel):
    """Panel holding the note body: a document tree or pre-rendered text."""

    content: StructuredDocument | str | None = None


class GranolaDocument(BaseModel):
    """A meeting record as returned by ``/v2/get-documents``.

    ``id`` is the only stable identity; title and timestamps may change
    between fetches.
    """

    id: str
    title: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    attendees: list[str] | None = None
    people: People | None = None
    folder: str | None = None
    folder_path: str | None = None
    collection: str | None = None
    workspace: str | None = None
    last_viewed_panel: LastViewedPanel | None = None

    @property
    def body(self) -> StructuredDocument | str | None:
        """The note body, or None when the record carries no content."""
        if self.last_viewed_panel is None:
            return None
        return self.last_viewed_panel.content

    @property
    def attendee_names(self) -> list[str]:
        """Attendee display names, preferring the flat ``attendees`` list."""
        if self.attendees:
            return [name for name in self.attendees if name]
        names: list[str] = []
        if self.people and self.people.attendees:
            for person in self.people.attendees:
                label = person.name or person.email
                if label and label not in names:
                    names.append(label)
        return names


class GranolaDocumentsResponse(BaseModel):
    """``/v2/get-documents`` response envelope."""

    docs: list[GranolaDocument]


class TranscriptEntry(BaseModel):
    """One utterance from ``/v1/get-document-transcript``."""

    document_id: str
    start_timestamp: str
    end_timestamp: str
    text: str
    source: str
    id: str
    is_final: bool


# ---------------------------------------------------------------------------
# Sync artifacts
# ---------------------------------------------------------------------------


class ArtifactKind(StrEnum):
    """Kind of rendered output; part of the identity key."""

    note = "note"
    transcript = "transcript"


class Artifact(BaseModel):
    """Rendered output for one record, recomputed on every cycle."""

    kind: ArtifactKind
    record: GranolaDocument
    filename: str
    content: str
    owner_date: datetime

    @property
    def record_id(self) -> str:
        return self.record.id


class SaveOutcome(StrEnum):
    """Result of saving one artifact."""

    created = "created"
    updated = "updated"
    unchanged = "unchanged"
    skipped = "skipped"


class SyncReport(BaseModel):
    """Counters for one sync cycle."""

    started_at: datetime
    finished_at: datetime | None = None
    fetched: int = 0
    processed: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    daily_notes_updated: int = 0
    error: str | None = None

    def tally(self, outcome: SaveOutcome) -> None:
        """Increment the counter matching ``outcome``."""
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)


# ---------------------------------------------------------------------------
# API responses
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


class SyncStatusResponse(BaseModel):
    """GET /api/v1/sync/status response."""

    running: bool
    last_report: SyncReport | None = None
