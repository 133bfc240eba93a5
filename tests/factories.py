"""Builders for Granola API payloads in their wire format."""

from typing import Any

from granola_sync.core.models import GranolaDocument, TranscriptEntry


def text(value: str) -> dict[str, Any]:
    return {"type": "text", "text": value}


def paragraph(*children: dict[str, Any]) -> dict[str, Any]:
    return {"type": "paragraph", "content": list(children)}


def heading(level: int, value: str) -> dict[str, Any]:
    return {"type": "heading", "attrs": {"level": level}, "content": [text(value)]}


def bullet_list(*items: dict[str, Any]) -> dict[str, Any]:
    return {"type": "bulletList", "content": list(items)}


def list_item(*children: dict[str, Any]) -> dict[str, Any]:
    return {"type": "listItem", "content": list(children)}


def doc_tree(*children: dict[str, Any]) -> dict[str, Any]:
    return {"type": "doc", "content": list(children)}


DEFAULT_BODY = doc_tree(heading(2, "Agenda"), paragraph(text("Discuss the roadmap.")))


def document_payload(
    doc_id: str = "doc-1",
    title: str | None = "Standup",
    created_at: str | None = "2024-02-15T09:30:00+00:00",
    updated_at: str | None = "2024-02-15T10:00:00+00:00",
    body: dict[str, Any] | str | None = DEFAULT_BODY,
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": doc_id,
        "title": title,
        "created_at": created_at,
        "updated_at": updated_at,
        **extra,
    }
    if body is not None:
        payload["last_viewed_panel"] = {"content": body}
    return payload


def make_document(**kwargs: Any) -> GranolaDocument:
    """GranolaDocument built from ``document_payload(**kwargs)``."""
    return GranolaDocument.model_validate(document_payload(**kwargs))


def make_entry(
    text_value: str,
    source: str = "microphone",
    start: str = "2024-02-15T09:30:00.000Z",
    document_id: str = "doc-1",
) -> TranscriptEntry:
    return TranscriptEntry(
        document_id=document_id,
        start_timestamp=start,
        end_timestamp=start,
        text=text_value,
        source=source,
        id=f"{document_id}-{start}-{source}",
        is_final=True,
    )
