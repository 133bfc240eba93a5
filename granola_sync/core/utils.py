"""Shared date helpers and the document date filter."""

from datetime import UTC, datetime, timedelta

from granola_sync.core.models import GranolaDocument


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp (or pass a datetime through).

    Returns None for missing or unparseable values instead of raising, so
    callers can apply their own fallback policy.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def get_note_date(doc: GranolaDocument) -> datetime:
    """Date used for folder placement: created_at, else updated_at, else now."""
    for candidate in (doc.created_at, doc.updated_at):
        parsed = parse_timestamp(candidate)
        if parsed is not None:
            return parsed
    return datetime.now(UTC)


def format_date_for_filename(value: datetime) -> str:
    """Filename-safe human readable timestamp, e.g. ``2024-01-15 10-30``."""
    return value.strftime("%Y-%m-%d %H-%M")


def filter_documents_by_date(
    documents: list[GranolaDocument],
    days_back: int,
    now: datetime | None = None,
) -> list[GranolaDocument]:
    """Keep documents whose note date falls within the last ``days_back`` days.

    ``days_back == 0`` disables filtering.
    """
    if days_back == 0:
        return list(documents)

    cutoff = as_utc(now or datetime.now(UTC)) - timedelta(days=days_back)

    kept: list[GranolaDocument] = []
    for doc in documents:
        if as_utc(get_note_date(doc)) >= cutoff:
            kept.append(doc)
    return kept
