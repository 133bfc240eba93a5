"""Tests for timestamp helpers and the document date filter."""

from datetime import UTC, datetime, timedelta, timezone

from granola_sync.core.utils import (
    as_utc,
    filter_documents_by_date,
    format_date_for_filename,
    get_note_date,
    parse_timestamp,
)
from tests.factories import make_document

NOW = datetime(2024, 2, 20, 12, 0, tzinfo=UTC)


class TestParseTimestamp:
    def test_zulu_suffix(self):
        assert parse_timestamp("2024-01-15T10:00:00Z") == datetime(2024, 1, 15, 10, tzinfo=UTC)

    def test_offset_is_kept(self):
        parsed = parse_timestamp("2024-01-15T10:00:00+02:00")
        assert parsed.utcoffset() == timedelta(hours=2)

    def test_datetime_passes_through(self):
        assert parse_timestamp(NOW) is NOW

    def test_invalid_values(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp(12345) is None


def test_as_utc_only_touches_naive_values():
    assert as_utc(datetime(2024, 1, 1)).tzinfo is UTC
    aware = datetime(2024, 1, 1, tzinfo=timezone(timedelta(hours=-5)))
    assert as_utc(aware) is aware


def test_get_note_date_fallbacks():
    assert get_note_date(make_document()).day == 15
    doc = make_document(created_at="not a date", updated_at="2024-03-01T00:00:00+00:00")
    assert get_note_date(doc).month == 3
    undated = get_note_date(make_document(created_at=None, updated_at=None))
    assert abs(datetime.now(UTC) - undated) < timedelta(minutes=1)


def test_format_date_for_filename():
    assert format_date_for_filename(datetime(2024, 1, 5, 7, 3)) == "2024-01-05 07-03"


class TestFilterDocumentsByDate:
    def _docs(self):
        return [
            make_document(doc_id="recent", created_at="2024-02-19T09:00:00+00:00"),
            make_document(doc_id="edge", created_at="2024-02-13T12:00:00+00:00"),
            make_document(doc_id="old", created_at="2024-01-01T09:00:00+00:00"),
            make_document(doc_id="naive", created_at="2024-02-18T09:00:00"),
        ]

    def test_keeps_documents_in_window(self):
        kept = filter_documents_by_date(self._docs(), 7, now=NOW)
        assert [d.id for d in kept] == ["recent", "edge", "naive"]

    def test_zero_disables_filter(self):
        assert len(filter_documents_by_date(self._docs(), 0, now=NOW)) == 4
