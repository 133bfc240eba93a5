"""Tests for heading-scoped section merging and the section writer."""

import pytest

from granola_sync.services.daily_notes import (
    SectionBoundary,
    SectionWriter,
    heading_level,
    merge_section,
)

MEETINGS = SectionBoundary.from_heading("## Meetings")


# ---------------------------------------------------------------------------
# Headings and boundaries
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "line,expected",
    [
        ("# Title", 1),
        ("## Meetings\n", 2),
        ("###### Deep", 6),
        ("####### Too deep", None),
        ("#NoSpace", None),
        ("# ", None),
        ("plain text", None),
    ],
)
def test_heading_level(line, expected):
    assert heading_level(line) == expected


def test_boundary_from_heading_is_trimmed():
    boundary = SectionBoundary.from_heading("  ### Granola  ")
    assert boundary.heading_text == "### Granola"
    assert boundary.heading_level == 3


def test_non_heading_boundary_gets_deepest_level():
    assert SectionBoundary.from_heading("Granola Notes").heading_level == 6


# ---------------------------------------------------------------------------
# Appending a missing section
# ---------------------------------------------------------------------------


class TestAppend:
    def test_append_after_trailing_newline(self):
        host = "line one\nline two\nline three\n"
        result = merge_section(host, MEETINGS, "- 09:00 - [[A|A]]")
        assert result.changed
        assert result.new_text == host + "\n## Meetings\n- 09:00 - [[A|A]]\n"

    def test_append_without_trailing_newline(self):
        result = merge_section("a\nb\nc", MEETINGS, "body")
        assert result.new_text == "a\nb\nc\n\n## Meetings\nbody\n"

    def test_empty_host(self):
        result = merge_section("", MEETINGS, "body\n")
        assert result.new_text == "## Meetings\nbody\n"

    def test_empty_body_writes_heading_only(self):
        assert merge_section("", MEETINGS, "  \n").new_text == "## Meetings\n"

    def test_heading_must_match_whole_line(self):
        host = "Some ## Meetings text\n## Meetings extra\n## meetings\n"
        result = merge_section(host, MEETINGS, "body")
        assert result.new_text == host + "\n## Meetings\nbody\n"


# ---------------------------------------------------------------------------
# Replacing an existing section
# ---------------------------------------------------------------------------


class TestReplace:
    def test_only_the_section_changes(self):
        host = "# Day\n\n## Meetings\nold\n\n## Notes\nmine\n### sub\nmore\n"
        result = merge_section(host, MEETINGS, "new")
        assert result.changed
        assert result.new_text == "# Day\n\n## Meetings\nnew\n\n## Notes\nmine\n### sub\nmore\n"

    def test_subheadings_belong_to_the_section(self):
        host = "## Meetings\n### A\nx\n## Notes\nkeep\n"
        result = merge_section(host, MEETINGS, "y")
        assert result.new_text == "## Meetings\ny\n## Notes\nkeep\n"

    def test_section_runs_to_end_of_file(self):
        host = "intro\n## Meetings\nold\n### deeper\nold too\n"
        assert merge_section(host, MEETINGS, "new").new_text == "intro\n## Meetings\nnew\n"

    def test_higher_level_heading_ends_the_section(self):
        host = "## Meetings\nold\n# Next day\ntail\n"
        assert merge_section(host, MEETINGS, "new").new_text == "## Meetings\nnew\n# Next day\ntail\n"

    def test_indented_heading_line_matches(self):
        host = "  ## Meetings  \nold\n"
        assert merge_section(host, MEETINGS, "new").new_text == "## Meetings\nnew\n"

    def test_non_heading_boundary_ends_at_any_heading(self):
        boundary = SectionBoundary.from_heading("Granola Notes")
        host = "Granola Notes\nold\n###### Next\n"
        assert merge_section(host, boundary, "new").new_text == "Granola Notes\nnew\n###### Next\n"

    def test_text_outside_section_is_byte_identical(self):
        host = "a\r\n## Meetings\r\nold\r\n## Notes\r\nz\r\n"
        result = merge_section(host, MEETINGS, "new")
        assert result.new_text == "a\r\n## Meetings\nnew\n## Notes\r\nz\r\n"

    def test_trailing_blank_lines_are_kept(self):
        host = "## Meetings\nold\n\n\n"
        result = merge_section(host, MEETINGS, "new")
        assert result.new_text == "## Meetings\nnew\n\n\n"
        assert not merge_section(result.new_text, MEETINGS, "new").changed


# ---------------------------------------------------------------------------
# Idempotence
# ---------------------------------------------------------------------------


class TestIdempotence:
    def test_second_merge_is_a_noop(self):
        host = "# Day\n\n## Meetings\nold\n\n## Notes\nmine\n"
        first = merge_section(host, MEETINGS, "- 09:00 - [[A|A]]\n- 10:00 - [[B|B]]\n")
        second = merge_section(first.new_text, MEETINGS, "- 09:00 - [[A|A]]\n- 10:00 - [[B|B]]\n")
        assert not second.changed
        assert second.new_text == first.new_text

    def test_appended_section_is_stable(self):
        first = merge_section("journal\n", MEETINGS, "body")
        assert not merge_section(first.new_text, MEETINGS, "body").changed

    def test_force_reports_change_for_identical_section(self):
        first = merge_section("", MEETINGS, "body")
        forced = merge_section(first.new_text, MEETINGS, "body", force=True)
        assert forced.changed
        assert forced.new_text == first.new_text


# ---------------------------------------------------------------------------
# SectionWriter
# ---------------------------------------------------------------------------


class _FakeBuffer:
    def __init__(self, texts: dict[str, str]) -> None:
        self.texts = texts
        self.writes: list[tuple[str, str]] = []

    def get_text(self, path):
        return self.texts.get(path)

    def set_text(self, path, text):
        self.writes.append((path, text))
        self.texts[path] = text


class TestSectionWriter:
    def test_writes_missing_file(self, store):
        writer = SectionWriter(store)
        assert writer.update_section("Daily/2024-02-15.md", MEETINGS, "body")
        assert store.read("Daily/2024-02-15.md") == "## Meetings\nbody\n"

    def test_unchanged_section_is_not_rewritten(self, store):
        store.write("day.md", "## Meetings\nbody\n")
        writer = SectionWriter(store)
        assert writer.update_section("day.md", MEETINGS, "body") is False

    def test_open_buffer_is_preferred(self, store):
        store.write("day.md", "on disk\n")
        buffer = _FakeBuffer({"day.md": "unsaved edits\n"})
        writer = SectionWriter(store, buffer)

        assert writer.update_section("day.md", MEETINGS, "body")
        assert buffer.writes == [("day.md", "unsaved edits\n\n## Meetings\nbody\n")]
        assert store.read("day.md") == "on disk\n"

    def test_closed_buffer_falls_back_to_store(self, store):
        store.write("day.md", "on disk\n")
        buffer = _FakeBuffer({})
        writer = SectionWriter(store, buffer)

        assert writer.update_section("day.md", MEETINGS, "body")
        assert buffer.writes == []
        assert store.read("day.md") == "on disk\n\n## Meetings\nbody\n"

    def test_read_failure_propagates(self, store, monkeypatch):
        store.write("day.md", "x\n")

        def _fail(path):
            raise PermissionError(path)

        monkeypatch.setattr(store, "read", _fail)
        with pytest.raises(OSError):
            SectionWriter(store).update_section("day.md", MEETINGS, "body")
