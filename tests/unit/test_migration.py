"""Tests for the legacy metadata header upgrade."""

from granola_sync.services.storage import migrate_legacy_frontmatter
from granola_sync.services.storage.migration import migrate_header

LEGACY_TRANSCRIPT = (
    "---\n"
    "granola_id: abc-transcript\n"
    'title: "Standup - Transcript"\n'
    "created_at: 2024-01-01T00:00:00Z\n"
    "updated_at: 2024-01-02T00:00:00Z\n"
    "---\n"
    "\n# Transcript for: Standup\n\n## You (t1)\n\nHello\n"
)

CURRENT_NOTE = (
    "---\n"
    "granola_id: abc\n"
    'title: "Standup"\n'
    "type: note\n"
    "created: 2024-01-01T00:00:00Z\n"
    "---\n"
    "Body\n"
)


def test_legacy_transcript_is_upgraded(store):
    store.write("Granola/Standup-transcript.md", LEGACY_TRANSCRIPT)
    assert migrate_legacy_frontmatter(store) == 1

    assert store.read("Granola/Standup-transcript.md") == (
        "---\n"
        'granola_id: "abc"\n'
        'title: "Standup - Transcript"\n'
        "type: transcript\n"
        "created: 2024-01-01T00:00:00Z\n"
        "updated: 2024-01-02T00:00:00Z\n"
        "---\n"
        "\n# Transcript for: Standup\n\n## You (t1)\n\nHello\n"
    )


def test_migration_is_idempotent(store):
    store.write("a.md", LEGACY_TRANSCRIPT)
    migrate_legacy_frontmatter(store)
    migrated = store.read("a.md")
    assert migrate_legacy_frontmatter(store) == 0
    assert store.read("a.md") == migrated


def test_current_and_foreign_files_are_untouched(store):
    store.write("note.md", CURRENT_NOTE)
    store.write("plain.md", "# Journal\n")
    store.write("other.md", "---\ntags: [x]\n---\ntext\n")
    assert migrate_legacy_frontmatter(store) == 0
    assert store.read("note.md") == CURRENT_NOTE
    assert store.read("plain.md") == "# Journal\n"


class TestMigrateHeader:
    def test_note_without_type_gets_note_type(self):
        header = 'granola_id: abc\ntitle: "Standup"'
        assert migrate_header(header, "Body\n") == 'granola_id: abc\ntitle: "Standup"\ntype: note'

    def test_transcript_marker_in_body_sets_type(self):
        header = "granola_id: abc"
        assert migrate_header(header, "# Transcript for: X\n") == "granola_id: abc\ntype: transcript"

    def test_legacy_key_dropped_when_new_key_exists(self):
        header = "granola_id: abc\ntype: note\ncreated: 2024-01-01\ncreated_at: 2023-01-01"
        assert migrate_header(header, "") == "granola_id: abc\ntype: note\ncreated: 2024-01-01"

    def test_quoted_suffixed_id(self):
        header = 'granola_id: "abc-transcript"\ntype: transcript'
        assert migrate_header(header, "") == 'granola_id: "abc"\ntype: transcript'

    def test_no_change_returns_none(self):
        assert migrate_header("granola_id: abc\ntype: note", "") is None
