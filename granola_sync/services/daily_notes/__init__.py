"""
Daily notes module - Section merging and daily note content.
"""

from granola_sync.services.daily_notes.builder import DailyNoteBuilder, NoteLinkData
from granola_sync.services.daily_notes.resolver import DailyNoteResolver
from granola_sync.services.daily_notes.section_merge import (
    MergeResult,
    SectionBoundary,
    SectionWriter,
    heading_level,
    merge_section,
)

__all__ = [
    "DailyNoteBuilder",
    "DailyNoteResolver",
    "MergeResult",
    "NoteLinkData",
    "SectionBoundary",
    "SectionWriter",
    "heading_level",
    "merge_section",
]
