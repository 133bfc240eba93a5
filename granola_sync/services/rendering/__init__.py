"""
Rendering module - Structured documents, metadata headers and transcripts
to markdown text.
"""

from granola_sync.services.rendering.frontmatter import (
    build_frontmatter,
    parse_frontmatter,
)
from granola_sync.services.rendering.markdown import render
from granola_sync.services.rendering.transcript import (
    format_transcript,
    format_transcript_body,
)

__all__ = [
    "build_frontmatter",
    "format_transcript",
    "format_transcript_body",
    "parse_frontmatter",
    "render",
]
