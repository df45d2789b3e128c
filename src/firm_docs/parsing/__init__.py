"""Text parsing helpers for generated content."""

from firm_docs.parsing.sections import render_sections, segment_sections

__all__ = ["render_sections", "segment_sections"]
