"""Section segmentation for generated text.

This is a line-oriented heuristic, not a grammar: a line is a heading when it
looks like a Markdown heading (``## Scope``), a Roman-numeral heading
(``IV. Findings``) or an Arabic-numeral heading (``3. Opinion``). A body line
that happens to start with ``1. `` therefore opens a new section. Text with no
recognizable heading degrades to a single section instead of failing.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from firm_docs.errors import MalformedGenerationOutputError
from firm_docs.models.document import Section

if TYPE_CHECKING:
    from collections.abc import Iterable

_HEADING_PATTERNS = (
    re.compile(r"^#{1,6}\s+(?P<title>.+?)(?:\s+#+)?$"),
    re.compile(r"^[IVX]+\.\s+(?P<title>.+)$"),
    re.compile(r"^\d+\.\s+(?P<title>.+)$"),
)


def fallback_title(declared_type: str) -> str:
    return f"{declared_type.strip() or 'Document'} Content"


def _clean_title(title: str) -> str:
    return title.strip().strip("*").strip()


def match_heading(line: str) -> str | None:
    """Return the heading title for ``line`` or ``None`` when it is body text."""
    candidate = line.strip()
    for pattern in _HEADING_PATTERNS:
        match = pattern.match(candidate)
        if match:
            title = _clean_title(match.group("title"))
            if title:
                return title
    return None


def segment_sections(raw_text: str, declared_type: str) -> list[Section]:
    """Split ``raw_text`` into ordered sections.

    Lines before the first heading form a leading section titled
    ``"<declared_type> Content"``; the same title is used for the single
    section produced when no heading is found. Blank lines are dropped from
    bodies. Raises ``MalformedGenerationOutputError`` for blank input.
    """
    if not raw_text or not raw_text.strip():
        raise MalformedGenerationOutputError("provider returned no text to parse")

    blocks: list[tuple[str, list[str]]] = []
    preamble: list[str] = []
    for line in raw_text.splitlines():
        title = match_heading(line)
        if title is not None:
            blocks.append((title, []))
        elif line.strip():
            (blocks[-1][1] if blocks else preamble).append(line.rstrip())

    if not blocks:
        return [
            Section(
                title=fallback_title(declared_type),
                body_text=raw_text.strip(),
                order=1,
                generated=True,
            )
        ]
    if preamble:
        blocks.insert(0, (fallback_title(declared_type), preamble))
    return [
        Section(title=title, body_text="\n".join(body), order=order, generated=True)
        for order, (title, body) in enumerate(blocks, start=1)
    ]


def render_sections(sections: Iterable[Section]) -> str:
    """Render sections back to Markdown, one ``##`` heading per section."""
    parts = []
    for section in sorted(sections, key=lambda s: s.order):
        body = section.body_text.strip()
        parts.append(f"## {section.title}\n\n{body}" if body else f"## {section.title}")
    return "\n\n".join(parts)
