"""Sequence counter record backing human-readable document codes."""

from __future__ import annotations

from firm_docs.models.base import DocumentBase


class SequenceCounter(DocumentBase):
    """Last value handed out for one sequence key (e.g. ``R20261018`` or ``T``)."""

    value: int = 0
