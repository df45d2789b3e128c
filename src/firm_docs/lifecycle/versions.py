"""Version store: append-only, contiguously numbered revision history per document.

Every read-modify-write of a document goes through ``VersionStore.mutate``,
which serializes writers per document with ``DocumentLocks`` and guards
against other processes with an etag compare-and-swap, re-reading and
re-applying the mutation when the store reports a conflict.
"""

from __future__ import annotations

import logging
from datetime import datetime
from functools import partial
from typing import TYPE_CHECKING

from firm_docs.errors import (
    ConcurrencyConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    RevisionIntegrityError,
)
from firm_docs.lifecycle.locks import DocumentLocks
from firm_docs.lifecycle.review import reset_judgments
from firm_docs.models.base import utcnow
from firm_docs.models.document import (
    INITIAL_CHANGE_NOTE,
    Document,
    DocumentType,
    LifecycleStatus,
    Revision,
    Section,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from firm_docs.database.repositories import DocumentRepository, SequenceRepository

logger = logging.getLogger(__name__)

MAX_WRITE_ATTEMPTS = 3
DEFAULT_CHANGE_NOTE = "content update"


def normalize_sections(sections: Sequence[Section]) -> list[Section]:
    """Renumber ``order`` to 1..N keeping the given sequence."""
    return [
        section.model_copy(update={"order": index})
        for index, section in enumerate(sections, start=1)
    ]


def check_revision_sequence(document: Document) -> None:
    """Raise ``RevisionIntegrityError`` unless revisions are numbered 1..N ending at the head."""
    numbers = [revision.version_number for revision in document.revisions]
    if (
        not numbers
        or numbers != list(range(1, len(numbers) + 1))
        or numbers[-1] != document.current_version_number
    ):
        logger.error(
            "Revision sequence corrupted — document=%s versions=%s current=%d",
            document.id,
            numbers,
            document.current_version_number,
        )
        raise RevisionIntegrityError(
            f"document {document.id} has non-contiguous revisions {numbers}"
        )


def _push_revision(
    document: Document,
    content: str,
    sections: list[Section],
    author_id: str,
    change_note: str,
) -> None:
    version = document.current_version_number + 1
    document.revisions.append(
        Revision(
            version_number=version,
            content=content,
            sections=sections,
            author_id=author_id,
            change_note=change_note,
        )
    )
    document.content = content
    document.sections = sections
    document.current_version_number = version


def ensure_editable(document: Document) -> None:
    if document.lifecycle_status is LifecycleStatus.FINAL:
        raise InvalidStateTransitionError("document is finalized and cannot be edited")
    if document.lifecycle_status is LifecycleStatus.ARCHIVED:
        raise InvalidStateTransitionError("document is archived and cannot be edited")


def apply_edit(
    document: Document,
    new_content: str,
    author_id: str,
    change_note: str | None = None,
    sections: Sequence[Section] | None = None,
) -> bool:
    """Append a head revision for new content; return False when nothing changed.

    Without explicit ``sections`` a content change clears the section
    decomposition.
    """
    ensure_editable(document)
    new_sections = normalize_sections(sections) if sections is not None else None
    content_changed = new_content != document.content
    sections_changed = new_sections is not None and new_sections != document.sections
    if not content_changed and not sections_changed:
        return False
    _push_revision(
        document,
        new_content,
        new_sections if new_sections is not None else [],
        author_id,
        change_note or DEFAULT_CHANGE_NOTE,
    )
    return True


def apply_restore(document: Document, version_number: int, author_id: str) -> bool:
    """Copy revision ``version_number`` to a new head and send the document back to draft."""
    if document.lifecycle_status is LifecycleStatus.ARCHIVED:
        raise InvalidStateTransitionError("document is archived and cannot be restored")
    revision = document.revision(version_number)
    if revision is None:
        raise NotFoundError(
            f"version {version_number} not found",
            details={"document_id": document.id, "version_number": version_number},
        )
    _push_revision(
        document,
        revision.content,
        [section.model_copy() for section in revision.sections],
        author_id,
        f"restored from version {version_number}",
    )
    document.lifecycle_status = LifecycleStatus.DRAFT
    reset_judgments(document)
    return True


class VersionStore:
    """Owns document creation and every persisted document mutation."""

    def __init__(
        self,
        documents: DocumentRepository,
        sequences: SequenceRepository,
        locks: DocumentLocks | None = None,
    ) -> None:
        self._documents = documents
        self._sequences = sequences
        self.locks = locks or DocumentLocks()

    async def _allocate_human_id(
        self, document_type: DocumentType, now: datetime
    ) -> str:
        key = document_type.human_id_prefix
        if document_type is DocumentType.REPORT:
            key += now.strftime("%Y%m%d")
        value = await self._sequences.next_value(key)
        return f"{key}{value:03d}"

    async def create_document(
        self,
        document_type: DocumentType,
        initial_content: str,
        author_id: str,
        *,
        name: str = "",
        category: str = "",
        template_id: str | None = None,
        sections: Sequence[Section] | None = None,
        change_note: str = INITIAL_CHANGE_NOTE,
    ) -> Document:
        """Persist a new draft with revision 1."""
        now = utcnow()
        section_list = normalize_sections(sections or [])
        document = Document(
            document_type=document_type,
            human_id=await self._allocate_human_id(document_type, now),
            name=name,
            category=category,
            template_id=template_id if document_type is DocumentType.REPORT else None,
            content=initial_content,
            sections=section_list,
            current_version_number=1,
            revisions=[
                Revision(
                    version_number=1,
                    content=initial_content,
                    sections=section_list,
                    author_id=author_id,
                    timestamp_utc=now,
                    change_note=change_note,
                )
            ],
            created_by=author_id,
            created_at=now,
            updated_at=now,
        )
        check_revision_sequence(document)
        created = await self._documents.create(document)
        logger.info(
            "Document created — id=%s human_id=%s type=%s",
            created.id,
            created.human_id,
            document_type.value,
        )
        return created

    async def get(self, document_id: str) -> Document:
        document = await self._documents.get(document_id)
        if document is None:
            raise NotFoundError(f"document {document_id} not found")
        return document

    async def mutate(
        self, document_id: str, mutation: Callable[[Document], bool]
    ) -> Document:
        """Apply ``mutation`` to a fresh copy and persist it when it reports a change.

        The mutation may raise a ``DocumentError`` to reject the change; it is
        re-applied to a re-read document after an etag conflict.
        """
        async with self.locks.hold(document_id):
            for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
                document = await self.get(document_id)
                if not mutation(document):
                    return document
                check_revision_sequence(document)
                try:
                    return await self._documents.update(document)
                except ConcurrencyConflictError:
                    logger.warning(
                        "Concurrent write detected — document=%s attempt=%d",
                        document_id,
                        attempt,
                    )
        raise ConcurrencyConflictError(
            f"document {document_id} is being modified concurrently, try again",
            details={"attempts": MAX_WRITE_ATTEMPTS},
        )

    async def append_revision(
        self,
        document_id: str,
        new_content: str,
        author_id: str,
        change_note: str | None = None,
        sections: Sequence[Section] | None = None,
    ) -> Document:
        document = await self.mutate(
            document_id,
            partial(
                apply_edit,
                new_content=new_content,
                author_id=author_id,
                change_note=change_note,
                sections=sections,
            ),
        )
        logger.debug(
            "Edit applied — document=%s version=%d",
            document_id,
            document.current_version_number,
        )
        return document

    async def list_revisions(self, document_id: str) -> list[Revision]:
        """Revisions newest first; never writes."""
        document = await self.get(document_id)
        return list(reversed(document.revisions))

    async def restore_revision(
        self, document_id: str, version_number: int, author_id: str
    ) -> Document:
        document = await self.mutate(
            document_id,
            partial(apply_restore, version_number=version_number, author_id=author_id),
        )
        logger.info(
            "Revision restored — document=%s from=%d head=%d",
            document_id,
            version_number,
            document.current_version_number,
        )
        return document

    async def delete(self, document_id: str) -> None:
        await self._documents.delete(document_id)
