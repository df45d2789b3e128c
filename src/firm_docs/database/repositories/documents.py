"""Repository for the documents collection (reports and templates)."""

from __future__ import annotations

from firm_docs.database.repositories.base import BaseRepository
from firm_docs.models.document import Document, DocumentType


class DocumentRepository(BaseRepository[Document]):
    container_name = "documents"
    model_class = Document

    async def get_by_human_id(self, human_id: str) -> Document | None:
        matches = await self.query({"human_id": human_id})
        return matches[0] if matches else None

    async def resolve(self, key: str) -> Document | None:
        """Look a document up by ``id`` first, then by human-readable code."""
        return await self.get(key) or await self.get_by_human_id(key)

    async def list_by_type(self, document_type: DocumentType) -> list[Document]:
        documents = await self.query({"document_type": document_type.value})
        return sorted(documents, key=lambda d: d.created_at, reverse=True)

    async def count_template_references(self, template_id: str) -> int:
        """Number of live reports built from the given template."""
        reports = await self.query(
            {"document_type": DocumentType.REPORT.value, "template_id": template_id}
        )
        return len(reports)
