"""Repository modules for each record collection."""

from firm_docs.database.repositories.documents import DocumentRepository
from firm_docs.database.repositories.sequences import SequenceRepository

__all__ = ["DocumentRepository", "SequenceRepository"]
