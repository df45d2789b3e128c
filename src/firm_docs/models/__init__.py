"""Data models for stored records and transient generation payloads."""

from firm_docs.models.base import DocumentBase
from firm_docs.models.document import (
    ComplianceIssue,
    ComplianceStatus,
    Document,
    DocumentType,
    Judgment,
    LifecycleStatus,
    ReviewerJudgment,
    Revision,
    Section,
    Severity,
)
from firm_docs.models.generation import (
    ComplianceReport,
    GenerationRequest,
    GenerationResult,
    RegulationRecommendation,
)
from firm_docs.models.sequence import SequenceCounter

__all__ = [
    "ComplianceIssue",
    "ComplianceReport",
    "ComplianceStatus",
    "Document",
    "DocumentBase",
    "DocumentType",
    "GenerationRequest",
    "GenerationResult",
    "Judgment",
    "LifecycleStatus",
    "RegulationRecommendation",
    "ReviewerJudgment",
    "Revision",
    "Section",
    "SequenceCounter",
    "Severity",
]
