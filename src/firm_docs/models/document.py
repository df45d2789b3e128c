"""Document model: reports and templates with revision history and reviewer judgments."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from firm_docs.models.base import DocumentBase, utcnow

INITIAL_CHANGE_NOTE = "initial"


class DocumentType(StrEnum):
    REPORT = "report"
    TEMPLATE = "template"

    @property
    def human_id_prefix(self) -> str:
        return "R" if self is DocumentType.REPORT else "T"


class LifecycleStatus(StrEnum):
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    NEEDS_REVISION = "needs_revision"
    FINAL = "final"
    ARCHIVED = "archived"


class Judgment(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    NEEDS_REVISION = "needs_revision"


class ComplianceStatus(StrEnum):
    UNCHECKED = "unchecked"
    PASSED = "passed"
    NEEDS_CHANGES = "needs_changes"
    NON_COMPLIANT = "non_compliant"


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


_SEVERITY_ALIASES = {"moderate": "medium", "med": "medium", "critical": "high", "minor": "low"}


class Section(BaseModel):
    """One titled block of a document body."""

    title: str
    body_text: str = ""
    order: int = 0
    generated: bool = False


class Revision(BaseModel):
    """An immutable snapshot of document content at one version number."""

    version_number: int
    content: str
    sections: list[Section] = Field(default_factory=list)
    author_id: str
    timestamp_utc: datetime = Field(default_factory=utcnow)
    change_note: str = ""


class ReviewerJudgment(BaseModel):
    """One reviewer's current verdict on the document."""

    user_id: str
    judgment: Judgment = Judgment.PENDING
    comment: str = ""
    judged_at_utc: datetime | None = None


class ComplianceIssue(BaseModel):
    description: str
    severity: Severity = Severity.MEDIUM
    suggestion: str = ""

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value: Any) -> Any:
        if isinstance(value, str):
            key = value.strip().lower()
            return _SEVERITY_ALIASES.get(key, key)
        return value


class Document(DocumentBase):
    """A report or template with an append-only revision log."""

    document_type: DocumentType
    human_id: str
    name: str = ""
    category: str = ""
    template_id: str | None = None
    content: str = ""
    sections: list[Section] = Field(default_factory=list)
    current_version_number: int = 1
    revisions: list[Revision] = Field(default_factory=list)
    reviewers: list[ReviewerJudgment] = Field(default_factory=list)
    lifecycle_status: LifecycleStatus = LifecycleStatus.DRAFT
    compliance_status: ComplianceStatus = ComplianceStatus.UNCHECKED
    compliance_issues: list[ComplianceIssue] = Field(default_factory=list)
    compliance_checked_at: datetime | None = None
    is_active: bool = True
    created_by: str

    @property
    def declared_type(self) -> str:
        """Human label used for prompts and fallback section titles."""
        return self.category or self.document_type.value.capitalize()

    def reviewer(self, user_id: str) -> ReviewerJudgment | None:
        return next((r for r in self.reviewers if r.user_id == user_id), None)

    def revision(self, version_number: int) -> Revision | None:
        return next(
            (r for r in self.revisions if r.version_number == version_number), None
        )
