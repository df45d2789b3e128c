"""Transient generation payloads; never persisted."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from firm_docs.models.document import ComplianceIssue, Section


class GenerationRequest(BaseModel):
    provider_id: str = Field(validation_alias=AliasChoices("provider_id", "providerId"))
    context_fields: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("context_fields", "contextFields"),
    )


class GenerationResult(BaseModel):
    """Preview of generated content; committing it is a separate edit."""

    raw_text: str
    sections: list[Section] = Field(default_factory=list)
    provider_id: str


class ComplianceReport(BaseModel):
    score: int = Field(ge=0, le=100)
    issues: list[ComplianceIssue] = Field(default_factory=list)
    overall_suggestion: str = ""
    provider_id: str = ""


class RegulationRecommendation(BaseModel):
    """Standards and regulations a provider suggests for an engagement."""

    accounting_standards: list[str] = Field(default_factory=list)
    tax_regulations: list[str] = Field(default_factory=list)
    compliance_risks: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    provider_id: str = ""

