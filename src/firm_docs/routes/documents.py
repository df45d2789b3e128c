"""Document routes: create, edit, history, review, generation preview."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import AliasChoices, BaseModel, Field

from firm_docs.auth.middleware import Identity, require_identity
from firm_docs.lifecycle.engine import DocumentLifecycleEngine
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
)
from firm_docs.models.generation import ComplianceReport, GenerationRequest, GenerationResult

router = APIRouter(prefix="/documents", tags=["documents"])


def get_engine(request: Request) -> DocumentLifecycleEngine:
    return request.app.state.engine


Engine = Annotated[DocumentLifecycleEngine, Depends(get_engine)]
Caller = Annotated[Identity, Depends(require_identity)]


class CreateDocumentBody(BaseModel):
    content: str = ""
    name: str = ""
    category: str = ""
    template_id: str | None = Field(
        default=None, validation_alias=AliasChoices("template_id", "templateId")
    )
    sections: list[Section] | None = None


class EditDocumentBody(BaseModel):
    content: str | None = None
    change_note: str | None = Field(
        default=None, validation_alias=AliasChoices("change_note", "changeNote")
    )
    sections: list[Section] | None = None


class AssignReviewersBody(BaseModel):
    user_ids: list[str] = Field(validation_alias=AliasChoices("user_ids", "userIds"))


class ReviewBody(BaseModel):
    judgment: Judgment
    comment: str = ""


class ReviewOutcome(BaseModel):
    lifecycle_status: LifecycleStatus
    reviewers: list[ReviewerJudgment]


class ComplianceBody(BaseModel):
    provider_id: str = Field(validation_alias=AliasChoices("provider_id", "providerId"))
    regulations: list[str] | None = None


class ComplianceResultBody(BaseModel):
    status: ComplianceStatus = Field(
        validation_alias=AliasChoices("status", "compliance_status", "complianceStatus")
    )
    issues: list[ComplianceIssue] | None = Field(
        default=None,
        validation_alias=AliasChoices("issues", "compliance_issues", "complianceIssues"),
    )


class TemplateStatusBody(BaseModel):
    is_active: bool = Field(validation_alias=AliasChoices("is_active", "isActive"))


class DuplicateBody(BaseModel):
    name: str | None = None


@router.get("", response_model=list[Document])
async def list_documents(
    engine: Engine,
    _: Caller,
    document_type: Annotated[DocumentType, Query(alias="type")] = DocumentType.REPORT,
):
    """List live documents of one type, newest first."""
    return await engine.list_documents(document_type)


@router.post("/{document_type}", response_model=Document, status_code=status.HTTP_201_CREATED)
async def create_document(
    document_type: DocumentType, body: CreateDocumentBody, engine: Engine, caller: Caller
):
    return await engine.create_document(
        document_type,
        caller,
        content=body.content,
        name=body.name,
        category=body.category,
        template_id=body.template_id,
        sections=body.sections,
    )


@router.get("/{document_id}", response_model=Document)
async def get_document(document_id: str, engine: Engine, _: Caller):
    return await engine.get_document(document_id)


@router.put("/{document_id}", response_model=Document)
async def edit_document(
    document_id: str, body: EditDocumentBody, engine: Engine, caller: Caller
):
    """Commit new content; an unchanged body returns the document as-is."""
    return await engine.edit(
        document_id,
        caller,
        body.content,
        change_note=body.change_note,
        sections=body.sections,
    )


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(document_id: str, engine: Engine, caller: Caller) -> Response:
    await engine.delete(document_id, caller)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{document_id}/versions", response_model=list[Revision])
async def list_versions(document_id: str, engine: Engine, _: Caller):
    """Revision history, most recent first."""
    return await engine.list_revisions(document_id)


@router.post("/{document_id}/versions/{version_number}/restore", response_model=Document)
async def restore_version(
    document_id: str, version_number: int, engine: Engine, caller: Caller
):
    return await engine.restore(document_id, version_number, caller)


@router.post("/{document_id}/reviewers", response_model=Document)
async def assign_reviewers(
    document_id: str, body: AssignReviewersBody, engine: Engine, caller: Caller
):
    return await engine.assign_reviewers(document_id, body.user_ids, caller)


@router.post("/{document_id}/submit", response_model=Document)
async def submit_for_review(document_id: str, engine: Engine, caller: Caller):
    return await engine.submit_for_review(document_id, caller)


@router.post("/{document_id}/review", response_model=ReviewOutcome)
async def review_document(
    document_id: str, body: ReviewBody, engine: Engine, caller: Caller
):
    document = await engine.judge(document_id, caller, body.judgment, body.comment)
    return ReviewOutcome(
        lifecycle_status=document.lifecycle_status, reviewers=document.reviewers
    )


@router.post("/{document_id}/finalize", response_model=Document)
async def finalize_document(document_id: str, engine: Engine, caller: Caller):
    return await engine.finalize(document_id, caller)


@router.post("/{document_id}/archive", response_model=Document)
async def archive_document(document_id: str, engine: Engine, caller: Caller):
    return await engine.archive(document_id, caller)


@router.post("/{document_id}/reopen", response_model=Document)
async def reopen_document(document_id: str, engine: Engine, caller: Caller):
    return await engine.reopen_draft(document_id, caller)


@router.post("/{document_id}/generate", response_model=GenerationResult)
async def generate_preview(
    document_id: str, body: GenerationRequest, engine: Engine, caller: Caller
):
    """Generate a preview; nothing is saved until the client PUTs the content."""
    return await engine.request_generation(
        document_id, body.provider_id, body.context_fields, caller
    )


@router.post("/{document_id}/compliance", response_model=ComplianceReport)
async def check_compliance(
    document_id: str, body: ComplianceBody, engine: Engine, caller: Caller
):
    return await engine.check_compliance(
        document_id, body.provider_id, caller, body.regulations
    )


@router.post(
    "/{document_id}/duplicate", response_model=Document, status_code=status.HTTP_201_CREATED
)
async def duplicate_template(
    document_id: str, body: DuplicateBody, engine: Engine, caller: Caller
):
    return await engine.duplicate_template(document_id, caller, body.name)


@router.put("/{document_id}/compliance", response_model=Document)
async def record_compliance(
    document_id: str, body: ComplianceResultBody, engine: Engine, caller: Caller
):
    """Commit a reviewed compliance outcome; omitting ``issues`` keeps the stored list."""
    return await engine.record_compliance(document_id, caller, body.status, body.issues)


@router.patch("/{document_id}/active", response_model=Document)
async def set_template_active(
    document_id: str, body: TemplateStatusBody, engine: Engine, caller: Caller
):
    return await engine.set_template_active(document_id, caller, body.is_active)
