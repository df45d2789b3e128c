"""Document lifecycle engine: composes versions, review, providers and parsing.

Documents can be addressed by ``id`` or by human-readable code. Every
mutation runs inside ``VersionStore.mutate`` so edits and judgment
recomputation on one document never interleave. Generation never holds the
document lock while waiting on a provider, and never persists anything:
committing a preview is a separate ``edit``.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING, Any

from firm_docs.auth.policy import AccessPolicy
from firm_docs.database.repositories import DocumentRepository, SequenceRepository
from firm_docs.errors import (
    ForbiddenError,
    InvalidStateTransitionError,
    NoOpError,
    NotFoundError,
    ReferentialConflictError,
)
from firm_docs.lifecycle.compliance import (
    apply_compliance_result,
    parse_compliance_report,
    parse_regulation_recommendation,
)
from firm_docs.lifecycle.prompts import (
    build_compliance_prompt,
    build_generation_prompt,
    build_recommendation_prompt,
)
from firm_docs.lifecycle.review import ReviewAggregator
from firm_docs.lifecycle.versions import VersionStore
from firm_docs.models.document import (
    ComplianceIssue,
    ComplianceStatus,
    Document,
    DocumentType,
    Judgment,
    Revision,
    Section,
)
from firm_docs.models.generation import (
    ComplianceReport,
    GenerationResult,
    RegulationRecommendation,
)
from firm_docs.parsing.sections import render_sections, segment_sections

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from firm_docs.auth.middleware import Identity
    from firm_docs.config import Settings
    from firm_docs.database.store import RecordStore
    from firm_docs.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class DocumentLifecycleEngine:
    def __init__(
        self,
        *,
        documents: DocumentRepository,
        versions: VersionStore,
        providers: ProviderRegistry,
        policy: AccessPolicy | None = None,
        review: ReviewAggregator | None = None,
        default_regulations: Sequence[str] = (),
    ) -> None:
        self._documents = documents
        self._versions = versions
        self._providers = providers
        self._policy = policy or AccessPolicy()
        self._review = review or ReviewAggregator()
        self._default_regulations = tuple(default_regulations)

    @property
    def providers(self) -> ProviderRegistry:
        return self._providers

    async def get_document(self, key: str) -> Document:
        document = await self._documents.resolve(key)
        if document is None:
            raise NotFoundError(f"document {key} not found")
        return document

    async def list_documents(self, document_type: DocumentType) -> list[Document]:
        return await self._documents.list_by_type(document_type)

    # -- authoring --------------------------------------------------------

    async def create_document(
        self,
        document_type: DocumentType,
        identity: Identity,
        *,
        content: str = "",
        name: str = "",
        category: str = "",
        template_id: str | None = None,
        sections: Sequence[Section] | None = None,
    ) -> Document:
        if not content and sections:
            content = render_sections(sections)
        create = partial(
            self._versions.create_document,
            document_type,
            content,
            identity.user_id,
            name=name,
            category=category,
            sections=sections,
        )
        if document_type is not DocumentType.REPORT or not template_id:
            return await create()

        template = await self.get_document(template_id)
        if template.document_type is not DocumentType.TEMPLATE:
            raise NotFoundError(f"template {template_id} not found")
        # Held until the report is stored so a concurrent delete sees the reference.
        async with self._versions.locks.hold(template.id):
            template = await self._documents.get(template.id)
            if template is None:
                raise NotFoundError(f"template {template_id} not found")
            if not template.is_active:
                raise InvalidStateTransitionError(
                    f"template {template.human_id} is inactive and cannot be used"
                )
            return await create(template_id=template.id)

    async def edit(
        self,
        key: str,
        identity: Identity,
        content: str | None,
        *,
        change_note: str | None = None,
        sections: Sequence[Section] | None = None,
    ) -> Document:
        """Commit new content (and optionally its sections) as the next revision."""
        document = await self.get_document(key)
        self._require_editor(identity, document)
        if content is None:
            if sections is None:
                raise NoOpError("nothing to save: give content or sections")
            content = render_sections(sections)
        return await self._versions.append_revision(
            document.id, content, identity.user_id, change_note, sections
        )

    async def list_revisions(self, key: str) -> list[Revision]:
        document = await self.get_document(key)
        return await self._versions.list_revisions(document.id)

    async def restore(self, key: str, version_number: int, identity: Identity) -> Document:
        document = await self.get_document(key)
        self._require_editor(identity, document)
        return await self._versions.restore_revision(
            document.id, version_number, identity.user_id
        )

    async def duplicate_template(
        self, key: str, identity: Identity, name: str | None = None
    ) -> Document:
        source = await self.get_document(key)
        if source.document_type is not DocumentType.TEMPLATE:
            raise InvalidStateTransitionError("only templates can be duplicated")
        return await self._versions.create_document(
            DocumentType.TEMPLATE,
            source.content,
            identity.user_id,
            name=name or f"{source.name} (copy)",
            category=source.category,
            sections=source.sections,
            change_note=f"duplicated from {source.human_id}",
        )

    async def delete(self, key: str, identity: Identity) -> None:
        document = await self.get_document(key)
        if not self._policy.can_delete(identity, document):
            raise ForbiddenError("you may not delete this document")
        async with self._versions.locks.hold(document.id):
            if document.document_type is DocumentType.TEMPLATE:
                references = await self._documents.count_template_references(document.id)
                if references:
                    raise ReferentialConflictError(
                        "template is used by existing reports and cannot be deleted",
                        details={"references": references},
                    )
            await self._versions.delete(document.id)
        logger.info("Document deleted — id=%s human_id=%s", document.id, document.human_id)

    # -- review -----------------------------------------------------------

    async def assign_reviewers(
        self, key: str, user_ids: Iterable[str], identity: Identity
    ) -> Document:
        document = await self.get_document(key)
        if not self._policy.can_manage(identity, document):
            raise ForbiddenError("only the creator or a privileged role may assign reviewers")
        wanted = list(user_ids)
        return await self._versions.mutate(
            document.id, lambda d: self._review.assign_reviewers(d, wanted)
        )

    async def submit_for_review(self, key: str, identity: Identity) -> Document:
        document = await self.get_document(key)
        self._require_editor(identity, document)
        return await self._versions.mutate(document.id, self._review.submit_for_review)

    async def judge(
        self, key: str, identity: Identity, judgment: Judgment, comment: str = ""
    ) -> Document:
        document = await self.get_document(key)
        privileged = self._policy.is_privileged(identity)
        return await self._versions.mutate(
            document.id,
            lambda d: self._review.record_judgment(
                d, identity.user_id, judgment, comment, privileged=privileged
            ),
        )

    async def finalize(self, key: str, identity: Identity) -> Document:
        """Force ``final`` regardless of judgments (senior roles only)."""
        document = await self.get_document(key)
        if not self._policy.is_senior(identity):
            raise ForbiddenError(
                "only senior roles may finalize a document without reviewer approval",
                details={"allowed_roles": sorted(self._policy.senior_roles)},
            )
        finalized = await self._versions.mutate(document.id, self._review.finalize)
        logger.info("Document force-finalized — id=%s by=%s", document.id, identity.user_id)
        return finalized

    async def archive(self, key: str, identity: Identity) -> Document:
        document = await self.get_document(key)
        if not self._policy.is_privileged(identity):
            raise ForbiddenError("only privileged roles may archive documents")
        return await self._versions.mutate(document.id, self._review.archive)

    async def reopen_draft(self, key: str, identity: Identity) -> Document:
        document = await self.get_document(key)
        if not self._policy.is_senior(identity):
            raise ForbiddenError("only senior roles may reopen a document")
        return await self._versions.mutate(document.id, self._review.reopen)

    # -- generation -------------------------------------------------------

    async def request_generation(
        self,
        key: str,
        provider_id: str,
        context_fields: Mapping[str, Any],
        identity: Identity,
    ) -> GenerationResult:
        """Draft content for ``key`` and return it as an unsaved preview."""
        document = await self.get_document(key)
        self._require_editor(identity, document)
        skeleton = None
        if document.template_id and "template" not in context_fields:
            template = await self._documents.get(document.template_id)
            skeleton = template.content if template else None
        system_prompt, user_prompt = build_generation_prompt(
            document, context_fields, template_skeleton=skeleton
        )
        logger.info(
            "Generation requested — document=%s provider=%s", document.id, provider_id
        )
        raw_text = await self._providers.generate(provider_id, system_prompt, user_prompt)
        sections = segment_sections(raw_text, document.declared_type)
        return GenerationResult(raw_text=raw_text, sections=sections, provider_id=provider_id)

    async def check_compliance(
        self,
        key: str,
        provider_id: str,
        identity: Identity,
        regulations: Sequence[str] | None = None,
    ) -> ComplianceReport:
        document = await self.get_document(key)
        self._require_editor(identity, document)
        if not document.content.strip():
            raise NoOpError("document has no content to check")
        system_prompt, user_prompt = build_compliance_prompt(
            document, list(regulations or self._default_regulations)
        )
        raw_text = await self._providers.generate(provider_id, system_prompt, user_prompt)
        report = parse_compliance_report(raw_text, provider_id)
        logger.info(
            "Compliance checked — document=%s provider=%s score=%d issues=%d",
            document.id,
            provider_id,
            report.score,
            len(report.issues),
        )
        return report

    async def recommend_regulations(
        self,
        provider_id: str,
        context_fields: Mapping[str, Any],
        identity: Identity,
    ) -> RegulationRecommendation:
        """Ask a provider which standards and regulations apply to an engagement."""
        system_prompt, user_prompt = build_recommendation_prompt(context_fields)
        logger.info(
            "Regulation recommendation requested — provider=%s by=%s",
            provider_id,
            identity.user_id,
        )
        raw_text = await self._providers.generate(provider_id, system_prompt, user_prompt)
        return parse_regulation_recommendation(raw_text, provider_id)

    async def record_compliance(
        self,
        key: str,
        identity: Identity,
        status: ComplianceStatus,
        issues: Sequence[ComplianceIssue] | None = None,
    ) -> Document:
        """Commit a reviewed compliance outcome (privileged roles only)."""
        document = await self.get_document(key)
        if not self._policy.is_privileged(identity):
            raise ForbiddenError("only privileged roles may record compliance results")
        updated = await self._versions.mutate(
            document.id,
            partial(apply_compliance_result, status=status, issues=issues),
        )
        logger.info(
            "Compliance recorded — document=%s status=%s issues=%d by=%s",
            document.id,
            updated.compliance_status.value,
            len(updated.compliance_issues),
            identity.user_id,
        )
        return updated

    async def set_template_active(self, key: str, identity: Identity, active: bool) -> Document:
        """Enable or disable a template for new reports; existing links are kept."""
        document = await self.get_document(key)
        if document.document_type is not DocumentType.TEMPLATE:
            raise InvalidStateTransitionError("only templates can be activated or deactivated")
        if not self._policy.can_manage(identity, document):
            raise ForbiddenError("only the creator or a privileged role may change this template")

        def toggle(template: Document) -> bool:
            if template.is_active is active:
                return False
            template.is_active = active
            return True

        return await self._versions.mutate(document.id, toggle)

    def _require_editor(self, identity: Identity, document: Document) -> None:
        if not self._policy.can_edit(identity, document):
            raise ForbiddenError("you are not allowed to change this document")


def create_engine(
    settings: Settings, store: RecordStore, providers: ProviderRegistry
) -> DocumentLifecycleEngine:
    documents = DocumentRepository(store)
    return DocumentLifecycleEngine(
        documents=documents,
        versions=VersionStore(documents, SequenceRepository(store)),
        providers=providers,
        policy=AccessPolicy.from_config(settings.app),
        default_regulations=settings.compliance.default_regulations,
    )
