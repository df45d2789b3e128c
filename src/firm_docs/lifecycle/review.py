"""Review aggregator: reviewer judgments drive the document lifecycle status.

Transitions::

    draft -> in_review -> {needs_revision, final}
    needs_revision -> in_review          (resubmission)
    any -> archived                      (explicit archive)
    final | archived -> draft            (explicit reopen)

Every method works on an in-memory ``Document`` and returns whether it changed
anything, so callers can run them as ``VersionStore.mutate`` callbacks.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from firm_docs.errors import (
    ForbiddenError,
    InvalidStateTransitionError,
    NoOpError,
)
from firm_docs.models.base import utcnow
from firm_docs.models.document import (
    Document,
    Judgment,
    LifecycleStatus,
    ReviewerJudgment,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

logger = logging.getLogger(__name__)


def aggregate_status(reviewers: Iterable[ReviewerJudgment]) -> LifecycleStatus:
    """Derive the status from the full judgment set.

    Any ``needs_revision`` wins; otherwise a non-empty, all-approved set is
    ``final``; anything else is ``in_review``. Always recomputed from scratch.
    """
    judgments = [reviewer.judgment for reviewer in reviewers]
    if Judgment.NEEDS_REVISION in judgments:
        return LifecycleStatus.NEEDS_REVISION
    if judgments and all(j is Judgment.APPROVED for j in judgments):
        return LifecycleStatus.FINAL
    return LifecycleStatus.IN_REVIEW


def reset_judgments(document: Document) -> None:
    for reviewer in document.reviewers:
        reviewer.judgment = Judgment.PENDING
        reviewer.comment = ""
        reviewer.judged_at_utc = None


class ReviewAggregator:
    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock

    def assign_reviewers(self, document: Document, user_ids: Iterable[str]) -> bool:
        """Add missing reviewers as pending; a draft with reviewers moves to review."""
        wanted = list(dict.fromkeys(u.strip() for u in user_ids if u and u.strip()))
        if not wanted:
            raise NoOpError("at least one reviewer must be given")
        if document.lifecycle_status in (LifecycleStatus.FINAL, LifecycleStatus.ARCHIVED):
            raise InvalidStateTransitionError(
                f"cannot assign reviewers to a {document.lifecycle_status.value} document"
            )
        added = [user_id for user_id in wanted if document.reviewer(user_id) is None]
        if not added:
            return False
        document.reviewers.extend(ReviewerJudgment(user_id=user_id) for user_id in added)
        if document.lifecycle_status is LifecycleStatus.DRAFT:
            document.lifecycle_status = LifecycleStatus.IN_REVIEW
        else:
            document.lifecycle_status = aggregate_status(document.reviewers)
        logger.info(
            "Reviewers assigned — document=%s added=%s status=%s",
            document.id,
            ",".join(added),
            document.lifecycle_status.value,
        )
        return True

    def record_judgment(
        self,
        document: Document,
        reviewer_id: str,
        judgment: Judgment,
        comment: str = "",
        *,
        privileged: bool = False,
    ) -> bool:
        """Set one reviewer's verdict and recompute the status.

        A privileged caller who is not yet a reviewer is added as one.
        """
        if document.lifecycle_status is LifecycleStatus.ARCHIVED:
            raise InvalidStateTransitionError("document is archived and cannot be reviewed")
        entry = document.reviewer(reviewer_id)
        if entry is None:
            if not privileged and not document.reviewers:
                raise InvalidStateTransitionError(
                    "document has no assigned reviewers",
                    details={"hint": "assign reviewers or ask a senior role to finalize"},
                )
            if not privileged:
                raise ForbiddenError("only assigned reviewers may judge this document")
            entry = ReviewerJudgment(user_id=reviewer_id)
            document.reviewers.append(entry)
        entry.judgment = judgment
        entry.comment = comment
        entry.judged_at_utc = self._clock()
        document.lifecycle_status = aggregate_status(document.reviewers)
        logger.info(
            "Judgment recorded — document=%s reviewer=%s judgment=%s status=%s",
            document.id,
            reviewer_id,
            judgment.value,
            document.lifecycle_status.value,
        )
        return True

    def submit_for_review(self, document: Document) -> bool:
        """Send a draft or a document needing revision (back) to its reviewers."""
        status = document.lifecycle_status
        if status is LifecycleStatus.IN_REVIEW:
            return False
        if status in (LifecycleStatus.FINAL, LifecycleStatus.ARCHIVED):
            raise InvalidStateTransitionError(
                f"a {status.value} document cannot be submitted for review"
            )
        if not document.reviewers:
            raise InvalidStateTransitionError(
                "assign at least one reviewer before submitting"
            )
        for reviewer in document.reviewers:
            if reviewer.judgment is Judgment.NEEDS_REVISION:
                reviewer.judgment = Judgment.PENDING
                reviewer.judged_at_utc = None
        document.lifecycle_status = (
            LifecycleStatus.IN_REVIEW
            if status is LifecycleStatus.DRAFT
            else aggregate_status(document.reviewers)
        )
        return True

    def finalize(self, document: Document) -> bool:
        """Force ``final`` regardless of judgments; authorization is the caller's job."""
        if document.lifecycle_status is LifecycleStatus.ARCHIVED:
            raise InvalidStateTransitionError("document is archived and cannot be finalized")
        if document.lifecycle_status is LifecycleStatus.FINAL:
            return False
        document.lifecycle_status = LifecycleStatus.FINAL
        return True

    def archive(self, document: Document) -> bool:
        if document.lifecycle_status is LifecycleStatus.ARCHIVED:
            return False
        document.lifecycle_status = LifecycleStatus.ARCHIVED
        return True

    def reopen(self, document: Document) -> bool:
        """Return a final or archived document to draft with fresh judgments."""
        if document.lifecycle_status not in (
            LifecycleStatus.FINAL,
            LifecycleStatus.ARCHIVED,
        ):
            raise InvalidStateTransitionError(
                "only final or archived documents can be reopened"
            )
        document.lifecycle_status = LifecycleStatus.DRAFT
        reset_judgments(document)
        return True
