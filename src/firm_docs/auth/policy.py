"""Role checks. Roles are opaque lower-case strings compared against configured sets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from firm_docs.models.document import LifecycleStatus

if TYPE_CHECKING:
    from firm_docs.auth.middleware import Identity
    from firm_docs.config import AppConfig
    from firm_docs.models.document import Document


@dataclass(frozen=True)
class AccessPolicy:
    privileged_roles: frozenset[str] = frozenset({"admin", "partner", "manager"})
    senior_roles: frozenset[str] = frozenset({"admin", "partner"})

    @classmethod
    def from_config(cls, config: AppConfig) -> AccessPolicy:
        return cls(privileged_roles=config.privileged_roles, senior_roles=config.senior_roles)

    def is_privileged(self, identity: Identity) -> bool:
        return identity.role in self.privileged_roles or self.is_senior(identity)

    def is_senior(self, identity: Identity) -> bool:
        return identity.role in self.senior_roles

    def can_edit(self, identity: Identity, document: Document) -> bool:
        return (
            self.is_privileged(identity)
            or identity.user_id == document.created_by
            or document.reviewer(identity.user_id) is not None
        )

    def can_manage(self, identity: Identity, document: Document) -> bool:
        """Reviewer assignment and template activation."""
        return self.is_privileged(identity) or identity.user_id == document.created_by

    def can_delete(self, identity: Identity, document: Document) -> bool:
        if self.is_senior(identity):
            return True
        return (
            identity.user_id == document.created_by
            and document.lifecycle_status is LifecycleStatus.DRAFT
        )
