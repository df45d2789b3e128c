"""Caller identity and role-based access checks."""

from firm_docs.auth.middleware import Identity, require_identity, resolve_identity
from firm_docs.auth.policy import AccessPolicy

__all__ = ["AccessPolicy", "Identity", "require_identity", "resolve_identity"]
