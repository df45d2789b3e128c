"""Error taxonomy for the document lifecycle.

Every ``DocumentError`` carries a stable ``kind`` and an HTTP status so the
route layer can turn it into a structured response. ``RevisionIntegrityError``
is not a ``DocumentError``; it signals a corrupted store and is never turned
into a response.
"""

from __future__ import annotations

from typing import Any


class DocumentError(Exception):
    """Base class for user-facing lifecycle errors."""

    kind = "Error"
    status_code = 400

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "details": self.details}


class NotFoundError(DocumentError):
    kind = "NotFound"
    status_code = 404


class ForbiddenError(DocumentError):
    kind = "Forbidden"
    status_code = 403


class InvalidStateTransitionError(DocumentError):
    kind = "InvalidStateTransition"
    status_code = 409


class NoOpError(DocumentError):
    kind = "NoOp"
    status_code = 400


class ReferentialConflictError(DocumentError):
    kind = "ReferentialConflict"
    status_code = 409


class ConcurrencyConflictError(DocumentError):
    """The record changed between read and write (etag mismatch)."""

    kind = "ConcurrencyConflict"
    status_code = 409


class MalformedGenerationOutputError(DocumentError):
    """The provider answered, but nothing usable could be built from the text."""

    kind = "MalformedGenerationOutput"
    status_code = 422

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details={"phase": "preview", **(details or {})})


class GenerationUnavailableError(DocumentError):
    """The provider could not be reached or refused the request.

    ``body_excerpt`` is already redacted and truncated by the adapter that
    raised the error; credentials never reach this object.
    """

    kind = "GenerationUnavailable"
    status_code = 502

    def __init__(
        self,
        provider_id: str,
        message: str,
        *,
        upstream_status: int | None = None,
        body_excerpt: str = "",
    ) -> None:
        super().__init__(
            f"{provider_id}: {message}",
            details={
                "phase": "preview",
                "provider_id": provider_id,
                "upstream_status": upstream_status,
                "body_excerpt": body_excerpt,
            },
        )
        self.provider_id = provider_id
        self.upstream_status = upstream_status
        self.body_excerpt = body_excerpt


class RevisionIntegrityError(RuntimeError):
    """Revision numbers for a document are not a contiguous 1..N sequence."""
