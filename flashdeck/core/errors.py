"""
Error taxonomy for the review engine.

Every error carries a stable machine-readable ``code`` and the HTTP status
an outer web layer should map it to. Validation and not-found errors carry
messages fit to show a learner; internal errors carry a generic message and
the cause is logged where it is caught.
"""

from __future__ import annotations

from typing import Any


class FlashdeckError(Exception):
    """Base class for errors surfaced by the review engine."""

    code = "ERROR"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(FlashdeckError):
    """Malformed input such as an unknown rating or a bad queue limit."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(FlashdeckError):
    """A card, deck or session is absent or not visible to the caller."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: str | None = None):
        message = f"{resource} not found" if identifier is None else f"{resource} {identifier} not found"
        super().__init__(message, {"resource": resource, "id": identifier} if identifier else None)
        self.resource = resource
        self.identifier = identifier


class ConflictError(FlashdeckError):
    """A concurrent update to the same memory state won the race."""

    code = "CONFLICT"
    status_code = 409


class InternalError(FlashdeckError):
    """The backing store failed."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = "Internal error"):
        super().__init__(message)
