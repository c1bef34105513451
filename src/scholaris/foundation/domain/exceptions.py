"""Errors the delete flow raises, each mapped to one HTTP problem type.

Every error carries ``message``, the text the client shows verbatim, and a
``context`` dict of IDs and names for logs. ``str(exc)`` joins the two so
log lines stay readable without the structured fields.

Example:
    >>> raise NoMatchingRecordsError("institutes", [iid], action="archive/unarchive")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "DomainError",
    "InvalidRequestError",
    "NoMatchingRecordsError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
]


class DomainError(Exception):
    """Root of the hierarchy; unmapped subclasses become 400s.

    ``error_code`` is a stable machine-readable name per subclass.
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    """A single record the request named does not exist (404)."""

    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: str, **context: Any) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type, "resource_id": str(resource_id), **context},
        )


class NoMatchingRecordsError(NotFoundError):
    """An archive or plain delete matched none of the requested IDs (404).

    The body was valid; the tenant's store just holds nothing to act on.
    """

    def __init__(self, plural: str, record_ids: Sequence[str], *, action: str) -> None:
        super().__init__(plural, ", ".join(record_ids), action=action)
        self.message = f"No matching {plural} found to {action}"


class ValidationError(DomainError):
    """A header or field holds a value the domain cannot accept (422).

    Used for the tenant header; malformed delete bodies raise
    :class:`InvalidRequestError` instead.
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str, **context: Any) -> None:
        self.field = field
        self.reason = reason
        super().__init__(
            f"Validation failed for '{field}': {reason}",
            {"field": field, "reason": reason, **context},
        )


class InvalidRequestError(DomainError):
    """The delete body is malformed or combines options that exclude each other (400).

    Always raised before the first store call.
    """

    error_code: str = "INVALID_REQUEST"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, context)


class PersistenceError(DomainError):
    """MongoDB failed mid-operation (500).

    ``error`` keeps the driver's text for the ``{message, error}`` body.
    """

    error_code: str = "PERSISTENCE_ERROR"

    def __init__(self, message: str, error: str, **context: Any) -> None:
        self.error = error
        super().__init__(message, context)
