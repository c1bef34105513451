"""Who is asking, for which school, under which request.

The HTTP edge opens a :func:`request_scope` for every request. Code
further down reads it back without threading it through signatures: the
delete audit lines take the tenant and acting user from it, and problem
responses echo its correlation ID.

Usage:
    with request_scope(RequestContext(request_id=rid, correlation_id=rid)):
        ...
        optional_context().correlation_id
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

ANONYMOUS_USER = "anonymous"


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Identity of one in-flight request.

    Attributes:
        request_id: ID of this hop, echoed as ``X-Request-ID``.
        correlation_id: ID shared by every hop of one client action.
            Falls back to the request ID when the caller sends none.
        tenant_id: Raw ``X-Tenant-ID`` slug, empty when absent. Validation
            happens where the tenant database is resolved.
        user_id: ``X-User-ID`` of the acting registrar, for audit lines.
    """

    request_id: str
    correlation_id: str
    tenant_id: str = ""
    user_id: str = ANONYMOUS_USER

    def audit_fields(self) -> dict[str, str | None]:
        """Fields every delete audit line carries."""
        return {"tenant_id": self.tenant_id or None, "user_id": self.user_id}


_current: ContextVar[RequestContext | None] = ContextVar("scholaris_request", default=None)


class NoRequestContextError(RuntimeError):
    """Raised by :func:`current_context` outside a request scope."""

    def __init__(self) -> None:
        super().__init__("No request in scope; was RequestContextMiddleware installed?")


def current_context() -> RequestContext:
    """Return the context of the request being served.

    Raises:
        NoRequestContextError: Outside a :func:`request_scope`.
    """
    ctx = _current.get()
    if ctx is None:
        raise NoRequestContextError
    return ctx


def optional_context() -> RequestContext | None:
    return _current.get()


@contextmanager
def request_scope(ctx: RequestContext) -> Iterator[RequestContext]:
    """Make ``ctx`` the current request for the duration of the block.

    Scopes nest; leaving one restores whatever was current before it.
    """
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)
