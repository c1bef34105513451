"""Per-request identity for the academics API.

:class:`RequestContextMiddleware` reads four headers once per request:

* ``X-Request-ID``: kept when it is a UUID, replaced by a fresh UUID4
  otherwise, so a client cannot inject arbitrary text into logs.
* ``X-Correlation-ID``: kept as sent, defaults to the request ID.
* ``X-Tenant-ID``: the school's slug, stored raw and validated later when
  the tenant database is resolved.
* ``X-User-ID``: the acting registrar for audit lines.

The values are opened as a :func:`request_scope` and bound into structlog
for the duration of the request, so each log line carries them. Both trace
IDs are echoed on the response.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from starlette.datastructures import Headers, MutableHeaders

from scholaris.foundation.application import MiddlewareContribution, MiddlewareSlot
from scholaris.foundation.application.context import (
    ANONYMOUS_USER,
    RequestContext,
    request_scope,
)

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"
TENANT_ID_HEADER = "X-Tenant-ID"
USER_ID_HEADER = "X-User-ID"


def _request_id(supplied: str | None) -> str:
    try:
        return str(uuid.UUID(supplied or ""))
    except ValueError:
        return str(uuid.uuid4())


def context_from_headers(headers: Headers) -> RequestContext:
    """Build the :class:`RequestContext` of a request from its headers."""
    request_id = _request_id(headers.get(REQUEST_ID_HEADER))
    return RequestContext(
        request_id=request_id,
        correlation_id=headers.get(CORRELATION_ID_HEADER, "").strip() or request_id,
        tenant_id=headers.get(TENANT_ID_HEADER, "").strip(),
        user_id=headers.get(USER_ID_HEADER, "").strip() or ANONYMOUS_USER,
    )


class RequestContextMiddleware:
    """Pure ASGI middleware; non-HTTP scopes pass through untouched."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        ctx = context_from_headers(Headers(scope=scope))
        # Read back by handlers that run after the scope below has closed.
        scope.setdefault("state", {})["request_context"] = ctx

        async def send_with_trace_ids(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers.append(REQUEST_ID_HEADER, ctx.request_id)
                headers.append(CORRELATION_ID_HEADER, ctx.correlation_id)
            await send(message)

        with (
            request_scope(ctx),
            structlog.contextvars.bound_contextvars(
                request_id=ctx.request_id,
                correlation_id=ctx.correlation_id,
                tenant_id=ctx.tenant_id or None,
            ),
        ):
            await self.app(scope, receive, send_with_trace_ids)


contribution = MiddlewareContribution(
    middleware_class=RequestContextMiddleware,
    priority=MiddlewareSlot.REQUEST_IDENTITY,
)
