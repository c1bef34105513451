"""Problem responses (RFC 7807) for the Scholaris API.

Every failure leaves as ``application/problem+json`` with a ``message``
member, the same key success bodies use, so a client can show ``message``
without branching on the status code. Store failures add ``error`` with
the driver's text, scrubbed of credentials, and the correlation ID the
operator needs to find the matching log lines.

Usage:
    app = FastAPI()
    register_exception_handlers(app)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from scholaris.foundation.application.context import RequestContext, optional_context
from scholaris.foundation.domain.exceptions import (
    DomainError,
    InvalidRequestError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"
SERVER_ERROR_MESSAGE = "Server error"
UNKNOWN_CORRELATION_ID = "unknown"


class ProblemDetail(BaseModel):
    """RFC 7807 body plus the Scholaris extension members."""

    type: str = Field(examples=["/errors/not-found"])
    title: str
    status: int = Field(ge=400, le=599)
    detail: str
    message: str = Field(
        description="Outcome text, same key as in success bodies",
        examples=["No matching institutes found to archive/unarchive"],
    )
    error: str | None = Field(default=None, description="Store error text, store failures only")
    instance: str | None = Field(default=None, description="Request path")
    error_code: str | None = Field(default=None, examples=["NOT_FOUND", "INVALID_REQUEST"])
    context: dict[str, Any] | None = None
    correlation_id: str | None = Field(default=None, description="Quote this to support")


@dataclass(frozen=True, slots=True)
class ProblemType:
    status: int
    slug: str
    title: str

    @property
    def uri(self) -> str:
        return f"/errors/{self.slug}"


# Most specific first; the first isinstance match wins.
DOMAIN_PROBLEMS: tuple[tuple[type[DomainError], ProblemType], ...] = (
    (NotFoundError, ProblemType(404, "not-found", "Resource Not Found")),
    (ValidationError, ProblemType(422, "validation-error", "Validation Error")),
    (InvalidRequestError, ProblemType(400, "invalid-request", "Bad Request")),
    (PersistenceError, ProblemType(500, "persistence-error", "Internal Server Error")),
    (DomainError, ProblemType(400, "domain-error", "Bad Request")),
)
REQUEST_VALIDATION = ProblemType(422, "request-validation-error", "Request Validation Error")
INTERNAL = ProblemType(500, "internal-error", "Internal Server Error")

_MONGO_CREDENTIALS = re.compile(r"(mongodb(?:\+srv)?://)[^@/\s]+@[^/\s]+")
_SECRET_ASSIGNMENT = re.compile(r"\b(password|secret|token)\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE)
_SECRET_KEYS = frozenset({"password", "secret", "token", "api_key", "apikey", "credential", "uri"})


def redact(text: str) -> str:
    """Mask Mongo URI credentials and ``password=``-style assignments."""
    text = _MONGO_CREDENTIALS.sub(r"\1[REDACTED]@[REDACTED]", text)
    return _SECRET_ASSIGNMENT.sub(lambda m: f"{m.group(1)}=[REDACTED]", text)


def scrub(value: Any) -> Any:
    """Make exception context safe and JSON-ready for a client.

    Secret-named keys are dropped, strings are redacted, ObjectIds and
    other opaque values become strings. An empty mapping becomes ``None``.
    """
    if isinstance(value, dict):
        kept = {k: scrub(v) for k, v in value.items() if str(k).lower() not in _SECRET_KEYS}
        return kept or None
    if isinstance(value, list | tuple | set | frozenset):
        return [scrub(item) for item in value]
    if isinstance(value, str):
        return redact(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if value is None or isinstance(value, bool | int | float):
        return value
    return str(value)


def _request_context(request: Request) -> RequestContext | None:
    # The catch-all handler runs outside the middleware stack, after the
    # request scope has closed; the middleware leaves a copy on request.state.
    return optional_context() or getattr(request.state, "request_context", None)


def _correlation_id(request: Request) -> str:
    ctx = _request_context(request)
    return ctx.correlation_id if ctx else UNKNOWN_CORRELATION_ID


def _respond(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )


def problem_type_for(exc: DomainError) -> ProblemType:
    return next(kind for exc_type, kind in DOMAIN_PROBLEMS if isinstance(exc, exc_type))


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """4xx for domain errors, typed by :data:`DOMAIN_PROBLEMS`."""
    kind = problem_type_for(exc)
    return _respond(
        ProblemDetail(
            type=kind.uri,
            title=kind.title,
            status=kind.status,
            detail=str(exc),
            message=exc.message,
            instance=request.url.path,
            error_code=exc.error_code,
            context=scrub(exc.context),
        )
    )


async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """500 with ``{message, error}``; the full chain goes to the log."""
    correlation_id = _correlation_id(request)
    store_error = redact(exc.error)
    logger.error(
        "persistence_error",
        exc_info=exc,
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
            "store_error": store_error,
        },
    )
    kind = problem_type_for(exc)
    return _respond(
        ProblemDetail(
            type=kind.uri,
            title=kind.title,
            status=kind.status,
            detail=exc.message,
            message=exc.message,
            error=store_error,
            instance=request.url.path,
            error_code=exc.error_code,
            context=scrub(exc.context),
            correlation_id=correlation_id,
        )
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    return _respond(
        ProblemDetail(
            type=REQUEST_VALIDATION.uri,
            title=REQUEST_VALIDATION.title,
            status=REQUEST_VALIDATION.status,
            detail="Request validation failed",
            message="Request validation failed",
            instance=request.url.path,
            error_code="REQUEST_VALIDATION_ERROR",
            context={"errors": scrub(errors)},
        )
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500 with a fixed message. Debug apps also name the exception."""
    correlation_id = _correlation_id(request)
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )

    context: dict[str, Any] | None = None
    detail = "An internal error occurred. Please contact support with the correlation ID."
    if getattr(request.app, "debug", False):
        detail = f"{type(exc).__name__}: {redact(str(exc))}"
        context = {"exception_type": type(exc).__name__}

    return _respond(
        ProblemDetail(
            type=INTERNAL.uri,
            title=INTERNAL.title,
            status=INTERNAL.status,
            detail=detail,
            message=SERVER_ERROR_MESSAGE,
            instance=request.url.path,
            error_code="INTERNAL_ERROR",
            context=context,
            correlation_id=correlation_id,
        )
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the problem handlers on ``app``.

    Starlette picks the handler registered for the nearest class in the
    exception's MRO, so store failures reach :func:`persistence_error_handler`
    and every other :class:`DomainError` reaches :func:`domain_error_handler`.
    """
    # Starlette's handler typing is stricter than the handlers' real signatures
    app.add_exception_handler(PersistenceError, persistence_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
