"""Scholaris Foundation Application -- application layer patterns."""

from scholaris.foundation.application.cascade import (
    archive_parents,
    count_dependents,
    delete_with_dependents,
    transfer_dependents,
)
from scholaris.foundation.application.context import (
    NoRequestContextError,
    RequestContext,
    current_context,
    optional_context,
    request_scope,
)
from scholaris.foundation.application.contributions import (
    LifespanContribution,
    MiddlewareContribution,
    MiddlewareSlot,
    StartupStage,
)
from scholaris.foundation.application.deletion import (
    DeleteCommand,
    DeleteOutcome,
    EntityDeletionService,
    parse_delete_request,
)
from scholaris.foundation.application.discovery import Plugin, load_plugins

__all__ = [
    "DeleteCommand",
    "DeleteOutcome",
    "EntityDeletionService",
    "LifespanContribution",
    "MiddlewareContribution",
    "MiddlewareSlot",
    "NoRequestContextError",
    "Plugin",
    "RequestContext",
    "StartupStage",
    "archive_parents",
    "count_dependents",
    "current_context",
    "delete_with_dependents",
    "load_plugins",
    "optional_context",
    "parse_delete_request",
    "request_scope",
    "transfer_dependents",
]
