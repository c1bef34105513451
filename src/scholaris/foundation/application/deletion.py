"""Delete orchestrator for entity types with registered dependents.

A delete request names one or more parent records and at most one way of
dealing with their dependents. :func:`parse_delete_request` turns the raw
JSON body into a :class:`DeleteCommand`, rejecting malformed or
conflicting requests before the store is touched.
:class:`EntityDeletionService` then runs one of these paths:

1. ``archive`` present: flip the archive flag and stop. No dependency check.
2. Otherwise count dependents and delete every parent that has none.
3. If no parent had dependents, report the plain delete.
4. With neither ``deleteDependents`` nor ``transferTo``, report the
   remaining parents and their counts (201, nothing else deleted).
5. With ``transferTo``, re-point the dependents, then delete the parent.
6. With ``deleteDependents``, cascade-delete each remaining parent in its
   own transaction.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pymongo.errors import PyMongoError

from scholaris.foundation.application.cascade import (
    archive_parents,
    count_dependents,
    delete_with_dependents,
    to_object_ids,
    transfer_dependents,
)
from scholaris.foundation.application.context import optional_context
from scholaris.foundation.domain.exceptions import (
    InvalidRequestError,
    NoMatchingRecordsError,
    PersistenceError,
)
from scholaris.foundation.domain.results import DependencySummary

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from scholaris.foundation.domain.dependencies import EntityDefinition
    from scholaris.foundation.domain.ports import ModelRegistryPort

__all__ = [
    "DeleteCommand",
    "DeleteOutcome",
    "EntityDeletionService",
    "parse_delete_request",
]

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error"


@dataclass(frozen=True, slots=True)
class DeleteCommand:
    """A validated delete request.

    Attributes:
        ids: Canonical (lowercase hex) parent IDs, deduplicated, in request order.
        delete_dependents: Cascade-delete dependents of parents that have them.
        transfer_to: Parent to re-point dependents to before deleting.
        archive: Archive (True) or unarchive (False) instead of deleting.
            None when the request does not ask for archiving.
    """

    ids: tuple[str, ...]
    delete_dependents: bool = False
    transfer_to: str | None = None
    archive: bool | None = None


@dataclass(frozen=True, slots=True)
class DeleteOutcome:
    """HTTP-ready result of a delete request."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


def parse_delete_request(body: Any, definition: EntityDefinition) -> DeleteCommand:
    """Validate a raw delete body against one entity type.

    Args:
        body: Decoded JSON body ``{ids, deleteDependents?, transferTo?, archive?}``.
        definition: Entity type the request targets (used for messages).

    Raises:
        InvalidRequestError: If the body is malformed or its options conflict.
    """
    label = definition.label
    entity_type = definition.entity_type

    if not isinstance(body, dict):
        raise InvalidRequestError(f"{label} ID(s) required", entity_type=entity_type)

    raw_ids = body.get("ids")
    if not isinstance(raw_ids, list) or not raw_ids:
        raise InvalidRequestError(f"{label} ID(s) required", entity_type=entity_type)

    archive = body.get("archive")
    has_archive = "archive" in body
    transfer_to = body.get("transferTo") or None
    delete_dependents = body.get("deleteDependents")

    if has_archive and transfer_to:
        raise InvalidRequestError(
            "Only one of archive or transfer can be requested at a time.",
            entity_type=entity_type,
        )
    if has_archive and not isinstance(archive, bool):
        raise InvalidRequestError(
            "The archive parameter must be a boolean (true or false).",
            entity_type=entity_type,
        )
    if delete_dependents is not None and not isinstance(delete_dependents, bool):
        raise InvalidRequestError(
            "The deleteDependents parameter must be a boolean (true or false).",
            entity_type=entity_type,
        )
    if delete_dependents and transfer_to:
        raise InvalidRequestError(
            "Only one of deleteDependents or transfer can be requested at a time.",
            entity_type=entity_type,
        )

    ids = tuple(dict.fromkeys(str(oid) for oid in to_object_ids(raw_ids)))

    target: str | None = None
    if transfer_to is not None:
        if len(ids) != 1:
            raise InvalidRequestError(
                f"Please select one {label.lower()} to transfer dependents from.",
                entity_type=entity_type,
            )
        (target_oid,) = to_object_ids([transfer_to])
        target = str(target_oid)
        if target == ids[0]:
            raise InvalidRequestError(
                f"Cannot transfer dependents of a {label.lower()} to itself.",
                entity_type=entity_type,
            )

    return DeleteCommand(
        ids=ids,
        delete_dependents=bool(delete_dependents),
        transfer_to=target,
        archive=archive if has_archive else None,
    )


class EntityDeletionService:
    """Runs delete requests for one entity type against one tenant database.

    Args:
        models: Model registry bound to the tenant database.
        definition: Entity type whose records are deleted.
    """

    def __init__(self, models: ModelRegistryPort, definition: EntityDefinition) -> None:
        self._models = models
        self._definition = definition

    async def delete(self, command: DeleteCommand) -> DeleteOutcome:
        """Execute a validated delete command.

        Raises:
            NoMatchingRecordsError: If archiving or plain deletion matched nothing.
            PersistenceError: If the store fails outside a cascade transaction.
        """
        started = time.perf_counter()
        self._audit("entity_delete_started", command)
        try:
            if command.archive is not None:
                outcome = await self._archive(command)
            else:
                outcome = await self._delete(command)
        except Exception as exc:
            self._audit(
                "entity_delete_completed",
                command,
                outcome="error",
                error_type=type(exc).__name__,
                duration_ms=_elapsed_ms(started),
            )
            raise

        self._audit(
            "entity_delete_completed",
            command,
            outcome=outcome.body.get("message"),
            status_code=outcome.status_code,
            duration_ms=_elapsed_ms(started),
        )
        return outcome

    async def summarize(self, ids: Sequence[str]) -> list[DependencySummary]:
        """Report dependent counts for every ID without deleting anything.

        Raises:
            InvalidRequestError: If ``ids`` is empty or holds a malformed ID.
            PersistenceError: If the store fails.
        """
        try:
            counts = await count_dependents(self._models, ids, self._definition.dependents)
            values = await self._display_values(list(counts))
        except PyMongoError as exc:
            raise PersistenceError(SERVER_ERROR_MESSAGE, str(exc)) from exc
        return [
            DependencySummary(record_id=record_id, value=values.get(record_id), depends_on=depends_on)
            for record_id, depends_on in counts.items()
        ]

    async def _archive(self, command: DeleteCommand) -> DeleteOutcome:
        definition = self._definition
        archive = bool(command.archive)
        try:
            result = await archive_parents(self._models, command.ids, definition.model, archive)
        except PyMongoError as exc:
            raise PersistenceError(
                f"Failed to archive/unarchive {definition.label}(s)", str(exc)
            ) from exc

        if not result.archived_count:
            raise NoMatchingRecordsError(definition.plural, command.ids, action="archive/unarchive")

        verb = "archived" if archive else "unarchived"
        return DeleteOutcome(
            200,
            {
                "message": f"{definition.label}(s) {verb} successfully",
                "archiveResult": result.to_dict(),
            },
        )

    async def _delete(self, command: DeleteCommand) -> DeleteOutcome:
        definition = self._definition
        models = self._models
        try:
            counts = await count_dependents(models, command.ids, definition.dependents)
            zero_ids, pending_ids = _partition(counts)

            deleted_count = 0
            if zero_ids:
                res = await models.get_model(definition.model).delete_many(
                    {"_id": {"$in": to_object_ids(zero_ids)}}
                )
                deleted_count = res.deleted_count

            if not pending_ids:
                if not deleted_count:
                    raise NoMatchingRecordsError(definition.plural, command.ids, action="delete")
                return DeleteOutcome(
                    200,
                    {
                        "message": f"{definition.label}(s) deleted successfully",
                        "deleted": zero_ids,
                        "dependencies": [],
                        "deletedCount": deleted_count,
                    },
                )

            if not command.delete_dependents and command.transfer_to is None:
                values = await self._display_values(pending_ids)
                summaries = [
                    DependencySummary(
                        record_id=record_id,
                        value=values.get(record_id),
                        depends_on=counts[record_id],
                    ).to_dict()
                    for record_id in pending_ids
                ]
                return DeleteOutcome(
                    201,
                    {"message": "Dependency summary", "deleted": zero_ids, "dependencies": summaries},
                )

            if command.transfer_to is not None:
                return await self._transfer(pending_ids[0], command.transfer_to)
        except PyMongoError as exc:
            raise PersistenceError(SERVER_ERROR_MESSAGE, str(exc)) from exc

        return await self._cascade(pending_ids)

    async def _transfer(self, source_id: str, target_id: str) -> DeleteOutcome:
        definition = self._definition
        transferred = await transfer_dependents(
            self._models, source_id, target_id, definition.dependents
        )
        res = await self._models.get_model(definition.model).delete_many(
            {"_id": {"$in": to_object_ids([source_id])}}
        )
        return DeleteOutcome(
            200,
            {
                "message": f"Dependents transferred and {definition.label.lower()}(s) deleted",
                "transfer": transferred,
                "deletedCount": res.deleted_count,
            },
        )

    async def _cascade(self, parent_ids: Sequence[str]) -> DeleteOutcome:
        definition = self._definition
        results = []
        for parent_id in parent_ids:
            result = await delete_with_dependents(
                self._models, parent_id, definition.dependents, definition.model
            )
            results.append({definition.id_key: parent_id, **result.to_dict()})
        return DeleteOutcome(200, {"message": "Deleted with dependents", "results": results})

    async def _display_values(self, record_ids: Sequence[str]) -> dict[str, Any]:
        """Look up the display field of each record, keyed by string ID."""
        display_field = self._definition.display_field
        if not display_field or not record_ids:
            return {}
        cursor = self._models.get_model(self._definition.model).find(
            {"_id": {"$in": to_object_ids(record_ids)}},
            {display_field: 1},
        )
        docs = await cursor.to_list(length=None)
        return {str(doc["_id"]): doc.get(display_field) for doc in docs}

    def _audit(self, event: str, command: DeleteCommand, **fields: Any) -> None:
        ctx = optional_context()
        who = ctx.audit_fields() if ctx else {"tenant_id": None, "user_id": None}
        logger.info(
            event,
            extra={
                **who,
                "entity_type": self._definition.entity_type,
                "mode": _mode(command),
                "record_count": len(command.ids),
                **fields,
            },
        )


def _partition(counts: Mapping[str, Mapping[str, int]]) -> tuple[list[str], list[str]]:
    """Split parent IDs into those without any dependents and the rest."""
    zero_ids = [pid for pid, by_name in counts.items() if not any(by_name.values())]
    pending_ids = [pid for pid in counts if pid not in zero_ids]
    return zero_ids, pending_ids


def _mode(command: DeleteCommand) -> str:
    if command.archive is not None:
        return "archive" if command.archive else "unarchive"
    if command.transfer_to is not None:
        return "transfer"
    if command.delete_dependents:
        return "cascade"
    return "delete"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)

