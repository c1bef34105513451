"""Dependency-cascade operations over a tenant's model registry.

Four store-level operations used by the delete orchestrator:

- :func:`count_dependents` counts, per parent, the records of every
  dependent collection that reference it.
- :func:`archive_parents` flips the ``archive`` flag on parent records.
- :func:`transfer_dependents` re-points dependents from one parent to another.
- :func:`delete_with_dependents` deletes a parent and its dependents inside
  one transaction.

Only the cascade deleter handles store failures itself (it aborts and
reports a :class:`~scholaris.foundation.domain.results.CascadeFailure`).
The other three let driver errors propagate to the caller.

Example:
    >>> counts = await count_dependents(models, ["64b7f0c2e4b0a1a2b3c4d5e6"], institute.dependents)
    >>> counts["64b7f0c2e4b0a1a2b3c4d5e6"]["grades"]
    3
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from scholaris.foundation.domain.exceptions import InvalidRequestError
from scholaris.foundation.domain.identifiers import RecordId
from scholaris.foundation.domain.results import (
    ArchiveResult,
    CascadeFailure,
    CascadeResult,
    CascadeSuccess,
    DependentCounts,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bson import ObjectId

    from scholaris.foundation.domain.dependencies import DependencyDescriptor
    from scholaris.foundation.domain.ports import ModelRegistryPort, SessionPort

logger = logging.getLogger(__name__)

ARCHIVE_FIELD = "archive"


def to_object_ids(record_ids: Sequence[str]) -> list[ObjectId]:
    """Convert ID strings to ObjectIds, rejecting any malformed value.

    Raises:
        InvalidRequestError: On the first ID that is not a valid ObjectId.
    """
    converted = []
    for value in record_ids:
        try:
            converted.append(RecordId(value).to_object_id())
        except ValueError as exc:
            raise InvalidRequestError(str(exc), record_id=str(value)) from exc
    return converted


async def count_dependents(
    models: ModelRegistryPort,
    parent_ids: Sequence[str],
    dependents: Sequence[DependencyDescriptor],
) -> DependentCounts:
    """Count dependent records per descriptor for each parent ID.

    Counts for one parent run concurrently; parents are processed in order.
    A count of 0 is a real value, so every descriptor appears in every
    parent's map.

    Args:
        models: Registry bound to the tenant database.
        parent_ids: Non-empty list of parent IDs in string form.
        dependents: Descriptors of the parent's entity type.

    Returns:
        ``{parent_id: {display_name: count}}`` keyed by the canonical
        string form of each ID.

    Raises:
        InvalidRequestError: If ``parent_ids`` is empty or holds a malformed ID.
    """
    if not parent_ids:
        msg = "At least one parent ID is required"
        raise InvalidRequestError(msg)

    results: DependentCounts = {}
    for oid in to_object_ids(parent_ids):
        tallies = await asyncio.gather(
            *(
                models.get_model(dep.model).count_documents({dep.field: oid})
                for dep in dependents
            )
        )
        counts: dict[str, int] = {}
        for dep, tally in zip(dependents, tallies, strict=True):
            counts[dep.display_name] = counts.get(dep.display_name, 0) + tally
        results[str(oid)] = counts
    return results


async def archive_parents(
    models: ModelRegistryPort,
    parent_ids: Sequence[str],
    parent_model: str,
    archive: bool = True,
) -> ArchiveResult:
    """Set the archive flag on parent records without touching dependents.

    ``archived_count`` is the number of records whose flag actually
    changed. IDs that are missing or already at the target value count 0.
    """
    ids = to_object_ids(parent_ids)
    result = await models.get_model(parent_model).update_many(
        {"_id": {"$in": ids}},
        {"$set": {ARCHIVE_FIELD: archive}},
    )
    logger.info(
        "parents_archived",
        extra={
            "parent_model": parent_model,
            "archive": archive,
            "requested": len(ids),
            "modified": result.modified_count,
        },
    )
    return ArchiveResult(archived_count=result.modified_count, archived=archive)


async def transfer_dependents(
    models: ModelRegistryPort,
    from_id: str,
    to_id: str,
    dependents: Sequence[DependencyDescriptor],
) -> dict[str, int]:
    """Re-point every dependent of ``from_id`` to ``to_id``.

    One bulk update per descriptor, run concurrently. The updates are not
    transactional: if one fails the error propagates and the updates that
    already landed stay in place. ``to_id`` is not checked for existence.

    Returns:
        ``{model_name: modified_count}``.
    """
    source, target = to_object_ids([from_id, to_id])
    outcomes = await asyncio.gather(
        *(
            models.get_model(dep.model).update_many(
                {dep.field: source},
                {"$set": {dep.field: target}},
            )
            for dep in dependents
        )
    )
    results: dict[str, int] = {}
    for dep, outcome in zip(dependents, outcomes, strict=True):
        results[dep.model] = results.get(dep.model, 0) + outcome.modified_count

    logger.info(
        "dependents_transferred",
        extra={"from_id": str(source), "to_id": str(target), "modified": results},
    )
    return results


async def delete_with_dependents(
    models: ModelRegistryPort,
    parent_id: str,
    dependents: Sequence[DependencyDescriptor],
    parent_model: str,
) -> CascadeResult:
    """Delete one parent and all its dependents in a single transaction.

    Dependents are deleted in descriptor order, then the parent. Any
    failure aborts the transaction and is reported as a
    :class:`CascadeFailure` instead of being raised.

    Returns:
        :class:`CascadeSuccess` with ``{model_name: deleted_count}`` (the
        parent recorded under ``parent_model``), or :class:`CascadeFailure`.
    """
    session: SessionPort | None = None
    try:
        (oid,) = to_object_ids([parent_id])
        session = await models.start_session()
        session.start_transaction()

        deleted_counts: dict[str, int] = {}
        for dep in dependents:
            res = await models.get_model(dep.model).delete_many({dep.field: oid}, session=session)
            deleted_counts[dep.model] = deleted_counts.get(dep.model, 0) + res.deleted_count

        parent_res = await models.get_model(parent_model).delete_one({"_id": oid}, session=session)
        deleted_counts[parent_model] = deleted_counts.get(parent_model, 0) + parent_res.deleted_count

        await session.commit_transaction()
    except Exception as exc:
        if session is not None:
            await _abort_quietly(session, parent_id)
        logger.warning(
            "cascade_delete_aborted",
            extra={"parent_model": parent_model, "parent_id": str(parent_id), "error": str(exc)},
        )
        return CascadeFailure(error=str(exc))
    finally:
        if session is not None:
            await session.end_session()

    logger.info(
        "cascade_delete_committed",
        extra={"parent_model": parent_model, "parent_id": str(oid), "deleted_counts": deleted_counts},
    )
    return CascadeSuccess(deleted_counts=deleted_counts)


async def _abort_quietly(session: SessionPort, parent_id: str) -> None:
    """Abort the active transaction, logging (not raising) if the abort fails.

    The original failure is what the caller reports; a second error from
    the abort itself must not replace it.
    """
    try:
        await session.abort_transaction()
    except Exception:
        logger.exception("cascade_abort_failed", extra={"parent_id": str(parent_id)})
