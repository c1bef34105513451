"""Academics REST router: dependency-aware deletes for every entity type.

All routes resolve the tenant database from the ``X-Tenant-ID`` header.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from scholaris.foundation.application.cascade import ARCHIVE_FIELD
from scholaris.foundation.application.deletion import (
    SERVER_ERROR_MESSAGE,
    EntityDeletionService,
    parse_delete_request,
)
from scholaris.foundation.domain.exceptions import PersistenceError
from scholaris.infra.persistence.mongo import TenantModels

from .entities import EntityType, get_definition

router = APIRouter(tags=["academics"])


# -- Request / Response models ------------------------------------------------


DELETE_BODY_DESCRIPTION = (
    "`{ids: [str], deleteDependents?: bool, transferTo?: str, archive?: bool}`. "
    "Validated by the service so malformed bodies return 400."
)


class DependencyEntry(BaseModel):
    id: str = Field(alias="_id")
    value: Any = None
    dependsOn: dict[str, int]  # noqa: N815


class DependencyPreviewResponse(BaseModel):
    message: str
    dependencies: list[DependencyEntry]


class OptionEntry(BaseModel):
    id: str = Field(alias="_id")
    value: Any = None


class OptionsResponse(BaseModel):
    data: list[OptionEntry]


# -- Endpoints ----------------------------------------------------------------


@router.delete(
    "/{entity_type}",
    responses={
        201: {"description": "Dependents exist; nothing with dependents was deleted"},
        400: {"description": "Malformed or conflicting request"},
        404: {"description": "No matching records"},
    },
)
async def delete_entities(
    entity_type: EntityType,
    models: TenantModels,
    payload: Annotated[Any, Body(description=DELETE_BODY_DESCRIPTION)] = None,
) -> JSONResponse:
    """Delete, archive, transfer or cascade-delete records of one entity type."""
    definition = get_definition(entity_type)
    command = parse_delete_request(payload, definition)
    outcome = await EntityDeletionService(models, definition).delete(command)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)


@router.get("/{entity_type}/dependencies", response_model=DependencyPreviewResponse)
async def preview_dependencies(
    entity_type: EntityType,
    models: TenantModels,
    ids: Annotated[list[str], Query(min_length=1)],
) -> dict[str, Any]:
    """Report dependent counts without deleting anything.

    ``ids`` may be repeated or comma-separated.
    """
    definition = get_definition(entity_type)
    record_ids = [part.strip() for value in ids for part in value.split(",") if part.strip()]
    summaries = await EntityDeletionService(models, definition).summarize(record_ids)
    return {
        "message": "Dependency summary",
        "dependencies": [summary.to_dict() for summary in summaries],
    }


@router.get("/{entity_type}/options", response_model=OptionsResponse)
async def list_options(entity_type: EntityType, models: TenantModels) -> dict[str, Any]:
    """List non-archived records as ``{_id, value}`` pairs.

    MongoDB sorts by the display field, in its default binary collation, so
    records without the field come first and upper case sorts before lower.
    """
    definition = get_definition(entity_type)
    field = definition.display_field
    projection = {field: 1} if field else {"_id": 1}
    try:
        docs = await (
            models.get_model(definition.model)
            .find({ARCHIVE_FIELD: {"$ne": True}}, projection)
            .sort(field or "_id", ASCENDING)
            .to_list(length=None)
        )
    except PyMongoError as exc:
        raise PersistenceError(SERVER_ERROR_MESSAGE, str(exc)) from exc

    return {"data": [{"_id": str(doc["_id"]), "value": doc.get(field) if field else None} for doc in docs]}
