"""Shared fixtures for the scholaris test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from scholaris.domain.academics.router import router as academics_router
from scholaris.foundation.domain.identifiers import TenantId
from scholaris.infra.fastapi import AppSettings, create_app, register_exception_handlers
from scholaris.infra.fastapi.app_factory import ALL_GROUPS
from scholaris.infra.fastapi.middleware import contribution as request_context_contribution
from scholaris.infra.persistence.model_registry import MODEL_COLLECTIONS
from scholaris.infra.persistence.mongo import get_tenant_id, get_tenant_models
from tests.fakes import FakeModelRegistry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from fastapi import FastAPI


@pytest.fixture()
def models() -> FakeModelRegistry:
    """Empty in-memory registry with a collection for every known model."""
    return FakeModelRegistry(*MODEL_COLLECTIONS)


@pytest.fixture()
def app(models: FakeModelRegistry) -> FastAPI:
    """Academics app wired without entry-point discovery or MongoDB."""
    application = create_app(
        AppSettings(title="Scholaris Test"),
        routers=[academics_router],
        middleware=[request_context_contribution],
        error_handlers=[register_exception_handlers],
        skip_groups=ALL_GROUPS,
    )

    def tenant_models(tenant: Annotated[TenantId, Depends(get_tenant_id)]) -> FakeModelRegistry:
        return models

    application.dependency_overrides[get_tenant_models] = tenant_models
    return application


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    """TestClient for the academics app (lifespan hooks executed)."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def tenant_headers() -> dict[str, str]:
    """Standard headers that provide tenant context for requests."""
    return {
        "X-Tenant-ID": "springfield-high",
        "X-User-ID": "registrar-7",
    }
