"""MongoDB client management and per-tenant database resolution.

One :class:`~motor.motor_asyncio.AsyncIOMotorClient` is shared by the
process. Each tenant has its own database, named
``{MONGO_TENANT_DB_PREFIX}{tenant}``. Database handles are kept in a
bounded TTL cache owned by the manager, so tenants that stop sending
requests are evicted instead of accumulating for the process lifetime.

Usage:
    from scholaris.infra.persistence.mongo import TenantModels

    @router.get("/grades/count")
    async def count_grades(models: TenantModels) -> int:
        return await models.get_model("Grades").count_documents({})
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from threading import Lock
from typing import TYPE_CHECKING, Annotated, Any

from cachetools import TTLCache  # type: ignore[import-untyped]
from fastapi import Depends, Header
from motor.motor_asyncio import AsyncIOMotorClient
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scholaris.foundation.domain.exceptions import ValidationError
from scholaris.foundation.domain.identifiers import TenantId
from scholaris.foundation.domain.ports import ModelRegistryPort
from scholaris.infra.persistence.model_registry import MotorModelRegistry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from motor.motor_asyncio import AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


class MongoSettings(BaseSettings):
    """MongoDB connection configuration from environment variables.

    Loads configuration from environment variables with ``MONGO_`` prefix:
    - MONGO_URI: Connection string (default: mongodb://localhost:27017)
    - MONGO_TENANT_DB_PREFIX: Prefix of every tenant database name
    - MONGO_SERVER_SELECTION_TIMEOUT_MS: Driver server selection timeout
    - MONGO_TENANT_CACHE_MAXSIZE: Maximum cached tenant database handles
    - MONGO_TENANT_CACHE_TTL: Seconds before a cached handle is evicted

    Transactions require a replica set or sharded cluster.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    uri: str = Field(default="mongodb://localhost:27017", repr=False)
    tenant_db_prefix: str = Field(default="scholaris_")
    server_selection_timeout_ms: int = Field(default=5000, ge=100, le=120_000)
    tenant_cache_maxsize: int = Field(default=1024, ge=1)
    tenant_cache_ttl: int = Field(default=600, ge=1, description="Seconds")

    @field_validator("uri")
    @classmethod
    def _validate_scheme(cls, v: str) -> str:
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            msg = "MONGO_URI must start with mongodb:// or mongodb+srv://"
            raise ValueError(msg)
        return v


class MongoManager:
    """Owns the motor client and the tenant database cache.

    The client is created lazily on first use. Multiple managers can coexist
    with different settings (e.g. in tests).

    Args:
        settings: Connection settings.
        client_factory: Builds the client from settings. Defaults to
            :class:`AsyncIOMotorClient`.
    """

    def __init__(
        self,
        settings: MongoSettings,
        client_factory: Callable[[MongoSettings], Any] | None = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory or _default_client
        self._client: Any | None = None
        self._tenant_dbs: TTLCache[str, AsyncIOMotorDatabase[Any]] = TTLCache(
            maxsize=settings.tenant_cache_maxsize,
            ttl=settings.tenant_cache_ttl,
        )
        self._lock = Lock()

    @property
    def settings(self) -> MongoSettings:
        return self._settings

    def get_client(self) -> Any:
        """Get or create the shared motor client."""
        if self._client is None:
            self._client = self._client_factory(self._settings)
            logger.info("mongo_client_created")
        return self._client

    def database_name(self, tenant: TenantId) -> str:
        return tenant.database_name(self._settings.tenant_db_prefix)

    def get_tenant_database(self, tenant: TenantId) -> AsyncIOMotorDatabase[Any]:
        """Return the tenant's database handle, caching it for the TTL."""
        key = str(tenant)
        with self._lock:
            database = self._tenant_dbs.get(key)
            if database is None:
                database = self.get_client()[self.database_name(tenant)]
                self._tenant_dbs[key] = database
                logger.debug("tenant_database_cached", extra={"tenant_id": key})
        return database

    def invalidate_tenant(self, tenant: TenantId) -> None:
        """Drop a tenant's cached handle. No-op if it is not cached."""
        with self._lock:
            self._tenant_dbs.pop(str(tenant), None)

    @property
    def cached_tenants(self) -> list[str]:
        with self._lock:
            return list(self._tenant_dbs.keys())

    async def ping(self) -> None:
        """Run the ``ping`` command against the server.

        Raises:
            pymongo.errors.PyMongoError: If the server is unreachable.
        """
        await self.get_client().admin.command("ping")

    def close(self) -> None:
        """Close the client and clear the tenant cache. Safe to call twice."""
        with self._lock:
            self._tenant_dbs.clear()
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("mongo_client_closed")


def _default_client(settings: MongoSettings) -> AsyncIOMotorClient[Any]:
    return AsyncIOMotorClient(
        settings.uri,
        serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
    )


@lru_cache(maxsize=1)
def get_mongo_manager() -> MongoManager:
    """Get the default MongoManager singleton."""
    return MongoManager(MongoSettings())


def get_tenant_id(
    x_tenant_id: Annotated[str | None, Header(alias="X-Tenant-ID")] = None,
) -> TenantId:
    """Resolve the tenant from the ``X-Tenant-ID`` header.

    Raises:
        ValidationError: If the header is missing or not a tenant slug.
    """
    if not x_tenant_id:
        raise ValidationError("X-Tenant-ID", "Header is required")
    try:
        return TenantId(x_tenant_id.strip())
    except ValueError as exc:
        raise ValidationError("X-Tenant-ID", str(exc)) from exc


def get_tenant_models(
    tenant: Annotated[TenantId, Depends(get_tenant_id)],
    manager: Annotated[MongoManager, Depends(get_mongo_manager)],
) -> ModelRegistryPort:
    """Dependency providing the model registry of the request's tenant."""
    return MotorModelRegistry(manager.get_tenant_database(tenant))


TenantModels = Annotated[ModelRegistryPort, Depends(get_tenant_models)]


@asynccontextmanager
async def mongo_lifespan(app: Any) -> AsyncIterator[None]:
    """Ping MongoDB before serving and close the client on shutdown.

    A wrong ``MONGO_URI`` fails the start instead of the first delete.
    """
    manager = get_mongo_manager()
    await manager.ping()
    logger.info("mongo_ready", extra={"tenant_db_prefix": manager.settings.tenant_db_prefix})
    try:
        yield
    finally:
        manager.close()
