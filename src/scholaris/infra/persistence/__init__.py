"""Scholaris Infra Persistence -- MongoDB client, tenant databases, model registry."""

from scholaris.foundation.application.contributions import LifespanContribution, StartupStage
from scholaris.infra.persistence.model_registry import (
    MODEL_COLLECTIONS,
    MotorModelRegistry,
    UnknownModelError,
)
from scholaris.infra.persistence.mongo import (
    MongoManager,
    MongoSettings,
    TenantModels,
    get_mongo_manager,
    get_tenant_id,
    get_tenant_models,
    mongo_lifespan,
)

lifespan_contribution = LifespanContribution(
    hook=mongo_lifespan,
    priority=StartupStage.MONGO,
    name="persistence",
)

__all__ = [
    "MODEL_COLLECTIONS",
    "MongoManager",
    "MongoSettings",
    "MotorModelRegistry",
    "TenantModels",
    "UnknownModelError",
    "get_mongo_manager",
    "get_tenant_id",
    "get_tenant_models",
    "lifespan_contribution",
    "mongo_lifespan",
]
