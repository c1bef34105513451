"""Scholaris Foundation Domain -- pure Python domain primitives.

This package provides the foundational building blocks shared by every
entity type: identifiers, exceptions, dependency descriptors, cascade
result types, and the store port interfaces.
"""

from scholaris.foundation.domain.dependencies import (
    DependencyDescriptor,
    DependencyRegistry,
    EntityDefinition,
    RegistryConfigurationError,
)
from scholaris.foundation.domain.exceptions import (
    DomainError,
    InvalidRequestError,
    NoMatchingRecordsError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from scholaris.foundation.domain.identifiers import RecordId, TenantId
from scholaris.foundation.domain.ports import (
    CollectionPort,
    CursorPort,
    ModelRegistryPort,
    SessionPort,
)
from scholaris.foundation.domain.results import (
    ArchiveResult,
    CascadeFailure,
    CascadeResult,
    CascadeSuccess,
    DependencySummary,
    DependentCounts,
)

__all__ = [
    "ArchiveResult",
    "CascadeFailure",
    "CascadeResult",
    "CascadeSuccess",
    "CollectionPort",
    "CursorPort",
    "DependencyDescriptor",
    "DependencyRegistry",
    "DependencySummary",
    "DependentCounts",
    "DomainError",
    "EntityDefinition",
    "InvalidRequestError",
    "ModelRegistryPort",
    "NoMatchingRecordsError",
    "NotFoundError",
    "PersistenceError",
    "RecordId",
    "RegistryConfigurationError",
    "SessionPort",
    "TenantId",
    "ValidationError",
]
