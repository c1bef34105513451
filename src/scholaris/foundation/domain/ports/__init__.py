"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the domain layer uses to interact
with external services. Implementations (adapters) live in infrastructure.
"""

from scholaris.foundation.domain.ports.model_registry import (
    CollectionPort,
    CursorPort,
    ModelRegistryPort,
    SessionPort,
)

__all__ = ["CollectionPort", "CursorPort", "ModelRegistryPort", "SessionPort"]
