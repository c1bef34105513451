"""Scholaris Academics -- institute entity types and their delete API."""

from scholaris.domain.academics.entities import (
    REGISTRY,
    EntityType,
    get_definition,
)
from scholaris.domain.academics.router import router

__all__ = ["REGISTRY", "EntityType", "get_definition", "router"]
