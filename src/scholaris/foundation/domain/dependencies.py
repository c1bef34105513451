"""Dependency descriptors and the per-entity dependency registry.

The registry is authored by hand, one row per parent entity type. It is the
single source of truth for what counts as a dependent record and is not
derived from any schema: when a collection gains a new reference field the
corresponding descriptor must be added here.

Example:
    >>> institute = EntityDefinition(
    ...     entity_type="institutes",
    ...     model="instituteData",
    ...     label="Institute",
    ...     plural="institutes",
    ...     id_key="instituteId",
    ...     display_field="instituteName",
    ...     dependents=(DependencyDescriptor("Grades", "instituteId", "grades"),),
    ... )
    >>> registry = DependencyRegistry([institute], known_models={"instituteData", "Grades"})
    >>> registry.get("institutes").dependents[0].display_name
    'grades'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Iterator

__all__ = [
    "DependencyDescriptor",
    "DependencyRegistry",
    "EntityDefinition",
    "RegistryConfigurationError",
]


class RegistryConfigurationError(ValueError):
    """Raised at startup when a registry row references an unknown model."""


@dataclass(frozen=True, slots=True)
class DependencyDescriptor:
    """Declares that records of ``model`` reference a parent through ``field``.

    Attributes:
        model: Model name of the dependent collection.
        field: Field on the dependent record holding the parent's ID.
        name: Optional display name used as the key in dependent count maps.
    """

    model: str
    field: str
    name: str | None = None

    @property
    def display_name(self) -> str:
        """Key used in dependent count maps (``name`` falling back to ``model``)."""
        return self.name or self.model


@dataclass(frozen=True, slots=True)
class EntityDefinition:
    """One parent entity type and the dependents that reference it.

    Attributes:
        entity_type: Route segment and registry key (e.g. ``"institutes"``).
        model: Model name of the parent collection.
        label: Singular human label used in response messages.
        plural: Lowercase plural used in not-found messages.
        id_key: Key naming the parent ID in cascade results.
        display_field: Field shown as ``value`` in dependency summaries.
        dependents: Ordered dependency descriptors.
    """

    entity_type: str
    model: str
    label: str
    plural: str
    id_key: str
    display_field: str | None = None
    dependents: tuple[DependencyDescriptor, ...] = field(default_factory=tuple)

    @property
    def models(self) -> set[str]:
        """Every model name this definition touches, parent included."""
        return {self.model, *(dep.model for dep in self.dependents)}


class DependencyRegistry:
    """Immutable table of :class:`EntityDefinition` rows keyed by entity type.

    Validated eagerly on construction: every parent and dependent model must
    appear in ``known_models`` and entity types must be unique, so a missing
    model surfaces at import time rather than on the first delete request.

    Args:
        definitions: Registry rows.
        known_models: Model names that the persistence layer can resolve.

    Raises:
        RegistryConfigurationError: On duplicate entity types, unknown models,
            or duplicate descriptors within a row.
    """

    def __init__(
        self,
        definitions: Iterable[EntityDefinition],
        *,
        known_models: Collection[str],
    ) -> None:
        table: dict[str, EntityDefinition] = {}
        for definition in definitions:
            if definition.entity_type in table:
                msg = f"Duplicate entity type in dependency registry: {definition.entity_type!r}"
                raise RegistryConfigurationError(msg)
            unknown = sorted(definition.models - set(known_models))
            if unknown:
                msg = (
                    f"Entity type {definition.entity_type!r} references unknown "
                    f"model(s): {', '.join(unknown)}"
                )
                raise RegistryConfigurationError(msg)
            pairs = [(dep.model, dep.field) for dep in definition.dependents]
            if len(pairs) != len(set(pairs)):
                msg = f"Entity type {definition.entity_type!r} declares a dependent twice"
                raise RegistryConfigurationError(msg)
            table[definition.entity_type] = definition
        self._table = table

    def get(self, entity_type: str) -> EntityDefinition:
        """Return the definition for ``entity_type``.

        Raises:
            KeyError: If the entity type is not registered.
        """
        return self._table[entity_type]

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._table

    def __iter__(self) -> Iterator[EntityDefinition]:
        return iter(self._table.values())

    def __len__(self) -> int:
        return len(self._table)

    @property
    def entity_types(self) -> list[str]:
        """Registered entity types in declaration order."""
        return list(self._table)
