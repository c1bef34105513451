"""Result types produced by the dependency-cascade operations.

``CascadeResult`` is a tagged union: a cascade either committed and reports
per-model deleted counts, or aborted and reports the error text. Both
variants serialise to the wire shape through ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

# parent ID -> dependency display name -> count
DependentCounts = dict[str, dict[str, int]]


@dataclass(frozen=True, slots=True)
class ArchiveResult:
    """Outcome of an archive/unarchive bulk update.

    Attributes:
        archived_count: Records whose flag actually changed. Records already
            at the target value match but are not counted.
        archived: The flag value that was applied.
    """

    archived_count: int
    archived: bool

    def to_dict(self) -> dict[str, Any]:
        return {"archivedCount": self.archived_count, "archived": self.archived}


@dataclass(frozen=True, slots=True)
class CascadeSuccess:
    """Committed cascade: dependents and parent deleted in one transaction."""

    deleted_counts: dict[str, int] = field(default_factory=dict)
    deleted: Literal[True] = True

    def to_dict(self) -> dict[str, Any]:
        return {"deleted": True, "deletedCounts": dict(self.deleted_counts)}


@dataclass(frozen=True, slots=True)
class CascadeFailure:
    """Aborted cascade: the transaction was rolled back, nothing was deleted."""

    error: str
    deleted: Literal[False] = False

    def to_dict(self) -> dict[str, Any]:
        return {"deleted": False, "error": self.error}


CascadeResult = CascadeSuccess | CascadeFailure


@dataclass(frozen=True, slots=True)
class DependencySummary:
    """One entry of a dependency summary response.

    Attributes:
        record_id: Parent ID.
        value: Display value of the parent, or None if it has none.
        depends_on: Dependent counts keyed by display name.
    """

    record_id: str
    value: Any
    depends_on: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        return {"_id": self.record_id, "value": self.value, "dependsOn": dict(self.depends_on)}
