"""Port interfaces for the per-tenant model registry.

The cascade operations never talk to a driver directly. They resolve a
model name to a collection handle through :class:`ModelRegistryPort` and
open sessions through it. The method shapes mirror the motor API, so the
production adapter is a thin lookup and test doubles stay small.

Example:
    >>> async def count_grades(models: ModelRegistryPort, institute_id) -> int:
    ...     grades = models.get_model("Grades")
    ...     return await grades.count_documents({"instituteId": institute_id})
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SessionPort(Protocol):
    """A store session able to run one multi-document transaction."""

    def start_transaction(self) -> Any:
        """Begin a transaction on this session."""
        ...

    async def commit_transaction(self) -> None:
        """Commit the active transaction."""
        ...

    async def abort_transaction(self) -> None:
        """Roll back the active transaction."""
        ...

    async def end_session(self) -> None:
        """Release the session. Safe to call after commit or abort."""
        ...


@runtime_checkable
class CursorPort(Protocol):
    """Result cursor of a ``find`` call."""

    def sort(self, key: str, direction: int = 1) -> CursorPort:
        """Order results by ``key``; 1 ascending, -1 descending."""
        ...

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        """Drain the cursor into a list."""
        ...


@runtime_checkable
class CollectionPort(Protocol):
    """Handle for one named collection.

    Bulk write methods return driver result objects exposing
    ``modified_count`` / ``deleted_count``.
    """

    async def count_documents(
        self, filter: dict[str, Any], *, session: SessionPort | None = None
    ) -> int: ...

    def find(
        self,
        filter: dict[str, Any],
        projection: dict[str, Any] | None = None,
        *,
        session: SessionPort | None = None,
    ) -> CursorPort: ...

    async def update_many(
        self,
        filter: dict[str, Any],
        update: dict[str, Any],
        *,
        session: SessionPort | None = None,
    ) -> Any: ...

    async def delete_many(
        self, filter: dict[str, Any], *, session: SessionPort | None = None
    ) -> Any: ...

    async def delete_one(
        self, filter: dict[str, Any], *, session: SessionPort | None = None
    ) -> Any: ...


@runtime_checkable
class ModelRegistryPort(Protocol):
    """Resolves model names to collections of the current tenant's database.

    Implementations are bound to exactly one tenant database for their
    lifetime. Unknown model names are a configuration error and raise.
    """

    def get_model(self, name: str) -> CollectionPort:
        """Return the collection registered under ``name``.

        Args:
            name: Model name, e.g. ``"Grades"``.

        Raises:
            KeyError: If no collection is registered under ``name``.
        """
        ...

    async def start_session(self) -> SessionPort:
        """Open a new session for a transaction."""
        ...
