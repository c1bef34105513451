"""Motor-backed model registry for one tenant database.

Maps the model names used by dependency descriptors to MongoDB collection
names. Collection names follow what the records were originally written
under, which is not always the model name (``DepartmentData`` lives in
``departmentdatas``).
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from motor.motor_asyncio import (
        AsyncIOMotorClientSession,
        AsyncIOMotorCollection,
        AsyncIOMotorDatabase,
    )

MODEL_COLLECTIONS: Mapping[str, str] = MappingProxyType(
    {
        "instituteData": "instituteData",
        "DepartmentData": "departmentdatas",
        "Grades": "grades",
        "Subjects": "subjects",
        "LocationTypesInInstitute": "locationTypesInInstitute",
        "MembersData": "membersdatas",
        "GradeBatches": "gradebatches",
        "GradeSections": "gradesections",
        "GradeSectionBatches": "gradesectionbatches",
        "Enrollments": "enrollments",
    }
)


class UnknownModelError(KeyError):
    """Raised when a model name has no registered collection."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown model: {self.name!r}"


class MotorModelRegistry:
    """Resolves model names to motor collections of a tenant database.

    Implements :class:`~scholaris.foundation.domain.ports.ModelRegistryPort`.

    Args:
        database: Motor database of the tenant.
        collections: Model name to collection name mapping.
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase[Any],
        collections: Mapping[str, str] = MODEL_COLLECTIONS,
    ) -> None:
        self._database = database
        self._collections = collections

    @property
    def database_name(self) -> str:
        return self._database.name

    def get_model(self, name: str) -> AsyncIOMotorCollection[Any]:
        try:
            collection_name = self._collections[name]
        except KeyError:
            raise UnknownModelError(name) from None
        return self._database[collection_name]

    async def start_session(self) -> AsyncIOMotorClientSession:
        return await self._database.client.start_session()
