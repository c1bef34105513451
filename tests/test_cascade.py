"""Unit tests for the dependency-cascade operations."""

from __future__ import annotations

import pytest
from bson import ObjectId
from pymongo.errors import OperationFailure

from scholaris.domain.academics.entities import DEPARTMENTS, INSTITUTES
from scholaris.foundation.application.cascade import (
    archive_parents,
    count_dependents,
    delete_with_dependents,
    to_object_ids,
    transfer_dependents,
)
from scholaris.foundation.domain.exceptions import InvalidRequestError
from scholaris.foundation.domain.results import CascadeFailure, CascadeSuccess
from tests.fakes import FakeModelRegistry


def _institute(models: FakeModelRegistry, name: str = "North Campus", **dependents: int) -> ObjectId:
    """Insert an institute and ``count`` records for each dependent model given."""
    institute_id = models.get_model("instituteData").insert(instituteName=name)
    for model, count in dependents.items():
        for _ in range(count):
            models.get_model(model).insert(instituteId=institute_id)
    return institute_id


class TestToObjectIds:
    @pytest.mark.unit
    def test_converts_valid_ids(self) -> None:
        oid = ObjectId()
        assert to_object_ids([str(oid)]) == [oid]

    @pytest.mark.unit
    def test_malformed_id_is_invalid_request(self) -> None:
        with pytest.raises(InvalidRequestError, match="Invalid record ID") as info:
            to_object_ids([str(ObjectId()), "nope"])
        assert info.value.context == {"record_id": "nope"}


class TestCountDependents:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_counts_every_descriptor(self, models: FakeModelRegistry) -> None:
        iid = _institute(models, Grades=3, Subjects=2)

        counts = await count_dependents(models, [str(iid)], INSTITUTES.dependents)

        assert counts == {
            str(iid): {
                "departments": 0,
                "grades": 3,
                "subjects": 2,
                "LocationTypesInInstitute": 0,
                "MembersData": 0,
                "gradebatches": 0,
                "gradesections": 0,
                "gradesectionbatches": 0,
                "enrollments": 0,
            }
        }

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_keyed_by_each_parent_in_order(self, models: FakeModelRegistry) -> None:
        first = _institute(models, "A", Grades=1)
        second = _institute(models, "B")

        counts = await count_dependents(models, [str(second), str(first)], INSTITUTES.dependents)

        assert list(counts) == [str(second), str(first)]
        assert counts[str(first)]["grades"] == 1
        assert counts[str(second)]["grades"] == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_uses_descriptor_field(self, models: FakeModelRegistry) -> None:
        department_id = models.get_model("DepartmentData").insert(departmentName="Science")
        models.get_model("MembersData").insert(department=department_id)
        models.get_model("MembersData").insert(departmentId=department_id)

        counts = await count_dependents(models, [str(department_id)], DEPARTMENTS.dependents)

        assert counts[str(department_id)]["membersData"] == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_is_read_only(self, models: FakeModelRegistry) -> None:
        iid = _institute(models, Grades=2)
        before = models.snapshot()

        await count_dependents(models, [str(iid)], INSTITUTES.dependents)

        assert models.snapshot() == before

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_malformed_id_rejected_before_any_query(self, models: FakeModelRegistry) -> None:
        with pytest.raises(InvalidRequestError):
            await count_dependents(models, [str(ObjectId()), "bad"], INSTITUTES.dependents)
        assert models.calls == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_ids_rejected(self, models: FakeModelRegistry) -> None:
        with pytest.raises(InvalidRequestError, match="At least one parent ID"):
            await count_dependents(models, [], INSTITUTES.dependents)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_store_error_propagates(self, models: FakeModelRegistry) -> None:
        iid = _institute(models)
        models.fail_on("Subjects", "count_documents")

        with pytest.raises(OperationFailure):
            await count_dependents(models, [str(iid)], INSTITUTES.dependents)


class TestArchiveParents:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sets_flag_without_touching_dependents(self, models: FakeModelRegistry) -> None:
        iid = _institute(models, Grades=2)
        grades_before = models.snapshot()["Grades"]

        result = await archive_parents(models, [str(iid)], "instituteData", True)

        assert result.archived_count == 1
        assert result.archived is True
        assert models.count("instituteData", archive=True) == 1
        assert models.snapshot()["Grades"] == grades_before

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_already_archived_not_counted(self, models: FakeModelRegistry) -> None:
        iid = _institute(models)
        await archive_parents(models, [str(iid)], "instituteData")

        result = await archive_parents(models, [str(iid)], "instituteData")

        assert result.archived_count == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unarchive(self, models: FakeModelRegistry) -> None:
        iid = _institute(models)
        await archive_parents(models, [str(iid)], "instituteData", True)

        result = await archive_parents(models, [str(iid)], "instituteData", False)

        assert result.to_dict() == {"archivedCount": 1, "archived": False}
        assert models.count("instituteData", archive=False) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_ids_count_zero(self, models: FakeModelRegistry) -> None:
        result = await archive_parents(models, [str(ObjectId())], "instituteData")
        assert result.archived_count == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_store_error_propagates(self, models: FakeModelRegistry) -> None:
        models.fail_on("instituteData", "update_many")
        with pytest.raises(OperationFailure):
            await archive_parents(models, [str(ObjectId())], "instituteData")


class TestTransferDependents:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_repoints_every_dependent(self, models: FakeModelRegistry) -> None:
        source = _institute(models, "A", Grades=2, Subjects=1)
        target = _institute(models, "B", Grades=1)

        result = await transfer_dependents(models, str(source), str(target), INSTITUTES.dependents)

        assert result["Grades"] == 2
        assert result["Subjects"] == 1
        assert result["DepartmentData"] == 0
        assert set(result) == {dep.model for dep in INSTITUTES.dependents}
        assert models.count("Grades", instituteId=source) == 0
        assert models.count("Grades", instituteId=target) == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_target_existence_not_checked(self, models: FakeModelRegistry) -> None:
        source = _institute(models, Grades=1)
        ghost = ObjectId()

        result = await transfer_dependents(models, str(source), str(ghost), INSTITUTES.dependents)

        assert result["Grades"] == 1
        assert models.count("Grades", instituteId=ghost) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_propagates(self, models: FakeModelRegistry) -> None:
        source = _institute(models, Grades=1, Subjects=1)
        models.fail_on("Subjects", "update_many")

        with pytest.raises(OperationFailure):
            await transfer_dependents(models, str(source), str(ObjectId()), INSTITUTES.dependents)


class TestDeleteWithDependents:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_deletes_parent_and_dependents(self, models: FakeModelRegistry) -> None:
        doomed = _institute(models, "A", Grades=2, Subjects=1)
        kept = _institute(models, "B", Grades=1)

        result = await delete_with_dependents(
            models, str(doomed), INSTITUTES.dependents, "instituteData"
        )

        assert isinstance(result, CascadeSuccess)
        assert result.deleted_counts["Grades"] == 2
        assert result.deleted_counts["Subjects"] == 1
        assert result.deleted_counts["instituteData"] == 1
        assert models.count("instituteData", _id=doomed) == 0
        assert models.count("Grades", instituteId=kept) == 1
        (session,) = models.sessions
        assert session.committed and session.ended and not session.aborted

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_writes_run_inside_the_session(self, models: FakeModelRegistry) -> None:
        iid = _institute(models, Grades=1)

        await delete_with_dependents(models, str(iid), INSTITUTES.dependents, "instituteData")

        (session,) = models.sessions
        writes = [call for call in models.calls if call[1] in ("delete_many", "delete_one")]
        assert writes
        assert all(call[3] is session for call in writes)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_parent_failure_rolls_back_everything(self, models: FakeModelRegistry) -> None:
        iid = _institute(models, Grades=2, Subjects=1)
        before = models.snapshot()
        models.fail_on("instituteData", "delete_one")

        result = await delete_with_dependents(models, str(iid), INSTITUTES.dependents, "instituteData")

        assert isinstance(result, CascadeFailure)
        assert "instituteData.delete_one failed" in result.error
        assert result.to_dict()["deleted"] is False
        assert models.snapshot() == before
        (session,) = models.sessions
        assert session.aborted and session.ended and not session.committed

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_dependent_failure_rolls_back(self, models: FakeModelRegistry) -> None:
        iid = _institute(models, DepartmentData=1, Grades=2)
        before = models.snapshot()
        models.fail_on("Grades", "delete_many")

        result = await delete_with_dependents(models, str(iid), INSTITUTES.dependents, "instituteData")

        assert isinstance(result, CascadeFailure)
        assert models.snapshot() == before

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_commit_failure_aborts(self, models: FakeModelRegistry) -> None:
        iid = _institute(models, Grades=1)
        before = models.snapshot()
        models.fail_on("session", "commit_transaction")

        result = await delete_with_dependents(models, str(iid), INSTITUTES.dependents, "instituteData")

        assert isinstance(result, CascadeFailure)
        assert models.snapshot() == before

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_parent_still_commits(self, models: FakeModelRegistry) -> None:
        result = await delete_with_dependents(
            models, str(ObjectId()), INSTITUTES.dependents, "instituteData"
        )

        assert isinstance(result, CascadeSuccess)
        assert result.deleted_counts["instituteData"] == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_malformed_id_reported_without_session(self, models: FakeModelRegistry) -> None:
        result = await delete_with_dependents(models, "bad", INSTITUTES.dependents, "instituteData")

        assert isinstance(result, CascadeFailure)
        assert "Invalid record ID" in result.error
        assert models.sessions == []
