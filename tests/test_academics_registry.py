"""Tests for the academics dependency registry rows."""

from __future__ import annotations

import pytest

from scholaris.domain.academics import REGISTRY, EntityType, get_definition


@pytest.mark.unit
class TestAcademicsRegistry:
    def test_every_route_segment_registered(self) -> None:
        assert set(REGISTRY.entity_types) == {member.value for member in EntityType}

    def test_lookup_by_enum_or_string(self) -> None:
        assert get_definition(EntityType.GRADES) is get_definition("grades")

    def test_unknown_entity_type(self) -> None:
        with pytest.raises(KeyError):
            get_definition("dogs")

    def test_institute_dependents(self) -> None:
        institutes = get_definition(EntityType.INSTITUTES)
        assert institutes.model == "instituteData"
        assert [dep.display_name for dep in institutes.dependents] == [
            "departments",
            "grades",
            "subjects",
            "LocationTypesInInstitute",
            "MembersData",
            "gradebatches",
            "gradesections",
            "gradesectionbatches",
            "enrollments",
        ]
        assert {dep.field for dep in institutes.dependents} == {"instituteId"}

    def test_members_reference_department_by_department_field(self) -> None:
        departments = get_definition(EntityType.DEPARTMENTS)
        fields = {dep.model: dep.field for dep in departments.dependents}
        assert fields["MembersData"] == "department"
        assert fields["Grades"] == "departmentId"

    def test_grade_dependents_use_grade_id(self) -> None:
        grades = get_definition(EntityType.GRADES)
        assert {dep.field for dep in grades.dependents} == {"gradeId"}
        assert len(grades.dependents) == 6

    @pytest.mark.parametrize(
        "entity_type",
        [EntityType.SUBJECTS, EntityType.LOCATION_TYPES, EntityType.ENROLLMENTS],
    )
    def test_leaf_entity_types_have_no_dependents(self, entity_type) -> None:
        assert get_definition(entity_type).dependents == ()

    def test_messages_use_label(self) -> None:
        assert get_definition(EntityType.GRADE_SECTION_BATCHES).label == "Grade Section Batch"
        assert get_definition(EntityType.LOCATION_TYPES).display_field == "location"
