"""Entity types of an institute and the records that depend on each.

Every row is written by hand from the reference fields of the stored
schemas. Reference fields hold ObjectIds; array references (an
enrollment's ``subjectsIds``) are not tracked, so subjects have no
registered dependents.
"""

from __future__ import annotations

from enum import Enum

from scholaris.foundation.domain.dependencies import (
    DependencyDescriptor as Dep,
)
from scholaris.foundation.domain.dependencies import (
    DependencyRegistry,
    EntityDefinition,
)
from scholaris.infra.persistence.model_registry import MODEL_COLLECTIONS


class EntityType(str, Enum):
    """Route segment of each deletable entity type."""

    INSTITUTES = "institutes"
    DEPARTMENTS = "departments"
    GRADES = "grades"
    SUBJECTS = "subjects"
    GRADE_BATCHES = "grade-batches"
    GRADE_SECTIONS = "grade-sections"
    GRADE_SECTION_BATCHES = "grade-section-batches"
    LOCATION_TYPES = "location-types"
    MEMBERS = "members"
    ENROLLMENTS = "enrollments"


INSTITUTES = EntityDefinition(
    entity_type=EntityType.INSTITUTES.value,
    model="instituteData",
    label="Institute",
    plural="institutes",
    id_key="instituteId",
    display_field="instituteName",
    dependents=(
        Dep("DepartmentData", "instituteId", "departments"),
        Dep("Grades", "instituteId", "grades"),
        Dep("Subjects", "instituteId", "subjects"),
        Dep("LocationTypesInInstitute", "instituteId", "LocationTypesInInstitute"),
        Dep("MembersData", "instituteId", "MembersData"),
        Dep("GradeBatches", "instituteId", "gradebatches"),
        Dep("GradeSections", "instituteId", "gradesections"),
        Dep("GradeSectionBatches", "instituteId", "gradesectionbatches"),
        Dep("Enrollments", "instituteId", "enrollments"),
    ),
)

DEPARTMENTS = EntityDefinition(
    entity_type=EntityType.DEPARTMENTS.value,
    model="DepartmentData",
    label="Department",
    plural="departments",
    id_key="departmentId",
    display_field="departmentName",
    dependents=(
        Dep("Grades", "departmentId", "grades"),
        Dep("Subjects", "departmentId", "subjects"),
        Dep("GradeBatches", "departmentId", "gradeBatches"),
        Dep("GradeSections", "departmentId", "gradeSections"),
        Dep("GradeSectionBatches", "departmentId", "gradeSectionBatches"),
        # members reference their department through ``department``
        Dep("MembersData", "department", "membersData"),
        Dep("Enrollments", "departmentId", "enrollments"),
    ),
)

GRADES = EntityDefinition(
    entity_type=EntityType.GRADES.value,
    model="Grades",
    label="Grade",
    plural="grades",
    id_key="gradeId",
    display_field="gradeDescription",
    dependents=(
        Dep("GradeBatches", "gradeId", "gradeBatches"),
        Dep("GradeSections", "gradeId", "gradeSections"),
        Dep("GradeSectionBatches", "gradeId", "gradeSectionBatches"),
        Dep("Subjects", "gradeId", "subjects"),
        Dep("MembersData", "gradeId", "membersData"),
        Dep("Enrollments", "gradeId", "enrollments"),
    ),
)

SUBJECTS = EntityDefinition(
    entity_type=EntityType.SUBJECTS.value,
    model="Subjects",
    label="Subject",
    plural="subjects",
    id_key="subjectId",
    display_field="subject",
)

GRADE_BATCHES = EntityDefinition(
    entity_type=EntityType.GRADE_BATCHES.value,
    model="GradeBatches",
    label="Grade Batch",
    plural="grade batches",
    id_key="gradeBatchId",
    display_field="batch",
    dependents=(
        Dep("MembersData", "gradeBatchId", "membersData"),
        Dep("Enrollments", "gradeBatchId", "enrollments"),
    ),
)

GRADE_SECTIONS = EntityDefinition(
    entity_type=EntityType.GRADE_SECTIONS.value,
    model="GradeSections",
    label="Grade Section",
    plural="grade sections",
    id_key="gradeSectionId",
    display_field="section",
    dependents=(
        Dep("MembersData", "gradeSectionId", "membersData"),
        Dep("Enrollments", "gradeSectionId", "enrollments"),
    ),
)

GRADE_SECTION_BATCHES = EntityDefinition(
    entity_type=EntityType.GRADE_SECTION_BATCHES.value,
    model="GradeSectionBatches",
    label="Grade Section Batch",
    plural="grade section batches",
    id_key="gradeSectionBatchId",
    display_field="gradeSectionBatch",
    dependents=(
        Dep("MembersData", "gradeSectionBatchId", "membersData"),
        Dep("Enrollments", "gradeSectionBatchId", "enrollments"),
    ),
)

LOCATION_TYPES = EntityDefinition(
    entity_type=EntityType.LOCATION_TYPES.value,
    model="LocationTypesInInstitute",
    label="Location Type",
    plural="location types",
    id_key="locationTypeId",
    display_field="location",
)

MEMBERS = EntityDefinition(
    entity_type=EntityType.MEMBERS.value,
    model="MembersData",
    label="Member",
    plural="members",
    id_key="memberId",
    display_field="firstName",
    dependents=(Dep("Enrollments", "memberId", "enrollments"),),
)

ENROLLMENTS = EntityDefinition(
    entity_type=EntityType.ENROLLMENTS.value,
    model="Enrollments",
    label="Enrollment",
    plural="enrollments",
    id_key="enrollmentId",
)

REGISTRY = DependencyRegistry(
    [
        INSTITUTES,
        DEPARTMENTS,
        GRADES,
        SUBJECTS,
        GRADE_BATCHES,
        GRADE_SECTIONS,
        GRADE_SECTION_BATCHES,
        LOCATION_TYPES,
        MEMBERS,
        ENROLLMENTS,
    ],
    known_models=MODEL_COLLECTIONS.keys(),
)


def get_definition(entity_type: EntityType | str) -> EntityDefinition:
    """Look up the registry row of an entity type."""
    key = entity_type.value if isinstance(entity_type, EntityType) else entity_type
    return REGISTRY.get(key)
