from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID, uuid4


class ProjectType(StrEnum):
    ROOT = "root"
    ROOT_TEST = "rootTest"
    BASE = "base"
    BASE_TEST = "baseTest"
    LOWER_BRANCH = "lowerBranch"
    MIDDLE_BRANCH = "middleBranch"
    UPPER_BRANCH = "upperBranch"
    FLOWER_MILESTONE = "flowerMilestone"

    @property
    def prefix(self) -> str:
        return _TYPE_TABLE[self].prefix

    @property
    def is_singleton(self) -> bool:
        return _TYPE_TABLE[self].singleton

    @property
    def db_name(self) -> str:
        """snake_case spelling used by the database enum."""
        return _TYPE_TABLE[self].db_name


@dataclass(frozen=True, slots=True)
class TypeRule:
    prefix: str
    singleton: bool
    db_name: str


_TYPE_TABLE: dict[ProjectType, TypeRule] = {
    ProjectType.ROOT: TypeRule("R", False, "root"),
    ProjectType.ROOT_TEST: TypeRule("RT", True, "root_test"),
    ProjectType.BASE: TypeRule("B", False, "base"),
    ProjectType.BASE_TEST: TypeRule("BT", True, "base_test"),
    ProjectType.LOWER_BRANCH: TypeRule("LB", False, "lower_branch"),
    ProjectType.MIDDLE_BRANCH: TypeRule("MB", False, "middle_branch"),
    ProjectType.UPPER_BRANCH: TypeRule("UB", False, "upper_branch"),
    ProjectType.FLOWER_MILESTONE: TypeRule("F", False, "flower_milestone"),
}

_BY_DB_NAME = {rule.db_name: t for t, rule in _TYPE_TABLE.items()}


def project_type_from_name(name: str) -> ProjectType | None:
    """Resolve camelCase or snake_case spellings; None if unknown."""
    name = name.strip()
    try:
        return ProjectType(name)
    except ValueError:
        return _BY_DB_NAME.get(name)


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class Project:
    id: UUID
    curriculum_id: UUID
    identifier: str
    project_type: ProjectType
    position_order: int
    name: str
    prerequisites: tuple[str, ...] = ()
    description: str = ""
    learning_objectives: tuple[str, ...] = ()
    estimated_time: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @staticmethod
    def new(
        *,
        curriculum_id: UUID,
        identifier: str,
        project_type: ProjectType,
        position_order: int,
        name: str,
        prerequisites: tuple[str, ...] = (),
        description: str = "",
        learning_objectives: tuple[str, ...] = (),
        estimated_time: str = "",
        now: datetime | None = None,
    ) -> Project:
        now = now or utcnow()
        return Project(
            id=uuid4(),
            curriculum_id=curriculum_id,
            identifier=identifier,
            project_type=project_type,
            position_order=position_order,
            name=name,
            prerequisites=prerequisites,
            description=description,
            learning_objectives=learning_objectives,
            estimated_time=estimated_time,
            created_at=now,
            updated_at=now,
        )
