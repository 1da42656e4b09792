from __future__ import annotations

import asyncio
import uuid

import pytest

from tests.conftest import make_curriculum, make_project
from tracker.core.errors import (
    DependencyError,
    HasDependentsError,
    OutOfOrderPrerequisiteError,
    ProjectNotFoundError,
    UnknownPrerequisiteError,
    ValidationError,
)
from tracker.models.project import Project, ProjectType
from tracker.services import project_service
from tracker.services.dependency_validator import (
    ensure_deletable,
    find_dependents,
    normalize_prerequisites,
    validate_ordering,
    validate_prerequisites,
    validate_reposition,
)

_CURRICULUM = uuid.uuid4()


def _project(identifier: str, order: int, prereqs: tuple[str, ...] = ()) -> Project:
    return Project.new(
        curriculum_id=_CURRICULUM,
        identifier=identifier,
        project_type=ProjectType.ROOT,
        position_order=order,
        name=identifier,
        prerequisites=prereqs,
    )


# ---- pure checks ----


def test_normalize_prerequisites() -> None:
    assert normalize_prerequisites([" R1", "R2", "", "R1 ", "  "]) == ("R1", "R2")
    assert normalize_prerequisites(None) == ()


def test_earlier_prerequisite_accepted() -> None:
    r1 = _project("R1", 1)
    validate_prerequisites([r1], ["R1"], 2)


def test_unknown_prerequisite_rejected() -> None:
    with pytest.raises(UnknownPrerequisiteError) as exc_info:
        validate_prerequisites([_project("R1", 1)], ["B7"], 2)
    assert exc_info.value.details["prerequisite"] == "B7"
    assert isinstance(exc_info.value, DependencyError)


def test_later_prerequisite_rejected() -> None:
    with pytest.raises(OutOfOrderPrerequisiteError):
        validate_prerequisites([_project("R2", 2)], ["R2"], 1)


def test_equal_order_rejected() -> None:
    with pytest.raises(OutOfOrderPrerequisiteError):
        validate_prerequisites([_project("R1", 3)], ["R1"], 3)


def test_self_reference_rejected_on_update() -> None:
    r1 = _project("R1", 5)
    with pytest.raises(OutOfOrderPrerequisiteError):
        validate_prerequisites([r1], ["R1"], 5, subject_id=r1.id)


def test_subject_is_checked_at_its_new_order() -> None:
    r1 = _project("R1", 1)
    r2 = _project("R2", 2)
    # Moving R1 to order 3 makes R2 a legal prerequisite of it
    validate_prerequisites([r1, r2], ["R2"], 3, subject_id=r1.id)


def test_find_dependents() -> None:
    r1 = _project("R1", 1)
    r2 = _project("R2", 2, ("R1",))
    r3 = _project("R3", 3, ("R1", "R2"))
    assert find_dependents([r1, r2, r3], "R1") == [r2, r3]
    assert find_dependents([r1, r2, r3], "R3") == []


def test_ensure_deletable_reports_dependents() -> None:
    r1 = _project("R1", 1)
    r2 = _project("R2", 2, ("R1",))
    r3 = _project("R3", 3, ("R1",))
    with pytest.raises(HasDependentsError) as exc_info:
        ensure_deletable([r1, r2, r3], r1)
    assert exc_info.value.details["dependent_count"] == 2
    assert exc_info.value.details["dependents"] == ["R2", "R3"]
    ensure_deletable([r1, r2, r3], r3)


def test_validate_reposition() -> None:
    r1 = _project("R1", 1)
    r2 = _project("R2", 5, ("R1",))
    validate_reposition([r1, r2], r1, 4)
    with pytest.raises(OutOfOrderPrerequisiteError):
        validate_reposition([r1, r2], r1, 5)
    with pytest.raises(OutOfOrderPrerequisiteError):
        validate_reposition([r1, r2], r1, 6)


def test_validate_ordering() -> None:
    validate_ordering([_project("R1", 1), _project("R2", 2, ("R1",))])
    with pytest.raises(OutOfOrderPrerequisiteError):
        validate_ordering([_project("R1", 3), _project("R2", 2, ("R1",))])


# ---- through the project service ----


def test_forward_prerequisite_accepted_backward_rejected(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    r1 = make_project(store, learner_id, c.id, "root", 1)
    r2 = make_project(store, learner_id, c.id, "root", 2, prerequisites=["R1"])
    assert r2.prerequisites == ("R1",)

    # R1 (order 1) may not depend on R2 (order 2)
    with pytest.raises(OutOfOrderPrerequisiteError):
        asyncio.run(
            project_service.update_project(
                store, learner_id, r1.id, prerequisites=["R2"]
            )
        )


def test_create_with_unknown_prerequisite_persists_nothing(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    with pytest.raises(UnknownPrerequisiteError):
        make_project(store, learner_id, c.id, "root", 2, prerequisites=["R9"])
    assert asyncio.run(project_service.list_projects(store, learner_id, c.id)) == []


def test_validate_prerequisites_dry_run(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    make_project(store, learner_id, c.id, "root", 1)
    asyncio.run(project_service.validate_prerequisites(store, learner_id, c.id, ["R1"], 2))
    with pytest.raises(OutOfOrderPrerequisiteError):
        asyncio.run(
            project_service.validate_prerequisites(store, learner_id, c.id, ["R1"], 1)
        )


def test_every_stored_prerequisite_points_backwards(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    make_project(store, learner_id, c.id, "root", 1)
    make_project(store, learner_id, c.id, "base", 2, prerequisites=["R1"])
    make_project(store, learner_id, c.id, "lowerBranch", 3, prerequisites=["R1", "B1"])
    projects = asyncio.run(project_service.list_projects(store, learner_id, c.id))
    orders = {p.identifier: p.position_order for p in projects}
    for p in projects:
        for prereq in p.prerequisites:
            assert orders[prereq] < p.position_order


# ---- delete safety ----


def test_delete_blocked_until_reference_removed(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    r1 = make_project(store, learner_id, c.id, "root", 1)
    r2 = make_project(store, learner_id, c.id, "root", 2, prerequisites=["R1"])

    with pytest.raises(HasDependentsError) as exc_info:
        asyncio.run(project_service.delete_project(store, learner_id, r1.id))
    assert exc_info.value.details["dependent_count"] == 1

    asyncio.run(project_service.update_project(store, learner_id, r2.id, prerequisites=[]))
    asyncio.run(project_service.delete_project(store, learner_id, r1.id))

    with pytest.raises(ProjectNotFoundError):
        asyncio.run(project_service.get_project(store, learner_id, r1.id))


def test_delete_other_learners_project_is_not_found(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    r1 = make_project(store, learner_id, c.id, "root", 1)
    with pytest.raises(ProjectNotFoundError):
        asyncio.run(project_service.delete_project(store, uuid.uuid4(), r1.id))


# ---- update / reorder ----


def test_moving_prerequisite_past_dependent_rejected(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    r1 = make_project(store, learner_id, c.id, "root", 1)
    make_project(store, learner_id, c.id, "root", 3, prerequisites=["R1"])

    moved = asyncio.run(
        project_service.update_project(store, learner_id, r1.id, position_order=2)
    )
    assert moved.position_order == 2

    with pytest.raises(OutOfOrderPrerequisiteError):
        asyncio.run(
            project_service.update_project(store, learner_id, r1.id, position_order=3)
        )


def test_update_keeps_identifier_and_type(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    b1 = make_project(store, learner_id, c.id, "base", 1)
    updated = asyncio.run(
        project_service.update_project(
            store, learner_id, b1.id, name="Renamed", estimated_time="2h"
        )
    )
    assert updated.identifier == "B1"
    assert updated.project_type is ProjectType.BASE
    assert updated.name == "Renamed"
    assert updated.estimated_time == "2h"


def test_reorder_renumbers_positions(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    r1 = make_project(store, learner_id, c.id, "root", 10)
    b1 = make_project(store, learner_id, c.id, "base", 20)
    f1 = make_project(store, learner_id, c.id, "flowerMilestone", 30)

    result = asyncio.run(
        project_service.reorder_projects(store, learner_id, c.id, [b1.id, r1.id, f1.id])
    )
    assert [(p.identifier, p.position_order) for p in result] == [
        ("B1", 1),
        ("R1", 2),
        ("F1", 3),
    ]
    listed = asyncio.run(project_service.list_projects(store, learner_id, c.id))
    assert [p.identifier for p in listed] == ["B1", "R1", "F1"]


def test_reorder_rejects_prerequisite_after_dependent(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    r1 = make_project(store, learner_id, c.id, "root", 1)
    r2 = make_project(store, learner_id, c.id, "root", 2, prerequisites=["R1"])

    with pytest.raises(OutOfOrderPrerequisiteError):
        asyncio.run(
            project_service.reorder_projects(store, learner_id, c.id, [r2.id, r1.id])
        )
    listed = asyncio.run(project_service.list_projects(store, learner_id, c.id))
    assert [(p.identifier, p.position_order) for p in listed] == [("R1", 1), ("R2", 2)]


def test_reorder_requires_a_permutation(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    r1 = make_project(store, learner_id, c.id, "root", 1)
    make_project(store, learner_id, c.id, "root", 2)
    with pytest.raises(ValidationError):
        asyncio.run(project_service.reorder_projects(store, learner_id, c.id, [r1.id]))
    with pytest.raises(ValidationError):
        asyncio.run(
            project_service.reorder_projects(store, learner_id, c.id, [r1.id, r1.id])
        )
