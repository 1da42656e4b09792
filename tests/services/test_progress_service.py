from __future__ import annotations

import asyncio
import datetime
import gc
import uuid

import pytest
from prometheus_client import REGISTRY

from tests.conftest import make_curriculum, make_project
from tracker.core.errors import (
    InvalidStatusError,
    PercentageOutOfRangeError,
    ProjectNotFoundError,
    ValidationError,
)
from tracker.models.progress import Progress, ProgressStatus
from tracker.services import progress_service
from tracker.services.progress_service import apply_transition

T0 = datetime.datetime(2026, 3, 2, 9, 0, tzinfo=datetime.UTC)


def _at(hours: int) -> datetime.datetime:
    return T0 + datetime.timedelta(hours=hours)


def _update(store, learner_id, project_id, status, pct=None, *, now=None) -> Progress:
    return asyncio.run(
        progress_service.update_progress(
            store, learner_id, project_id, status, pct, now=now
        )
    )


@pytest.fixture
def project(store, learner_id):
    c = make_curriculum(store, learner_id)
    return make_project(store, learner_id, c.id, "root", 1)


# ---- pure transition rules ----


def test_not_started_forces_zero() -> None:
    t = apply_transition(None, "not_started", 40, T0)
    assert t.completion_percentage == 0
    assert t.started_at is None


def test_completed_forces_hundred_and_stamps() -> None:
    t = apply_transition(None, "completed", 10, T0)
    assert t.completion_percentage == 100
    assert t.completed_at == T0
    assert t.started_at == T0


def test_first_move_stamps_started_at() -> None:
    t = apply_transition(None, ProgressStatus.IN_PROGRESS, 25, T0)
    assert t.started_at == T0
    assert t.completion_percentage == 25


def test_omitted_percentage_keeps_previous() -> None:
    previous = Progress(
        learner_id=uuid.uuid4(),
        project_id=uuid.uuid4(),
        status=ProgressStatus.IN_PROGRESS,
        completion_percentage=60,
        started_at=T0,
    )
    t = apply_transition(previous, "on_hold", None, _at(1))
    assert t.completion_percentage == 60
    assert t.started_at == T0


@pytest.mark.parametrize("pct", [-1, 101, 250])
def test_out_of_range_percentage_rejected(pct: int) -> None:
    with pytest.raises(PercentageOutOfRangeError) as exc_info:
        apply_transition(None, "in_progress", pct, T0)
    assert isinstance(exc_info.value, ValidationError)


def test_unknown_status_rejected() -> None:
    with pytest.raises(InvalidStatusError):
        apply_transition(None, "paused", None, T0)


# ---- through the store ----


def test_started_at_survives_every_transition(store, learner_id, project) -> None:
    started = _update(store, learner_id, project.id, "in_progress", 10, now=_at(0))
    assert started.started_at == _at(0)

    held = _update(store, learner_id, project.id, "on_hold", now=_at(1))
    assert held.started_at == _at(0)

    done = _update(store, learner_id, project.id, "completed", now=_at(2))
    assert done.completion_percentage == 100
    assert done.completed_at == _at(2)
    assert done.started_at == _at(0)


def test_started_at_kept_after_reset_to_not_started(store, learner_id, project) -> None:
    _update(store, learner_id, project.id, "in_progress", now=_at(0))
    reset = _update(store, learner_id, project.id, "not_started", 50, now=_at(1))
    assert reset.completion_percentage == 0
    assert reset.started_at == _at(0)

    again = _update(store, learner_id, project.id, "in_progress", now=_at(2))
    assert again.started_at == _at(0)


def test_completed_at_retained_when_reopened(store, learner_id, project) -> None:
    _update(store, learner_id, project.id, "completed", now=_at(0))
    reopened = _update(store, learner_id, project.id, "in_progress", 80, now=_at(5))
    assert reopened.status is ProgressStatus.IN_PROGRESS
    assert reopened.completion_percentage == 80
    assert reopened.completed_at == _at(0)


def test_abandoned_can_be_revisited(store, learner_id, project) -> None:
    _update(store, learner_id, project.id, "abandoned", now=_at(0))
    back = _update(store, learner_id, project.id, "in_progress", 5, now=_at(1))
    assert back.status is ProgressStatus.IN_PROGRESS


def test_abandoned_keeps_full_percentage() -> None:
    t = apply_transition(None, "abandoned", 100, T0)
    assert t.status is ProgressStatus.ABANDONED
    assert t.completion_percentage == 100


def test_invalid_update_changes_nothing(store, learner_id, project) -> None:
    _update(store, learner_id, project.id, "in_progress", 30, now=_at(0))
    with pytest.raises(PercentageOutOfRangeError):
        _update(store, learner_id, project.id, "in_progress", 130)
    current = asyncio.run(progress_service.get_progress(store, learner_id, project.id))
    assert current.completion_percentage == 30


def test_get_progress_default_is_not_persisted(store, learner_id, project) -> None:
    p = asyncio.run(progress_service.get_progress(store, learner_id, project.id))
    assert p.status is ProgressStatus.NOT_STARTED
    assert p.completion_percentage == 0
    assert p.started_at is None and p.completed_at is None
    assert p.persisted is False
    assert asyncio.run(store.progress.get(learner_id, project.id)) is None


def test_progress_for_foreign_project_is_not_found(store, learner_id, project) -> None:
    with pytest.raises(ProjectNotFoundError):
        _update(store, uuid.uuid4(), project.id, "in_progress")


def test_transition_counter(store, learner_id, project) -> None:
    labels = {"from_status": "not_started", "to_status": "in_progress"}
    before = REGISTRY.get_sample_value("progress_transitions_total", labels) or 0.0
    _update(store, learner_id, project.id, "in_progress")
    after = REGISTRY.get_sample_value("progress_transitions_total", labels)
    assert after - before == 1


def test_concurrent_updates_keep_first_start(store, learner_id, project) -> None:
    async def _race() -> None:
        await asyncio.gather(
            *(
                progress_service.update_progress(
                    store, learner_id, project.id, "in_progress", i, now=_at(i)
                )
                for i in range(1, 6)
            )
        )

    asyncio.run(_race())
    final = asyncio.run(progress_service.get_progress(store, learner_id, project.id))
    assert final.started_at == _at(1)


def test_released_locks_are_not_retained(store, learner_id, project) -> None:
    async def _updates() -> bool:
        async with store.transaction() as tx:
            await tx.lock_progress(learner_id, project.id)
            held = ("progress", learner_id, project.id) in store._locks
        await asyncio.gather(
            *(
                progress_service.update_progress(
                    store, learner_id, project.id, "in_progress", i
                )
                for i in range(1, 4)
            )
        )
        return held

    assert asyncio.run(_updates()) is True
    gc.collect()
    assert len(store._locks) == 0


# ---- curriculum listing / can-start ----


def test_list_curriculum_progress_fills_defaults(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    r1 = make_project(store, learner_id, c.id, "root", 1)
    make_project(store, learner_id, c.id, "root", 2)
    _update(store, learner_id, r1.id, "completed")

    rows = asyncio.run(
        progress_service.list_curriculum_progress(store, learner_id, c.id)
    )
    assert [(p.identifier, pr.status) for p, pr in rows] == [
        ("R1", ProgressStatus.COMPLETED),
        ("R2", ProgressStatus.NOT_STARTED),
    ]


def test_can_start_requires_completed_prerequisites(store, learner_id) -> None:
    c = make_curriculum(store, learner_id)
    r1 = make_project(store, learner_id, c.id, "root", 1)
    r2 = make_project(store, learner_id, c.id, "root", 2, prerequisites=["R1"])

    assert asyncio.run(
        progress_service.can_start_project(store, learner_id, r1.id)
    ) == (True, [])
    assert asyncio.run(
        progress_service.can_start_project(store, learner_id, r2.id)
    ) == (False, ["R1"])

    _update(store, learner_id, r1.id, "completed")
    assert asyncio.run(
        progress_service.can_start_project(store, learner_id, r2.id)
    ) == (True, [])
