"""Progress state machine.

``apply_transition`` is the whole rule set and is pure; ``update_progress``
wraps it in a transaction that locks the (learner, project) key and
re-reads the persisted record first, so the timestamp rules always run
against committed state.

Rules:
- not_started forces completion_percentage to 0
- completed forces completion_percentage to 100 and stamps completed_at
- the first move away from not_started stamps started_at; once set it
  never changes
- completed_at is kept as history when a completed project is reopened
- a caller percentage outside [0, 100] is rejected, never clamped
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from uuid import UUID

from tracker.core.errors import InvalidStatusError, PercentageOutOfRangeError
from tracker.core.metrics import PROGRESS_TRANSITIONS
from tracker.models.progress import Progress, ProgressStatus
from tracker.models.project import Project, utcnow
from tracker.repos.store import Store
from tracker.services.deadline import bounded
from tracker.services.ownership import owned_curriculum, owned_project

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Transition:
    status: ProgressStatus
    completion_percentage: int
    started_at: datetime | None
    completed_at: datetime | None


def parse_status(raw: str | ProgressStatus) -> ProgressStatus:
    try:
        return ProgressStatus(raw)
    except ValueError:
        raise InvalidStatusError(
            f"invalid status: {raw!r}",
            allowed=[s.value for s in ProgressStatus],
        ) from None


def check_percentage(value: int | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not 0 <= value <= 100:
        raise PercentageOutOfRangeError(
            "completion_percentage must be between 0 and 100",
            completion_percentage=value,
        )
    return int(value)


def apply_transition(
    previous: Progress | None,
    status: str | ProgressStatus,
    completion_percentage: int | None,
    now: datetime,
) -> Transition:
    new_status = parse_status(status)
    percentage = check_percentage(completion_percentage)

    if previous is None:
        percentage = 0 if percentage is None else percentage
        started_at = completed_at = None
    else:
        if percentage is None:
            percentage = previous.completion_percentage
        started_at = previous.started_at
        completed_at = previous.completed_at

    if new_status is ProgressStatus.NOT_STARTED:
        percentage = 0
    elif started_at is None:
        started_at = now

    if new_status is ProgressStatus.COMPLETED:
        percentage = 100
        completed_at = now

    return Transition(
        status=new_status,
        completion_percentage=percentage,
        started_at=started_at,
        completed_at=completed_at,
    )


# ---------------------------------------------------------------------------
# UpdateProgress / GetProgress
# ---------------------------------------------------------------------------


async def update_progress(
    store: Store,
    learner_id: UUID,
    project_id: UUID,
    status: str | ProgressStatus,
    completion_percentage: int | None = None,
    *,
    now: datetime | None = None,
    timeout: float | None = None,
) -> Progress:
    # Reject malformed input before touching the store
    parse_status(status)
    check_percentage(completion_percentage)

    async def _run() -> Progress:
        async with store.transaction() as tx:
            await owned_project(tx, learner_id, project_id)
            await tx.lock_progress(learner_id, project_id)
            previous = await tx.progress.get(learner_id, project_id)

            stamp = now or utcnow()
            t = apply_transition(previous, status, completion_percentage, stamp)
            base = previous or Progress.default(
                learner_id=learner_id, project_id=project_id
            )
            saved = await tx.progress.upsert(
                replace(
                    base,
                    status=t.status,
                    completion_percentage=t.completion_percentage,
                    started_at=t.started_at,
                    completed_at=t.completed_at,
                    created_at=base.created_at if previous else stamp,
                    updated_at=stamp,
                )
            )

        from_status = previous.status if previous else ProgressStatus.NOT_STARTED
        PROGRESS_TRANSITIONS.labels(
            from_status=from_status.value, to_status=saved.status.value
        ).inc()
        logger.info(
            "Progress %s -> %s (%d%%) project=%s",
            from_status.value,
            saved.status.value,
            saved.completion_percentage,
            project_id,
            extra={"learner_id": str(learner_id), "project_id": str(project_id)},
        )
        return saved

    return await bounded(_run(), timeout=timeout)


async def get_progress(
    store: Store, learner_id: UUID, project_id: UUID, *, timeout: float | None = None
) -> Progress:
    """The stored record, or an unsaved not_started default."""

    async def _run() -> Progress:
        async with store.transaction() as tx:
            await owned_project(tx, learner_id, project_id)
            found = await tx.progress.get(learner_id, project_id)
        return found or Progress.default(learner_id=learner_id, project_id=project_id)

    return await bounded(_run(), timeout=timeout)


async def list_curriculum_progress(
    store: Store,
    learner_id: UUID,
    curriculum_id: UUID,
    *,
    timeout: float | None = None,
) -> list[tuple[Project, Progress]]:
    async def _run() -> list[tuple[Project, Progress]]:
        async with store.transaction() as tx:
            await owned_curriculum(tx, learner_id, curriculum_id)
            projects = await tx.projects.list_by_curriculum(curriculum_id)
            records = await tx.progress.list_by_projects(
                learner_id, [p.id for p in projects]
            )
        by_project = {r.project_id: r for r in records}
        return [
            (
                p,
                by_project.get(p.id)
                or Progress.default(learner_id=learner_id, project_id=p.id),
            )
            for p in projects
        ]

    return await bounded(_run(), timeout=timeout)


async def can_start_project(
    store: Store, learner_id: UUID, project_id: UUID, *, timeout: float | None = None
) -> tuple[bool, list[str]]:
    """Whether every prerequisite is completed; also returns the ones that aren't."""

    async def _run() -> tuple[bool, list[str]]:
        async with store.transaction() as tx:
            project = await owned_project(tx, learner_id, project_id)
            if not project.prerequisites:
                return True, []
            siblings = await tx.projects.list_by_curriculum(project.curriculum_id)
            by_identifier = {p.identifier: p for p in siblings}
            wanted = [
                by_identifier[i] for i in project.prerequisites if i in by_identifier
            ]
            records = await tx.progress.list_by_projects(
                learner_id, [p.id for p in wanted]
            )
        completed = {
            r.project_id for r in records if r.status is ProgressStatus.COMPLETED
        }
        blocking = [
            i
            for i in project.prerequisites
            if i not in by_identifier or by_identifier[i].id not in completed
        ]
        return not blocking, blocking

    return await bounded(_run(), timeout=timeout)
