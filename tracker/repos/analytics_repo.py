"""Grouped count/sum queries behind the analytics rollups.

Every method is scoped to one learner and a set of curricula and returns
already-aggregated values, so callers never hold a learner's full
time-entry history. Groups with nothing in them are simply absent;
zero-filling is the caller's job.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime
from typing import Protocol
from uuid import UUID

from tracker.models.activity import TimeEntry
from tracker.models.analytics import ProjectRollup, utc_day, week_start
from tracker.models.progress import ProgressStatus
from tracker.repos.activity_repo import InMemoryNoteRepo, InMemoryTimeEntryRepo
from tracker.repos.progress_repo import InMemoryProgressRepo
from tracker.repos.project_repo import InMemoryProjectRepo


class AnalyticsRepo(Protocol):
    async def project_rollup(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID]
    ) -> list[ProjectRollup]: ...
    async def minutes_by_curriculum(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID]
    ) -> dict[UUID, int]: ...
    async def minutes_by_project(
        self, learner_id: UUID, curriculum_id: UUID
    ) -> dict[str, int]: ...
    async def minutes_by_day(
        self, learner_id: UUID, curriculum_id: UUID
    ) -> dict[date, int]: ...
    async def minutes_by_week(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID], since: datetime
    ) -> dict[datetime, int]: ...
    async def recent_entries(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID], limit: int
    ) -> list[TimeEntry]: ...
    async def count_notes(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID]
    ) -> int: ...


class InMemoryAnalyticsRepo:
    """Computes the same groups over the in-memory repos."""

    def __init__(
        self,
        projects: InMemoryProjectRepo,
        progress: InMemoryProgressRepo,
        time_entries: InMemoryTimeEntryRepo,
        notes: InMemoryNoteRepo,
    ) -> None:
        self._projects = projects
        self._progress = progress
        self._time_entries = time_entries
        self._notes = notes

    async def _entries(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID]
    ) -> tuple[dict, list[TimeEntry]]:
        projects = await self._projects.list_by_curricula(curriculum_ids)
        by_id = {p.id: p for p in projects}
        entries = await self._time_entries.list_by_projects(learner_id, by_id)
        return by_id, entries

    async def project_rollup(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID]
    ) -> list[ProjectRollup]:
        projects = await self._projects.list_by_curricula(curriculum_ids)
        records = await self._progress.list_by_projects(
            learner_id, (p.id for p in projects)
        )
        status = {r.project_id: r.status for r in records}

        groups: dict[tuple, list[int]] = defaultdict(lambda: [0, 0, 0])
        for p in projects:
            counts = groups[(p.curriculum_id, p.project_type)]
            counts[0] += 1
            if status.get(p.id) is ProgressStatus.COMPLETED:
                counts[1] += 1
            elif status.get(p.id) is ProgressStatus.IN_PROGRESS:
                counts[2] += 1
        return [
            ProjectRollup(cid, ptype, total, completed, in_progress)
            for (cid, ptype), (total, completed, in_progress) in groups.items()
        ]

    async def minutes_by_curriculum(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID]
    ) -> dict[UUID, int]:
        by_id, entries = await self._entries(learner_id, curriculum_ids)
        totals: dict[UUID, int] = defaultdict(int)
        for e in entries:
            totals[by_id[e.project_id].curriculum_id] += e.minutes
        return dict(totals)

    async def minutes_by_project(
        self, learner_id: UUID, curriculum_id: UUID
    ) -> dict[str, int]:
        by_id, entries = await self._entries(learner_id, [curriculum_id])
        totals: dict[str, int] = defaultdict(int)
        for e in entries:
            totals[by_id[e.project_id].identifier] += e.minutes
        return dict(totals)

    async def minutes_by_day(
        self, learner_id: UUID, curriculum_id: UUID
    ) -> dict[date, int]:
        _, entries = await self._entries(learner_id, [curriculum_id])
        totals: dict[date, int] = defaultdict(int)
        for e in entries:
            totals[utc_day(e.logged_at)] += e.minutes
        return dict(totals)

    async def minutes_by_week(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID], since: datetime
    ) -> dict[datetime, int]:
        _, entries = await self._entries(learner_id, curriculum_ids)
        totals: dict[datetime, int] = defaultdict(int)
        for e in entries:
            start = week_start(e.logged_at)
            if start >= since:
                totals[start] += e.minutes
        return dict(totals)

    async def recent_entries(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID], limit: int
    ) -> list[TimeEntry]:
        # list_by_projects is already newest first
        _, entries = await self._entries(learner_id, curriculum_ids)
        return entries[:limit]

    async def count_notes(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID]
    ) -> int:
        projects = await self._projects.list_by_curricula(curriculum_ids)
        return await self._notes.count_by_projects(learner_id, (p.id for p in projects))
