"""PostgreSQL implementation of AnalyticsRepo.

All grouping happens in the database. Days and weeks are bucketed on the
UTC wall clock, so ``date_trunc('week', ...)`` lands on Monday 00:00 UTC
the same way ``week_start`` does for the in-memory store.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime
from uuid import UUID

from sqlalchemy import and_, func, literal_column, select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.tables import NoteRow, ProgressRow, ProjectRow, TimeEntryRow
from tracker.models.activity import TimeEntry
from tracker.models.analytics import ProjectRollup
from tracker.models.progress import ProgressStatus
from tracker.models.project import project_type_from_name
from tracker.repos.pg_activity_repo import row_to_entry

# Inlined rather than bound so GROUP BY repeats the exact SELECT expression.
_UTC = literal_column("'UTC'")
_WEEK = literal_column("'week'")


def _utc_wall_clock():
    return func.timezone(_UTC, TimeEntryRow.logged_at)


class PgAnalyticsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _entries_in(self, learner_id: UUID, curriculum_ids: list[UUID]):
        return and_(
            TimeEntryRow.learner_id == learner_id,
            ProjectRow.curriculum_id.in_(curriculum_ids),
        )

    async def project_rollup(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID]
    ) -> list[ProjectRollup]:
        ids = list(curriculum_ids)
        if not ids:
            return []
        stmt = (
            select(
                ProjectRow.curriculum_id,
                ProjectRow.project_type,
                func.count(ProjectRow.id),
                func.count(ProgressRow.id).filter(
                    ProgressRow.status == ProgressStatus.COMPLETED.value
                ),
                func.count(ProgressRow.id).filter(
                    ProgressRow.status == ProgressStatus.IN_PROGRESS.value
                ),
            )
            .outerjoin(
                ProgressRow,
                and_(
                    ProgressRow.project_id == ProjectRow.id,
                    ProgressRow.learner_id == learner_id,
                ),
            )
            .where(ProjectRow.curriculum_id.in_(ids))
            .group_by(ProjectRow.curriculum_id, ProjectRow.project_type)
        )
        rows = (await self._session.execute(stmt)).all()
        return [
            ProjectRollup(
                curriculum_id=cid,
                project_type=project_type_from_name(ptype),
                total=int(total),
                completed=int(completed),
                in_progress=int(in_progress),
            )
            for cid, ptype, total, completed, in_progress in rows
        ]

    async def minutes_by_curriculum(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID]
    ) -> dict[UUID, int]:
        ids = list(curriculum_ids)
        if not ids:
            return {}
        stmt = (
            select(ProjectRow.curriculum_id, func.sum(TimeEntryRow.minutes))
            .join(ProjectRow, ProjectRow.id == TimeEntryRow.project_id)
            .where(self._entries_in(learner_id, ids))
            .group_by(ProjectRow.curriculum_id)
        )
        rows = (await self._session.execute(stmt)).all()
        return {cid: int(total) for cid, total in rows}

    async def minutes_by_project(
        self, learner_id: UUID, curriculum_id: UUID
    ) -> dict[str, int]:
        stmt = (
            select(ProjectRow.identifier, func.sum(TimeEntryRow.minutes))
            .join(ProjectRow, ProjectRow.id == TimeEntryRow.project_id)
            .where(self._entries_in(learner_id, [curriculum_id]))
            .group_by(ProjectRow.identifier)
        )
        rows = (await self._session.execute(stmt)).all()
        return {identifier: int(total) for identifier, total in rows}

    async def minutes_by_day(
        self, learner_id: UUID, curriculum_id: UUID
    ) -> dict[date, int]:
        day = func.date(_utc_wall_clock())
        stmt = (
            select(day, func.sum(TimeEntryRow.minutes))
            .join(ProjectRow, ProjectRow.id == TimeEntryRow.project_id)
            .where(self._entries_in(learner_id, [curriculum_id]))
            .group_by(day)
        )
        rows = (await self._session.execute(stmt)).all()
        return {d: int(total) for d, total in rows}

    async def minutes_by_week(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID], since: datetime
    ) -> dict[datetime, int]:
        ids = list(curriculum_ids)
        if not ids:
            return {}
        week = func.date_trunc(_WEEK, _utc_wall_clock())
        stmt = (
            select(week, func.sum(TimeEntryRow.minutes))
            .join(ProjectRow, ProjectRow.id == TimeEntryRow.project_id)
            .where(self._entries_in(learner_id, ids), TimeEntryRow.logged_at >= since)
            .group_by(week)
        )
        rows = (await self._session.execute(stmt)).all()
        # timezone() yields a naive UTC timestamp
        return {start.replace(tzinfo=UTC): int(total) for start, total in rows}

    async def recent_entries(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID], limit: int
    ) -> list[TimeEntry]:
        ids = list(curriculum_ids)
        if not ids:
            return []
        stmt = (
            select(TimeEntryRow)
            .join(ProjectRow, ProjectRow.id == TimeEntryRow.project_id)
            .where(self._entries_in(learner_id, ids))
            .order_by(TimeEntryRow.logged_at.desc(), TimeEntryRow.created_at.desc())
            .limit(limit)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [row_to_entry(r) for r in rows]

    async def count_notes(
        self, learner_id: UUID, curriculum_ids: Iterable[UUID]
    ) -> int:
        ids = list(curriculum_ids)
        if not ids:
            return 0
        stmt = (
            select(func.count(NoteRow.id))
            .join(ProjectRow, ProjectRow.id == NoteRow.project_id)
            .where(NoteRow.learner_id == learner_id, ProjectRow.curriculum_id.in_(ids))
        )
        return int((await self._session.execute(stmt)).scalar_one())
