"""PostgreSQL implementation of ProgressRepo."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.tables import ProgressRow
from tracker.models.progress import Progress, ProgressStatus


class PgProgressRepo:
    """Satisfies the ProgressRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, learner_id: UUID, project_id: UUID) -> Progress | None:
        stmt = select(ProgressRow).where(
            ProgressRow.learner_id == learner_id,
            ProgressRow.project_id == project_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _to_progress(_row_mapping(row))

    async def list_by_projects(
        self, learner_id: UUID, project_ids: Iterable[UUID]
    ) -> list[Progress]:
        ids = list(project_ids)
        if not ids:
            return []
        stmt = select(ProgressRow).where(
            ProgressRow.learner_id == learner_id,
            ProgressRow.project_id.in_(ids),
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_to_progress(_row_mapping(r)) for r in rows]

    async def upsert(self, progress: Progress) -> Progress:
        """INSERT ... ON CONFLICT (learner_id, project_id) DO UPDATE.

        started_at is COALESCEd so an existing value can never be replaced.
        """
        stmt = insert(ProgressRow).values(
            learner_id=progress.learner_id,
            project_id=progress.project_id,
            status=progress.status.value,
            completion_percentage=progress.completion_percentage,
            time_spent_minutes=progress.time_spent_minutes,
            started_at=progress.started_at,
            completed_at=progress.completed_at,
            created_at=progress.created_at,
            updated_at=progress.updated_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[ProgressRow.learner_id, ProgressRow.project_id],
            set_={
                "status": stmt.excluded.status,
                "completion_percentage": stmt.excluded.completion_percentage,
                "time_spent_minutes": stmt.excluded.time_spent_minutes,
                "started_at": func.coalesce(
                    ProgressRow.started_at, stmt.excluded.started_at
                ),
                "completed_at": stmt.excluded.completed_at,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(*ProgressRow.__table__.columns)
        result = await self._session.execute(stmt)
        return _to_progress(result.mappings().one())

    async def delete_by_projects(self, project_ids: Iterable[UUID]) -> int:
        ids = list(project_ids)
        if not ids:
            return 0
        result = await self._session.execute(
            delete(ProgressRow).where(ProgressRow.project_id.in_(ids))
        )
        return result.rowcount


def _row_mapping(row: ProgressRow) -> dict[str, Any]:
    return {c.key: getattr(row, c.key) for c in ProgressRow.__table__.columns}


def _to_progress(m: Mapping[str, Any]) -> Progress:
    return Progress(
        learner_id=m["learner_id"],
        project_id=m["project_id"],
        status=ProgressStatus(m["status"]),
        completion_percentage=m["completion_percentage"],
        started_at=m["started_at"],
        completed_at=m["completed_at"],
        time_spent_minutes=m["time_spent_minutes"] or 0,
        created_at=m["created_at"],
        updated_at=m["updated_at"],
    )
