"""PostgreSQL implementation of CurriculumRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.tables import CurriculumRow
from tracker.models.curriculum import Curriculum


class PgCurriculumRepo:
    """Satisfies the CurriculumRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, curriculum_id: UUID) -> Curriculum | None:
        stmt = select(CurriculumRow).where(CurriculumRow.id == curriculum_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_curriculum(row)

    async def list_by_learner(self, learner_id: UUID) -> list[Curriculum]:
        stmt = (
            select(CurriculumRow)
            .where(CurriculumRow.learner_id == learner_id)
            .order_by(CurriculumRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_curriculum(r) for r in rows]

    async def add(self, curriculum: Curriculum) -> None:
        self._session.add(
            CurriculumRow(
                id=curriculum.id,
                learner_id=curriculum.learner_id,
                name=curriculum.name,
                description=curriculum.description,
                created_at=curriculum.created_at,
                updated_at=curriculum.updated_at,
            )
        )
        await self._session.flush()

    async def update(self, curriculum: Curriculum) -> None:
        stmt = (
            update(CurriculumRow)
            .where(CurriculumRow.id == curriculum.id)
            .values(
                name=curriculum.name,
                description=curriculum.description,
                updated_at=curriculum.updated_at,
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise KeyError("curriculum not found")

    async def delete(self, curriculum_id: UUID) -> bool:
        stmt = delete(CurriculumRow).where(CurriculumRow.id == curriculum_id)
        result = await self._session.execute(stmt)
        return result.rowcount > 0


def _row_to_curriculum(row: CurriculumRow) -> Curriculum:
    return Curriculum(
        id=row.id,
        learner_id=row.learner_id,
        name=row.name,
        description=row.description or "",
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
