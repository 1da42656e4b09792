"""PostgreSQL implementations of TimeEntryRepo and NoteRepo."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.db.tables import NoteRow, TimeEntryRow
from tracker.models.activity import Note, NoteType, TimeEntry


class PgTimeEntryRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, entry: TimeEntry) -> None:
        self._session.add(
            TimeEntryRow(
                id=entry.id,
                learner_id=entry.learner_id,
                project_id=entry.project_id,
                minutes=entry.minutes,
                description=entry.description,
                logged_at=entry.logged_at,
                created_at=entry.created_at,
            )
        )
        await self._session.flush()

    async def list_by_projects(
        self, learner_id: UUID, project_ids: Iterable[UUID]
    ) -> list[TimeEntry]:
        ids = list(project_ids)
        if not ids:
            return []
        stmt = (
            select(TimeEntryRow)
            .where(
                TimeEntryRow.learner_id == learner_id,
                TimeEntryRow.project_id.in_(ids),
            )
            .order_by(TimeEntryRow.logged_at.desc(), TimeEntryRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [row_to_entry(r) for r in rows]

    async def delete_by_projects(self, project_ids: Iterable[UUID]) -> int:
        ids = list(project_ids)
        if not ids:
            return 0
        result = await self._session.execute(
            delete(TimeEntryRow).where(TimeEntryRow.project_id.in_(ids))
        )
        return result.rowcount


class PgNoteRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, note_id: UUID) -> Note | None:
        stmt = select(NoteRow).where(NoteRow.id == note_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_note(row)

    async def add(self, note: Note) -> None:
        self._session.add(
            NoteRow(
                id=note.id,
                learner_id=note.learner_id,
                project_id=note.project_id,
                title=note.title,
                content=note.content,
                note_type=note.note_type.value,
                created_at=note.created_at,
                updated_at=note.updated_at,
            )
        )
        await self._session.flush()

    async def update(self, note: Note) -> None:
        await self._session.execute(
            update(NoteRow)
            .where(NoteRow.id == note.id)
            .values(
                title=note.title,
                content=note.content,
                note_type=note.note_type.value,
                updated_at=note.updated_at,
            )
        )

    async def delete(self, note_id: UUID) -> bool:
        result = await self._session.execute(delete(NoteRow).where(NoteRow.id == note_id))
        return result.rowcount > 0

    async def list_by_projects(
        self, learner_id: UUID, project_ids: Iterable[UUID]
    ) -> list[Note]:
        ids = list(project_ids)
        if not ids:
            return []
        stmt = (
            select(NoteRow)
            .where(NoteRow.learner_id == learner_id, NoteRow.project_id.in_(ids))
            .order_by(NoteRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_note(r) for r in rows]

    async def count_by_projects(
        self, learner_id: UUID, project_ids: Iterable[UUID]
    ) -> int:
        ids = list(project_ids)
        if not ids:
            return 0
        stmt = (
            select(func.count())
            .select_from(NoteRow)
            .where(NoteRow.learner_id == learner_id, NoteRow.project_id.in_(ids))
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def delete_by_projects(self, project_ids: Iterable[UUID]) -> int:
        ids = list(project_ids)
        if not ids:
            return 0
        result = await self._session.execute(
            delete(NoteRow).where(NoteRow.project_id.in_(ids))
        )
        return result.rowcount


def row_to_entry(row: TimeEntryRow) -> TimeEntry:
    return TimeEntry(
        id=row.id,
        learner_id=row.learner_id,
        project_id=row.project_id,
        minutes=row.minutes,
        logged_at=row.logged_at,
        description=row.description or "",
        created_at=row.created_at,
    )


def _row_to_note(row: NoteRow) -> Note:
    return Note(
        id=row.id,
        learner_id=row.learner_id,
        project_id=row.project_id,
        content=row.content,
        title=row.title or "",
        note_type=NoteType(row.note_type),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
