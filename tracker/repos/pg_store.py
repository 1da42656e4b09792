"""PostgreSQL implementation of the Store protocol.

Each transaction is one AsyncSession inside ``session.begin()``: commit on
success, rollback on any exception.

Locking:
- lock_curriculum: ``SELECT ... FOR UPDATE`` on the curricula row, so
  identifier allocation and ordering checks for one curriculum serialize.
- lock_progress: ``pg_advisory_xact_lock`` keyed on (learner, project). A
  row lock cannot be used here because the progress row may not exist yet.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tracker.core.errors import StorageError
from tracker.db.tables import CurriculumRow
from tracker.repos.pg_activity_repo import PgNoteRepo, PgTimeEntryRepo
from tracker.repos.pg_analytics_repo import PgAnalyticsRepo
from tracker.repos.pg_curriculum_repo import PgCurriculumRepo
from tracker.repos.pg_progress_repo import PgProgressRepo
from tracker.repos.pg_project_repo import PgProjectRepo

logger = logging.getLogger(__name__)


class PgTransaction:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.curricula = PgCurriculumRepo(session)
        self.projects = PgProjectRepo(session)
        self.progress = PgProgressRepo(session)
        self.time_entries = PgTimeEntryRepo(session)
        self.notes = PgNoteRepo(session)
        self.analytics = PgAnalyticsRepo(session)

    async def lock_curriculum(self, curriculum_id: UUID) -> None:
        stmt = (
            select(CurriculumRow.id)
            .where(CurriculumRow.id == curriculum_id)
            .with_for_update()
        )
        await self._session.execute(stmt)

    async def lock_progress(self, learner_id: UUID, project_id: UUID) -> None:
        key = f"progress:{learner_id}:{project_id}"
        await self._session.execute(
            select(func.pg_advisory_xact_lock(func.hashtext(key)))
        )


class PgStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PgTransaction]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield PgTransaction(session)
        except SQLAlchemyError as exc:
            logger.error("Store transaction failed: %s", exc.__class__.__name__)
            raise StorageError("storage operation failed") from exc
