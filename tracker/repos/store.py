"""Transactional store: the seam between services and persistence.

Services never touch repos directly; they open a transaction and use the
repos hanging off it::

    async with store.transaction() as tx:
        await tx.lock_curriculum(curriculum_id)
        projects = await tx.projects.list_by_curriculum(curriculum_id)
        ...

Locks taken through ``lock_curriculum`` / ``lock_progress`` are held until
the transaction ends. Two backends satisfy the Store protocol:

- InMemoryStore (this module): used when DATABASE_URL is unset and in tests.
  One asyncio.Lock per lock key.
- PgStore (tracker.repos.pg_store): PostgreSQL row locks and advisory
  transaction locks inside one session transaction.
"""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import AsyncIterator, Hashable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol
from uuid import UUID

from tracker.repos.activity_repo import (
    InMemoryNoteRepo,
    InMemoryTimeEntryRepo,
    NoteRepo,
    TimeEntryRepo,
)
from tracker.repos.analytics_repo import AnalyticsRepo, InMemoryAnalyticsRepo
from tracker.repos.curriculum_repo import CurriculumRepo, InMemoryCurriculumRepo
from tracker.repos.progress_repo import InMemoryProgressRepo, ProgressRepo
from tracker.repos.project_repo import InMemoryProjectRepo, ProjectRepo


class Transaction(Protocol):
    curricula: CurriculumRepo
    projects: ProjectRepo
    progress: ProgressRepo
    time_entries: TimeEntryRepo
    notes: NoteRepo
    analytics: AnalyticsRepo

    async def lock_curriculum(self, curriculum_id: UUID) -> None: ...
    async def lock_progress(self, learner_id: UUID, project_id: UUID) -> None: ...


class Store(Protocol):
    def transaction(self) -> AbstractAsyncContextManager[Transaction]: ...


class InMemoryTransaction:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._held: dict[Hashable, asyncio.Lock] = {}
        self.curricula = store.curricula
        self.projects = store.projects
        self.progress = store.progress
        self.time_entries = store.time_entries
        self.notes = store.notes
        self.analytics = store.analytics

    async def _acquire(self, key: Hashable) -> None:
        if key in self._held:
            return
        lock = self._store.lock_for(key)
        await lock.acquire()
        self._held[key] = lock

    async def lock_curriculum(self, curriculum_id: UUID) -> None:
        await self._acquire(("curriculum", curriculum_id))

    async def lock_progress(self, learner_id: UUID, project_id: UUID) -> None:
        await self._acquire(("progress", learner_id, project_id))

    def release_all(self) -> None:
        for lock in reversed(list(self._held.values())):
            lock.release()
        self._held.clear()


class InMemoryStore:
    """Process-local store.

    Writes apply immediately; services perform every check before their
    first write, so a failed operation leaves nothing behind.
    """

    def __init__(self) -> None:
        self.clear()

    def clear(self) -> None:
        """Drop every record and lock; used between tests."""
        self.curricula = InMemoryCurriculumRepo()
        self.projects = InMemoryProjectRepo()
        self.progress = InMemoryProgressRepo()
        self.time_entries = InMemoryTimeEntryRepo()
        self.notes = InMemoryNoteRepo()
        self.analytics = InMemoryAnalyticsRepo(
            self.projects, self.progress, self.time_entries, self.notes
        )
        # A lock lives only while some transaction holds or awaits it
        self._locks: weakref.WeakValueDictionary[Hashable, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryTransaction]:
        tx = InMemoryTransaction(self)
        try:
            yield tx
        finally:
            tx.release_all()
