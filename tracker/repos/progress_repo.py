from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol
from uuid import UUID

from tracker.models.progress import Progress


class ProgressRepo(Protocol):
    async def get(self, learner_id: UUID, project_id: UUID) -> Progress | None: ...
    async def list_by_projects(
        self, learner_id: UUID, project_ids: Iterable[UUID]
    ) -> list[Progress]: ...
    async def upsert(self, progress: Progress) -> Progress: ...
    async def delete_by_projects(self, project_ids: Iterable[UUID]) -> int: ...


class InMemoryProgressRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[UUID, UUID], Progress] = {}

    async def get(self, learner_id: UUID, project_id: UUID) -> Progress | None:
        return self._store.get((learner_id, project_id))

    async def list_by_projects(
        self, learner_id: UUID, project_ids: Iterable[UUID]
    ) -> list[Progress]:
        wanted = set(project_ids)
        return [
            p
            for (learner, project), p in self._store.items()
            if learner == learner_id and project in wanted
        ]

    async def upsert(self, progress: Progress) -> Progress:
        key = (progress.learner_id, progress.project_id)
        existing = self._store.get(key)
        stored = replace(
            progress,
            created_at=existing.created_at if existing else progress.created_at,
            persisted=True,
        )
        self._store[key] = stored
        return stored

    async def delete_by_projects(self, project_ids: Iterable[UUID]) -> int:
        wanted = set(project_ids)
        doomed = [key for key in self._store if key[1] in wanted]
        for key in doomed:
            del self._store[key]
        return len(doomed)
