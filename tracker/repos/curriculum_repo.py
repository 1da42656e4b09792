from __future__ import annotations

from typing import Protocol
from uuid import UUID

from tracker.models.curriculum import Curriculum


class CurriculumRepo(Protocol):
    async def get(self, curriculum_id: UUID) -> Curriculum | None: ...
    async def list_by_learner(self, learner_id: UUID) -> list[Curriculum]: ...
    async def add(self, curriculum: Curriculum) -> None: ...
    async def update(self, curriculum: Curriculum) -> None: ...
    async def delete(self, curriculum_id: UUID) -> bool: ...


class InMemoryCurriculumRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Curriculum] = {}

    async def get(self, curriculum_id: UUID) -> Curriculum | None:
        return self._by_id.get(curriculum_id)

    async def list_by_learner(self, learner_id: UUID) -> list[Curriculum]:
        found = [c for c in self._by_id.values() if c.learner_id == learner_id]
        return sorted(found, key=lambda c: c.created_at, reverse=True)

    async def add(self, curriculum: Curriculum) -> None:
        self._by_id[curriculum.id] = curriculum

    async def update(self, curriculum: Curriculum) -> None:
        if curriculum.id not in self._by_id:
            raise KeyError("curriculum not found")
        self._by_id[curriculum.id] = curriculum

    async def delete(self, curriculum_id: UUID) -> bool:
        return self._by_id.pop(curriculum_id, None) is not None
