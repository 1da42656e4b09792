from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol
from uuid import UUID

from tracker.core.errors import IdentifierTakenError
from tracker.models.project import Project


class ProjectRepo(Protocol):
    async def get(self, project_id: UUID) -> Project | None: ...
    async def list_by_curriculum(self, curriculum_id: UUID) -> list[Project]: ...
    async def list_by_curricula(self, curriculum_ids: Iterable[UUID]) -> list[Project]: ...
    async def add(self, project: Project) -> None: ...
    async def update(self, project: Project) -> None: ...
    async def set_positions(self, positions: dict[UUID, int]) -> None: ...
    async def delete_many(self, project_ids: Iterable[UUID]) -> int: ...


def _ordering_key(p: Project) -> tuple:
    return (p.position_order, p.created_at)


class InMemoryProjectRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Project] = {}
        # Unique index on (curriculum_id, identifier)
        self._identifiers: dict[tuple[UUID, str], UUID] = {}

    async def get(self, project_id: UUID) -> Project | None:
        return self._by_id.get(project_id)

    async def list_by_curriculum(self, curriculum_id: UUID) -> list[Project]:
        found = [p for p in self._by_id.values() if p.curriculum_id == curriculum_id]
        return sorted(found, key=_ordering_key)

    async def list_by_curricula(self, curriculum_ids: Iterable[UUID]) -> list[Project]:
        wanted = set(curriculum_ids)
        found = [p for p in self._by_id.values() if p.curriculum_id in wanted]
        return sorted(found, key=_ordering_key)

    async def add(self, project: Project) -> None:
        key = (project.curriculum_id, project.identifier)
        if key in self._identifiers:
            raise IdentifierTakenError(project.curriculum_id, project.identifier)
        self._identifiers[key] = project.id
        self._by_id[project.id] = project

    async def update(self, project: Project) -> None:
        current = self._by_id.get(project.id)
        if current is None:
            raise KeyError("project not found")
        if current.identifier != project.identifier:
            raise ValueError("identifier is immutable")
        self._by_id[project.id] = project

    async def set_positions(self, positions: dict[UUID, int]) -> None:
        for project_id, order in positions.items():
            current = self._by_id[project_id]
            self._by_id[project_id] = replace(current, position_order=order)

    async def delete_many(self, project_ids: Iterable[UUID]) -> int:
        deleted = 0
        for project_id in list(project_ids):
            project = self._by_id.pop(project_id, None)
            if project is None:
                continue
            self._identifiers.pop((project.curriculum_id, project.identifier), None)
            deleted += 1
        return deleted
