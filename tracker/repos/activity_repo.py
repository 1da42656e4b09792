from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from tracker.models.activity import Note, TimeEntry


class TimeEntryRepo(Protocol):
    async def add(self, entry: TimeEntry) -> None: ...
    async def list_by_projects(
        self, learner_id: UUID, project_ids: Iterable[UUID]
    ) -> list[TimeEntry]: ...
    async def delete_by_projects(self, project_ids: Iterable[UUID]) -> int: ...


class NoteRepo(Protocol):
    async def get(self, note_id: UUID) -> Note | None: ...
    async def add(self, note: Note) -> None: ...
    async def update(self, note: Note) -> None: ...
    async def delete(self, note_id: UUID) -> bool: ...
    async def list_by_projects(
        self, learner_id: UUID, project_ids: Iterable[UUID]
    ) -> list[Note]: ...
    async def count_by_projects(
        self, learner_id: UUID, project_ids: Iterable[UUID]
    ) -> int: ...
    async def delete_by_projects(self, project_ids: Iterable[UUID]) -> int: ...


class InMemoryTimeEntryRepo:
    """Append-only: entries leave only through a project cascade."""

    def __init__(self) -> None:
        self._entries: list[TimeEntry] = []

    async def add(self, entry: TimeEntry) -> None:
        self._entries.append(entry)

    async def list_by_projects(
        self, learner_id: UUID, project_ids: Iterable[UUID]
    ) -> list[TimeEntry]:
        wanted = set(project_ids)
        found = [
            e
            for e in self._entries
            if e.learner_id == learner_id and e.project_id in wanted
        ]
        return sorted(found, key=lambda e: (e.logged_at, e.created_at), reverse=True)

    async def delete_by_projects(self, project_ids: Iterable[UUID]) -> int:
        wanted = set(project_ids)
        before = len(self._entries)
        self._entries[:] = [e for e in self._entries if e.project_id not in wanted]
        return before - len(self._entries)


class InMemoryNoteRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Note] = {}

    async def get(self, note_id: UUID) -> Note | None:
        return self._by_id.get(note_id)

    async def add(self, note: Note) -> None:
        self._by_id[note.id] = note

    async def update(self, note: Note) -> None:
        self._by_id[note.id] = note

    async def delete(self, note_id: UUID) -> bool:
        return self._by_id.pop(note_id, None) is not None

    async def list_by_projects(
        self, learner_id: UUID, project_ids: Iterable[UUID]
    ) -> list[Note]:
        wanted = set(project_ids)
        found = [
            n
            for n in self._by_id.values()
            if n.learner_id == learner_id and n.project_id in wanted
        ]
        return sorted(found, key=lambda n: n.created_at, reverse=True)

    async def count_by_projects(
        self, learner_id: UUID, project_ids: Iterable[UUID]
    ) -> int:
        return len(await self.list_by_projects(learner_id, project_ids))

    async def delete_by_projects(self, project_ids: Iterable[UUID]) -> int:
        wanted = set(project_ids)
        doomed = [nid for nid, n in self._by_id.items() if n.project_id in wanted]
        for nid in doomed:
            del self._by_id[nid]
        return len(doomed)
