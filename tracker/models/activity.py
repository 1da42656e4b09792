from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from tracker.models.project import utcnow


@dataclass(frozen=True, slots=True)
class TimeEntry:
    """Append-only log of minutes spent on a project."""

    id: UUID
    learner_id: UUID
    project_id: UUID
    minutes: int
    logged_at: datetime
    description: str = ""
    created_at: datetime = field(default_factory=utcnow)

    @staticmethod
    def new(
        *,
        learner_id: UUID,
        project_id: UUID,
        minutes: int,
        logged_at: datetime | None = None,
        description: str = "",
    ) -> TimeEntry:
        now = utcnow()
        return TimeEntry(
            id=uuid4(),
            learner_id=learner_id,
            project_id=project_id,
            minutes=minutes,
            logged_at=logged_at or now,
            description=description,
            created_at=now,
        )


class NoteType(StrEnum):
    NOTE = "note"
    REFLECTION = "reflection"
    LEARNING = "learning"
    QUESTION = "question"


@dataclass(frozen=True, slots=True)
class Note:
    id: UUID
    learner_id: UUID
    project_id: UUID
    content: str
    title: str = ""
    note_type: NoteType = NoteType.NOTE
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @staticmethod
    def new(
        *,
        learner_id: UUID,
        project_id: UUID,
        content: str,
        title: str = "",
        note_type: NoteType = NoteType.NOTE,
    ) -> Note:
        now = utcnow()
        return Note(
            id=uuid4(),
            learner_id=learner_id,
            project_id=project_id,
            content=content,
            title=title,
            note_type=note_type,
            created_at=now,
            updated_at=now,
        )
