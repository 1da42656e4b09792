from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from tracker.models.project import utcnow


class ProgressStatus(StrEnum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    ABANDONED = "abandoned"


@dataclass(frozen=True, slots=True)
class Progress:
    """One learner's state on one project.

    ``persisted`` is False for the synthesized default returned when no
    record exists yet.
    """

    learner_id: UUID
    project_id: UUID
    status: ProgressStatus = ProgressStatus.NOT_STARTED
    completion_percentage: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    time_spent_minutes: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    persisted: bool = True

    @staticmethod
    def default(*, learner_id: UUID, project_id: UUID) -> Progress:
        return Progress(learner_id=learner_id, project_id=project_id, persisted=False)
