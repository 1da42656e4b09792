from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from tracker.models.project import utcnow


@dataclass(frozen=True, slots=True)
class Curriculum:
    id: UUID
    learner_id: UUID
    name: str
    description: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @staticmethod
    def new(
        *,
        learner_id: UUID,
        name: str,
        description: str = "",
        now: datetime | None = None,
    ) -> Curriculum:
        now = now or utcnow()
        return Curriculum(
            id=uuid4(),
            learner_id=learner_id,
            name=name,
            description=description,
            created_at=now,
            updated_at=now,
        )
