from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from uuid import UUID

from tracker.models.activity import TimeEntry
from tracker.models.project import ProjectType

WEEKLY_WINDOW = 8
RECENT_ACTIVITY_LIMIT = 10


def week_start(moment: datetime) -> datetime:
    """Monday 00:00 UTC of the calendar week containing ``moment``.

    Naive datetimes are read as UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    day = moment.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
    return day - timedelta(days=day.weekday())


def utc_day(moment: datetime) -> date:
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(UTC).date()


@dataclass(frozen=True, slots=True)
class ProjectRollup:
    """One (curriculum, project type) group of the projects x progress join."""

    curriculum_id: UUID
    project_type: ProjectType
    total: int
    completed: int = 0
    in_progress: int = 0


@dataclass(frozen=True, slots=True)
class CurriculumStats:
    curriculum_id: UUID
    total_projects: int = 0
    completed_projects: int = 0
    total_time_spent: int = 0  # minutes
    completion_rate: float = 0.0
    # UTC day -> minutes
    daily_breakdown: dict[date, int] = field(default_factory=dict)
    # project identifier -> minutes
    project_breakdown: dict[str, int] = field(default_factory=dict)
    # Mean minutes over the days of the last seven that have entries.
    weekly_average: float = 0.0


@dataclass(frozen=True, slots=True)
class TypeBreakdown:
    projects_by_type: dict[ProjectType, int]
    completion_by_type: dict[ProjectType, float]


@dataclass(frozen=True, slots=True)
class OverallStats:
    total_curricula: int = 0
    total_projects: int = 0
    completed_projects: int = 0
    in_progress_projects: int = 0
    total_time_minutes: int = 0
    total_time_hours: float = 0.0
    total_notes: int = 0
    completion_rate: float = 0.0
    projects_by_type: dict[ProjectType, int] = field(default_factory=dict)
    completion_by_type: dict[ProjectType, float] = field(default_factory=dict)
    # Oldest week first; the last bucket is the current calendar week.
    weekly_time_spent: list[int] = field(
        default_factory=lambda: [0] * WEEKLY_WINDOW
    )
    recent_activity: list[TimeEntry] = field(default_factory=list)
