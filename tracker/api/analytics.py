"""Analytics endpoints. Read-only; an empty account gets zeroed stats."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel

from tracker.api.activity import TimeEntryOut, time_entry_out
from tracker.api.dependencies import Learner, StoreDep
from tracker.services import analytics_service

router = APIRouter(prefix="/v1", tags=["analytics"])


class CurriculumAnalyticsOut(BaseModel):
    curriculum_id: UUID
    total_projects: int
    completed_projects: int
    total_time_spent: int
    completion_rate: float
    # ISO date -> minutes
    daily_breakdown: dict[str, int]
    # project identifier -> minutes
    project_breakdown: dict[str, int]
    weekly_average: float


class OverallAnalyticsOut(BaseModel):
    total_curricula: int
    total_projects: int
    completed_projects: int
    in_progress_projects: int
    total_time_minutes: int
    total_time_hours: float
    total_notes: int
    completion_rate: float
    projects_by_type: dict[str, int]
    completion_by_type: dict[str, float]
    weekly_time_spent: list[int]
    recent_activity: list[TimeEntryOut]


@router.get("/analytics", response_model=OverallAnalyticsOut)
async def learner_analytics(learner_id: Learner, store: StoreDep) -> OverallAnalyticsOut:
    s = await analytics_service.get_learner_analytics(store, learner_id)
    return OverallAnalyticsOut(
        total_curricula=s.total_curricula,
        total_projects=s.total_projects,
        completed_projects=s.completed_projects,
        in_progress_projects=s.in_progress_projects,
        total_time_minutes=s.total_time_minutes,
        total_time_hours=s.total_time_hours,
        total_notes=s.total_notes,
        completion_rate=s.completion_rate,
        projects_by_type={t.value: n for t, n in s.projects_by_type.items()},
        completion_by_type={t.value: r for t, r in s.completion_by_type.items()},
        weekly_time_spent=s.weekly_time_spent,
        recent_activity=[time_entry_out(e) for e in s.recent_activity],
    )


@router.get(
    "/curricula/{curriculum_id}/analytics", response_model=CurriculumAnalyticsOut
)
async def curriculum_analytics(
    curriculum_id: UUID, learner_id: Learner, store: StoreDep
) -> CurriculumAnalyticsOut:
    s = await analytics_service.get_curriculum_analytics(
        store, learner_id, curriculum_id
    )
    return CurriculumAnalyticsOut(
        curriculum_id=s.curriculum_id,
        total_projects=s.total_projects,
        completed_projects=s.completed_projects,
        total_time_spent=s.total_time_spent,
        completion_rate=s.completion_rate,
        daily_breakdown={d.isoformat(): m for d, m in sorted(s.daily_breakdown.items())},
        project_breakdown=s.project_breakdown,
        weekly_average=s.weekly_average,
    )
