"""Progress endpoints.

GET on a project the learner has never touched answers with the
not_started default; nothing is written until the first PUT.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel

from tracker.api.dependencies import Learner, StoreDep
from tracker.models.progress import Progress
from tracker.services import progress_service

router = APIRouter(prefix="/v1", tags=["progress"])


class ProgressIn(BaseModel):
    status: str
    # Range is checked by the state machine so it reports its own error code
    completion_percentage: int | None = None


class ProgressOut(BaseModel):
    project_id: UUID
    status: str
    completion_percentage: int
    started_at: datetime | None
    completed_at: datetime | None
    time_spent_minutes: int
    updated_at: datetime | None


class ProjectProgressOut(ProgressOut):
    identifier: str
    position_order: int


def progress_out(p: Progress) -> ProgressOut:
    return ProgressOut(
        project_id=p.project_id,
        status=p.status.value,
        completion_percentage=p.completion_percentage,
        started_at=p.started_at,
        completed_at=p.completed_at,
        time_spent_minutes=p.time_spent_minutes,
        updated_at=p.updated_at if p.persisted else None,
    )


@router.get("/projects/{project_id}/progress", response_model=ProgressOut)
async def get_progress(
    project_id: UUID, learner_id: Learner, store: StoreDep
) -> ProgressOut:
    p = await progress_service.get_progress(store, learner_id, project_id)
    return progress_out(p)


@router.put("/projects/{project_id}/progress", response_model=ProgressOut)
async def update_progress(
    project_id: UUID, payload: ProgressIn, learner_id: Learner, store: StoreDep
) -> ProgressOut:
    p = await progress_service.update_progress(
        store,
        learner_id,
        project_id,
        payload.status,
        payload.completion_percentage,
    )
    return progress_out(p)


@router.get(
    "/curricula/{curriculum_id}/progress", response_model=list[ProjectProgressOut]
)
async def list_curriculum_progress(
    curriculum_id: UUID, learner_id: Learner, store: StoreDep
) -> list[ProjectProgressOut]:
    rows = await progress_service.list_curriculum_progress(
        store, learner_id, curriculum_id
    )
    return [
        ProjectProgressOut(
            **progress_out(progress).model_dump(),
            identifier=project.identifier,
            position_order=project.position_order,
        )
        for project, progress in rows
    ]
