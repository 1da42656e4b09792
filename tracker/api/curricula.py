"""Curriculum endpoints: CRUD plus per-curriculum stats in the listing."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from tracker.api.dependencies import Learner, StoreDep
from tracker.models.analytics import CurriculumStats
from tracker.models.curriculum import Curriculum
from tracker.services import curriculum_service

router = APIRouter(prefix="/v1/curricula", tags=["curricula"])


class CurriculumIn(BaseModel):
    name: str
    description: str = ""


class CurriculumPatchIn(BaseModel):
    name: str | None = None
    description: str | None = None


class CurriculumOut(BaseModel):
    id: UUID
    name: str
    description: str
    created_at: datetime
    updated_at: datetime


class CurriculumStatsOut(BaseModel):
    total_projects: int
    completed_projects: int
    total_time_spent: int
    completion_rate: float


class CurriculumSummaryOut(CurriculumOut):
    stats: CurriculumStatsOut


def curriculum_out(c: Curriculum) -> CurriculumOut:
    return CurriculumOut(
        id=c.id,
        name=c.name,
        description=c.description,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


def _summary_out(c: Curriculum, s: CurriculumStats) -> CurriculumSummaryOut:
    return CurriculumSummaryOut(
        **curriculum_out(c).model_dump(),
        stats=CurriculumStatsOut(
            total_projects=s.total_projects,
            completed_projects=s.completed_projects,
            total_time_spent=s.total_time_spent,
            completion_rate=s.completion_rate,
        ),
    )


@router.post("", response_model=CurriculumOut, status_code=status.HTTP_201_CREATED)
async def create_curriculum(
    payload: CurriculumIn, learner_id: Learner, store: StoreDep
) -> CurriculumOut:
    c = await curriculum_service.create_curriculum(
        store, learner_id, payload.name, payload.description
    )
    return curriculum_out(c)


@router.get("", response_model=list[CurriculumSummaryOut])
async def list_curricula(
    learner_id: Learner, store: StoreDep
) -> list[CurriculumSummaryOut]:
    rows = await curriculum_service.list_curricula(store, learner_id)
    return [_summary_out(c, s) for c, s in rows]


@router.get("/{curriculum_id}", response_model=CurriculumOut)
async def get_curriculum(
    curriculum_id: UUID, learner_id: Learner, store: StoreDep
) -> CurriculumOut:
    c = await curriculum_service.get_curriculum(store, learner_id, curriculum_id)
    return curriculum_out(c)


@router.patch("/{curriculum_id}", response_model=CurriculumOut)
async def update_curriculum(
    curriculum_id: UUID,
    payload: CurriculumPatchIn,
    learner_id: Learner,
    store: StoreDep,
) -> CurriculumOut:
    c = await curriculum_service.update_curriculum(
        store,
        learner_id,
        curriculum_id,
        name=payload.name,
        description=payload.description,
    )
    return curriculum_out(c)


@router.delete("/{curriculum_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_curriculum(
    curriculum_id: UUID, learner_id: Learner, store: StoreDep
) -> Response:
    await curriculum_service.delete_curriculum(store, learner_id, curriculum_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
