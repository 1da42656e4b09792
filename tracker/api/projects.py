"""Project endpoints.

Creation, prerequisite dry-runs and reordering are scoped to a curriculum
(/v1/curricula/{id}/projects...); reads, edits and deletes address the
project directly (/v1/projects/{id}).
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from tracker.api.dependencies import Learner, StoreDep
from tracker.models.project import Project
from tracker.services import progress_service, project_service

router = APIRouter(prefix="/v1", tags=["projects"])


class ProjectIn(BaseModel):
    project_type: str
    position_order: int
    name: str
    prerequisites: list[str] = []
    description: str = ""
    learning_objectives: list[str] = []
    estimated_time: str = ""


class ProjectPatchIn(BaseModel):
    name: str | None = None
    description: str | None = None
    learning_objectives: list[str] | None = None
    estimated_time: str | None = None
    position_order: int | None = None
    prerequisites: list[str] | None = None


class PrerequisiteCheckIn(BaseModel):
    prerequisites: list[str]
    position_order: int


class ReorderIn(BaseModel):
    project_ids: list[UUID]


class ProjectOut(BaseModel):
    id: UUID
    curriculum_id: UUID
    identifier: str
    project_type: str
    position_order: int
    name: str
    prerequisites: list[str]
    description: str
    learning_objectives: list[str]
    estimated_time: str
    created_at: datetime
    updated_at: datetime


class CanStartOut(BaseModel):
    can_start: bool
    missing_prerequisites: list[str]


def project_out(p: Project) -> ProjectOut:
    return ProjectOut(
        id=p.id,
        curriculum_id=p.curriculum_id,
        identifier=p.identifier,
        project_type=p.project_type.value,
        position_order=p.position_order,
        name=p.name,
        prerequisites=list(p.prerequisites),
        description=p.description,
        learning_objectives=list(p.learning_objectives),
        estimated_time=p.estimated_time,
        created_at=p.created_at,
        updated_at=p.updated_at,
    )


# ---------------------------------------------------------------------------
# Curriculum-scoped
# ---------------------------------------------------------------------------


@router.post(
    "/curricula/{curriculum_id}/projects",
    response_model=ProjectOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_project(
    curriculum_id: UUID, payload: ProjectIn, learner_id: Learner, store: StoreDep
) -> ProjectOut:
    p = await project_service.create_project(
        store,
        learner_id,
        curriculum_id,
        project_type=payload.project_type,
        position_order=payload.position_order,
        name=payload.name,
        prerequisites=payload.prerequisites,
        description=payload.description,
        learning_objectives=payload.learning_objectives,
        estimated_time=payload.estimated_time,
    )
    return project_out(p)


@router.get("/curricula/{curriculum_id}/projects", response_model=list[ProjectOut])
async def list_projects(
    curriculum_id: UUID, learner_id: Learner, store: StoreDep
) -> list[ProjectOut]:
    projects = await project_service.list_projects(store, learner_id, curriculum_id)
    return [project_out(p) for p in projects]


@router.post("/curricula/{curriculum_id}/projects/validate-prerequisites")
async def validate_prerequisites(
    curriculum_id: UUID,
    payload: PrerequisiteCheckIn,
    learner_id: Learner,
    store: StoreDep,
) -> dict:
    await project_service.validate_prerequisites(
        store,
        learner_id,
        curriculum_id,
        payload.prerequisites,
        payload.position_order,
    )
    return {"valid": True}


@router.put(
    "/curricula/{curriculum_id}/projects/order", response_model=list[ProjectOut]
)
async def reorder_projects(
    curriculum_id: UUID, payload: ReorderIn, learner_id: Learner, store: StoreDep
) -> list[ProjectOut]:
    projects = await project_service.reorder_projects(
        store, learner_id, curriculum_id, payload.project_ids
    )
    return [project_out(p) for p in projects]


# ---------------------------------------------------------------------------
# Project-scoped
# ---------------------------------------------------------------------------


@router.get("/projects/{project_id}", response_model=ProjectOut)
async def get_project(
    project_id: UUID, learner_id: Learner, store: StoreDep
) -> ProjectOut:
    return project_out(await project_service.get_project(store, learner_id, project_id))


@router.patch("/projects/{project_id}", response_model=ProjectOut)
async def update_project(
    project_id: UUID, payload: ProjectPatchIn, learner_id: Learner, store: StoreDep
) -> ProjectOut:
    p = await project_service.update_project(
        store,
        learner_id,
        project_id,
        name=payload.name,
        description=payload.description,
        learning_objectives=payload.learning_objectives,
        estimated_time=payload.estimated_time,
        position_order=payload.position_order,
        prerequisites=payload.prerequisites,
    )
    return project_out(p)


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: UUID, learner_id: Learner, store: StoreDep
) -> Response:
    await project_service.delete_project(store, learner_id, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/projects/{project_id}/can-start", response_model=CanStartOut)
async def can_start_project(
    project_id: UUID, learner_id: Learner, store: StoreDep
) -> CanStartOut:
    ok, missing = await progress_service.can_start_project(
        store, learner_id, project_id
    )
    return CanStartOut(can_start=ok, missing_prerequisites=missing)
