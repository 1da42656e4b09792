"""Learner-scoped lookups shared by the services.

A record owned by another learner is reported exactly like a missing one.
"""

from __future__ import annotations

from uuid import UUID

from tracker.core.errors import CurriculumNotFoundError, ProjectNotFoundError
from tracker.models.curriculum import Curriculum
from tracker.models.project import Project
from tracker.repos.store import Transaction


async def owned_curriculum(
    tx: Transaction, learner_id: UUID, curriculum_id: UUID
) -> Curriculum:
    curriculum = await tx.curricula.get(curriculum_id)
    if curriculum is None or curriculum.learner_id != learner_id:
        raise CurriculumNotFoundError(
            "curriculum not found", curriculum_id=str(curriculum_id)
        )
    return curriculum


async def owned_project(tx: Transaction, learner_id: UUID, project_id: UUID) -> Project:
    project = await tx.projects.get(project_id)
    if project is not None:
        curriculum = await tx.curricula.get(project.curriculum_id)
        if curriculum is not None and curriculum.learner_id == learner_id:
            return project
    raise ProjectNotFoundError("project not found", project_id=str(project_id))
