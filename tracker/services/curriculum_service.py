"""Curriculum CRUD. Deleting a curriculum removes everything under it."""

from __future__ import annotations

import logging
from dataclasses import replace
from uuid import UUID

from tracker.core.errors import ValidationError
from tracker.models.analytics import CurriculumStats
from tracker.models.curriculum import Curriculum
from tracker.models.project import utcnow
from tracker.repos.store import Store
from tracker.services.analytics_service import summarize_curriculum
from tracker.services.deadline import bounded
from tracker.services.ownership import owned_curriculum

logger = logging.getLogger(__name__)


def _require_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("name must be non-empty", field="name")
    return name


async def create_curriculum(
    store: Store,
    learner_id: UUID,
    name: str,
    description: str = "",
    *,
    timeout: float | None = None,
) -> Curriculum:
    curriculum = Curriculum.new(
        learner_id=learner_id, name=_require_name(name), description=description
    )

    async def _run() -> Curriculum:
        async with store.transaction() as tx:
            await tx.curricula.add(curriculum)
        logger.info(
            "Created curriculum %s",
            curriculum.id,
            extra={"learner_id": str(learner_id)},
        )
        return curriculum

    return await bounded(_run(), timeout=timeout)


async def get_curriculum(
    store: Store, learner_id: UUID, curriculum_id: UUID, *, timeout: float | None = None
) -> Curriculum:
    async def _run() -> Curriculum:
        async with store.transaction() as tx:
            return await owned_curriculum(tx, learner_id, curriculum_id)

    return await bounded(_run(), timeout=timeout)


async def list_curricula(
    store: Store, learner_id: UUID, *, timeout: float | None = None
) -> list[tuple[Curriculum, CurriculumStats]]:
    """Newest first, each paired with its rollup."""

    async def _run() -> list[tuple[Curriculum, CurriculumStats]]:
        async with store.transaction() as tx:
            curricula = await tx.curricula.list_by_learner(learner_id)
            ids = [c.id for c in curricula]
            rollup = await tx.analytics.project_rollup(learner_id, ids)
            minutes = await tx.analytics.minutes_by_curriculum(learner_id, ids)

        return [
            (c, summarize_curriculum(c.id, rollup, minutes.get(c.id, 0)))
            for c in curricula
        ]

    return await bounded(_run(), kind="analytics", timeout=timeout)


async def update_curriculum(
    store: Store,
    learner_id: UUID,
    curriculum_id: UUID,
    *,
    name: str | None = None,
    description: str | None = None,
    timeout: float | None = None,
) -> Curriculum:
    new_name = None if name is None else _require_name(name)

    async def _run() -> Curriculum:
        async with store.transaction() as tx:
            await tx.lock_curriculum(curriculum_id)
            current = await owned_curriculum(tx, learner_id, curriculum_id)
            updated = replace(
                current,
                name=current.name if new_name is None else new_name,
                description=(
                    current.description if description is None else description
                ),
                updated_at=utcnow(),
            )
            await tx.curricula.update(updated)
        logger.info("Updated curriculum %s", curriculum_id)
        return updated

    return await bounded(_run(), timeout=timeout)


async def delete_curriculum(
    store: Store, learner_id: UUID, curriculum_id: UUID, *, timeout: float | None = None
) -> None:
    async def _run() -> None:
        async with store.transaction() as tx:
            await tx.lock_curriculum(curriculum_id)
            await owned_curriculum(tx, learner_id, curriculum_id)
            projects = await tx.projects.list_by_curriculum(curriculum_id)
            ids = [p.id for p in projects]

            await tx.notes.delete_by_projects(ids)
            await tx.time_entries.delete_by_projects(ids)
            await tx.progress.delete_by_projects(ids)
            await tx.projects.delete_many(ids)
            await tx.curricula.delete(curriculum_id)

        logger.info(
            "Deleted curriculum %s with %d projects", curriculum_id, len(projects)
        )

    await bounded(_run(), timeout=timeout)
