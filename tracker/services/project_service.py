"""Project lifecycle: allocate + validate + insert, update, reorder, delete.

Every write runs in one store transaction holding the curriculum lock, and
the dependency checks read their snapshot inside that same transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from uuid import UUID

from tracker.core.config import SETTINGS
from tracker.core.errors import (
    IdentifierConflictError,
    IdentifierTakenError,
    ValidationError,
)
from tracker.core.metrics import IDENTIFIER_ALLOCATIONS
from tracker.models.project import Project, ProjectType, utcnow
from tracker.repos.store import Store
from tracker.services.deadline import bounded
from tracker.services.dependency_validator import (
    ensure_deletable,
    normalize_prerequisites,
    validate_ordering,
    validate_prerequisites as check_prerequisites,
    validate_reposition,
)
from tracker.services.identifier_allocator import (
    allocate_identifier,
    parse_project_type,
)
from tracker.services.ownership import owned_curriculum, owned_project

logger = logging.getLogger(__name__)


def _require_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("name must be non-empty", field="name")
    return name


# ---------------------------------------------------------------------------
# AllocateAndCreateProject
# ---------------------------------------------------------------------------


async def create_project(
    store: Store,
    learner_id: UUID,
    curriculum_id: UUID,
    *,
    project_type: str | ProjectType,
    position_order: int,
    name: str,
    prerequisites: Iterable[str] = (),
    description: str = "",
    learning_objectives: Sequence[str] = (),
    estimated_time: str = "",
    timeout: float | None = None,
) -> Project:
    ptype = parse_project_type(project_type)
    name = _require_name(name)
    prereqs = normalize_prerequisites(prerequisites)
    return await bounded(
        _create_with_retry(
            store,
            learner_id,
            curriculum_id,
            ptype,
            position_order,
            name,
            prereqs,
            description,
            tuple(learning_objectives),
            estimated_time,
        ),
        timeout=timeout,
    )


async def _create_with_retry(
    store: Store,
    learner_id: UUID,
    curriculum_id: UUID,
    project_type: ProjectType,
    position_order: int,
    name: str,
    prerequisites: tuple[str, ...],
    description: str,
    learning_objectives: tuple[str, ...],
    estimated_time: str,
) -> Project:
    attempts = SETTINGS.identifier_allocation_retries
    for attempt in range(1, attempts + 1):
        try:
            async with store.transaction() as tx:
                await tx.lock_curriculum(curriculum_id)
                await owned_curriculum(tx, learner_id, curriculum_id)
                siblings = await tx.projects.list_by_curriculum(curriculum_id)

                identifier = allocate_identifier(siblings, project_type)
                check_prerequisites(siblings, prerequisites, position_order)

                project = Project.new(
                    curriculum_id=curriculum_id,
                    identifier=identifier,
                    project_type=project_type,
                    position_order=position_order,
                    name=name,
                    prerequisites=prerequisites,
                    description=description,
                    learning_objectives=learning_objectives,
                    estimated_time=estimated_time,
                )
                await tx.projects.add(project)
        except IdentifierTakenError as exc:
            IDENTIFIER_ALLOCATIONS.labels(outcome="retried").inc()
            logger.warning(
                "Identifier %s taken in curriculum=%s (attempt %d/%d)",
                exc.identifier,
                curriculum_id,
                attempt,
                attempts,
            )
            continue

        IDENTIFIER_ALLOCATIONS.labels(outcome="allocated").inc()
        logger.info(
            "Created project %s type=%s curriculum=%s",
            project.identifier,
            project_type.value,
            curriculum_id,
        )
        return project

    IDENTIFIER_ALLOCATIONS.labels(outcome="exhausted").inc()
    raise IdentifierConflictError(
        "could not allocate a unique identifier, retry the request",
        attempts=attempts,
    )


# ---------------------------------------------------------------------------
# ValidatePrerequisites
# ---------------------------------------------------------------------------


async def validate_prerequisites(
    store: Store,
    learner_id: UUID,
    curriculum_id: UUID,
    prerequisites: Iterable[str],
    subject_order: int,
    *,
    timeout: float | None = None,
) -> None:
    """Dry-run of the ordering check; raises a DependencyError or returns None."""
    prereqs = normalize_prerequisites(prerequisites)

    async def _run() -> None:
        async with store.transaction() as tx:
            await owned_curriculum(tx, learner_id, curriculum_id)
            siblings = await tx.projects.list_by_curriculum(curriculum_id)
            check_prerequisites(siblings, prereqs, subject_order)

    await bounded(_run(), timeout=timeout)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_project(
    store: Store, learner_id: UUID, project_id: UUID, *, timeout: float | None = None
) -> Project:
    async def _run() -> Project:
        async with store.transaction() as tx:
            return await owned_project(tx, learner_id, project_id)

    return await bounded(_run(), timeout=timeout)


async def list_projects(
    store: Store,
    learner_id: UUID,
    curriculum_id: UUID,
    *,
    timeout: float | None = None,
) -> list[Project]:
    async def _run() -> list[Project]:
        async with store.transaction() as tx:
            await owned_curriculum(tx, learner_id, curriculum_id)
            return await tx.projects.list_by_curriculum(curriculum_id)

    return await bounded(_run(), timeout=timeout)


# ---------------------------------------------------------------------------
# Update / reorder
# ---------------------------------------------------------------------------


async def update_project(
    store: Store,
    learner_id: UUID,
    project_id: UUID,
    *,
    name: str | None = None,
    description: str | None = None,
    learning_objectives: Sequence[str] | None = None,
    estimated_time: str | None = None,
    position_order: int | None = None,
    prerequisites: Iterable[str] | None = None,
    timeout: float | None = None,
) -> Project:
    """Update in place. The identifier and project type never change."""

    async def _run() -> Project:
        async with store.transaction() as tx:
            current = await owned_project(tx, learner_id, project_id)
            await tx.lock_curriculum(current.curriculum_id)
            # Re-read under the lock
            current = await owned_project(tx, learner_id, project_id)
            siblings = await tx.projects.list_by_curriculum(current.curriculum_id)

            new_order = (
                current.position_order if position_order is None else position_order
            )
            new_prereqs = (
                current.prerequisites
                if prerequisites is None
                else normalize_prerequisites(prerequisites)
            )
            check_prerequisites(
                siblings, new_prereqs, new_order, subject_id=current.id
            )
            if new_order != current.position_order:
                validate_reposition(siblings, current, new_order)

            updated = replace(
                current,
                name=current.name if name is None else _require_name(name),
                description=current.description if description is None else description,
                learning_objectives=(
                    current.learning_objectives
                    if learning_objectives is None
                    else tuple(learning_objectives)
                ),
                estimated_time=(
                    current.estimated_time if estimated_time is None else estimated_time
                ),
                position_order=new_order,
                prerequisites=new_prereqs,
                updated_at=utcnow(),
            )
            await tx.projects.update(updated)

        logger.info("Updated project %s id=%s", updated.identifier, updated.id)
        return updated

    return await bounded(_run(), timeout=timeout)


async def reorder_projects(
    store: Store,
    learner_id: UUID,
    curriculum_id: UUID,
    ordered_project_ids: Sequence[UUID],
    *,
    timeout: float | None = None,
) -> list[Project]:
    """Renumber positions 1..n in the given order, atomically."""

    async def _run() -> list[Project]:
        async with store.transaction() as tx:
            await tx.lock_curriculum(curriculum_id)
            await owned_curriculum(tx, learner_id, curriculum_id)
            siblings = await tx.projects.list_by_curriculum(curriculum_id)

            by_id = {p.id: p for p in siblings}
            if len(ordered_project_ids) != len(by_id) or set(
                ordered_project_ids
            ) != set(by_id):
                raise ValidationError(
                    "order must list every project of the curriculum exactly once",
                    field="project_ids",
                )

            positions = {pid: i for i, pid in enumerate(ordered_project_ids, start=1)}
            reordered = [
                replace(by_id[pid], position_order=positions[pid])
                for pid in ordered_project_ids
            ]
            validate_ordering(reordered)
            await tx.projects.set_positions(positions)

        logger.info(
            "Reordered %d projects in curriculum=%s", len(reordered), curriculum_id
        )
        return reordered

    return await bounded(_run(), timeout=timeout)


# ---------------------------------------------------------------------------
# DeleteProject
# ---------------------------------------------------------------------------


async def delete_project(
    store: Store, learner_id: UUID, project_id: UUID, *, timeout: float | None = None
) -> None:
    async def _run() -> None:
        async with store.transaction() as tx:
            project = await owned_project(tx, learner_id, project_id)
            await tx.lock_curriculum(project.curriculum_id)
            siblings = await tx.projects.list_by_curriculum(project.curriculum_id)
            ensure_deletable(siblings, project)

            await tx.notes.delete_by_projects([project.id])
            await tx.time_entries.delete_by_projects([project.id])
            await tx.progress.delete_by_projects([project.id])
            await tx.projects.delete_many([project.id])

        logger.info(
            "Deleted project %s curriculum=%s", project.identifier, project.curriculum_id
        )

    await bounded(_run(), timeout=timeout)
