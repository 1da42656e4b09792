"""Prerequisite ordering and delete-safety rules.

Every check here is a pure function over a snapshot of one curriculum's
projects. Callers take the snapshot inside the same transaction as the
write being guarded, after locking the curriculum.

Ordering rule: project P may list Q as a prerequisite only if Q is in the
same curriculum and Q.position_order < P.position_order. Equal orders are
rejected, which also rules out self-reference.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from uuid import UUID

from tracker.core.errors import (
    DependencyError,
    HasDependentsError,
    OutOfOrderPrerequisiteError,
    UnknownPrerequisiteError,
)
from tracker.core.metrics import DEPENDENCY_REJECTIONS
from tracker.models.project import Project

logger = logging.getLogger(__name__)


def _reject(exc: DependencyError) -> DependencyError:
    DEPENDENCY_REJECTIONS.labels(reason=exc.code).inc()
    logger.warning(
        "Dependency check failed: %s", exc.message, extra={"error_code": exc.code}
    )
    return exc


def normalize_prerequisites(raw: Iterable[str] | None) -> tuple[str, ...]:
    """Strip whitespace, drop blanks and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for item in raw or ():
        item = item.strip()
        if item:
            seen.setdefault(item, None)
    return tuple(seen)


def _order_map(
    projects: Iterable[Project], subject_id: UUID | None, subject_order: int
) -> dict[str, int]:
    orders: dict[str, int] = {}
    for p in projects:
        orders[p.identifier] = subject_order if p.id == subject_id else p.position_order
    return orders


def validate_prerequisites(
    projects: Iterable[Project],
    prerequisites: Iterable[str],
    subject_order: int,
    *,
    subject_id: UUID | None = None,
) -> None:
    """Raise unless every prerequisite exists and sorts strictly earlier.

    ``subject_id`` marks the project being updated; its own entry is taken
    at ``subject_order`` so a self-reference can never pass.
    """
    orders = _order_map(projects, subject_id, subject_order)
    for identifier in prerequisites:
        order = orders.get(identifier)
        if order is None:
            raise _reject(
                UnknownPrerequisiteError(
                    f"prerequisite {identifier!r} does not exist in this curriculum",
                    prerequisite=identifier,
                )
            )
        if order >= subject_order:
            raise _reject(
                OutOfOrderPrerequisiteError(
                    f"prerequisite {identifier!r} must come before this project",
                    prerequisite=identifier,
                    prerequisite_order=order,
                    subject_order=subject_order,
                )
            )


def find_dependents(projects: Iterable[Project], identifier: str) -> list[Project]:
    return [p for p in projects if identifier in p.prerequisites]


def ensure_deletable(projects: Iterable[Project], project: Project) -> None:
    dependents = [
        p for p in find_dependents(projects, project.identifier) if p.id != project.id
    ]
    if dependents:
        raise _reject(
            HasDependentsError(
                f"cannot delete project: {len(dependents)} other projects depend on it",
                dependent_count=len(dependents),
                dependents=[p.identifier for p in dependents],
            )
        )


def validate_reposition(
    projects: Iterable[Project], project: Project, new_order: int
) -> None:
    """Moving a project must keep it strictly before everything that needs it."""
    for dependent in find_dependents(projects, project.identifier):
        if dependent.id == project.id:
            continue
        if dependent.position_order <= new_order:
            raise _reject(
                OutOfOrderPrerequisiteError(
                    f"{project.identifier} must stay before dependent "
                    f"{dependent.identifier}",
                    prerequisite=project.identifier,
                    prerequisite_order=new_order,
                    subject_order=dependent.position_order,
                )
            )


def validate_ordering(projects: list[Project]) -> None:
    """Check every project of a curriculum against the ordering rule."""
    for p in projects:
        validate_prerequisites(
            projects, p.prerequisites, p.position_order, subject_id=p.id
        )
