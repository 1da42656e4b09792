"""Type-scoped project identifiers.

Sequential types get ``<prefix><n>`` where n is one plus the number of
projects of that type already in the curriculum (R1, R2, LB1, ...).
Singleton test types get the bare prefix (RT, BT) and at most one may
exist per curriculum.

``allocate_identifier`` works on a snapshot of the curriculum's projects
and is only meaningful while the caller holds the curriculum lock; the
unique (curriculum_id, identifier) constraint backs it up, and the project
service retries the whole transaction when the insert still collides.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tracker.core.errors import DuplicateSingletonError, InvalidProjectTypeError
from tracker.core.metrics import IDENTIFIER_ALLOCATIONS
from tracker.models.project import Project, ProjectType, project_type_from_name

logger = logging.getLogger(__name__)


def parse_project_type(raw: str | ProjectType) -> ProjectType:
    if isinstance(raw, ProjectType):
        return raw
    project_type = project_type_from_name(raw) if isinstance(raw, str) else None
    if project_type is None:
        raise InvalidProjectTypeError(
            f"invalid project type: {raw!r}",
            allowed=[t.value for t in ProjectType],
        )
    return project_type


def next_identifier(
    project_type: ProjectType, existing_count: int, taken: Iterable[str] = ()
) -> str:
    """Pure identifier rule; skips forward past identifiers already in use."""
    if project_type.is_singleton:
        return project_type.prefix
    used = set(taken)
    n = existing_count + 1
    while f"{project_type.prefix}{n}" in used:
        n += 1
    return f"{project_type.prefix}{n}"


def allocate_identifier(siblings: list[Project], project_type: ProjectType) -> str:
    same_type = [p for p in siblings if p.project_type == project_type]
    if project_type.is_singleton and same_type:
        IDENTIFIER_ALLOCATIONS.labels(outcome="duplicate_singleton").inc()
        logger.warning(
            "Rejected second %s in curriculum=%s",
            project_type.value,
            same_type[0].curriculum_id,
        )
        raise DuplicateSingletonError(
            f"curriculum already has a {project_type.value} project",
            identifier=project_type.prefix,
        )
    return next_identifier(
        project_type, len(same_type), (p.identifier for p in siblings)
    )
