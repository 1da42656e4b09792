"""PostgreSQL implementation of ProjectRepo."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.core.errors import IdentifierTakenError
from tracker.db.tables import ProjectRow
from tracker.models.project import Project, project_type_from_name


class PgProjectRepo:
    """Satisfies the ProjectRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, project_id: UUID) -> Project | None:
        stmt = select(ProjectRow).where(ProjectRow.id == project_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_project(row)

    async def list_by_curriculum(self, curriculum_id: UUID) -> list[Project]:
        return await self.list_by_curricula([curriculum_id])

    async def list_by_curricula(self, curriculum_ids: Iterable[UUID]) -> list[Project]:
        ids = list(curriculum_ids)
        if not ids:
            return []
        stmt = (
            select(ProjectRow)
            .where(ProjectRow.curriculum_id.in_(ids))
            .order_by(ProjectRow.position_order, ProjectRow.created_at)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_project(r) for r in rows]

    async def add(self, project: Project) -> None:
        row = ProjectRow(
            id=project.id,
            curriculum_id=project.curriculum_id,
            identifier=project.identifier,
            project_type=project.project_type.db_name,
            position_order=project.position_order,
            name=project.name,
            description=project.description,
            learning_objectives=list(project.learning_objectives),
            estimated_time=project.estimated_time,
            prerequisites=list(project.prerequisites),
            created_at=project.created_at,
            updated_at=project.updated_at,
        )
        self._session.add(row)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            if "uq_projects_identifier" in str(exc.orig):
                raise IdentifierTakenError(
                    project.curriculum_id, project.identifier
                ) from exc
            raise

    async def update(self, project: Project) -> None:
        # identifier and project_type are deliberately absent from SET
        stmt = (
            update(ProjectRow)
            .where(ProjectRow.id == project.id)
            .values(
                position_order=project.position_order,
                name=project.name,
                description=project.description,
                learning_objectives=list(project.learning_objectives),
                estimated_time=project.estimated_time,
                prerequisites=list(project.prerequisites),
                updated_at=project.updated_at,
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise KeyError("project not found")

    async def set_positions(self, positions: dict[UUID, int]) -> None:
        for project_id, order in positions.items():
            await self._session.execute(
                update(ProjectRow)
                .where(ProjectRow.id == project_id)
                .values(position_order=order, updated_at=func.now())
            )

    async def delete_many(self, project_ids: Iterable[UUID]) -> int:
        ids = list(project_ids)
        if not ids:
            return 0
        result = await self._session.execute(
            delete(ProjectRow).where(ProjectRow.id.in_(ids))
        )
        return result.rowcount


def _row_to_project(row: ProjectRow) -> Project:
    project_type = project_type_from_name(row.project_type)
    if project_type is None:
        raise ValueError(f"unknown project_type in database: {row.project_type!r}")
    return Project(
        id=row.id,
        curriculum_id=row.curriculum_id,
        identifier=row.identifier,
        project_type=project_type,
        position_order=row.position_order,
        name=row.name,
        prerequisites=tuple(row.prerequisites or ()),
        description=row.description or "",
        learning_objectives=tuple(row.learning_objectives or ()),
        estimated_time=row.estimated_time or "",
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
