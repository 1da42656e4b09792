"""create tracker tables

Revision ID: 3c1e9a7d2b40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c1e9a7d2b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

PROJECT_TYPES = (
    "root",
    "root_test",
    "base",
    "base_test",
    "lower_branch",
    "middle_branch",
    "upper_branch",
    "flower_milestone",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "curricula",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("learner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
    )
    op.create_index("ix_curricula_learner_id", "curricula", ["learner_id"])

    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "curriculum_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("curricula.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("identifier", sa.String(length=10), nullable=False),
        sa.Column(
            "project_type", sa.Enum(*PROJECT_TYPES, name="project_type"), nullable=False
        ),
        sa.Column("position_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "learning_objectives",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "estimated_time", sa.String(length=50), nullable=False, server_default=""
        ),
        sa.Column(
            "prerequisites",
            postgresql.ARRAY(sa.String(length=10)),
            nullable=False,
            server_default="{}",
        ),
        *_timestamps(),
        sa.UniqueConstraint(
            "curriculum_id", "identifier", name="uq_projects_identifier"
        ),
    )
    op.create_index(
        "ix_projects_curriculum_order", "projects", ["curriculum_id", "position_order"]
    )

    op.create_table(
        "project_progress",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("learner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "status", sa.String(length=20), nullable=False, server_default="not_started"
        ),
        sa.Column(
            "completion_percentage", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column(
            "time_spent_minutes", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "learner_id", "project_id", name="uq_progress_learner_project"
        ),
        sa.CheckConstraint(
            "completion_percentage BETWEEN 0 AND 100",
            name="ck_progress_percentage_range",
        ),
    )

    op.create_table(
        "time_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("learner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("minutes", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("logged_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("minutes > 0", name="ck_time_entries_positive"),
    )
    op.create_index("ix_time_entries_logged_at", "time_entries", ["logged_at"])
    op.create_index(
        "ix_time_entries_learner_project", "time_entries", ["learner_id", "project_id"]
    )

    op.create_table(
        "notes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("learner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("note_type", sa.String(length=20), nullable=False, server_default="note"),
        *_timestamps(),
    )
    op.create_index("ix_notes_learner_project", "notes", ["learner_id", "project_id"])


def downgrade() -> None:
    op.drop_index("ix_notes_learner_project", table_name="notes")
    op.drop_table("notes")
    op.drop_index("ix_time_entries_learner_project", table_name="time_entries")
    op.drop_index("ix_time_entries_logged_at", table_name="time_entries")
    op.drop_table("time_entries")
    op.drop_table("project_progress")
    op.drop_index("ix_projects_curriculum_order", table_name="projects")
    op.drop_table("projects")
    op.drop_index("ix_curricula_learner_id", table_name="curricula")
    op.drop_table("curricula")
    sa.Enum(name="project_type").drop(op.get_bind(), checkfirst=True)
