"""create teachers, vacancies and vacancy_applications

Revision ID: a7c1e2d3f4b5
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration:
1. Creates the enum types for teacher, vacancy and application status
2. Creates the teachers read model
3. Creates vacancies with the optimistic-concurrency version column
4. Creates vacancy_applications with one row per (vacancy, teacher) and
   at most five positions per vacancy
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a7c1e2d3f4b5"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

teacher_status_enum = postgresql.ENUM(
    "pending", "approved", "rejected", name="teacher_status", create_type=False
)
vacancy_status_enum = postgresql.ENUM("open", "closed", name="vacancy_status", create_type=False)
application_status_enum = postgresql.ENUM(
    "pending", "accepted", "rejected", name="vacancy_application_status", create_type=False
)


def upgrade() -> None:
    """Create the vacancy workflow tables."""
    bind = op.get_bind()
    teacher_status_enum.create(bind, checkfirst=True)
    vacancy_status_enum.create(bind, checkfirst=True)
    application_status_enum.create(bind, checkfirst=True)

    op.create_table(
        "teachers",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column(
            "subjects",
            postgresql.ARRAY(sa.String(length=100)),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("fees", sa.Numeric(10, 2), nullable=True),
        sa.Column("cv_url", sa.String(length=500), nullable=True),
        sa.Column("status", teacher_status_enum, nullable=False, server_default="pending"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_teachers_email"), "teachers", ["email"], unique=True)

    op.create_table(
        "vacancies",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        # Content
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("subject", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("requirements", sa.Text(), nullable=True),
        sa.Column("salary", sa.String(length=100), nullable=True),
        sa.Column("featured", sa.Boolean(), nullable=False, server_default="false"),
        # Workflow state
        sa.Column("status", vacancy_status_enum, nullable=False, server_default="open"),
        sa.Column("application_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "application_count >= 0 AND application_count <= 5",
            name="ck_vacancies_application_count",
        ),
    )
    op.create_index("ix_vacancies_status", "vacancies", ["status"], unique=False)
    op.create_index(
        "ix_vacancies_featured_status", "vacancies", ["featured", "status"], unique=False
    )

    op.create_table(
        "vacancy_applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("vacancy_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("teacher_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", application_status_enum, nullable=False, server_default="pending"),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["vacancy_id"],
            ["vacancies.id"],
            name="fk_vacancy_applications_vacancy_id",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("vacancy_id", "teacher_id", name="uq_vacancy_applications_teacher"),
        sa.UniqueConstraint("vacancy_id", "position", name="uq_vacancy_applications_position"),
        sa.CheckConstraint(
            "position >= 1 AND position <= 5",
            name="ck_vacancy_applications_position",
        ),
    )
    op.create_index(
        "ix_vacancy_applications_teacher_id",
        "vacancy_applications",
        ["teacher_id"],
        unique=False,
    )


def downgrade() -> None:
    """Drop the vacancy workflow tables and enum types."""
    op.drop_index("ix_vacancy_applications_teacher_id", table_name="vacancy_applications")
    op.drop_table("vacancy_applications")

    op.drop_index("ix_vacancies_featured_status", table_name="vacancies")
    op.drop_index("ix_vacancies_status", table_name="vacancies")
    op.drop_table("vacancies")

    op.drop_index(op.f("ix_teachers_email"), table_name="teachers")
    op.drop_table("teachers")

    bind = op.get_bind()
    application_status_enum.drop(bind, checkfirst=True)
    vacancy_status_enum.drop(bind, checkfirst=True)
    teacher_status_enum.drop(bind, checkfirst=True)
