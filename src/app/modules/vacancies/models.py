"""
Vacancy Models

Database models for vacancies and the applications filed against them.
Applications are a child table keyed by (vacancy_id, teacher_id) so that the
store itself rejects a second application from the same teacher.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

# Hard ceiling enforced by the schema. The service limit comes from settings
# and must never exceed this value.
MAX_APPLICATIONS_PER_VACANCY = 5


class VacancyStatus(str, enum.Enum):
    """Whether a vacancy accepts new applications."""

    OPEN = "open"
    CLOSED = "closed"


class ApplicationStatus(str, enum.Enum):
    """Review status of a single application."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# Valid status transitions - accepted and rejected are terminal
VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset({ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED}),
    ApplicationStatus.ACCEPTED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
}


class Vacancy(Base):
    """
    A posted job opening.

    Descriptive fields are owned by the content management side and are
    read-only here. The workflow only touches status, application_count
    and version.
    """

    __tablename__ = "vacancies"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Content (passthrough)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    salary: Mapped[str | None] = mapped_column(String(100), nullable=True)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Workflow state
    status: Mapped[VacancyStatus] = mapped_column(
        Enum(VacancyStatus, name="vacancy_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=VacancyStatus.OPEN,
    )
    application_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Bumped by every workflow write; conditional updates compare against it
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    applications: Mapped[list["VacancyApplication"]] = relationship(
        "VacancyApplication",
        back_populates="vacancy",
        cascade="all, delete-orphan",
        order_by="(VacancyApplication.applied_at, VacancyApplication.position)",
    )

    __table_args__ = (
        CheckConstraint(
            f"application_count >= 0 AND application_count <= {MAX_APPLICATIONS_PER_VACANCY}",
            name="ck_vacancies_application_count",
        ),
        Index("ix_vacancies_status", "status"),
        Index("ix_vacancies_featured_status", "featured", "status"),
    )


class VacancyApplication(Base):
    """
    One teacher's application to one vacancy.

    Never deleted; only its status changes.
    """

    __tablename__ = "vacancy_applications"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    vacancy_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("vacancies.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Reference into the identity side (teachers table); no FK so the
    # teacher account lifecycle stays independent
    teacher_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(
            ApplicationStatus,
            name="vacancy_application_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    # 1-based slot in insertion order
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    applied_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    vacancy: Mapped["Vacancy"] = relationship("Vacancy", back_populates="applications")

    __table_args__ = (
        UniqueConstraint("vacancy_id", "teacher_id", name="uq_vacancy_applications_teacher"),
        UniqueConstraint("vacancy_id", "position", name="uq_vacancy_applications_position"),
        CheckConstraint(
            f"position >= 1 AND position <= {MAX_APPLICATIONS_PER_VACANCY}",
            name="ck_vacancy_applications_position",
        ),
        Index("ix_vacancy_applications_teacher_id", "teacher_id"),
    )
