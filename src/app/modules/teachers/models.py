"""
Teacher Models

Read model of teacher accounts. Accounts and profiles are created and edited
by the account management side; the vacancy workflow only reads them to show
who applied.
"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.dialects.postgresql import ARRAY, ENUM, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class TeacherStatus(str, Enum):
    """Account review status of a teacher."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Teacher(Base):
    """Teacher account and public profile."""

    __tablename__ = "teachers"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Profile fields
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    subjects: Mapped[list[str]] = mapped_column(ARRAY(String(100)), nullable=False, default=list)
    fees: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    cv_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[TeacherStatus] = mapped_column(
        ENUM(
            TeacherStatus,
            name="teacher_status",
            create_type=True,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=TeacherStatus.PENDING,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Teacher(id={self.id}, email={self.email})>"
