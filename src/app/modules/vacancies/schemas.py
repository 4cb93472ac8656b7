"""
Vacancy Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Re-use enums from models (they work with Pydantic too!)
from app.modules.vacancies.models import ApplicationStatus, VacancyStatus


class ApplicationResponse(BaseModel):
    """A single application as seen by the applicant or a reviewer."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    teacher_id: UUID
    status: ApplicationStatus
    position: int
    applied_at: datetime
    decided_at: datetime | None = None


class VacancyResponse(BaseModel):
    """Vacancy content plus its workflow state."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    subject: str
    description: str | None = None
    requirements: str | None = None
    salary: str | None = None
    featured: bool = False
    status: VacancyStatus
    application_count: int = Field(..., ge=0)


class VacancyListResponse(BaseModel):
    vacancies: list[VacancyResponse]
    total: int


class ApplyResponse(BaseModel):
    """Response after applying to a vacancy."""

    message: str = "Application submitted successfully"
    vacancy_id: UUID
    vacancy_status: VacancyStatus
    application: ApplicationResponse
    applications: list[ApplicationResponse]


class ApplicationStatusUpdateRequest(BaseModel):
    """Request body for accepting or rejecting an application."""

    status: ApplicationStatus = Field(..., description="accepted or rejected")


class ApplicationStatusUpdateResponse(BaseModel):
    message: str
    vacancy_id: UUID
    vacancy_status: VacancyStatus
    application: ApplicationResponse
    applications: list[ApplicationResponse]
    rejected_application_ids: list[UUID] = Field(default_factory=list)


class VacancyStatusUpdateRequest(BaseModel):
    """Request body for opening or closing a vacancy by hand."""

    status: VacancyStatus


class ApplicantResponse(BaseModel):
    """An application joined with the applicant's profile."""

    application_id: UUID
    teacher_id: UUID
    status: ApplicationStatus
    applied_at: datetime
    decided_at: datetime | None = None
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    subjects: list[str] = Field(default_factory=list)
    fees: Decimal | None = None
    cv_url: str | None = None


class ApplicantListResponse(BaseModel):
    vacancy_id: UUID
    vacancy_status: VacancyStatus
    applicants: list[ApplicantResponse]


class TeacherApplicationResponse(BaseModel):
    """One of the caller's applications with the vacancy it targets."""

    id: UUID
    status: ApplicationStatus
    applied_at: datetime
    vacancy: VacancyResponse


class TeacherApplicationListResponse(BaseModel):
    applications: list[TeacherApplicationResponse]
