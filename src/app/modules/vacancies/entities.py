"""
Vacancy Entities

Immutable snapshots of a vacancy and its applications as read from the store.
The workflow rules operate on these, never on live ORM objects, so a decision
is always computed against one consistent version of the vacancy.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from app.modules.vacancies.models import ApplicationStatus, VacancyStatus


@dataclass(frozen=True)
class ApplicationSnapshot:
    id: UUID
    vacancy_id: UUID
    teacher_id: UUID
    status: ApplicationStatus
    position: int
    applied_at: datetime
    decided_at: datetime | None = None


@dataclass(frozen=True)
class VacancySnapshot:
    """
    A vacancy at a given version.

    Attributes:
        version: Store version the snapshot was read at; conditional writes
            commit only if the stored version still matches
        applications: Applications ordered by applied_at ascending
    """

    id: UUID
    title: str
    subject: str
    status: VacancyStatus
    version: int
    description: str | None = None
    requirements: str | None = None
    salary: str | None = None
    featured: bool = False
    applications: tuple[ApplicationSnapshot, ...] = field(default_factory=tuple)

    @property
    def application_count(self) -> int:
        return len(self.applications)

    def find_application(self, application_id: UUID) -> ApplicationSnapshot | None:
        for application in self.applications:
            if application.id == application_id:
                return application
        return None

    def application_of(self, teacher_id: UUID) -> ApplicationSnapshot | None:
        for application in self.applications:
            if application.teacher_id == teacher_id:
                return application
        return None
