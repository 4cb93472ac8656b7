"""
Vacancy Workflow Errors

Typed failures of the vacancy workflow. Each carries a stable error code and
the HTTP status the routers map it to.
"""

from uuid import UUID

from app.modules.vacancies.models import (
    VALID_STATUS_TRANSITIONS,
    ApplicationStatus,
    VacancyStatus,
)


class VacancyServiceError(Exception):
    """Base exception for vacancy workflow errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class VacancyNotFoundError(VacancyServiceError):
    """Raised when a vacancy does not exist."""

    def __init__(self, vacancy_id: UUID | None = None):
        self.vacancy_id = vacancy_id
        message = f"Vacancy {vacancy_id} not found" if vacancy_id else "Vacancy not found"
        super().__init__(
            message=message,
            error_code="VACANCY_NOT_FOUND",
            status_code=404,
        )


class ApplicationNotFoundError(VacancyServiceError):
    """Raised when an application is not part of the given vacancy."""

    def __init__(self, application_id: UUID | None = None):
        self.application_id = application_id
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(
            message=message,
            error_code="APPLICATION_NOT_FOUND",
            status_code=404,
        )


class DuplicateApplicationError(VacancyServiceError):
    """Raised when the teacher already holds an application on the vacancy."""

    def __init__(self, vacancy_id: UUID, teacher_id: UUID):
        self.vacancy_id = vacancy_id
        self.teacher_id = teacher_id
        super().__init__(
            message="You have already applied for this vacancy",
            error_code="DUPLICATE_APPLICATION",
            status_code=409,
        )


class VacancyClosedError(VacancyServiceError):
    """Raised when applying to a vacancy that no longer accepts applications."""

    def __init__(
        self,
        vacancy_id: UUID,
        message: str = "This vacancy is closed",
        error_code: str = "VACANCY_CLOSED",
    ):
        self.vacancy_id = vacancy_id
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=409,
        )


class CapacityExceededError(VacancyClosedError):
    """
    Raised when the vacancy already holds the maximum number of applications.

    A full vacancy is closed for good, so this is a more specific
    VacancyClosedError.
    """

    def __init__(self, vacancy_id: UUID, max_applications: int):
        self.max_applications = max_applications
        super().__init__(
            vacancy_id,
            message=f"This vacancy has reached the maximum of {max_applications} applications",
            error_code="CAPACITY_EXCEEDED",
        )


class InvalidTransitionError(VacancyServiceError):
    """Raised when an application status change is not allowed."""

    def __init__(self, current_status: ApplicationStatus, new_status: ApplicationStatus | str):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, frozenset())
        target = new_status.value if isinstance(new_status, ApplicationStatus) else str(new_status)
        super().__init__(
            message=(
                f"Invalid status transition: {current_status.value} -> {target}. "
                f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
            ),
            error_code="INVALID_TRANSITION",
            status_code=409,
        )


class ConflictingAcceptanceError(VacancyServiceError):
    """
    Raised when a vacancy already holds an accepted application.

    This is a data integrity fault, not a client mistake.
    """

    def __init__(self, vacancy_id: UUID, accepted_application_id: UUID):
        self.vacancy_id = vacancy_id
        self.accepted_application_id = accepted_application_id
        super().__init__(
            message=(
                f"Vacancy {vacancy_id} already has accepted application "
                f"{accepted_application_id}"
            ),
            error_code="CONFLICTING_ACCEPTANCE",
            status_code=500,
        )


class VacancyStatusConflictError(VacancyServiceError):
    """Raised when an administrative status override would break the workflow."""

    def __init__(self, vacancy_id: UUID, requested: VacancyStatus):
        self.vacancy_id = vacancy_id
        self.requested = requested
        super().__init__(
            message=(
                f"Vacancy {vacancy_id} cannot be set to {requested.value}: "
                "an application has already been accepted"
            ),
            error_code="VACANCY_STATUS_CONFLICT",
            status_code=409,
        )


class StoreConflictError(VacancyServiceError):
    """Raised when a conditional write lost a race with a concurrent write."""

    def __init__(self, vacancy_id: UUID, message: str | None = None):
        self.vacancy_id = vacancy_id
        super().__init__(
            message=message or f"Vacancy {vacancy_id} was modified concurrently",
            error_code="STORE_CONFLICT",
            status_code=503,
        )
