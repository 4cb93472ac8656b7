"""
Vacancy Workflow Rules

Pure decision functions for the application workflow:
1. Duplicate guard - one application per teacher per vacancy
2. Capacity gate - at most N applications, auto-close on the Nth
3. Application state machine - pending -> accepted | rejected
4. Cascade resolver - accepting one application rejects the pending
   siblings and closes the vacancy

None of these touch the store. They return decisions that the store commits
atomically against the snapshot version they were computed from.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from app.modules.vacancies.entities import ApplicationSnapshot, VacancySnapshot
from app.modules.vacancies.errors import (
    ApplicationNotFoundError,
    CapacityExceededError,
    ConflictingAcceptanceError,
    DuplicateApplicationError,
    InvalidTransitionError,
    VacancyClosedError,
)
from app.modules.vacancies.models import (
    MAX_APPLICATIONS_PER_VACANCY,
    VALID_STATUS_TRANSITIONS,
    ApplicationStatus,
    VacancyStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppendDecision:
    """A new application to append, and whether the append fills the vacancy."""

    application: ApplicationSnapshot
    close_vacancy: bool


@dataclass(frozen=True)
class StatusChange:
    application_id: UUID
    new_status: ApplicationStatus


@dataclass(frozen=True)
class CascadeDecision:
    """
    Status changes to commit as one unit.

    Attributes:
        changes: Target change first, then sibling rejections in applied_at order
        close_vacancy: Whether the vacancy must end up closed
    """

    changes: tuple[StatusChange, ...]
    close_vacancy: bool


def check_not_duplicate(vacancy: VacancySnapshot, teacher_id: UUID) -> None:
    """
    Reject a teacher who already applied, whatever that application's status.

    A rejected teacher may not reapply to the same vacancy.

    Raises:
        DuplicateApplicationError: If the teacher already has an application
    """
    if vacancy.application_of(teacher_id) is not None:
        raise DuplicateApplicationError(vacancy.id, teacher_id)


def admit(
    vacancy: VacancySnapshot,
    teacher_id: UUID,
    *,
    now: datetime,
    max_applications: int = MAX_APPLICATIONS_PER_VACANCY,
) -> AppendDecision:
    """
    Decide whether a new application may be appended.

    Every application counts towards capacity, rejected ones included, so a
    vacancy closed by reaching capacity never takes new applicants again.

    Args:
        vacancy: Snapshot the decision is based on
        teacher_id: Applicant
        now: Timestamp recorded as applied_at
        max_applications: Capacity limit

    Returns:
        AppendDecision for a new pending application

    Raises:
        CapacityExceededError: If the vacancy is already full
        VacancyClosedError: If the vacancy is not open
    """
    count = vacancy.application_count

    if count >= max_applications:
        raise CapacityExceededError(vacancy.id, max_applications)

    if vacancy.status != VacancyStatus.OPEN:
        raise VacancyClosedError(vacancy.id)

    application = ApplicationSnapshot(
        id=uuid.uuid4(),
        vacancy_id=vacancy.id,
        teacher_id=teacher_id,
        status=ApplicationStatus.PENDING,
        position=count + 1,
        applied_at=now,
    )
    return AppendDecision(application=application, close_vacancy=count + 1 >= max_applications)


def transition(
    application: ApplicationSnapshot,
    target: ApplicationStatus | str,
) -> ApplicationStatus:
    """
    Validate a status change for one application.

    Args:
        application: Application whose status would change
        target: Requested status (enum or raw value)

    Returns:
        The target status as an ApplicationStatus

    Raises:
        InvalidTransitionError: If the target is unknown or not reachable
    """
    try:
        new_status = ApplicationStatus(target)
    except ValueError as e:
        raise InvalidTransitionError(application.status, str(target)) from e

    if new_status not in VALID_STATUS_TRANSITIONS[application.status]:
        raise InvalidTransitionError(application.status, new_status)

    return new_status


def resolve_rejection(vacancy: VacancySnapshot, application_id: UUID) -> CascadeDecision:
    """Single rejection; siblings and vacancy status are left alone."""
    target = _require_application(vacancy, application_id)
    transition(target, ApplicationStatus.REJECTED)
    return CascadeDecision(
        changes=(StatusChange(application_id, ApplicationStatus.REJECTED),),
        close_vacancy=False,
    )


def resolve_acceptance(vacancy: VacancySnapshot, application_id: UUID) -> CascadeDecision:
    """
    Resolve the effects of accepting one application.

    1. The target becomes accepted
    2. Every other pending application becomes rejected, oldest first
    3. The vacancy is closed

    Raises:
        InvalidTransitionError: If the target is not pending
        ConflictingAcceptanceError: If another application is already accepted
    """
    target = _require_application(vacancy, application_id)
    transition(target, ApplicationStatus.ACCEPTED)

    changes = [StatusChange(application_id, ApplicationStatus.ACCEPTED)]
    for sibling in sorted(vacancy.applications, key=lambda a: (a.applied_at, a.position)):
        if sibling.id == application_id:
            continue
        if sibling.status == ApplicationStatus.ACCEPTED:
            logger.error(
                f"Integrity fault on vacancy {vacancy.id}: application {sibling.id} "
                f"already accepted while accepting {application_id}"
            )
            raise ConflictingAcceptanceError(vacancy.id, sibling.id)
        if sibling.status == ApplicationStatus.PENDING:
            changes.append(
                StatusChange(sibling.id, transition(sibling, ApplicationStatus.REJECTED))
            )

    return CascadeDecision(changes=tuple(changes), close_vacancy=True)


def is_available_to(
    vacancy: VacancySnapshot,
    teacher_id: UUID,
    max_applications: int = MAX_APPLICATIONS_PER_VACANCY,
) -> bool:
    """Whether the teacher could apply right now, judged from the snapshot."""
    return (
        vacancy.status == VacancyStatus.OPEN
        and vacancy.application_count < max_applications
        and vacancy.application_of(teacher_id) is None
    )


def _require_application(vacancy: VacancySnapshot, application_id: UUID) -> ApplicationSnapshot:
    application = vacancy.find_application(application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    return application
