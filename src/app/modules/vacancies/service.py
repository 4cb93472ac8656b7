"""
Vacancy Service Layer

Business logic for teacher applications to vacancies.
Orchestrates the workflow rules, the vacancy store and update notifications.

This module implements:
1. Apply Flow:
   - Load the vacancy
   - Duplicate guard, then capacity gate
   - Append the application (and close the vacancy on the last slot) in
     one conditional write

2. Review Flow:
   - Validate the status change with the state machine
   - Accepting cascades: pending siblings rejected, vacancy closed
   - Rejecting changes only that application

3. Listings:
   - Vacancies a teacher can still apply to
   - Applicants of a vacancy with their profile fields
   - A teacher's own applications, featured vacancies

Concurrency:
- Every write is computed from a snapshot and committed only if the
  snapshot is still current. A lost race (StoreConflictError) re-reads and
  re-decides, a bounded number of times, so invariants hold no matter how
  requests interleave.
- A retried apply that already committed fails with
  DuplicateApplicationError instead of adding a second application.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TypeVar
from uuid import UUID

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from app.core.config import settings
from app.modules.teachers.repository import IdentityResolver, TeacherProfile
from app.modules.vacancies.entities import ApplicationSnapshot, VacancySnapshot
from app.modules.vacancies.errors import (
    ApplicationNotFoundError,
    StoreConflictError,
    VacancyNotFoundError,
    VacancyServiceError,
    VacancyStatusConflictError,
)
from app.modules.vacancies.models import (
    MAX_APPLICATIONS_PER_VACANCY,
    ApplicationStatus,
    VacancyStatus,
)
from app.modules.vacancies.notifier import VacancyNotifier
from app.modules.vacancies.repository import VacancyStore
from app.modules.vacancies.rules import (
    admit,
    check_not_duplicate,
    is_available_to,
    resolve_acceptance,
    resolve_rejection,
    transition,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _status_value(status: ApplicationStatus | str) -> str:
    return status.value if isinstance(status, ApplicationStatus) else str(status)


@dataclass(frozen=True)
class ApplyResult:
    vacancy_id: UUID
    vacancy_status: VacancyStatus
    application: ApplicationSnapshot
    applications: tuple[ApplicationSnapshot, ...]


@dataclass(frozen=True)
class StatusChangeResult:
    vacancy_id: UUID
    vacancy_status: VacancyStatus
    application: ApplicationSnapshot
    applications: tuple[ApplicationSnapshot, ...]
    rejected_application_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class ApplicantView:
    """An application joined with the applicant's profile (None if unknown)."""

    application: ApplicationSnapshot
    teacher: TeacherProfile | None


@dataclass(frozen=True)
class ApplicantListing:
    """Applicants of a vacancy, read from the same snapshot as its status."""

    vacancy: VacancySnapshot
    applicants: list[ApplicantView]


@dataclass(frozen=True)
class TeacherApplicationView:
    application: ApplicationSnapshot
    vacancy: VacancySnapshot


class VacancyLifecycleService:
    """
    Entry point for every vacancy workflow operation.

    Collaborators are injected so the workflow holds no global state.

    Args:
        store: Vacancy store with conditional writes
        notifier: Receives the vacancy id after every committed write
        identity: Resolves teacher ids into profiles
        max_applications: Capacity per vacancy
        max_attempts: Attempts per write when a conditional write loses a race
        backoff_seconds: Upper bound of the random pause between attempts
        clock: Returns the current UTC time
    """

    def __init__(
        self,
        store: VacancyStore,
        notifier: VacancyNotifier,
        identity: IdentityResolver,
        *,
        max_applications: int | None = None,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._store = store
        self._notifier = notifier
        self._identity = identity
        if max_applications is None:
            max_applications = settings.vacancy_max_applications
        if max_attempts is None:
            max_attempts = settings.vacancy_write_max_attempts
        self._max_applications = min(max_applications, MAX_APPLICATIONS_PER_VACANCY)
        self._max_attempts = max(1, max_attempts)
        self._backoff_seconds = (
            settings.vacancy_write_backoff_seconds if backoff_seconds is None else backoff_seconds
        )
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def max_applications(self) -> int:
        return self._max_applications

    # ============================================
    # Writes
    # ============================================

    async def apply(self, vacancy_id: UUID, teacher_id: UUID) -> ApplyResult:
        """
        Apply a teacher to a vacancy.

        Args:
            vacancy_id: Vacancy to apply to
            teacher_id: Applicant

        Returns:
            ApplyResult with the new application, the full application list
            and the vacancy status after the write

        Raises:
            VacancyNotFoundError: If the vacancy doesn't exist
            DuplicateApplicationError: If the teacher already applied
            CapacityExceededError: If the vacancy is full
            VacancyClosedError: If the vacancy is closed
            StoreConflictError: If every attempt lost a race
        """
        logger.info(f"Processing application of teacher {teacher_id} to vacancy {vacancy_id}")

        async def attempt() -> tuple[VacancySnapshot, ApplicationSnapshot]:
            vacancy = await self._get_vacancy(vacancy_id)
            check_not_duplicate(vacancy, teacher_id)
            decision = admit(
                vacancy,
                teacher_id,
                now=self._clock(),
                max_applications=self._max_applications,
            )
            updated = await self._store.append_application(vacancy, decision)
            if decision.close_vacancy:
                logger.info(
                    f"Vacancy {vacancy_id} reached {self._max_applications} applications - closing"
                )
            return updated, decision.application

        try:
            updated, application = await self._run_conditional_write(vacancy_id, attempt)
        except VacancyServiceError as e:
            self._log_refusal("Application", vacancy_id, e)
            raise

        logger.info(
            f"Application {application.id} submitted to vacancy {vacancy_id} "
            f"({updated.application_count}/{self._max_applications}, status={updated.status.value})"
        )
        await self._notify(vacancy_id)

        return ApplyResult(
            vacancy_id=vacancy_id,
            vacancy_status=updated.status,
            application=updated.find_application(application.id) or application,
            applications=updated.applications,
        )

    async def set_application_status(
        self,
        vacancy_id: UUID,
        application_id: UUID,
        target: ApplicationStatus | str,
    ) -> StatusChangeResult:
        """
        Accept or reject an application.

        Accepting also rejects every other pending application on the
        vacancy and closes it, all in one write. Rejecting touches only the
        given application.

        Raises:
            VacancyNotFoundError: If the vacancy doesn't exist
            ApplicationNotFoundError: If the application is not on the vacancy
            InvalidTransitionError: If the application is not pending or the
                target is not accepted/rejected
            ConflictingAcceptanceError: If another application is already accepted
            StoreConflictError: If every attempt lost a race
        """
        logger.info(
            f"Setting application {application_id} on vacancy {vacancy_id} "
            f"to {_status_value(target)}"
        )

        async def attempt():
            vacancy = await self._get_vacancy(vacancy_id)
            application = vacancy.find_application(application_id)
            if application is None:
                raise ApplicationNotFoundError(application_id)

            new_status = transition(application, target)
            if new_status == ApplicationStatus.ACCEPTED:
                decision = resolve_acceptance(vacancy, application_id)
            else:
                decision = resolve_rejection(vacancy, application_id)

            updated = await self._store.apply_status_changes(vacancy, decision, self._clock())
            return updated, decision

        try:
            updated, decision = await self._run_conditional_write(vacancy_id, attempt)
        except VacancyServiceError as e:
            self._log_refusal("Status change", vacancy_id, e)
            raise

        rejected = tuple(
            change.application_id
            for change in decision.changes
            if change.application_id != application_id
        )
        if rejected:
            logger.info(
                f"Accepted application {application_id} on vacancy {vacancy_id}; "
                f"rejected {len(rejected)} pending sibling(s) and closed the vacancy"
            )
        else:
            logger.info(
                f"Application {application_id} on vacancy {vacancy_id} "
                f"is now {_status_value(target)}"
            )

        await self._notify(vacancy_id)

        return StatusChangeResult(
            vacancy_id=vacancy_id,
            vacancy_status=updated.status,
            application=updated.find_application(application_id),
            applications=updated.applications,
            rejected_application_ids=rejected,
        )

    async def override_vacancy_status(
        self, vacancy_id: UUID, status: VacancyStatus
    ) -> VacancySnapshot:
        """
        Open or close a vacancy by hand.

        Reopening does not free slots: a full vacancy still refuses new
        applications. A vacancy with an accepted application stays closed.

        Raises:
            VacancyNotFoundError: If the vacancy doesn't exist
            VacancyStatusConflictError: If reopening a vacancy with an
                accepted application
        """
        logger.info(f"Overriding status of vacancy {vacancy_id} to {status.value}")

        async def attempt() -> VacancySnapshot:
            vacancy = await self._get_vacancy(vacancy_id)
            if vacancy.status == status:
                return vacancy
            if status == VacancyStatus.OPEN and any(
                a.status == ApplicationStatus.ACCEPTED for a in vacancy.applications
            ):
                raise VacancyStatusConflictError(vacancy_id, status)
            return await self._store.set_vacancy_status(vacancy, status)

        try:
            updated = await self._run_conditional_write(vacancy_id, attempt)
        except VacancyServiceError as e:
            self._log_refusal("Status override", vacancy_id, e)
            raise

        await self._notify(vacancy_id)
        return updated

    # ============================================
    # Reads
    # ============================================

    async def list_available(self, teacher_id: UUID) -> list[VacancySnapshot]:
        """Open vacancies with a free slot that the teacher hasn't applied to."""
        vacancies = await self._store.list_available(teacher_id, self._max_applications)
        available = [v for v in vacancies if is_available_to(v, teacher_id, self._max_applications)]
        logger.info(f"Found {len(available)} available vacancies for teacher {teacher_id}")
        return available

    async def list_applicants(self, vacancy_id: UUID) -> ApplicantListing:
        """
        Get the applications of a vacancy with applicant profiles.

        The vacancy status and the rows come from one read, so they always
        describe the same version of the vacancy.

        Raises:
            VacancyNotFoundError: If the vacancy doesn't exist
        """
        vacancy = await self._get_vacancy(vacancy_id)
        profiles = await self._identity.resolve_many(a.teacher_id for a in vacancy.applications)
        return ApplicantListing(
            vacancy=vacancy,
            applicants=[
                ApplicantView(application=a, teacher=profiles.get(a.teacher_id))
                for a in vacancy.applications
            ],
        )

    async def list_teacher_applications(self, teacher_id: UUID) -> list[TeacherApplicationView]:
        """Get the teacher's applications together with their vacancies."""
        views = []
        for vacancy in await self._store.list_applied_by(teacher_id):
            application = vacancy.application_of(teacher_id)
            if application is not None:
                views.append(TeacherApplicationView(application=application, vacancy=vacancy))
        views.sort(key=lambda v: v.application.applied_at, reverse=True)
        return views

    async def list_featured(self) -> list[VacancySnapshot]:
        """Get open featured vacancies."""
        return await self._store.list_featured()

    # ============================================
    # Helpers
    # ============================================

    async def _get_vacancy(self, vacancy_id: UUID) -> VacancySnapshot:
        vacancy = await self._store.get(vacancy_id)
        if vacancy is None:
            raise VacancyNotFoundError(vacancy_id)
        return vacancy

    async def _run_conditional_write(
        self, vacancy_id: UUID, attempt: Callable[[], Awaitable[T]]
    ) -> T:
        """
        Run read-decide-write, repeating it when the write loses a race.

        Only StoreConflictError is retried; every other error is final.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(StoreConflictError),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_random(0, self._backoff_seconds),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            return await retrying(attempt)
        except StoreConflictError:
            logger.error(
                f"Giving up on vacancy {vacancy_id} after {self._max_attempts} conflicting writes"
            )
            raise

    async def _notify(self, vacancy_id: UUID) -> None:
        try:
            await self._notifier.notify(vacancy_id)
        except Exception as e:
            logger.error(f"Vacancy update notification failed for {vacancy_id}: {e}")

    @staticmethod
    def _log_refusal(action: str, vacancy_id: UUID, error: VacancyServiceError) -> None:
        if error.status_code >= 500:
            logger.error(f"{action} on vacancy {vacancy_id} failed: {error.error_code}")
        else:
            logger.warning(f"{action} on vacancy {vacancy_id} refused: {error.error_code}")
