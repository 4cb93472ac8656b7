"""
Fixtures for vacancy workflow tests.

InMemoryVacancyStore is a fake of the VacancyStore contract with the same
compare-and-swap semantics as the database store: every write is checked
against the snapshot version under a lock and fails with StoreConflictError
when another write got there first.
"""

import asyncio
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from app.modules.teachers.repository import TeacherProfile
from app.modules.vacancies.entities import ApplicationSnapshot, VacancySnapshot
from app.modules.vacancies.errors import StoreConflictError
from app.modules.vacancies.models import (
    MAX_APPLICATIONS_PER_VACANCY,
    ApplicationStatus,
    VacancyStatus,
)
from app.modules.vacancies.rules import AppendDecision, CascadeDecision
from app.modules.vacancies.service import VacancyLifecycleService

BASE_TIME = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class InMemoryVacancyStore:
    """Vacancy store held in a dict, guarded by one asyncio lock."""

    def __init__(self) -> None:
        self._vacancies: dict[UUID, VacancySnapshot] = {}
        self._lock = asyncio.Lock()

    def add_vacancy(
        self,
        *,
        title: str,
        subject: str,
        description: str | None = None,
        requirements: str | None = None,
        salary: str | None = None,
        featured: bool = False,
        status: VacancyStatus = VacancyStatus.OPEN,
        applications: tuple[ApplicationSnapshot, ...] = (),
        vacancy_id: UUID | None = None,
    ) -> VacancySnapshot:
        """Insert a vacancy as the content side would create it."""
        vacancy = VacancySnapshot(
            id=vacancy_id or uuid4(),
            title=title,
            subject=subject,
            description=description,
            requirements=requirements,
            salary=salary,
            featured=featured,
            status=status,
            version=0,
            applications=tuple(applications),
        )
        self._vacancies[vacancy.id] = vacancy
        return vacancy

    def delete_vacancy(self, vacancy_id: UUID) -> None:
        self._vacancies.pop(vacancy_id, None)

    # ============================================
    # Reads
    # ============================================

    async def get(self, vacancy_id: UUID) -> VacancySnapshot | None:
        # Yield so concurrent requests interleave between read and write
        await asyncio.sleep(0)
        return self._vacancies.get(vacancy_id)

    async def list_available(
        self, teacher_id: UUID, max_applications: int
    ) -> list[VacancySnapshot]:
        return [
            v
            for v in self._vacancies.values()
            if v.status == VacancyStatus.OPEN
            and v.application_count < max_applications
            and v.application_of(teacher_id) is None
        ]

    async def list_featured(self) -> list[VacancySnapshot]:
        return [
            v for v in self._vacancies.values() if v.featured and v.status == VacancyStatus.OPEN
        ]

    async def list_applied_by(self, teacher_id: UUID) -> list[VacancySnapshot]:
        return [v for v in self._vacancies.values() if v.application_of(teacher_id) is not None]

    # ============================================
    # Conditional writes
    # ============================================

    async def append_application(
        self, vacancy: VacancySnapshot, decision: AppendDecision
    ) -> VacancySnapshot:
        async with self._lock:
            current = self._current(vacancy)
            new = decision.application

            if current.status != VacancyStatus.OPEN:
                raise StoreConflictError(vacancy.id)
            # Same guarantees as the schema constraints
            if current.application_of(new.teacher_id) is not None:
                raise StoreConflictError(vacancy.id, "Duplicate teacher rejected by the store")
            if current.application_count >= MAX_APPLICATIONS_PER_VACANCY:
                raise StoreConflictError(vacancy.id, "Application slots exhausted")

            updated = replace(
                current,
                version=current.version + 1,
                status=VacancyStatus.CLOSED if decision.close_vacancy else current.status,
                applications=current.applications + (new,),
            )
            self._vacancies[vacancy.id] = updated
            return updated

    async def apply_status_changes(
        self, vacancy: VacancySnapshot, decision: CascadeDecision, decided_at: datetime
    ) -> VacancySnapshot:
        async with self._lock:
            current = self._current(vacancy)
            new_status = {change.application_id: change.new_status for change in decision.changes}

            applications = []
            for application in current.applications:
                if application.id in new_status:
                    if application.status != ApplicationStatus.PENDING:
                        raise StoreConflictError(
                            vacancy.id, f"Application {application.id} is no longer pending"
                        )
                    application = replace(
                        application, status=new_status.pop(application.id), decided_at=decided_at
                    )
                applications.append(application)

            if new_status:
                raise StoreConflictError(vacancy.id, "Changed application no longer on vacancy")

            updated = replace(
                current,
                version=current.version + 1,
                status=VacancyStatus.CLOSED if decision.close_vacancy else current.status,
                applications=tuple(applications),
            )
            self._vacancies[vacancy.id] = updated
            return updated

    async def set_vacancy_status(
        self, vacancy: VacancySnapshot, status: VacancyStatus
    ) -> VacancySnapshot:
        async with self._lock:
            current = self._current(vacancy)
            updated = replace(current, version=current.version + 1, status=status)
            self._vacancies[vacancy.id] = updated
            return updated

    def _current(self, vacancy: VacancySnapshot) -> VacancySnapshot:
        current = self._vacancies.get(vacancy.id)
        if current is None or current.version != vacancy.version:
            raise StoreConflictError(vacancy.id)
        return current


class TickingClock:
    """Returns a later time on every call so applied_at order is deterministic."""

    def __init__(self, start: datetime = BASE_TIME + timedelta(days=1)):
        self._now = start

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


class FakeIdentity:
    def __init__(self):
        self.profiles: dict = {}

    def add(self, teacher_id, full_name="Test Teacher", email=None):
        self.profiles[teacher_id] = TeacherProfile(
            id=teacher_id,
            full_name=full_name,
            email=email or f"{teacher_id.hex[:8]}@example.com",
            phone="+23276000000",
            subjects=("Mathematics",),
            fees=Decimal("150.00"),
            cv_url="https://cdn.example.com/cv.pdf",
        )

    async def resolve_many(self, teacher_ids):
        return {tid: self.profiles[tid] for tid in teacher_ids if tid in self.profiles}


@pytest.fixture
def store():
    """Create an empty in-memory vacancy store."""
    return InMemoryVacancyStore()


@pytest.fixture
def notifier():
    """Create a mock update notifier."""
    mock = AsyncMock()
    mock.notify = AsyncMock()
    return mock


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def service(store, notifier, identity, clock):
    """Create the lifecycle service with no backoff between attempts."""
    return VacancyLifecycleService(
        store,
        notifier,
        identity,
        max_attempts=3,
        backoff_seconds=0,
        clock=clock,
    )


@pytest.fixture
def seed_vacancy(store):
    """
    Factory seeding a vacancy with applications in the given statuses.

    Applications are spaced one minute apart in list order.
    """

    def _seed(
        statuses=(),
        status=VacancyStatus.OPEN,
        teacher_ids=None,
        featured=False,
        title="Mathematics tutor",
    ):
        vacancy_id = uuid4()
        teacher_ids = list(teacher_ids or [uuid4() for _ in statuses])
        applications = tuple(
            ApplicationSnapshot(
                id=uuid4(),
                vacancy_id=vacancy_id,
                teacher_id=teacher_ids[i],
                status=app_status,
                position=i + 1,
                applied_at=BASE_TIME + timedelta(minutes=i),
            )
            for i, app_status in enumerate(statuses)
        )
        return store.add_vacancy(
            vacancy_id=vacancy_id,
            title=title,
            subject="Mathematics",
            featured=featured,
            status=status,
            applications=applications,
        )

    return _seed
