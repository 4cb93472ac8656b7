"""
Vacancy Repository

Persistence for vacancies and their applications.

Every workflow write is a conditional write: it commits only if the vacancy
row still carries the version the caller's decision was computed from.
The version bump and the application rows are written in one transaction,
so a concurrent writer either sees the whole change or loses the race and
gets StoreConflictError. Schema constraints (unique teacher per vacancy,
unique slot position, slot range) back this up at the database level.

Design Principles:
- Returns immutable snapshots, never live ORM objects
- No business rules here; decisions come from rules.py
- A lost race is reported, not retried (retries belong to the service)
"""

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from app.modules.vacancies.entities import ApplicationSnapshot, VacancySnapshot
from app.modules.vacancies.errors import StoreConflictError
from app.modules.vacancies.models import (
    ApplicationStatus,
    Vacancy,
    VacancyApplication,
    VacancyStatus,
)
from app.modules.vacancies.rules import AppendDecision, CascadeDecision

logger = logging.getLogger(__name__)


class VacancyStore(Protocol):
    """Storage contract used by the vacancy workflow service."""

    async def get(self, vacancy_id: UUID) -> VacancySnapshot | None: ...

    async def list_available(
        self, teacher_id: UUID, max_applications: int
    ) -> list[VacancySnapshot]: ...

    async def list_featured(self) -> list[VacancySnapshot]: ...

    async def list_applied_by(self, teacher_id: UUID) -> list[VacancySnapshot]: ...

    async def append_application(
        self, vacancy: VacancySnapshot, decision: AppendDecision
    ) -> VacancySnapshot: ...

    async def apply_status_changes(
        self, vacancy: VacancySnapshot, decision: CascadeDecision, decided_at: datetime
    ) -> VacancySnapshot: ...

    async def set_vacancy_status(
        self, vacancy: VacancySnapshot, status: VacancyStatus
    ) -> VacancySnapshot: ...


def to_snapshot(vacancy: Vacancy) -> VacancySnapshot:
    """Convert a loaded Vacancy (applications included) into a snapshot."""
    applications = sorted(vacancy.applications, key=lambda a: (a.applied_at, a.position))
    return VacancySnapshot(
        id=vacancy.id,
        title=vacancy.title,
        subject=vacancy.subject,
        description=vacancy.description,
        requirements=vacancy.requirements,
        salary=vacancy.salary,
        featured=vacancy.featured,
        status=vacancy.status,
        version=vacancy.version,
        applications=tuple(
            ApplicationSnapshot(
                id=app.id,
                vacancy_id=app.vacancy_id,
                teacher_id=app.teacher_id,
                status=app.status,
                position=app.position,
                applied_at=app.applied_at,
                decided_at=app.decided_at,
            )
            for app in applications
        ),
    )


class SqlAlchemyVacancyStore:
    """PostgreSQL-backed vacancy store."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    # ============================================
    # Reads
    # ============================================

    async def get(self, vacancy_id: UUID) -> VacancySnapshot | None:
        """Get a vacancy with its applications."""
        async with self._session_maker() as session:
            vacancy = await self._load(session, vacancy_id)
            return to_snapshot(vacancy) if vacancy else None

    async def list_available(
        self, teacher_id: UUID, max_applications: int
    ) -> list[VacancySnapshot]:
        """
        Get vacancies the teacher could apply to.

        Finds vacancies that:
        1. Are open
        2. Hold fewer than max_applications applications
        3. Have no application from this teacher
        """
        applied = select(VacancyApplication.vacancy_id).where(
            VacancyApplication.teacher_id == teacher_id
        )
        stmt = (
            select(Vacancy)
            .options(selectinload(Vacancy.applications))
            .where(
                Vacancy.status == VacancyStatus.OPEN,
                Vacancy.application_count < max_applications,
                Vacancy.id.not_in(applied),
            )
            .order_by(Vacancy.created_at.desc())
        )
        return await self._fetch_all(stmt)

    async def list_featured(self) -> list[VacancySnapshot]:
        """Get open vacancies flagged as featured."""
        stmt = (
            select(Vacancy)
            .options(selectinload(Vacancy.applications))
            .where(Vacancy.status == VacancyStatus.OPEN, Vacancy.featured.is_(True))
            .order_by(Vacancy.created_at.desc())
        )
        return await self._fetch_all(stmt)

    async def list_applied_by(self, teacher_id: UUID) -> list[VacancySnapshot]:
        """Get every vacancy the teacher has applied to."""
        applied = select(VacancyApplication.vacancy_id).where(
            VacancyApplication.teacher_id == teacher_id
        )
        stmt = (
            select(Vacancy)
            .options(selectinload(Vacancy.applications))
            .where(Vacancy.id.in_(applied))
            .order_by(Vacancy.created_at.desc())
        )
        return await self._fetch_all(stmt)

    # ============================================
    # Conditional writes
    # ============================================

    async def append_application(
        self, vacancy: VacancySnapshot, decision: AppendDecision
    ) -> VacancySnapshot:
        """
        Append an application, closing the vacancy if the decision says so.

        Commits only if the vacancy is still open, still at the snapshot
        version and still holds the snapshot's application count.

        Raises:
            StoreConflictError: If the vacancy changed since the snapshot, or
                the database rejected the row (duplicate teacher or slot)
        """
        new = decision.application
        values: dict = {
            "version": Vacancy.version + 1,
            "application_count": Vacancy.application_count + 1,
        }
        if decision.close_vacancy:
            values["status"] = VacancyStatus.CLOSED

        async with self._session_maker() as session:
            try:
                async with session.begin():
                    result = await session.execute(
                        update(Vacancy)
                        .where(
                            Vacancy.id == vacancy.id,
                            Vacancy.version == vacancy.version,
                            Vacancy.status == VacancyStatus.OPEN,
                            Vacancy.application_count == vacancy.application_count,
                        )
                        .values(**values)
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount != 1:
                        raise StoreConflictError(vacancy.id)

                    session.add(
                        VacancyApplication(
                            id=new.id,
                            vacancy_id=vacancy.id,
                            teacher_id=new.teacher_id,
                            status=new.status,
                            position=new.position,
                            applied_at=new.applied_at,
                        )
                    )
            except IntegrityError as e:
                logger.warning(f"Append to vacancy {vacancy.id} rejected by constraint: {e.orig}")
                raise StoreConflictError(
                    vacancy.id, f"Vacancy {vacancy.id} application rejected by the store"
                ) from e

            return await self._reload(session, vacancy.id)

    async def apply_status_changes(
        self, vacancy: VacancySnapshot, decision: CascadeDecision, decided_at: datetime
    ) -> VacancySnapshot:
        """
        Commit a set of application status changes as one unit.

        Each changed application must still be pending at write time and the
        vacancy must still be at the snapshot version.

        Raises:
            StoreConflictError: If any precondition no longer holds
        """
        values: dict = {"version": Vacancy.version + 1}
        if decision.close_vacancy:
            values["status"] = VacancyStatus.CLOSED

        async with self._session_maker() as session:
            async with session.begin():
                result = await session.execute(
                    update(Vacancy)
                    .where(Vacancy.id == vacancy.id, Vacancy.version == vacancy.version)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise StoreConflictError(vacancy.id)

                for change in decision.changes:
                    result = await session.execute(
                        update(VacancyApplication)
                        .where(
                            VacancyApplication.id == change.application_id,
                            VacancyApplication.vacancy_id == vacancy.id,
                            VacancyApplication.status == ApplicationStatus.PENDING,
                        )
                        .values(status=change.new_status, decided_at=decided_at)
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount != 1:
                        raise StoreConflictError(
                            vacancy.id,
                            f"Application {change.application_id} is no longer pending",
                        )

            return await self._reload(session, vacancy.id)

    async def set_vacancy_status(
        self, vacancy: VacancySnapshot, status: VacancyStatus
    ) -> VacancySnapshot:
        """
        Override the vacancy status.

        Raises:
            StoreConflictError: If the vacancy changed since the snapshot
        """
        async with self._session_maker() as session:
            async with session.begin():
                result = await session.execute(
                    update(Vacancy)
                    .where(Vacancy.id == vacancy.id, Vacancy.version == vacancy.version)
                    .values(status=status, version=Vacancy.version + 1)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise StoreConflictError(vacancy.id)

            return await self._reload(session, vacancy.id)

    # ============================================
    # Helpers
    # ============================================

    @staticmethod
    async def _load(session: AsyncSession, vacancy_id: UUID) -> Vacancy | None:
        result = await session.execute(
            select(Vacancy)
            .options(selectinload(Vacancy.applications))
            .where(Vacancy.id == vacancy_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _reload(self, session: AsyncSession, vacancy_id: UUID) -> VacancySnapshot:
        vacancy = await self._load(session, vacancy_id)
        if vacancy is None:
            # Deleted by the content side right after our commit
            raise StoreConflictError(vacancy_id, f"Vacancy {vacancy_id} disappeared after write")
        return to_snapshot(vacancy)

    async def _fetch_all(self, stmt) -> list[VacancySnapshot]:
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            vacancies: Sequence[Vacancy] = result.scalars().unique().all()
            return [to_snapshot(v) for v in vacancies]
