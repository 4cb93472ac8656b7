"""
Teacher Repository

Resolves teacher ids into the profile fields shown to reviewers.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.modules.teachers.models import Teacher, TeacherStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeacherProfile:
    id: UUID
    full_name: str
    email: str
    phone: str | None = None
    subjects: tuple[str, ...] = ()
    fees: Decimal | None = None
    cv_url: str | None = None
    status: TeacherStatus = TeacherStatus.PENDING


class IdentityResolver(Protocol):
    async def resolve_many(self, teacher_ids: Iterable[UUID]) -> dict[UUID, TeacherProfile]: ...


class TeacherRepository:
    """Repository for teacher profile lookups."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def resolve_many(self, teacher_ids: Iterable[UUID]) -> dict[UUID, TeacherProfile]:
        """
        Get profiles for a set of teacher ids.

        Ids without a matching teacher are left out of the result.

        Args:
            teacher_ids: Teacher UUIDs to look up

        Returns:
            Mapping of teacher id to profile
        """
        ids = set(teacher_ids)
        if not ids:
            return {}

        async with self._session_maker() as session:
            result = await session.execute(select(Teacher).where(Teacher.id.in_(ids)))
            teachers = result.scalars().all()

        missing = len(ids) - len(teachers)
        if missing:
            logger.warning(f"{missing} applicant(s) have no teacher profile")

        return {
            t.id: TeacherProfile(
                id=t.id,
                full_name=t.full_name,
                email=t.email,
                phone=t.phone,
                subjects=tuple(t.subjects or ()),
                fees=t.fees,
                cv_url=t.cv_url,
                status=t.status,
            )
            for t in teachers
        }
