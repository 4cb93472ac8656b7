"""FastAPI dependency wiring for the vacancy workflow."""

from fastapi import Depends
from redis.asyncio import Redis

from app.core.config import settings
from app.core.database import async_session_maker
from app.core.redis import get_redis
from app.modules.teachers.repository import TeacherRepository
from app.modules.vacancies.notifier import RedisVacancyNotifier
from app.modules.vacancies.repository import SqlAlchemyVacancyStore
from app.modules.vacancies.service import VacancyLifecycleService

_store = SqlAlchemyVacancyStore(async_session_maker)
_identity = TeacherRepository(async_session_maker)


async def get_vacancy_service(
    redis: Redis | None = Depends(get_redis),
) -> VacancyLifecycleService:
    """
    Build the lifecycle service for a request.

    The notifier is bound per request since Redis may come up after startup.
    """
    return VacancyLifecycleService(
        store=_store,
        notifier=RedisVacancyNotifier(redis, settings.vacancy_updates_channel),
        identity=_identity,
    )
