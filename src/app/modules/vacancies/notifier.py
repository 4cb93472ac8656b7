"""
Vacancy Update Notifications

Publishes a "vacancy updated" event after every committed workflow write so
that a real-time broadcaster can push fresh state to connected clients.
Publishing is best effort: a failed publish is logged and never fails the
write that triggered it.
"""

import json
import logging
from typing import Protocol
from uuid import UUID

from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class VacancyNotifier(Protocol):
    async def notify(self, vacancy_id: UUID) -> None: ...


class RedisVacancyNotifier:
    """Publishes vacancy ids on a Redis pub/sub channel."""

    def __init__(self, redis: Redis | None, channel: str):
        self._redis = redis
        self._channel = channel

    async def notify(self, vacancy_id: UUID) -> None:
        if self._redis is None:
            logger.debug(f"Redis unavailable, skipping update broadcast for vacancy {vacancy_id}")
            return

        payload = json.dumps({"type": "vacancy_updated", "vacancy_id": str(vacancy_id)})
        try:
            await self._redis.publish(self._channel, payload)
        except Exception as e:
            logger.error(f"Failed to publish update for vacancy {vacancy_id}: {e}")
