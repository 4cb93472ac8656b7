"""
Unit tests for vacancy update broadcasts.
"""

import json
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.modules.vacancies.notifier import RedisVacancyNotifier


class TestRedisVacancyNotifier:
    @pytest.mark.asyncio
    async def test_publishes_vacancy_id(self):
        """Notify should publish the vacancy id on the updates channel."""
        redis = AsyncMock()
        vacancy_id = uuid4()

        await RedisVacancyNotifier(redis, "vacancies:updated").notify(vacancy_id)

        channel, payload = redis.publish.await_args.args
        assert channel == "vacancies:updated"
        assert json.loads(payload) == {"type": "vacancy_updated", "vacancy_id": str(vacancy_id)}

    @pytest.mark.asyncio
    async def test_without_redis_is_silent(self):
        """Notify without Redis should do nothing."""
        await RedisVacancyNotifier(None, "vacancies:updated").notify(uuid4())

    @pytest.mark.asyncio
    async def test_publish_failure_is_swallowed(self):
        """Publish failures should be logged, not raised."""
        redis = AsyncMock()
        redis.publish.side_effect = ConnectionError("down")

        await RedisVacancyNotifier(redis, "vacancies:updated").notify(uuid4())

        redis.publish.assert_awaited_once()
