"""
Core module - Configuration, database, Redis, auth and utilities.
"""

from app.core.config import get_settings, settings
from app.core.database import Base, async_session_maker, close_db, init_db
from app.core.logging import configure_logging
from app.core.redis import close_redis, get_redis, init_redis

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "async_session_maker",
    "init_db",
    "close_db",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    # Logging
    "configure_logging",
]
