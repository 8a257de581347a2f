"""
Repository pattern implementations for Snowflake.

Repositories translate between domain models and database representations.
"""

from .documents import DocumentTable, SnowflakeConfig, create_schema
from .usage_limits import UsageLimitRepository
from .users import UserNotFoundError, UserRepository
from .videos import VideoNotFoundError, VideoRepository

__all__ = [
    "DocumentTable",
    "SnowflakeConfig",
    "UsageLimitRepository",
    "UserNotFoundError",
    "UserRepository",
    "VideoNotFoundError",
    "VideoRepository",
    "create_schema",
]
