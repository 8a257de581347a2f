"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be mocked for testing
- Configuration is centralized
- Resource lifecycle (connections, clients) is managed properly

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated, Generator, Optional

from fastapi import Depends, HTTPException, Request, status

from ..config.settings import Settings, get_settings
from ..core.community.models import User
from ..infrastructure.media.client import MediaClient, create_media_client
from ..infrastructure.snowflake.client import MockSnowflakeConnection, create_snowflake_connection
from ..infrastructure.snowflake.repositories import (
    SnowflakeConfig,
    UsageLimitRepository,
    UserNotFoundError,
    UserRepository,
    VideoRepository,
)
from ..infrastructure.snowflake.repositories.documents import SnowflakeConnection
from ..infrastructure.video.processor import VideoProcessor, create_video_processor
from .realtime import NotificationHub, notification_hub

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"

# Global mock instances (shared across requests so data persists in dev)
_mock_snowflake_connection: Optional[MockSnowflakeConnection] = None
_mock_media_client: Optional[MediaClient] = None
_video_processors: dict[bool, VideoProcessor] = {}


def reset_shared_clients() -> None:
    """Drop the shared mock clients and cached processors (for tests)."""
    global _mock_snowflake_connection, _mock_media_client
    _mock_snowflake_connection = None
    _mock_media_client = None
    _video_processors.clear()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

def snowflake_config_from(settings: Settings) -> SnowflakeConfig:
    return SnowflakeConfig(
        account=settings.snowflake_account,
        user=settings.snowflake_user,
        password=settings.snowflake_password or None,
        private_key_path=settings.snowflake_private_key_path,
        database=settings.snowflake_database,
        schema=settings.snowflake_schema,
        warehouse=settings.snowflake_warehouse,
        role=settings.snowflake_role,
    )


def get_database_connection(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Generator[SnowflakeConnection, None, None]:
    """
    Provide a database connection for the duration of one request.

    This is a generator function (yields instead of returns) so the
    connection is closed after the response is sent. FastAPI caches the
    dependency per request, so every repository in a request shares it.

    In mock mode, we reuse the same connection across requests
    so that data persists during the development session.
    """
    global _mock_snowflake_connection

    if settings.snowflake_mock_mode:
        if _mock_snowflake_connection is None:
            _mock_snowflake_connection = MockSnowflakeConnection()
            logger.info("Created shared mock Snowflake connection")
        yield _mock_snowflake_connection
    else:
        config = snowflake_config_from(settings)

        with create_snowflake_connection(config=config) as conn:
            yield conn


DatabaseConnectionDep = Annotated[SnowflakeConnection, Depends(get_database_connection)]


def get_user_repository(conn: DatabaseConnectionDep) -> UserRepository:
    return UserRepository(conn)


def get_video_repository(conn: DatabaseConnectionDep) -> VideoRepository:
    return VideoRepository(conn)


def get_usage_limit_repository(conn: DatabaseConnectionDep) -> UsageLimitRepository:
    return UsageLimitRepository(conn)


# ---------------------------------------------------------------------------
# External Services
# ---------------------------------------------------------------------------

def get_media_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> MediaClient:
    """
    Provide the media client for uploads.

    In mock mode, we reuse the same client across requests
    so that uploaded files persist during the session.
    """
    global _mock_media_client

    if settings.cloudinary_mock_mode:
        if _mock_media_client is None:
            _mock_media_client = create_media_client(mock_mode=True)
            logger.info("Created shared mock media client")
        return _mock_media_client

    return create_media_client()


def get_video_processor(
    settings: Annotated[Settings, Depends(get_settings)],
) -> VideoProcessor:
    """
    Provide the video processor.

    Created on first use rather than at startup, after bootstrap has set
    the FFmpeg path, and then reused.
    """
    mock_mode = settings.video_processor_mock_mode
    if mock_mode not in _video_processors:
        _video_processors[mock_mode] = create_video_processor(mock_mode=mock_mode)
    return _video_processors[mock_mode]


def get_notification_hub() -> NotificationHub:
    return notification_hub


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def get_session_user_id(request: Request) -> Optional[str]:
    """User id stored in the session cookie, if logged in."""
    return request.session.get(SESSION_USER_KEY)


def require_user(
    request: Request,
    users: Annotated[UserRepository, Depends(get_user_repository)],
) -> User:
    """
    Load the logged-in member.

    Raises 401 if there is no session, or if the session points at a
    member that has since been deleted.
    """
    user_id = get_session_user_id(request)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Login required.",
        )

    try:
        return users.get(user_id)
    except UserNotFoundError:
        request.session.clear()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Login required.",
        )


def require_admin(user: Annotated[User, Depends(require_user)]) -> User:
    if not user.is_admin:
        logger.warning("Admin access denied", extra={"user_id": user.id})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied.",
        )
    return user


# ---------------------------------------------------------------------------
# Rate Limiting
# ---------------------------------------------------------------------------

class RateLimit:
    """
    Per-client request limit for a group of routes.

    Used as a router-level dependency:
        app.include_router(router, dependencies=[Depends(RateLimit("api"))])
    """

    def __init__(self, resource_type: str) -> None:
        self.resource_type = resource_type

    def __call__(
        self,
        request: Request,
        settings: Annotated[Settings, Depends(get_settings)],
        usage_limits: Annotated[UsageLimitRepository, Depends(get_usage_limit_repository)],
    ) -> None:
        client_ip = request.client.host if request.client else "unknown"

        if client_ip in settings.rate_limit_bypass_ips_list:
            return

        allowed, _, limit_max = usage_limits.check_and_increment(
            identifier=client_ip,
            resource_type=self.resource_type,
            limit_max=settings.rate_limit_max_requests,
            window_minutes=settings.rate_limit_window_minutes,
        )

        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=(
                    f"Too many requests ({limit_max} per "
                    f"{settings.rate_limit_window_minutes} minutes). Try again later."
                ),
            )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
CurrentUser = Annotated[User, Depends(require_user)]
AdminUser = Annotated[User, Depends(require_admin)]
SessionUserId = Annotated[Optional[str], Depends(get_session_user_id)]
UserRepositoryDep = Annotated[UserRepository, Depends(get_user_repository)]
VideoRepositoryDep = Annotated[VideoRepository, Depends(get_video_repository)]
MediaClientDep = Annotated[MediaClient, Depends(get_media_client)]
VideoProcessorDep = Annotated[VideoProcessor, Depends(get_video_processor)]
NotificationHubDep = Annotated[NotificationHub, Depends(get_notification_hub)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
