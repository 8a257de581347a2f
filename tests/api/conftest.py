"""
Fixtures for API tests.

Every external service runs in mock mode: Snowflake is in memory,
uploads stay in memory and FFmpeg is never invoked.
"""

import os

# Set before src.main is imported, since it builds an app at import time
os.environ.setdefault("SNOWFLAKE_MOCK_MODE", "true")
os.environ.setdefault("CLOUDINARY_MOCK_MODE", "true")
os.environ.setdefault("VIDEO_PROCESSOR_MOCK_MODE", "true")

import pytest
from fastapi.testclient import TestClient

from src.api import dependencies
from src.config.settings import Settings
from src.core.community.models import User
from src.infrastructure.media.client import MockMediaClient
from src.infrastructure.security.passwords import hash_password
from src.infrastructure.snowflake.repositories import UserRepository, VideoRepository
from src.main import create_app
from tests.api.helpers import PASSWORD


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        snowflake_mock_mode=True,
        cloudinary_mock_mode=True,
        video_processor_mock_mode=True,
        password_hash_rounds=4,
        rate_limit_max_requests=10_000,
        max_upload_size_mb=1,
    )


@pytest.fixture
def client(settings):
    dependencies.reset_shared_clients()
    app = create_app(settings)

    with TestClient(app) as test_client:
        yield test_client

    dependencies.reset_shared_clients()


@pytest.fixture
def db(client, settings):
    """The in-memory connection the app is using."""
    return next(dependencies.get_database_connection(settings))


@pytest.fixture
def users(db) -> UserRepository:
    return UserRepository(db)


@pytest.fixture
def videos(db) -> VideoRepository:
    return VideoRepository(db)


@pytest.fixture
def media(client, settings) -> MockMediaClient:
    """The in-memory media store the app is using."""
    return dependencies.get_media_client(settings)


@pytest.fixture
def admin(users) -> User:
    user = User(
        username="villamor gelera",
        email="admin@example.com",
        password_hash=hash_password(PASSWORD, rounds=4),
        is_admin=True,
        verified=True,
    )
    users.save(user)
    return user
