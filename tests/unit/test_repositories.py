"""
Repository tests against the in-memory Snowflake connection.

These exercise the real SQL issued by DocumentTable; the mock cursor
answers it from a dictionary.
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.community.models import DEFAULT_PROFILE_PIC, User, Video
from src.infrastructure.snowflake.client import MockSnowflakeConnection
from src.infrastructure.snowflake.repositories import (
    DocumentTable,
    UsageLimitRepository,
    UserNotFoundError,
    UserRepository,
    VideoNotFoundError,
    VideoRepository,
    create_schema,
)
from src.infrastructure.snowflake.repositories.usage_limits import window_start


@pytest.fixture
def conn() -> MockSnowflakeConnection:
    connection = MockSnowflakeConnection()
    create_schema(connection)
    return connection


# ---------------------------------------------------------------------------
# DocumentTable Tests
# ---------------------------------------------------------------------------

class TestDocumentTable:

    def test_rejects_unknown_table(self, conn):
        """Only known tables can be used."""
        with pytest.raises(ValueError, match="Unknown document table"):
            DocumentTable(conn, "users; DROP TABLE users")

    def test_rejects_unsafe_field(self, conn):
        """Field names end up in SQL, so they must be plain identifiers."""
        table = DocumentTable(conn, "users")
        with pytest.raises(ValueError, match="Invalid document field"):
            table.find_by("username = 'x' OR 1=1 --", "x")

    def test_put_is_an_upsert(self, conn):
        """Saving the same id twice should replace the document."""
        table = DocumentTable(conn, "videos")

        table.put("v1", {"title": "first"})
        table.put("v1", {"title": "second"})

        assert table.get("v1") == {"title": "second"}
        assert conn._count("videos") == 1

    def test_delete_reports_whether_anything_was_removed(self, conn):
        """Delete should return False when there was nothing to remove."""
        table = DocumentTable(conn, "videos")
        table.put("v1", {"title": "x"})

        assert table.delete("v1") is True
        assert table.delete("v1") is False
        assert table.get("v1") is None


# ---------------------------------------------------------------------------
# UserRepository Tests
# ---------------------------------------------------------------------------

class TestUserRepository:

    def test_save_and_get_round_trip(self, conn):
        """A member should load back with the same fields."""
        repo = UserRepository(conn)
        user = User(username="ana", email="ana@example.com", password_hash="h", subscribers=["x"])
        user.add_warning("be nice")

        repo.save(user)
        loaded = repo.get(user.id)

        assert loaded.username == "ana"
        assert loaded.subscribers == ["x"]
        assert loaded.warnings[0].message == "be nice"
        assert loaded.profile_pic == DEFAULT_PROFILE_PIC
        assert loaded.created_at == user.created_at

    def test_get_missing_raises(self, conn):
        """Unknown member ids should raise UserNotFoundError."""
        with pytest.raises(UserNotFoundError):
            UserRepository(conn).get("nope")

    def test_find_by_username_is_case_insensitive(self, conn):
        """Lookups should match however the username is typed."""
        repo = UserRepository(conn)
        user = User(username="Villamor Gelera", email="admin@example.com")
        repo.save(user)

        found = repo.find_by_username("  VILLAMOR gelera ")

        assert found is not None
        assert found.id == user.id
        assert repo.find_by_username("someone") is None

    def test_delete(self, conn):
        """A deleted member should no longer load."""
        repo = UserRepository(conn)
        user = User(username="ana", email="ana@example.com")
        repo.save(user)

        assert repo.delete(user.id)
        assert repo.list_all() == []


# ---------------------------------------------------------------------------
# VideoRepository Tests
# ---------------------------------------------------------------------------

class TestVideoRepository:

    def test_save_and_get_round_trip(self, conn):
        """A video should load back with comments and reports intact."""
        repo = VideoRepository(conn)
        video = Video(title="Clip", owner_id="u1", file_url="https://cdn/clip.mp4", category="Music")
        video.toggle_like("u2")
        video.add_comment("u2", "nice")
        video.add_report("u3", "spam")

        repo.save(video)
        loaded = repo.get(video.id)

        assert loaded.title == "Clip"
        assert loaded.category == "Music"
        assert loaded.likes == ["u2"]
        assert loaded.comments[0].text == "nice"
        assert loaded.reports[0].reason == "spam"
        assert loaded.upload_date == video.upload_date

    def test_get_missing_raises(self, conn):
        """Unknown video ids should raise VideoNotFoundError."""
        with pytest.raises(VideoNotFoundError):
            VideoRepository(conn).get("nope")

    def test_list_by_owner(self, conn):
        """Only the owner's uploads, newest first."""
        repo = VideoRepository(conn)
        mine = Video(title="mine", owner_id="me", file_url="u")
        theirs = Video(title="theirs", owner_id="them", file_url="u")
        repo.save(mine)
        repo.save(theirs)

        assert [v.id for v in repo.list_by_owner("me")] == [mine.id]
        assert len(repo.list_all()) == 2


# ---------------------------------------------------------------------------
# UsageLimitRepository Tests
# ---------------------------------------------------------------------------

class TestUsageLimits:

    NOW = datetime(2024, 5, 1, 10, 7, tzinfo=timezone.utc)

    def test_window_start_is_aligned(self):
        """Windows should start on fixed boundaries."""
        assert window_start(self.NOW, 15) == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert window_start(self.NOW, 5) == datetime(2024, 5, 1, 10, 5, tzinfo=timezone.utc)

    def test_allows_up_to_limit_then_blocks(self, conn):
        """The request after the limit should be refused."""
        repo = UsageLimitRepository(conn)

        results = [
            repo.check_and_increment("1.2.3.4", "api", limit_max=3, now=self.NOW)
            for _ in range(4)
        ]

        assert [allowed for allowed, _, _ in results] == [True, True, True, False]
        assert results[-1] == (False, 3, 3)
        assert repo.get_usage("1.2.3.4", "api", now=self.NOW) == 3

    def test_limits_are_per_client(self, conn):
        """One client's traffic should not count against another."""
        repo = UsageLimitRepository(conn)
        repo.check_and_increment("1.1.1.1", "api", limit_max=1, now=self.NOW)

        allowed, count, _ = repo.check_and_increment("2.2.2.2", "api", limit_max=1, now=self.NOW)

        assert allowed
        assert count == 1

    def test_new_window_resets_count(self, conn):
        """A new window should start from zero."""
        repo = UsageLimitRepository(conn)
        repo.check_and_increment("1.1.1.1", "api", limit_max=1, now=self.NOW)

        later = self.NOW + timedelta(minutes=15)
        allowed, count, _ = repo.check_and_increment("1.1.1.1", "api", limit_max=1, now=later)

        assert allowed
        assert count == 1
