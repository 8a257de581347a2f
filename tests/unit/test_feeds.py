"""
Tests for the video listings.
"""

from datetime import datetime, timedelta, timezone

from src.core.community import feeds
from src.core.community.models import User, Video

BASE_TIME = datetime(2024, 5, 1, tzinfo=timezone.utc)


def video(title: str, **overrides) -> Video:
    fields = {"title": title, "owner_id": "owner", "file_url": f"https://cdn/{title}.mp4"}
    fields.update(overrides)
    return Video(**fields)


class TestRankings:

    def test_latest_orders_by_upload_date(self):
        """Newest uploads should come first."""
        old = video("old", upload_date=BASE_TIME)
        new = video("new", upload_date=BASE_TIME + timedelta(days=1))

        assert feeds.latest([old, new]) == [new, old]

    def test_popular_orders_by_likes(self):
        """The home page popular list ranks by likes."""
        quiet = video("quiet")
        loved = video("loved", likes=["a", "b"])

        assert feeds.popular([quiet, loved])[0] is loved

    def test_trending_orders_by_views(self):
        """Trending ranks by view count."""
        seen = video("seen", view_count=50)
        unseen = video("unseen")

        assert feeds.trending([unseen, seen])[0] is seen

    def test_feeds_are_capped(self):
        """Feeds should stop at the requested size."""
        videos = [video(f"v{i}") for i in range(8)]

        assert len(feeds.latest(videos)) == feeds.FEED_SIZE
        assert len(feeds.popular(videos, limit=3)) == 3

    def test_input_is_not_mutated(self):
        """Sorting should not reorder the caller's list."""
        videos = [video("a", view_count=1), video("b", view_count=2)]
        feeds.trending(videos)
        assert [v.title for v in videos] == ["a", "b"]


class TestSearch:

    def test_matches_title_case_insensitively(self):
        """Search should ignore case."""
        hit = video("Manila Sunset")
        miss = video("Cebu")

        assert feeds.search([hit, miss], "sunset") == [hit]

    def test_matches_description_and_category(self):
        """Search looks beyond the title."""
        by_description = video("x", description="street food tour")
        by_category = video("y", category="Music")

        assert feeds.search([by_description, by_category], "food") == [by_description]
        assert feeds.search([by_description, by_category], "music") == [by_category]

    def test_query_is_literal(self):
        """Regex characters in a query should match themselves."""
        tricky = video("a+b (live)")
        other = video("aab live")

        assert feeds.search([tricky, other], "a+b (") == [tricky]

    def test_empty_query_matches_all(self):
        """An empty search should list every video."""
        videos = [video("a"), video("b")]
        assert feeds.search(videos, "") == videos


class TestCategoriesAndSuggestions:

    def test_in_category_ignores_case(self):
        """Category pages should match regardless of case."""
        music = video("song", category="Music")
        news = video("report", category="News")

        assert feeds.in_category([music, news], "music") == [music]

    def test_suggestions_share_category_and_exclude_current(self):
        """Suggestions come from the same category, minus the video being watched."""
        current = video("current", category="Gaming")
        same = video("same", category="Gaming")
        other = video("other", category="News")

        assert feeds.suggested_for(current, [current, same, other]) == [same]

    def test_subscriptions_of(self):
        """Channels a member subscribes to."""
        followed = User(username="followed", email="f@example.com", subscribers=["me"])
        ignored = User(username="ignored", email="i@example.com")

        assert feeds.subscriptions_of("me", [followed, ignored]) == [followed]
