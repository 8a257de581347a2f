"""
Video listings: home page rankings, search, categories and suggestions.

All functions take already-loaded videos and return new lists; none of
them mutate their input.
"""

from typing import Iterable

from .models import User, Video

FEED_SIZE = 5


def latest(videos: Iterable[Video], limit: int = FEED_SIZE) -> list[Video]:
    """Most recently uploaded first."""
    return sorted(videos, key=lambda v: v.upload_date, reverse=True)[:limit]


def popular(videos: Iterable[Video], limit: int = FEED_SIZE) -> list[Video]:
    """Most liked first."""
    return sorted(videos, key=lambda v: v.like_count, reverse=True)[:limit]


def trending(videos: Iterable[Video], limit: int = FEED_SIZE) -> list[Video]:
    """Most viewed first."""
    return sorted(videos, key=lambda v: v.view_count, reverse=True)[:limit]


def search(videos: Iterable[Video], query: str) -> list[Video]:
    """
    Case-insensitive substring match on title, description or category.

    The query is matched literally; an empty query matches everything.
    """
    needle = (query or "").strip().lower()
    return [
        video for video in videos
        if needle in (video.title or "").lower()
        or needle in (video.description or "").lower()
        or needle in (video.category or "").lower()
    ]


def in_category(videos: Iterable[Video], category: str) -> list[Video]:
    """Videos whose category equals `category`, ignoring case."""
    wanted = category.strip().lower()
    return [video for video in videos if video.category.lower() == wanted]


def suggested_for(video: Video, videos: Iterable[Video], limit: int = FEED_SIZE) -> list[Video]:
    """Other videos from the same category."""
    return [
        other for other in videos
        if other.id != video.id and other.category == video.category
    ][:limit]


def subscriptions_of(user_id: str, users: Iterable[User]) -> list[User]:
    """Channels the given member is subscribed to."""
    return [user for user in users if user.has_subscriber(user_id)]
