"""
Video community domain.

Members, videos, reactions, comments, moderation and the listings built
from them.
"""

from .models import (
    BROWSE_CATEGORIES,
    DEFAULT_CATEGORY,
    AdminWarning,
    Comment,
    Report,
    SelfSubscriptionError,
    User,
    Video,
    normalize_email,
    normalize_username,
)

__all__ = [
    "BROWSE_CATEGORIES",
    "DEFAULT_CATEGORY",
    "AdminWarning",
    "Comment",
    "Report",
    "SelfSubscriptionError",
    "User",
    "Video",
    "normalize_email",
    "normalize_username",
]
