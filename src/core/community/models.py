"""
Domain models for the video community.

These models represent the core business concepts: members, their
videos and the interactions around them. They have no dependencies on
web frameworks, databases or media services, so the rules can be tested
on their own.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

DEFAULT_CATEGORY = "General"

# Categories with their own browse page
BROWSE_CATEGORIES = ("music", "gaming", "news", "general")

DEFAULT_PROFILE_PIC = "https://via.placeholder.com/150/ffffff/000000?text=No+Pic"
DEFAULT_BACKGROUND_PIC = "/uploads/backgrounds/default.png"
DEFAULT_THUMBNAIL = "/uploads/thumbnails/default.png"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


def normalize_username(username: Optional[str]) -> str:
    """Usernames are matched case-insensitively and without outer spaces."""
    return (username or "").strip().lower()


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class SelfSubscriptionError(ValueError):
    """Raised when a member tries to subscribe to their own channel."""
    pass


@dataclass
class AdminWarning:
    """A warning an administrator issued to a member."""
    message: str
    date: datetime = field(default_factory=utcnow)


@dataclass
class Comment:
    """A comment left on a video."""
    user_id: str
    text: str
    date: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if not self.text.strip():
            raise ValueError("Comment cannot be empty")


@dataclass
class Report:
    """A member flagging a video for moderation."""
    user_id: str
    reason: str = ""
    date: datetime = field(default_factory=utcnow)


@dataclass
class User:
    """
    A registered member.

    Subscribers are stored on the channel being followed, so "who do I
    follow" is answered by scanning for members whose subscribers
    include me.
    """
    username: str
    email: str
    password_hash: str = ""
    id: str = field(default_factory=new_id)
    is_admin: bool = False
    banned: bool = False
    verified: bool = False
    subscribers: list[str] = field(default_factory=list)
    profile_pic: str = DEFAULT_PROFILE_PIC
    background_pic: str = DEFAULT_BACKGROUND_PIC
    about: str = ""
    warnings: list[AdminWarning] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.username = normalize_username(self.username)
        self.email = normalize_email(self.email)
        if not self.username:
            raise ValueError("Username cannot be empty")
        if not self.email:
            raise ValueError("Email cannot be empty")

    @property
    def subscriber_count(self) -> int:
        return len(self.subscribers)

    def has_subscriber(self, user_id: str) -> bool:
        return user_id in self.subscribers

    def toggle_subscriber(self, user_id: str) -> bool:
        """
        Subscribe or unsubscribe `user_id` to this channel.

        Returns True if the user is subscribed afterwards.
        """
        if user_id == self.id:
            raise SelfSubscriptionError("You cannot subscribe to yourself")

        if user_id in self.subscribers:
            self.subscribers = [sid for sid in self.subscribers if sid != user_id]
            return False

        self.subscribers.append(user_id)
        return True

    def add_warning(self, message: str) -> AdminWarning:
        warning = AdminWarning(message=message)
        self.warnings.append(warning)
        return warning

    def toggle_ban(self) -> bool:
        """Flip the ban flag. Returns the new state."""
        self.banned = not self.banned
        return self.banned

    def verify(self) -> None:
        self.verified = True


@dataclass
class Video:
    """
    An uploaded video and everything members did with it.

    Likes and dislikes are mutually exclusive per member: reacting one way
    always clears the other.
    """
    title: str
    owner_id: str
    file_url: str
    description: str = ""
    public_id: str = ""
    thumbnail: str = DEFAULT_THUMBNAIL
    category: str = DEFAULT_CATEGORY
    id: str = field(default_factory=new_id)
    likes: list[str] = field(default_factory=list)
    dislikes: list[str] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    reports: list[Report] = field(default_factory=list)
    upload_date: datetime = field(default_factory=utcnow)
    view_count: int = 0
    duration_seconds: float = 0.0

    def __post_init__(self) -> None:
        self.category = (self.category or "").strip() or DEFAULT_CATEGORY

    @property
    def like_count(self) -> int:
        return len(self.likes)

    @property
    def dislike_count(self) -> int:
        return len(self.dislikes)

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        return user_id is not None and self.owner_id == user_id

    def toggle_like(self, user_id: str) -> bool:
        """
        Like the video, or take an existing like back.

        Returns True if the video is liked by the user afterwards.
        """
        self.dislikes = [uid for uid in self.dislikes if uid != user_id]

        if user_id in self.likes:
            self.likes = [uid for uid in self.likes if uid != user_id]
            return False

        self.likes.append(user_id)
        return True

    def toggle_dislike(self, user_id: str) -> bool:
        """Mirror of toggle_like."""
        self.likes = [uid for uid in self.likes if uid != user_id]

        if user_id in self.dislikes:
            self.dislikes = [uid for uid in self.dislikes if uid != user_id]
            return False

        self.dislikes.append(user_id)
        return True

    def add_comment(self, user_id: str, text: str) -> Comment:
        comment = Comment(user_id=user_id, text=text)
        self.comments.append(comment)
        return comment

    def add_report(self, user_id: str, reason: str = "") -> Report:
        report = Report(user_id=user_id, reason=reason)
        self.reports.append(report)
        return report

    def record_view(self) -> int:
        self.view_count += 1
        return self.view_count
