"""
Response models shared by several routers.

Router-specific request/response models live next to their endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ..core.community.models import User, Video


class ProfileSummary(BaseModel):
    """Public view of a member."""
    id: str
    username: str
    profile_pic: str
    verified: bool
    subscriber_count: int


class VideoSummary(BaseModel):
    """A video card as shown in listings."""
    id: str
    title: str
    thumbnail: str
    file_url: str
    category: str
    owner_id: str
    owner_username: str = Field(description="'Unknown' if the owner was deleted")
    like_count: int
    dislike_count: int
    view_count: int
    upload_date: datetime


def to_profile_summary(user: User) -> ProfileSummary:
    return ProfileSummary(
        id=user.id,
        username=user.username,
        profile_pic=user.profile_pic,
        verified=user.verified,
        subscriber_count=user.subscriber_count,
    )


def to_video_summary(video: Video, usernames: dict[str, str]) -> VideoSummary:
    """
    Args:
        video: The video to describe
        usernames: {user_id: username} for owner lookup
    """
    return VideoSummary(
        id=video.id,
        title=video.title,
        thumbnail=video.thumbnail,
        file_url=video.file_url,
        category=video.category,
        owner_id=video.owner_id,
        owner_username=usernames.get(video.owner_id, "Unknown"),
        like_count=video.like_count,
        dislike_count=video.dislike_count,
        view_count=video.view_count,
        upload_date=video.upload_date,
    )


def username_index(users: list[User]) -> dict[str, str]:
    return {user.id: user.username for user in users}
