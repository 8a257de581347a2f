"""
Member endpoints: profiles, channel pages and subscriptions.
"""

import logging
from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel, Field

from ...core.community import feeds
from ...core.community.models import SelfSubscriptionError
from ...infrastructure.media.client import MediaUploadError
from ...infrastructure.snowflake.repositories import UserNotFoundError
from ..dependencies import (
    CurrentUser,
    MediaClientDep,
    NotificationHubDep,
    SessionUserId,
    SettingsDep,
    UserRepositoryDep,
    VideoRepositoryDep,
)
from ..schemas import (
    ProfileSummary,
    VideoSummary,
    to_profile_summary,
    to_video_summary,
)
from .videos import read_upload

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------

class WarningResponse(BaseModel):
    message: str
    date: datetime


class ProfileResponse(BaseModel):
    """A channel page."""
    profile: ProfileSummary
    about: str
    background_pic: str
    videos: list[VideoSummary]
    popular: list[VideoSummary] = Field(description="Top 3 most viewed")
    is_own_profile: bool = False
    subscribed: bool = False
    # Only filled in when the member is looking at their own page
    subscriptions: Optional[list[ProfileSummary]] = None
    warnings: Optional[list[WarningResponse]] = None


class SubscriptionsResponse(BaseModel):
    subscriptions: list[ProfileSummary]


class SubscribeResponse(BaseModel):
    subscribed: bool
    subscriber_count: int


# ---------------------------------------------------------------------------
# Own Account
# ---------------------------------------------------------------------------

@router.get(
    "/me/subscriptions",
    response_model=SubscriptionsResponse,
    summary="Channels you follow",
)
async def my_subscriptions(
    user: CurrentUser,
    users: UserRepositoryDep,
) -> SubscriptionsResponse:
    channels = feeds.subscriptions_of(user.id, users.list_all())
    return SubscriptionsResponse(
        subscriptions=[to_profile_summary(channel) for channel in channels]
    )


@router.patch("/me", response_model=ProfileSummary, summary="Update your profile")
async def update_profile(
    user: CurrentUser,
    users: UserRepositoryDep,
    media: MediaClientDep,
    settings: SettingsDep,
    about: Annotated[Optional[str], Form()] = None,
    profile_pic: Annotated[Optional[UploadFile], File()] = None,
) -> ProfileSummary:
    if about is not None:
        user.about = about

    if profile_pic is not None and profile_pic.filename:
        data = await read_upload(profile_pic, settings, "image")
        try:
            uploaded = await media.upload_image(data, folder="profiles", filename=profile_pic.filename)
        except MediaUploadError as e:
            logger.error("Profile picture upload failed", extra={"user_id": user.id, "error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Error updating profile.",
            )
        user.profile_pic = uploaded.secure_url

    users.save(user)

    return to_profile_summary(user)


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------

@router.get("/{user_id}", response_model=ProfileResponse, summary="Channel page")
async def get_profile(
    user_id: str,
    users: UserRepositoryDep,
    videos: VideoRepositoryDep,
    viewer_id: SessionUserId,
) -> ProfileResponse:
    try:
        owner = users.get(user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    uploads = videos.list_by_owner(owner.id)
    usernames = {owner.id: owner.username}
    is_own = viewer_id == owner.id

    response = ProfileResponse(
        profile=to_profile_summary(owner),
        about=owner.about,
        background_pic=owner.background_pic,
        videos=[to_video_summary(v, usernames) for v in uploads],
        popular=[to_video_summary(v, usernames) for v in feeds.trending(uploads, limit=3)],
        is_own_profile=is_own,
        subscribed=bool(viewer_id) and owner.has_subscriber(viewer_id),
    )

    if is_own:
        response.subscriptions = [
            to_profile_summary(channel)
            for channel in feeds.subscriptions_of(owner.id, users.list_all())
        ]
        response.warnings = [
            WarningResponse(message=w.message, date=w.date) for w in owner.warnings
        ]

    return response


@router.post(
    "/{user_id}/subscribe",
    response_model=SubscribeResponse,
    summary="Toggle subscription",
)
async def toggle_subscription(
    user_id: str,
    user: CurrentUser,
    users: UserRepositoryDep,
    hub: NotificationHubDep,
) -> SubscribeResponse:
    try:
        channel = users.get(user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    try:
        subscribed = channel.toggle_subscriber(user.id)
    except SelfSubscriptionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    users.save(channel)

    if subscribed:
        await hub.broadcast(f"{user.username} subscribed to {channel.username}")
    else:
        await hub.broadcast(f"{user.username} unsubscribed from {channel.username}")

    return SubscribeResponse(
        subscribed=subscribed,
        subscriber_count=channel.subscriber_count,
    )
