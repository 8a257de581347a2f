"""
Moderation endpoints for administrators.

Admins can ban, verify, warn and delete members, and delete any video.
An admin cannot ban, warn or delete their own account.
"""

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from ...core.community.models import User
from ...infrastructure.snowflake.repositories import (
    UserNotFoundError,
    UserRepository,
    VideoNotFoundError,
)
from ..dependencies import (
    AdminUser,
    MediaClientDep,
    NotificationHubDep,
    UserRepositoryDep,
    VideoRepositoryDep,
)
from ..schemas import username_index
from .videos import remove_video_asset

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class AdminUserEntry(BaseModel):
    id: str
    username: str
    email: str
    banned: bool
    verified: bool
    is_admin: bool
    warning_count: int


class AdminVideoEntry(BaseModel):
    id: str
    title: str
    owner_username: str
    report_count: int


class AdminOverview(BaseModel):
    users: list[AdminUserEntry]
    videos: list[AdminVideoEntry]


class WarnRequest(BaseModel):
    message: str


def to_admin_entry(user: User) -> AdminUserEntry:
    return AdminUserEntry(
        id=user.id,
        username=user.username,
        email=user.email,
        banned=user.banned,
        verified=user.verified,
        is_admin=user.is_admin,
        warning_count=len(user.warnings),
    )


def load_member(users: UserRepository, user_id: str) -> User:
    try:
        return users.get(user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")


def refuse_self(admin: User, target: User, action: str) -> None:
    if admin.id == target.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"You cannot {action} your own account.",
        )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=AdminOverview, summary="Moderation overview")
async def overview(
    admin: AdminUser,
    users: UserRepositoryDep,
    videos: VideoRepositoryDep,
) -> AdminOverview:
    members = users.list_all()
    usernames = username_index(members)

    return AdminOverview(
        users=[to_admin_entry(u) for u in members],
        videos=[
            AdminVideoEntry(
                id=v.id,
                title=v.title,
                owner_username=usernames.get(v.owner_id, "Unknown"),
                report_count=len(v.reports),
            )
            for v in videos.list_all()
        ],
    )


@router.post("/users/{user_id}/ban", response_model=AdminUserEntry, summary="Toggle ban")
async def toggle_ban(
    user_id: str,
    admin: AdminUser,
    users: UserRepositoryDep,
) -> AdminUserEntry:
    target = load_member(users, user_id)
    refuse_self(admin, target, "ban")

    banned = target.toggle_ban()
    users.save(target)

    logger.info(
        "Ban status changed",
        extra={"admin_id": admin.id, "user_id": target.id, "banned": banned}
    )

    return to_admin_entry(target)


@router.post("/users/{user_id}/verify", response_model=AdminUserEntry, summary="Verify a member")
async def verify_member(
    user_id: str,
    admin: AdminUser,
    users: UserRepositoryDep,
) -> AdminUserEntry:
    target = load_member(users, user_id)
    target.verify()
    users.save(target)
    return to_admin_entry(target)


@router.post("/users/{user_id}/warn", response_model=AdminUserEntry, summary="Warn a member")
async def warn_member(
    user_id: str,
    body: WarnRequest,
    admin: AdminUser,
    users: UserRepositoryDep,
    hub: NotificationHubDep,
) -> AdminUserEntry:
    message = body.message.strip()
    if not message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Warning message is required.",
        )

    target = load_member(users, user_id)
    refuse_self(admin, target, "warn")

    target.add_warning(message)
    users.save(target)

    await hub.broadcast(f"Admin warned {target.username} for: {message}")

    return to_admin_entry(target)


@router.delete("/users/{user_id}", summary="Delete a member")
async def delete_member(
    user_id: str,
    admin: AdminUser,
    users: UserRepositoryDep,
) -> dict:
    """Their videos are kept and show the owner as "Unknown"."""
    target = load_member(users, user_id)
    refuse_self(admin, target, "delete")

    users.delete(target.id)
    logger.info("Member deleted", extra={"admin_id": admin.id, "user_id": target.id})

    return {"deleted": True, "id": target.id}


@router.delete("/videos/{video_id}", summary="Delete any video")
async def delete_any_video(
    video_id: str,
    admin: AdminUser,
    videos: VideoRepositoryDep,
    media: MediaClientDep,
) -> dict:
    try:
        video = videos.get(video_id)
    except VideoNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found.")

    videos.delete(video.id)
    await remove_video_asset(media, video)
    logger.info("Video deleted by admin", extra={"admin_id": admin.id, "video_id": video.id})

    return {"deleted": True, "id": video.id}
