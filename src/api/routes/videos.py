"""
Video endpoints: feeds, upload, viewing, reactions and discussion.

Upload flow:
1. Video bytes go to the media cloud
2. A thumbnail is chosen: the uploaded image if one was sent, otherwise a
   frame grabbed with FFmpeg, otherwise a still the media cloud derives
   from the video by URL
3. The video document is saved and every connected client is notified
"""

import logging
from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from ...config.settings import Settings
from ...core.community import feeds
from ...core.community.models import BROWSE_CATEGORIES, DEFAULT_CATEGORY, User, Video
from ...infrastructure.media.client import MediaAsset, MediaClient, MediaUploadError
from ...infrastructure.snowflake.repositories import (
    UserNotFoundError,
    UserRepository,
    VideoNotFoundError,
    VideoRepository,
)
from ...infrastructure.video.processor import (
    VideoProcessingError,
    VideoProcessor,
    thumbnail_timestamp,
)
from ..dependencies import (
    CurrentUser,
    MediaClientDep,
    NotificationHubDep,
    SessionUserId,
    SettingsDep,
    UserRepositoryDep,
    VideoProcessorDep,
    VideoRepositoryDep,
)
from ..schemas import (
    ProfileSummary,
    VideoSummary,
    to_profile_summary,
    to_video_summary,
    username_index,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class FeedResponse(BaseModel):
    """Home page listings."""
    latest: list[VideoSummary]
    popular: list[VideoSummary] = Field(description="Most liked")
    trending: list[VideoSummary] = Field(description="Most viewed")


class VideoListResponse(BaseModel):
    videos: list[VideoSummary]
    total: int


class CommentResponse(BaseModel):
    user_id: str
    username: str
    text: str
    date: datetime


class VideoDetailResponse(BaseModel):
    """Everything the watch page needs."""
    video: VideoSummary
    description: str
    duration_seconds: float
    owner: Optional[ProfileSummary] = None
    comments: list[CommentResponse]
    suggested: list[VideoSummary]
    is_owner: bool = False
    liked: bool = False
    disliked: bool = False
    subscribed_to_owner: bool = False


class ReactionResponse(BaseModel):
    liked: bool
    disliked: bool
    like_count: int
    dislike_count: int


class CommentRequest(BaseModel):
    comment: str = ""


class ReportRequest(BaseModel):
    reason: str = ""


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def load_video(videos: VideoRepository, video_id: str) -> Video:
    try:
        return videos.get(video_id)
    except VideoNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Video not found.",
        )


async def read_upload(
    upload: UploadFile,
    settings: Settings,
    expected_type: str,
) -> bytes:
    """Read an uploaded file, enforcing its media type and the size limit."""
    if upload.content_type and not upload.content_type.startswith(f"{expected_type}/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type: {upload.content_type}. Expected {expected_type}.",
        )

    data = await upload.read()

    if len(data) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size: {settings.max_upload_size_mb}MB",
        )

    return data


async def choose_thumbnail(
    video_data: bytes,
    asset: MediaAsset,
    duration_seconds: float,
    thumbnail_data: Optional[bytes],
    media: MediaClient,
    processor: VideoProcessor,
    settings: Settings,
) -> str:
    """
    Pick the thumbnail URL for a new upload.

    Neither a failed image upload nor an FFmpeg failure is fatal; the media
    cloud can still derive a still from the uploaded video.
    """
    try:
        if thumbnail_data is not None:
            uploaded = await media.upload_image(thumbnail_data, folder="thumbnails", filename="thumbnail")
            return uploaded.secure_url

        frame = await processor.extract_thumbnail(
            video_data,
            timestamp=thumbnail_timestamp(settings.thumbnail_timestamp_seconds, duration_seconds),
            width=settings.thumbnail_width,
            height=settings.thumbnail_height,
        )
        uploaded = await media.upload_image(frame, folder="thumbnails", filename="thumbnail.jpg")
        return uploaded.secure_url
    except (VideoProcessingError, MediaUploadError) as e:
        logger.warning(
            "Falling back to derived thumbnail",
            extra={"public_id": asset.public_id, "error": str(e)}
        )

    return media.video_thumbnail_url(
        asset.public_id,
        width=settings.thumbnail_width,
        height=settings.thumbnail_height,
    )


async def remove_video_asset(media: MediaClient, video: Video) -> None:
    """Delete the uploaded file from the media cloud. Failures are logged only."""
    if not video.public_id:
        return

    try:
        removed = await media.delete(video.public_id, resource_type="video")
    except MediaUploadError as e:
        logger.warning(
            "Could not delete video asset",
            extra={"video_id": video.id, "public_id": video.public_id, "error": str(e)}
        )
        return

    if not removed:
        logger.warning(
            "Video asset was already gone",
            extra={"video_id": video.id, "public_id": video.public_id}
        )


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

@router.get("", response_model=FeedResponse, summary="Home feed")
async def home_feed(
    videos: VideoRepositoryDep,
    users: UserRepositoryDep,
) -> FeedResponse:
    all_videos = videos.list_all()
    usernames = username_index(users.list_all())

    return FeedResponse(
        latest=[to_video_summary(v, usernames) for v in feeds.latest(all_videos)],
        popular=[to_video_summary(v, usernames) for v in feeds.popular(all_videos)],
        trending=[to_video_summary(v, usernames) for v in feeds.trending(all_videos)],
    )


@router.get("/search", response_model=VideoListResponse, summary="Search videos")
async def search_videos(
    videos: VideoRepositoryDep,
    users: UserRepositoryDep,
    query: str = "",
) -> VideoListResponse:
    matches = feeds.search(videos.list_all(), query)
    usernames = username_index(users.list_all())

    return VideoListResponse(
        videos=[to_video_summary(v, usernames) for v in matches],
        total=len(matches),
    )


@router.get(
    "/category/{category}",
    response_model=VideoListResponse,
    summary="Videos in a category",
)
async def category_videos(
    category: str,
    videos: VideoRepositoryDep,
    users: UserRepositoryDep,
) -> VideoListResponse:
    if category.lower() not in BROWSE_CATEGORIES:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown category: {category}",
        )

    matches = feeds.in_category(videos.list_all(), category)
    usernames = username_index(users.list_all())

    return VideoListResponse(
        videos=[to_video_summary(v, usernames) for v in matches],
        total=len(matches),
    )


# ---------------------------------------------------------------------------
# Upload and Editing
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=VideoSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a video",
)
async def upload_video(
    user: CurrentUser,
    video_file: Annotated[UploadFile, File(description="The video")],
    title: Annotated[str, Form()],
    videos: VideoRepositoryDep,
    media: MediaClientDep,
    processor: VideoProcessorDep,
    hub: NotificationHubDep,
    settings: SettingsDep,
    description: Annotated[str, Form()] = "",
    category: Annotated[str, Form()] = DEFAULT_CATEGORY,
    thumbnail_file: Annotated[Optional[UploadFile], File(description="Optional thumbnail image")] = None,
) -> VideoSummary:
    video_data = await read_upload(video_file, settings, "video")
    thumbnail_data = None
    if thumbnail_file is not None and thumbnail_file.filename:
        thumbnail_data = await read_upload(thumbnail_file, settings, "image")

    logger.info(
        "Video upload started",
        extra={
            "user_id": user.id,
            "video_filename": video_file.filename,
            "size_bytes": len(video_data),
        }
    )

    duration = 0.0
    try:
        info = await processor.get_video_info(video_data)
        duration = info.duration_seconds
    except VideoProcessingError as e:
        logger.warning("Could not read video metadata", extra={"error": str(e)})

    try:
        asset = await media.upload_video(video_data, filename=video_file.filename or "video.mp4")
        thumbnail = await choose_thumbnail(
            video_data, asset, duration, thumbnail_data, media, processor, settings
        )
    except MediaUploadError as e:
        logger.error("Upload error", extra={"user_id": user.id, "error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Error uploading video.",
        )

    video = Video(
        title=title,
        description=description,
        category=category,
        owner_id=user.id,
        file_url=asset.secure_url,
        public_id=asset.public_id,
        thumbnail=thumbnail,
        duration_seconds=duration,
    )
    videos.save(video)

    await hub.broadcast("New video uploaded!")

    return to_video_summary(video, {user.id: user.username})


@router.patch("/{video_id}", response_model=VideoSummary, summary="Edit a video")
async def edit_video(
    video_id: str,
    user: CurrentUser,
    videos: VideoRepositoryDep,
    media: MediaClientDep,
    settings: SettingsDep,
    title: Annotated[Optional[str], Form()] = None,
    description: Annotated[Optional[str], Form()] = None,
    category: Annotated[Optional[str], Form()] = None,
    thumbnail_file: Annotated[Optional[UploadFile], File()] = None,
) -> VideoSummary:
    video = load_video(videos, video_id)

    if not video.is_owned_by(user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized.")

    if title is not None:
        video.title = title
    if description is not None:
        video.description = description
    if category is not None:
        video.category = category.strip() or DEFAULT_CATEGORY

    if thumbnail_file is not None and thumbnail_file.filename:
        data = await read_upload(thumbnail_file, settings, "image")
        try:
            uploaded = await media.upload_image(data, folder="thumbnails", filename=thumbnail_file.filename)
        except MediaUploadError:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Error updating video.",
            )
        video.thumbnail = uploaded.secure_url

    videos.save(video)

    return to_video_summary(video, {user.id: user.username})


@router.delete("/{video_id}", summary="Delete your video")
async def delete_video(
    video_id: str,
    user: CurrentUser,
    videos: VideoRepositoryDep,
    media: MediaClientDep,
) -> dict:
    video = load_video(videos, video_id)

    if not video.is_owned_by(user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized.")

    videos.delete(video.id)
    await remove_video_asset(media, video)
    return {"deleted": True, "id": video.id}


# ---------------------------------------------------------------------------
# Watching
# ---------------------------------------------------------------------------

@router.get("/{video_id}", response_model=VideoDetailResponse, summary="Watch a video")
async def get_video(
    video_id: str,
    videos: VideoRepositoryDep,
    users: UserRepositoryDep,
    viewer_id: SessionUserId,
) -> VideoDetailResponse:
    """Counts as a view."""
    video = load_video(videos, video_id)
    video.record_view()
    videos.save(video)

    all_users = users.list_all()
    by_id = {u.id: u for u in all_users}
    usernames = username_index(all_users)
    owner = by_id.get(video.owner_id)

    return VideoDetailResponse(
        video=to_video_summary(video, usernames),
        description=video.description,
        duration_seconds=video.duration_seconds,
        owner=to_profile_summary(owner) if owner else None,
        comments=[
            CommentResponse(
                user_id=c.user_id,
                username=usernames.get(c.user_id, "Unknown"),
                text=c.text,
                date=c.date,
            )
            for c in video.comments
        ],
        suggested=[
            to_video_summary(v, usernames)
            for v in feeds.suggested_for(video, videos.list_all())
        ],
        is_owner=video.is_owned_by(viewer_id),
        liked=viewer_id in video.likes,
        disliked=viewer_id in video.dislikes,
        subscribed_to_owner=bool(viewer_id and owner and owner.has_subscriber(viewer_id)),
    )


@router.get("/{video_id}/download", summary="Download the original file")
async def download_video(video_id: str, videos: VideoRepositoryDep) -> RedirectResponse:
    video = load_video(videos, video_id)
    return RedirectResponse(video.file_url, status_code=status.HTTP_302_FOUND)


# ---------------------------------------------------------------------------
# Reactions and Discussion
# ---------------------------------------------------------------------------

def _owner_name(users: UserRepository, video: Video) -> str:
    try:
        return users.get(video.owner_id).username
    except UserNotFoundError:
        return "Unknown"


def _reaction(video: Video, user: User) -> ReactionResponse:
    return ReactionResponse(
        liked=user.id in video.likes,
        disliked=user.id in video.dislikes,
        like_count=video.like_count,
        dislike_count=video.dislike_count,
    )


@router.post("/{video_id}/like", response_model=ReactionResponse, summary="Toggle like")
async def like_video(
    video_id: str,
    user: CurrentUser,
    videos: VideoRepositoryDep,
    users: UserRepositoryDep,
    hub: NotificationHubDep,
) -> ReactionResponse:
    video = load_video(videos, video_id)

    if video.toggle_like(user.id):
        await hub.broadcast(
            f'{user.username} liked "{video.title}" by {_owner_name(users, video)}'
        )

    videos.save(video)
    return _reaction(video, user)


@router.post("/{video_id}/dislike", response_model=ReactionResponse, summary="Toggle dislike")
async def dislike_video(
    video_id: str,
    user: CurrentUser,
    videos: VideoRepositoryDep,
    users: UserRepositoryDep,
    hub: NotificationHubDep,
) -> ReactionResponse:
    video = load_video(videos, video_id)

    if video.toggle_dislike(user.id):
        await hub.broadcast(
            f'{user.username} disliked "{video.title}" by {_owner_name(users, video)}'
        )

    videos.save(video)
    return _reaction(video, user)


@router.post(
    "/{video_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a video",
)
async def comment_on_video(
    video_id: str,
    body: CommentRequest,
    user: CurrentUser,
    videos: VideoRepositoryDep,
    hub: NotificationHubDep,
) -> CommentResponse:
    video = load_video(videos, video_id)

    try:
        comment = video.add_comment(user.id, body.comment)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    videos.save(video)
    await hub.broadcast("New comment added!")

    return CommentResponse(
        user_id=user.id,
        username=user.username,
        text=comment.text,
        date=comment.date,
    )


@router.post(
    "/{video_id}/reports",
    status_code=status.HTTP_201_CREATED,
    summary="Report a video",
)
async def report_video(
    video_id: str,
    body: ReportRequest,
    user: CurrentUser,
    videos: VideoRepositoryDep,
    hub: NotificationHubDep,
) -> dict:
    video = load_video(videos, video_id)
    video.add_report(user.id, body.reason)
    videos.save(video)

    await hub.broadcast("A video has been reported!")

    return {"message": "Report submitted.", "report_count": len(video.reports)}
