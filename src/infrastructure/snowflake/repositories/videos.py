"""
Snowflake repository for videos.

Comments and reports are embedded in the video document, so loading a
video gives the whole discussion in one query.
"""

import logging
from datetime import datetime

from src.core.community.models import DEFAULT_THUMBNAIL, Comment, Report, Video

from .documents import DocumentTable, SnowflakeConnection

logger = logging.getLogger(__name__)


class VideoNotFoundError(Exception):
    """Raised when a requested video doesn't exist."""
    pass


def video_to_document(video: Video) -> dict:
    return {
        "id": video.id,
        "title": video.title,
        "description": video.description,
        "file_url": video.file_url,
        "public_id": video.public_id,
        "thumbnail": video.thumbnail,
        "category": video.category,
        "owner_id": video.owner_id,
        "likes": list(video.likes),
        "dislikes": list(video.dislikes),
        "comments": [
            {"user_id": c.user_id, "text": c.text, "date": c.date.isoformat()}
            for c in video.comments
        ],
        "reports": [
            {"user_id": r.user_id, "reason": r.reason, "date": r.date.isoformat()}
            for r in video.reports
        ],
        "upload_date": video.upload_date.isoformat(),
        "view_count": video.view_count,
        "duration_seconds": video.duration_seconds,
    }


def video_from_document(doc: dict) -> Video:
    return Video(
        id=doc["id"],
        title=doc.get("title", ""),
        description=doc.get("description", ""),
        file_url=doc["file_url"],
        public_id=doc.get("public_id", ""),
        thumbnail=doc.get("thumbnail") or DEFAULT_THUMBNAIL,
        category=doc.get("category", ""),
        owner_id=doc["owner_id"],
        likes=list(doc.get("likes", [])),
        dislikes=list(doc.get("dislikes", [])),
        comments=[
            Comment(user_id=c["user_id"], text=c["text"], date=datetime.fromisoformat(c["date"]))
            for c in doc.get("comments", [])
        ],
        reports=[
            Report(user_id=r["user_id"], reason=r.get("reason", ""), date=datetime.fromisoformat(r["date"]))
            for r in doc.get("reports", [])
        ],
        upload_date=datetime.fromisoformat(doc["upload_date"]),
        view_count=doc.get("view_count", 0),
        duration_seconds=doc.get("duration_seconds", 0.0),
    )


class VideoRepository:
    """Repository for video persistence."""

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._table = DocumentTable(connection, "videos")

    def save(self, video: Video) -> None:
        self._table.put(video.id, video_to_document(video))

    def get(self, video_id: str) -> Video:
        doc = self._table.get(video_id)
        if doc is None:
            raise VideoNotFoundError(f"Video {video_id} not found")
        return video_from_document(doc)

    def list_all(self) -> list[Video]:
        return [video_from_document(doc) for doc in self._table.all()]

    def list_by_owner(self, owner_id: str) -> list[Video]:
        return [video_from_document(doc) for doc in self._table.find_by("owner_id", owner_id)]

    def delete(self, video_id: str) -> bool:
        deleted = self._table.delete(video_id)
        if deleted:
            logger.info("Deleted video", extra={"video_id": video_id})
        return deleted
