"""
Cloud media client for videos, thumbnails and profile pictures.

Media lives on Cloudinary. Using a hosted media service instead of plain
object storage because:
- Uploaded videos are transcoded and served from a CDN
- Thumbnails can be derived from a video by URL transformation alone
- Delivery URLs can carry quality/size transformations for the player

Mock mode stores uploads in memory, enabling API testing without a
Cloudinary account.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import uuid4

import cloudinary
import cloudinary.uploader
import cloudinary.utils

logger = logging.getLogger(__name__)


class MediaUploadError(Exception):
    """Raised when media operations fail."""
    pass


@dataclass
class MediaConfig:
    """Credentials for the Cloudinary account."""
    cloud_name: str
    api_key: str
    api_secret: str


@dataclass
class MediaAsset:
    """An uploaded asset as the media cloud describes it."""
    public_id: str
    secure_url: str
    resource_type: str = "image"
    bytes: int = 0


def configure_cloudinary(config: MediaConfig) -> None:
    """
    Set the SDK's process-wide credentials.

    Values are passed through untouched. Placeholder credentials are
    accepted here and rejected by Cloudinary on first upload.
    """
    cloudinary.config(
        cloud_name=config.cloud_name,
        api_key=config.api_key,
        api_secret=config.api_secret,
    )

    logger.info(
        "Configured Cloudinary",
        extra={"cloud_name": config.cloud_name}
    )


class MediaClient(Protocol):
    """
    Protocol for media operations.

    Using a protocol means tests can provide mocks and routes don't
    care which backend serves the files.
    """

    async def upload_video(self, video_data: bytes, filename: str) -> MediaAsset:
        """Upload a video into the videos folder."""
        ...

    async def upload_image(self, image_data: bytes, folder: str, filename: str) -> MediaAsset:
        """Upload an image (thumbnail, profile picture) into a folder."""
        ...

    def video_thumbnail_url(self, public_id: str, width: int, height: int) -> str:
        """URL of a still derived from an uploaded video."""
        ...

    async def delete(self, public_id: str, resource_type: str = "image") -> bool:
        """Delete an asset. Returns True if something was removed."""
        ...


class CloudinaryMediaClient:
    """
    Cloudinary-backed media client.

    The SDK is synchronous, so calls run in a worker thread. Credentials
    come from configure_cloudinary(), which bootstrap calls before the app
    serves traffic.
    """

    def __init__(self) -> None:
        logger.info("Initialized Cloudinary media client")

    async def upload_video(self, video_data: bytes, filename: str) -> MediaAsset:
        """
        Upload a video.

        Videos go to the `videos` folder as resource_type=video so that
        Cloudinary can later derive thumbnails from them.
        """
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(video_data),
                resource_type="video",
                folder="videos",
                filename=filename,
            )
        except Exception as e:
            logger.error(
                "Failed to upload video",
                extra={"video_filename": filename, "error": str(e)}
            )
            raise MediaUploadError(f"Video upload failed: {e}")

        logger.info(
            "Uploaded video",
            extra={
                "public_id": result["public_id"],
                "size_bytes": len(video_data),
            }
        )

        return MediaAsset(
            public_id=result["public_id"],
            secure_url=result["secure_url"],
            resource_type="video",
            bytes=result.get("bytes", len(video_data)),
        )

    async def upload_image(self, image_data: bytes, folder: str, filename: str) -> MediaAsset:
        """Upload an image into the given folder."""
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(image_data),
                resource_type="image",
                folder=folder,
                filename=filename,
            )
        except Exception as e:
            logger.error(
                "Failed to upload image",
                extra={"folder": folder, "error": str(e)}
            )
            raise MediaUploadError(f"Image upload failed: {e}")

        return MediaAsset(
            public_id=result["public_id"],
            secure_url=result["secure_url"],
            resource_type="image",
            bytes=result.get("bytes", len(image_data)),
        )

    def video_thumbnail_url(self, public_id: str, width: int, height: int) -> str:
        """
        Build the URL of a PNG still of a video.

        No request is made; Cloudinary renders the still on first fetch.
        """
        url, _ = cloudinary.utils.cloudinary_url(
            public_id,
            resource_type="video",
            format="png",
            secure=True,
            transformation=[{"width": width, "height": height, "crop": "fill"}],
        )
        return url

    async def delete(self, public_id: str, resource_type: str = "image") -> bool:
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy, public_id, resource_type=resource_type
            )
        except Exception as e:
            logger.error(
                "Failed to delete asset",
                extra={"public_id": public_id, "error": str(e)}
            )
            raise MediaUploadError(f"Delete failed: {e}")

        return result.get("result") == "ok"


# ---------------------------------------------------------------------------
# Mock Media Client for Local Development
# ---------------------------------------------------------------------------

class MockMediaClient:
    """
    In-memory media store for local development.

    Assets are kept in a dictionary keyed by public_id and "URLs" are
    mock URIs. Not suitable for production.
    """

    def __init__(self) -> None:
        # {public_id: bytes}
        self._assets: dict[str, bytes] = {}
        logger.info("Initialized mock media client (in-memory)")

    def _store(self, data: bytes, folder: str, resource_type: str) -> MediaAsset:
        public_id = f"{folder}/{uuid4().hex}"
        self._assets[public_id] = data
        return MediaAsset(
            public_id=public_id,
            secure_url=f"mock://media/{resource_type}/{public_id}",
            resource_type=resource_type,
            bytes=len(data),
        )

    async def upload_video(self, video_data: bytes, filename: str) -> MediaAsset:
        return self._store(video_data, "videos", "video")

    async def upload_image(self, image_data: bytes, folder: str, filename: str) -> MediaAsset:
        return self._store(image_data, folder, "image")

    def video_thumbnail_url(self, public_id: str, width: int, height: int) -> str:
        return f"mock://media/video/w_{width},h_{height},c_fill/{public_id}.png"

    async def delete(self, public_id: str, resource_type: str = "image") -> bool:
        return self._assets.pop(public_id, None) is not None

    def get(self, public_id: str) -> Optional[bytes]:
        """Stored bytes for an asset (for test assertions)."""
        return self._assets.get(public_id)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_media_client(mock_mode: bool = False) -> MediaClient:
    """
    Create media client based on configuration.

    Args:
        mock_mode: If True, return the in-memory client

    Returns:
        MediaClient implementation (Cloudinary or Mock)
    """
    if mock_mode:
        return MockMediaClient()

    return CloudinaryMediaClient()
