"""
Cloud media integration for uploaded videos and images.

Backed by Cloudinary, with an in-memory mock for local development.
"""

from .client import (
    MediaAsset,
    MediaClient,
    MediaConfig,
    MediaUploadError,
    configure_cloudinary,
    create_media_client,
)

__all__ = [
    "MediaAsset",
    "MediaClient",
    "MediaConfig",
    "MediaUploadError",
    "configure_cloudinary",
    "create_media_client",
]
