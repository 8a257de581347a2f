"""
Process-wide wiring of third-party bindings.

Two libraries keep global configuration rather than per-client objects:
- Cloudinary's SDK holds account credentials in a module-level config
- Our FFmpeg binding holds the path of the executable it shells out to

Both are set here, once, when the application is created. Nothing in this
module touches the network, the database or the filesystem.
"""

import logging
from dataclasses import dataclass, field

import imageio_ffmpeg

from ..infrastructure.media.client import MediaConfig, configure_cloudinary
from ..infrastructure.video.processor import set_ffmpeg_path
from .settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class BootstrapReport:
    """What bootstrap configured, for logging and tests."""
    ffmpeg_path: str
    placeholder_credentials: list[str] = field(default_factory=list)


def configure_video_binding() -> str:
    """
    Point the FFmpeg binding at the executable bundled by imageio-ffmpeg.

    Runs unconditionally, even in mock mode, so the binding never falls
    back to whatever ffmpeg happens to be on PATH.
    """
    ffmpeg_path = imageio_ffmpeg.get_ffmpeg_exe()
    set_ffmpeg_path(ffmpeg_path)

    logger.debug("FFmpeg binding configured", extra={"ffmpeg_path": ffmpeg_path})

    return ffmpeg_path


def configure_media_cloud(settings: Settings) -> MediaConfig:
    """Hand the Cloudinary credentials to the SDK exactly as configured."""
    config = MediaConfig(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
    )
    configure_cloudinary(config)
    return config


def bootstrap(settings: Settings) -> BootstrapReport:
    """
    Configure every global binding the application relies on.

    Order matters: the FFmpeg path is set before anything can construct
    a video processor.
    """
    ffmpeg_path = configure_video_binding()
    configure_media_cloud(settings)

    placeholders = settings.placeholder_media_credentials()
    if placeholders and not settings.cloudinary_mock_mode:
        # uploads will be rejected by Cloudinary, not by us
        logger.warning(
            "Cloudinary credentials are placeholders",
            extra={"settings": placeholders}
        )

    return BootstrapReport(ffmpeg_path=ffmpeg_path, placeholder_credentials=placeholders)
