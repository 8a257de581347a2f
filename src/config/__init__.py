"""
Application configuration and startup wiring.

Configuration comes from environment variables with development defaults.
Bootstrap hands the media cloud credentials and the FFmpeg path to the
libraries that need them.
"""

from .bootstrap import BootstrapReport, bootstrap, configure_media_cloud, configure_video_binding
from .settings import Settings, get_settings

__all__ = [
    "BootstrapReport",
    "Settings",
    "bootstrap",
    "configure_media_cloud",
    "configure_video_binding",
    "get_settings",
]
