"""
Video processing infrastructure.

Handles server-side video processing using FFmpeg:
- Video metadata extraction
- Thumbnail frame extraction
"""

from .processor import (
    VideoInfo,
    VideoProcessingError,
    VideoProcessor,
    create_video_processor,
    get_ffmpeg_path,
    set_ffmpeg_path,
)

__all__ = [
    "VideoInfo",
    "VideoProcessingError",
    "VideoProcessor",
    "create_video_processor",
    "get_ffmpeg_path",
    "set_ffmpeg_path",
]
