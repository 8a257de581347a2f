"""
Video processing service using FFmpeg.

Used for two things on upload:
1. Read basic metadata (duration, resolution, codec)
2. Grab a single frame to use as the video's thumbnail

The FFmpeg executable comes from imageio-ffmpeg, which ships a static
build inside its wheel. Bootstrap calls set_ffmpeg_path() with that
location before any processor is created, so processors never depend
on what is installed system-wide.
"""

import asyncio
import logging
import os
import re
import subprocess
import tempfile
from dataclasses import dataclass
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

_ffmpeg_path = "ffmpeg"

_DURATION_RE = re.compile(r"Duration:\s*(\d+):(\d+):(\d+(?:\.\d+)?)")
_VIDEO_STREAM_RE = re.compile(r"Stream #\S+.*?Video:\s*(\w+).*?,\s*(\d{2,5})x(\d{2,5})")


class VideoProcessingError(Exception):
    """Raised when FFmpeg cannot read or convert a video."""
    pass


def set_ffmpeg_path(path: str) -> None:
    """Set the executable every FFmpeg processor uses."""
    global _ffmpeg_path
    _ffmpeg_path = path


def get_ffmpeg_path() -> str:
    return _ffmpeg_path


@dataclass
class VideoInfo:
    """Video metadata read from FFmpeg's stream banner."""
    duration_seconds: float
    width: int
    height: int
    codec: str
    file_size_bytes: int

    @property
    def resolution(self) -> str:
        return f"{self.width}x{self.height}"


def parse_ffmpeg_banner(banner: str, file_size_bytes: int = 0) -> VideoInfo:
    """
    Parse the input description ffmpeg prints to stderr.

    `ffmpeg -i file` exits non-zero (no output file given) but still
    prints lines like:
        Duration: 00:00:12.48, start: 0.000000, bitrate: 1205 kb/s
        Stream #0:0(und): Video: h264 (High) (avc1 / 0x31637661), yuv420p, 1280x720, ...
    """
    stream = _VIDEO_STREAM_RE.search(banner)
    if not stream:
        raise VideoProcessingError("No video stream found")

    duration = 0.0
    match = _DURATION_RE.search(banner)
    if match:
        hours, minutes, seconds = match.groups()
        duration = int(hours) * 3600 + int(minutes) * 60 + float(seconds)

    return VideoInfo(
        duration_seconds=duration,
        width=int(stream.group(2)),
        height=int(stream.group(3)),
        codec=stream.group(1),
        file_size_bytes=file_size_bytes,
    )


def thumbnail_timestamp(preferred: float, duration_seconds: float) -> float:
    """Seek position for the thumbnail frame, kept inside short videos."""
    if duration_seconds <= 0:
        return 0.0
    return min(preferred, duration_seconds / 2)


class VideoProcessor(Protocol):
    """Protocol for video processing operations."""

    async def get_video_info(self, video_data: bytes) -> VideoInfo:
        """Extract metadata from video."""
        ...

    async def extract_thumbnail(
        self,
        video_data: bytes,
        timestamp: float,
        width: int,
        height: int,
    ) -> bytes:
        """Return one JPEG frame scaled to fill width x height."""
        ...


class FFmpegVideoProcessor:
    """
    Video processor shelling out to FFmpeg.

    All operations use temporary files because FFmpeg works best with
    file paths. We write the video data to a temp file, process it,
    read the output, then clean up.
    """

    def __init__(self, ffmpeg_path: Optional[str] = None):
        """
        Args:
            ffmpeg_path: Override for the configured executable
        """
        self._ffmpeg = ffmpeg_path or get_ffmpeg_path()

        # verify ffmpeg is available
        try:
            result = subprocess.run(
                [self._ffmpeg, "-version"],
                capture_output=True,
                text=True,
                timeout=5
            )
        except FileNotFoundError:
            raise VideoProcessingError(f"FFmpeg not found at {self._ffmpeg}")

        if result.returncode != 0:
            raise VideoProcessingError("FFmpeg not working properly")

        logger.info("FFmpeg video processor initialized", extra={"ffmpeg_path": self._ffmpeg})

    async def get_video_info(self, video_data: bytes) -> VideoInfo:
        with tempfile.NamedTemporaryFile(suffix=".video", delete=False) as tmp:
            tmp.write(video_data)
            tmp_path = tmp.name

        try:
            result = await asyncio.to_thread(
                subprocess.run,
                [self._ffmpeg, "-hide_banner", "-i", tmp_path],
                capture_output=True,
                text=True,
                timeout=30
            )
            return parse_ffmpeg_banner(result.stderr, file_size_bytes=len(video_data))
        except subprocess.TimeoutExpired:
            raise VideoProcessingError("FFmpeg timed out reading video metadata")
        finally:
            os.unlink(tmp_path)

    async def extract_thumbnail(
        self,
        video_data: bytes,
        timestamp: float,
        width: int,
        height: int,
    ) -> bytes:
        """
        Grab the frame at `timestamp` as a JPEG.

        Scales up to cover width x height and crops the overflow, the
        same "fill" behavior the media cloud uses for derived stills.
        """
        with tempfile.NamedTemporaryFile(suffix=".video", delete=False) as tmp:
            tmp.write(video_data)
            video_path = tmp.name

        try:
            with tempfile.TemporaryDirectory() as output_dir:
                output_path = os.path.join(output_dir, "thumbnail.jpg")

                # -ss before -i for fast seeking
                cmd = [
                    self._ffmpeg,
                    "-ss", str(timestamp),
                    "-i", video_path,
                    "-frames:v", "1",
                    "-vf", (
                        f"scale={width}:{height}:force_original_aspect_ratio=increase,"
                        f"crop={width}:{height}"
                    ),
                    "-q:v", "2",
                    "-y",
                    output_path
                ]

                try:
                    result = await asyncio.to_thread(
                        subprocess.run,
                        cmd,
                        capture_output=True,
                        timeout=30
                    )
                except subprocess.TimeoutExpired:
                    raise VideoProcessingError(f"Thumbnail extraction timed out at {timestamp}s")

                if result.returncode != 0 or not os.path.exists(output_path):
                    raise VideoProcessingError(
                        f"Thumbnail extraction failed at {timestamp}s: "
                        f"{result.stderr.decode(errors='replace')[-500:]}"
                    )

                with open(output_path, "rb") as f:
                    return f.read()
        finally:
            os.unlink(video_path)


class MockVideoProcessor:
    """
    Mock video processor for local development without FFmpeg.

    Returns fixed video info and a placeholder JPEG.
    """

    # SOI + EOI markers; enough for anything that only sniffs the type
    PLACEHOLDER_JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\xff\xd9"

    def __init__(self):
        logger.info("Initialized mock video processor")

    async def get_video_info(self, video_data: bytes) -> VideoInfo:
        return VideoInfo(
            duration_seconds=30.0,
            width=1280,
            height=720,
            codec="h264",
            file_size_bytes=len(video_data),
        )

    async def extract_thumbnail(
        self,
        video_data: bytes,
        timestamp: float,
        width: int,
        height: int,
    ) -> bytes:
        return self.PLACEHOLDER_JPEG


def create_video_processor(mock_mode: bool = False) -> VideoProcessor:
    """
    Factory function for video processor.

    Args:
        mock_mode: If True, return mock processor (no FFmpeg required)
    """
    if mock_mode:
        return MockVideoProcessor()

    return FFmpegVideoProcessor()
