"""
Health check endpoints.

We provide two endpoints:
- /health: Basic liveness check (is the process running?)
- /health/ready: Readiness check (can we serve traffic?)

The distinction matters in orchestration systems like Kubernetes
where liveness and readiness have different behaviors.
"""

import logging
import shutil
from typing import Any

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ... import __version__
from ...infrastructure.snowflake.client import create_snowflake_connection
from ...infrastructure.video.processor import get_ffmpeg_path
from ..dependencies import SettingsDep, snowflake_config_from

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessCheck(BaseModel):
    """Individual readiness check result."""
    name: str
    status: str  # "ok" or "error"
    error: str | None = None


class ReadinessResponse(BaseModel):
    status: str  # "ready" or "not_ready"
    version: str
    checks: list[ReadinessCheck]


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the service is running. Does not check dependencies.",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "mock_mode": {
                "snowflake": settings.snowflake_mock_mode,
                "cloudinary": settings.cloudinary_mock_mode,
                "video_processor": settings.video_processor_mock_mode,
            }
        }
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Returns 200 if the service can handle traffic. Checks external dependencies.",
    responses={
        503: {
            "description": "Service not ready",
            "model": ReadinessResponse,
        }
    },
)
async def readiness_check(settings: SettingsDep, response: Response) -> ReadinessResponse:
    """
    Readiness check - can we serve traffic?

    Checks configuration, the database, the media cloud credentials and
    the FFmpeg binding. Returns 503 if any check fails, which tells load
    balancers not to route traffic here.
    """
    checks: list[ReadinessCheck] = []

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        checks.append(ReadinessCheck(
            name="configuration",
            status="error",
            error=f"Missing required fields: {', '.join(missing_fields)}"
        ))
    else:
        checks.append(ReadinessCheck(name="configuration", status="ok"))

    if settings.snowflake_mock_mode:
        checks.append(ReadinessCheck(name="database", status="ok", error="mock mode"))
    elif missing_fields:
        checks.append(ReadinessCheck(name="database", status="error", error="not configured"))
    else:
        try:
            with create_snowflake_connection(config=snowflake_config_from(settings)) as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT 1")
                cursor.close()
            checks.append(ReadinessCheck(name="database", status="ok"))
        except Exception as e:
            logger.error("Database health check failed", extra={"error": str(e)})
            checks.append(ReadinessCheck(name="database", status="error", error=str(e)))

    placeholders = settings.placeholder_media_credentials()
    if placeholders and not settings.cloudinary_mock_mode:
        checks.append(ReadinessCheck(
            name="media",
            status="error",
            error=f"Placeholder credentials: {', '.join(placeholders)}"
        ))
    else:
        checks.append(ReadinessCheck(name="media", status="ok"))

    ffmpeg_path = get_ffmpeg_path()
    if shutil.which(ffmpeg_path):
        checks.append(ReadinessCheck(name="ffmpeg", status="ok"))
    elif settings.video_processor_mock_mode:
        checks.append(ReadinessCheck(name="ffmpeg", status="ok", error="mock mode"))
    else:
        checks.append(ReadinessCheck(name="ffmpeg", status="error", error=f"Not executable: {ffmpeg_path}"))

    all_ok = all(check.status == "ok" for check in checks)

    if not all_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "Readiness check failed",
            extra={
                "checks": [
                    {"name": c.name, "status": c.status, "error": c.error}
                    for c in checks
                ]
            }
        )

    return ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        version=__version__,
        checks=checks,
    )
