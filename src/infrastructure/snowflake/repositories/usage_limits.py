"""
Usage limit repository for rate limiting.

This module handles tracking and enforcing request limits per client.
Designed to prevent abuse while maintaining a good user experience.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from .documents import DocumentTable, SnowflakeConnection

logger = logging.getLogger(__name__)


def window_start(now: datetime, window_minutes: int) -> datetime:
    """Start of the fixed window containing `now`, aligned to midnight UTC."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elapsed = int((now - midnight).total_seconds() // 60)
    return midnight + timedelta(minutes=elapsed - elapsed % window_minutes)


class UsageLimitRepository:
    """
    Repository for managing usage limits.

    Enforces limits like "100 requests per 15 minutes per IP".
    Counters live in the usage_limits document table, one document per
    (identifier, resource, window).

    Why this approach:
    - Simple to implement with existing Snowflake infrastructure
    - Persists across server restarts and is shared by all workers
    - Provides audit trail for usage patterns
    """

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._table = DocumentTable(connection, "usage_limits")

    def check_and_increment(
        self,
        identifier: str,
        resource_type: str,
        limit_max: int,
        window_minutes: int = 15,
        now: Optional[datetime] = None,
    ) -> tuple[bool, int, int]:
        """
        Check if a client is within limits, and increment usage if so.

        Args:
            identifier: Client IP address (or user id)
            resource_type: What's being limited (e.g., 'api')
            limit_max: Maximum uses allowed in the window
            window_minutes: Length of the window
            now: Current time, for tests

        Returns:
            Tuple of (allowed, current_count, limit_max)
        """
        now = now or datetime.now(timezone.utc)
        start = window_start(now, window_minutes)
        doc_id = f"{resource_type}:{identifier}:{start.isoformat()}"

        doc = self._table.get(doc_id)
        current_count = doc["usage_count"] if doc else 0

        if current_count >= limit_max:
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "identifier": identifier,
                    "resource_type": resource_type,
                    "current_count": current_count,
                    "limit_max": limit_max
                }
            )
            return False, current_count, limit_max

        new_count = current_count + 1
        self._table.put(doc_id, {
            "identifier": identifier,
            "resource_type": resource_type,
            "window_start": start.isoformat(),
            "window_end": (start + timedelta(minutes=window_minutes)).isoformat(),
            "usage_count": new_count,
        })

        return True, new_count, limit_max

    def get_usage(
        self,
        identifier: str,
        resource_type: str,
        window_minutes: int = 15,
        now: Optional[datetime] = None,
    ) -> int:
        """Current count without incrementing."""
        now = now or datetime.now(timezone.utc)
        start = window_start(now, window_minutes)
        doc = self._table.get(f"{resource_type}:{identifier}:{start.isoformat()}")
        return doc["usage_count"] if doc else 0
