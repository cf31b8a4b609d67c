"""Small helpers shared by the services: ids, clocks and day arithmetic."""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]

_SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp. Naive values are taken as UTC."""
    dt = value if isinstance(value, datetime) else datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def days_since(then: str | datetime, now: datetime) -> int:
    """Whole days between *then* and *now*, rounded up (absolute distance)."""
    delta = abs((now - parse_timestamp(then)).total_seconds())
    return math.ceil(delta / _SECONDS_PER_DAY)
