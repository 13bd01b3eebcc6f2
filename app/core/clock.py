"""
Time source for expiration and activity timestamps

All timestamps are naive UTC. Columns holding them use NAIVE explicitly so
the ORM stores them as-is instead of requiring timezone information.
"""

from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import DateTime

Clock = Callable[[], datetime]

NAIVE = DateTime(timezone=False)


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the naive DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_clock() -> Clock:
    """Dependency returning the clock used by services (overridden in tests)"""
    return utcnow
