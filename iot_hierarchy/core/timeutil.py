from datetime import datetime, timedelta, timezone
from typing import Optional


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def advance(previous: Optional[datetime]) -> datetime:
    """Current UTC time, nudged past ``previous`` if the clock has not moved."""
    now = now_utc()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now
