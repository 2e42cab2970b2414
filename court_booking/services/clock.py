"""Clock abstraction and UTC normalization helpers."""
from datetime import datetime, timezone


def to_naive_utc(value: datetime) -> datetime:
    """Convert a datetime to naive UTC. Naive input is assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class SystemClock:
    """Wall clock returning naive UTC timestamps."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)
