"""Time helpers.

Timestamps are stored as naive UTC datetimes, matching what SQLite and the
``DateTime`` columns round-trip.
"""

from datetime import datetime, timezone


def utcnow():
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
