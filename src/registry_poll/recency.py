"""
Recency Filter

Drops notifications older than a caller-supplied cutoff.
"""

from datetime import datetime
from typing import Optional

from registry_poll.models import to_utc


def keep(timestamp: datetime, since: Optional[datetime]) -> bool:
    """
    Check whether a timestamp passes the cutoff.

    The comparison is inclusive so that re-polling with the last seen
    timestamp as cutoff does not drop that notification.

    Args:
        timestamp: Event timestamp
        since: Cutoff, or None to keep everything

    Returns:
        True if the event should be kept
    """
    if since is None:
        return True
    if timestamp is None:
        return False
    return to_utc(timestamp) >= to_utc(since)


class RecencyFilter:
    """Callable holding a single cutoff."""

    def __init__(self, since: Optional[datetime] = None):
        self.since = to_utc(since)

    def keep(self, timestamp: datetime) -> bool:
        return keep(timestamp, self.since)

    __call__ = keep
