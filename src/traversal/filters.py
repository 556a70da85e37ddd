"""
Changed-since filter applied to leaves during traversal.
"""
from datetime import datetime, timezone
from typing import Optional

from src.traversal.models import LeafItem, MissingTimestampPolicy


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ChangedSinceFilter:
    """Decides whether a leaf passes an incremental-sync watermark."""

    def __init__(
        self,
        changed_since: Optional[datetime] = None,
        missing_timestamp: MissingTimestampPolicy = MissingTimestampPolicy.EXCLUDE,
    ):
        """
        Initialize ChangedSinceFilter.

        Args:
            changed_since: Watermark; None disables filtering
            missing_timestamp: Policy for leaves without last_modified
        """
        self.changed_since = changed_since
        self.missing_timestamp = missing_timestamp
        self._watermark = _as_utc(changed_since) if changed_since is not None else None

    @property
    def active(self) -> bool:
        return self._watermark is not None

    def should_include(self, item: LeafItem) -> bool:
        """
        Check if a leaf should be emitted.

        Args:
            item: Leaf to evaluate

        Returns:
            True if no watermark is set or the leaf changed strictly after it
        """
        if self._watermark is None:
            return True

        if item.last_modified is None:
            return self.missing_timestamp is MissingTimestampPolicy.INCLUDE

        return _as_utc(item.last_modified) > self._watermark
