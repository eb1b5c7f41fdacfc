"""Event rate histogram over fixed-width time buckets."""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from logscope.errors import ConfigurationError
from logscope.models import HistogramBucket

if TYPE_CHECKING:
    from logscope.models import LogEvent

logger = logging.getLogger(__name__)


def _as_utc(timestamp: datetime) -> datetime:
    return timestamp if timestamp.tzinfo else timestamp.replace(tzinfo=UTC)


class VelocityHistogram:
    """Counts events per time bucket.

    Buckets sit on a fixed grid starting at ``anchor`` (or at the first event
    seen) with ``bucket_width`` spacing. At most ``retention`` buckets are
    kept: when a newer bucket appears the oldest fall off, and events older
    than the retained range are dropped. ``window`` is the number of buckets
    ``buckets_in_window`` returns for display.
    """

    def __init__(
        self,
        bucket_width: timedelta = timedelta(seconds=1),
        *,
        anchor: datetime | None = None,
        window: int = 60,
        retention: int | None = None,
    ) -> None:
        if bucket_width <= timedelta(0):
            msg = f"Bucket width must be positive, got {bucket_width}"
            raise ConfigurationError(msg)
        if window <= 0:
            msg = f"Histogram window must be positive, got {window}"
            raise ConfigurationError(msg)
        if retention is not None and retention <= 0:
            msg = f"Histogram retention must be positive, got {retention}"
            raise ConfigurationError(msg)
        self.bucket_width = bucket_width
        self.window = window
        self.retention = retention or window
        self.dropped = 0
        self._origin = _as_utc(anchor) if anchor is not None else None
        self._display_anchor: datetime | None = None
        self._counts: dict[int, int] = {}
        self._newest: int | None = None
        self._lock = threading.Lock()

    @property
    def origin(self) -> datetime | None:
        """Start of bucket 0."""
        return self._origin

    @property
    def total(self) -> int:
        with self._lock:
            return sum(self._counts.values())

    def bucket_index(self, timestamp: datetime) -> int:
        if self._origin is None:
            msg = "Histogram has no anchor yet"
            raise ConfigurationError(msg)
        return (_as_utc(timestamp) - self._origin) // self.bucket_width

    def bucket_start(self, index: int) -> datetime:
        if self._origin is None:
            msg = "Histogram has no anchor yet"
            raise ConfigurationError(msg)
        return self._origin + self.bucket_width * index

    def append_event(self, event: LogEvent) -> None:
        self.append_timestamp(event.timestamp)

    def append_timestamp(self, timestamp: datetime) -> None:
        """Count one event at ``timestamp``."""
        timestamp = _as_utc(timestamp)
        with self._lock:
            if self._origin is None:
                self._origin = timestamp
            index = self.bucket_index(timestamp)
            if self._newest is not None and index <= self._newest - self.retention:
                self.dropped += 1
                return
            self._counts[index] = self._counts.get(index, 0) + 1
            if self._newest is None or index > self._newest:
                self._newest = index
                self._evict()

    def _evict(self) -> None:
        if self._newest is None:
            return
        oldest_kept = self._newest - self.retention + 1
        expired = [index for index in self._counts if index < oldest_kept]
        for index in expired:
            del self._counts[index]
        if expired:
            logger.debug("Evicted %d histogram buckets older than %d", len(expired), oldest_kept)

    def set_anchor(self, timestamp: datetime) -> None:
        """Make the bucket containing ``timestamp`` the rightmost displayed one.

        Only the display window moves; no counts are recomputed.
        """
        with self._lock:
            self._display_anchor = _as_utc(timestamp)

    def buckets(self) -> list[HistogramBucket]:
        """Retained non-empty buckets, oldest first."""
        with self._lock:
            return [HistogramBucket(self.bucket_start(i), self._counts[i]) for i in sorted(self._counts)]

    def buckets_in_window(self) -> list[HistogramBucket]:
        """``window`` consecutive buckets (zero-filled) ending at the display anchor or the newest bucket."""
        with self._lock:
            if self._origin is None:
                return []
            if self._display_anchor is not None:
                right = self.bucket_index(self._display_anchor)
            elif self._newest is not None:
                right = self._newest
            else:
                return []
            return [
                HistogramBucket(self.bucket_start(i), self._counts.get(i, 0))
                for i in range(right - self.window + 1, right + 1)
            ]

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._newest = None
            self._display_anchor = None
            self.dropped = 0
