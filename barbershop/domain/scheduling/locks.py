"""Per-date booking locks - the serialization point for inserting confirmed appointments"""

import logging
from collections import defaultdict
from contextlib import contextmanager
from datetime import date
from threading import Lock

logger = logging.getLogger(__name__)


class BookingLockRegistry:
    """
    One mutex per calendar date.

    Two requests that both passed availability validation for the same date
    are forced through the final overlap re-check one at a time. Different
    dates never contend.
    """

    def __init__(self):
        self._guard = Lock()
        self._locks: dict[date, Lock] = defaultdict(Lock)

    def _lock_for(self, day: date) -> Lock:
        with self._guard:
            return self._locks[day]

    @contextmanager
    def hold(self, day: date):
        lock = self._lock_for(day)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()

    def discard_before(self, day: date) -> int:
        """Drop locks for dates that can no longer receive bookings"""
        with self._guard:
            stale = [d for d, lock in self._locks.items() if d < day and not lock.locked()]
            for d in stale:
                del self._locks[d]
        if stale:
            logger.debug(f"🧹 Discarded {len(stale)} stale booking locks")
        return len(stale)
