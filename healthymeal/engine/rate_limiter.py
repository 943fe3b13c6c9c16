"""
In-memory per-user rate limiter for the AI preview endpoint.

Each identity gets a fixed window that opens on its first request and is
replaced on the first request observed after it closes. Expired entries are
treated as absent on read, so correctness never depends on the background
sweep; the sweep only reclaims memory from identities that stopped calling.

Note: This is process-local state. For multi-worker deployments every worker
enforces its own budget.
"""
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 10
DEFAULT_WINDOW_SECONDS = 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 300


@dataclass
class RateLimitEntry:
    """Request count for one identity and the moment its window closes."""

    count: int
    window_reset_at: float  # Unix timestamp

    def is_expired(self, now: float) -> bool:
        return now > self.window_reset_at


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check."""

    allowed: bool
    retry_after_seconds: Optional[int] = None


class RateLimiter:
    """
    Bounds a protected operation to N requests per window per identity.

    Example:
        >>> limiter = RateLimiter(max_requests=10, window_seconds=60)
        >>> decision = limiter.check("user-123")
        >>> if not decision.allowed:
        ...     print(f"retry in {decision.retry_after_seconds}s")
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the limiter.

        Args:
            max_requests: Requests allowed per identity within one window.
            window_seconds: Window length.
            sweep_interval_seconds: Period of the expired-entry sweep once started.
            clock: Returns the current Unix time in seconds. Injectable for tests.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._store: Dict[str, RateLimitEntry] = {}
        # The sweep runs on a scheduler thread, so check and sweep share a lock.
        self._lock = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None

    def check(self, identity: str) -> RateLimitDecision:
        """
        Record a request for identity and decide whether it may proceed.

        Only allowed requests advance the counter.

        Args:
            identity: Caller key, normally the authenticated user ID.

        Returns:
            RateLimitDecision with retry_after_seconds set when denied.
        """
        with self._lock:
            now = self._clock()
            entry = self._store.get(identity)

            if entry is None or entry.is_expired(now):
                self._store[identity] = RateLimitEntry(
                    count=1,
                    window_reset_at=now + self.window_seconds,
                )
                return RateLimitDecision(allowed=True)

            if entry.count < self.max_requests:
                entry.count += 1
                return RateLimitDecision(allowed=True)

            retry_after = math.ceil(entry.window_reset_at - now)
            return RateLimitDecision(allowed=False, retry_after_seconds=retry_after)

    def reset(self, identity: str) -> None:
        """Forget the entry for a single identity."""
        with self._lock:
            self._store.pop(identity, None)

    def status(self, identity: str) -> Optional[RateLimitEntry]:
        """
        Peek at an identity's current window without counting a request.

        Returns:
            A copy of the active entry, or None if absent or expired.
            Expired entries are left in place for the sweep.
        """
        with self._lock:
            entry = self._store.get(identity)
            if entry is None or entry.is_expired(self._clock()):
                return None
            return RateLimitEntry(count=entry.count, window_reset_at=entry.window_reset_at)

    def clear_all(self) -> None:
        """Forget every entry."""
        with self._lock:
            self._store.clear()

    def sweep(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                del self._store[key]

        if expired:
            logger.debug(f"Swept {len(expired)} expired rate limit entries")

        return len(expired)

    @property
    def size(self) -> int:
        """Return the number of stored entries, expired or not."""
        return len(self._store)

    @property
    def running(self) -> bool:
        """True while the background sweep is scheduled."""
        return self._scheduler is not None

    def start(self) -> None:
        """Schedule the periodic sweep. Calling it twice is a no-op."""
        if self._scheduler is not None:
            return

        scheduler = BackgroundScheduler()
        scheduler.add_job(
            self.sweep,
            trigger=IntervalTrigger(seconds=self.sweep_interval_seconds),
            id="rate_limit_sweep",
            name="Rate limit expired-entry sweep",
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler

        logger.info(
            f"Rate limit sweep scheduled every {self.sweep_interval_seconds}s "
            f"({self.max_requests} requests / {self.window_seconds}s)"
        )

    def shutdown(self) -> None:
        """Stop the periodic sweep and drop all entries."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Rate limit sweep stopped")
        self.clear_all()
