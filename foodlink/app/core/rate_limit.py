"""Fixed-window rate limiting keyed by an arbitrary identifier.

The table lives on the limiter instance. It is not locked: checks never
await, so a single event loop serializes them. Hosts running handlers on
several threads must serialize access themselves.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from foodlink.app.core.config import settings
from foodlink.app.core.logging import get_log_context, get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitEntry:
    """Request count for one identifier within its current window."""
    count: int = 0
    window_start: float = field(default_factory=time.time)


class RateLimiter:
    """In-memory fixed-window rate limiter.

    An entry whose window has elapsed counts as absent even while it is
    still in the table; the next check for that identifier replaces it.
    """

    def __init__(
        self,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize rate limiter.

        Args:
            max_requests: Default limit per window (settings.rate_limit_max_requests)
            window_seconds: Window length (settings.rate_limit_window_seconds)
            clock: Returns the current time in epoch seconds
        """
        self.max_requests = max_requests or settings.rate_limit_max_requests
        self.window_seconds = window_seconds or settings.rate_limit_window_seconds
        self._clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _is_expired(self, entry: RateLimitEntry, now: float) -> bool:
        return now - entry.window_start > self.window_seconds

    def _live_entry(self, identifier: str, now: float) -> Optional[RateLimitEntry]:
        entry = self._entries.get(identifier)
        if entry is None or self._is_expired(entry, now):
            return None
        return entry

    def check(self, identifier: str, max_requests: Optional[int] = None) -> bool:
        """Record a request for identifier and report whether it is allowed.

        A denied request does not change the entry.
        """
        limit = max_requests or self.max_requests
        now = self._clock()

        entry = self._live_entry(identifier, now)
        if entry is None:
            self._entries[identifier] = RateLimitEntry(count=1, window_start=now)
            return True

        if entry.count >= limit:
            logger.warning(
                "Rate limit exceeded",
                extra=get_log_context(identifier=identifier, limit=limit),
            )
            return False

        entry.count += 1
        return True

    def remaining(self, identifier: str, max_requests: Optional[int] = None) -> int:
        """Requests left in the identifier's current window. Read-only."""
        limit = max_requests or self.max_requests
        entry = self._live_entry(identifier, self._clock())
        if entry is None:
            return limit
        return max(0, limit - entry.count)

    def retry_after(self, identifier: str) -> int:
        """Seconds until the identifier's window resets (0 if none is active)."""
        now = self._clock()
        entry = self._live_entry(identifier, now)
        if entry is None:
            return 0
        return max(0, int(entry.window_start + self.window_seconds - now))

    def reset(self, identifier: str) -> None:
        """Drop any entry for identifier."""
        self._entries.pop(identifier, None)

    def clear(self) -> None:
        self._entries.clear()

    def cleanup(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Removed {len(expired)} expired rate limit entries")
        return len(expired)
