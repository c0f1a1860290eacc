"""
Per-call retry counters for the main menu.

Counters live in process memory keyed by FreeClimb call id, so two callers
navigating the menu at once never share a count. Events that arrive without a
call id all land in one anonymous slot.

Callers who hang up mid-menu never reach /endCall, so every slot also expires
after `RETRY_TTL_SECONDS` without activity and the store holds at most
`MAX_TRACKED_CALLS` calls.
"""

import time
from typing import Callable, Optional

from cachetools import TTLCache
import structlog

logger = structlog.get_logger(__name__)

MAX_RETRIES = 3
ANONYMOUS_CALL = ""
RETRY_TTL_SECONDS = 30 * 60
MAX_TRACKED_CALLS = 10_000


class RetryStore:
    """
    In-memory retry counter per call.

    Args:
        limit: Highest count a call can reach
        ttl_seconds: Idle time after which a call's count is forgotten
        max_calls: Number of calls tracked at once
        timer: Clock used for expiry, injectable for tests
    """

    def __init__(
        self,
        limit: int = MAX_RETRIES,
        ttl_seconds: float = RETRY_TTL_SECONDS,
        max_calls: int = MAX_TRACKED_CALLS,
        timer: Optional[Callable[[], float]] = None,
    ):
        self.limit = limit
        self._counts: TTLCache = TTLCache(
            maxsize=max_calls,
            ttl=ttl_seconds,
            timer=timer or time.monotonic,
        )

    def get(self, call_id: str) -> int:
        return self._counts.get(call_id or ANONYMOUS_CALL, 0)

    def increment(self, call_id: str) -> int:
        """Count one more invalid attempt, capped at the limit."""
        key = call_id or ANONYMOUS_CALL
        count = min(self._counts.get(key, 0) + 1, self.limit)
        self._counts[key] = count
        return count

    def reset(self, call_id: str) -> None:
        self._counts.pop(call_id or ANONYMOUS_CALL, None)

    def discard(self, call_id: str) -> None:
        """Forget a finished call."""
        if self._counts.pop(call_id or ANONYMOUS_CALL, None) is not None:
            logger.debug("Retry state discarded", call_id=call_id)

    def clear(self) -> None:
        self._counts.clear()

    def __len__(self) -> int:
        self._counts.expire()
        return len(self._counts)
