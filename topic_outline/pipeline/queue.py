"""Serial work queue and rate limiter for segment classification."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable

from topic_outline.errors import PersistenceFailure

logger = logging.getLogger(__name__)


class RateLimiter:
    """Enforces a minimum interval between consecutive ``wait()`` returns."""

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None

    def wait(self) -> None:
        now = self._clock()
        if self._last is not None:
            remaining = self.min_interval - (now - self._last)
            if remaining > 0:
                self._sleep(remaining)
                now = self._clock()
        self._last = now


class SerialWorkQueue:
    """FIFO of segment ids processed strictly one at a time.

    ``drain()`` returns immediately when another drain is already running
    (from another thread, or re-entrantly from inside the handler); the
    active drain picks up anything submitted meanwhile.
    """

    def __init__(self) -> None:
        self._pending: deque[str] = deque()
        self._pending_lock = threading.Lock()
        self._drain_lock = threading.Lock()

    def __len__(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def submit(self, item: str) -> None:
        with self._pending_lock:
            if item not in self._pending:
                self._pending.append(item)

    def _pop(self) -> str | None:
        with self._pending_lock:
            return self._pending.popleft() if self._pending else None

    def drain(
        self,
        handler: Callable[[str], None],
        limiter: RateLimiter | None = None,
    ) -> int:
        """Run ``handler`` on every queued item in order. Returns the count processed.

        A :class:`PersistenceFailure` is logged and the next item proceeds;
        any other exception propagates with the remaining items still queued.
        """
        processed = 0
        # Re-check after releasing: an item submitted while the lock was
        # being released would otherwise wait for the next drain.
        while len(self):
            if not self._drain_lock.acquire(blocking=False):
                break
            try:
                while (item := self._pop()) is not None:
                    if limiter is not None:
                        limiter.wait()
                    try:
                        handler(item)
                    except PersistenceFailure:
                        logger.exception("Persisting after %s failed; continuing", item)
                    processed += 1
            finally:
                self._drain_lock.release()
        return processed
