# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Adaptive rate limiter for the embedding provider.

Two mechanisms stacked:
    - rolling window: at most `max_requests` requests per `window_seconds`
    - adaptive delay: minimum spacing between consecutive requests, doubled on
      every 429 (up to `max_delay`) and relaxed by 10% on every success (down
      to `min_delay`)

One instance per process, passed explicitly to every embedding call site.
Not thread-safe: the ingestion pipeline issues its embedding calls serially.
"""

import threading
import time
from collections import deque
from collections.abc import Callable

from juris_rag.config.logging_config import setup_logger
from juris_rag.services.errors import IngestionCancelled

logger = setup_logger(__name__)


class RateLimiter:
    def __init__(
        self,
        max_requests: int = 50,
        window_seconds: float = 60.0,
        min_delay: float = 2.0,
        max_delay: float = 60.0,
        backoff_factor: float = 2.0,
        relax_factor: float = 0.9,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] | None = None,
        cancel_event: threading.Event | None = None,
    ):
        if max_requests < 1:
            raise ValueError(f"max_requests must be >= 1, got {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")
        # A zero floor would let the relax step collapse spacing to nothing.
        if min_delay <= 0:
            raise ValueError(f"min_delay must be positive, got {min_delay}")
        if max_delay < min_delay:
            raise ValueError(f"max_delay ({max_delay}) must be >= min_delay ({min_delay})")
        if backoff_factor < 1.0:
            raise ValueError(f"backoff_factor must be >= 1, got {backoff_factor}")
        if not 0.0 < relax_factor <= 1.0:
            raise ValueError(f"relax_factor must be in (0, 1], got {relax_factor}")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.relax_factor = relax_factor
        self.current_delay = min_delay
        self.cancel_event = cancel_event
        self.total_slept = 0.0

        self._clock = clock or time.monotonic
        self._sleep_fn = sleep
        self._timestamps: deque[float] = deque()
        self._last_request: float | None = None

    @classmethod
    def from_settings(cls, settings=None, cancel_event: threading.Event | None = None) -> "RateLimiter":
        """Build a limiter from EMBEDDING_* settings."""
        if settings is None:
            from juris_rag.config.settings import config as settings

        return cls(
            max_requests=settings.EMBEDDING_REQUESTS_PER_MINUTE,
            window_seconds=60.0,
            min_delay=settings.EMBEDDING_MIN_DELAY,
            max_delay=settings.EMBEDDING_MAX_DELAY,
            relax_factor=settings.EMBEDDING_DELAY_RELAX_FACTOR,
            cancel_event=cancel_event,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise IngestionCancelled("Cancelled while waiting for the rate limiter")

    def _sleep(self, seconds: float) -> float:
        """Sleep, honouring the cancel event before and during the pause."""
        self._check_cancelled()
        if seconds <= 0:
            return 0.0
        if self._sleep_fn is not None:
            self._sleep_fn(seconds)
        elif self.cancel_event is not None:
            self.cancel_event.wait(seconds)
        else:
            time.sleep(seconds)
        self._check_cancelled()
        self.total_slept += seconds
        return seconds

    def _evict(self, now: float) -> None:
        horizon = now - self.window_seconds
        while self._timestamps and self._timestamps[0] <= horizon:
            self._timestamps.popleft()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def wait_turn(self) -> float:
        """
        Block until the next request may be sent, then record it.

        Returns:
            Seconds spent sleeping (window wait + inter-request delay)
        """
        slept = 0.0
        now = self._clock()
        self._evict(now)

        while len(self._timestamps) >= self.max_requests:
            wait = self._timestamps[0] + self.window_seconds - now
            logger.info(
                "Rate window full (%s requests in %ss), pausing %.1fs",
                len(self._timestamps),
                self.window_seconds,
                max(wait, 0.0),
            )
            slept += self._sleep(wait)
            now = self._clock()
            self._evict(now)

        if self._last_request is not None:
            wait = self._last_request + self.current_delay - now
            if wait > 0:
                slept += self._sleep(wait)
                now = self._clock()
        else:
            self._check_cancelled()

        self._timestamps.append(now)
        self._last_request = now
        return slept

    def report_throttled(self, retry_after: float | None = None) -> float:
        """
        Grow the delay after a 429 and pause for it.

        Args:
            retry_after: Provider hint in seconds; honoured up to max_delay

        Returns:
            Seconds paused
        """
        self.current_delay = min(self.current_delay * self.backoff_factor, self.max_delay)
        pause = self.current_delay
        if retry_after is not None and retry_after > pause:
            pause = min(retry_after, self.max_delay)
        logger.warning("Throttled by provider, delay now %.1fs, pausing %.1fs", self.current_delay, pause)
        return self._sleep(pause)

    def report_success(self) -> None:
        """Relax the delay after a successful call."""
        self.current_delay = max(self.current_delay * self.relax_factor, self.min_delay)

    def requests_in_window(self) -> int:
        self._evict(self._clock())
        return len(self._timestamps)
