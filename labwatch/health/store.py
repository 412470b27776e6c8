"""Health store — the one piece of state shared by the API and the poller.

Holds the durable Configuration plus the runtime-only aggregate verdict
behind a single lock. Callers never get the lock itself: they read a
snapshot or hand in a function that builds the next Configuration.
Nothing that does network or file I/O may run while the lock is held.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from .errors import InternalStateError
from .models import Configuration, HealthReport

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 5.0


class HealthStore:
    """Thread-safe holder of configuration + runtime health."""

    def __init__(
        self,
        config: Configuration,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ) -> None:
        self._config = config
        # Runtime only, starts "healthy" until the first probe completes
        self._healthy = True
        self._last_report: HealthReport | None = None
        self._revision = 0
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout

    @contextmanager
    def _guard(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._lock_timeout):
            logger.error("Health store lock not acquired within %.1fs", self._lock_timeout)
            raise InternalStateError("Failed to lock state")
        try:
            yield
        finally:
            self._lock.release()

    # ── Reads ────────────────────────────────────────────────────────────

    def snapshot(self) -> Configuration:
        with self._guard():
            return self._config

    def health(self) -> bool:
        with self._guard():
            return self._healthy

    def last_report(self) -> HealthReport | None:
        with self._guard():
            return self._last_report

    def view(self) -> tuple[Configuration, bool, HealthReport | None]:
        """Configuration, cached verdict and last report from a single acquisition."""
        with self._guard():
            return self._config, self._healthy, self._last_report

    @property
    def revision(self) -> int:
        with self._guard():
            return self._revision

    # ── Writes ───────────────────────────────────────────────────────────

    def mutate(
        self, fn: Callable[[Configuration], Configuration],
    ) -> tuple[Configuration, int]:
        """Apply ``fn`` atomically and return the new config with its revision.

        If ``fn`` raises, the current configuration is left untouched.
        """
        with self._guard():
            updated = fn(self._config)
            self._config = updated
            self._revision += 1
            return updated, self._revision

    def set_health(self, healthy: bool, report: HealthReport | None = None) -> None:
        with self._guard():
            self._healthy = healthy
            if report is not None:
                self._last_report = report
