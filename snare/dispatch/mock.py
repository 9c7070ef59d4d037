"""In-memory EventSink for testing and local development."""

from __future__ import annotations

import asyncio
import threading
import time
import typing as typ

from snare.errors import DeliveryError

if typ.TYPE_CHECKING:
    from snare.events.models import Event


class MockEventSink:
    """Record submitted events, optionally failing the first attempts.

    Parameters
    ----------
    failures
        Number of ``submit`` calls that fail before the sink starts
        accepting events. ``None`` fails every call.
    status_code
        Status code reported on simulated rejections.
    delay_s
        Simulated network latency per call.

    Examples
    --------
    >>> sink = MockEventSink(failures=2)
    >>> queue = DispatchQueue(sink, config=DispatchConfig(backoff_base_s=0))
    >>> queue.submit(event)
    >>> queue.flush(1.0)
    True
    >>> sink.attempts, len(sink.events)
    (3, 1)

    """

    def __init__(
        self,
        *,
        failures: int | None = 0,
        status_code: int = 503,
        delay_s: float = 0.0,
    ) -> None:
        """Initialise the failure plan and storage."""
        self._failures = failures
        self._status_code = status_code
        self._delay_s = delay_s
        self._lock = threading.Lock()
        self._condition = threading.Condition(self._lock)
        self._events: list[Event] = []
        self._attempts = 0
        self._active = 0
        self._max_active = 0

    @property
    def events(self) -> list[Event]:
        """Return a copy of the delivered events, in delivery order."""
        with self._lock:
            return list(self._events)

    @property
    def attempts(self) -> int:
        """Return how many times ``submit`` was called."""
        with self._lock:
            return self._attempts

    @property
    def max_concurrency(self) -> int:
        """Return the highest number of overlapping ``submit`` calls seen."""
        with self._lock:
            return self._max_active

    async def submit(self, event: Event) -> None:
        """Record *event* or simulate a rejection."""
        with self._lock:
            self._attempts += 1
            attempt = self._attempts
            self._active += 1
            self._max_active = max(self._max_active, self._active)
        try:
            if self._delay_s:
                await asyncio.sleep(self._delay_s)
            if self._failures is None or attempt <= self._failures:
                raise DeliveryError.rejected(self._status_code)
            with self._condition:
                self._events.append(event)
                self._condition.notify_all()
        finally:
            with self._lock:
                self._active -= 1

    def wait_for_events(self, count: int, timeout: float = 1.0) -> bool:
        """Block until at least *count* events were delivered."""
        deadline = time.monotonic() + timeout
        with self._condition:
            while len(self._events) < count:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._condition.wait(remaining)
        return True


__all__ = ["MockEventSink"]
