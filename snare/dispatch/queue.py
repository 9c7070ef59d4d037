"""Bounded asynchronous delivery of captured events.

``DispatchQueue.submit`` is called inline on the request path from any
thread, so it only appends to an in-memory buffer and wakes a worker. All
network I/O happens on a private daemon thread running an asyncio loop with
a fixed pool of worker tasks; the pool size is the concurrency limit.

Usage
-----
::

    queue = DispatchQueue(sink, config=DispatchConfig(concurrency=2))
    queue.submit(event)
    ...
    queue.close(timeout=5.0)

"""

from __future__ import annotations

import asyncio
import collections
import contextlib
import threading
import time
import typing as typ

from snare.dispatch.config import DispatchConfig
from snare.dispatch.models import DeliveryAck, DispatchJob, DispatchStats, JobState
from snare.dispatch.observability import DispatchEventLogger
from snare.errors import DeliveryError
from snare.events.models import copy_event

if typ.TYPE_CHECKING:
    import types

    from snare.dispatch.sink import EventSink
    from snare.events.models import Event

# Upper bound on waiting for the worker thread to stop after draining
_STOP_TIMEOUT_S = 2.0


class DispatchQueue:
    """Deliver events to an :class:`EventSink` off the request path.

    Guarantees
    ----------
    - ``submit`` never blocks on network I/O and never raises because of a
      delivery problem.
    - Each job is held by exactly one worker, so at most one attempt per
      job is in flight; at most ``config.concurrency`` jobs are in flight.
    - Failed attempts are retried with bounded exponential backoff; after
      ``config.max_attempts`` the job is dropped and counted.
    - At most ``config.capacity`` jobs wait for a worker; the oldest waiting
      job is evicted to admit a new one.

    Parameters
    ----------
    sink
        Backend adapter receiving events.
    config
        Queue tuning; defaults to :class:`DispatchConfig` defaults.
    event_logger
        Structured logger for delivery diagnostics.

    """

    def __init__(
        self,
        sink: EventSink,
        *,
        config: DispatchConfig | None = None,
        event_logger: DispatchEventLogger | None = None,
    ) -> None:
        """Initialise the queue; the worker thread starts on first submit."""
        self._sink = sink
        self._config = config or DispatchConfig()
        self._events = event_logger or DispatchEventLogger()

        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._pending: collections.deque[DispatchJob] = collections.deque()
        self._in_flight = 0
        self._closed = False
        self._submitted = 0
        self._delivered = 0
        self._dropped = 0
        self._evicted = 0
        self._retried = 0

        self._start_lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._signal: asyncio.Queue[None] = asyncio.Queue()
        self._workers: list[asyncio.Task[None]] = []

    @property
    def config(self) -> DispatchConfig:
        """Read-only access to the queue configuration."""
        return self._config

    @property
    def closed(self) -> bool:
        """Return whether the queue has stopped accepting events."""
        return self._closed

    def stats(self) -> DispatchStats:
        """Return a snapshot of the queue counters."""
        with self._lock:
            return DispatchStats(
                submitted=self._submitted,
                delivered=self._delivered,
                dropped=self._dropped,
                evicted=self._evicted,
                retried=self._retried,
                pending=len(self._pending),
                in_flight=self._in_flight,
            )

    def submit(self, event: Event) -> None:
        """Queue *event* for delivery and return immediately.

        Thread-safe. When the queue is full the oldest pending job is
        evicted; after :meth:`close` the event is dropped.
        """
        job = DispatchJob(event=copy_event(event))
        evicted: DispatchJob | None = None
        with self._lock:
            if self._closed:
                self._dropped += 1
                accepted = False
            else:
                if len(self._pending) >= self._config.capacity:
                    evicted = self._pending.popleft()
                    evicted.state = JobState.FAILED
                    self._dropped += 1
                    self._evicted += 1
                self._pending.append(job)
                self._submitted += 1
                accepted = True

        if not accepted:
            self._events.log_discarded(1, reason="closed")
            return
        if evicted is not None:
            self._events.log_evicted(evicted, capacity=self._config.capacity)

        loop = self._ensure_started()
        if loop is None:
            return
        # The loop may have been closed by a concurrent close(); the job is
        # then accounted for by close() itself.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(self._signal.put_nowait, None)

    async def deliver(self, job: DispatchJob) -> DeliveryAck | DeliveryError:
        """Make one delivery attempt for *job*.

        Returns
        -------
        DeliveryAck | DeliveryError
            The acknowledgement, or the failure as a value. Sink exceptions
            other than :class:`DeliveryError` are wrapped.

        The sink receives a copy of the job's event, so changes it makes to
        the context map never reach a later attempt.
        """
        try:
            await self._sink.submit(copy_event(job.event))
        except DeliveryError as exc:
            return exc
        except Exception as exc:
            error = DeliveryError.unexpected(exc)
            error.__cause__ = exc
            return error
        return DeliveryAck(event_id=job.event.event_id, attempt=job.attempts)

    def flush(self, timeout: float | None = None) -> bool:
        """Wait until no job is pending or in flight.

        Parameters
        ----------
        timeout
            Seconds to wait; defaults to ``config.flush_timeout_s``.

        Returns
        -------
        bool
            ``True`` if the queue drained within the budget.

        """
        budget = self._config.flush_timeout_s if timeout is None else timeout
        deadline = time.monotonic() + budget
        with self._idle:
            while self._pending or self._in_flight:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._idle.wait(remaining)
        return True

    def close(self, timeout: float | None = None) -> DispatchStats:
        """Stop accepting events, drain within *timeout*, then shut down.

        Jobs still pending after the drain budget are discarded and counted
        as dropped; in-flight attempts are cancelled.

        Returns
        -------
        DispatchStats
            Final counters.

        """
        with self._lock:
            already_closed = self._closed
            self._closed = True
        if already_closed:
            return self.stats()

        self.flush(timeout)

        with self._lock:
            leftover = list(self._pending)
            self._pending.clear()
            for job in leftover:
                job.state = JobState.FAILED
            self._dropped += len(leftover)
        if leftover:
            self._events.log_discarded(len(leftover), reason="shutdown")

        with self._start_lock:
            loop, thread = self._loop, self._thread
        if loop is not None and thread is not None:
            self._stop_loop(loop, thread)

        stats = self.stats()
        self._events.log_closed(delivered=stats.delivered, dropped=stats.dropped)
        return stats

    def __enter__(self) -> typ.Self:
        """Return the queue for use as a context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Close the queue with the configured drain budget."""
        self.close()

    def _ensure_started(self) -> asyncio.AbstractEventLoop | None:
        """Start the worker thread on first use; ``None`` once closed."""
        loop = self._loop
        if loop is not None:
            return loop

        with self._start_lock:
            # Double-check after acquiring the lock
            if self._loop is not None:
                return self._loop
            if self._closed:
                return None
            loop = asyncio.new_event_loop()
            thread = threading.Thread(
                target=self._run_loop,
                args=(loop,),
                name="snare-dispatch",
                daemon=True,
            )
            thread.start()
            loop.call_soon_threadsafe(self._spawn_workers, loop)
            self._thread = thread
            self._loop = loop
            return loop

    @staticmethod
    def _run_loop(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    def _spawn_workers(self, loop: asyncio.AbstractEventLoop) -> None:
        self._workers = [
            loop.create_task(self._worker(), name=f"snare-dispatch-{index}")
            for index in range(self._config.concurrency)
        ]

    def _stop_loop(
        self,
        loop: asyncio.AbstractEventLoop,
        thread: threading.Thread,
    ) -> None:
        with contextlib.suppress(RuntimeError):
            future = asyncio.run_coroutine_threadsafe(self._cancel_workers(), loop)
            with contextlib.suppress(TimeoutError):
                future.result(timeout=_STOP_TIMEOUT_S)
            loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout=_STOP_TIMEOUT_S)

    async def _cancel_workers(self) -> None:
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)

    async def _worker(self) -> None:
        while True:
            await self._signal.get()
            job = self._claim()
            if job is None:
                # The job this wake-up was for has been evicted or discarded.
                continue
            try:
                await self._process(job)
            except asyncio.CancelledError:
                job.state = JobState.FAILED
                with self._lock:
                    self._dropped += 1
                raise
            except Exception as exc:
                self._abandon(job, exc)
            finally:
                self._release()

    def _claim(self) -> DispatchJob | None:
        with self._lock:
            if not self._pending:
                return None
            job = self._pending.popleft()
            job.state = JobState.IN_FLIGHT
            self._in_flight += 1
            return job

    def _abandon(self, job: DispatchJob, exc: Exception) -> None:
        # A job already delivered or dropped keeps its outcome.
        counted = job.state is not JobState.IN_FLIGHT
        if not counted:
            job.state = JobState.FAILED
            with self._lock:
                self._dropped += 1
        self._events.log_worker_failed(job, exc, counted=counted)

    def _release(self) -> None:
        with self._lock:
            self._in_flight -= 1
            if not self._pending and self._in_flight == 0:
                self._idle.notify_all()

    async def _process(self, job: DispatchJob) -> None:
        while True:
            job.attempts += 1
            outcome = await self.deliver(job)
            if isinstance(outcome, DeliveryAck):
                job.state = JobState.DELIVERED
                with self._lock:
                    self._delivered += 1
                self._events.log_delivered(job)
                return

            if job.attempts >= self._config.max_attempts or not outcome.retryable:
                job.state = JobState.FAILED
                with self._lock:
                    self._dropped += 1
                self._events.log_dropped(job, outcome)
                return

            delay = self._config.backoff_delay(job.attempts)
            with self._lock:
                self._retried += 1
            self._events.log_retrying(job, outcome, delay)
            await asyncio.sleep(delay)


__all__ = ["DispatchQueue"]
