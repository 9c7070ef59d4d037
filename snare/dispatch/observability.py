"""Emit structured observability events for event delivery.

Usage
-----
>>> event_logger = DispatchEventLogger()
>>> event_logger.log_delivered(job)

"""

from __future__ import annotations

import enum
import typing as typ

from snare.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    from snare.dispatch.models import DispatchJob
    from snare.errors import DeliveryError

logger = get_logger(__name__)


class DispatchEventType(enum.StrEnum):
    """Structured log event types for the dispatch queue."""

    EVENT_DELIVERED = "dispatch.event.delivered"
    EVENT_RETRYING = "dispatch.event.retrying"
    EVENT_DROPPED = "dispatch.event.dropped"
    EVENT_EVICTED = "dispatch.event.evicted"
    WORKER_FAILED = "dispatch.worker.failed"
    QUEUE_DISCARDED = "dispatch.queue.discarded"
    QUEUE_CLOSED = "dispatch.queue.closed"


class DispatchEventLogger:
    """Emit structured dispatch events via femtologging."""

    def log_delivered(self, job: DispatchJob) -> None:
        """Log a successful delivery."""
        log_info(
            logger,
            "[%s] event_id=%s target=%s attempts=%d",
            DispatchEventType.EVENT_DELIVERED,
            job.event.event_id,
            job.event.target,
            job.attempts,
        )

    def log_retrying(
        self,
        job: DispatchJob,
        error: DeliveryError,
        delay_s: float,
    ) -> None:
        """Log a failed attempt that will be retried after *delay_s*."""
        log_warning(
            logger,
            "[%s] event_id=%s attempt=%d delay_seconds=%.3f "
            "status_code=%s error_message=%s",
            DispatchEventType.EVENT_RETRYING,
            job.event.event_id,
            job.attempts,
            delay_s,
            error.status_code,
            str(error),
        )

    def log_dropped(self, job: DispatchJob, error: DeliveryError) -> None:
        """Log a job abandoned after its final failed attempt.

        Parameters
        ----------
        job
            The abandoned job.
        error
            Failure from the final attempt.

        """
        log_error(
            logger,
            "[%s] event_id=%s target=%s attempts=%d error_type=%s "
            "status_code=%s error_message=%s",
            DispatchEventType.EVENT_DROPPED,
            job.event.event_id,
            job.event.target,
            job.attempts,
            job.event.error_type,
            error.status_code,
            str(error),
        )

    def log_evicted(self, job: DispatchJob, *, capacity: int) -> None:
        """Log a pending job evicted from a full queue."""
        log_warning(
            logger,
            "[%s] event_id=%s target=%s capacity=%d",
            DispatchEventType.EVENT_EVICTED,
            job.event.event_id,
            job.event.target,
            capacity,
        )

    def log_worker_failed(
        self,
        job: DispatchJob,
        exc: Exception,
        *,
        counted: bool,
    ) -> None:
        """Log an unexpected error raised while a worker processed *job*."""
        log_error(
            logger,
            "[%s] event_id=%s attempts=%d already_counted=%s "
            "error_type=%s error_message=%s",
            DispatchEventType.WORKER_FAILED,
            job.event.event_id,
            job.attempts,
            counted,
            type(exc).__name__,
            str(exc),
            exc_info=exc,
        )

    def log_discarded(self, count: int, *, reason: str) -> None:
        """Log jobs discarded without a delivery attempt."""
        log_warning(
            logger,
            "[%s] count=%d reason=%s",
            DispatchEventType.QUEUE_DISCARDED,
            count,
            reason,
        )

    def log_closed(self, *, delivered: int, dropped: int) -> None:
        """Log final counters when the queue shuts down."""
        log_info(
            logger,
            "[%s] delivered=%d dropped=%d",
            DispatchEventType.QUEUE_CLOSED,
            delivered,
            dropped,
        )
