"""Structured log events for the capture path."""

from __future__ import annotations

import enum
import typing as typ

from snare.logging import get_logger, log_debug, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    from snare.errors import ExtractionError
    from snare.events.models import Event

logger = get_logger(__name__)


class CaptureEventType(enum.StrEnum):
    """Structured log event types for error capture."""

    EVENT_CAPTURED = "capture.event.captured"
    FILTER_FAILED = "capture.filter.failed"
    PIPELINE_FAILED = "capture.pipeline.failed"
    TARGET_REGISTERED = "capture.target.registered"
    STASH_IGNORED = "capture.stash.ignored"


class CaptureEventLogger:
    """Emit structured capture events via femtologging."""

    def log_event_captured(self, event: Event) -> None:
        """Log that an event was handed to the dispatcher."""
        log_info(
            logger,
            "[%s] target=%s event_id=%s source=%s error_type=%s",
            CaptureEventType.EVENT_CAPTURED,
            event.target,
            event.event_id,
            event.source,
            event.error_type,
        )

    def log_filter_failed(self, error: ExtractionError) -> None:
        """Log a filter failure that was treated as an empty contribution."""
        log_warning(
            logger,
            "[%s] filter=%s error_message=%s",
            CaptureEventType.FILTER_FAILED,
            error.filter_name,
            str(error),
            exc_info=error.__cause__,
        )

    def log_pipeline_failed(self, *, target: str, error: BaseException) -> None:
        """Log a capture failure that was kept away from the request."""
        log_error(
            logger,
            "[%s] target=%s error_type=%s error_message=%s",
            CaptureEventType.PIPELINE_FAILED,
            target,
            type(error).__name__,
            str(error),
            exc_info=error,
        )

    def log_target_registered(self, *, target: str, filter_names: list[str]) -> None:
        """Log the filter chain configured for a target."""
        log_info(
            logger,
            "[%s] target=%s filters=%s",
            CaptureEventType.TARGET_REGISTERED,
            target,
            ",".join(filter_names),
        )

    def log_stash_ignored(self, *, key: str, value_type: str) -> None:
        """Log a stashed-error slot whose value is not an exception."""
        log_debug(
            logger,
            "[%s] key=%s value_type=%s",
            CaptureEventType.STASH_IGNORED,
            key,
            value_type,
        )
