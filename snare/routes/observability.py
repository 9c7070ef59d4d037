"""Structured log events for route statistics."""

from __future__ import annotations

import enum
import typing as typ

from snare.logging import get_logger, log_error, log_info

if typ.TYPE_CHECKING:
    from snare.errors import RouteResolutionError
    from snare.routes.models import RequestCompletion

logger = get_logger(__name__)


class RoutesEventType(enum.StrEnum):
    """Structured log event types for route statistics."""

    TABLE_BUILT = "routes.table.built"
    NOTIFICATION_UNMATCHED = "routes.notification.unmatched"
    NOTIFICATION_FAILED = "routes.notification.failed"


class RoutesEventLogger:
    """Emit structured route-statistics events via femtologging."""

    def log_table_built(self, route_count: int) -> None:
        """Log the size of a freshly built route table."""
        log_info(
            logger,
            "[%s] route_count=%d",
            RoutesEventType.TABLE_BUILT,
            route_count,
        )

    def log_unmatched(self, error: RouteResolutionError) -> None:
        """Log a notification dropped because no route matched."""
        log_info(
            logger,
            "[%s] controller=%s action=%s path=%s",
            RoutesEventType.NOTIFICATION_UNMATCHED,
            error.controller,
            error.action,
            error.path,
        )

    def log_notification_failed(
        self,
        notification: RequestCompletion,
        error: BaseException,
    ) -> None:
        """Log a notification whose processing raised."""
        log_error(
            logger,
            "[%s] method=%s path=%s error_type=%s error_message=%s",
            RoutesEventType.NOTIFICATION_FAILED,
            notification.method,
            notification.path,
            type(error).__name__,
            str(error),
            exc_info=error,
        )
