"""Turn request-completion notifications into per-route records.

The collector is independent of the error path: it only consumes
notifications, resolves the handling ``(controller, action)`` pair to the
declared route, and forwards a :class:`RouteRecord` to a stats sink.

Usage
-----
::

    collector = RouteStatsCollector(provider, stats_sink)
    notifier.subscribe(collector.handle)

"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from snare.common.time import ensure_utc
from snare.errors import RouteResolutionError
from snare.routes.models import RouteRecord
from snare.routes.observability import RoutesEventLogger
from snare.routes.table import LazyRouteTable

if typ.TYPE_CHECKING:
    from snare.routes.models import RequestCompletion
    from snare.routes.ports import RouteProvider, StatsSink

type StatusResolver = cabc.Callable[[BaseException], int]

_INTERNAL_SERVER_ERROR = 500
_UNKNOWN_STATUS = 0


def default_status_resolver(exc: BaseException) -> int:
    """Map an exception to an HTTP status.

    Uses an integer ``status_code`` or ``status`` attribute when the
    exception carries one, else 500.
    """
    for attribute in ("status_code", "status"):
        value = getattr(exc, attribute, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return _INTERNAL_SERVER_ERROR


class RouteStatsCollector:
    """Resolve completion notifications to routes and emit records.

    Parameters
    ----------
    provider
        Source of the route table; consulted once, on the first
        notification.
    sink
        Receives one :class:`RouteRecord` per resolved notification.
    status_resolver
        Maps an exception to a status when the notification carries no
        explicit status.
    event_logger
        Structured logger for unmatched and failed notifications.

    """

    def __init__(
        self,
        provider: RouteProvider,
        sink: StatsSink,
        *,
        status_resolver: StatusResolver | None = None,
        event_logger: RoutesEventLogger | None = None,
    ) -> None:
        """Initialise with the route provider and stats sink."""
        self._events = event_logger or RoutesEventLogger()
        self._routes = LazyRouteTable(provider, on_build=self._events.log_table_built)
        self._sink = sink
        self._resolve_status = status_resolver or default_status_resolver

    def handle(self, notification: RequestCompletion) -> None:
        """Process one notification; never raises."""
        try:
            record = self.build_record(notification)
        except RouteResolutionError as exc:
            self._events.log_unmatched(exc)
            return
        except Exception as exc:
            self._events.log_notification_failed(notification, exc)
            return

        try:
            self._sink.notify_request(record)
        except Exception as exc:
            self._events.log_notification_failed(notification, exc)

    def build_record(self, notification: RequestCompletion) -> RouteRecord:
        """Resolve *notification* into a record.

        Raises
        ------
        RouteResolutionError
            If no route matches the notification's controller and action.

        """
        route = self._find_route(notification)
        return RouteRecord(
            method=notification.method,
            route=route,
            status_code=self.find_status_code(notification),
            start_time=ensure_utc(notification.start_time, field="start_time"),
            end_time=ensure_utc(notification.end_time, field="end_time"),
        )

    def find_status_code(self, notification: RequestCompletion) -> int:
        """Return the explicit status, else one derived from the exception.

        A notification with neither reports 0; an exception that resolves to
        0 reports 500.
        """
        if notification.status:
            return notification.status
        if notification.exception is not None:
            status = self._resolve_status(notification.exception)
            return status or _INTERNAL_SERVER_ERROR
        return _UNKNOWN_STATUS

    def _find_route(self, notification: RequestCompletion) -> str:
        route = self._routes.get().find(notification.controller, notification.action)
        if route is None:
            raise RouteResolutionError(
                notification.controller,
                notification.action,
                notification.path,
            )
        return route


__all__ = ["RouteStatsCollector", "StatusResolver", "default_status_resolver"]
