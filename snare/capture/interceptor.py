"""Wrap request handling and report unhandled or stashed errors.

The interceptor runs a handler, captures at most one error per request, and
hands the resulting event to a dispatcher. It never changes what the caller
observes: raised errors are re-raised unchanged, returned responses are
returned unchanged, and failures inside the capture pipeline are logged and
swallowed.

Usage
-----
::

    interceptor = Interceptor(
        "default",
        dispatcher=DispatchQueue(sink),
        registry=FilterRegistry(),
    )
    response = interceptor.intercept(request, handler)

"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from snare.capture.extractor import extract
from snare.capture.filters import default_filters
from snare.capture.observability import CaptureEventLogger
from snare.capture.request import HostCapabilities
from snare.common.time import utcnow
from snare.events.models import ErrorSource, build_event

if typ.TYPE_CHECKING:
    import datetime as dt

    from snare.capture.filters import ContextFilter
    from snare.capture.registry import FilterRegistry
    from snare.capture.request import RequestContext
    from snare.events.models import Event
    from snare.routes.collector import RouteStatsCollector
    from snare.routes.models import RequestCompletion
    from snare.routes.notifications import CompletionNotifier, Subscription


class EventDispatcher(typ.Protocol):
    """Anything that accepts events without blocking the caller."""

    def submit(self, event: Event) -> None:
        """Accept *event* for delivery."""
        ...


@dc.dataclass(frozen=True, slots=True)
class HandlerOutcome[R]:
    """Result of running a handler: either a response or the raised error."""

    response: R | None = None
    error: Exception | None = None

    @property
    def failed(self) -> bool:
        """Return whether the handler raised."""
        return self.error is not None


class Interceptor:
    """Capture errors around request handling for one target.

    Parameters
    ----------
    target
        Logical pipeline identifier; interceptors sharing a target share one
        filter chain in *registry*.
    dispatcher
        Receives captured events; typically a
        :class:`~snare.dispatch.queue.DispatchQueue`.
    registry
        Filter registry owned by the composing layer.
    capabilities
        What the host supports; decides stash lookup and route statistics.
    filters
        Filter chain to register when *target* is new; defaults to
        :func:`~snare.capture.filters.default_filters`.
    collector
        Route statistics collector to subscribe when the host publishes
        completion notifications.
    notifier
        Completion notifier the collector subscribes to.
    clock
        Source of capture timestamps.
    event_logger
        Structured logger for capture diagnostics.

    """

    def __init__(  # noqa: PLR0913
        self,
        target: str = "default",
        *,
        dispatcher: EventDispatcher,
        registry: FilterRegistry,
        capabilities: HostCapabilities | None = None,
        filters: cabc.Iterable[ContextFilter] | None = None,
        collector: RouteStatsCollector | None = None,
        notifier: CompletionNotifier | None = None,
        clock: cabc.Callable[[], dt.datetime] = utcnow,
        event_logger: CaptureEventLogger | None = None,
    ) -> None:
        """Register the filter chain and, if supported, route statistics."""
        self._target = target
        self._dispatcher = dispatcher
        self._capabilities = capabilities or HostCapabilities()
        self._clock = clock
        self._events = event_logger or CaptureEventLogger()
        self._notifier = notifier

        chain = default_filters(self._capabilities) if filters is None else filters
        self._filters = registry.register(target, chain)

        self._subscription: Subscription | None = None
        if (
            self._capabilities.has_route_stats
            and collector is not None
            and notifier is not None
            and registry.claim_route_stats(target)
        ):
            self._subscription = notifier.subscribe(collector.handle)

    @property
    def target(self) -> str:
        """Return the logical pipeline identifier."""
        return self._target

    @property
    def filters(self) -> tuple[ContextFilter, ...]:
        """Return the filter chain in effect for this target."""
        return self._filters

    @property
    def subscription(self) -> Subscription | None:
        """Return the route-statistics subscription this instance activated."""
        return self._subscription

    def intercept[R](
        self,
        request: RequestContext,
        handler: cabc.Callable[[RequestContext], R],
    ) -> R:
        """Run *handler* for *request*, reporting at most one error.

        Parameters
        ----------
        request
            Opaque request context passed to the handler and the filters.
        handler
            Unit of request processing.

        Returns
        -------
        R
            Whatever *handler* returned, unchanged.

        Raises
        ------
        Exception
            The very exception *handler* raised, after it was reported.

        """
        try:
            outcome: HandlerOutcome[R] = HandlerOutcome(response=handler(request))
        except Exception as exc:
            outcome = HandlerOutcome(error=exc)
        return self._finish(outcome, request)

    async def intercept_async[R](
        self,
        request: RequestContext,
        handler: cabc.Callable[[RequestContext], cabc.Awaitable[R]],
    ) -> R:
        """Coroutine counterpart of :meth:`intercept`."""
        try:
            outcome: HandlerOutcome[R] = HandlerOutcome(
                response=await handler(request)
            )
        except Exception as exc:
            outcome = HandlerOutcome(error=exc)
        return self._finish(outcome, request)

    def find_stashed_error(self, request: RequestContext) -> BaseException | None:
        """Return the highest-precedence stashed exception, if any.

        Slots holding something other than an exception are skipped.
        """
        if not self._capabilities.has_stashed_error_support:
            return None
        for key in self._capabilities.stashed_error_keys:
            value = request.get(key)
            if value is None:
                continue
            if isinstance(value, BaseException):
                return value
            self._events.log_stash_ignored(key=key, value_type=type(value).__name__)
        return None

    def capture(
        self,
        error: BaseException,
        request: RequestContext,
        *,
        source: ErrorSource = ErrorSource.APPLICATION,
    ) -> Event | None:
        """Build, enrich, and submit an event for *error*.

        Returns
        -------
        Event | None
            The submitted event, or ``None`` if the pipeline failed (the
            failure is logged, never raised).

        """
        try:
            event = build_event(
                error,
                target=self._target,
                source=source,
                timestamp=self._clock(),
            )
            event = extract(event, request, self._filters, event_logger=self._events)
            self._dispatcher.submit(event)
        except Exception as exc:
            self._events.log_pipeline_failed(target=self._target, error=exc)
            return None
        self._events.log_event_captured(event)
        return event

    def notify_completion(self, notification: RequestCompletion) -> None:
        """Publish *notification* to route-statistics subscribers, if any."""
        if self._notifier is not None:
            self._notifier.publish(notification)

    def detach(self) -> None:
        """Cancel the route-statistics subscription this instance activated."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _finish[R](self, outcome: HandlerOutcome[R], request: RequestContext) -> R:
        self._report(outcome, request)
        if outcome.error is not None:
            raise outcome.error
        return typ.cast("R", outcome.response)

    def _report(
        self, outcome: HandlerOutcome[typ.Any], request: RequestContext
    ) -> None:
        # A raised error is the request's one report; the stash is only
        # consulted when the handler returned normally.
        if outcome.error is not None:
            self.capture(outcome.error, request, source=ErrorSource.APPLICATION)
            return
        try:
            stashed = self.find_stashed_error(request)
        except Exception as exc:
            self._events.log_pipeline_failed(target=self._target, error=exc)
            return
        if stashed is not None:
            self.capture(stashed, request, source=ErrorSource.STASHED)


__all__ = ["EventDispatcher", "HandlerOutcome", "Interceptor"]
