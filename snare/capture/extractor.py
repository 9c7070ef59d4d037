"""Apply a filter chain to a captured event."""

from __future__ import annotations

import typing as typ

from snare.capture.observability import CaptureEventLogger
from snare.errors import ExtractionError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from snare.capture.filters import ContextFilter
    from snare.capture.request import RequestContext
    from snare.events.models import Event

_DEFAULT_EVENT_LOGGER = CaptureEventLogger()


def extract(
    event: Event,
    request: RequestContext,
    filters: cabc.Iterable[ContextFilter],
    *,
    event_logger: CaptureEventLogger | None = None,
) -> Event:
    """Return *event* enriched by each filter in order.

    Later filters may overwrite keys written by earlier ones. A filter that
    raises contributes nothing: the failure is logged and extraction moves
    on to the next filter.

    Parameters
    ----------
    event
        Event to enrich; never mutated.
    request
        Opaque request context the filters read from.
    filters
        Filter chain in application order.
    event_logger
        Optional logger for filter failures.

    Returns
    -------
    Event
        The enriched event.

    """
    events = event_logger or _DEFAULT_EVENT_LOGGER
    current = event
    for context_filter in filters:
        try:
            current = context_filter.contribute(current, request)
        except Exception as exc:
            error = ExtractionError.from_exception(
                getattr(context_filter, "name", type(context_filter).__name__),
                exc,
            )
            error.__cause__ = exc
            events.log_filter_failed(error)
    return current


__all__ = ["extract"]
