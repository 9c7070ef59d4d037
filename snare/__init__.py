"""Framework-agnostic error capture and dispatch.

Snare wraps request handling, reports raised and host-stashed errors exactly
once per request, enriches them with request context, and delivers them to
an error-tracking backend off the request path. An optional collector turns
request-completion notifications into per-route timing records.

Public API
----------
create_pipeline / create_interceptor
    Compose a capture pipeline from :class:`CaptureDependencies`.
Interceptor
    Wraps a handler and reports errors.
HostCapabilities
    What the host environment supports.
FilterRegistry
    Per-target filter chains.
DispatchQueue / DispatchConfig
    Bounded asynchronous delivery with retries.
EventSink / MockEventSink
    Backend port and in-memory adapter.
Event
    Immutable captured-error record.
RouteStatsCollector / CompletionNotifier
    Route statistics pipeline.

Example:
>>> from snare import CaptureDependencies, MockEventSink, create_pipeline
>>> pipeline = create_pipeline(dependencies=CaptureDependencies(sink=MockEventSink()))
>>> pipeline.interceptor.intercept({"method": "GET"}, lambda request: "ok")
'ok'
>>> pipeline.close().dropped
0

"""

from snare.capture import FilterRegistry, HostCapabilities, Interceptor
from snare.dispatch import DispatchConfig, DispatchQueue, EventSink, MockEventSink
from snare.events import ErrorSource, Event
from snare.factory import (
    CaptureDependencies,
    CapturePipeline,
    create_interceptor,
    create_pipeline,
)
from snare.routes import CompletionNotifier, RouteStatsCollector

__all__ = [
    "CaptureDependencies",
    "CapturePipeline",
    "CompletionNotifier",
    "DispatchConfig",
    "DispatchQueue",
    "ErrorSource",
    "Event",
    "EventSink",
    "FilterRegistry",
    "HostCapabilities",
    "Interceptor",
    "MockEventSink",
    "RouteStatsCollector",
    "create_interceptor",
    "create_pipeline",
]
