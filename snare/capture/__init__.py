"""Error capture around request handling.

Public API
----------
Interceptor
    Wraps a handler and reports raised or stashed errors exactly once.
HandlerOutcome
    Explicit response-or-error result of running a handler.
FilterRegistry
    Per-target filter chains, configured at most once.
HostCapabilities
    Capability descriptor supplied by the composing layer.
ContextFilter
    Protocol for request-data contributors.
RequestInfoFilter / SessionFilter / HttpParamsFilter / HttpHeadersFilter /
RouteFilter / RequestBodyFilter
    Built-in filters.
default_filters
    The standard filter chain.
extract
    Apply a filter chain to an event.
"""

from snare.capture.extractor import extract
from snare.capture.filters import (
    ContextFilter,
    HttpHeadersFilter,
    HttpParamsFilter,
    RequestBodyFilter,
    RequestInfoFilter,
    RouteFilter,
    SessionFilter,
    default_filters,
)
from snare.capture.interceptor import EventDispatcher, HandlerOutcome, Interceptor
from snare.capture.registry import FilterRegistry
from snare.capture.request import (
    DEFAULT_STASHED_ERROR_KEYS,
    HostCapabilities,
    RequestContext,
)

__all__ = [
    "DEFAULT_STASHED_ERROR_KEYS",
    "ContextFilter",
    "EventDispatcher",
    "FilterRegistry",
    "HandlerOutcome",
    "HostCapabilities",
    "HttpHeadersFilter",
    "HttpParamsFilter",
    "Interceptor",
    "RequestBodyFilter",
    "RequestContext",
    "RequestInfoFilter",
    "RouteFilter",
    "SessionFilter",
    "default_filters",
    "extract",
]
