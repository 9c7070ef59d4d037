"""Context filters that copy request data into captured events.

Each filter reads one slice of the request context and writes flat string
keys into the event's context map. A filter that finds nothing to report
returns the event untouched, so absent data never shows up as empty keys.

Usage
-----
Build the default chain for a host::

    from snare.capture.filters import default_filters
    from snare.capture.request import HostCapabilities

    filters = default_filters(HostCapabilities(framework_name="falcon"))

"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from snare.capture.request import (
    BODY_KEY,
    HEADERS_KEY,
    METHOD_KEY,
    PARAMS_KEY,
    PATH_KEY,
    REMOTE_ADDR_KEY,
    ROUTE_KEY,
    SESSION_KEY,
    URL_KEY,
    USER_AGENT_KEY,
    get_mapping,
    get_str,
)
from snare.events.models import with_context

if typ.TYPE_CHECKING:
    from snare.capture.request import HostCapabilities, RequestContext
    from snare.events.models import Event

FILTERED = "[FILTERED]"

DEFAULT_SENSITIVE_NAMES: frozenset[str] = frozenset({
    "authorization",
    "cookie",
    "set-cookie",
    "password",
    "token",
    "api_key",
    "access_token",
    "refresh_token",
})

_DEFAULT_BODY_LIMIT = 4096


@typ.runtime_checkable
class ContextFilter(typ.Protocol):
    """Protocol for units that contribute one category of request data.

    Implementations must not perform I/O: they run inline on the request
    path. Raising is tolerated by the extractor but counts as an empty
    contribution.
    """

    name: str

    def contribute(self, event: Event, request: RequestContext) -> Event:
        """Return *event* enriched with data read from *request*."""
        ...


def _flatten(
    prefix: str,
    values: cabc.Mapping[typ.Any, typ.Any],
    sensitive: frozenset[str],
) -> dict[str, str]:
    flattened: dict[str, str] = {}
    for raw_key, value in values.items():
        if value is None:
            continue
        text = str(value)
        if not text:
            continue
        key = str(raw_key)
        flattened[f"{prefix}.{key}"] = FILTERED if key.lower() in sensitive else text
    return flattened


class RequestInfoFilter:
    """Record the request line, client details, and host framework."""

    name = "request_info"

    def __init__(
        self,
        *,
        framework_name: str | None = None,
        framework_version: str | None = None,
    ) -> None:
        """Initialise with the optional framework identity to report."""
        self._framework: dict[str, str] = {}
        if framework_name:
            self._framework["framework.name"] = framework_name
        if framework_version:
            self._framework["framework.version"] = framework_version

    def contribute(self, event: Event, request: RequestContext) -> Event:
        """Copy method, URL, path, remote address and user agent."""
        updates = dict(self._framework)
        for context_key, request_key in (
            ("request.method", METHOD_KEY),
            ("request.url", URL_KEY),
            ("request.path", PATH_KEY),
            ("request.remote_addr", REMOTE_ADDR_KEY),
            ("request.user_agent", USER_AGENT_KEY),
        ):
            value = get_str(request, request_key)
            if value is not None:
                updates[context_key] = value
        return with_context(event, updates)


class _MappingFilter:
    """Shared behaviour for filters that flatten one request mapping."""

    name: str
    request_key: str
    prefix: str

    def __init__(self, *, sensitive_names: cabc.Iterable[str] | None = None) -> None:
        names = DEFAULT_SENSITIVE_NAMES if sensitive_names is None else sensitive_names
        self._sensitive = frozenset(name.lower() for name in names)

    def contribute(self, event: Event, request: RequestContext) -> Event:
        """Flatten the mapping under ``request_key`` into prefixed keys."""
        values = get_mapping(request, self.request_key)
        if values is None:
            return event
        return with_context(event, _flatten(self.prefix, values, self._sensitive))


class SessionFilter(_MappingFilter):
    """Record session data as ``session.<key>``."""

    name = "session"
    request_key = SESSION_KEY
    prefix = "session"


class HttpParamsFilter(_MappingFilter):
    """Record query and form parameters as ``params.<key>``."""

    name = "params"
    request_key = PARAMS_KEY
    prefix = "params"


class HttpHeadersFilter(_MappingFilter):
    """Record request headers as ``headers.<Name>``, preserving case."""

    name = "headers"
    request_key = HEADERS_KEY
    prefix = "headers"


class RouteFilter:
    """Record the route template the host resolved for the request."""

    name = "route"

    def contribute(self, event: Event, request: RequestContext) -> Event:
        """Copy the resolved route, if the host provided one."""
        route = get_str(request, ROUTE_KEY)
        if route is None:
            return event
        return with_context(event, {"route": route})


class RequestBodyFilter:
    """Record the request body, truncated to ``max_bytes`` UTF-8 bytes.

    Not part of the default chain: bodies frequently carry personal data, so
    hosts opt in explicitly.
    """

    name = "request_body"

    def __init__(self, *, max_bytes: int = _DEFAULT_BODY_LIMIT) -> None:
        """Initialise with the truncation limit."""
        if max_bytes < 1:
            msg = f"max_bytes must be positive, got: {max_bytes}"
            raise ValueError(msg)
        self._max_bytes = max_bytes

    def contribute(self, event: Event, request: RequestContext) -> Event:
        """Copy the decoded body, if any."""
        body = request.get(BODY_KEY)
        if isinstance(body, str):
            body = body.encode("utf-8")
        if not isinstance(body, bytes | bytearray) or not body:
            return event
        raw = bytes(body)
        if len(raw) <= self._max_bytes:
            text = raw.decode("utf-8", errors="replace")
        else:
            # A multi-byte character cut at the limit is dropped whole.
            head = raw[: self._max_bytes].decode("utf-8", errors="ignore")
            text = head + "..."
        return with_context(event, {"request.body": text})


def default_filters(capabilities: HostCapabilities) -> tuple[ContextFilter, ...]:
    """Return the standard filter chain in application order."""
    return (
        RequestInfoFilter(
            framework_name=capabilities.framework_name,
            framework_version=capabilities.framework_version,
        ),
        SessionFilter(),
        HttpParamsFilter(),
        HttpHeadersFilter(),
        RouteFilter(),
    )


__all__ = [
    "DEFAULT_SENSITIVE_NAMES",
    "FILTERED",
    "ContextFilter",
    "HttpHeadersFilter",
    "HttpParamsFilter",
    "RequestBodyFilter",
    "RequestInfoFilter",
    "RouteFilter",
    "SessionFilter",
    "default_filters",
]
