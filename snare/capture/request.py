"""Request-context keys and the host capability descriptor.

The interceptor treats a request as an opaque mapping, much like a WSGI
environ. Hosts populate whichever of the well-known keys below they can;
filters skip anything that is missing.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

type RequestContext = cabc.Mapping[str, object]

METHOD_KEY = "method"
PATH_KEY = "path"
URL_KEY = "url"
HEADERS_KEY = "headers"
PARAMS_KEY = "params"
SESSION_KEY = "session"
ROUTE_KEY = "route"
REMOTE_ADDR_KEY = "remote_addr"
USER_AGENT_KEY = "user_agent"
BODY_KEY = "body"

# Hosts rescue errors into different slots; checked in this order.
DEFAULT_STASHED_ERROR_KEYS: tuple[str, ...] = (
    "framework.exception",
    "falcon.exception",
    "django.exception",
    "rack.exception",
)


@dc.dataclass(frozen=True, slots=True)
class HostCapabilities:
    """What the composing layer says the host environment supports.

    Attributes
    ----------
    has_stashed_error_support
        Whether the host records rescued errors in the request context.
    stashed_error_keys
        Request-context keys holding stashed errors, highest precedence
        first.
    has_route_stats
        Whether the host publishes request-completion notifications.
    framework_name
        Optional host framework name reported with every event.
    framework_version
        Optional host framework version reported with every event.

    """

    has_stashed_error_support: bool = True
    stashed_error_keys: tuple[str, ...] = DEFAULT_STASHED_ERROR_KEYS
    has_route_stats: bool = False
    framework_name: str | None = None
    framework_version: str | None = None


def get_str(request: RequestContext, key: str) -> str | None:
    """Return ``request[key]`` as a non-empty string, else ``None``."""
    value = request.get(key)
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text or None


def get_mapping(
    request: RequestContext, key: str
) -> cabc.Mapping[typ.Any, typ.Any] | None:
    """Return ``request[key]`` when it is a non-empty mapping, else ``None``."""
    value = request.get(key)
    if isinstance(value, cabc.Mapping) and value:
        return value
    return None


__all__ = [
    "BODY_KEY",
    "DEFAULT_STASHED_ERROR_KEYS",
    "HEADERS_KEY",
    "METHOD_KEY",
    "PARAMS_KEY",
    "PATH_KEY",
    "REMOTE_ADDR_KEY",
    "ROUTE_KEY",
    "SESSION_KEY",
    "URL_KEY",
    "USER_AGENT_KEY",
    "HostCapabilities",
    "RequestContext",
    "get_mapping",
    "get_str",
]
