"""Ports for the route statistics collector.

``RouteProvider`` exposes a host's route table (including any mounted
sub-applications); ``StatsSink`` receives one record per resolved request.
Both are ``runtime_checkable`` protocols so adapters can be verified with
``isinstance`` during composition.
"""

from __future__ import annotations

import itertools
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from snare.routes.models import RouteDefinition, RouteRecord


@typ.runtime_checkable
class RouteProvider(typ.Protocol):
    """Protocol for listing every route a host serves."""

    def list_routes(self) -> cabc.Sequence[RouteDefinition]:
        """Return all routes, application routes before mounted ones."""
        ...


@typ.runtime_checkable
class StatsSink(typ.Protocol):
    """Protocol for consumers of per-request route records."""

    def notify_request(self, record: RouteRecord) -> None:
        """Accept one record. Must not block on network I/O."""
        ...


class StaticRouteProvider:
    """Serve a fixed route table assembled from several sources.

    Parameters
    ----------
    routes
        Routes of the main application.
    mounted
        Route lists of mounted sub-applications, appended in order.

    Examples
    --------
    >>> users = RouteDefinition(
    ...     controller="users", action="show", path_template="/users/{id}"
    ... )
    >>> admin = RouteDefinition(
    ...     controller="admin", action="index", path_template="/admin"
    ... )
    >>> provider = StaticRouteProvider([users], [admin])
    >>> len(provider.list_routes())
    2

    """

    def __init__(
        self,
        routes: cabc.Iterable[RouteDefinition],
        *mounted: cabc.Iterable[RouteDefinition],
    ) -> None:
        """Concatenate application and mounted routes."""
        self._routes = tuple(itertools.chain(routes, *mounted))

    def list_routes(self) -> cabc.Sequence[RouteDefinition]:
        """Return the assembled route table."""
        return self._routes


class RecordingStatsSink:
    """Keep every record in memory; useful in tests and local development."""

    def __init__(self) -> None:
        """Initialise empty storage."""
        self.records: list[RouteRecord] = []

    def notify_request(self, record: RouteRecord) -> None:
        """Append *record*."""
        self.records.append(record)


__all__ = ["RecordingStatsSink", "RouteProvider", "StaticRouteProvider", "StatsSink"]
