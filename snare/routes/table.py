"""Immutable ``(controller, action)`` index over a host's routes."""

from __future__ import annotations

import threading
import types
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from snare.routes.models import RouteDefinition
    from snare.routes.ports import RouteProvider


class RouteTable:
    """Read-only lookup from ``(controller, action)`` to a path template.

    When several definitions share a key, the first one listed wins, so
    application routes shadow identically named routes in mounted
    sub-applications.
    """

    __slots__ = ("_index",)

    def __init__(self, routes: cabc.Iterable[RouteDefinition]) -> None:
        """Index *routes*."""
        index: dict[tuple[str, str], str] = {}
        for route in routes:
            index.setdefault(route.key, route.path_template)
        self._index = types.MappingProxyType(index)

    def __len__(self) -> int:
        """Return the number of distinct keys."""
        return len(self._index)

    def find(self, controller: str, action: str) -> str | None:
        """Return the path template for the pair, or ``None``."""
        return self._index.get((controller, action))


class LazyRouteTable:
    """Build a :class:`RouteTable` from a provider on first access.

    The provider is consulted under a lock until one build succeeds;
    afterwards reads go straight to the published immutable table.
    """

    def __init__(
        self,
        provider: RouteProvider,
        *,
        on_build: cabc.Callable[[int], None] | None = None,
    ) -> None:
        """Initialise with the provider and an optional size callback."""
        self._provider = provider
        self._on_build = on_build
        self._lock = threading.Lock()
        self._table: RouteTable | None = None

    @property
    def is_built(self) -> bool:
        """Return whether the table has been built."""
        return self._table is not None

    def get(self) -> RouteTable:
        """Return the table, building it on the first call.

        Raises
        ------
        Exception
            Whatever the provider raises; the next call tries again.

        """
        table = self._table
        if table is not None:
            return table
        with self._lock:
            if self._table is None:
                table = RouteTable(self._provider.list_routes())
                self._table = table
                if self._on_build is not None:
                    self._on_build(len(table))
            return self._table


__all__ = ["LazyRouteTable", "RouteTable"]
