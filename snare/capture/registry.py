"""Registry of filter chains configured per capture target.

Several interceptors may be built for the same logical target (for example
one per mounted sub-application). The registry guarantees the target's
filter chain is configured exactly once, so events never carry duplicated
filter contributions, and that a route-statistics subscription is activated
at most once per target.

The registry is an explicit object owned by whatever composes the
interceptors; nothing here is module-global.
"""

from __future__ import annotations

import threading
import types
import typing as typ

from snare.capture.observability import CaptureEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from snare.capture.filters import ContextFilter


class FilterRegistry:
    """Thread-safe map from target identifier to its filter chain.

    Examples
    --------
    >>> registry = FilterRegistry()
    >>> first = registry.register("default", default_filters(capabilities))
    >>> second = registry.register("default", default_filters(capabilities))
    >>> first is second
    True

    """

    def __init__(self, *, event_logger: CaptureEventLogger | None = None) -> None:
        """Initialise an empty registry."""
        self._lock = threading.Lock()
        self._chains: dict[str, tuple[ContextFilter, ...]] = {}
        self._route_stats_targets: set[str] = set()
        self._events = event_logger or CaptureEventLogger()

    def register(
        self,
        target: str,
        filters: cabc.Iterable[ContextFilter],
    ) -> tuple[ContextFilter, ...]:
        """Configure *target* with *filters* unless it is already configured.

        Parameters
        ----------
        target
            Logical pipeline identifier.
        filters
            Filter chain to install on first registration. Ignored when the
            target already has a chain.

        Returns
        -------
        tuple[ContextFilter, ...]
            The chain in effect for *target*.

        """
        existing = self._chains.get(target)
        if existing is not None:
            return existing

        with self._lock:
            # Double-check after acquiring the lock
            existing = self._chains.get(target)
            if existing is not None:
                return existing
            chain = tuple(filters)
            self._chains[target] = chain

        self._events.log_target_registered(
            target=target,
            filter_names=[getattr(f, "name", type(f).__name__) for f in chain],
        )
        return chain

    def is_registered(self, target: str) -> bool:
        """Return whether *target* already has a filter chain."""
        return target in self._chains

    def filters_for(self, target: str) -> tuple[ContextFilter, ...]:
        """Return the chain for *target*, or an empty tuple."""
        return self._chains.get(target, ())

    def targets(self) -> cabc.Mapping[str, tuple[ContextFilter, ...]]:
        """Return a read-only snapshot of all configured targets."""
        with self._lock:
            return types.MappingProxyType(dict(self._chains))

    def claim_route_stats(self, target: str) -> bool:
        """Claim the one route-statistics subscription allowed per target.

        Returns
        -------
        bool
            ``True`` for the first caller, ``False`` afterwards.

        """
        with self._lock:
            if target in self._route_stats_targets:
                return False
            self._route_stats_targets.add(target)
            return True


__all__ = ["FilterRegistry"]
