"""Assemble a capture pipeline from its collaborators.

This module wires the dispatch queue, filter registry, completion notifier,
route statistics collector and interceptor together. The composing
application decides what the host supports by passing a
:class:`~snare.capture.request.HostCapabilities`; nothing is probed at
runtime.

Usage
-----
Error capture only::

    pipeline = create_pipeline(dependencies=CaptureDependencies(sink=sink))
    response = pipeline.interceptor.intercept(request, handler)

With route statistics::

    deps = CaptureDependencies(
        sink=sink,
        stats_sink=stats_sink,
        route_provider=StaticRouteProvider(routes),
        capabilities=HostCapabilities(has_route_stats=True),
    )
    pipeline = create_pipeline("api", deps)
    pipeline.interceptor.notify_completion(notification)

"""

from __future__ import annotations

import atexit
import dataclasses as dc
import typing as typ

from snare.capture.interceptor import Interceptor
from snare.capture.registry import FilterRegistry
from snare.capture.request import HostCapabilities
from snare.dispatch.config import DispatchConfig
from snare.dispatch.queue import DispatchQueue
from snare.routes.collector import RouteStatsCollector
from snare.routes.notifications import CompletionNotifier

if typ.TYPE_CHECKING:
    from snare.capture.filters import ContextFilter
    from snare.dispatch.models import DispatchStats
    from snare.dispatch.sink import EventSink
    from snare.routes.ports import RouteProvider, StatsSink

__all__ = [
    "CaptureDependencies",
    "CapturePipeline",
    "create_interceptor",
    "create_pipeline",
]


@dc.dataclass(frozen=True, slots=True)
class CaptureDependencies:
    """Collaborators for a capture pipeline.

    Attributes
    ----------
    sink
        Backend adapter receiving events.
    stats_sink
        Receives route records; route statistics stay off without it.
    route_provider
        Host route table; route statistics stay off without it.
    capabilities
        What the host supports.
    dispatch_config
        Queue tuning; read from the environment when ``None``.
    registry
        Shared filter registry; a fresh one is created when ``None``.
    notifier
        Shared completion notifier; a fresh one is created when ``None``.
    queue
        Existing queue to reuse instead of building one around *sink*.
    filters
        Filter chain override for new targets.

    """

    sink: EventSink
    stats_sink: StatsSink | None = None
    route_provider: RouteProvider | None = None
    capabilities: HostCapabilities = dc.field(default_factory=HostCapabilities)
    dispatch_config: DispatchConfig | None = None
    registry: FilterRegistry | None = None
    notifier: CompletionNotifier | None = None
    queue: DispatchQueue | None = None
    filters: tuple[ContextFilter, ...] | None = None


@dc.dataclass(frozen=True, slots=True)
class CapturePipeline:
    """The assembled parts of a capture pipeline."""

    interceptor: Interceptor
    queue: DispatchQueue
    registry: FilterRegistry
    notifier: CompletionNotifier
    collector: RouteStatsCollector | None = None

    def close(self, timeout: float | None = None) -> DispatchStats:
        """Detach route statistics and drain the dispatch queue.

        Parameters
        ----------
        timeout
            Drain budget in seconds; defaults to the queue configuration.

        Returns
        -------
        DispatchStats
            Final queue counters.

        """
        self.interceptor.detach()
        return self.queue.close(timeout)

    def install_exit_hook(self, timeout: float | None = None) -> None:
        """Drain the queue when the interpreter exits."""
        atexit.register(self.close, timeout)


def _has_route_stats_deps(dependencies: CaptureDependencies) -> bool:
    """Return True when the host and deps both support route statistics."""
    return (
        dependencies.capabilities.has_route_stats
        and dependencies.stats_sink is not None
        and dependencies.route_provider is not None
    )


def create_pipeline(
    target: str = "default",
    dependencies: CaptureDependencies | None = None,
) -> CapturePipeline:
    """Build a capture pipeline for *target*.

    Parameters
    ----------
    target
        Logical pipeline identifier.
    dependencies
        Collaborators; *sink* is required.

    Returns
    -------
    CapturePipeline
        Interceptor plus the queue, registry, notifier and collector behind
        it.

    Raises
    ------
    TypeError
        If *dependencies* is omitted.

    """
    if dependencies is None:
        msg = "create_pipeline() requires CaptureDependencies with a sink"
        raise TypeError(msg)

    queue = dependencies.queue or DispatchQueue(
        dependencies.sink,
        config=dependencies.dispatch_config or DispatchConfig.from_env(),
    )
    registry = dependencies.registry or FilterRegistry()
    notifier = dependencies.notifier or CompletionNotifier()

    collector: RouteStatsCollector | None = None
    if _has_route_stats_deps(dependencies):
        provider = typ.cast("RouteProvider", dependencies.route_provider)
        stats_sink = typ.cast("StatsSink", dependencies.stats_sink)
        collector = RouteStatsCollector(provider, stats_sink)

    interceptor = Interceptor(
        target,
        dispatcher=queue,
        registry=registry,
        capabilities=dependencies.capabilities,
        filters=dependencies.filters,
        collector=collector,
        notifier=notifier,
    )
    return CapturePipeline(
        interceptor=interceptor,
        queue=queue,
        registry=registry,
        notifier=notifier,
        collector=collector,
    )


def create_interceptor(
    target: str = "default",
    dependencies: CaptureDependencies | None = None,
) -> Interceptor:
    """Build a pipeline for *target* and return just its interceptor."""
    return create_pipeline(target, dependencies).interceptor
