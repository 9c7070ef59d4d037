"""Per-route timing and status statistics, decoupled from error capture.

Public API
----------
RouteStatsCollector
    Resolves completion notifications to routes and emits records.
CompletionNotifier
    Publish/subscribe hub hosts use to announce finished requests.
RouteDefinition / RequestCompletion / RouteRecord
    Route table entries, notifications, and emitted records.
RouteProvider / StatsSink
    Ports for the host route table and the metrics consumer.
StaticRouteProvider / RecordingStatsSink
    Simple in-memory adapters.
RouteTable
    Immutable ``(controller, action)`` index.
"""

from snare.routes.collector import RouteStatsCollector, default_status_resolver
from snare.routes.models import RequestCompletion, RouteDefinition, RouteRecord
from snare.routes.notifications import CompletionNotifier, Subscription
from snare.routes.ports import (
    RecordingStatsSink,
    RouteProvider,
    StaticRouteProvider,
    StatsSink,
)
from snare.routes.table import RouteTable

__all__ = [
    "CompletionNotifier",
    "RecordingStatsSink",
    "RequestCompletion",
    "RouteDefinition",
    "RouteProvider",
    "RouteRecord",
    "RouteStatsCollector",
    "RouteTable",
    "StaticRouteProvider",
    "StatsSink",
    "Subscription",
    "default_status_resolver",
]
