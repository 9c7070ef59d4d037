"""Asynchronous, bounded delivery of captured events to a backend.

Public API
----------
DispatchQueue
    Thread-safe, non-blocking queue delivering events with retries.
DispatchConfig
    Concurrency, capacity and backoff tuning.
EventSink
    Protocol (port) for the remote error-tracking backend.
MockEventSink
    In-memory sink for tests and local development.
DispatchJob / JobState / DeliveryAck / DispatchStats
    Delivery state and counters.
"""

from snare.dispatch.config import DispatchConfig
from snare.dispatch.mock import MockEventSink
from snare.dispatch.models import DeliveryAck, DispatchJob, DispatchStats, JobState
from snare.dispatch.queue import DispatchQueue
from snare.dispatch.sink import EventSink

__all__ = [
    "DeliveryAck",
    "DispatchConfig",
    "DispatchJob",
    "DispatchQueue",
    "DispatchStats",
    "EventSink",
    "JobState",
    "MockEventSink",
]
