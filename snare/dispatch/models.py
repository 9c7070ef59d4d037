"""Delivery state tracked by the dispatch queue."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

if typ.TYPE_CHECKING:
    from snare.events.models import Event


class JobState(enum.StrEnum):
    """Lifecycle of a dispatch job."""

    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    DELIVERED = "delivered"
    FAILED = "failed"


@dc.dataclass(slots=True)
class DispatchJob:
    """An event plus its delivery state.

    Jobs are owned by the queue from submission until they reach a terminal
    state; callers never see them.
    """

    event: Event
    state: JobState = JobState.PENDING
    attempts: int = 0

    @property
    def is_terminal(self) -> bool:
        """Return whether the job has been delivered or given up on."""
        return self.state in {JobState.DELIVERED, JobState.FAILED}


@dc.dataclass(frozen=True, slots=True)
class DeliveryAck:
    """Successful outcome of one delivery attempt."""

    event_id: str
    attempt: int


@dc.dataclass(frozen=True, slots=True)
class DispatchStats:
    """Point-in-time counters for a dispatch queue.

    Attributes
    ----------
    submitted
        Events accepted by ``submit`` (including later-evicted ones).
    delivered
        Events the sink acknowledged.
    dropped
        Events given up on for any reason: retries exhausted, evicted,
        discarded at shutdown, or submitted after close.
    evicted
        Subset of ``dropped`` removed to make room in a full queue.
    retried
        Failed attempts that were followed by another attempt.
    pending
        Jobs waiting for a worker.
    in_flight
        Jobs currently held by a worker.

    """

    submitted: int = 0
    delivered: int = 0
    dropped: int = 0
    evicted: int = 0
    retried: int = 0
    pending: int = 0
    in_flight: int = 0


__all__ = ["DeliveryAck", "DispatchJob", "DispatchStats", "JobState"]
