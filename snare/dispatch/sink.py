"""EventSink protocol for the remote error-tracking backend.

This module defines the port through which the dispatch queue hands events
to a backend. Adapters own transport, authentication and payload encoding;
the queue only cares whether a submission succeeded.

The protocol is ``runtime_checkable`` to support ``isinstance`` checks for
dependency injection and testing scenarios.

Usage
-----
Type-check a concrete adapter:

>>> from snare.dispatch.mock import MockEventSink
>>> isinstance(MockEventSink(), EventSink)
True

"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from snare.events.models import Event


@typ.runtime_checkable
class EventSink(typ.Protocol):
    """Protocol for submitting diagnostic events to a backend."""

    async def submit(self, event: Event) -> None:
        """Deliver one event.

        Parameters
        ----------
        event
            Fully enriched event. Adapters typically serialise it with
            :func:`snare.events.encode_event`.

        Raises
        ------
        DeliveryError
            If the backend is unreachable or rejects the payload. Any other
            exception is treated by the queue as a retryable failure.

        """
        ...


__all__ = ["EventSink"]
