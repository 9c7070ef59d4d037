"""Error event model and wire codec.

Public API
----------
Event
    Immutable snapshot of a captured failure.
ErrorSource
    Whether the error was raised by the handler or stashed by the host.
build_event
    Build a context-free event from an exception.
with_context
    Return a copy of an event with extra context keys.
copy_event
    Return an event whose context map is not shared with the input.
encode_event / decode_event / event_to_payload
    JSON wire helpers built on msgspec.
"""

from snare.events.codec import decode_event, encode_event, event_to_payload
from snare.events.models import (
    ErrorSource,
    Event,
    build_event,
    copy_event,
    with_context,
)

__all__ = [
    "ErrorSource",
    "Event",
    "build_event",
    "copy_event",
    "decode_event",
    "encode_event",
    "event_to_payload",
    "with_context",
]
