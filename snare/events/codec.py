"""Wire encoding for error events.

Events travel to the backend as a JSON object in camelCase::

    {"errorType": "...", "message": "...", "backtrace": [...],
     "context": {...}, "timestamp": "2024-07-01T12:00:00Z",
     "eventId": "...", "target": "default", "source": "application"}

"""

from __future__ import annotations

import typing as typ

import msgspec

from snare.events.models import Event

_ENCODER = msgspec.json.Encoder()
_DECODER = msgspec.json.Decoder(Event)


def encode_event(event: Event) -> bytes:
    """Serialise *event* to its JSON wire form."""
    return _ENCODER.encode(event)


def decode_event(payload: bytes | str) -> Event:
    """Parse a JSON wire payload back into an :class:`Event`.

    Raises
    ------
    msgspec.ValidationError
        If the payload does not describe an event.

    """
    return _DECODER.decode(payload)


def event_to_payload(event: Event) -> dict[str, typ.Any]:
    """Return *event* as JSON-compatible builtins (camelCase keys)."""
    return msgspec.to_builtins(event)


__all__ = ["decode_event", "encode_event", "event_to_payload"]
