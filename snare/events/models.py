"""Normalized error event structures."""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import enum
import traceback
import typing as typ
import uuid

import msgspec

from snare.common.time import ensure_utc, utcnow

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class ErrorSource(enum.StrEnum):
    """Where the interceptor found the captured error."""

    APPLICATION = "application"
    STASHED = "stashed"


class Event(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Immutable snapshot of one captured failure.

    Events are created once per failure, enriched by context filters (each
    enrichment returns a new instance), and never mutated after they are
    handed to the dispatch queue.

    Attributes
    ----------
    error_type
        Class name of the captured exception.
    message
        ``str()`` of the captured exception.
    backtrace
        Formatted frames, outermost first, as ``file:line in function``.
    context
        Flat string map contributed by context filters. Treat it as
        read-only; use :func:`with_context` to derive a new event. The
        dispatch queue keeps its own copy and gives every sink attempt a
        fresh one.
    timestamp
        Aware UTC capture time.
    event_id
        Random identifier used to correlate local diagnostics with the
        backend.
    target
        Logical pipeline the event was captured for.
    source
        Whether the handler raised the error or the host stashed it.

    """

    error_type: str
    message: str
    backtrace: tuple[str, ...] = ()
    context: dict[str, str] = msgspec.field(default_factory=dict)
    timestamp: dt.datetime
    event_id: str = msgspec.field(default_factory=lambda: uuid.uuid4().hex)
    target: str = "default"
    source: ErrorSource = ErrorSource.APPLICATION


def _format_backtrace(error: BaseException) -> tuple[str, ...]:
    if error.__traceback__ is None:
        return ()
    return tuple(
        f"{frame.filename}:{frame.lineno} in {frame.name}"
        for frame in traceback.extract_tb(error.__traceback__)
    )


def build_event(
    error: BaseException,
    *,
    target: str = "default",
    source: ErrorSource = ErrorSource.APPLICATION,
    timestamp: dt.datetime | None = None,
) -> Event:
    """Build a context-free event from *error*.

    Parameters
    ----------
    error
        Exception to describe. Exceptions that were never raised have no
        traceback and produce an empty backtrace.
    target
        Logical pipeline identifier.
    source
        Where the error was found.
    timestamp
        Capture time; defaults to now. Must be timezone-aware.

    Returns
    -------
    Event
        New event with an empty context map.

    """
    captured_at = utcnow() if timestamp is None else timestamp
    return Event(
        error_type=type(error).__name__,
        message=str(error),
        backtrace=_format_backtrace(error),
        timestamp=ensure_utc(captured_at, field="timestamp"),
        target=target,
        source=source,
    )


def with_context(event: Event, updates: cabc.Mapping[str, str]) -> Event:
    """Return a copy of *event* whose context is overlaid by *updates*."""
    if not updates:
        return event
    merged = dict(event.context)
    merged.update(updates)
    return msgspec.structs.replace(event, context=merged)


def copy_event(event: Event) -> Event:
    """Return *event* with a private copy of its context map."""
    return msgspec.structs.replace(event, context=dict(event.context))


__all__ = ["ErrorSource", "Event", "build_event", "copy_event", "with_context"]
