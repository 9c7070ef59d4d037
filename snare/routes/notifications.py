"""Publish/subscribe hub for request-completion notifications.

Hosts publish a :class:`~snare.routes.models.RequestCompletion` when a
request finishes; the route statistics collector subscribes to it. A failing
subscriber is logged and skipped so that neither the publisher nor other
subscribers are affected.
"""

from __future__ import annotations

import collections.abc as cabc
import threading
import typing as typ

from snare.routes.observability import RoutesEventLogger

if typ.TYPE_CHECKING:
    from snare.routes.models import RequestCompletion

type CompletionCallback = cabc.Callable[[RequestCompletion], None]


class Subscription:
    """Handle returned by :meth:`CompletionNotifier.subscribe`."""

    __slots__ = ("_callback", "_notifier")

    def __init__(
        self,
        notifier: CompletionNotifier,
        callback: CompletionCallback,
    ) -> None:
        """Bind the handle to its notifier and callback."""
        self._notifier = notifier
        self._callback = callback

    @property
    def active(self) -> bool:
        """Return whether the callback still receives notifications."""
        return self._notifier.is_subscribed(self._callback)

    def unsubscribe(self) -> None:
        """Stop delivering notifications to the callback."""
        self._notifier.unsubscribe(self._callback)


class CompletionNotifier:
    """Thread-safe fan-out of completion notifications."""

    def __init__(self, *, event_logger: RoutesEventLogger | None = None) -> None:
        """Initialise without subscribers."""
        self._lock = threading.Lock()
        self._callbacks: tuple[CompletionCallback, ...] = ()
        self._events = event_logger or RoutesEventLogger()

    def subscribe(self, callback: CompletionCallback) -> Subscription:
        """Register *callback* and return a handle for removing it."""
        with self._lock:
            self._callbacks = (*self._callbacks, callback)
        return Subscription(self, callback)

    def unsubscribe(self, callback: CompletionCallback) -> None:
        """Remove *callback*; unknown callbacks are ignored."""
        with self._lock:
            self._callbacks = tuple(cb for cb in self._callbacks if cb != callback)

    def is_subscribed(self, callback: CompletionCallback) -> bool:
        """Return whether *callback* is registered."""
        return callback in self._callbacks

    def publish(self, notification: RequestCompletion) -> None:
        """Deliver *notification* to every subscriber in registration order."""
        for callback in self._callbacks:
            try:
                callback(notification)
            except Exception as exc:
                self._events.log_notification_failed(notification, exc)


__all__ = ["CompletionCallback", "CompletionNotifier", "Subscription"]
