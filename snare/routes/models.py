"""Structures for route statistics."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt  # noqa: TC003

import msgspec


class RouteDefinition(msgspec.Struct, kw_only=True, frozen=True):
    """One entry of a host's route table.

    Attributes
    ----------
    controller
        Name of the handler class or controller.
    action
        Name of the handler method or action.
    path_template
        Route path as declared, e.g. ``/users/{id}``.

    """

    controller: str
    action: str
    path_template: str

    @property
    def key(self) -> tuple[str, str]:
        """Return the ``(controller, action)`` lookup key."""
        return (self.controller, self.action)


@dc.dataclass(frozen=True, slots=True, kw_only=True)
class RequestCompletion:
    """Notification published by a host when a request finishes.

    Attributes
    ----------
    method
        HTTP method.
    path
        Concrete request path.
    controller
        Controller that handled the request.
    action
        Action that handled the request.
    status
        Response status, when the host knows it.
    start_time
        Aware start timestamp.
    end_time
        Aware completion timestamp.
    exception
        Exception that ended the request, when there was one.

    """

    method: str
    path: str
    controller: str
    action: str
    start_time: dt.datetime
    end_time: dt.datetime
    status: int | None = None
    exception: BaseException | None = None

    @property
    def key(self) -> tuple[str, str]:
        """Return the ``(controller, action)`` lookup key."""
        return (self.controller, self.action)


class RouteRecord(msgspec.Struct, kw_only=True, frozen=True):
    """Per-request timing and status for one resolved route.

    Created per completed request and handed straight to the stats sink.
    """

    method: str
    route: str
    status_code: int
    start_time: dt.datetime
    end_time: dt.datetime

    @property
    def duration(self) -> dt.timedelta:
        """Return the elapsed request time."""
        return self.end_time - self.start_time


__all__ = ["RequestCompletion", "RouteDefinition", "RouteRecord"]
