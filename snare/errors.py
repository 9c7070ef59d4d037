"""Exception hierarchy shared by the capture, dispatch, and routes packages.

Nothing raised from this hierarchy is allowed to reach the host's
request/response cycle: the interceptor, the dispatch queue, and the route
statistics collector log these errors and carry on.
"""

from __future__ import annotations

# Detail preview length for wrapped exception messages
_DETAIL_PREVIEW_LIMIT = 200


def _preview(detail: str) -> str:
    if len(detail) > _DETAIL_PREVIEW_LIMIT:
        return detail[:_DETAIL_PREVIEW_LIMIT] + "..."
    return detail


class SnareError(Exception):
    """Base class for all errors originating inside the capture pipeline."""


class ConfigError(SnareError, ValueError):
    """Raised when environment configuration is invalid."""

    @classmethod
    def not_an_integer(cls, env_var: str, raw: str) -> ConfigError:
        """Create error for a non-integer value."""
        return cls(f"{env_var} must be an integer, got: {raw!r}")

    @classmethod
    def not_a_number(cls, env_var: str, raw: str) -> ConfigError:
        """Create error for a non-numeric value."""
        return cls(f"{env_var} must be a number, got: {raw!r}")

    @classmethod
    def out_of_range(cls, env_var: str, value: float, bound: str) -> ConfigError:
        """Create error for a value outside its permitted range.

        Parameters
        ----------
        env_var
            Name of the offending environment variable.
        value
            Parsed value.
        bound
            Human-readable description of the permitted range.

        Returns
        -------
        ConfigError
            Error naming the variable and its constraint.

        """
        return cls(f"{env_var} must be {bound}, got: {value}")


class ExtractionError(SnareError):
    """Raised when a context filter cannot read the request it was given.

    Attributes
    ----------
    filter_name
        Name of the failing filter.

    """

    def __init__(self, message: str, *, filter_name: str) -> None:
        """Initialise with a message and the failing filter's name."""
        self.filter_name = filter_name
        super().__init__(message)

    @classmethod
    def from_exception(cls, filter_name: str, exc: BaseException) -> ExtractionError:
        """Wrap an arbitrary filter failure."""
        detail = _preview(f"{type(exc).__name__}: {exc}")
        return cls(
            f"Context filter {filter_name!r} failed: {detail}",
            filter_name=filter_name,
        )


class DeliveryError(SnareError):
    """Raised (or returned) when an event cannot be delivered to the backend.

    Attributes
    ----------
    status_code
        Backend status code when the backend answered, else ``None``.
    retryable
        Whether another attempt may succeed.

    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool = True,
    ) -> None:
        """Initialise the error with message, status code and retry hint."""
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message)

    @classmethod
    def rejected(cls, status_code: int, *, retryable: bool = True) -> DeliveryError:
        """Create error for a payload the backend refused.

        Parameters
        ----------
        status_code
            Status code returned by the backend.
        retryable
            ``False`` when the backend will never accept this payload, which
            drops the event without further attempts.

        Returns
        -------
        DeliveryError
            Error carrying the backend status.

        """
        return cls(
            f"Backend rejected event with status {status_code}",
            status_code=status_code,
            retryable=retryable,
        )

    @classmethod
    def unreachable(cls, detail: str) -> DeliveryError:
        """Create error for a backend that could not be contacted."""
        return cls(f"Backend unreachable: {_preview(detail)}")

    @classmethod
    def unexpected(cls, exc: BaseException) -> DeliveryError:
        """Wrap an exception of unknown origin raised by a sink."""
        return cls(f"Sink raised {type(exc).__name__}: {_preview(str(exc))}")


class RouteResolutionError(SnareError):
    """Raised when a completion notification matches no known route.

    Attributes
    ----------
    controller
        Controller name from the notification.
    action
        Action name from the notification.
    path
        Request path from the notification.

    """

    def __init__(self, controller: str, action: str, path: str) -> None:
        """Initialise with the unresolved controller, action and path."""
        self.controller = controller
        self.action = action
        self.path = path
        super().__init__(
            f"No route for {controller}#{action} (path: {path})",
        )


__all__ = [
    "ConfigError",
    "DeliveryError",
    "ExtractionError",
    "RouteResolutionError",
    "SnareError",
]
