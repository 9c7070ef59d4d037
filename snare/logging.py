"""Logging helpers for femtologging integration.

Snare emits pre-formatted messages through femtologging so the capture and
dispatch paths never pay for lazy formatting on a background thread.

Example:
>>> from snare.logging import get_logger, log_info
>>> logger = get_logger(__name__)
>>> log_info(logger, "Dispatch worker %d started", 1)

"""

from __future__ import annotations

import enum
import os
import typing as typ

from femtologging import basicConfig, get_logger

LOG_LEVEL_ENV_VAR = "SNARE_LOG_LEVEL"


class LogLevel(enum.StrEnum):
    """Supported log levels for femtologging."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Normalize a log level string and report invalid inputs.

    Parameters
    ----------
    level : str | None
        Raw log level string to normalize.

    Returns
    -------
    tuple[str, bool]
        The normalized log level and a flag indicating invalid input.

    """
    if not level:
        return ("INFO", True)

    normalized = level.strip().upper()
    if normalized in LogLevel.__members__:
        return (normalized, False)

    return ("INFO", True)


def configure_logging(level: str, *, force: bool = False) -> tuple[str, bool]:
    """Configure femtologging and return the normalized level.

    Parameters
    ----------
    level : str
        Raw log level string to normalize.
    force : bool, optional
        Whether to replace any existing handler configuration.

    Returns
    -------
    tuple[str, bool]
        The normalized log level and a flag indicating invalid input.

    """
    normalized, invalid = normalize_log_level(level)
    basicConfig(level=normalized, force=force)
    return (normalized, invalid)


def configure_logging_from_env(*, force: bool = False) -> str:
    """Configure femtologging from ``SNARE_LOG_LEVEL``.

    An unset or unrecognised value falls back to ``INFO`` and is reported
    with a warning once logging is live.
    """
    raw_level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO")
    normalized, invalid = configure_logging(raw_level, force=force)
    if invalid:
        log_warning(
            get_logger(__name__),
            "Invalid %s %r, falling back to %s",
            LOG_LEVEL_ENV_VAR,
            raw_level,
            normalized,
        )
    return normalized


def format_log_message(template: str, *args: object) -> str:
    """Format a log message using percent-style interpolation."""
    return template % args


class _SupportsLog(typ.Protocol):
    """Protocol for femtologging-compatible loggers."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def _log_at_level(
    logger: _SupportsLog,
    level: str,
    template: str,
    args: tuple[object, ...],
    exc_info: object | None,
) -> None:
    logger.log(
        level,
        format_log_message(template, *args),
        exc_info=exc_info,
        stack_info=False,
    )


def log_debug(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a DEBUG message with percent-style formatting."""
    _log_at_level(logger, "DEBUG", template, args, exc_info)


def log_info(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an INFO message with percent-style formatting.

    Parameters
    ----------
    logger : _SupportsLog
        Logger that receives the formatted message.
    template : str
        Message template using percent-style placeholders.
    *args : object
        Values to interpolate into the template.
    exc_info : object | None, optional
        Exception information to attach to the log record.

    """
    _log_at_level(logger, "INFO", template, args, exc_info)


def log_warning(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a WARNING message with percent-style formatting."""
    _log_at_level(logger, "WARNING", template, args, exc_info)


def log_error(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an ERROR message with percent-style formatting."""
    _log_at_level(logger, "ERROR", template, args, exc_info)


def log_exception(logger: _SupportsLog, message: str, exc: BaseException) -> None:
    """Log a pre-formatted message at ERROR with ``exc`` attached.

    Parameters
    ----------
    logger : _SupportsLog
        Logger that receives the exception payload.
    message : str
        Pre-formatted message describing the failure.
    exc : BaseException
        Exception instance to attach as exc_info.

    """
    logger.log("ERROR", message, exc_info=exc, stack_info=False)


__all__ = [
    "LOG_LEVEL_ENV_VAR",
    "configure_logging",
    "configure_logging_from_env",
    "format_log_message",
    "get_logger",
    "log_debug",
    "log_error",
    "log_exception",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
