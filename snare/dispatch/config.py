"""Configuration for the dispatch queue.

Usage
-----
Create a configuration with defaults:

>>> config = DispatchConfig()
>>> config.max_attempts
5

Or load from environment variables:

>>> import os
>>> os.environ["SNARE_DISPATCH_CONCURRENCY"] = "8"
>>> DispatchConfig.from_env().concurrency
8

"""

from __future__ import annotations

import dataclasses as dc
import os

from snare.errors import ConfigError

# Default configuration values - single source of truth
_DEFAULT_CONCURRENCY = 4
_DEFAULT_CAPACITY = 1000
_DEFAULT_MAX_ATTEMPTS = 5
_DEFAULT_BACKOFF_BASE_S = 0.5
_DEFAULT_BACKOFF_MULTIPLIER = 2.0
_DEFAULT_BACKOFF_MAX_S = 30.0
_DEFAULT_FLUSH_TIMEOUT_S = 5.0


@dc.dataclass(frozen=True, slots=True)
class DispatchConfig:
    """Tuning for delivery concurrency, buffering, and retries.

    Attributes
    ----------
    concurrency
        Number of worker tasks, i.e. the maximum number of deliveries in
        flight at once.
    capacity
        Maximum number of pending jobs. When full, the oldest pending job
        is evicted to make room.
    max_attempts
        Delivery attempts per job, including the first.
    backoff_base_s
        Delay before the second attempt.
    backoff_multiplier
        Growth factor applied to the delay after each failed attempt.
    backoff_max_s
        Upper bound on any single delay.
    flush_timeout_s
        Default time budget for draining the queue on close.

    """

    concurrency: int = _DEFAULT_CONCURRENCY
    capacity: int = _DEFAULT_CAPACITY
    max_attempts: int = _DEFAULT_MAX_ATTEMPTS
    backoff_base_s: float = _DEFAULT_BACKOFF_BASE_S
    backoff_multiplier: float = _DEFAULT_BACKOFF_MULTIPLIER
    backoff_max_s: float = _DEFAULT_BACKOFF_MAX_S
    flush_timeout_s: float = _DEFAULT_FLUSH_TIMEOUT_S

    def __post_init__(self) -> None:
        """Reject values the queue cannot operate with."""
        for name in ("concurrency", "capacity", "max_attempts"):
            value = getattr(self, name)
            if value < 1:
                raise ConfigError.out_of_range(name, value, "positive")
        for name in ("backoff_base_s", "backoff_max_s", "flush_timeout_s"):
            value = getattr(self, name)
            if value < 0:
                raise ConfigError.out_of_range(name, value, "non-negative")
        if self.backoff_multiplier < 1:
            raise ConfigError.out_of_range(
                "backoff_multiplier", self.backoff_multiplier, "at least 1"
            )

    def backoff_delay(self, attempt: int) -> float:
        """Return the delay to wait after failed attempt number *attempt*."""
        if self.backoff_base_s == 0:
            return 0.0
        try:
            growth = self.backoff_multiplier ** (attempt - 1)
        except OverflowError:
            return self.backoff_max_s
        return min(self.backoff_base_s * growth, self.backoff_max_s)

    @staticmethod
    def _parse_positive_int(env_var: str, default: int) -> int:
        """Read a positive integer env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            raise ConfigError.not_an_integer(env_var, raw) from exc
        if value < 1:
            raise ConfigError.out_of_range(env_var, value, "positive")
        return value

    @staticmethod
    def _parse_non_negative_float(env_var: str, default: float) -> float:
        """Read a non-negative float env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = float(raw)
        except ValueError as exc:
            raise ConfigError.not_a_number(env_var, raw) from exc
        if value < 0:
            raise ConfigError.out_of_range(env_var, value, "non-negative")
        return value

    @classmethod
    def from_env(cls) -> DispatchConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``SNARE_DISPATCH_CONCURRENCY``: worker count (positive integer)
        - ``SNARE_DISPATCH_CAPACITY``: pending-job bound (positive integer)
        - ``SNARE_DISPATCH_MAX_ATTEMPTS``: attempts per job (positive integer)
        - ``SNARE_DISPATCH_BACKOFF_BASE_S``: first retry delay in seconds
        - ``SNARE_DISPATCH_BACKOFF_MAX_S``: retry delay cap in seconds
        - ``SNARE_DISPATCH_FLUSH_TIMEOUT_S``: drain budget on close

        Returns
        -------
        DispatchConfig
            Configuration instance with values from environment or defaults.

        Raises
        ------
        ConfigError
            If any variable is set to an invalid value.

        """
        return cls(
            concurrency=cls._parse_positive_int(
                "SNARE_DISPATCH_CONCURRENCY", _DEFAULT_CONCURRENCY
            ),
            capacity=cls._parse_positive_int(
                "SNARE_DISPATCH_CAPACITY", _DEFAULT_CAPACITY
            ),
            max_attempts=cls._parse_positive_int(
                "SNARE_DISPATCH_MAX_ATTEMPTS", _DEFAULT_MAX_ATTEMPTS
            ),
            backoff_base_s=cls._parse_non_negative_float(
                "SNARE_DISPATCH_BACKOFF_BASE_S", _DEFAULT_BACKOFF_BASE_S
            ),
            backoff_max_s=cls._parse_non_negative_float(
                "SNARE_DISPATCH_BACKOFF_MAX_S", _DEFAULT_BACKOFF_MAX_S
            ),
            flush_timeout_s=cls._parse_non_negative_float(
                "SNARE_DISPATCH_FLUSH_TIMEOUT_S", _DEFAULT_FLUSH_TIMEOUT_S
            ),
        )


__all__ = ["DispatchConfig"]
