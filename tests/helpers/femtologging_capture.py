"""Capture femtologging output emitted by snare's observability modules."""

from __future__ import annotations

import contextlib
import dataclasses
import threading
import time
import typing as typ

from femtologging import get_logger

# femtologging reports warnings as WARN; the helpers pass WARNING.
WARNING_LEVELS = frozenset({"WARN", "WARNING"})


@dataclasses.dataclass(slots=True)
class FemtoLogRecord:
    """One captured record."""

    logger: str
    level: str
    message: str
    exc_info: object | None = None


class FemtoLogCapture:
    """Python handler collecting records from the femtologging worker."""

    def __init__(self) -> None:
        """Initialise storage and the wake-up condition."""
        self.records: list[FemtoLogRecord] = []
        self._condition = threading.Condition()

    def handle(self, logger: str, level: str, message: str) -> None:
        """Handle a plain record."""
        self._append(
            FemtoLogRecord(logger=str(logger), level=str(level), message=message)
        )

    def handle_record(self, record: dict[str, object]) -> None:
        """Handle a structured record payload."""
        self._append(
            FemtoLogRecord(
                logger=str(record.get("logger", "")),
                level=str(record.get("level", "")),
                message=str(record.get("message", "")),
                exc_info=record.get("exc_info"),
            )
        )

    def _append(self, record: FemtoLogRecord) -> None:
        with self._condition:
            self.records.append(record)
            self._condition.notify_all()

    def wait_for_count(self, count: int, timeout: float = 1.0) -> None:
        """Wait until at least ``count`` records are captured."""
        deadline = time.monotonic() + timeout
        with self._condition:
            while len(self.records) < count:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._condition.wait(timeout=remaining)

        assert len(self.records) >= count, (
            f"Expected {count} records, got {len(self.records)}"
        )

    def wait_for_event(self, event_type: str, timeout: float = 1.0) -> FemtoLogRecord:
        """Wait for a record whose message carries ``[event_type]``."""
        marker = f"[{event_type}]"
        deadline = time.monotonic() + timeout
        with self._condition:
            while True:
                for record in self.records:
                    if marker in record.message:
                        return record
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._condition.wait(timeout=remaining)

        messages = [record.message for record in self.records]
        msg = f"No {event_type} record captured; saw {messages}"
        raise AssertionError(msg)


@contextlib.contextmanager
def capture_femto_logs(
    logger_name: str,
    *,
    level: str = "TRACE",
) -> typ.Iterator[FemtoLogCapture]:
    """Capture logs for the named femtologging logger."""
    logger = get_logger(logger_name)
    previous_level = logger.level
    previous_propagate = logger.propagate

    logger.set_level(level)
    logger.set_propagate(False)

    handler = FemtoLogCapture()
    logger.add_handler(handler)
    try:
        yield handler
    finally:
        logger.remove_handler(handler)
        logger.set_level(previous_level)
        logger.set_propagate(previous_propagate)
