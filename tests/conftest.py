"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest

from snare.dispatch import DispatchConfig, DispatchQueue, MockEventSink

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from snare.dispatch.sink import EventSink


@pytest.fixture
def fast_config() -> DispatchConfig:
    """Return a dispatch configuration without backoff delays."""
    return DispatchConfig(
        concurrency=2,
        capacity=10,
        max_attempts=5,
        backoff_base_s=0.0,
        backoff_max_s=0.0,
        flush_timeout_s=2.0,
    )


@pytest.fixture
def mock_sink() -> MockEventSink:
    """Return a sink that accepts every event."""
    return MockEventSink()


@pytest.fixture
def make_queue(
    fast_config: DispatchConfig,
) -> cabc.Iterator[cabc.Callable[..., DispatchQueue]]:
    """Build dispatch queues that are closed when the test finishes."""
    queues: list[DispatchQueue] = []

    def _make(
        sink: EventSink,
        config: DispatchConfig | None = None,
    ) -> DispatchQueue:
        queue = DispatchQueue(sink, config=config or fast_config)
        queues.append(queue)
        return queue

    yield _make
    for queue in queues:
        queue.close(timeout=0.5)
