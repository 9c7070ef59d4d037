"""Unit tests for route tables, notifications and the stats collector."""

from __future__ import annotations

import datetime as dt
import typing as typ

import pytest

from snare.errors import RouteResolutionError
from snare.routes import (
    CompletionNotifier,
    RecordingStatsSink,
    RequestCompletion,
    RouteStatsCollector,
    RouteTable,
    StaticRouteProvider,
    default_status_resolver,
)
from snare.routes.observability import RoutesEventType
from snare.routes.table import LazyRouteTable
from tests.helpers.builders import FIXED_NOW, make_completion, route
from tests.helpers.femtologging_capture import capture_femto_logs

if typ.TYPE_CHECKING:
    from snare.routes import RouteDefinition, RouteRecord


class _CountingProvider:
    """Route provider that records how often it was consulted."""

    def __init__(
        self, routes: list[RouteDefinition], *, failures: int = 0
    ) -> None:
        self.routes = routes
        self.failures = failures
        self.calls = 0

    def list_routes(self) -> list[RouteDefinition]:
        self.calls += 1
        if self.calls <= self.failures:
            msg = "router not ready"
            raise RuntimeError(msg)
        return self.routes


class _NotFoundError(Exception):
    status_code = 404


class _UnmappedError(Exception):
    status_code = 0


class TestRouteTable:
    """Tests for RouteTable and StaticRouteProvider."""

    def test_lookup_by_controller_and_action(self) -> None:
        """Pairs resolve to their declared templates."""
        table = RouteTable([
            route("users", "show", "/users/{id}"),
            route("users", "index", "/users"),
        ])

        assert table.find("users", "show") == "/users/{id}"
        assert table.find("users", "delete") is None
        assert len(table) == 2

    def test_application_routes_shadow_mounted_ones(self) -> None:
        """The first definition of a pair wins."""
        provider = StaticRouteProvider(
            [route("health", "check", "/health")],
            [route("health", "check", "/admin/health")],
            [route("admin", "index", "/admin")],
        )

        table = RouteTable(provider.list_routes())

        assert table.find("health", "check") == "/health"
        assert table.find("admin", "index") == "/admin"

    def test_lazy_table_builds_once(self) -> None:
        """The provider is consulted on first access only."""
        provider = _CountingProvider([route("users", "show", "/users/{id}")])
        sizes: list[int] = []
        lazy = LazyRouteTable(provider, on_build=sizes.append)

        assert lazy.is_built is False
        first = lazy.get()
        second = lazy.get()

        assert first is second
        assert provider.calls == 1
        assert sizes == [1]

    def test_lazy_table_retries_after_provider_failure(self) -> None:
        """A failed build leaves the table unbuilt; the next call retries."""
        provider = _CountingProvider(
            [route("users", "show", "/users/{id}")], failures=1
        )
        lazy = LazyRouteTable(provider)

        with pytest.raises(RuntimeError, match="router not ready"):
            lazy.get()
        assert lazy.is_built is False

        table = lazy.get()

        assert lazy.is_built is True
        assert len(table) == 1
        assert provider.calls == 2


class TestStatusResolution:
    """Tests for status code resolution."""

    @pytest.fixture
    def collector(self) -> RouteStatsCollector:
        """Return a collector with an empty route table."""
        return RouteStatsCollector(StaticRouteProvider([]), RecordingStatsSink())

    def test_explicit_status_wins(self, collector: RouteStatsCollector) -> None:
        """A status on the notification is used as-is."""
        completion = make_completion(status=201, exception=_NotFoundError())

        assert collector.find_status_code(completion) == 201

    def test_status_from_exception(self, collector: RouteStatsCollector) -> None:
        """Without a status, the exception's mapped status is used."""
        completion = make_completion(status=None, exception=_NotFoundError())

        assert collector.find_status_code(completion) == 404

    def test_unmapped_exception_reports_500(
        self, collector: RouteStatsCollector
    ) -> None:
        """An exception mapping to 0 is reported as a server error."""
        completion = make_completion(status=None, exception=_UnmappedError())

        assert collector.find_status_code(completion) == 500

    def test_no_status_no_exception(self, collector: RouteStatsCollector) -> None:
        """Neither status nor exception reports 0."""
        completion = make_completion(status=None)

        assert collector.find_status_code(completion) == 0

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (_NotFoundError(), 404),
            (RuntimeError("plain"), 500),
        ],
    )
    def test_default_resolver(self, error: BaseException, expected: int) -> None:
        """The default resolver reads ``status_code`` or falls back to 500."""
        assert default_status_resolver(error) == expected

    def test_custom_resolver(self) -> None:
        """Hosts can plug in their own exception-to-status mapping."""
        collector = RouteStatsCollector(
            StaticRouteProvider([]),
            RecordingStatsSink(),
            status_resolver=lambda exc: 503 if isinstance(exc, TimeoutError) else 0,
        )
        completion = make_completion(status=None, exception=TimeoutError())

        assert collector.find_status_code(completion) == 503


class TestCollector:
    """Tests for RouteStatsCollector.handle."""

    @pytest.fixture
    def provider(self) -> _CountingProvider:
        """Return a provider with two routes."""
        return _CountingProvider([
            route("users", "show", "/users/{id}"),
            route("orders", "create", "/orders"),
        ])

    @pytest.fixture
    def stats_sink(self) -> RecordingStatsSink:
        """Return a recording stats sink."""
        return RecordingStatsSink()

    @pytest.fixture
    def collector(
        self, provider: _CountingProvider, stats_sink: RecordingStatsSink
    ) -> RouteStatsCollector:
        """Return a collector over the provider."""
        return RouteStatsCollector(provider, stats_sink)

    def test_matched_notification_emits_record(
        self, collector: RouteStatsCollector, stats_sink: RecordingStatsSink
    ) -> None:
        """A resolved notification yields one record with the template."""
        collector.handle(make_completion(duration_ms=40))

        [record] = stats_sink.records
        assert record.method == "GET"
        assert record.route == "/users/{id}"
        assert record.status_code == 200
        assert record.start_time == FIXED_NOW
        assert record.duration == dt.timedelta(milliseconds=40)

    def test_unmatched_notification_is_logged(
        self, collector: RouteStatsCollector, stats_sink: RecordingStatsSink
    ) -> None:
        """Unknown pairs produce no record and an INFO log."""
        with capture_femto_logs("snare.routes.observability") as capture:
            collector.handle(make_completion("users", "destroy"))
            record = capture.wait_for_event(RoutesEventType.NOTIFICATION_UNMATCHED)

        assert stats_sink.records == []
        assert record.level == "INFO"
        assert "controller=users action=destroy" in record.message

    def test_route_table_built_once(
        self,
        collector: RouteStatsCollector,
        provider: _CountingProvider,
        stats_sink: RecordingStatsSink,
    ) -> None:
        """Many notifications consult the provider once."""
        for _ in range(3):
            collector.handle(make_completion())
        collector.handle(make_completion("orders", "create", path="/orders"))

        assert provider.calls == 1
        assert [r.route for r in stats_sink.records] == [
            "/users/{id}",
            "/users/{id}",
            "/users/{id}",
            "/orders",
        ]

    def test_build_record_raises_for_unknown_route(
        self, collector: RouteStatsCollector
    ) -> None:
        """build_record surfaces resolution failures to direct callers."""
        with pytest.raises(RouteResolutionError, match="users#destroy"):
            collector.build_record(make_completion("users", "destroy"))

    def test_sink_failure_is_contained(self, provider: _CountingProvider) -> None:
        """A failing stats sink is logged, never raised."""

        class _BrokenSink:
            def notify_request(self, record: RouteRecord) -> None:
                del record
                msg = "metrics backend down"
                raise OSError(msg)

        collector = RouteStatsCollector(provider, _BrokenSink())

        with capture_femto_logs("snare.routes.observability") as capture:
            collector.handle(make_completion())
            record = capture.wait_for_event(RoutesEventType.NOTIFICATION_FAILED)

        assert record.level == "ERROR"
        assert "metrics backend down" in record.message

    def test_provider_failure_is_contained_and_retried(
        self, stats_sink: RecordingStatsSink
    ) -> None:
        """A failing provider is logged; the next notification builds the table."""
        provider = _CountingProvider(
            [route("users", "show", "/users/{id}")], failures=1
        )
        collector = RouteStatsCollector(provider, stats_sink)

        with capture_femto_logs("snare.routes.observability") as capture:
            collector.handle(make_completion())
            record = capture.wait_for_event(RoutesEventType.NOTIFICATION_FAILED)

        assert stats_sink.records == []
        assert record.level == "ERROR"
        assert "router not ready" in record.message

        collector.handle(make_completion())

        assert provider.calls == 2
        assert [r.route for r in stats_sink.records] == ["/users/{id}"]

    def test_naive_timestamps_are_contained(
        self, collector: RouteStatsCollector, stats_sink: RecordingStatsSink
    ) -> None:
        """Malformed notifications never raise into the host."""
        completion = make_completion()
        naive = dt.datetime(2024, 7, 1, 12, 0)  # noqa: DTZ001
        broken = RequestCompletion(
            method=completion.method,
            path=completion.path,
            controller=completion.controller,
            action=completion.action,
            start_time=naive,
            end_time=naive,
        )

        collector.handle(broken)

        assert stats_sink.records == []


class TestCompletionNotifier:
    """Tests for CompletionNotifier."""

    def test_publishes_in_subscription_order(self) -> None:
        """Subscribers run in the order they subscribed."""
        notifier = CompletionNotifier()
        seen: list[str] = []
        notifier.subscribe(lambda _: seen.append("first"))
        notifier.subscribe(lambda _: seen.append("second"))

        notifier.publish(make_completion())

        assert seen == ["first", "second"]

    def test_failing_subscriber_is_isolated(self) -> None:
        """One subscriber raising does not affect the others."""
        notifier = CompletionNotifier()
        received: list[RequestCompletion] = []

        def _explode(notification: RequestCompletion) -> None:
            del notification
            msg = "subscriber bug"
            raise RuntimeError(msg)

        notifier.subscribe(_explode)
        notifier.subscribe(received.append)

        with capture_femto_logs("snare.routes.observability") as capture:
            notifier.publish(make_completion())
            record = capture.wait_for_event(RoutesEventType.NOTIFICATION_FAILED)

        assert len(received) == 1
        assert "subscriber bug" in record.message

    def test_unsubscribe(self) -> None:
        """Cancelled subscriptions stop receiving notifications."""
        notifier = CompletionNotifier()
        received: list[RequestCompletion] = []
        subscription = notifier.subscribe(received.append)

        assert subscription.active is True
        subscription.unsubscribe()
        notifier.publish(make_completion())

        assert subscription.active is False
        assert received == []


def test_unknown_route_never_reaches_sink() -> None:
    """A notification for an undeclared route is logged, not recorded."""
    stats_sink = RecordingStatsSink()
    collector = RouteStatsCollector(StaticRouteProvider([]), stats_sink)

    with capture_femto_logs("snare.routes.observability") as capture:
        collector.handle(make_completion("users", "show"))
        record = capture.wait_for_event(RoutesEventType.NOTIFICATION_UNMATCHED)

    assert stats_sink.records == []
    assert "path=/users/7" in record.message
