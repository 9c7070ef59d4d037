"""Unit tests for the built-in context filters and the extractor."""

from __future__ import annotations

import typing as typ

import pytest

from snare.capture import (
    HostCapabilities,
    HttpHeadersFilter,
    HttpParamsFilter,
    RequestBodyFilter,
    RequestInfoFilter,
    RouteFilter,
    SessionFilter,
    default_filters,
    extract,
)
from snare.capture.filters import FILTERED
from snare.capture.observability import CaptureEventType
from snare.events import with_context
from tests.helpers.builders import make_event, make_request
from tests.helpers.femtologging_capture import WARNING_LEVELS, capture_femto_logs

if typ.TYPE_CHECKING:
    from snare.capture import RequestContext
    from snare.events import Event


class TestRequestInfoFilter:
    """Tests for RequestInfoFilter."""

    def test_copies_request_line_and_client(self) -> None:
        """Method, URL, path, address and user agent become context keys."""
        event = RequestInfoFilter().contribute(make_event(), make_request())

        assert event.context == {
            "request.method": "POST",
            "request.url": "https://shop.example.com/orders?draft=1",
            "request.path": "/orders",
            "request.remote_addr": "203.0.113.7",
            "request.user_agent": "curl/8.5.0",
        }

    def test_reports_framework_identity(self) -> None:
        """A configured framework name and version are always reported."""
        context_filter = RequestInfoFilter(
            framework_name="falcon", framework_version="4.0"
        )

        event = context_filter.contribute(make_event(), {})

        assert event.context == {
            "framework.name": "falcon",
            "framework.version": "4.0",
        }

    def test_skips_missing_and_empty_values(self) -> None:
        """Absent data never appears as empty keys."""
        original = make_event()

        event = RequestInfoFilter().contribute(original, {"method": "", "path": None})

        assert event is original


class TestMappingFilters:
    """Tests for the session, params and headers filters."""

    def test_session_values_are_stringified(self) -> None:
        """Session values are flattened under ``session.``."""
        event = SessionFilter().contribute(make_event(), make_request())

        assert event.context == {"session.user_id": "42"}

    def test_params_redact_sensitive_names(self) -> None:
        """Sensitive parameters are replaced, others kept."""
        event = HttpParamsFilter().contribute(make_event(), make_request())

        assert event.context == {"params.draft": "1", "params.password": FILTERED}

    def test_headers_preserve_case_and_redact(self) -> None:
        """Header names keep their case; matching is case-insensitive."""
        event = HttpHeadersFilter().contribute(make_event(), make_request())

        assert event.context == {
            "headers.Content-Type": "application/json",
            "headers.Authorization": FILTERED,
        }

    def test_custom_sensitive_names(self) -> None:
        """Callers can supply their own redaction list."""
        request = make_request(params={"card": "4111", "password": "p"})

        event = HttpParamsFilter(sensitive_names=["CARD"]).contribute(
            make_event(), request
        )

        assert event.context == {"params.card": FILTERED, "params.password": "p"}

    def test_none_values_are_dropped(self) -> None:
        """Keys whose value is None are omitted."""
        request = make_request(session={"user_id": None, "locale": "en"})

        event = SessionFilter().contribute(make_event(), request)

        assert event.context == {"session.locale": "en"}

    def test_empty_values_are_dropped(self) -> None:
        """Empty strings are treated as absent, even for redacted names."""
        request = make_request(params={"q": "", "password": "", "page": "2"})

        event = HttpParamsFilter().contribute(make_event(), request)

        assert event.context == {"params.page": "2"}

    @pytest.mark.parametrize("value", [None, {}, "not-a-mapping"])
    def test_missing_mapping_contributes_nothing(self, value: object) -> None:
        """Absent, empty or malformed mappings leave the event untouched."""
        original = make_event()

        assert SessionFilter().contribute(original, {"session": value}) is original


class TestRouteFilter:
    """Tests for RouteFilter."""

    def test_copies_route(self) -> None:
        """The resolved route is reported under ``route``."""
        event = RouteFilter().contribute(make_event(), make_request())

        assert event.context == {"route": "/orders"}

    def test_missing_route(self) -> None:
        """Requests without a route contribute nothing."""
        original = make_event()

        assert RouteFilter().contribute(original, {}) is original


class TestRequestBodyFilter:
    """Tests for RequestBodyFilter."""

    def test_decodes_bytes(self) -> None:
        """Byte bodies are decoded as UTF-8."""
        event = RequestBodyFilter().contribute(make_event(), {"body": b'{"a": 1}'})

        assert event.context == {"request.body": '{"a": 1}'}

    def test_truncates_long_bodies(self) -> None:
        """Bodies longer than the limit are truncated with an ellipsis."""
        event = RequestBodyFilter(max_bytes=4).contribute(
            make_event(), {"body": "abcdefgh"}
        )

        assert event.context == {"request.body": "abcd..."}

    def test_limit_counts_utf8_bytes(self) -> None:
        """The limit is in bytes; a character split by it is left out."""
        # "é" encodes to two bytes, so five bytes end mid-character.
        event = RequestBodyFilter(max_bytes=5).contribute(
            make_event(), {"body": "ééé"}
        )

        assert event.context == {"request.body": "éé..."}

    def test_body_within_limit_is_kept_whole(self) -> None:
        """A body exactly at the byte limit is not truncated."""
        event = RequestBodyFilter(max_bytes=4).contribute(
            make_event(), {"body": "éé"}
        )

        assert event.context == {"request.body": "éé"}

    def test_rejects_non_positive_limit(self) -> None:
        """A zero limit is a configuration error."""
        with pytest.raises(ValueError, match="max_bytes must be positive"):
            RequestBodyFilter(max_bytes=0)


def test_default_filters_order() -> None:
    """The default chain runs info, session, params, headers, then route."""
    filters = default_filters(HostCapabilities())

    assert [f.name for f in filters] == [
        "request_info",
        "session",
        "params",
        "headers",
        "route",
    ]


class _ExplodingFilter:
    name = "exploding"

    def contribute(self, event: Event, request: RequestContext) -> Event:
        del event, request
        msg = "filter bug"
        raise KeyError(msg)


class _StaticFilter:
    def __init__(self, name: str, updates: dict[str, str]) -> None:
        self.name = name
        self._updates = updates

    def contribute(self, event: Event, request: RequestContext) -> Event:
        del request
        return with_context(event, self._updates)


class TestExtract:
    """Tests for extract."""

    def test_applies_filters_in_order(self) -> None:
        """Later filters overwrite keys written by earlier ones."""
        filters = [
            _StaticFilter("first", {"route": "/a", "first": "1"}),
            _StaticFilter("second", {"route": "/b"}),
        ]

        event = extract(make_event(), {}, filters)

        assert event.context == {"route": "/b", "first": "1"}

    def test_failing_filter_is_skipped_and_logged(self) -> None:
        """A raising filter contributes nothing and the rest still run."""
        filters = [
            _StaticFilter("first", {"a": "1"}),
            _ExplodingFilter(),
            _StaticFilter("last", {"b": "2"}),
        ]

        with capture_femto_logs("snare.capture.observability") as capture:
            event = extract(make_event(), {}, filters)
            record = capture.wait_for_event(CaptureEventType.FILTER_FAILED)

        assert event.context == {"a": "1", "b": "2"}
        assert record.level in WARNING_LEVELS
        assert "filter=exploding" in record.message
        assert "filter bug" in record.message

    def test_empty_chain_returns_event(self) -> None:
        """No filters means no changes."""
        original = make_event()

        assert extract(original, make_request(), []) is original
