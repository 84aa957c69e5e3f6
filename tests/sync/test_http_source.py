"""Tests for HTTP definition sources and their fallback behaviour."""

from __future__ import annotations

import json
import threading
from collections.abc import Callable

import httpx
import pytest

from check_scheduler.alerts.models import AlertDefinitionSet
from check_scheduler.alerts.source import HttpAlertSource
from check_scheduler.auth import StaticTokenProvider
from check_scheduler.checks.models import CheckDefinitionSet
from check_scheduler.checks.source import HttpCheckSource
from check_scheduler.sync.policy import FirstLoadError, MalformedResponseError

CHECKS_URL = "https://defs.example.com/checks"

Handler = Callable[[httpx.Request], httpx.Response]


def make_source(
    handler: Handler, token: str | None = "secret-token"
) -> HttpCheckSource:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpCheckSource(
        "default",
        CHECKS_URL,
        token_provider=StaticTokenProvider(token),
        http_client=client,
    )


def checks_payload(*ids: int) -> dict[str, object]:
    return {
        "check_definitions": [
            {"id": i, "interval": 60, "entities": [{"type": "host"}], "name": f"check {i}"}
            for i in ids
        ]
    }


class ScriptedHandler:
    """Replays a list of responses (or exceptions) and records requests."""

    def __init__(self, *outcomes: httpx.Response | Exception) -> None:
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestSuccessfulFetch:
    """Tests for successful fetches."""

    def test_returns_parsed_set(self) -> None:
        handler = ScriptedHandler(httpx.Response(200, json=checks_payload(1, 2)))
        source = make_source(handler)

        result = source.fetch_all()

        assert isinstance(result, CheckDefinitionSet)
        assert result.ids == {1, 2}
        assert result.get(1).entities == ({"type": "host"},)

    def test_marks_first_load_and_stores_set(self) -> None:
        handler = ScriptedHandler(httpx.Response(200, json=checks_payload(1)))
        source = make_source(handler)
        assert source.has_completed_first_load is False
        assert len(source.last_known_good) == 0

        result = source.fetch_all()

        assert source.has_completed_first_load is True
        assert source.last_known_good is result

    def test_later_success_replaces_set(self) -> None:
        handler = ScriptedHandler(
            httpx.Response(200, json=checks_payload(1)),
            httpx.Response(200, json=checks_payload(3)),
        )
        source = make_source(handler)

        source.fetch_all()
        second = source.fetch_all()

        assert second.ids == {3}
        assert source.last_known_good is second
        assert source.has_completed_first_load is True

    def test_sends_bearer_token(self) -> None:
        handler = ScriptedHandler(httpx.Response(200, json=checks_payload()))
        source = make_source(handler, token="secret-token")

        source.fetch_all()

        request = handler.requests[0]
        assert request.method == "GET"
        assert str(request.url) == CHECKS_URL
        assert request.headers["Authorization"] == "Bearer secret-token"

    def test_missing_token_sends_no_auth_header(self) -> None:
        handler = ScriptedHandler(httpx.Response(200, json=checks_payload(1)))
        source = make_source(handler, token=None)

        result = source.fetch_all()

        assert result.ids == {1}
        assert "Authorization" not in handler.requests[0].headers

    def test_no_token_provider_sends_no_auth_header(self) -> None:
        handler = ScriptedHandler(httpx.Response(200, json=checks_payload(1)))
        client = httpx.Client(transport=httpx.MockTransport(handler))
        source = HttpCheckSource("default", CHECKS_URL, http_client=client)

        source.fetch_all()

        assert "Authorization" not in handler.requests[0].headers

    def test_empty_list_is_valid_empty_set(self) -> None:
        handler = ScriptedHandler(httpx.Response(200, json={"check_definitions": []}))
        source = make_source(handler)

        result = source.fetch_all()

        assert len(result) == 0
        assert source.has_completed_first_load is True

    def test_logs_only_token_prefix(self, caplog: pytest.LogCaptureFixture) -> None:
        handler = ScriptedHandler(httpx.Response(200, json=checks_payload(1)))
        source = make_source(handler, token="supersecret")

        with caplog.at_level("INFO"):
            source.fetch_all()

        assert "sup.." in caplog.text
        assert "supersecret" not in caplog.text


class TestFailedFetch:
    """Tests for first-load failures and stale fallback."""

    def test_first_load_failure_raises(self) -> None:
        handler = ScriptedHandler(httpx.ConnectError("refused"))
        source = make_source(handler)

        with pytest.raises(FirstLoadError) as exc_info:
            source.fetch_all()

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert source.has_completed_first_load is False

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, json={"error": "boom"}),
            httpx.Response(401),
            httpx.Response(200, content=b"not json"),
            httpx.Response(200, json=[1, 2]),
            httpx.Response(200, json={}),
            httpx.Response(200, json={"check_definitions": None}),
            httpx.Response(200, json={"check_definitions": "nope"}),
            httpx.Response(200, json={"check_definitions": [{"interval": 60}]}),
            httpx.Response(
                200,
                json={"check_definitions": [{"id": 1, "interval": 1}, {"id": 1, "interval": 2}]},
            ),
        ],
        ids=[
            "server-error",
            "unauthorized",
            "invalid-json",
            "not-an-object",
            "missing-key",
            "null-collection",
            "not-a-list",
            "missing-id",
            "duplicate-id",
        ],
    )
    def test_bad_responses_fail_first_load(self, response: httpx.Response) -> None:
        source = make_source(ScriptedHandler(response))

        with pytest.raises(FirstLoadError):
            source.fetch_all()

        assert source.has_completed_first_load is False

    def test_failure_after_load_returns_last_known_good(self) -> None:
        handler = ScriptedHandler(
            httpx.Response(200, json=checks_payload(1, 2)),
            httpx.Response(503),
        )
        source = make_source(handler)

        loaded = source.fetch_all()
        result = source.fetch_all()

        assert result is loaded
        assert result.ids == {1, 2}
        assert source.has_completed_first_load is True

    def test_malformed_body_after_load_keeps_set(self) -> None:
        handler = ScriptedHandler(
            httpx.Response(200, json=checks_payload(1)),
            httpx.Response(200, json={"check_definitions": None}),
        )
        source = make_source(handler)

        loaded = source.fetch_all()

        assert source.fetch_all() is loaded

    def test_fallback_is_recorded_until_next_success(self) -> None:
        handler = ScriptedHandler(
            httpx.Response(200, json=checks_payload(1)),
            httpx.Response(503),
            httpx.Response(200, json=checks_payload(1, 2)),
        )
        source = make_source(handler)

        source.fetch_all()
        assert source.last_fetch_fell_back is False
        assert source.last_fetch_error is None

        source.fetch_all()
        assert source.last_fetch_fell_back is True
        assert isinstance(source.last_fetch_error, httpx.HTTPStatusError)

        source.fetch_all()
        assert source.last_fetch_fell_back is False
        assert source.last_fetch_error is None

    def test_token_provider_failure_is_a_fetch_failure(self) -> None:
        class BrokenProvider:
            def get(self) -> str | None:
                raise OSError("token file missing")

        handler = ScriptedHandler()
        client = httpx.Client(transport=httpx.MockTransport(handler))
        source = HttpCheckSource(
            "default", CHECKS_URL, token_provider=BrokenProvider(), http_client=client
        )

        with pytest.raises(FirstLoadError):
            source.fetch_all()
        assert handler.requests == []

    def test_fail_succeed_fail_scenario(self) -> None:
        handler = ScriptedHandler(
            httpx.ConnectError("refused"),
            httpx.Response(200, json=checks_payload(1, 2)),
            httpx.ReadTimeout("slow"),
        )
        source = make_source(handler)

        with pytest.raises(FirstLoadError):
            source.fetch_all()
        assert source.has_completed_first_load is False

        loaded = source.fetch_all()
        assert loaded.ids == {1, 2}
        assert source.has_completed_first_load is True

        assert source.fetch_all() == loaded
        assert source.last_known_good is loaded

    def test_failure_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        handler = ScriptedHandler(
            httpx.Response(200, json=checks_payload(1)),
            httpx.Response(500),
        )
        source = make_source(handler)
        source.fetch_all()

        with caplog.at_level("ERROR"):
            source.fetch_all()

        assert "keeping 1 known definitions" in caplog.text


class TestConcurrentFetch:
    """Tests for serialized fetches on one source."""

    def test_concurrent_fetches_do_not_overlap(self) -> None:
        active = 0
        max_active = 0
        lock = threading.Lock()
        release = threading.Event()

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal active, max_active
            with lock:
                active += 1
                max_active = max(max_active, active)
            release.wait(timeout=0.05)
            with lock:
                active -= 1
            return httpx.Response(200, json=checks_payload(1))

        source = make_source(handler)
        threads = [threading.Thread(target=source.fetch_all) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert max_active == 1
        assert source.has_completed_first_load is True


class TestAlertSource:
    """Tests for the alert definition source."""

    def test_parses_alert_definitions(self) -> None:
        body = {
            "alert_definitions": [
                {"id": 7, "check_definition_id": 42, "name": "high load"},
                {"id": 8, "check_definition_id": 42},
            ]
        }
        client = httpx.Client(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, content=json.dumps(body)))
        )
        source = HttpAlertSource("alerts", "https://defs.example.com/alerts", http_client=client)

        result = source.fetch_all()

        assert isinstance(result, AlertDefinitionSet)
        assert result.ids == {7, 8}
        assert result.get(7).check_definition_id == 42

    def test_check_payload_is_malformed_for_alerts(self) -> None:
        client = httpx.Client(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json=checks_payload(1)))
        )
        source = HttpAlertSource("alerts", "https://defs.example.com/alerts", http_client=client)

        with pytest.raises(FirstLoadError) as exc_info:
            source.fetch_all()

        assert isinstance(exc_info.value.__cause__, MalformedResponseError)
