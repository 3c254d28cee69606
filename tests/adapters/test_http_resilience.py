from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import pytest

from seatsync.adapters.http_resilience import (
    ResilientClient,
    RetriesExhaustedError,
    TransportError,
    UpstreamStatusError,
    backoff_delay,
)
from seatsync.config import ResilienceConfig, RetryPolicy, build_seats_resilience

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


def _client(
    handler: httpx.MockTransport | None,
    *,
    config: ResilienceConfig | None = None,
    sleeps: list[float] | None = None,
) -> ResilientClient:
    recorded = sleeps if sleeps is not None else []
    return ResilientClient(
        config or ResilienceConfig(name="test", base_url="https://upstream.test"),
        transport=handler,
        sleep=recorded.append,
    )


def _responder(
    *responses: httpx.Response | Exception,
) -> tuple[httpx.MockTransport, list[httpx.Request]]:
    queue = list(responses)
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    return httpx.MockTransport(handler), seen


def test_backoff_starts_at_base_delay() -> None:
    policy = RetryPolicy(base_delay=1.0, max_delay=30.0)

    assert backoff_delay(policy, 0) == 1.0
    assert backoff_delay(policy, 1) == 2.0
    assert backoff_delay(policy, 2) == 4.0


def test_backoff_is_monotonic_and_clamped() -> None:
    policy = RetryPolicy(base_delay=0.5, max_delay=10.0)

    delays = [backoff_delay(policy, attempt) for attempt in range(12)]

    assert delays == sorted(delays)
    assert delays[-1] == 10.0
    assert delays[-2] == 10.0
    assert backoff_delay(policy, 500) == 10.0


def test_backoff_rejects_negative_attempt() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        backoff_delay(RetryPolicy(), -1)


def test_retry_policy_rejects_negative_retries() -> None:
    with pytest.raises(ValueError, match="max_retries"):
        RetryPolicy(max_retries=-1)


def test_success_after_max_retries_transient_failures() -> None:
    transport, seen = _responder(
        httpx.Response(503),
        httpx.Response(503),
        httpx.Response(503),
        httpx.Response(200, json={"ok": True}),
    )
    sleeps: list[float] = []

    body = _client(transport, sleeps=sleeps).execute("GET", "/thing")

    assert json.loads(body) == {"ok": True}
    assert len(seen) == 4
    assert sleeps == [1.0, 2.0, 4.0]


def test_exhausting_retries_wraps_last_error() -> None:
    transport, seen = _responder(*(httpx.Response(503, text="busy") for _ in range(4)))

    with pytest.raises(RetriesExhaustedError) as exc:
        _client(transport).execute("GET", "/thing")

    assert len(seen) == 4
    assert "failed after 3 retries" in str(exc.value)
    last = exc.value.last_error
    assert isinstance(last, UpstreamStatusError)
    assert last.status_code == 503
    assert last.retryable
    assert exc.value.__cause__ is last


def test_non_retryable_status_fails_without_sleeping() -> None:
    transport, seen = _responder(httpx.Response(400, text="bad request"))
    sleeps: list[float] = []
    config = ResilienceConfig(
        name="test", base_url="https://upstream.test", retry=RetryPolicy(max_retries=10)
    )

    with pytest.raises(UpstreamStatusError) as exc:
        _client(transport, config=config, sleeps=sleeps).execute("GET", "/thing")

    assert len(seen) == 1
    assert sleeps == []
    assert exc.value.status_code == 400
    assert "status 400" in str(exc.value)
    assert "bad request" in str(exc.value)


def test_structured_error_document_message_is_surfaced() -> None:
    transport, _ = _responder(
        httpx.Response(403, json={"errors": [{"message": "seat limit reached"}]})
    )
    config = build_seats_resilience(api_key="k", base_url="https://seats.test")

    with pytest.raises(UpstreamStatusError) as exc:
        _client(transport, config=config).execute(
            "POST", "/seats/assign", body={"git_user_id": "1"}
        )

    assert str(exc.value) == "CodeRabbit API error (status 403): seat limit reached"


def test_unparseable_error_body_falls_back_to_raw_text() -> None:
    transport, _ = _responder(httpx.Response(422, text="<html>nope</html>"))
    config = build_seats_resilience(api_key="k", base_url="https://seats.test")

    with pytest.raises(UpstreamStatusError) as exc:
        _client(transport, config=config).execute("GET", "/seats/")

    assert str(exc.value) == "CodeRabbit API error (status 422): <html>nope</html>"


def test_transport_failures_are_retried() -> None:
    transport, seen = _responder(
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
        httpx.Response(200, text="done"),
    )
    sleeps: list[float] = []

    body = _client(transport, sleeps=sleeps).execute("GET", "/thing")

    assert body == b"done"
    assert len(seen) == 3
    assert sleeps == [1.0, 2.0]


def test_transport_failures_exhaust_into_transport_error() -> None:
    config = ResilienceConfig(
        name="test", base_url="https://upstream.test", retry=RetryPolicy(max_retries=1)
    )
    transport, _ = _responder(httpx.ConnectError("down"), httpx.ConnectError("still down"))

    with pytest.raises(RetriesExhaustedError) as exc:
        _client(transport, config=config).execute("GET", "/thing")

    assert isinstance(exc.value.last_error, TransportError)
    assert "still down" in str(exc.value)


def test_zero_retries_tries_exactly_once() -> None:
    config = ResilienceConfig(
        name="test", base_url="https://upstream.test", retry=RetryPolicy(max_retries=0)
    )
    transport, seen = _responder(httpx.Response(500))
    sleeps: list[float] = []

    with pytest.raises(RetriesExhaustedError):
        _client(transport, config=config, sleeps=sleeps).execute("GET", "/thing")

    assert len(seen) == 1
    assert sleeps == []


def test_every_attempt_resends_identical_body_and_headers() -> None:
    transport, seen = _responder(httpx.Response(502), httpx.Response(200, json={"success": True}))
    config = build_seats_resilience(api_key="secret", base_url="https://seats.test/")

    _client(transport, config=config).execute(
        "POST", "/seats/assign", body={"git_user_id": "583231"}
    )

    assert len(seen) == 2
    assert seen[0] is not seen[1]
    assert seen[0].content == seen[1].content
    assert json.loads(seen[1].content) == {"git_user_id": "583231"}
    for request in seen:
        assert request.url.path == "/v1/seats/assign"
        assert request.headers["x-coderabbitai-api-key"] == "secret"
        assert request.headers["content-type"] == "application/json"


def test_response_hooks_can_abort_the_loop() -> None:
    class Stop(Exception):
        pass

    def hook(response: httpx.Response) -> None:
        if response.status_code == 503:
            raise Stop

    transport, seen = _responder(httpx.Response(503), httpx.Response(200))
    sleeps: list[float] = []

    with pytest.raises(Stop):
        _client(transport, sleeps=sleeps).execute("GET", "/thing", hooks=(hook,))

    assert len(seen) == 1
    assert sleeps == []


def test_unserialisable_body_is_rejected_before_any_request() -> None:
    transport, seen = _responder()

    with pytest.raises(ValueError, match="marshal"):
        _client(transport).execute("POST", "/thing", body={"bad": object()})

    assert seen == []


class _Chunks(httpx.SyncByteStream):
    def __init__(self, *chunks: bytes, on_chunk: Callable[[], None] | None = None) -> None:
        self._chunks = chunks
        self._on_chunk = on_chunk

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._chunks:
            if self._on_chunk is not None:
                self._on_chunk()
            yield chunk


def test_undecodable_body_is_retried_as_transport_failure() -> None:
    transport, seen = _responder(
        *(
            httpx.Response(
                200, headers={"Content-Encoding": "gzip"}, stream=_Chunks(b"definitely not gzip")
            )
            for _ in range(4)
        )
    )
    sleeps: list[float] = []

    with pytest.raises(RetriesExhaustedError) as exc:
        _client(transport, sleeps=sleeps).execute("GET", "/thing")

    assert len(seen) == 4
    assert sleeps == [1.0, 2.0, 4.0]
    assert isinstance(exc.value.last_error, TransportError)
    assert isinstance(exc.value.last_error.__cause__, httpx.DecodingError)


def test_undecodable_body_then_success() -> None:
    transport, seen = _responder(
        httpx.Response(200, headers={"Content-Encoding": "gzip"}, stream=_Chunks(b"garbage")),
        httpx.Response(200, text="done"),
    )

    assert _client(transport).execute("GET", "/thing") == b"done"
    assert len(seen) == 2


def test_slow_body_is_cut_off_at_overall_timeout() -> None:
    now = [0.0]

    def tick() -> None:
        now[0] += 10.0

    config = ResilienceConfig(
        name="test",
        base_url="https://upstream.test",
        timeout_seconds=25.0,
        retry=RetryPolicy(max_retries=1),
    )
    transport, seen = _responder(
        *(httpx.Response(200, stream=_Chunks(*([b"x"] * 5), on_chunk=tick)) for _ in range(2))
    )
    client = ResilientClient(
        config, transport=transport, sleep=lambda _: None, clock=lambda: now[0]
    )

    with pytest.raises(RetriesExhaustedError) as exc:
        client.execute("GET", "/thing")

    assert len(seen) == 2
    assert isinstance(exc.value.last_error, TransportError)
    assert "overall timeout" in str(exc.value)


def test_body_within_overall_timeout_is_returned() -> None:
    now = [0.0]

    def tick() -> None:
        now[0] += 1.0

    transport, _ = _responder(httpx.Response(200, stream=_Chunks(b"a", b"b", b"c", on_chunk=tick)))
    client = ResilientClient(
        ResilienceConfig(name="test", base_url="https://upstream.test", timeout_seconds=25.0),
        transport=transport,
        clock=lambda: now[0],
    )

    assert client.execute("GET", "/thing") == b"abc"
