"""Blocking HTTP executor with exponential backoff for flaky upstreams."""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING, cast

import httpx

from seatsync.errors import SeatSyncError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from seatsync.config.http_resilience import ResilienceConfig, ResponseHook, RetryPolicy

log = getLogger(__name__)

Sleeper = Callable[[float], None]
Clock = Callable[[], float]


class UpstreamError(SeatSyncError):
    """Base class for failures talking to an upstream service."""

    def __init__(self, message: str, *, service: str) -> None:
        super().__init__(message)
        self.service = service


class TransportError(UpstreamError):
    """The request never produced a readable response (connect, timeout, read, decode)."""


class UpstreamStatusError(UpstreamError):
    """The upstream answered with an error status code."""

    def __init__(
        self,
        message: str,
        *,
        service: str,
        status_code: int,
        body: bytes = b"",
        retryable: bool = False,
    ) -> None:
        super().__init__(message, service=service)
        self.status_code = status_code
        self.body = body
        self.retryable = retryable


class UpstreamResponseError(UpstreamError):
    """A successful response carried a payload that could not be understood."""


class RetriesExhaustedError(UpstreamError):
    """Every attempt failed with a transient error."""

    def __init__(self, *, service: str, max_retries: int, last_error: UpstreamError) -> None:
        super().__init__(
            f"{service} request failed after {max_retries} retries: {last_error}",
            service=service,
        )
        self.max_retries = max_retries
        self.last_error = last_error


def backoff_delay(policy: RetryPolicy, attempt: int) -> float:
    """Seconds to wait for backoff step ``attempt``: ``base * 2**attempt`` up to ``max``."""

    if attempt < 0:
        raise ValueError("attempt must be non-negative")
    # 2**attempt overflows float conversion long after max_delay is reached
    if attempt >= 64:
        return policy.max_delay
    return min(policy.base_delay * (2**attempt), policy.max_delay)


def encode_json_body(body: object | None) -> bytes | None:
    if body is None:
        return None
    try:
        return json.dumps(body, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise ValueError(f"failed to marshal request body: {exc}") from exc


class _DeadlineStream(httpx.SyncByteStream):
    """Body stream that times out once the whole attempt runs past ``deadline``."""

    def __init__(self, inner: httpx.SyncByteStream, *, deadline: float, clock: Clock) -> None:
        self._inner = inner
        self._deadline = deadline
        self._clock = clock

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._inner:
            if self._clock() > self._deadline:
                raise httpx.ReadTimeout("request exceeded overall timeout")
            yield chunk

    def close(self) -> None:
        self._inner.close()


class ResilientClient:
    """Issue one logical request, retrying transient failures per the retry policy.

    Transport failures, unreadable bodies and retryable status codes are retried
    after ``backoff_delay(policy, attempt - 1)`` seconds. Any other status >= 400
    aborts immediately. Response hooks run on every response before status
    classification and may raise to abort the attempt loop.

    ``config.timeout_seconds`` bounds each attempt as a whole: httpx enforces it per
    phase and the body is read against a deadline taken when the attempt starts.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.BaseTransport | None = None,
        sleep: Sleeper = time.sleep,
        clock: Clock = time.monotonic,
    ) -> None:
        self.config = config
        self._sleep = sleep
        self._clock = clock

        client_kwargs: dict[str, object] = {
            "timeout": httpx.Timeout(config.timeout_seconds),
        }
        if config.base_url is not None:
            client_kwargs["base_url"] = config.base_url
        if config.default_headers is not None:
            client_kwargs["headers"] = dict(config.default_headers)
        if transport is not None:
            client_kwargs["transport"] = transport

        self._client = httpx.Client(**client_kwargs)  # pyright: ignore[reportArgumentType]

    def __enter__(self) -> ResilientClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def execute(
        self,
        method: str,
        path: str,
        *,
        body: object | None = None,
        hooks: tuple[ResponseHook, ...] = (),
    ) -> bytes:
        """Perform ``method path`` and return the raw response body."""

        payload = encode_json_body(body)
        policy = self.config.retry
        service = self.config.name
        all_hooks = (*self.config.response_hooks, *hooks)

        last_error: UpstreamError | None = None
        for attempt in range(policy.max_retries + 1):
            if attempt > 0:
                delay = backoff_delay(policy, attempt - 1)
                log.warning(
                    f"{service} {method} {path} failed ({last_error}); "
                    f"retry {attempt}/{policy.max_retries} in {delay:.2f}s"
                )
                self._sleep(delay)

            request = self._client.build_request(method, path, content=payload)
            log.debug(f"{service} {method} {request.url} attempt {attempt + 1}")

            try:
                response = self._send(request)
            except httpx.RequestError as exc:
                last_error = TransportError(f"failed to perform request: {exc}", service=service)
                last_error.__cause__ = exc
                continue

            for hook in all_hooks:
                hook(response)

            status = response.status_code
            content = response.content

            if policy.is_retryable(status):
                last_error = UpstreamStatusError(
                    f"{service} API error (status {status}): {content.decode('utf-8', 'replace')}",
                    service=service,
                    status_code=status,
                    body=content,
                    retryable=True,
                )
                continue

            if status >= 400:
                raise self._permanent_error(status, content)

            return content

        exhausted = cast("UpstreamError", last_error)
        raise RetriesExhaustedError(
            service=service,
            max_retries=policy.max_retries,
            last_error=exhausted,
        ) from exhausted

    def _send(self, request: httpx.Request) -> httpx.Response:
        deadline = self._clock() + self.config.timeout_seconds
        response = self._client.send(request, stream=True)
        try:
            response.stream = _DeadlineStream(
                cast("httpx.SyncByteStream", response.stream), deadline=deadline, clock=self._clock
            )
            response.read()
        finally:
            response.close()
        return response

    def get(self, path: str, *, hooks: tuple[ResponseHook, ...] = ()) -> bytes:
        return self.execute("GET", path, hooks=hooks)

    def post(
        self, path: str, *, body: object | None = None, hooks: tuple[ResponseHook, ...] = ()
    ) -> bytes:
        return self.execute("POST", path, body=body, hooks=hooks)

    def _permanent_error(self, status: int, content: bytes) -> UpstreamStatusError:
        service = self.config.name
        message: str | None = None
        if self.config.error_message is not None:
            message = self.config.error_message(content)
        if message is None:
            message = content.decode("utf-8", "replace")
        return UpstreamStatusError(
            f"{service} API error (status {status}): {message}",
            service=service,
            status_code=status,
            body=content,
        )
