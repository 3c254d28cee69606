"""Resolve GitHub logins to their numeric user ids."""

from __future__ import annotations

import threading
from urllib.parse import quote
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from seatsync.adapters.http_resilience import (
    ResilientClient,
    UpstreamError,
    UpstreamResponseError,
)

from .schema import GitHubUser

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    import httpx

    from seatsync.config.http_resilience import ResilienceConfig, ResponseHook
    from seatsync.config.seats import SeatsConfig

log = getLogger(__name__)


class IdentityNotFoundError(UpstreamError):
    """The identity service has no user for the handle. Never transient."""

    def __init__(self, handle: str, *, service: str = "GitHub") -> None:
        super().__init__(f"{service} user '{handle}' not found", service=service)
        self.handle = handle


def _raise_for_missing_user(handle: str) -> ResponseHook:
    def hook(response: httpx.Response) -> None:
        if response.status_code == 404:
            raise IdentityNotFoundError(handle)

    return hook


class GitHubIdentityResolver:
    """Look up ``/users/{handle}`` with the shared retry discipline.

    Resolved ids are remembered for the lifetime of the resolver: a login maps to
    the same id for the whole session.
    """

    def __init__(
        self,
        *,
        config: SeatsConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        if config.identity_resilience is None:
            raise ValueError("Missing GitHub resilience configuration")
        factory = client_factory or ResilientClient
        self._http = factory(config.identity_resilience)
        self._resolved: dict[str, str] = {}
        self._lock = threading.Lock()

    def __enter__(self) -> GitHubIdentityResolver:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def resolve(self, handle: str) -> str:
        with self._lock:
            known = self._resolved.get(handle)
        if known is not None:
            return known

        body = self._http.get(
            f"/users/{quote(handle, safe='')}", hooks=(_raise_for_missing_user(handle),)
        )
        try:
            user = GitHubUser.model_validate_json(body)
        except ValidationError as exc:
            raise UpstreamResponseError(
                f"failed to parse GitHub API response: {exc}", service="GitHub"
            ) from exc

        stable_id = str(user.id)
        with self._lock:
            self._resolved.setdefault(handle, stable_id)
        log.debug(f"Resolved GitHub user {handle!r} to {stable_id}")
        return stable_id
