"""One shared session per provider configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from seatsync.adapters.coderabbit import CodeRabbitSeatsClient
from seatsync.adapters.github import GitHubIdentityResolver
from seatsync.domain import SeatReconciler

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from seatsync.adapters.http_resilience import ResilientClient
    from seatsync.config.http_resilience import ResilienceConfig
    from seatsync.config.seats import SeatsConfig


class SeatSession:
    """Owns the transport settings, retry policy and roster cache for one run.

    Every reconciliation operation in the run borrows the same session, so the roster
    is fetched at most once per cache generation no matter how many seats are managed.
    """

    def __init__(
        self,
        config: SeatsConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self.config = config
        self.seats = CodeRabbitSeatsClient(config=config, client_factory=client_factory)
        self.identity = GitHubIdentityResolver(config=config, client_factory=client_factory)
        self.reconciler = SeatReconciler(identity=self.identity, seats=self.seats)

    def __enter__(self) -> SeatSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self.seats.close()
        self.identity.close()
