"""HTTP client for the CodeRabbit seats API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, ValidationError

from seatsync.adapters.http_resilience import ResilientClient, UpstreamResponseError
from seatsync.errors import SeatSyncError

from .cache import SeatRosterCache
from .schema import SeatAssignmentRequest, SeatsResponse, SuccessResponse
from .translator import translate_roster

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from seatsync.config.http_resilience import ResilienceConfig
    from seatsync.config.seats import SeatsConfig
    from seatsync.domain.model import SeatRoster

log = getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

SEATS_PATH = "/seats/"
ASSIGN_PATH = "/seats/assign"
UNASSIGN_PATH = "/seats/unassign"


class SeatOperationError(SeatSyncError):
    """The API accepted the request but reported ``success: false``."""

    def __init__(self, operation: str, git_user_id: str) -> None:
        super().__init__(f"seat {operation} failed")
        self.operation = operation
        self.git_user_id = git_user_id


class CodeRabbitSeatsClient:
    """Roster reads through a shared cache, and seat mutations that invalidate it."""

    def __init__(
        self,
        *,
        config: SeatsConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        if config.resilience is None:
            raise ValueError("Missing CodeRabbit resilience configuration")
        factory = client_factory or ResilientClient
        self._http = factory(config.resilience)
        self._cache = SeatRosterCache(self._fetch_roster)

    def __enter__(self) -> CodeRabbitSeatsClient:
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

    @property
    def cache(self) -> SeatRosterCache:
        return self._cache

    def get_seats(self) -> SeatRoster:
        return self._cache.get()

    def invalidate_seats_cache(self) -> None:
        self._cache.invalidate()

    def has_seat(self, stable_id: str) -> bool:
        return self.get_seats().has_seat(stable_id)

    def assign_seat(self, stable_id: str) -> None:
        self._mutate(ASSIGN_PATH, "assignment", stable_id)

    def unassign_seat(self, stable_id: str) -> None:
        self._mutate(UNASSIGN_PATH, "unassignment", stable_id)

    def _mutate(self, path: str, operation: str, stable_id: str) -> None:
        request = SeatAssignmentRequest(git_user_id=stable_id)
        body = self._http.post(path, body=request.model_dump())
        result = _parse(SuccessResponse, body)
        if not result.success:
            # The roster is left as is: a refused mutation is not a state change.
            raise SeatOperationError(operation, stable_id)
        self._cache.invalidate()

    def _fetch_roster(self) -> SeatRoster:
        body = self._http.get(SEATS_PATH)
        roster = translate_roster(_parse(SeatsResponse, body))
        log.debug(f"Fetched seat roster with {len(roster)} users")
        return roster


def _parse(model: type[ModelT], body: bytes) -> ModelT:
    try:
        return model.model_validate_json(body)
    except ValidationError as exc:
        raise UpstreamResponseError(
            f"failed to unmarshal response: {exc}", service="CodeRabbit"
        ) from exc
