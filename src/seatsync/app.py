"""Application entry points for hosts that manage seats declaratively."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from seatsync.config import get_seats_config
from seatsync.domain import SeatState, summarize_roster
from seatsync.session import SeatSession

if TYPE_CHECKING:
    from collections.abc import Callable

    from seatsync.adapters.http_resilience import ResilientClient
    from seatsync.config.http_resilience import ResilienceConfig
    from seatsync.config.seats import SeatsConfig
    from seatsync.domain import SeatRosterSummary


log = getLogger(__name__)


def open_session(
    config: SeatsConfig | None = None,
    *,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> SeatSession:
    """Build the session shared by every operation of one run."""

    effective_config = config or get_seats_config()
    log.info(f"Opening seat session against {effective_config.base_url}")
    return SeatSession(effective_config, client_factory=client_factory)


def create(session: SeatSession, handle: str) -> str:
    """Ensure ``handle`` holds a seat and return its stable id."""

    return session.reconciler.create(handle).git_user_id


def read_assigned(session: SeatSession, stable_id: str) -> bool:
    state = SeatState(id=stable_id, github_id=None, git_user_id=stable_id)
    return session.reconciler.read(state) is not None


def delete(session: SeatSession, stable_id: str) -> None:
    state = SeatState(id=stable_id, github_id=None, git_user_id=stable_id)
    session.reconciler.delete(state)


def import_by_handle(session: SeatSession, handle: str) -> str:
    """Adopt an existing seat for ``handle`` and return its stable id."""

    return session.reconciler.import_state(handle).git_user_id


def list_seats(session: SeatSession) -> SeatRosterSummary:
    return summarize_roster(session.seats.get_seats())
