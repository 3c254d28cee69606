"""Translate CodeRabbit payloads into domain seat records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from seatsync.domain.model import SeatRecord, SeatRoster

if TYPE_CHECKING:
    from .schema import SeatsResponse


def translate_roster(payload: SeatsResponse) -> SeatRoster:
    return SeatRoster(
        records=tuple(
            SeatRecord(stable_id=user.git_user_id, assigned=user.seat_assigned)
            for user in payload.users
        )
    )
