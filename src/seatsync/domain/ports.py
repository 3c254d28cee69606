"""Ports the reconciler needs from the outside world."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .model import SeatRoster


@runtime_checkable
class IdentityResolver(Protocol):
    """Resolves an external handle to its stable id."""

    def resolve(self, handle: str) -> str: ...


@runtime_checkable
class SeatService(Protocol):
    """Reads the roster and mutates seat assignments upstream."""

    def get_seats(self) -> SeatRoster: ...

    def has_seat(self, stable_id: str) -> bool: ...

    def assign_seat(self, stable_id: str) -> None: ...

    def unassign_seat(self, stable_id: str) -> None: ...


__all__ = ["IdentityResolver", "SeatService"]
