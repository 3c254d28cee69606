"""Idempotent reconciliation of declared seat assignments against the upstream roster.

The upstream roster is the only source of truth and may change outside our control
(manual assignment, another process). Every mutating operation therefore checks the
cached roster first, skips calls that would not change anything, and converges from
whatever state it finds.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from seatsync.errors import SeatSyncError

from .model import IdentityMapping, SeatState

if TYPE_CHECKING:
    from .ports import IdentityResolver, SeatService

log = getLogger(__name__)


class SeatReconcileError(SeatSyncError):
    """Diagnostic for a failed reconciliation step, renderable by the host layer."""

    def __init__(self, summary: str, detail: str) -> None:
        super().__init__(f"{summary}: {detail}")
        self.summary = summary
        self.detail = detail


class SeatImportError(SeatReconcileError):
    """Import target exists as an identity but holds no seat."""


@dataclass(slots=True)
class SeatReconciler:
    identity: IdentityResolver
    seats: SeatService

    def create(self, handle: str) -> SeatState:
        """Ensure ``handle`` holds a seat, assigning one only when it is missing."""

        mapping = self._resolve(handle)
        stable_id = mapping.stable_id

        try:
            assigned = self.seats.has_seat(stable_id)
        except SeatSyncError as exc:
            raise SeatReconcileError(
                "Error Checking Seat Assignment",
                f"Could not check seat assignment for user {handle}: {exc}",
            ) from exc

        if assigned:
            log.info(
                "Seat already assigned, skipping assign API call",
                extra={"github_id": handle, "git_user_id": stable_id},
            )
        else:
            try:
                self.seats.assign_seat(stable_id)
            except SeatSyncError as exc:
                raise SeatReconcileError(
                    "Error Assigning Seat",
                    f"Could not assign seat to user {handle} (git_user_id: {stable_id}): {exc}",
                ) from exc
            log.info(
                "Seat assigned successfully",
                extra={"github_id": handle, "git_user_id": stable_id},
            )

        return SeatState.for_identity(mapping)

    def read(self, state: SeatState) -> SeatState | None:
        """Refresh ``state``; ``None`` means the seat is gone and should be dropped."""

        stable_id = state.git_user_id
        try:
            assigned = self.seats.has_seat(stable_id)
        except SeatSyncError as exc:
            raise SeatReconcileError(
                "Error Reading Seat Assignment",
                f"Could not read seat assignment for user {stable_id}: {exc}",
            ) from exc

        if not assigned:
            log.info("Seat not found, removing from state", extra={"git_user_id": stable_id})
            return None
        return state

    def update(self, plan: SeatState) -> SeatState:
        # A changed handle forces replacement, so there is never anything to apply here.
        return plan

    def delete(self, state: SeatState) -> None:
        """Release the seat held by ``state`` if it is still assigned."""

        stable_id = state.git_user_id
        try:
            assigned = self.seats.has_seat(stable_id)
        except SeatSyncError as exc:
            raise SeatReconcileError(
                "Error Checking Seat Assignment",
                f"Could not check seat assignment for user {stable_id}: {exc}",
            ) from exc

        if not assigned:
            log.info(
                "Seat already unassigned, skipping unassign API call",
                extra={"git_user_id": stable_id},
            )
            return

        try:
            self.seats.unassign_seat(stable_id)
        except SeatSyncError as exc:
            raise SeatReconcileError(
                "Error Unassigning Seat",
                f"Could not unassign seat from user {stable_id}: {exc}",
            ) from exc
        log.info("Seat unassigned successfully", extra={"git_user_id": stable_id})

    def import_state(self, handle: str) -> SeatState:
        """Adopt an existing assignment for ``handle``; fails when no seat is assigned."""

        try:
            stable_id = self.identity.resolve(handle)
        except SeatSyncError as exc:
            raise SeatReconcileError(
                "Error Importing Seat",
                f"Could not resolve GitHub username '{handle}': {exc}",
            ) from exc

        try:
            assigned = self.seats.has_seat(stable_id)
        except SeatSyncError as exc:
            raise SeatReconcileError(
                "Error Checking Seat",
                f"Could not check seat for user {handle}: {exc}",
            ) from exc

        if not assigned:
            raise SeatImportError(
                "Seat Not Found",
                f"User '{handle}' (git_user_id: {stable_id}) does not have a seat assigned",
            )

        return SeatState.for_identity(IdentityMapping(handle=handle, stable_id=stable_id))

    def _resolve(self, handle: str) -> IdentityMapping:
        try:
            stable_id = self.identity.resolve(handle)
        except SeatSyncError as exc:
            raise SeatReconcileError(
                "Error Resolving GitHub User ID",
                f"Could not resolve GitHub username '{handle}' to numeric ID: {exc}",
            ) from exc
        return IdentityMapping(handle=handle, stable_id=stable_id)
