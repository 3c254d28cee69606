"""Seat assignment domain objects."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class IdentityMapping:
    """A resolved handle. A handle always maps to the same stable id."""

    handle: str
    stable_id: str


@dataclass(slots=True, frozen=True)
class SeatRecord:
    stable_id: str
    assigned: bool


@dataclass(slots=True, frozen=True)
class SeatRoster:
    """Snapshot of every known user and their seat flag, from a single upstream read.

    A snapshot is only consistent within the reconciliation pass that fetched it.
    """

    records: tuple[SeatRecord, ...] = ()

    def has_seat(self, stable_id: str) -> bool:
        """Whether ``stable_id`` holds an assigned seat. Unknown ids count as unassigned."""

        return any(record.stable_id == stable_id and record.assigned for record in self.records)

    def assigned_ids(self) -> list[str]:
        return [record.stable_id for record in self.records if record.assigned]

    def unassigned_ids(self) -> list[str]:
        return [record.stable_id for record in self.records if not record.assigned]

    def __len__(self) -> int:
        return len(self.records)


@dataclass(slots=True, frozen=True)
class SeatState:
    """Tracked state of one managed seat, as the host layer persists it.

    ``id`` and ``git_user_id`` both hold the resolved stable id; ``github_id`` is the
    handle the seat was declared with.
    """

    id: str
    github_id: str | None
    git_user_id: str

    @classmethod
    def for_identity(cls, identity: IdentityMapping) -> SeatState:
        return cls(id=identity.stable_id, github_id=identity.handle, git_user_id=identity.stable_id)


@dataclass(slots=True, frozen=True)
class SeatRosterSummary:
    id: str
    users_with_seats: tuple[str, ...]
    users_without_seats: tuple[str, ...]


ROSTER_SUMMARY_ID = "seats"


def summarize_roster(roster: SeatRoster) -> SeatRosterSummary:
    """Split the roster into users with and without a seat, keeping roster order."""

    return SeatRosterSummary(
        id=ROSTER_SUMMARY_ID,
        users_with_seats=tuple(roster.assigned_ids()),
        users_without_seats=tuple(roster.unassigned_ids()),
    )
