"""Seat reconciliation domain."""

from __future__ import annotations

from .model import (
    IdentityMapping,
    SeatRecord,
    SeatRoster,
    SeatRosterSummary,
    SeatState,
    summarize_roster,
)
from .ports import IdentityResolver, SeatService
from .reconciler import SeatImportError, SeatReconcileError, SeatReconciler

__all__ = [
    "IdentityMapping",
    "IdentityResolver",
    "SeatImportError",
    "SeatReconcileError",
    "SeatReconciler",
    "SeatRecord",
    "SeatRoster",
    "SeatRosterSummary",
    "SeatService",
    "SeatState",
    "summarize_roster",
]
