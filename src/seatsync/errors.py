"""Root of the seatsync exception hierarchy."""

from __future__ import annotations


class SeatSyncError(RuntimeError):
    """Base class for every error raised by seatsync."""
