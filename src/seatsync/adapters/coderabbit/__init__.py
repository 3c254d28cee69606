"""Public interface for the CodeRabbit seats adapter."""

from __future__ import annotations

from .cache import ReadWriteLock, SeatRosterCache
from .client import CodeRabbitSeatsClient, SeatOperationError
from .schema import SeatAssignmentRequest, SeatsResponse, SeatUser, SuccessResponse
from .translator import translate_roster

__all__ = [
    "CodeRabbitSeatsClient",
    "ReadWriteLock",
    "SeatAssignmentRequest",
    "SeatOperationError",
    "SeatRosterCache",
    "SeatUser",
    "SeatsResponse",
    "SuccessResponse",
    "translate_roster",
]
