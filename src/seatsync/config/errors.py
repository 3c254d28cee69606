"""Configuration error definitions."""

from __future__ import annotations

from seatsync.errors import SeatSyncError


class ConfigurationError(SeatSyncError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""
