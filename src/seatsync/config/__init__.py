"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .seats import (
    CODERABBIT_BASE_URL,
    GITHUB_API_URL,
    SeatsConfig,
    build_identity_resilience,
    build_seats_resilience,
    get_seats_config,
)

__all__ = [
    "CODERABBIT_BASE_URL",
    "GITHUB_API_URL",
    "ConfigurationError",
    "MissingConfigurationError",
    "ResilienceConfig",
    "RetryPolicy",
    "SeatsConfig",
    "build_identity_resilience",
    "build_seats_resilience",
    "configure_logging",
    "get_seats_config",
    "optional_env_var",
    "require_env_vars",
]
