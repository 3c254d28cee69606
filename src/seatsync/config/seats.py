"""Seat service and identity service configuration values."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, ValidationError

from .env import optional_env_var, require_env_vars
from .errors import MissingConfigurationError
from .http_resilience import ResilienceConfig, RetryPolicy

CODERABBIT_BASE_URL = "https://api.coderabbit.ai"
GITHUB_API_URL = "https://api.github.com"

API_KEY_ENV_VAR = "CODERABBITAI_API_KEY"
BASE_URL_ENV_VAR = "CODERABBIT_BASE_URL"
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"

API_KEY_HEADER = "x-coderabbitai-api-key"


class _ErrorEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str


class _ErrorDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    errors: list[_ErrorEntry] = []


def parse_error_document(body: bytes) -> str | None:
    """Return the first message of a ``{"errors": [...]}`` document.

    ``None`` means the body is not an error document and should be shown raw.
    """

    try:
        document = _ErrorDocument.model_validate(json.loads(body))
    except (ValueError, ValidationError):
        return None
    if document.errors:
        return document.errors[0].message
    return "unknown error"


def build_seats_resilience(
    *,
    api_key: str,
    base_url: str = CODERABBIT_BASE_URL,
    retry: RetryPolicy | None = None,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="CodeRabbit",
        base_url=base_url.rstrip("/") + "/v1",
        retry=retry or RetryPolicy(),
        default_headers={
            API_KEY_HEADER: api_key,
            "Content-Type": "application/json",
        },
        error_message=parse_error_document,
    )


def build_identity_resilience(
    *,
    github_token: str | None = None,
    base_url: str = GITHUB_API_URL,
    retry: RetryPolicy | None = None,
) -> ResilienceConfig:
    headers = {"Accept": "application/vnd.github+json"}
    if github_token:
        headers["Authorization"] = f"Bearer {github_token}"
    return ResilienceConfig(
        name="GitHub",
        base_url=base_url,
        retry=retry or RetryPolicy(),
        default_headers=headers,
    )


@dataclass(frozen=True)
class SeatsConfig:
    """Holds everything a seat session needs to talk to both services."""

    api_key: str = field(repr=False)
    base_url: str
    github_token: str | None = field(default=None, repr=False)
    resilience: ResilienceConfig | None = field(default=None, repr=False)
    identity_resilience: ResilienceConfig | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.resilience is None:
            object.__setattr__(
                self,
                "resilience",
                build_seats_resilience(api_key=self.api_key, base_url=self.base_url),
            )
        if self.identity_resilience is None:
            object.__setattr__(
                self,
                "identity_resilience",
                build_identity_resilience(github_token=self.github_token),
            )


def get_seats_config(
    *,
    api_key: str | None = None,
    base_url: str | None = None,
    github_token: str | None = None,
    retry: RetryPolicy | None = None,
) -> SeatsConfig:
    """Resolve configuration from explicit values, then the environment, then defaults."""

    if api_key is not None and not api_key.strip():
        raise MissingConfigurationError("API key must not be blank")

    resolved_key = api_key or require_env_vars((API_KEY_ENV_VAR,))[API_KEY_ENV_VAR]
    resolved_url = base_url or optional_env_var(BASE_URL_ENV_VAR) or CODERABBIT_BASE_URL
    resolved_token = github_token or optional_env_var(GITHUB_TOKEN_ENV_VAR)

    return SeatsConfig(
        api_key=resolved_key,
        base_url=resolved_url,
        github_token=resolved_token,
        resilience=build_seats_resilience(
            api_key=resolved_key, base_url=resolved_url, retry=retry
        ),
        identity_resilience=build_identity_resilience(github_token=resolved_token, retry=retry),
    )
