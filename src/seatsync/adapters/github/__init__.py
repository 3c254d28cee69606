"""Public interface for the GitHub identity adapter."""

from __future__ import annotations

from .client import GitHubIdentityResolver, IdentityNotFoundError
from .schema import GitHubUser

__all__ = ["GitHubIdentityResolver", "GitHubUser", "IdentityNotFoundError"]
