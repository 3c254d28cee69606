"""Pydantic model for the GitHub users API payload."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class GitHubUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    login: str
