"""Pydantic models describing the CodeRabbit seats API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


def _id_to_str(value: object) -> object:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


def _null_to_empty(value: object) -> object:
    return [] if value is None else value


class CodeRabbitBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SeatUser(CodeRabbitBaseModel):
    git_user_id: str
    seat_assigned: bool = False

    _normalize_id = field_validator("git_user_id", mode="before")(_id_to_str)


class SeatsResponse(CodeRabbitBaseModel):
    users: list[SeatUser] = []

    _null_users = field_validator("users", mode="before")(_null_to_empty)


class SeatAssignmentRequest(CodeRabbitBaseModel):
    git_user_id: str


class SuccessResponse(CodeRabbitBaseModel):
    success: bool = False
