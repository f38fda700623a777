"""API request/response schemas for FastAPI endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RedeemRequest(BaseModel):
    token: str | None = None
    solutions: list[int | str] | None = None


class ValidateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str | None = None
    keep_token: bool | None = Field(default=None, alias="keepToken")  # null behaves like false


class ClearAllRequest(BaseModel):
    token: str | None = None


class ChallengeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    challenge: list[tuple[str, str]]
    expires: str
    challenge_count: int = Field(alias="challengeCount")
    challenge_difficulty: int = Field(alias="challengeDifficulty")


class RedeemResponse(BaseModel):
    success: bool
    token: str | None = None
    expires: str | None = None
    error: str | None = None
    details: str | None = None


class ValidateResponse(BaseModel):
    success: bool


class ClearedCounts(BaseModel):
    challenges: int
    tokens: int


class ClearAllResponse(BaseModel):
    success: bool
    message: str
    cleared: ClearedCounts
