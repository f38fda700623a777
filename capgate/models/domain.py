"""Challenge/token data contracts and their persisted shape."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from capgate.types import RedeemOutcome, TokenStatus


class Puzzle(NamedTuple):
    salt: str
    target: str


class ChallengeConfig(BaseModel):
    """Options for a single challenge. Defaults match the public widget."""

    model_config = ConfigDict(frozen=True)

    count: int = Field(default=50, ge=1)
    salt_size: int = Field(default=32, ge=1)  # random bytes per salt
    difficulty: int = Field(default=5, ge=0, le=64)
    ttl_ms: int = Field(default=600_000, gt=0)


class Challenge(BaseModel):
    """A set of puzzles the client must solve together.

    Stored as ``{"id", "challenge", "difficulty", "createdAt", "expires"}``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    puzzles: tuple[Puzzle, ...] = Field(alias="challenge")
    difficulty: int
    created_at: int = Field(alias="createdAt")
    expires_at: int = Field(alias="expires")

    def is_expired(self, now: int) -> bool:
        return self.expires_at <= now


class VerificationToken(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    value: str = Field(alias="token")
    issued_at: int = Field(alias="issuedAt")
    expires_at: int = Field(alias="expires")

    def is_expired(self, now: int) -> bool:
        return self.expires_at <= now


class CaptchaState(BaseModel):
    """Request-scoped snapshot of pending challenges and issued tokens."""

    challenges: dict[str, Challenge] = {}
    tokens: dict[str, VerificationToken] = {}


class SweepResult(BaseModel):
    challenges: int = 0
    tokens: int = 0


class ValidationResult(BaseModel):
    success: bool
    status: TokenStatus


class RedeemResult(BaseModel):
    outcome: RedeemOutcome
    token: VerificationToken | None = None
    error: str | None = None
    details: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome == RedeemOutcome.SUCCESS


class ClearResult(BaseModel):
    authorized: bool
    challenges: int = 0
    tokens: int = 0
