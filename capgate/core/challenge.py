"""Challenge generation."""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

import structlog

from capgate.core.puzzle import derived_target
from capgate.models.domain import Challenge, ChallengeConfig, Puzzle
from capgate.utils.timing import now_ms

if TYPE_CHECKING:
    from capgate.models.domain import CaptchaState

logger = structlog.get_logger(__name__)

ID_BYTES = 25


def new_unique_id(taken: dict[str, object]) -> str:
    """Random hex id not currently used as a key in ``taken``."""
    while True:
        candidate = secrets.token_hex(ID_BYTES)
        if candidate not in taken:
            return candidate


def create_challenge(
    state: CaptchaState,
    config: ChallengeConfig | None = None,
    now: int | None = None,
) -> Challenge:
    """Create a challenge, register it in ``state`` and return it."""
    config = config or ChallengeConfig()
    now = now_ms() if now is None else now
    target = derived_target(config.difficulty)

    challenge = Challenge(
        id=new_unique_id(state.challenges),
        puzzles=tuple(
            Puzzle(salt=secrets.token_hex(config.salt_size), target=target)
            for _ in range(config.count)
        ),
        difficulty=config.difficulty,
        created_at=now,
        expires_at=now + config.ttl_ms,
    )
    state.challenges[challenge.id] = challenge
    logger.info(
        "challenge_created",
        count=config.count,
        difficulty=config.difficulty,
        expires_in_ms=config.ttl_ms,
    )
    return challenge
