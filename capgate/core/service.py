"""Request-scoped orchestration of the challenge and token flows.

Every public method loads a fresh :class:`CaptchaState`, applies one
operation and saves the result. Nothing is cached between calls, so two
overlapping calls each work on their own snapshot and the later save wins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from capgate.core.challenge import create_challenge
from capgate.core.tokens import DEFAULT_TOKEN_TTL_MS, issue_token, validate_token
from capgate.core.verifier import verify_solutions
from capgate.models.domain import ChallengeConfig, ClearResult, RedeemResult
from capgate.types import RedeemOutcome
from capgate.utils.timing import now_ms, timed

if TYPE_CHECKING:
    from collections.abc import Sequence

    from capgate.models.domain import Challenge, ValidationResult
    from capgate.storage.state_store import StateStore

logger = structlog.get_logger(__name__)

CHALLENGE_NOT_FOUND = "Challenge not found for token"
INVALID_SOLUTION = "Invalid solution"
VERIFICATION_FAILED = "Failed to verify solution"


class CaptchaService:
    """Create, redeem and validate proof-of-work challenges."""

    def __init__(
        self,
        store: StateStore,
        challenge_config: ChallengeConfig | None = None,
        token_ttl_ms: int = DEFAULT_TOKEN_TTL_MS,
    ) -> None:
        self._store = store
        self._challenge_config = challenge_config or ChallengeConfig()
        self._token_ttl_ms = token_ttl_ms

    async def create_challenge(self, now: int | None = None) -> Challenge:
        now = now_ms() if now is None else now
        state = await self._store.load()
        challenge = create_challenge(state, self._challenge_config, now=now)
        await self._store.save(state, now=now)
        return challenge

    async def redeem(
        self,
        challenge_id: str,
        solutions: Sequence[int | str],
        now: int | None = None,
    ) -> RedeemResult:
        """Check solutions for a challenge and, if all pass, issue a token.

        The challenge is removed before verification, so it can be presented
        only once whatever the outcome.
        """
        now = now_ms() if now is None else now
        state = await self._store.load()

        challenge = state.challenges.pop(challenge_id, None)
        if challenge is None or challenge.is_expired(now):
            await self._store.save(state, now=now)
            logger.info("redeem_challenge_not_found", expired=challenge is not None)
            return RedeemResult(outcome=RedeemOutcome.NOT_FOUND, error=CHALLENGE_NOT_FOUND)

        try:
            with timed("verify_solutions"):
                passed = verify_solutions(challenge, solutions)
            token = issue_token(state, self._token_ttl_ms, now=now) if passed else None
        except Exception as e:
            logger.exception("redeem_verification_error", error=str(e))
            result = RedeemResult(
                outcome=RedeemOutcome.ERROR,
                error=VERIFICATION_FAILED,
                details=str(e),
            )
        else:
            if token is None:
                logger.info(
                    "redeem_invalid_solution",
                    submitted=len(solutions),
                    expected=len(challenge.puzzles),
                )
                result = RedeemResult(
                    outcome=RedeemOutcome.INVALID_SOLUTION, error=INVALID_SOLUTION
                )
            else:
                logger.info("redeem_succeeded")
                result = RedeemResult(outcome=RedeemOutcome.SUCCESS, token=token)

        await self._store.save(state, now=now)
        return result

    async def validate(
        self,
        value: str,
        keep_token: bool = False,
        now: int | None = None,
    ) -> ValidationResult:
        now = now_ms() if now is None else now
        state = await self._store.load()
        result = validate_token(state, value, keep_token=keep_token, now=now)
        await self._store.save(state, now=now)
        logger.info("token_validation", success=result.success, status=result.status.value)
        return result

    async def clear_all(self, value: str, now: int | None = None) -> ClearResult:
        """Drop every challenge and token, authorized by any live token.

        The presenting token is consumed first, so it is not part of the
        reported token count. An unauthorized call writes nothing.
        """
        now = now_ms() if now is None else now
        state = await self._store.load()
        self._store.sweep(state, now=now)
        validation = validate_token(state, value, keep_token=False, now=now)
        if not validation.success:
            logger.warning("clear_all_unauthorized", status=validation.status.value)
            return ClearResult(authorized=False)

        challenges, tokens = self._store.clear(state)
        await self._store.save(state, now=now)
        logger.warning("clear_all_done", challenges=challenges, tokens=tokens)
        return ClearResult(authorized=True, challenges=challenges, tokens=tokens)
