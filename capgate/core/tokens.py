"""Verification token issuing and validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from capgate.core.challenge import new_unique_id
from capgate.models.domain import ValidationResult, VerificationToken
from capgate.types import TokenStatus
from capgate.utils.timing import now_ms

if TYPE_CHECKING:
    from capgate.models.domain import CaptchaState

logger = structlog.get_logger(__name__)

DEFAULT_TOKEN_TTL_MS = 1_200_000


def issue_token(
    state: CaptchaState,
    ttl_ms: int = DEFAULT_TOKEN_TTL_MS,
    now: int | None = None,
) -> VerificationToken:
    """Mint a new single-use token and register it in ``state``."""
    now = now_ms() if now is None else now
    token = VerificationToken(
        value=new_unique_id(state.tokens),
        issued_at=now,
        expires_at=now + ttl_ms,
    )
    state.tokens[token.value] = token
    logger.info("token_issued", expires_in_ms=ttl_ms)
    return token


def validate_token(
    state: CaptchaState,
    value: str,
    keep_token: bool = False,
    now: int | None = None,
) -> ValidationResult:
    """Check a presented token, consuming it unless ``keep_token`` is set.

    Any live token authorizes its bearer; there is no separate admin
    credential.
    """
    now = now_ms() if now is None else now
    token = state.tokens.get(value)
    if token is None:
        return ValidationResult(success=False, status=TokenStatus.NOT_FOUND)

    if token.is_expired(now):
        del state.tokens[value]
        logger.debug("token_expired_on_read")
        return ValidationResult(success=False, status=TokenStatus.EXPIRED)

    if not keep_token:
        del state.tokens[value]
    logger.debug("token_validated", consumed=not keep_token)
    return ValidationResult(success=True, status=TokenStatus.VALID)
