"""CAPTCHA API routes: challenge, redeem, validate, clear-all."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from capgate.core.service import CaptchaService
from capgate.exceptions import StorageError
from capgate.models.api import (
    ChallengeResponse,
    ClearAllRequest,
    ClearAllResponse,
    ClearedCounts,
    RedeemRequest,
    RedeemResponse,
    ValidateRequest,
    ValidateResponse,
)
from capgate.types import RedeemOutcome
from capgate.utils.timing import to_iso
from capgate.web.dependencies import get_captcha_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["captcha"])

INTERNAL_ERROR = "Internal Server Error"


def _error(status_code: int, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={**extra, "error": message})


# ---------------------------------------------------------------------------
# Challenge creation
# ---------------------------------------------------------------------------


@router.post("/", include_in_schema=False)
@router.post("/challenge")
async def create_challenge(
    service: CaptchaService = Depends(get_captcha_service),
) -> JSONResponse:
    """Create a challenge and return its puzzles for the client to solve."""
    try:
        challenge = await service.create_challenge()
    except Exception as exc:
        logger.exception("challenge_creation_failed", error=str(exc))
        return _error(500, "Failed to create challenge")

    body = ChallengeResponse(
        token=challenge.id,
        challenge=[(p.salt, p.target) for p in challenge.puzzles],
        expires=to_iso(challenge.expires_at),
        challenge_count=len(challenge.puzzles),
        challenge_difficulty=challenge.difficulty,
    )
    return JSONResponse(content=body.model_dump(by_alias=True))


# ---------------------------------------------------------------------------
# Redeem
# ---------------------------------------------------------------------------


@router.post("/redeem")
async def redeem(
    body: RedeemRequest,
    service: CaptchaService = Depends(get_captcha_service),
) -> JSONResponse:
    """Check submitted nonces and exchange a solved challenge for a token.

    Wrong answers and verification faults are both reported with status 200
    because the widget treats any other status as a network error.
    """
    if not body.token or body.solutions is None:
        return _error(400, "Missing token or solutions")

    try:
        result = await service.redeem(body.token, body.solutions)
    except StorageError as exc:
        logger.exception("redeem_store_failed", error=str(exc))
        return _error(500, INTERNAL_ERROR)
    except Exception as exc:
        logger.exception("redeem_failed", error=str(exc))
        return JSONResponse(
            content=RedeemResponse(
                success=False, error="Failed to verify solution", details=str(exc)
            ).model_dump(exclude_none=True)
        )

    if result.outcome == RedeemOutcome.NOT_FOUND:
        return _error(400, result.error or "Challenge not found", success=False)

    if result.token is not None:
        response = RedeemResponse(
            success=True,
            token=result.token.value,
            expires=to_iso(result.token.expires_at),
        )
    else:
        response = RedeemResponse(success=False, error=result.error, details=result.details)
    return JSONResponse(content=response.model_dump(exclude_none=True))


# ---------------------------------------------------------------------------
# Validate
# ---------------------------------------------------------------------------


@router.post("/validate")
async def validate(
    body: ValidateRequest,
    service: CaptchaService = Depends(get_captcha_service),
) -> JSONResponse:
    """Check a verification token, consuming it unless keepToken is true."""
    if not body.token:
        return _error(400, "Missing token")

    try:
        result = await service.validate(body.token, keep_token=bool(body.keep_token))
    except Exception as exc:
        logger.exception("token_validation_failed", error=str(exc))
        return _error(500, "Failed to validate token")

    return JSONResponse(content=ValidateResponse(success=result.success).model_dump())


# ---------------------------------------------------------------------------
# Clear all (authorized by any live token)
# ---------------------------------------------------------------------------


@router.post("/clear-all")
async def clear_all(
    body: ClearAllRequest,
    service: CaptchaService = Depends(get_captcha_service),
) -> JSONResponse:
    """Delete every pending challenge and issued token."""
    if not body.token:
        return _error(400, "Missing token. Please complete a challenge first.", success=False)

    try:
        result = await service.clear_all(body.token)
    except Exception as exc:
        logger.exception("clear_all_failed", error=str(exc))
        return _error(500, "Failed to clear data", success=False)

    if not result.authorized:
        return _error(
            401, "Invalid or expired token. Please complete a challenge first.", success=False
        )

    response = ClearAllResponse(
        success=True,
        message="All data cleared successfully",
        cleared=ClearedCounts(challenges=result.challenges, tokens=result.tokens),
    )
    return JSONResponse(content=response.model_dump())
