"""FastAPI dependency injection for the CAPTCHA service."""

from __future__ import annotations

from fastapi import Request

from capgate.config.settings import get_settings
from capgate.core.service import CaptchaService
from capgate.storage.state_store import StateStore


def get_captcha_service(request: Request) -> CaptchaService:
    """Build a service bound to the app's key-value store for one request."""
    settings = get_settings()
    store = StateStore(request.app.state.kv_store, key_prefix=settings.store_key_prefix)
    return CaptchaService(
        store,
        challenge_config=settings.challenge_config(),
        token_ttl_ms=settings.token_ttl_ms,
    )
