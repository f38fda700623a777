"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from httpx import ASGITransport, AsyncClient

from capgate.config.settings import get_settings
from capgate.core.puzzle import solve, verify
from capgate.core.service import CaptchaService
from capgate.models.domain import ChallengeConfig
from capgate.storage.memory_store import MemoryKeyValueStore
from capgate.storage.state_store import StateStore
from capgate.web.app import create_app


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch):
    """Cheap puzzles and an in-memory backend for every test."""
    monkeypatch.setenv("CHALLENGE_DIFFICULTY", "1")
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("STORE_KEY_PREFIX", "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def state_store(kv: MemoryKeyValueStore) -> StateStore:
    return StateStore(kv)


@pytest.fixture()
def service(state_store: StateStore) -> CaptchaService:
    """Service with easy puzzles so tests can solve them quickly."""
    return CaptchaService(
        state_store,
        challenge_config=ChallengeConfig(count=10, salt_size=8, difficulty=1),
    )


@pytest.fixture()
def app(kv: MemoryKeyValueStore):
    """Create a fresh app instance bound to the test key-value store."""
    return create_app(kv_store=kv)


@pytest.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture()
def solve_all() -> Callable[[list[tuple[str, str]]], list[int]]:
    """Return a function that solves every ``(salt, target)`` pair in order."""

    def _solve(pairs: list[tuple[str, str]]) -> list[int]:
        nonces = []
        for salt, target in pairs:
            nonce = solve(salt, target)
            assert nonce is not None
            nonces.append(nonce)
        return nonces

    return _solve


@pytest.fixture()
def wrong_nonce() -> Callable[[str, str], int]:
    """Return a function that finds a nonce which does NOT solve a puzzle."""

    def _wrong(salt: str, target: str) -> int:
        nonce = 0
        while verify(salt, nonce, target):
            nonce += 1
        return nonce

    return _wrong
