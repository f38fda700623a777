"""Unit tests for StateStore load/sweep/save."""

from __future__ import annotations

import json

import pytest

from capgate.core.challenge import create_challenge
from capgate.core.tokens import issue_token
from capgate.exceptions import StateCorruptError, StoreUnavailableError
from capgate.models.domain import CaptchaState, ChallengeConfig
from capgate.storage.memory_store import MemoryKeyValueStore
from capgate.storage.state_store import StateStore


class FailingPutStore(MemoryKeyValueStore):
    """Rejects writes to one key so partial saves can be observed."""

    def __init__(self, failing_key: str) -> None:
        super().__init__()
        self._failing_key = failing_key

    async def put(self, key: str, value: str) -> None:
        if key == self._failing_key:
            raise OSError("disk full")
        await super().put(key, value)


class FailingGetStore(MemoryKeyValueStore):
    async def get(self, key: str) -> str | None:
        raise ConnectionError("store unreachable")


@pytest.mark.unit
class TestLoad:
    @pytest.mark.asyncio
    async def test_empty_store_loads_empty_state(self, state_store: StateStore) -> None:
        state = await state_store.load()
        assert state.challenges == {}
        assert state.tokens == {}

    @pytest.mark.asyncio
    async def test_round_trip(self, state_store: StateStore) -> None:
        state = CaptchaState()
        challenge = create_challenge(state, ChallengeConfig(count=3), now=1_000)
        token = issue_token(state, now=1_000)
        await state_store.save(state, now=1_000)

        loaded = await state_store.load()
        assert loaded.challenges[challenge.id] == challenge
        assert loaded.tokens[token.value] == token

    @pytest.mark.asyncio
    async def test_corrupt_json_raises(self) -> None:
        store = StateStore(MemoryKeyValueStore({"challenges": "{not json"}))
        with pytest.raises(StateCorruptError):
            await store.load()

    @pytest.mark.asyncio
    async def test_schema_mismatch_raises(self) -> None:
        store = StateStore(MemoryKeyValueStore({"tokens": json.dumps({"t": {"token": "t"}})}))
        with pytest.raises(StateCorruptError):
            await store.load()

    @pytest.mark.asyncio
    async def test_backend_failure_wrapped(self) -> None:
        store = StateStore(FailingGetStore())
        with pytest.raises(StoreUnavailableError):
            await store.load()


@pytest.mark.unit
class TestPersistedFormat:
    @pytest.mark.asyncio
    async def test_challenge_document_shape(
        self, kv: MemoryKeyValueStore, state_store: StateStore
    ) -> None:
        state = CaptchaState()
        challenge = create_challenge(state, ChallengeConfig(count=2, difficulty=2), now=10)
        await state_store.save(state, now=10)

        stored = json.loads(await kv.get("challenges"))
        entry = stored[challenge.id]
        assert entry["id"] == challenge.id
        assert entry["difficulty"] == 2
        assert entry["createdAt"] == 10
        assert entry["expires"] == 10 + 600_000
        assert entry["challenge"] == [[p.salt, p.target] for p in challenge.puzzles]

    @pytest.mark.asyncio
    async def test_token_document_shape(
        self, kv: MemoryKeyValueStore, state_store: StateStore
    ) -> None:
        state = CaptchaState()
        token = issue_token(state, ttl_ms=50, now=10)
        await state_store.save(state, now=10)

        stored = json.loads(await kv.get("tokens"))
        assert stored == {token.value: {"token": token.value, "issuedAt": 10, "expires": 60}}

    @pytest.mark.asyncio
    async def test_key_prefix(self, kv: MemoryKeyValueStore) -> None:
        store = StateStore(kv, key_prefix="site-a:")
        await store.save(CaptchaState())
        assert await kv.get("site-a:challenges") == "{}"
        assert await kv.get("site-a:tokens") == "{}"
        assert await kv.get("challenges") is None


@pytest.mark.unit
class TestSweep:
    def test_removes_only_expired(self) -> None:
        state = CaptchaState()
        old = create_challenge(state, ChallengeConfig(count=1, ttl_ms=10), now=0)
        fresh = create_challenge(state, ChallengeConfig(count=1, ttl_ms=1_000), now=0)
        old_token = issue_token(state, ttl_ms=10, now=0)
        fresh_token = issue_token(state, ttl_ms=1_000, now=0)

        result = StateStore.sweep(state, now=10)

        assert result.challenges == 1
        assert result.tokens == 1
        assert old.id not in state.challenges
        assert fresh.id in state.challenges
        assert old_token.value not in state.tokens
        assert fresh_token.value in state.tokens

    @pytest.mark.asyncio
    async def test_save_drops_expired_entries(
        self, kv: MemoryKeyValueStore, state_store: StateStore
    ) -> None:
        state = CaptchaState()
        stale = create_challenge(state, ChallengeConfig(count=1, ttl_ms=5), now=0)
        await state_store.save(state, now=100)
        assert stale.id not in json.loads(await kv.get("challenges"))


@pytest.mark.unit
class TestSave:
    @pytest.mark.asyncio
    async def test_partial_write_leaves_other_key_written(self) -> None:
        kv = FailingPutStore(failing_key="tokens")
        store = StateStore(kv)
        state = CaptchaState()
        challenge = create_challenge(state, ChallengeConfig(count=1))

        with pytest.raises(StoreUnavailableError):
            await store.save(state)

        assert challenge.id in json.loads(await kv.get("challenges"))
        assert await kv.get("tokens") is None

    def test_clear_reports_counts(self) -> None:
        state = CaptchaState()
        create_challenge(state, ChallengeConfig(count=1))
        create_challenge(state, ChallengeConfig(count=1))
        issue_token(state)
        assert StateStore.clear(state) == (2, 1)
        assert state.challenges == {}
        assert state.tokens == {}
