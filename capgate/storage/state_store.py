"""Load, sweep and save the challenge/token mappings over a KeyValueStore.

Each request rebuilds a :class:`CaptchaState` with :meth:`StateStore.load`
and flushes it with :meth:`StateStore.save`. The two mappings live under
separate keys and are written independently: if one write fails the other
may already have landed, and nothing retries or rolls back. Concurrent
requests race as last write wins.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog
from pydantic import TypeAdapter, ValidationError

from capgate.exceptions import StateCorruptError, StorageError, StoreUnavailableError
from capgate.models.domain import CaptchaState, Challenge, SweepResult, VerificationToken
from capgate.utils.timing import now_ms

if TYPE_CHECKING:
    from capgate.storage.kv_store import KeyValueStore

logger = structlog.get_logger(__name__)

CHALLENGES_KEY = "challenges"
TOKENS_KEY = "tokens"

_challenges_adapter = TypeAdapter(dict[str, Challenge])
_tokens_adapter = TypeAdapter(dict[str, VerificationToken])


class StateStore:
    """Request-scoped persistence for :class:`CaptchaState`."""

    def __init__(self, kv: KeyValueStore, key_prefix: str = "") -> None:
        self._kv = kv
        self._challenges_key = f"{key_prefix}{CHALLENGES_KEY}"
        self._tokens_key = f"{key_prefix}{TOKENS_KEY}"

    async def load(self) -> CaptchaState:
        """Read both mappings. Missing keys become empty mappings."""
        raw_challenges, raw_tokens = await asyncio.gather(
            self._read(self._challenges_key),
            self._read(self._tokens_key),
        )
        try:
            challenges = _challenges_adapter.validate_json(raw_challenges or "{}")
            tokens = _tokens_adapter.validate_json(raw_tokens or "{}")
        except ValidationError as e:
            logger.error("state_corrupt", error=str(e))
            msg = "Persisted CAPTCHA state could not be parsed"
            raise StateCorruptError(msg) from e
        return CaptchaState(challenges=challenges, tokens=tokens)

    @staticmethod
    def sweep(state: CaptchaState, now: int | None = None) -> SweepResult:
        """Remove every challenge and token whose expiry has passed."""
        now = now_ms() if now is None else now
        stale_challenges = [k for k, c in state.challenges.items() if c.is_expired(now)]
        for k in stale_challenges:
            del state.challenges[k]
        stale_tokens = [k for k, t in state.tokens.items() if t.is_expired(now)]
        for k in stale_tokens:
            del state.tokens[k]

        result = SweepResult(challenges=len(stale_challenges), tokens=len(stale_tokens))
        if result.challenges or result.tokens:
            logger.debug("state_swept", challenges=result.challenges, tokens=result.tokens)
        return result

    async def save(self, state: CaptchaState, now: int | None = None) -> None:
        """Sweep expired entries, then write both mappings as two independent puts."""
        self.sweep(state, now=now)
        challenges_json = _challenges_adapter.dump_json(state.challenges, by_alias=True).decode()
        tokens_json = _tokens_adapter.dump_json(state.tokens, by_alias=True).decode()
        results = await asyncio.gather(
            self._write(self._challenges_key, challenges_json),
            self._write(self._tokens_key, tokens_json),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            logger.error(
                "state_partial_write",
                failed=len(failures),
                attempted=len(results),
                error=str(failures[0]),
            )
            raise failures[0]

    @staticmethod
    def clear(state: CaptchaState) -> tuple[int, int]:
        """Empty both mappings, returning how many challenges and tokens were dropped."""
        counts = (len(state.challenges), len(state.tokens))
        state.challenges.clear()
        state.tokens.clear()
        return counts

    async def _read(self, key: str) -> str | None:
        try:
            return await self._kv.get(key)
        except StorageError:
            raise
        except Exception as e:
            msg = f"Failed to read state key {key!r}"
            raise StoreUnavailableError(msg) from e

    async def _write(self, key: str, value: str) -> None:
        try:
            await self._kv.put(key, value)
        except StorageError:
            raise
        except Exception as e:
            msg = f"Failed to write state key {key!r}"
            raise StoreUnavailableError(msg) from e
