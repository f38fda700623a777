"""Application settings via Pydantic BaseSettings."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings

from capgate.exceptions import ConfigError
from capgate.models.domain import ChallengeConfig
from capgate.types import StoreBackend

MAX_DIFFICULTY = 64  # hex digits in a SHA-256 digest


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # App
    debug: bool = False
    log_level: str = "INFO"

    # Challenge generation
    challenge_count: int = 50
    challenge_salt_size: int = 32  # bytes, hex-encoded on the wire
    challenge_difficulty: int = 5  # leading zero hex digits
    challenge_ttl_ms: int = 600_000

    # Verification tokens
    token_ttl_ms: int = 1_200_000

    # State storage
    store_backend: StoreBackend = StoreBackend.MEMORY
    store_key_prefix: str = ""
    state_dir: str = "~/.capgate/state"

    # S3/R2 (only used when store_backend == "s3")
    s3_bucket: str = ""
    s3_endpoint_url: str | None = None
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = None
    s3_region: str = "auto"

    def challenge_config(self) -> ChallengeConfig:
        """Build the typed challenge options from flat settings."""
        return ChallengeConfig(
            count=self.challenge_count,
            salt_size=self.challenge_salt_size,
            difficulty=self.challenge_difficulty,
            ttl_ms=self.challenge_ttl_ms,
        )


def validate_settings(settings: Settings) -> Settings:
    """Reject setting combinations the service cannot run with."""
    if not 1 <= settings.challenge_difficulty <= MAX_DIFFICULTY:
        msg = f"CHALLENGE_DIFFICULTY must be between 1 and {MAX_DIFFICULTY}"
        raise ConfigError(msg)
    if settings.challenge_count < 1 or settings.challenge_salt_size < 1:
        msg = "CHALLENGE_COUNT and CHALLENGE_SALT_SIZE must be positive"
        raise ConfigError(msg)
    if settings.challenge_ttl_ms <= 0 or settings.token_ttl_ms <= 0:
        msg = "CHALLENGE_TTL_MS and TOKEN_TTL_MS must be positive"
        raise ConfigError(msg)
    if settings.store_backend == StoreBackend.S3 and not settings.s3_bucket:
        msg = "STORE_BACKEND=s3 requires S3_BUCKET"
        raise ConfigError(msg)
    return settings


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return validate_settings(Settings())
