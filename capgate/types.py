"""Enums and type aliases for capgate."""

from enum import StrEnum


class RedeemOutcome(StrEnum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    INVALID_SOLUTION = "invalid_solution"
    ERROR = "error"


class TokenStatus(StrEnum):
    VALID = "valid"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"


class StoreBackend(StrEnum):
    MEMORY = "memory"
    LOCAL = "local"
    S3 = "s3"
