"""SHA-256 hash puzzles.

A puzzle is a ``(salt, target)`` pair. A nonce solves it when the hex digest
of ``sha256(salt + str(nonce))`` starts with ``target``. Targets are runs of
``"0"`` so the difficulty is the number of leading zero hex digits.
"""

from __future__ import annotations

import hashlib

DIGEST_HEX_LENGTH = 64


def derived_target(difficulty: int) -> str:
    """Return the target string requiring ``difficulty`` leading zero hex digits."""
    if not 0 <= difficulty <= DIGEST_HEX_LENGTH:
        msg = f"difficulty must be between 0 and {DIGEST_HEX_LENGTH}, got {difficulty}"
        raise ValueError(msg)
    return "0" * difficulty


def digest(salt: str, nonce: int | str) -> str:
    """Hex SHA-256 of the salt concatenated with the nonce's decimal form."""
    return hashlib.sha256(f"{salt}{nonce}".encode()).hexdigest()


def verify(salt: str, nonce: int | str, target: str) -> bool:
    """Check whether ``nonce`` solves the ``(salt, target)`` puzzle."""
    return digest(salt, nonce).startswith(target)


def solve(salt: str, target: str, start: int = 0, limit: int | None = None) -> int | None:
    """Brute-force the smallest nonce >= ``start`` solving the puzzle.

    Returns None when ``limit`` candidates were tried without success.
    """
    nonce = start
    while limit is None or nonce < start + limit:
        if verify(salt, nonce, target):
            return nonce
        nonce += 1
    return None
