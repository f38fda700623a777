"""Positional verification of submitted nonces against a challenge."""

from __future__ import annotations

from typing import TYPE_CHECKING

from capgate.core.puzzle import verify

if TYPE_CHECKING:
    from collections.abc import Sequence

    from capgate.models.domain import Challenge


def verify_solutions(challenge: Challenge, nonces: Sequence[int | str]) -> bool:
    """True iff ``nonces[i]`` solves ``challenge.puzzles[i]`` for every i.

    A wrong number of nonces fails closed. Every pair is checked even after
    a mismatch so the cost does not depend on where the first miss is.
    """
    if len(nonces) != len(challenge.puzzles):
        return False
    results = [
        verify(puzzle.salt, nonce, puzzle.target)
        for puzzle, nonce in zip(challenge.puzzles, nonces, strict=True)
    ]
    return all(results)
