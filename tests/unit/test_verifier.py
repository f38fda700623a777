from unittest.mock import patch

import pytest

from capgate.core.challenge import create_challenge
from capgate.core.verifier import verify_solutions
from capgate.models.domain import CaptchaState, ChallengeConfig


@pytest.fixture()
def challenge():
    return create_challenge(CaptchaState(), ChallengeConfig(count=50, salt_size=8, difficulty=1))


@pytest.mark.unit
class TestVerifySolutions:
    def test_all_correct(self, challenge, solve_all) -> None:
        nonces = solve_all(list(challenge.puzzles))
        assert verify_solutions(challenge, nonces) is True

    def test_one_wrong_among_fifty(self, challenge, solve_all, wrong_nonce) -> None:
        nonces = solve_all(list(challenge.puzzles))
        salt, target = challenge.puzzles[17]
        nonces[17] = wrong_nonce(salt, target)
        assert verify_solutions(challenge, nonces) is False

    def test_too_few_nonces_fail_closed(self, challenge, solve_all) -> None:
        nonces = solve_all(list(challenge.puzzles))
        assert verify_solutions(challenge, nonces[:-1]) is False

    def test_too_many_nonces_fail_closed(self, challenge, solve_all) -> None:
        nonces = solve_all(list(challenge.puzzles))
        assert verify_solutions(challenge, [*nonces, 0]) is False

    def test_empty_submission(self, challenge) -> None:
        assert verify_solutions(challenge, []) is False

    def test_string_nonces_accepted(self, challenge, solve_all) -> None:
        nonces = [str(n) for n in solve_all(list(challenge.puzzles))]
        assert verify_solutions(challenge, nonces) is True

    def test_checks_every_pair(self, challenge) -> None:
        with patch("capgate.core.verifier.verify", return_value=False) as mock_verify:
            assert verify_solutions(challenge, [0] * 50) is False
        assert mock_verify.call_count == 50

    def test_does_not_mutate_challenge(self, challenge, solve_all) -> None:
        before = challenge.model_dump()
        verify_solutions(challenge, solve_all(list(challenge.puzzles)))
        assert challenge.model_dump() == before
