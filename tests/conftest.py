"""
Pytest fixtures for the 2048 engine tests.
"""

import pytest

from engine import GameConfig, GameState, state_from_board


# Board used for the slide tests in every direction.
MIXED_BOARD = [
    [0, 2, 4, 4],
    [0, 2, 2, 4],
    [0, 0, 2, 2],
    [0, 0, 0, 2],
]

# Full except (0, 0); sliding LEFT and spawning a 2 leaves no move anywhere.
NEARLY_BLOCKED_BOARD = [
    [0, 4, 8, 16],
    [2, 4, 8, 16],
    [4, 8, 16, 32],
    [2, 4, 8, 16],
]


@pytest.fixture
def make_state():
    """Factory building a GameState from a list-of-rows board."""
    def _make(board, score=0, status="IN_PROGRESS", **config_fields) -> GameState:
        config_fields.setdefault("rng_seed", 1234)
        return state_from_board(board, score=score, status=status, config=GameConfig(**config_fields))
    return _make


@pytest.fixture
def mixed_board():
    return [list(row) for row in MIXED_BOARD]


@pytest.fixture
def nearly_blocked_board():
    return [list(row) for row in NEARLY_BLOCKED_BOARD]
