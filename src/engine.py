# engine.py
# This file is the deterministic state-transition core of the 2048 game.

import logging
import random
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

EMPTY = 0
MIN_GRID_SIZE = 2
MAX_SPAWN_VALUE = 4

DEFAULT_GRID_SIZE = 4
DEFAULT_WIN_THRESHOLD = 2048
DEFAULT_SPAWN_FOUR_PROBABILITY = 0.1

Cells = Tuple[int, ...]


class GameStatus(Enum):
    """Represents the current progress state of the game."""
    IN_PROGRESS = "IN_PROGRESS"
    WON = "WON"
    LOST = "LOST"


class Direction(Enum):
    """Represents the possible move directions."""
    UP = "UP"
    DOWN = "DOWN"
    LEFT = "LEFT"
    RIGHT = "RIGHT"


class ConfigurationError(ValueError):
    """Raised when a game cannot be set up with the requested settings."""


def is_power_of_two(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0 and value & (value - 1) == 0


# --- Configuration and State ---

@dataclass(frozen=True)
class GameConfig:
    """
    Settings fixed for the lifetime of one game.
    Attributes:
        grid_size (int): Dimension N of the N x N grid.
        win_threshold (int): Tile value that wins the game.
        spawn_four_probability (float): Chance that a spawned tile is a 4 instead of a 2.
        rng_seed (Optional[int]): Seed for the random source, None for a non-deterministic one.
        continue_after_win (bool): Keep accepting moves once the game is won.
    """
    grid_size: int = DEFAULT_GRID_SIZE
    win_threshold: int = DEFAULT_WIN_THRESHOLD
    spawn_four_probability: float = DEFAULT_SPAWN_FOUR_PROBABILITY
    rng_seed: Optional[int] = None
    continue_after_win: bool = False

    def validate(self) -> None:
        """
        Checks that a playable game can be built from these settings.
        Raises:
            ConfigurationError: If any setting is out of range.
        """
        if not isinstance(self.grid_size, int) or isinstance(self.grid_size, bool) \
                or self.grid_size < MIN_GRID_SIZE:
            raise ConfigurationError(
                f"Grid size must be an integer of at least {MIN_GRID_SIZE}, got {self.grid_size!r}."
            )
        if not is_power_of_two(self.win_threshold) or self.win_threshold <= MAX_SPAWN_VALUE:
            raise ConfigurationError(
                f"Win threshold must be a power of two greater than {MAX_SPAWN_VALUE}, "
                f"got {self.win_threshold!r}."
            )
        probability = self.spawn_four_probability
        if isinstance(probability, bool) or not isinstance(probability, (int, float)) \
                or not 0.0 <= probability <= 1.0:
            raise ConfigurationError(
                f"Spawn probability for a 4 must be a number in [0, 1], got {probability!r}."
            )


@dataclass(frozen=True)
class GameState:
    """
    Immutable snapshot of one game.

    The grid is kept as a flat, row-major tuple of N * N cells where 0 marks an
    empty cell. The state of the random source travels with the snapshot so
    that replaying the same moves from the same state is reproducible.
    """
    cells: Cells
    score: int = 0
    status: GameStatus = GameStatus.IN_PROGRESS
    config: GameConfig = field(default_factory=GameConfig)
    rng_state: Optional[tuple] = field(default=None, repr=False)

    def __post_init__(self):
        # Frozen: normalize through object.__setattr__ so comparisons in apply_move hold.
        object.__setattr__(self, "cells", tuple(self.cells))
        object.__setattr__(self, "status", GameStatus(self.status))

        if len(self.cells) != self.size * self.size:
            raise ValueError(
                f"Expected {self.size * self.size} cells for a {self.size}x{self.size} grid, "
                f"got {len(self.cells)}."
            )
        for value in self.cells:
            if value != EMPTY and (not is_power_of_two(value) or value < 2):
                raise ValueError(f"Tile values must be 0 or a power of two >= 2, got {value!r}.")
        if not isinstance(self.score, int) or isinstance(self.score, bool) or self.score < 0:
            raise ValueError(f"Score must be a non-negative integer, got {self.score!r}.")

    @property
    def size(self) -> int:
        return self.config.grid_size

    @property
    def grid(self) -> List[List[int]]:
        """The grid as a list of rows, top row first."""
        n = self.size
        return [list(self.cells[row * n:(row + 1) * n]) for row in range(n)]

    @property
    def max_tile(self) -> int:
        return max(self.cells)

    @property
    def is_terminal(self) -> bool:
        """True when apply_move will no longer accept moves."""
        if self.status is GameStatus.LOST:
            return True
        return self.status is GameStatus.WON and not self.config.continue_after_win

    def cell(self, row: int, col: int) -> int:
        """
        Gets the value at (row, col), 0 if the cell is empty.
        Raises:
            IndexError: If the position is outside the grid.
        """
        if not (0 <= row < self.size and 0 <= col < self.size):
            raise IndexError(f"Cell ({row}, {col}) is outside the {self.size}x{self.size} grid.")
        return self.cells[row * self.size + col]


# --- Board Helper Functions ---

def get_board_size(board: List[List[int]]) -> int:
    """
    Gets the size (N) of an N x N board.
    Args:
        board (List[List[int]]): The game board.
    Returns:
        int: The dimension of the board.
    Raises:
        ValueError: If the board is not square or empty.
    """
    if not board or not all(len(row) == len(board) for row in board):
        raise ValueError("Board must be a non-empty square matrix.")
    return len(board)


def get_empty_cells(cells: Sequence[int]) -> List[int]:
    """
    Get flat indices of the empty (0-value) cells.
    Args:
        cells (Sequence[int]): Flat, row-major grid.
    Returns:
        List[int]: Indices of empty cells, in row-major order.
    """
    return [index for index, value in enumerate(cells) if value == EMPTY]


def has_adjacent_pair(cells: Sequence[int], size: int) -> bool:
    """Checks whether two equal tiles touch along any row or column."""
    for row in range(size):
        for col in range(size):
            value = cells[row * size + col]
            if value == EMPTY:
                continue
            if col + 1 < size and cells[row * size + col + 1] == value:
                return True
            if row + 1 < size and cells[(row + 1) * size + col] == value:
                return True
    return False


def is_any_move_possible(cells: Sequence[int], size: int) -> bool:
    """
    Checks if a move in some direction could still change the grid.
    Args:
        cells (Sequence[int]): Flat, row-major grid.
        size (int): Dimension of the grid.
    Returns:
        bool: False only when the grid is full and no merge is available.
    """
    return EMPTY in cells or has_adjacent_pair(cells, size)


def spawn_tile(cells: Sequence[int], rng: random.Random, four_probability: float) -> Tuple[Cells, Optional[int]]:
    """
    Places one new tile (a 4 with the given probability, else a 2) into a random empty cell.
    Args:
        cells (Sequence[int]): Flat, row-major grid.
        rng (random.Random): Random source used for placement and value.
        four_probability (float): Chance that the new tile is a 4.
    Returns:
        Tuple[Cells, Optional[int]]: The new cells and the index of the spawned tile.
                                     If no empty cells, returns the cells unchanged and None.
    """
    empty_cells = get_empty_cells(cells)
    if not empty_cells:
        return tuple(cells), None

    new_cells = list(cells)
    index = rng.choice(empty_cells)
    new_cells[index] = 4 if rng.random() < four_probability else 2
    return tuple(new_cells), index


def state_from_board(
    board: List[List[int]],
    score: int = 0,
    status: GameStatus = GameStatus.IN_PROGRESS,
    config: Optional[GameConfig] = None,
) -> GameState:
    """
    Builds a GameState from an existing board, e.g. one sent back by a client.
    Args:
        board (List[List[int]]): N x N board, 0 for empty cells.
        score (int): Score accumulated so far.
        status (GameStatus): Status the game is currently in.
        config (Optional[GameConfig]): Game settings; grid_size is taken from the board.
    Returns:
        GameState: The equivalent state, seeded from config.rng_seed.
    Raises:
        ValueError: If the board is malformed or the score is negative.
        ConfigurationError: If the settings are invalid.
    """
    n = get_board_size(board)
    config = replace(config or GameConfig(), grid_size=n)
    config.validate()
    rng = random.Random(config.rng_seed)
    return GameState(
        cells=tuple(value for row in board for value in row),
        score=score,
        status=status,
        config=config,
        rng_state=rng.getstate(),
    )


def new_game(config: Optional[GameConfig] = None, **settings) -> GameState:
    """
    Initializes a new game with two random tiles.
    Args:
        config (Optional[GameConfig]): Game settings. Defaults to a 4x4 game won at 2048.
        **settings: Individual GameConfig fields overriding config, e.g. rng_seed=7.
    Returns:
        GameState: The initial state with score 0 and status IN_PROGRESS.
    Raises:
        ConfigurationError: If the settings describe an unplayable game.
    """
    config = replace(config or GameConfig(), **settings)
    config.validate()

    rng = random.Random(config.rng_seed)
    cells: Cells = (EMPTY,) * (config.grid_size * config.grid_size)

    # Add two initial tiles
    cells, _ = spawn_tile(cells, rng, config.spawn_four_probability)
    cells, _ = spawn_tile(cells, rng, config.spawn_four_probability)

    logger.info(
        "Started %dx%d game (win at %d, seed %r)",
        config.grid_size, config.grid_size, config.win_threshold, config.rng_seed,
    )
    return GameState(cells=cells, config=config, rng_state=rng.getstate())


# --- Line Manipulation (Core Move Logic Helpers) ---

def merge_line(values: Sequence[int]) -> Tuple[List[int], int]:
    """
    Slides and merges a single line towards index 0.

    A tile produced by a merge cannot merge again during the same move, so
    [2, 2, 2, 2] becomes [4, 4, 0, 0] and not [8, 0, 0, 0].
    Args:
        values (Sequence[int]): The line, destination edge first.
    Returns:
        Tuple[List[int], int]: The processed line and the score gained from merges.
    """
    merged_line: List[int] = []
    score_increase = 0
    top_was_merged = False

    for value in values:
        if value == EMPTY:
            continue
        if merged_line and merged_line[-1] == value and not top_was_merged:
            merged_value = value * 2
            merged_line[-1] = merged_value
            score_increase += merged_value
            top_was_merged = True
        else:
            merged_line.append(value)
            top_was_merged = False

    merged_line += [EMPTY] * (len(values) - len(merged_line))
    return merged_line, score_increase


@lru_cache(maxsize=None)
def line_indices(size: int, direction: Direction) -> Tuple[Tuple[int, ...], ...]:
    """
    Flat indices of every line of the grid for a move in the given direction.
    Each line is ordered from the edge the tiles slide towards.
    Raises:
        ValueError: If an invalid direction is specified.
    """
    lines = []
    for fixed in range(size):
        if direction is Direction.LEFT:
            line = [fixed * size + col for col in range(size)]
        elif direction is Direction.RIGHT:
            line = [fixed * size + col for col in reversed(range(size))]
        elif direction is Direction.UP:
            line = [row * size + fixed for row in range(size)]
        elif direction is Direction.DOWN:
            line = [row * size + fixed for row in reversed(range(size))]
        else:
            raise ValueError("Invalid direction specified for line_indices.")
        lines.append(tuple(line))
    return tuple(lines)


# --- Core Game Move Processing ---

def slide_cells(cells: Sequence[int], size: int, direction: Direction) -> Tuple[Cells, int]:
    """
    Slides and merges every line of the grid, without spawning.
    Args:
        cells (Sequence[int]): Flat, row-major grid.
        size (int): Dimension of the grid.
        direction (Direction): The direction to move.
    Returns:
        Tuple[Cells, int]: The candidate cells and the score gained from this move.
    """
    new_cells = list(cells)
    total_score_increase = 0
    for line in line_indices(size, direction):
        processed_line, score_from_line = merge_line([cells[index] for index in line])
        for index, value in zip(line, processed_line):
            new_cells[index] = value
        total_score_increase += score_from_line
    return tuple(new_cells), total_score_increase


def determine_game_status(
    cells: Sequence[int],
    size: int,
    win_threshold: int = DEFAULT_WIN_THRESHOLD,
    previous_status: GameStatus = GameStatus.IN_PROGRESS,
) -> GameStatus:
    """
    Determines the progress state of the game based on the grid.
    Args:
        cells (Sequence[int]): Flat, row-major grid.
        size (int): Dimension of the grid.
        win_threshold (int): The tile value that signifies a win. Default is 2048.
        previous_status (GameStatus): Status before the grid was reached; WON is kept.
    Returns:
        GameStatus: The current state (IN_PROGRESS, WON, LOST).
    """
    if previous_status is GameStatus.WON or max(cells) >= win_threshold:
        return GameStatus.WON
    if not is_any_move_possible(cells, size):
        return GameStatus.LOST
    return GameStatus.IN_PROGRESS


def _restore_rng(state: GameState) -> random.Random:
    rng = random.Random()
    if state.rng_state is not None:
        rng.setstate(state.rng_state)
    return rng


def apply_move(state: GameState, direction) -> Tuple[GameState, bool]:
    """
    Applies a move: slide and merge, then spawn a tile and update the status.
    Args:
        state (GameState): The current game state.
        direction (Direction): The direction to move, or its name.
    Returns:
        Tuple[GameState, bool]:
            - The state after the move; the same object if nothing changed.
            - A boolean indicating if the move changed the grid.
    Raises:
        ValueError: If an invalid direction is specified.
    """
    direction = Direction(direction)

    if state.is_terminal:
        logger.debug("Ignoring %s: game is already %s", direction.name, state.status.name)
        return state, False

    candidate, score_gained = slide_cells(state.cells, state.size, direction)
    if candidate == state.cells:
        logger.debug("Move %s did not change the grid", direction.name)
        return state, False

    rng = _restore_rng(state)
    next_cells, spawned_at = spawn_tile(candidate, rng, state.config.spawn_four_probability)
    status = determine_game_status(next_cells, state.size, state.config.win_threshold, state.status)

    logger.debug(
        "Move %s gained %d, spawned %d at %r",
        direction.name, score_gained, next_cells[spawned_at], divmod(spawned_at, state.size),
    )
    if status is not state.status:
        logger.info("Game is now %s with score %d", status.name, state.score + score_gained)

    next_state = replace(
        state,
        cells=next_cells,
        score=state.score + score_gained,
        status=status,
        rng_state=rng.getstate(),
    )
    return next_state, True
