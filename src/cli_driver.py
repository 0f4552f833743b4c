# cli_driver.py
# This file is intended to be run to play or test the 2048 game on the CLI

import argparse
import logging
from typing import List, Optional

import settings
from engine import (
    ConfigurationError,
    Direction,
    GameConfig,
    GameState,
    GameStatus,
    apply_move,
    new_game,
)

logger = logging.getLogger(__name__)

DIRECTION_MAP = {'W': Direction.UP, 'A': Direction.LEFT, 'S': Direction.DOWN, 'D': Direction.RIGHT}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play 2048 in the terminal.")
    parser.add_argument("--size", type=int, default=settings.GRID_SIZE, help="Dimension N of the N x N board.")
    # For testing, can be set lower e.g. 32 or 64
    parser.add_argument("--win-tile", type=int, default=settings.WIN_TILE, help="Tile value that wins the game.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible games.")
    parser.add_argument("--keep-playing", action="store_true", help="Keep playing after reaching the win tile.")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="Logging level, e.g. DEBUG.")
    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)
    settings.configure_logging(args.log_level)

    config = GameConfig(
        grid_size=args.size,
        win_threshold=args.win_tile,
        rng_seed=args.seed,
        continue_after_win=args.keep_playing,
    )

    # 1. Initialize game
    try:
        state = new_game(config)
    except ConfigurationError as e:
        parser.error(str(e))
    display_board_state(state)

    # 2. Game Loop
    while not state.is_terminal:
        move_input = input("Enter move (W/A/S/D for Up/Left/Down/Right, Q to quit): ").strip().upper()

        if move_input == 'Q':
            print("Quitting game.")
            break

        chosen_direction = DIRECTION_MAP.get(move_input)
        if not chosen_direction:
            print("Invalid input. Use W, A, S, D.")
            continue

        # 3. Process the move; spawning and status are handled by the engine
        previous_status = state.status
        state, move_was_made = apply_move(state, chosen_direction)

        if not move_was_made:
            print("Move did not change the board. Try a different direction.")
        elif state.status is GameStatus.WON and previous_status is not GameStatus.WON:
            print(f"You reached {state.config.win_threshold}!")

        display_board_state(state)

    # 4. Game Ended
    print("\n--- Final Board State ---")
    display_board_state(state)
    if state.status is GameStatus.WON:
        print("Congratulations! You reached the 2048 tile (or configured win tile)!")
    elif state.status is GameStatus.LOST:
        print("No more moves possible. Better luck next time!")
    logger.info("Game finished: %s with score %d", state.status.name, state.score)


# --- Display Function (Example of external usage) ---
def display_board_state(state: GameState):
    """Prints the board, score, and game status to the console."""
    print(f"\nScore: {state.score}")
    status_message = {
        GameStatus.IN_PROGRESS: f"Status: {state.status.name}",
        GameStatus.WON: "YOU WON!",
        GameStatus.LOST: "GAME OVER!"
    }
    print(status_message[state.status])

    for row in state.grid:
        print("\t".join(str(value) if value else "." for value in row))
    print("-" * (state.size * 6))  # Adjust width based on board size


if __name__ == "__main__":
    main()
