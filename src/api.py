import logging
from typing import List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import engine
import settings
import transitions

settings.configure_logging()
logger = logging.getLogger(__name__)

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="2048 Game API",
    description="A stateless API for playing the 2048 game. "\
                "Manage your game state (board, score, status, settings) on the client side.",
    version="1.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Pydantic Models for API requests and responses ---

class NewGameSettings(BaseModel):
    """Settings for creating a new game."""
    size: int = Field(
        default=settings.GRID_SIZE,
        gt=1,  # Board size must be at least 2x2
        description="Size of the N x N game board (e.g., 4 for a 4x4 board)."
    )
    win_tile: int = Field(
        default=settings.WIN_TILE,
        gt=0,
        description="The tile value to achieve for winning the game (a power of two, e.g. 2048)."
    )
    spawn_four_probability: float = Field(
        default=engine.DEFAULT_SPAWN_FOUR_PROBABILITY,
        ge=0.0,
        le=1.0,
        description="Probability that a newly spawned tile is a 4 rather than a 2."
    )
    continue_after_win: bool = Field(
        default=False,
        description="Keep accepting moves after the win tile is reached."
    )
    seed: Optional[int] = Field(
        default=None,
        description="Optional seed for reproducible tile spawns."
    )

class GameStateData(BaseModel):
    """Represents the complete state of a game instance."""
    board: List[List[int]] = Field(..., description="The N x N game board, represented as a list of lists.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    status: engine.GameStatus = Field(
        ...,
        description="Current progress state of the game (IN_PROGRESS, WON, LOST)."
    )
    win_tile: int = Field(..., gt=0, description="The tile value required to win this game instance.")
    board_size: int = Field(..., gt=0, description="The dimension N of the N x N board.")
    spawn_four_probability: float = Field(..., ge=0.0, le=1.0, description="Chance of spawning a 4.")
    continue_after_win: bool = Field(..., description="Whether moves are accepted after winning.")
    max_tile: int = Field(..., ge=0, description="Largest tile currently on the board.")


class MoveRequestData(BaseModel):
    """Data required to make a move."""
    board: List[List[int]] = Field(..., description="Current N x N game board state before the move.")
    score: int = Field(..., ge=0, description="Current score before the move.")
    status: engine.GameStatus = Field(
        default=engine.GameStatus.IN_PROGRESS,
        description="Progress state returned by the previous call."
    )
    direction: engine.Direction = Field(
        ...,
        description="Direction of the move (UP, DOWN, LEFT, RIGHT)."
    )
    win_tile: int = Field(default=settings.WIN_TILE, gt=0, description="The win condition tile for this game instance.")
    spawn_four_probability: float = Field(
        default=engine.DEFAULT_SPAWN_FOUR_PROBABILITY,
        ge=0.0,
        le=1.0,
        description="Probability that the spawned tile is a 4."
    )
    continue_after_win: bool = Field(default=False, description="Keep accepting moves after winning.")
    seed: Optional[int] = Field(default=None, description="Optional seed for the tile spawned by this move.")
    # board_size is implicitly derived from the board structure.

class TileTransitionData(BaseModel):
    """Where a tile on the new board came from."""
    kind: transitions.TransitionKind
    value: int
    destination: Tuple[int, int]
    sources: List[Tuple[int, int]] = Field(default_factory=list)

class MoveResponseData(GameStateData):
    """Response after a move, including the new game state and move effectiveness."""
    move_was_effective: bool = Field(
        ...,
        description="True if the move resulted in a change to the board state, False otherwise."
    )
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g., if a move was not effective or the game ended."
    )
    transitions: List[TileTransitionData] = Field(
        default_factory=list,
        description="Per-tile movements, merges and the spawned tile, for animating the move."
    )


def _state_fields(state: engine.GameState) -> dict:
    return dict(
        board=state.grid,
        score=state.score,
        status=state.status,
        win_tile=state.config.win_threshold,
        board_size=state.size,
        spawn_four_probability=state.config.spawn_four_probability,
        continue_after_win=state.config.continue_after_win,
        max_tile=state.max_tile,
    )

# --- API Endpoints ---

@app.post("/game/new", response_model=GameStateData, summary="Start a New 2048 Game")
@limiter.limit(settings.RATE_LIMIT)
async def start_new_game(request: Request, new_game_settings: NewGameSettings):
    """
    Initializes a new 2048 game based on the provided settings.

    - **size**: Dimension of the N x N board (e.g., 4 for 4x4). Default is 4.
    - **win_tile**: Tile value to reach to win (a power of two). Default is 2048.
    - **spawn_four_probability**: Chance of spawning a 4. Default is 0.1.
    - **continue_after_win**: Keep playing after winning. Default is false.
    - **seed**: Optional seed for reproducible games.

    Returns the initial game state, including the board with two random tiles,
    score (0), progress status (IN_PROGRESS), and the game settings.
    """
    try:
        config = engine.GameConfig(
            grid_size=new_game_settings.size,
            win_threshold=new_game_settings.win_tile,
            spawn_four_probability=new_game_settings.spawn_four_probability,
            rng_seed=new_game_settings.seed,
            continue_after_win=new_game_settings.continue_after_win,
        )
        state = engine.new_game(config)
        return GameStateData(**_state_fields(state))
    except ValueError as e:
        # Handle configuration errors from engine.new_game (e.g., win tile not a power of two)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Unexpected error in /game/new")
        raise HTTPException(status_code=500, detail=f"An unexpected error occurred during game creation: {str(e)}")


@app.post("/game/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit(settings.RATE_LIMIT)
async def make_move(request: Request, request_data: MoveRequestData):
    """
    Processes a player's move in the game.

    Requires the current `board` state, `score`, `status`, the `direction` of the move,
    and the settings of this game instance.

    The API will:
    1. Attempt to process the move (slide tiles, merge).
    2. If the move changed the board, add a new random tile (2 or 4).
    3. Determine the new game status (IN_PROGRESS, WON, LOST).

    Returns the updated game state, whether the move was effective, an optional message,
    and the tile transitions of the move.

    A move that does not change the board returns the submitted status unchanged; the status
    is only re-evaluated after an effective move, so a blocked board sent as IN_PROGRESS stays so.
    """
    try:
        config = engine.GameConfig(
            win_threshold=request_data.win_tile,
            spawn_four_probability=request_data.spawn_four_probability,
            rng_seed=request_data.seed,
            continue_after_win=request_data.continue_after_win,
        )
        current_state = engine.state_from_board(
            request_data.board,
            score=request_data.score,
            status=request_data.status,
            config=config,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid game state in request: {str(e)}")

    try:
        next_state, move_was_effective = engine.apply_move(current_state, request_data.direction)
        move_transitions = transitions.trace_move(current_state, next_state, request_data.direction)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Error processing move: {str(e)}")
    except Exception as e:
        logger.exception("Unexpected error in /game/move")
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred while processing the move: {str(e)}")

    message_for_client: Optional[str] = None
    if current_state.is_terminal:
        message_for_client = "Game has already ended; start a new game to keep playing."
    elif not move_was_effective:
        message_for_client = "Move was not effective; board state unchanged by slide."
    elif next_state.status is engine.GameStatus.WON and current_state.status is not engine.GameStatus.WON:
        message_for_client = "Congratulations! You won!"
    elif next_state.status is engine.GameStatus.LOST:
        message_for_client = "Game Over. No more valid moves."

    return MoveResponseData(
        **_state_fields(next_state),
        move_was_effective=move_was_effective,
        message=message_for_client,
        transitions=[
            TileTransitionData(
                kind=transition.kind,
                value=transition.value,
                destination=transition.destination,
                sources=list(transition.sources),
            )
            for transition in move_transitions
        ],
    )
