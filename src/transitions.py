# transitions.py
# Per-tile bookkeeping for front ends that animate moves. The engine itself
# only deals in values; this module reconstructs where each tile came from.

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from engine import EMPTY, Direction, GameState, line_indices

Position = Tuple[int, int]


class TransitionKind(Enum):
    """How a tile reached its cell during a move."""
    HOLD = "HOLD"
    MOVED = "MOVED"
    MERGED = "MERGED"
    APPEARED = "APPEARED"


@dataclass(frozen=True)
class TileTransition:
    """
    One tile of the grid after a move.
    Attributes:
        kind (TransitionKind): Whether the tile stayed, slid, merged or spawned.
        value (int): Value of the tile at its destination.
        destination (Position): (row, col) after the move.
        sources (Tuple[Position, ...]): Cells the tile came from; two for a merge, none for a spawn.
    """
    kind: TransitionKind
    value: int
    destination: Position
    sources: Tuple[Position, ...] = ()


def _slide_with_sources(before: GameState, direction: Direction) -> List[TileTransition]:
    size = before.size
    transitions = []
    for line in line_indices(size, direction):
        # (value, source indices, produced by a merge)
        slots: List[Tuple[int, List[int], bool]] = []
        for index in line:
            value = before.cells[index]
            if value == EMPTY:
                continue
            if slots and slots[-1][0] == value and not slots[-1][2]:
                slots[-1] = (value * 2, slots[-1][1] + [index], True)
            else:
                slots.append((value, [index], False))

        for destination, (value, sources, merged) in zip(line, slots):
            if merged:
                kind = TransitionKind.MERGED
            elif sources[0] == destination:
                kind = TransitionKind.HOLD
            else:
                kind = TransitionKind.MOVED
            transitions.append(TileTransition(
                kind=kind,
                value=value,
                destination=divmod(destination, size),
                sources=tuple(divmod(source, size) for source in sources),
            ))
    return transitions


def spawned_cell(before: GameState, after: GameState, direction) -> Optional[Position]:
    """
    Finds the tile that apply_move spawned when moving from before to after.
    Returns:
        Optional[Position]: (row, col) of the new tile, None if the move had no effect.
    """
    direction = Direction(direction)
    if before.cells == after.cells:
        return None
    return _find_spawn(after, _slide_with_sources(before, direction))


def _find_spawn(after: GameState, slid: List[TileTransition]) -> Optional[Position]:
    occupied = {transition.destination for transition in slid}
    for index, value in enumerate(after.cells):
        position = divmod(index, after.size)
        if value != EMPTY and position not in occupied:
            return position
    return None


def trace_move(before: GameState, after: GameState, direction) -> List[TileTransition]:
    """
    Describes how every tile in after got there from before.
    Args:
        before (GameState): State passed to apply_move.
        after (GameState): State returned by apply_move.
        direction (Direction): The direction that was applied.
    Returns:
        List[TileTransition]: One entry per tile of after, empty if the move had no effect.
    """
    direction = Direction(direction)
    if before.cells == after.cells:
        return []

    transitions = _slide_with_sources(before, direction)
    spawn = _find_spawn(after, transitions)
    if spawn is not None:
        transitions.append(TileTransition(
            kind=TransitionKind.APPEARED,
            value=after.cell(*spawn),
            destination=spawn,
        ))
    return transitions
