"""
Tests for per-tile move tracing.
"""

from engine import Direction, apply_move
from transitions import TileTransition, TransitionKind, spawned_cell, trace_move


class TestTraceMove:
    """Tests for trace_move."""

    def test_merge_and_move(self, make_state):
        """Merged tiles list both sources, slid tiles list their origin."""
        board = [[2, 2, 0, 4], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
        before = make_state(board)
        after, moved = apply_move(before, Direction.LEFT)
        assert moved

        result = trace_move(before, after, Direction.LEFT)

        assert result[0] == TileTransition(
            kind=TransitionKind.MERGED, value=4, destination=(0, 0), sources=((0, 0), (0, 1)),
        )
        assert result[1] == TileTransition(
            kind=TransitionKind.MOVED, value=4, destination=(0, 1), sources=((0, 3),),
        )
        appeared = result[2]
        assert appeared.kind is TransitionKind.APPEARED
        assert appeared.sources == ()
        assert appeared.destination not in ((0, 0), (0, 1))
        assert appeared.value == after.cell(*appeared.destination)
        assert len(result) == 3

    def test_hold_and_move(self, make_state):
        board = [[2, 0, 0, 0], [0, 0, 0, 2], [0, 0, 0, 0], [0, 0, 0, 0]]
        before = make_state(board)
        after, _ = apply_move(before, Direction.LEFT)

        kinds = {t.destination: t.kind for t in trace_move(before, after, Direction.LEFT)}

        assert kinds[(0, 0)] is TransitionKind.HOLD
        assert kinds[(1, 0)] is TransitionKind.MOVED

    def test_every_tile_is_accounted_for(self, make_state, mixed_board):
        before = make_state(mixed_board)
        for direction in Direction:
            after, _ = apply_move(before, direction)
            result = trace_move(before, after, direction)
            destinations = {t.destination for t in result}
            occupied = {divmod(i, after.size) for i, v in enumerate(after.cells) if v}
            assert destinations == occupied
            for transition in result:
                assert after.cell(*transition.destination) == transition.value

    def test_no_effect_move_has_no_transitions(self, make_state):
        board = [[2, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
        state = make_state(board)
        after, moved = apply_move(state, Direction.LEFT)

        assert not moved
        assert trace_move(state, after, Direction.LEFT) == []
        assert spawned_cell(state, after, Direction.LEFT) is None


class TestSpawnedCell:
    """Tests for locating the spawned tile."""

    def test_spawned_cell_matches_appeared_transition(self, make_state):
        board = [[0, 0, 2, 2], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
        before = make_state(board)
        after, _ = apply_move(before, "RIGHT")

        position = spawned_cell(before, after, "RIGHT")
        appeared = [t for t in trace_move(before, after, "RIGHT") if t.kind is TransitionKind.APPEARED]

        assert position is not None
        assert position != (0, 3)
        assert [t.destination for t in appeared] == [position]
