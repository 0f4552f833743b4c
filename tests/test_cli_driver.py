"""
Tests for the terminal front end.
"""

import pytest

import cli_driver
from engine import new_game, state_from_board


def _scripted_input(monkeypatch, keys):
    answers = iter(keys)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))


class TestDisplay:
    """Tests for display_board_state."""

    def test_shows_score_status_and_grid(self, capsys):
        state = state_from_board([[2, 0], [0, 4]], score=8)

        cli_driver.display_board_state(state)
        out = capsys.readouterr().out

        assert "Score: 8" in out
        assert "Status: IN_PROGRESS" in out
        assert "2\t." in out
        assert ".\t4" in out

    def test_shows_game_over(self, capsys):
        state = state_from_board([[2, 4], [4, 2]], status="LOST")
        cli_driver.display_board_state(state)
        assert "GAME OVER!" in capsys.readouterr().out


class TestMain:
    """Tests for the interactive loop."""

    def test_quit(self, monkeypatch, capsys):
        _scripted_input(monkeypatch, ["q"])
        cli_driver.main(["--seed", "3"])
        out = capsys.readouterr().out

        assert "Quitting game." in out
        assert "--- Final Board State ---" in out

    def test_invalid_key_is_reported(self, monkeypatch, capsys):
        _scripted_input(monkeypatch, ["x", "Q"])
        cli_driver.main(["--seed", "3"])
        assert "Invalid input. Use W, A, S, D." in capsys.readouterr().out

    def test_moves_update_board(self, monkeypatch, capsys):
        _scripted_input(monkeypatch, ["a", "w", "d", "s", "Q"])
        cli_driver.main(["--seed", "3", "--size", "3", "--win-tile", "1024"])
        out = capsys.readouterr().out

        assert out.count("Score:") >= 6

    def test_same_seed_same_opening(self, monkeypatch, capsys):
        _scripted_input(monkeypatch, ["Q"])
        cli_driver.main(["--seed", "21"])
        out = capsys.readouterr().out

        expected = new_game(rng_seed=21)
        first_row = "\t".join(str(v) if v else "." for v in expected.grid[0])
        assert first_row in out

    def test_bad_config_exits(self, monkeypatch):
        _scripted_input(monkeypatch, ["Q"])
        with pytest.raises(SystemExit):
            cli_driver.main(["--win-tile", "100"])
