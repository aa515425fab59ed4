"""
Controller CLI Test Suite

Covers argument handling, error reporting and printed output of controller.main.
"""

import logging

import pytest

from controller import build_parser, main


class TestArguments:

    def test_no_board_exits_nonzero(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code != 0
        assert "usage" in capsys.readouterr().err

    def test_two_positionals_exit_nonzero(self):
        with pytest.raises(SystemExit) as exc:
            main(["123456789ABCDEFGHI__", "extra"])
        assert exc.value.code != 0

    def test_defaults_follow_params(self):
        args = build_parser().parse_args(["_" * 20])
        assert args.sims == 5
        assert args.depth == 1
        assert args.card is None


class TestErrors:

    def test_short_board(self, capsys):
        assert main(["123"]) == 1
        assert "20 chars" in capsys.readouterr().err

    def test_bad_char(self, capsys):
        assert main(["123a________________"]) == 1
        assert "bad char" in capsys.readouterr().err

    def test_duplicate_card(self, capsys):
        assert main(["11__________________"]) == 1
        assert "more copies" in capsys.readouterr().err

    def test_bad_sims(self, capsys):
        assert main(["_" * 20, "--sims", "0"]) == 1
        assert "sims" in capsys.readouterr().err


class TestOutput:

    def test_full_board(self, capsys):
        assert main(["123456789ABCDEFGHIJK"]) == 0
        assert "EV = 300.000" in capsys.readouterr().out

    def test_one_hole(self, capsys):
        assert main(["123456789ABCDEFGHIJ_"]) == 0
        assert f"EV = {5100 / 21:.3f}" in capsys.readouterr().out

    def test_per_cell_suggestion(self, capsys):
        assert main(["123456789ABCDEFGHI__", "--card", "J", "--depth", "3"]) == 0
        out = capsys.readouterr().out
        assert "Per-cell EV for card J:" in out
        assert "cell  0:  (1)" in out
        assert "Suggested cell: 18" in out

    def test_verbose_seeded(self, capsys):
        assert main(["1___5_____A____F___K", "--depth", "0", "--seed", "4", "-v"]) == 0
        assert "EV = " in capsys.readouterr().out

    def test_card_already_on_board(self, capsys):
        # every 1 is placed; the card is still evaluated against the deck as is
        assert main(["123456789ABCDEFGHI__", "--card", "1"]) == 0
        captured = capsys.readouterr()
        assert "Suggested cell: 19" in captured.out
        assert captured.err == ""

    def test_timing_logged_on_module_logger(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="controller"):
            assert main(["123456789ABCDEFGHIJ_", "--seed", "1"]) == 0
        assert any(r.name == "controller" and r.getMessage().startswith("computed in")
                   for r in caplog.records)
