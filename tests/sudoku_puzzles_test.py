import pytest

import sudoku_puzzles
from sudoku_engine import GenerationError
from sudoku_puzzles import (
    EXIT_BAD_INPUT,
    EXIT_GENERATION_FAILED,
    EXIT_OK,
    format_board,
    main,
    read_board,
)


def scripted_input(lines):
    replies = iter(lines)
    return lambda prompt="": next(replies)


# ---------- Rendering ----------


def test_format_board_4x4_layout(solution_4x4):
    lines = format_board(solution_4x4).splitlines()

    assert lines == [
        "  1  2  |  3  4",
        "  3  4  |  1  2",
        "-" * 15,
        "  2  1  |  4  3",
        "  4  3  |  2  1",
    ]


def test_format_board_9x9_has_box_rules():
    board = [[0] * 9 for _ in range(9)]
    board[4][4] = 7

    lines = format_board(board).splitlines()

    assert len(lines) == 11
    assert lines[3] == "-" * 33
    assert lines[7] == "-" * 33
    assert lines[5].count("|") == 2
    assert "  7" in lines[5]


# ---------- Terminal input ----------


def test_read_board_reprompts_on_bad_rows():
    messages = []
    lines = [
        "1 2 3",
        "1 2 x 4",
        "1 2 3 9",
        "1 2 3 4",
        "3 4 1 2",
        "0 0 0 0",
        "4 3 2 1",
    ]

    board = read_board(4, input_fn=scripted_input(lines), output_fn=messages.append)

    assert board == [[1, 2, 3, 4], [3, 4, 1, 2], [0, 0, 0, 0], [4, 3, 2, 1]]
    errors = [message for message in messages if message.startswith("Error")]
    assert len(errors) == 3


# ---------- Entry point ----------


def test_main_generates_puzzle_without_waiting(capsys):
    assert main(["--order", "4", "--seed", "7", "--no-wait"]) == EXIT_OK

    out = capsys.readouterr().out
    assert "cells already filled in on this Sudoku board." in out
    assert out.count("  |") == 8


def test_main_waits_for_enter(monkeypatch, capsys):
    prompts = []
    monkeypatch.setattr("builtins.input", lambda prompt="": prompts.append(prompt) or "")

    assert main(["--order", "4", "--seed", "1"]) == EXIT_OK
    assert prompts == ["Press ENTER to display the solution."]


def test_main_seed_from_environment(monkeypatch, capsys):
    monkeypatch.setenv("SUDOKU_SEED", "123")
    main(["--order", "4", "--no-wait"])
    first = capsys.readouterr().out

    main(["--order", "4", "--no-wait"])
    second = capsys.readouterr().out

    assert first == second


@pytest.mark.parametrize(
    "argv",
    [
        ["--order", "5", "--no-wait"],
        ["--order", "25", "--no-wait"],
        ["--order", "9", "--max-empty", "-1", "--no-wait"],
        ["--solve", "--order", "8"],
    ],
)
def test_main_reports_bad_configuration(argv):
    assert main(argv) == EXIT_BAD_INPUT


def test_main_reports_generation_failure(monkeypatch):
    def failing_create_puzzle(config, stats=None):
        raise GenerationError("no filling found")

    monkeypatch.setattr(sudoku_puzzles, "create_puzzle", failing_create_puzzle)

    assert main(["--order", "4", "--no-wait"]) == EXIT_GENERATION_FAILED


def test_main_solve_unique_board(monkeypatch, capsys):
    rows = ["0 2 3 4", "3 4 1 2", "2 1 4 3", "4 3 2 1"]
    monkeypatch.setattr("builtins.input", scripted_input(rows))

    assert main(["--solve", "--order", "4"]) == EXIT_OK

    out = capsys.readouterr().out
    assert "unique solution" in out
    assert "  1  2  |  3  4" in out


def test_main_solve_ambiguous_board(monkeypatch, capsys):
    rows = ["0 0 0 0"] * 4
    monkeypatch.setattr("builtins.input", scripted_input(rows))

    assert main(["--solve", "--order", "4"]) == EXIT_OK
    assert "more than one solution" in capsys.readouterr().out


def test_main_solve_rejects_duplicates(monkeypatch):
    rows = ["1 1 0 0", "0 0 0 0", "0 0 0 0", "0 0 0 0"]
    monkeypatch.setattr("builtins.input", scripted_input(rows))

    assert main(["--solve", "--order", "4"]) == EXIT_BAD_INPUT


def test_main_rejects_non_integer_seed_from_environment(monkeypatch):
    monkeypatch.setenv("SUDOKU_SEED", "abc")

    assert main(["--order", "4", "--no-wait"]) == EXIT_BAD_INPUT


def test_main_seed_flag_overrides_environment(monkeypatch, capsys):
    monkeypatch.setenv("SUDOKU_SEED", "abc")

    assert main(["--order", "4", "--seed", "3", "--no-wait"]) == EXIT_OK


def test_main_rejects_unknown_log_level_flag():
    with pytest.raises(SystemExit) as excinfo:
        main(["--order", "4", "--no-wait", "--log-level", "loud"])

    assert excinfo.value.code == EXIT_BAD_INPUT


def test_main_rejects_unknown_log_level_from_environment(monkeypatch):
    monkeypatch.setenv("SUDOKU_LOG_LEVEL", "loud")

    assert main(["--order", "4", "--no-wait"]) == EXIT_BAD_INPUT


def test_main_accepts_lowercase_log_level(capsys):
    assert main(["--order", "4", "--seed", "2", "--no-wait", "--log-level", "debug"]) == EXIT_OK
