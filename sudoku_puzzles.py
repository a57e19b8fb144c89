"""
Console front end for the Sudoku puzzle engine.

Default mode generates a random solution, carves a unique-solution puzzle from
it, prints the puzzle, waits for ENTER and prints the solution. ``--solve``
reads a board from the terminal and reports how many solutions it has.

Examples:

    python sudoku_puzzles.py --order 9 --seed 2024
    python sudoku_puzzles.py --order 16 --max-empty 130 --no-wait
    python sudoku_puzzles.py --solve --order 4
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Callable, List, Optional, Sequence

from loguru import logger

from sudoku_engine import (
    DEFAULT_MAX_EMPTY,
    SUPPORTED_ORDERS,
    Board,
    EngineConfig,
    GenerationError,
    SearchStats,
    SudokuConfigError,
    SudokuError,
    box_size,
    check_order,
    create_puzzle,
    solve,
)

EXIT_OK = 0
EXIT_GENERATION_FAILED = 1
EXIT_BAD_INPUT = 2

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def format_board(board: Sequence[Sequence[int]]) -> str:
    """Render a board as a table with separators between boxes."""

    size = len(board)
    base = box_size(board)
    rule = "---" * (size + base - 1)

    lines: List[str] = []
    for y, row in enumerate(board):
        if y % base == 0 and y > 0:
            lines.append(rule)

        line = ""
        for x, value in enumerate(row):
            if x % base == 0 and x > 0:
                line += "  |"
            line += f"{value:3d}"
        lines.append(line)

    return "\n".join(lines)


def read_board(
    order: int,
    input_fn: Optional[Callable[[str], str]] = None,
    output_fn: Optional[Callable[[str], None]] = None,
) -> Board:
    """
    Read a board from the terminal, one row per line.

    Rows hold ``order`` integers separated by spaces, 0 for an empty cell.
    Malformed rows are asked for again.
    """
    input_fn = input_fn or input
    output_fn = output_fn or print
    output_fn(
        f"Enter the board: {order} rows of {order} numbers separated by spaces, 0 for empty cells."
    )
    board: Board = []
    for index in range(order):
        while True:
            tokens = input_fn(f"Row {index + 1}: ").strip().split()
            if len(tokens) != order:
                output_fn(f"Error: each row must contain {order} numbers, try again.")
                continue
            try:
                row = [int(token) for token in tokens]
            except ValueError:
                output_fn("Error: please enter whole numbers only, try again.")
                continue
            if any(value < 0 or value > order for value in row):
                output_fn(f"Error: numbers must be between 0 and {order}, try again.")
                continue
            board.append(row)
            break
    return board


def seed_from_env() -> Optional[int]:
    value = os.getenv("SUDOKU_SEED")
    if not value:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise SudokuConfigError(f"SUDOKU_SEED must be an integer, got {value!r}.") from exc


def configure_logging(level: str) -> None:
    level = level.upper()
    if level not in LOG_LEVELS:
        raise SudokuConfigError(
            f"Unknown log level {level!r} (choose one of {', '.join(LOG_LEVELS)})."
        )
    logger.remove()
    logger.add(sys.stderr, level=level)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate Sudoku puzzles with a unique solution, or solve a board."
    )
    parser.add_argument(
        "--order",
        type=int,
        default=9,
        help=f"Board order, one of {', '.join(map(str, SUPPORTED_ORDERS))} (default: 9).",
    )
    parser.add_argument(
        "--max-empty",
        type=int,
        default=None,
        help=(
            "Maximum number of cells to empty when carving the puzzle "
            f"(default: {DEFAULT_MAX_EMPTY[4]}/{DEFAULT_MAX_EMPTY[9]}/{DEFAULT_MAX_EMPTY[16]} "
            "for orders 4/9/16)."
        ),
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible puzzles (default: $SUDOKU_SEED or unseeded).",
    )
    parser.add_argument(
        "--solve",
        action="store_true",
        help="Read a board from the terminal and count its solutions instead of generating.",
    )
    parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Print the solution right away instead of waiting for ENTER.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.getenv("SUDOKU_LOG_LEVEL", "WARNING"),
        help="Log level for stderr output (default: $SUDOKU_LOG_LEVEL or WARNING).",
    )
    return parser.parse_args(argv)


def run_generate(args: argparse.Namespace) -> int:
    config = EngineConfig.for_order(args.order, max_empty=args.max_empty, seed=args.seed)
    stats = SearchStats()

    logger.info(
        "Generating {order}x{order} puzzle (max_empty={max_empty}, seed={seed})",
        order=config.order,
        max_empty=config.max_empty,
        seed=config.seed,
    )
    puzzle, solution, emptied = create_puzzle(config, stats=stats)
    logger.debug(
        "Search finished: placements={placements} solver_calls={calls}",
        placements=stats.placements,
        calls=stats.solver_calls,
    )

    print(format_board(puzzle))
    print("\n")
    print(
        f"There are {config.order * config.order - emptied} cells already filled in on this Sudoku board."
    )
    if not args.no_wait:
        input("Press ENTER to display the solution.")

    print(format_board(solution))
    print("\n")
    return EXIT_OK


def run_solve(args: argparse.Namespace) -> int:
    check_order(args.order)
    board = read_board(args.order)
    stats = SearchStats()
    count, solution = solve(board, limit=2, stats=stats)
    logger.debug("Solver placements={placements}", placements=stats.placements)

    if count == 0:
        print("✗ This board has no solution.")
        return EXIT_OK

    if count == 1:
        print("✓ This board has a unique solution:")
    else:
        print("⚠️ This board has more than one solution; one of them:")
    print(format_board(solution))
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    try:
        configure_logging(args.log_level)
        if args.seed is None:
            args.seed = seed_from_env()
        if args.solve:
            return run_solve(args)
        return run_generate(args)
    except GenerationError as exc:
        logger.error("Puzzle generation failed: {}", exc)
        return EXIT_GENERATION_FAILED
    except SudokuError as exc:
        logger.error("Invalid input: {}", exc)
        return EXIT_BAD_INPUT


if __name__ == "__main__":
    sys.exit(main())
