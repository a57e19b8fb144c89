"""
Sudoku puzzle engine.

Generates complete N x N Sudoku boards with randomized backtracking, carves
them into puzzles that keep exactly one solution, and counts the solutions of
arbitrary boards. Supported orders are 4, 9 and 16.

Cells are addressed as ``(x, y)`` where ``x`` is the column and ``y`` the row;
``board[y][x]`` is the stored value and ``EMPTY`` (0) marks an empty cell.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from loguru import logger

Board = List[List[int]]

EMPTY = 0
SUPPORTED_ORDERS: Tuple[int, ...] = (4, 9, 16)

# Empty-cell caps; order 16 is held near 130 to keep reduction tractable.
DEFAULT_MAX_EMPTY: Dict[int, int] = {4: 15, 9: 81, 16: 130}


class SudokuError(Exception):
    """Base class for errors raised by the engine."""


class SudokuConfigError(SudokuError, ValueError):
    """Raised for an unusable board order or reduction budget."""


class InvalidBoardError(SudokuError, ValueError):
    """Raised when a supplied board breaks the shape or Sudoku rules."""


class GenerationError(SudokuError, RuntimeError):
    """Raised when the randomized filler exhausts every branch."""


@dataclass
class SearchStats:
    """Counters collected while searching; pass one in to observe the engine."""

    placements: int = 0
    solver_calls: int = 0


@dataclass(frozen=True)
class EngineConfig:
    order: int = 9
    max_empty: int = DEFAULT_MAX_EMPTY[9]
    seed: Optional[int] = None

    @classmethod
    def for_order(
        cls,
        order: int,
        max_empty: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> "EngineConfig":
        check_order(order)
        if max_empty is None:
            max_empty = DEFAULT_MAX_EMPTY[order]
        if max_empty < 0:
            raise SudokuConfigError(f"max_empty must be >= 0, got {max_empty}.")
        return cls(order=order, max_empty=max_empty, seed=seed)

    def rng(self) -> random.Random:
        return random.Random(self.seed)


# ----------------------------------------------------------------------
# Board helpers
# ----------------------------------------------------------------------
def check_order(order: int) -> int:
    """Validate a board order and return its box size."""

    if order <= 0:
        raise SudokuConfigError(f"Board order must be positive, got {order}.")
    base = math.isqrt(order)
    if base * base != order:
        raise SudokuConfigError(
            f"Board order {order} is not a perfect square; cannot form boxes."
        )
    if order not in SUPPORTED_ORDERS:
        raise SudokuConfigError(
            f"Board order {order} is not supported (choose one of {SUPPORTED_ORDERS})."
        )
    return base


def box_size(board: Sequence[Sequence[int]]) -> int:
    return math.isqrt(len(board))


def new_board(order: int) -> Board:
    check_order(order)
    return [[EMPTY] * order for _ in range(order)]


def copy_board(board: Sequence[Sequence[int]]) -> Board:
    return [list(row) for row in board]


def is_complete(board: Sequence[Sequence[int]]) -> bool:
    return all(value != EMPTY for row in board for value in row)


def validate_board(board: Sequence[Sequence[int]]) -> int:
    """
    Check that ``board`` is a well-formed, rule-valid grid.

    Empty cells are allowed. Returns the board order.

    Raises:
        SudokuConfigError: the order is not a supported perfect square.
        InvalidBoardError: wrong shape, out-of-range values or duplicates.
    """
    size = len(board)
    if size == 0:
        raise InvalidBoardError("Sudoku board must not be empty.")
    if any(len(row) != size for row in board):
        raise InvalidBoardError("Sudoku board must be square.")

    base = check_order(size)
    rows = [set() for _ in range(size)]
    cols = [set() for _ in range(size)]
    boxes = [set() for _ in range(size)]

    for y in range(size):
        for x in range(size):
            value = board[y][x]
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidBoardError(
                    f"Cell ({x}, {y}) contains non-integer value {value!r}."
                )
            if value == EMPTY:
                continue
            if not 1 <= value <= size:
                raise InvalidBoardError(
                    f"Cell ({x}, {y}) contains invalid value {value!r} for order {size}."
                )
            box = (y // base) * base + x // base
            if value in rows[y] or value in cols[x] or value in boxes[box]:
                raise InvalidBoardError(
                    f"Duplicate value {value} detected at cell ({x}, {y})."
                )
            rows[y].add(value)
            cols[x].add(value)
            boxes[box].add(value)

    return size


# ----------------------------------------------------------------------
# Candidate evaluation, cell selection, shuffling
# ----------------------------------------------------------------------
def valid_values(board: Sequence[Sequence[int]], x: int, y: int) -> List[int]:
    """Values that can legally be written at column ``x``, row ``y``, ascending."""

    size = len(board)
    base = box_size(board)
    permitted = [True] * (size + 1)
    permitted[EMPTY] = False

    for value in board[y]:
        permitted[value] = False
    for row in board:
        permitted[row[x]] = False

    x_min = (x // base) * base
    y_min = (y // base) * base
    for row in board[y_min:y_min + base]:
        for value in row[x_min:x_min + base]:
            permitted[value] = False

    return [value for value in range(1, size + 1) if permitted[value]]


def candidates(board: Sequence[Sequence[int]], x: int, y: int) -> Set[int]:
    """Set of legal values for the cell at column ``x``, row ``y``."""

    size = len(board)
    if not (0 <= x < size and 0 <= y < size):
        raise InvalidBoardError(f"Cell ({x}, {y}) is outside a {size}x{size} board.")
    return set(valid_values(board, x, y))


def next_empty(board: Sequence[Sequence[int]]) -> Optional[Tuple[int, int]]:
    """
    First empty cell in row-major order.

    Returns:
        tuple: ``(x, y)`` of the cell, or None when the board is full.
    """
    for y, row in enumerate(board):
        for x, value in enumerate(row):
            if value == EMPTY:
                return x, y
    return None


def shuffle_values(values: List, rng: random.Random) -> List:
    """Shuffle ``values`` in place with ``rng`` and return it."""

    rng.shuffle(values)
    return values


# ----------------------------------------------------------------------
# Generation
# ----------------------------------------------------------------------
def fill_board(
    board: Board,
    rng: random.Random,
    stats: Optional[SearchStats] = None,
) -> bool:
    """
    Fill every empty cell of ``board`` with randomized backtracking.

    Returns:
        bool: True when the board has been completed. On False the board is
        back in the state it was passed in.
    """
    cell = next_empty(board)
    if cell is None:
        return True

    x, y = cell
    values = valid_values(board, x, y)
    if not values:
        return False

    for value in shuffle_values(values, rng):
        if stats is not None:
            stats.placements += 1
        board[y][x] = value
        solved = False
        try:
            solved = fill_board(board, rng, stats)
        finally:
            if not solved:
                board[y][x] = EMPTY
        if solved:
            return True

    return False


def generate_solution(
    order: int,
    rng: Optional[random.Random] = None,
    stats: Optional[SearchStats] = None,
) -> Board:
    """Produce a complete, valid board of the given order."""

    check_order(order)
    rng = rng or random.Random()
    board = new_board(order)

    logger.debug("Generating a {order}x{order} solution", order=order)
    if not fill_board(board, rng, stats):
        raise GenerationError(f"Failed to generate a complete {order}x{order} Sudoku solution.")
    return board


# ----------------------------------------------------------------------
# Solution counting
# ----------------------------------------------------------------------
def count_solutions(
    board: Board,
    output: Board,
    limit: Optional[int] = None,
    stats: Optional[SearchStats] = None,
) -> int:
    """
    Count the complete boards reachable from ``board``.

    The first solution found is copied into ``output``. ``board`` is left
    exactly as it was passed in.

    Args:
        board: Partially filled board; searched in place.
        output: Board of the same order receiving the first solution.
        limit: Stop once this many solutions have been found. None counts
            exhaustively.
        stats: Optional counters updated during the search.

    Returns:
        int: Number of solutions, capped at ``limit`` when one is given.
    """
    if limit is not None and limit < 1:
        raise ValueError("limit must be >= 1.")
    return _count(board, output, 0, limit, stats)


def _count(
    board: Board,
    output: Board,
    found: int,
    limit: Optional[int],
    stats: Optional[SearchStats],
) -> int:
    # ``found`` is the number of solutions already seen before this node.
    cell = next_empty(board)
    if cell is None:
        if found == 0:
            for y, row in enumerate(board):
                output[y][:] = row
        return 1

    x, y = cell
    total = 0
    for value in valid_values(board, x, y):
        if stats is not None:
            stats.placements += 1
        board[y][x] = value
        try:
            total += _count(board, output, found + total, limit, stats)
        finally:
            board[y][x] = EMPTY
        if limit is not None and found + total >= limit:
            break

    return total


def solve(
    board: Sequence[Sequence[int]],
    limit: Optional[int] = None,
    stats: Optional[SearchStats] = None,
) -> Tuple[int, Board]:
    """
    Solve an externally supplied board.

    Returns:
        tuple: ``(solution_count, one_solution)``. ``one_solution`` is the first
        completion found, or a copy of the input when there is none.
    """
    validate_board(board)
    work = copy_board(board)
    solution = copy_board(board)
    count = count_solutions(work, solution, limit=limit, stats=stats)
    logger.debug("Solver found {count} solution(s)", count=count)
    return count, solution


# ----------------------------------------------------------------------
# Puzzle reduction
# ----------------------------------------------------------------------
def empty_cells(
    board: Board,
    max_empty: int,
    rng: random.Random,
    stats: Optional[SearchStats] = None,
) -> int:
    """
    Clear cells of ``board`` in random order while the solution stays unique.

    Stops when every cell has been tried or ``max_empty`` cells are empty.

    Returns:
        int: Number of cells that were emptied.
    """
    size = len(board)
    cells = shuffle_values(list(range(size * size)), rng)
    scratch = copy_board(board)
    removed = 0

    for cell_number in cells:
        if removed >= max_empty:
            break

        y, x = divmod(cell_number, size)
        value = board[y][x]
        if value == EMPTY:
            continue
        board[y][x] = EMPTY

        if stats is not None:
            stats.solver_calls += 1
        if count_solutions(board, scratch, limit=2, stats=stats) == 1:
            removed += 1
        else:
            board[y][x] = value

    return removed


def reduce_to_puzzle(
    solution: Sequence[Sequence[int]],
    max_empty: int,
    rng: Optional[random.Random] = None,
    stats: Optional[SearchStats] = None,
) -> Tuple[Board, int]:
    """
    Carve a unique-solution puzzle out of a complete board.

    ``solution`` is copied; the returned puzzle never aliases it.

    Returns:
        tuple: ``(puzzle, emptied_count)``.
    """
    order = validate_board(solution)
    if not is_complete(solution):
        raise InvalidBoardError("Puzzle reduction needs a completely filled board.")
    if max_empty < 0:
        raise SudokuConfigError(f"max_empty must be >= 0, got {max_empty}.")

    rng = rng or random.Random()
    puzzle = copy_board(solution)
    emptied = empty_cells(puzzle, max_empty, rng, stats)

    logger.info(
        "Reduced {order}x{order} board: emptied={emptied} clues={clues} max_empty={max_empty}",
        order=order,
        emptied=emptied,
        clues=order * order - emptied,
        max_empty=max_empty,
    )
    return puzzle, emptied


def create_puzzle(
    config: EngineConfig,
    stats: Optional[SearchStats] = None,
) -> Tuple[Board, Board, int]:
    """
    Generate a solution and carve a puzzle from it with one seeded random source.

    Returns:
        tuple: ``(puzzle, solution, emptied_count)``.
    """
    rng = config.rng()
    solution = generate_solution(config.order, rng=rng, stats=stats)
    puzzle, emptied = reduce_to_puzzle(solution, config.max_empty, rng=rng, stats=stats)
    return puzzle, solution, emptied


__all__ = [
    "Board",
    "EMPTY",
    "SUPPORTED_ORDERS",
    "DEFAULT_MAX_EMPTY",
    "SudokuError",
    "SudokuConfigError",
    "InvalidBoardError",
    "GenerationError",
    "SearchStats",
    "EngineConfig",
    "check_order",
    "box_size",
    "new_board",
    "copy_board",
    "is_complete",
    "validate_board",
    "valid_values",
    "candidates",
    "next_empty",
    "shuffle_values",
    "fill_board",
    "generate_solution",
    "count_solutions",
    "solve",
    "empty_cells",
    "reduce_to_puzzle",
    "create_puzzle",
]
