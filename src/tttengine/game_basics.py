"""
Game basics: cell values, variants, moves and the square grid.
Teaching notes:
- A grid is a flat list of N*N cells in row-major order: 0=empty, 1=X, 2=O.
- X is always the human, O is always the opponent.
- Ultimate uses nine 3x3 grids; a move there names the sub-board and the
  local cell, and the local cell decides where the other side plays next.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

EMPTY = 0
X = 1
O = 2
HUMAN = X
OPPONENT = O
PLAYERS = (X, O)

CLASSIC = "classic"
FIVE = "5x5"
ULTIMATE = "ultimate"
VARIANTS = (CLASSIC, FIVE, ULTIMATE)

EASY = "easy"
MEDIUM = "medium"
HARD = "hard"
DIFFICULTIES = (EASY, MEDIUM, HARD)

_SIZES = {CLASSIC: 3, FIVE: 5, ULTIMATE: 3}

Location = Union[int, Tuple[int, int]]


class IllegalWrite(ValueError):
    """Raised when writing to a non-empty cell."""


def other(player: int) -> int:
    return O if player == X else X


def board_size(variant: str) -> int:
    try:
        return _SIZES[variant]
    except KeyError:
        raise ValueError(f"Unknown variant: {variant}") from None


def check_difficulty(difficulty: str) -> str:
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty: {difficulty}")
    return difficulty


@dataclass(frozen=True)
class Move:
    cell: int
    board: Optional[int] = None

    @classmethod
    def at(cls, row: int, col: int, size: int = 3, board: Optional[int] = None) -> "Move":
        return cls(row * size + col, board)

    def row(self, size: int = 3) -> int:
        return self.cell // size

    def col(self, size: int = 3) -> int:
        return self.cell % size


class Grid:
    """Square matrix of cell values with a fixed side length."""

    def __init__(self, size: int = 3, cells: Optional[Sequence[int]] = None):
        if size not in (3, 5):
            raise ValueError(f"Unsupported grid size: {size}")
        self.size = size
        if cells is None:
            self._cells = [EMPTY] * (size * size)
        else:
            if len(cells) != size * size:
                raise ValueError(f"Expected {size * size} cells, got {len(cells)}")
            if any(v not in (EMPTY, X, O) for v in cells):
                raise ValueError("Cell values must be 0, 1 or 2")
            self._cells = list(cells)

    def index(self, location: Location) -> int:
        if isinstance(location, tuple):
            row, col = location
            if not (0 <= row < self.size and 0 <= col < self.size):
                raise IndexError(f"Location {location} outside {self.size}x{self.size} grid")
            return row * self.size + col
        if not 0 <= location < self.size * self.size:
            raise IndexError(f"Cell {location} outside {self.size}x{self.size} grid")
        return location

    def get(self, location: Location) -> int:
        return self._cells[self.index(location)]

    def set(self, location: Location, player: int) -> None:
        i = self.index(location)
        if player not in PLAYERS:
            raise IllegalWrite(f"Not a player mark: {player}")
        if self._cells[i] != EMPTY:
            raise IllegalWrite(f"Cell {i} is already occupied")
        self._cells[i] = player

    def is_full(self) -> bool:
        return EMPTY not in self._cells

    def empty_cells(self) -> List[int]:
        return [i for i, v in enumerate(self._cells) if v == EMPTY]

    def empty_locations(self) -> List[Tuple[int, int]]:
        return [divmod(i, self.size) for i in self.empty_cells()]

    def count(self, player: int) -> int:
        return self._cells.count(player)

    def snapshot(self) -> Tuple[int, ...]:
        return tuple(self._cells)

    def rows(self) -> Tuple[Tuple[int, ...], ...]:
        n = self.size
        return tuple(tuple(self._cells[r * n:(r + 1) * n]) for r in range(n))

    def copy(self) -> "Grid":
        return Grid(self.size, self._cells)

    def __eq__(self, other_grid: object) -> bool:
        if not isinstance(other_grid, Grid):
            return NotImplemented
        return self.size == other_grid.size and self._cells == other_grid._cells

    def __repr__(self) -> str:
        return f"Grid({self.size}, {serialize_cells(self._cells)!r})"


_CHARS = {"0": EMPTY, ".": EMPTY, "-": EMPTY, "1": X, "x": X, "2": O, "o": O}


def serialize_cells(cells: Sequence[int]) -> str:
    return ''.join(str(cell) for cell in cells)


def parse_cells(text: str, variant: str) -> List[int]:
    """Parse a board picture (digits 0/1/2, or . X O) for a variant.

    Ultimate boards are 81 characters, sub-board by sub-board.
    """
    raw = "".join(text.split()).lower()
    n = board_size(variant)
    expected = 81 if variant == ULTIMATE else n * n
    if len(raw) != expected:
        raise ValueError(f"Board for {variant} must have {expected} cells, got {len(raw)}")
    bad = sorted({c for c in raw if c not in _CHARS})
    if bad:
        raise ValueError(f"Invalid board characters: {''.join(bad)}")
    return [_CHARS[c] for c in raw]
