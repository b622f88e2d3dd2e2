"""
Win and draw detection for flat grids, sub-boards and the Ultimate meta-board.

All functions are pure and take cell sequences in row-major order. A line
needs N marks on an NxN grid (3 on 3x3, 5 on 5x5).
"""
from __future__ import annotations

import math
from functools import lru_cache
from typing import Optional, Sequence, Tuple

from .game_basics import EMPTY, O, X

OPEN = 0
DRAW = 3


@lru_cache(maxsize=None)
def win_patterns(size: int) -> Tuple[Tuple[int, ...], ...]:
    """Rows top to bottom, columns left to right, main diagonal, anti-diagonal."""
    rows = [tuple(r * size + c for c in range(size)) for r in range(size)]
    cols = [tuple(r * size + c for r in range(size)) for c in range(size)]
    diag = tuple(i * size + i for i in range(size))
    anti = tuple(i * size + (size - 1 - i) for i in range(size))
    return tuple(rows + cols + [diag, anti])


def grid_side(cells: Sequence[int]) -> int:
    n = math.isqrt(len(cells))
    if n * n != len(cells):
        raise ValueError(f"Not a square grid: {len(cells)} cells")
    return n


def has_line(cells: Sequence[int], player: int, size: Optional[int] = None) -> bool:
    n = size or grid_side(cells)
    return any(all(cells[i] == player for i in pat) for pat in win_patterns(n))


def winner(cells: Sequence[int]) -> int:
    n = grid_side(cells)
    for pat in win_patterns(n):
        v = cells[pat[0]]
        if v != EMPTY and all(cells[i] == v for i in pat):
            return v
    return EMPTY


def grid_status(cells: Sequence[int]) -> int:
    """OPEN, X, O or DRAW for a flat grid."""
    w = winner(cells)
    if w != EMPTY:
        return w
    if EMPTY not in cells:
        return DRAW
    return OPEN


def sub_board_status(subgrid: Sequence[int]) -> int:
    if len(subgrid) != 9:
        raise ValueError("A sub-board has 9 cells")
    return grid_status(subgrid)


def meta_marks(statuses: Sequence[int]) -> Tuple[int, ...]:
    """Project sub-board statuses onto the meta grid: only wins count as marks."""
    return tuple(s if s in (X, O) else EMPTY for s in statuses)


def meta_status(statuses: Sequence[int]) -> int:
    if len(statuses) != 9:
        raise ValueError("The meta-board has 9 sub-boards")
    w = winner(meta_marks(statuses))
    if w != EMPTY:
        return w
    if all(s != OPEN for s in statuses):
        return DRAW
    return OPEN
