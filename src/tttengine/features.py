"""
Positional evaluation for the 5x5 variant.
"""
from typing import List, Optional, Sequence

import numpy as np

from .game_basics import EMPTY, other

SIZE = 5

# centre > inner ring > outer ring
POSITION_WEIGHTS = np.ones((SIZE, SIZE), dtype=np.int64)
POSITION_WEIGHTS[1:4, 1:4] = 2
POSITION_WEIGHTS[2, 2] = 3

OWN_LINE_SCORES = {4: 100, 3: 10, 2: 5, 1: 1}
BLOCK_LINE_SCORES = {4: 90, 3: 40}


def _as_board(cells: Sequence[int]) -> np.ndarray:
    board = np.asarray(cells, dtype=np.int64)
    if board.size != SIZE * SIZE:
        raise ValueError(f"Expected {SIZE * SIZE} cells, got {board.size}")
    return board.reshape(SIZE, SIZE)


def board_lines(board: np.ndarray) -> List[np.ndarray]:
    lines = [board[r, :] for r in range(SIZE)]
    lines += [board[:, c] for c in range(SIZE)]
    lines.append(np.diag(board))
    lines.append(np.diag(np.fliplr(board)))
    return lines


def evaluate_line(line: Sequence[int], me: int, them: int) -> int:
    line = np.asarray(line)
    mine = int(np.count_nonzero(line == me))
    theirs = int(np.count_nonzero(line == them))
    empty = int(np.count_nonzero(line == EMPTY))
    if mine > 0 and theirs > 0:
        return 0
    if theirs == 0 and mine + empty == SIZE and mine in OWN_LINE_SCORES:
        return OWN_LINE_SCORES[mine]
    if mine == 0 and theirs + empty == SIZE and theirs in BLOCK_LINE_SCORES:
        return BLOCK_LINE_SCORES[theirs]
    return 0


def positional_bonus(board: np.ndarray, me: int) -> int:
    return int(POSITION_WEIGHTS[board == me].sum())


def evaluate_board(cells: Sequence[int], me: int) -> int:
    board = _as_board(cells)
    them = other(me)
    score = sum(evaluate_line(line, me, them) for line in board_lines(board))
    return score + positional_bonus(board, me)


def score_moves(cells: Sequence[int], me: int) -> np.ndarray:
    """Score of the board after hypothetically placing `me` on each cell; -inf if occupied."""
    board = np.asarray(cells, dtype=np.int64)
    scores = np.full(board.size, -np.inf)
    for i in np.flatnonzero(board == EMPTY):
        trial = board.copy()
        trial[i] = me
        scores[i] = evaluate_board(trial, me)
    return scores


def best_evaluated_cell(cells: Sequence[int], me: int) -> Optional[int]:
    scores = score_moves(cells, me)
    if not np.isfinite(scores).any():
        return None
    # argmax keeps the first maximum in row-major order
    return int(np.argmax(scores))
