"""
Tactics and simple motifs: immediate wins/blocks and where a move sends the other side.
Teaching notes:
- Every check works on an immutable snapshot plus a candidate; nothing here mutates a board.
- Line scan order (rows, columns, main diagonal, anti-diagonal) decides which
  of several winning cells is reported first.
"""
from typing import List, Optional, Sequence

from .evaluator import OPEN, grid_side, has_line, sub_board_status, win_patterns
from .game_basics import EMPTY, Move, other


def place(cells: Sequence[int], index: int, player: int) -> tuple:
    b = list(cells)
    b[index] = player
    return tuple(b)


def completes_line(cells: Sequence[int], index: int, player: int) -> bool:
    if cells[index] != EMPTY:
        return False
    return has_line(place(cells, index, player), player)


def winning_cells(cells: Sequence[int], player: int, size: Optional[int] = None) -> List[int]:
    n = size or grid_side(cells)
    found: List[int] = []
    for pat in win_patterns(n):
        line = [cells[i] for i in pat]
        if line.count(player) == n - 1 and line.count(EMPTY) == 1:
            gap = pat[line.index(EMPTY)]
            if gap not in found:
                found.append(gap)
    return found


def winning_cell(cells: Sequence[int], player: int, size: Optional[int] = None) -> Optional[int]:
    wins = winning_cells(cells, player, size)
    return wins[0] if wins else None


def immediate_winning_moves(cells: Sequence[int], player: int) -> List[int]:
    return [i for i, v in enumerate(cells) if v == EMPTY and completes_line(cells, i, player)]


def has_potential_win(cells: Sequence[int], player: int) -> bool:
    return winning_cell(cells, player) is not None


def status_after(boards: Sequence[Sequence[int]], statuses: Sequence[int], move: Move, player: int) -> List[int]:
    after = list(statuses)
    after[move.board] = sub_board_status(place(boards[move.board], move.cell, player))
    return after


def sends_to_free_choice(boards: Sequence[Sequence[int]], statuses: Sequence[int], move: Move, player: int) -> bool:
    return status_after(boards, statuses, move, player)[move.cell] != OPEN


def is_safe_send(boards: Sequence[Sequence[int]], statuses: Sequence[int], move: Move, player: int) -> bool:
    """True unless the move sends the other side to an open sub-board it can win at once."""
    target = move.cell
    if status_after(boards, statuses, move, player)[target] != OPEN:
        return True
    target_cells = boards[target]
    if target == move.board:
        target_cells = place(target_cells, move.cell, player)
    return not has_potential_win(target_cells, other(player))
