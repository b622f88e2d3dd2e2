"""
Opponent move selection.

A tier is an ordered list of rules. A rule looks at an immutable Position
and either names a move or returns None ("no opinion"); the first opinion
wins. The tiers are deliberately heuristic, not a search:

- easy:   uniform random legal move
- medium: win, block, random
- hard:   flat grids add centre, corner and (5x5) positional evaluation;
          Ultimate filters out moves that send the other side to a
          sub-board it can win at once, then falls back to unfiltered rules
          when nothing safe is left.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .evaluator import OPEN
from .features import best_evaluated_cell
from .game_basics import (
    EASY,
    EMPTY,
    HARD,
    MEDIUM,
    OPPONENT,
    ULTIMATE,
    Move,
    check_difficulty,
    other,
)
from .rules import IN_PROGRESS, GameState, check_move, legal_moves, playable_boards
from .tactics import completes_line, is_safe_send, sends_to_free_choice, winning_cell

CENTER_CELL = 4
CORNER_CELLS = (0, 2, 6, 8)
EDGE_CELLS = (1, 3, 5, 7)
CENTER_BOARD = 4


class NoLegalMove(RuntimeError):
    """The selector was asked to move in a finished game or out of turn."""


@dataclass(frozen=True)
class Position:
    variant: str
    size: int
    boards: Tuple[Tuple[int, ...], ...]
    statuses: Tuple[int, ...]
    active_board: Optional[int]
    playable: Tuple[int, ...]
    my_counts: Tuple[int, ...]
    their_counts: Tuple[int, ...]
    me: int
    legal: Tuple[Move, ...]

    @classmethod
    def from_state(cls, state: GameState, player: int) -> "Position":
        return cls(
            variant=state.variant,
            size=state.size,
            boards=tuple(g.snapshot() for g in state.grids),
            statuses=tuple(state.statuses),
            active_board=state.active_board,
            playable=tuple(playable_boards(state)),
            my_counts=tuple(state.move_counts[player]),
            their_counts=tuple(state.move_counts[other(player)]),
            me=player,
            legal=tuple(legal_moves(state)),
        )

    @property
    def them(self) -> int:
        return other(self.me)

    @property
    def free_choice(self) -> bool:
        return self.active_board is None or self.statuses[self.active_board] != OPEN

    def empty_in(self, board: int) -> List[int]:
        return [i for i, v in enumerate(self.boards[board]) if v == EMPTY]

    def is_safe(self, move: Move) -> bool:
        return is_safe_send(self.boards, self.statuses, move, self.me)

    def sends_to_decided(self, move: Move) -> bool:
        return sends_to_free_choice(self.boards, self.statuses, move, self.me)

    def is_strategic_target(self, board: int) -> bool:
        """The other side never played there, or we have out-played it there."""
        return self.their_counts[board] == 0 or self.my_counts[board] > self.their_counts[board]


Rule = Callable[[Position, np.random.Generator], Optional[Move]]


def _pick(rng: np.random.Generator, items: Sequence):
    return items[int(rng.integers(len(items)))]


def _rule_name(rule: Rule) -> str:
    return getattr(rule, "func", rule).__name__


def first_opinion(rules: Sequence[Rule], pos: Position, rng: np.random.Generator) -> Optional[Move]:
    for rule in rules:
        move = rule(pos, rng)
        if move is not None:
            logging.debug("rule %s chose %s", _rule_name(rule), move)
            return move
    return None


# ---------------------------------------------------------------------------
# Flat grids (classic, 5x5)

def random_move(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    return _pick(rng, pos.legal) if pos.legal else None


def win_line(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    cell = winning_cell(pos.boards[0], pos.me, pos.size)
    return None if cell is None else Move(cell)


def block_line(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    cell = winning_cell(pos.boards[0], pos.them, pos.size)
    return None if cell is None else Move(cell)


def take_center(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    mid = pos.size // 2
    cell = mid * pos.size + mid
    return Move(cell) if pos.boards[0][cell] == EMPTY else None


def take_corner(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    n = pos.size
    for cell in (0, n - 1, n * (n - 1), n * n - 1):
        if pos.boards[0][cell] == EMPTY:
            return Move(cell)
    return None


def positional(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    cell = best_evaluated_cell(pos.boards[0], pos.me)
    return None if cell is None else Move(cell)


FLAT_TIERS = {
    EASY: [random_move],
    MEDIUM: [win_line, block_line, random_move],
    HARD: [win_line, block_line, take_center, take_corner, random_move],
}
FIVE_HARD = [win_line, block_line, take_center, take_corner, positional]


# ---------------------------------------------------------------------------
# Ultimate: rules scoped to one sub-board and a candidate set

def _win_among(pos: Position, rng: np.random.Generator, board: int, cells: Sequence[int]) -> Optional[Move]:
    for cell in cells:
        if completes_line(pos.boards[board], cell, pos.me):
            return Move(cell, board)
    return None


def _block_if_in(pos: Position, rng: np.random.Generator, board: int, cells: Sequence[int]) -> Optional[Move]:
    cell = winning_cell(pos.boards[board], pos.them)
    return Move(cell, board) if cell is not None and cell in cells else None


def _center_if_in(pos: Position, rng: np.random.Generator, board: int, cells: Sequence[int]) -> Optional[Move]:
    return Move(CENTER_CELL, board) if CENTER_CELL in cells else None


def _random_corner_in(pos: Position, rng: np.random.Generator, board: int, cells: Sequence[int]) -> Optional[Move]:
    corners = [c for c in CORNER_CELLS if c in cells]
    return Move(_pick(rng, corners), board) if corners else None


def _random_among(pos: Position, rng: np.random.Generator, board: int, cells: Sequence[int]) -> Optional[Move]:
    return Move(_pick(rng, list(cells)), board) if cells else None


def _safe_cells(pos: Position, board: int) -> List[int]:
    return [c for c in pos.empty_in(board) if pos.is_safe(Move(c, board))]


def _strategic_cells(pos: Position, board: int) -> List[int]:
    return [
        c for c in pos.empty_in(board)
        if pos.is_strategic_target(c) and pos.is_safe(Move(c, board))
    ]


def _safety_group(pos: Position, rng: np.random.Generator, board: int) -> Optional[Move]:
    safe = _safe_cells(pos, board)
    if not safe:
        return None
    return first_opinion([
        partial(_win_among, board=board, cells=safe),
        partial(_block_if_in, board=board, cells=safe),
        partial(_center_if_in, board=board, cells=safe),
        partial(_random_corner_in, board=board, cells=safe),
        partial(_random_among, board=board, cells=safe),
    ], pos, rng)


def _strategic_target_in(pos: Position, rng: np.random.Generator, board: int) -> Optional[Move]:
    cells = _strategic_cells(pos, board)
    return Move(_pick(rng, cells), board) if cells else None


def _send_to_decided_in(pos: Position, rng: np.random.Generator, board: int) -> Optional[Move]:
    for cell in pos.empty_in(board):
        if pos.sends_to_decided(Move(cell, board)):
            return Move(cell, board)
    return None


def _first_corner_in(pos: Position, rng: np.random.Generator, board: int) -> Optional[Move]:
    empty = pos.empty_in(board)
    for cell in CORNER_CELLS:
        if cell in empty:
            return Move(cell, board)
    return None


def cell_selection(pos: Position, rng: np.random.Generator, board: int) -> Optional[Move]:
    """Hard-mode choice inside one sub-board: safe rules first, then the unfiltered fallback."""
    empty = pos.empty_in(board)
    return first_opinion([
        partial(_safety_group, board=board),
        partial(_win_among, board=board, cells=empty),
        partial(_block_if_in, board=board, cells=empty),
        partial(_strategic_target_in, board=board),
        partial(_send_to_decided_in, board=board),
        partial(_center_if_in, board=board, cells=empty),
        partial(_first_corner_in, board=board),
        partial(_random_among, board=board, cells=empty),
    ], pos, rng)


# Free choice: the selector picks the sub-board too.

def first_safe_board(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    for board in pos.playable:
        safe = _safe_cells(pos, board)
        if safe:
            return first_opinion([
                partial(_win_among, board=board, cells=safe),
                partial(_block_if_in, board=board, cells=safe),
                partial(_random_among, board=board, cells=safe),
            ], pos, rng)
    return None


def sub_board_win(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    for board in pos.playable:
        cell = winning_cell(pos.boards[board], pos.me)
        if cell is not None:
            return Move(cell, board)
    return None


def sub_board_block(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    for board in pos.playable:
        cell = winning_cell(pos.boards[board], pos.them)
        if cell is not None:
            return Move(cell, board)
    return None


def strategic_board(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    boards = [b for b in pos.playable if pos.is_strategic_target(b)]
    if not boards:
        return None
    board = _pick(rng, boards)
    return _strategic_target_in(pos, rng, board) or cell_selection(pos, rng, board)


def send_to_decided(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    for board in pos.playable:
        move = _send_to_decided_in(pos, rng, board)
        if move is not None:
            return move
    return None


def center_board(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    if CENTER_BOARD not in pos.playable:
        return None
    return cell_selection(pos, rng, CENTER_BOARD)


def random_board(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    if not pos.playable:
        return None
    return cell_selection(pos, rng, _pick(rng, pos.playable))


BOARD_SELECTION = [
    first_safe_board,
    sub_board_win,
    sub_board_block,
    strategic_board,
    send_to_decided,
    center_board,
    random_board,
]


def opening_edge(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    """First move of the game: an edge of the centre sub-board."""
    if any(v != EMPTY for cells in pos.boards for v in cells):
        return None
    return Move(_pick(rng, EDGE_CELLS), CENTER_BOARD)


def hard_ultimate(pos: Position, rng: np.random.Generator) -> Optional[Move]:
    if pos.free_choice:
        return first_opinion(BOARD_SELECTION, pos, rng)
    return cell_selection(pos, rng, pos.active_board)


ULTIMATE_TIERS = {
    EASY: [random_move],
    MEDIUM: [sub_board_win, sub_board_block, random_move],
    HARD: [opening_edge, hard_ultimate],
}


def tier_rules(variant: str, difficulty: str, size: int) -> List[Rule]:
    check_difficulty(difficulty)
    if variant == ULTIMATE:
        return ULTIMATE_TIERS[difficulty]
    if size == 5 and difficulty == HARD:
        return FIVE_HARD
    return FLAT_TIERS[difficulty]


def choose_move(
    state: GameState,
    difficulty: str,
    player: int = OPPONENT,
    rng: Optional[np.random.Generator] = None,
) -> Move:
    """Pick one legal move for `player`.

    Raises NoLegalMove when the game is not in progress, it is not
    `player`'s turn, or nothing is playable; callers should never get there.
    """
    if state.phase != IN_PROGRESS:
        raise NoLegalMove(f"game is {state.phase}")
    if player != state.current_player:
        raise NoLegalMove(f"player {player} is not to move")
    pos = Position.from_state(state, player)
    if not pos.legal:
        raise NoLegalMove("no legal moves left")
    if rng is None:
        rng = np.random.default_rng()
    move = first_opinion(tier_rules(state.variant, difficulty, state.size), pos, rng)
    if move is None:
        raise NoLegalMove("no rule produced a move")
    check_move(state, move, player)
    return move
