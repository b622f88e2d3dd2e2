"""
Legality and turn control.

The state machine is NOT_STARTED -> IN_PROGRESS -> TERMINAL; TERMINAL is
absorbing until the owner builds a fresh state. Sub-board statuses and the
game result are derived from the grids by `recompute` after every accepted
move and are never assigned from outside this module.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .evaluator import OPEN, grid_status, meta_status, sub_board_status
from .game_basics import (
    EMPTY,
    O,
    PLAYERS,
    ULTIMATE,
    X,
    Grid,
    Move,
    board_size,
    other,
)

NOT_STARTED = "not_started"
IN_PROGRESS = "in_progress"
TERMINAL = "terminal"


class IllegalMoveError(ValueError):
    """A rejected move. The state is left untouched."""

    def __init__(self, reason: str, move: Optional[Move] = None):
        super().__init__(reason)
        self.reason = reason
        self.move = move


@dataclass
class GameState:
    variant: str
    grids: List[Grid]
    current_player: int = X
    phase: str = NOT_STARTED
    result: int = OPEN
    statuses: Tuple[int, ...] = ()
    active_board: Optional[int] = None
    move_counts: Dict[int, List[int]] = field(default_factory=lambda: {X: [0] * 9, O: [0] * 9})
    history: List[Tuple[int, Move]] = field(default_factory=list)

    @property
    def is_ultimate(self) -> bool:
        return self.variant == ULTIMATE

    @property
    def size(self) -> int:
        return self.grids[0].size

    @property
    def grid(self) -> Grid:
        """The single grid of a flat variant."""
        if self.is_ultimate:
            raise AttributeError("Ultimate games have nine grids")
        return self.grids[0]

    def marks_placed(self) -> int:
        return sum(g.size * g.size - len(g.empty_cells()) for g in self.grids)


def new_state(variant: str, first_player: int = X) -> GameState:
    n = board_size(variant)
    count = 9 if variant == ULTIMATE else 1
    state = GameState(variant=variant, grids=[Grid(n) for _ in range(count)], current_player=first_player)
    recompute(state)
    return state


def begin(state: GameState) -> None:
    if state.phase != NOT_STARTED:
        raise IllegalMoveError(f"cannot start a game in phase {state.phase}")
    state.phase = IN_PROGRESS


def recompute(state: GameState) -> None:
    """Derive sub-board statuses and the game result from the grids."""
    if state.is_ultimate:
        state.statuses = tuple(sub_board_status(g.snapshot()) for g in state.grids)
        state.result = meta_status(state.statuses)
    else:
        state.statuses = ()
        state.result = grid_status(state.grid.snapshot())


def playable_boards(state: GameState) -> List[int]:
    if not state.is_ultimate:
        return []
    if state.active_board is not None and state.statuses[state.active_board] == OPEN:
        return [state.active_board]
    return [b for b, s in enumerate(state.statuses) if s == OPEN]


def can_play_anywhere(state: GameState) -> bool:
    return state.active_board is None or state.statuses[state.active_board] != OPEN


def check_move(state: GameState, move: Move, player: int) -> None:
    if state.phase != IN_PROGRESS:
        raise IllegalMoveError("game is not in progress", move)
    if player != state.current_player:
        raise IllegalMoveError("not this side's turn", move)
    n = state.size
    if not 0 <= move.cell < n * n:
        raise IllegalMoveError(f"cell {move.cell} is off the board", move)
    if state.is_ultimate:
        if move.board is None:
            raise IllegalMoveError("ultimate moves need a sub-board index", move)
        if not 0 <= move.board < 9:
            raise IllegalMoveError(f"sub-board {move.board} does not exist", move)
        if state.statuses[move.board] != OPEN:
            raise IllegalMoveError(f"sub-board {move.board} is already decided", move)
        if not can_play_anywhere(state) and move.board != state.active_board:
            raise IllegalMoveError(f"must play in sub-board {state.active_board}", move)
    elif move.board is not None:
        raise IllegalMoveError(f"{state.variant} has no sub-boards", move)
    if state.grids[move.board or 0].get(move.cell) != EMPTY:
        raise IllegalMoveError(f"cell {move.cell} is occupied", move)


def is_legal(state: GameState, move: Move, player: int) -> bool:
    try:
        check_move(state, move, player)
    except IllegalMoveError:
        return False
    return True


def legal_moves(state: GameState) -> List[Move]:
    if state.phase != IN_PROGRESS:
        return []
    if not state.is_ultimate:
        return [Move(c) for c in state.grid.empty_cells()]
    return [Move(c, b) for b in playable_boards(state) for c in state.grids[b].empty_cells()]


def apply_move(state: GameState, move: Move, player: int) -> int:
    """Validate and apply one move; returns the game result afterwards."""
    check_move(state, move, player)
    board = move.board or 0
    state.grids[board].set(move.cell, player)
    if state.is_ultimate:
        state.move_counts[player][board] += 1
    state.history.append((player, move))
    recompute(state)
    logging.debug("player %d played %s", player, move)
    if state.result != OPEN:
        state.phase = TERMINAL
        state.active_board = None
        logging.debug("game over: result=%d after %d moves", state.result, len(state.history))
        return state.result
    if state.is_ultimate:
        state.active_board = move.cell if state.statuses[move.cell] == OPEN else None
    state.current_player = other(player)
    return state.result


def load_position(
    variant: str,
    cells: Sequence[int],
    to_move: int = O,
    active_board: Optional[int] = None,
) -> GameState:
    """Build a state from a board picture (flat cells, or 81 cells board by board)."""
    state = new_state(variant, first_player=to_move)
    if to_move not in PLAYERS:
        raise ValueError(f"Not a player: {to_move}")
    n = state.size
    per_grid = n * n
    if len(cells) != per_grid * len(state.grids):
        raise ValueError(f"Expected {per_grid * len(state.grids)} cells, got {len(cells)}")
    state.grids = [Grid(n, cells[i * per_grid:(i + 1) * per_grid]) for i in range(len(state.grids))]
    if state.is_ultimate:
        for p in PLAYERS:
            state.move_counts[p] = [g.count(p) for g in state.grids]
    recompute(state)
    state.phase = TERMINAL if state.result != OPEN else IN_PROGRESS
    if state.is_ultimate and state.phase == IN_PROGRESS and active_board is not None:
        if not 0 <= active_board < 9:
            raise ValueError(f"Active board must be 0-8, got {active_board}")
        state.active_board = active_board if state.statuses[active_board] == OPEN else None
    return state
