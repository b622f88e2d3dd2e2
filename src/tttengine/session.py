"""
Game session: owns one game, applies human moves and chains the opponent reply.

One session is driven by one caller at a time. The only pause is the
optional thinking delay, which happens after the opponent's move has been
chosen and before it is applied.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from . import config
from .evaluator import DRAW, OPEN
from .game_basics import (
    HARD,
    HUMAN,
    OPPONENT,
    ULTIMATE,
    Location,
    Move,
    board_size,
    check_difficulty,
)
from .opponent import choose_move
from .rules import (
    IN_PROGRESS,
    TERMINAL,
    GameState,
    IllegalMoveError,
    apply_move,
    begin,
    load_position,
    new_state,
)


@dataclass(frozen=True)
class SessionView:
    variant: str
    difficulty: str
    size: int
    cells: Tuple[Tuple[int, ...], ...]
    statuses: Tuple[int, ...]
    current_player: int
    phase: str
    result: int
    winner: Optional[int]
    active_board: Optional[int]
    move_count: int
    elapsed_seconds: float
    last_move: Optional[Move] = None

    @property
    def is_over(self) -> bool:
        return self.phase == TERMINAL

    @property
    def is_draw(self) -> bool:
        return self.result == DRAW


def first_player(variant: str, difficulty: str) -> int:
    """The opponent opens only in Ultimate on hard."""
    return OPPONENT if variant == ULTIMATE and difficulty == HARD else HUMAN


class GameSession:
    def __init__(
        self,
        variant: str,
        difficulty: str,
        seed: Optional[int] = None,
        thinking_delay: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        board_size(variant)
        self.variant = variant
        self.difficulty = check_difficulty(difficulty)
        self.seed = seed
        self.thinking_delay = config.thinking_delay() if thinking_delay is None else thinking_delay
        self._clock = clock
        self._sleep = sleep
        self.reset()

    @classmethod
    def from_position(
        cls,
        variant: str,
        difficulty: str,
        cells: Sequence[int],
        to_move: int = HUMAN,
        active_board: Optional[int] = None,
        **kwargs,
    ) -> "GameSession":
        """Resume play from a board picture; the clock starts now."""
        session = cls(variant, difficulty, **kwargs)
        session._state = load_position(variant, cells, to_move, active_board)
        session._started_at = session._clock()
        if session._state.phase == TERMINAL:
            session._finished_at = session._started_at
        return session

    @property
    def state(self) -> GameState:
        return self._state

    def reset(self) -> SessionView:
        self._state = new_state(self.variant, first_player(self.variant, self.difficulty))
        self._rng = np.random.default_rng(self.seed)
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None
        logging.debug("session reset: variant=%s difficulty=%s", self.variant, self.difficulty)
        return self.view()

    def start(self, variant: Optional[str] = None, difficulty: Optional[str] = None) -> SessionView:
        if variant is not None:
            board_size(variant)
            self.variant = variant
        if difficulty is not None:
            self.difficulty = check_difficulty(difficulty)
        self.reset()
        begin(self._state)
        self._started_at = self._clock()
        logging.info("game started: variant=%s difficulty=%s", self.variant, self.difficulty)
        if self._state.current_player == OPPONENT:
            self._play_opponent()
        return self.view()

    def apply_human_move(self, location: Location, sub_board: Optional[int] = None) -> SessionView:
        move = self._to_move(location, sub_board)
        self._apply(move, HUMAN)
        if self._state.phase == IN_PROGRESS and self._state.current_player == OPPONENT:
            self._play_opponent()
        return self.view()

    def view(self) -> SessionView:
        s = self._state
        if s.is_ultimate:
            cells = tuple(g.snapshot() for g in s.grids)
        else:
            cells = s.grid.rows()
        return SessionView(
            variant=self.variant,
            difficulty=self.difficulty,
            size=s.size,
            cells=cells,
            statuses=s.statuses,
            current_player=s.current_player,
            phase=s.phase,
            result=s.result,
            winner=s.result if s.result not in (OPEN, DRAW) else None,
            active_board=s.active_board,
            move_count=len(s.history),
            elapsed_seconds=self.elapsed(),
            last_move=s.history[-1][1] if s.history else None,
        )

    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._finished_at if self._finished_at is not None else self._clock()
        return max(0.0, end - self._started_at)

    def _to_move(self, location: Location, sub_board: Optional[int]) -> Move:
        n = self._state.size
        if isinstance(location, tuple):
            row, col = location
            if not (0 <= row < n and 0 <= col < n):
                raise IllegalMoveError(f"location {location} is off the board")
            return Move.at(row, col, n, sub_board)
        return Move(location, sub_board)

    def _apply(self, move: Move, player: int) -> None:
        apply_move(self._state, move, player)
        if self._state.phase == TERMINAL:
            self._finished_at = self._clock()
            logging.info(
                "game over: result=%d moves=%d elapsed=%.1fs",
                self._state.result, len(self._state.history), self.elapsed(),
            )

    def _play_opponent(self) -> None:
        move = choose_move(self._state, self.difficulty, OPPONENT, self._rng)
        if self.thinking_delay > 0:
            self._sleep(self.thinking_delay)
        self._apply(move, OPPONENT)


def start(variant: str, difficulty: str, **kwargs) -> GameSession:
    """Create and start a session; `session.view()` is the initial SessionView."""
    session = GameSession(variant, difficulty, **kwargs)
    session.start()
    return session


def apply_human_move(session: GameSession, location: Location, sub_board: Optional[int] = None) -> SessionView:
    return session.apply_human_move(location, sub_board)


def reset(session: GameSession) -> SessionView:
    return session.reset()
