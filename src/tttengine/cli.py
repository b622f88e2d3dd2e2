from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

import numpy as np

from .config import data_dir
from .evaluator import DRAW, OPEN
from .game_basics import (
    DIFFICULTIES,
    EMPTY,
    HARD,
    MEDIUM,
    OPPONENT,
    ULTIMATE,
    VARIANTS,
    X,
    parse_cells,
)
from .opponent import NoLegalMove, choose_move
from .rules import IllegalMoveError, load_position
from .selfplay import SelfPlayArgs, run_selfplay
from .session import GameSession, SessionView


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ttt", description="Tic-tac-toe engine CLI (classic, 5x5, ultimate)")
    sub = p.add_subparsers(dest="cmd")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument(
        "--info",
        action="store_true",
        help="Print environment and dependency info and exit",
    )
    p.add_argument("--seed", type=int, default=None, help="Seed for the opponent's random choices")

    p_play = sub.add_parser("play", help="Play an interactive game against the engine")
    p_play.add_argument("--variant", choices=VARIANTS, default="classic")
    p_play.add_argument("--difficulty", choices=DIFFICULTIES, default=MEDIUM)
    p_play.add_argument(
        "--delay", type=float, default=None, help="Opponent thinking delay in seconds (default: TTT_THINKING_DELAY)"
    )

    p_sug = sub.add_parser("suggest", help="Print the opponent's move for a board (0=empty,1=X,2=O)")
    p_sug.add_argument("--variant", choices=VARIANTS, default="classic")
    p_sug.add_argument("--board", required=True, help="Board string: 9, 25 or 81 cells, row-major per grid")
    p_sug.add_argument("--difficulty", choices=DIFFICULTIES, default=HARD)
    p_sug.add_argument("--active", type=int, default=None, help="Ultimate: sub-board the opponent must play in")

    p_self = sub.add_parser("selfplay", help="Simulate games and export results")
    p_self.add_argument("--out", type=Path, default=None, help="Output directory (default: TTT_DATA_DIR or runs/)")
    p_self.add_argument("--variants", type=str, default=",".join(VARIANTS), help='Comma-separated, e.g. "classic,5x5"')
    p_self.add_argument(
        "--difficulties", type=str, default=",".join(DIFFICULTIES), help='Comma-separated, e.g. "easy,hard"'
    )
    p_self.add_argument("--games", type=int, default=10, help="Games per variant and difficulty")
    p_self.add_argument("--human-difficulty", choices=DIFFICULTIES, default="easy", help="Tier driving the X side")
    p_self.add_argument(
        "--format",
        choices=["csv", "parquet", "both"],
        default="csv",
        help="Export format: csv (default), parquet, both",
    )
    return p


def _print_info() -> None:
    import importlib.util
    import platform

    print(f"python={sys.version.split()[0]} platform={platform.platform()}")
    for pkg in ["numpy", "pandas", "pyarrow"]:
        spec = importlib.util.find_spec(pkg)
        if spec is None:
            print(f"{pkg}=<not installed>")
        else:
            mod = __import__(pkg)
            print(f"{pkg}={getattr(mod, '__version__', '?')}")


_MARKS = {EMPTY: ".", X: "X", OPPONENT: "O"}


def render(view: SessionView) -> str:
    lines: List[str] = []
    if view.variant == ULTIMATE:
        for band in range(3):
            for r in range(3):
                parts = []
                for b in range(band * 3, band * 3 + 3):
                    row = view.cells[b][r * 3:r * 3 + 3]
                    parts.append(" ".join(_MARKS[v] for v in row))
                lines.append(" | ".join(parts))
            if band < 2:
                lines.append("------+-------+------")
        status = " ".join("-" if s == OPEN else ("D" if s == DRAW else _MARKS[s]) for s in view.statuses)
        lines.append(f"sub-boards: {status}")
        target = "any" if view.active_board is None else str(view.active_board)
        lines.append(f"next board: {target}")
    else:
        for row in view.cells:
            lines.append(" ".join(_MARKS[v] for v in row))
    if view.is_over:
        lines.append("draw" if view.is_draw else f"{_MARKS[view.winner]} wins in {view.move_count} moves")
    return "\n".join(lines)


def play(session: GameSession, stdin: TextIO, stdout: TextIO) -> int:
    view = session.start()
    print(render(view), file=stdout)
    prompt = "board cell" if session.variant == ULTIMATE else "row col"
    for line in stdin:
        raw = line.strip().lower()
        if not raw:
            continue
        if raw in ("q", "quit"):
            return 0
        if raw in ("r", "restart"):
            view = session.start()
            print(render(view), file=stdout)
            continue
        if view.is_over:
            print("game over: r to restart, q to quit", file=stdout)
            continue
        try:
            a, b = (int(x) for x in raw.split())
        except ValueError:
            print(f"enter '{prompt}', r or q", file=stdout)
            continue
        try:
            if session.variant == ULTIMATE:
                view = session.apply_human_move(b, a)
            else:
                view = session.apply_human_move((a, b))
        except IllegalMoveError as e:
            print(f"illegal move: {e.reason}", file=stdout)
            continue
        print(render(view), file=stdout)
    return 0


def _split(raw: str, allowed) -> List[str]:
    items = [x.strip() for x in raw.split(",") if x.strip()]
    bad = [x for x in items if x not in allowed]
    if bad or not items:
        raise ValueError(f"Expected a comma-separated subset of {', '.join(allowed)}, got {raw!r}")
    return items


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if getattr(ns, "verbose", False) else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    if getattr(ns, "version", False):
        try:
            from importlib.metadata import version as _ver

            print(_ver("tttengine"))
        except Exception:
            print("unknown")
        return 0
    if getattr(ns, "info", False):
        _print_info()
        return 0

    if ns.cmd == "play":
        if ns.delay is not None and ns.delay < 0:
            logging.error("Delay must not be negative: %s", ns.delay)
            return 2
        try:
            session = GameSession(ns.variant, ns.difficulty, seed=ns.seed, thinking_delay=ns.delay)
        except ValueError as e:
            logging.error("%s", e)
            return 2
        return play(session, sys.stdin, sys.stdout)

    if ns.cmd == "suggest":
        try:
            cells = parse_cells(ns.board, ns.variant)
            state = load_position(ns.variant, cells, to_move=OPPONENT, active_board=ns.active)
            move = choose_move(state, ns.difficulty, OPPONENT, np.random.default_rng(ns.seed))
        except ValueError as e:
            logging.error("%s", e)
            return 2
        except NoLegalMove as e:
            logging.error("No move to suggest: %s", e)
            return 2
        if ns.variant == ULTIMATE:
            print(f"board={move.board} cell={move.cell}")
        else:
            print(f"row={move.row(state.size)} col={move.col(state.size)}")
        return 0

    if ns.cmd == "selfplay":
        try:
            out = run_selfplay(SelfPlayArgs(
                out=ns.out or data_dir() / "selfplay",
                variants=_split(ns.variants, VARIANTS),
                difficulties=_split(ns.difficulties, DIFFICULTIES),
                games=ns.games,
                human_difficulty=ns.human_difficulty,
                seed=ns.seed or 0,
                verbose=ns.verbose,
                cli_argv=list(argv) if argv is not None else None,
                format=ns.format,
            ))
        except (ValueError, RuntimeError) as e:
            logging.error("%s", e)
            return 2
        logging.info("Exported self-play results to: %s", out)
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
