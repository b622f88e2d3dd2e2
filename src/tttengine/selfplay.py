"""
Self-play: engine-vs-engine matches and finished-game export.

The human side is driven by the same selector at its own tier, so a run
measures how each opponent tier fares against a given kind of player. Rows
carry what a leaderboard needs (variant, difficulty, result, length).
"""
from __future__ import annotations

import csv
import hashlib
import importlib.util
import json
import logging
import sys
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import numpy as np

from .config import get_git_commit, get_git_is_dirty
from .evaluator import DRAW, OPEN
from .game_basics import DIFFICULTIES, EASY, HUMAN, OPPONENT, VARIANTS, check_difficulty
from .opponent import choose_move
from .rules import IN_PROGRESS
from .session import GameSession, first_player

RESULTS_VERSION = "1.0.0"
FIELDNAMES = [
    "variant",
    "difficulty",
    "human_difficulty",
    "game",
    "seed",
    "result",
    "plies",
    "opponent_first",
    "decided_sub_boards",
]


@dataclass
class SelfPlayArgs:
    out: Path
    variants: List[str] = field(default_factory=lambda: list(VARIANTS))
    difficulties: List[str] = field(default_factory=lambda: list(DIFFICULTIES))
    games: int = 10
    human_difficulty: str = EASY
    seed: int = 0
    verbose: bool = False
    cli_argv: List[str] | None = None
    format: str = "csv"  # one of: "csv", "parquet", "both"


def result_label(result: int) -> str:
    if result == HUMAN:
        return "human"
    if result == OPPONENT:
        return "opponent"
    if result == DRAW:
        return "draw"
    raise ValueError(f"Game did not finish: result={result}")


def play_game(variant: str, difficulty: str, human_difficulty: str = EASY, seed: int = 0) -> Dict[str, Any]:
    """Play one full game through a GameSession and describe its outcome."""
    session = GameSession(variant, difficulty, seed=seed, thinking_delay=0.0)
    human_rng = np.random.default_rng([seed, 1])
    session.start()
    while session.state.phase == IN_PROGRESS:
        move = choose_move(session.state, human_difficulty, HUMAN, human_rng)
        session.apply_human_move(move.cell, move.board)
    view = session.view()
    return {
        "variant": variant,
        "difficulty": difficulty,
        "human_difficulty": human_difficulty,
        "seed": seed,
        "result": result_label(view.result),
        "plies": view.move_count,
        "opponent_first": first_player(variant, difficulty) == OPPONENT,
        "decided_sub_boards": sum(1 for s in view.statuses if s != OPEN),
    }


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def write_csv(path: Path, rows: List[Dict[str, Any]]) -> None:
    with path.open("w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=FIELDNAMES)
        w.writeheader()
        for r in rows:
            w.writerow(r)


def _package_versions() -> Dict[str, str]:
    versions: Dict[str, str] = {}
    for pkg in ["numpy", "pandas", "pyarrow"]:
        if importlib.util.find_spec(pkg) is None:
            continue
        mod = __import__(pkg)
        ver = getattr(mod, "__version__", None)
        if ver:
            versions[pkg] = ver
    return versions


def run_selfplay(args: SelfPlayArgs) -> Path:
    fmt = (args.format or "csv").lower()
    if fmt not in {"csv", "parquet", "both"}:
        raise ValueError(f"Unknown export format: {args.format}")
    if args.games < 1:
        raise ValueError(f"games must be positive, got {args.games}")
    for v in args.variants:
        if v not in VARIANTS:
            raise ValueError(f"Unknown variant: {v}")
    for d in list(args.difficulties) + [args.human_difficulty]:
        check_difficulty(d)

    have_parquet = importlib.util.find_spec("pandas") is not None and importlib.util.find_spec("pyarrow") is not None
    if fmt == "parquet" and not have_parquet:
        # Strict: only parquet was asked for; fail before writing anything
        raise RuntimeError(
            "Parquet dependencies not available (install pandas and pyarrow). "
            "Use pip install .[parquet] to enable parquet support."
        )
    args.out.mkdir(parents=True, exist_ok=True)

    rows: List[Dict[str, Any]] = []
    for variant in args.variants:
        for difficulty in args.difficulties:
            logging.info("Playing %d %s games on %s…", args.games, variant, difficulty)
            for g in range(args.games):
                row = play_game(variant, difficulty, args.human_difficulty, seed=args.seed + g)
                row["game"] = g
                rows.append(row)
    logging.info("Played %d games", len(rows))

    games_csv = args.out / "games.csv"
    games_parquet = args.out / "games.parquet"
    wrote_csv = False
    wrote_parquet = False
    if fmt in {"csv", "both"}:
        write_csv(games_csv, rows)
        wrote_csv = True
        logging.info("Wrote %s (%d rows)", games_csv, len(rows))
    if fmt in {"parquet", "both"}:
        if have_parquet:
            import pandas as pd

            pd.DataFrame(rows, columns=FIELDNAMES).to_parquet(games_parquet)
            wrote_parquet = True
            logging.info("Wrote %s", games_parquet)
        else:
            logging.warning(
                "Parquet dependencies not available; proceeding with CSV only, "
                "manifest will record parquet_written=false."
            )

    split: Dict[str, Dict[str, int]] = {}
    for variant in args.variants:
        for difficulty in args.difficulties:
            c = Counter(r["result"] for r in rows if r["variant"] == variant and r["difficulty"] == difficulty)
            split[f"{variant}/{difficulty}"] = {k: c.get(k, 0) for k in ("human", "opponent", "draw")}

    files = {
        "games_csv": str(games_csv) if wrote_csv else None,
        "games_parquet": str(games_parquet) if wrote_parquet else None,
    }
    manifest = {
        "results_version": RESULTS_VERSION,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "args": {
            "variants": list(args.variants),
            "difficulties": list(args.difficulties),
            "games": args.games,
            "human_difficulty": args.human_difficulty,
            "seed": args.seed,
            "format": fmt,
        },
        "git_commit": get_git_commit(),
        "git_is_dirty": get_git_is_dirty(),
        "python": {
            "python_version": sys.version.split(" ")[0],
            "packages": _package_versions(),
        },
        "cli_argv": args.cli_argv,
        "row_counts": {"games": len(rows)},
        "result_split": split,
        "files": files,
        "checksums": {label: sha256_file(Path(p)) for label, p in files.items() if p is not None},
        "parquet_written": wrote_parquet,
    }
    (args.out / "manifest.json").write_text(json.dumps(manifest, indent=2))
    logging.info("Wrote manifest.json")
    return args.out
