#!/usr/bin/env python3
from __future__ import annotations

import math
import statistics as stats
import time
from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np

from tttengine.game_basics import DIFFICULTIES, EASY, HUMAN, VARIANTS
from tttengine.opponent import choose_move
from tttengine.rules import IN_PROGRESS
from tttengine.session import GameSession


def ci95(values: List[float]) -> Tuple[float, float]:
    if not values:
        return (float("nan"), float("nan"))
    m = stats.fmean(values)
    s = stats.pstdev(values) if len(values) > 1 else 0.0
    z = 1.96
    half = z * (s / math.sqrt(len(values)))
    return m, half


@dataclass
class Config:
    seeds: int = 10
    variants: List[str] = field(default_factory=lambda: list(VARIANTS))
    difficulties: List[str] = field(default_factory=lambda: list(DIFFICULTIES))


def reply_times(variant: str, difficulty: str, seed: int) -> List[float]:
    """Wall time of each human move plus the opponent's reply over one game."""
    session = GameSession(variant, difficulty, seed=seed, thinking_delay=0.0)
    rng = np.random.default_rng(seed)
    times: List[float] = []
    session.start()
    while session.state.phase == IN_PROGRESS:
        human = choose_move(session.state, EASY, HUMAN, rng)
        t0 = time.perf_counter()
        session.apply_human_move(human.cell, human.board)
        times.append(time.perf_counter() - t0)
    return times


def main() -> int:
    cfg = Config()
    for variant in cfg.variants:
        for difficulty in cfg.difficulties:
            samples: List[float] = []
            for s in range(cfg.seeds):
                samples.extend(reply_times(variant, difficulty, s))
            m, h = ci95(samples)
            print(
                f"{variant:>8} {difficulty:>6}: mean={m * 1e3:.3f}ms ± {h * 1e3:.3f}ms "
                f"(95% CI, n={len(samples)})"
            )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
