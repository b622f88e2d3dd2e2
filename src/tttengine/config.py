"""Settings for the engine and its tools, read from the environment.

TTT_REPO_ROOT and TTT_DATA_DIR place self-play output; TTT_THINKING_DELAY
sets the opponent's pause. Self-play manifests also record the checkout's
commit so a results file can be traced back to the engine that produced it.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Optional


def _find_git_root(start: Path) -> Optional[Path]:
    """Closest directory at or above `start` holding a .git entry."""
    for candidate in [start, *start.parents][:5]:
        if (candidate / ".git").exists():
            return candidate
    return None


def repo_root() -> Path:
    """TTT_REPO_ROOT, else the checkout the package runs from, else CWD."""
    env = os.getenv("TTT_REPO_ROOT")
    if env:
        return Path(env)
    return _find_git_root(Path(__file__).resolve()) or Path.cwd()


def data_dir() -> Path:
    """Where `ttt selfplay` writes when no --out is given."""
    p = os.getenv("TTT_DATA_DIR")
    return Path(p) if p else repo_root() / "runs"


def thinking_delay() -> float:
    """Seconds the opponent waits before its move is applied (TTT_THINKING_DELAY)."""
    raw = os.getenv("TTT_THINKING_DELAY", "").strip()
    if not raw:
        return 0.0
    try:
        delay = float(raw)
    except ValueError:
        raise ValueError(f"TTT_THINKING_DELAY must be a number of seconds, got {raw!r}") from None
    if delay < 0:
        raise ValueError(f"TTT_THINKING_DELAY must not be negative, got {delay}")
    return delay


def _git(*args: str) -> Optional[str]:
    try:
        return subprocess.check_output(
            ["git", "-C", str(repo_root()), *args],
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=2.0,
        )
    except (OSError, subprocess.SubprocessError):
        return None


def get_git_commit() -> Optional[str]:
    """Commit of the engine checkout, or None outside a git working tree."""
    out = _git("rev-parse", "HEAD")
    if out is None:
        return None
    return out.strip() or None


def get_git_is_dirty() -> Optional[bool]:
    """Whether the engine has uncommitted edits; None when git can't tell."""
    out = _git("status", "--porcelain")
    return None if out is None else bool(out.strip())
