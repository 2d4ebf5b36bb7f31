"""Fixtures and helpers for group generation tests."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

from league_weeks import Week

NAMES: Sequence[str] = (
    "Alex",
    "Blair",
    "Casey",
    "Devon",
    "Emery",
    "Finley",
    "Gray",
    "Harper",
    "Indigo",
    "Jordan",
    "Kai",
    "Logan",
    "Morgan",
    "Noel",
    "Oakley",
    "Parker",
)


def roster(count: int) -> List[str]:
    if count <= len(NAMES):
        return list(NAMES[:count])
    return [f"Player {i:02d}" for i in range(1, count + 1)]


def week(*groups: Iterable[str]) -> Week:
    return Week.from_lists(groups)


def write_players(path: Path, names: Iterable[str], *, header: str | None = "; players") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [header] if header else []
    lines.extend(names)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def write_week_file(path: Path, groups: Iterable[Iterable[str]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines: List[str] = []
    for group in groups:
        lines.append("[group]")
        lines.extend(group)
        lines.append("")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def assert_partition(result: Week, players: Iterable[str]) -> None:
    expected = sorted(set(players))
    placed = result.players()
    assert sorted(placed) == expected
    assert len(placed) == len(set(placed))
    assert all(len(g) in (3, 4) for g in result.groups)


def plot_env() -> Dict[str, str]:
    env = os.environ.copy()
    env.setdefault("MPLBACKEND", "Agg")
    return env
