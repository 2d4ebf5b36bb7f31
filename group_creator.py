"""Randomized greedy construction of a week's groups.

Players are split into as many 4-player groups as needed so that no group
exceeds four, with the rest of size three. Each group is seeded with a random
player and filled with random picks among the ungrouped players that have met
every current member at most ``threshold`` times before; the threshold starts
at zero and is raised only when nobody qualifies. The highest threshold an
attempt had to accept is its ``max_encounters``, and ``generate_week`` keeps
starting fresh attempts until one finishes with zero.
"""

from __future__ import annotations

import copy
import json
import random
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from league_weeks import COMMENT_PREFIX, GROUP_MARKER, EncounterHistory, Group, Week

MIN_PLAYERS = 3

# =============== CONFIG ==============================================
DEFAULT_CONFIG = {
    # None keeps retrying until an attempt has no forced repeats
    "MAX_ATTEMPTS": None,
    "SEED": None,
    # Status line on stderr every N rejected attempts (0 = quiet)
    "PROGRESS_EVERY": 1000,
    "GROUP_MARKER": GROUP_MARKER,
    "COMMENT_PREFIX": COMMENT_PREFIX,
}


class RosterSizeError(ValueError):
    """The roster cannot be split into groups of 3 and 4."""


class RosterTooSmallError(RosterSizeError):
    pass


class ConfigError(ValueError):
    pass


def deep_update(dst: dict, src: dict) -> dict:
    """Recursively merge ``src`` into ``dst`` (in-place)."""

    for key, value in (src or {}).items():
        if isinstance(value, dict) and isinstance(dst.get(key), dict):
            deep_update(dst[key], value)
        else:
            dst[key] = copy.deepcopy(value)
    return dst


def _validate_config(cfg: dict) -> None:
    unknown = sorted(set(cfg) - set(DEFAULT_CONFIG))
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
    cap = cfg.get("MAX_ATTEMPTS")
    if cap is not None and (isinstance(cap, bool) or not isinstance(cap, int) or cap < 1):
        raise ConfigError("MAX_ATTEMPTS must be a positive integer or null")
    seed = cfg.get("SEED")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        raise ConfigError("SEED must be an integer or null")
    every = cfg.get("PROGRESS_EVERY")
    if isinstance(every, bool) or not isinstance(every, int) or every < 0:
        raise ConfigError("PROGRESS_EVERY must be a non-negative integer")
    for key in ("GROUP_MARKER", "COMMENT_PREFIX"):
        if not isinstance(cfg.get(key), str) or not cfg[key].strip():
            raise ConfigError(f"{key} must be a non-empty string")


def build_config(overrides: dict | None = None) -> dict:
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if overrides:
        deep_update(cfg, overrides)
    _validate_config(cfg)
    return cfg


def read_config_file(path: Path | None) -> dict:
    """JSON overrides from ``path`` (empty when no path is given)."""
    if path is None:
        return {}
    try:
        overrides = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid config {path}: {e}")
    if not isinstance(overrides, dict):
        raise ConfigError(f"Invalid config {path}: expected a JSON object")
    return overrides


def week_format(cfg: dict) -> dict:
    """Keyword arguments for the week and player-list readers/writers."""
    return {"marker": cfg["GROUP_MARKER"], "comment_prefix": cfg["COMMENT_PREFIX"]}

# =====================================================================


def group_count(player_count: int) -> int:
    """Fewest groups such that none needs more than four players."""
    if player_count < MIN_PLAYERS:
        raise RosterTooSmallError(f"Need at least {MIN_PLAYERS} players, got {player_count}")
    return (player_count - 1) // 4 + 1


def four_player_groups(player_count: int) -> int:
    return player_count - 3 * group_count(player_count)


def group_sizes(player_count: int) -> List[int]:
    """Target sizes, 4-player groups first."""
    groups = group_count(player_count)
    fours = four_player_groups(player_count)
    # 5 is the only count >= 3 with no split into 3s and 4s
    if fours < 0:
        raise RosterSizeError(f"{player_count} players cannot be split into groups of 3 and 4")
    return [4] * fours + [3] * (groups - fours)


def _without(pool: Tuple[str, ...], player: str) -> Tuple[str, ...]:
    return tuple(p for p in pool if p != player)


class GroupCreator:
    """One attempt at building a week. Create a new instance per attempt."""

    def __init__(
        self,
        players: Iterable[str],
        history: EncounterHistory | Sequence[Week],
        rng: random.Random | None = None,
    ):
        self.players: Tuple[str, ...] = tuple(dict.fromkeys(players))
        self.sizes = group_sizes(len(self.players))
        if not isinstance(history, EncounterHistory):
            history = EncounterHistory(history)
        self.history = history
        self.rng = rng or random.Random()
        self.max_encounters = 0
        self._ungrouped: Tuple[str, ...] = self.players

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def group_count(self) -> int:
        return len(self.sizes)

    @property
    def four_player_groups(self) -> int:
        return self.sizes.count(4)

    def create_week(self) -> Week:
        self._ungrouped = self.players
        self.max_encounters = 0
        groups = [self._create_group(size) for size in self.sizes]
        assert not self._ungrouped, f"players left ungrouped: {self._ungrouped}"
        return Week(tuple(groups))

    def _create_group(self, size: int) -> Group:
        first = self.rng.choice(self._ungrouped)
        group = [first]
        self._ungrouped = _without(self._ungrouped, first)
        while len(group) < size:
            player = self._player_for_group(group)
            group.append(player)
            self._ungrouped = _without(self._ungrouped, player)
        return tuple(group)

    def _player_for_group(self, group: Sequence[str]) -> str:
        pool = self._ungrouped
        assert pool, "no ungrouped players left for an unfinished group"
        met: List[Dict[str, int]] = [self.history.prior_encounters(member) for member in group]

        threshold = 0
        while True:
            choices = [p for p in pool if all(m.get(p, 0) <= threshold for m in met)]
            if choices:
                break
            threshold += 1

        if threshold > self.max_encounters:
            self.max_encounters = threshold
        return self.rng.choice(choices)


@dataclass(frozen=True)
class WeekResult:
    week: Week
    max_encounters: int
    attempts: int

    @property
    def accepted(self) -> bool:
        return self.max_encounters == 0


def generate_week(
    players: Iterable[str],
    history: EncounterHistory | Sequence[Week],
    *,
    rng: random.Random | None = None,
    max_attempts: Optional[int] = None,
    progress_every: int = 0,
) -> WeekResult:
    """Retry whole attempts until one needs no forced repeats.

    With ``max_attempts`` set, the best attempt seen (lowest
    ``max_encounters``, earliest on ties) is returned once the cap is hit.
    """
    roster = list(dict.fromkeys(players))
    group_sizes(len(roster))
    if max_attempts is not None and max_attempts < 1:
        raise ConfigError("max_attempts must be a positive integer")
    if not isinstance(history, EncounterHistory):
        history = EncounterHistory(history)
    rng = rng or random.Random()

    best: Optional[Tuple[Week, int]] = None
    attempt = 0
    while True:
        attempt += 1
        creator = GroupCreator(roster, history, rng=rng)
        week = creator.create_week()
        if creator.max_encounters == 0:
            return WeekResult(week, 0, attempt)
        if best is None or creator.max_encounters < best[1]:
            best = (week, creator.max_encounters)
        if progress_every and attempt % progress_every == 0:
            print(f"attempt {attempt}: best so far has {best[1]} forced repeat(s)", file=sys.stderr)
        if max_attempts is not None and attempt >= max_attempts:
            print(
                f"[warn] no repeat-free week after {attempt} attempts; "
                f"using best attempt ({best[1]} forced repeat(s))",
                file=sys.stderr,
            )
            return WeekResult(best[0], best[1], attempt)
