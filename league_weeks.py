"""Weeks, rosters and the encounter history derived from them.

A week file is line oriented::

    [group]
    Alex
    Blair
    Casey

    [group]
    ...

Blank lines and lines starting with ``;`` are ignored. The player list uses the
same comment rules with one name per line.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from itertools import combinations
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, TextIO, Tuple

import networkx as nx

GROUP_MARKER = "[group]"
COMMENT_PREFIX = ";"

Group = Tuple[str, ...]


@dataclass(frozen=True)
class Week:
    groups: Tuple[Group, ...] = ()

    @classmethod
    def from_lists(cls, groups: Iterable[Iterable[str]]) -> "Week":
        return cls(tuple(tuple(g) for g in groups))

    def players(self) -> List[str]:
        return [p for g in self.groups for p in g]

    def group_of(self, player: str) -> Optional[Group]:
        """First group holding ``player`` (a player should appear only once)."""
        for group in self.groups:
            if player in group:
                return group
        return None

    def sizes(self) -> List[int]:
        return [len(g) for g in self.groups]


class PlayerNameError(ValueError):
    """A player name that would not survive a round trip through a week file."""


def trim(s: str) -> str:
    return (s or "").strip()


def _skip(line: str, comment_prefix: str) -> bool:
    return not line or line.startswith(comment_prefix)


def check_player_name(name: str, *, marker: str = GROUP_MARKER, comment_prefix: str = COMMENT_PREFIX) -> str:
    if name.lower() == marker.lower():
        raise PlayerNameError(f"Player name {name!r} clashes with the group marker {marker!r}")
    if _skip(name, comment_prefix) or name != trim(name):
        raise PlayerNameError(f"Player name {name!r} would be skipped or altered when read back")
    return name


# ---------------------------- Player list ----------------------------

def parse_player_lines(
    lines: Iterable[str],
    *,
    marker: str = GROUP_MARKER,
    comment_prefix: str = COMMENT_PREFIX,
) -> List[str]:
    """Trimmed roster in file order; duplicate names collapse to the first.

    A name equal to the group marker raises ``PlayerNameError``.
    """
    seen: Dict[str, None] = {}
    for raw in lines:
        line = trim(raw)
        if _skip(line, comment_prefix):
            continue
        seen.setdefault(check_player_name(line, marker=marker, comment_prefix=comment_prefix), None)
    return list(seen)


def read_player_list(
    path: Path,
    *,
    marker: str = GROUP_MARKER,
    comment_prefix: str = COMMENT_PREFIX,
) -> List[str]:
    text = Path(path).read_text(encoding="utf-8-sig")
    return parse_player_lines(text.splitlines(), marker=marker, comment_prefix=comment_prefix)


# ---------------------------- Week files -----------------------------

def parse_week_lines(
    lines: Iterable[str],
    *,
    marker: str = GROUP_MARKER,
    comment_prefix: str = COMMENT_PREFIX,
    source: str = "<week>",
) -> Week:
    marker_l = marker.lower()
    groups: List[Group] = []
    current: List[str] = []
    opened = False
    for lineno, raw in enumerate(lines, start=1):
        line = trim(raw)
        if _skip(line, comment_prefix):
            continue
        if line.lower() == marker_l:
            if current:
                groups.append(tuple(current))
                current = []
            elif opened:
                print(f"[warn] {source}:{lineno}: empty group dropped", file=sys.stderr)
            opened = True
            continue
        current.append(line)
    if current:
        groups.append(tuple(current))
    return Week(tuple(groups))


def read_week(
    path: Path,
    *,
    marker: str = GROUP_MARKER,
    comment_prefix: str = COMMENT_PREFIX,
) -> Week:
    path = Path(path)
    text = path.read_text(encoding="utf-8-sig")
    return parse_week_lines(text.splitlines(), marker=marker, comment_prefix=comment_prefix, source=str(path))


def read_history(paths: Iterable[Path], **kwargs) -> List[Week]:
    return [read_week(p, **kwargs) for p in paths]


def format_week(week: Week, *, marker: str = GROUP_MARKER, comment_prefix: str = COMMENT_PREFIX) -> str:
    out: List[str] = []
    for group in week.groups:
        out.append(marker)
        out.extend(check_player_name(p, marker=marker, comment_prefix=comment_prefix) for p in group)
        out.append("")
    return "".join(f"{line}\n" for line in out)


def write_week(
    week: Week,
    dest: Path | None = None,
    *,
    marker: str = GROUP_MARKER,
    comment_prefix: str = COMMENT_PREFIX,
    stream: TextIO | None = None,
) -> None:
    """Write ``week`` to ``dest``, or to ``stream`` (stdout) when no path is given."""
    text = format_week(week, marker=marker, comment_prefix=comment_prefix)
    if dest is None:
        (stream or sys.stdout).write(text)
        return
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(text, encoding="utf-8")


# ------------------------- Encounter history -------------------------

def prior_encounters(player: str, history: Sequence[Week]) -> Dict[str, int]:
    """Return how often ``player`` shared a group with each other player.

    Only the first group containing the player is used for every week. Players
    never grouped with ``player`` have no entry.
    """
    counts: Dict[str, int] = {}
    for week in history:
        group = week.group_of(player)
        if group is None:
            continue
        for other in group:
            if other == player:
                continue
            counts[other] = counts.get(other, 0) + 1
    return counts


class EncounterHistory:
    """Read-only view over past weeks with per-player memoisation."""

    def __init__(self, weeks: Iterable[Week]):
        self.weeks: Tuple[Week, ...] = tuple(weeks)
        self._cache: Dict[str, Dict[str, int]] = {}

    def __len__(self) -> int:
        return len(self.weeks)

    def prior_encounters(self, player: str) -> Dict[str, int]:
        if player not in self._cache:
            self._cache[player] = prior_encounters(player, self.weeks)
        return dict(self._cache[player])

    def encounters(self, a: str, b: str) -> int:
        return self.prior_encounters(a).get(b, 0)

    def players(self) -> List[str]:
        seen: Dict[str, None] = {}
        for week in self.weeks:
            for p in week.players():
                seen.setdefault(p, None)
        return list(seen)

    def pair_counts(self) -> Dict[Tuple[str, str], int]:
        """Encounter counts keyed by sorted player pairs."""
        counts: Dict[Tuple[str, str], int] = {}
        for player in self.players():
            for other, n in self.prior_encounters(player).items():
                if player < other:
                    counts[(player, other)] = n
        return counts


def encounter_graph(history: EncounterHistory | Sequence[Week]) -> nx.Graph:
    if not isinstance(history, EncounterHistory):
        history = EncounterHistory(history)
    graph = nx.Graph()
    for player in history.players():
        graph.add_node(player, weeks=sum(1 for w in history.weeks if w.group_of(player) is not None))
    for (a, b), n in history.pair_counts().items():
        graph.add_edge(a, b, weight=n)
    return graph


def week_repeats(week: Week, history: EncounterHistory | Sequence[Week]) -> List[Tuple[str, str, int]]:
    """Pairs placed together in ``week`` that already met, with their prior count."""
    if not isinstance(history, EncounterHistory):
        history = EncounterHistory(history)
    repeats: List[Tuple[str, str, int]] = []
    for group in week.groups:
        for a, b in combinations(group, 2):
            n = history.encounters(a, b)
            if n:
                repeats.append((a, b, n))
    return repeats
