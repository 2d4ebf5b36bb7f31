#!/usr/bin/env python3
"""Summarize how often players have been grouped together.

Reads the prior week files (and optionally a candidate week, e.g. the one
``make_groups.py`` just produced) and emits a per-player CSV plus a short
plaintext summary of repeat pairings.
"""

from __future__ import annotations

import argparse
import csv
from pathlib import Path
from typing import Dict, List, Sequence

import group_creator as creator
from league_weeks import EncounterHistory, Week, read_history, read_week, week_repeats

REPORT_COLUMNS = (
    "Player",
    "WeeksPlayed",
    "DistinctPartners",
    "RepeatEncounters",
    "MaxWithOnePartner",
    "MostMet",
    "CandidateRepeats",
    "CandidateRepeatPartners",
)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Generate a per-player encounter report", formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    ap.add_argument("-w", "--prior-weeks", nargs="+", required=True, type=Path, help="Prior week files, oldest first")
    ap.add_argument("--week", type=Path, help="Candidate week to check against the history")
    ap.add_argument("--out", default=Path("reports") / "encounter_report.csv", type=Path, help="Where to write the per-player CSV report")
    ap.add_argument("--summary", default=Path("reports") / "encounter_report.txt", type=Path, help="Optional plaintext summary (set to '-' to skip)")
    ap.add_argument("--config", type=Path, help="Optional JSON file with CONFIG overrides (GROUP_MARKER, COMMENT_PREFIX)")
    return ap.parse_args(argv)


def build_report(history: EncounterHistory, candidate: Week | None = None) -> List[Dict[str, object]]:
    players = history.players()
    if candidate is not None:
        players += [p for p in candidate.players() if p not in players]

    candidate_partners: Dict[str, List[str]] = {}
    if candidate is not None:
        for a, b, _ in week_repeats(candidate, history):
            candidate_partners.setdefault(a, []).append(b)
            candidate_partners.setdefault(b, []).append(a)

    rows: List[Dict[str, object]] = []
    for player in sorted(players):
        met = history.prior_encounters(player)
        top = max(met.values(), default=0)
        partners = sorted(candidate_partners.get(player, []))
        rows.append(
            {
                "Player": player,
                "WeeksPlayed": sum(1 for w in history.weeks if w.group_of(player) is not None),
                "DistinctPartners": len(met),
                "RepeatEncounters": sum(max(0, n - 1) for n in met.values()),
                "MaxWithOnePartner": top,
                "MostMet": " | ".join(sorted(p for p, n in met.items() if n == top and top > 1)),
                "CandidateRepeats": len(partners),
                "CandidateRepeatPartners": " | ".join(partners),
            }
        )
    return rows


def write_report(rows: List[Dict[str, object]], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=REPORT_COLUMNS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)


def write_summary(
    rows: List[Dict[str, object]],
    history: EncounterHistory,
    path: Path,
    candidate: Week | None = None,
) -> None:
    if str(path) == "-":
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["Encounter report"]
    if not rows:
        lines.append("No players found.")
    else:
        pairs = history.pair_counts()
        repeated = sorted(((n, a, b) for (a, b), n in pairs.items() if n > 1), reverse=True)
        lines.append(f"Players: {len(rows)} across {len(history)} week(s); pairs met={len(pairs)}, met more than once={len(repeated)}")
        if repeated:
            lines.append("Most repeated pairs: " + ", ".join(f"{a} & {b} ({n})" for n, a, b in repeated[:10]))
    if candidate is not None:
        repeats = week_repeats(candidate, history)
        lines.append(f"Candidate week repeats: {len(repeats)}")
        for a, b, n in repeats:
            lines.append(f"  {a} & {b} (met {n} time(s) before)")

    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    for p in [*args.prior_weeks, *([args.week] if args.week else []), *([args.config] if args.config else [])]:
        if not p.exists():
            raise SystemExit(f"Missing file: {p}")
    try:
        fmt = creator.week_format(creator.build_config(creator.read_config_file(args.config)))
    except ValueError as e:
        raise SystemExit(str(e))
    history = EncounterHistory(read_history(args.prior_weeks, **fmt))
    candidate = read_week(args.week, **fmt) if args.week else None
    rows = build_report(history, candidate)
    write_report(rows, args.out)
    write_summary(rows, history, args.summary, candidate)
    print(f"Wrote report to {args.out}")
    if str(args.summary) != "-":
        print(f"Summary saved to {args.summary}")


if __name__ == "__main__":
    main()
