#!/usr/bin/env python3
"""Generate the next week's groups.

Reads the roster (one player per line) and any number of prior week files,
then writes the new week in the same ``[group]`` format to ``--output`` or to
stdout. Status lines go to stderr.
"""

from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import List, Sequence

import group_creator as creator
from league_weeks import EncounterHistory, read_history, read_player_list, week_repeats, write_week


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Split players into groups of 3-4, avoiding repeat pairings")
    ap.add_argument("-p", "--players", required=True, type=Path,
                    help="The path to the file containing the players for the week to be generated")
    ap.add_argument("-w", "--prior-weeks", nargs="*", default=[], type=Path,
                    help="The paths to the files containing data about the prior weeks")
    ap.add_argument("-o", "--output", type=Path,
                    help="The path to the file where the output will be written (stdout when omitted)")
    ap.add_argument("--config", type=Path, help="Optional JSON file with CONFIG overrides")
    ap.add_argument("--seed", type=int, help="Seed for the random source (overrides SEED)")
    ap.add_argument("--max-attempts", type=int,
                    help="Stop after this many attempts and keep the best one (overrides MAX_ATTEMPTS)")
    return ap.parse_args(argv)


def load_config(args: argparse.Namespace) -> dict:
    try:
        overrides = creator.read_config_file(args.config)
    except ValueError as e:
        raise SystemExit(str(e))
    if args.seed is not None:
        overrides["SEED"] = args.seed
    if args.max_attempts is not None:
        overrides["MAX_ATTEMPTS"] = args.max_attempts
    try:
        return creator.build_config(overrides)
    except ValueError as e:
        raise SystemExit(str(e))


def check_inputs(args: argparse.Namespace) -> None:
    paths: List[Path] = [args.players, *args.prior_weeks]
    if args.config:
        paths.append(args.config)
    for p in paths:
        if not p.exists():
            raise SystemExit(f"Missing file: {p}")


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    check_inputs(args)
    cfg = load_config(args)
    fmt = creator.week_format(cfg)

    try:
        players = read_player_list(args.players, **fmt)
    except ValueError as e:
        raise SystemExit(f"{args.players}: {e}")
    history = EncounterHistory(read_history(args.prior_weeks, **fmt))

    try:
        result = creator.generate_week(
            players,
            history,
            rng=random.Random(cfg["SEED"]),
            max_attempts=cfg["MAX_ATTEMPTS"],
            progress_every=cfg["PROGRESS_EVERY"],
        )
    except ValueError as e:
        raise SystemExit(str(e))

    sizes = result.week.sizes()
    print(
        f"{len(players)} players, {len(history)} prior week(s) -> "
        f"{sizes.count(4)} group(s) of 4, {sizes.count(3)} group(s) of 3 "
        f"after {result.attempts} attempt(s)",
        file=sys.stderr,
    )
    for a, b, n in week_repeats(result.week, history):
        print(f"[warn] {a} and {b} grouped again (met {n} time(s) before)", file=sys.stderr)

    write_week(result.week, args.output, **fmt)
    if args.output is not None:
        print(f"Wrote week to {args.output}", file=sys.stderr)


if __name__ == "__main__":
    main()
