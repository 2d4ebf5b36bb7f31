from __future__ import annotations

import random

import pytest

import group_creator as gc
from tests.utils import assert_partition, roster, week


class RecordingChoice:
    """Always takes the first option and remembers what it was offered."""

    def __init__(self) -> None:
        self.offered = []

    def choice(self, seq):
        self.offered.append(list(seq))
        return seq[0]


@pytest.mark.parametrize(
    "players, groups, fours",
    [
        (3, 1, 0),
        (4, 1, 1),
        (5, 2, -1),
        (6, 2, 0),
        (7, 2, 1),
        (8, 2, 2),
        (9, 3, 0),
        (10, 3, 1),
        (11, 3, 2),
        (12, 3, 3),
    ],
)
def test_group_count_formula(players: int, groups: int, fours: int) -> None:
    assert gc.group_count(players) == groups
    assert gc.four_player_groups(players) == fours


@pytest.mark.parametrize("players", [3, 4, 6, 7, 8, 9, 10, 11, 12, 13, 17, 22])
def test_group_sizes_consume_roster(players: int) -> None:
    sizes = gc.group_sizes(players)

    assert sum(sizes) == players
    assert set(sizes) <= {3, 4}
    assert sizes == sorted(sizes, reverse=True)


@pytest.mark.parametrize("players", [0, 1, 2])
def test_small_roster_is_a_configuration_error(players: int) -> None:
    with pytest.raises(gc.RosterTooSmallError):
        gc.GroupCreator(roster(players), [])
    with pytest.raises(gc.RosterTooSmallError):
        gc.generate_week(roster(players), [])


def test_five_players_cannot_be_split() -> None:
    with pytest.raises(gc.RosterSizeError):
        gc.generate_week(roster(5), [])


def test_three_and_four_players_make_one_group() -> None:
    three = gc.GroupCreator(roster(3), [], rng=random.Random(3)).create_week()
    four = gc.GroupCreator(roster(4), [], rng=random.Random(3)).create_week()

    assert three.sizes() == [3]
    assert four.sizes() == [4]
    assert_partition(three, roster(3))
    assert_partition(four, roster(4))


def test_duplicate_players_collapse() -> None:
    creator = gc.GroupCreator(["Alex", "Blair", "Alex", "Casey", "Blair"], [], rng=random.Random(1))

    assert creator.player_count == 3
    assert_partition(creator.create_week(), ["Alex", "Blair", "Casey"])


@pytest.mark.parametrize("seed", range(5))
@pytest.mark.parametrize("players", [3, 4, 6, 7, 9, 10, 16, 25])
def test_partition_without_history_needs_no_repeats(seed: int, players: int) -> None:
    creator = gc.GroupCreator(roster(players), [], rng=random.Random(seed))
    result = creator.create_week()

    assert creator.max_encounters == 0
    assert creator.group_count == len(result.groups)
    assert creator.four_player_groups == result.sizes().count(4)
    assert_partition(result, roster(players))


def test_filter_prefers_unmet_players_and_relaxes_when_needed() -> None:
    rng = RecordingChoice()
    history = [week(["Alex", "Blair"])]
    creator = gc.GroupCreator(["Alex", "Blair", "Casey", "Devon"], history, rng=rng)

    result = creator.create_week()

    assert result.groups == (("Alex", "Casey", "Devon", "Blair"),)
    assert rng.offered == [
        ["Alex", "Blair", "Casey", "Devon"],
        ["Casey", "Devon"],
        ["Devon"],
        ["Blair"],
    ]
    assert creator.max_encounters == 1


def test_max_encounters_tracks_highest_threshold() -> None:
    history = [week(["Alex", "Blair", "Casey", "Devon"]), week(["Alex", "Blair", "Casey", "Devon"])]
    creator = gc.GroupCreator(["Alex", "Blair", "Casey", "Devon"], history, rng=random.Random(0))

    creator.create_week()

    assert creator.max_encounters == 2


@pytest.mark.parametrize("seed", range(10))
def test_single_known_pair_is_kept_apart(seed: int) -> None:
    history = [week(["Alex", "Blair"])]
    players = roster(8)

    result = gc.generate_week(players, history, rng=random.Random(seed))

    assert result.accepted
    assert result.max_encounters == 0
    assert_partition(result.week, players)
    assert result.week.group_of("Alex") != result.week.group_of("Blair")


def test_empty_history_accepts_first_attempt() -> None:
    result = gc.generate_week(roster(13), [], rng=random.Random(11))

    assert result.attempts == 1
    assert result.accepted


def test_same_seed_gives_same_week() -> None:
    # Three groups can take one player from each prior group, so a repeat-free week exists.
    history = [week(["Alex", "Blair", "Casey"], ["Devon", "Emery", "Finley"])]
    players = roster(10)

    first = gc.generate_week(players, history, rng=random.Random(42))
    second = gc.generate_week(players, history, rng=random.Random(42))

    assert first.accepted
    assert first == second


def test_same_seed_gives_same_capped_week() -> None:
    # Four players who all met cannot be spread over three groups.
    history = [week(["Alex", "Blair", "Casey"], ["Devon", "Emery", "Finley", "Gray"])]
    players = roster(10)

    first = gc.generate_week(players, history, rng=random.Random(42), max_attempts=50)
    second = gc.generate_week(players, history, rng=random.Random(42), max_attempts=50)

    assert not first.accepted
    assert first.max_encounters == 1
    assert first.attempts == 50
    assert first == second


def test_attempt_cap_returns_best_attempt(capsys) -> None:
    # Two groups of three cannot avoid re-pairing somebody from these groups.
    history = [week(["Alex", "Blair", "Casey"], ["Devon", "Emery", "Finley"])]

    result = gc.generate_week(roster(6), history, rng=random.Random(5), max_attempts=4, progress_every=2)

    assert not result.accepted
    assert result.max_encounters == 1
    assert result.attempts == 4
    assert_partition(result.week, roster(6))
    err = capsys.readouterr().err
    assert "attempt 2:" in err and "attempt 4:" in err
    assert "[warn] no repeat-free week after 4 attempts" in err


def test_attempt_cap_must_be_positive() -> None:
    with pytest.raises(gc.ConfigError):
        gc.generate_week(roster(6), [], max_attempts=0)


def test_build_config_defaults_and_overrides() -> None:
    cfg = gc.build_config({"MAX_ATTEMPTS": 50, "SEED": 9})

    assert cfg["MAX_ATTEMPTS"] == 50
    assert cfg["SEED"] == 9
    assert cfg["GROUP_MARKER"] == "[group]"
    assert gc.DEFAULT_CONFIG["MAX_ATTEMPTS"] is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"MAX_ATTEMPTS": 0},
        {"MAX_ATTEMPTS": "10"},
        {"SEED": 1.5},
        {"PROGRESS_EVERY": -1},
        {"GROUP_MARKER": " "},
        {"UNKNOWN": 1},
    ],
)
def test_build_config_rejects_bad_values(overrides: dict) -> None:
    with pytest.raises(gc.ConfigError):
        gc.build_config(overrides)
