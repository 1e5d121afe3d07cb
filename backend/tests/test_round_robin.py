"""Circle-method round robin: completeness, round counts, byes."""
from collections import Counter
from itertools import count

import pytest

from pitchplan.services.tournament_state import GroupState, TeamState
from pitchplan.utils.round_robin import generate, round_robin_rounds


def _teams(n):
    return [TeamState(id=f"t{i}", name=chr(ord("A") + i)) for i in range(n)]


def _ids():
    counter = count(1)
    return lambda: f"f{next(counter)}"


@pytest.mark.parametrize("n", [2, 3, 4, 5, 6, 7, 8, 11])
def test_every_pair_meets_exactly_once(n):
    teams = _teams(n)
    fixtures = generate(teams, None, "c1")

    pairs = Counter(frozenset((f.home_team_id, f.away_team_id)) for f in fixtures)
    assert len(pairs) == n * (n - 1) // 2
    assert set(pairs.values()) == {1}


@pytest.mark.parametrize("n", [2, 4, 6, 8])
def test_even_count_round_shape(n):
    rounds = round_robin_rounds(list(range(n)))
    assert len(rounds) == n - 1
    assert all(len(r) == n // 2 for r in rounds)


@pytest.mark.parametrize("n", [3, 5, 7])
def test_odd_count_one_bye_per_round(n):
    entries = list(range(n))
    rounds = round_robin_rounds(entries)

    assert len(rounds) == n
    for pairs in rounds:
        assert len(pairs) == (n - 1) // 2
        playing = {e for pair in pairs for e in pair}
        assert len(set(entries) - playing) == 1

    # Every entry sits out exactly once
    byes = Counter((set(entries) - {e for pair in r for e in pair}).pop() for r in rounds)
    assert set(byes.values()) == {1}


def test_four_teams_no_groups():
    """A,B,C,D -> 3 rounds x 2 matches; each team plays 3 times."""
    teams = _teams(4)
    fixtures = generate(teams, None, "c1", id_factory=_ids())

    assert len(fixtures) == 6
    appearances = Counter(t for f in fixtures for t in (f.home_team_id, f.away_team_id))
    assert all(appearances[t.id] == 3 for t in teams)
    assert [f.description for f in fixtures] == ["Round 1"] * 2 + ["Round 2"] * 2 + ["Round 3"] * 2
    assert all(f.group_id is None and f.stage == "Group" and f.duration == 20 for f in fixtures)


def test_five_teams_no_groups():
    fixtures = generate(_teams(5), None, "c1")
    assert len(fixtures) == 10
    assert Counter(f.description for f in fixtures) == {f"Round {r}": 2 for r in range(1, 6)}


def test_first_round_pairs_outside_in():
    rounds = round_robin_rounds(["A", "B", "C", "D"])
    assert rounds[0] == [("A", "D"), ("B", "C")]
    assert rounds[1] == [("A", "C"), ("D", "B")]


def test_group_fixtures_carry_group_and_description():
    group = GroupState(id="g1", name="Gp. 1")
    fixtures = generate(_teams(3), group, "c1", id_factory=_ids())

    assert [f.id for f in fixtures] == ["f1", "f2", "f3"]
    assert all(f.group_id == "g1" for f in fixtures)
    assert fixtures[0].description == "Gp. 1 - R1"
    assert fixtures[-1].description == "Gp. 1 - R3"


@pytest.mark.parametrize("n", [0, 1])
def test_fewer_than_two_teams_generates_nothing(n):
    assert generate(_teams(n), None, "c1") == []
