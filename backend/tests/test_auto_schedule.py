"""
Pitch Timeline Allocator

Covers sequential placement, break avoidance, group pitch pools and
knockout tier ordering for a single competition.
"""
from itertools import combinations

from pitchplan.services.auto_schedule import auto_schedule
from pitchplan.services.schedule_context import KNOCKOUT_TIER, knockout_tier
from pitchplan.services.tournament_state import GroupState, PitchBreak
from pitchplan.utils.time_utils import parse_time_to_minutes
from tests.builders import make_competition, make_fixture, make_pitches


def _intervals(competition):
    return [
        (f.pitch_id, parse_time_to_minutes(f.start_time), parse_time_to_minutes(f.start_time) + f.duration)
        for f in competition.fixtures
        if f.is_placed
    ]


def assert_no_overlaps(competition):
    for (p1, s1, e1), (p2, s2, e2) in combinations(_intervals(competition), 2):
        if p1 == p2:
            assert e1 <= s2 or e2 <= s1, f"overlap on {p1}: {s1}-{e1} vs {s2}-{e2}"


def test_stage_tier_table():
    assert KNOCKOUT_TIER["Round of 16"] < KNOCKOUT_TIER["Quarter-Final"] < KNOCKOUT_TIER["Semi-Final"]
    assert knockout_tier("Final") == knockout_tier("3rd Place Playoff") == 3
    assert knockout_tier("Plate Final") == 99


def test_sequential_fixtures_on_one_pitch():
    """10:00 start, 20 min + 5 slack -> 10:00, 10:25, 10:50."""
    competition = make_competition(fixtures=[make_fixture(f"f{i}") for i in range(3)])

    scheduled = auto_schedule(competition, make_pitches("P1"), ())

    assert [f.start_time for f in scheduled.fixtures] == ["10:00", "10:25", "10:50"]
    assert {f.pitch_id for f in scheduled.fixtures} == {"P1"}
    assert {f.schedule_status for f in scheduled.fixtures} == {"tentative"}
    assert [f.match_id for f in scheduled.fixtures] == ["CU.01", "CU.02", "CU.03"]


def test_fixture_pushed_past_break():
    competition = make_competition(fixtures=[make_fixture("f1")])
    breaks = [PitchBreak(id="b1", pitch_id="P1", start_time="10:10", duration=10)]

    scheduled = auto_schedule(competition, make_pitches("P1"), breaks)

    assert scheduled.fixtures[0].start_time == "10:20"


def test_break_only_applies_to_its_pitch():
    group = GroupState(id="g1", name="Gp. 1", pitch_ids=("P1", "P2"))
    competition = make_competition(
        groups=[group],
        fixtures=[make_fixture("f1", group_id="g1"), make_fixture("f2", group_id="g1")],
    )
    breaks = [PitchBreak(id="b1", pitch_id="P1", start_time="10:00", duration=30)]

    scheduled = auto_schedule(competition, make_pitches("P1", "P2"), breaks)

    f1, f2 = scheduled.fixtures
    assert (f1.pitch_id, f1.start_time) == ("P1", "10:30")
    assert (f2.pitch_id, f2.start_time) == ("P2", "10:00")


def test_group_rotates_through_its_pitch_pool():
    group = GroupState(id="g1", name="Gp. 1", pitch_ids=("P1", "P2"))
    competition = make_competition(
        groups=[group],
        fixtures=[make_fixture(f"f{i}", group_id="g1") for i in range(4)],
    )

    scheduled = auto_schedule(competition, make_pitches("P1", "P2"), ())

    assert [(f.pitch_id, f.start_time) for f in scheduled.fixtures] == [
        ("P1", "10:00"),
        ("P2", "10:00"),
        ("P1", "10:25"),
        ("P2", "10:25"),
    ]


def test_groups_sharing_a_pitch_interleave():
    groups = [
        GroupState(id="g1", name="Gp. 1", pitch_ids=("P1",)),
        GroupState(id="g2", name="Gp. 2", pitch_ids=("P1",)),
    ]
    competition = make_competition(
        groups=groups,
        fixtures=[
            make_fixture("a1", group_id="g1"),
            make_fixture("a2", group_id="g1"),
            make_fixture("b1", group_id="g2"),
            make_fixture("b2", group_id="g2"),
        ],
    )

    scheduled = auto_schedule(competition, make_pitches("P1"), ())
    by_id = {f.id: f.start_time for f in scheduled.fixtures}

    assert by_id == {"a1": "10:00", "b1": "10:25", "a2": "10:50", "b2": "11:15"}


def test_group_defaults_drive_duration_and_slack():
    group = GroupState(id="g1", name="Gp. 1", default_duration=30, default_slack=10, pitch_ids=("P1",))
    competition = make_competition(
        groups=[group],
        fixtures=[make_fixture("f1", group_id="g1"), make_fixture("f2", group_id="g1", slack=0)],
    )

    scheduled = auto_schedule(competition, make_pitches("P1"), ())

    f1, f2 = scheduled.fixtures
    assert (f1.start_time, f1.duration) == ("10:00", 30)
    assert (f2.start_time, f2.duration) == ("10:40", 30)


def test_pitch_start_time_is_respected():
    competition = make_competition(fixtures=[make_fixture("f1")])
    scheduled = auto_schedule(competition, make_pitches("P1", start_time="09:15"), ())
    assert scheduled.fixtures[0].start_time == "09:15"


def test_deleted_group_pitches_fall_back_to_first_pitch():
    group = GroupState(id="g1", name="Gp. 1", pitch_ids=("gone",))
    competition = make_competition(groups=[group], fixtures=[make_fixture("f1", group_id="g1")])

    scheduled = auto_schedule(competition, make_pitches("P1", "P2"), ())

    assert scheduled.fixtures[0].pitch_id == "P1"


def test_no_pitches_leaves_fixtures_unplaced():
    competition = make_competition(
        fixtures=[make_fixture("f1"), make_fixture("f2", stage="Final", start_time="12:00")]
    )

    scheduled = auto_schedule(competition, (), ())

    assert all(f.pitch_id is None and f.start_time is None for f in scheduled.fixtures)
    assert {f.schedule_status for f in scheduled.fixtures} == {"unplaced"}


def test_empty_competition_is_returned_unchanged():
    competition = make_competition()
    assert auto_schedule(competition, make_pitches("P1"), ()) is competition


def test_knockout_starts_after_group_stage():
    group = GroupState(id="g1", name="Gp. 1", pitch_ids=("P1", "P2"))
    competition = make_competition(
        groups=[group],
        fixtures=[
            make_fixture("m1", group_id="g1"),
            make_fixture("m2", group_id="g1"),
            make_fixture("m3", group_id="g1"),
            make_fixture("final", stage="Final"),
        ],
    )

    scheduled = auto_schedule(competition, make_pitches("P1", "P2"), ())
    by_id = {f.id: f for f in scheduled.fixtures}

    # Group stage: P1 10:00, P2 10:00, P1 10:25 -> ends 10:50 (slack included)
    assert by_id["m3"].start_time == "10:25"
    final = by_id["final"]
    assert final.start_time == "10:50"
    assert final.pitch_id == "P1"
    assert final.slack_before == 0


def test_knockout_tiers_wait_for_previous_tier():
    """Semi-Finals end at 11:30 across two pitches; the Final never starts earlier."""
    competition = make_competition(
        fixtures=[
            make_fixture("sf1", stage="Semi-Final", duration=85),
            make_fixture("sf2", stage="Semi-Final", duration=20),
            make_fixture("third", stage="3rd Place Playoff"),
            make_fixture("final", stage="Final"),
        ]
    )

    scheduled = auto_schedule(competition, make_pitches("P1", "P2"), ())
    by_id = {f.id: f for f in scheduled.fixtures}

    assert (by_id["sf1"].pitch_id, by_id["sf1"].start_time) == ("P1", "10:00")
    assert (by_id["sf2"].pitch_id, by_id["sf2"].start_time) == ("P2", "10:00")
    assert (by_id["third"].pitch_id, by_id["third"].start_time) == ("P1", "11:30")
    assert (by_id["final"].pitch_id, by_id["final"].start_time) == ("P2", "11:30")
    # P2 naturally frees at 10:25, so the Final waited 65 minutes
    assert by_id["final"].slack_before == 65
    assert by_id["third"].slack_before == 0
    assert_no_overlaps(scheduled)


def test_unknown_knockout_stage_runs_last():
    competition = make_competition(
        fixtures=[
            make_fixture("plate", stage="Plate Final"),
            make_fixture("qf", stage="Quarter-Final"),
        ]
    )

    scheduled = auto_schedule(competition, make_pitches("P1"), ())
    by_id = {f.id: f.start_time for f in scheduled.fixtures}

    assert by_id == {"qf": "10:00", "plate": "10:25"}


def test_auto_schedule_is_deterministic():
    group = GroupState(id="g1", name="Gp. 1", pitch_ids=("P1", "P2"))
    competition = make_competition(
        groups=[group],
        fixtures=[make_fixture(f"f{i}", group_id="g1") for i in range(5)] + [make_fixture("sf", stage="Semi-Final")],
    )
    pitches = make_pitches("P1", "P2")
    breaks = [PitchBreak(id="b1", pitch_id="P2", start_time="10:20", duration=15)]

    first = auto_schedule(competition, pitches, breaks)
    second = auto_schedule(first, pitches, breaks)

    assert first == second
    assert_no_overlaps(first)
