"""Competition codes and positional match ids."""
import pytest

from pitchplan.services.tournament_state import with_regenerated_match_ids
from pitchplan.utils.match_ids import (
    derive_competition_code,
    format_match_id,
    is_valid_competition_code,
    normalize_competition_code,
)
from tests.builders import make_competition, make_fixture


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Cup", "CU"),
        ("Under 12 Boys", "U1"),
        ("girls league", "GL"),
        ("X", "XX"),
        ("", "XX"),
    ],
)
def test_derive_competition_code(name, expected):
    assert derive_competition_code(name) == expected


def test_normalize_prefers_explicit_code():
    assert normalize_competition_code(" u12 ", "Whatever") == "U12"
    assert normalize_competition_code(None, "Senior Cup") == "SC"
    assert normalize_competition_code("  ", "Plate") == "PL"


def test_code_validation():
    assert is_valid_competition_code("CU")
    assert is_valid_competition_code("U12")
    assert not is_valid_competition_code("C")
    assert not is_valid_competition_code("CUPS")
    assert not is_valid_competition_code("C-1")


def test_format_match_id_pads_to_two_digits():
    assert format_match_id("CU", 1) == "CU.01"
    assert format_match_id("CU", 12) == "CU.12"
    assert format_match_id("CU", 100) == "CU.100"


def test_regeneration_is_positional_and_stable():
    competition = make_competition(fixtures=[make_fixture("a"), make_fixture("b"), make_fixture("c")])

    first = with_regenerated_match_ids(competition)
    assert [f.match_id for f in first.fixtures] == ["CU.01", "CU.02", "CU.03"]

    # Unchanged order -> unchanged ids, same object
    assert with_regenerated_match_ids(first) is first


def test_insert_shifts_only_later_ids():
    competition = with_regenerated_match_ids(
        make_competition(fixtures=[make_fixture("a"), make_fixture("b"), make_fixture("c")])
    )
    fixtures = list(competition.fixtures)
    fixtures.insert(1, make_fixture("new"))

    renumbered = with_regenerated_match_ids(make_competition(fixtures=fixtures))
    ids = {f.id: f.match_id for f in renumbered.fixtures}

    assert ids == {"a": "CU.01", "new": "CU.02", "b": "CU.03", "c": "CU.04"}
    assert renumbered.fixtures[0] is fixtures[0]
