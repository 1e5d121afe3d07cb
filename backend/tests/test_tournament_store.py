"""Snapshot persistence: load(save(state)) == state, and row sync on edits."""
from dataclasses import replace

from sqlmodel import Session, select

from pitchplan.models.competition import Competition
from pitchplan.models.competition_group import CompetitionGroup
from pitchplan.models.fixture import Fixture
from pitchplan.models.team import Team
from pitchplan.models.tournament import Tournament
from pitchplan.services import tournament_actions as actions
from pitchplan.services.tournament_store import (
    TournamentNotFoundError,
    delete_tournament,
    load_tournament_state,
    save_tournament_state,
)


def _populated(state):
    state, pitch = actions.add_pitch(state, "Pitch 1", "09:30", "17:00")
    state, _ = actions.add_pitch_break(state, pitch.id, "12:00", 30, "Lunch")
    state, competition = actions.add_competition(state, "Cup")
    for _ in range(4):
        state, _ = actions.add_team(state, competition.id)
    state = actions.auto_assign_groups(state, competition.id, 2)
    group_id = state.find_competition(competition.id).groups[0].id
    state = actions.update_group(state, competition.id, group_id, {"pitch_ids": [pitch.id], "default_slack": 10})
    state = actions.generate_fixtures(state, competition.id)
    state = actions.auto_schedule_competition(state, competition.id)
    return state, competition.id


def test_empty_tournament_loads(session: Session, tournament: Tournament):
    state = load_tournament_state(session, tournament.id)

    assert state.tournament_id == tournament.id
    assert state.version == 0
    assert state.competitions == ()


def test_missing_tournament_raises(session: Session):
    try:
        load_tournament_state(session, 999)
    except TournamentNotFoundError:
        pass
    else:
        raise AssertionError("expected TournamentNotFoundError")


def test_round_trip(session: Session, tournament: Tournament):
    state, _ = _populated(load_tournament_state(session, tournament.id))

    save_tournament_state(session, state)

    assert load_tournament_state(session, tournament.id) == state
    assert session.get(Tournament, tournament.id).version == state.version


def test_list_order_is_persisted(session: Session, tournament: Tournament):
    state, cid = _populated(load_tournament_state(session, tournament.id))
    save_tournament_state(session, state)

    competition = state.find_competition(cid)
    reordered = state.with_competition(replace(competition, fixtures=tuple(reversed(competition.fixtures))))
    save_tournament_state(session, reordered)

    loaded = load_tournament_state(session, tournament.id).find_competition(cid)
    assert [f.id for f in loaded.fixtures] == [f.id for f in reversed(competition.fixtures)]


def test_removed_entities_are_deleted(session: Session, tournament: Tournament):
    state, cid = _populated(load_tournament_state(session, tournament.id))
    save_tournament_state(session, state)

    state = actions.delete_competition(state, cid)
    save_tournament_state(session, state)

    assert session.exec(select(Competition)).all() == []
    assert session.exec(select(Team)).all() == []
    assert session.exec(select(CompetitionGroup)).all() == []
    assert session.exec(select(Fixture)).all() == []
    assert len(load_tournament_state(session, tournament.id).pitches) == 1


def test_delete_tournament_removes_everything(session: Session, tournament: Tournament):
    state, _ = _populated(load_tournament_state(session, tournament.id))
    save_tournament_state(session, state)

    delete_tournament(session, tournament.id)

    assert session.get(Tournament, tournament.id) is None
    assert session.exec(select(Fixture)).all() == []
