"""
Tournament Store: snapshot <-> database rows

load_tournament_state reads every row of a tournament into an immutable
TournamentState. save_tournament_state writes a snapshot back:

  - rows are matched by id
  - only rows whose values differ are updated
  - rows missing from the snapshot are deleted
  - list order is persisted in each row's `position`

Actions never see the session; routes load, apply one action, save.
"""

import logging
from dataclasses import asdict, replace
from typing import Dict, Iterable, List, Sequence, Type

from sqlmodel import Session, SQLModel, select

from pitchplan.models.competition import Competition
from pitchplan.models.competition_group import CompetitionGroup
from pitchplan.models.fixture import Fixture
from pitchplan.models.pitch import Pitch
from pitchplan.models.pitch_break import PitchBreakItem
from pitchplan.models.team import Team
from pitchplan.models.tournament import Tournament
from pitchplan.services.tournament_state import (
    CompetitionState,
    FixtureState,
    GroupState,
    PitchBreak,
    PitchState,
    TeamState,
    TournamentState,
)

logger = logging.getLogger(__name__)


class TournamentNotFoundError(Exception):
    """Tournament row does not exist"""

    pass


# ============================================================================
# Row -> snapshot
# ============================================================================


def _rows(session: Session, model: Type[SQLModel], column, values: Sequence) -> List:
    if not values:
        return []
    return list(session.exec(select(model).where(column.in_(values)).order_by(model.position)).all())


def _team_state(row: Team) -> TeamState:
    return TeamState(
        id=row.id,
        name=row.name,
        group_id=row.group_id,
        initials=row.initials,
        primary_color=row.primary_color,
        secondary_color=row.secondary_color,
    )


def _group_state(row: CompetitionGroup) -> GroupState:
    return GroupState(
        id=row.id,
        name=row.name,
        default_duration=row.default_duration,
        default_slack=row.default_slack,
        default_rest=row.default_rest,
        pitch_ids=tuple(row.pitch_ids or ()),
        primary_pitch_id=row.primary_pitch_id,
    )


def _fixture_state(row: Fixture) -> FixtureState:
    return FixtureState(
        id=row.id,
        competition_id=row.competition_id,
        home_team_id=row.home_team_id,
        away_team_id=row.away_team_id,
        stage=row.stage,
        duration=row.duration,
        group_id=row.group_id,
        pitch_id=row.pitch_id,
        start_time=row.start_time,
        slack=row.slack,
        rest=row.rest,
        slack_before=row.slack_before,
        match_id=row.match_id,
        description=row.description,
        schedule_status=row.schedule_status,
    )


def load_tournament_state(session: Session, tournament_id: int) -> TournamentState:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFoundError(f"Tournament {tournament_id} not found")

    competition_rows = session.exec(
        select(Competition).where(Competition.tournament_id == tournament_id).order_by(Competition.position)
    ).all()
    competition_ids = [c.id for c in competition_rows]

    teams: Dict[str, List[TeamState]] = {cid: [] for cid in competition_ids}
    for row in _rows(session, Team, Team.competition_id, competition_ids):
        teams[row.competition_id].append(_team_state(row))

    groups: Dict[str, List[GroupState]] = {cid: [] for cid in competition_ids}
    for row in _rows(session, CompetitionGroup, CompetitionGroup.competition_id, competition_ids):
        groups[row.competition_id].append(_group_state(row))

    fixtures: Dict[str, List[FixtureState]] = {cid: [] for cid in competition_ids}
    for row in _rows(session, Fixture, Fixture.competition_id, competition_ids):
        fixtures[row.competition_id].append(_fixture_state(row))

    competitions = tuple(
        CompetitionState(
            id=row.id,
            name=row.name,
            code=row.code,
            color=row.color,
            teams=tuple(teams[row.id]),
            groups=tuple(groups[row.id]),
            fixtures=tuple(fixtures[row.id]),
        )
        for row in competition_rows
    )

    pitches = tuple(
        PitchState(id=row.id, name=row.name, start_time=row.start_time, end_time=row.end_time)
        for row in session.exec(
            select(Pitch).where(Pitch.tournament_id == tournament_id).order_by(Pitch.position)
        ).all()
    )
    breaks = tuple(
        PitchBreak(
            id=row.id, pitch_id=row.pitch_id, start_time=row.start_time, duration=row.duration, label=row.label
        )
        for row in session.exec(
            select(PitchBreakItem)
            .where(PitchBreakItem.tournament_id == tournament_id)
            .order_by(PitchBreakItem.position)
        ).all()
    )

    return TournamentState(
        tournament_id=tournament_id,
        version=tournament.version,
        competitions=competitions,
        pitches=pitches,
        breaks=breaks,
    )


# ============================================================================
# Snapshot -> rows
# ============================================================================


def _delete_missing(session: Session, existing: Iterable, desired: Sequence[dict]) -> int:
    wanted = {values["id"] for values in desired}
    deleted = 0
    for row in existing:
        if row.id not in wanted:
            session.delete(row)
            deleted += 1
    return deleted


def _upsert_rows(session: Session, model: Type[SQLModel], existing: Iterable, desired: Sequence[dict]) -> int:
    """
    Insert or update rows of `model` from `desired` (dicts keyed by column
    name, each with an "id"). Unchanged rows are left alone.
    """
    by_id = {row.id: row for row in existing}
    changes = 0

    for values in desired:
        row = by_id.get(values["id"])
        if row is None:
            session.add(model(**values))
            changes += 1
            continue
        dirty = False
        for key, value in values.items():
            if getattr(row, key) != value:
                setattr(row, key, value)
                dirty = True
        if dirty:
            session.add(row)
            changes += 1

    return changes


def _group_values(group: GroupState, competition_id: str, position: int) -> dict:
    values = asdict(group)
    values["pitch_ids"] = list(group.pitch_ids)
    values.update(competition_id=competition_id, position=position)
    return values


def save_tournament_state(session: Session, state: TournamentState) -> None:
    """Persist a snapshot and commit. See module docstring."""
    tournament = session.get(Tournament, state.tournament_id)
    if not tournament:
        raise TournamentNotFoundError(f"Tournament {state.tournament_id} not found")

    tid = state.tournament_id
    existing_competitions = session.exec(select(Competition).where(Competition.tournament_id == tid)).all()
    # Children of deleted competitions are removed along with them
    owner_ids = list({c.id for c in existing_competitions} | {c.id for c in state.competitions})

    desired_teams, desired_groups, desired_fixtures = [], [], []
    for competition in state.competitions:
        for position, team in enumerate(competition.teams):
            desired_teams.append(dict(asdict(team), competition_id=competition.id, position=position))
        for position, group in enumerate(competition.groups):
            desired_groups.append(_group_values(group, competition.id, position))
        for position, fixture in enumerate(competition.fixtures):
            desired_fixtures.append(dict(asdict(fixture), position=position))

    desired_competitions = [
        dict(id=c.id, tournament_id=tid, position=position, name=c.name, code=c.code, color=c.color)
        for position, c in enumerate(state.competitions)
    ]
    desired_pitches = [dict(asdict(p), tournament_id=tid, position=i) for i, p in enumerate(state.pitches)]
    desired_breaks = [dict(asdict(b), tournament_id=tid, position=i) for i, b in enumerate(state.breaks)]

    children = [
        (Team, _rows(session, Team, Team.competition_id, owner_ids), desired_teams),
        (
            CompetitionGroup,
            _rows(session, CompetitionGroup, CompetitionGroup.competition_id, owner_ids),
            desired_groups,
        ),
        (Fixture, _rows(session, Fixture, Fixture.competition_id, owner_ids), desired_fixtures),
    ]
    parents = [
        (Competition, existing_competitions, desired_competitions),
        (Pitch, session.exec(select(Pitch).where(Pitch.tournament_id == tid)).all(), desired_pitches),
        (
            PitchBreakItem,
            session.exec(select(PitchBreakItem).where(PitchBreakItem.tournament_id == tid)).all(),
            desired_breaks,
        ),
    ]

    # Children go before their parents on delete, after them on insert
    changes = sum(_delete_missing(session, existing, desired) for _, existing, desired in children)
    session.flush()
    for model, existing, desired in parents:
        changes += _delete_missing(session, existing, desired)
        changes += _upsert_rows(session, model, existing, desired)
    session.flush()
    changes += sum(_upsert_rows(session, model, existing, desired) for model, existing, desired in children)

    tournament.version = state.version
    session.add(tournament)
    session.commit()
    logger.debug("Saved tournament %s v%d (%d row changes)", tid, state.version, changes)


def delete_tournament(session: Session, tournament_id: int) -> None:
    """Delete a tournament and every row that belongs to it."""
    state = load_tournament_state(session, tournament_id)
    save_tournament_state(session, replace(state, competitions=(), pitches=(), breaks=()))
    session.delete(session.get(Tournament, tournament_id))
    session.commit()
