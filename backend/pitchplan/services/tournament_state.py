"""
Tournament snapshot types.

A TournamentState is an immutable, versioned snapshot of everything the
scheduling engine reads: competitions (with their teams, groups and ordered
fixtures), the tournament-wide pitches and pitch breaks. Every scheduling and
editing operation takes a snapshot and returns a new one; nothing is mutated
in place.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from pitchplan.utils.match_ids import match_ids_for_fixtures

GROUP_STAGE = "Group"

# Fixture timing lifecycle
STATUS_UNPLACED = "unplaced"
STATUS_TENTATIVE = "tentative"
STATUS_CONFIRMED = "confirmed"

PLACEHOLDER_TEAM = "TBD"


@dataclass(frozen=True)
class TeamState:
    id: str
    name: str
    group_id: Optional[str] = None
    initials: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None


@dataclass(frozen=True)
class GroupState:
    id: str
    name: str
    default_duration: Optional[int] = None
    default_slack: Optional[int] = None
    default_rest: Optional[int] = None
    pitch_ids: Tuple[str, ...] = ()
    primary_pitch_id: Optional[str] = None


@dataclass(frozen=True)
class PitchState:
    id: str
    name: str
    start_time: Optional[str] = None  # "HH:mm"
    end_time: Optional[str] = None  # "HH:mm"


@dataclass(frozen=True)
class PitchBreak:
    id: str
    pitch_id: str
    start_time: str  # "HH:mm"
    duration: int
    label: str = ""


@dataclass(frozen=True)
class FixtureState:
    id: str
    competition_id: str
    home_team_id: str  # team id, "TBD" or a knockout-source description
    away_team_id: str
    stage: str = GROUP_STAGE
    duration: int = 20
    group_id: Optional[str] = None
    pitch_id: Optional[str] = None
    start_time: Optional[str] = None  # "HH:mm"
    slack: Optional[int] = None
    rest: Optional[int] = None
    slack_before: Optional[int] = None
    match_id: Optional[str] = None
    description: Optional[str] = None
    schedule_status: str = STATUS_UNPLACED

    @property
    def is_group_stage(self) -> bool:
        return not self.stage or self.stage == GROUP_STAGE

    @property
    def is_placed(self) -> bool:
        return self.pitch_id is not None and self.start_time is not None


@dataclass(frozen=True)
class CompetitionState:
    id: str
    name: str
    code: str
    color: Optional[str] = None
    teams: Tuple[TeamState, ...] = ()
    groups: Tuple[GroupState, ...] = ()
    fixtures: Tuple[FixtureState, ...] = ()

    def find_fixture(self, fixture_id: str) -> Optional[FixtureState]:
        return next((f for f in self.fixtures if f.id == fixture_id), None)

    def find_group(self, group_id: Optional[str]) -> Optional[GroupState]:
        if group_id is None:
            return None
        return next((g for g in self.groups if g.id == group_id), None)

    def find_team(self, team_id: str) -> Optional[TeamState]:
        return next((t for t in self.teams if t.id == team_id), None)


@dataclass(frozen=True)
class TournamentState:
    tournament_id: int
    version: int = 0
    competitions: Tuple[CompetitionState, ...] = ()
    pitches: Tuple[PitchState, ...] = ()
    breaks: Tuple[PitchBreak, ...] = ()

    def find_competition(self, competition_id: str) -> Optional[CompetitionState]:
        return next((c for c in self.competitions if c.id == competition_id), None)

    def find_pitch(self, pitch_id: str) -> Optional[PitchState]:
        return next((p for p in self.pitches if p.id == pitch_id), None)

    def with_competition(self, competition: CompetitionState) -> "TournamentState":
        """Replace the competition with the same id, keeping list position."""
        return replace(
            self,
            competitions=tuple(competition if c.id == competition.id else c for c in self.competitions),
        )

    def bumped(self, **changes) -> "TournamentState":
        """Return a copy with the given fields replaced and version + 1."""
        return replace(self, version=self.version + 1, **changes)


def replace_fixtures(competition: CompetitionState, updates: dict) -> CompetitionState:
    """
    Apply {fixture_id: {field: value}} to a competition.

    Fixtures without updates, or whose values would not change, keep their
    identity so consumers can detect churn with `is`.
    """
    if not updates:
        return competition

    changed = False
    fixtures = []
    for fixture in competition.fixtures:
        fields = updates.get(fixture.id)
        if fields and any(getattr(fixture, k) != v for k, v in fields.items()):
            fixtures.append(replace(fixture, **fields))
            changed = True
        else:
            fixtures.append(fixture)

    if not changed:
        return competition
    return replace(competition, fixtures=tuple(fixtures))


def count_unscheduled(competition: CompetitionState) -> int:
    """Number of fixtures without both a pitch and a start time."""
    return sum(1 for f in competition.fixtures if not f.is_placed)


def with_regenerated_match_ids(competition: CompetitionState) -> CompetitionState:
    """Renumber every fixture "<code>.<NN>" by its position in the list."""
    id_map = match_ids_for_fixtures(competition.code, [f.id for f in competition.fixtures])
    return replace_fixtures(competition, {fixture_id: {"match_id": mid} for fixture_id, mid in id_map.items()})
