"""
Tournament actions: snapshot -> snapshot commands

Every public function here takes a TournamentState and returns a new one with
version + 1. Nothing is mutated in place; the caller persists the returned
snapshot (see tournament_store).

Scheduling composition:
  - generate / add / edit fixtures  -> match ids regenerated
  - auto_schedule_competition       -> allocator -> overlap enforcer
  - edits with recalculate=True     -> recalculator -> overlap enforcer
  - reorder_fixture_to_pitch        -> re-sequence pitch -> overlap enforcer
The overlap enforcer always runs last over *all* competitions.
"""

import colorsys
import logging
import uuid
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pitchplan.services.auto_schedule import auto_schedule
from pitchplan.services.pitch_overlaps import enforce_no_overlaps
from pitchplan.services.recalculate import recalculate
from pitchplan.services.schedule_context import build_schedule_context, resolve_timing
from pitchplan.services.tournament_state import (
    GROUP_STAGE,
    STATUS_TENTATIVE,
    STATUS_UNPLACED,
    CompetitionState,
    FixtureState,
    GroupState,
    PitchBreak,
    PitchState,
    TeamState,
    TournamentState,
    with_regenerated_match_ids,
)
from pitchplan.utils.group_pitches import first_or_none, get_group_pitch_ids, remove_pitch_from_pool
from pitchplan.utils.match_ids import is_valid_competition_code, normalize_competition_code
from pitchplan.utils.round_robin import generate
from pitchplan.utils.time_utils import minutes_to_time

logger = logging.getLogger(__name__)

GOLDEN_RATIO = 0.618033988749895

COMPETITION_FIELDS = {"name", "code", "color"}
TEAM_FIELDS = {"name", "group_id", "initials", "primary_color", "secondary_color"}
GROUP_FIELDS = {"name", "default_duration", "default_slack", "default_rest", "pitch_ids", "primary_pitch_id"}
PITCH_FIELDS = {"name", "start_time", "end_time"}
FIXTURE_FIELDS = {
    "home_team_id",
    "away_team_id",
    "stage",
    "duration",
    "group_id",
    "pitch_id",
    "start_time",
    "slack",
    "rest",
    "match_id",
    "description",
}


class TournamentActionError(Exception):
    """Base exception for tournament actions"""

    pass


class EntityNotFoundError(TournamentActionError):
    """A referenced competition, team, group, fixture, pitch or break does not exist"""

    pass


class InvalidActionError(TournamentActionError):
    """The action is not valid for the current snapshot"""

    pass


def _new_id() -> str:
    return str(uuid.uuid4())


def _check_fields(changes: Mapping, allowed: set, entity: str) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise InvalidActionError(f"Unknown {entity} field(s): {', '.join(sorted(unknown))}")


def competition_color(index: int) -> str:
    """Golden-ratio hue spacing so consecutive competitions get distinct colours."""
    hue = (index * GOLDEN_RATIO) % 1.0
    r, g, b = colorsys.hls_to_rgb(hue, 0.35, 0.70)
    return "#{:02x}{:02x}{:02x}".format(round(r * 255), round(g * 255), round(b * 255))


def default_team_name(index: int) -> str:
    """A..Z for the first 26 teams, then "Team <n>"."""
    if index < 26:
        return chr(ord("A") + index)
    return f"Team {index + 1}"


# ============================================================================
# Lookup helpers
# ============================================================================


def require_competition(state: TournamentState, competition_id: str) -> CompetitionState:
    competition = state.find_competition(competition_id)
    if competition is None:
        raise EntityNotFoundError(f"Competition {competition_id} not found")
    return competition


def require_fixture(competition: CompetitionState, fixture_id: str) -> FixtureState:
    fixture = competition.find_fixture(fixture_id)
    if fixture is None:
        raise EntityNotFoundError(f"Fixture {fixture_id} not found")
    return fixture


def require_group(competition: CompetitionState, group_id: str) -> GroupState:
    group = competition.find_group(group_id)
    if group is None:
        raise EntityNotFoundError(f"Group {group_id} not found")
    return group


def require_team(competition: CompetitionState, team_id: str) -> TeamState:
    team = competition.find_team(team_id)
    if team is None:
        raise EntityNotFoundError(f"Team {team_id} not found")
    return team


def require_pitch(state: TournamentState, pitch_id: str) -> PitchState:
    pitch = state.find_pitch(pitch_id)
    if pitch is None:
        raise EntityNotFoundError(f"Pitch {pitch_id} not found")
    return pitch


def _with_competition(state: TournamentState, competition: CompetitionState) -> TournamentState:
    return state.bumped(competitions=state.with_competition(competition).competitions)


def _enforced(state: TournamentState, competitions: Sequence[CompetitionState]) -> TournamentState:
    """Run the overlap enforcer over every competition and bump the version."""
    return state.bumped(competitions=enforce_no_overlaps(competitions, state.pitches, state.breaks))


def _recalculated(
    state: TournamentState,
    competitions: Sequence[CompetitionState],
    competition_ids: Iterable[str],
) -> TournamentState:
    """Recalculate the given competitions, then enforce overlaps over all of them."""
    targets = set(competition_ids)
    return _enforced(
        state,
        [recalculate(c, state.pitches, state.breaks) if c.id in targets else c for c in competitions],
    )


# ============================================================================
# Competitions
# ============================================================================


def add_competition(
    state: TournamentState,
    name: str,
    code: Optional[str] = None,
    color: Optional[str] = None,
) -> Tuple[TournamentState, CompetitionState]:
    code = normalize_competition_code(code, name)
    if not is_valid_competition_code(code):
        raise InvalidActionError(f"Competition code must be 2-3 letters or digits, got '{code}'")

    competition = CompetitionState(
        id=_new_id(),
        name=name,
        code=code,
        color=color or competition_color(len(state.competitions)),
    )
    return state.bumped(competitions=state.competitions + (competition,)), competition


def update_competition(state: TournamentState, competition_id: str, changes: Mapping) -> TournamentState:
    _check_fields(changes, COMPETITION_FIELDS, "competition")
    competition = require_competition(state, competition_id)
    changes = dict(changes)

    if "code" in changes:
        changes["code"] = normalize_competition_code(changes["code"], changes.get("name", competition.name))
        if not is_valid_competition_code(changes["code"]):
            raise InvalidActionError(f"Competition code must be 2-3 letters or digits, got '{changes['code']}'")

    updated = replace(competition, **changes)
    if updated.code != competition.code:
        updated = with_regenerated_match_ids(updated)
    return _with_competition(state, updated)


def delete_competition(state: TournamentState, competition_id: str) -> TournamentState:
    require_competition(state, competition_id)
    return state.bumped(competitions=tuple(c for c in state.competitions if c.id != competition_id))


# ============================================================================
# Teams and groups
# ============================================================================


def add_team(
    state: TournamentState,
    competition_id: str,
    name: Optional[str] = None,
    **attributes,
) -> Tuple[TournamentState, TeamState]:
    _check_fields(attributes, TEAM_FIELDS - {"name"}, "team")
    competition = require_competition(state, competition_id)
    if attributes.get("group_id") is not None:
        require_group(competition, attributes["group_id"])

    team = TeamState(id=_new_id(), name=name or default_team_name(len(competition.teams)), **attributes)
    return _with_competition(state, replace(competition, teams=competition.teams + (team,))), team


def update_team(state: TournamentState, competition_id: str, team_id: str, changes: Mapping) -> TournamentState:
    _check_fields(changes, TEAM_FIELDS, "team")
    competition = require_competition(state, competition_id)
    require_team(competition, team_id)

    teams = tuple(replace(t, **changes) if t.id == team_id else t for t in competition.teams)
    return _with_competition(state, replace(competition, teams=teams))


def delete_team(state: TournamentState, competition_id: str, team_id: str) -> TournamentState:
    competition = require_competition(state, competition_id)
    require_team(competition, team_id)
    return _with_competition(
        state, replace(competition, teams=tuple(t for t in competition.teams if t.id != team_id))
    )


def create_group(
    state: TournamentState,
    competition_id: str,
    name: str,
    **settings,
) -> Tuple[TournamentState, GroupState]:
    _check_fields(settings, GROUP_FIELDS - {"name"}, "group")
    competition = require_competition(state, competition_id)

    if "pitch_ids" in settings:
        settings["pitch_ids"] = tuple(settings["pitch_ids"] or ())
        settings.setdefault("primary_pitch_id", first_or_none(settings["pitch_ids"]))

    group = GroupState(id=_new_id(), name=name, **settings)
    return _with_competition(state, replace(competition, groups=competition.groups + (group,))), group


def update_group(state: TournamentState, competition_id: str, group_id: str, changes: Mapping) -> TournamentState:
    _check_fields(changes, GROUP_FIELDS, "group")
    competition = require_competition(state, competition_id)
    group = require_group(competition, group_id)
    changes = dict(changes)

    if "pitch_ids" in changes:
        changes["pitch_ids"] = tuple(changes["pitch_ids"] or ())
        primary = changes.get("primary_pitch_id", group.primary_pitch_id)
        if primary not in changes["pitch_ids"]:
            changes["primary_pitch_id"] = first_or_none(changes["pitch_ids"])

    groups = tuple(replace(g, **changes) if g.id == group_id else g for g in competition.groups)
    return _with_competition(state, replace(competition, groups=groups))


def delete_group(state: TournamentState, competition_id: str, group_id: str) -> TournamentState:
    """Remove a group, unassign its teams and drop its group-stage fixtures."""
    competition = require_competition(state, competition_id)
    require_group(competition, group_id)

    updated = replace(
        competition,
        groups=tuple(g for g in competition.groups if g.id != group_id),
        teams=tuple(replace(t, group_id=None) if t.group_id == group_id else t for t in competition.teams),
        fixtures=tuple(
            f for f in competition.fixtures if not (f.is_group_stage and f.group_id == group_id)
        ),
    )
    return _with_competition(state, with_regenerated_match_ids(updated))


def move_team_to_group(
    state: TournamentState,
    competition_id: str,
    team_id: str,
    group_id: Optional[str],
) -> TournamentState:
    competition = require_competition(state, competition_id)
    if group_id is not None:
        require_group(competition, group_id)
    return update_team(state, competition_id, team_id, {"group_id": group_id})


def auto_assign_groups(state: TournamentState, competition_id: str, num_groups: int) -> TournamentState:
    """
    Replace all groups with `num_groups` new ones ("Gp. 1".."Gp. n") and deal
    teams into them in list order. Existing fixtures are discarded.
    """
    if num_groups < 1:
        raise InvalidActionError(f"num_groups must be >= 1, got {num_groups}")
    competition = require_competition(state, competition_id)

    groups = tuple(GroupState(id=_new_id(), name=f"Gp. {i + 1}") for i in range(num_groups))
    teams = tuple(replace(t, group_id=groups[i % num_groups].id) for i, t in enumerate(competition.teams))
    return _with_competition(state, replace(competition, groups=groups, teams=teams, fixtures=()))


# ============================================================================
# Fixtures
# ============================================================================


def generate_fixtures(
    state: TournamentState,
    competition_id: str,
    target_group_id: Optional[str] = None,
    id_factory: Callable[[], str] = _new_id,
) -> TournamentState:
    """
    (Re)generate round-robin group-stage fixtures.

    With groups: every group, or only `target_group_id`. Without groups: one
    "all teams" unit. Knockout fixtures and other groups' group-stage
    fixtures are retained; the regenerated units' old fixtures are dropped.
    """
    competition = require_competition(state, competition_id)

    if target_group_id is not None:
        if not competition.groups:
            raise InvalidActionError(f"Competition {competition_id} has no groups to target")
        require_group(competition, target_group_id)

    generated: List[FixtureState] = []
    if competition.groups:
        for group in competition.groups:
            if target_group_id is not None and group.id != target_group_id:
                continue
            members = [t for t in competition.teams if t.group_id == group.id]
            generated.extend(generate(members, group, competition.id, id_factory=id_factory))
    else:
        generated.extend(generate(competition.teams, None, competition.id, id_factory=id_factory))

    def retained(fixture: FixtureState) -> bool:
        if not fixture.is_group_stage:
            return True
        if target_group_id is not None:
            return fixture.group_id != target_group_id
        return False

    fixtures = tuple(f for f in competition.fixtures if retained(f)) + tuple(generated)
    logger.info("Generated %d fixtures for competition %s", len(generated), competition_id)
    return _with_competition(state, with_regenerated_match_ids(replace(competition, fixtures=fixtures)))


def _require_fixture_pitch(state: TournamentState, fields: Mapping) -> None:
    if fields.get("pitch_id") is not None:
        require_pitch(state, fields["pitch_id"])


def _new_fixture(competition: CompetitionState, fields: Mapping) -> FixtureState:
    _check_fields(fields, FIXTURE_FIELDS, "fixture")
    fields = dict(fields)
    fields.setdefault("stage", GROUP_STAGE)
    if fields.get("duration") is None:
        fields.pop("duration", None)
    return FixtureState(id=_new_id(), competition_id=competition.id, **fields)


def add_manual_fixture(
    state: TournamentState,
    competition_id: str,
    fields: Mapping,
) -> Tuple[TournamentState, FixtureState]:
    competition = require_competition(state, competition_id)
    _require_fixture_pitch(state, fields)
    fixture = _new_fixture(competition, fields)
    updated = with_regenerated_match_ids(replace(competition, fixtures=competition.fixtures + (fixture,)))
    return _with_competition(state, updated), updated.find_fixture(fixture.id)


def add_fixtures(state: TournamentState, competition_id: str, batch: Iterable[Mapping]) -> TournamentState:
    """
    Add fixtures in bulk, upserting by match_id: an entry whose match_id
    matches an existing fixture updates it in place; everything else is
    appended.
    """
    competition = require_competition(state, competition_id)
    by_match_id = {f.match_id: f.id for f in competition.fixtures if f.match_id}

    updates: Dict[str, dict] = {}
    additions: List[FixtureState] = []
    for fields in batch:
        _check_fields(fields, FIXTURE_FIELDS, "fixture")
        _require_fixture_pitch(state, fields)
        existing_id =by_match_id.get(fields.get("match_id")) if fields.get("match_id") else None
        if existing_id is not None:
            updates.setdefault(existing_id, {}).update(fields)
        else:
            additions.append(_new_fixture(competition, fields))

    fixtures = tuple(
        replace(f, **updates[f.id]) if f.id in updates else f for f in competition.fixtures
    ) + tuple(additions)
    return _with_competition(state, with_regenerated_match_ids(replace(competition, fixtures=fixtures)))


def update_fixture(
    state: TournamentState,
    competition_id: str,
    fixture_id: str,
    changes: Mapping,
    should_recalculate: bool = False,
) -> TournamentState:
    return batch_update_fixtures(state, [(competition_id, fixture_id, changes)], should_recalculate)


def batch_update_fixtures(
    state: TournamentState,
    batch: Sequence[Tuple[str, str, Mapping]],
    should_recalculate: bool = False,
) -> TournamentState:
    """Apply (competition_id, fixture_id, changes) triples; optionally recalculate affected competitions."""
    by_competition: Dict[str, Dict[str, dict]] = {}
    for competition_id, fixture_id, changes in batch:
        _check_fields(changes, FIXTURE_FIELDS, "fixture")
        competition = require_competition(state, competition_id)
        require_fixture(competition, fixture_id)
        _require_fixture_pitch(state, changes)
        by_competition.setdefault(competition_id, {}).setdefault(fixture_id, {}).update(changes)

    competitions = []
    for competition in state.competitions:
        fixture_changes = by_competition.get(competition.id)
        if not fixture_changes:
            competitions.append(competition)
            continue
        fixtures = tuple(
            replace(f, **fixture_changes[f.id]) if f.id in fixture_changes else f for f in competition.fixtures
        )
        competitions.append(with_regenerated_match_ids(replace(competition, fixtures=fixtures)))

    if should_recalculate:
        return _recalculated(state, competitions, by_competition)
    return state.bumped(competitions=tuple(competitions))


def delete_fixture(
    state: TournamentState,
    competition_id: str,
    fixture_id: str,
    should_recalculate: bool = False,
) -> TournamentState:
    competition = require_competition(state, competition_id)
    require_fixture(competition, fixture_id)

    updated = with_regenerated_match_ids(
        replace(competition, fixtures=tuple(f for f in competition.fixtures if f.id != fixture_id))
    )
    if should_recalculate:
        return _recalculated(state, state.with_competition(updated).competitions, [competition_id])
    return _with_competition(state, updated)


# ============================================================================
# Pitches and breaks
# ============================================================================


def add_pitch(
    state: TournamentState,
    name: str,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
) -> Tuple[TournamentState, PitchState]:
    pitch = PitchState(id=_new_id(), name=name, start_time=start_time, end_time=end_time)
    return state.bumped(pitches=state.pitches + (pitch,)), pitch


def update_pitch(state: TournamentState, pitch_id: str, changes: Mapping) -> TournamentState:
    _check_fields(changes, PITCH_FIELDS, "pitch")
    require_pitch(state, pitch_id)
    return state.bumped(pitches=tuple(replace(p, **changes) if p.id == pitch_id else p for p in state.pitches))


def _without_pitch(competition: CompetitionState, pitch_id: str) -> CompetitionState:
    groups = []
    for group in competition.groups:
        pool = get_group_pitch_ids(group)
        if pitch_id not in pool:
            groups.append(group)
            continue
        remaining = tuple(remove_pitch_from_pool(pool, pitch_id))
        groups.append(replace(group, pitch_ids=remaining, primary_pitch_id=first_or_none(remaining)))

    fixtures = tuple(
        replace(f, pitch_id=None, start_time=None, slack_before=None, schedule_status=STATUS_UNPLACED)
        if f.pitch_id == pitch_id
        else f
        for f in competition.fixtures
    )
    return replace(competition, groups=tuple(groups), fixtures=fixtures)


def delete_pitch(state: TournamentState, pitch_id: str) -> TournamentState:
    """
    Remove a pitch and its breaks. Its fixtures become unplaced and it is
    dropped from every group's pitch pool.
    """
    require_pitch(state, pitch_id)
    return state.bumped(
        pitches=tuple(p for p in state.pitches if p.id != pitch_id),
        breaks=tuple(b for b in state.breaks if b.pitch_id != pitch_id),
        competitions=tuple(_without_pitch(c, pitch_id) for c in state.competitions),
    )


def add_pitch_break(
    state: TournamentState,
    pitch_id: str,
    start_time: str,
    duration: int,
    label: str = "",
) -> Tuple[TournamentState, PitchBreak]:
    require_pitch(state, pitch_id)
    item = PitchBreak(id=_new_id(), pitch_id=pitch_id, start_time=start_time, duration=duration, label=label)
    return state.bumped(breaks=state.breaks + (item,)), item


def delete_pitch_break(state: TournamentState, break_id: str) -> TournamentState:
    if not any(b.id == break_id for b in state.breaks):
        raise EntityNotFoundError(f"Pitch break {break_id} not found")
    return state.bumped(breaks=tuple(b for b in state.breaks if b.id != break_id))


# ============================================================================
# Scheduling
# ============================================================================


def auto_schedule_competition(state: TournamentState, competition_id: str) -> TournamentState:
    competition = require_competition(state, competition_id)
    scheduled = auto_schedule(competition, state.pitches, state.breaks)
    return _enforced(state, state.with_competition(scheduled).competitions)


def recalculate_schedule(state: TournamentState, competition_id: str) -> TournamentState:
    require_competition(state, competition_id)
    return _recalculated(state, state.competitions, [competition_id])


def reset_all_schedules(state: TournamentState) -> TournamentState:
    """Clear pitch and start time of every fixture in every competition."""
    competitions = tuple(
        replace(
            c,
            fixtures=tuple(
                replace(f, pitch_id=None, start_time=None, slack_before=None, schedule_status=STATUS_UNPLACED)
                for f in c.fixtures
            ),
        )
        for c in state.competitions
    )
    return state.bumped(competitions=competitions)


def reorder_fixture_to_pitch(
    state: TournamentState,
    fixture_id: str,
    target_pitch_id: str,
    target_index: int = -1,
) -> TournamentState:
    """
    Move a fixture onto a pitch at `target_index` in that pitch's running
    order (append when out of range), then re-sequence the pitch back to back
    from its daily start time.
    """
    require_pitch(state, target_pitch_id)
    source = next((c for c in state.competitions if c.find_fixture(fixture_id)), None)
    if source is None:
        raise EntityNotFoundError(f"Fixture {fixture_id} not found")
    moving = source.find_fixture(fixture_id)

    on_pitch: List[Tuple[CompetitionState, FixtureState]] = [
        (c, f)
        for c in state.competitions
        for f in c.fixtures
        if f.pitch_id == target_pitch_id and f.id != fixture_id
    ]
    on_pitch.sort(key=lambda item: item[1].start_time or "")

    if 0 <= target_index <= len(on_pitch):
        on_pitch.insert(target_index, (source, moving))
    else:
        on_pitch.append((source, moving))

    cursor = build_schedule_context(state.pitches, state.breaks).pitch_start(target_pitch_id)
    updates: Dict[str, Dict[str, dict]] = {}
    for competition, fixture in on_pitch:
        timing = resolve_timing(fixture, {g.id: g for g in competition.groups})
        updates.setdefault(competition.id, {})[fixture.id] = {
            "pitch_id": target_pitch_id,
            "start_time": minutes_to_time(cursor),
            "slack_before": None,
            "schedule_status": STATUS_TENTATIVE,
        }
        cursor += timing.duration + timing.slack

    competitions = tuple(
        replace(
            c,
            fixtures=tuple(
                replace(f, **updates[c.id][f.id]) if f.id in updates.get(c.id, {}) else f for f in c.fixtures
            ),
        )
        if c.id in updates
        else c
        for c in state.competitions
    )
    return _enforced(state, competitions)
