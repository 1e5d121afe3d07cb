"""
Per-pass lookup tables and fixture timing resolution.

A ScheduleContext is built once per scheduling pass from the snapshot and
handed to the allocator, recalculator and overlap enforcer as a read-only
argument. It holds every id -> entity table those passes consult.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Mapping, NamedTuple, Optional, Sequence, Tuple

from pitchplan.services.tournament_state import FixtureState, GroupState, PitchBreak, PitchState
from pitchplan.utils.pitch_breaks import BreakIndex, BreakInterval, build_break_index
from pitchplan.utils.round_robin import DEFAULT_FIXTURE_DURATION
from pitchplan.utils.time_utils import DEFAULT_PITCH_START_MINUTES, parse_time_to_minutes

DEFAULT_SLACK = 5

# Knockout tier precedence (authoritative). Final and 3rd place share a tier.
KNOCKOUT_TIER: Dict[str, int] = {
    "Round of 16": 0,
    "Quarter-Final": 1,
    "Semi-Final": 2,
    "3rd Place Playoff": 3,
    "Final": 3,
}

# Free-form knockout labels run after every known tier
UNKNOWN_KNOCKOUT_TIER = 99


def knockout_tier(stage: Optional[str]) -> int:
    return KNOCKOUT_TIER.get(stage or "", UNKNOWN_KNOCKOUT_TIER)


class FixtureTiming(NamedTuple):
    group: Optional[GroupState]
    duration: int
    slack: int


@dataclass(frozen=True)
class ScheduleContext:
    pitch_ids: Tuple[str, ...]  # configured order
    valid_pitch_ids: FrozenSet[str]
    pitch_start_by_id: Mapping[str, int]
    groups_by_id: Mapping[str, GroupState]
    breaks_by_pitch: BreakIndex

    @property
    def fallback_pitch_id(self) -> Optional[str]:
        return self.pitch_ids[0] if self.pitch_ids else None

    def pitch_start(self, pitch_id: str) -> int:
        return self.pitch_start_by_id.get(pitch_id, DEFAULT_PITCH_START_MINUTES)

    def breaks_for(self, pitch_id: str) -> Tuple[BreakInterval, ...]:
        return self.breaks_by_pitch.get(pitch_id, ())

    def timing(self, fixture: FixtureState) -> FixtureTiming:
        return resolve_timing(fixture, self.groups_by_id)

    def initial_cursors(self) -> Dict[str, int]:
        """Cursor table with every pitch at its daily start time."""
        return {pitch_id: self.pitch_start(pitch_id) for pitch_id in self.pitch_ids}


def build_schedule_context(
    pitches: Sequence[PitchState],
    breaks: Sequence[PitchBreak],
    groups: Sequence[GroupState] = (),
) -> ScheduleContext:
    pitch_ids = tuple(p.id for p in pitches)
    if len(set(pitch_ids)) != len(pitch_ids):
        # Later duplicates are ignored; lookups keep the first occurrence.
        pitch_ids = tuple(dict.fromkeys(pitch_ids))

    starts: Dict[str, int] = {}
    for pitch in pitches:
        starts.setdefault(pitch.id, parse_time_to_minutes(pitch.start_time))

    return ScheduleContext(
        pitch_ids=pitch_ids,
        valid_pitch_ids=frozenset(pitch_ids),
        pitch_start_by_id=starts,
        groups_by_id={g.id: g for g in groups},
        breaks_by_pitch=build_break_index(breaks),
    )


def resolve_timing(fixture: FixtureState, groups_by_id: Mapping[str, GroupState]) -> FixtureTiming:
    """
    Resolve the duration and trailing slack of a fixture.

    duration: group default -> fixture duration -> 20
    slack:    fixture override -> group default -> 5

    A group_id pointing at a deleted group is treated as no group.
    """
    group = groups_by_id.get(fixture.group_id) if fixture.group_id else None

    if group is not None and group.default_duration is not None:
        duration = group.default_duration
    elif fixture.duration is not None:
        duration = fixture.duration
    else:
        duration = DEFAULT_FIXTURE_DURATION

    if fixture.slack is not None:
        slack = fixture.slack
    elif group is not None and group.default_slack is not None:
        slack = group.default_slack
    else:
        slack = DEFAULT_SLACK

    return FixtureTiming(group=group, duration=duration, slack=slack)


def advance_cursor(cursors: Mapping[str, int], pitch_id: str, value: int) -> Dict[str, int]:
    """Return a new cursor table with pitch_id moved to value."""
    updated = dict(cursors)
    updated[pitch_id] = value
    return updated
