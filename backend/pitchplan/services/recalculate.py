"""
Schedule Recalculator

Re-derives start times for fixtures that already have a pitch, after an edit
changed durations, slack, or removed a fixture. Pitch assignments and the
running order on each pitch are preserved:

  - fixtures keep their pitch_id
  - on a pitch, fixtures run in order of their current start time
    (fixtures without a time go last, list order breaks ties)
  - group stage first, then knockout tiers, with the same tier barrier as
    the allocator

Fixtures without a pitch are left untouched.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from pitchplan.services.auto_schedule import (
    FixtureUpdates,
    group_stage_end_time,
    place_on_pitch,
    split_tiers,
)
from pitchplan.services.schedule_context import build_schedule_context
from pitchplan.services.tournament_state import (
    STATUS_TENTATIVE,
    CompetitionState,
    FixtureState,
    PitchBreak,
    PitchState,
    replace_fixtures,
)
from pitchplan.utils.time_utils import minutes_to_time, optional_minutes

logger = logging.getLogger(__name__)

_UNTIMED = float("inf")


def current_order_key(fixture: FixtureState) -> float:
    minutes = optional_minutes(fixture.start_time)
    return _UNTIMED if minutes is None else minutes


def group_by_pitch(fixtures: Sequence[FixtureState]) -> List[Tuple[str, List[FixtureState]]]:
    """
    Group pitched fixtures by pitch, pitches in first-seen order, each list
    sorted by current start time (stable).
    """
    by_pitch: Dict[str, List[FixtureState]] = {}
    for fixture in fixtures:
        if fixture.pitch_id:
            by_pitch.setdefault(fixture.pitch_id, []).append(fixture)
    return [(pitch_id, sorted(items, key=current_order_key)) for pitch_id, items in by_pitch.items()]


def recalculate(
    competition: CompetitionState,
    pitches: Sequence[PitchState],
    breaks: Sequence[PitchBreak],
) -> CompetitionState:
    """Recompute start times in place of stale ones; see module docstring."""
    if not competition.fixtures:
        return competition

    ctx = build_schedule_context(pitches, breaks, competition.groups)
    cursors = ctx.initial_cursors()
    updates: FixtureUpdates = {}

    group_fixtures = [f for f in competition.fixtures if f.is_group_stage]
    knockout_fixtures = [f for f in competition.fixtures if not f.is_group_stage]

    touched: List[str] = []
    for pitch_id, pitch_fixtures in group_by_pitch(group_fixtures):
        for fixture in pitch_fixtures:
            timing = ctx.timing(fixture)
            placement, cursors = place_on_pitch(cursors, pitch_id, timing.duration, timing.slack, ctx)
            updates[fixture.id] = {
                "start_time": minutes_to_time(placement.start),
                "duration": timing.duration,
                "slack_before": None,
                "schedule_status": STATUS_TENTATIVE,
            }
        touched.append(pitch_id)

    tier_min_start = group_stage_end_time(cursors, touched)

    for tier, tier_fixtures in split_tiers(knockout_fixtures):
        tier_max_end = tier_min_start

        for pitch_id, pitch_fixtures in group_by_pitch(tier_fixtures):
            natural = cursors.get(pitch_id, ctx.pitch_start(pitch_id))
            for fixture in pitch_fixtures:
                timing = ctx.timing(fixture)
                placement, cursors = place_on_pitch(
                    cursors, pitch_id, timing.duration, timing.slack, ctx, earliest=tier_min_start
                )
                updates[fixture.id] = {
                    "start_time": minutes_to_time(placement.start),
                    "duration": timing.duration,
                    "slack_before": max(0, placement.start - natural),
                    "schedule_status": STATUS_TENTATIVE,
                }
                natural = placement.end
                tier_max_end = max(tier_max_end, placement.end)

        tier_min_start = tier_max_end

    logger.info("Recalculated competition %s: %d fixtures retimed", competition.id, len(updates))
    return replace_fixtures(competition, updates)
