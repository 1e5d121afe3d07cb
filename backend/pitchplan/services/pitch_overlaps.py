"""
Cross-Competition Overlap Enforcer

Pitches are shared by every competition of a tournament, so per-competition
scheduling alone cannot guarantee a free pitch. This pass runs last, over all
competitions, and is the only place final start times are settled:

  1. Collect every fixture with a pitch, in discovery order
     (competition list order, then fixture list order).
  2. Per pitch, sort by (requested start, discovery order).
  3. Walk with a cursor from the pitch's daily start:
     start = max(cursor + slack_before, requested), pushed past breaks;
     cursor = start + duration + slack.
  4. Rewrite only fixtures whose start time actually changed.

Fixtures that needed no adjustment are marked confirmed; moved fixtures stay
tentative until a later pass leaves them alone.
"""

import logging
from collections import defaultdict
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from pitchplan.services.schedule_context import build_schedule_context, resolve_timing
from pitchplan.services.tournament_state import (
    STATUS_CONFIRMED,
    STATUS_TENTATIVE,
    CompetitionState,
    PitchBreak,
    PitchState,
    replace_fixtures,
)
from pitchplan.utils.pitch_breaks import advance_past_breaks, overlaps_break
from pitchplan.utils.time_utils import minutes_to_time, parse_time_to_minutes

logger = logging.getLogger(__name__)


class PitchFixtureRef(NamedTuple):
    competition_id: str
    fixture_id: str
    stored_start_time: Optional[str]
    schedule_status: str
    requested_start: int
    duration: int
    slack: int
    slack_before: int
    order: int


def collect_pitch_fixtures(
    competitions: Sequence[CompetitionState],
    pitch_start_for,
) -> Dict[str, List[PitchFixtureRef]]:
    """Fixtures with a pitch, grouped by pitch, each tagged with its global discovery order."""
    by_pitch: Dict[str, List[PitchFixtureRef]] = defaultdict(list)
    order = 0

    for competition in competitions:
        groups_by_id = {g.id: g for g in competition.groups}
        for fixture in competition.fixtures:
            if not fixture.pitch_id:
                continue
            timing = resolve_timing(fixture, groups_by_id)
            by_pitch[fixture.pitch_id].append(
                PitchFixtureRef(
                    competition_id=competition.id,
                    fixture_id=fixture.id,
                    stored_start_time=fixture.start_time,
                    schedule_status=fixture.schedule_status,
                    requested_start=parse_time_to_minutes(fixture.start_time, pitch_start_for(fixture.pitch_id)),
                    duration=timing.duration,
                    slack=timing.slack,
                    slack_before=fixture.slack_before or 0,
                    order=order,
                )
            )
            order += 1

    return by_pitch


def enforce_no_overlaps(
    competitions: Sequence[CompetitionState],
    pitches: Sequence[PitchState],
    breaks: Sequence[PitchBreak],
) -> Tuple[CompetitionState, ...]:
    """Settle start times so no two fixtures on a pitch overlap; see module docstring."""
    ctx = build_schedule_context(pitches, breaks)
    by_pitch = collect_pitch_fixtures(competitions, ctx.pitch_start)
    updates: Dict[str, Dict[str, dict]] = defaultdict(dict)
    moved = 0

    for pitch_id, refs in by_pitch.items():
        cursor = ctx.pitch_start(pitch_id)
        pitch_breaks = ctx.breaks_for(pitch_id)

        for ref in sorted(refs, key=lambda r: (r.requested_start, r.order)):
            start = max(cursor + ref.slack_before, ref.requested_start)
            start = advance_past_breaks(start, ref.duration, pitch_breaks)
            start_time = minutes_to_time(start)

            if start_time != ref.stored_start_time:
                updates[ref.competition_id][ref.fixture_id] = {
                    "start_time": start_time,
                    "schedule_status": STATUS_TENTATIVE,
                }
                moved += 1
            elif ref.schedule_status != STATUS_CONFIRMED:
                updates[ref.competition_id][ref.fixture_id] = {"schedule_status": STATUS_CONFIRMED}

            cursor = start + ref.duration + ref.slack

    if moved:
        logger.info("Overlap enforcement moved %d fixtures across %d pitches", moved, len(by_pitch))

    return tuple(replace_fixtures(c, updates.get(c.id, {})) for c in competitions)


class PitchConflict(NamedTuple):
    pitch_id: str
    kind: str  # "overlap" | "break"
    fixture_id: str
    other_fixture_id: Optional[str]
    start: int
    end: int


def find_pitch_conflicts(
    competitions: Sequence[CompetitionState],
    pitches: Sequence[PitchState],
    breaks: Sequence[PitchBreak],
) -> List[PitchConflict]:
    """
    Report every pair of fixtures whose [start, start + duration) intersect on
    a pitch, and every fixture intersecting a break on its pitch.

    Only placed fixtures (pitch and start time) are considered.
    """
    ctx = build_schedule_context(pitches, breaks)
    placed: Dict[str, List[Tuple[int, int, str]]] = defaultdict(list)

    for competition in competitions:
        groups_by_id = {g.id: g for g in competition.groups}
        for fixture in competition.fixtures:
            if not fixture.is_placed:
                continue
            start = parse_time_to_minutes(fixture.start_time, ctx.pitch_start(fixture.pitch_id))
            duration = resolve_timing(fixture, groups_by_id).duration
            placed[fixture.pitch_id].append((start, start + duration, fixture.id))

    conflicts: List[PitchConflict] = []
    for pitch_id, intervals in placed.items():
        intervals.sort()
        for i, (start, end, fixture_id) in enumerate(intervals):
            for other_start, other_end, other_id in intervals[i + 1:]:
                if other_start >= end:
                    break
                conflicts.append(
                    PitchConflict(pitch_id, "overlap", fixture_id, other_id, other_start, min(end, other_end))
                )
            for interval in ctx.breaks_for(pitch_id):
                if overlaps_break(start, end - start, interval):
                    conflicts.append(PitchConflict(pitch_id, "break", fixture_id, None, interval.start, interval.end))

    return conflicts
