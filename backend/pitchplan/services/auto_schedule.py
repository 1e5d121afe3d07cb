"""
Pitch Timeline Allocator: deterministic pitch + start-time assignment

Assigns every fixture of one competition a pitch and a start time.

Group stage:
  - Each fixture's pitch pool is its group's configured pitches (filtered to
    pitches that still exist), else its current pitch, else the first pitch.
    Fixtures with an empty pool stay unplaced.
  - Fixtures queue per group (FIFO, in list order). Queues are served
    round-robin, one fixture per queue per pass, so groups sharing pitches
    interleave instead of one group exhausting a pitch first.
  - Each queue rotates through its own pool; a fixture starts at the chosen
    pitch's cursor (pushed past breaks) and the cursor moves to
    start + duration + slack.

Knockout stage:
  - Fixtures are split into tiers by KNOCKOUT_TIER and placed tier by tier.
  - No fixture in a tier starts before the previous tier (or the group stage)
    has fully ended, slack included.
  - slack_before records the idle gap inserted ahead of a fixture beyond its
    pitch's natural continuation.

Non-goals:
- Travel or fairness optimisation beyond rotation
- Pitch end-of-day validation
- Cross-competition contention (see pitch_overlaps.enforce_no_overlaps)
"""

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Mapping, NamedTuple, Sequence, Tuple

from pitchplan.services.schedule_context import (
    ScheduleContext,
    advance_cursor,
    build_schedule_context,
    knockout_tier,
)
from pitchplan.services.tournament_state import (
    STATUS_TENTATIVE,
    STATUS_UNPLACED,
    CompetitionState,
    FixtureState,
    PitchBreak,
    PitchState,
    replace_fixtures,
    with_regenerated_match_ids,
)
from pitchplan.utils.group_pitches import get_group_pitch_ids
from pitchplan.utils.pitch_breaks import advance_past_breaks
from pitchplan.utils.time_utils import minutes_to_time

logger = logging.getLogger(__name__)

Cursors = Dict[str, int]
FixtureUpdates = Dict[str, Dict[str, object]]


class QueueEntry(NamedTuple):
    fixture_id: str
    duration: int
    slack: int


@dataclass
class GroupQueue:
    pitch_pool: Tuple[str, ...]
    next_pitch_index: int = 0
    fixtures: Deque[QueueEntry] = field(default_factory=deque)


class Placement(NamedTuple):
    pitch_id: str
    start: int
    end: int  # start + duration + slack


def place_on_pitch(
    cursors: Mapping[str, int],
    pitch_id: str,
    duration: int,
    slack: int,
    ctx: ScheduleContext,
    earliest: int = 0,
) -> Tuple[Placement, Cursors]:
    """
    Place one fixture at the pitch cursor (no earlier than `earliest`), clear of breaks.

    Returns the placement and the cursor table advanced past it.
    """
    cursor = cursors.get(pitch_id, ctx.pitch_start(pitch_id))
    start = advance_past_breaks(max(cursor, earliest), duration, ctx.breaks_for(pitch_id))
    end = start + duration + slack
    return Placement(pitch_id, start, end), advance_cursor(cursors, pitch_id, end)


def resolve_pitch_pool(fixture: FixtureState, ctx: ScheduleContext) -> Tuple[str, ...]:
    """Group pool -> fixture's own valid pitch -> first configured pitch -> ()."""
    timing = ctx.timing(fixture)
    configured = tuple(p for p in get_group_pitch_ids(timing.group) if p in ctx.valid_pitch_ids)
    if configured:
        return configured
    if fixture.pitch_id and fixture.pitch_id in ctx.valid_pitch_ids:
        return (fixture.pitch_id,)
    if ctx.fallback_pitch_id:
        return (ctx.fallback_pitch_id,)
    return ()


def build_group_queues(
    fixtures: Sequence[FixtureState],
    ctx: ScheduleContext,
    updates: FixtureUpdates,
) -> Tuple[List[str], Dict[str, GroupQueue]]:
    """
    Partition group-stage fixtures into per-group FIFO queues.

    Returns (queue keys in registration order, queues). Fixtures without a
    usable pool are recorded in `updates` as unplaced.
    """
    order: List[str] = []
    queues: Dict[str, GroupQueue] = {}

    for fixture in fixtures:
        timing = ctx.timing(fixture)
        pool = resolve_pitch_pool(fixture, ctx)

        if not pool:
            updates[fixture.id] = {
                "duration": timing.duration,
                "pitch_id": None,
                "start_time": None,
                "schedule_status": STATUS_UNPLACED,
            }
            continue

        key = timing.group.id if timing.group is not None else f"fixture:{fixture.id}"
        if key not in queues:
            order.append(key)
            queues[key] = GroupQueue(pitch_pool=pool)
        queues[key].fixtures.append(QueueEntry(fixture.id, timing.duration, timing.slack))

    return order, queues


def place_group_stage(
    order: Sequence[str],
    queues: Mapping[str, GroupQueue],
    cursors: Cursors,
    ctx: ScheduleContext,
    updates: FixtureUpdates,
) -> Tuple[Cursors, List[str]]:
    """
    Serve the queues round-robin until all are empty.

    Returns the advanced cursor table and the pitches touched, in first-use order.
    """
    touched: List[str] = []
    pending = True

    while pending:
        pending = False
        for key in order:
            queue = queues[key]
            if not queue.fixtures:
                continue
            pending = True

            entry = queue.fixtures.popleft()
            pitch_id = queue.pitch_pool[queue.next_pitch_index % len(queue.pitch_pool)]
            queue.next_pitch_index += 1

            placement, cursors = place_on_pitch(cursors, pitch_id, entry.duration, entry.slack, ctx)
            updates[entry.fixture_id] = {
                "pitch_id": pitch_id,
                "start_time": minutes_to_time(placement.start),
                "duration": entry.duration,
                "slack_before": None,
                "schedule_status": STATUS_TENTATIVE,
            }
            if pitch_id not in touched:
                touched.append(pitch_id)
            logger.debug("Group fixture %s -> %s @ %d", entry.fixture_id, pitch_id, placement.start)

    return cursors, touched


def split_tiers(fixtures: Sequence[FixtureState]) -> List[Tuple[int, List[FixtureState]]]:
    """Knockout fixtures grouped by tier, tiers ascending, list order kept within a tier."""
    tiers: Dict[int, List[FixtureState]] = defaultdict(list)
    for fixture in fixtures:
        tiers[knockout_tier(fixture.stage)].append(fixture)
    return sorted(tiers.items())


def place_knockout_tiers(
    fixtures: Sequence[FixtureState],
    pool: Sequence[str],
    cursors: Cursors,
    group_stage_end: int,
    ctx: ScheduleContext,
    updates: FixtureUpdates,
) -> Cursors:
    """
    Place knockout fixtures tier by tier, round-robin over `pool`.

    Each tier's fixtures start no earlier than the latest end (incl. slack)
    of the previous tier, or of the group stage for the first tier.
    """
    tier_min_start = group_stage_end

    for tier, tier_fixtures in split_tiers(fixtures):
        natural: Cursors = {p: cursors.get(p, ctx.pitch_start(p)) for p in pool}
        for pitch_id in pool:
            cursors = advance_cursor(cursors, pitch_id, max(natural[pitch_id], tier_min_start))

        next_pitch_index = 0
        tier_max_end = tier_min_start

        for fixture in tier_fixtures:
            timing = ctx.timing(fixture)
            pitch_id = pool[next_pitch_index % len(pool)]
            next_pitch_index += 1

            placement, cursors = place_on_pitch(
                cursors, pitch_id, timing.duration, timing.slack, ctx, earliest=tier_min_start
            )
            updates[fixture.id] = {
                "pitch_id": pitch_id,
                "start_time": minutes_to_time(placement.start),
                "duration": timing.duration,
                "slack_before": max(0, placement.start - natural[pitch_id]),
                "schedule_status": STATUS_TENTATIVE,
            }
            natural[pitch_id] = placement.end
            tier_max_end = max(tier_max_end, placement.end)

        logger.debug("Knockout tier %d: %d fixtures, ends at %d", tier, len(tier_fixtures), tier_max_end)
        tier_min_start = tier_max_end

    return cursors


def group_stage_end_time(cursors: Mapping[str, int], touched: Sequence[str]) -> int:
    """Latest cursor over the pitches the group stage used; 0 when none were used."""
    return max((cursors[p] for p in touched), default=0)


def auto_schedule(
    competition: CompetitionState,
    pitches: Sequence[PitchState],
    breaks: Sequence[PitchBreak],
) -> CompetitionState:
    """
    Assign pitch and start time to every fixture of a competition.

    Deterministic: identical inputs produce identical output, so repeated
    calls are idempotent. Match ids are regenerated afterwards; callers must
    still run enforce_no_overlaps across all competitions.
    """
    if not competition.fixtures:
        return competition

    ctx = build_schedule_context(pitches, breaks, competition.groups)
    updates: FixtureUpdates = {}

    group_fixtures = [f for f in competition.fixtures if f.is_group_stage]
    knockout_fixtures = [f for f in competition.fixtures if not f.is_group_stage]

    order, queues = build_group_queues(group_fixtures, ctx, updates)
    used_pitch_ids: List[str] = []
    for key in order:
        for pitch_id in queues[key].pitch_pool:
            if pitch_id not in used_pitch_ids:
                used_pitch_ids.append(pitch_id)

    cursors, touched = place_group_stage(order, queues, ctx.initial_cursors(), ctx, updates)
    group_stage_end = group_stage_end_time(cursors, touched)

    if knockout_fixtures:
        pool = used_pitch_ids or list(ctx.pitch_ids)
        if pool:
            place_knockout_tiers(knockout_fixtures, pool, cursors, group_stage_end, ctx, updates)
        else:
            for fixture in knockout_fixtures:
                updates[fixture.id] = {
                    "duration": ctx.timing(fixture).duration,
                    "pitch_id": None,
                    "start_time": None,
                    "schedule_status": STATUS_UNPLACED,
                }

    scheduled = with_regenerated_match_ids(replace_fixtures(competition, updates))
    unplaced = sum(1 for f in scheduled.fixtures if not f.is_placed)
    logger.info(
        "Auto-scheduled competition %s: %d fixtures, %d unplaced, group stage ends at %s",
        competition.id,
        len(scheduled.fixtures),
        unplaced,
        minutes_to_time(group_stage_end),
    )
    return scheduled
