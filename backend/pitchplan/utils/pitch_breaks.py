"""
Pitch break index and break avoidance.

Break windows are per-pitch intervals [start, start + duration) during which
no fixture may occupy the pitch.
"""
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, NamedTuple, Sequence, Tuple

from pitchplan.utils.time_utils import parse_time_to_minutes

logger = logging.getLogger(__name__)

# Upper bound on full passes over a pitch's breaks. Each pass either moves the
# start forward or terminates, so well-formed input converges in at most
# len(breaks) + 1 passes.
MAX_BREAK_PASSES = 1000


class BreakInterval(NamedTuple):
    start: int
    end: int


BreakIndex = Dict[str, Tuple[BreakInterval, ...]]


def build_break_index(breaks: Iterable) -> BreakIndex:
    """
    Build {pitch_id: sorted break intervals} from break records.

    Each record needs pitch_id, start_time ("HH:mm") and duration (minutes).
    Zero or negative durations produce empty intervals, which never overlap.
    """
    by_pitch: Dict[str, List[BreakInterval]] = defaultdict(list)
    for br in breaks:
        start = parse_time_to_minutes(br.start_time)
        end = start + max(br.duration or 0, 0)
        by_pitch[br.pitch_id].append(BreakInterval(start, end))

    return {pitch_id: tuple(sorted(intervals)) for pitch_id, intervals in by_pitch.items()}


def overlaps_break(start: int, duration: int, interval: BreakInterval) -> bool:
    return start < interval.end and start + duration > interval.start


def advance_past_breaks(proposed_start: int, duration: int, intervals: Sequence[BreakInterval]) -> int:
    """
    Move a proposed start forward until [start, start + duration) clears every break.

    A hit moves the start to that break's end and re-checks all intervals, so
    back-to-back windows cascade. Bounded by MAX_BREAK_PASSES; on malformed
    input the current candidate is returned with a warning.
    """
    start = proposed_start
    for _ in range(MAX_BREAK_PASSES):
        changed = False
        for interval in intervals:
            if overlaps_break(start, duration, interval):
                start = interval.end
                changed = True
        if not changed:
            return start

    logger.warning(
        "Break avoidance did not converge after %d passes (start=%d, duration=%d)",
        MAX_BREAK_PASSES,
        proposed_start,
        duration,
    )
    return start
