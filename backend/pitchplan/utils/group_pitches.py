"""
Canonical resolver for a group's configured pitch pool.

Handles both a configured list and the legacy single primary pitch so callers
never have to care which one a group carries.
"""
from typing import List, Optional, Sequence


def get_group_pitch_ids(group) -> List[str]:
    """
    Return the group's pitch pool, de-duplicated in configured order.

    - no group -> []
    - non-empty pitch_ids -> those ids (blank entries dropped)
    - otherwise primary_pitch_id, if set -> [primary_pitch_id]
    """
    if group is None:
        return []

    configured = [p for p in (group.pitch_ids or ()) if isinstance(p, str) and p.strip()]
    if not configured and isinstance(group.primary_pitch_id, str) and group.primary_pitch_id.strip():
        configured = [group.primary_pitch_id]

    seen = set()
    result = []
    for pitch_id in configured:
        if pitch_id not in seen:
            seen.add(pitch_id)
            result.append(pitch_id)
    return result


def remove_pitch_from_pool(pitch_ids: Sequence[str], pitch_id: str) -> List[str]:
    return [p for p in pitch_ids if p != pitch_id]


def first_or_none(pitch_ids: Sequence[str]) -> Optional[str]:
    return pitch_ids[0] if pitch_ids else None
