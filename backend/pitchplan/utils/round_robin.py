"""
Round Robin Fixture Generation

Circle method: fix the first entry and rotate the rest one step per round
(last entry moves to the front of the rotating part). Odd team counts get a
ghost entry; pairing with the ghost is a bye and yields no fixture.
"""

import uuid
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from pitchplan.services.tournament_state import GROUP_STAGE, FixtureState, GroupState, TeamState

DEFAULT_FIXTURE_DURATION = 20

T = TypeVar("T")

# Stand-in for the bye slot; never appears in the output.
_GHOST = object()


def _new_id() -> str:
    return str(uuid.uuid4())


def round_robin_rounds(entries: Sequence[T]) -> List[List[Tuple[T, T]]]:
    """
    Pair every entry with every other exactly once.

    Returns one list of (home, away) pairs per round:
    - n even -> n-1 rounds of n/2 pairs
    - n odd  -> n rounds of (n-1)/2 pairs (one entry sits out each round)
    - n < 2  -> []
    """
    if len(entries) < 2:
        return []

    slots: list = list(entries)
    if len(slots) % 2 != 0:
        slots.append(_GHOST)

    n = len(slots)
    rounds: List[List[Tuple[T, T]]] = []

    for _ in range(n - 1):
        pairs = []
        for i in range(n // 2):
            home, away = slots[i], slots[n - 1 - i]
            if home is _GHOST or away is _GHOST:
                continue
            pairs.append((home, away))
        rounds.append(pairs)

        # Rotate: keep first, move last to the front of the rest
        slots = [slots[0], slots[-1]] + slots[1:-1]

    return rounds


def generate(
    teams: Sequence[TeamState],
    group: Optional[GroupState],
    competition_id: str,
    duration: int = DEFAULT_FIXTURE_DURATION,
    id_factory: Callable[[], str] = _new_id,
) -> List[FixtureState]:
    """
    Generate Group-stage fixtures for one scheduling unit.

    With a group, fixtures carry its id and a "<group name> - R<n>" description;
    with group=None ("all teams" mode) they carry no group and "Round <n>".
    """
    fixtures: List[FixtureState] = []

    for round_number, pairs in enumerate(round_robin_rounds(list(teams)), start=1):
        description = f"{group.name} - R{round_number}" if group else f"Round {round_number}"
        for home, away in pairs:
            fixtures.append(
                FixtureState(
                    id=id_factory(),
                    competition_id=competition_id,
                    home_team_id=home.id,
                    away_team_id=away.id,
                    stage=GROUP_STAGE,
                    description=description,
                    duration=duration,
                    group_id=group.id if group else None,
                )
            )

    return fixtures
