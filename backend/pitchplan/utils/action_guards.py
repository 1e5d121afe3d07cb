"""
Action Guards

Reusable helpers for routes that run one tournament action:
- Load the snapshot (404 when the tournament is missing)
- Apply the action, mapping action errors to HTTP status codes
- Persist the resulting snapshot
"""

import logging
from typing import Any, Callable, Optional, Tuple

from fastapi import HTTPException
from sqlmodel import Session

from pitchplan.services.tournament_actions import EntityNotFoundError, InvalidActionError
from pitchplan.services.tournament_state import TournamentState
from pitchplan.services.tournament_store import (
    TournamentNotFoundError,
    load_tournament_state,
    save_tournament_state,
)

logger = logging.getLogger(__name__)


def require_tournament_state(session: Session, tournament_id: int) -> TournamentState:
    """
    Load a tournament snapshot, otherwise raise 404.

    Raises:
        HTTPException 404: Tournament not found
    """
    try:
        return load_tournament_state(session, tournament_id)
    except TournamentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def apply_action(
    session: Session,
    tournament_id: int,
    action: Callable[..., Any],
    *args,
    **kwargs,
) -> Tuple[TournamentState, Optional[Any]]:
    """
    Run `action(state, *args, **kwargs)` against the stored snapshot and save the result.

    Actions return either a new snapshot or (snapshot, created entity).

    Returns:
        (new snapshot, created entity or None)

    Raises:
        HTTPException 404: Tournament or referenced entity not found
        HTTPException 400: Action not valid for the current snapshot
    """
    state = require_tournament_state(session, tournament_id)

    try:
        result = action(state, *args, **kwargs)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidActionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if isinstance(result, tuple):
        new_state, created = result
    else:
        new_state, created = result, None

    save_tournament_state(session, new_state)
    logger.info("Tournament %s: %s -> v%d", tournament_id, action.__name__, new_state.version)
    return new_state, created
