"""
Schedule API Routes
Auto-scheduling, recalculation, reset, pitch reordering and conflict report.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from pitchplan.database import get_session
from pitchplan.routes.tournaments import TournamentStateResponse, state_payload
from pitchplan.services import tournament_actions as actions
from pitchplan.services.pitch_overlaps import find_pitch_conflicts
from pitchplan.utils.action_guards import apply_action, require_tournament_state
from pitchplan.utils.time_utils import minutes_to_time

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class ReorderRequest(BaseModel):
    fixture_id: str
    pitch_id: str
    index: int = -1  # position in the pitch's running order; out of range appends


class PitchConflictResponse(BaseModel):
    pitch_id: str
    kind: str  # "overlap" | "break"
    fixture_id: str
    other_fixture_id: Optional[str] = None
    start_time: str
    end_time: str


# ============================================================================
# Schedule Endpoints
# ============================================================================


@router.post(
    "/tournaments/{tournament_id}/competitions/{competition_id}/schedule/auto",
    response_model=TournamentStateResponse,
)
def auto_schedule_competition(tournament_id: int, competition_id: str, session: Session = Depends(get_session)):
    """
    Assign pitch and start time to every fixture of the competition, then
    resolve overlaps with other competitions on shared pitches.
    """
    state, _ = apply_action(session, tournament_id, actions.auto_schedule_competition, competition_id)
    return state_payload(state)


@router.post(
    "/tournaments/{tournament_id}/competitions/{competition_id}/schedule/recalculate",
    response_model=TournamentStateResponse,
)
def recalculate_schedule(tournament_id: int, competition_id: str, session: Session = Depends(get_session)):
    """Re-derive start times keeping every fixture's pitch and running order."""
    state, _ = apply_action(session, tournament_id, actions.recalculate_schedule, competition_id)
    return state_payload(state)


@router.post("/tournaments/{tournament_id}/schedule/reset", response_model=TournamentStateResponse)
def reset_all_schedules(tournament_id: int, session: Session = Depends(get_session)):
    state, _ = apply_action(session, tournament_id, actions.reset_all_schedules)
    return state_payload(state)


@router.post("/tournaments/{tournament_id}/schedule/reorder", response_model=TournamentStateResponse)
def reorder_fixture(tournament_id: int, request: ReorderRequest, session: Session = Depends(get_session)):
    state, _ = apply_action(
        session,
        tournament_id,
        actions.reorder_fixture_to_pitch,
        request.fixture_id,
        request.pitch_id,
        request.index,
    )
    return state_payload(state)


@router.get("/tournaments/{tournament_id}/schedule/conflicts", response_model=List[PitchConflictResponse])
def get_schedule_conflicts(tournament_id: int, session: Session = Depends(get_session)):
    """Fixtures overlapping each other or a break on the same pitch (read-only)."""
    state = require_tournament_state(session, tournament_id)
    return [
        PitchConflictResponse(
            pitch_id=c.pitch_id,
            kind=c.kind,
            fixture_id=c.fixture_id,
            other_fixture_id=c.other_fixture_id,
            start_time=minutes_to_time(c.start),
            end_time=minutes_to_time(c.end),
        )
        for c in find_pitch_conflicts(state.competitions, state.pitches, state.breaks)
    ]
