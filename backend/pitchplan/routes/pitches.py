"""
Pitch API Routes
Tournament-wide pitches and their break windows.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session

from pitchplan.database import get_session
from pitchplan.routes.tournaments import PitchBreakResponse, PitchResponse
from pitchplan.services import tournament_actions as actions
from pitchplan.utils.action_guards import apply_action

router = APIRouter()

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ============================================================================
# Request Models
# ============================================================================


class PitchCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)


class PitchUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)

    @field_validator("name")
    @classmethod
    def validate_not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class PitchBreakCreateRequest(BaseModel):
    pitch_id: str
    start_time: str = Field(pattern=TIME_PATTERN)
    duration: int = Field(ge=1)
    label: str = ""


# ============================================================================
# Pitch Endpoints
# ============================================================================


@router.post("/tournaments/{tournament_id}/pitches", response_model=PitchResponse, status_code=201)
def create_pitch(tournament_id: int, request: PitchCreateRequest, session: Session = Depends(get_session)):
    _, pitch = apply_action(
        session, tournament_id, actions.add_pitch, request.name, request.start_time, request.end_time
    )
    return asdict(pitch)


@router.patch("/tournaments/{tournament_id}/pitches/{pitch_id}", response_model=PitchResponse)
def update_pitch(
    tournament_id: int, pitch_id: str, request: PitchUpdateRequest, session: Session = Depends(get_session)
):
    state, _ = apply_action(
        session, tournament_id, actions.update_pitch, pitch_id, request.model_dump(exclude_unset=True)
    )
    return asdict(state.find_pitch(pitch_id))


@router.delete("/tournaments/{tournament_id}/pitches/{pitch_id}", status_code=204)
def delete_pitch(tournament_id: int, pitch_id: str, session: Session = Depends(get_session)):
    """
    Delete a pitch and its breaks.

    Fixtures on the pitch become unplaced and the pitch leaves every group's pool.
    """
    apply_action(session, tournament_id, actions.delete_pitch, pitch_id)
    return Response(status_code=204)


# ============================================================================
# Break Endpoints
# ============================================================================


@router.post("/tournaments/{tournament_id}/breaks", response_model=PitchBreakResponse, status_code=201)
def create_pitch_break(
    tournament_id: int, request: PitchBreakCreateRequest, session: Session = Depends(get_session)
):
    _, item = apply_action(
        session,
        tournament_id,
        actions.add_pitch_break,
        request.pitch_id,
        request.start_time,
        request.duration,
        request.label,
    )
    return asdict(item)


@router.delete("/tournaments/{tournament_id}/breaks/{break_id}", status_code=204)
def delete_pitch_break(tournament_id: int, break_id: str, session: Session = Depends(get_session)):
    apply_action(session, tournament_id, actions.delete_pitch_break, break_id)
    return Response(status_code=204)
