"""
Tournament API Routes
Tournament CRUD and the full snapshot read used by every editor view.
"""

from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from pitchplan.database import get_session
from pitchplan.models.tournament import Tournament
from pitchplan.services.tournament_state import count_unscheduled
from pitchplan.services.tournament_store import delete_tournament as delete_tournament_rows
from pitchplan.utils.action_guards import require_tournament_state

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TournamentCreate(BaseModel):
    name: str
    location: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    location: Optional[str] = None
    notes: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    group_id: Optional[str] = None
    initials: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None


class GroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    default_duration: Optional[int] = None
    default_slack: Optional[int] = None
    default_rest: Optional[int] = None
    pitch_ids: List[str] = []
    primary_pitch_id: Optional[str] = None


class FixtureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    competition_id: str
    home_team_id: str
    away_team_id: str
    stage: str
    duration: int
    group_id: Optional[str] = None
    pitch_id: Optional[str] = None
    start_time: Optional[str] = None
    slack: Optional[int] = None
    rest: Optional[int] = None
    slack_before: Optional[int] = None
    match_id: Optional[str] = None
    description: Optional[str] = None
    schedule_status: str


class CompetitionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str
    color: Optional[str] = None
    teams: List[TeamResponse] = []
    groups: List[GroupResponse] = []
    fixtures: List[FixtureResponse] = []
    unscheduled_count: int = 0


class PitchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class PitchBreakResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    pitch_id: str
    start_time: str
    duration: int
    label: str = ""


class TournamentStateResponse(BaseModel):
    tournament_id: int
    version: int
    competitions: List[CompetitionResponse]
    pitches: List[PitchResponse]
    breaks: List[PitchBreakResponse]


def competition_payload(competition) -> dict:
    return dict(asdict(competition), unscheduled_count=count_unscheduled(competition))


def state_payload(state) -> dict:
    """Snapshot as a TournamentStateResponse-shaped dict."""
    return dict(
        asdict(state),
        competitions=[competition_payload(c) for c in state.competitions],
    )


# ============================================================================
# Tournament Endpoints
# ============================================================================


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(data: TournamentCreate, session: Session = Depends(get_session)):
    tournament = Tournament(**data.model_dump())
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    return session.exec(select(Tournament).order_by(Tournament.id)).all()


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


@router.get("/tournaments/{tournament_id}/state", response_model=TournamentStateResponse)
def get_tournament_state(tournament_id: int, session: Session = Depends(get_session)):
    """Full snapshot: competitions with teams, groups and fixtures, pitches and breaks."""
    return state_payload(require_tournament_state(session, tournament_id))


@router.delete("/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, session: Session = Depends(get_session)):
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")

    delete_tournament_rows(session, tournament_id)
    return Response(status_code=204)
