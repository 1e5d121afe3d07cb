"""
Fixture API Routes
Round-robin generation, manual and bulk fixture entry, fixture edits.
"""

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session

from pitchplan.database import get_session
from pitchplan.routes.pitches import TIME_PATTERN
from pitchplan.routes.tournaments import (
    CompetitionResponse,
    FixtureResponse,
    TournamentStateResponse,
    competition_payload,
    state_payload,
)
from pitchplan.services import tournament_actions as actions
from pitchplan.utils.action_guards import apply_action

router = APIRouter()


# ============================================================================
# Request Models
# ============================================================================


class FixtureCreateRequest(BaseModel):
    home_team_id: str = Field(min_length=1)
    away_team_id: str = Field(min_length=1)
    stage: Optional[str] = None  # "Group" when omitted
    duration: Optional[int] = Field(default=None, ge=1)
    group_id: Optional[str] = None
    pitch_id: Optional[str] = None
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    slack: Optional[int] = Field(default=None, ge=0)
    rest: Optional[int] = Field(default=None, ge=0)
    match_id: Optional[str] = None
    description: Optional[str] = None

    @field_validator("duration")
    @classmethod
    def validate_not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class FixtureUpdateRequest(BaseModel):
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    stage: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1)
    group_id: Optional[str] = None
    pitch_id: Optional[str] = None
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    slack: Optional[int] = Field(default=None, ge=0)
    rest: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = None

    @field_validator("home_team_id", "away_team_id", "duration")
    @classmethod
    def validate_not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class FixtureBatchCreateRequest(BaseModel):
    fixtures: List[FixtureCreateRequest]


class FixtureBatchUpdateItem(BaseModel):
    competition_id: str
    fixture_id: str
    changes: FixtureUpdateRequest


class FixtureBatchUpdateRequest(BaseModel):
    updates: List[FixtureBatchUpdateItem]
    recalculate: bool = False


def _fixture_fields(request: BaseModel) -> dict:
    fields = request.model_dump(exclude_unset=True)
    if fields.get("stage") is None:
        fields.pop("stage", None)
    return fields


# ============================================================================
# Fixture Endpoints
# ============================================================================


@router.post(
    "/tournaments/{tournament_id}/competitions/{competition_id}/fixtures/generate",
    response_model=CompetitionResponse,
)
def generate_fixtures(
    tournament_id: int,
    competition_id: str,
    group_id: Optional[str] = Query(None, description="Regenerate only this group"),
    session: Session = Depends(get_session),
):
    """
    (Re)generate round-robin group-stage fixtures.

    Knockout fixtures, and other groups' fixtures when `group_id` is given, are kept.
    """
    state, _ = apply_action(session, tournament_id, actions.generate_fixtures, competition_id, group_id)
    return competition_payload(state.find_competition(competition_id))


@router.post(
    "/tournaments/{tournament_id}/competitions/{competition_id}/fixtures",
    response_model=FixtureResponse,
    status_code=201,
)
def create_fixture(
    tournament_id: int,
    competition_id: str,
    request: FixtureCreateRequest,
    session: Session = Depends(get_session),
):
    _, fixture = apply_action(
        session, tournament_id, actions.add_manual_fixture, competition_id, _fixture_fields(request)
    )
    return asdict(fixture)


@router.post(
    "/tournaments/{tournament_id}/competitions/{competition_id}/fixtures/batch",
    response_model=CompetitionResponse,
)
def create_fixtures(
    tournament_id: int,
    competition_id: str,
    request: FixtureBatchCreateRequest,
    session: Session = Depends(get_session),
):
    """Add fixtures in bulk. Entries whose match_id already exists update that fixture."""
    state, _ = apply_action(
        session,
        tournament_id,
        actions.add_fixtures,
        competition_id,
        [_fixture_fields(item) for item in request.fixtures],
    )
    return competition_payload(state.find_competition(competition_id))


@router.patch("/tournaments/{tournament_id}/fixtures/batch", response_model=TournamentStateResponse)
def update_fixtures(
    tournament_id: int, request: FixtureBatchUpdateRequest, session: Session = Depends(get_session)
):
    batch = [(item.competition_id, item.fixture_id, _fixture_fields(item.changes)) for item in request.updates]
    state, _ = apply_action(
        session, tournament_id, actions.batch_update_fixtures, batch, should_recalculate=request.recalculate
    )
    return state_payload(state)


@router.patch(
    "/tournaments/{tournament_id}/competitions/{competition_id}/fixtures/{fixture_id}",
    response_model=TournamentStateResponse,
)
def update_fixture(
    tournament_id: int,
    competition_id: str,
    fixture_id: str,
    request: FixtureUpdateRequest,
    recalculate: bool = Query(False, description="Re-derive start times after the edit"),
    session: Session = Depends(get_session),
):
    state, _ = apply_action(
        session,
        tournament_id,
        actions.update_fixture,
        competition_id,
        fixture_id,
        _fixture_fields(request),
        should_recalculate=recalculate,
    )
    return state_payload(state)


@router.delete(
    "/tournaments/{tournament_id}/competitions/{competition_id}/fixtures/{fixture_id}", status_code=204
)
def delete_fixture(
    tournament_id: int,
    competition_id: str,
    fixture_id: str,
    recalculate: bool = Query(False, description="Re-derive start times after the removal"),
    session: Session = Depends(get_session),
):
    apply_action(
        session, tournament_id, actions.delete_fixture, competition_id, fixture_id, should_recalculate=recalculate
    )
    return Response(status_code=204)
