"""
Competition API Routes
Competitions of a tournament, their teams and their groups.
"""

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session

from pitchplan.database import get_session
from pitchplan.routes.tournaments import (
    CompetitionResponse,
    GroupResponse,
    TeamResponse,
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


class CompetitionCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    code: Optional[str] = None  # derived from name when omitted
    color: Optional[str] = None


class CompetitionUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    code: Optional[str] = None
    color: Optional[str] = None

    @field_validator("name", "code")
    @classmethod
    def validate_not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class TeamCreateRequest(BaseModel):
    name: Optional[str] = None  # "A".."Z", then "Team N" when omitted
    group_id: Optional[str] = None
    initials: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None


class TeamUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    initials: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class TeamGroupRequest(BaseModel):
    group_id: Optional[str] = None  # None removes the team from its group


class GroupCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    default_duration: Optional[int] = Field(default=None, ge=1)
    default_slack: Optional[int] = Field(default=None, ge=0)
    default_rest: Optional[int] = Field(default=None, ge=0)
    pitch_ids: Optional[List[str]] = None
    primary_pitch_id: Optional[str] = None


class GroupUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    default_duration: Optional[int] = Field(default=None, ge=1)
    default_slack: Optional[int] = Field(default=None, ge=0)
    default_rest: Optional[int] = Field(default=None, ge=0)
    pitch_ids: Optional[List[str]] = None
    primary_pitch_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class AutoAssignRequest(BaseModel):
    num_groups: int = Field(ge=1)


# ============================================================================
# Competition Endpoints
# ============================================================================


@router.post(
    "/tournaments/{tournament_id}/competitions", response_model=CompetitionResponse, status_code=201
)
def create_competition(
    tournament_id: int, request: CompetitionCreateRequest, session: Session = Depends(get_session)
):
    _, competition = apply_action(
        session, tournament_id, actions.add_competition, request.name, code=request.code, color=request.color
    )
    return competition_payload(competition)


@router.patch(
    "/tournaments/{tournament_id}/competitions/{competition_id}", response_model=CompetitionResponse
)
def update_competition(
    tournament_id: int,
    competition_id: str,
    request: CompetitionUpdateRequest,
    session: Session = Depends(get_session),
):
    """Rename or recode a competition. A new code renumbers every match id."""
    state, _ = apply_action(
        session,
        tournament_id,
        actions.update_competition,
        competition_id,
        request.model_dump(exclude_unset=True),
    )
    return competition_payload(state.find_competition(competition_id))


@router.delete("/tournaments/{tournament_id}/competitions/{competition_id}", status_code=204)
def delete_competition(tournament_id: int, competition_id: str, session: Session = Depends(get_session)):
    apply_action(session, tournament_id, actions.delete_competition, competition_id)
    return Response(status_code=204)


# ============================================================================
# Team Endpoints
# ============================================================================


@router.post(
    "/tournaments/{tournament_id}/competitions/{competition_id}/teams",
    response_model=TeamResponse,
    status_code=201,
)
def create_team(
    tournament_id: int,
    competition_id: str,
    request: TeamCreateRequest,
    session: Session = Depends(get_session),
):
    attributes = request.model_dump(exclude_unset=True)
    name = attributes.pop("name", None)
    _, team = apply_action(session, tournament_id, actions.add_team, competition_id, name, **attributes)
    return asdict(team)


@router.patch(
    "/tournaments/{tournament_id}/competitions/{competition_id}/teams/{team_id}",
    response_model=TeamResponse,
)
def update_team(
    tournament_id: int,
    competition_id: str,
    team_id: str,
    request: TeamUpdateRequest,
    session: Session = Depends(get_session),
):
    state, _ = apply_action(
        session,
        tournament_id,
        actions.update_team,
        competition_id,
        team_id,
        request.model_dump(exclude_unset=True),
    )
    return asdict(state.find_competition(competition_id).find_team(team_id))


@router.put(
    "/tournaments/{tournament_id}/competitions/{competition_id}/teams/{team_id}/group",
    response_model=TeamResponse,
)
def move_team_to_group(
    tournament_id: int,
    competition_id: str,
    team_id: str,
    request: TeamGroupRequest,
    session: Session = Depends(get_session),
):
    state, _ = apply_action(
        session, tournament_id, actions.move_team_to_group, competition_id, team_id, request.group_id
    )
    return asdict(state.find_competition(competition_id).find_team(team_id))


@router.delete("/tournaments/{tournament_id}/competitions/{competition_id}/teams/{team_id}", status_code=204)
def delete_team(tournament_id: int, competition_id: str, team_id: str, session: Session = Depends(get_session)):
    apply_action(session, tournament_id, actions.delete_team, competition_id, team_id)
    return Response(status_code=204)


# ============================================================================
# Group Endpoints
# ============================================================================


@router.post(
    "/tournaments/{tournament_id}/competitions/{competition_id}/groups",
    response_model=GroupResponse,
    status_code=201,
)
def create_group(
    tournament_id: int,
    competition_id: str,
    request: GroupCreateRequest,
    session: Session = Depends(get_session),
):
    settings = request.model_dump(exclude_unset=True)
    name = settings.pop("name")
    _, group = apply_action(session, tournament_id, actions.create_group, competition_id, name, **settings)
    return asdict(group)


@router.patch(
    "/tournaments/{tournament_id}/competitions/{competition_id}/groups/{group_id}",
    response_model=GroupResponse,
)
def update_group(
    tournament_id: int,
    competition_id: str,
    group_id: str,
    request: GroupUpdateRequest,
    session: Session = Depends(get_session),
):
    state, _ = apply_action(
        session,
        tournament_id,
        actions.update_group,
        competition_id,
        group_id,
        request.model_dump(exclude_unset=True),
    )
    return asdict(state.find_competition(competition_id).find_group(group_id))


@router.delete(
    "/tournaments/{tournament_id}/competitions/{competition_id}/groups/{group_id}", status_code=204
)
def delete_group(tournament_id: int, competition_id: str, group_id: str, session: Session = Depends(get_session)):
    """Delete a group. Its teams become unassigned and its group-stage fixtures are removed."""
    apply_action(session, tournament_id, actions.delete_group, competition_id, group_id)
    return Response(status_code=204)


@router.post(
    "/tournaments/{tournament_id}/competitions/{competition_id}/groups/auto-assign",
    response_model=TournamentStateResponse,
)
def auto_assign_groups(
    tournament_id: int,
    competition_id: str,
    request: AutoAssignRequest,
    session: Session = Depends(get_session),
):
    """Replace all groups with `num_groups` new ones and deal teams into them. Clears fixtures."""
    state, _ = apply_action(session, tournament_id, actions.auto_assign_groups, competition_id, request.num_groups)
    return state_payload(state)
