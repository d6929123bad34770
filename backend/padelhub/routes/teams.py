"""
Team Management API Routes
Provides CRUD operations for the teams registered in a category.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, or_, select

from padelhub.database import get_session
from padelhub.models.category import Category
from padelhub.models.group import GroupAssignment
from padelhub.models.match import Match
from padelhub.models.team import Team

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TeamCreateRequest(BaseModel):
    name: str
    player1: Optional[str] = None
    player2: Optional[str] = None
    seeded: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()


class TeamUpdateRequest(BaseModel):
    name: Optional[str] = None
    player1: Optional[str] = None
    player2: Optional[str] = None
    seeded: Optional[bool] = None


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    name: str
    player1: Optional[str] = None
    player2: Optional[str] = None
    seeded: bool
    group_id: Optional[int] = None


def _to_response(session: Session, team: Team) -> TeamResponse:
    response = TeamResponse.model_validate(team)
    assignment = session.exec(select(GroupAssignment).where(GroupAssignment.team_id == team.id)).first()
    response.group_id = assignment.group_id if assignment else None
    return response


def _commit_team(session: Session, team: Team) -> Team:
    name = team.name
    try:
        session.add(team)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail=f"Team with name '{name}' already exists in this category")
    session.refresh(team)
    return team


# ============================================================================
# Team CRUD Endpoints
# ============================================================================


@router.get("/categories/{category_id}/teams", response_model=List[TeamResponse])
def get_teams(category_id: int, session: Session = Depends(get_session)):
    """
    Get all teams for a category.

    Seeded teams come first, then registration order (id).
    """
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    teams = session.exec(select(Team).where(Team.category_id == category_id)).all()
    return [_to_response(session, t) for t in sorted(teams, key=lambda t: (not t.seeded, t.id))]


@router.post("/categories/{category_id}/teams", response_model=TeamResponse, status_code=201)
def create_team(category_id: int, request: TeamCreateRequest, session: Session = Depends(get_session)):
    """
    Register a team in a category.

    (category_id, name) must be unique.
    """
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    team = Team(category_id=category_id, **request.model_dump())
    return _to_response(session, _commit_team(session, team))


@router.patch("/teams/{team_id}", response_model=TeamResponse)
def update_team(team_id: int, request: TeamUpdateRequest, session: Session = Depends(get_session)):
    team = session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")

    for field, value in request.model_dump(exclude_unset=True).items():
        if field == "name" and (value is None or not value.strip()):
            raise HTTPException(status_code=422, detail="name cannot be empty")
        setattr(team, field, value.strip() if field == "name" else value)

    return _to_response(session, _commit_team(session, team))


@router.delete("/teams/{team_id}", status_code=204)
def delete_team(team_id: int, session: Session = Depends(get_session)):
    """
    Delete a team and its group membership.

    A team that already appears on a match cannot be deleted (409).
    """
    team = session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")

    on_match = session.exec(
        select(Match.id).where(or_(Match.team_a_id == team_id, Match.team_b_id == team_id))
    ).first()
    if on_match is not None:
        raise HTTPException(status_code=409, detail="Team is already on a match and cannot be deleted")

    for assignment in session.exec(select(GroupAssignment).where(GroupAssignment.team_id == team_id)).all():
        session.delete(assignment)
    session.delete(team)
    session.commit()

    return None
