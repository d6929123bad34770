"""
Group Management API Routes
Group creation, seed-balanced auto assignment, bulk membership replace and standings.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session, select

from padelhub.database import get_session
from padelhub.models.category import Category
from padelhub.models.group import Group, GroupAssignment
from padelhub.models.team import Team
from padelhub.services.errors import DrawError
from padelhub.services.standings import group_standings
from padelhub.utils.group_partition import auto_assign_teams, create_groups, locked_team_ids, set_group_assignments

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class CreateGroupsRequest(BaseModel):
    group_count: int = Field(ge=1)


class GroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    name: str


class AssignmentEntry(BaseModel):
    team_id: int
    group_id: Optional[int] = None


class SaveAssignmentsRequest(BaseModel):
    assignments: List[AssignmentEntry]


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    group_id: int
    team_id: int
    played: int
    won: int
    lost: int
    points: int


class StandingRow(AssignmentResponse):
    position: int
    team_name: str


class GroupWithStandings(GroupResponse):
    standings: List[StandingRow]


def _get_category(session: Session, category_id: int) -> Category:
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


def _standings_rows(session: Session, group_id: int) -> List[StandingRow]:
    rows = []
    for position, assignment in enumerate(group_standings(session, group_id), start=1):
        team = session.get(Team, assignment.team_id)
        rows.append(
            StandingRow(
                **AssignmentResponse.model_validate(assignment).model_dump(),
                position=position,
                team_name=team.name if team else "",
            )
        )
    return rows


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/categories/{category_id}/create-groups", response_model=List[GroupResponse], status_code=201)
def post_create_groups(category_id: int, request: CreateGroupsRequest, session: Session = Depends(get_session)):
    """Create N empty groups (A, B, C ... continuing after existing ones)."""
    category = _get_category(session, category_id)
    return create_groups(session, category, request.group_count)


@router.post("/categories/{category_id}/auto-assign-teams", response_model=List[AssignmentResponse])
def post_auto_assign_teams(category_id: int, session: Session = Depends(get_session)):
    """
    Deal every unassigned team into the existing groups, seeded teams first.
    Returns the newly created assignments.
    """
    _get_category(session, category_id)
    try:
        return auto_assign_teams(session, category_id)
    except DrawError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.put("/categories/{category_id}/assignments", response_model=List[AssignmentResponse])
def put_assignments(category_id: int, request: SaveAssignmentsRequest, session: Session = Depends(get_session)):
    """Replace the category's group membership with the submitted list."""
    _get_category(session, category_id)
    try:
        return set_group_assignments(session, category_id, [a.model_dump() for a in request.assignments])
    except DrawError as e:
        session.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/categories/{category_id}/groups", response_model=List[GroupWithStandings])
def get_groups(category_id: int, session: Session = Depends(get_session)):
    """Groups with ranked standings (points, then wins)."""
    _get_category(session, category_id)
    groups = session.exec(select(Group).where(Group.category_id == category_id).order_by(Group.id)).all()
    return [
        GroupWithStandings(id=g.id, category_id=g.category_id, name=g.name, standings=_standings_rows(session, g.id))
        for g in groups
    ]


@router.get("/groups/{group_id}/standings", response_model=List[StandingRow])
def get_group_standings(group_id: int, session: Session = Depends(get_session)):
    group = session.get(Group, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    return _standings_rows(session, group_id)


@router.delete("/group-assignments/{assignment_id}", status_code=204)
def delete_assignment(assignment_id: int, session: Session = Depends(get_session)):
    """Remove a team from its group."""
    assignment = session.get(GroupAssignment, assignment_id)
    if not assignment:
        raise HTTPException(status_code=404, detail="Assignment not found")
    if assignment.team_id in locked_team_ids(session, assignment.category_id):
        raise HTTPException(status_code=409, detail="Team already has group matches and cannot leave its group")
    session.delete(assignment)
    session.commit()
    return None
