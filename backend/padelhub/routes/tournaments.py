import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlalchemy import delete
from sqlmodel import Session, select

from padelhub.database import get_session
from padelhub.models.category import Category
from padelhub.models.group import Group, GroupAssignment
from padelhub.models.match import Match
from padelhub.models.team import Team
from padelhub.models.tournament import Tournament
from padelhub.models.venue import Court, Venue
from padelhub.routes.matches import MatchResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    start_date: date
    end_date: date
    description: Optional[str] = None
    external_link: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self


class TournamentUpdate(BaseModel):
    name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None
    external_link: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip() if v is not None else v

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    start_date: date
    end_date: date
    description: Optional[str] = None
    external_link: Optional[str] = None
    created_at: datetime


class VenueCreate(BaseModel):
    name: str
    address: Optional[str] = None


class CourtCreate(BaseModel):
    name: str


class CourtResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    venue_id: int
    name: str


class VenueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    name: str
    address: Optional[str] = None


class VenueWithCourts(VenueResponse):
    courts: List[CourtResponse] = []


def _get_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return session.exec(select(Tournament).order_by(Tournament.start_date, Tournament.id)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    tournament = Tournament(**tournament_data.model_dump())
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    return _get_tournament(session, tournament_id)


@router.patch("/tournaments/{tournament_id}", response_model=TournamentResponse)
def update_tournament(tournament_id: int, tournament_data: TournamentUpdate, session: Session = Depends(get_session)):
    """Update the fields that were sent; the resulting date range must stay valid."""
    tournament = _get_tournament(session, tournament_id)

    update_data = tournament_data.model_dump(exclude_unset=True)
    for field in ("name", "start_date", "end_date"):
        if field in update_data and update_data[field] is None:
            raise HTTPException(status_code=422, detail=f"{field} cannot be null")

    start = update_data.get("start_date", tournament.start_date)
    end = update_data.get("end_date", tournament.end_date)
    if end < start:
        raise HTTPException(status_code=422, detail="end_date must be >= start_date")

    for field, value in update_data.items():
        setattr(tournament, field, value)
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.delete("/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Delete a tournament with its venues, courts, categories and everything under them."""
    _get_tournament(session, tournament_id)

    category_ids = select(Category.id).where(Category.tournament_id == tournament_id)
    venue_ids = select(Venue.id).where(Venue.tournament_id == tournament_id)

    # Children before parents
    session.exec(delete(Match).where(Match.category_id.in_(category_ids)))
    session.exec(delete(GroupAssignment).where(GroupAssignment.category_id.in_(category_ids)))
    session.exec(delete(Group).where(Group.category_id.in_(category_ids)))
    session.exec(delete(Team).where(Team.category_id.in_(category_ids)))
    session.exec(delete(Category).where(Category.tournament_id == tournament_id))
    session.exec(delete(Court).where(Court.venue_id.in_(venue_ids)))
    session.exec(delete(Venue).where(Venue.tournament_id == tournament_id))
    session.exec(delete(Tournament).where(Tournament.id == tournament_id))
    session.commit()

    logger.info("Deleted tournament %s", tournament_id)
    return Response(status_code=204)


@router.post("/tournaments/{tournament_id}/venues", response_model=VenueResponse, status_code=201)
def create_venue(tournament_id: int, venue_data: VenueCreate, session: Session = Depends(get_session)):
    _get_tournament(session, tournament_id)
    venue = Venue(tournament_id=tournament_id, **venue_data.model_dump())
    session.add(venue)
    session.commit()
    session.refresh(venue)
    return venue


@router.get("/tournaments/{tournament_id}/venues", response_model=List[VenueWithCourts])
def list_venues(tournament_id: int, session: Session = Depends(get_session)):
    """Venues with their courts"""
    _get_tournament(session, tournament_id)
    venues = session.exec(select(Venue).where(Venue.tournament_id == tournament_id).order_by(Venue.id)).all()
    return [
        VenueWithCourts(
            **VenueResponse.model_validate(v).model_dump(),
            courts=[CourtResponse.model_validate(c) for c in sorted(v.courts, key=lambda c: c.id)],
        )
        for v in venues
    ]


@router.post("/venues/{venue_id}/courts", response_model=CourtResponse, status_code=201)
def create_court(venue_id: int, court_data: CourtCreate, session: Session = Depends(get_session)):
    if not session.get(Venue, venue_id):
        raise HTTPException(status_code=404, detail="Venue not found")
    court = Court(venue_id=venue_id, name=court_data.name)
    session.add(court)
    session.commit()
    session.refresh(court)
    return court


@router.get("/tournaments/{tournament_id}/matches", response_model=List[MatchResponse])
def list_tournament_matches(
    tournament_id: int,
    on_date: Optional[date] = Query(None, alias="date", description="Only matches scheduled on this day"),
    session: Session = Depends(get_session),
):
    """All matches of the tournament's categories, optionally limited to one day."""
    _get_tournament(session, tournament_id)
    matches = session.exec(
        select(Match)
        .join(Category, Category.id == Match.category_id)
        .where(Category.tournament_id == tournament_id)
        .order_by(Match.scheduled_time, Match.id)
    ).all()
    if on_date is not None:
        matches = [m for m in matches if m.scheduled_time is not None and m.scheduled_time.date() == on_date]
    return matches


@router.get("/tournaments/{tournament_id}/details", response_model=Dict[str, Any])
def get_tournament_details(tournament_id: int, session: Session = Depends(get_session)):
    """Tournament with venues/courts, categories (teams, groups, matches) and totals."""
    tournament = _get_tournament(session, tournament_id)

    venues = list_venues(tournament_id, session)
    categories = session.exec(
        select(Category).where(Category.tournament_id == tournament_id).order_by(Category.id)
    ).all()

    category_details = []
    total_teams = total_matches = completed_matches = 0
    for category in categories:
        teams = session.exec(select(Team).where(Team.category_id == category.id).order_by(Team.id)).all()
        groups = session.exec(select(Group).where(Group.category_id == category.id).order_by(Group.id)).all()
        matches = session.exec(select(Match).where(Match.category_id == category.id).order_by(Match.id)).all()

        group_details = []
        for group in groups:
            assignments = session.exec(
                select(GroupAssignment).where(GroupAssignment.group_id == group.id).order_by(GroupAssignment.id)
            ).all()
            group_details.append(
                {
                    "id": group.id,
                    "name": group.name,
                    "assignments": [a.model_dump() for a in assignments],
                }
            )

        total_teams += len(teams)
        total_matches += len(matches)
        completed_matches += sum(1 for m in matches if m.completed)
        category_details.append(
            {
                **category.model_dump(),
                "teams": [t.model_dump() for t in teams],
                "groups": group_details,
                "matches": [MatchResponse.model_validate(m).model_dump(mode="json") for m in matches],
            }
        )

    return {
        **TournamentResponse.model_validate(tournament).model_dump(mode="json"),
        "venues": [v.model_dump() for v in venues],
        "categories": category_details,
        "stats": {
            "total_teams": total_teams,
            "total_matches": total_matches,
            "completed_matches": completed_matches,
        },
    }
