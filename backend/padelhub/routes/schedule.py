"""
Court scheduling endpoints: batch placement, automatic placement and removal.
"""

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session

from padelhub.database import get_session
from padelhub.models.category import Category
from padelhub.models.match import Match
from padelhub.models.tournament import Tournament
from padelhub.routes.matches import MatchResponse
from padelhub.services.errors import DrawError
from padelhub.utils.auto_assign import (
    DEFAULT_DAY_END,
    DEFAULT_DAY_START,
    DEFAULT_STEP_MINUTES,
    auto_schedule_category,
)
from padelhub.utils.court_assignment import assign_many, unassign_match

router = APIRouter()


class ScheduleEntry(BaseModel):
    match_id: Optional[int] = None
    court_id: Optional[int] = None
    scheduled_time: Optional[datetime] = None


class BatchScheduleRequest(BaseModel):
    schedules: List[ScheduleEntry]


class ScheduleError(BaseModel):
    match_id: Optional[int] = None
    detail: str


class BatchScheduleResponse(BaseModel):
    scheduled: List[MatchResponse]
    errors: List[ScheduleError]


@router.post("/tournaments/{tournament_id}/schedule", response_model=BatchScheduleResponse)
def post_schedule(tournament_id: int, request: BatchScheduleRequest, session: Session = Depends(get_session)):
    """
    Place several matches on courts.

    Best effort: every entry is handled on its own, rejected entries are listed in
    ``errors`` and do not undo the others.
    """
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")

    result = assign_many(session, tournament_id, [e.model_dump() for e in request.schedules])
    return BatchScheduleResponse(
        scheduled=[MatchResponse.model_validate(m) for m in result["scheduled"]],
        errors=[ScheduleError(**e) for e in result["errors"]],
    )


@router.post("/categories/{category_id}/auto-schedule", response_model=Dict[str, Any])
def post_auto_schedule(
    category_id: int,
    start_date: Optional[date] = Query(None, description="First day to use (defaults to tournament start)"),
    day_start: time = Query(DEFAULT_DAY_START),
    day_end: time = Query(DEFAULT_DAY_END),
    step_minutes: int = Query(DEFAULT_STEP_MINUTES, ge=5, le=240),
    session: Session = Depends(get_session),
):
    """First-fit placement of the category's unscheduled matches on the tournament's courts."""
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    if day_end <= day_start:
        raise HTTPException(status_code=422, detail="day_end must be after day_start")

    try:
        result = auto_schedule_category(
            session,
            category_id,
            start_date=start_date,
            day_start=day_start,
            day_end=day_end,
            step_minutes=step_minutes,
        )
    except DrawError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    summary = result.to_dict()
    summary["scheduled"] = [MatchResponse.model_validate(m).model_dump(mode="json") for m in result.scheduled]
    return summary


@router.delete("/matches/{match_id}/schedule", response_model=MatchResponse)
def delete_match_schedule(match_id: int, session: Session = Depends(get_session)):
    """Take a match off its court (court and time are cleared together)."""
    if not session.get(Match, match_id):
        raise HTTPException(status_code=404, detail="Match not found")
    return unassign_match(session, match_id)
