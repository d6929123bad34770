"""
Match generation, results and bracket views.

PATCH /matches/{id} is the single write endpoint for a match: result fields go
through the result processor, schedule fields through the court assigner.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, model_validator
from sqlmodel import Session, select

from padelhub.database import get_session
from padelhub.models.category import Category
from padelhub.models.match import GROUP_ROUND, Match
from padelhub.services.advancement_service import resolve_all_advancements
from padelhub.services.errors import DrawError
from padelhub.services.match_results import complete_match, validate_winner
from padelhub.services.qualifiers import advance_qualifiers
from padelhub.utils.auto_assign import auto_schedule_category
from padelhub.utils.bracket import BracketRound
from padelhub.utils.court_assignment import assign_match, unassign_match
from padelhub.utils.match_generation import MatchType, generate_category_matches

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    team_a_id: Optional[int] = None
    team_b_id: Optional[int] = None
    group_id: Optional[int] = None
    round: str
    bracket_position: Optional[int] = None
    score_a: Optional[str] = None
    score_b: Optional[str] = None
    winner_id: Optional[int] = None
    court_id: Optional[int] = None
    scheduled_time: Optional[datetime] = None
    completed: bool
    completed_at: Optional[datetime] = None


class GenerateMatchesRequest(BaseModel):
    match_type: Optional[MatchType] = None
    auto_assign_courts: bool = False


class GenerateMatchesResponse(BaseModel):
    matches: List[MatchResponse]
    schedule: Optional[Dict[str, Any]] = None


class MatchUpdate(BaseModel):
    score_a: Optional[str] = None
    score_b: Optional[str] = None
    winner_id: Optional[int] = None
    completed: Optional[bool] = None
    court_id: Optional[int] = None
    scheduled_time: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_schedule_pair(self):
        fields = self.model_fields_set
        if ("court_id" in fields) != ("scheduled_time" in fields):
            raise ValueError("court_id and scheduled_time must be sent together")
        if "court_id" in fields and (self.court_id is None) != (self.scheduled_time is None):
            raise ValueError("court_id and scheduled_time must both be set or both be null")
        if self.completed is False:
            raise ValueError("A completed match cannot be reopened")
        return self


class MatchUpdateResponse(BaseModel):
    match: MatchResponse
    standings_updated: bool = False
    advanced_count: int = 0
    category_completed: bool = False


class BracketRoundResponse(BaseModel):
    round: str
    distance: int
    matches: List[MatchResponse]


# ============================================================================
# Helpers
# ============================================================================


def _get_category(session: Session, category_id: int) -> Category:
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


def _draw_http_error(e: DrawError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/categories/{category_id}/generate-matches", response_model=GenerateMatchesResponse, status_code=201)
def generate_matches(
    category_id: int,
    request: Optional[GenerateMatchesRequest] = None,
    session: Session = Depends(get_session),
):
    """
    Generate group-stage and/or bracket matches and mark the category ACTIVE.

    With auto_assign_courts the new matches are placed on the tournament's courts
    right away.
    """
    request = request or GenerateMatchesRequest()
    category = _get_category(session, category_id)

    try:
        matches = generate_category_matches(session, category, match_type=request.match_type)
        schedule = None
        if request.auto_assign_courts:
            schedule = auto_schedule_category(session, category_id).to_dict()
    except DrawError as e:
        raise _draw_http_error(e)

    for match in matches:
        session.refresh(match)
    return GenerateMatchesResponse(
        matches=[MatchResponse.model_validate(m) for m in matches],
        schedule=schedule,
    )


@router.get("/categories/{category_id}/matches", response_model=List[MatchResponse])
def get_category_matches(category_id: int, session: Session = Depends(get_session)):
    """Group matches first, then the bracket from the earliest round."""
    _get_category(session, category_id)
    matches = session.exec(select(Match).where(Match.category_id == category_id)).all()

    def sort_key(m: Match):
        if m.round == GROUP_ROUND:
            return (0, m.group_id or 0, 0, m.id)
        round_ = BracketRound.from_label(m.round)
        return (1, 0, -(round_.distance if round_ else 0), m.bracket_position or 0)

    return sorted(matches, key=sort_key)


@router.get("/categories/{category_id}/bracket", response_model=List[BracketRoundResponse])
def get_bracket(category_id: int, session: Session = Depends(get_session)):
    """Bracket matches grouped by round, earliest round first."""
    _get_category(session, category_id)
    matches = session.exec(
        select(Match).where(Match.category_id == category_id, Match.round != GROUP_ROUND)
    ).all()

    by_round: Dict[int, List[Match]] = {}
    for m in matches:
        round_ = BracketRound.from_label(m.round)
        if round_ is not None:
            by_round.setdefault(round_.distance, []).append(m)

    return [
        BracketRoundResponse(
            round=BracketRound(distance).label,
            distance=distance,
            matches=sorted(by_round[distance], key=lambda m: m.bracket_position or 0),
        )
        for distance in sorted(by_round, reverse=True)
    ]


@router.patch("/matches/{match_id}", response_model=MatchUpdateResponse)
def update_match(match_id: int, payload: MatchUpdate, session: Session = Depends(get_session)):
    """
    Record a result and/or (re)schedule a match.

    A result is recorded when winner_id is sent (completed=true alone is rejected
    with 422 because a winner is mandatory). Sending court_id and scheduled_time
    both null takes the match off the schedule.
    """
    match = session.get(Match, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")

    fields = payload.model_fields_set
    response = MatchUpdateResponse(match=MatchResponse.model_validate(match))
    completing = payload.completed or "winner_id" in fields
    editing_scores = "score_a" in fields or "score_b" in fields

    # Reject a bad result before touching the schedule
    if match.completed and (completing or editing_scores):
        raise HTTPException(status_code=409, detail=f"Match {match_id} is already completed")
    if completing:
        try:
            validate_winner(match, payload.winner_id)
        except DrawError as e:
            raise _draw_http_error(e)

    # Schedule changes are flushed only, so they commit together with the result
    try:
        if "court_id" in fields:
            if payload.court_id is None:
                unassign_match(session, match_id, commit=False)
            else:
                assign_match(session, match_id, payload.court_id, payload.scheduled_time, commit=False)

        if completing:
            outcome = complete_match(session, match_id, payload.score_a, payload.score_b, payload.winner_id)
            response.standings_updated = outcome.standings_updated
            response.advanced_count = outcome.advanced_count
            response.category_completed = outcome.category_completed
        elif editing_scores:
            match.score_a = payload.score_a if "score_a" in fields else match.score_a
            match.score_b = payload.score_b if "score_b" in fields else match.score_b
            session.add(match)
        session.commit()
    except DrawError as e:
        session.rollback()
        raise _draw_http_error(e)
    except LookupError as e:
        session.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    session.refresh(match)
    response.match = MatchResponse.model_validate(match)
    return response


@router.post("/categories/{category_id}/advance-qualifiers", response_model=List[MatchResponse])
def post_advance_qualifiers(category_id: int, session: Session = Depends(get_session)):
    """Seed group winners and runners-up into the first bracket round."""
    _get_category(session, category_id)
    try:
        return advance_qualifiers(session, category_id)
    except DrawError as e:
        raise _draw_http_error(e)


@router.post("/categories/{category_id}/resolve-advancement", response_model=Dict[str, int])
def post_resolve_advancement(category_id: int, session: Session = Depends(get_session)):
    """Re-apply advancement for every completed bracket match (repair)."""
    _get_category(session, category_id)
    return resolve_all_advancements(session, category_id)
