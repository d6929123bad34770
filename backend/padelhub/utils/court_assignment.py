"""
Court scheduling: put a match on a court at a start time, or take it off.

Hard invariants:

1. **Atomic pair**: court_id and scheduled_time are always written (or cleared) together
2. **No court overlap**: a court holds one match at a time, using each match's
   category duration; identical (court, start) pairs are also rejected by the
   uq_match_court_time constraint
3. **Same tournament**: the court's venue must belong to the match's tournament

The court row is locked (SELECT ... FOR UPDATE where the backend supports it)
while a booking is checked and written.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from padelhub.models.category import Category
from padelhub.models.match import Match
from padelhub.models.venue import Court, Venue
from padelhub.services.errors import CourtNotAvailableError, DrawError, SlotConflictError

logger = logging.getLogger(__name__)


def normalize_start(value: datetime) -> datetime:
    """Aware datetimes are stored as naive UTC; naive ones are kept as given."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def intervals_overlap(start_a: datetime, minutes_a: int, start_b: datetime, minutes_b: int) -> bool:
    """Half-open intervals: a match ending at 10:00 does not clash with one starting at 10:00."""
    return start_a < start_b + timedelta(minutes=minutes_b) and start_b < start_a + timedelta(minutes=minutes_a)


def court_bookings(session: Session, court_id: int, exclude_match_id: Optional[int] = None) -> List[Tuple[Match, int]]:
    """Scheduled matches on a court with their durations, in start order."""
    query = (
        select(Match, Category.match_duration)
        .join(Category, Category.id == Match.category_id)
        .where(Match.court_id == court_id, Match.scheduled_time.is_not(None))
        .order_by(Match.scheduled_time)
    )
    if exclude_match_id is not None:
        query = query.where(Match.id != exclude_match_id)
    return list(session.exec(query).all())


def find_court_conflict(
    session: Session,
    court_id: int,
    start: datetime,
    duration_minutes: int,
    exclude_match_id: Optional[int] = None,
) -> Optional[Match]:
    """First booked match on the court that overlaps [start, start + duration)."""
    for other, other_minutes in court_bookings(session, court_id, exclude_match_id):
        if intervals_overlap(start, duration_minutes, other.scheduled_time, other_minutes):
            return other
    return None


def _match_tournament_and_duration(session: Session, match: Match) -> Tuple[int, int]:
    category = session.get(Category, match.category_id)
    return category.tournament_id, category.match_duration


def _lock_court(session: Session, court_id: int) -> Optional[Court]:
    return session.exec(select(Court).where(Court.id == court_id).with_for_update()).first()


def assign_match(
    session: Session, match_id: int, court_id: int, scheduled_time: datetime, commit: bool = True
) -> Match:
    """
    Book a match on a court. Re-assigning an already scheduled match moves it.

    With ``commit=False`` the booking is only flushed, leaving the caller to commit
    it together with its own changes.

    Raises:
        LookupError: match or court does not exist
        CourtNotAvailableError: court belongs to another tournament
        SlotConflictError: court is busy for part of the match
    """
    match = session.get(Match, match_id)
    if match is None:
        raise LookupError(f"Match {match_id} not found")

    court = _lock_court(session, court_id)
    if court is None:
        raise LookupError(f"Court {court_id} not found")

    tournament_id, duration = _match_tournament_and_duration(session, match)
    venue = session.get(Venue, court.venue_id)
    if venue is None or venue.tournament_id != tournament_id:
        raise CourtNotAvailableError(f"Court {court_id} is not part of tournament {tournament_id}")

    start = normalize_start(scheduled_time)
    clash = find_court_conflict(session, court_id, start, duration, exclude_match_id=match.id)
    if clash is not None:
        raise SlotConflictError(
            f"Court {court_id} is already booked at {clash.scheduled_time.isoformat()} by match {clash.id}"
        )

    match.court_id = court_id
    match.scheduled_time = start
    session.add(match)
    try:
        if commit:
            session.commit()
        else:
            session.flush()
    except IntegrityError:
        session.rollback()
        raise SlotConflictError(f"Court {court_id} is already booked at {start.isoformat()}")
    session.refresh(match)

    logger.info("Scheduled match %s on court %s at %s", match_id, court_id, start.isoformat())
    return match


def unassign_match(session: Session, match_id: int, commit: bool = True) -> Match:
    """Take a match off the schedule (court and time cleared together)."""
    match = session.get(Match, match_id)
    if match is None:
        raise LookupError(f"Match {match_id} not found")

    match.court_id = None
    match.scheduled_time = None
    session.add(match)
    if commit:
        session.commit()
    else:
        session.flush()
    session.refresh(match)

    logger.info("Unscheduled match %s", match_id)
    return match


def assign_many(session: Session, tournament_id: int, entries: Sequence[Dict[str, Any]]) -> Dict[str, List]:
    """
    Best-effort batch scheduling.

    Entries are processed in order and independently: a rejected entry is
    reported and does not undo entries already booked.

    Returns:
        {"scheduled": [Match, ...], "errors": [{"match_id", "detail"}, ...]}
    """
    scheduled: List[Match] = []
    errors: List[Dict[str, Any]] = []

    for entry in entries:
        match_id = entry.get("match_id")
        court_id = entry.get("court_id")
        start = entry.get("scheduled_time")
        if not match_id or not court_id or not start:
            errors.append({"match_id": match_id, "detail": "match_id, court_id and scheduled_time are required"})
            continue

        match = session.get(Match, match_id)
        if match is None:
            errors.append({"match_id": match_id, "detail": "Match not found"})
            continue
        category = session.get(Category, match.category_id)
        if category.tournament_id != tournament_id:
            errors.append({"match_id": match_id, "detail": f"Match is not part of tournament {tournament_id}"})
            continue

        try:
            scheduled.append(assign_match(session, match_id, court_id, start))
        except (DrawError, LookupError) as e:
            session.rollback()
            errors.append({"match_id": match_id, "detail": str(e)})

    if errors:
        logger.warning("Batch schedule for tournament %s: %d rejected entries", tournament_id, len(errors))
    return {"scheduled": scheduled, "errors": errors}
