"""
Auto-Assign: deterministic first-fit placement of a category's matches on courts.

Walks the tournament days in order, trying start times every ``step_minutes``
inside the daily window and courts in (venue, court) order. Every booking already
on a court, from any category, is respected.

Phase precedence: group stage first, then bracket rounds from the earliest to the
final. A phase never starts before the previous phase's last match has ended.

Non-goals:
- Team rest or double-booking of players across courts
- Court preferences or balancing
- Moving matches that are already scheduled
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterator, List, Optional, Tuple

from sqlmodel import Session, select

from padelhub.models.category import Category
from padelhub.models.match import GROUP_ROUND, Match
from padelhub.models.tournament import Tournament
from padelhub.models.venue import Court, Venue
from padelhub.services.errors import NoCourtsError, SlotConflictError
from padelhub.utils.bracket import BracketRound
from padelhub.utils.court_assignment import assign_match, court_bookings, intervals_overlap

logger = logging.getLogger(__name__)

DEFAULT_DAY_START = time(9, 0)
DEFAULT_DAY_END = time(21, 0)
DEFAULT_STEP_MINUTES = 30


class AutoScheduleResult:
    """Structured result from an auto-schedule run"""

    def __init__(self):
        self.scheduled: List[Match] = []
        self.unscheduled_match_ids: List[int] = []
        self.total_matches = 0
        self.total_courts = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scheduled_count": len(self.scheduled),
            "unscheduled_count": len(self.unscheduled_match_ids),
            "unscheduled_match_ids": self.unscheduled_match_ids,
            "total_matches": self.total_matches,
            "total_courts": self.total_courts,
        }


def phase_key(match: Match) -> Tuple[int, int]:
    """(0, 0) for the group stage; (1, -distance) for bracket rounds, earliest first."""
    if match.round == GROUP_ROUND:
        return (0, 0)
    round_ = BracketRound.from_label(match.round)
    return (1, -(round_.distance if round_ else 0))


def get_match_sort_key(match: Match) -> Tuple:
    return (phase_key(match), match.bracket_position or 0, match.id)


def tournament_courts(session: Session, tournament_id: int) -> List[Court]:
    return list(
        session.exec(
            select(Court)
            .join(Venue, Venue.id == Court.venue_id)
            .where(Venue.tournament_id == tournament_id)
            .order_by(Venue.id, Court.id)
        ).all()
    )


def candidate_starts(
    first_day: date,
    last_day: date,
    day_start: time,
    day_end: time,
    duration_minutes: int,
    step_minutes: int,
    not_before: Optional[datetime] = None,
) -> Iterator[datetime]:
    """Start times, chronologically, at which a match still ends inside the daily window."""
    day = first_day
    while day <= last_day:
        start = datetime.combine(day, day_start)
        close = datetime.combine(day, day_end)
        while start + timedelta(minutes=duration_minutes) <= close:
            if not_before is None or start >= not_before:
                yield start
            start += timedelta(minutes=step_minutes)
        day += timedelta(days=1)


def _is_free(bookings: List[Tuple[datetime, int]], start: datetime, minutes: int) -> bool:
    return not any(intervals_overlap(start, minutes, b_start, b_minutes) for b_start, b_minutes in bookings)


def _load_bookings(session: Session, court_id: int) -> List[Tuple[datetime, int]]:
    return [(m.scheduled_time, minutes) for m, minutes in court_bookings(session, court_id)]


def auto_schedule_category(
    session: Session,
    category_id: int,
    start_date: Optional[date] = None,
    day_start: time = DEFAULT_DAY_START,
    day_end: time = DEFAULT_DAY_END,
    step_minutes: int = DEFAULT_STEP_MINUTES,
) -> AutoScheduleResult:
    """
    Schedule every unscheduled, unplayed match of a category.

    Matches that do not fit before the tournament's end date stay unscheduled and
    are listed in the result.

    Raises:
        NoCourtsError: the tournament has no courts
    """
    if step_minutes < 1:
        raise ValueError("step_minutes must be >= 1")

    category = session.get(Category, category_id)
    tournament = session.get(Tournament, category.tournament_id)
    courts = tournament_courts(session, tournament.id)
    if not courts:
        raise NoCourtsError(f"Tournament {tournament.id} has no courts")

    first_day = max(start_date or tournament.start_date, tournament.start_date)
    duration = category.match_duration

    all_matches = session.exec(select(Match).where(Match.category_id == category_id)).all()
    pending = sorted(
        (m for m in all_matches if m.scheduled_time is None and not m.completed),
        key=get_match_sort_key,
    )

    result = AutoScheduleResult()
    result.total_matches = len(pending)
    result.total_courts = len(courts)

    bookings = {court.id: _load_bookings(session, court.id) for court in courts}

    # Latest end time per phase, seeded with what is already on the schedule
    phase_end: Dict[Tuple[int, int], datetime] = {}
    for m in all_matches:
        if m.scheduled_time is not None:
            end = m.scheduled_time + timedelta(minutes=duration)
            key = phase_key(m)
            phase_end[key] = max(phase_end.get(key, end), end)

    for match in pending:
        key = phase_key(match)
        earlier = [end for k, end in phase_end.items() if k < key]
        not_before = max(earlier) if earlier else None

        placed = None
        for start in candidate_starts(first_day, tournament.end_date, day_start, day_end, duration, step_minutes, not_before):
            for court in courts:
                if not _is_free(bookings[court.id], start, duration):
                    continue
                try:
                    placed = assign_match(session, match.id, court.id, start)
                except SlotConflictError:
                    # Someone else booked it meanwhile
                    session.rollback()
                    bookings[court.id] = _load_bookings(session, court.id)
                    continue
                bookings[court.id].append((start, duration))
                break
            if placed is not None:
                break

        if placed is None:
            result.unscheduled_match_ids.append(match.id)
            continue
        result.scheduled.append(placed)
        end = placed.scheduled_time + timedelta(minutes=duration)
        phase_end[key] = max(phase_end.get(key, end), end)

    logger.info(
        "Auto-scheduled category %s: %d placed, %d left over on %d courts",
        category_id,
        len(result.scheduled),
        len(result.unscheduled_match_ids),
        len(courts),
    )
    return result
