"""
Recording match results.

``complete_match`` is the only way a match becomes completed. In one transaction it
stores the score and winner, updates group standings (group matches) or advances
the winner (bracket matches), and closes the category once nothing is left to play.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from padelhub.models.category import Category, CategoryStatus
from padelhub.models.match import GROUP_ROUND, Match
from padelhub.services.advancement_service import apply_advancement_for_completed_match
from padelhub.services.errors import AlreadyCompletedError, InvalidWinnerError
from padelhub.services.standings import record_group_result

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    match: Match
    standings_updated: bool = False
    advanced_count: int = 0
    category_completed: bool = False


def validate_winner(match: Match, winner_id: Optional[int]) -> None:
    if winner_id is None or winner_id not in match.team_ids:
        raise InvalidWinnerError(
            f"Winner {winner_id} must be one of the teams on match {match.id} "
            f"({match.team_a_id}, {match.team_b_id})"
        )


def _close_category_if_done(session: Session, category_id: int) -> bool:
    remaining = session.exec(
        select(Match.id).where(Match.category_id == category_id, Match.completed == False)  # noqa: E712
    ).first()
    if remaining is not None:
        return False
    category = session.get(Category, category_id)
    if category is None or category.status == CategoryStatus.COMPLETED:
        return False
    # A phase of the format that was never generated is still to be played
    rounds = set(session.exec(select(Match.round).where(Match.category_id == category_id).distinct()).all())
    if category.has_group_stage and GROUP_ROUND not in rounds:
        return False
    if category.has_bracket and not any(r != GROUP_ROUND for r in rounds):
        return False
    category.status = CategoryStatus.COMPLETED
    session.add(category)
    logger.info("Category %s completed", category_id)
    return True


def complete_match(
    session: Session,
    match_id: int,
    score_a: Optional[str],
    score_b: Optional[str],
    winner_id: Optional[int],
) -> CompletionResult:
    """
    Record the result of a match.

    A match with a single known team (bye) can be completed with that team as the
    winner; the open side can never win.

    Raises:
        LookupError: match does not exist
        InvalidWinnerError: winner is not a team on the match
        AlreadyCompletedError: a result was already recorded
    """
    match = session.get(Match, match_id)
    if match is None:
        raise LookupError(f"Match {match_id} not found")
    if match.completed:
        raise AlreadyCompletedError(f"Match {match_id} is already completed")
    validate_winner(match, winner_id)

    # Conditional write: of two concurrent completions only one sees rowcount == 1
    result = session.exec(
        update(Match)
        .where(Match.id == match_id, Match.completed == False)  # noqa: E712
        .values(
            score_a=score_a,
            score_b=score_b,
            winner_id=winner_id,
            completed=True,
            completed_at=datetime.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        session.rollback()
        raise AlreadyCompletedError(f"Match {match_id} is already completed")
    session.refresh(match)

    outcome = CompletionResult(match=match)

    if match.group_id is not None:
        outcome.standings_updated = record_group_result(
            session, match.group_id, match.team_a_id, match.team_b_id, winner_id
        )
    else:
        outcome.advanced_count = apply_advancement_for_completed_match(session, match)

    session.flush()
    outcome.category_completed = _close_category_if_done(session, match.category_id)
    session.commit()
    session.refresh(match)

    logger.info("Match %s completed, winner team %s", match_id, winner_id)
    return outcome
