"""
Bracket advancement: when a bracket match is completed, its winner takes the open
slot it feeds in the next round. Only team_a_id/team_b_id of the downstream match
are written; nothing else is touched.
"""
import logging
from typing import Dict, Optional

from sqlmodel import Session, select

from padelhub.models.match import Match
from padelhub.utils.bracket import BracketRound, advancement_target

logger = logging.getLogger(__name__)


def find_downstream_match(session: Session, match: Match) -> Optional[Match]:
    """The next-round match this bracket match feeds, if it exists."""
    round_ = BracketRound.from_label(match.round)
    if round_ is None or match.bracket_position is None:
        return None
    target = advancement_target(round_, match.bracket_position)
    if target is None:
        return None
    next_round, next_position, _ = target
    return session.exec(
        select(Match).where(
            Match.category_id == match.category_id,
            Match.round == next_round.label,
            Match.bracket_position == next_position,
        )
    ).first()


def apply_advancement_for_completed_match(session: Session, match: Match) -> int:
    """
    Put the winner of a completed bracket match into its downstream slot.
    Does not commit.

    Returns count of downstream slots updated (0 or 1).
    Idempotent: the slot is only written when empty; a slot already holding the
    same team counts as nothing to do, a different team is left alone.
    """
    if not match.completed or match.winner_id is None:
        return 0
    round_ = BracketRound.from_label(match.round)
    if round_ is None or match.bracket_position is None:
        return 0
    target = advancement_target(round_, match.bracket_position)
    if target is None:
        return 0

    _, _, side = target
    down = find_downstream_match(session, match)
    if down is None:
        logger.debug("No downstream match for match %s (%s #%s)", match.id, match.round, match.bracket_position)
        return 0

    field = "team_a_id" if side == "a" else "team_b_id"
    current = getattr(down, field)
    if current == match.winner_id:
        return 0
    if current is not None:
        logger.warning(
            "Match %s slot %s already holds team %s; not advancing team %s from match %s",
            down.id,
            side.upper(),
            current,
            match.winner_id,
            match.id,
        )
        return 0

    setattr(down, field, match.winner_id)
    session.add(down)
    logger.info("Advanced team %s from match %s into match %s slot %s", match.winner_id, match.id, down.id, side.upper())
    return 1


def resolve_all_advancements(session: Session, category_id: int) -> Dict[str, int]:
    """
    Re-run advancement for every completed bracket match of a category, earliest
    round first. Repairs brackets whose slots were cleared by hand.
    """
    completed = session.exec(
        select(Match).where(
            Match.category_id == category_id,
            Match.completed == True,  # noqa: E712
            Match.bracket_position.is_not(None),
            Match.winner_id.is_not(None),
        )
    ).all()

    def earliest_first(m: Match):
        round_ = BracketRound.from_label(m.round)
        return (-(round_.distance if round_ else 0), m.bracket_position, m.id)

    advanced = 0
    for match in sorted(completed, key=earliest_first):
        advanced += apply_advancement_for_completed_match(session, match)
        session.flush()
    session.commit()
    return {"matches_processed": len(completed), "teams_advanced": advanced}
