"""
Group qualifiers into the bracket (GROUPS_AND_ELIMINATION).

The top two of every group go through. Groups are taken in pairs so that group
winners meet the runner-up of the neighbouring group: A1 v B2, B1 v A2, C1 v D2 ...
An unpaired last group plays its own winner against its runner-up.
"""

import logging
from typing import List, Optional, Sequence

from sqlmodel import Session, select

from padelhub.models.group import Group, GroupAssignment
from padelhub.models.match import GROUP_ROUND, Match
from padelhub.services.errors import AlreadyCompletedError, GroupStageIncompleteError, InsufficientTeamsError
from padelhub.services.standings import group_standings
from padelhub.utils.bracket import BracketRound, first_round_pairs
from padelhub.utils.match_generation import QUALIFIERS_PER_GROUP

logger = logging.getLogger(__name__)


def cross_seed(ranked_groups: Sequence[Sequence[Optional[int]]]) -> List[Optional[int]]:
    """
    Entry order for consecutive pairing from per-group rankings (winner, runner-up).

    [[A1, A2], [B1, B2]] -> [A1, B2, B1, A2]
    """
    order: List[Optional[int]] = []
    for i in range(0, len(ranked_groups), 2):
        first = ranked_groups[i]
        if i + 1 < len(ranked_groups):
            second = ranked_groups[i + 1]
            order.extend([first[0], second[1], second[0], first[1]])
        else:
            order.extend([first[0], first[1]])
    return order


def _first_round_matches(session: Session, category_id: int) -> List[Match]:
    bracket = session.exec(
        select(Match).where(Match.category_id == category_id, Match.round != GROUP_ROUND)
    ).all()
    if not bracket:
        return []
    rounds = [BracketRound.from_label(m.round) for m in bracket]
    first = max(r.distance for r in rounds if r is not None)
    return sorted(
        (m for m, r in zip(bracket, rounds) if r is not None and r.distance == first),
        key=lambda m: m.bracket_position,
    )


def advance_qualifiers(session: Session, category_id: int) -> List[Match]:
    """
    Fill the bracket's first round from final group standings.

    Re-running before any bracket match is played overwrites the first round.

    Raises:
        GroupStageIncompleteError: a group match is still unplayed
        AlreadyCompletedError: the bracket has already started
        InsufficientTeamsError: no bracket, or a group has fewer than two teams
    """
    group_matches = session.exec(
        select(Match).where(Match.category_id == category_id, Match.round == GROUP_ROUND)
    ).all()
    if any(not m.completed for m in group_matches):
        raise GroupStageIncompleteError(f"Group stage of category {category_id} is not finished")

    bracket_started = session.exec(
        select(Match.id).where(
            Match.category_id == category_id,
            Match.round != GROUP_ROUND,
            Match.completed == True,  # noqa: E712
        )
    ).first()
    if bracket_started is not None:
        raise AlreadyCompletedError(f"Bracket of category {category_id} has already started")

    first_round = _first_round_matches(session, category_id)
    if not first_round:
        raise InsufficientTeamsError(f"Category {category_id} has no bracket to fill")

    groups = session.exec(select(Group).where(Group.category_id == category_id).order_by(Group.id)).all()
    ranked_groups = []
    for group in groups:
        standings: List[GroupAssignment] = group_standings(session, group.id)
        if len(standings) < QUALIFIERS_PER_GROUP:
            raise InsufficientTeamsError(f"Group {group.name} has fewer than {QUALIFIERS_PER_GROUP} teams")
        ranked_groups.append([a.team_id for a in standings[:QUALIFIERS_PER_GROUP]])

    pairs = first_round_pairs(cross_seed(ranked_groups))
    for match, (team_a, team_b) in zip(first_round, pairs):
        match.team_a_id = team_a
        match.team_b_id = team_b
        session.add(match)
    session.commit()
    for match in first_round:
        session.refresh(match)

    logger.info("Seeded %d qualifiers into the bracket of category %s", 2 * len(pairs), category_id)
    return first_round
