"""
Match generation for categories.

Group stage: a full round robin inside every group.
Bracket: single elimination, seeded from the roster (SINGLE_ELIMINATION) or left
open for group qualifiers (GROUPS_AND_ELIMINATION, two per group).
"""

import logging
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from sqlmodel import Session, select

from padelhub.models.category import Category, CategoryFormat, CategoryStatus
from padelhub.models.group import Group, GroupAssignment
from padelhub.models.match import GROUP_ROUND, Match
from padelhub.models.team import Team
from padelhub.services.errors import InsufficientTeamsError, MatchesAlreadyGeneratedError, NoGroupsError
from padelhub.utils.bracket import build_bracket

logger = logging.getLogger(__name__)

# Hybrid format: this many teams per group go through to the bracket
QUALIFIERS_PER_GROUP = 2


class MatchType(str, Enum):
    ROUND_ROBIN = "ROUND_ROBIN"
    SINGLE_ELIMINATION = "SINGLE_ELIMINATION"


def rr_matches(n: int) -> int:
    """Round robin match count: n * (n-1) / 2"""
    return (n * (n - 1)) // 2


def round_robin_pairs(team_ids: Sequence[int]) -> Iterator[Tuple[int, int]]:
    """Every unordered pair (i, j), i < j, in input order."""
    for i in range(len(team_ids)):
        for j in range(i + 1, len(team_ids)):
            yield team_ids[i], team_ids[j]


def generate_group_matches(category_id: int, group_id: int, team_ids: Sequence[int]) -> List[Match]:
    """Round robin shells for one group (not added to a session)."""
    if len(team_ids) < 2:
        raise InsufficientTeamsError(f"Group {group_id} needs at least 2 teams, has {len(team_ids)}")

    return [
        Match(
            category_id=category_id,
            group_id=group_id,
            team_a_id=team_a,
            team_b_id=team_b,
            round=GROUP_ROUND,
            completed=False,
        )
        for team_a, team_b in round_robin_pairs(team_ids)
    ]


def generate_bracket_matches(
    category_id: int,
    team_ids: Optional[Sequence[int]] = None,
    count: Optional[int] = None,
) -> List[Match]:
    """Bracket shells, earliest round first (not added to a session)."""
    return [
        Match(
            category_id=category_id,
            team_a_id=slot.team_a_id,
            team_b_id=slot.team_b_id,
            round=slot.round.label,
            bracket_position=slot.position,
            completed=False,
        )
        for slot in build_bracket(team_ids=team_ids, count=count)
    ]


def _group_rosters(session: Session, category_id: int) -> List[Tuple[Group, List[int]]]:
    groups = session.exec(select(Group).where(Group.category_id == category_id).order_by(Group.id)).all()
    rosters = []
    for group in groups:
        team_ids = session.exec(
            select(GroupAssignment.team_id)
            .where(GroupAssignment.group_id == group.id)
            .order_by(GroupAssignment.id)
        ).all()
        rosters.append((group, list(team_ids)))
    return rosters


def generate_category_matches(
    session: Session,
    category: Category,
    match_type: Optional[MatchType] = None,
) -> List[Match]:
    """
    Create match shells for a category and mark it ACTIVE.

    ``match_type`` restricts generation to one phase and is refused if that phase
    already has matches. By default every phase of the format that has not been
    generated yet is created; with nothing left to generate the call is refused.
    """
    rounds = set(session.exec(select(Match.round).where(Match.category_id == category.id).distinct()).all())
    has_groups = GROUP_ROUND in rounds
    has_bracket = any(r != GROUP_ROUND for r in rounds)

    if match_type is None:
        want_groups = category.has_group_stage and not has_groups
        want_bracket = category.has_bracket and not has_bracket
        if rounds and not (want_groups or want_bracket):
            raise MatchesAlreadyGeneratedError(f"Matches already generated for category {category.id}")
    else:
        want_groups = match_type == MatchType.ROUND_ROBIN
        want_bracket = match_type == MatchType.SINGLE_ELIMINATION
        if (want_groups and has_groups) or (want_bracket and has_bracket):
            raise MatchesAlreadyGeneratedError(
                f"{match_type.value} matches already generated for category {category.id}"
            )

    teams = session.exec(select(Team).where(Team.category_id == category.id).order_by(Team.id)).all()
    if len(teams) < 2:
        raise InsufficientTeamsError("Need at least 2 teams to generate matches")

    matches: List[Match] = []
    group_count = 0

    if want_groups or (want_bracket and category.format == CategoryFormat.GROUPS_AND_ELIMINATION):
        rosters = _group_rosters(session, category.id)
        group_count = len(rosters)
        if not rosters:
            raise NoGroupsError("No groups found. Create groups first.")

    if want_groups:
        for group, team_ids in rosters:
            matches.extend(generate_group_matches(category.id, group.id, team_ids))

    if want_bracket:
        if category.format == CategoryFormat.GROUPS_AND_ELIMINATION:
            matches.extend(generate_bracket_matches(category.id, count=group_count * QUALIFIERS_PER_GROUP))
        else:
            matches.extend(generate_bracket_matches(category.id, team_ids=[t.id for t in teams]))

    for match in matches:
        session.add(match)
    category.status = CategoryStatus.ACTIVE
    session.add(category)
    session.commit()
    for match in matches:
        session.refresh(match)

    logger.info("Generated %d matches for category %s (%s)", len(matches), category.id, category.format)
    return matches
