"""
Group creation and seed-balanced team partitioning.

Seeded teams are dealt one per group before anyone else, then the remaining teams
continue the same deal so group sizes never differ by more than one. Both lists
are shuffled with the caller's random source; pass a seeded ``random.Random`` for
repeatable draws.
"""

import logging
import random
import string
from typing import Dict, Iterable, List, Optional, Sequence, Set

from sqlmodel import Session, select

from padelhub.models.category import Category
from padelhub.models.group import Group, GroupAssignment
from padelhub.models.match import GROUP_ROUND, Match
from padelhub.models.team import Team
from padelhub.services.errors import GroupLockedError, InvalidAssignmentError, NoGroupsError, NoTeamsError

logger = logging.getLogger(__name__)


def group_label(index: int) -> str:
    """0 -> "A", 25 -> "Z", 26 -> "AA", 27 -> "AB" ..."""
    letters = string.ascii_uppercase
    label = ""
    index += 1
    while index > 0:
        index, rem = divmod(index - 1, 26)
        label = letters[rem] + label
    return label


def partition_teams(
    teams: Sequence[Team],
    group_ids: Sequence[int],
    rng: Optional[random.Random] = None,
    assigned_team_ids: Iterable[int] = (),
) -> Dict[int, int]:
    """
    Deal unassigned teams into groups.

    Args:
        teams: Category roster (order does not matter, lists are shuffled)
        group_ids: Existing groups, dealt in this order
        rng: Random source used for both shuffles
        assigned_team_ids: Teams that already hold an assignment (skipped)

    Returns:
        {team_id: group_id} for newly placed teams only

    Raises:
        NoGroupsError: no groups to deal into
        NoTeamsError: every team is already assigned
    """
    if not group_ids:
        raise NoGroupsError("No groups found. Create groups first.")

    rng = rng or random.Random()
    skip = set(assigned_team_ids)
    pending = [t for t in teams if t.id not in skip]
    if not pending:
        raise NoTeamsError("No unassigned teams to place into groups")

    seeded = [t for t in pending if t.seeded]
    others = [t for t in pending if not t.seeded]
    rng.shuffle(seeded)
    rng.shuffle(others)

    num_groups = len(group_ids)
    placement: Dict[int, int] = {}
    # One continuous deal: seeded first, the rest pick up where seeds stopped
    for i, team in enumerate(seeded + others):
        placement[team.id] = group_ids[i % num_groups]
    return placement


def locked_team_ids(session: Session, category_id: int) -> Set[int]:
    """Teams already drawn into a group match; their membership can no longer change."""
    rows = session.exec(
        select(Match.team_a_id, Match.team_b_id).where(Match.category_id == category_id, Match.round == GROUP_ROUND)
    ).all()
    return {team_id for row in rows for team_id in row if team_id is not None}


def create_groups(session: Session, category: Category, group_count: int) -> List[Group]:
    """Create ``group_count`` empty groups, lettered after any existing ones."""
    existing = session.exec(select(Group).where(Group.category_id == category.id)).all()
    offset = len(existing)

    groups = []
    for i in range(group_count):
        group = Group(category_id=category.id, name=group_label(offset + i))
        session.add(group)
        groups.append(group)
    session.commit()
    for group in groups:
        session.refresh(group)

    logger.info("Created %d groups for category %s", group_count, category.id)
    return groups


def auto_assign_teams(session: Session, category_id: int, rng: Optional[random.Random] = None) -> List[GroupAssignment]:
    """
    Place every unassigned team of a category into its groups.

    Safe to call again after late registrations: only new teams are placed.
    """
    groups = session.exec(select(Group).where(Group.category_id == category_id).order_by(Group.id)).all()
    teams = session.exec(select(Team).where(Team.category_id == category_id).order_by(Team.id)).all()
    assigned = session.exec(select(GroupAssignment.team_id).where(GroupAssignment.category_id == category_id)).all()

    placement = partition_teams(teams, [g.id for g in groups], rng=rng, assigned_team_ids=assigned)

    created = []
    for team_id, group_id in placement.items():
        assignment = GroupAssignment(group_id=group_id, team_id=team_id, category_id=category_id)
        session.add(assignment)
        created.append(assignment)
    session.commit()
    for assignment in created:
        session.refresh(assignment)

    logger.info("Placed %d teams into %d groups for category %s", len(created), len(groups), category_id)
    return created


def set_group_assignments(session: Session, category_id: int, assignments: Sequence[Dict]) -> List[GroupAssignment]:
    """
    Replace a category's group membership with the given list.

    Each entry is ``{"team_id": int, "group_id": int | None}``. Teams missing from
    the list, or listed with ``group_id=None``, end up unassigned. A team that stays
    in the same group keeps its standings; a team that moves starts from zero.
    Applying the same list twice is a no-op.

    Raises:
        InvalidAssignmentError: unknown team/group, or a team listed twice
        GroupLockedError: the change would move or drop a team that already
            appears on a group match
    """
    team_ids = set(session.exec(select(Team.id).where(Team.category_id == category_id)).all())
    group_ids = set(session.exec(select(Group.id).where(Group.category_id == category_id)).all())

    desired: Dict[int, int] = {}
    seen = set()
    for entry in assignments:
        team_id = entry.get("team_id")
        group_id = entry.get("group_id")
        if team_id not in team_ids:
            raise InvalidAssignmentError(f"Team {team_id} does not belong to category {category_id}")
        if team_id in seen:
            raise InvalidAssignmentError(f"Team {team_id} listed more than once")
        seen.add(team_id)
        if group_id is None:
            continue
        if group_id not in group_ids:
            raise InvalidAssignmentError(f"Group {group_id} does not belong to category {category_id}")
        desired[team_id] = group_id

    current = session.exec(select(GroupAssignment).where(GroupAssignment.category_id == category_id)).all()
    locked = locked_team_ids(session, category_id)
    for assignment in current:
        if assignment.team_id in locked and desired.get(assignment.team_id) != assignment.group_id:
            raise GroupLockedError(
                f"Team {assignment.team_id} already has group matches and cannot leave group {assignment.group_id}"
            )

    kept = set()
    removed = 0
    for assignment in current:
        if desired.get(assignment.team_id) == assignment.group_id:
            kept.add(assignment.team_id)
        else:
            session.delete(assignment)
            removed += 1
    # Flush deletes first so a moved team does not trip uq_assignment_category_team
    session.flush()

    for team_id, group_id in desired.items():
        if team_id not in kept:
            session.add(GroupAssignment(group_id=group_id, team_id=team_id, category_id=category_id))
    session.commit()

    logger.info(
        "Replaced group assignments for category %s: %d kept, %d removed, %d added",
        category_id,
        len(kept),
        removed,
        len(desired) - len(kept),
    )
    return session.exec(
        select(GroupAssignment).where(GroupAssignment.category_id == category_id).order_by(GroupAssignment.id)
    ).all()
