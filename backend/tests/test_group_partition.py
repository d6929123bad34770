"""
Tests for group creation and seed-balanced partitioning.
"""

import math
import random
from collections import Counter
from datetime import date

import pytest
from sqlmodel import Session, select

from padelhub.models.category import Category, CategoryFormat
from padelhub.models.group import GroupAssignment
from padelhub.models.team import Team
from padelhub.models.tournament import Tournament
from padelhub.services.errors import InvalidAssignmentError, NoGroupsError, NoTeamsError
from padelhub.utils.group_partition import (
    auto_assign_teams,
    create_groups,
    group_label,
    partition_teams,
    set_group_assignments,
)


def _teams(n, seeded=()):
    return [Team(id=i, category_id=1, name=f"T{i}", seeded=i in seeded) for i in range(1, n + 1)]


def test_group_label():
    assert [group_label(i) for i in range(3)] == ["A", "B", "C"]
    assert group_label(25) == "Z"
    assert group_label(26) == "AA"
    assert group_label(27) == "AB"


def test_partition_scenario_one_seed_two_groups():
    teams = _teams(4, seeded={1})

    placement = partition_teams(teams, [10, 20], rng=random.Random(7))

    assert set(placement) == {1, 2, 3, 4}
    assert placement[1] == 10
    assert sorted(Counter(placement.values()).values()) == [2, 2]


@pytest.mark.parametrize("seed", range(5))
@pytest.mark.parametrize("num_seeded,num_groups,num_teams", [(3, 3, 10), (2, 4, 9), (5, 2, 12), (4, 4, 4)])
def test_partition_seed_balance(seed, num_seeded, num_groups, num_teams):
    teams = _teams(num_teams, seeded=set(range(1, num_seeded + 1)))
    group_ids = list(range(100, 100 + num_groups))

    placement = partition_teams(teams, group_ids, rng=random.Random(seed))

    seeded_per_group = Counter(placement[t.id] for t in teams if t.seeded)
    limit = math.ceil(num_seeded / num_groups)
    assert all(count <= limit for count in seeded_per_group.values())
    if num_seeded == num_groups:
        assert set(seeded_per_group.values()) == {1}

    sizes = Counter(placement.values())
    assert max(sizes.values()) - min(sizes.values()) <= 1


def test_partition_is_repeatable_with_same_seed():
    teams = _teams(8, seeded={1, 2})

    first = partition_teams(teams, [1, 2, 3], rng=random.Random(42))
    second = partition_teams(teams, [1, 2, 3], rng=random.Random(42))

    assert first == second


def test_partition_skips_assigned_teams():
    teams = _teams(5)

    placement = partition_teams(teams, [1, 2], rng=random.Random(1), assigned_team_ids=[2, 4])

    assert set(placement) == {1, 3, 5}


def test_partition_without_groups_raises():
    with pytest.raises(NoGroupsError):
        partition_teams(_teams(3), [])


def test_partition_without_unassigned_teams_raises():
    with pytest.raises(NoTeamsError):
        partition_teams(_teams(2), [1], assigned_team_ids=[1, 2])


@pytest.fixture
def category(session: Session):
    tournament = Tournament(name="Open", start_date=date(2026, 5, 1), end_date=date(2026, 5, 2))
    session.add(tournament)
    session.commit()
    category = Category(tournament_id=tournament.id, name="Mixed", format=CategoryFormat.GROUPS, match_duration=45)
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


def _add_teams(session, category, n, seeded=()):
    teams = [Team(category_id=category.id, name=f"T{i}", seeded=i in seeded) for i in range(1, n + 1)]
    session.add_all(teams)
    session.commit()
    for team in teams:
        session.refresh(team)
    return teams


def test_create_groups_continues_lettering(session: Session, category):
    first = create_groups(session, category, 2)
    second = create_groups(session, category, 1)

    assert [g.name for g in first] == ["A", "B"]
    assert [g.name for g in second] == ["C"]


def test_auto_assign_places_late_registrations_only(session: Session, category):
    create_groups(session, category, 2)
    _add_teams(session, category, 4, seeded={1, 2})

    created = auto_assign_teams(session, category.id, rng=random.Random(3))
    assert len(created) == 4

    late = Team(category_id=category.id, name="Late")
    session.add(late)
    session.commit()

    created = auto_assign_teams(session, category.id, rng=random.Random(3))
    assert [a.team_id for a in created] == [late.id]

    with pytest.raises(NoTeamsError):
        auto_assign_teams(session, category.id)


def test_auto_assign_without_groups(session: Session, category):
    _add_teams(session, category, 3)

    with pytest.raises(NoGroupsError):
        auto_assign_teams(session, category.id)


def test_set_group_assignments_replace_is_idempotent(session: Session, category):
    group_a, group_b = create_groups(session, category, 2)
    t1, t2, t3 = _add_teams(session, category, 3)
    payload = [
        {"team_id": t1.id, "group_id": group_a.id},
        {"team_id": t2.id, "group_id": group_b.id},
        {"team_id": t3.id, "group_id": None},
    ]

    first = set_group_assignments(session, category.id, payload)
    first_ids = {a.team_id: a.id for a in first}
    second = set_group_assignments(session, category.id, payload)

    assert {a.team_id: a.id for a in second} == first_ids
    assert {a.team_id: a.group_id for a in second} == {t1.id: group_a.id, t2.id: group_b.id}


def test_set_group_assignments_moves_and_removes(session: Session, category):
    group_a, group_b = create_groups(session, category, 2)
    t1, t2 = _add_teams(session, category, 2)
    set_group_assignments(
        session, category.id, [{"team_id": t1.id, "group_id": group_a.id}, {"team_id": t2.id, "group_id": group_a.id}]
    )

    result = set_group_assignments(session, category.id, [{"team_id": t1.id, "group_id": group_b.id}])

    assert [(a.team_id, a.group_id) for a in result] == [(t1.id, group_b.id)]
    assert session.exec(select(GroupAssignment).where(GroupAssignment.team_id == t2.id)).first() is None


def test_set_group_assignments_validation(session: Session, category):
    (group_a,) = create_groups(session, category, 1)
    (t1,) = _add_teams(session, category, 1)
    with pytest.raises(InvalidAssignmentError):
        set_group_assignments(session, category.id, [{"team_id": 9999, "group_id": group_a.id}])
    with pytest.raises(InvalidAssignmentError):
        set_group_assignments(
            session,
            category.id,
            [{"team_id": t1.id, "group_id": group_a.id}, {"team_id": t1.id, "group_id": group_a.id}],
        )
    with pytest.raises(InvalidAssignmentError):
        set_group_assignments(session, category.id, [{"team_id": t1.id, "group_id": 4242}])
