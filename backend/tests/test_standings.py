"""
Tests for group standings: result deltas, ranking and the persisted counters.
"""

from datetime import date

import pytest
from sqlmodel import Session, select

from padelhub.models.category import Category, CategoryFormat
from padelhub.models.group import Group, GroupAssignment
from padelhub.models.team import Team
from padelhub.models.tournament import Tournament
from padelhub.services.errors import InvalidWinnerError
from padelhub.services.standings import (
    POINTS_FOR_WIN,
    Standing,
    apply_result,
    group_standings,
    rank_standings,
    record_group_result,
    result_deltas,
)


def test_apply_result_winner_gets_three_points():
    a, b = apply_result(Standing(team_id=1), Standing(team_id=2), winner_team_id=1)

    assert (a.played, a.won, a.lost, a.points) == (1, 1, 0, POINTS_FOR_WIN)
    assert (b.played, b.won, b.lost, b.points) == (1, 0, 1, 0)


def test_apply_result_accumulates():
    a = Standing(team_id=1, played=2, won=1, lost=1, points=3)
    b = Standing(team_id=2, played=2, won=2, lost=0, points=6)

    a, b = apply_result(a, b, winner_team_id=2)

    assert a.to_dict() == {"team_id": 1, "played": 3, "won": 1, "lost": 2, "points": 3}
    assert b.to_dict() == {"team_id": 2, "played": 3, "won": 3, "lost": 0, "points": 9}


@pytest.mark.parametrize("winner", [None, 3, 0])
def test_apply_result_rejects_foreign_winner(winner):
    with pytest.raises(InvalidWinnerError):
        apply_result(Standing(team_id=1), Standing(team_id=2), winner_team_id=winner)


def test_result_deltas_conserve_totals():
    deltas = result_deltas(5, 9, 9)

    assert sum(d["played"] for d in deltas.values()) == 2
    assert sum(d["won"] + d["lost"] for d in deltas.values()) == 2
    assert deltas[9]["points"] == POINTS_FOR_WIN
    assert deltas[5]["points"] == 0


def test_rank_standings_points_then_wins_then_input_order():
    rows = [
        Standing(team_id=1, won=1, points=3),
        Standing(team_id=2, won=2, points=6),
        Standing(team_id=3, won=1, points=3),
        Standing(team_id=4, won=0, points=0),
    ]

    ranked = rank_standings(rows)

    assert [r.team_id for r in ranked] == [2, 1, 3, 4]


@pytest.fixture
def group_of_two(session: Session):
    tournament = Tournament(name="Open", start_date=date(2026, 5, 1), end_date=date(2026, 5, 2))
    session.add(tournament)
    session.commit()
    category = Category(
        tournament_id=tournament.id, name="Men A", format=CategoryFormat.GROUPS, match_duration=60
    )
    session.add(category)
    session.commit()
    group = Group(category_id=category.id, name="A")
    t1 = Team(category_id=category.id, name="T1")
    t2 = Team(category_id=category.id, name="T2")
    session.add_all([group, t1, t2])
    session.commit()
    for team in (t1, t2):
        session.add(GroupAssignment(group_id=group.id, team_id=team.id, category_id=category.id))
    session.commit()
    return group, t1, t2


def test_record_group_result_increments_both_assignments(session: Session, group_of_two):
    group, t1, t2 = group_of_two

    assert record_group_result(session, group.id, t1.id, t2.id, t1.id) is True
    assert record_group_result(session, group.id, t1.id, t2.id, t2.id) is True
    session.commit()
    session.expire_all()

    rows = {a.team_id: a for a in session.exec(select(GroupAssignment)).all()}
    assert (rows[t1.id].played, rows[t1.id].won, rows[t1.id].lost, rows[t1.id].points) == (2, 1, 1, 3)
    assert (rows[t2.id].played, rows[t2.id].won, rows[t2.id].lost, rows[t2.id].points) == (2, 1, 1, 3)
    assert sum(r.played for r in rows.values()) % 2 == 0


def test_record_group_result_skips_missing_assignment(session: Session, group_of_two):
    group, t1, t2 = group_of_two
    stray = session.exec(select(GroupAssignment).where(GroupAssignment.team_id == t2.id)).one()
    session.delete(stray)
    session.commit()

    assert record_group_result(session, group.id, t1.id, t2.id, t1.id) is False
    session.commit()
    session.expire_all()

    remaining = session.exec(select(GroupAssignment)).one()
    assert remaining.played == 0


def test_group_standings_ranked(session: Session, group_of_two):
    group, t1, t2 = group_of_two
    record_group_result(session, group.id, t1.id, t2.id, t2.id)
    session.commit()
    session.expire_all()

    assert [a.team_id for a in group_standings(session, group.id)] == [t2.id, t1.id]
