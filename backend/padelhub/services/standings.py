"""
Group standings: result deltas, atomic persistence and ranking.

A completed group match is worth 3 points to the winner and nothing to the loser.
There are no draws. The same deltas drive the in-memory ``apply_result`` and the
SQL increments written by ``record_group_result``.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Sequence, Tuple, TypeVar

from sqlalchemy import update
from sqlmodel import Session, select

from padelhub.models.group import GroupAssignment
from padelhub.services.errors import InvalidWinnerError

logger = logging.getLogger(__name__)

POINTS_FOR_WIN = 3

STAT_FIELDS = ("played", "won", "lost", "points")


@dataclass(frozen=True)
class Standing:
    team_id: int
    played: int = 0
    won: int = 0
    lost: int = 0
    points: int = 0

    @classmethod
    def from_assignment(cls, assignment: GroupAssignment) -> "Standing":
        return cls(
            team_id=assignment.team_id,
            played=assignment.played,
            won=assignment.won,
            lost=assignment.lost,
            points=assignment.points,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "team_id": self.team_id,
            "played": self.played,
            "won": self.won,
            "lost": self.lost,
            "points": self.points,
        }


def result_deltas(team_a_id: int, team_b_id: int, winner_team_id: int) -> Dict[int, Dict[str, int]]:
    """
    Counter increments for both teams of a completed match.

    Returns:
        {team_id: {"played": 1, "won": .., "lost": .., "points": ..}}

    Raises:
        InvalidWinnerError if winner_team_id is neither team
    """
    if winner_team_id is None or winner_team_id not in (team_a_id, team_b_id):
        raise InvalidWinnerError(f"Winner {winner_team_id} is not one of teams {team_a_id}, {team_b_id}")

    loser_team_id = team_b_id if winner_team_id == team_a_id else team_a_id
    return {
        winner_team_id: {"played": 1, "won": 1, "lost": 0, "points": POINTS_FOR_WIN},
        loser_team_id: {"played": 1, "won": 0, "lost": 1, "points": 0},
    }


def apply_result(standing_a: Standing, standing_b: Standing, winner_team_id: int) -> Tuple[Standing, Standing]:
    """Return updated copies of both standings after one completed match."""
    deltas = result_deltas(standing_a.team_id, standing_b.team_id, winner_team_id)

    def _bump(standing: Standing) -> Standing:
        delta = deltas[standing.team_id]
        return replace(standing, **{f: getattr(standing, f) + delta[f] for f in STAT_FIELDS})

    return _bump(standing_a), _bump(standing_b)


S = TypeVar("S")


def rank_standings(rows: Iterable[S]) -> List[S]:
    """
    Order standings for display: points desc, then won desc.
    Remaining ties keep their input order (sorted() is stable).
    """
    return sorted(rows, key=lambda r: (-r.points, -r.won))


def record_group_result(session: Session, group_id: int, team_a_id: int, team_b_id: int, winner_team_id: int) -> bool:
    """
    Apply a completed group match to both teams' assignments.

    Counters are written as ``SET played = played + 1`` style updates so concurrent
    completions in the same group never lose increments. Does not commit.

    Returns:
        True if both assignments were updated; False if either team no longer
        belongs to the group (nothing is written in that case).
    """
    deltas = result_deltas(team_a_id, team_b_id, winner_team_id)

    present = session.exec(
        select(GroupAssignment.team_id).where(
            GroupAssignment.group_id == group_id,
            GroupAssignment.team_id.in_([team_a_id, team_b_id]),
        )
    ).all()
    if len(set(present)) != 2:
        logger.warning(
            "Group %s is missing an assignment for team %s or %s; standings not updated",
            group_id,
            team_a_id,
            team_b_id,
        )
        return False

    for team_id, delta in deltas.items():
        stmt = (
            update(GroupAssignment)
            .where(GroupAssignment.group_id == group_id, GroupAssignment.team_id == team_id)
            .values(
                played=GroupAssignment.played + delta["played"],
                won=GroupAssignment.won + delta["won"],
                lost=GroupAssignment.lost + delta["lost"],
                points=GroupAssignment.points + delta["points"],
            )
            .execution_options(synchronize_session=False)
        )
        session.exec(stmt)
    return True


def group_standings(session: Session, group_id: int) -> List[GroupAssignment]:
    """Ranked assignments for one group (ties broken by assignment id)."""
    assignments: Sequence[GroupAssignment] = session.exec(
        select(GroupAssignment).where(GroupAssignment.group_id == group_id).order_by(GroupAssignment.id)
    ).all()
    return rank_standings(assignments)
