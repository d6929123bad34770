"""
Single-elimination bracket layout.

Rounds are identified by their distance from the final (1 = final). A round at
distance d holds 2^(d-1) matches, and match i of that round sends its winner to
match i // 2 of round d-1: even positions fill team A, odd positions team B.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from padelhub.services.errors import InsufficientTeamsError


class NamedRound(str, Enum):
    FINAL = "FINAL"
    SEMI = "SEMI"
    QUARTER = "QUARTER"
    ROUND_OF_16 = "ROUND_OF_16"
    ROUND_OF_32 = "ROUND_OF_32"


_NAMED_BY_DISTANCE = {
    1: NamedRound.FINAL,
    2: NamedRound.SEMI,
    3: NamedRound.QUARTER,
    4: NamedRound.ROUND_OF_16,
    5: NamedRound.ROUND_OF_32,
}
_DISTANCE_BY_NAME = {named.value: distance for distance, named in _NAMED_BY_DISTANCE.items()}
_EARLY_ROUND_RE = re.compile(r"^ROUND_(\d+)$")


@dataclass(frozen=True, order=True)
class BracketRound:
    """A bracket round; rounds past ROUND_OF_32 are early rounds with a generic label."""

    distance: int

    def __post_init__(self):
        if self.distance < 1:
            raise ValueError(f"distance must be >= 1, got {self.distance}")

    @property
    def named(self) -> Optional[NamedRound]:
        return _NAMED_BY_DISTANCE.get(self.distance)

    @property
    def is_early_round(self) -> bool:
        return self.named is None

    @property
    def label(self) -> str:
        named = self.named
        return named.value if named is not None else f"ROUND_{self.distance}"

    @property
    def match_count(self) -> int:
        return 2 ** (self.distance - 1)

    @property
    def next_round(self) -> Optional["BracketRound"]:
        if self.distance == 1:
            return None
        return BracketRound(self.distance - 1)

    @classmethod
    def from_label(cls, label: str) -> Optional["BracketRound"]:
        """Parse a stored round label; None for GROUP or anything unknown."""
        if not label:
            return None
        if label in _DISTANCE_BY_NAME:
            return cls(_DISTANCE_BY_NAME[label])
        m = _EARLY_ROUND_RE.match(label)
        if m and int(m.group(1)) > len(_NAMED_BY_DISTANCE):
            return cls(int(m.group(1)))
        return None


@dataclass(frozen=True)
class BracketSlot:
    """One bracket match before it is persisted."""

    round: BracketRound
    position: int
    team_a_id: Optional[int] = None
    team_b_id: Optional[int] = None


def bracket_rounds(num_teams: int) -> int:
    """ceil(log2(n)); 2 teams -> 1 round (final only)."""
    if num_teams < 2:
        raise InsufficientTeamsError(f"Need at least 2 teams for a bracket, got {num_teams}")
    return math.ceil(math.log2(num_teams))


def advancement_target(round_: BracketRound, position: int) -> Optional[Tuple[BracketRound, int, str]]:
    """
    Where the winner of (round_, position) plays next.

    Returns:
        (next_round, next_position, "a" | "b"), or None for the final
    """
    nxt = round_.next_round
    if nxt is None:
        return None
    return nxt, position // 2, "a" if position % 2 == 0 else "b"


def first_round_pairs(team_ids: Sequence[int]) -> List[Tuple[Optional[int], Optional[int]]]:
    """Consecutive pairing: (0,1), (2,3), ...; an odd last team gets an open opponent."""
    pairs = []
    for i in range(0, len(team_ids), 2):
        team_a = team_ids[i]
        team_b = team_ids[i + 1] if i + 1 < len(team_ids) else None
        pairs.append((team_a, team_b))
    return pairs


def build_bracket(team_ids: Optional[Sequence[int]] = None, count: Optional[int] = None) -> List[BracketSlot]:
    """
    Lay out a single-elimination bracket.

    Pass ``team_ids`` (in seed order) to fill the first round, or ``count`` when
    only the number of entrants is known and every slot stays open.

    With teams, first-round positions that would have no team at all are left out.
    Slots are returned from the earliest round to the final.
    """
    if team_ids is None and count is None:
        raise ValueError("build_bracket needs team_ids or count")
    num_teams = len(team_ids) if team_ids is not None else count
    total_rounds = bracket_rounds(num_teams)

    slots: List[BracketSlot] = []
    for distance in range(total_rounds, 0, -1):
        round_ = BracketRound(distance)
        if distance == total_rounds and team_ids is not None:
            for position, (team_a, team_b) in enumerate(first_round_pairs(team_ids)):
                slots.append(BracketSlot(round_, position, team_a, team_b))
            continue
        for position in range(round_.match_count):
            slots.append(BracketSlot(round_, position))
    return slots
