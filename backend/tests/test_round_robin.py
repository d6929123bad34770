"""
Tests for round robin generation.
"""

from itertools import combinations

import pytest

from padelhub.models.match import GROUP_ROUND
from padelhub.services.errors import InsufficientTeamsError
from padelhub.utils.match_generation import generate_group_matches, round_robin_pairs, rr_matches


def test_rr_matches():
    assert rr_matches(2) == 1
    assert rr_matches(3) == 3
    assert rr_matches(4) == 6
    assert rr_matches(5) == 10


@pytest.mark.parametrize("n", [2, 3, 4, 5, 6])
def test_round_robin_every_pair_once(n):
    team_ids = [10 * i for i in range(1, n + 1)]

    pairs = list(round_robin_pairs(team_ids))

    assert len(pairs) == rr_matches(n)
    assert {frozenset(p) for p in pairs} == {frozenset(p) for p in combinations(team_ids, 2)}


def test_round_robin_follows_input_order():
    assert list(round_robin_pairs([3, 1, 2])) == [(3, 1), (3, 2), (1, 2)]


def test_generate_group_matches_shells():
    matches = generate_group_matches(category_id=7, group_id=3, team_ids=[1, 2, 3, 4])

    assert len(matches) == 6
    for m in matches:
        assert m.category_id == 7
        assert m.group_id == 3
        assert m.round == GROUP_ROUND
        assert m.bracket_position is None
        assert m.completed is False
        assert m.winner_id is None
        assert m.court_id is None and m.scheduled_time is None


@pytest.mark.parametrize("team_ids", [[], [1]])
def test_generate_group_matches_needs_two_teams(team_ids):
    with pytest.raises(InsufficientTeamsError):
        generate_group_matches(category_id=1, group_id=1, team_ids=team_ids)
