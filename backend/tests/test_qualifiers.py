"""
Hybrid format: group winners and runners-up seeded into the bracket.
"""

import pytest
from fastapi.testclient import TestClient

from padelhub.services.qualifiers import cross_seed


def test_cross_seed_pairs_neighbouring_groups():
    assert cross_seed([[1, 2], [3, 4]]) == [1, 4, 3, 2]
    assert cross_seed([[1, 2], [3, 4], [5, 6]]) == [1, 4, 3, 2, 5, 6]
    assert cross_seed([[1, 2]]) == [1, 2]


@pytest.fixture
def hybrid(client: TestClient):
    tournament = client.post(
        "/api/tournaments", json={"name": "Masters", "start_date": "2026-09-01", "end_date": "2026-09-03"}
    ).json()
    category = client.post(
        f"/api/tournaments/{tournament['id']}/categories",
        json={"name": "Pro", "format": "GROUPS_AND_ELIMINATION", "match_duration": 60},
    ).json()
    team_ids = [
        client.post(f"/api/categories/{category['id']}/teams", json={"name": f"T{i}"}).json()["id"]
        for i in range(1, 9)
    ]
    group_a, group_b = client.post(
        f"/api/categories/{category['id']}/create-groups", json={"group_count": 2}
    ).json()
    client.put(
        f"/api/categories/{category['id']}/assignments",
        json={
            "assignments": [{"team_id": t, "group_id": group_a["id"]} for t in team_ids[:4]]
            + [{"team_id": t, "group_id": group_b["id"]} for t in team_ids[4:]]
        },
    )
    matches = client.post(f"/api/categories/{category['id']}/generate-matches").json()["matches"]
    return category, team_ids, matches


def _play_groups(client: TestClient, matches):
    # Lower team id always wins, so each group ranks in registration order
    for m in matches:
        if m["round"] == "GROUP":
            winner = min(m["team_a_id"], m["team_b_id"])
            assert client.patch(f"/api/matches/{m['id']}", json={"winner_id": winner}).status_code == 200


def test_advance_before_groups_finish(client: TestClient, hybrid):
    category, _, _ = hybrid

    response = client.post(f"/api/categories/{category['id']}/advance-qualifiers")

    assert response.status_code == 409


def test_advance_seeds_first_round_crosswise(client: TestClient, hybrid):
    category, t, matches = hybrid
    _play_groups(client, matches)

    response = client.post(f"/api/categories/{category['id']}/advance-qualifiers")

    assert response.status_code == 200
    semis = response.json()
    assert [m["round"] for m in semis] == ["SEMI", "SEMI"]
    assert [(m["team_a_id"], m["team_b_id"]) for m in semis] == [(t[0], t[5]), (t[4], t[1])]

    groups = client.get(f"/api/categories/{category['id']}/groups").json()
    assert [row["team_id"] for row in groups[0]["standings"]] == t[:4]
    assert [row["points"] for row in groups[0]["standings"]] == [9, 6, 3, 0]


def test_bracket_plays_through_after_advancing(client: TestClient, hybrid):
    category, t, matches = hybrid
    _play_groups(client, matches)
    semis = client.post(f"/api/categories/{category['id']}/advance-qualifiers").json()

    client.patch(f"/api/matches/{semis[0]['id']}", json={"winner_id": t[0]})
    client.patch(f"/api/matches/{semis[1]['id']}", json={"winner_id": t[1]})
    final = [m for m in client.get(f"/api/categories/{category['id']}/matches").json() if m["round"] == "FINAL"][0]
    assert (final["team_a_id"], final["team_b_id"]) == (t[0], t[1])

    body = client.patch(f"/api/matches/{final['id']}", json={"winner_id": t[1]}).json()
    assert body["category_completed"] is True


def test_advance_refused_once_bracket_started(client: TestClient, hybrid):
    category, t, matches = hybrid
    _play_groups(client, matches)
    assert client.post(f"/api/categories/{category['id']}/advance-qualifiers").status_code == 200
    assert client.post(f"/api/categories/{category['id']}/advance-qualifiers").status_code == 200

    semis = [m for m in client.get(f"/api/categories/{category['id']}/matches").json() if m["round"] == "SEMI"]
    client.patch(f"/api/matches/{semis[0]['id']}", json={"winner_id": semis[0]["team_a_id"]})

    assert client.post(f"/api/categories/{category['id']}/advance-qualifiers").status_code == 409
