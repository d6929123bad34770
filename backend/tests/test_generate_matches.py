"""
Match generation per category format, and its guards.
"""

from collections import Counter

import pytest
from fastapi.testclient import TestClient


def _category(client: TestClient, fmt: str, teams: int, groups: int = 0):
    tournament = client.post(
        "/api/tournaments", json={"name": "Summer Slam", "start_date": "2026-07-01", "end_date": "2026-07-05"}
    ).json()
    category = client.post(
        f"/api/tournaments/{tournament['id']}/categories",
        json={"name": "Open", "format": fmt, "match_duration": 75},
    ).json()
    for i in range(1, teams + 1):
        client.post(f"/api/categories/{category['id']}/teams", json={"name": f"Team {i}"})
    if groups:
        client.post(f"/api/categories/{category['id']}/create-groups", json={"group_count": groups})
        client.post(f"/api/categories/{category['id']}/auto-assign-teams")
    return category


def test_groups_format_round_robin_per_group(client: TestClient):
    category = _category(client, "GROUPS", teams=7, groups=2)

    response = client.post(f"/api/categories/{category['id']}/generate-matches")

    assert response.status_code == 201
    matches = response.json()["matches"]
    per_group = Counter(m["group_id"] for m in matches)
    # 4 + 3 teams -> 6 + 3 matches
    assert sorted(per_group.values()) == [3, 6]
    assert all(m["round"] == "GROUP" and m["bracket_position"] is None for m in matches)
    assert response.json()["schedule"] is None

    assert client.get(f"/api/categories/{category['id']}").json()["status"] == "ACTIVE"


def test_single_elimination_from_roster(client: TestClient):
    category = _category(client, "SINGLE_ELIMINATION", teams=6)

    matches = client.post(f"/api/categories/{category['id']}/generate-matches").json()["matches"]

    rounds = Counter(m["round"] for m in matches)
    assert rounds == {"QUARTER": 3, "SEMI": 2, "FINAL": 1}
    quarters = sorted((m for m in matches if m["round"] == "QUARTER"), key=lambda m: m["bracket_position"])
    assert all(m["team_a_id"] is not None and m["team_b_id"] is not None for m in quarters)
    assert all(m["group_id"] is None for m in matches)


def test_hybrid_bracket_sized_from_groups(client: TestClient):
    category = _category(client, "GROUPS_AND_ELIMINATION", teams=12, groups=3)

    matches = client.post(f"/api/categories/{category['id']}/generate-matches").json()["matches"]

    rounds = Counter(m["round"] for m in matches)
    # 3 groups of 4 -> 18 group matches; 6 qualifiers -> 8-slot bracket
    assert rounds == {"GROUP": 18, "QUARTER": 4, "SEMI": 2, "FINAL": 1}
    bracket = [m for m in matches if m["round"] != "GROUP"]
    assert all(m["team_a_id"] is None and m["team_b_id"] is None for m in bracket)


def test_match_type_restricts_phase(client: TestClient):
    category = _category(client, "GROUPS_AND_ELIMINATION", teams=4, groups=2)

    response = client.post(
        f"/api/categories/{category['id']}/generate-matches", json={"match_type": "ROUND_ROBIN"}
    )

    assert response.status_code == 201
    assert {m["round"] for m in response.json()["matches"]} == {"GROUP"}

    bracket = client.post(
        f"/api/categories/{category['id']}/generate-matches", json={"match_type": "SINGLE_ELIMINATION"}
    )
    assert bracket.status_code == 201
    assert Counter(m["round"] for m in bracket.json()["matches"]) == {"SEMI": 2, "FINAL": 1}

    again = client.post(f"/api/categories/{category['id']}/generate-matches", json={"match_type": "ROUND_ROBIN"})
    assert again.status_code == 409
    assert len(client.get(f"/api/categories/{category['id']}/matches").json()) == 2 + 3


def test_default_generation_fills_missing_phase(client: TestClient):
    category = _category(client, "GROUPS_AND_ELIMINATION", teams=4, groups=2)
    groups = client.post(
        f"/api/categories/{category['id']}/generate-matches", json={"match_type": "ROUND_ROBIN"}
    ).json()["matches"]

    # Finishing the group stage alone does not close a hybrid category
    for match in groups:
        body = client.patch(f"/api/matches/{match['id']}", json={"winner_id": match["team_a_id"]}).json()
        assert body["category_completed"] is False
    assert client.get(f"/api/categories/{category['id']}").json()["status"] == "ACTIVE"

    response = client.post(f"/api/categories/{category['id']}/generate-matches", json={})

    assert response.status_code == 201
    assert {m["round"] for m in response.json()["matches"]} == {"SEMI", "FINAL"}
    assert client.post(f"/api/categories/{category['id']}/generate-matches", json={}).status_code == 409


def test_generating_twice_conflicts(client: TestClient):
    category = _category(client, "SINGLE_ELIMINATION", teams=4)
    assert client.post(f"/api/categories/{category['id']}/generate-matches").status_code == 201

    response = client.post(f"/api/categories/{category['id']}/generate-matches")

    assert response.status_code == 409
    assert len(client.get(f"/api/categories/{category['id']}/matches").json()) == 3


@pytest.mark.parametrize(
    "fmt,teams,groups",
    [
        ("GROUPS", 4, 0),
        ("SINGLE_ELIMINATION", 1, 0),
        ("GROUPS", 3, 2),
    ],
)
def test_generation_errors(client: TestClient, fmt, teams, groups):
    category = _category(client, fmt, teams=teams, groups=groups)

    response = client.post(f"/api/categories/{category['id']}/generate-matches")

    assert response.status_code == 400
    assert client.get(f"/api/categories/{category['id']}").json()["status"] == "REGISTRATION_OPEN"


def test_bracket_view_groups_rounds(client: TestClient):
    category = _category(client, "SINGLE_ELIMINATION", teams=5)
    client.post(f"/api/categories/{category['id']}/generate-matches")

    rounds = client.get(f"/api/categories/{category['id']}/bracket").json()

    assert [(r["round"], r["distance"], len(r["matches"])) for r in rounds] == [
        ("QUARTER", 3, 3),
        ("SEMI", 2, 2),
        ("FINAL", 1, 1),
    ]
    assert [m["bracket_position"] for m in rounds[0]["matches"]] == [0, 1, 2]


def test_generate_unknown_category(client: TestClient):
    assert client.post("/api/categories/999/generate-matches").status_code == 404
