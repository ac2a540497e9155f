"""Tests for the HTTP endpoint."""

from fastapi.testclient import TestClient

from api import app
from conftest import make_event

client = TestClient(app)

ACTORS = [
    {"id": 1, "name": "Player", "type": "Mage"},
    {"id": 10, "name": "Add A", "hostile": True},
    {"id": 11, "name": "Add B", "hostile": True},
]


class TestAnalyzeFight:
    def test_returns_analysis(self):
        response = client.post(
            "/analyze_fight",
            json={
                "source_id": 1,
                "encounter": "Training Grounds",
                "actors": ACTORS,
                "events": [
                    make_event("damage", 0, target_id=10, ability_id=200),
                    make_event("damage", 5, target_id=11, ability_id=200),
                ],
                "aoe_abilities": [
                    {"ability_id": 200, "name": "Blizzard", "min_targets": 2}
                ],
            },
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["fight_metadata"]["encounter"] == "Training Grounds"
        assert data["analysis"]["aoe_usage"][0]["num_good_pulses"] == 1
        assert data["analysis"]["checklist"]["rules"][0]["tier_name"] == "success"
        assert data["aoe_events"][0]["type"] == "aoedamage"

    def test_out_of_order_events(self):
        response = client.post(
            "/analyze_fight",
            json={
                "actors": ACTORS,
                "events": [make_event("damage", 10), make_event("damage", 5)],
            },
        )

        assert response.status_code == 400
        assert "out of order" in response.json()["error"]

    def test_unknown_source(self):
        response = client.post(
            "/analyze_fight",
            json={"source_id": 404, "actors": ACTORS, "events": []},
        )
        assert response.status_code == 400

    def test_missing_events(self):
        response = client.post("/analyze_fight", json={"actors": ACTORS})
        assert response.status_code == 422
