"""API tests through FastAPI's TestClient against a temporary data directory."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from reckoning.app import create_app
from reckoning.models import EntityRef
from reckoning.storage import RelationshipRepository

GUARD = EntityRef(type="npc", id="guard")
PLAYER = EntityRef(type="player", id="player")


@pytest.fixture
def client(data_dir: Path, monkeypatch) -> TestClient:
    monkeypatch.delenv("LLM_PROVIDER_URL", raising=False)
    return TestClient(create_app(data_dir))


def _trait_body(**overrides) -> dict:
    body = {
        "turn": 2,
        "evolution_type": "trait_add",
        "entity_type": "npc",
        "entity_id": "guard",
        "trait": "merciful",
        "reason": "Spared the thief",
    }
    body.update(overrides)
    return body


def _event(**overrides) -> dict:
    event = {
        "id": "evt-1",
        "game_id": "g1",
        "turn": 4,
        "timestamp": "2024-01-01T00:00:00+00:00",
        "event_type": "party_action",
        "content": "You glare at the guard.",
        "location_id": "gate",
        "actor_type": "player",
        "actor_id": "player",
    }
    event.update(overrides)
    return event


# ── Classification ──────────────────────────────────────


def test_list_actions(client: TestClient):
    resp = client.get("/api/actions")
    assert resp.status_code == 200
    data = resp.json()
    assert [c["category"] for c in data] == [
        "mercy", "violence", "honesty", "social", "exploration", "character",
    ]
    assert data[0]["actions"][0]["action"] == "spare_enemy"
    assert data[0]["actions"][0]["description"]


def test_classify(client: TestClient):
    resp = client.post("/api/classify", json={"content": "You killed the bandit"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["action"] == "kill"
    assert data["category"] == "violence"
    assert data["used_ai_fallback"] is False


def test_classify_fallback_without_model(client: TestClient):
    resp = client.post("/api/classify", json={"content": "Nothing much.", "fallback": True})
    data = resp.json()
    assert data["action"] is None
    assert data["used_ai_fallback"] is True


def test_structure_event(client: TestClient):
    resp = client.post("/api/events/structure", json={
        "event_type": "party_action",
        "content": "Lyra spared the bandit.",
        "speaker": "Lyra",
        "party_members": [{"id": "char_lyra", "name": "Lyra"}],
        "npcs_present": [{"id": "npc_bandit", "name": "Bandit"}],
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["action"] == "spare_enemy"
    assert data["actor_id"] == "char_lyra"
    assert data["target_id"] == "npc_bandit"


def test_structure_event_rejects_unknown_event_type(client: TestClient):
    resp = client.post("/api/events/structure", json={"event_type": "gossip", "content": "x"})
    assert resp.status_code == 422


# ── Evolutions ──────────────────────────────────────


class TestEvolutions:
    def test_create_and_fetch(self, client: TestClient) -> None:
        resp = client.post("/api/games/g1/evolutions", json=_trait_body())
        assert resp.status_code == 201
        evo = resp.json()
        assert evo["game_id"] == "g1"
        assert evo["status"] == "pending"

        assert client.get(f"/api/evolutions/{evo['id']}").json() == evo
        assert [e["id"] for e in client.get("/api/games/g1/evolutions").json()] == [evo["id"]]
        assert client.get("/api/games/g1/evolutions?status=approved").json() == []

    def test_create_invalid(self, client: TestClient) -> None:
        resp = client.post("/api/games/g1/evolutions", json=_trait_body(dimension="trust"))
        assert resp.status_code == 422

    def test_unknown_evolution(self, client: TestClient) -> None:
        assert client.get("/api/evolutions/nope").status_code == 404
        resp = client.post("/api/evolutions/nope/resolve", json={"status": "approved"})
        assert resp.status_code == 404
        assert client.patch("/api/evolutions/nope", json={"trait": "x"}).status_code == 404

    def test_approve_then_conflict(self, client: TestClient) -> None:
        evo = client.post("/api/games/g1/evolutions", json=_trait_body()).json()

        resp = client.post(
            f"/api/evolutions/{evo['id']}/resolve",
            json={"status": "approved", "dm_notes": "earned it"},
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"

        summary = client.get("/api/games/g1/entities/npc/guard").json()
        assert summary["traits"] == ["merciful"]

        resp = client.post(f"/api/evolutions/{evo['id']}/resolve", json={"status": "refused"})
        assert resp.status_code == 409

    def test_edit_relationship(self, client: TestClient) -> None:
        evo = client.post("/api/games/g1/evolutions", json={
            "turn": 3,
            "evolution_type": "relationship_change",
            "entity_type": "npc",
            "entity_id": "guard",
            "target_type": "player",
            "target_id": "player",
            "dimension": "trust",
            "old_value": 0.5,
            "new_value": 0.7,
            "reason": "Kept a promise",
        }).json()

        bad = client.post(
            f"/api/evolutions/{evo['id']}/resolve",
            json={"status": "edited", "changes": {"new_value": 3}},
        )
        assert bad.status_code == 422

        resp = client.post(
            f"/api/evolutions/{evo['id']}/resolve",
            json={"status": "edited", "changes": {"new_value": 0.9}},
        )
        assert resp.json()["status"] == "edited"

        [rel] = client.get("/api/games/g1/entities/npc/guard").json()["relationships"]
        assert rel["target_id"] == "player"
        assert rel["dimensions"]["trust"] == 0.9

    def test_patch_pending(self, client: TestClient) -> None:
        evo = client.post("/api/games/g1/evolutions", json=_trait_body()).json()
        resp = client.patch(f"/api/evolutions/{evo['id']}", json={"trait": "kind"})
        assert resp.status_code == 200
        assert resp.json()["trait"] == "kind"
        assert resp.json()["status"] == "pending"

        client.post(f"/api/evolutions/{evo['id']}/resolve", json={"status": "refused"})
        resp = client.patch(f"/api/evolutions/{evo['id']}", json={"trait": "cruel"})
        assert resp.status_code == 409

    def test_bad_resolve_status(self, client: TestClient) -> None:
        evo = client.post("/api/games/g1/evolutions", json=_trait_body()).json()
        resp = client.post(f"/api/evolutions/{evo['id']}/resolve", json={"status": "pending"})
        assert resp.status_code == 422


# ── Emergence notifications ──────────────────────────────────────


@pytest.fixture
def villain(data_dir: Path) -> None:
    RelationshipRepository(data_dir).upsert(
        "g1", GUARD, PLAYER, updated_turn=3,
        fear=0.9, resentment=0.9, trust=0.1, respect=0.2, affection=0.0,
    )


class TestNotifications:
    def test_committed_event_creates_notification(self, client: TestClient, villain) -> None:
        resp = client.post("/api/games/g1/events/committed", json=_event())
        assert resp.status_code == 200
        [n] = resp.json()
        assert n["emergence_type"] == "villain"
        assert n["entity"] == {"type": "npc", "id": "guard"}

        assert client.get(f"/api/notifications/{n['id']}").json()["id"] == n["id"]
        listed = client.get("/api/games/g1/notifications?pending_only=true").json()
        assert [x["id"] for x in listed] == [n["id"]]

        # Same situation again: suppressed while the first is pending.
        assert client.post("/api/games/g1/events/committed", json=_event(id="evt-2")).json() == []

    def test_event_for_other_game(self, client: TestClient) -> None:
        resp = client.post("/api/games/g2/events/committed", json=_event())
        assert resp.status_code == 422

    def test_acknowledge_and_dismiss(self, client: TestClient, villain) -> None:
        [n] = client.post("/api/games/g1/events/committed", json=_event()).json()

        resp = client.post(
            f"/api/notifications/{n['id']}/acknowledge", json={"dm_notes": "noted"}
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "acknowledged"
        assert resp.json()["dm_notes"] == "noted"

        assert client.post(f"/api/notifications/{n['id']}/dismiss", json={}).status_code == 409
        assert client.post("/api/notifications/nope/dismiss", json={}).status_code == 404
        assert client.get("/api/notifications/nope").status_code == 404
        assert client.get("/api/games/g1/notifications?pending_only=true").json() == []

    def test_limit(self, client: TestClient, villain, data_dir: Path) -> None:
        RelationshipRepository(data_dir).upsert(
            "g1", EntityRef(type="npc", id="merchant"), PLAYER, updated_turn=3,
            trust=0.9, respect=0.9, affection=0.3,
        )
        created = client.post("/api/games/g1/events/committed", json=_event()).json()
        assert len(created) == 2
        assert len(client.get("/api/games/g1/notifications?limit=1").json()) == 1

    def test_clear_notifications(self, client: TestClient, villain) -> None:
        client.post("/api/games/g1/events/committed", json=_event())
        assert client.delete("/api/games/g1/notifications").json() == {"ok": True}
        assert client.get("/api/games/g1/notifications").json() == []

    def test_delete_game(self, client: TestClient, villain, data_dir: Path) -> None:
        client.post("/api/games/g1/evolutions", json=_trait_body())
        client.post("/api/games/g1/events/committed", json=_event())

        assert client.delete("/api/games/g1").json() == {"ok": True}
        assert client.get("/api/games/g1/evolutions").json() == []
        assert client.get("/api/games/g1/notifications").json() == []
        assert not (data_dir / "games" / "g1").exists()

    def test_delete_rejects_parent_directory_id(self, client: TestClient, data_dir: Path) -> None:
        client.post("/api/games/g1/evolutions", json=_trait_body())
        (data_dir / "config.json").write_text("{}")

        resp = client.delete("/api/games/%2E%2E")

        assert resp.status_code == 422
        assert (data_dir / "games" / "g1" / "evolutions.json").exists()
        assert (data_dir / "config.json").exists()

    def test_invalid_game_id_on_listing(self, client: TestClient) -> None:
        assert client.get("/api/games/%2E%2E/notifications").status_code == 422
        assert client.get("/api/games/g.1/evolutions").status_code == 422


class TestSettings:
    def test_get_defaults(self, client: TestClient) -> None:
        data = client.get("/api/settings").json()
        assert data["classifier"]["min_rule_confidence"] == 0.7
        assert data["llm"]["provider_format"] == "openai"
        assert data["emergence"]["villain_fear"] == 0.6

    def test_patch_persists_and_applies_to_classifier(
        self, client: TestClient, data_dir: Path
    ) -> None:
        resp = client.patch("/api/settings", json={"classifier": {"min_rule_confidence": 0.95}})
        assert resp.status_code == 200
        assert resp.json()["classifier"]["min_rule_confidence"] == 0.95
        assert (data_dir / "config.json").exists()

        data = client.post("/api/classify", json={"content": "You killed the bandit"}).json()
        assert data["action"] is None
        assert data["confidence"] == 0.9

    def test_patch_applies_emergence_thresholds(self, client: TestClient, villain) -> None:
        client.patch("/api/settings", json={"emergence": {"villain_fear": 0.95}})
        assert client.post("/api/games/g1/events/committed", json=_event()).json() == []

    @pytest.mark.parametrize(
        "body",
        [
            {"classifier": {"min_rule_confidence": 1.5}},
            {"llm": {"provider_format": "carrier-pigeon"}},
        ],
    )
    def test_patch_invalid(self, client: TestClient, data_dir: Path, body: dict) -> None:
        assert client.patch("/api/settings", json=body).status_code == 422
        assert not (data_dir / "config.json").exists()
        assert client.get("/api/settings").json()["classifier"]["min_rule_confidence"] == 0.7
