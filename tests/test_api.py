"""Tests for the REST and WebSocket endpoints."""

import pytest
from fastapi.testclient import TestClient

from pulse_engine.domain.enums import EntityKind
from pulse_engine.main import build_service, create_app
from pulse_engine.services.pulse_service import PulseService
from pulse_engine.transport.memory import InMemoryTransport

from tests.test_signal import _valid_signal, _valid_ticket


def _service() -> PulseService:
    return build_service(InMemoryTransport(seed={
        EntityKind.SIGNALS.value: [
            _valid_signal(id="b"),
            _valid_signal(id="a", status="approved", amount=400.0),
        ],
        EntityKind.TICKETS.value: [_valid_ticket(id="t1")],
    }))


@pytest.fixture
def service() -> PulseService:
    return _service()


@pytest.fixture
def client(service: PulseService):
    with TestClient(create_app(service)) as c:
        yield c


def _settle(client: TestClient, service: PulseService) -> None:
    """Block until the service has applied every queued notification."""
    client.portal.call(service.drain)


class TestReads:
    def test_list_signals(self, client: TestClient) -> None:
        body = client.get("/api/signals").json()
        assert body["count"] == 2
        assert body["loading"] is False
        assert [s["id"] for s in body["signals"]] == ["b", "a"]

    def test_classified(self, client: TestClient) -> None:
        body = client.get("/api/signals/classified").json()
        assert [s["id"] for s in body["approvals"]] == ["b", "a"]
        assert body["alerts"] == []
        assert body["all"][1]["risk_level"] == "high"

    def test_decision_layers(self, client: TestClient) -> None:
        body = client.get("/api/signals/decision-layers").json()
        assert [s["id"] for s in body["judgment"]] == ["a"]
        assert body["judgment"][0]["requires_manager_approval"] is True

    def test_pipeline(self, client: TestClient) -> None:
        body = client.get("/api/pipeline").json()
        assert list(body) == ["needs-action", "in-motion", "blocked", "auto-handled", "resolved"]
        assert [s["id"] for s in body["needs-action"]] == ["b"]
        assert [s["id"] for s in body["in-motion"]] == ["a"]

    def test_workflow_stage(self, client: TestClient) -> None:
        body = client.get("/api/workflow-stage/awaiting-supplier").json()
        assert body == {
            "status": "awaiting-supplier",
            "pulse_state": "blocked",
            "stage": 3,
            "total": 4,
            "label": "With vendor",
        }

    def test_unknown_workflow_stage(self, client: TestClient) -> None:
        body = client.get("/api/workflow-stage/teleported").json()
        assert body["stage"] == 1
        assert body["label"] == "teleported"
        assert body["pulse_state"] == "needs-action"

    def test_tickets(self, client: TestClient) -> None:
        body = client.get("/api/tickets").json()
        assert body["count"] == 1
        assert body["tickets"][0]["status"] == "open"

    def test_health_snapshot(self, client: TestClient) -> None:
        body = client.get("/api/health-snapshot").json()
        assert body["health_level"] == "stable"
        assert body["pending_decisions"] == 1
        assert body["open_tickets"] == 1
        assert body["pipeline"]["in-motion"] == 1

    def test_enrichment_columns_served(self) -> None:
        seeded = _valid_signal(
            id="rich",
            ai_reasoning="Matches last month's order",
            confidence_level="high",
            attachments=["uploads/rich/quote.pdf"],
        )
        with TestClient(create_app(build_service(InMemoryTransport(seed={"signals": [seeded]})))) as c:
            row = c.get("/api/signals").json()["signals"][0]
        assert row["ai_reasoning"] == "Matches last month's order"
        assert row["confidence_level"] == "high"
        assert row["attachments"] == ["uploads/rich/quote.pdf"]

    def test_liveness(self, client: TestClient) -> None:
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["signals"] == 2
        assert body["tickets"] == 1
        assert body["health_level"] == "stable"
        assert body["notifications"][0]["kind"] == "signals"


class TestCommands:
    def test_add_signal(self, client: TestClient, service: PulseService) -> None:
        resp = client.post("/api/signals", json={"title": "Gloves", "signal_type": "purchase", "amount": 40})
        assert resp.status_code == 201
        created = resp.json()
        assert created["id"]
        assert created["status"] == "pending"
        _settle(client, service)
        assert client.get("/api/signals").json()["signals"][0]["id"] == created["id"]
        events = client.get("/api/events").json()["events"]
        assert events[0]["event_type"] == "created"
        assert events[0]["signal_id"] == created["id"]

    def test_add_signal_rejects_unknown_fields(self, client: TestClient) -> None:
        assert client.post("/api/signals", json={"title": "x", "id": "forced"}).status_code == 422

    def test_add_signal_requires_title(self, client: TestClient) -> None:
        assert client.post("/api/signals", json={"signal_type": "purchase"}).status_code == 422

    def test_update_signal(self, client: TestClient, service: PulseService) -> None:
        resp = client.patch("/api/signals/b", json={"status": "approved"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"
        _settle(client, service)
        assert service.signal_sync.store.get("b").status == "approved"
        assert client.get("/api/events").json()["events"][0]["event_type"] == "approved"

    def test_empty_update_is_400(self, client: TestClient) -> None:
        assert client.patch("/api/signals/b", json={}).status_code == 400

    def test_update_unknown_signal_is_502(self, client: TestClient) -> None:
        resp = client.patch("/api/signals/missing", json={"status": "approved"})
        assert resp.status_code == 502
        assert "missing" in resp.json()["detail"]

    def test_ticket_lifecycle(self, client: TestClient, service: PulseService) -> None:
        resp = client.post("/api/tickets", json={"signal_id": "b", "issue_description": "Leak", "location": "Ward B"})
        assert resp.status_code == 201
        ticket_id = resp.json()["id"]
        assert client.patch(f"/api/tickets/{ticket_id}", json={"status": "in-progress"}).status_code == 200
        _settle(client, service)
        snapshot = client.get("/api/health-snapshot").json()
        assert snapshot["active_tickets"] == 1
        assert snapshot["open_tickets"] == 1

    def test_events_limit(self, client: TestClient, service: PulseService) -> None:
        for status in ("approved", "in-motion", "delivered"):
            client.patch("/api/signals/b", json={"status": status})
        _settle(client, service)
        events = client.get("/api/events", params={"limit": 2}).json()
        assert events["count"] == 2
        assert [e["new_status"] for e in events["events"]] == ["delivered", "in-motion"]


class TestChangeFeed:
    def test_accepts_valid_notification(self, client: TestClient, service: PulseService) -> None:
        with client.websocket_connect("/ws/changes") as ws:
            ws.send_json({"kind": "signals", "eventType": "INSERT", "new": _valid_signal(id="w")})
            reply = ws.receive_json()
        assert reply == {"status": "accepted", "kind": "signals", "event_type": "INSERT", "entity_id": "w"}
        _settle(client, service)
        assert "w" in service.signal_sync.store

    def test_non_json_frame_is_rejected_and_feed_survives(self, client: TestClient, service: PulseService) -> None:
        with client.websocket_connect("/ws/changes") as ws:
            ws.send_text("not json{")
            reply = ws.receive_json()
            assert reply["status"] == "error"
            assert reply["reason"] == "malformed"
            ws.send_json({"kind": "signals", "eventType": "INSERT", "new": _valid_signal(id="after")})
            assert ws.receive_json()["status"] == "accepted"
        _settle(client, service)
        assert "after" in service.signal_sync.store

    def test_unknown_kind(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/changes") as ws:
            ws.send_json({"kind": "invoices", "eventType": "INSERT", "new": {"id": "1"}})
            reply = ws.receive_json()
        assert reply["status"] == "error"
        assert reply["reason"] == "unknown_kind"

    def test_malformed_is_rejected_and_counted(self, client: TestClient, service: PulseService) -> None:
        with client.websocket_connect("/ws/changes") as ws:
            ws.send_json({"kind": "signals", "eventType": "INSERT"})
            reply = ws.receive_json()
        assert reply["reason"] == "malformed"
        assert service.signal_sync.stats.rejected_count == 1
        assert len(service.signals) == 2

    def test_delete_through_feed(self, client: TestClient, service: PulseService) -> None:
        with client.websocket_connect("/ws/changes") as ws:
            ws.send_json({"kind": "signals", "eventType": "DELETE", "old": {"id": "b"}})
            assert ws.receive_json()["status"] == "accepted"
        _settle(client, service)
        assert [s.id for s in service.signals] == ["a"]
        assert client.get("/api/events").json()["events"][0]["event_type"] == "deleted"


class TestHealthSocket:
    def test_snapshot_on_connect_and_heartbeat(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/health") as ws:
            first = ws.receive_json()
            assert first["type"] == "health_snapshot"
            assert first["health_level"] == "stable"
            ws.send_text("ping")
            assert ws.receive_text() == "pong"

    def test_level_change_is_pushed(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/health") as ws:
            ws.receive_json()
            assert client.patch("/api/signals/b", json={"urgency": "critical"}).status_code == 200
            change = ws.receive_json()
        assert change["type"] == "health_change"
        assert change["previous"] == "stable"
        assert change["current"] == "critical"
        assert change["css_class"] == "tension-3"
