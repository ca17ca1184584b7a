"""API tests for running workflows and reading execution state."""

from fastapi.testclient import TestClient

from app.errors import CapabilityError
from fakes import FakeCapabilities


def _create(client: TestClient, nodes: list[dict]) -> str:
    response = client.post("/api/workflows", json={"name": "Run me", "nodes": nodes})
    assert response.status_code == 200
    return response.json()["id"]


CITY = [
    {"id": "t1", "type": "trigger", "config": {"input": "Describe a city"}},
    {"id": "a1", "type": "ai_transform", "config": {"systemInstruction": "summarize"}},
]


def test_run_city_workflow(client: TestClient, fake_capabilities: FakeCapabilities):
    fake_capabilities.text_reply = "A dense city"
    workflow_id = _create(client, CITY)

    response = client.post(f"/api/workflows/{workflow_id}/run")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "idle"
    assert data["executing_node_id"] is None
    assert data["last_outcome"] == "completed"
    assert data["carrier"] == "A dense city"
    assert [r["output"] for r in data["results"]] == ["Describe a city", "A dense city"]
    assert fake_capabilities.text_calls == [("summarize", "Describe a city")]


def test_run_writes_one_audit_entry(client: TestClient):
    workflow_id = _create(client, CITY)
    client.post(f"/api/workflows/{workflow_id}/run")

    entries = [e for e in client.get("/api/audit").json() if e["action"] == "Execute Workflow"]
    assert len(entries) == 1
    assert entries[0]["status"] == "success"
    assert entries[0]["details"] == "Full workflow with 2 nodes executed successfully."


def test_run_needs_two_nodes(client: TestClient, fake_capabilities: FakeCapabilities):
    workflow_id = _create(client, [CITY[0]])
    response = client.post(f"/api/workflows/{workflow_id}/run")
    assert response.status_code == 400
    assert "at least 2" in response.json()["detail"]
    assert fake_capabilities.text_calls == []


def test_run_not_found(client: TestClient):
    assert client.post("/api/workflows/missing/run").status_code == 404
    assert client.get("/api/workflows/missing/execution").status_code == 404


def test_failed_capability_is_recorded(client: TestClient, fake_capabilities: FakeCapabilities):
    fake_capabilities.text_reply = CapabilityError("quota exceeded")
    workflow_id = _create(client, CITY + [{"id": "n1", "type": "notify"}])

    data = client.post(f"/api/workflows/{workflow_id}/run").json()
    assert data["last_outcome"] == "completed"
    assert len(data["results"]) == 3
    assert data["results"][1]["failed"] is True
    assert "[ai_transform failed]" in data["results"][2]["output"]


def test_execution_snapshot_after_run(client: TestClient):
    workflow_id = _create(client, CITY)
    idle = client.get(f"/api/workflows/{workflow_id}/execution").json()
    assert idle["status"] == "idle"
    assert idle["results"] == []

    client.post(f"/api/workflows/{workflow_id}/run")
    snapshot = client.get(f"/api/workflows/{workflow_id}/execution").json()
    assert len(snapshot["results"]) == 2
    assert snapshot["started_at"] is not None


def test_import_clears_displayed_results(client: TestClient):
    workflow_id = _create(client, CITY)
    client.post(f"/api/workflows/{workflow_id}/run")
    export = client.get(f"/api/workflows/{workflow_id}/export").text

    client.post(f"/api/workflows/{workflow_id}/import", json={"blob": export})
    snapshot = client.get(f"/api/workflows/{workflow_id}/execution").json()
    assert snapshot["results"] == []


def test_run_after_overwriting_config_with_odd_values(
    client: TestClient, fake_capabilities: FakeCapabilities
):
    workflow_id = _create(client, CITY)
    client.put(
        f"/api/workflows/{workflow_id}/nodes/a1/config",
        json={"config": {"systemInstruction": "summarize", "input": 123, "model": None}},
    )

    data = client.post(f"/api/workflows/{workflow_id}/run").json()
    assert fake_capabilities.text_calls == [("summarize", "Describe a city")]
    assert data["results"][1]["failed"] is False
