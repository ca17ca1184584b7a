"""Tests for the audit log service using LocalFileAuditStore."""

from __future__ import annotations

from fastapi.testclient import TestClient

from app.services.audit_log import LocalFileAuditStore, list_events, record_event


def test_record_event_and_list_events(audit_store: LocalFileAuditStore):
    """record_event() falls back to the local store when PGHOST is not set."""
    entry = record_event("Execute Workflow", "Full workflow with 2 nodes executed successfully.")
    events = list_events()
    assert len(events) == 1
    assert events[0].id == entry.id
    assert events[0].action == "Execute Workflow"
    assert events[0].target == "WORKFLOWS"
    assert events[0].status == "success"
    assert audit_store.list_events() == events


def test_list_events_newest_first():
    record_event("Add Node", "first")
    record_event("Add Node", "second")
    record_event("Execute Workflow", "third", status="failed")
    events = list_events()
    assert [e.details for e in events] == ["third", "second", "first"]
    assert events[0].status == "failed"


def test_list_events_limit():
    for i in range(5):
        record_event("Add Node", f"event {i}")
    assert len(list_events(limit=2)) == 2
    assert list_events(limit=2)[0].details == "event 4"


def test_list_events_empty():
    assert list_events() == []


def test_entries_persist_across_store_instances(audit_store: LocalFileAuditStore, tmp_path):
    record_event("Load Workflow", "Workflow loaded with 3 nodes.", target="EDITOR")
    reopened = LocalFileAuditStore(base_dir=tmp_path / "audit_log")
    events = reopened.list_events()
    assert events[0].target == "EDITOR"
    assert events[0].timestamp.tzinfo is not None


def test_audit_api(client: TestClient):
    record_event("Execute Workflow", "ok")
    record_event("Execute Workflow", "boom", status="failed")
    response = client.get("/api/audit", params={"limit": 1})
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["details"] == "boom"
    assert data[0]["status"] == "failed"

    assert client.get("/api/audit", params={"limit": 0}).status_code == 422
