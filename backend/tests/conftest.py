"""
Pytest configuration and shared fixtures for backend tests.

Provides TestClient, temporary stores, fake capability adapters and sample
workflow fixtures.
"""

from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.config import FailurePolicy, WorkflowConfig
from app.engine.state import ExecutionRegistry
from app.main import app
from app.models.workflow import WorkflowNode
from app.services.audit_log import LocalFileAuditStore
from app.services.target_store import LocalTargetStore
from app.services.workflow_store import LocalFileStore
from fakes import FakeCapabilities


@pytest.fixture
def fake_capabilities() -> FakeCapabilities:
    return FakeCapabilities()


@pytest.fixture
def engine_config() -> WorkflowConfig:
    """Engine config with no pacing delay and the default failure policy."""
    return WorkflowConfig(node_delay_seconds=0.0, failure_policy=FailurePolicy.RECORD)


@pytest.fixture
def audit_store(tmp_path: Path) -> LocalFileAuditStore:
    return LocalFileAuditStore(base_dir=tmp_path / "audit_log")


@pytest.fixture(autouse=True)
def use_local_audit_store(audit_store: LocalFileAuditStore, monkeypatch):
    """Keep audit entries written by any test inside the temporary directory."""
    monkeypatch.delenv("PGHOST", raising=False)
    monkeypatch.setattr("app.db._pg_available", False)

    def _get_store(base_dir=None):
        return audit_store

    monkeypatch.setattr("app.services.audit_log._get_local_store", _get_store)


@pytest.fixture
def temp_store_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for LocalFileStore."""
    store_dir = tmp_path / "workflows"
    store_dir.mkdir(parents=True)
    return store_dir


@pytest.fixture
def workflow_store(temp_store_dir: Path) -> LocalFileStore:
    """Create a LocalFileStore backed by a temporary directory."""
    return LocalFileStore(base_dir=temp_store_dir)


@pytest.fixture
def target_store(tmp_path: Path) -> LocalTargetStore:
    return LocalTargetStore(base_dir=tmp_path / "targets")


@pytest.fixture
def client(
    workflow_store: LocalFileStore,
    target_store: LocalTargetStore,
    fake_capabilities: FakeCapabilities,
    engine_config: WorkflowConfig,
):
    """
    FastAPI TestClient with stores, execution registry and capabilities patched.

    Patches get_workflow_store in the workflows and execution API modules.
    """
    registry = ExecutionRegistry(config=engine_config)

    def _get_store():
        return workflow_store

    with (
        patch("app.api.workflows.get_workflow_store", side_effect=_get_store),
        patch("app.api.execution.get_workflow_store", side_effect=_get_store),
        patch("app.api.targets.get_target_store", return_value=target_store),
        patch("app.api.workflows.get_execution_registry", return_value=registry),
        patch("app.api.execution.get_execution_registry", return_value=registry),
        patch(
            "app.api.execution.default_capabilities",
            side_effect=lambda: fake_capabilities.bundle(),
        ),
    ):
        yield TestClient(app)


@pytest.fixture
def city_nodes() -> list[WorkflowNode]:
    """trigger -> ai_transform, the canonical two-node workflow."""
    return [
        WorkflowNode(id="t1", type="trigger", label="Start", config={"input": "Describe a city"}),
        WorkflowNode(
            id="a1",
            type="ai_transform",
            label="Summarize",
            config={"systemInstruction": "summarize"},
        ),
    ]


@pytest.fixture
def mixed_nodes() -> list[WorkflowNode]:
    """Five nodes, one of every executable kind."""
    return [
        WorkflowNode(
            id="n1", type="trigger", label="Start",
            config={"input": "a lighthouse at dusk"}, position={"x": 50.0, "y": 50.0},
        ),
        WorkflowNode(
            id="n2", type="ai_logic", label="Refine",
            config={"model": "m", "systemInstruction": "refine", "input": ""},
            position={"x": 50.0, "y": 170.0},
        ),
        WorkflowNode(
            id="n3", type="image_generate", label="Picture",
            config={}, position={"x": 50.0, "y": 290.0},
        ),
        WorkflowNode(
            id="n4", type="external_action", label="Commit",
            config={"repo": "site"}, position={"x": 120.5, "y": 410.0},
        ),
        WorkflowNode(
            id="n5", type="notify", label="Email",
            config={}, position={"x": 50.0, "y": 530.0},
        ),
    ]


@pytest.fixture
def sample_create_request() -> dict:
    """Sample workflow create request payload."""
    return {
        "name": "New Workflow",
        "description": "Created via API",
        "nodes": [
            {"id": "t1", "type": "trigger", "label": "Start", "config": {"input": "hello"}},
            {"id": "a1", "type": "ai_transform", "label": "Brain", "config": {"systemInstruction": "shout"}},
            {"id": "e1", "type": "notify", "label": "Notify", "config": {}},
        ],
    }
