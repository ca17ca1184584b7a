"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError

from app.config import FailurePolicy, WorkflowConfig
from app.models.nodes import DEFAULT_AI_MODEL


def test_defaults(monkeypatch):
    for name in (
        "DATABRICKS_HOST",
        "DATABRICKS_TOKEN",
        "AI_MODEL_ENDPOINT",
        "IMAGE_MODEL_ENDPOINT",
        "WORKFLOW_NODE_DELAY_MS",
        "WORKFLOW_FAILURE_POLICY",
        "EXTERNAL_ACTION_LATENCY_MS",
    ):
        monkeypatch.delenv(name, raising=False)
    config = WorkflowConfig.from_env()
    assert config.is_configured is False
    assert config.text_endpoint == DEFAULT_AI_MODEL
    assert config.node_delay_seconds == 0
    assert config.failure_policy is FailurePolicy.RECORD


def test_from_env(monkeypatch):
    monkeypatch.setenv("DATABRICKS_HOST", "https://example.cloud.databricks.com")
    monkeypatch.setenv("IMAGE_MODEL_ENDPOINT", "images")
    monkeypatch.setenv("WORKFLOW_NODE_DELAY_MS", "800")
    monkeypatch.setenv("WORKFLOW_FAILURE_POLICY", "ABORT")
    monkeypatch.setenv("EXTERNAL_ACTION_LATENCY_MS", "1500")
    config = WorkflowConfig.from_env()
    assert config.is_configured is True
    assert config.image_endpoint == "images"
    assert config.node_delay_seconds == 0.8
    assert config.failure_policy is FailurePolicy.ABORT
    assert config.external_action_latency_seconds == 1.5


def test_unknown_failure_policy_rejected(monkeypatch):
    monkeypatch.setenv("WORKFLOW_FAILURE_POLICY", "ignore")
    with pytest.raises(ValueError):
        WorkflowConfig.from_env()


def test_negative_delay_rejected():
    with pytest.raises(ValidationError):
        WorkflowConfig(node_delay_seconds=-1)
