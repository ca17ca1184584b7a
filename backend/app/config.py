"""
Application configuration.

WorkflowConfig reads from environment variables with sensible defaults
for local development.
"""

import os
from enum import Enum

from pydantic import BaseModel, Field

from app.models.nodes import DEFAULT_AI_MODEL


class FailurePolicy(str, Enum):
    """How capability failures of text and external-action nodes are handled."""

    RECORD = "record"  # record an error result and continue with the next node
    ABORT = "abort"  # stop the run at the failing node


class WorkflowConfig(BaseModel):
    """
    Workflow engine and capability backend configuration.

    Reads from environment variables. Capability calls go to Databricks
    model serving endpoints identified by DATABRICKS_HOST and the endpoint names.
    """

    host: str | None = Field(default=None)
    token: str | None = Field(default=None)
    text_endpoint: str = Field(default=DEFAULT_AI_MODEL)
    image_endpoint: str | None = Field(default=None)
    request_timeout_seconds: float = Field(default=60.0)
    node_delay_seconds: float = Field(default=0.0, ge=0)
    failure_policy: FailurePolicy = Field(default=FailurePolicy.RECORD)
    external_action_latency_seconds: float = Field(default=0.0, ge=0)

    @classmethod
    def from_env(cls) -> "WorkflowConfig":
        return cls(
            host=os.environ.get("DATABRICKS_HOST"),
            token=os.environ.get("DATABRICKS_TOKEN"),
            text_endpoint=os.environ.get("AI_MODEL_ENDPOINT", DEFAULT_AI_MODEL),
            image_endpoint=os.environ.get("IMAGE_MODEL_ENDPOINT") or None,
            request_timeout_seconds=float(os.environ.get("CAPABILITY_TIMEOUT_SECONDS", "60")),
            node_delay_seconds=int(os.environ.get("WORKFLOW_NODE_DELAY_MS", "0")) / 1000,
            failure_policy=FailurePolicy(
                os.environ.get("WORKFLOW_FAILURE_POLICY", FailurePolicy.RECORD.value).lower()
            ),
            external_action_latency_seconds=int(
                os.environ.get("EXTERNAL_ACTION_LATENCY_MS", "0")
            ) / 1000,
        )

    @property
    def is_configured(self) -> bool:
        """True if a Databricks host is set (real model serving mode)."""
        return bool(self.host and self.host.strip())
