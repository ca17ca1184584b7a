"""
Pydantic models for workflow definitions, execution results and API payloads.

A workflow is a single ordered chain of nodes: node i feeds node i+1. There is
no edge structure.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class WorkflowNode(BaseModel):
    """A single step in the workflow chain."""

    id: str = Field(..., description="Unique node identifier")
    type: str = Field(..., description="Node type tag (e.g. trigger, ai_transform)")
    label: str = Field(default="", description="Display label for the node")
    config: dict[str, Any] = Field(
        default_factory=dict,
        description="Node-specific configuration values",
    )
    position: dict[str, float] = Field(
        default_factory=lambda: {"x": 0.0, "y": 0.0},
        description="Visual position (x, y) in the canvas",
    )


class WorkflowSummary(BaseModel):
    """Summary of a workflow for listing."""

    id: str = Field(..., description="Unique workflow identifier")
    name: str = Field(..., description="Workflow display name")
    description: str = Field(default="", description="Workflow description")
    updated_at: datetime = Field(..., description="Last update timestamp")
    node_count: int = Field(default=0, description="Number of nodes in the workflow")


class WorkflowDefinition(BaseModel):
    """Complete workflow definition with metadata."""

    id: str = Field(..., description="Unique workflow identifier")
    name: str = Field(..., description="Workflow display name")
    description: str = Field(default="", description="Workflow description")
    nodes: list[WorkflowNode] = Field(default_factory=list, description="Ordered workflow nodes")
    created_at: datetime = Field(default_factory=_utcnow, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=_utcnow, description="Last update timestamp")
    version: int = Field(default=1, description="Workflow version")


class WorkflowCreateRequest(BaseModel):
    """Request body for creating a new workflow."""

    name: str = Field(..., min_length=1, description="Workflow name")
    description: str = Field(default="", description="Workflow description")
    nodes: list[WorkflowNode] = Field(default_factory=list, description="Ordered workflow nodes")


class WorkflowUpdateRequest(BaseModel):
    """Request body for updating an existing workflow. All fields optional."""

    name: str | None = Field(default=None, min_length=1, description="Workflow name")
    description: str | None = Field(default=None, description="Workflow description")
    nodes: list[WorkflowNode] | None = Field(default=None, description="Ordered workflow nodes")


class AddNodeRequest(BaseModel):
    """Request body for appending a node to a workflow."""

    type: str = Field(..., description="Node type tag from the registry")
    label: str | None = Field(default=None, description="Optional display label")


class NodeConfigUpdate(BaseModel):
    """Full replacement of a node's configuration."""

    config: dict[str, Any] = Field(default_factory=dict)


class NodePositionUpdate(BaseModel):
    x: float
    y: float


class WorkflowImportRequest(BaseModel):
    """Serialized node list produced by the export endpoint."""

    blob: str = Field(..., description="Serialized node list")


class ExecutionResult(BaseModel):
    """The recorded output of one node during one run."""

    nodeId: str = Field(..., description="ID of the executed node")
    output: str = Field(default="", description="Node output (text or image reference)")
    isImage: bool = Field(default=False, description="True when output is an image reference")
    failed: bool = Field(default=False, description="True when a capability failure was recorded")


class RunStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class RunOutcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class ExecutionSnapshot(BaseModel):
    """Observable execution state for UI highlighting."""

    workflow_id: str
    status: RunStatus = RunStatus.IDLE
    executing_node_id: str | None = None
    last_outcome: RunOutcome | None = None
    results: list[ExecutionResult] = Field(default_factory=list)
    carrier: str = ""
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None


class ExternalTarget(BaseModel):
    """A linked external repository that external_action nodes refer to by name."""

    id: str
    name: str
    address: str
    connected: bool = True


class ExternalTargetCreateRequest(BaseModel):
    address: str = Field(default="", description="Repository URL, e.g. https://github.com/org/repo")


class AuditEntryResponse(BaseModel):
    """A single audit log entry for API response."""

    id: str
    timestamp: datetime
    action: str
    target: str
    details: str
    status: Literal["success", "failed", "pending"]
