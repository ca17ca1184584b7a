"""Pydantic models for workflow definitions and API requests/responses."""

from app.models.nodes import NODE_REGISTRY, NodeKind, NodeType
from app.models.workflow import (
    ExecutionResult,
    ExecutionSnapshot,
    ExternalTarget,
    RunOutcome,
    RunStatus,
    WorkflowCreateRequest,
    WorkflowDefinition,
    WorkflowNode,
    WorkflowUpdateRequest,
)

__all__ = [
    "ExecutionResult",
    "ExecutionSnapshot",
    "ExternalTarget",
    "NODE_REGISTRY",
    "NodeKind",
    "NodeType",
    "RunOutcome",
    "RunStatus",
    "WorkflowCreateRequest",
    "WorkflowDefinition",
    "WorkflowNode",
    "WorkflowUpdateRequest",
]
