"""
CRUD API router for workflow management and node editing.

Uses WorkflowStore for persistence (LocalFileStore or LakebaseStore) and
WorkflowEditor for node mutations.
"""

import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from app.engine.state import get_execution_registry
from app.errors import NodeNotFoundError, UnknownNodeTypeError
from app.models.nodes import NodeType
from app.models.workflow import (
    AddNodeRequest,
    NodeConfigUpdate,
    NodePositionUpdate,
    WorkflowCreateRequest,
    WorkflowDefinition,
    WorkflowImportRequest,
    WorkflowNode,
    WorkflowSummary,
    WorkflowUpdateRequest,
)
from app.services.node_factory import create_node
from app.services.workflow_editor import WorkflowEditor
from app.services.workflow_store import get_workflow_store

router = APIRouter()


def _store():
    return get_workflow_store()


def _load(workflow_id: str) -> WorkflowDefinition:
    workflow = _store().get(workflow_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return workflow


def _save_nodes(workflow: WorkflowDefinition, editor: WorkflowEditor) -> WorkflowDefinition:
    updated = workflow.model_copy(update={"nodes": editor.nodes})
    try:
        return _store().update(workflow.id, updated)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Workflow not found")


def _starter_nodes() -> list[WorkflowNode]:
    trigger = create_node(NodeType.TRIGGER.value, [], label="Prompt Start")
    return [trigger.model_copy(update={"config": {"input": ""}})]


@router.post("", response_model=WorkflowDefinition)
async def create_workflow(request: WorkflowCreateRequest) -> WorkflowDefinition:
    """Create a new workflow. An empty workflow starts with a trigger node."""
    now = datetime.now(tz=timezone.utc)
    workflow = WorkflowDefinition(
        id=str(uuid.uuid4()),
        name=request.name,
        description=request.description,
        nodes=request.nodes or _starter_nodes(),
        created_at=now,
        updated_at=now,
        version=1,
    )
    _store().save(workflow)
    return workflow


@router.get("", response_model=list[WorkflowSummary])
async def list_workflows() -> list[WorkflowSummary]:
    """List all workflows (summary only)."""
    return _store().list_all()


@router.get("/{workflow_id}", response_model=WorkflowDefinition)
async def get_workflow(workflow_id: str) -> WorkflowDefinition:
    """Get a single workflow by ID."""
    return _load(workflow_id)


@router.put("/{workflow_id}", response_model=WorkflowDefinition)
async def update_workflow(
    workflow_id: str, request: WorkflowUpdateRequest
) -> WorkflowDefinition:
    """Update an existing workflow."""
    existing = _load(workflow_id)
    update_data = request.model_dump(exclude_unset=True)
    if "nodes" in update_data:
        update_data["nodes"] = request.nodes
    updated = existing.model_copy(update=update_data)
    try:
        return _store().update(workflow_id, updated)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Workflow not found")


@router.delete("/{workflow_id}", status_code=204)
async def delete_workflow(workflow_id: str) -> None:
    """Delete a workflow."""
    if not _store().delete(workflow_id):
        raise HTTPException(status_code=404, detail="Workflow not found")
    get_execution_registry().discard(workflow_id)


@router.post("/{workflow_id}/nodes", response_model=WorkflowNode)
async def add_node(workflow_id: str, request: AddNodeRequest) -> WorkflowNode:
    """Append a node of the requested type to the end of the chain."""
    workflow = _load(workflow_id)
    editor = WorkflowEditor(workflow.nodes)
    try:
        node = editor.add_node(request.type, label=request.label)
    except UnknownNodeTypeError as e:
        raise HTTPException(status_code=422, detail=str(e))
    _save_nodes(workflow, editor)
    return node


@router.delete("/{workflow_id}/nodes/{node_id}", status_code=204)
async def remove_node(workflow_id: str, node_id: str) -> None:
    """Remove a node; the remaining nodes keep their order."""
    workflow = _load(workflow_id)
    editor = WorkflowEditor(workflow.nodes)
    if not editor.remove_node(node_id):
        raise HTTPException(status_code=404, detail="Node not found")
    _save_nodes(workflow, editor)


@router.put("/{workflow_id}/nodes/{node_id}/config", response_model=WorkflowNode)
async def update_node_config(
    workflow_id: str, node_id: str, request: NodeConfigUpdate
) -> WorkflowNode:
    """Replace a node's configuration."""
    workflow = _load(workflow_id)
    editor = WorkflowEditor(workflow.nodes)
    try:
        node = editor.update_node_config(node_id, request.config)
    except NodeNotFoundError:
        raise HTTPException(status_code=404, detail="Node not found")
    _save_nodes(workflow, editor)
    return node


@router.put("/{workflow_id}/nodes/{node_id}/position", response_model=WorkflowNode)
async def update_node_position(
    workflow_id: str, node_id: str, request: NodePositionUpdate
) -> WorkflowNode:
    """Move a node on the canvas. Position does not affect execution order."""
    workflow = _load(workflow_id)
    editor = WorkflowEditor(workflow.nodes)
    try:
        node = editor.update_node_position(node_id, {"x": request.x, "y": request.y})
    except NodeNotFoundError:
        raise HTTPException(status_code=404, detail="Node not found")
    _save_nodes(workflow, editor)
    return node


@router.get("/{workflow_id}/export", response_class=PlainTextResponse)
async def export_workflow(workflow_id: str) -> str:
    """Serialize the node list to a portable JSON blob."""
    workflow = _load(workflow_id)
    return WorkflowEditor(workflow.nodes).serialize()


@router.post("/{workflow_id}/import", response_model=WorkflowDefinition)
async def import_workflow(
    workflow_id: str, request: WorkflowImportRequest
) -> WorkflowDefinition:
    """Replace the node list from a serialized blob. Malformed data changes nothing."""
    workflow = _load(workflow_id)
    state = get_execution_registry().get(workflow_id)
    if state.is_running:
        raise HTTPException(status_code=409, detail="Workflow is running")
    editor = WorkflowEditor(workflow.nodes)
    if not editor.deserialize(request.blob):
        raise HTTPException(status_code=400, detail="Malformed workflow data")
    state.reset()
    return _save_nodes(workflow, editor)
