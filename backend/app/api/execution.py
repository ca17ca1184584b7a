"""
Workflow execution API router.

POST /api/workflows/{id}/run runs the node chain once and returns the final
execution snapshot. GET /api/workflows/{id}/execution returns the live state
(status, executing node, results so far) for canvas highlighting.
"""

import logging

from fastapi import APIRouter, HTTPException

from app.engine.state import get_execution_registry
from app.errors import ExecutionInProgressError, PipelineAbortedError
from app.models.workflow import ExecutionSnapshot
from app.services.adapters import default_capabilities
from app.services.workflow_store import get_workflow_store

logger = logging.getLogger(__name__)
router = APIRouter()

MIN_RUNNABLE_NODES = 2


@router.post("/{workflow_id}/run", response_model=ExecutionSnapshot)
async def run_workflow(workflow_id: str) -> ExecutionSnapshot:
    """Execute the workflow. Returns 409 while a run is already in progress."""
    workflow = get_workflow_store().get(workflow_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    if len(workflow.nodes) < MIN_RUNNABLE_NODES:
        raise HTTPException(
            status_code=400,
            detail=f"A workflow needs at least {MIN_RUNNABLE_NODES} nodes to run",
        )

    state = get_execution_registry().get(workflow_id)
    try:
        await state.run(workflow.nodes, default_capabilities())
    except ExecutionInProgressError:
        raise HTTPException(status_code=409, detail="Workflow is already running")
    except PipelineAbortedError as e:
        logger.warning("Workflow %s aborted at node %s", workflow_id, e.node_id)
    return state.snapshot()


@router.get("/{workflow_id}/execution", response_model=ExecutionSnapshot)
async def get_execution(workflow_id: str) -> ExecutionSnapshot:
    """Current execution state of a workflow."""
    if get_workflow_store().get(workflow_id) is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return get_execution_registry().get(workflow_id).snapshot()
