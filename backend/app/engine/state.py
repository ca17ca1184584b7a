"""
Execution state machine for workflow runs.

One ExecutionState per workflow tracks whether a run is in flight, which node
is currently executing (for canvas highlighting) and the results captured so
far. Status moves idle -> running -> idle; the outcome of the last run is kept
separately as completed or failed.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from app.config import WorkflowConfig
from app.engine.capabilities import Capabilities
from app.engine.executor import PipelineRun, run_pipeline
from app.errors import ExecutionInProgressError, PipelineAbortedError
from app.models.workflow import (
    ExecutionResult,
    ExecutionSnapshot,
    RunOutcome,
    RunStatus,
    WorkflowNode,
)
from app.services.audit_log import record_event

logger = logging.getLogger(__name__)

AuditSink = Callable[[str, str, str], None]


class ExecutionState:
    """Run state of a single workflow, guarded against re-entrant runs."""

    def __init__(
        self,
        workflow_id: str,
        config: WorkflowConfig | None = None,
        audit: AuditSink | None = None,
    ) -> None:
        self.workflow_id = workflow_id
        self._config = config or WorkflowConfig.from_env()
        self._audit = audit or record_event
        self.status = RunStatus.IDLE
        self.executing_node_id: str | None = None
        self.last_outcome: RunOutcome | None = None
        self.results: list[ExecutionResult] = []
        self.carrier = ""
        self.error: str | None = None
        self.started_at: datetime | None = None
        self.finished_at: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self.status is RunStatus.RUNNING

    def _mark_executing(self, node: WorkflowNode) -> None:
        self.executing_node_id = node.id

    async def run(
        self, nodes: Sequence[WorkflowNode], capabilities: Capabilities
    ) -> PipelineRun:
        """
        Run the nodes once. Raises ExecutionInProgressError if a run is in flight.

        On failure the state returns to idle with the partial results kept, a
        failed audit entry is written, and the exception is re-raised.
        """
        # No await between the check and the transition to RUNNING
        if self.is_running:
            raise ExecutionInProgressError(
                f"Workflow {self.workflow_id} is already running"
            )
        self.status = RunStatus.RUNNING
        self.results = []
        self.carrier = ""
        self.error = None
        self.executing_node_id = None
        self.started_at = datetime.now(tz=timezone.utc)
        self.finished_at = None

        snapshot = list(nodes)
        try:
            run = await run_pipeline(
                snapshot,
                capabilities,
                failure_policy=self._config.failure_policy,
                node_delay=self._config.node_delay_seconds,
                on_node_start=self._mark_executing,
                on_result=self.results.append,
            )
        except Exception as e:
            if isinstance(e, PipelineAbortedError):
                self.carrier = e.partial_run.carrier
            self.last_outcome = RunOutcome.FAILED
            self.error = str(e)
            logger.error("Workflow %s run failed: %s", self.workflow_id, e)
            self._audit(
                "Execute Workflow",
                f"Workflow failed after {len(self.results)} of {len(snapshot)} nodes: {e}",
                "failed",
            )
            raise
        else:
            self.carrier = run.carrier
            self.last_outcome = RunOutcome.COMPLETED
            logger.info(
                "Workflow %s completed: %d nodes", self.workflow_id, len(snapshot)
            )
            self._audit(
                "Execute Workflow",
                f"Full workflow with {len(snapshot)} nodes executed successfully.",
                "success",
            )
            return run
        finally:
            self.status = RunStatus.IDLE
            self.executing_node_id = None
            self.finished_at = datetime.now(tz=timezone.utc)

    def reset(self) -> None:
        """Clear displayed results (e.g. after a workflow is reloaded)."""
        if self.is_running:
            raise ExecutionInProgressError(
                f"Workflow {self.workflow_id} is already running"
            )
        self.results = []
        self.carrier = ""
        self.error = None
        self.last_outcome = None

    def snapshot(self) -> ExecutionSnapshot:
        return ExecutionSnapshot(
            workflow_id=self.workflow_id,
            status=self.status,
            executing_node_id=self.executing_node_id,
            last_outcome=self.last_outcome,
            results=list(self.results),
            carrier=self.carrier,
            error=self.error,
            started_at=self.started_at,
            finished_at=self.finished_at,
        )


class ExecutionRegistry:
    """Keeps one ExecutionState per workflow id for the lifetime of the process."""

    def __init__(self, config: WorkflowConfig | None = None) -> None:
        self._config = config
        self._states: dict[str, ExecutionState] = {}
        self._lock = threading.Lock()

    def get(self, workflow_id: str) -> ExecutionState:
        with self._lock:
            state = self._states.get(workflow_id)
            if state is None:
                state = ExecutionState(workflow_id, config=self._config)
                self._states[workflow_id] = state
            return state

    def discard(self, workflow_id: str) -> None:
        with self._lock:
            self._states.pop(workflow_id, None)


_registry: ExecutionRegistry | None = None


def get_execution_registry() -> ExecutionRegistry:
    """Return the process-wide ExecutionRegistry singleton."""
    global _registry
    if _registry is None:
        _registry = ExecutionRegistry()
    return _registry
