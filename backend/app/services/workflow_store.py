"""
Workflow persistence layer.

Supports LocalFileStore (local dev) and LakebaseStore (Lakebase PostgreSQL when
PGHOST is set). The node list is stored as an opaque JSON document.
"""

import json
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from app.models.workflow import WorkflowDefinition, WorkflowSummary


class WorkflowStore(ABC):
    """Abstract base class for workflow storage backends."""

    @abstractmethod
    def save(self, workflow: WorkflowDefinition) -> str:
        """Save a workflow, return its ID."""
        ...

    @abstractmethod
    def get(self, workflow_id: str) -> WorkflowDefinition | None:
        """Retrieve a workflow by ID."""
        ...

    @abstractmethod
    def list_all(self) -> list[WorkflowSummary]:
        """List all saved workflows (id, name, updated_at, etc.)."""
        ...

    @abstractmethod
    def delete(self, workflow_id: str) -> bool:
        """Delete a workflow. Returns True if deleted, False if not found."""
        ...

    @abstractmethod
    def update(self, workflow_id: str, workflow: WorkflowDefinition) -> WorkflowDefinition:
        """Update an existing workflow."""
        ...


def _ensure_workflow_id(workflow: WorkflowDefinition) -> str:
    """Ensure workflow has a UUID; return the ID."""
    if not workflow.id:
        return str(uuid.uuid4())
    return workflow.id


def _to_summary(workflow: WorkflowDefinition) -> WorkflowSummary:
    return WorkflowSummary(
        id=workflow.id,
        name=workflow.name,
        description=workflow.description,
        updated_at=workflow.updated_at,
        node_count=len(workflow.nodes),
    )


def _next_version(workflow: WorkflowDefinition, existing: WorkflowDefinition, workflow_id: str):
    return workflow.model_copy(
        update={
            "id": workflow_id,
            "created_at": existing.created_at,
            "updated_at": datetime.now(tz=timezone.utc),
            "version": existing.version + 1,
        }
    )


class LocalFileStore(WorkflowStore):
    """Saves workflow JSON files to a local directory (e.g., ~/.flowbuilder/workflows/)."""

    def __init__(self, base_dir: str | Path | None = None):
        if base_dir is None:
            base_dir = Path.home() / ".flowbuilder" / "workflows"
        self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)

    def _path(self, workflow_id: str) -> Path:
        return self._base / f"{workflow_id}.json"

    def _write(self, workflow: WorkflowDefinition) -> None:
        with open(self._path(workflow.id), "w") as f:
            json.dump(workflow.model_dump(mode="json"), f, indent=2)

    def save(self, workflow: WorkflowDefinition) -> str:
        workflow_id = _ensure_workflow_id(workflow)
        workflow = workflow.model_copy(
            update={"id": workflow_id, "updated_at": datetime.now(tz=timezone.utc)}
        )
        self._write(workflow)
        return workflow_id

    def get(self, workflow_id: str) -> WorkflowDefinition | None:
        path = self._path(workflow_id)
        if not path.exists():
            return None
        with open(path) as f:
            data = json.load(f)
        return WorkflowDefinition.model_validate(data)

    def list_all(self) -> list[WorkflowSummary]:
        summaries = []
        for path in self._base.glob("*.json"):
            workflow = self.get(path.stem)
            if workflow:
                summaries.append(_to_summary(workflow))
        summaries.sort(key=lambda s: s.updated_at, reverse=True)
        return summaries

    def delete(self, workflow_id: str) -> bool:
        path = self._path(workflow_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def update(self, workflow_id: str, workflow: WorkflowDefinition) -> WorkflowDefinition:
        existing = self.get(workflow_id)
        if not existing:
            raise FileNotFoundError(f"Workflow {workflow_id} not found")
        workflow = _next_version(workflow, existing, workflow_id)
        self._write(workflow)
        return workflow


class LakebaseStore(WorkflowStore):
    """Saves workflows to Lakebase PostgreSQL (Databricks serverless PostgreSQL)."""

    def __init__(self):
        from app.db import get_pool

        self._pool = get_pool()

    def save(self, workflow: WorkflowDefinition) -> str:
        workflow_id = _ensure_workflow_id(workflow)
        workflow = workflow.model_copy(
            update={"id": workflow_id, "updated_at": datetime.now(tz=timezone.utc)}
        )
        canvas_json = json.dumps(workflow.model_dump(mode="json"))
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO workflows (
                        id, name, description, canvas_json, version, created_at, updated_at
                    ) VALUES (%s, %s, %s, %s::jsonb, %s, %s, %s)
                    """,
                    (
                        workflow_id,
                        workflow.name,
                        workflow.description or "",
                        canvas_json,
                        workflow.version,
                        workflow.created_at,
                        workflow.updated_at,
                    ),
                )
        return workflow_id

    def get(self, workflow_id: str) -> WorkflowDefinition | None:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT canvas_json, version, created_at, updated_at "
                    "FROM workflows WHERE id = %s",
                    (workflow_id,),
                )
                row = cur.fetchone()
        if not row:
            return None
        canvas_json, version, created_at, updated_at = row
        data = canvas_json if isinstance(canvas_json, dict) else json.loads(canvas_json)
        data["id"] = workflow_id
        data["version"] = version
        data["created_at"] = created_at
        data["updated_at"] = updated_at
        return WorkflowDefinition.model_validate(data)

    def list_all(self) -> list[WorkflowSummary]:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id, name, description, updated_at,
                           jsonb_array_length(COALESCE(canvas_json->'nodes', '[]'::jsonb)) AS node_count
                    FROM workflows
                    ORDER BY updated_at DESC
                    """
                )
                rows = cur.fetchall()
        return [
            WorkflowSummary(
                id=str(row[0]),
                name=row[1],
                description=row[2] or "",
                updated_at=row[3],
                node_count=row[4] or 0,
            )
            for row in rows
        ]

    def delete(self, workflow_id: str) -> bool:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM workflows WHERE id = %s", (workflow_id,))
                return cur.rowcount > 0

    def update(self, workflow_id: str, workflow: WorkflowDefinition) -> WorkflowDefinition:
        existing = self.get(workflow_id)
        if not existing:
            raise FileNotFoundError(f"Workflow {workflow_id} not found")
        workflow = _next_version(workflow, existing, workflow_id)
        canvas_json = json.dumps(workflow.model_dump(mode="json"))
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE workflows SET
                        name = %s, description = %s, canvas_json = %s::jsonb,
                        version = %s, updated_at = %s
                    WHERE id = %s
                    """,
                    (
                        workflow.name,
                        workflow.description or "",
                        canvas_json,
                        workflow.version,
                        workflow.updated_at,
                        workflow_id,
                    ),
                )
        return workflow


def get_workflow_store() -> WorkflowStore:
    """Return LakebaseStore if Lakebase is available, otherwise LocalFileStore."""
    from app.db import is_postgres_available
    if is_postgres_available():
        return LakebaseStore()
    return LocalFileStore()
