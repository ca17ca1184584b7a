"""
In-memory editing model for a workflow's node list.

The editor is the single source of truth the canvas and the engine read from:
it appends, removes and reconfigures nodes, tracks the selected node, and
serializes the whole list to a portable JSON blob and back.
"""

import json
import logging
from collections.abc import Callable, Iterable

from pydantic import TypeAdapter, ValidationError

from app.errors import NodeNotFoundError
from app.models.workflow import ExecutionResult, WorkflowNode
from app.services.audit_log import record_event
from app.services.node_factory import create_node

logger = logging.getLogger(__name__)

_NODE_LIST = TypeAdapter(list[WorkflowNode])


class WorkflowEditor:
    """Mutable node sequence with selection and last displayed results."""

    def __init__(
        self,
        nodes: Iterable[WorkflowNode] = (),
        audit: Callable[[str, str, str], object] | None = None,
    ) -> None:
        self._nodes: list[WorkflowNode] = list(nodes)
        self._audit = audit or record_event
        self.selected_node_id: str | None = None
        self.results: list[ExecutionResult] = []

    @property
    def nodes(self) -> list[WorkflowNode]:
        return list(self._nodes)

    def _index(self, node_id: str) -> int:
        for i, node in enumerate(self._nodes):
            if node.id == node_id:
                return i
        raise NodeNotFoundError(f"Node {node_id} not found")

    def get_node(self, node_id: str) -> WorkflowNode:
        return self._nodes[self._index(node_id)]

    def add_node(self, node_type: str, label: str | None = None) -> WorkflowNode:
        node = create_node(node_type, self._nodes, label=label)
        self._nodes.append(node)
        self._audit("Add Node", f"Added {node_type} node to workflow.", "success")
        return node

    def remove_node(self, node_id: str) -> bool:
        """Drop a node; the remaining nodes keep their relative order."""
        try:
            index = self._index(node_id)
        except NodeNotFoundError:
            return False
        del self._nodes[index]
        if self.selected_node_id == node_id:
            self.selected_node_id = None
        return True

    def select_node(self, node_id: str | None) -> None:
        if node_id is not None:
            self._index(node_id)
        self.selected_node_id = node_id

    def update_node_config(self, node_id: str, config: dict) -> WorkflowNode:
        """Replace the node's config wholesale."""
        index = self._index(node_id)
        node = self._nodes[index].model_copy(update={"config": dict(config)})
        self._nodes[index] = node
        return node

    def update_node_position(self, node_id: str, position: dict[str, float]) -> WorkflowNode:
        index = self._index(node_id)
        node = self._nodes[index].model_copy(
            update={"position": {"x": float(position["x"]), "y": float(position["y"])}}
        )
        self._nodes[index] = node
        return node

    def serialize(self) -> str:
        return json.dumps(_NODE_LIST.dump_python(self._nodes, mode="json"))

    def deserialize(self, blob: str) -> bool:
        """
        Replace the node list with the one encoded in blob.

        Malformed data is logged and leaves nodes, selection and results
        untouched. Returns True when the list was replaced.
        """
        try:
            nodes = _NODE_LIST.validate_json(blob)
        except ValidationError as e:
            logger.error("Failed to load workflow: %s", e)
            return False
        ids = [n.id for n in nodes]
        if len(set(ids)) != len(ids):
            logger.error("Failed to load workflow: duplicate node IDs")
            return False

        self._nodes = nodes
        self.selected_node_id = None
        self.results = []
        self._audit("Load Workflow", f"Workflow loaded with {len(nodes)} nodes.", "success")
        return True
