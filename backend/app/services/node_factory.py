"""
Node factory for the workflow builder.

Creates nodes of a registered type with default configuration, a collision-free
identifier and a canvas position stacked below the last node.
"""

import random
import time
from collections.abc import Sequence

from app.errors import UnknownNodeTypeError
from app.models.nodes import DEFAULT_AI_MODEL, NODE_REGISTRY, NodeKind
from app.models.workflow import WorkflowNode

ORIGIN = {"x": 50.0, "y": 50.0}
VERTICAL_SPACING = 120.0


def _new_node_id(existing_ids: set[str]) -> str:
    """Millisecond timestamp plus a random suffix, regenerated on collision."""
    while True:
        node_id = f"{int(time.time() * 1000)}{random.randint(0, 999):03d}"
        if node_id not in existing_ids:
            return node_id


def _next_position(existing_nodes: Sequence[WorkflowNode]) -> dict[str, float]:
    if not existing_nodes:
        return dict(ORIGIN)
    last = existing_nodes[-1].position
    return {
        "x": float(last.get("x", ORIGIN["x"])),
        "y": float(last.get("y", ORIGIN["y"])) + VERTICAL_SPACING,
    }


def default_config(node_type: str) -> dict:
    """AI nodes start with a model and empty instruction/input; others start empty."""
    if NODE_REGISTRY[node_type]["kind"] is NodeKind.AI_TRANSFORM:
        return {"model": DEFAULT_AI_MODEL, "systemInstruction": "", "input": ""}
    return {}


def create_node(
    node_type: str,
    existing_nodes: Sequence[WorkflowNode],
    label: str | None = None,
) -> WorkflowNode:
    """Return a new node of node_type positioned after existing_nodes."""
    if node_type not in NODE_REGISTRY:
        raise UnknownNodeTypeError(f"Unknown node type: {node_type}")
    return WorkflowNode(
        id=_new_node_id({n.id for n in existing_nodes}),
        type=node_type,
        label=label or NODE_REGISTRY[node_type]["label"],
        config=default_config(node_type),
        position=_next_position(existing_nodes),
    )
