"""Node type catalog for the canvas toolbox."""

from fastapi import APIRouter

from app.models.nodes import NODE_REGISTRY
from app.services.node_factory import default_config

router = APIRouter()


@router.get("")
async def list_node_types() -> list[dict]:
    """List registered node types with their execution kind and default config."""
    return [
        {
            "type": node_type,
            "kind": meta["kind"].value,
            "label": meta["label"],
            "default_config": default_config(node_type),
        }
        for node_type, meta in NODE_REGISTRY.items()
    ]
