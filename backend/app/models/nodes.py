"""
Node type enums, typed config views and metadata for the workflow builder.

Every node carries an open ``config`` mapping that the editor overwrites
wholesale. The config models below are a lenient view over that mapping: the
text fields a handler reads are coerced to strings, and fields the engine
never reads are accepted as-is, so odd values never fail a node.
"""

import os
from enum import Enum
from typing import Annotated, Any, TypedDict

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

DEFAULT_AI_MODEL = os.environ.get("AI_MODEL_ENDPOINT", "databricks-claude-sonnet-4-6")


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


Text = Annotated[str, BeforeValidator(_as_text)]


class NodeKind(str, Enum):
    """Execution behaviour shared by one or more node types."""

    TRIGGER = "trigger"
    AI_TRANSFORM = "ai_transform"
    IMAGE_GENERATE = "image_generate"
    EXTERNAL_ACTION = "external_action"
    NOTIFY = "notify"
    RESERVED = "reserved"


class NodeType(str, Enum):
    """Node type tags accepted by the registry."""

    TRIGGER = "trigger"
    AI_TRANSFORM = "ai_transform"
    AI_LOGIC = "ai_logic"
    IMAGE_GENERATE = "image_generate"
    EXTERNAL_ACTION = "external_action"
    NOTIFY = "notify"
    LOGIC = "logic"


class _NodeConfig(BaseModel):
    model_config = ConfigDict(extra="allow")


class TriggerConfig(_NodeConfig):
    input: Text = Field(default="", description="Seed text for the pipeline")


class AiTransformConfig(_NodeConfig):
    model: Any = Field(default=DEFAULT_AI_MODEL, description="Model endpoint name")
    systemInstruction: Text = Field(default="", description="Instruction for the transform")
    input: Any = Field(default="", description="Legacy editor field, not used at run time")


class ImageGenerateConfig(_NodeConfig):
    input: Text = Field(default="", description="Fallback prompt when the carrier is empty")


class ExternalActionConfig(_NodeConfig):
    repo: Text = Field(default="", description="Name of a registered external target")


class NotifyConfig(_NodeConfig):
    pass


class NodeMetadata(TypedDict):
    """Metadata for a node type in the registry."""

    kind: NodeKind
    label: str
    config_model: type[BaseModel] | None


NODE_REGISTRY: dict[str, NodeMetadata] = {
    NodeType.TRIGGER.value: {
        "kind": NodeKind.TRIGGER,
        "label": "Trigger (Manual)",
        "config_model": TriggerConfig,
    },
    NodeType.AI_TRANSFORM.value: {
        "kind": NodeKind.AI_TRANSFORM,
        "label": "AI Brain",
        "config_model": AiTransformConfig,
    },
    NodeType.AI_LOGIC.value: {
        "kind": NodeKind.AI_TRANSFORM,
        "label": "AI Logic",
        "config_model": AiTransformConfig,
    },
    NodeType.IMAGE_GENERATE.value: {
        "kind": NodeKind.IMAGE_GENERATE,
        "label": "Image Gen",
        "config_model": ImageGenerateConfig,
    },
    NodeType.EXTERNAL_ACTION.value: {
        "kind": NodeKind.EXTERNAL_ACTION,
        "label": "GitHub Action",
        "config_model": ExternalActionConfig,
    },
    NodeType.NOTIFY.value: {
        "kind": NodeKind.NOTIFY,
        "label": "Send Notification",
        "config_model": NotifyConfig,
    },
    # Declared in the toolbox but has no execution behaviour yet
    NodeType.LOGIC.value: {
        "kind": NodeKind.RESERVED,
        "label": "Logical Filter",
        "config_model": None,
    },
}
