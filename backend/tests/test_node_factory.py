"""Unit tests for node creation."""

from unittest.mock import patch

import pytest

from app.errors import UnknownNodeTypeError
from app.models.nodes import DEFAULT_AI_MODEL, NODE_REGISTRY
from app.models.workflow import WorkflowNode
from app.services.node_factory import ORIGIN, VERTICAL_SPACING, create_node, default_config


def test_first_node_at_origin():
    node = create_node("trigger", [])
    assert node.position == ORIGIN
    assert node.type == "trigger"
    assert node.config == {}


def test_next_node_stacks_below_last():
    last = WorkflowNode(id="x", type="notify", position={"x": 300.0, "y": 40.0})
    node = create_node("notify", [last])
    assert node.position == {"x": 300.0, "y": 40.0 + VERTICAL_SPACING}


@pytest.mark.parametrize("node_type", ["ai_transform", "ai_logic"])
def test_ai_nodes_get_model_defaults(node_type):
    assert create_node(node_type, []).config == {
        "model": DEFAULT_AI_MODEL,
        "systemInstruction": "",
        "input": "",
    }


@pytest.mark.parametrize("node_type", ["trigger", "image_generate", "external_action", "notify", "logic"])
def test_other_nodes_get_empty_config(node_type):
    assert default_config(node_type) == {}


def test_default_label_comes_from_registry():
    for node_type, meta in NODE_REGISTRY.items():
        assert create_node(node_type, []).label == meta["label"]


def test_unknown_type_rejected():
    with pytest.raises(UnknownNodeTypeError):
        create_node("webhook", [])


def test_ids_are_unique_across_rapid_creation():
    nodes: list[WorkflowNode] = []
    for _ in range(200):
        nodes.append(create_node("notify", nodes))
    assert len({n.id for n in nodes}) == 200


def test_colliding_id_is_regenerated():
    existing = [WorkflowNode(id="1000000000000123", type="trigger")]
    with (
        patch("app.services.node_factory.time.time", return_value=1_000_000_000.0),
        patch("app.services.node_factory.random.randint", side_effect=[123, 124]),
    ):
        node = create_node("notify", existing)
    assert node.id == "1000000000000124"
