"""
Sequential pipeline executor.

Walks the node list once, in list order, threading a single text carrier from
each node into the next. Each node type dispatches to a handler that returns
its output and the carrier for the following node; the run itself is a fold
over the node list that returns the results together with the final carrier.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel

from app.config import FailurePolicy
from app.engine.capabilities import Capabilities
from app.engine.rendering import render
from app.errors import PipelineAbortedError
from app.models.nodes import NODE_REGISTRY, NodeKind
from app.models.workflow import ExecutionResult, WorkflowNode

logger = logging.getLogger(__name__)

DEFAULT_INSTRUCTION = (
    "You are a data processor. Analyze the input and provide the requested output."
)
IMAGE_FALLBACK_PROMPT = "abstract art"
IMAGE_FAILED_MARKER = "[Image generation failed]"
EXTERNAL_OPERATION = "Commit"
NOTIFY_PREVIEW_CHARS = 50


@dataclass
class NodeOutcome:
    """Output of one node plus the carrier handed to the next node."""

    output: str
    carrier: str
    is_image: bool = False
    failed: bool = False


@dataclass
class PipelineRun:
    """Results of a run in execution order and the final carrier value."""

    results: list[ExecutionResult] = field(default_factory=list)
    carrier: str = ""


NodeHandler = Callable[[WorkflowNode, BaseModel | None, str, Capabilities], Awaitable[NodeOutcome]]


def _image_marker() -> str:
    return f"[Image generated at {datetime.now().strftime('%H:%M:%S')}]"


async def _run_trigger(node, config, carrier, capabilities) -> NodeOutcome:
    # A trigger seeds the pipeline; it ignores the incoming carrier.
    output = config.input or ""
    return NodeOutcome(output=output, carrier=output)


async def _run_ai_transform(node, config, carrier, capabilities) -> NodeOutcome:
    instruction = config.systemInstruction or DEFAULT_INSTRUCTION
    output = await capabilities.text_transform(instruction, carrier)
    return NodeOutcome(output=output, carrier=output)


async def _run_image_generate(node, config, carrier, capabilities) -> NodeOutcome:
    prompt = carrier or config.input or IMAGE_FALLBACK_PROMPT
    try:
        result = await capabilities.image_generate(prompt)
        image_ref, error = result.image_ref, result.error
    except Exception as e:
        logger.warning("Image generation raised for node %s: %s", node.id, e)
        image_ref, error = None, str(e)

    if not image_ref:
        detail = error or "No image data returned."
        return NodeOutcome(
            output=f"Error generating image: {detail}",
            carrier=IMAGE_FAILED_MARKER,
            failed=True,
        )
    # Downstream text nodes get a marker, never the raw image data
    return NodeOutcome(output=image_ref, carrier=_image_marker(), is_image=True)


async def _run_external_action(node, config, carrier, capabilities) -> NodeOutcome:
    target = config.repo or "Unknown"
    output = await capabilities.external_action(target, EXTERNAL_OPERATION, carrier)
    return NodeOutcome(output=output, carrier=output)


async def _run_notify(node, config, carrier, capabilities) -> NodeOutcome:
    output = render("notify.txt.j2", preview=carrier[:NOTIFY_PREVIEW_CHARS])
    return NodeOutcome(output=output, carrier=carrier)


async def _run_pass_through(node, config, carrier, capabilities) -> NodeOutcome:
    output = f"[Pass-through] No executable behaviour for node type '{node.type}'"
    return NodeOutcome(output=output, carrier=carrier)


_HANDLERS: dict[NodeKind, NodeHandler] = {
    NodeKind.TRIGGER: _run_trigger,
    NodeKind.AI_TRANSFORM: _run_ai_transform,
    NodeKind.IMAGE_GENERATE: _run_image_generate,
    NodeKind.EXTERNAL_ACTION: _run_external_action,
    NodeKind.NOTIFY: _run_notify,
    NodeKind.RESERVED: _run_pass_through,
}


async def execute_node(
    node: WorkflowNode, carrier: str, capabilities: Capabilities
) -> NodeOutcome:
    """Dispatch a single node by its type tag. Unknown tags pass through."""
    meta = NODE_REGISTRY.get(node.type)
    if meta is None:
        return await _run_pass_through(node, None, carrier, capabilities)
    config_model = meta["config_model"]
    config = config_model.model_validate(node.config) if config_model else None
    return await _HANDLERS[meta["kind"]](node, config, carrier, capabilities)


def _failure_outcome(node: WorkflowNode, error: Exception) -> NodeOutcome:
    return NodeOutcome(
        output=f"Error: {error}",
        carrier=f"[{node.type} failed]",
        failed=True,
    )


async def run_pipeline(
    nodes: Sequence[WorkflowNode],
    capabilities: Capabilities,
    *,
    failure_policy: FailurePolicy = FailurePolicy.RECORD,
    node_delay: float = 0.0,
    on_node_start: Callable[[WorkflowNode], None] | None = None,
    on_result: Callable[[ExecutionResult], None] | None = None,
) -> PipelineRun:
    """
    Execute nodes strictly in sequence and return results plus the final carrier.

    Under FailurePolicy.RECORD a failing node records an error result and the
    run continues. Under FailurePolicy.ABORT the failure raises
    PipelineAbortedError carrying the results recorded so far. Image
    generation failures never abort the run.
    """
    run = PipelineRun()
    carrier = ""
    for node in nodes:
        if on_node_start is not None:
            on_node_start(node)
        if node_delay > 0:
            await asyncio.sleep(node_delay)

        logger.debug("Executing node %s (%s)", node.id, node.type)
        try:
            outcome = await execute_node(node, carrier, capabilities)
        except Exception as e:
            if failure_policy is FailurePolicy.ABORT:
                run.carrier = carrier
                raise PipelineAbortedError(node.id, run, e) from e
            logger.warning("Node %s (%s) failed: %s", node.id, node.type, e)
            outcome = _failure_outcome(node, e)

        carrier = outcome.carrier
        result = ExecutionResult(
            nodeId=node.id,
            output=outcome.output,
            isImage=outcome.is_image,
            failed=outcome.failed,
        )
        run.results.append(result)
        if on_result is not None:
            on_result(result)

    run.carrier = carrier
    return run
