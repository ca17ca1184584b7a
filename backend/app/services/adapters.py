"""
Capability adapters backed by Databricks model serving endpoints.

Text and image generation POST to {host}/serving-endpoints/{endpoint}/invocations.
The external action adapter simulates a repository commit against a registered
target. default_capabilities() bundles the three for the execution engine.
"""

import asyncio
import logging
from typing import Any

import httpx

from app.config import WorkflowConfig
from app.db import get_oauth_token
from app.engine.capabilities import Capabilities, ImageResult
from app.engine.rendering import render
from app.errors import CapabilityError, ExternalTargetError
from app.services.target_store import LocalTargetStore, get_target_store

logger = logging.getLogger(__name__)

PAYLOAD_PREVIEW_CHARS = 50


def _extract_text_from_databricks_response(data: Any) -> str:
    """Normalize Databricks serving responses to text payload."""
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            c0 = choices[0]
            if isinstance(c0, dict):
                message = c0.get("message")
                if isinstance(message, dict) and isinstance(message.get("content"), str):
                    return message["content"]
                if isinstance(c0.get("text"), str):
                    return c0["text"]
        if isinstance(data.get("output_text"), str):
            return data["output_text"]
        predictions = data.get("predictions")
        if isinstance(predictions, list) and predictions:
            p0 = predictions[0]
            if isinstance(p0, str):
                return p0
            if isinstance(p0, dict):
                for key in ("content", "text", "output_text", "response"):
                    if isinstance(p0.get(key), str):
                        return p0[key]
    return ""


def _extract_image_from_databricks_response(data: Any) -> str | None:
    """Return base64 image data from an images-style or predictions-style response."""
    if not isinstance(data, dict):
        return None
    for key in ("data", "predictions"):
        items = data.get(key)
        if isinstance(items, list) and items:
            first = items[0]
            if isinstance(first, str):
                return first
            if isinstance(first, dict):
                for field in ("b64_json", "image", "image_base64"):
                    if isinstance(first.get(field), str):
                        return first[field]
    return None


class _ServingEndpointClient:
    """Shared transport for Databricks serving endpoint invocations."""

    def __init__(self, config: WorkflowConfig, endpoint: str | None) -> None:
        self._config = config
        self._endpoint = endpoint

    def _headers(self) -> dict[str, str]:
        token = self._config.token or get_oauth_token()
        if not token:
            raise CapabilityError("No Databricks token available for model serving")
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def invoke(self, payload: dict[str, Any]) -> Any:
        if not self._config.is_configured:
            raise CapabilityError("DATABRICKS_HOST is not set; model serving is unavailable")
        if not self._endpoint:
            raise CapabilityError("No serving endpoint configured")
        url = f"{self._config.host.rstrip('/')}/serving-endpoints/{self._endpoint}/invocations"
        try:
            async with httpx.AsyncClient(timeout=self._config.request_timeout_seconds) as client:
                response = await client.post(url, headers=self._headers(), json=payload)
        except httpx.HTTPError as e:
            raise CapabilityError(f"Request to {self._endpoint} failed: {e}") from e
        if response.status_code >= 400:
            raise CapabilityError(
                f"Endpoint {self._endpoint} returned {response.status_code}"
            )
        return response.json()


class DatabricksTextTransform:
    """Runs an instruction over the pipeline input on a chat serving endpoint."""

    def __init__(self, config: WorkflowConfig) -> None:
        self._client = _ServingEndpointClient(config, config.text_endpoint)

    async def __call__(self, instruction: str, input_data: str) -> str:
        payload = {
            "messages": [
                {"role": "system", "content": instruction},
                {"role": "user", "content": f"Input Data: {input_data}"},
            ],
            "temperature": 0.3,
            "max_tokens": 2048,
        }
        text = _extract_text_from_databricks_response(await self._client.invoke(payload))
        if not text:
            raise CapabilityError("Model returned an empty response")
        return text


class DatabricksImageGenerate:
    """Generates a PNG data URI from a prompt. Reports failures instead of raising."""

    def __init__(self, config: WorkflowConfig) -> None:
        self._client = _ServingEndpointClient(config, config.image_endpoint)

    async def __call__(self, prompt: str) -> ImageResult:
        try:
            data = await self._client.invoke({"prompt": prompt, "n": 1, "size": "1024x1024"})
        except CapabilityError as e:
            logger.warning("Image generation failed: %s", e)
            return ImageResult(image_ref=None, error=str(e))
        encoded = _extract_image_from_databricks_response(data)
        if not encoded:
            return ImageResult(image_ref=None, error="No image data returned.")
        return ImageResult(image_ref=f"data:image/png;base64,{encoded}")


class SimulatedExternalAction:
    """
    Simulates an action (e.g. a commit) against a linked repository.

    Targets that are registered but disconnected are refused; names that are
    not registered are simulated as-is.
    """

    def __init__(
        self,
        config: WorkflowConfig,
        target_store: LocalTargetStore | None = None,
    ) -> None:
        self._latency = config.external_action_latency_seconds
        self._targets = target_store

    async def __call__(self, target: str, operation: str, payload: str) -> str:
        store = self._targets or get_target_store()
        registered = store.get_by_name(target)
        if registered is not None and not registered.connected:
            raise ExternalTargetError(f"Target {target} is not connected")
        if self._latency > 0:
            await asyncio.sleep(self._latency)
        return render(
            "external_action.txt.j2",
            target=target,
            operation=operation or "Commit",
            preview=payload[:PAYLOAD_PREVIEW_CHARS],
        )


def default_capabilities(config: WorkflowConfig | None = None) -> Capabilities:
    """Build the capability bundle from configuration."""
    config = config or WorkflowConfig.from_env()
    return Capabilities(
        text_transform=DatabricksTextTransform(config),
        image_generate=DatabricksImageGenerate(config),
        external_action=SimulatedExternalAction(config),
    )
