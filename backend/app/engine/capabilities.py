"""
Capability interfaces the execution engine calls but does not implement.

Each capability is an async callable. Concrete adapters live in
app.services.adapters; tests pass plain async functions.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass
class ImageResult:
    """Outcome of an image generation call. image_ref is None on failure."""

    image_ref: str | None
    error: str | None = None


class TextTransform(Protocol):
    async def __call__(self, instruction: str, input_data: str) -> str: ...


class ImageGenerate(Protocol):
    async def __call__(self, prompt: str) -> ImageResult: ...


class ExternalAction(Protocol):
    async def __call__(self, target: str, operation: str, payload: str) -> str: ...


@dataclass
class Capabilities:
    """The three capability adapters a pipeline run needs."""

    text_transform: TextTransform
    image_generate: ImageGenerate
    external_action: ExternalAction
