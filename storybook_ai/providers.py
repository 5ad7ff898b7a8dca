"""
Provider bindings: the closed set of backends supported for each capability.

A binding is resolved from a :class:`ServiceSelection` once, when the service
manager is built, so an unsupported provider is reported before any request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Protocol, Union

from storybook_ai.ai_generation import DallEImageGenerator, ImagePrompt, ReplicateImageGenerator
from storybook_ai.ai_generation.dalle_service import DEFAULT_DALLE_MODEL, DEFAULT_DALLE_SIZE
from storybook_ai.ai_generation.replicate_service import (
    DEFAULT_IMAGE_SIZE,
    DEFAULT_REPLICATE_MODEL,
)
from storybook_ai.config import ServiceSelection
from storybook_ai.errors import UnsupportedProviderError

DEFAULT_OPENAI_TEXT_MODEL = "o3-mini"
DEFAULT_ANTHROPIC_TEXT_MODEL = "claude-3-opus-20240229"

# DALL-E 3 allows roughly 7 images per minute; 6 leaves some headroom.
DALLE_BATCH_SIZE = 6
DALLE_BATCH_DELAY_SECONDS = 60.0


class ImageClient(Protocol):
    def generate_image(self, prompt: ImagePrompt, **model_kwargs: Any) -> str: ...


@dataclass(frozen=True)
class BatchPolicy:
    """
    Pacing for providers with a low per-minute request ceiling.

    Requests run ``batch_size`` at a time with ``delay_seconds`` between batches.
    """

    batch_size: int = DALLE_BATCH_SIZE
    delay_seconds: float = DALLE_BATCH_DELAY_SECONDS

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1.")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds cannot be negative.")


@dataclass(frozen=True)
class OpenAITextBinding:
    api_key: str
    model: str = field(
        default_factory=lambda: os.getenv("STORYBOOK_OPENAI_TEXT_MODEL") or DEFAULT_OPENAI_TEXT_MODEL
    )
    # Reasoning models reject a temperature.
    temperature: float | None = None

    @property
    def service(self) -> str:
        return "openai"

    @property
    def litellm_model(self) -> str:
        return f"openai/{self.model}"


@dataclass(frozen=True)
class AnthropicTextBinding:
    api_key: str
    model: str = field(
        default_factory=lambda: os.getenv("STORYBOOK_ANTHROPIC_TEXT_MODEL")
        or DEFAULT_ANTHROPIC_TEXT_MODEL
    )
    temperature: float | None = 0.7

    @property
    def service(self) -> str:
        return "anthropic"

    @property
    def litellm_model(self) -> str:
        return f"anthropic/{self.model}"


@dataclass(frozen=True)
class DallEImageBinding:
    api_key: str
    model: str = DEFAULT_DALLE_MODEL
    size: str = DEFAULT_DALLE_SIZE
    policy: BatchPolicy | None = field(default_factory=BatchPolicy)

    @property
    def service(self) -> str:
        return "openai"


@dataclass(frozen=True)
class ReplicateImageBinding:
    api_key: str
    model_identifier: str = DEFAULT_REPLICATE_MODEL
    width: int = DEFAULT_IMAGE_SIZE[0]
    height: int = DEFAULT_IMAGE_SIZE[1]
    policy: BatchPolicy | None = None

    @property
    def service(self) -> str:
        return "replicate"


TextBinding = Union[OpenAITextBinding, AnthropicTextBinding]
ImageBinding = Union[DallEImageBinding, ReplicateImageBinding]


def resolve_text_binding(selection: ServiceSelection) -> TextBinding:
    match selection.service:
        case "openai":
            return OpenAITextBinding(api_key=selection.api_key)
        case "anthropic":
            return AnthropicTextBinding(api_key=selection.api_key)
        case _:
            raise UnsupportedProviderError("text", selection.service)


def resolve_image_binding(selection: ServiceSelection) -> ImageBinding:
    match selection.service:
        case "openai":
            return DallEImageBinding(api_key=selection.api_key)
        case "replicate":
            return ReplicateImageBinding(api_key=selection.api_key)
        case _:
            raise UnsupportedProviderError("image", selection.service)


def build_image_client(binding: ImageBinding) -> ImageClient:
    """
    Instantiate the SDK wrapper that serves an image binding.
    """
    match binding:
        case DallEImageBinding():
            return DallEImageGenerator(
                api_key=binding.api_key,
                model=binding.model,
                size=binding.size,
            )
        case ReplicateImageBinding():
            return ReplicateImageGenerator(
                api_token=binding.api_key,
                model_identifier=binding.model_identifier,
                width=binding.width,
                height=binding.height,
            )
        case _:
            raise UnsupportedProviderError("image", type(binding).__name__)
