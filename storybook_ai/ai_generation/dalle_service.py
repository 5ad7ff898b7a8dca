"""
OpenAI DALL-E illustrations through LiteLLM's image generation API.
"""

from __future__ import annotations

import os
from typing import Any

from storybook_ai.common import ImageGenerationCallable, ImageResult, call_image_generation
from storybook_ai.errors import ImageGenerationError

from .prompting import ImagePrompt

DEFAULT_DALLE_MODEL = "dall-e-3"
DEFAULT_DALLE_SIZE = "1024x1024"


class DallEImageGenerator:
    """
    Generates one illustration per call with DALL-E.

    DALL-E takes a single prompt string, so the negative prompt travels inside
    the positive prompt text.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        size: str = DEFAULT_DALLE_SIZE,
        image_fn: ImageGenerationCallable | None = None,
    ) -> None:
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self._api_key:
            raise ValueError("OpenAI API key is required. Set OPENAI_API_KEY or pass api_key.")

        self._model = model or os.getenv("STORYBOOK_DALLE_MODEL") or DEFAULT_DALLE_MODEL
        self._size = size
        self._image_fn: ImageGenerationCallable = image_fn or call_image_generation

    @property
    def model(self) -> str:
        return self._model

    def generate_image(self, prompt: ImagePrompt, **model_kwargs: Any) -> str:
        """
        Request a single image and return its URL.
        """
        result: ImageResult = self._image_fn(
            model=self._model,
            prompt=prompt.positive,
            size=self._size,
            n=1,
            api_key=self._api_key,
            **model_kwargs,
        )
        if not result.urls:
            raise ImageGenerationError("DALL-E response did not contain an image URL.")
        return result.urls[0]
