"""
Integration with Replicate for SDXL storybook illustrations.
"""

from __future__ import annotations

import os
from collections.abc import Iterable as IterableABC
from typing import Any

import replicate

from storybook_ai.errors import ImageGenerationError

from .prompting import ImagePrompt

DEFAULT_REPLICATE_MODEL = (
    "stability-ai/sdxl:39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b"
)
DEFAULT_IMAGE_SIZE = (1024, 1024)


class ReplicateImageGenerator:
    """
    Convenience wrapper around the Replicate client for storybook image generation.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN`` environment variable.
    model_identifier:
        Fully-qualified model string in the ``owner/model:version`` format. Falls back to
        ``REPLICATE_MODEL`` and then to the SDXL release the prompts were tuned for.
    width, height:
        Target resolution forwarded to the model.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        model_identifier: str | None = None,
        width: int = DEFAULT_IMAGE_SIZE[0],
        height: int = DEFAULT_IMAGE_SIZE[1],
        client: replicate.Client | None = None,
    ) -> None:
        self._api_token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if not self._api_token and not client:
            raise ValueError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

        self._model_identifier = (
            model_identifier or os.getenv("REPLICATE_MODEL") or DEFAULT_REPLICATE_MODEL
        )
        self._width = width
        self._height = height
        self._client = client or replicate.Client(api_token=self._api_token)

    @property
    def model_identifier(self) -> str:
        """Return the model identifier currently used."""
        return self._model_identifier

    def build_input(self, prompt: ImagePrompt, **model_kwargs: Any) -> dict[str, Any]:
        replicate_input: dict[str, Any] = {
            "prompt": prompt.positive,
            "negative_prompt": prompt.negative,
            "width": self._width,
            "height": self._height,
        }
        # Allow the caller to tweak model-specific knobs (e.g., guidance_scale, seed).
        replicate_input.update(model_kwargs)
        return replicate_input

    def generate_image(self, prompt: ImagePrompt, **model_kwargs: Any) -> str:
        """
        Run the model once and return the URL of the first image it produced.
        """
        output = self._client.run(
            self._model_identifier,
            input=self.build_input(prompt, **model_kwargs),
        )
        urls = normalize_image_outputs(output)
        if not urls:
            raise ImageGenerationError("Replicate returned no image output.")
        return urls[0]


def normalize_image_outputs(raw: Any) -> list[str]:
    """
    Normalize the image outputs returned by Replicate into a list of URL strings.
    """

    if raw is None:
        return []

    if isinstance(raw, str):
        return [raw]

    if isinstance(raw, bytes):
        return [raw.decode("utf-8", errors="ignore")]

    # FileOutput objects iterate over their bytes; the URL is what we keep.
    url = getattr(raw, "url", None)
    if isinstance(url, str):
        return [url]

    if isinstance(raw, IterableABC):
        collected = list(raw)
        if not collected:
            return []

        if all(isinstance(item, str) and len(item) == 1 for item in collected):
            return ["".join(collected)]

        normalized: list[str] = []
        for item in collected:
            if isinstance(item, str):
                normalized.append(item)
            elif isinstance(item, bytes):
                normalized.append(item.decode("utf-8", errors="ignore"))
            elif isinstance(getattr(item, "url", None), str):
                normalized.append(item.url)
            elif isinstance(item, IterableABC):
                normalized.extend(normalize_image_outputs(item))
            elif item is not None:
                normalized.append(str(item))
        return normalized

    return [str(raw)]
