"""
Service layer for producing structured stories via LiteLLM-compatible models.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from storybook_ai.common import ChatResult, CompletionCallable, call_chat_completion
from storybook_ai.errors import StorybookError, StoryDecodeError, StoryGenerationError

from .options import GenerationOptions
from .prompting import StoryPrompt, build_story_prompt
from .schema import StoryOutline, decode_story_outline

if TYPE_CHECKING:
    from storybook_ai.providers import TextBinding

logger = logging.getLogger(__name__)

JSON_RESPONSE_FORMAT = {"type": "json_object"}


class StoryTextGenerator:
    """
    Turns a prompt and generation options into a decoded story outline.

    One request, no retries: a failed call or an undecodable response is
    surfaced immediately as a :class:`StoryGenerationError`.
    """

    def __init__(
        self,
        *,
        binding: "TextBinding",
        completion_fn: CompletionCallable | None = None,
    ) -> None:
        self._binding = binding
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion

    @property
    def model(self) -> str:
        """Return the LiteLLM model identifier in use."""
        return self._binding.litellm_model

    def generate_outline(
        self,
        prompt: str,
        options: GenerationOptions,
        *,
        max_output_tokens: int | None = None,
        **response_kwargs: Any,
    ) -> StoryOutline:
        """
        Invoke the configured LLM and decode its answer against the story schema.
        """
        story_prompt: StoryPrompt = build_story_prompt(prompt, options)

        messages = [
            {"role": "system", "content": story_prompt.system},
            {"role": "user", "content": story_prompt.user},
        ]

        logger.info(
            "Requesting a %d page story from %s.", options.page_count, self.model
        )
        try:
            result: ChatResult = self._completion_fn(
                model=self.model,
                messages=messages,
                temperature=self._binding.temperature,
                max_tokens=max_output_tokens,
                api_key=self._binding.api_key,
                response_format=JSON_RESPONSE_FORMAT,
                **response_kwargs,
            )
        except StorybookError:
            raise
        except Exception as exc:
            logger.exception("Text generation request to %s failed.", self.model)
            raise StoryGenerationError(f"Text generation failed: {exc}") from exc

        if not result.text:
            raise StoryDecodeError("LLM response did not contain any text content.")

        outline = decode_story_outline(result.text)

        if len(outline.pages) != options.page_count:
            raise StoryDecodeError(
                f"Expected {options.page_count} pages, received {len(outline.pages)}."
            )

        return outline
