"""
Orchestrates story generation: one structured text request, then per-page illustrations.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from storybook_ai.common import CompletionCallable
from storybook_ai.config import AIServiceConfig
from storybook_ai.errors import ConfigurationError
from storybook_ai.providers import (
    ImageBinding,
    ImageClient,
    TextBinding,
    resolve_image_binding,
    resolve_text_binding,
)
from storybook_ai.storage import ConfigurationStore, StoryStore
from storybook_ai.story_generation import (
    GenerationOptions,
    Story,
    StoryMetadata,
    StoryOutline,
    StoryTextGenerator,
)

from .image_batch import ImageBatchGenerator, ProgressCallback, SleepCallable

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "AI services not configured. Please set up your API keys."


class AIServiceManager:
    """
    High-level coordinator that chains together story and image generation.

    Provider bindings are resolved on construction, so an unsupported provider
    fails here, before any network call. ``generate_story`` additionally refuses
    to run unless both capabilities carry an API key.
    """

    def __init__(
        self,
        config: AIServiceConfig,
        *,
        completion_fn: CompletionCallable | None = None,
        image_client: ImageClient | None = None,
        sleep: SleepCallable | None = None,
        story_store: StoryStore | None = None,
    ) -> None:
        self._config = config
        logger.info("Initializing AI services with config: %s", config.redacted())

        self._text_binding: TextBinding = resolve_text_binding(config.text_service)
        self._image_binding: ImageBinding = resolve_image_binding(config.image_service)

        self._text_generator = StoryTextGenerator(
            binding=self._text_binding,
            completion_fn=completion_fn,
        )
        self._image_generator = ImageBatchGenerator(
            binding=self._image_binding,
            image_client=image_client,
            sleep=sleep,
        )
        self._story_store = story_store

    @classmethod
    def from_store(
        cls,
        config_store: ConfigurationStore,
        **kwargs: Any,
    ) -> "AIServiceManager":
        """
        Build a manager from the persisted configuration.

        Raises
        ------
        ConfigurationError
            When no configuration is stored or either API key is missing.
        """
        config = config_store.get()
        if config is None or not config.is_complete():
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)
        return cls(config, **kwargs)

    @property
    def text_binding(self) -> TextBinding:
        return self._text_binding

    @property
    def image_binding(self) -> ImageBinding:
        return self._image_binding

    async def generate_story(
        self,
        prompt: str,
        options: GenerationOptions,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> Story:
        """
        Generate a complete story, illustrating its pages when requested.

        Individual illustration failures never fail the call; the affected pages
        simply keep ``image_url`` unset.
        """
        if not self._config.is_complete():
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)

        logger.info(
            "Generating story (%d pages, ages %s, images=%s).",
            options.page_count,
            options.age_range,
            options.include_images,
        )
        self._notify(progress_callback, "story:generating", page_count=options.page_count)
        outline: StoryOutline = await asyncio.to_thread(
            self._text_generator.generate_outline, prompt, options
        )
        self._notify(
            progress_callback,
            "story:generated",
            title=outline.title,
            total_pages=len(outline.pages),
            total_characters=len(outline.characters),
        )

        if options.include_images:
            self._notify(progress_callback, "images:generating", total_pages=len(outline.pages))
            await self._image_generator.generate_images(
                outline.pages,
                outline.characters,
                progress_callback=progress_callback,
            )
            illustrated = sum(1 for page in outline.pages if page.image_url)
            self._notify(
                progress_callback,
                "images:done",
                illustrated_pages=illustrated,
                total_pages=len(outline.pages),
            )

        story = Story(
            id=str(uuid.uuid4()),
            title=outline.title,
            metadata=StoryMetadata(
                options=options,
                created_at=datetime.now(timezone.utc).isoformat(),
            ),
            pages=outline.pages,
            characters=outline.characters,
        )

        if self._story_store is not None:
            self._story_store.append(story)

        self._notify(progress_callback, "story:complete", story_id=story.id, title=story.title)
        return story

    def generate_story_sync(
        self,
        prompt: str,
        options: GenerationOptions,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> Story:
        """Run :meth:`generate_story` on a fresh event loop."""
        return asyncio.run(
            self.generate_story(prompt, options, progress_callback=progress_callback)
        )

    @staticmethod
    def _notify(
        callback: ProgressCallback | None,
        stage: str,
        **payload: Any,
    ) -> None:
        if callback is not None:
            callback(stage, payload)
