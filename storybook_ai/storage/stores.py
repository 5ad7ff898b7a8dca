"""
Configuration and story persistence on top of a key-value store.
"""

from __future__ import annotations

from storybook_ai.config import AIServiceConfig
from storybook_ai.story_generation.schema import Story

from .kv import KeyValueStore

CONFIG_KEY = "ai_config"
STORIES_KEY = "stories"


class ConfigurationStore:
    """
    Holds the AI service configuration under a single named record.
    """

    def __init__(self, backend: KeyValueStore) -> None:
        self._backend = backend

    def get(self) -> AIServiceConfig | None:
        raw = self._backend.read(CONFIG_KEY)
        if raw is None:
            return None
        return AIServiceConfig.from_dict(raw)

    def set(self, config: AIServiceConfig) -> None:
        self._backend.write(CONFIG_KEY, config.to_dict())

    def is_configured(self) -> bool:
        """True iff a configuration exists and both API keys are non-empty."""
        config = self.get()
        return config is not None and config.is_complete()


class StoryStore:
    """
    Previously generated stories, most recent first. Stories are never updated or removed.
    """

    def __init__(self, backend: KeyValueStore) -> None:
        self._backend = backend

    def list(self) -> list[Story]:
        return [Story.from_dict(item) for item in self._raw_stories()]

    def append(self, story: Story) -> None:
        self._backend.write(STORIES_KEY, [story.to_dict(), *self._raw_stories()])

    def get(self, story_id: str) -> Story | None:
        for item in self._raw_stories():
            if isinstance(item, dict) and item.get("id") == story_id:
                return Story.from_dict(item)
        return None

    def _raw_stories(self) -> list:
        raw = self._backend.read(STORIES_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ValueError(f"Record '{STORIES_KEY}' must hold a list of stories.")
        return raw
