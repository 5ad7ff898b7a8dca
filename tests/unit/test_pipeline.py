"""Unit tests for the end-to-end story pipeline."""

import pytest

from conftest import SleepRecorder, StubCompletion, StubImageClient, make_story_payload
from storybook_ai.config import AIServiceConfig, ServiceSelection
from storybook_ai.errors import ConfigurationError, StoryDecodeError, UnsupportedProviderError
from storybook_ai.pipeline import AIServiceManager
from storybook_ai.providers import DallEImageBinding, OpenAITextBinding
from storybook_ai.storage import ConfigurationStore, InMemoryKeyValueStore, StoryStore
from storybook_ai.story_generation import GenerationOptions


def _manager(config, completion, image_client=None, **kwargs):
    return AIServiceManager(
        config,
        completion_fn=completion,
        image_client=image_client or StubImageClient(),
        sleep=kwargs.pop("sleep", SleepRecorder()),
        **kwargs,
    )


class TestGenerateStory:
    @pytest.mark.asyncio
    async def test_brave_fox_with_one_failed_illustration(self, complete_config):
        completion = StubCompletion(make_story_payload(page_count=3))
        image_client = StubImageClient(fail_markers=("Scene 2:",))
        story_store = StoryStore(InMemoryKeyValueStore())
        manager = _manager(complete_config, completion, image_client, story_store=story_store)

        story = await manager.generate_story(
            "a brave fox",
            GenerationOptions(page_count=3, age_range="5-8", include_images=True, theme="Adventure"),
        )

        assert story.title == "Finn and the Dark Forest"
        assert len(story.pages) == 3
        assert story.pages[0].image_url is not None
        assert story.pages[1].image_url is None
        assert story.pages[2].image_url is not None
        assert story.illustrated_pages == 2
        assert story.metadata.options.page_count == 3
        assert story.metadata.created_at
        assert len(image_client.prompts) == 3
        user_message = completion.calls[0]["messages"][1]["content"]
        assert "The story should be about: a brave fox" in user_message
        assert "Theme: Adventure" in user_message
        assert story.metadata.options.theme == "Adventure"
        assert story_store.list() == [story]

    @pytest.mark.asyncio
    async def test_progress_stages_in_order(self, complete_config):
        completion = StubCompletion(make_story_payload(page_count=2))
        stages = []
        manager = _manager(complete_config, completion)

        await manager.generate_story(
            "a brave fox",
            GenerationOptions(page_count=2),
            progress_callback=lambda stage, payload: stages.append(stage),
        )

        assert stages[:4] == ["story:generating", "story:generated", "images:generating", "images:batch"]
        assert stages.count("image:done") == 2
        assert stages[-2:] == ["images:done", "story:complete"]

    @pytest.mark.asyncio
    async def test_without_images_no_image_requests(self, complete_config):
        completion = StubCompletion(make_story_payload(page_count=2))
        image_client = StubImageClient()
        manager = _manager(complete_config, completion, image_client)

        story = await manager.generate_story(
            "a brave fox", GenerationOptions(page_count=2, include_images=False)
        )

        assert image_client.prompts == []
        assert all(page.image_url is None for page in story.pages)

    @pytest.mark.asyncio
    async def test_incomplete_config_fails_before_any_request(self):
        config = AIServiceConfig(
            text_service=ServiceSelection("openai", "sk-text"),
            image_service=ServiceSelection("openai", ""),
        )
        completion = StubCompletion(make_story_payload())
        image_client = StubImageClient()
        manager = _manager(config, completion, image_client)

        with pytest.raises(ConfigurationError, match="not configured"):
            await manager.generate_story("a brave fox", GenerationOptions(page_count=3))

        assert completion.calls == []
        assert image_client.prompts == []

    @pytest.mark.asyncio
    async def test_decode_failure_stores_nothing(self, complete_config):
        story_store = StoryStore(InMemoryKeyValueStore())
        image_client = StubImageClient()
        manager = _manager(
            complete_config,
            StubCompletion(text="not json"),
            image_client,
            story_store=story_store,
        )

        with pytest.raises(StoryDecodeError):
            await manager.generate_story("a brave fox", GenerationOptions(page_count=3))

        assert story_store.list() == []
        assert image_client.prompts == []

    @pytest.mark.asyncio
    async def test_story_ids_are_unique(self, complete_config):
        manager = _manager(complete_config, StubCompletion(make_story_payload(page_count=1)))
        options = GenerationOptions(page_count=1, include_images=False)
        first = await manager.generate_story("a brave fox", options)
        second = await manager.generate_story("a brave fox", options)
        assert first.id != second.id

    def test_sync_wrapper(self, complete_config):
        manager = _manager(complete_config, StubCompletion(make_story_payload(page_count=1)))
        story = manager.generate_story_sync("a brave fox", GenerationOptions(page_count=1))
        assert story.pages[0].image_url is not None


class TestAIServiceManagerConstruction:
    def test_resolves_bindings(self, complete_config):
        manager = _manager(complete_config, StubCompletion())
        assert isinstance(manager.text_binding, OpenAITextBinding)
        assert isinstance(manager.image_binding, DallEImageBinding)

    def test_unsupported_provider_fails_at_construction(self):
        config = AIServiceConfig(
            text_service=ServiceSelection("google", "g-key"),
            image_service=ServiceSelection("openai", "sk-image"),
        )
        with pytest.raises(UnsupportedProviderError):
            AIServiceManager(config)

    def test_from_store_requires_configuration(self):
        with pytest.raises(ConfigurationError):
            AIServiceManager.from_store(ConfigurationStore(InMemoryKeyValueStore()))

    def test_from_store(self, complete_config):
        config_store = ConfigurationStore(InMemoryKeyValueStore())
        config_store.set(complete_config)
        manager = AIServiceManager.from_store(config_store, completion_fn=StubCompletion())
        assert manager.image_binding.api_key == "sk-image"
