"""Shared fixtures for storybook_ai tests."""

import json

import pytest

from storybook_ai.common import ChatResult
from storybook_ai.config import AIServiceConfig, ServiceSelection


def pytest_configure(config):
    """Register custom markers used across test directories."""
    config.addinivalue_line(
        "markers", "requires_llm_api: mark test as requiring a real LLM API key"
    )


def make_character_payload(name="Finn the Fox", species="red fox", **overrides):
    payload = {
        "name": name,
        "species": species,
        "role": "hero",
        "physicalTraits": {
            "height": "small",
            "build": "slender",
            "mainColor": "bright orange",
            "distinguishingFeatures": "white-tipped tail",
            "eyes": "big amber eyes",
            "expression": "curious",
        },
        "outfit": {"clothing": "a green explorer vest", "accessories": "a tiny lantern"},
        "characterization": {"defaultPose": "standing on hind legs", "personality": "brave but shy"},
    }
    payload.update(overrides)
    return payload


def make_page_payload(index, characters=("Finn the Fox",), **overrides):
    payload = {
        "content": f"Page {index + 1} of the adventure.",
        "image": f"Scene {index + 1}: Finn walks through the moonlit forest.",
        "characters": list(characters),
    }
    payload.update(overrides)
    return payload


def make_story_payload(page_count=3, title="Finn and the Dark Forest", characters=None):
    return {
        "title": title,
        "characters": characters if characters is not None else [make_character_payload()],
        "pages": [make_page_payload(index) for index in range(page_count)],
    }


class StubCompletion:
    """Completion callable that records its calls and returns a canned story."""

    def __init__(self, payload=None, *, text=None, error=None):
        self.payload = payload
        self.text = text
        self.error = error
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        text = self.text if self.text is not None else json.dumps(self.payload)
        return ChatResult(text=text, raw=None)


class StubImageClient:
    """Image client returning a URL per prompt, failing for chosen scene markers."""

    def __init__(self, fail_markers=()):
        self.fail_markers = tuple(fail_markers)
        self.prompts = []

    def generate_image(self, prompt, **model_kwargs):
        self.prompts.append(prompt)
        for marker in self.fail_markers:
            if marker in prompt.positive:
                raise RuntimeError(f"provider rejected {marker}")
        return f"https://images.example/{len(self.prompts)}.png"


class SleepRecorder:
    """Async sleep replacement that records requested delays without waiting."""

    def __init__(self, events=None):
        self.delays = []
        self.events = events

    async def __call__(self, seconds):
        self.delays.append(seconds)
        if self.events is not None:
            self.events.append("sleep")


@pytest.fixture
def character_payload():
    return make_character_payload()


@pytest.fixture
def story_payload():
    return make_story_payload()


@pytest.fixture
def complete_config():
    return AIServiceConfig(
        text_service=ServiceSelection(service="openai", api_key="sk-text"),
        image_service=ServiceSelection(service="openai", api_key="sk-image"),
    )


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()
