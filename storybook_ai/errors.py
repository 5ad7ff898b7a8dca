"""
Exception hierarchy shared by the storybook generation layers.
"""

from __future__ import annotations


class StorybookError(Exception):
    """Base class for every error raised by storybook_ai."""


class ConfigurationError(StorybookError, ValueError):
    """
    The AI service configuration is incomplete or selects an unsupported provider.

    Always raised before any network call is made, so the caller can fix the
    configuration and re-submit.
    """


class UnsupportedProviderError(ConfigurationError):
    """A provider tag has no binding for the requested capability."""

    def __init__(self, capability: str, service: str) -> None:
        super().__init__(f"Unsupported {capability} service: {service}")
        self.capability = capability
        self.service = service


class StoryGenerationError(StorybookError, RuntimeError):
    """The text provider call failed; no story was produced."""


class StoryDecodeError(StoryGenerationError):
    """The text provider response does not match the story schema."""


class ImageGenerationError(StorybookError, RuntimeError):
    """An image provider returned nothing usable for a single page."""


class InvalidPromptError(StoryGenerationError, ValueError):
    """The story prompt is empty or blank; no request was made."""
