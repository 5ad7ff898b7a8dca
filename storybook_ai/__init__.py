"""
storybook_ai: children's story generation with LLM text and per-page illustrations.
"""

from .config import AIServiceConfig, ServiceSelection
from .errors import (
    ConfigurationError,
    ImageGenerationError,
    InvalidPromptError,
    StorybookError,
    StoryDecodeError,
    StoryGenerationError,
    UnsupportedProviderError,
)
from .pdf_generation import StorybookPDFBuilder
from .pipeline import AIServiceManager, ImageBatchGenerator
from .storage import (
    ConfigurationStore,
    InMemoryKeyValueStore,
    StoryStore,
    YamlFileKeyValueStore,
)
from .story_generation import GenerationOptions, Story

__all__ = [
    "AIServiceConfig",
    "AIServiceManager",
    "ConfigurationError",
    "ConfigurationStore",
    "GenerationOptions",
    "ImageBatchGenerator",
    "ImageGenerationError",
    "InvalidPromptError",
    "InMemoryKeyValueStore",
    "ServiceSelection",
    "Story",
    "StoryDecodeError",
    "StoryGenerationError",
    "StoryStore",
    "StorybookError",
    "StorybookPDFBuilder",
    "UnsupportedProviderError",
    "YamlFileKeyValueStore",
]
