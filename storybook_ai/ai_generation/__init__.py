"""
AI image generation package for storybook_ai.
"""

from .dalle_service import DallEImageGenerator
from .prompting import (
    ImagePrompt,
    build_character_descriptions,
    build_page_image_prompt,
    describe_character,
)
from .replicate_service import ReplicateImageGenerator, normalize_image_outputs

__all__ = [
    "DallEImageGenerator",
    "ImagePrompt",
    "ReplicateImageGenerator",
    "build_character_descriptions",
    "build_page_image_prompt",
    "describe_character",
    "normalize_image_outputs",
]
