"""
Story generation utilities: options, schema, prompts, and the text-provider service.
"""

from .options import AGE_RANGES, PAGE_COUNT_RANGE, GenerationOptions
from .prompting import StoryPrompt, build_story_prompt
from .schema import (
    Character,
    Characterization,
    Outfit,
    Page,
    PhysicalTraits,
    Story,
    StoryMetadata,
    StoryOutline,
    decode_story_outline,
)
from .story_service import StoryTextGenerator

__all__ = [
    "AGE_RANGES",
    "PAGE_COUNT_RANGE",
    "Character",
    "Characterization",
    "GenerationOptions",
    "Outfit",
    "Page",
    "PhysicalTraits",
    "Story",
    "StoryMetadata",
    "StoryOutline",
    "StoryPrompt",
    "StoryTextGenerator",
    "build_story_prompt",
    "decode_story_outline",
]
