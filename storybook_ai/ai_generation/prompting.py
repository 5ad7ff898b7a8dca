"""
Prompt construction for per-page storybook illustrations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from storybook_ai.story_generation.prompting import BASE_ART_STYLE
from storybook_ai.story_generation.schema import Character, Page, find_character

QUALITY_REQUIREMENTS = "highly detailed, masterpiece, professional, high quality, sharp focus"

NEGATIVE_PROMPT = (
    "low quality, blurry, distorted, disfigured, bad anatomy, inconsistent style, "
    "photorealistic, out of character designs, incorrect species features"
)

DEFAULT_MOOD = "neutral"
DEFAULT_TIME_OF_DAY = "daytime"


@dataclass(frozen=True)
class ImagePrompt:
    """Container for the positive and negative prompts passed to the image model."""

    positive: str
    negative: str = NEGATIVE_PROMPT


def describe_character(character: Character) -> str:
    """
    Render one character-sheet entry as an appearance description.
    """
    traits = character.physical_traits
    color = f"{traits.main_color} with {traits.pattern}" if traits.pattern else traits.main_color
    physical_parts = [
        traits.height,
        f"{traits.build} build",
        color,
        f"{traits.texture} texture" if traits.texture else None,
        traits.distinguishing_features,
    ]
    physical = ", ".join(part for part in physical_parts if part)

    outfit = ""
    if character.outfit is not None:
        outfit = f" wearing {character.outfit.clothing}"
        if character.outfit.accessories:
            outfit += f" with {character.outfit.accessories}"

    characterization = ""
    if character.characterization is not None:
        characterization = (
            f". {character.characterization.default_pose}, "
            f"{character.characterization.personality}"
        )

    return (
        f"{character.name} ({character.species}): {physical}. "
        f"{traits.eyes}, {traits.expression} expression{outfit}{characterization}"
    )


def build_character_descriptions(names: Sequence[str], characters: Sequence[Character]) -> str:
    """
    Describe the characters listed on a page, in page order.

    Names that are not on the character sheet contribute nothing.
    """
    descriptions = []
    for name in names:
        character = find_character(characters, name)
        if character is not None:
            descriptions.append(describe_character(character))
    return ".\n".join(descriptions)


def build_page_image_prompt(page: Page, characters: Sequence[Character]) -> ImagePrompt:
    """
    Build the enriched illustration prompt for a single page.
    """
    character_descriptions = build_character_descriptions(page.characters, characters)

    positive_prompt = f"""{BASE_ART_STYLE}.

Characters in scene:
{character_descriptions}

Scene mood: {page.mood or DEFAULT_MOOD}
Time of day: {page.time_of_day or DEFAULT_TIME_OF_DAY}

Quality requirements: {QUALITY_REQUIREMENTS}.
Negative prompt: {NEGATIVE_PROMPT}.

Scene description: {page.image}"""

    return ImagePrompt(positive=positive_prompt)
