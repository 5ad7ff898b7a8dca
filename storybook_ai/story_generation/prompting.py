"""
Prompt construction for the structured story request.
"""

from __future__ import annotations

from dataclasses import dataclass

from storybook_ai.errors import InvalidPromptError

from .options import GenerationOptions

DEFAULT_THEME_TEXT = "none specified"

BASE_ART_STYLE = (
    "Digital art in the style of modern children's book illustrations, soft colors, "
    "detailed but not overly complex"
)

OUTPUT_FORMAT = """Output format:
Return valid JSON with exactly these fields:
{
  "title": "string, the story title",
  "characters": [
    {
      "name": "string",
      "species": "string",
      "role": "string, the character's role in the story",
      "physicalTraits": {
        "height": "string",
        "build": "string",
        "age": "string (optional)",
        "mainColor": "string",
        "texture": "string (optional)",
        "pattern": "string (optional)",
        "distinguishingFeatures": "string",
        "eyes": "string",
        "expression": "string",
        "otherFeatures": "string (optional)"
      },
      "outfit": {
        "clothing": "string",
        "accessories": "string (optional)",
        "colors": "string (optional)"
      },
      "characterization": {
        "defaultPose": "string",
        "personality": "string"
      }
    }
  ],
  "pages": [
    {
      "content": "string, the text printed on the page",
      "image": "string, the image prompt for the page",
      "characters": ["names of characters in the scene, exactly as in the character sheet"],
      "mood": "string (optional)",
      "timeOfDay": "string (optional)"
    }
  ]
}
"outfit" and "characterization" may be omitted. Omit optional fields rather than sending null.
Do not include commentary outside the JSON."""


@dataclass(frozen=True)
class StoryPrompt:
    """
    Container for the system and user prompts passed to the text provider.
    """

    system: str
    user: str


def build_system_prompt() -> str:
    return f"""You are a creative storyteller who writes engaging children's stories.
Your task is to write stories that are:
- Age-appropriate and engaging
- Well-structured with natural page breaks
- Clear and easy to understand
- Educational and entertaining

Before writing the story, you must first create detailed character descriptions that will be used consistently throughout the story. For each character, include:
- Name and role in the story
- Physical appearance (height, build, distinguishing features)
- Clothing style and typical outfit
- Facial features and expressions
- Any accessories or props they commonly use

When writing the story and image prompts:
1. Always reference the character descriptions exactly as established, paying close attention to the character's species, physical traits, and outfit.
2. Maintain consistent scale and proportions between characters
3. Keep clothing and accessories consistent unless the story specifically mentions changes
4. Use the same art style descriptors for all images

For visual consistency, every image prompt must:
1. Start with the base style: "{BASE_ART_STYLE}"
2. Include specific character details from the character sheet
3. Describe the exact camera angle and composition
4. Specify lighting and atmosphere
5. Include environmental details that remain consistent throughout the story

{OUTPUT_FORMAT}"""


def build_user_prompt(prompt: str, options: GenerationOptions) -> str:
    theme = options.theme or DEFAULT_THEME_TEXT
    return f"""Write a {options.page_count} page story suitable for ages {options.age_range}.
The story should be about: {prompt}
Theme: {theme}

The "pages" list must contain exactly {options.page_count} entries.
Make sure each page's content is appropriate in length for a children's book page, given the age range.
For example, older audiences should get a couple paragraphs per page, while younger audiences might do better with a short single paragraph per page.
The tone and complexity should also reflect the age range.
First, provide a detailed character sheet for all main characters.
Then, for each page's image prompt:
1. Start with the base art style
2. Include relevant character details from the character sheet, paying close attention to the character's species, physical traits, and outfit.
3. Describe the specific scene composition, camera angle, and lighting
4. Maintain consistency with previous scenes"""


def build_story_prompt(prompt: str, options: GenerationOptions) -> StoryPrompt:
    """
    Build the prompt pair used to request a complete structured story.
    """
    if not prompt or not prompt.strip():
        raise InvalidPromptError("Story prompt must not be empty.")

    return StoryPrompt(
        system=build_system_prompt(),
        user=build_user_prompt(prompt.strip(), options),
    )
