"""
Fixed story schema and its explicit decoder.

The text provider is asked for a JSON object shaped like::

    {"title": str, "characters": [Character, ...], "pages": [Page, ...]}

Keys use the camelCase spelling of the original records (``physicalTraits``,
``timeOfDay``, ``imageUrl``), which is also how stories are persisted.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from storybook_ai.errors import StoryDecodeError

from .options import GenerationOptions

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)


def _pick(data: Mapping[str, Any], key: str, alias: str | None) -> Any:
    if key in data:
        return data[key]
    if alias is not None and alias in data:
        return data[alias]
    return None


def _require_mapping(value: Any, context: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise StoryDecodeError(f"{context} must be an object, got {type(value).__name__}.")
    return value


def _require_str(
    data: Mapping[str, Any], key: str, context: str, *, alias: str | None = None
) -> str:
    value = _pick(data, key, alias)
    if value is None:
        raise StoryDecodeError(f"{context} is missing required field '{key}'.")
    if not isinstance(value, str):
        raise StoryDecodeError(f"{context}.{key} must be a string, got {type(value).__name__}.")
    return value.strip()


def _optional_str(
    data: Mapping[str, Any], key: str, context: str, *, alias: str | None = None
) -> str | None:
    value = _pick(data, key, alias)
    if value is None:
        return None
    if not isinstance(value, str):
        raise StoryDecodeError(f"{context}.{key} must be a string, got {type(value).__name__}.")
    return value.strip() or None


def _require_list(data: Mapping[str, Any], key: str, context: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        raise StoryDecodeError(f"{context} is missing required field '{key}'.")
    if not isinstance(value, list):
        raise StoryDecodeError(f"{context}.{key} must be a list, got {type(value).__name__}.")
    return value


def _put(payload: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        payload[key] = value


@dataclass(frozen=True)
class PhysicalTraits:
    height: str
    build: str
    main_color: str
    distinguishing_features: str
    eyes: str
    expression: str
    age: str | None = None
    texture: str | None = None
    pattern: str | None = None
    other_features: str | None = None

    @classmethod
    def from_dict(cls, data: Any, context: str) -> "PhysicalTraits":
        data = _require_mapping(data, context)
        return cls(
            height=_require_str(data, "height", context),
            build=_require_str(data, "build", context),
            main_color=_require_str(data, "mainColor", context, alias="main_color"),
            distinguishing_features=_require_str(
                data, "distinguishingFeatures", context, alias="distinguishing_features"
            ),
            eyes=_require_str(data, "eyes", context),
            expression=_require_str(data, "expression", context),
            age=_optional_str(data, "age", context),
            texture=_optional_str(data, "texture", context),
            pattern=_optional_str(data, "pattern", context),
            other_features=_optional_str(data, "otherFeatures", context, alias="other_features"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "height": self.height,
            "build": self.build,
            "mainColor": self.main_color,
            "distinguishingFeatures": self.distinguishing_features,
            "eyes": self.eyes,
            "expression": self.expression,
        }
        _put(payload, "age", self.age)
        _put(payload, "texture", self.texture)
        _put(payload, "pattern", self.pattern)
        _put(payload, "otherFeatures", self.other_features)
        return payload


@dataclass(frozen=True)
class Outfit:
    clothing: str
    accessories: str | None = None
    colors: str | None = None

    @classmethod
    def from_dict(cls, data: Any, context: str) -> "Outfit":
        data = _require_mapping(data, context)
        return cls(
            clothing=_require_str(data, "clothing", context),
            accessories=_optional_str(data, "accessories", context),
            colors=_optional_str(data, "colors", context),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"clothing": self.clothing}
        _put(payload, "accessories", self.accessories)
        _put(payload, "colors", self.colors)
        return payload


@dataclass(frozen=True)
class Characterization:
    default_pose: str
    personality: str

    @classmethod
    def from_dict(cls, data: Any, context: str) -> "Characterization":
        data = _require_mapping(data, context)
        return cls(
            default_pose=_require_str(data, "defaultPose", context, alias="default_pose"),
            personality=_require_str(data, "personality", context),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"defaultPose": self.default_pose, "personality": self.personality}


@dataclass(frozen=True)
class Character:
    """
    One entry of the character sheet. Pages refer to characters by ``name``.
    """

    name: str
    species: str
    role: str
    physical_traits: PhysicalTraits
    outfit: Outfit | None = None
    characterization: Characterization | None = None

    @classmethod
    def from_dict(cls, data: Any, context: str = "character") -> "Character":
        data = _require_mapping(data, context)
        traits = _pick(data, "physicalTraits", "physical_traits")
        if traits is None:
            raise StoryDecodeError(f"{context} is missing required field 'physicalTraits'.")

        outfit = data.get("outfit")
        characterization = data.get("characterization")
        return cls(
            name=_require_str(data, "name", context),
            species=_require_str(data, "species", context),
            role=_require_str(data, "role", context),
            physical_traits=PhysicalTraits.from_dict(traits, f"{context}.physicalTraits"),
            outfit=None if outfit is None else Outfit.from_dict(outfit, f"{context}.outfit"),
            characterization=(
                None
                if characterization is None
                else Characterization.from_dict(characterization, f"{context}.characterization")
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "species": self.species,
            "role": self.role,
            "physicalTraits": self.physical_traits.to_dict(),
        }
        if self.outfit is not None:
            payload["outfit"] = self.outfit.to_dict()
        if self.characterization is not None:
            payload["characterization"] = self.characterization.to_dict()
        return payload


@dataclass
class Page:
    """
    A single story page.

    ``image_url`` stays ``None`` until the page's illustration request succeeds.
    """

    content: str
    image: str
    characters: list[str] = field(default_factory=list)
    mood: str | None = None
    time_of_day: str | None = None
    image_url: str | None = None

    @classmethod
    def from_dict(cls, data: Any, context: str = "page") -> "Page":
        data = _require_mapping(data, context)
        names = _require_list(data, "characters", context)
        for position, name in enumerate(names):
            if not isinstance(name, str):
                raise StoryDecodeError(
                    f"{context}.characters[{position}] must be a string, got {type(name).__name__}."
                )
        return cls(
            content=_require_str(data, "content", context),
            image=_require_str(data, "image", context),
            characters=[name.strip() for name in names],
            mood=_optional_str(data, "mood", context),
            time_of_day=_optional_str(data, "timeOfDay", context, alias="time_of_day"),
            image_url=_optional_str(data, "imageUrl", context, alias="image_url"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "content": self.content,
            "image": self.image,
            "characters": list(self.characters),
        }
        _put(payload, "mood", self.mood)
        _put(payload, "timeOfDay", self.time_of_day)
        _put(payload, "imageUrl", self.image_url)
        return payload


@dataclass
class StoryOutline:
    """Decoded text-provider output, before an id and timestamp are attached."""

    title: str
    characters: list[Character]
    pages: list[Page]

    @classmethod
    def from_dict(cls, data: Any) -> "StoryOutline":
        data = _require_mapping(data, "story")
        characters = [
            Character.from_dict(item, f"characters[{index}]")
            for index, item in enumerate(_require_list(data, "characters", "story"))
        ]
        pages = [
            Page.from_dict(item, f"pages[{index}]")
            for index, item in enumerate(_require_list(data, "pages", "story"))
        ]
        return cls(
            title=_require_str(data, "title", "story"),
            characters=characters,
            pages=pages,
        )


@dataclass(frozen=True)
class StoryMetadata:
    """The submitted generation options plus the creation timestamp."""

    options: GenerationOptions
    created_at: str

    @classmethod
    def from_dict(cls, data: Any) -> "StoryMetadata":
        data = _require_mapping(data, "metadata")
        try:
            options = GenerationOptions.from_mapping(data)
        except ValueError as exc:
            raise StoryDecodeError(f"metadata holds invalid generation options: {exc}") from exc
        return cls(
            options=options,
            created_at=_require_str(data, "createdAt", "metadata", alias="created_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload = self.options.to_dict()
        payload["createdAt"] = self.created_at
        return payload


@dataclass
class Story:
    """
    A generated story. Complete for display even if some pages lack ``image_url``.
    """

    id: str
    title: str
    metadata: StoryMetadata
    pages: list[Page]
    characters: list[Character] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "Story":
        data = _require_mapping(data, "story")
        metadata = data.get("metadata")
        if metadata is None:
            raise StoryDecodeError("story is missing required field 'metadata'.")
        raw_characters = data.get("characters") or []
        if not isinstance(raw_characters, list):
            raise StoryDecodeError("story.characters must be a list.")
        return cls(
            id=_require_str(data, "id", "story"),
            title=_require_str(data, "title", "story"),
            metadata=StoryMetadata.from_dict(metadata),
            pages=[
                Page.from_dict(item, f"pages[{index}]")
                for index, item in enumerate(_require_list(data, "pages", "story"))
            ],
            characters=[
                Character.from_dict(item, f"characters[{index}]")
                for index, item in enumerate(raw_characters)
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "metadata": self.metadata.to_dict(),
            "pages": [page.to_dict() for page in self.pages],
            "characters": [character.to_dict() for character in self.characters],
        }

    @property
    def illustrated_pages(self) -> int:
        return sum(1 for page in self.pages if page.image_url)


def decode_story_outline(text: str) -> StoryOutline:
    """
    Parse a text-provider response into a StoryOutline.

    Raises
    ------
    StoryDecodeError
        When the text is not JSON or any required field is missing or mistyped.
    """
    payload = _strip_code_fence(text)
    if not payload:
        raise StoryDecodeError("Text provider response was empty.")

    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise StoryDecodeError("Failed to parse story response as JSON.") from exc

    return StoryOutline.from_dict(parsed)


def find_character(characters: Sequence[Character], name: str) -> Character | None:
    for character in characters:
        if character.name == name:
            return character
    return None


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped
