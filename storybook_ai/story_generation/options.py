"""
Caller-supplied options that shape a single story generation request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

AGE_RANGES: tuple[str, ...] = ("3-5", "5-8", "8-12", "12+")

PAGE_COUNT_RANGE = (1, 20)

DEFAULT_PAGE_COUNT = 5
DEFAULT_AGE_RANGE = "5-8"


def _coerce_page_count(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Expected an integer page count, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected an integer page count, got {value!r}") from exc


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off", ""}:
            return False
    if isinstance(value, int):
        return bool(value)
    raise ValueError(f"Expected a boolean includeImages flag, got {value!r}")


def _coerce_optional_str(value: Any) -> str | None:
    if value is None:
        return None

    text = str(value).strip()
    return text or None


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass(frozen=True)
class GenerationOptions:
    """
    Immutable generation options submitted with a prompt.

    Attributes
    ----------
    page_count:
        Number of pages the story must have, between 1 and 20.
    age_range:
        Target reader age band, one of ``3-5``, ``5-8``, ``8-12`` or ``12+``.
    include_images:
        Whether each page should be illustrated after the text is written.
    theme:
        Optional theme woven into the story (e.g. "Adventure").
    """

    page_count: int = DEFAULT_PAGE_COUNT
    age_range: str = DEFAULT_AGE_RANGE
    include_images: bool = True
    theme: str | None = None

    def __post_init__(self) -> None:
        lower, upper = PAGE_COUNT_RANGE
        if isinstance(self.page_count, bool) or not isinstance(self.page_count, int):
            raise ValueError(f"page_count must be an integer, got {self.page_count!r}")
        if not lower <= self.page_count <= upper:
            raise ValueError(
                f"page_count must fall between {lower} and {upper}, received {self.page_count}."
            )
        if self.age_range not in AGE_RANGES:
            supported = ", ".join(AGE_RANGES)
            raise ValueError(f"age_range must be one of {supported}, received {self.age_range!r}.")
        if self.theme is not None and not self.theme.strip():
            object.__setattr__(self, "theme", None)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GenerationOptions":
        """
        Build options from a dict-like object, accepting snake_case or camelCase keys.
        """
        page_count = _pick(data, "page_count", "pageCount")
        age_range = _pick(data, "age_range", "ageRange")
        include_images = _pick(data, "include_images", "includeImages")

        return cls(
            page_count=DEFAULT_PAGE_COUNT if page_count is None else _coerce_page_count(page_count),
            age_range=DEFAULT_AGE_RANGE if age_range is None else str(age_range).strip(),
            include_images=True if include_images is None else _coerce_bool(include_images),
            theme=_coerce_optional_str(data.get("theme")),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "pageCount": self.page_count,
            "ageRange": self.age_range,
            "includeImages": self.include_images,
        }
        if self.theme is not None:
            payload["theme"] = self.theme
        return payload
