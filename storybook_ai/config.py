"""
AI service configuration: which provider serves each capability, and with which key.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

KNOWN_SERVICES: tuple[str, ...] = ("openai", "anthropic", "stability", "google", "replicate")

DEFAULT_SERVICE = "openai"

# Environment variables consulted, in order, for a provider's API key.
_PROVIDER_KEY_ENV: dict[str, tuple[str, ...]] = {
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
    "replicate": ("REPLICATE_API_TOKEN",),
    "stability": ("STABILITY_API_KEY",),
    "google": ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
}


def _coerce_service(value: Any, *, field_name: str) -> str:
    if value is None:
        return DEFAULT_SERVICE

    text = str(value).strip().lower()
    if not text:
        raise ValueError(f"'{field_name}' must name a service, got an empty value.")
    return text


def _coerce_api_key(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"API keys must be strings, got {type(value).__name__}.")
    return value.strip()


def _key_from_env(service: str, override_var: str) -> str:
    override = os.getenv(override_var)
    if override:
        return override.strip()
    for variable in _PROVIDER_KEY_ENV.get(service, ()):
        value = os.getenv(variable)
        if value:
            return value.strip()
    return ""


@dataclass(frozen=True)
class ServiceSelection:
    """
    Provider choice and credential for one capability (text or image).
    """

    service: str = DEFAULT_SERVICE
    api_key: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, field_name: str) -> "ServiceSelection":
        if not isinstance(data, Mapping):
            raise ValueError(f"'{field_name}' must be a mapping with 'service' and 'apiKey'.")

        return cls(
            service=_coerce_service(data.get("service"), field_name=f"{field_name}.service"),
            api_key=_coerce_api_key(data.get("apiKey", data.get("api_key"))),
        )

    def to_dict(self) -> dict[str, str]:
        return {"service": self.service, "apiKey": self.api_key}

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class AIServiceConfig:
    """
    Per-capability provider selection, as entered in the settings dialog.

    Attributes
    ----------
    text_service:
        Provider and key used for the structured story request.
    image_service:
        Provider and key used for per-page illustrations.
    """

    text_service: ServiceSelection
    image_service: ServiceSelection

    @classmethod
    def default(cls) -> "AIServiceConfig":
        """OpenAI for both capabilities, no keys yet."""
        return cls(text_service=ServiceSelection(), image_service=ServiceSelection())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AIServiceConfig":
        if not isinstance(data, Mapping):
            raise ValueError("AI service configuration must deserialize to a mapping.")

        text_payload = data.get("textService", data.get("text_service"))
        image_payload = data.get("imageService", data.get("image_service"))
        if text_payload is None or image_payload is None:
            raise ValueError("AI service configuration must include 'textService' and 'imageService'.")

        return cls(
            text_service=ServiceSelection.from_dict(text_payload, field_name="textService"),
            image_service=ServiceSelection.from_dict(image_payload, field_name="imageService"),
        )

    @classmethod
    def from_env(cls) -> "AIServiceConfig":
        """
        Build a configuration from environment variables.

        ``STORYBOOK_TEXT_SERVICE`` / ``STORYBOOK_IMAGE_SERVICE`` pick the providers
        (default ``openai``). Keys come from ``STORYBOOK_TEXT_API_KEY`` /
        ``STORYBOOK_IMAGE_API_KEY`` or the provider's usual variable
        (``OPENAI_API_KEY``, ``ANTHROPIC_API_KEY``, ``REPLICATE_API_TOKEN``, ...).
        """
        text_service = _coerce_service(
            os.getenv("STORYBOOK_TEXT_SERVICE"), field_name="STORYBOOK_TEXT_SERVICE"
        )
        image_service = _coerce_service(
            os.getenv("STORYBOOK_IMAGE_SERVICE"), field_name="STORYBOOK_IMAGE_SERVICE"
        )
        return cls(
            text_service=ServiceSelection(
                service=text_service,
                api_key=_key_from_env(text_service, "STORYBOOK_TEXT_API_KEY"),
            ),
            image_service=ServiceSelection(
                service=image_service,
                api_key=_key_from_env(image_service, "STORYBOOK_IMAGE_API_KEY"),
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "textService": self.text_service.to_dict(),
            "imageService": self.image_service.to_dict(),
        }

    def is_complete(self) -> bool:
        """True iff both capabilities carry a non-empty API key."""
        return self.text_service.has_api_key and self.image_service.has_api_key

    def redacted(self) -> dict[str, str]:
        """Provider names only, safe for logs."""
        return {
            "textService": self.text_service.service,
            "imageService": self.image_service.service,
        }
