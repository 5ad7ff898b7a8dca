"""
LiteLLM-powered chat completion and image generation helpers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, MutableMapping, Sequence

from litellm import completion, image_generation

ChatMessage = Mapping[str, Any]


@dataclass
class ChatResult:
    """
    Structured response returned from an LLM chat completion.
    """

    text: str
    raw: Any


@dataclass
class ImageResult:
    """
    URLs returned from an image generation call, plus the raw provider response.
    """

    urls: list[str] = field(default_factory=list)
    raw: Any = None


CompletionCallable = Callable[..., ChatResult]
ImageGenerationCallable = Callable[..., ImageResult]


def call_chat_completion(
    *,
    model: str,
    messages: Sequence[ChatMessage],
    temperature: float | None = None,
    max_tokens: int | None = None,
    api_key: str | None = None,
    **extra_kwargs: Any,
) -> ChatResult:
    """
    Invoke LiteLLM's `completion` API and return the consolidated text.
    """
    payload: MutableMapping[str, Any] = {
        "model": model,
        "messages": list(messages),
    }

    if temperature is not None:
        payload["temperature"] = temperature

    if max_tokens is not None:
        payload["max_tokens"] = max_tokens

    if api_key is not None:
        payload["api_key"] = api_key

    payload.update(extra_kwargs)

    response = completion(**payload)

    try:
        message = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RuntimeError("Unexpected LiteLLM response format.") from exc

    text = str(message or "").strip()
    return ChatResult(text=text, raw=response)


def call_image_generation(
    *,
    model: str,
    prompt: str,
    size: str | None = None,
    n: int | None = None,
    api_key: str | None = None,
    **extra_kwargs: Any,
) -> ImageResult:
    """
    Invoke LiteLLM's `image_generation` API and collect the returned image URLs.
    """
    payload: MutableMapping[str, Any] = {
        "model": model,
        "prompt": prompt,
    }

    if size is not None:
        payload["size"] = size

    if n is not None:
        payload["n"] = n

    if api_key is not None:
        payload["api_key"] = api_key

    payload.update(extra_kwargs)

    response = image_generation(**payload)

    data = _field(response, "data")
    if data is None:
        raise RuntimeError("Unexpected LiteLLM image response format.")

    urls = [url for url in (_field(item, "url") for item in data) if isinstance(url, str) and url]
    return ImageResult(urls=urls, raw=response)


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)
