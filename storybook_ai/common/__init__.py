"""
Common utilities shared across storybook_ai modules.
"""

from .llm import (
    ChatResult,
    CompletionCallable,
    ImageGenerationCallable,
    ImageResult,
    call_chat_completion,
    call_image_generation,
)

__all__ = [
    "ChatResult",
    "CompletionCallable",
    "ImageGenerationCallable",
    "ImageResult",
    "call_chat_completion",
    "call_image_generation",
]
