"""
End-to-end orchestration for story and image generation.
"""

from .image_batch import ImageBatchGenerator, apply_image_results, plan_batches
from .pipeline import AIServiceManager

__all__ = [
    "AIServiceManager",
    "ImageBatchGenerator",
    "apply_image_results",
    "plan_batches",
]
