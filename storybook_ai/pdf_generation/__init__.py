"""
Printable PDF rendering for generated stories.
"""

from .builder import PAGE_SIZES, StorybookPDFBuilder, format_created_at

__all__ = ["PAGE_SIZES", "StorybookPDFBuilder", "format_created_at"]
