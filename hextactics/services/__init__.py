"""
Services package for the hex tactics engine.

Provides the content table loader.
"""

from .content_loader import ContentLoader, get_content_loader

__all__ = [
    "ContentLoader",
    "get_content_loader",
]
