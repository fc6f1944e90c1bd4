"""
Services module for photodiary.

This module contains the service classes:
- ImageNormalizer: downscale and re-encode images with a size cap
- PhotoStore: DuckDB-backed date-keyed photo persistence
- PhotoDiary: the facade composing both
"""

from .diary import PhotoDiary, open_diary
from .image_normalizer import ImageNormalizer
from .photo_store import DeleteOutcome, PhotoStore

__all__ = [
    "ImageNormalizer",
    "PhotoStore",
    "DeleteOutcome",
    "PhotoDiary",
    "open_diary",
]
