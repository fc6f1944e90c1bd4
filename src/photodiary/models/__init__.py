"""
Models module for photodiary.

This module contains data models and schemas:
- RawImage, EncodedImage, PhotoRecord: photo data classes
- Date key helpers
- DatabaseManager: DuckDB connection and schema management
"""

from .database import DatabaseManager, create_database
from .date_key import format_date_key, is_future, month_bounds, parse_date_key, today_key, validate_date_key
from .photo import EncodedImage, PhotoRecord, RawImage
from .schema import SCHEMA_VERSION, get_schema_statements, validate_schema_compatibility

__all__ = [
    "RawImage",
    "EncodedImage",
    "PhotoRecord",
    "DatabaseManager",
    "create_database",
    "format_date_key",
    "today_key",
    "parse_date_key",
    "validate_date_key",
    "month_bounds",
    "is_future",
    "SCHEMA_VERSION",
    "get_schema_statements",
    "validate_schema_compatibility",
]
