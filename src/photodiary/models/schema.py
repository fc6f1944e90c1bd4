"""
Database schema definitions for photodiary.

One logical table, ``photos``, keyed by date. Schema changes must stay
additive so that a diary written by an older version opens without a data
migration.
"""

SCHEMA_VERSION = 1

# date_key is the primary key; its index doubles as the range scan index
PHOTOS_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS photos (
    date_key TEXT PRIMARY KEY,
    image BLOB NOT NULL,
    mime_type TEXT NOT NULL,
    width INTEGER NOT NULL,
    height INTEGER NOT NULL,
    quality DOUBLE NOT NULL,
    created_at TIMESTAMP NOT NULL
);
"""

SCHEMA_INFO_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_info (
    version INTEGER NOT NULL,
    applied_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

PHOTO_COLUMNS = (
    "date_key",
    "image",
    "mime_type",
    "width",
    "height",
    "quality",
    "created_at",
)

ALL_SCHEMA_STATEMENTS = [PHOTOS_TABLE_SCHEMA, SCHEMA_INFO_TABLE_SCHEMA]


def get_schema_statements() -> list[str]:
    """
    Get all database schema creation statements.

    Returns:
        List of SQL statements to create tables
    """
    return ALL_SCHEMA_STATEMENTS


def get_required_columns() -> set[str]:
    """Columns every ``photos`` table must have."""
    return set(PHOTO_COLUMNS)


def validate_schema_compatibility() -> bool:
    """
    Check that the DDL declares every column PhotoRecord reads back.

    Returns:
        True if schema is compatible, False otherwise
    """
    schema_lower = PHOTOS_TABLE_SCHEMA.lower()
    return all(column in schema_lower for column in PHOTO_COLUMNS)
