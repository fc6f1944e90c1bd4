"""
DuckDB connection and schema management for photodiary.

This module owns the single connection to the diary file. It is synchronous;
the photo store decides which thread it runs on.
"""

from pathlib import Path
from typing import Any

import duckdb

from ..logging_config import get_logger
from .schema import SCHEMA_VERSION, get_required_columns, get_schema_statements, validate_schema_compatibility

logger = get_logger(__name__)


class DatabaseManager:
    """
    Manages the DuckDB connection and schema for one diary file.
    """

    def __init__(self, db_path: str):
        """
        Initialize DatabaseManager.

        Args:
            db_path: Path to the DuckDB database file, or ``:memory:``
        """
        self.db_path = db_path
        self._connection: duckdb.DuckDBPyConnection | None = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def connect(self) -> duckdb.DuckDBPyConnection:
        """
        Get or create a database connection.

        Returns:
            DuckDB connection object
        """
        if self._connection is None:
            self._connection = duckdb.connect(self.db_path)
            logger.info("database_connected", db_path=self.db_path)

        return self._connection

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.info("database_closed", db_path=self.db_path)

    def initialize_schema(self) -> None:
        """
        Create tables that do not exist yet and record the schema version.

        Raises:
            RuntimeError: If the DDL does not match the photo model
            duckdb.Error: If database operations fail
        """
        if not validate_schema_compatibility():
            raise RuntimeError("Schema is not compatible with PhotoRecord model")

        conn = self.connect()

        try:
            for statement in get_schema_statements():
                logger.debug("executing_sql", statement=statement)
                conn.execute(statement)

            if self.get_schema_version() is None:
                conn.execute("INSERT INTO schema_info (version) VALUES (?)", (SCHEMA_VERSION,))

            logger.info("database_schema_initialized", schema_version=SCHEMA_VERSION)

        except duckdb.Error as e:
            logger.error("database_schema_initialization_failed", error=str(e))
            raise

    def get_schema_version(self) -> int | None:
        """Highest schema version recorded in the file, None for a fresh file."""
        conn = self.connect()
        row = conn.execute("SELECT max(version) FROM schema_info").fetchone()
        return row[0] if row else None

    def verify_schema(self) -> bool:
        """
        Verify that the photos table exists with every required column.

        Returns:
            True if schema is valid, False otherwise
        """
        conn = self.connect()

        try:
            columns = conn.execute("PRAGMA table_info(photos)").fetchall()
        except duckdb.Error as e:
            logger.warning("schema_verification_failed", error=str(e))
            return False

        column_names = {col[1] for col in columns}  # col[1] is column name

        missing_columns = get_required_columns() - column_names
        if missing_columns:
            logger.warning("schema_missing_columns", missing_columns=sorted(missing_columns))
            return False

        logger.debug("schema_verification_successful")
        return True

    def execute_query(self, query: str, parameters: tuple | None = None) -> list[tuple]:
        """
        Execute a SQL statement and return its rows.

        Raises:
            duckdb.Error: If query execution fails
        """
        conn = self.connect()

        if parameters:
            result = conn.execute(query, parameters)
        else:
            result = conn.execute(query)

        return result.fetchall()

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def create_database(db_path: str) -> DatabaseManager:
    """
    Open (creating if needed) a diary database and make sure its schema is in place.

    Args:
        db_path: Path where the database file lives

    Returns:
        Connected DatabaseManager instance

    Raises:
        RuntimeError: If the schema cannot be verified after initialization
        duckdb.Error, OSError: If the file cannot be created or opened
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    db_manager = DatabaseManager(db_path)
    try:
        db_manager.initialize_schema()

        if not db_manager.verify_schema():
            raise RuntimeError("Schema verification failed after creation")
    except Exception:
        db_manager.close()
        raise

    return db_manager
