"""
Date-keyed photo store backed by DuckDB.

Each calendar day holds at most one PhotoRecord. Every operation is a single
SQL statement, so a reader never sees a half-written record. Range queries
rely on zero-padded date keys sorting chronologically, which turns "all photos
in March" into one primary-key range scan.

All database work for a store instance runs on its own single-worker
executor. The event loop is never blocked, and the DuckDB connection is only
ever touched from that one thread.
"""

import asyncio
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

import duckdb

from ..errors import InvalidInputError, StoreError
from ..logging_config import get_logger, log_performance
from ..models.database import DatabaseManager, create_database
from ..models.date_key import is_date_key_shape, validate_date_key
from ..models.photo import EncodedImage, PhotoRecord

logger = get_logger(__name__)

T = TypeVar("T")

# Failures of the persistence engine that become StoreError
PERSISTENCE_ERRORS = (duckdb.Error, OSError, RuntimeError)


class DeleteOutcome(Enum):
    """Result of a delete; NOT_FOUND is a normal outcome, not a failure."""

    DELETED = "deleted"
    NOT_FOUND = "not_found"


class PhotoStore:
    """
    Persistent mapping from date key to one photo.

    The store is constructed explicitly and must be opened before use and
    closed on shutdown, either with :meth:`open` / :meth:`close` or as an
    async context manager.
    """

    def __init__(self, db_path: str | Path):
        """
        Args:
            db_path: DuckDB file for the diary, or ``:memory:``
        """
        self.db_path = str(db_path)
        self._db_manager: DatabaseManager | None = None
        self._executor: ThreadPoolExecutor | None = None
        # serializes open() and close() so a connection is never opened twice
        self._lifecycle_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._db_manager is not None

    async def open(self) -> "PhotoStore":
        """
        Open the diary file, creating it and its schema if missing.

        Raises:
            StoreError: If the file cannot be opened or initialized
        """
        async with self._lifecycle_lock:
            if self.is_open:
                return self

            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="photo-store")
            loop = asyncio.get_running_loop()

            try:
                db_manager = await loop.run_in_executor(executor, create_database, self.db_path)
            except PERSISTENCE_ERRORS as e:
                executor.shutdown(wait=False)
                raise StoreError(
                    f"Failed to open photo store at {self.db_path}: {e}",
                    operation="open",
                    code="store_open_failed",
                    details={"db_path": self.db_path},
                    original_exception=e,
                ) from e

            self._db_manager = db_manager
            self._executor = executor

        logger.info("photo_store_opened", db_path=self.db_path)
        return self

    async def close(self) -> None:
        """
        Close the connection and stop the worker. Safe to call twice.

        The store counts as closed even when the engine reports an error.

        Raises:
            StoreError: If the connection fails to close cleanly
        """
        async with self._lifecycle_lock:
            if not self.is_open:
                return

            db_manager = self._db_manager
            executor = self._executor
            self._db_manager = None
            self._executor = None

            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(executor, db_manager.close)
            except PERSISTENCE_ERRORS as e:
                raise StoreError(
                    f"Failed to close photo store at {self.db_path}: {e}",
                    operation="close",
                    code="store_close_failed",
                    details={"db_path": self.db_path},
                    original_exception=e,
                ) from e
            finally:
                # the close job was the last one queued, so this returns promptly
                executor.shutdown(wait=False)

        logger.info("photo_store_closed", db_path=self.db_path)

    async def __aenter__(self) -> "PhotoStore":
        return await self.open()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _run(self, operation: str, func: Callable[[DatabaseManager], T], **context: Any) -> T:
        """Run ``func`` on the store thread, translating engine failures into StoreError."""
        if self._db_manager is None or self._executor is None:
            raise StoreError(
                f"Photo store is not open ({operation})",
                operation=operation,
                code="store_not_open",
                details={"db_path": self.db_path, **context},
            )

        db_manager = self._db_manager
        loop = asyncio.get_running_loop()
        start_time = time.monotonic()

        try:
            result = await loop.run_in_executor(self._executor, func, db_manager)
        except PERSISTENCE_ERRORS as e:
            raise StoreError(
                f"Photo store {operation} failed: {e}",
                operation=operation,
                details={"db_path": self.db_path, **context},
                original_exception=e,
            ) from e

        log_performance(f"photo_store_{operation}", time.monotonic() - start_time, **context)
        return result

    async def put(self, date_key: str, image: EncodedImage) -> PhotoRecord:
        """
        Create or replace the photo for a day.

        ``created_at`` is refreshed on every put, including overwrites.

        Returns:
            PhotoRecord: The record as written

        Raises:
            InvalidInputError: If date_key is not a canonical calendar day
            StoreError: If the write fails
        """
        validate_date_key(date_key)
        record = PhotoRecord(date_key=date_key, image=image, created_at=datetime.now())

        def _upsert(db: DatabaseManager) -> None:
            db.execute_query(
                """INSERT INTO photos (date_key, image, mime_type, width, height, quality, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT (date_key) DO UPDATE SET
                       image = excluded.image,
                       mime_type = excluded.mime_type,
                       width = excluded.width,
                       height = excluded.height,
                       quality = excluded.quality,
                       created_at = excluded.created_at""",
                (
                    record.date_key,
                    image.data,
                    image.mime_type,
                    image.width,
                    image.height,
                    image.quality,
                    record.created_at,
                ),
            )

        await self._run("put", _upsert, date_key=date_key)

        logger.info(
            "photo_saved",
            date_key=date_key,
            mime_type=image.mime_type,
            byte_size=image.byte_size,
            dimensions=f"{image.width}x{image.height}",
        )
        return record

    async def get(self, date_key: str) -> PhotoRecord | None:
        """
        Look up the photo for one day.

        Returns:
            PhotoRecord, or None when the day has no photo

        Raises:
            InvalidInputError: If date_key is not a canonical calendar day
            StoreError: If the read fails
        """
        validate_date_key(date_key)

        def _select(db: DatabaseManager) -> list[tuple]:
            return db.execute_query(
                """SELECT date_key, image, mime_type, width, height, quality, created_at
                   FROM photos
                   WHERE date_key = ?""",
                (date_key,),
            )

        rows = await self._run("get", _select, date_key=date_key)
        if not rows:
            logger.debug("photo_not_found", date_key=date_key)
            return None

        return PhotoRecord.from_row(rows[0])

    async def range_query(self, start_key: str, end_key: str) -> dict[str, EncodedImage]:
        """
        Fetch every photo with a date key in ``[start_key, end_key]``.

        Bounds must look like ``YYYY-MM-DD`` but need not be real days, so
        ``2026-02-31`` is a valid upper bound for February.

        Returns:
            dict: date key to image, in key order; empty when nothing matches

        Raises:
            InvalidInputError: If a bound is not shaped like a date key
            StoreError: If the read fails
        """
        for bound in (start_key, end_key):
            if not is_date_key_shape(bound):
                raise InvalidInputError(
                    f"Malformed range bound {bound!r}, expected YYYY-MM-DD",
                    code="malformed_range_bound",
                    details={"start_key": repr(start_key), "end_key": repr(end_key)},
                )

        def _scan(db: DatabaseManager) -> list[tuple]:
            return db.execute_query(
                """SELECT date_key, image, mime_type, width, height, quality, created_at
                   FROM photos
                   WHERE date_key BETWEEN ? AND ?
                   ORDER BY date_key""",
                (start_key, end_key),
            )

        rows = await self._run("range_query", _scan, start_key=start_key, end_key=end_key)
        photos = {record.date_key: record.image for record in map(PhotoRecord.from_row, rows)}

        logger.debug("photo_range_retrieved", start_key=start_key, end_key=end_key, photos_count=len(photos))
        return photos

    async def delete(self, date_key: str) -> DeleteOutcome:
        """
        Remove the photo for a day.

        Returns:
            DeleteOutcome.DELETED, or DeleteOutcome.NOT_FOUND if there was nothing to remove

        Raises:
            InvalidInputError: If date_key is not a canonical calendar day
            StoreError: If the delete fails
        """
        validate_date_key(date_key)

        def _delete(db: DatabaseManager) -> list[tuple]:
            return db.execute_query("DELETE FROM photos WHERE date_key = ? RETURNING date_key", (date_key,))

        rows = await self._run("delete", _delete, date_key=date_key)
        outcome = DeleteOutcome.DELETED if rows else DeleteOutcome.NOT_FOUND

        logger.info("photo_delete", date_key=date_key, outcome=outcome.value)
        return outcome

    async def count(self) -> int:
        """Number of days that have a photo."""

        def _count(db: DatabaseManager) -> int:
            return db.execute_query("SELECT count(*) FROM photos")[0][0]

        return await self._run("count", _count)

    async def list_date_keys(self) -> list[str]:
        """All date keys with a photo, oldest first."""

        def _keys(db: DatabaseManager) -> list[str]:
            return [row[0] for row in db.execute_query("SELECT date_key FROM photos ORDER BY date_key")]

        return await self._run("list_date_keys", _keys)
