"""
Diary service: the boundary the calendar UI talks to.

PhotoDiary composes the normalizer and the store. It holds explicitly
constructed instances of both; there is no module-level handle, and
:func:`open_diary` ties their lifetime to the caller's startup and shutdown.
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import date

from ..config import Config, get_config
from ..errors import InvalidInputError
from ..logging_config import configure_structured_logging, get_logger
from ..models.date_key import is_future, month_bounds, validate_date_key
from ..models.photo import EncodedImage, PhotoRecord, RawImage
from .image_normalizer import ImageNormalizer
from .photo_store import DeleteOutcome, PhotoStore

logger = get_logger(__name__)


class PhotoDiary:
    """One photo per day: add, look up, list a month, delete."""

    def __init__(
        self,
        store: PhotoStore,
        normalizer: ImageNormalizer,
        allow_future_dates: bool = False,
        today: Callable[[], date] = date.today,
    ):
        """
        Args:
            store: An opened PhotoStore
            normalizer: Normalizer used for every added photo
            allow_future_dates: Accept photos for days after today
            today: Source of the local current date
        """
        self.store = store
        self.normalizer = normalizer
        self.allow_future_dates = allow_future_dates
        self._today = today

    async def add_photo(self, date_key: str, raw_image: RawImage) -> PhotoRecord:
        """
        Normalize an image and save it as the photo for ``date_key``.

        Validation happens before the normalizer runs and the normalizer
        finishes before the store is touched, so a failure leaves the day as
        it was.

        Raises:
            InvalidInputError: Malformed key, future day, or non-image asset
            DecodeError: The image could not be decoded
            StoreError: The write failed
        """
        validate_date_key(date_key)

        if not self.allow_future_dates and is_future(date_key, today=self._today()):
            raise InvalidInputError(
                f"Cannot add a photo to future date {date_key}",
                code="future_date",
                details={"date_key": date_key},
            )

        encoded = await self.normalizer.normalize(raw_image)
        record = await self.store.put(date_key, encoded)

        logger.info("diary_photo_added", date_key=date_key, filename=raw_image.filename, quality=encoded.quality)
        return record

    async def get_photo(self, date_key: str) -> PhotoRecord | None:
        """The photo for one day, or None."""
        return await self.store.get(date_key)

    async def month_photos(self, year: int, month: int) -> dict[str, EncodedImage]:
        """
        All photos in a calendar month, keyed by date.

        The scan runs from day 01 to day 31 whatever the month's length.
        """
        start_key, end_key = month_bounds(year, month)
        return await self.store.range_query(start_key, end_key)

    async def delete_photo(self, date_key: str) -> DeleteOutcome:
        """Remove the photo for one day; NOT_FOUND if there was none."""
        return await self.store.delete(date_key)


@asynccontextmanager
async def open_diary(config: Config | None = None, configure_logging: bool = True) -> AsyncIterator[PhotoDiary]:
    """
    Build a PhotoDiary from configuration and release it on exit.

    Structured logging is configured on entry unless ``configure_logging``
    is False, for callers that set up structlog themselves.

    Usage:
        async with open_diary() as diary:
            await diary.add_photo("2026-02-14", RawImage(data, "image/jpeg"))
    """
    if configure_logging:
        configure_structured_logging()

    config = config or get_config()

    normalizer = ImageNormalizer()
    store = PhotoStore(config.db_path)
    try:
        await store.open()
        yield PhotoDiary(store, normalizer, allow_future_dates=config.allow_future_dates)
    finally:
        try:
            await store.close()
        finally:
            await normalizer.close()
