"""
Unit tests for the diary facade.
"""

import asyncio
import threading
import time
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from photodiary.config import Config
from photodiary.errors import DecodeError, InvalidInputError, StoreError
from photodiary.models.photo import RawImage
from photodiary.services.diary import PhotoDiary, open_diary
from photodiary.services.image_normalizer import ImageNormalizer
from photodiary.services.photo_store import DeleteOutcome, PhotoStore

FIXED_TODAY = date(2026, 10, 17)


@pytest.fixture
def diary(store, normalizer) -> PhotoDiary:
    return PhotoDiary(store, normalizer, today=lambda: FIXED_TODAY)


class TestPhotoDiary:
    """Test cases for PhotoDiary."""

    @pytest.mark.asyncio
    async def test_add_photo_normalizes_and_stores(self, diary, make_image_bytes):
        raw = RawImage(make_image_bytes((2400, 1200)), "image/jpeg", filename="wide.jpg")

        record = await diary.add_photo("2026-02-14", raw)
        stored = await diary.get_photo("2026-02-14")

        assert record.date_key == "2026-02-14"
        assert (stored.image.width, stored.image.height) == (1200, 600)
        assert stored.image.mime_type == "image/jpeg"
        assert stored.image.quality == 0.85

    @pytest.mark.asyncio
    async def test_month_photos_uses_day_31_bound(self, diary):
        diary.store = MagicMock(spec=PhotoStore)
        diary.store.range_query = AsyncMock(return_value={})

        await diary.month_photos(2026, 2)

        diary.store.range_query.assert_awaited_once_with("2026-02-01", "2026-02-31")

    @pytest.mark.asyncio
    async def test_month_photos_returns_only_that_month(self, diary, make_image_bytes):
        for key in ["2026-01-31", "2026-02-01", "2026-02-28", "2026-03-01"]:
            await diary.add_photo(key, RawImage(make_image_bytes((20, 20)), "image/jpeg"))

        photos = await diary.month_photos(2026, 2)

        assert list(photos) == ["2026-02-01", "2026-02-28"]

    @pytest.mark.asyncio
    async def test_delete_photo(self, diary, raw_jpeg):
        await diary.add_photo("2026-02-14", raw_jpeg)

        assert await diary.delete_photo("2026-02-14") is DeleteOutcome.DELETED
        assert await diary.delete_photo("2026-02-14") is DeleteOutcome.NOT_FOUND
        assert await diary.get_photo("2026-02-14") is None

    @pytest.mark.asyncio
    async def test_future_date_rejected_before_normalizing(self, diary, raw_jpeg):
        with patch.object(ImageNormalizer, "normalize", new_callable=AsyncMock) as mock_normalize:
            with pytest.raises(InvalidInputError) as exc_info:
                await diary.add_photo("2026-10-18", raw_jpeg)

        assert exc_info.value.code == "future_date"
        mock_normalize.assert_not_awaited()
        assert await diary.store.count() == 0

    @pytest.mark.asyncio
    async def test_today_is_allowed(self, diary, raw_jpeg):
        record = await diary.add_photo("2026-10-17", raw_jpeg)

        assert record.date_key == "2026-10-17"

    @pytest.mark.asyncio
    async def test_future_dates_allowed_when_configured(self, store, normalizer, raw_jpeg):
        diary = PhotoDiary(store, normalizer, allow_future_dates=True, today=lambda: FIXED_TODAY)

        record = await diary.add_photo("2030-01-01", raw_jpeg)

        assert record.date_key == "2030-01-01"

    @pytest.mark.asyncio
    async def test_non_image_never_reaches_store(self, diary):
        with pytest.raises(InvalidInputError):
            await diary.add_photo("2026-02-14", RawImage(b"%PDF-1.7", "application/pdf"))

        assert await diary.store.count() == 0

    @pytest.mark.asyncio
    async def test_decode_failure_never_reaches_store(self, diary, raw_jpeg):
        await diary.add_photo("2026-02-14", raw_jpeg)

        with pytest.raises(DecodeError):
            await diary.add_photo("2026-02-14", RawImage(b"\x00" * 512, "image/jpeg"))

        record = await diary.get_photo("2026-02-14")
        assert (record.image.width, record.image.height) == (640, 480)

    @pytest.mark.asyncio
    async def test_malformed_key_rejected(self, diary, raw_jpeg):
        with pytest.raises(InvalidInputError):
            await diary.add_photo("2026/02/14", raw_jpeg)


class TestOpenDiary:
    """Test cases for the lifecycle helper."""

    @pytest.mark.asyncio
    async def test_open_diary_uses_configured_path(self, db_path, monkeypatch, raw_jpeg):
        monkeypatch.setenv("PHOTO_DIARY_DB_PATH", str(db_path))
        monkeypatch.setenv("PHOTO_DIARY_ALLOW_FUTURE_DATES", "true")

        async with open_diary(Config(), configure_logging=False) as diary:
            assert diary.allow_future_dates is True
            await diary.add_photo("2026-02-14", raw_jpeg)
            store = diary.store

        assert db_path.exists()
        assert store.is_open is False

    @pytest.mark.asyncio
    async def test_open_diary_failure_is_store_error(self, temp_dir, monkeypatch):
        blocker = temp_dir / "file"
        blocker.write_text("x")
        monkeypatch.setenv("PHOTO_DIARY_DB_PATH", str(blocker / "diary.duckdb"))

        with pytest.raises(StoreError):
            async with open_diary(Config(), configure_logging=False):
                pass

    @pytest.mark.asyncio
    async def test_configures_logging_on_entry(self, db_path, monkeypatch):
        monkeypatch.setenv("PHOTO_DIARY_DB_PATH", str(db_path))

        with patch("photodiary.services.diary.configure_structured_logging") as mock_configure:
            async with open_diary(Config()):
                mock_configure.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_logging_left_alone_when_disabled(self, db_path, monkeypatch):
        monkeypatch.setenv("PHOTO_DIARY_DB_PATH", str(db_path))

        with patch("photodiary.services.diary.configure_structured_logging") as mock_configure:
            async with open_diary(Config(), configure_logging=False):
                pass

        mock_configure.assert_not_called()

    @pytest.mark.asyncio
    async def test_shutdown_with_abandoned_normalize_keeps_loop_responsive(self, db_path, monkeypatch, raw_jpeg):
        monkeypatch.setenv("PHOTO_DIARY_DB_PATH", str(db_path))
        decode_started = threading.Event()

        def slow_normalize(raw):
            decode_started.set()
            time.sleep(0.8)

        gaps = []
        stop_ticking = asyncio.Event()

        async def ticker():
            last = time.monotonic()
            while not stop_ticking.is_set():
                await asyncio.sleep(0.01)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        ticking = asyncio.create_task(ticker())
        with patch.object(ImageNormalizer, "normalize_sync", side_effect=slow_normalize):
            async with open_diary(Config(), configure_logging=False) as diary:
                adding = asyncio.create_task(diary.add_photo("2026-02-14", raw_jpeg))
                while not decode_started.is_set():
                    await asyncio.sleep(0.005)

                adding.cancel()
                with pytest.raises(asyncio.CancelledError):
                    await adding

        stop_ticking.set()
        await ticking

        assert gaps
        assert max(gaps) < 0.2
