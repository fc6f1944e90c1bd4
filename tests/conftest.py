"""
Pytest configuration and fixtures for photodiary tests.
"""

import io
import tempfile
from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path

import pytest
import pytest_asyncio
from PIL import Image

from photodiary.config import get_config
from photodiary.models.photo import EncodedImage, RawImage
from photodiary.services.image_normalizer import ImageNormalizer
from photodiary.services.photo_store import PhotoStore


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def db_path(temp_dir: Path) -> Path:
    """Path of a diary database that does not exist yet."""
    return temp_dir / "diary" / "photos.duckdb"


@pytest.fixture
def make_image_bytes() -> Callable[..., bytes]:
    """Factory producing encoded test images."""

    def _make(size: tuple[int, int] = (100, 100), format_type: str = "JPEG", mode: str = "RGB", color="red") -> bytes:
        image = Image.new(mode, size, color=color)
        buffer = io.BytesIO()
        image.save(buffer, format=format_type)
        return buffer.getvalue()

    return _make


@pytest.fixture
def valid_jpeg_bytes(make_image_bytes: Callable[..., bytes]) -> bytes:
    return make_image_bytes((640, 480))


@pytest.fixture
def sample_encoded_image() -> Callable[..., EncodedImage]:
    """Factory for small EncodedImage values with distinguishable payloads."""

    def _make(payload: bytes = b"\xff\xd8payload\xff\xd9", width: int = 10, height: int = 10) -> EncodedImage:
        return EncodedImage(data=payload, mime_type="image/jpeg", width=width, height=height, quality=0.85)

    return _make


@pytest.fixture
def raw_jpeg(valid_jpeg_bytes: bytes) -> RawImage:
    return RawImage(data=valid_jpeg_bytes, media_type="image/jpeg", filename="photo.jpg")


@pytest_asyncio.fixture
async def normalizer() -> AsyncGenerator[ImageNormalizer, None]:
    image_normalizer = ImageNormalizer()
    yield image_normalizer
    await image_normalizer.close()


@pytest_asyncio.fixture
async def store(db_path: Path) -> AsyncGenerator[PhotoStore, None]:
    """An opened store on a fresh database file."""
    async with PhotoStore(db_path) as photo_store:
        yield photo_store


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep environment-driven settings predictable across tests."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.delenv("PHOTO_DIARY_DB_PATH", raising=False)
    monkeypatch.delenv("PHOTO_DIARY_ALLOW_FUTURE_DATES", raising=False)
    get_config().clear_cache()
    yield
    get_config().clear_cache()
