"""Image normalization service for photodiary."""

import asyncio
import io
import time
from concurrent.futures import Executor, ThreadPoolExecutor

from PIL import Image, ImageOps

from ..errors import DecodeError, InvalidInputError
from ..logging_config import get_logger, log_performance
from ..models.photo import EncodedImage, RawImage

try:
    from pillow_heif import register_heif_opener  # type: ignore[import-untyped]

    register_heif_opener()
    HEIF_AVAILABLE = True
except ImportError:
    HEIF_AVAILABLE = False

logger = get_logger(__name__)


class ImageNormalizer:
    """
    Turns an arbitrary image asset into a bounded-size JPEG.

    The limits are fixed policy so that every stored day costs roughly the
    same: width capped at MAX_WIDTH, one encode at PRIMARY_QUALITY, and a
    single fallback encode at FALLBACK_QUALITY when the first result is over
    SIZE_LIMIT. There is never a third pass.
    """

    MAX_WIDTH = 1200
    PRIMARY_QUALITY = 0.85
    FALLBACK_QUALITY = 0.70
    # measured on the data URI form, in characters
    SIZE_LIMIT = 2_000_000

    OUTPUT_FORMAT = "JPEG"
    OUTPUT_MIME_TYPE = "image/jpeg"

    def __init__(self, executor: Executor | None = None) -> None:
        """
        Initialize the normalizer.

        Args:
            executor: Where decode/encode work runs. Defaults to a private
                single-worker pool that :meth:`close` shuts down.
        """
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="image-normalizer")

        if not HEIF_AVAILABLE:
            logger.warning("heif_support_unavailable", message="Install pillow-heif for HEIC support")

    async def close(self) -> None:
        """
        Shut down the private executor.

        In-flight work is waited for on a helper thread, so an abandoned
        normalize does not stall the event loop while it finishes.
        """
        if self._owns_executor:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._executor.shutdown)

    async def normalize(self, raw: RawImage) -> EncodedImage:
        """
        Normalize an image without blocking the event loop.

        The media type is checked before anything is scheduled. Once the
        decode has started it runs to completion; cancelling the await only
        discards the result.

        Raises:
            InvalidInputError: If the asset is not typed as an image or is empty
            DecodeError: If the image data cannot be decoded
        """
        self.check_input(raw)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.normalize_sync, raw)

    def check_input(self, raw: RawImage) -> None:
        """
        Reject assets that are not images before any decode work.

        Raises:
            InvalidInputError: If the media type is not ``image/*`` or the payload is empty
        """
        if not raw.is_image_type:
            logger.warning("non_image_media_type", media_type=raw.media_type, filename=raw.filename)
            raise InvalidInputError(
                f"Media type {raw.media_type!r} is not an image",
                code="not_an_image",
                details={"media_type": raw.media_type, "filename": raw.filename},
            )

        if not raw.data:
            raise InvalidInputError(
                "Image payload is empty",
                code="empty_payload",
                details={"media_type": raw.media_type, "filename": raw.filename},
            )

    def normalize_sync(self, raw: RawImage) -> EncodedImage:
        """
        Decode, downscale and re-encode an image on the calling thread.

        Returns:
            EncodedImage: JPEG produced by at most two encode passes
        """
        start_time = time.monotonic()
        self.check_input(raw)

        image = self._decode(raw)
        original_size = image.size

        target_size = self.calculate_target_size(original_size)
        if target_size != original_size:
            image = image.resize(target_size, Image.Resampling.LANCZOS)

        encoded = self._encode(image, self.PRIMARY_QUALITY)
        encode_passes = 1

        if encoded.serialized_length > self.SIZE_LIMIT:
            logger.info(
                "encode_over_size_limit",
                serialized_length=encoded.serialized_length,
                size_limit=self.SIZE_LIMIT,
                fallback_quality=self.FALLBACK_QUALITY,
            )
            # the fallback result is used as-is, whatever its size
            encoded = self._encode(image, self.FALLBACK_QUALITY)
            encode_passes = 2

        duration = time.monotonic() - start_time
        log_performance(
            "normalize_image",
            duration,
            original_size=original_size,
            output_size=target_size,
            original_bytes=len(raw.data),
            output_bytes=encoded.byte_size,
            encode_passes=encode_passes,
        )

        logger.info(
            "image_normalized",
            filename=raw.filename,
            media_type=raw.media_type,
            original_dimensions=f"{original_size[0]}x{original_size[1]}",
            output_dimensions=f"{encoded.width}x{encoded.height}",
            serialized_length=encoded.serialized_length,
            quality=encoded.quality,
            encode_passes=encode_passes,
        )

        return encoded

    def calculate_target_size(self, size: tuple[int, int]) -> tuple[int, int]:
        """
        Scale down to MAX_WIDTH preserving aspect ratio; never upscale or crop.

        Args:
            size: Original size as (width, height)

        Returns:
            tuple: Output size as (width, height)
        """
        width, height = size
        if width <= self.MAX_WIDTH:
            return size

        new_height = max(1, round(height * self.MAX_WIDTH / width))
        return (self.MAX_WIDTH, new_height)

    def _decode(self, raw: RawImage) -> Image.Image:
        try:
            with Image.open(io.BytesIO(raw.data)) as opened:
                opened.load()
                # Apply EXIF orientation to correct rotation
                image = ImageOps.exif_transpose(opened)

                # JPEG has no alpha channel
                if image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")
                else:
                    image = image.copy()

                return image

        except Exception as e:
            raise DecodeError(
                f"Failed to decode image: {e}",
                code="image_decode_failed",
                details={
                    "media_type": raw.media_type,
                    "filename": raw.filename,
                    "file_size": len(raw.data),
                },
                original_exception=e,
            ) from e

    def _encode(self, image: Image.Image, quality: float) -> EncodedImage:
        buffer = io.BytesIO()
        image.save(buffer, format=self.OUTPUT_FORMAT, quality=round(quality * 100), optimize=True)

        return EncodedImage(
            data=buffer.getvalue(),
            mime_type=self.OUTPUT_MIME_TYPE,
            width=image.width,
            height=image.height,
            quality=quality,
        )
