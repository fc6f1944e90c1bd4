"""
Photo models for photodiary.

RawImage is what the acquisition side hands in, EncodedImage is the
normalized payload, and PhotoRecord is the one row the store keeps per day.
"""

import base64
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class RawImage:
    """An image asset as received from the camera or gallery picker."""

    data: bytes
    media_type: str
    filename: str | None = None

    @property
    def is_image_type(self) -> bool:
        """Whether the declared media type names an image."""
        return (self.media_type or "").strip().lower().startswith("image/")


@dataclass(frozen=True)
class EncodedImage:
    """
    A re-encoded raster payload ready for storage and display.

    ``quality`` is on the 0.0-1.0 lossy scale and records which encode pass
    produced the payload.
    """

    data: bytes = field(repr=False)
    mime_type: str
    width: int
    height: int
    quality: float

    @property
    def data_uri(self) -> str:
        """Self-describing ``data:`` URI that can be rendered directly."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    @property
    def serialized_length(self) -> int:
        """
        Length of :attr:`data_uri` in characters.

        Computed arithmetically so the size check does not build the string.
        """
        prefix = len(f"data:{self.mime_type};base64,")
        return prefix + 4 * ((len(self.data) + 2) // 3)

    @property
    def byte_size(self) -> int:
        return len(self.data)


@dataclass
class PhotoRecord:
    """The stored photo for one calendar day."""

    date_key: str
    image: EncodedImage
    created_at: datetime

    def to_dict(self) -> dict:
        """
        Convert PhotoRecord to a dictionary suitable for rendering.

        Returns:
            Dictionary with the data URI in place of raw bytes
        """
        return {
            "date_key": self.date_key,
            "image": self.image.data_uri,
            "mime_type": self.image.mime_type,
            "width": self.image.width,
            "height": self.image.height,
            "quality": self.image.quality,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: tuple) -> "PhotoRecord":
        """
        Build a PhotoRecord from a ``photos`` row.

        Args:
            row: (date_key, image, mime_type, width, height, quality, created_at)
        """
        date_key, image, mime_type, width, height, quality, created_at = row
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)

        return cls(
            date_key=date_key,
            image=EncodedImage(
                data=bytes(image),
                mime_type=mime_type,
                width=width,
                height=height,
                quality=quality,
            ),
            created_at=created_at,
        )
