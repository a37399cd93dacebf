"""Immutable RGBA raster buffers."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

CHANNELS = 4


@dataclass(frozen=True)
class RasterImage:
    """A decoded image: row-major RGBA, 8 bits per channel.

    ``pixels`` is a ``bytes`` object, so a constructed image can never be
    changed in place.  Every transform in this package returns a new
    instance.
    """

    width: int
    height: int
    pixels: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}."
            )
        if not isinstance(self.pixels, bytes):
            # Accept bytearray / memoryview but store an immutable copy.
            object.__setattr__(self, "pixels", bytes(self.pixels))
        expected = self.width * self.height * CHANNELS
        if len(self.pixels) != expected:
            raise ValueError(
                f"Pixel buffer has {len(self.pixels)} bytes, "
                f"expected {expected} for {self.width}x{self.height} RGBA."
            )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_array(cls, array: np.ndarray) -> RasterImage:
        """Build an image from an ``(height, width, 4)`` array.

        Values are clipped to ``0..255``; a 2-D array is treated as
        grayscale with an opaque alpha channel.
        """
        arr = np.asarray(array)
        if arr.ndim == 2:
            gray = np.clip(arr, 0, 255).astype(np.uint8)
            alpha = np.full_like(gray, 255)
            arr = np.stack([gray, gray, gray, alpha], axis=-1)
        if arr.ndim != 3 or arr.shape[2] != CHANNELS:
            raise ValueError(f"Expected an (H, W, 4) array, got shape {arr.shape}.")
        arr = np.clip(arr, 0, 255).astype(np.uint8)
        height, width = arr.shape[:2]
        return cls(width=width, height=height, pixels=arr.tobytes())

    @classmethod
    def blank(
        cls,
        width: int,
        height: int,
        color: tuple[int, int, int, int] = (0, 0, 0, 255),
    ) -> RasterImage:
        """Return a *width* x *height* image filled with *color*."""
        return cls(width=width, height=height, pixels=bytes(color) * (width * height))

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def to_array(self) -> np.ndarray:
        """Return a read-only ``(height, width, 4)`` uint8 view of the pixels."""
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(
            self.height, self.width, CHANNELS
        )

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        idx = (y * self.width + x) * CHANNELS
        r, g, b, a = self.pixels[idx:idx + CHANNELS]
        return r, g, b, a

    def same_shape(self, other: RasterImage) -> bool:
        return self.width == other.width and self.height == other.height

    # ------------------------------------------------------------------
    # Slicing
    # ------------------------------------------------------------------

    def crop(self, x: int, y: int, width: int, height: int) -> RasterImage:
        """Return a copy of the given rectangle, clamped to the image."""
        x0 = max(0, min(x, self.width))
        y0 = max(0, min(y, self.height))
        x1 = max(x0, min(x + width, self.width))
        y1 = max(y0, min(y + height, self.height))
        if x1 == x0 or y1 == y0:
            raise ValueError(
                f"Crop ({x}, {y}, {width}x{height}) lies outside "
                f"the {self.width}x{self.height} image."
            )
        return RasterImage.from_array(self.to_array()[y0:y1, x0:x1])

    def byte_range(self, start: int, end: int) -> bytes:
        """Return a copy of ``pixels[start:end]``, both aligned to whole pixels."""
        if start % CHANNELS or end % CHANNELS:
            raise ValueError("Byte ranges must be aligned to whole RGBA pixels.")
        return self.pixels[start:end]
