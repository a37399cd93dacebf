"""Decode transmissible images into rasters and encode them back.

Accepted inputs are raw encoded bytes (PNG, JPEG, WebP, ... anything
Pillow can open), bare base64 text, or a ``data:image/...;base64,`` URL.
Output is always PNG, either as bytes or wrapped in a data URL.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging

from PIL import Image, UnidentifiedImageError

from visual_diff.errors import InvalidImageData
from visual_diff.raster.buffer import RasterImage

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = "data:"


def _payload_bytes(data: str | bytes) -> bytes:
    """Strip an optional data-URL header and base64-decode text input."""
    if isinstance(data, bytes):
        return data
    text = data.strip()
    if text.startswith(_DATA_URL_PREFIX):
        header, sep, text = text.partition(",")
        if not sep:
            raise InvalidImageData("Malformed data URL: missing ',' separator.")
        if ";base64" not in header:
            raise InvalidImageData("Only base64-encoded data URLs are supported.")
    if not text:
        raise InvalidImageData("Image payload is empty.")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageData(f"Image payload is not valid base64: {exc}") from exc


def decode_image(data: str | bytes, max_pixels: int | None = None) -> RasterImage:
    """Decode *data* into an RGBA :class:`RasterImage`.

    Raises:
        InvalidImageData: If the payload cannot be decoded, or it holds
            more than *max_pixels* pixels.
    """
    raw = _payload_bytes(data)
    try:
        with Image.open(io.BytesIO(raw)) as img:
            width, height = img.size
            if max_pixels is not None and width * height > max_pixels:
                raise InvalidImageData(
                    f"Image of {width}x{height} exceeds the {max_pixels:,} pixel limit."
                )
            rgba = img.convert("RGBA")
            return RasterImage(width=rgba.width, height=rgba.height, pixels=rgba.tobytes())
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.debug("Image decode failed: %s", exc)
        raise InvalidImageData(f"Failed to load image: {exc}") from exc


def to_pil(image: RasterImage) -> Image.Image:
    """Wrap a raster as a Pillow image (copies the buffer)."""
    return Image.frombytes("RGBA", image.size, image.pixels)


def from_pil(img: Image.Image) -> RasterImage:
    rgba = img.convert("RGBA")
    return RasterImage(width=rgba.width, height=rgba.height, pixels=rgba.tobytes())


def encode_image(image: RasterImage, fmt: str = "PNG") -> bytes:
    """Encode *image* with Pillow and return the file bytes."""
    buf = io.BytesIO()
    to_pil(image).save(buf, format=fmt)
    return buf.getvalue()


def to_data_url(image: RasterImage) -> str:
    """Encode *image* as a ``data:image/png;base64,`` URL."""
    encoded = base64.b64encode(encode_image(image, "PNG")).decode("ascii")
    return f"data:image/png;base64,{encoded}"
