"""Raster buffers and their encoded forms."""

from visual_diff.raster.buffer import RasterImage
from visual_diff.raster.codec import decode_image, encode_image, from_pil, to_data_url, to_pil

__all__ = [
    "RasterImage",
    "decode_image",
    "encode_image",
    "from_pil",
    "to_data_url",
    "to_pil",
]
