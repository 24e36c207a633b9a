"""Remote image resolution: URL rules, decoding, LRU cache and the async resolver."""

from mdview.images.cache import ImageCache
from mdview.images.decode import DecodedImage, calculate_sample_size, decode_image
from mdview.images.resolver import ImageResolver
from mdview.images.urls import is_supported_image_url, normalize_image_url

__all__ = [
    "ImageCache",
    "ImageResolver",
    "DecodedImage",
    "decode_image",
    "calculate_sample_size",
    "normalize_image_url",
    "is_supported_image_url",
]
