"""Two-pass image decoding with power-of-two downsampling.

The first pass opens the image lazily and reads only its bounds. The second pass
decodes at a sample size chosen so the result still covers the display target,
letting JPEG scale inside the decoder (draft) instead of holding a full
resolution decode for images far larger than the screen.
"""

import io
from dataclasses import dataclass, field

from PIL import Image, UnidentifiedImageError


@dataclass(frozen=True)
class DecodedImage:
    """A decoded, display-scaled pixel buffer."""

    width: int
    height: int
    mode: str
    pixels: bytes = field(repr=False)
    source_width: int
    source_height: int
    sample_size: int = 1

    @property
    def byte_size(self) -> int:
        return len(self.pixels)

    def to_pil(self) -> Image.Image:
        return Image.frombytes(self.mode, (self.width, self.height), self.pixels)


class ImageDecodeError(Exception):
    """Raised when image bytes cannot be identified or decoded."""


def read_bounds(data: bytes) -> tuple[int, int]:
    """First pass: return (width, height) without decoding pixel data."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.size
    except (UnidentifiedImageError, OSError, SyntaxError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"cannot identify image: {e}") from e


def calculate_sample_size(width: int, height: int, target_width: int, target_height: int) -> int:
    """Largest power of two that keeps the sampled image at or above the target in both dimensions."""
    sample_size = 1
    if width > target_width or height > target_height:
        half_width = width // 2
        half_height = height // 2
        while half_width // sample_size >= target_width and half_height // sample_size >= target_height:
            sample_size *= 2
    return sample_size


def decode_image(data: bytes, target_width: int, target_height: int) -> DecodedImage:
    """Decode image bytes scaled down for a display of the given size.

    Raises:
        ImageDecodeError: if the bytes are not a decodable raster image
    """
    source_width, source_height = read_bounds(data)
    sample_size = calculate_sample_size(source_width, source_height, target_width, target_height)
    wanted = (max(1, source_width // sample_size), max(1, source_height // sample_size))

    try:
        with Image.open(io.BytesIO(data)) as image:
            if sample_size > 1:
                # JPEG only: scale inside the decoder, no-op for other formats
                image.draft("RGB", wanted)
            image.load()
            has_alpha = image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info
            # reduce() rejects palette and bilevel modes, convert first
            converted = image.convert("RGBA" if has_alpha else "RGB")
            factor = converted.width // wanted[0]
            if factor > 1:
                converted = converted.reduce(factor)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"cannot decode image: {e}") from e

    return DecodedImage(
        width=converted.width,
        height=converted.height,
        mode=converted.mode,
        pixels=converted.tobytes(),
        source_width=source_width,
        source_height=source_height,
        sample_size=sample_size,
    )
