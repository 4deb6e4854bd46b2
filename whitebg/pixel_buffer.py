"""
Pixel Buffer

A flat run of interleaved 8-bit samples (RGB or RGBA, row-major) plus its
dimensions. The pipeline writes into the caller's memory: wrapping a
bytearray or numpy array never copies it.
"""

from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

from .errors import InvalidImageError

SUPPORTED_CHANNELS = (3, 4)

BufferLike = Union[bytearray, memoryview, np.ndarray]


@dataclass
class PixelBuffer:
    pixels: np.ndarray  # flat uint8, width * height * channels samples
    width: int
    height: int
    channels: int

    @classmethod
    def wrap(cls, pixels: BufferLike, width: int, height: int, channels: int) -> "PixelBuffer":
        """
        Wrap caller-owned memory without copying.

        Raises:
            InvalidImageError: If pixels is None, read-only or not 8-bit
        """
        if pixels is None:
            raise InvalidImageError("Pixel buffer is missing")

        if isinstance(pixels, np.ndarray):
            if pixels.dtype != np.uint8:
                raise InvalidImageError(f"Pixel buffer must be uint8, got {pixels.dtype}")
            if not pixels.flags['C_CONTIGUOUS']:
                raise InvalidImageError("Pixel array must be contiguous so it can be modified in place")
            flat = pixels.reshape(-1)
        else:
            flat = np.frombuffer(pixels, dtype=np.uint8)

        if not flat.flags.writeable:
            raise InvalidImageError("Pixel buffer is read-only")

        return cls(pixels=flat, width=int(width), height=int(height), channels=int(channels))

    @classmethod
    def from_array(cls, image: np.ndarray) -> "PixelBuffer":
        """Build a buffer over an (H, W, C) RGB/RGBA array."""
        if image is None:
            raise InvalidImageError("Image array is missing")
        if image.ndim != 3:
            raise InvalidImageError(f"Expected an (H, W, C) array, got shape {image.shape}")
        height, width, channels = image.shape
        return cls.wrap(image, width, height, channels)

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def grid(self) -> np.ndarray:
        """(height, width, channels) view sharing memory with the buffer."""
        return self.pixels.reshape(self.height, self.width, self.channels)

    def rgb_at(self, x: int, y: int) -> Tuple[int, int, int]:
        i = (y * self.width + x) * self.channels
        return int(self.pixels[i]), int(self.pixels[i + 1]), int(self.pixels[i + 2])


def validate_buffer(buffer: PixelBuffer) -> bool:
    """
    Check that a buffer can be processed.

    Returns:
        False for a degenerate (zero-area) image, which callers must leave untouched;
        True otherwise

    Raises:
        InvalidImageError: On unsupported channel counts or a length mismatch
    """
    if buffer is None or buffer.pixels is None:
        raise InvalidImageError("Pixel buffer is missing")

    if buffer.is_degenerate:
        return False

    if buffer.channels not in SUPPORTED_CHANNELS:
        raise InvalidImageError(f"Expected 3 or 4 channels, got {buffer.channels}")

    expected = buffer.width * buffer.height * buffer.channels
    if buffer.pixels.size != expected:
        raise InvalidImageError(
            f"Buffer holds {buffer.pixels.size} samples, expected {expected} "
            f"({buffer.width}x{buffer.height}x{buffer.channels})"
        )

    return True
