"""
Image decode/encode with OpenCV.

OpenCV works in BGR(A); PixelBuffer is RGB(A). Conversions happen here and
nowhere else.
"""

import os
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from .env_config import RemovalConfig
from .errors import ImageDecodeError, ImageEncodeError
from .pixel_buffer import PixelBuffer

JPEG_EXTENSIONS = {".jpg", ".jpeg", ".jpe"}
DEFAULT_JPEG_QUALITY = RemovalConfig.jpeg_quality


def _to_rgb(decoded: np.ndarray) -> np.ndarray:
    """Convert an OpenCV decode result to contiguous uint8 RGB or RGBA."""
    if decoded.dtype == np.uint16:
        decoded = (decoded >> 8).astype(np.uint8)
    elif decoded.dtype != np.uint8:
        decoded = np.clip(decoded, 0, 255).astype(np.uint8)

    if decoded.ndim == 2:
        rgb = cv2.cvtColor(decoded, cv2.COLOR_GRAY2RGB)
    elif decoded.shape[2] == 4:
        rgb = cv2.cvtColor(decoded, cv2.COLOR_BGRA2RGBA)
    elif decoded.shape[2] == 3:
        rgb = cv2.cvtColor(decoded, cv2.COLOR_BGR2RGB)
    elif decoded.shape[2] == 1:
        rgb = cv2.cvtColor(decoded, cv2.COLOR_GRAY2RGB)
    else:
        raise ImageDecodeError(f"Unsupported channel count: {decoded.shape[2]}")

    return np.ascontiguousarray(rgb)


def _to_opencv(buffer: PixelBuffer, ext: str) -> np.ndarray:
    """RGB(A) buffer -> BGR(A) array ready for imwrite/imencode. JPEG drops alpha."""
    grid = buffer.grid()
    if buffer.channels == 4:
        if ext.lower() in JPEG_EXTENSIONS:
            return cv2.cvtColor(grid, cv2.COLOR_RGBA2BGR)
        return cv2.cvtColor(grid, cv2.COLOR_RGBA2BGRA)
    return cv2.cvtColor(grid, cv2.COLOR_RGB2BGR)


def _encode_params(ext: str, quality: int) -> list:
    if ext.lower() in JPEG_EXTENSIONS:
        return [cv2.IMWRITE_JPEG_QUALITY, int(quality)]
    if ext.lower() == ".png":
        return [cv2.IMWRITE_PNG_COMPRESSION, 9]
    return []


def load_image(path: Union[str, Path]) -> PixelBuffer:
    """
    Read an image file into an RGB/RGBA PixelBuffer.

    Raises:
        ImageDecodeError: If the file is missing or unreadable
    """
    path = Path(path)
    decoded = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if decoded is None:
        raise ImageDecodeError(f"Image not found or unreadable: {path}")

    rgb = _to_rgb(decoded)
    print(f"  [IO] Loaded {path.name}: {rgb.shape[1]}x{rgb.shape[0]}x{rgb.shape[2]}")
    return PixelBuffer.from_array(rgb)


def decode_image_bytes(data: bytes) -> PixelBuffer:
    """
    Decode an encoded image (JPEG, PNG, ...) held in memory.

    Raises:
        ImageDecodeError: If the bytes are not a decodable image
    """
    if not data:
        raise ImageDecodeError("Image data is empty")

    nparr = np.frombuffer(data, np.uint8)
    decoded = cv2.imdecode(nparr, cv2.IMREAD_UNCHANGED)
    if decoded is None:
        raise ImageDecodeError("Could not decode image bytes")

    return PixelBuffer.from_array(_to_rgb(decoded))


def save_image(buffer: PixelBuffer, path: Union[str, Path], quality: int = DEFAULT_JPEG_QUALITY) -> Path:
    """
    Write *buffer* to *path*; the format follows the file extension.

    Raises:
        ImageEncodeError: If OpenCV cannot write the file
    """
    path = Path(path)
    ext = path.suffix or ".jpg"

    try:
        success = cv2.imwrite(str(path), _to_opencv(buffer, ext), _encode_params(ext, quality))
    except cv2.error as e:
        raise ImageEncodeError(f"Could not encode {path}: {e}") from e

    if not success:
        raise ImageEncodeError(f"FAILED to save image: {path}")

    print(f"  [IO] Saved {path} (quality={quality})")
    return path


def encode_image_bytes(buffer: PixelBuffer, ext: str = ".jpg", quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """
    Encode *buffer* into an in-memory image.

    Raises:
        ImageEncodeError: If encoding fails
    """
    if not ext.startswith('.'):
        ext = '.' + ext

    try:
        success, encoded = cv2.imencode(ext, _to_opencv(buffer, ext), _encode_params(ext, quality))
    except cv2.error as e:
        raise ImageEncodeError(f"Could not encode image as {ext}: {e}") from e

    if not success:
        raise ImageEncodeError(f"Could not encode image as {ext}")
    return encoded.tobytes()


def build_output_path(input_path: str, threshold: float, quality: int, prefix: str = "white_") -> str:
    """
    Output file next to the input, tagged with the settings used.

    Example: photos/me.jpg, 80, 90 -> photos/white_T80_Q90_me.jpg

    Both '/' and '\\' are treated as separators.
    """
    input_path = str(input_path)
    cut = max(input_path.rfind('\\'), input_path.rfind('/'))
    directory, filename = input_path[:cut + 1], input_path[cut + 1:]
    return f"{directory}{prefix}T{threshold:.0f}_Q{quality}_{filename}"


def output_dir_writable(output_path: str) -> bool:
    directory = os.path.dirname(output_path) or "."
    return os.access(directory, os.W_OK)
