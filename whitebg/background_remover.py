"""
Background Whitening Pipeline

Replaces a near-uniform portrait background (passport photo style) with a
solid colour while keeping the person:
1. Flood fill from the four corners, shielding likely-subject pixels
2. Island removal for enclosed background pockets
3. Edge erosion of the remaining colour-cast halo

The phases run in this order on the same visitation map. Output is binary:
every pixel is either untouched or the target colour.

The caller's buffer is modified in place. Use remove_background_copy() to
keep the original.

Environment Variables:
    DEBUG_WHITEBG: Set to "true" to save the visitation map after each phase
"""

import os
import time
from dataclasses import dataclass, field
from typing import List, Optional

import cv2
import numpy as np

from .edge_eroder import erode_edges
from .env_config import RemovalConfig, validate_config
from .flood_fill import flood_fill
from .island_remover import remove_islands
from .pixel_buffer import PixelBuffer, BufferLike, validate_buffer
from .removal_run import RemovalRun
from .subject_detector import SubjectDetector

# Debug
DEBUG_ENABLED = os.getenv("DEBUG_WHITEBG", "false").lower() == "true"
DEBUG_OUTPUT_DIR = "outputs/debug_whitebg"


@dataclass
class RemovalStats:
    """What each phase did during one run."""
    flood_filled: int = 0
    shielded: int = 0
    islands_removed: int = 0
    eroded: int = 0
    eroded_per_pass: List[int] = field(default_factory=list)
    total_ms: int = 0
    skipped: bool = False

    @property
    def background_pixels(self) -> int:
        return self.flood_filled + self.islands_removed + self.eroded


def _debug_save(visited: np.ndarray, filename: str):
    """Save a visitation map as a black/white PNG if debug mode is enabled"""
    if not DEBUG_ENABLED:
        return

    os.makedirs(DEBUG_OUTPUT_DIR, exist_ok=True)
    path = os.path.join(DEBUG_OUTPUT_DIR, filename)

    mask = np.ascontiguousarray(visited.astype(np.uint8) * 255)
    if cv2.imwrite(path, mask):
        print(f"  [DEBUG] Saved: {path}")
    else:
        print(f"  [DEBUG] FAILED to save: {path}")


def remove_background(
    buffer: PixelBuffer,
    threshold: Optional[float] = None,
    config: Optional[RemovalConfig] = None,
    detector: Optional[SubjectDetector] = None
) -> RemovalStats:
    """
    Whiten the background of *buffer* in place.

    Args:
        buffer: Image to process; modified in place
        threshold: Base colour distance (overrides config.threshold)
        config: Run-wide tunables (defaults when omitted)
        detector: Custom subject detector (otherwise built from config.detector)

    Returns:
        RemovalStats; skipped=True for a zero-area image, which is left untouched

    Raises:
        ConfigError: If the threshold or another setting is out of range
        InvalidImageError: If the buffer is missing or mis-shaped
        AllocationError: If scratch memory for the run cannot be obtained
    """
    config = validate_config((config or RemovalConfig()).with_threshold(threshold))

    if not validate_buffer(buffer):
        print(f"  [PIPELINE] ⚠️ Degenerate image {buffer.width}x{buffer.height}, nothing to do")
        return RemovalStats(skipped=True)

    start = time.time()
    run = RemovalRun.start(buffer, config, detector=detector)

    print(f"  [PIPELINE] {buffer.width}x{buffer.height}x{buffer.channels}, "
          f"ref={run.background_ref}, threshold={run.threshold:.1f}, detector={run.detector.name}")

    flood = flood_fill(run)
    _debug_save(run.visited, "01_flood_fill.png")

    islands = remove_islands(run)
    _debug_save(run.visited, "02_islands.png")

    erosion = erode_edges(run)
    _debug_save(run.visited, "03_eroded.png")

    stats = RemovalStats(
        flood_filled=flood["filled"],
        shielded=flood["shielded"],
        islands_removed=islands["removed"],
        eroded=erosion["eroded"],
        eroded_per_pass=erosion["per_pass"],
        total_ms=int((time.time() - start) * 1000),
    )

    coverage = stats.background_pixels / (buffer.width * buffer.height) * 100
    print(f"  [PIPELINE] ✅ background={stats.background_pixels} ({coverage:.1f}%), time={stats.total_ms}ms")
    return stats


def remove_background_raw(
    pixels: BufferLike,
    width: int,
    height: int,
    channels: int,
    threshold: float,
    config: Optional[RemovalConfig] = None
) -> RemovalStats:
    """remove_background() over a flat interleaved byte buffer, in place."""
    if width <= 0 or height <= 0:
        print(f"  [PIPELINE] ⚠️ Degenerate image {width}x{height}, nothing to do")
        return RemovalStats(skipped=True)
    buffer = PixelBuffer.wrap(pixels, width, height, channels)
    return remove_background(buffer, threshold=threshold, config=config)


def remove_background_copy(
    image: np.ndarray,
    threshold: Optional[float] = None,
    config: Optional[RemovalConfig] = None
) -> np.ndarray:
    """
    Whiten a copy of an (H, W, C) RGB/RGBA array.

    Returns:
        New uint8 array; *image* is left unchanged
    """
    result = np.ascontiguousarray(image, dtype=np.uint8).copy()
    remove_background(PixelBuffer.from_array(result), threshold=threshold, config=config)
    return result
