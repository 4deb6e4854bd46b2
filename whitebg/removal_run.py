"""
Per-run state shared by the flood fill, island and erosion phases.

A RemovalRun lives for one remove_background() call. It owns the visitation
map (True = classified as background and painted), the background reference
colour sampled from pixel (0, 0), and a snapshot of the original RGB values
that the subject detector and distance checks read from.

Unvisited pixels are never painted, so the snapshot distances of unvisited
pixels always equal their live distances.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .env_config import RemovalConfig
from .errors import AllocationError
from .pixel_buffer import PixelBuffer
from .pixel_ops import SafeZone, distance_map, paint_pixel
from .subject_detector import SubjectDetector, make_detector


@dataclass
class RemovalRun:
    grid: np.ndarray            # (H, W, C) view of the caller's buffer
    visited: np.ndarray         # (H, W) bool
    snapshot: np.ndarray        # (H, W, 3) original RGB
    distances: np.ndarray       # (H, W) distance of the original RGB to background_ref
    background_ref: Tuple[int, int, int]
    threshold: float
    config: RemovalConfig
    detector: SubjectDetector
    safe_zone: SafeZone

    @classmethod
    def start(cls, buffer: PixelBuffer, config: RemovalConfig,
              detector: Optional[SubjectDetector] = None) -> "RemovalRun":
        """
        Sample the reference colour and allocate the run's scratch arrays.

        Raises:
            AllocationError: If the visitation map or snapshot cannot be allocated
        """
        grid = buffer.grid()
        background_ref = buffer.rgb_at(0, 0)

        try:
            visited = np.zeros((buffer.height, buffer.width), dtype=bool)
            snapshot = grid[:, :, :3].copy()
            distances = distance_map(snapshot, background_ref)
        except MemoryError as e:
            raise AllocationError(
                f"Could not allocate scratch arrays for a {buffer.width}x{buffer.height} image"
            ) from e

        return cls(
            grid=grid,
            visited=visited,
            snapshot=snapshot,
            distances=distances,
            background_ref=background_ref,
            threshold=config.threshold,
            config=config,
            detector=detector or make_detector(config),
            safe_zone=SafeZone.from_size(
                buffer.width, buffer.height,
                config.safe_zone_x_min, config.safe_zone_x_max, config.safe_zone_y_min
            ),
        )

    @property
    def width(self) -> int:
        return self.grid.shape[1]

    @property
    def height(self) -> int:
        return self.grid.shape[0]

    def is_subject(self, x: int, y: int) -> bool:
        return self.detector.is_subject(self.snapshot, x, y)

    def paint(self, x: int, y: int):
        paint_pixel(self.grid, x, y, self.config.target_color)

    def mark_background(self, x: int, y: int):
        """Paint (x, y) with the target colour and mark it visited. Never undone."""
        self.paint(x, y)
        self.visited[y, x] = True
