"""
Colour and grid helpers shared by the flood fill, island and erosion phases.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

# 4-connected neighbour offsets: up, down, left, right
NEIGHBORS_4 = ((0, -1), (0, 1), (-1, 0), (1, 0))


def color_distance(rgb: Sequence[int], ref: Sequence[int]) -> float:
    """Euclidean distance between two RGB triples."""
    return math.sqrt(
        (int(rgb[0]) - int(ref[0])) ** 2
        + (int(rgb[1]) - int(ref[1])) ** 2
        + (int(rgb[2]) - int(ref[2])) ** 2
    )


def distance_map(rgb: np.ndarray, ref: Sequence[int]) -> np.ndarray:
    """
    Per-pixel Euclidean distance to *ref*.

    Args:
        rgb: (H, W, 3) array
        ref: RGB triple

    Returns:
        float64 array (H, W)
    """
    diff = rgb[:, :, :3].astype(np.int32) - np.asarray(ref[:3], dtype=np.int32)
    return np.sqrt((diff * diff).sum(axis=2, dtype=np.int64))


@dataclass(frozen=True)
class SafeZone:
    """
    Region where the subject is expected: the middle band of columns,
    below the top margin. Bounds are inclusive.
    """
    x_min: float
    x_max: float
    y_min: float

    @classmethod
    def from_size(cls, width: int, height: int,
                  x_min_frac: float = 0.20, x_max_frac: float = 0.80,
                  y_min_frac: float = 0.15) -> "SafeZone":
        return cls(x_min=width * x_min_frac, x_max=width * x_max_frac, y_min=height * y_min_frac)

    def contains(self, x: int, y: int) -> bool:
        return self.x_min <= x <= self.x_max and y >= self.y_min


def paint_pixel(grid: np.ndarray, x: int, y: int, color: Tuple[int, int, int]):
    """Overwrite the colour channels at (x, y); alpha, if any, becomes opaque."""
    grid[y, x, :3] = color
    if grid.shape[2] == 4:
        grid[y, x, 3] = 255
