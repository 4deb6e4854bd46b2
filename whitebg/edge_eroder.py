"""
Edge Erosion Phase

Removes the thin colour-cast halo the flood fill leaves around hair and
shoulders. Each pass marks every unvisited pixel that
- touches a visited pixel (4-connected),
- is not classified as subject, and
- is closer than threshold * erosion_factor (1.4 by default) to the background,
then paints all marks at once. Marks from one pass never enable further marks
in the same pass, so a pass eats at most one pixel deep in every direction.
"""

import time

import cv2
import numpy as np

from .errors import AllocationError
from .removal_run import RemovalRun

# 4-connected structuring element
_CROSS = cv2.getStructuringElement(cv2.MORPH_CROSS, (3, 3))


def touches_visited(visited: np.ndarray) -> np.ndarray:
    """Unvisited pixels with at least one visited 4-neighbour."""
    grown = cv2.dilate(visited.astype(np.uint8), _CROSS, iterations=1)
    return grown.astype(bool) & ~visited


def erode_edges(run: RemovalRun) -> dict:
    """
    Returns:
        Dict with 'eroded' (total pixels removed), 'per_pass' and 'elapsed_ms'
    """
    start = time.time()
    loose_threshold = run.threshold * run.config.erosion_factor
    per_pass = []

    for _ in range(run.config.erosion_passes):
        try:
            candidates = touches_visited(run.visited) & (run.distances < loose_threshold)
            marks = [
                (int(x), int(y))
                for y, x in np.argwhere(candidates)
                if not run.is_subject(int(x), int(y))
            ]
        except MemoryError as e:
            raise AllocationError("Could not allocate the erosion scratch mask") from e

        for x, y in marks:
            run.mark_background(x, y)
        per_pass.append(len(marks))

    eroded = sum(per_pass)
    elapsed_ms = int((time.time() - start) * 1000)
    print(f"  [ERODE] eroded={eroded}, passes={per_pass}, time={elapsed_ms}ms")
    return {"eroded": eroded, "per_pass": per_pass, "elapsed_ms": elapsed_ms}
