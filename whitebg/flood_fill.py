"""
Flood Fill Phase

Breadth-first search seeded from the four image corners. Every dequeued
pixel is painted with the target colour; 4-connected neighbours are admitted
when they are close enough to the background reference colour.

Inside the safe zone (where the person usually is) two extra rules apply:
1. SUBJECT SHIELD: a pixel the detector calls subject is skipped outright.
   It is not queued, marked or painted, whatever its colour distance.
2. ADAPTIVE THRESHOLD: the admission distance shrinks to
   threshold * safe_zone_factor (0.35 by default).
"""

import time

from .pixel_ops import NEIGHBORS_4
from .removal_run import RemovalRun
from .traversal_queue import TraversalQueue


def corner_seeds(width: int, height: int):
    """Top-left, top-right, bottom-left, bottom-right."""
    return [(0, 0), (width - 1, 0), (0, height - 1), (width - 1, height - 1)]


def flood_fill(run: RemovalRun) -> dict:
    """
    Paint the background region connected to the image corners.

    Mutates run.grid and run.visited in place.

    Returns:
        Dict with 'filled' (pixels painted), 'shielded' (subject rejections)
        and 'elapsed_ms'
    """
    start = time.time()
    width, height = run.width, run.height
    visited = run.visited
    distances = run.distances
    safe_zone = run.safe_zone
    strict_threshold = run.threshold * run.config.safe_zone_factor

    queue = TraversalQueue()
    for x, y in corner_seeds(width, height):
        # 1-pixel-wide images share corners
        if not visited[y, x]:
            visited[y, x] = True
            queue.enqueue(x, y)

    filled = 0
    shielded = 0

    try:
        while not queue.is_empty():
            cx, cy = queue.dequeue()
            run.paint(cx, cy)
            filled += 1

            for dx, dy in NEIGHBORS_4:
                nx, ny = cx + dx, cy + dy
                if nx < 0 or nx >= width or ny < 0 or ny >= height:
                    continue
                if visited[ny, nx]:
                    continue

                in_safe_zone = safe_zone.contains(nx, ny)
                if in_safe_zone and run.is_subject(nx, ny):
                    shielded += 1
                    continue

                limit = strict_threshold if in_safe_zone else run.threshold
                if distances[ny, nx] < limit:
                    visited[ny, nx] = True
                    queue.enqueue(nx, ny)
    finally:
        queue.clear()

    elapsed_ms = int((time.time() - start) * 1000)
    print(f"  [FLOOD] filled={filled}, shielded={shielded}, time={elapsed_ms}ms")
    return {"filled": filled, "shielded": shielded, "elapsed_ms": elapsed_ms}
