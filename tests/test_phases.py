"""
Tests for the flood fill, island removal and edge erosion phases

Run with:
    pytest tests/test_phases.py -v
"""

import pytest
import numpy as np
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from whitebg.env_config import RemovalConfig
from whitebg.pixel_buffer import PixelBuffer
from whitebg.pixel_ops import SafeZone, color_distance, distance_map, paint_pixel
from whitebg.removal_run import RemovalRun
from whitebg.flood_fill import flood_fill, corner_seeds
from whitebg.island_remover import remove_islands
from whitebg.edge_eroder import erode_edges, touches_visited

WHITE = (255, 255, 255)
GRAY_BG = (100, 100, 100)
DARK_SUBJECT = (60, 30, 20)


# =============================================================================
# Helpers
# =============================================================================

def make_image(height, width, color, channels=3):
    image = np.zeros((height, width, channels), dtype=np.uint8)
    image[:, :, :3] = color
    if channels == 4:
        image[:, :, 3] = 255
    return image


def start_run(image, **config_kwargs):
    return RemovalRun.start(PixelBuffer.from_array(image), RemovalConfig(**config_kwargs))


# =============================================================================
# Helper Tests
# =============================================================================

class TestPixelOps:

    def test_color_distance(self):
        assert color_distance((100, 100, 100), (100, 100, 100)) == 0.0
        assert color_distance((180, 100, 100), (100, 100, 100)) == 80.0
        assert color_distance((3, 4, 0), (0, 0, 0)) == 5.0

    def test_distance_map_matches_scalar(self):
        image = np.random.randint(0, 256, (6, 7, 3), dtype=np.uint8)
        ref = (12, 200, 90)
        dist = distance_map(image, ref)

        assert dist.shape == (6, 7)
        for y in range(6):
            for x in range(7):
                assert dist[y, x] == pytest.approx(color_distance(image[y, x], ref))

    def test_safe_zone_bounds_inclusive(self):
        zone = SafeZone.from_size(10, 20)  # x in [2, 8], y >= 3
        assert zone.contains(2, 3)
        assert zone.contains(8, 19)
        assert not zone.contains(1, 10)
        assert not zone.contains(9, 10)
        assert not zone.contains(5, 2)

    def test_paint_forces_opaque_alpha(self):
        image = np.zeros((1, 1, 4), dtype=np.uint8)
        paint_pixel(image, 0, 0, (10, 20, 30))
        assert tuple(image[0, 0]) == (10, 20, 30, 255)


# =============================================================================
# Flood Fill Tests
# =============================================================================

class TestFloodFill:

    def test_corner_seed_order(self):
        assert corner_seeds(5, 3) == [(0, 0), (4, 0), (0, 2), (4, 2)]

    def test_uniform_image_fully_filled(self):
        image = make_image(6, 6, (200, 200, 200))
        run = start_run(image)

        result = flood_fill(run)

        assert result["filled"] == 36
        assert run.visited.all()
        assert (image == 255).all()

    def test_single_pixel_image(self):
        image = make_image(1, 1, (10, 200, 30))
        run = start_run(image)

        result = flood_fill(run)

        assert result["filled"] == 1
        assert tuple(image[0, 0]) == WHITE

    def test_single_row_image(self):
        image = make_image(1, 5, (200, 200, 200))
        run = start_run(image)

        assert flood_fill(run)["filled"] == 5
        assert (image == 255).all()

    def test_distance_at_threshold_is_rejected(self):
        """Strict '<': exactly the threshold is not admitted, one unit below is"""
        image = make_image(10, 10, GRAY_BG)
        image[5, 9] = (180, 100, 100)  # distance 80, outside the safe zone
        image[5, 0] = (179, 100, 100)  # distance 79, outside the safe zone
        run = start_run(image, threshold=80.0)

        flood_fill(run)

        assert not run.visited[5, 9]
        assert tuple(image[5, 9]) == (180, 100, 100)
        assert run.visited[5, 0]
        assert tuple(image[5, 0]) == WHITE

    def test_safe_zone_uses_stricter_threshold(self):
        """Distance 34.6 passes 80 outside the zone but not 80 * 0.35 inside"""
        image = make_image(10, 10, GRAY_BG)
        image[5, 5] = (120, 120, 120)  # inside the safe zone
        image[5, 0] = (120, 120, 120)  # outside the safe zone
        run = start_run(image, threshold=80.0)

        flood_fill(run)

        assert not run.visited[5, 5]
        assert tuple(image[5, 5]) == (120, 120, 120)
        assert run.visited[5, 0]

    @pytest.mark.parametrize("detector", ["saturation", "uniformity"])
    def test_subject_shield_overrides_distance(self, detector):
        """A colourful pixel close to the background is kept only inside the safe zone"""
        image = make_image(10, 10, GRAY_BG)
        image[5, 5] = (110, 100, 90)   # distance 14.1, saturation 20
        image[5, 0] = (110, 100, 90)
        run = start_run(image, threshold=80.0, detector=detector)

        result = flood_fill(run)

        assert result["shielded"] > 0
        assert not run.visited[5, 5]
        assert tuple(image[5, 5]) == (110, 100, 90)
        assert run.visited[5, 0]
        assert tuple(image[5, 0]) == WHITE

    def test_visited_pixels_are_target_color(self):
        image = make_image(12, 12, (200, 200, 200))
        image[4:9, 4:9] = DARK_SUBJECT
        run = start_run(image, target_color=(245, 246, 248))

        flood_fill(run)

        assert (image[run.visited] == (245, 246, 248)).all()
        assert (image[~run.visited] == DARK_SUBJECT).all()

    def test_rgba_alpha_becomes_opaque(self):
        image = make_image(4, 4, (200, 200, 200), channels=4)
        image[:, :, 3] = 0
        run = start_run(image)

        flood_fill(run)

        assert (image[:, :, 3] == 255).all()


# =============================================================================
# Island Removal Tests
# =============================================================================

def enclosed_pocket_image(center_color):
    """10x10 light background, a 3x3 dark ring with a pocket at (5, 5)"""
    image = make_image(10, 10, (200, 200, 200))
    image[4:7, 4:7] = DARK_SUBJECT
    image[5, 5] = center_color
    return image


class TestIslandRemoval:

    def test_enclosed_pocket_removed(self):
        image = enclosed_pocket_image((200, 200, 200))
        run = start_run(image)
        flood_fill(run)
        assert not run.visited[5, 5]

        result = remove_islands(run)

        assert result["removed"] == 1
        assert run.visited[5, 5]
        assert tuple(image[5, 5]) == WHITE
        assert (image[4:7, 4][:, :3] == DARK_SUBJECT).all()

    def test_island_threshold_is_stricter(self):
        """Island threshold is 0.9 * 80 = 72"""
        kept = enclosed_pocket_image((157, 157, 157))     # distance 74.5
        removed = enclosed_pocket_image((160, 160, 160))  # distance 69.3

        for image, expected in [(kept, False), (removed, True)]:
            run = start_run(image)
            flood_fill(run)
            remove_islands(run)
            assert run.visited[5, 5] == expected

    def test_subject_pocket_is_protected(self):
        """A pocket the detector calls subject stays even when close to the background"""
        image = enclosed_pocket_image((215, 200, 190))  # distance 18, saturation 25
        run = start_run(image, detector="saturation")
        flood_fill(run)

        result = remove_islands(run)

        assert result["removed"] == 0
        assert result["protected"] == 1
        assert tuple(image[5, 5]) == (215, 200, 190)


# =============================================================================
# Edge Erosion Tests
# =============================================================================

def halo_image():
    """
    10x20 image: background in columns 0-4, a gray halo in columns 5-9
    (distance 103.9: above the flood threshold, below 1.4x), dark subject after.
    """
    image = make_image(10, 20, (200, 200, 200))
    image[:, 5:10] = (140, 140, 140)
    image[:, 10:] = DARK_SUBJECT
    return image


class TestEdgeErosion:

    def test_touches_visited(self):
        visited = np.zeros((3, 3), dtype=bool)
        visited[1, 1] = True

        border = touches_visited(visited)

        expected = np.array([
            [False, True, False],
            [True, False, True],
            [False, True, False],
        ])
        np.testing.assert_array_equal(border, expected)

    def test_each_pass_eats_one_pixel(self):
        """Marks apply after the scan, so pass N cannot enable more removals in pass N"""
        image = halo_image()
        run = start_run(image)
        flood_fill(run)
        remove_islands(run)
        assert not run.visited[:, 5:10].any()

        result = erode_edges(run)

        assert result["per_pass"] == [10, 10]
        assert run.visited[:, 5:7].all()
        assert not run.visited[:, 7:10].any()
        assert (image[:, 5:7] == 255).all()
        assert (image[:, 7:10] == 140).all()

    def test_pass_count_configurable(self):
        image = halo_image()
        run = start_run(image, erosion_passes=4)
        flood_fill(run)

        result = erode_edges(run)

        assert result["per_pass"] == [10, 10, 10, 10]
        assert run.visited[:, 5:9].all()

    def test_subject_fringe_not_eroded(self):
        image = halo_image()
        image[:, 5] = (160, 140, 130)  # saturation 30, distance 100.5
        run = start_run(image, detector="saturation")
        flood_fill(run)

        result = erode_edges(run)

        assert result["eroded"] == 0
        assert (image[:, 5] == (160, 140, 130)).all()

    def test_visitation_is_monotonic(self):
        image = halo_image()
        run = start_run(image)

        snapshots = []
        for phase in (flood_fill, remove_islands, erode_edges):
            phase(run)
            snapshots.append(run.visited.copy())

        for before, after in zip(snapshots, snapshots[1:]):
            assert not (before & ~after).any()
