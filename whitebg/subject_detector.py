"""
Subject Detection

Decides whether a pixel plausibly belongs to the person in the photo
(protected) or to the backdrop (removable).

Saturation here is max(R,G,B) - min(R,G,B), not HSV saturation:
- Pure white background: (255, 255, 255) -> 0
- Beige wall with a red cast: (240, 235, 230) -> 10
- Skin: (210, 160, 140) -> 70
- Dark hair: (50, 40, 35) -> 15

The number survives a global colour cast because a tint shifts every
channel by a similar amount. A vividly coloured solid backdrop still scores
high, which is what the uniformity policy is for: backdrops are flat,
people are textured.

Both policies read an (H, W, 3) snapshot of the image so a location is
classified the same way no matter which neighbours have already been painted.
"""

from typing import Optional

import numpy as np

from .env_config import RemovalConfig, DETECTOR_SATURATION, DETECTOR_UNIFORMITY, ConfigError

DEFAULT_MIN_SATURATION = 18
DEFAULT_MAX_VARIANCE = 15
DEFAULT_BRIGHTNESS_FLOOR = 20


def calculate_saturation(r: int, g: int, b: int) -> int:
    return max(r, g, b) - min(r, g, b)


def brightness(r: int, g: int, b: int) -> int:
    return (int(r) + int(g) + int(b)) // 3


def neighbor_variance(image: np.ndarray, x: int, y: int) -> Optional[float]:
    """
    Average |dR| + |dG| + |dB| between (x, y) and its in-bounds 8-neighbours.

    Returns:
        The average, or None when the pixel has no neighbours (1x1 image)
    """
    height, width = image.shape[:2]
    y0, y1 = max(y - 1, 0), min(y + 2, height)
    x0, x1 = max(x - 1, 0), min(x + 2, width)

    window = image[y0:y1, x0:x1, :3].astype(np.int32)
    count = window.shape[0] * window.shape[1] - 1
    if count == 0:
        return None

    # The centre contributes zero to the sum
    total = int(np.abs(window - image[y, x, :3].astype(np.int32)).sum())
    return total / count


def is_uniform_region(image: np.ndarray, x: int, y: int, max_variance: int) -> bool:
    """True when the neighbourhood is flat enough to be a solid backdrop."""
    variance = neighbor_variance(image, x, y)
    if variance is None:
        return False
    return variance <= max_variance


def is_subject_pixel(r: int, g: int, b: int, min_saturation: int,
                     brightness_floor: int = DEFAULT_BRIGHTNESS_FLOOR) -> bool:
    """
    Saturation-only test.

    Near-black pixels are never subject: their noise can exceed a low
    saturation threshold without meaning anything.
    """
    r, g, b = int(r), int(g), int(b)
    return calculate_saturation(r, g, b) >= min_saturation and brightness(r, g, b) > brightness_floor


def is_likely_subject(r: int, g: int, b: int) -> bool:
    """is_subject_pixel with the default threshold."""
    return is_subject_pixel(r, g, b, DEFAULT_MIN_SATURATION)


class SubjectDetector:
    """Common interface: is_subject(image, x, y) -> bool."""

    name = "base"

    def is_subject(self, image: np.ndarray, x: int, y: int) -> bool:
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.name})"


class SaturationDetector(SubjectDetector):
    """Pixel-local policy: colourful and not near-black means subject."""

    name = DETECTOR_SATURATION

    def __init__(self, min_saturation: int = DEFAULT_MIN_SATURATION,
                 brightness_floor: int = DEFAULT_BRIGHTNESS_FLOOR):
        self.min_saturation = min_saturation
        self.brightness_floor = brightness_floor

    def is_subject(self, image: np.ndarray, x: int, y: int) -> bool:
        r, g, b = image[y, x, :3]
        return is_subject_pixel(r, g, b, self.min_saturation, self.brightness_floor)


class UniformityDetector(SubjectDetector):
    """
    Neighbourhood-aware policy.

    1. Brightness below the floor -> background
    2. Saturation below min_saturation -> background
    3. Flat neighbourhood (average difference <= max_variance) -> background,
       even if vividly coloured
    4. Otherwise -> subject
    """

    name = DETECTOR_UNIFORMITY

    def __init__(self, min_saturation: int = DEFAULT_MIN_SATURATION,
                 max_variance: int = DEFAULT_MAX_VARIANCE,
                 brightness_floor: int = DEFAULT_BRIGHTNESS_FLOOR):
        self.min_saturation = min_saturation
        self.max_variance = max_variance
        self.brightness_floor = brightness_floor

    def is_subject(self, image: np.ndarray, x: int, y: int) -> bool:
        r, g, b = (int(c) for c in image[y, x, :3])

        if brightness(r, g, b) < self.brightness_floor:
            return False
        if calculate_saturation(r, g, b) < self.min_saturation:
            return False
        if is_uniform_region(image, x, y, self.max_variance):
            return False
        return True


def make_detector(config: RemovalConfig) -> SubjectDetector:
    """Build the detector policy named by config.detector."""
    if config.detector == DETECTOR_SATURATION:
        return SaturationDetector(config.min_saturation, config.brightness_floor)
    if config.detector == DETECTOR_UNIFORMITY:
        return UniformityDetector(config.min_saturation, config.max_variance, config.brightness_floor)
    raise ConfigError(f"Unknown detector '{config.detector}'")
