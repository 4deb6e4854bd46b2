"""
Environment Configuration Helper

Holds the run-wide tunables of the whitening pipeline and parses overrides
from environment variables, handling common issues like trailing newlines,
whitespace and malformed numbers.

Usage:
    from whitebg.env_config import RemovalConfig, load_config, startup_validation
"""

import math
import os
import re
from dataclasses import dataclass, replace
from typing import Optional, Dict, Any, Tuple

from .errors import BackgroundRemovalError


class ConfigError(BackgroundRemovalError):
    """Raised when a configuration value is missing or invalid."""
    pass


# Detector policy names
DETECTOR_SATURATION = "saturation"
DETECTOR_UNIFORMITY = "uniformity"
KNOWN_DETECTORS = (DETECTOR_SATURATION, DETECTOR_UNIFORMITY)

_HEX_COLOR = re.compile(r'^#?([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$')


@dataclass(frozen=True)
class RemovalConfig:
    """
    Tunables for one background removal run.

    Defaults match a typical passport photo: pure white fill, a background
    that must sit within 80 RGB units of the top-left corner, and a subject
    that is told apart by channel spread (saturation) plus local texture.
    """
    threshold: float = 80.0
    min_saturation: int = 18
    max_variance: int = 15
    brightness_floor: int = 20
    target_color: Tuple[int, int, int] = (255, 255, 255)
    jpeg_quality: int = 90
    output_prefix: str = "white_"
    detector: str = DETECTOR_UNIFORMITY

    # Safe zone (fractions of width / height)
    safe_zone_x_min: float = 0.20
    safe_zone_x_max: float = 0.80
    safe_zone_y_min: float = 0.15

    # Threshold multipliers per phase
    safe_zone_factor: float = 0.35   # flood fill inside the safe zone
    island_factor: float = 0.9       # enclosed pockets
    erosion_factor: float = 1.4      # halo around the subject
    erosion_passes: int = 2

    def with_threshold(self, threshold: Optional[float]) -> "RemovalConfig":
        """Return a copy using *threshold* as the base distance (None keeps the current one)."""
        if threshold is None:
            return self
        return replace(self, threshold=float(threshold))


def get_env(
    name: str,
    default: Optional[str] = None,
    required: bool = False,
    strip: bool = True
) -> Optional[str]:
    """
    Get environment variable with robust sanitization.

    Args:
        name: Environment variable name
        default: Default value if not set
        required: Raise ConfigError if missing/empty
        strip: Strip whitespace/newlines (default True)

    Returns:
        Sanitized value or default

    Raises:
        ConfigError: If required and missing/empty after sanitization
    """
    value = os.getenv(name, "")

    if strip and value:
        value = value.strip()
        value = value.replace('\n', '').replace('\r', '')

    if not value:
        if required:
            raise ConfigError(f"Required environment variable '{name}' is not set or empty")
        return default

    return value


def get_float_env(name: str, default: float) -> float:
    raw = get_env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got '{raw}'")


def get_int_env(name: str, default: int) -> int:
    raw = get_env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got '{raw}'")


def parse_color(value: str) -> Tuple[int, int, int]:
    """
    Parse an RGB colour given as "R,G,B" or "#RRGGBB".

    Example: "245,246,248" -> (245, 246, 248), "#F5F6F8" -> (245, 246, 248)
    """
    text = value.strip()
    match = _HEX_COLOR.match(text)
    if match:
        return tuple(int(part, 16) for part in match.groups())

    parts = [p.strip() for p in text.split(',')]
    if len(parts) != 3:
        raise ConfigError(f"Colour must be 'R,G,B' or '#RRGGBB', got '{value}'")

    try:
        rgb = tuple(int(p) for p in parts)
    except ValueError:
        raise ConfigError(f"Colour components must be integers, got '{value}'")

    if any(c < 0 or c > 255 for c in rgb):
        raise ConfigError(f"Colour components must be within 0-255, got '{value}'")
    return rgb


def validate_config(config: RemovalConfig) -> RemovalConfig:
    """
    Check value ranges.

    Raises:
        ConfigError: On the first out-of-range value
    """
    if not math.isfinite(config.threshold) or config.threshold <= 0:
        raise ConfigError(f"threshold must be positive, got {config.threshold}")
    if not 1 <= config.jpeg_quality <= 100:
        raise ConfigError(f"jpeg_quality must be within 1-100, got {config.jpeg_quality}")
    if config.min_saturation < 0 or config.max_variance < 0:
        raise ConfigError("min_saturation and max_variance must not be negative")
    if config.erosion_passes < 0:
        raise ConfigError(f"erosion_passes must not be negative, got {config.erosion_passes}")
    if config.detector not in KNOWN_DETECTORS:
        raise ConfigError(f"Unknown detector '{config.detector}', expected one of {KNOWN_DETECTORS}")
    if len(config.target_color) != 3 or any(c < 0 or c > 255 for c in config.target_color):
        raise ConfigError(f"target_color must be three values within 0-255, got {config.target_color}")
    return config


def load_config(base: Optional[RemovalConfig] = None) -> RemovalConfig:
    """
    Build a RemovalConfig from WHITEBG_* environment variables.

    Unset variables keep the value from *base* (or the defaults).
    """
    base = base or RemovalConfig()

    color_raw = get_env("WHITEBG_TARGET_COLOR")
    detector = (get_env("WHITEBG_DETECTOR", default=base.detector) or base.detector).lower()

    config = replace(
        base,
        threshold=get_float_env("WHITEBG_THRESHOLD", base.threshold),
        min_saturation=get_int_env("WHITEBG_MIN_SATURATION", base.min_saturation),
        max_variance=get_int_env("WHITEBG_MAX_VARIANCE", base.max_variance),
        target_color=parse_color(color_raw) if color_raw else base.target_color,
        jpeg_quality=get_int_env("WHITEBG_JPEG_QUALITY", base.jpeg_quality),
        output_prefix=get_env("WHITEBG_OUTPUT_PREFIX", default=base.output_prefix, strip=False),
        detector=detector,
        erosion_passes=get_int_env("WHITEBG_EROSION_PASSES", base.erosion_passes),
    )
    return validate_config(config)


def get_config_summary(config: RemovalConfig) -> Dict[str, Any]:
    """
    Get a configuration summary for debugging.

    Returns dict with threshold, per-phase effective thresholds, detector
    settings and output settings.
    """
    return {
        "threshold": config.threshold,
        "safe_zone_threshold": config.threshold * config.safe_zone_factor,
        "island_threshold": config.threshold * config.island_factor,
        "erosion_threshold": config.threshold * config.erosion_factor,
        "erosion_passes": config.erosion_passes,
        "detector": config.detector,
        "min_saturation": config.min_saturation,
        "max_variance": config.max_variance,
        "target_color": config.target_color,
        "jpeg_quality": config.jpeg_quality,
        "output_prefix": config.output_prefix,
    }


def startup_validation(config: RemovalConfig):
    """Print the effective configuration."""
    print("=" * 60)
    print("🔧 [CONFIG] Background whitening settings")
    print("=" * 60)

    for key, value in get_config_summary(config).items():
        if isinstance(value, float):
            value = f"{value:.1f}"
        print(f"  {key}: {value}")

    print("=" * 60)
