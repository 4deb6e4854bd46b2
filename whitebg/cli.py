#!/usr/bin/env python3
"""
Whiten the background of a portrait photo.

Usage:
    whitebg <image_path> [threshold] [quality]

The result is written next to the input as white_T<threshold>_Q<quality>_<name>.
Defaults come from WHITEBG_* environment variables (or a .env file).
"""

import sys
from dataclasses import replace
from typing import List, Optional

from dotenv import load_dotenv

from .background_remover import remove_background
from .env_config import load_config, startup_validation, ConfigError
from .errors import BackgroundRemovalError
from .image_io import load_image, save_image, build_output_path, output_dir_writable

load_dotenv()

USAGE = "Usage: whitebg <image_path> [threshold] [quality]"


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv

    if not args:
        print(USAGE)
        return 1

    image_path = args[0]

    try:
        config = load_config()
    except ConfigError as e:
        print(f"❌ [CONFIG] {e}")
        return 1

    threshold = config.threshold
    quality = config.jpeg_quality

    try:
        if len(args) >= 2:
            threshold = float(args[1])
        if len(args) >= 3:
            quality = int(args[2])
    except ValueError:
        print("❌ Threshold must be a number and quality an integer")
        print(USAGE)
        return 1

    if not threshold > 0 or not 1 <= quality <= 100:
        print(f"❌ Threshold must be positive and quality within 1-100 (got {threshold}, {quality})")
        return 1

    config = replace(config, threshold=threshold, jpeg_quality=quality)
    startup_validation(config)

    print(f"Processing with Threshold: {threshold:.0f}, Quality: {quality}")

    out_name = build_output_path(image_path, threshold, quality, config.output_prefix)
    if not output_dir_writable(out_name):
        print(f"❌ Output directory is not writable: {out_name}")
        return 1

    try:
        buffer = load_image(image_path)
        remove_background(buffer, config=config)
        save_image(buffer, out_name, quality)
    except BackgroundRemovalError as e:
        print(f"❌ {e}")
        return 1

    print(f"Saved: {out_name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
