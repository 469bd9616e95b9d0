"""Alert/debug image files: save crops and purge old ones.

Crops are written with OpenCV so the images attached to an alert are
byte-for-byte what OCR saw.
"""

from __future__ import annotations

import logging
import os
from typing import Any

_log = logging.getLogger("boost.images")

IMAGE_DIRECTORIES: tuple[str, ...] = ("alerts", "debug", "evidence")
_IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg")


def cleanup_directory(directory: str) -> int:
    """Delete image files in *directory*; returns how many were removed."""
    if not os.path.isdir(directory):
        return 0
    removed = 0
    for name in os.listdir(directory):
        if not name.lower().endswith(_IMAGE_SUFFIXES):
            continue
        try:
            os.remove(os.path.join(directory, name))
            removed += 1
        except OSError as exc:
            _log.warning("could not remove %s: %s", name, exc)
    if removed:
        _log.info("removed %d old images from %s/", removed, directory)
    return removed


def cleanup_old_images(base_dir: str = ".") -> int:
    """Purge every known image directory under *base_dir* (startup)."""
    return sum(cleanup_directory(os.path.join(base_dir, name)) for name in IMAGE_DIRECTORIES)


def save_crop(image: Any, directory: str, prefix: str, timestamp: float) -> str | None:
    """Write *image* as ``<prefix>_<ms>.png`` under *directory*; path or ``None``."""
    if image is None:
        return None
    import cv2

    try:
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, f"{prefix}_{int(timestamp * 1000)}.png")
        if not cv2.imwrite(path, image):
            _log.warning("cv2.imwrite refused %s", path)
            return None
        return path
    except (OSError, cv2.error) as exc:
        _log.warning("could not save %s crop: %s", prefix, exc)
        return None
