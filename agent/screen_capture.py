"""Screen capture of the mirrored phone and the fixed boost crops.

Two sources are supported:

* ``mss``: grab a desktop monitor that shows the mirrored device.
* ``adb``: ``adb exec-out screencap -p`` decoded with OpenCV.

Every capture returns a :class:`CaptureResult`.  A crop that falls outside
the frame marks the whole capture as ``failed``; crops whose PNG encoding
is suspiciously small (an empty, flat area) mark it ``too_small``.  Both
count as a failed cycle for the health watch.
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass
from typing import Any

import numpy as np

from utils.config import CaptureRuntimeConfig, Region
from utils.logger import SentinelLogger

_log = logging.getLogger("boost.capture")
_console = SentinelLogger("Capture")

# Minimum encoded PNG sizes (bytes) below which a crop holds no real content.
MIN_ENCODED_BYTES: dict[str, int] = {"boost": 500, "odds": 1500, "details": 3000}


@dataclass(slots=True)
class CaptureResult:
    """One screenshot and its crops (BGR numpy arrays)."""

    boost: Any = None
    odds: Any = None
    odds_gray: Any = None
    details: Any = None
    full: Any = None
    captured_at: float = 0.0
    failed: bool = False
    too_small: bool = False
    reason: str = ""

    @property
    def usable(self) -> bool:
        return not self.failed and not self.too_small and self.boost is not None


def crop_region(frame: Any, region: Region) -> Any | None:
    """Slice ``(x, y, w, h)`` out of *frame*; ``None`` when it does not fit."""
    if frame is None:
        return None
    height, width = frame.shape[:2]
    x, y, w, h = region
    if x < 0 or y < 0 or x + w > width or y + h > height:
        return None
    return frame[y:y + h, x:x + w].copy()


def crop_stddev(crop: Any) -> float:
    """Pixel standard deviation of *crop* (first channel for colour)."""
    if crop is None or crop.size == 0:
        return 0.0
    channel = crop[:, :, 0] if crop.ndim == 3 else crop
    return float(np.std(channel))


def encoded_size(crop: Any) -> int:
    """Length in bytes of *crop* encoded as PNG; ``0`` on failure."""
    import cv2

    ok, buffer = cv2.imencode(".png", crop)
    return int(buffer.size) if ok else 0


class ScreenCapture:
    """Grabs frames and cuts the boost, odds and details regions."""

    def __init__(self, config: CaptureRuntimeConfig | None = None) -> None:
        self.config = config or CaptureRuntimeConfig()
        self.regions = self.config.regions()
        self.monitor_index = self.config.monitor if self.config.monitor > 0 else 1

    # ── Frame sources ───────────────────────────────────────────────

    def _grab_mss(self, monitor_index: int | None = None) -> Any | None:
        import mss

        index = self.monitor_index if monitor_index is None else monitor_index
        with mss.mss() as sct:
            if index >= len(sct.monitors):
                _log.warning("monitor %d not present (%d available)", index, len(sct.monitors) - 1)
                return None
            frame = np.array(sct.grab(sct.monitors[index]))
        # mss returns BGRA; drop alpha.
        return np.ascontiguousarray(frame[:, :, :3])

    def _grab_adb(self) -> Any | None:
        import cv2

        cmd = [self.config.adb_path]
        if self.config.adb_device:
            cmd += ["-s", self.config.adb_device]
        cmd += ["exec-out", "screencap", "-p"]
        try:
            result = subprocess.run(cmd, capture_output=True, timeout=5)
        except (OSError, subprocess.TimeoutExpired) as exc:
            _log.warning("adb screencap failed: %s", exc)
            return None
        if result.returncode != 0 or len(result.stdout) < 100:
            _log.warning("adb screencap returned code=%s bytes=%d", result.returncode, len(result.stdout))
            return None
        buf = np.frombuffer(result.stdout, dtype=np.uint8)
        img = cv2.imdecode(buf, cv2.IMREAD_COLOR)
        if img is None or img.size == 0:
            return None
        return img

    def grab_frame(self) -> Any | None:
        """Full BGR frame from the configured backend, or ``None``."""
        if self.config.backend == "adb":
            return self._grab_adb()
        return self._grab_mss()

    # ── Monitor probing ─────────────────────────────────────────────

    def find_active_monitor(self) -> int:
        """Pick the first monitor whose boost crop shows real content.

        Only meaningful for the ``mss`` backend.  Falls back to the
        primary monitor (``1``) when none qualifies.
        """
        if self.config.backend != "mss":
            return self.monitor_index
        import mss

        with mss.mss() as sct:
            count = len(sct.monitors) - 1
        for index in range(1, count + 1):
            frame = self._grab_mss(index)
            crop = crop_region(frame, self.regions["boost"])
            deviation = crop_stddev(crop)
            _log.debug("monitor %d boost crop stddev=%.2f", index, deviation)
            if crop is not None and deviation > self.config.min_crop_stddev:
                _console.success(f"active monitor={index} (stddev={deviation:.1f})")
                self.monitor_index = index
                return index
        _console.warn("no monitor shows the boost area; using primary")
        self.monitor_index = 1
        return 1

    # ── Capture ─────────────────────────────────────────────────────

    def crop_frame(self, frame: Any, captured_at: float | None = None) -> CaptureResult:
        """Cut the three regions out of an already grabbed *frame*."""
        stamp = time.time() if captured_at is None else captured_at
        if frame is None:
            return CaptureResult(captured_at=stamp, failed=True, reason="no_frame")

        crops: dict[str, Any] = {}
        for name, region in self.regions.items():
            crop = crop_region(frame, region)
            if crop is None:
                height, width = frame.shape[:2]
                _log.warning("%s crop %s outside frame %dx%d", name, region, width, height)
                return CaptureResult(full=frame, captured_at=stamp, failed=True, reason=f"{name}_out_of_bounds")
            crops[name] = crop

        odds_gray = crops["odds"]
        if odds_gray.ndim == 3:
            import cv2

            odds_gray = cv2.cvtColor(odds_gray, cv2.COLOR_BGR2GRAY)

        result = CaptureResult(
            boost=crops["boost"],
            odds=crops["odds"],
            odds_gray=odds_gray,
            details=crops["details"],
            full=frame,
            captured_at=stamp,
        )
        small = [name for name, crop in crops.items() if encoded_size(crop) < MIN_ENCODED_BYTES[name]]
        if small:
            result.too_small = True
            result.reason = "too_small:" + ",".join(small)
        return result

    def capture(self) -> CaptureResult:
        """Grab one frame and crop it."""
        stamp = time.time()
        try:
            frame = self.grab_frame()
        except Exception as exc:
            _log.error("frame grab raised %s: %s", type(exc).__name__, exc)
            return CaptureResult(captured_at=stamp, failed=True, reason=f"grab_error:{type(exc).__name__}")
        return self.crop_frame(frame, stamp)
