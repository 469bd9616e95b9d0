"""Boost OCR: Tesseract text extraction for the boost crops.

Wraps ``pytesseract`` with the OpenCV preprocessing each crop needs:

1. Boost percentage: upscale to a fixed height, normalize, sharpen and
   threshold (``enhanced``); the raw upscaled crop is the fallback.
2. Odds line: grayscale crop upscaled harder, normalized, sharpened and
   thresholded before OCR.
3. Details panel: upscaled and normalized only.

Engine failures never escape: any backend error yields ``""`` so the
parsers simply see "nothing legible".
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
from typing import Any

from utils.config import OCRRuntimeConfig

_log = logging.getLogger("boost.ocr")

_WINDOWS_TESSERACT = (
    r"C:\Program Files\Tesseract-OCR\tesseract.exe",
    r"C:\Program Files (x86)\Tesseract-OCR\tesseract.exe",
)


def resolve_tesseract_cmd(explicit: str = "") -> str | None:
    """Locate the ``tesseract`` binary: explicit path, Windows defaults, PATH."""
    if explicit:
        return explicit
    if platform.system() == "Windows":
        for candidate in _WINDOWS_TESSERACT:
            if os.path.isfile(candidate):
                return candidate
    return shutil.which("tesseract")


class BoostOCR:
    """Tesseract reader tuned for the boost, odds and details crops."""

    def __init__(self, config: OCRRuntimeConfig | None = None) -> None:
        self.config = config or OCRRuntimeConfig()
        self._cv2: Any | None = None
        self._np: Any | None = None
        self._pytesseract: Any | None = None
        self._load_backends()

    def _load_backends(self) -> None:
        import cv2
        import numpy as np
        import pytesseract

        self._cv2 = cv2
        self._np = np
        cmd = resolve_tesseract_cmd(self.config.tesseract_cmd)
        if cmd:
            pytesseract.pytesseract.tesseract_cmd = cmd
        else:
            _log.warning("tesseract binary not found on PATH; OCR will return empty text")
        self._pytesseract = pytesseract

    # ── Preprocessing ───────────────────────────────────────────────

    def _to_gray(self, image: Any) -> Any:
        cv2 = self._cv2
        if image.ndim == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return image

    def _resize_to_height(self, image: Any, height: int) -> Any:
        cv2 = self._cv2
        h, w = image.shape[:2]
        if h <= 0 or w <= 0 or h == height:
            return image
        scale = height / float(h)
        return cv2.resize(image, (max(1, int(round(w * scale))), height), interpolation=cv2.INTER_CUBIC)

    def _normalize(self, gray: Any) -> Any:
        cv2 = self._cv2
        return cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX)

    def _sharpen(self, gray: Any) -> Any:
        cv2 = self._cv2
        blurred = cv2.GaussianBlur(gray, (0, 0), 1.0)
        return cv2.addWeighted(gray, 1.5, blurred, -0.5, 0)

    def _threshold(self, gray: Any) -> Any:
        cv2 = self._cv2
        np = self._np
        _, binary = cv2.threshold(gray, self.config.threshold, 255, cv2.THRESH_BINARY)
        # Tesseract prefers dark text on a light background.
        if float(np.mean(binary > 127)) < 0.5:
            binary = cv2.bitwise_not(binary)
        return binary

    def enhance_percentage(self, image: Any) -> Any:
        gray = self._to_gray(image)
        up = self._resize_to_height(gray, self.config.percentage_height)
        return self._threshold(self._sharpen(self._normalize(up)))

    def enhance_odds(self, image: Any) -> Any:
        gray = self._to_gray(image)
        up = self._resize_to_height(gray, self.config.odds_height)
        return self._threshold(self._sharpen(self._normalize(up)))

    def enhance_details(self, image: Any) -> Any:
        gray = self._to_gray(image)
        return self._sharpen(self._normalize(self._resize_to_height(gray, gray.shape[0] * 2)))

    # ── OCR ─────────────────────────────────────────────────────────

    def recognize(self, image: Any, *, config: str = "--psm 6") -> str:
        """Raw Tesseract text for *image*; ``""`` when nothing is legible."""
        if image is None or self._pytesseract is None:
            return ""
        try:
            text = self._pytesseract.image_to_string(image, lang=self.config.language, config=config)
        except Exception as exc:
            _log.warning("tesseract failed: %s: %s", type(exc).__name__, exc)
            return ""
        return " ".join(str(text).split())

    def read_percentage_text(self, image: Any) -> str:
        """Enhanced crop first, then the raw upscaled crop."""
        if image is None:
            return ""
        text = self.recognize(self.enhance_percentage(image), config="--psm 7")
        if text:
            return text
        raw = self._resize_to_height(image, self.config.percentage_height)
        return self.recognize(raw, config="--psm 7")

    def read_odds_text(self, gray_image: Any) -> str:
        if gray_image is None:
            return ""
        return self.recognize(self.enhance_odds(gray_image), config="--psm 7")

    def read_details_text(self, image: Any) -> str:
        if image is None:
            return ""
        return self.recognize(self.enhance_details(image))
