"""Boost percentage parser for the banner crop (``21% Boost``).

Every strategy contributes candidates and the largest valid one wins.
The real banner is big bold text, and OCR noise drops digits far more
often than it invents a plausible extra percentage, so the maximum is
the safest pick over stray small matches such as a ``5%`` footnote.
"""

from __future__ import annotations

import logging
import re

_log = logging.getLogger("boost.percentage_parser")

# Spellings of "Boost" that tesseract produced on the banner crop.
BOOST_SPELLINGS: tuple[str, ...] = ("boost", "baact", "boact", "bost", "bocst", "baacst")

MIN_PERCENTAGE = 1.0
MAX_PERCENTAGE = 1000.0

# Word-scan bounds are tighter: a lone "2" next to "Boost" is usually noise.
WORD_SCAN_MIN = 5
WORD_SCAN_MAX = 1000

_BOOST_WORD = "(?<![a-z])(?:" + "|".join(BOOST_SPELLINGS) + ")(?![a-z])"
# Digit-bounded on both sides so "31000%" is not read as "1000%".
_NUMBER = r"(?<![\d.])(\d{1,4}(?:\.\d+)?)(?!\d)"

_LABELED_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"{_NUMBER}\s*%?\s*{_BOOST_WORD}", re.IGNORECASE),
    re.compile(rf"{_BOOST_WORD}\s*{_NUMBER}\s*%?", re.IGNORECASE),
)
_PERCENT_PATTERN = re.compile(rf"{_NUMBER}\s*%")
_WORD_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_WORD_PUNCT = ".,;:!?()[]\"'"


def _is_boost_word(word: str) -> bool:
    return word.strip(_WORD_PUNCT).lower() in BOOST_SPELLINGS


def _labeled(text: str) -> list[float]:
    found: list[float] = []
    for pattern in _LABELED_PATTERNS:
        found.extend(float(match.group(1)) for match in pattern.finditer(text))
    return found


def _percent_sign(text: str) -> list[float]:
    return [float(match.group(1)) for match in _PERCENT_PATTERN.finditer(text)]


def _word_scan(text: str) -> list[float]:
    found: list[float] = []
    words = text.split()
    for index, word in enumerate(words):
        number = _WORD_NUMBER.search(word)
        if number is None:
            continue
        value = float(number.group(0))
        if not WORD_SCAN_MIN <= value <= WORD_SCAN_MAX:
            continue
        next_word = words[index + 1] if index + 1 < len(words) else ""
        if _is_boost_word(next_word) or "%" in word:
            found.append(value)
    return found


class PercentageTextParser:
    """Pool candidates from every strategy and return the maximum."""

    strategies = (_labeled, _percent_sign, _word_scan)

    def candidates(self, raw_text: str | None) -> list[float]:
        """All in-range candidates, in strategy order (duplicates kept)."""
        text = raw_text or ""
        if not text.strip():
            return []
        pooled: list[float] = []
        for strategy in self.strategies:
            pooled.extend(
                value for value in strategy(text)
                if MIN_PERCENTAGE <= value <= MAX_PERCENTAGE
            )
        return pooled

    def parse(self, raw_text: str | None) -> float | None:
        found = self.candidates(raw_text)
        if not found:
            return None
        best = max(found)
        _log.debug("percentage candidates=%s selected=%s", sorted(set(found)), best)
        return best
