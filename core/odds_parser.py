"""Odds text parser: recover a ``Was``/``Now`` pair from noisy OCR text.

The odds crop shows ``Was +950 > Now +1129``.  Tesseract routinely drops
the arrow, misreads the label (``Wos``) or swaps a leading digit for a
letter (``i705``).  Extraction is an ordered cascade of strategies, each
more permissive than the previous one; the first hit wins.

Strategies (in order):
1. Labeled pair with an explicit separator glyph.
2. ``Was <odds>`` followed later by ``Now <odds>``.
3. The token right after ``Was <odds>``, fixed with small correction tables.
4. The first two bare 3–5 digit numbers anywhere in the text.

Pairs from strategies 1–3 must describe a real boost (post pays more than
pre).  A failing pair is swapped once; if it still fails the text is
rejected outright.  Strategy 4 has no labels to trust and skips the check.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from core.odds import OddsPair, is_boost_pair, normalize_odds

_log = logging.getLogger("boost.odds_parser")

# Label misreads seen on the odds crop.
_WAS = r"(?:Was|Wos|Waos)"
_NOW = r"Now"
_ODDS = r"([+\-]?\s?\d{2,5})(?!\d)"

# ">" plus the glyphs tesseract produces for the arrow.
SEPARATORS: tuple[str, ...] = (">", "»", "›", "→", "->")

_SEPARATOR_RE = "|".join(re.escape(sep) for sep in SEPARATORS)

_LABELED_WITH_SEPARATOR = re.compile(
    rf"{_WAS}\s*{_ODDS}\s*(?:{_SEPARATOR_RE})\s*{_NOW}\s*{_ODDS}",
    re.IGNORECASE,
)
_WAS_TOKEN = re.compile(rf"{_WAS}\s*{_ODDS}", re.IGNORECASE)
_NOW_TOKEN = re.compile(rf"{_NOW}\s*{_ODDS}", re.IGNORECASE)
_NEXT_WORD = re.compile(r"\s+(\S+)")
_BARE_ODDS = re.compile(r"(?<![\d+\-])([+\-]?\d{3,5})(?!\d)")

# Leading character → digit, only for the token right after ``Was <odds>``.
LEADING_CHAR_CORRECTIONS: dict[str, str] = {
    "I": "1",
    "i": "1",
    "l": "1",
    "|": "1",
    "v": "1",
    "Z": "2",
    "z": "2",
}

# Whole tokens seen after ``Was <odds>`` and what the screen actually showed.
# Consulted before anything else, even when the token parses as odds.
KNOWN_TOKEN_CORRECTIONS: dict[str, str] = {
    "1b": "+1800",
    "lb": "+180",
    "5578": "+8578",
}

_TRAILING_PUNCT = ".,;:)]}"


def _canonical(raw: str) -> str | None:
    return normalize_odds(raw.replace(" ", ""))


def _labeled_with_separator(text: str) -> OddsPair | None:
    match = _LABELED_WITH_SEPARATOR.search(text)
    if match is None:
        return None
    pre, post = _canonical(match.group(1)), _canonical(match.group(2))
    if pre is None or post is None:
        return None
    return OddsPair(pre=pre, post=post)


def _labeled_without_separator(text: str) -> OddsPair | None:
    was = _WAS_TOKEN.search(text)
    if was is None:
        return None
    now = _NOW_TOKEN.search(text, was.end())
    if now is None:
        return None
    pre, post = _canonical(was.group(1)), _canonical(now.group(1))
    if pre is None or post is None:
        return None
    return OddsPair(pre=pre, post=post)


def correct_token(token: str) -> str | None:
    """Apply the correction tables to a garbled odds token.

    An exact entry of :data:`KNOWN_TOKEN_CORRECTIONS` always wins.  Otherwise
    only a token that fails to parse as-is and whose leading character is
    listed in :data:`LEADING_CHAR_CORRECTIONS` is rewritten.
    """
    token = token.rstrip(_TRAILING_PUNCT)
    known = KNOWN_TOKEN_CORRECTIONS.get(token.lower())
    if known is not None:
        _log.debug("known odds misread %r -> %s", token, known)
        return known
    if normalize_odds(token) is not None:
        return None

    sign = ""
    body = token
    if body[:1] in "+-":
        sign, body = body[0], body[1:]

    replacement = LEADING_CHAR_CORRECTIONS.get(body[:1])
    if replacement is None:
        return None
    corrected = normalize_odds(f"{sign}{replacement}{body[1:]}")
    if corrected is not None:
        _log.debug("odds token corrected %r -> %s", token, corrected)
    return corrected


def _was_followed_by_token(text: str) -> OddsPair | None:
    was = _WAS_TOKEN.search(text)
    if was is None:
        return None
    pre = _canonical(was.group(1))
    if pre is None:
        return None
    follow = _NEXT_WORD.match(text, was.end())
    if follow is None:
        return None
    token = follow.group(1)
    post = correct_token(token) or normalize_odds(token.rstrip(_TRAILING_PUNCT))
    if post is None:
        return None
    return OddsPair(pre=pre, post=post)


def _bare_numbers(text: str) -> OddsPair | None:
    numbers: list[str] = []
    for match in _BARE_ODDS.finditer(text):
        value = normalize_odds(match.group(1))
        if value is not None:
            numbers.append(value)
        if len(numbers) == 2:
            return OddsPair(pre=numbers[0], post=numbers[1])
    return None


Strategy = Callable[[str], "OddsPair | None"]


class OddsTextParser:
    """Ordered strategy cascade with boost validation.

    ``checked`` strategies have labels, so their result must describe a
    boost; ``unchecked`` strategies are returned as found.
    """

    checked: tuple[tuple[str, Strategy], ...] = (
        ("labeled_separator", _labeled_with_separator),
        ("labeled_pair", _labeled_without_separator),
        ("was_correction", _was_followed_by_token),
    )
    unchecked: tuple[tuple[str, Strategy], ...] = (
        ("bare_numbers", _bare_numbers),
    )

    def __init__(self) -> None:
        self.last_strategy: str | None = None

    def parse(self, raw_text: str | None) -> OddsPair | None:
        """Return the odds pair found in *raw_text*, or ``None``."""
        self.last_strategy = None
        text = (raw_text or "").strip()
        if not text:
            return None

        for name, strategy in self.checked:
            candidate = strategy(text)
            if candidate is None:
                continue
            validated = self._validate(candidate)
            if validated is None:
                _log.info("odds rejected strategy=%s pair=%s->%s", name, candidate.pre, candidate.post)
                return None
            self.last_strategy = name
            return validated

        for name, strategy in self.unchecked:
            candidate = strategy(text)
            if candidate is not None:
                self.last_strategy = name
                return candidate

        return None

    @staticmethod
    def _validate(pair: OddsPair) -> OddsPair | None:
        if is_boost_pair(pair):
            return pair
        swapped = pair.swapped()
        if is_boost_pair(swapped):
            _log.info("odds swapped %s->%s to %s->%s", pair.pre, pair.post, swapped.pre, swapped.post)
            return swapped
        return None
