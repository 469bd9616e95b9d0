"""Detect the ``See all N selections`` marker on the boost details crop.

A boost that lists many selections shows the marker; a short list does
not, and those alerts mention the "limited selections" role instead.
"""

from __future__ import annotations

import re

_SEE_ALL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"see\s+all\s+\d+\s+selections?", re.IGNORECASE),
    re.compile(r"see\s+all\s+\d+", re.IGNORECASE),
)


def has_see_all(raw_text: str | None) -> bool:
    text = raw_text or ""
    return any(pattern.search(text) for pattern in _SEE_ALL_PATTERNS)
