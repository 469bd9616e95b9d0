"""American-odds primitives shared by the parsers and the calculator.

Odds travel through the pipeline as canonical strings (``"+950"``,
``"-200"``): the sign is always explicit and zero is never a valid quote.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

_ODDS_RE = re.compile(r"^\s*([+\-]?)\s*(\d{2,5})\s*$")


@dataclass(frozen=True, slots=True)
class OddsPair:
    """Pre-boost (``Was``) and post-boost (``Now``) odds."""

    pre: str
    post: str

    def swapped(self) -> OddsPair:
        return OddsPair(pre=self.post, post=self.pre)


def normalize_odds(raw: str | None) -> str | None:
    """Return the canonical signed form of *raw*, or ``None`` if it is not odds.

    Unsigned values are treated as positive.  Only 2–5 digit magnitudes
    are accepted, which keeps clock readings and scores out.
    """
    if raw is None:
        return None
    match = _ODDS_RE.match(raw)
    if match is None:
        return None
    sign, digits = match.groups()
    value = int(digits)
    if value == 0:
        return None
    return f"{sign or '+'}{value}"


def american_to_decimal(odds: str) -> float:
    """Convert an American quote to decimal odds.

    ``+v`` → ``1 + v/100``; ``-v`` → ``1 + 100/v``; unsigned → positive.
    Returns ``nan`` when *odds* cannot be parsed.
    """
    cleaned = (odds or "").strip().replace(" ", "")
    digits = cleaned.lstrip("+-")
    if not digits.isdigit():
        return math.nan
    value = int(digits)
    if value == 0:
        return math.nan
    if cleaned.startswith("-"):
        return 1.0 + 100.0 / value
    return 1.0 + value / 100.0


def is_boost_pair(pair: OddsPair) -> bool:
    """``True`` when *post* pays strictly more than *pre*."""
    pre = american_to_decimal(pair.pre)
    post = american_to_decimal(pair.post)
    if math.isnan(pre) or math.isnan(post):
        return False
    return post > pre
