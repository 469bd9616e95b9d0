from __future__ import annotations

import math

import pytest

from core.odds import OddsPair, american_to_decimal, is_boost_pair, normalize_odds


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("+950", "+950"),
        ("950", "+950"),
        ("-200", "-200"),
        (" + 1129 ", "+1129"),
        ("0", None),
        ("+00", None),
        ("5", None),
        ("123456", None),
        ("abc", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_odds(raw: str | None, expected: str | None) -> None:
    assert normalize_odds(raw) == expected


def test_positive_odds_convert_above_one() -> None:
    for value in ("+100", "+150", "+950", "+25000", "150"):
        assert american_to_decimal(value) > 1.0


def test_negative_odds_convert_above_zero() -> None:
    for value in ("-100", "-200", "-10000"):
        assert american_to_decimal(value) > 0.0


def test_decimal_values() -> None:
    assert american_to_decimal("+150") == pytest.approx(2.5)
    assert american_to_decimal("-200") == pytest.approx(1.5)
    assert american_to_decimal("100") == pytest.approx(2.0)


def test_unparseable_odds_are_nan() -> None:
    assert math.isnan(american_to_decimal("x12"))
    assert math.isnan(american_to_decimal(""))
    assert math.isnan(american_to_decimal("+0"))


def test_is_boost_pair_requires_strictly_better_post() -> None:
    assert is_boost_pair(OddsPair("+950", "+1129"))
    assert is_boost_pair(OddsPair("-200", "+100"))
    assert not is_boost_pair(OddsPair("+1200", "+900"))
    assert not is_boost_pair(OddsPair("+500", "+500"))
    assert not is_boost_pair(OddsPair("+500", "bad"))


def test_swapped() -> None:
    assert OddsPair("+1", "+2").swapped() == OddsPair("+2", "+1")
