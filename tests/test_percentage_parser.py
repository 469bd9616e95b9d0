from __future__ import annotations

import pytest

from core.percentage_parser import PercentageTextParser


@pytest.fixture
def parser() -> PercentageTextParser:
    return PercentageTextParser()


def test_percent_followed_by_boost(parser: PercentageTextParser) -> None:
    assert parser.parse("21% Boost") == 21.0


def test_stray_small_percentage_loses_to_banner(parser: PercentageTextParser) -> None:
    assert parser.parse("21% Boost 5%") == 21.0
    assert parser.parse("5% off 21% Boost") == 21.0


@pytest.mark.parametrize("spelling", ["Baact", "boact", "Bost", "bocst", "baacst"])
def test_boost_misspellings(parser: PercentageTextParser, spelling: str) -> None:
    assert parser.parse(f"33 {spelling}") == 33.0


def test_boost_word_before_number(parser: PercentageTextParser) -> None:
    assert parser.parse("Boost 40%") == 40.0


def test_bare_percent_sign(parser: PercentageTextParser) -> None:
    assert parser.parse("profit 50%") == 50.0


def test_decimal_percentage(parser: PercentageTextParser) -> None:
    assert parser.parse("28.5% Boost") == 28.5


def test_out_of_range_is_ignored(parser: PercentageTextParser) -> None:
    assert parser.parse("5000% Boost") is None
    assert parser.parse("0% Boost") is None


def test_no_number(parser: PercentageTextParser) -> None:
    assert parser.parse("Boost") is None
    assert parser.parse("") is None
    assert parser.parse(None) is None


def test_candidates_pool_every_strategy(parser: PercentageTextParser) -> None:
    found = parser.candidates("25% Boost")
    assert found
    assert set(found) == {25.0}


@pytest.mark.parametrize("text", ["31000% Boost", "Boost 31000", "12000%", "boost 10001%"])
def test_oversized_number_is_not_truncated(parser: PercentageTextParser, text: str) -> None:
    assert parser.parse(text) is None


def test_oversized_number_does_not_beat_real_banner(parser: PercentageTextParser) -> None:
    assert parser.parse("25% Boost ref 31000%") == 25.0


@pytest.mark.parametrize("word", ["Boosted", "Booster", "boosts"])
def test_word_scan_only_accepts_listed_spellings(parser: PercentageTextParser, word: str) -> None:
    assert parser.candidates(f"35 {word}") == []


def test_word_scan_ignores_punctuation_around_boost(parser: PercentageTextParser) -> None:
    assert parser.parse("35 Boost!") == 35.0
