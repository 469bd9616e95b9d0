from __future__ import annotations

import pytest

from core.odds import OddsPair
from core.odds_parser import OddsTextParser, correct_token


@pytest.fixture
def parser() -> OddsTextParser:
    return OddsTextParser()


def test_labeled_pair_with_separator(parser: OddsTextParser) -> None:
    assert parser.parse("Was +950 > Now +1129") == OddsPair("+950", "+1129")
    assert parser.last_strategy == "labeled_separator"


@pytest.mark.parametrize("separator", [">", "»", "›", "→", "->"])
def test_arrow_misreads_are_separators(parser: OddsTextParser, separator: str) -> None:
    assert parser.parse(f"Was +400 {separator} Now +500") == OddsPair("+400", "+500")


def test_was_label_misread(parser: OddsTextParser) -> None:
    assert parser.parse("Wos +300 > Now +360") == OddsPair("+300", "+360")


def test_labeled_pair_without_separator(parser: OddsTextParser) -> None:
    assert parser.parse("Was +950 ~ Now +1129") == OddsPair("+950", "+1129")
    assert parser.last_strategy == "labeled_pair"


def test_missing_sign_is_normalized_to_plus(parser: OddsTextParser) -> None:
    assert parser.parse("Was +4000 5000") == OddsPair("+4000", "+5000")
    assert parser.last_strategy == "was_correction"


def test_leading_letter_correction(parser: OddsTextParser) -> None:
    assert parser.parse("Was +950 i129") == OddsPair("+950", "+1129")
    assert parser.parse("Was +1800 Z100") == OddsPair("+1800", "+2100")


def test_reversed_labeled_pair_is_swapped(parser: OddsTextParser) -> None:
    pair = parser.parse("Was +1200 Now +900")
    assert pair is None or pair == OddsPair("+900", "+1200")


def test_rejected_labeled_pair_does_not_fall_back(parser: OddsTextParser) -> None:
    assert parser.parse("Was +500 Now +500 then 600 700") is None
    assert parser.last_strategy is None


def test_bare_numbers_fallback_takes_first_two(parser: OddsTextParser) -> None:
    assert parser.parse("+950 +1129 +2000") == OddsPair("+950", "+1129")
    assert parser.last_strategy == "bare_numbers"


def test_bare_numbers_are_not_sanity_checked(parser: OddsTextParser) -> None:
    assert parser.parse("+1200 +900") == OddsPair("+1200", "+900")


def test_single_number_is_not_a_pair(parser: OddsTextParser) -> None:
    assert parser.parse("+950") is None


def test_empty_and_garbage(parser: OddsTextParser) -> None:
    assert parser.parse("") is None
    assert parser.parse(None) is None
    assert parser.parse("no odds here") is None


def test_correct_token_only_when_unparseable() -> None:
    assert correct_token("1129") is None
    assert correct_token("l250") == "+1250"
    assert correct_token("|400,") == "+1400"
    assert correct_token("Q250") is None


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Was +1200 1b", OddsPair("+1200", "+1800")),
        ("Was +150 lb", OddsPair("+150", "+180")),
        ("Wos +7381 5578", OddsPair("+7381", "+8578")),
    ],
)
def test_known_whole_token_misreads(parser: OddsTextParser, text: str, expected: OddsPair) -> None:
    assert parser.parse(text) == expected
    assert parser.last_strategy == "was_correction"


def test_known_token_table_wins_over_other_rules() -> None:
    assert correct_token("1B") == "+1800"
    assert correct_token("lb") == "+180"
    assert correct_token("5578") == "+8578"
    assert correct_token("1c") is None
