"""Cross-check the banner percentage against the percentage implied by the odds."""

from __future__ import annotations

from dataclasses import dataclass

from core.odds import american_to_decimal

DEFAULT_DISCREPANCY_THRESHOLD = 10.0


@dataclass(frozen=True, slots=True)
class BoostCalculation:
    """Result of :func:`verify`.

    Attributes:
        detected_percentage:   Percentage read from the banner crop.
        calculated_percentage: Increase in decimal odds, rounded to 2 places.
        discrepancy:           ``|calculated - detected|``.
        is_significant:        ``discrepancy >= threshold``.
    """

    detected_percentage: float
    calculated_percentage: float
    discrepancy: float
    is_significant: bool
    was_odds: str
    now_odds: str


def calculate_boost_percentage(pre_odds: str, post_odds: str) -> float:
    """Percentage increase from *pre_odds* to *post_odds* in decimal odds.

    ``nan`` propagates when either quote is unparseable.
    """
    pre = american_to_decimal(pre_odds)
    post = american_to_decimal(post_odds)
    return round((post - pre) / pre * 100.0, 2)


def verify(
    detected_percentage: float,
    pre_odds: str,
    post_odds: str,
    discrepancy_threshold: float = DEFAULT_DISCREPANCY_THRESHOLD,
) -> BoostCalculation:
    calculated = calculate_boost_percentage(pre_odds, post_odds)
    discrepancy = abs(calculated - detected_percentage)
    return BoostCalculation(
        detected_percentage=detected_percentage,
        calculated_percentage=calculated,
        discrepancy=discrepancy,
        is_significant=discrepancy >= discrepancy_threshold,
        was_odds=pre_odds,
        now_odds=post_odds,
    )


def format_discrepancy_message(calculation: BoostCalculation) -> str:
    """Render a discrepancy block for the chat channel."""
    if calculation.discrepancy >= 20:
        emoji, verdict = "🚨", "🚨 **MAJOR DISCREPANCY**"
    elif calculation.discrepancy >= 15:
        emoji, verdict = "⚠️", "⚠️ **Significant difference**"
    else:
        emoji, verdict = "📊", "📊 **Notable difference**"

    return (
        f"{emoji} **Boost Percentage Discrepancy Detected**\n\n"
        f"📈 **Odds Change:** {calculation.was_odds} → {calculation.now_odds}\n"
        f"🎯 **Detected Boost:** {calculation.detected_percentage:g}%\n"
        f"🧮 **Calculated Boost:** {calculation.calculated_percentage:g}%\n"
        f"📊 **Discrepancy:** {calculation.discrepancy:.2f}% difference\n\n"
        f"{verdict}"
    )
