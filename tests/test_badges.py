# tests/test_badges.py

"""Tests for profit badge rendering."""

import unittest
from decimal import Decimal

from pipeline.enrichment import EnrichmentFailure, FailureReason, compute_profit
from services.session import Settings
from templates.badges import (
    analyzing_badge,
    profit_tier,
    render_badge_html,
    result_badge,
)


def _success(price, *sold):
    return compute_profit(Decimal(str(price)), [{"price": Decimal(str(p))} for p in sold], "q")


class TestProfitTier(unittest.TestCase):

    def test_tiers(self) -> None:
        self.assertEqual(profit_tier(Decimal("-1")), "negative")
        self.assertEqual(profit_tier(Decimal("0")), "low-profit")
        self.assertEqual(profit_tier(Decimal("19")), "low-profit")
        self.assertEqual(profit_tier(Decimal("20")), "good-profit")
        self.assertEqual(profit_tier(Decimal("50")), "best-profit")


class TestResultBadge(unittest.TestCase):

    def test_profit_badge(self) -> None:
        badge = result_badge(_success(50, 80, 90, 100), Settings())
        self.assertEqual(badge.tier, "good-profit")
        self.assertEqual(badge.text, "eBay Price: $90")
        self.assertEqual(badge.details, "Profit: $40 (80.0%)")
        self.assertTrue(badge.is_deal)

    def test_loss_badge(self) -> None:
        badge = result_badge(_success(100, 60, 70), Settings())
        self.assertEqual(badge.tier, "negative")
        self.assertEqual(badge.details, "Loss: $35 (-35.0%)")
        self.assertFalse(badge.is_deal)

    def test_loss_hidden_when_negative_profits_off(self) -> None:
        settings = Settings(show_negative_profits=False)
        self.assertIsNone(result_badge(_success(100, 60, 70), settings))

    def test_below_threshold_not_a_deal(self) -> None:
        settings = Settings(min_profit_threshold=Decimal("50"))
        badge = result_badge(_success(50, 80, 90, 100), settings)
        self.assertFalse(badge.is_deal)

    def test_failure_is_no_data(self) -> None:
        for reason in FailureReason:
            badge = result_badge(EnrichmentFailure(reason), Settings(show_negative_profits=False))
            self.assertEqual(badge.text, "❌ No data")
            self.assertEqual(badge.tier, "negative")


class TestRenderHtml(unittest.TestCase):

    def test_markup(self) -> None:
        html = render_badge_html(analyzing_badge())
        self.assertIn('class="flipfinder-profit-badge analyzing"', html)
        self.assertIn('data-flipfinder="true"', html)
        self.assertIn("Analyzing...", html)

    def test_details_escaped(self) -> None:
        badge = result_badge(_success(50, 80, 90, 100), Settings())
        html = render_badge_html(badge)
        self.assertIn('<div class="flipfinder-details">Profit: $40 (80.0%)</div>', html)


if __name__ == "__main__":
    unittest.main()
