"""
Profit badge rendering

Badges are the only user-visible output of a scan: "Analyzing..." while a
listing is in flight, then either a profit/loss badge or "No data".
"""

from dataclasses import dataclass
from decimal import Decimal
from html import escape
from typing import Optional

from config import LOW_PROFIT_CEILING, GOOD_PROFIT_CEILING
from pipeline.enrichment import EnrichmentResult
from services.session import Settings

BADGE_CLASS = "flipfinder-profit-badge"

BADGE_COLORS = {
    "analyzing": "#6c757d",
    "negative": "#dc3545",
    "low-profit": "#ffc107",
    "good-profit": "#28a745",
    "best-profit": "#6366f1",
}


@dataclass(frozen=True)
class Badge:
    tier: str
    text: str
    details: str = ""
    is_deal: bool = False

    @property
    def css_class(self) -> str:
        return f"{BADGE_CLASS} {self.tier}"


def analyzing_badge() -> Badge:
    return Badge(tier="analyzing", text="🔍 Analyzing...")


def no_data_badge() -> Badge:
    return Badge(tier="negative", text="❌ No data")


def profit_tier(profit: Decimal) -> str:
    if profit < 0:
        return "negative"
    if profit < LOW_PROFIT_CEILING:
        return "low-profit"
    if profit < GOOD_PROFIT_CEILING:
        return "good-profit"
    return "best-profit"


def result_badge(result: EnrichmentResult, settings: Settings) -> Optional[Badge]:
    """
    Badge for a finished enrichment.

    Returns None when the badge should be removed (a loss while
    show_negative_profits is off).
    """
    if not result.ok:
        return no_data_badge()

    profit = result.profit
    if profit < 0 and not settings.show_negative_profits:
        return None

    if profit < 0:
        profit_text = f"Loss: ${abs(profit)}"
    else:
        profit_text = f"Profit: ${profit}"

    return Badge(
        tier=profit_tier(profit),
        text=f"eBay Price: ${result.estimated_value}",
        details=f"{profit_text} ({result.profit_margin_pct}%)",
        is_deal=profit >= settings.min_profit_threshold,
    )


def render_badge_html(badge: Badge) -> str:
    """Inline-styled badge markup for overlaying on a listing"""
    color = BADGE_COLORS.get(badge.tier, "#6c757d")
    details = f'<div class="flipfinder-details">{escape(badge.details)}</div>' if badge.details else ""
    return (
        f'<div class="{badge.css_class}" data-flipfinder="true" '
        f'style="background: {color}; color: white; padding: 4px 8px; border-radius: 6px; '
        f'font-size: 12px; font-weight: 600;">'
        f'{escape(badge.text)}{details}</div>'
    )
