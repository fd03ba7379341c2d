"""
Badge Templates Package
"""

from .badges import (
    Badge,
    analyzing_badge,
    no_data_badge,
    profit_tier,
    result_badge,
    render_badge_html,
)

__all__ = [
    'Badge',
    'analyzing_badge',
    'no_data_badge',
    'profit_tier',
    'result_badge',
    'render_badge_html',
]
