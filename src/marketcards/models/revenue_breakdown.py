"""Revenue breakdown card model: revenue by product segment."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from marketcards.config import CardType
from marketcards.models.base import Card


@dataclass(frozen=True)
class SegmentRevenue:
    """One product segment, with its year-over-year change."""

    segment_name: str
    current_revenue: float
    previous_revenue: float | None = None
    yoy_change: float | None = None


@dataclass(frozen=True)
class RevenueBreakdownStaticData:
    currency_symbol: str = "$"
    latest_period_label: str | None = None
    previous_period_label: str | None = None
    # Raw "YYYY-MM-DD" of the latest period, used to order incoming rows.
    latest_period_date: str | None = None


@dataclass(frozen=True)
class RevenueBreakdownLiveData:
    total_revenue_latest_period: float | None = None
    breakdown: tuple[SegmentRevenue, ...] = ()
    last_updated: str | None = None


@dataclass(frozen=True)
class RevenueBreakdownCard(Card):
    card_type: ClassVar[CardType] = CardType.REVENUE_BREAKDOWN

    static_data: RevenueBreakdownStaticData = field(default_factory=RevenueBreakdownStaticData)
    live_data: RevenueBreakdownLiveData = field(default_factory=RevenueBreakdownLiveData)
