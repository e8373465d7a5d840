"""Key ratios (TTM) card model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from marketcards.config import CardType
from marketcards.models.base import Card


@dataclass(frozen=True)
class KeyRatiosStaticData:
    """When the ratios were computed and in which currency.

    Attributes:
        last_updated: Backend refresh time of the ratios row.
        reported_currency: Currency the per-share figures are in.
    """

    last_updated: str | None = None
    reported_currency: str | None = None


@dataclass(frozen=True)
class KeyRatiosLiveData:
    """Trailing-twelve-months valuation, margin and per-share ratios."""

    price_to_earnings_ratio: float | None = None
    price_to_sales_ratio: float | None = None
    price_to_book_ratio: float | None = None
    price_to_free_cash_flow_ratio: float | None = None
    enterprise_value_multiple: float | None = None
    net_profit_margin: float | None = None
    gross_profit_margin: float | None = None
    ebitda_margin: float | None = None
    debt_to_equity_ratio: float | None = None
    dividend_yield: float | None = None
    dividend_payout_ratio: float | None = None
    earnings_per_share: float | None = None
    revenue_per_share: float | None = None
    book_value_per_share: float | None = None
    free_cash_flow_per_share: float | None = None
    effective_tax_rate: float | None = None
    current_ratio: float | None = None
    quick_ratio: float | None = None
    asset_turnover: float | None = None


@dataclass(frozen=True)
class KeyRatiosCard(Card):
    card_type: ClassVar[CardType] = CardType.KEY_RATIOS

    static_data: KeyRatiosStaticData = field(default_factory=KeyRatiosStaticData)
    live_data: KeyRatiosLiveData = field(default_factory=KeyRatiosLiveData)
