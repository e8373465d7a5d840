"""Dividends history card model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from marketcards.config import CardType
from marketcards.models.base import Card


@dataclass(frozen=True)
class LatestDividend:
    """Most recent dividend distribution.

    Attributes:
        amount: Declared amount per share.
        adj_amount: Split-adjusted amount per share.
        ex_dividend_date: Ex-dividend date, "YYYY-MM-DD".
        payment_date: Payment date.
        declaration_date: Declaration date.
        yield_at_distribution: Yield at the time of the distribution.
        frequency: Payment frequency label ("Quarterly", ...).
    """

    amount: float | None = None
    adj_amount: float | None = None
    ex_dividend_date: str | None = None
    payment_date: str | None = None
    declaration_date: str | None = None
    yield_at_distribution: float | None = None
    frequency: str | None = None


@dataclass(frozen=True)
class AnnualDividendTotal:
    year: int
    total_dividend: float


@dataclass(frozen=True)
class DividendsStaticData:
    reported_currency: str | None = None
    typical_frequency: str | None = None


@dataclass(frozen=True)
class DividendsLiveData:
    """Latest payment plus annual totals for the last three full years."""

    latest_dividend: LatestDividend | None = None
    annual_totals_last_3_years: tuple[AnnualDividendTotal, ...] = ()
    last_full_year_dividend_growth_yoy: float | None = None
    last_updated: str | None = None


@dataclass(frozen=True)
class DividendsHistoryCard(Card):
    card_type: ClassVar[CardType] = CardType.DIVIDENDS_HISTORY

    static_data: DividendsStaticData = field(default_factory=DividendsStaticData)
    live_data: DividendsLiveData = field(default_factory=DividendsLiveData)
