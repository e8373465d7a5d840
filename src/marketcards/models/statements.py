"""Financial-statement card models (revenue and solvency)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from marketcards.config import CardType
from marketcards.models.base import Card


@dataclass(frozen=True)
class StatementStaticData:
    """Which statement the card's figures come from.

    Attributes:
        period_label: Display label ("FY2023", "Q3 2023", "TTM").
        reported_currency: Currency the statement reports in.
        filing_date: Filing date, "YYYY-MM-DD".
        accepted_date: Acceptance timestamp, "YYYY-MM-DD HH:MM:SS".
        statement_date: Period end date, "YYYY-MM-DD".
        statement_period: Raw period code ("FY", "Q1", ...).
    """

    period_label: str | None = None
    reported_currency: str | None = None
    filing_date: str | None = None
    accepted_date: str | None = None
    statement_date: str | None = None
    statement_period: str | None = None


@dataclass(frozen=True)
class RevenueLiveData:
    revenue: float | None = None
    gross_profit: float | None = None
    operating_income: float | None = None
    net_income: float | None = None
    free_cash_flow: float | None = None


@dataclass(frozen=True)
class SolvencyLiveData:
    total_assets: float | None = None
    cash_and_short_term_investments: float | None = None
    total_current_liabilities: float | None = None
    short_term_debt: float | None = None
    long_term_debt: float | None = None
    free_cash_flow: float | None = None


@dataclass(frozen=True)
class RevenueCard(Card):
    """Income-statement headline figures for the latest period."""

    card_type: ClassVar[CardType] = CardType.REVENUE

    static_data: StatementStaticData = field(default_factory=StatementStaticData)
    live_data: RevenueLiveData = field(default_factory=RevenueLiveData)


@dataclass(frozen=True)
class SolvencyCard(Card):
    """Balance-sheet liquidity and debt figures for the latest period."""

    card_type: ClassVar[CardType] = CardType.SOLVENCY

    static_data: StatementStaticData = field(default_factory=StatementStaticData)
    live_data: SolvencyLiveData = field(default_factory=SolvencyLiveData)
