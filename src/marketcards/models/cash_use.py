"""Cash use card model: debt, free cash flow, dividends and share count."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from marketcards.config import CardType
from marketcards.models.base import Card


@dataclass(frozen=True)
class CashUseStaticData:
    """Provenance of the card's figures.

    Attributes:
        reported_currency: Currency of the latest statement.
        latest_statement_date: Period end date of the latest statement.
        latest_statement_period: Period code of the latest statement.
        debt_range_label: Years the total debt range spans ("2019 - 2023").
        fcf_range_label: Years the free cash flow range spans.
        dividends_range_label: Years the dividends paid range spans.
        latest_shares_float_date: Date of the latest share count.
    """

    reported_currency: str | None = None
    latest_statement_date: str | None = None
    latest_statement_period: str | None = None
    debt_range_label: str | None = None
    fcf_range_label: str | None = None
    dividends_range_label: str | None = None
    latest_shares_float_date: str | None = None


@dataclass(frozen=True)
class CashUseLiveData:
    """Latest values with their range over the last five statements.

    Ranges are computed when the card is created; statement updates only
    move the ``current_*`` values.
    """

    current_outstanding_shares: float | None = None
    current_total_debt: float | None = None
    total_debt_min: float | None = None
    total_debt_max: float | None = None
    current_free_cash_flow: float | None = None
    free_cash_flow_min: float | None = None
    free_cash_flow_max: float | None = None
    current_net_dividends_paid: float | None = None
    net_dividends_paid_min: float | None = None
    net_dividends_paid_max: float | None = None


@dataclass(frozen=True)
class CashUseCard(Card):
    card_type: ClassVar[CardType] = CardType.CASH_USE

    static_data: CashUseStaticData = field(default_factory=CashUseStaticData)
    live_data: CashUseLiveData = field(default_factory=CashUseLiveData)
