"""Card models."""

from __future__ import annotations

from dataclasses import replace

from marketcards.config import CardType
from marketcards.models.analyst_grades import (
    AnalystGradesCard,
    AnalystGradesLiveData,
    AnalystGradesStaticData,
    AnalystRatingDetail,
)
from marketcards.models.base import (
    BackData,
    Card,
    RarityLevel,
    canonical_json,
    new_card_id,
    now_ms,
)
from marketcards.models.cash_use import CashUseCard, CashUseLiveData, CashUseStaticData
from marketcards.models.dividends import (
    AnnualDividendTotal,
    DividendsHistoryCard,
    DividendsLiveData,
    DividendsStaticData,
    LatestDividend,
)
from marketcards.models.key_ratios import KeyRatiosCard, KeyRatiosLiveData, KeyRatiosStaticData
from marketcards.models.price import PriceBackData, PriceCard, PriceFaceData
from marketcards.models.profile import ProfileCard, ProfileLiveData, ProfileStaticData
from marketcards.models.revenue_breakdown import (
    RevenueBreakdownCard,
    RevenueBreakdownLiveData,
    RevenueBreakdownStaticData,
    SegmentRevenue,
)
from marketcards.models.statements import (
    RevenueCard,
    RevenueLiveData,
    SolvencyCard,
    SolvencyLiveData,
    StatementStaticData,
)

CARD_CLASSES: dict[CardType, type[Card]] = {
    CardType.PRICE: PriceCard,
    CardType.PROFILE: ProfileCard,
    CardType.REVENUE: RevenueCard,
    CardType.SOLVENCY: SolvencyCard,
    CardType.DIVIDENDS_HISTORY: DividendsHistoryCard,
    CardType.ANALYST_GRADES: AnalystGradesCard,
    CardType.KEY_RATIOS: KeyRatiosCard,
    CardType.CASH_USE: CashUseCard,
    CardType.REVENUE_BREAKDOWN: RevenueBreakdownCard,
}


def empty_card(
    card_type: CardType,
    symbol: str,
    *,
    company_name: str | None = None,
    logo_url: str | None = None,
    description: str | None = None,
    created_at: int | None = None,
) -> Card:
    """Build a valid card of ``card_type`` whose live fields are all null."""
    card = CARD_CLASSES[card_type](
        id=new_card_id(card_type, symbol),
        symbol=symbol,
        created_at=created_at if created_at is not None else now_ms(),
        company_name=company_name if company_name is not None else symbol,
        logo_url=logo_url,
    )
    text = description or f"{card_type.value.capitalize()} data for {symbol}."
    return replace(card, back_data=replace(card.back_data, description=text))


__all__ = [
    "CARD_CLASSES",
    "empty_card",
    "Card",
    "BackData",
    "RarityLevel",
    "canonical_json",
    "new_card_id",
    "now_ms",
    "PriceCard",
    "PriceFaceData",
    "PriceBackData",
    "ProfileCard",
    "ProfileStaticData",
    "ProfileLiveData",
    "RevenueCard",
    "RevenueLiveData",
    "SolvencyCard",
    "SolvencyLiveData",
    "StatementStaticData",
    "DividendsHistoryCard",
    "DividendsStaticData",
    "DividendsLiveData",
    "LatestDividend",
    "AnnualDividendTotal",
    "AnalystGradesCard",
    "AnalystGradesStaticData",
    "AnalystGradesLiveData",
    "AnalystRatingDetail",
    "KeyRatiosCard",
    "KeyRatiosStaticData",
    "KeyRatiosLiveData",
    "CashUseCard",
    "CashUseStaticData",
    "CashUseLiveData",
    "RevenueBreakdownCard",
    "RevenueBreakdownStaticData",
    "RevenueBreakdownLiveData",
    "SegmentRevenue",
]
