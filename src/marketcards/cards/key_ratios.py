"""Key ratios card: trailing-twelve-months valuation and margin ratios."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from marketcards.cards.common import (
    apply_profile_core,
    back_description,
    card_kwargs,
    fetch,
    load_identity,
    read_section,
)
from marketcards.config import CardType, UpdateKind
from marketcards.events import InitContext, UpdateContext
from marketcards.models.base import BackData, new_card_id, now_ms
from marketcards.models.key_ratios import KeyRatiosCard, KeyRatiosLiveData, KeyRatiosStaticData
from marketcards.payloads import get_mapping, parse_date, safe_float, safe_str
from marketcards.registry import CommonProps, RegistryEntry

logger = logging.getLogger(__name__)

# Live field -> ``ratios_ttm`` column.
RATIO_COLUMNS = {
    "price_to_earnings_ratio": "price_to_earnings_ratio_ttm",
    "price_to_sales_ratio": "price_to_sales_ratio_ttm",
    "price_to_book_ratio": "price_to_book_ratio_ttm",
    "price_to_free_cash_flow_ratio": "price_to_free_cash_flow_ratio_ttm",
    "enterprise_value_multiple": "enterprise_value_multiple_ttm",
    "net_profit_margin": "net_profit_margin_ttm",
    "gross_profit_margin": "gross_profit_margin_ttm",
    "ebitda_margin": "ebitda_margin_ttm",
    "debt_to_equity_ratio": "debt_to_equity_ratio_ttm",
    "dividend_yield": "dividend_yield_ttm",
    "dividend_payout_ratio": "dividend_payout_ratio_ttm",
    "earnings_per_share": "net_income_per_share_ttm",
    "revenue_per_share": "revenue_per_share_ttm",
    "book_value_per_share": "book_value_per_share_ttm",
    "free_cash_flow_per_share": "free_cash_flow_per_share_ttm",
    "effective_tax_rate": "effective_tax_rate_ttm",
    "current_ratio": "current_ratio_ttm",
    "quick_ratio": "quick_ratio_ttm",
    "asset_turnover": "asset_turnover_ttm",
}


def live_from_row(row: Mapping[str, Any]) -> KeyRatiosLiveData:
    return KeyRatiosLiveData(**{name: safe_float(row.get(column)) for name, column in RATIO_COLUMNS.items()})


def format_updated(value: str | None) -> str:
    """Date part of an update timestamp, or "N/A"."""
    parsed = parse_date(value)
    if parsed is None:
        return value or "N/A"
    return parsed.isoformat()


def describe(name: str, static: KeyRatiosStaticData) -> str:
    return (
        f"Key Trailing Twelve Months (TTM) financial ratios for {name}. "
        f"Ratios last updated on {format_updated(static.last_updated)}."
    )


def rehydrate(record: Mapping[str, Any], props: CommonProps) -> KeyRatiosCard:
    static = read_section(
        KeyRatiosStaticData, get_mapping(record, "staticData") or get_mapping(record, "static_data"),
    )
    return KeyRatiosCard(
        **card_kwargs(props),
        static_data=static,
        live_data=read_section(
            KeyRatiosLiveData, get_mapping(record, "liveData") or get_mapping(record, "live_data"),
        ),
        back_data=BackData(
            description=back_description(record, describe(props.company_name or props.symbol, static)),
        ),
    )


async def initialize(ctx: InitContext) -> KeyRatiosCard | None:
    identity = await load_identity(ctx)
    row = await fetch(ctx.source.get_key_ratios, ctx.symbol)
    if not row:
        ctx.notify("Ratios Not Found", f"No TTM ratios currently available for {ctx.symbol}.")
        return None
    static = KeyRatiosStaticData(
        last_updated=safe_str(row.get("updated_at")),
        reported_currency=identity["currency"],
    )
    return KeyRatiosCard(
        id=new_card_id(CardType.KEY_RATIOS, ctx.symbol),
        symbol=ctx.symbol,
        created_at=now_ms(),
        company_name=identity["company_name"],
        logo_url=identity["logo_url"],
        website_url=identity["website_url"],
        static_data=static,
        live_data=live_from_row(row),
        back_data=BackData(description=describe(identity["company_name"], static)),
    )


def handle_ratios(current: KeyRatiosCard | None, payload: Any, ctx: UpdateContext) -> KeyRatiosCard | None:
    """Replace the ratios with a refreshed ``ratios_ttm`` row."""
    if current is None or not isinstance(payload, Mapping):
        return current
    live = live_from_row(payload)
    last_updated = safe_str(payload.get("updated_at")) or current.static_data.last_updated
    if live == current.live_data and last_updated == current.static_data.last_updated:
        return current

    static = replace(current.static_data, last_updated=last_updated)
    ctx.notify(
        f"Key Ratios Updated: {current.symbol}",
        f"TTM Ratios have been refreshed as of {format_updated(last_updated)}.",
    )
    return replace(
        current,
        static_data=static,
        live_data=live,
        back_data=replace(current.back_data, description=describe(current.company_name or current.symbol, static)),
    )


def handle_profile(current: KeyRatiosCard | None, payload: Any, ctx: UpdateContext) -> KeyRatiosCard | None:
    """Refresh identity fields and the reporting currency."""
    if current is None or not isinstance(payload, Mapping):
        return current
    updated = apply_profile_core(current, payload)
    currency = safe_str(payload.get("currency")) or current.static_data.reported_currency
    if updated is current and currency == current.static_data.reported_currency:
        return current
    static = replace(current.static_data, reported_currency=currency)
    return replace(
        updated,
        static_data=static,
        back_data=replace(updated.back_data, description=describe(updated.company_name or updated.symbol, static)),
    )


ENTRY = RegistryEntry(
    card_type=CardType.KEY_RATIOS,
    card_class=KeyRatiosCard,
    rehydrate=rehydrate,
    initialize=initialize,
    update_handlers={
        UpdateKind.RATIOS_TTM: handle_ratios,
        UpdateKind.STATIC_PROFILE: handle_profile,
    },
)
