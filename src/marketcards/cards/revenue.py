"""Revenue card: income-statement headline figures."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from marketcards.cards.common import (
    apply_statement,
    back_description,
    card_kwargs,
    fetch,
    load_identity,
    profile_core_handler,
    read_section,
    statement_static,
)
from marketcards.config import CardType, UpdateKind
from marketcards.events import InitContext, UpdateContext
from marketcards.models.base import BackData, new_card_id, now_ms
from marketcards.models.statements import RevenueCard, RevenueLiveData, StatementStaticData
from marketcards.payloads import get_mapping, safe_float
from marketcards.registry import CommonProps, RegistryEntry


def live_from_row(row: Mapping[str, Any]) -> RevenueLiveData:
    income = get_mapping(row, "income_statement_payload")
    cash_flow = get_mapping(row, "cash_flow_payload")
    return RevenueLiveData(
        revenue=safe_float(income.get("revenue")),
        gross_profit=safe_float(income.get("grossProfit")),
        operating_income=safe_float(income.get("operatingIncome")),
        net_income=safe_float(income.get("netIncome")),
        free_cash_flow=safe_float(cash_flow.get("freeCashFlow")),
    )


def describe(name: str, static: StatementStaticData) -> str:
    return (
        f"Key financial metrics for {name} ({static.period_label}, ending "
        f"{static.statement_date or 'N/A'}). Includes revenue, profits, and free cash flow."
    )


def rehydrate(record: Mapping[str, Any], props: CommonProps) -> RevenueCard:
    static = read_section(
        StatementStaticData, get_mapping(record, "staticData") or get_mapping(record, "static_data"),
    )
    return RevenueCard(
        **card_kwargs(props),
        static_data=static,
        live_data=read_section(
            RevenueLiveData, get_mapping(record, "liveData") or get_mapping(record, "live_data"),
        ),
        back_data=BackData(
            description=back_description(record, describe(props.company_name or props.symbol, static)),
        ),
    )


async def initialize(ctx: InitContext) -> RevenueCard | None:
    identity = await load_identity(ctx)
    row = await fetch(ctx.source.get_latest_statement, ctx.symbol)
    if not row:
        ctx.notify("Statement Not Found", f"No financial statements currently available for {ctx.symbol}.")
        return None
    static = statement_static(row)
    return RevenueCard(
        id=new_card_id(CardType.REVENUE, ctx.symbol),
        symbol=ctx.symbol,
        created_at=now_ms(),
        company_name=identity["company_name"],
        logo_url=identity["logo_url"],
        website_url=identity["website_url"],
        static_data=static,
        live_data=live_from_row(row),
        back_data=BackData(description=describe(identity["company_name"], static)),
    )


def handle_statement(current: RevenueCard | None, payload: Any, ctx: UpdateContext) -> RevenueCard | None:
    if current is None or not isinstance(payload, Mapping):
        return current
    return apply_statement(current, payload, ctx, live_from_row(payload), describe)


ENTRY = RegistryEntry(
    card_type=CardType.REVENUE,
    card_class=RevenueCard,
    rehydrate=rehydrate,
    initialize=initialize,
    update_handlers={
        UpdateKind.FINANCIAL_STATEMENT: handle_statement,
        UpdateKind.STATIC_PROFILE: profile_core_handler(
            lambda card: describe(card.company_name or card.symbol, card.static_data)
        ),
    },
)
