"""Cash use card: debt, free cash flow, dividends paid and share count.

Each financial metric is shown with its range over the last five
statements. The ranges are fixed when the card is created; later
statements only move the current values.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any, Callable

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
from marketcards.models.cash_use import CashUseCard, CashUseLiveData, CashUseStaticData
from marketcards.payloads import get_mapping, parse_date, safe_float, safe_str
from marketcards.registry import CommonProps, RegistryEntry

logger = logging.getLogger(__name__)

STATEMENT_HISTORY = 5


@dataclass(frozen=True)
class MetricRange:
    latest: float | None = None
    minimum: float | None = None
    maximum: float | None = None
    label: str = "N/A"


def total_debt(row: Mapping[str, Any]) -> float | None:
    return safe_float(get_mapping(row, "balance_sheet_payload").get("totalDebt"))


def free_cash_flow(row: Mapping[str, Any]) -> float | None:
    return safe_float(get_mapping(row, "cash_flow_payload").get("freeCashFlow"))


def net_dividends_paid(row: Mapping[str, Any]) -> float | None:
    """Dividends paid as a positive amount (cash flow reports an outflow)."""
    value = safe_float(get_mapping(row, "cash_flow_payload").get("netDividendsPaid"))
    return abs(value) if value is not None else None


def metric_range(
    rows: Sequence[Mapping[str, Any]], extract: Callable[[Mapping[str, Any]], float | None],
) -> MetricRange:
    """Latest, min and max of a statement metric plus the years it spans."""
    points = []
    for row in rows:
        value = extract(row)
        statement_date = safe_str(row.get("date"))
        if value is not None and parse_date(statement_date) is not None:
            points.append((statement_date, value, row))
    if not points:
        return MetricRange()
    points.sort(key=lambda p: parse_date(p[0]), reverse=True)

    latest_date, latest_value, latest_row = points[0]
    oldest_date = points[-1][0]
    values = [value for _, value, _ in points]
    if len(points) == 1 or latest_date == oldest_date:
        period = safe_str(latest_row.get("period"))
        year = safe_str(latest_row.get("fiscal_year")) or latest_date[:4]
        label = f"{period} {year}" if period else f"As of {latest_date}"
    else:
        label = f"{oldest_date[:4]} - {latest_date[:4]}"
    return MetricRange(latest=latest_value, minimum=min(values), maximum=max(values), label=label)


def describe(name: str, static: CashUseStaticData) -> str:
    return (
        f"Cash usage metrics for {name}. Financial data from "
        f"{static.latest_statement_date or 'N/A'} ({static.latest_statement_period or 'N/A'}). "
        f"Shares outstanding as of {static.latest_shares_float_date or 'N/A'}."
    )


def build_cash_use_card(
    symbol: str,
    identity: Mapping[str, Any],
    statements: Sequence[Mapping[str, Any]],
    shares: Mapping[str, Any] | None,
) -> CashUseCard | None:
    """New card from up to five statements and the latest share count.

    Returns None when neither the statements nor the share count carry
    any figure.
    """
    debt = metric_range(statements, total_debt)
    fcf = metric_range(statements, free_cash_flow)
    dividends = metric_range(statements, net_dividends_paid)
    outstanding = safe_float(shares.get("outstanding_shares")) if shares else None
    if debt.latest is None and fcf.latest is None and dividends.latest is None and outstanding is None:
        return None

    latest = statements[0] if statements else {}
    static = CashUseStaticData(
        reported_currency=safe_str(latest.get("reported_currency")),
        latest_statement_date=safe_str(latest.get("date")),
        latest_statement_period=safe_str(latest.get("period")),
        debt_range_label=debt.label,
        fcf_range_label=fcf.label,
        dividends_range_label=dividends.label,
        latest_shares_float_date=safe_str(shares.get("date")) if shares else None,
    )
    live = CashUseLiveData(
        current_outstanding_shares=outstanding,
        current_total_debt=debt.latest,
        total_debt_min=debt.minimum,
        total_debt_max=debt.maximum,
        current_free_cash_flow=fcf.latest,
        free_cash_flow_min=fcf.minimum,
        free_cash_flow_max=fcf.maximum,
        current_net_dividends_paid=dividends.latest,
        net_dividends_paid_min=dividends.minimum,
        net_dividends_paid_max=dividends.maximum,
    )
    name = identity.get("company_name") or symbol
    return CashUseCard(
        id=new_card_id(CardType.CASH_USE, symbol),
        symbol=symbol,
        created_at=now_ms(),
        company_name=name,
        logo_url=identity.get("logo_url"),
        website_url=identity.get("website_url"),
        static_data=static,
        live_data=live,
        back_data=BackData(description=describe(name, static)),
    )


def rehydrate(record: Mapping[str, Any], props: CommonProps) -> CashUseCard:
    static = read_section(
        CashUseStaticData, get_mapping(record, "staticData") or get_mapping(record, "static_data"),
    )
    return CashUseCard(
        **card_kwargs(props),
        static_data=static,
        live_data=read_section(
            CashUseLiveData, get_mapping(record, "liveData") or get_mapping(record, "live_data"),
        ),
        back_data=BackData(
            description=back_description(record, describe(props.company_name or props.symbol, static)),
        ),
    )


async def initialize(ctx: InitContext) -> CashUseCard | None:
    identity = await load_identity(ctx)
    statements = await fetch(ctx.source.get_statements, ctx.symbol, STATEMENT_HISTORY)
    shares = await fetch(ctx.source.get_latest_shares_float, ctx.symbol)
    card = build_cash_use_card(ctx.symbol, identity, statements or [], shares)
    if card is None:
        ctx.notify(
            "Insufficient Data",
            f"No financial or shares data found for {ctx.symbol} to create a Cash Use Card.",
        )
    return card


def _on_or_after(new: Any, current: str | None) -> bool:
    new_date = parse_date(new)
    if new_date is None:
        return False
    old_date = parse_date(current)
    return old_date is None or new_date >= old_date


def handle_statement(current: CashUseCard | None, payload: Any, ctx: UpdateContext) -> CashUseCard | None:
    """Move the current figures to a statement at least as recent as the card's."""
    if current is None or not isinstance(payload, Mapping):
        return current
    static = current.static_data
    period = safe_str(payload.get("period"))
    if period is None or not _on_or_after(payload.get("date"), static.latest_statement_date):
        logger.debug("Statement %s for %s is older than the card; ignoring", payload.get("date"), current.symbol)
        return current

    changes = {}
    for field_name, extract in (
        ("current_total_debt", total_debt),
        ("current_free_cash_flow", free_cash_flow),
        ("current_net_dividends_paid", net_dividends_paid),
    ):
        value = extract(payload)
        if value is not None and value != getattr(current.live_data, field_name):
            changes[field_name] = value

    statement_date = safe_str(payload.get("date"))
    new_static = replace(
        static,
        latest_statement_date=statement_date,
        latest_statement_period=period,
        reported_currency=safe_str(payload.get("reported_currency")) or static.reported_currency,
    )
    if not changes and new_static == static:
        return current

    ctx.notify(
        f"Cash Use Figures Updated: {current.symbol}",
        f"Latest statement data ({period} {statement_date}) applied. 5-year ranges reflect initial card data.",
    )
    return replace(
        current,
        static_data=new_static,
        live_data=replace(current.live_data, **changes),
        back_data=replace(current.back_data, description=describe(current.company_name or current.symbol, new_static)),
    )


def handle_shares_float(current: CashUseCard | None, payload: Any, ctx: UpdateContext) -> CashUseCard | None:
    """Apply a share count dated on or after the card's."""
    if current is None or not isinstance(payload, Mapping):
        return current
    if not _on_or_after(payload.get("date"), current.static_data.latest_shares_float_date):
        return current

    shares_date = safe_str(payload.get("date"))
    outstanding = safe_float(payload.get("outstanding_shares"))
    live = current.live_data
    if outstanding is not None:
        live = replace(live, current_outstanding_shares=outstanding)
    static = replace(current.static_data, latest_shares_float_date=shares_date)
    if live == current.live_data and static == current.static_data:
        return current

    ctx.notify(f"Shares Outstanding Updated: {current.symbol}", f"Data as of {shares_date} applied.")
    return replace(
        current,
        static_data=static,
        live_data=live,
        back_data=replace(current.back_data, description=describe(current.company_name or current.symbol, static)),
    )


def handle_profile(current: CashUseCard | None, payload: Any, ctx: UpdateContext) -> CashUseCard | None:
    if current is None or not isinstance(payload, Mapping):
        return current
    updated = apply_profile_core(current, payload)
    if updated is current:
        return current
    ctx.notify("Profile Info Updated", f"Company details for {current.symbol} card refreshed.")
    description = describe(updated.company_name or updated.symbol, updated.static_data)
    return replace(updated, back_data=replace(updated.back_data, description=description))


ENTRY = RegistryEntry(
    card_type=CardType.CASH_USE,
    card_class=CashUseCard,
    rehydrate=rehydrate,
    initialize=initialize,
    update_handlers={
        UpdateKind.FINANCIAL_STATEMENT: handle_statement,
        UpdateKind.SHARES_FLOAT: handle_shares_float,
        UpdateKind.STATIC_PROFILE: handle_profile,
    },
)
