"""Revenue breakdown card: annual revenue by product segment with YoY change."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from marketcards.cards.common import (
    back_description,
    card_kwargs,
    fetch,
    load_identity,
    profile_core_handler,
    read_section,
)
from marketcards.config import CardType, UpdateKind
from marketcards.events import InitContext, UpdateContext
from marketcards.models.base import BackData, new_card_id, now_ms
from marketcards.models.revenue_breakdown import (
    RevenueBreakdownCard,
    RevenueBreakdownLiveData,
    RevenueBreakdownStaticData,
    SegmentRevenue,
)
from marketcards.payloads import first_present, get_mapping, parse_date, safe_float, safe_str
from marketcards.registry import CommonProps, RegistryEntry

logger = logging.getLogger(__name__)


def parse_segments(raw: Any) -> dict[str, float]:
    """Segment name -> revenue from a row's ``data`` column.

    The column may arrive as a JSON string. Non-numeric entries are dropped.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.debug("Unparseable segment data: %r", raw[:80])
            return {}
    if not isinstance(raw, Mapping):
        return {}
    segments = {}
    for name, value in raw.items():
        amount = safe_float(value)
        if amount is not None:
            segments[str(name)] = amount
    return segments


def build_breakdown(
    latest: Mapping[str, float], previous: Mapping[str, float] | None,
) -> tuple[SegmentRevenue, ...]:
    items = []
    for name, revenue in latest.items():
        before = previous.get(name) if previous else None
        items.append(
            SegmentRevenue(
                segment_name=name,
                current_revenue=revenue,
                previous_revenue=before,
                yoy_change=(revenue - before) / before if before else None,
            )
        )
    items.sort(key=lambda item: item.current_revenue, reverse=True)
    return tuple(items)


def period_label(row: Mapping[str, Any]) -> str:
    return f"FY{safe_str(row.get('fiscal_year')) or 'N/A'} ending {safe_str(row.get('date')) or 'N/A'}"


def currency_symbol(row: Mapping[str, Any], profile_currency: str | None) -> str:
    reported = safe_str(row.get("reported_currency"))
    if reported:
        return reported
    if profile_currency and profile_currency != "USD":
        return profile_currency
    return "$"


def describe(name: str, static: RevenueBreakdownStaticData) -> str:
    return (
        f"Revenue breakdown by product/segment for {name} for "
        f"{static.latest_period_label or 'N/A'}, showing year-over-year changes."
    )


def build_live(
    latest_row: Mapping[str, Any], previous: Mapping[str, float] | None,
) -> RevenueBreakdownLiveData:
    segments = parse_segments(latest_row.get("data"))
    return RevenueBreakdownLiveData(
        total_revenue_latest_period=sum(segments.values()),
        breakdown=build_breakdown(segments, previous),
        last_updated=safe_str(latest_row.get("updated_at")),
    )


def build_breakdown_card(
    symbol: str,
    identity: Mapping[str, Any],
    latest: Mapping[str, Any],
    previous: Mapping[str, Any] | None,
) -> RevenueBreakdownCard:
    static = RevenueBreakdownStaticData(
        currency_symbol=currency_symbol(latest, identity.get("currency")),
        latest_period_label=period_label(latest),
        previous_period_label=period_label(previous) if previous else None,
        latest_period_date=safe_str(latest.get("date")),
    )
    name = identity.get("company_name") or symbol
    return RevenueBreakdownCard(
        id=new_card_id(CardType.REVENUE_BREAKDOWN, symbol),
        symbol=symbol,
        created_at=now_ms(),
        company_name=name,
        logo_url=identity.get("logo_url"),
        website_url=identity.get("website_url"),
        static_data=static,
        live_data=build_live(latest, parse_segments(previous.get("data")) if previous else None),
        back_data=BackData(description=describe(name, static)),
    )


def _rehydrate_breakdown(raw: Any) -> tuple[SegmentRevenue, ...]:
    if not isinstance(raw, list):
        return ()
    items = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        name = safe_str(first_present(item, "segmentName", "segment_name"))
        revenue = safe_float(first_present(item, "currentRevenue", "current_revenue"))
        if name is None or revenue is None:
            continue
        items.append(
            SegmentRevenue(
                segment_name=name,
                current_revenue=revenue,
                previous_revenue=safe_float(first_present(item, "previousRevenue", "previous_revenue")),
                yoy_change=safe_float(first_present(item, "yoyChange", "yoy_change")),
            )
        )
    return tuple(items)


def rehydrate(record: Mapping[str, Any], props: CommonProps) -> RevenueBreakdownCard:
    raw_static = get_mapping(record, "staticData") or get_mapping(record, "static_data")
    static = read_section(
        RevenueBreakdownStaticData,
        raw_static,
        currency_symbol=safe_str(first_present(raw_static, "currencySymbol", "currency_symbol")) or "$",
    )
    live = get_mapping(record, "liveData") or get_mapping(record, "live_data")
    return RevenueBreakdownCard(
        **card_kwargs(props),
        static_data=static,
        live_data=read_section(
            RevenueBreakdownLiveData,
            live,
            breakdown=_rehydrate_breakdown(live.get("breakdown")),
        ),
        back_data=BackData(
            description=back_description(record, describe(props.company_name or props.symbol, static)),
        ),
    )


async def initialize(ctx: InitContext) -> RevenueBreakdownCard | None:
    identity = await load_identity(ctx)
    rows = await fetch(ctx.source.get_revenue_segments, ctx.symbol, 2)
    if not rows:
        ctx.notify("No Revenue Breakdown Data", f"No revenue segmentation data found for {ctx.symbol}.")
        return None
    return build_breakdown_card(ctx.symbol, identity, rows[0], rows[1] if len(rows) > 1 else None)


def handle_segmentation(
    current: RevenueBreakdownCard | None, payload: Any, ctx: UpdateContext,
) -> RevenueBreakdownCard | None:
    """Apply an annual segmentation row.

    A later fiscal year becomes the latest period and the card's latest
    period becomes the comparison. A row for the latest period revises it
    against the same comparison; older rows and non-annual rows are ignored.
    """
    if current is None or not isinstance(payload, Mapping):
        return current
    if (safe_str(payload.get("period")) or "FY") != "FY":
        return current
    new_date = parse_date(payload.get("date"))
    old_date = parse_date(current.static_data.latest_period_date)
    if new_date is None or (old_date is not None and new_date < old_date):
        return current

    breakdown = current.live_data.breakdown
    if old_date is not None and new_date == old_date:
        known = {item.segment_name: item.previous_revenue for item in breakdown}
        previous = {name: value for name, value in known.items() if value is not None} or None
        previous_label = current.static_data.previous_period_label
    else:
        previous = {item.segment_name: item.current_revenue for item in breakdown}
        previous_label = current.static_data.latest_period_label

    static = replace(
        current.static_data,
        currency_symbol=safe_str(payload.get("reported_currency")) or current.static_data.currency_symbol,
        latest_period_label=period_label(payload),
        previous_period_label=previous_label,
        latest_period_date=safe_str(payload.get("date")),
    )
    live = build_live(payload, previous)
    if live == current.live_data and static == current.static_data:
        return current

    ctx.notify(
        f"Revenue Breakdown Updated: {current.symbol}",
        f"Segment revenue for {static.latest_period_label} applied.",
    )
    return replace(
        current,
        static_data=static,
        live_data=live,
        back_data=replace(current.back_data, description=describe(current.company_name or current.symbol, static)),
    )


ENTRY = RegistryEntry(
    card_type=CardType.REVENUE_BREAKDOWN,
    card_class=RevenueBreakdownCard,
    rehydrate=rehydrate,
    initialize=initialize,
    update_handlers={
        UpdateKind.REVENUE_SEGMENTATION: handle_segmentation,
        UpdateKind.STATIC_PROFILE: profile_core_handler(
            lambda card: describe(card.company_name or card.symbol, card.static_data)
        ),
    },
)
