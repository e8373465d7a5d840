"""Analyst grades card: rating distribution with period-over-period change."""

from __future__ import annotations

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
from marketcards.models.analyst_grades import (
    AnalystGradesCard,
    AnalystGradesLiveData,
    AnalystGradesStaticData,
    AnalystRatingDetail,
)
from marketcards.models.base import BackData, new_card_id, now_ms
from marketcards.payloads import first_present, get_mapping, parse_date, safe_int, safe_str
from marketcards.registry import CommonProps, RegistryEntry

logger = logging.getLogger(__name__)

# (category, label, row column, consensus weight), strongest first.
RATING_CATEGORIES = [
    ("strongBuy", "Strong Buy", "analyst_ratings_strong_buy", 5),
    ("buy", "Buy", "analyst_ratings_buy", 4),
    ("hold", "Hold", "analyst_ratings_hold", 3),
    ("sell", "Sell", "analyst_ratings_sell", 2),
    ("strongSell", "Strong Sell", "analyst_ratings_strong_sell", 1),
]

CONSENSUS_THRESHOLDS = [
    (4.5, "Strong Buy Consensus"),
    (3.5, "Buy Consensus"),
    (2.5, "Hold Consensus"),
    (1.5, "Sell Consensus"),
]


def counts_from_row(row: Mapping[str, Any] | None) -> dict[str, int]:
    if not row:
        return {}
    return {category: safe_int(row.get(column)) or 0 for category, _, column, _ in RATING_CATEGORIES}


def consensus_label(counts: Mapping[str, int]) -> str:
    """Weighted consensus (Strong Buy = 5 ... Strong Sell = 1)."""
    total = sum(counts.values())
    if total == 0:
        return "N/A"
    score = sum(counts.get(category, 0) * weight for category, _, _, weight in RATING_CATEGORIES) / total
    for threshold, label in CONSENSUS_THRESHOLDS:
        if score >= threshold:
            return label
    return "Strong Sell Consensus"


def format_period(value: Any) -> str:
    """Month and year of a period date, e.g. "March 2024"."""
    d = parse_date(value)
    if d is None:
        return safe_str(value) or "N/A"
    return f"{d:%B %Y}"


def build_live(
    current: Mapping[str, int],
    previous: Mapping[str, int] | None,
    last_updated: str | None,
    period_raw: str | None,
) -> AnalystGradesLiveData:
    distribution = []
    for category, label, _, _ in RATING_CATEGORIES:
        value = current.get(category, 0)
        before = previous.get(category, 0) if previous is not None else None
        distribution.append(
            AnalystRatingDetail(
                category=category,
                label=label,
                current_value=value,
                previous_value=before,
                change=value - before if before is not None else None,
            )
        )
    return AnalystGradesLiveData(
        ratings_distribution=tuple(distribution),
        total_analysts_current=sum(current.values()),
        total_analysts_previous=sum(previous.values()) if previous is not None else None,
        consensus_label_current=consensus_label(current),
        last_updated=last_updated,
        current_period_raw=period_raw,
    )


def describe(name: str, static: AnalystGradesStaticData) -> str:
    return (
        f"Analyst rating distribution for {name} as of {static.current_period_date}, "
        "with changes from the previous period."
    )


def build_grades_card(
    symbol: str,
    identity: Mapping[str, Any],
    latest: Mapping[str, Any],
    previous: Mapping[str, Any] | None,
) -> AnalystGradesCard:
    static = AnalystGradesStaticData(
        current_period_date=format_period(latest.get("date")),
        previous_period_date=format_period(previous.get("date")) if previous else None,
    )
    name = identity.get("company_name") or symbol
    return AnalystGradesCard(
        id=new_card_id(CardType.ANALYST_GRADES, symbol),
        symbol=symbol,
        created_at=now_ms(),
        company_name=name,
        logo_url=identity.get("logo_url"),
        website_url=identity.get("website_url"),
        static_data=static,
        live_data=build_live(
            counts_from_row(latest),
            counts_from_row(previous) if previous else None,
            safe_str(latest.get("updated_at")),
            safe_str(latest.get("date")),
        ),
        back_data=BackData(description=describe(name, static)),
    )


def _rehydrate_distribution(raw: Any) -> tuple[AnalystRatingDetail, ...]:
    if not isinstance(raw, list):
        return ()
    details = []
    for item in raw:
        if not isinstance(item, Mapping) or not isinstance(item.get("category"), str):
            continue
        details.append(
            AnalystRatingDetail(
                category=item["category"],
                label=safe_str(item.get("label")) or item["category"],
                current_value=safe_int(first_present(item, "currentValue", "current_value")) or 0,
                previous_value=safe_int(first_present(item, "previousValue", "previous_value")),
                change=safe_int(item.get("change")),
            )
        )
    return tuple(details)


def rehydrate(record: Mapping[str, Any], props: CommonProps) -> AnalystGradesCard:
    static = read_section(
        AnalystGradesStaticData, get_mapping(record, "staticData") or get_mapping(record, "static_data"),
    )
    live = get_mapping(record, "liveData") or get_mapping(record, "live_data")
    distribution = _rehydrate_distribution(first_present(live, "ratingsDistribution", "ratings_distribution"))
    return AnalystGradesCard(
        **card_kwargs(props),
        static_data=static,
        live_data=read_section(
            AnalystGradesLiveData,
            live,
            ratings_distribution=distribution,
            total_analysts_current=sum(d.current_value for d in distribution),
        ),
        back_data=BackData(
            description=back_description(record, describe(props.company_name or props.symbol, static)),
        ),
    )


async def initialize(ctx: InitContext) -> AnalystGradesCard | None:
    identity = await load_identity(ctx)
    rows = await fetch(ctx.source.get_analyst_grades, ctx.symbol, 2)
    if not rows:
        ctx.notify("No Analyst Grades Data", f"No analyst grades found for {ctx.symbol}.")
        return None
    return build_grades_card(ctx.symbol, identity, rows[0], rows[1] if len(rows) > 1 else None)


def handle_grades(current: AnalystGradesCard | None, payload: Any, ctx: UpdateContext) -> AnalystGradesCard | None:
    """Apply a grades row.

    A later period becomes current and the old current becomes previous. A
    row for the current period revises its counts in place; older rows are
    ignored.
    """
    if current is None or not isinstance(payload, Mapping):
        return current
    new_date = parse_date(payload.get("date"))
    old_date = parse_date(current.live_data.current_period_raw)
    if new_date is None or (old_date is not None and new_date < old_date):
        return current

    counts = counts_from_row(payload)
    if old_date is not None and new_date == old_date:
        previous_counts = _previous_counts(current)
        static = current.static_data
    else:
        previous_counts = {d.category: d.current_value for d in current.live_data.ratings_distribution}
        static = AnalystGradesStaticData(
            current_period_date=format_period(payload.get("date")),
            previous_period_date=current.static_data.current_period_date,
        )

    live = build_live(counts, previous_counts, safe_str(payload.get("updated_at")), safe_str(payload.get("date")))
    if live == current.live_data and static == current.static_data:
        return current
    return replace(
        current,
        static_data=static,
        live_data=live,
        back_data=replace(current.back_data, description=describe(current.company_name or current.symbol, static)),
    )


def _previous_counts(card: AnalystGradesCard) -> dict[str, int] | None:
    if card.live_data.total_analysts_previous is None:
        return None
    return {
        d.category: d.previous_value or 0
        for d in card.live_data.ratings_distribution
    }


ENTRY = RegistryEntry(
    card_type=CardType.ANALYST_GRADES,
    card_class=AnalystGradesCard,
    rehydrate=rehydrate,
    initialize=initialize,
    update_handlers={
        UpdateKind.ANALYST_GRADES: handle_grades,
        UpdateKind.STATIC_PROFILE: profile_core_handler(
            lambda card: describe(card.company_name or card.symbol, card.static_data)
        ),
    },
)
