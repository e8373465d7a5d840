"""Dividends history card: latest payment and recent annual totals.

History rows are aggregated with pandas: per-year totals for the last three
full calendar years, year-over-year growth of the last full year, and the
most common payment frequency.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace
from datetime import date
from typing import Any

import pandas as pd

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
from marketcards.models.dividends import (
    AnnualDividendTotal,
    DividendsHistoryCard,
    DividendsLiveData,
    DividendsStaticData,
    LatestDividend,
)
from marketcards.payloads import first_present, get_mapping, parse_date, safe_float, safe_int, safe_str
from marketcards.registry import CommonProps, RegistryEntry

logger = logging.getLogger(__name__)

HISTORY_YEARS = 4
TOTAL_YEARS = 3


def describe(name: str) -> str:
    return (
        f"Historical dividend payments and trends for {name}, "
        "including recent payments and annual totals."
    )


def history_start(today: date | None = None) -> date:
    """First date of the history window fetched for a new card."""
    anchor = pd.Timestamp(today) if today else pd.Timestamp.now(tz="UTC").normalize()
    return (anchor - pd.DateOffset(years=HISTORY_YEARS)).date()


def latest_from_row(row: Mapping[str, Any]) -> LatestDividend:
    return LatestDividend(
        amount=safe_float(row.get("dividend")),
        adj_amount=safe_float(row.get("adj_dividend")),
        ex_dividend_date=safe_str(row.get("date")),
        payment_date=safe_str(row.get("payment_date")),
        declaration_date=safe_str(row.get("declaration_date")),
        yield_at_distribution=safe_float(row.get("yield")),
        frequency=safe_str(row.get("frequency")),
    )


def growth_yoy(last: float | None, previous: float | None) -> float | None:
    if last is None or previous is None or previous <= 0:
        return None
    return (last - previous) / previous


def annual_totals(
    rows: Sequence[Mapping[str, Any]], current_year: int,
) -> tuple[tuple[AnnualDividendTotal, ...], float | None]:
    """Totals for the three full years before ``current_year``, newest first.

    Years without payments total 0. Growth compares the last full year with
    the one before it and is None unless both had payments.
    """
    yearly = pd.Series(dtype=float)
    frame = pd.DataFrame(list(rows))
    if not frame.empty and {"date", "dividend"} <= set(frame.columns):
        frame["date"] = pd.to_datetime(frame["date"], errors="coerce", utc=True)
        frame["dividend"] = pd.to_numeric(frame["dividend"], errors="coerce")
        frame = frame.dropna(subset=["date", "dividend"])
        yearly = frame.groupby(frame["date"].dt.year)["dividend"].sum()

    totals = tuple(
        AnnualDividendTotal(year=year, total_dividend=float(yearly.get(year, 0.0)))
        for year in range(current_year - 1, current_year - 1 - TOTAL_YEARS, -1)
    )
    last = yearly.get(current_year - 1)
    previous = yearly.get(current_year - 2)
    growth = growth_yoy(
        float(last) if last is not None else None,
        float(previous) if previous is not None else None,
    )
    return totals, growth


def typical_frequency(latest: str | None, rows: Sequence[Mapping[str, Any]]) -> str | None:
    """The latest payment's frequency, else the most common one in ``rows``."""
    if latest:
        return latest
    frequencies = pd.Series([row.get("frequency") for row in rows], dtype=object).dropna()
    frequencies = frequencies[frequencies.astype(str).str.len() > 0]
    if frequencies.empty:
        return None
    return str(frequencies.value_counts(sort=False).idxmax())


def build_dividends_card(
    symbol: str,
    identity: Mapping[str, Any],
    rows: Sequence[Mapping[str, Any]],
    current_year: int | None = None,
) -> DividendsHistoryCard:
    year = current_year if current_year is not None else pd.Timestamp.now(tz="UTC").year
    latest_row = rows[0] if rows else None
    latest = latest_from_row(latest_row) if latest_row else None
    totals, growth = annual_totals(rows, year)
    name = identity.get("company_name") or symbol
    return DividendsHistoryCard(
        id=new_card_id(CardType.DIVIDENDS_HISTORY, symbol),
        symbol=symbol,
        created_at=now_ms(),
        company_name=name,
        logo_url=identity.get("logo_url"),
        website_url=identity.get("website_url"),
        static_data=DividendsStaticData(
            reported_currency=identity.get("currency"),
            typical_frequency=typical_frequency(latest.frequency if latest else None, rows),
        ),
        live_data=DividendsLiveData(
            latest_dividend=latest,
            annual_totals_last_3_years=totals,
            last_full_year_dividend_growth_yoy=growth,
            last_updated=safe_str(first_present(latest_row, "fetched_at", "updated_at")) if latest_row else None,
        ),
        back_data=BackData(description=describe(name)),
    )


def _rehydrate_totals(raw: Any) -> tuple[AnnualDividendTotal, ...]:
    if not isinstance(raw, list):
        return ()
    totals = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        year = safe_int(item.get("year"))
        if year is None:
            continue
        amount = safe_float(first_present(item, "totalDividend", "total_dividend"))
        totals.append(AnnualDividendTotal(year=year, total_dividend=amount or 0.0))
    return tuple(sorted(totals, key=lambda t: t.year, reverse=True))


def rehydrate(record: Mapping[str, Any], props: CommonProps) -> DividendsHistoryCard:
    live = get_mapping(record, "liveData") or get_mapping(record, "live_data")
    latest_raw = first_present(live, "latestDividend", "latest_dividend")
    return DividendsHistoryCard(
        **card_kwargs(props),
        static_data=read_section(
            DividendsStaticData, get_mapping(record, "staticData") or get_mapping(record, "static_data"),
        ),
        live_data=read_section(
            DividendsLiveData,
            live,
            latest_dividend=read_section(LatestDividend, latest_raw) if isinstance(latest_raw, Mapping) else None,
            annual_totals_last_3_years=_rehydrate_totals(
                first_present(live, "annualTotalsLast3Years", "annual_totals_last_3_years")
            ),
            last_full_year_dividend_growth_yoy=safe_float(
                first_present(
                    live,
                    "lastFullYearDividendGrowthYoy",
                    "lastFullYearDividendGrowthYoY",
                    "last_full_year_dividend_growth_yoy",
                )
            ),
        ),
        back_data=BackData(description=back_description(record, describe(props.company_name or props.symbol))),
    )


async def initialize(ctx: InitContext) -> DividendsHistoryCard | None:
    """Build a dividends card from four years of history.

    A symbol with neither a profile nor dividends yields no card; a profile
    with no dividends yields an empty card.
    """
    identity = await load_identity(ctx)
    rows = await fetch(ctx.source.get_dividend_history, ctx.symbol, history_start())
    if not rows:
        ctx.notify("No Dividend Data", f"No dividend history found for {ctx.symbol}.")
        if not identity["profile_found"]:
            return None
    return build_dividends_card(ctx.symbol, identity, rows)


def handle_dividend_row(
    current: DividendsHistoryCard | None, payload: Any, ctx: UpdateContext,
) -> DividendsHistoryCard | None:
    """Fold a newly published dividend into an existing card.

    Only a row with a later ex-dividend date than the card's latest payment
    is applied; its amount is added to the matching annual total.
    """
    if current is None or not isinstance(payload, Mapping):
        return current
    new_date = parse_date(payload.get("date"))
    latest = current.live_data.latest_dividend
    old_date = parse_date(latest.ex_dividend_date) if latest else None
    if new_date is None or (old_date is not None and new_date <= old_date):
        return current

    new_latest = latest_from_row(payload)
    amount = new_latest.amount or 0.0
    totals = tuple(
        replace(t, total_dividend=t.total_dividend + amount) if t.year == new_date.year else t
        for t in current.live_data.annual_totals_last_3_years
    )
    by_year = {t.year: t.total_dividend for t in totals}
    growth = current.live_data.last_full_year_dividend_growth_yoy
    if totals:
        last_year = totals[0].year
        growth = growth_yoy(by_year.get(last_year), by_year.get(last_year - 1))

    return replace(
        current,
        static_data=replace(
            current.static_data,
            typical_frequency=new_latest.frequency or current.static_data.typical_frequency,
        ),
        live_data=replace(
            current.live_data,
            latest_dividend=new_latest,
            annual_totals_last_3_years=totals,
            last_full_year_dividend_growth_yoy=growth,
            last_updated=safe_str(first_present(payload, "fetched_at", "updated_at"))
            or current.live_data.last_updated,
        ),
    )


def handle_static_profile(
    current: DividendsHistoryCard | None, payload: Any, ctx: UpdateContext,
) -> DividendsHistoryCard | None:
    """Refresh identity and reporting currency from a profile row."""
    if current is None or not isinstance(payload, Mapping):
        return current
    updated = apply_profile_core(current, payload)
    currency = safe_str(payload.get("currency"))
    if updated is current and currency == current.static_data.reported_currency:
        return current
    return replace(
        updated,
        static_data=replace(updated.static_data, reported_currency=currency),
        back_data=replace(updated.back_data, description=describe(updated.company_name or updated.symbol)),
    )


ENTRY = RegistryEntry(
    card_type=CardType.DIVIDENDS_HISTORY,
    card_class=DividendsHistoryCard,
    rehydrate=rehydrate,
    initialize=initialize,
    update_handlers={
        UpdateKind.DIVIDEND_ROW: handle_dividend_row,
        UpdateKind.STATIC_PROFILE: handle_static_profile,
    },
)
