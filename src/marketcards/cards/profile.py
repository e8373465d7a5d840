"""Profile card: company reference data with a live price strip."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from marketcards.cards.common import (
    QUOTE_FIELDS,
    apply_profile_core,
    back_description,
    card_kwargs,
    fetch,
    is_stale,
    log_defaulted,
    quote_price,
    quote_timestamp_ms,
    read_section,
    same_except_timestamp,
)
from marketcards.config import CardType, UpdateKind
from marketcards.events import InitContext, UpdateContext
from marketcards.models.base import new_card_id, now_ms
from marketcards.models.profile import ProfileCard, ProfileLiveData, ProfileStaticData
from marketcards.payloads import (
    get_mapping,
    join_present,
    parse_date,
    parse_datetime,
    safe_bool,
    safe_float,
    safe_int,
    safe_str,
)
from marketcards.registry import CommonProps, RegistryEntry

logger = logging.getLogger(__name__)


def _format_employees(value: Any) -> str | None:
    count = safe_int(value)
    return f"{count:,}" if count is not None else None


def _format_modified(value: Any) -> str | None:
    dt = parse_datetime(value)
    return f"{dt:%b} {dt.day}, {dt:%y}" if dt else None


def _format_ipo(value: Any) -> str | None:
    d = parse_date(value)
    return f"{d:%B} {d.day}, {d:%Y}" if d else None


def static_from_row(row: Mapping[str, Any]) -> ProfileStaticData:
    """Profile static data from a ``profiles`` row."""
    return ProfileStaticData(
        db_id=safe_str(row.get("id")),
        sector=safe_str(row.get("sector")),
        industry=safe_str(row.get("industry")),
        country=safe_str(row.get("country")),
        exchange_full_name=safe_str(row.get("exchange_full_name")),
        website=safe_str(row.get("website")),
        description=safe_str(row.get("description")),
        short_description=safe_str(row.get("short_description")),
        ceo=safe_str(row.get("ceo")),
        full_address=join_present(
            safe_str(row.get(key)) for key in ("address", "city", "state", "zip", "country")
        ),
        phone=safe_str(row.get("phone")),
        formatted_full_time_employees=_format_employees(row.get("full_time_employees")),
        profile_last_updated=_format_modified(row.get("modified_at")),
        currency=safe_str(row.get("currency")),
        formatted_ipo_date=_format_ipo(row.get("ipo_date")),
        is_etf=safe_bool(row.get("is_etf")),
        is_adr=safe_bool(row.get("is_adr")),
        is_fund=safe_bool(row.get("is_fund")),
    )


def live_from_quote(payload: Mapping[str, Any], timestamp: int | None) -> ProfileLiveData:
    return ProfileLiveData(
        timestamp=timestamp,
        price=quote_price(payload),
        day_change=safe_float(payload.get("day_change")),
        change_percentage=safe_float(payload.get("change_percentage")),
        day_high=safe_float(payload.get("day_high")),
        day_low=safe_float(payload.get("day_low")),
        volume=safe_float(payload.get("volume")),
        year_high=safe_float(payload.get("year_high")),
        year_low=safe_float(payload.get("year_low")),
    )


def describe(static: ProfileStaticData, name: str) -> str:
    return static.description or f"Profile information for {name}."


def build_profile_card(symbol: str, row: Mapping[str, Any]) -> ProfileCard:
    static = static_from_row(row)
    name = safe_str(row.get("company_name")) or symbol
    card = ProfileCard(
        id=new_card_id(CardType.PROFILE, symbol),
        symbol=symbol,
        created_at=now_ms(),
        company_name=name,
        logo_url=safe_str(row.get("image")),
        website_url=static.website,
        static_data=static,
    )
    return replace(card, back_data=replace(card.back_data, description=describe(static, name)))


def rehydrate(record: Mapping[str, Any], props: CommonProps) -> ProfileCard:
    static = read_section(
        ProfileStaticData, get_mapping(record, "staticData") or get_mapping(record, "static_data"),
    )
    card = ProfileCard(
        **card_kwargs(props),
        static_data=static,
        live_data=read_section(
            ProfileLiveData, get_mapping(record, "liveData") or get_mapping(record, "live_data"),
        ),
    )
    text = back_description(record, describe(static, props.company_name or props.symbol))
    return replace(card, back_data=replace(card.back_data, description=text))


async def initialize(ctx: InitContext) -> ProfileCard | None:
    row = await fetch(ctx.source.get_profile, ctx.symbol)
    if not row:
        ctx.notify("Profile Not Found", f"No profile data found for {ctx.symbol}.")
        return None
    return build_profile_card(ctx.symbol, row)


def handle_static_profile(current: ProfileCard | None, payload: Any, ctx: UpdateContext) -> ProfileCard | None:
    """Rebuild static data and back description from a fresh profile row."""
    if current is None or not isinstance(payload, Mapping):
        return current
    static = static_from_row(payload)
    updated = apply_profile_core(current, payload)
    text = describe(static, updated.company_name or updated.symbol)
    if static == current.static_data and text == current.back_data.description and updated is current:
        return current
    updated = replace(
        updated, static_data=static, back_data=replace(updated.back_data, description=text),
    )
    ctx.notify(f"Profile Updated: {current.symbol}", "Company details have been refreshed.")
    return updated


def handle_live_quote(current: ProfileCard | None, payload: Any, ctx: UpdateContext) -> ProfileCard | None:
    """Mirror a live quote onto an existing profile card."""
    if current is None or not isinstance(payload, Mapping):
        return current
    log_defaulted(payload, QUOTE_FIELDS, f"Quote for profile {current.symbol}")
    timestamp = quote_timestamp_ms(payload, ctx.timestamp)
    if ctx.is_realtime and is_stale(current.live_data.timestamp, timestamp):
        logger.debug("Stale quote for profile %s; ignoring", current.symbol)
        return current
    live = live_from_quote(payload, timestamp)
    if same_except_timestamp(current.live_data, live):
        return current
    return replace(current, live_data=live)


ENTRY = RegistryEntry(
    card_type=CardType.PROFILE,
    card_class=ProfileCard,
    rehydrate=rehydrate,
    initialize=initialize,
    update_handlers={
        UpdateKind.STATIC_PROFILE: handle_static_profile,
        UpdateKind.LIVE_QUOTE: handle_live_quote,
    },
)
