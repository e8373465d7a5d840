"""Price card: rehydrator, initializer and live quote handling."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from marketcards.cards.common import (
    QUOTE_FIELDS,
    back_description,
    card_kwargs,
    fetch,
    is_stale,
    load_identity,
    log_defaulted,
    profile_core_handler,
    quote_price,
    quote_timestamp_ms,
    read_section,
    same_except_timestamp,
)
from marketcards.config import CardType, UpdateKind
from marketcards.events import InitContext, UpdateContext
from marketcards.models.base import new_card_id, now_ms
from marketcards.models.price import PriceBackData, PriceCard, PriceFaceData
from marketcards.payloads import get_mapping, safe_float
from marketcards.rarity import evaluate_rarity
from marketcards.registry import CommonProps, RegistryEntry

logger = logging.getLogger(__name__)


def face_from_quote(payload: Mapping[str, Any], timestamp: int | None) -> PriceFaceData:
    return PriceFaceData(
        timestamp=timestamp,
        price=quote_price(payload),
        day_change=safe_float(payload.get("day_change")),
        change_percentage=safe_float(payload.get("change_percentage")),
        day_high=safe_float(payload.get("day_high")),
        day_low=safe_float(payload.get("day_low")),
        day_open=safe_float(payload.get("day_open")),
        previous_close=safe_float(payload.get("previous_close")),
        volume=safe_float(payload.get("volume")),
        year_high=safe_float(payload.get("year_high")),
        year_low=safe_float(payload.get("year_low")),
    )


def back_from_quote(payload: Mapping[str, Any], description: str) -> PriceBackData:
    return PriceBackData(
        description=description,
        market_cap=safe_float(payload.get("market_cap")),
        sma_50d=safe_float(payload.get("sma_50d")),
        sma_200d=safe_float(payload.get("sma_200d")),
    )


def _payload_symbol(payload: Mapping[str, Any]) -> str | None:
    symbol = payload.get("symbol")
    return symbol.upper() if isinstance(symbol, str) and symbol else None


def default_description(symbol: str) -> str:
    return f"Current market price and trading data for {symbol}."


def build_price_card(
    symbol: str,
    payload: Mapping[str, Any],
    *,
    company_name: str | None = None,
    logo_url: str | None = None,
    website_url: str | None = None,
    event_ts: int | None = None,
) -> PriceCard:
    """New price card from a live quote row."""
    return PriceCard(
        id=new_card_id(CardType.PRICE, symbol),
        symbol=symbol,
        created_at=now_ms(),
        company_name=company_name or symbol,
        logo_url=logo_url,
        website_url=website_url,
        face_data=face_from_quote(payload, quote_timestamp_ms(payload, event_ts)),
        back_data=back_from_quote(payload, default_description(symbol)),
    )


def rehydrate(record: Mapping[str, Any], props: CommonProps) -> PriceCard:
    back = get_mapping(record, "backData") or get_mapping(record, "back_data")
    return PriceCard(
        **card_kwargs(props),
        face_data=read_section(PriceFaceData, get_mapping(record, "faceData") or get_mapping(record, "face_data")),
        back_data=read_section(
            PriceBackData, back, description=back_description(record, default_description(props.symbol)),
        ),
    )


async def initialize(ctx: InitContext) -> PriceCard:
    """Build a price card from the latest quote, or an empty shell."""
    identity = await load_identity(ctx)
    quote = await fetch(ctx.source.get_latest_quote, ctx.symbol)
    if quote:
        return build_price_card(
            ctx.symbol,
            quote,
            company_name=identity["company_name"],
            logo_url=identity["logo_url"],
            website_url=identity["website_url"],
        )

    ctx.notify("Price Card Added (Shell)", f"Awaiting live data for {ctx.symbol}")
    return PriceCard(
        id=new_card_id(CardType.PRICE, ctx.symbol),
        symbol=ctx.symbol,
        created_at=now_ms(),
        company_name=identity["company_name"],
        logo_url=identity["logo_url"],
        website_url=identity["website_url"],
        back_data=PriceBackData(description=default_description(ctx.symbol)),
    )


def handle_live_quote(current: PriceCard | None, payload: Any, ctx: UpdateContext) -> PriceCard | None:
    """Apply a live quote row.

    With no card, a fetched quote yields a candidate card for the creator
    and a realtime quote is ignored. A realtime quote older than the card's
    face timestamp is rejected. A quote whose displayed values all match the
    card's leaves the card as is, even if its timestamp is newer.
    """
    if not isinstance(payload, Mapping):
        return current
    symbol = current.symbol if current is not None else _payload_symbol(payload)
    if current is None:
        if ctx.is_realtime or symbol is None:
            return None
        return build_price_card(symbol, payload, event_ts=ctx.timestamp)

    log_defaulted(payload, QUOTE_FIELDS, f"Quote for {current.symbol}")
    timestamp = quote_timestamp_ms(payload, ctx.timestamp)
    if ctx.is_realtime and is_stale(current.face_data.timestamp, timestamp):
        logger.debug(
            "Stale quote for %s (%s < %s); ignoring", current.symbol, timestamp, current.face_data.timestamp,
        )
        return current

    face = face_from_quote(payload, timestamp)
    back = back_from_quote(payload, current.back_data.description)
    if same_except_timestamp(current.face_data, face) and back == current.back_data:
        return current

    updated = replace(current, face_data=face, back_data=back)
    if ctx.is_realtime and ctx.announce_live and face.price is not None:
        pct = face.change_percentage or 0.0
        ctx.notify(
            f"Live Update: {current.symbol}",
            f"${face.price:.2f} ({pct:+.2f}%) Rarity: {evaluate_rarity(updated).level.value}",
        )
    return updated


ENTRY = RegistryEntry(
    card_type=CardType.PRICE,
    card_class=PriceCard,
    rehydrate=rehydrate,
    initialize=initialize,
    update_handlers={
        UpdateKind.LIVE_QUOTE: handle_live_quote,
        UpdateKind.STATIC_PROFILE: profile_core_handler(),
    },
    creates_on_fetch=True,
)
