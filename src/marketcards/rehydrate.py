"""Rehydration pass: rebuild typed cards from a stored snapshot."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from marketcards.config import CardType
from marketcards.errors import CardEngineError
from marketcards.models.base import Card, now_ms
from marketcards.payloads import first_present, parse_timestamp_ms, safe_bool, safe_str
from marketcards.reconcile import stamp_rarity
from marketcards.registry import CardRegistry, CommonProps

logger = logging.getLogger(__name__)


def common_props(record: Mapping[str, Any]) -> CommonProps | None:
    """Validate and default the fields shared by every stored record."""
    card_id = record.get("id")
    symbol = (safe_str(record.get("symbol")) or "").strip().upper()
    if not isinstance(card_id, str) or not card_id or not symbol:
        return None
    created_at = parse_timestamp_ms(first_present(record, "createdAt", "created_at"))
    return CommonProps(
        id=card_id,
        symbol=symbol,
        created_at=created_at if created_at is not None else now_ms(),
        company_name=safe_str(first_present(record, "companyName", "company_name")),
        logo_url=safe_str(first_present(record, "logoUrl", "logo_url")),
        website_url=safe_str(first_present(record, "websiteUrl", "website_url")),
        is_flipped=bool(safe_bool(first_present(record, "isFlipped", "is_flipped"), False)),
    )


def rehydrate_card(record: Any, registry: CardRegistry) -> Card | None:
    """Rebuild one card, or return None when the record must be dropped."""
    if not isinstance(record, Mapping):
        logger.warning("Stored card is not an object; skipping: %r", record)
        return None

    try:
        card_type = CardType.parse(record.get("type"))
    except CardEngineError:
        logger.warning("Unknown card type %r in stored card %r; skipping", record.get("type"), record.get("id"))
        return None

    entry = registry.get(card_type)
    if entry is None:
        logger.warning("No rehydrator registered for %r; skipping card %r", card_type.value, record.get("id"))
        return None

    props = common_props(record)
    if props is None:
        logger.warning("Invalid card structure in stored snapshot; skipping: %r", record)
        return None

    try:
        card = entry.rehydrate(record, props)
    except Exception:
        logger.exception("Rehydrator for %r failed on card %s", card_type.value, props.id)
        return None

    if card is None:
        logger.warning("Rehydrator for %r returned nothing for card %s", card_type.value, props.id)
        return None
    if not isinstance(card, entry.card_class):
        logger.warning("Rehydrator for %r built a %s; skipping", card_type.value, type(card).__name__)
        return None

    # Stored rarity may predate the current rules; recompute from the data.
    return stamp_rarity(card)


def rehydrate_all(records: Iterable[Any] | None, registry: CardRegistry) -> list[Card]:
    """Rehydrate a stored snapshot, dropping records that cannot be rebuilt.

    Later records that collide with an already rebuilt (symbol, type) slot
    are dropped too.
    """
    if records is None:
        return []
    if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Iterable):
        logger.warning("Stored snapshot is not a list; starting empty")
        return []

    cards: list[Card] = []
    seen: set[tuple[str, CardType]] = set()
    for record in records:
        card = rehydrate_card(record, registry)
        if card is None:
            continue
        if card.slot in seen:
            logger.warning("Duplicate %s card for %s in snapshot; keeping the first", card.card_type.value, card.symbol)
            continue
        seen.add(card.slot)
        cards.append(card)

    logger.debug("Rehydrated %d cards", len(cards))
    return cards
