"""Reconciliation core: merge external data into the card collection.

The collection holds at most one card per (symbol, type). ``reconcile``
decides whether an incoming payload creates a card, updates one in place, or
is a no-op, and reports whether anything observable changed so callers can
skip redundant renders and write-backs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Sequence

from marketcards.config import CardType
from marketcards.models.base import Card, canonical_json
from marketcards.rarity import RarityOutcome, evaluate_rarity

logger = logging.getLogger(__name__)

UpdateFn = Callable[["Card | None", Any], "Card | None"]
CreatorFn = Callable[[Card], Card]


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation step.

    Attributes:
        cards: The resulting collection; the input list itself when nothing
            changed.
        changed: Whether a card was created or observably updated.
        card: The card now occupying the slot (None when the event was
            dropped and no card exists).
    """

    cards: list[Card]
    changed: bool
    card: Card | None = None


def find_card_index(cards: Sequence[Card], symbol: str, card_type: CardType) -> int | None:
    for i, card in enumerate(cards):
        if card.symbol == symbol and card.card_type is card_type:
            return i
    return None


def find_card(cards: Sequence[Card], symbol: str, card_type: CardType) -> Card | None:
    index = find_card_index(cards, symbol, card_type)
    return cards[index] if index is not None else None


def stamp_rarity(card: Card) -> Card:
    """Return ``card`` with rarity fields matching its current data."""
    outcome = evaluate_rarity(card)
    if card.rarity is outcome.level and card.rarity_reason == outcome.reason:
        return card
    return replace(card, rarity=outcome.level, rarity_reason=outcome.reason)


def _same_state(existing: Card, candidate: Card, outcome: RarityOutcome) -> bool:
    return (
        existing.rarity is outcome.level
        and existing.rarity_reason == outcome.reason
        and canonical_json(existing.data_record()) == canonical_json(candidate.data_record())
    )


def reconcile(
    cards: list[Card],
    symbol: str,
    card_type: CardType,
    payload: Any,
    update_fn: UpdateFn,
    creator: CreatorFn | None = None,
) -> ReconcileResult:
    """Merge ``payload`` into the (symbol, card_type) slot of ``cards``.

    ``update_fn(existing, payload)`` must be pure and return the candidate
    card, or None (or ``existing`` itself) for a no-op. Rarity is computed on
    the candidate before change detection. Existing cards are replaced in
    place keeping id, position and flip state; missing cards are created only
    through ``creator`` and appended at the end.
    """
    index = find_card_index(cards, symbol, card_type)
    existing = cards[index] if index is not None else None

    try:
        candidate = update_fn(existing, payload)
    except Exception:
        logger.exception("Update for %s/%s failed; keeping current card", symbol, card_type.value)
        return ReconcileResult(cards, False, existing)

    if candidate is None or candidate is existing:
        return ReconcileResult(cards, False, existing)

    if candidate.card_type is not card_type or candidate.symbol != symbol:
        logger.warning(
            "Update for %s/%s produced a %s/%s card; dropping",
            symbol, card_type.value, candidate.symbol, candidate.card_type.value,
        )
        return ReconcileResult(cards, False, existing)

    if existing is not None:
        merged = replace(
            candidate,
            id=existing.id,
            is_flipped=existing.is_flipped,
            rarity=existing.rarity,
            rarity_reason=existing.rarity_reason,
        )
        outcome = evaluate_rarity(merged)
        if _same_state(existing, merged, outcome):
            return ReconcileResult(cards, False, existing)

        updated = replace(merged, rarity=outcome.level, rarity_reason=outcome.reason)
        new_cards = list(cards)
        new_cards[index] = updated  # type: ignore[index]
        return ReconcileResult(new_cards, True, updated)

    if creator is None:
        logger.debug("No %s card for %s and no creator; event dropped", card_type.value, symbol)
        return ReconcileResult(cards, False, None)

    return insert_card(cards, creator(replace(candidate, is_flipped=False)))


def insert_card(
    cards: list[Card],
    card: Card,
    after_id: str | None = None,
) -> ReconcileResult:
    """Insert a new card, re-checking its slot at insertion time.

    A card whose (symbol, type) slot is already taken is not inserted; the
    occupant is returned with ``changed=False``. New cards go right after
    ``after_id`` when that card is present, otherwise at the end.
    """
    occupant = find_card(cards, card.symbol, card.card_type)
    if occupant is not None:
        logger.debug("Slot %s/%s already filled by %s", card.symbol, card.card_type.value, occupant.id)
        return ReconcileResult(cards, False, occupant)

    new_card = stamp_rarity(card)
    new_cards = list(cards)
    position = len(new_cards)
    if after_id is not None:
        for i, c in enumerate(new_cards):
            if c.id == after_id:
                position = i + 1
                break
    new_cards.insert(position, new_card)
    return ReconcileResult(new_cards, True, new_card)


def remove_card(cards: list[Card], card_id: str) -> ReconcileResult:
    remaining = [c for c in cards if c.id != card_id]
    if len(remaining) == len(cards):
        return ReconcileResult(cards, False)
    removed = next(c for c in cards if c.id == card_id)
    return ReconcileResult(remaining, True, removed)


def move_card(cards: list[Card], card_id: str, new_index: int) -> ReconcileResult:
    """Move a card to ``new_index`` (clamped), e.g. after a drag reorder."""
    for i, card in enumerate(cards):
        if card.id == card_id:
            break
    else:
        return ReconcileResult(cards, False)
    target = max(0, min(new_index, len(cards) - 1))
    if target == i:
        return ReconcileResult(cards, False, card)
    new_cards = list(cards)
    new_cards.insert(target, new_cards.pop(i))
    return ReconcileResult(new_cards, True, card)


def replace_card(cards: list[Card], card: Card) -> ReconcileResult:
    """Swap in a new version of a card with the same id (UI state changes)."""
    for i, current in enumerate(cards):
        if current.id == card.id:
            if current == card:
                return ReconcileResult(cards, False, current)
            new_cards = list(cards)
            new_cards[i] = card
            return ReconcileResult(new_cards, True, card)
    return ReconcileResult(cards, False)
