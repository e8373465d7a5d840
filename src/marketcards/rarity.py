"""Rarity evaluation: how notable a card's current data is.

Pure functions of the card's data: the same card always yields the same
(level, reason), which lets reconciliation treat rarity as part of what
"changed" means.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from marketcards.models.base import Card, RarityLevel
from marketcards.models.price import PriceCard
from marketcards.models.profile import ProfileCard

DETAILED_PROFILE_CHARS = 500
STRONG_MOVE_PCT = 10.0
NOTABLE_MOVE_PCT = 5.0


@dataclass(frozen=True)
class RarityOutcome:
    level: RarityLevel
    reason: str | None = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _price_rarity(card: PriceCard) -> RarityOutcome:
    face = card.face_data
    if not _is_number(face.price):
        return RarityOutcome(RarityLevel.COMMON, "Price data unavailable.")

    if _is_number(face.year_high) and face.price >= face.year_high:
        return RarityOutcome(RarityLevel.LEGENDARY, "At 52-Week High!")
    if _is_number(face.year_low) and face.price <= face.year_low:
        return RarityOutcome(RarityLevel.EPIC, "At 52-Week Low!")

    pct = face.change_percentage
    if _is_number(pct):
        if pct >= STRONG_MOVE_PCT:
            return RarityOutcome(RarityLevel.EPIC, f"Strong Gain: +{pct:.1f}%")
        if pct <= -STRONG_MOVE_PCT:
            return RarityOutcome(RarityLevel.EPIC, f"Significant Drop: {pct:.1f}%")
        if pct >= NOTABLE_MOVE_PCT:
            return RarityOutcome(RarityLevel.RARE, f"Notable Gain: +{pct:.1f}%")
        if pct <= -NOTABLE_MOVE_PCT:
            return RarityOutcome(RarityLevel.RARE, f"Notable Drop: {pct:.1f}%")
    return RarityOutcome(RarityLevel.COMMON)


def _profile_rarity(card: ProfileCard) -> RarityOutcome:
    description = card.static_data.description
    if description and len(description) > DETAILED_PROFILE_CHARS:
        return RarityOutcome(RarityLevel.UNCOMMON, "Detailed company profile.")
    return RarityOutcome(RarityLevel.COMMON)


_EVALUATORS: dict[type[Card], Callable[[Any], RarityOutcome]] = {
    PriceCard: _price_rarity,
    ProfileCard: _profile_rarity,
}


def evaluate_rarity(card: Any) -> RarityOutcome:
    """Return the rarity tier and reason for ``card``'s current data."""
    if not isinstance(card, Card):
        return RarityOutcome(RarityLevel.COMMON, "Invalid card data.")
    evaluator = _EVALUATORS.get(type(card))
    if evaluator is None:
        return RarityOutcome(RarityLevel.COMMON, "Standard information.")
    return evaluator(card)


def is_upgrade(old: RarityLevel, new: RarityLevel) -> bool:
    return new.rank > old.rank
