"""Price card model: live quote on the face, valuation context on the back."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from marketcards.config import CardType
from marketcards.models.base import BackData, Card


@dataclass(frozen=True)
class PriceFaceData:
    """Live quote fields shown on the card face.

    Attributes:
        timestamp: Quote time in epoch milliseconds.
        price: Last price.
        day_change: Dollar change from previous close.
        change_percentage: Percent change from previous close.
        day_high: Session high.
        day_low: Session low.
        day_open: Session open.
        previous_close: Previous session close.
        volume: Session volume.
        year_high: 52-week high.
        year_low: 52-week low.
    """

    timestamp: int | None = None
    price: float | None = None
    day_change: float | None = None
    change_percentage: float | None = None
    day_high: float | None = None
    day_low: float | None = None
    day_open: float | None = None
    previous_close: float | None = None
    volume: float | None = None
    year_high: float | None = None
    year_low: float | None = None


@dataclass(frozen=True)
class PriceBackData(BackData):
    market_cap: float | None = None
    sma_50d: float | None = None
    sma_200d: float | None = None


@dataclass(frozen=True)
class PriceCard(Card):
    """Live price card for one symbol."""

    card_type: ClassVar[CardType] = CardType.PRICE

    back_data: PriceBackData = field(default_factory=PriceBackData)
    face_data: PriceFaceData = field(default_factory=PriceFaceData)
