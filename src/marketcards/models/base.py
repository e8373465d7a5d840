"""Base card model shared by every card variant."""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, ClassVar

from marketcards.config import CardType


class RarityLevel(Enum):
    """Ordered rarity tiers, lowest first."""

    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    EPIC = "Epic"
    LEGENDARY = "Legendary"

    @property
    def rank(self) -> int:
        return _RARITY_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RarityLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, RarityLevel):
            return NotImplemented
        return self.rank <= other.rank

    @classmethod
    def parse(cls, value: Any) -> RarityLevel:
        """Return the tier named by ``value``, defaulting to Common."""
        for member in cls:
            if value == member.value or value is member:
                return member
        return cls.COMMON


_RARITY_ORDER = list(RarityLevel)

# Fields describing UI state or derived from the data; excluded from
# ``data_record`` so they never count as a data change.
TRANSIENT_FIELDS = frozenset({"is_flipped", "rarity", "rarity_reason"})

# Stored-snapshot key names that differ from a plain camelCase rename.
_RECORD_KEYS = {"rarity": "currentRarity"}


def now_ms() -> int:
    return int(time.time() * 1000)


def new_card_id(card_type: CardType, symbol: str) -> str:
    return f"{card_type.value}-{symbol.upper()}-{uuid.uuid4().hex[:12]}"


def camel_case(name: str) -> str:
    if name in _RECORD_KEYS:
        return _RECORD_KEYS[name]
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_plain(obj: Any) -> Any:
    """Convert dataclasses/enums/tuples into JSON-ready dicts and lists."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {camel_case(f.name): to_plain(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [to_plain(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): to_plain(v) for k, v in obj.items()}
    return obj


def canonical_json(obj: Any) -> str:
    """Serialize with sorted keys so equal data always gives equal text."""
    return json.dumps(to_plain(obj), sort_keys=True, separators=(",", ":"), default=str)


@dataclass(frozen=True)
class BackData:
    """Text shown on the back face of a card."""

    description: str = ""


@dataclass(frozen=True)
class Card:
    """Common fields of every displayable card.

    Attributes:
        id: Globally unique identifier; fixed for the life of the
            (symbol, type) slot.
        symbol: Instrument symbol the card describes.
        created_at: Creation timestamp in epoch milliseconds.
        company_name: Display company name.
        logo_url: Company logo URL.
        website_url: Company website URL.
        back_data: Back-face description.
        is_flipped: Whether the card currently shows its back face.
        rarity: Derived rarity tier, recomputed on every data change.
        rarity_reason: Human-readable reason for ``rarity``.
    """

    card_type: ClassVar[CardType]

    id: str
    symbol: str
    created_at: int
    company_name: str | None = None
    logo_url: str | None = None
    website_url: str | None = None
    back_data: BackData = field(default_factory=BackData)
    is_flipped: bool = False
    rarity: RarityLevel = RarityLevel.COMMON
    rarity_reason: str | None = None

    @property
    def slot(self) -> tuple[str, CardType]:
        """The (symbol, type) pair this card occupies."""
        return (self.symbol, self.card_type)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the stored-snapshot shape (camelCase keys)."""
        record = {"type": self.card_type.value}
        record.update(to_plain(self))
        return record

    def data_record(self) -> dict[str, Any]:
        """The stored record without UI state or derived rarity."""
        record = self.to_record()
        for name in TRANSIENT_FIELDS:
            record.pop(camel_case(name), None)
        return record
