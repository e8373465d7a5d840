"""Card type registry: rehydrators, initializers and update handlers per type.

The registry is an explicit object built once at startup and passed to the
reconciliation and rehydration code, instead of module-level maps filled by
import side effects.
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

from marketcards.config import CardType, UpdateKind
from marketcards.errors import CardEngineError, CardEngineErrorCode
from marketcards.events import InitContext, UpdateContext
from marketcards.models.base import Card

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommonProps:
    """Fields every stored record carries, already validated and defaulted."""

    id: str
    symbol: str
    created_at: int
    company_name: str | None = None
    logo_url: str | None = None
    website_url: str | None = None
    is_flipped: bool = False


Rehydrator = Callable[[Mapping[str, Any], CommonProps], "Card | None"]
Initializer = Callable[[InitContext], Awaitable["Card | None"]]
UpdateHandler = Callable[["Card | None", Any, UpdateContext], "Card | None"]


@dataclass(frozen=True)
class RegistryEntry:
    """Everything the engine needs to know about one card type.

    Attributes:
        card_type: Type tag.
        card_class: Concrete Card subclass for this tag.
        rehydrate: Stored record -> card, or None to drop the record.
        initialize: Async user-action initializer.
        update_handlers: Pure handlers keyed by update kind.
        creates_on_fetch: Whether a fetch event may create a missing card.
    """

    card_type: CardType
    card_class: type[Card]
    rehydrate: Rehydrator
    initialize: Initializer | None = None
    update_handlers: Mapping[UpdateKind, UpdateHandler] = field(default_factory=dict)
    creates_on_fetch: bool = False


# Lazy map: card modules are imported when a default registry is built.
CARD_MODULES: dict[CardType, str] = {
    CardType.PRICE: "marketcards.cards.price",
    CardType.PROFILE: "marketcards.cards.profile",
    CardType.REVENUE: "marketcards.cards.revenue",
    CardType.SOLVENCY: "marketcards.cards.solvency",
    CardType.DIVIDENDS_HISTORY: "marketcards.cards.dividends",
    CardType.ANALYST_GRADES: "marketcards.cards.analyst_grades",
    CardType.KEY_RATIOS: "marketcards.cards.key_ratios",
    CardType.CASH_USE: "marketcards.cards.cash_use",
    CardType.REVENUE_BREAKDOWN: "marketcards.cards.revenue_breakdown",
}


class CardRegistry:
    """Mapping from card type to its RegistryEntry."""

    def __init__(self, entries: list[RegistryEntry] | None = None) -> None:
        self._entries: dict[CardType, RegistryEntry] = {}
        for entry in entries or []:
            self.register(entry)

    def register(self, entry: RegistryEntry) -> None:
        """Register ``entry``; re-registering the same entry is a no-op."""
        existing = self._entries.get(entry.card_type)
        if existing is entry:
            return
        if existing is not None:
            logger.warning("Registry entry for card type %r is being overwritten", entry.card_type.value)
        self._entries[entry.card_type] = entry

    def get(self, card_type: CardType | str) -> RegistryEntry | None:
        try:
            key = CardType.parse(card_type)
        except CardEngineError:
            return None
        return self._entries.get(key)

    def require(self, card_type: CardType | str) -> RegistryEntry:
        entry = self.get(card_type)
        if entry is None:
            raise CardEngineError(
                f"No registry entry for card type {card_type!r}",
                code=CardEngineErrorCode.UNREGISTERED_TYPE,
            )
        return entry

    def handler(self, card_type: CardType, kind: UpdateKind) -> UpdateHandler | None:
        entry = self._entries.get(card_type)
        if entry is None:
            return None
        return entry.update_handlers.get(kind)

    def types(self) -> list[CardType]:
        return list(self._entries)

    def entries_for(self, kind: UpdateKind) -> list[RegistryEntry]:
        """Entries with a handler for ``kind``, in registration order."""
        return [e for e in self._entries.values() if kind in e.update_handlers]

    def __contains__(self, card_type: object) -> bool:
        return self.get(card_type) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------ dispatch

    def dispatch_update(
        self,
        card_type: CardType,
        kind: UpdateKind,
        current: Card | None,
        payload: Any,
        ctx: UpdateContext | None = None,
    ) -> Card | None:
        """Run the handler registered for (card_type, kind).

        Without a handler the current card is returned unchanged. A handler
        that raises, or returns a card of the wrong variant, also degrades to
        the current card.
        """
        handler = self.handler(card_type, kind)
        if handler is None:
            logger.debug("No %s handler for card type %s", kind.value, card_type.value)
            return current

        card_class = self._entries[card_type].card_class
        if current is not None and not isinstance(current, card_class):
            logger.warning(
                "Card %s is tagged %s but is a %s; skipping %s update",
                current.id, card_type.value, type(current).__name__, kind.value,
            )
            return current

        try:
            result = handler(current, payload, ctx or UpdateContext())
        except Exception:
            logger.exception("%s handler for %s failed", kind.value, card_type.value)
            return current

        if result is not None and not isinstance(result, card_class):
            logger.warning(
                "%s handler for %s returned %s; ignoring",
                kind.value, card_type.value, type(result).__name__,
            )
            return current
        return result


def create_default_registry() -> CardRegistry:
    """Build a registry holding every built-in card type."""
    registry = CardRegistry()
    for card_type, dotted in CARD_MODULES.items():
        module = importlib.import_module(dotted)
        entry: RegistryEntry = module.ENTRY
        if entry.card_type is not card_type:
            raise CardEngineError(
                f"{dotted}.ENTRY registers {entry.card_type.value}, expected {card_type.value}",
                code=CardEngineErrorCode.UNREGISTERED_TYPE,
            )
        registry.register(entry)
    return registry
