"""WorkspaceManager: owns the card collection and routes data into it."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from marketcards.config import CardType, EventSource, WorkspaceConfig
from marketcards.errors import CardEngineError, CardEngineErrorCode
from marketcards.events import DataEvent, InitContext, Notification, Notifier, UpdateContext
from marketcards.models.base import Card
from marketcards.rarity import is_upgrade
from marketcards.reconcile import (
    ReconcileResult,
    find_card,
    insert_card,
    move_card,
    reconcile,
    remove_card,
    replace_card,
)
from marketcards.registry import CardRegistry, create_default_registry
from marketcards.rehydrate import rehydrate_all
from marketcards.sources import create_source
from marketcards.sources.base import BaseDataSource
from marketcards.storage import SnapshotStore, create_store

logger = logging.getLogger(__name__)

TYPE_LABELS: dict[CardType, str] = {
    CardType.PRICE: "Price",
    CardType.PROFILE: "Profile",
    CardType.REVENUE: "Revenue",
    CardType.SOLVENCY: "Solvency",
    CardType.DIVIDENDS_HISTORY: "Dividends History",
    CardType.ANALYST_GRADES: "Analyst Grades",
    CardType.KEY_RATIOS: "Key Ratios",
    CardType.CASH_USE: "Cash Use",
    CardType.REVENUE_BREAKDOWN: "Revenue Breakdown",
}


class WorkspaceManager:
    """Card collection with reconciliation, persistence and notifications.

    Usage::

        from marketcards import create_workspace_from_env
        ws = create_workspace_from_env()
        await ws.add_card("AAPL", "price")
        ws.process_event(DataEvent("AAPL", EventSource.REALTIME, UpdateKind.LIVE_QUOTE, row))

    The collection never holds two cards for the same (symbol, type). It is
    rebuilt from the snapshot store at construction and written back only
    when a change is observable.
    """

    def __init__(
        self,
        config: WorkspaceConfig | None = None,
        registry: CardRegistry | None = None,
        source: BaseDataSource | None = None,
        store: SnapshotStore | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.config = config or WorkspaceConfig()
        self.registry = registry if registry is not None else create_default_registry()

        if source is None and self.config.supabase_url and self.config.supabase_key:
            source = create_source(
                "supabase", url=self.config.supabase_url, api_key=self.config.supabase_key,
            )
        self.source = source
        self.store = store if store is not None else create_store(self.config)
        self.notifier = notifier

        self.cards: list[Card] = rehydrate_all(self.store.load(), self.registry)
        logger.info("Workspace loaded with %d cards", len(self.cards))

    # -------------------------------------------------------------- queries

    def snapshot(self) -> list[dict[str, Any]]:
        """Serialize the collection in display order."""
        return [card.to_record() for card in self.cards]

    def symbols(self) -> list[str]:
        """Distinct symbols in the workspace, in first-seen order."""
        return list(dict.fromkeys(card.symbol for card in self.cards))

    def get_card(self, symbol: str, card_type: CardType | str) -> Card | None:
        return find_card(self.cards, symbol.upper(), CardType.parse(card_type))

    # --------------------------------------------------------------- events

    def process_event(self, event: DataEvent) -> bool:
        """Route an external data event to every card type that handles it.

        Only fetch events may create cards, and only for types that create on
        fetch. Returns whether the collection changed.
        """
        symbol = event.symbol.upper()
        payload = dict(event.payload)
        payload.setdefault("symbol", symbol)

        changed = False
        for entry in self.registry.entries_for(event.kind):
            ctx = UpdateContext(
                source=event.source,
                timestamp=event.timestamp,
                announce_live=self.config.notify_realtime_updates,
            )
            creator = (
                self._create_from_fetch
                if event.source is EventSource.FETCH and entry.creates_on_fetch
                else None
            )
            before = find_card(self.cards, symbol, entry.card_type)
            card_type = entry.card_type
            result = reconcile(
                self.cards,
                symbol,
                card_type,
                payload,
                lambda existing, data: self.registry.dispatch_update(card_type, event.kind, existing, data, ctx),
                creator,
            )
            if not result.changed:
                continue

            changed = True
            self.cards = result.cards
            for notification in ctx.notifications:
                self._notify(notification)
            self._announce(before, result)

        if changed:
            self._persist()
        return changed

    def _create_from_fetch(self, candidate: Card) -> Card:
        """Fill a fetched card's identity from another card of its symbol."""
        if candidate.company_name not in (None, candidate.symbol):
            return candidate
        for card in self.cards:
            if card.symbol == candidate.symbol and card.company_name not in (None, card.symbol):
                return replace(
                    candidate,
                    company_name=card.company_name,
                    logo_url=candidate.logo_url or card.logo_url,
                    website_url=candidate.website_url or card.website_url,
                )
        return candidate

    def _announce(self, before: Card | None, result: ReconcileResult) -> None:
        card = result.card
        if card is None:
            return
        label = TYPE_LABELS.get(card.card_type, card.card_type.value)
        if before is None:
            self._notify(Notification(f"New {label} Card: {card.symbol}", f"{label} card created from fetched data."))
        elif is_upgrade(before.rarity, card.rarity):
            reason = f" {card.rarity_reason}" if card.rarity_reason else ""
            self._notify(
                Notification(
                    f"Rarity Upgrade: {card.symbol}",
                    f"{label} card is now {card.rarity.value}.{reason}",
                )
            )

    # --------------------------------------------------------- user actions

    async def add_card(
        self,
        symbol: str,
        card_type: CardType | str,
        source_card_id: str | None = None,
    ) -> Card | None:
        """Create a card for ``symbol`` through its type's initializer.

        Raises ``CardEngineError(SYMBOL_LIMIT)`` when a free workspace would
        exceed its symbol allowance. Backend failures are reported as an
        "Error Adding Card" notification and leave the collection untouched.
        Returns the card occupying the slot afterwards, or None.
        """
        symbol = symbol.strip().upper()
        card_type = CardType.parse(card_type)
        entry = self.registry.require(card_type)
        label = TYPE_LABELS.get(card_type, card_type.value)
        if entry.initialize is None:
            raise CardEngineError(
                f"Card type {card_type.value} cannot be added directly",
                code=CardEngineErrorCode.UNREGISTERED_TYPE,
            )

        existing = find_card(self.cards, symbol, card_type)
        if existing is not None:
            self._notify(Notification("Card Exists", f"A {label} card for {symbol} is already in your workspace."))
            return existing

        symbols = self.symbols()
        if (
            not self.config.is_premium
            and symbol not in symbols
            and len(symbols) >= self.config.free_symbol_limit
        ):
            raise CardEngineError(
                f"Free workspaces are limited to {self.config.free_symbol_limit} symbol(s); "
                f"remove {', '.join(symbols)} or upgrade to add {symbol}",
                code=CardEngineErrorCode.SYMBOL_LIMIT,
            )

        if self.source is None:
            self._notify(Notification("Error Adding Card", "No data source is configured.", "destructive"))
            return None

        ctx = InitContext(symbol=symbol, source=self.source, active_cards=tuple(self.cards))
        try:
            card = await entry.initialize(ctx)
        except CardEngineError as exc:
            logger.warning("Initializing %s card for %s failed: %s", card_type.value, symbol, exc)
            self._notify_all(ctx.notifications)
            self._notify(
                Notification(
                    "Error Adding Card",
                    f"Could not add {label} card for {symbol}. {exc.message}",
                    "destructive",
                )
            )
            return None

        self._notify_all(ctx.notifications)
        if card is None:
            return None
        if not isinstance(card, entry.card_class) or card.symbol != symbol:
            logger.warning("Initializer for %s returned %r; discarding", card_type.value, card)
            return None

        # The collection may have changed while the initializer was awaiting.
        result = insert_card(self.cards, card, after_id=source_card_id)
        if not result.changed:
            self._notify(Notification("Card Exists", f"A {label} card for {symbol} is already in your workspace."))
            return result.card

        self.cards = result.cards
        self._persist()
        self._notify(Notification("Card Added!", f"{label} card for {symbol} added to your workspace."))
        return result.card

    def remove_card(self, card_id: str) -> bool:
        return self._apply(remove_card(self.cards, card_id))

    def flip_card(self, card_id: str) -> bool:
        """Toggle which face a card shows. Data and rarity are untouched."""
        for card in self.cards:
            if card.id == card_id:
                return self._apply(replace_card(self.cards, replace(card, is_flipped=not card.is_flipped)))
        return False

    def move_card(self, card_id: str, new_index: int) -> bool:
        return self._apply(move_card(self.cards, card_id, new_index))

    def clear(self) -> None:
        self.cards = []
        self._persist()
        self._notify(Notification("Workspace Cleared", "All cards have been removed."))

    # ------------------------------------------------------------- internal

    def _apply(self, result: ReconcileResult) -> bool:
        if result.changed:
            self.cards = result.cards
            self._persist()
        return result.changed

    def _persist(self) -> None:
        try:
            self.store.save(self.snapshot())
        except OSError:
            logger.exception("Could not save workspace snapshot")

    def _notify_all(self, notifications: list[Notification]) -> None:
        for notification in notifications:
            self._notify(notification)

    def _notify(self, notification: Notification) -> None:
        logger.info("%s: %s", notification.title, notification.description)
        if self.notifier is not None:
            self.notifier(notification)
