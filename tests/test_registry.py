"""Tests for the card type registry and update dispatch."""

import pytest

from marketcards.config import CardType, UpdateKind
from marketcards.errors import CardEngineError, CardEngineErrorCode
from marketcards.events import UpdateContext
from marketcards.models import empty_card
from marketcards.models.price import PriceCard
from marketcards.models.profile import ProfileCard
from marketcards.registry import CardRegistry, RegistryEntry, create_default_registry


def _entry(**handlers) -> RegistryEntry:
    return RegistryEntry(
        card_type=CardType.PRICE,
        card_class=PriceCard,
        rehydrate=lambda record, props: None,
        update_handlers={UpdateKind(k): v for k, v in handlers.items()},
    )


class TestRegistration:
    def test_default_registry_has_every_type(self):
        registry = create_default_registry()
        assert set(registry.types()) == set(CardType)
        assert len(registry) == len(CardType)

    def test_lookup_by_tag(self):
        registry = create_default_registry()
        assert registry.get("price").card_class is PriceCard
        assert "profile" in registry
        assert registry.get("crypto") is None
        assert "crypto" not in registry

    def test_require_unknown(self):
        with pytest.raises(CardEngineError) as exc_info:
            CardRegistry().require(CardType.PRICE)
        assert exc_info.value.code is CardEngineErrorCode.UNREGISTERED_TYPE
        assert not exc_info.value.user_visible

    def test_register_same_entry_twice(self):
        entry = _entry()
        registry = CardRegistry([entry])
        registry.register(entry)
        assert len(registry) == 1
        assert registry.get(CardType.PRICE) is entry

    def test_overwrite_replaces(self, caplog):
        registry = CardRegistry([_entry()])
        replacement = _entry()
        registry.register(replacement)
        assert registry.get(CardType.PRICE) is replacement
        assert "overwritten" in caplog.text

    def test_entries_for_kind(self):
        registry = create_default_registry()
        types = {e.card_type for e in registry.entries_for(UpdateKind.LIVE_QUOTE)}
        assert types == {CardType.PRICE, CardType.PROFILE}
        assert {e.card_type for e in registry.entries_for(UpdateKind.STATIC_PROFILE)} == set(CardType)


class TestDispatch:
    def test_no_handler_is_noop(self):
        card = empty_card(CardType.PRICE, "AAPL")
        registry = CardRegistry([_entry()])
        assert registry.dispatch_update(CardType.PRICE, UpdateKind.DIVIDEND_ROW, card, {}) is card

    def test_unregistered_type_is_noop(self):
        card = empty_card(CardType.PRICE, "AAPL")
        assert CardRegistry().dispatch_update(CardType.PRICE, UpdateKind.LIVE_QUOTE, card, {}) is card

    def test_handler_result_returned(self):
        card = empty_card(CardType.PRICE, "AAPL")
        flipped = empty_card(CardType.PRICE, "AAPL")
        registry = CardRegistry([_entry(live_quote=lambda cur, payload, ctx: flipped)])
        assert registry.dispatch_update(CardType.PRICE, UpdateKind.LIVE_QUOTE, card, {}) is flipped

    def test_handler_receives_context(self):
        seen = []
        registry = CardRegistry([_entry(live_quote=lambda cur, payload, ctx: seen.append(ctx) or cur)])
        ctx = UpdateContext()
        registry.dispatch_update(CardType.PRICE, UpdateKind.LIVE_QUOTE, None, {}, ctx)
        assert seen == [ctx]

    def test_crashing_handler_keeps_current(self, caplog):
        def boom(cur, payload, ctx):
            raise KeyError("price")

        card = empty_card(CardType.PRICE, "AAPL")
        registry = CardRegistry([_entry(live_quote=boom)])
        assert registry.dispatch_update(CardType.PRICE, UpdateKind.LIVE_QUOTE, card, {}) is card
        assert "failed" in caplog.text

    def test_wrong_variant_result_ignored(self):
        card = empty_card(CardType.PRICE, "AAPL")
        other = empty_card(CardType.PROFILE, "AAPL")
        registry = CardRegistry([_entry(live_quote=lambda cur, payload, ctx: other)])
        assert registry.dispatch_update(CardType.PRICE, UpdateKind.LIVE_QUOTE, card, {}) is card

    def test_mismatched_current_skipped(self):
        profile = empty_card(CardType.PROFILE, "AAPL")
        assert isinstance(profile, ProfileCard)
        registry = CardRegistry([_entry(live_quote=lambda cur, payload, ctx: pytest.fail("called"))])
        assert registry.dispatch_update(CardType.PRICE, UpdateKind.LIVE_QUOTE, profile, {}) is profile

