"""Tests for the price card module."""

import asyncio

import pytest

from marketcards.cards import price
from marketcards.config import EventSource
from marketcards.errors import CardEngineError
from marketcards.events import InitContext, UpdateContext
from marketcards.models.price import PriceCard

from conftest import QUOTE_TS, quote_row


def _card(**extra) -> PriceCard:
    return price.build_price_card("AAPL", quote_row(**extra), company_name="Apple Inc.")


class TestBuild:
    def test_from_quote(self):
        card = _card()
        assert card.face_data.price == 150.0
        assert card.face_data.timestamp == QUOTE_TS * 1000
        assert card.face_data.previous_close == 148.22
        assert card.back_data.sma_200d == 181.4
        assert card.company_name == "Apple Inc."
        assert not card.is_flipped


class TestInitialize:
    def test_latest_quote(self, mock_source):
        ctx = InitContext(symbol="AAPL", source=mock_source)
        card = asyncio.run(price.initialize(ctx))
        assert card.face_data.price == 150.0
        assert card.company_name == "Apple Inc."
        assert card.logo_url == "https://images.example.com/AAPL.png"
        assert ctx.notifications == []

    def test_shell_without_quote(self, mock_source):
        ctx = InitContext(symbol="NEWCO", source=mock_source)
        card = asyncio.run(price.initialize(ctx))
        assert card.symbol == "NEWCO"
        assert card.face_data.price is None
        assert card.company_name == "NEWCO"
        assert ctx.notifications[0].title == "Price Card Added (Shell)"
        assert ctx.notifications[0].description == "Awaiting live data for NEWCO"

    def test_transport_error_propagates(self, mock_source):
        mock_source.set_failure(CardEngineError("down"))
        with pytest.raises(CardEngineError):
            asyncio.run(price.initialize(InitContext(symbol="AAPL", source=mock_source)))


class TestLiveQuote:
    def test_realtime_without_card_ignored(self):
        ctx = UpdateContext(source=EventSource.REALTIME)
        assert price.handle_live_quote(None, quote_row(), ctx) is None

    def test_fetch_without_card_builds_candidate(self):
        card = price.handle_live_quote(None, quote_row(symbol="aapl"), UpdateContext())
        assert card.symbol == "AAPL"
        assert card.face_data.price == 150.0

    def test_stale_realtime_rejected(self):
        card = _card()
        ctx = UpdateContext(source=EventSource.REALTIME)
        assert price.handle_live_quote(card, quote_row(price=151.0, ts=QUOTE_TS - 1), ctx) is card

    def test_stale_fetch_accepted(self):
        card = _card()
        updated = price.handle_live_quote(card, quote_row(price=151.0, ts=QUOTE_TS - 1), UpdateContext())
        assert updated.face_data.price == 151.0

    def test_same_values_newer_timestamp_unchanged(self):
        card = _card()
        ctx = UpdateContext(source=EventSource.REALTIME)
        assert price.handle_live_quote(card, quote_row(ts=QUOTE_TS + 60), ctx) is card

    def test_realtime_change_notifies(self):
        card = _card()
        ctx = UpdateContext(source=EventSource.REALTIME)
        updated = price.handle_live_quote(card, quote_row(price=155.0, change_percentage=2.5, ts=QUOTE_TS + 60), ctx)
        assert updated.face_data.price == 155.0
        assert updated.face_data.timestamp == (QUOTE_TS + 60) * 1000
        assert ctx.notifications[0].title == "Live Update: AAPL"
        assert ctx.notifications[0].description == "$155.00 (+2.50%) Rarity: Common"

    def test_notifications_can_be_silenced(self):
        ctx = UpdateContext(source=EventSource.REALTIME, announce_live=False)
        price.handle_live_quote(_card(), quote_row(price=155.0, ts=QUOTE_TS + 60), ctx)
        assert ctx.notifications == []

    def test_missing_fields_default(self):
        card = _card()
        ctx = UpdateContext(timestamp=(QUOTE_TS + 5) * 1000)
        updated = price.handle_live_quote(card, {"symbol": "AAPL", "current_price": "n/a"}, ctx)
        assert updated.face_data.price is None
        assert updated.face_data.timestamp == (QUOTE_TS + 5) * 1000

    def test_untimed_realtime_quote_uses_event_time(self):
        card = _card()
        row = quote_row(price=155.0)
        del row["api_timestamp"]
        old = UpdateContext(source=EventSource.REALTIME, timestamp=(QUOTE_TS - 3600) * 1000)
        assert price.handle_live_quote(card, row, old) is card
        fresh = UpdateContext(source=EventSource.REALTIME, timestamp=(QUOTE_TS + 60) * 1000)
        updated = price.handle_live_quote(card, row, fresh)
        assert updated.face_data.price == 155.0
        assert updated.face_data.timestamp == (QUOTE_TS + 60) * 1000

    def test_untimed_fetch_candidate_uses_event_time(self):
        row = quote_row()
        del row["api_timestamp"]
        card = price.handle_live_quote(None, row, UpdateContext(timestamp=QUOTE_TS * 1000))
        assert card.face_data.timestamp == QUOTE_TS * 1000

    def test_keeps_back_description(self):
        card = _card()
        updated = price.handle_live_quote(card, quote_row(price=140.0, market_cap=2.5e12), UpdateContext())
        assert updated.back_data.market_cap == 2.5e12
        assert updated.back_data.description == card.back_data.description


class TestStaticProfile:
    def test_updates_identity(self):
        handler = price.ENTRY.update_handlers[price.UpdateKind.STATIC_PROFILE]
        card = _card()
        updated = handler(card, {"company_name": "Apple", "image": "logo.png"}, UpdateContext())
        assert updated.company_name == "Apple"
        assert updated.logo_url == "logo.png"
        assert updated.face_data == card.face_data

    def test_unchanged_identity_returns_same(self):
        handler = price.ENTRY.update_handlers[price.UpdateKind.STATIC_PROFILE]
        card = _card()
        assert handler(card, {"company_name": "Apple Inc."}, UpdateContext()) is card

    def test_missing_name_falls_back_to_symbol(self):
        handler = price.ENTRY.update_handlers[price.UpdateKind.STATIC_PROFILE]
        assert handler(_card(), {}, UpdateContext()).company_name == "AAPL"
