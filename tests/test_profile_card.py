"""Tests for the profile card module."""

import asyncio

from marketcards.cards import profile
from marketcards.config import EventSource
from marketcards.events import InitContext, UpdateContext
from marketcards.rarity import evaluate_rarity
from marketcards.models.base import RarityLevel

from conftest import QUOTE_TS, profile_row, quote_row


class TestStaticFromRow:
    def test_formatting(self):
        static = profile.static_from_row(profile_row())
        assert static.full_address == "One Apple Park Way, Cupertino, CA, 95014, US"
        assert static.formatted_full_time_employees == "161,000"
        assert static.profile_last_updated == "Jan 5, 24"
        assert static.formatted_ipo_date == "December 12, 1980"
        assert static.is_etf is False
        assert static.db_id == "7f3c"

    def test_sparse_row(self):
        static = profile.static_from_row({"symbol": "NEWCO", "city": "Austin"})
        assert static.full_address == "Austin"
        assert static.formatted_full_time_employees is None
        assert static.formatted_ipo_date is None


class TestInitialize:
    def test_builds_card(self, mock_source):
        card = asyncio.run(profile.initialize(InitContext(symbol="AAPL", source=mock_source)))
        assert card.company_name == "Apple Inc."
        assert card.website_url == "https://www.apple.com"
        assert card.back_data.description == "Apple designs smartphones."
        assert card.live_data.price is None

    def test_not_found(self, mock_source):
        ctx = InitContext(symbol="NEWCO", source=mock_source)
        assert asyncio.run(profile.initialize(ctx)) is None
        assert ctx.notifications[0].title == "Profile Not Found"

    def test_default_description(self):
        card = profile.build_profile_card("NEWCO", {"company_name": "NewCo"})
        assert card.back_data.description == "Profile information for NewCo."


class TestHandlers:
    def test_static_profile_refresh(self):
        card = profile.build_profile_card("AAPL", profile_row())
        ctx = UpdateContext(source=EventSource.STATIC_PATCH)
        updated = profile.handle_static_profile(card, profile_row(ceo="Someone Else", description="x" * 600), ctx)
        assert updated.static_data.ceo == "Someone Else"
        assert updated.back_data.description == "x" * 600
        assert updated.id == card.id
        assert ctx.notifications[0].title == "Profile Updated: AAPL"
        assert evaluate_rarity(updated).level is RarityLevel.UNCOMMON

    def test_static_profile_same_row(self):
        card = profile.build_profile_card("AAPL", profile_row())
        ctx = UpdateContext()
        assert profile.handle_static_profile(card, profile_row(), ctx) is card
        assert ctx.notifications == []

    def test_live_quote_needs_existing_card(self):
        assert profile.handle_live_quote(None, quote_row(), UpdateContext()) is None

    def test_live_quote_updates_strip(self):
        card = profile.build_profile_card("AAPL", profile_row())
        updated = profile.handle_live_quote(card, quote_row(price=151.5), UpdateContext())
        assert updated.live_data.price == 151.5
        assert updated.live_data.timestamp == QUOTE_TS * 1000
        assert updated.static_data == card.static_data

    def test_live_quote_stale_realtime(self):
        card = profile.handle_live_quote(profile.build_profile_card("AAPL", profile_row()), quote_row(), UpdateContext())
        ctx = UpdateContext(source=EventSource.REALTIME)
        assert profile.handle_live_quote(card, quote_row(price=120.0, ts=QUOTE_TS - 30), ctx) is card

    def test_live_quote_untimed_uses_event_time(self):
        card = profile.handle_live_quote(profile.build_profile_card("AAPL", profile_row()), quote_row(), UpdateContext())
        row = quote_row(price=120.0)
        del row["api_timestamp"]
        stale = UpdateContext(source=EventSource.REALTIME, timestamp=(QUOTE_TS - 3600) * 1000)
        assert profile.handle_live_quote(card, row, stale) is card
