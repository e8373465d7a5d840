"""Tests for the revenue breakdown card module."""

import asyncio

import pytest

from marketcards.cards import revenue_breakdown
from marketcards.events import InitContext, UpdateContext
from marketcards.rehydrate import rehydrate_card
from marketcards.sources.mock import MockDataSource

from conftest import profile_row, segments_row

FY2023 = segments_row("2023-09-30", "2023", {"iPhone": 200.6e9, "Mac": 29.4e9, "Services": 85.2e9, "Note": "n/a"})
FY2022 = segments_row("2022-09-24", "2022", {"iPhone": 205.5e9, "Mac": 40.2e9, "Services": 78.1e9})


def _card(rows=(FY2022, FY2023)):
    source = MockDataSource()
    source.set_profile("AAPL", profile_row())
    source.set_revenue_segments("AAPL", list(rows))
    return asyncio.run(revenue_breakdown.initialize(InitContext(symbol="AAPL", source=source)))


def _by_name(card):
    return {item.segment_name: item for item in card.live_data.breakdown}


class TestParseSegments:
    def test_numeric_only(self):
        assert revenue_breakdown.parse_segments({"A": 1, "B": "2.5", "C": None, "D": "x"}) == {"A": 1.0, "B": 2.5}

    def test_json_text(self):
        assert revenue_breakdown.parse_segments('{"A": 3}') == {"A": 3.0}
        assert revenue_breakdown.parse_segments("not json") == {}
        assert revenue_breakdown.parse_segments(None) == {}


class TestInitialize:
    def test_breakdown_with_yoy(self):
        card = _card()
        items = _by_name(card)
        assert [i.segment_name for i in card.live_data.breakdown] == ["iPhone", "Services", "Mac"]
        assert card.live_data.total_revenue_latest_period == pytest.approx(315.2e9)
        assert items["Mac"].previous_revenue == 40.2e9
        assert items["Mac"].yoy_change == pytest.approx((29.4 - 40.2) / 40.2)
        assert card.static_data.latest_period_label == "FY2023 ending 2023-09-30"
        assert card.static_data.previous_period_label == "FY2022 ending 2022-09-24"
        assert card.static_data.currency_symbol == "$"
        assert card.back_data.description == (
            "Revenue breakdown by product/segment for Apple Inc. for FY2023 ending 2023-09-30, "
            "showing year-over-year changes."
        )

    def test_single_year(self):
        card = _card(rows=(FY2023,))
        assert card.static_data.previous_period_label is None
        assert all(item.yoy_change is None for item in card.live_data.breakdown)

    def test_new_segment_has_no_yoy(self):
        card = _card(rows=(FY2022, segments_row("2023-09-30", "2023", {"Vision": 1e9})))
        assert _by_name(card)["Vision"].previous_revenue is None
        assert _by_name(card)["Vision"].yoy_change is None

    @pytest.mark.parametrize("reported, profile_currency, expected", [
        ("EUR", "USD", "EUR"),
        (None, "USD", "$"),
        (None, "JPY", "JPY"),
        (None, None, "$"),
    ])
    def test_currency_symbol(self, reported, profile_currency, expected):
        row = segments_row("2023-09-30", "2023", {}, reported_currency=reported)
        assert revenue_breakdown.currency_symbol(row, profile_currency) == expected

    def test_no_rows(self, mock_source):
        ctx = InitContext(symbol="AAPL", source=mock_source)
        assert asyncio.run(revenue_breakdown.initialize(ctx)) is None
        assert ctx.notifications[0].title == "No Revenue Breakdown Data"


class TestHandleSegmentation:
    def test_next_year_shifts_comparison(self):
        card = _card()
        ctx = UpdateContext()
        fy2024 = segments_row("2024-09-28", "2024", {"iPhone": 201.2e9, "Mac": 30.0e9, "Services": 96.2e9})
        updated = revenue_breakdown.handle_segmentation(card, fy2024, ctx)
        items = _by_name(updated)
        assert items["Services"].previous_revenue == 85.2e9
        assert updated.static_data.previous_period_label == "FY2023 ending 2023-09-30"
        assert updated.static_data.latest_period_label == "FY2024 ending 2024-09-28"
        assert ctx.notifications[0].title == "Revenue Breakdown Updated: AAPL"

    def test_revision_keeps_comparison(self):
        card = _card()
        revised = segments_row("2023-09-30", "2023", {"iPhone": 201.0e9, "Mac": 29.4e9, "Services": 85.2e9})
        updated = revenue_breakdown.handle_segmentation(card, revised, UpdateContext())
        assert _by_name(updated)["iPhone"].previous_revenue == 205.5e9
        assert updated.static_data.previous_period_label == card.static_data.previous_period_label

    def test_older_or_quarterly_rows_ignored(self):
        card = _card()
        assert revenue_breakdown.handle_segmentation(card, FY2022, UpdateContext()) is card
        quarterly = segments_row("2023-12-30", "2024", {"iPhone": 69.7e9}, period="Q1")
        assert revenue_breakdown.handle_segmentation(card, quarterly, UpdateContext()) is card

    def test_same_row_is_noop(self):
        card = _card()
        assert revenue_breakdown.handle_segmentation(card, FY2023, UpdateContext()) is card


class TestRehydrate:
    def test_from_record(self, registry):
        card = _card()
        again = rehydrate_card(card.to_record(), registry)
        assert again.live_data == card.live_data
        assert again.static_data == card.static_data

    def test_bad_breakdown_items_dropped(self, registry):
        record = _card().to_record()
        record["liveData"]["breakdown"].append({"segmentName": "Broken"})
        again = rehydrate_card(record, registry)
        assert len(again.live_data.breakdown) == 3
