"""Tests for the cash use card module."""

import asyncio

from marketcards.cards import cash_use
from marketcards.config import UpdateKind
from marketcards.events import InitContext, UpdateContext
from marketcards.sources.mock import MockDataSource

from conftest import profile_row, statement_row


def _statement(date, debt, fcf, dividends, period="FY"):
    return statement_row(
        date=date,
        period=period,
        balance_sheet_payload={"totalDebt": debt},
        cash_flow_payload={"freeCashFlow": fcf, "netDividendsPaid": dividends},
    )


HISTORY = [
    _statement("2019-09-28", 108e9, 58.9e9, -14.1e9),
    _statement("2023-09-30", 111e9, 99.6e9, -15.0e9),
    _statement("2021-09-25", 124.7e9, 93.0e9, -14.5e9),
    _statement("2022-09-24", 132.5e9, 111.4e9, -14.8e9),
    _statement("2020-09-26", 112.4e9, 73.4e9, -14.1e9),
]


def _source(statements=HISTORY, shares=True):
    source = MockDataSource()
    source.set_profile("AAPL", profile_row())
    source.set_statements("AAPL", list(statements))
    if shares:
        source.set_shares_float("AAPL", [
            {"symbol": "AAPL", "date": "2023-12-01", "outstanding_shares": 15.6e9},
            {"symbol": "AAPL", "date": "2024-01-05", "outstanding_shares": 15.5e9},
        ])
    return source


def _card():
    return asyncio.run(cash_use.initialize(InitContext(symbol="AAPL", source=_source())))


class TestMetricRange:
    def test_five_year_range(self):
        debt = cash_use.metric_range(HISTORY, cash_use.total_debt)
        assert debt.latest == 111e9
        assert debt.minimum == 108e9
        assert debt.maximum == 132.5e9
        assert debt.label == "2019 - 2023"

    def test_single_statement_label(self):
        fcf = cash_use.metric_range([_statement("2023-09-30", 1.0, 2.0, None, period="Q4")], cash_use.free_cash_flow)
        assert fcf.label == "Q4 2023"
        assert fcf.latest == fcf.minimum == fcf.maximum == 2.0

    def test_dividends_are_positive(self):
        assert cash_use.net_dividends_paid(HISTORY[0]) == 14.1e9

    def test_no_values(self):
        result = cash_use.metric_range([_statement("2023-09-30", None, None, None)], cash_use.total_debt)
        assert result.latest is None
        assert result.label == "N/A"


class TestInitialize:
    def test_builds_from_history_and_shares(self):
        card = _card()
        live = card.live_data
        assert live.current_total_debt == 111e9
        assert live.free_cash_flow_min == 58.9e9
        assert live.free_cash_flow_max == 111.4e9
        assert live.current_net_dividends_paid == 15.0e9
        assert live.current_outstanding_shares == 15.5e9
        assert card.static_data.latest_statement_date == "2023-09-30"
        assert card.static_data.latest_shares_float_date == "2024-01-05"
        assert card.static_data.dividends_range_label == "2019 - 2023"
        assert card.back_data.description == (
            "Cash usage metrics for Apple Inc.. Financial data from 2023-09-30 (FY). "
            "Shares outstanding as of 2024-01-05."
        )

    def test_shares_only(self):
        card = asyncio.run(cash_use.initialize(InitContext(symbol="AAPL", source=_source(statements=[]))))
        assert card.live_data.current_total_debt is None
        assert card.live_data.current_outstanding_shares == 15.5e9
        assert card.static_data.debt_range_label == "N/A"

    def test_insufficient_data(self):
        ctx = InitContext(symbol="AAPL", source=_source(statements=[], shares=False))
        assert asyncio.run(cash_use.initialize(ctx)) is None
        assert ctx.notifications[0].title == "Insufficient Data"
        assert ctx.notifications[0].description == "No financial or shares data found for AAPL to create a Cash Use Card."


class TestHandleStatement:
    def test_newer_statement_moves_current_values(self):
        card = _card()
        ctx = UpdateContext()
        updated = cash_use.handle_statement(card, _statement("2023-12-30", 108e9, 37.5e9, -3.8e9, period="Q1"), ctx)
        assert updated.live_data.current_total_debt == 108e9
        assert updated.live_data.current_net_dividends_paid == 3.8e9
        assert updated.live_data.total_debt_max == card.live_data.total_debt_max
        assert updated.static_data.latest_statement_period == "Q1"
        assert ctx.notifications[0].title == "Cash Use Figures Updated: AAPL"
        assert ctx.notifications[0].description == (
            "Latest statement data (Q1 2023-12-30) applied. 5-year ranges reflect initial card data."
        )

    def test_older_statement_ignored(self):
        card = _card()
        assert cash_use.handle_statement(card, _statement("2022-09-24", 1.0, 1.0, 1.0), UpdateContext()) is card

    def test_same_statement_is_noop(self):
        card = _card()
        ctx = UpdateContext()
        assert cash_use.handle_statement(card, HISTORY[1], ctx) is card
        assert ctx.notifications == []

    def test_row_without_period_ignored(self):
        card = _card()
        row = _statement("2024-03-30", 1.0, 1.0, 1.0)
        row["period"] = None
        assert cash_use.handle_statement(card, row, UpdateContext()) is card


class TestHandleSharesFloat:
    def test_newer_count(self):
        card = _card()
        ctx = UpdateContext()
        handler = cash_use.ENTRY.update_handlers[UpdateKind.SHARES_FLOAT]
        updated = handler(card, {"date": "2024-02-01", "outstanding_shares": 15.4e9}, ctx)
        assert updated.live_data.current_outstanding_shares == 15.4e9
        assert updated.back_data.description.endswith("Shares outstanding as of 2024-02-01.")
        assert ctx.notifications[0].title == "Shares Outstanding Updated: AAPL"
        assert ctx.notifications[0].description == "Data as of 2024-02-01 applied."

    def test_older_count_ignored(self):
        card = _card()
        assert cash_use.handle_shares_float(card, {"date": "2023-01-01", "outstanding_shares": 1.0}, UpdateContext()) is card


class TestHandleProfile:
    def test_rebuilds_description(self):
        ctx = UpdateContext()
        updated = cash_use.handle_profile(_card(), profile_row(company_name="Apple"), ctx)
        assert updated.back_data.description.startswith("Cash usage metrics for Apple.")
        assert ctx.notifications[0].title == "Profile Info Updated"

    def test_unchanged(self):
        card = _card()
        assert cash_use.handle_profile(card, profile_row(), UpdateContext()) is card
