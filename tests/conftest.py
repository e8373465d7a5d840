"""Shared fixtures for marketcards tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure src/ is on the path for editable-style imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from marketcards.config import WorkspaceConfig
from marketcards.events import Notification
from marketcards.manager import WorkspaceManager
from marketcards.registry import CardRegistry, create_default_registry
from marketcards.sources.mock import MockDataSource
from marketcards.storage import MemoryStore

# 2024-01-15 14:30:00 UTC, in seconds as the quote table stores it.
QUOTE_TS = 1705329000


def quote_row(symbol: str = "AAPL", price: float = 150.0, ts: int = QUOTE_TS, **extra) -> dict:
    row = {
        "symbol": symbol,
        "current_price": price,
        "change_percentage": 1.2,
        "day_change": 1.78,
        "day_high": 151.0,
        "day_low": 148.5,
        "day_open": 149.0,
        "previous_close": 148.22,
        "volume": 52_000_000,
        "year_high": 199.62,
        "year_low": 124.17,
        "market_cap": 2.9e12,
        "sma_50d": 185.1,
        "sma_200d": 181.4,
        "api_timestamp": ts,
    }
    row.update(extra)
    return row


def profile_row(symbol: str = "AAPL", **extra) -> dict:
    row = {
        "id": "7f3c",
        "symbol": symbol,
        "company_name": "Apple Inc.",
        "image": "https://images.example.com/AAPL.png",
        "website": "https://www.apple.com",
        "sector": "Technology",
        "industry": "Consumer Electronics",
        "country": "US",
        "exchange_full_name": "NASDAQ Global Select",
        "description": "Apple designs smartphones.",
        "ceo": "Tim Cook",
        "address": "One Apple Park Way",
        "city": "Cupertino",
        "state": "CA",
        "zip": "95014",
        "phone": "408 996 1010",
        "full_time_employees": 161000,
        "modified_at": "2024-01-05T10:00:00Z",
        "currency": "USD",
        "ipo_date": "1980-12-12",
        "is_etf": False,
        "is_adr": False,
        "is_fund": False,
    }
    row.update(extra)
    return row


def statement_row(symbol: str = "AAPL", date: str = "2023-09-30", period: str = "FY", **extra) -> dict:
    row = {
        "symbol": symbol,
        "date": date,
        "period": period,
        "fiscal_year": date[:4],
        "reported_currency": "USD",
        "filing_date": "2023-11-03",
        "accepted_date": "2023-11-02 18:08:27",
        "income_statement_payload": {
            "revenue": 383_285_000_000,
            "grossProfit": 169_148_000_000,
            "operatingIncome": 114_301_000_000,
            "netIncome": 96_995_000_000,
        },
        "balance_sheet_payload": {
            "totalAssets": 352_583_000_000,
            "cashAndShortTermInvestments": 61_555_000_000,
            "totalCurrentLiabilities": 145_308_000_000,
            "shortTermDebt": 15_807_000_000,
            "longTermDebt": 95_281_000_000,
            "totalDebt": 111_088_000_000,
        },
        "cash_flow_payload": {"freeCashFlow": 99_584_000_000, "netDividendsPaid": -15_025_000_000},
    }
    row.update(extra)
    return row


def ratios_row(symbol: str = "AAPL", updated_at: str = "2024-01-15T06:00:00Z", **extra) -> dict:
    row = {
        "symbol": symbol,
        "price_to_earnings_ratio_ttm": 29.4,
        "price_to_sales_ratio_ttm": 7.6,
        "price_to_book_ratio_ttm": 47.1,
        "net_profit_margin_ttm": 0.253,
        "gross_profit_margin_ttm": 0.441,
        "debt_to_equity_ratio_ttm": 1.8,
        "dividend_yield_ttm": 0.0052,
        "net_income_per_share_ttm": 6.13,
        "current_ratio_ttm": 0.99,
        "updated_at": updated_at,
    }
    row.update(extra)
    return row


def segments_row(date: str, fiscal_year: str, data, **extra) -> dict:
    row = {
        "symbol": "AAPL",
        "date": date,
        "period": "FY",
        "fiscal_year": fiscal_year,
        "reported_currency": None,
        "data": data,
        "updated_at": f"{date}T06:00:00Z",
    }
    row.update(extra)
    return row


def grades_row(date: str, strong_buy: int, buy: int, hold: int, sell: int = 0, strong_sell: int = 0) -> dict:
    return {
        "symbol": "AAPL",
        "date": date,
        "analyst_ratings_strong_buy": strong_buy,
        "analyst_ratings_buy": buy,
        "analyst_ratings_hold": hold,
        "analyst_ratings_sell": sell,
        "analyst_ratings_strong_sell": strong_sell,
        "updated_at": f"{date}T06:00:00Z",
    }


@pytest.fixture
def registry() -> CardRegistry:
    return create_default_registry()


@pytest.fixture
def mock_source() -> MockDataSource:
    source = MockDataSource()
    source.set_profile("AAPL", profile_row())
    source.set_quote("AAPL", quote_row())
    source.set_statement("AAPL", statement_row())
    return source


@pytest.fixture
def notifications() -> list[Notification]:
    return []


@pytest.fixture
def workspace(registry, mock_source, notifications) -> WorkspaceManager:
    return WorkspaceManager(
        WorkspaceConfig(storage_backend="memory"),
        registry=registry,
        source=mock_source,
        store=MemoryStore(),
        notifier=notifications.append,
    )
