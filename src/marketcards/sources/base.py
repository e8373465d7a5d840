"""Abstract base class for card data sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any

Row = dict[str, Any]


class BaseDataSource(ABC):
    """Abstract base for the backend card initializers read from.

    Subclasses must implement ``get_profile``. All other methods default to
    ``NotImplementedError``: sources implement only the tables they serve and
    advertise them via ``capabilities()``. Rows are plain dicts keyed by the
    backend's snake_case column names; ``None`` / ``[]`` means "no row".
    """

    # --- Reference data (required) ---

    @abstractmethod
    def get_profile(self, symbol: str) -> Row | None:
        """Fetch the company profile row for a symbol."""
        ...

    # --- Live data ---

    def get_latest_quote(self, symbol: str) -> Row | None:
        """Fetch the most recent live quote row (``api_timestamp`` in seconds)."""
        raise NotImplementedError

    # --- Fundamentals ---

    def get_latest_statement(self, symbol: str) -> Row | None:
        """Fetch the latest financial statement row (income, balance, cash flow)."""
        raise NotImplementedError

    def get_statements(self, symbol: str, limit: int = 5) -> list[Row]:
        """Fetch financial statement rows, newest period end date first."""
        raise NotImplementedError

    def get_key_ratios(self, symbol: str) -> Row | None:
        """Fetch the trailing-twelve-months ratios row."""
        raise NotImplementedError

    def get_latest_shares_float(self, symbol: str) -> Row | None:
        """Fetch the most recent share count row (``date``, ``outstanding_shares``)."""
        raise NotImplementedError

    def get_revenue_segments(self, symbol: str, limit: int = 2) -> list[Row]:
        """Fetch annual revenue-by-segment rows, newest first."""
        raise NotImplementedError

    def get_dividend_history(self, symbol: str, since: date | None = None) -> list[Row]:
        """Fetch dividend rows, newest first, optionally from ``since`` on."""
        raise NotImplementedError

    def get_analyst_grades(self, symbol: str, limit: int = 2) -> list[Row]:
        """Fetch analyst grade rows, newest period first."""
        raise NotImplementedError

    # --- Capabilities ---

    def capabilities(self) -> set[str]:
        """Return the set of supported tables.

        Possible values: ``profiles``, ``quotes``, ``statements``,
        ``dividends``, ``grades``, ``ratios``, ``shares_float``,
        ``segments``.
        """
        return {"profiles"}
