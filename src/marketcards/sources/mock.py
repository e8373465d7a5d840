"""Mock data source for testing and demos: no backend required."""

from __future__ import annotations

from datetime import date

from marketcards.errors import CardEngineError
from marketcards.sources.base import BaseDataSource, Row


class MockDataSource(BaseDataSource):
    """In-memory source that returns pre-loaded rows.

    Use ``set_profile``, ``set_quote``, etc. to pre-load data, and
    ``set_failure`` to make every call raise (simulating an outage).
    """

    def __init__(self) -> None:
        self._profiles: dict[str, Row] = {}
        self._quotes: dict[str, Row] = {}
        self._statements: dict[str, Row] = {}
        self._dividends: dict[str, list[Row]] = {}
        self._grades: dict[str, list[Row]] = {}
        self._statement_history: dict[str, list[Row]] = {}
        self._ratios: dict[str, Row] = {}
        self._shares_float: dict[str, list[Row]] = {}
        self._segments: dict[str, list[Row]] = {}
        self._failure: CardEngineError | None = None
        self.calls: list[tuple[str, str]] = []

    # --- Pre-load helpers ---

    def set_profile(self, symbol: str, row: Row) -> None:
        self._profiles[symbol.upper()] = row

    def set_quote(self, symbol: str, row: Row) -> None:
        self._quotes[symbol.upper()] = row

    def set_statement(self, symbol: str, row: Row) -> None:
        self._statements[symbol.upper()] = row

    def set_statements(self, symbol: str, rows: list[Row]) -> None:
        self._statement_history[symbol.upper()] = rows

    def set_key_ratios(self, symbol: str, row: Row) -> None:
        self._ratios[symbol.upper()] = row

    def set_shares_float(self, symbol: str, rows: list[Row]) -> None:
        self._shares_float[symbol.upper()] = rows

    def set_revenue_segments(self, symbol: str, rows: list[Row]) -> None:
        self._segments[symbol.upper()] = rows

    def set_dividends(self, symbol: str, rows: list[Row]) -> None:
        self._dividends[symbol.upper()] = rows

    def set_grades(self, symbol: str, rows: list[Row]) -> None:
        self._grades[symbol.upper()] = rows

    def set_failure(self, error: CardEngineError | None) -> None:
        self._failure = error

    # --- Source implementation ---

    def _record(self, method: str, symbol: str) -> str:
        self.calls.append((method, symbol.upper()))
        if self._failure is not None:
            raise self._failure
        return symbol.upper()

    def get_profile(self, symbol: str) -> Row | None:
        return self._profiles.get(self._record("get_profile", symbol))

    def get_latest_quote(self, symbol: str) -> Row | None:
        return self._quotes.get(self._record("get_latest_quote", symbol))

    def get_latest_statement(self, symbol: str) -> Row | None:
        return self._statements.get(self._record("get_latest_statement", symbol))

    def get_statements(self, symbol: str, limit: int = 5) -> list[Row]:
        key = self._record("get_statements", symbol)
        rows = self._statement_history.get(key)
        if rows is None:
            latest = self._statements.get(key)
            rows = [latest] if latest else []
        return _newest_first(rows)[:limit]

    def get_key_ratios(self, symbol: str) -> Row | None:
        return self._ratios.get(self._record("get_key_ratios", symbol))

    def get_latest_shares_float(self, symbol: str) -> Row | None:
        rows = _newest_first(self._shares_float.get(self._record("get_latest_shares_float", symbol), []))
        return rows[0] if rows else None

    def get_revenue_segments(self, symbol: str, limit: int = 2) -> list[Row]:
        rows = self._segments.get(self._record("get_revenue_segments", symbol), [])
        return _newest_first([r for r in rows if r.get("period", "FY") == "FY"])[:limit]

    def get_dividend_history(self, symbol: str, since: date | None = None) -> list[Row]:
        rows = self._dividends.get(self._record("get_dividend_history", symbol), [])
        if since is not None:
            rows = [r for r in rows if str(r.get("date") or "") >= since.isoformat()]
        return _newest_first(rows)

    def get_analyst_grades(self, symbol: str, limit: int = 2) -> list[Row]:
        rows = self._grades.get(self._record("get_analyst_grades", symbol), [])
        return _newest_first(rows)[:limit]

    def capabilities(self) -> set[str]:
        return {
            "profiles", "quotes", "statements", "dividends", "grades",
            "ratios", "shares_float", "segments",
        }


def _newest_first(rows: list[Row]) -> list[Row]:
    return sorted(rows, key=lambda r: str(r.get("date") or ""), reverse=True)
