"""Supabase (PostgREST) data source over ``requests``."""

from __future__ import annotations

import os
from datetime import date
from typing import Any

import certifi
import requests

from marketcards.errors import CardEngineError, CardEngineErrorCode
from marketcards.sources.base import BaseDataSource, Row


class SupabaseRestSource(BaseDataSource):
    """Read card rows from a Supabase project's REST endpoint.

    Capabilities: profiles, quotes, statements, dividends, grades, ratios,
    shares_float, segments.
    """

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        timeout: float = 10.0,
        session: Any = None,
    ) -> None:
        self.url = (url or os.getenv("SUPABASE_URL") or "").rstrip("/")
        self.api_key = api_key or os.getenv("SUPABASE_ANON_KEY")
        if not self.url or not self.api_key:
            raise CardEngineError(
                "Supabase URL and key required. Set SUPABASE_URL / SUPABASE_ANON_KEY or pass them.",
                code=CardEngineErrorCode.AUTH_FAILED,
            )
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            session.verify = certifi.where()
        self.session = session
        self.session.headers.update({
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        })

    def capabilities(self) -> set[str]:
        return {
            "profiles", "quotes", "statements", "dividends", "grades",
            "ratios", "shares_float", "segments",
        }

    # ------------------------------------------------------------- tables

    def get_profile(self, symbol: str) -> Row | None:
        return self._first(self._select("profiles", symbol, limit=1))

    def get_latest_quote(self, symbol: str) -> Row | None:
        rows = self._select("live_quote_indicators", symbol, order="fetched_at.desc", limit=1)
        return self._first(rows)

    def get_latest_statement(self, symbol: str) -> Row | None:
        rows = self._select(
            "financial_statements", symbol, order="date.desc,period.desc", limit=1,
        )
        return self._first(rows)

    def get_statements(self, symbol: str, limit: int = 5) -> list[Row]:
        return self._select("financial_statements", symbol, order="date.desc", limit=limit)

    def get_key_ratios(self, symbol: str) -> Row | None:
        return self._first(self._select("ratios_ttm", symbol, limit=1))

    def get_latest_shares_float(self, symbol: str) -> Row | None:
        return self._first(self._select("shares_float", symbol, order="date.desc", limit=1))

    def get_revenue_segments(self, symbol: str, limit: int = 2) -> list[Row]:
        return self._select(
            "revenue_product_segmentation", symbol, order="date.desc", limit=limit,
            extra={"period": "eq.FY"},
        )

    def get_dividend_history(self, symbol: str, since: date | None = None) -> list[Row]:
        extra = {"date": f"gte.{since.isoformat()}"} if since else None
        return self._select("dividend_history", symbol, order="date.desc", extra=extra)

    def get_analyst_grades(self, symbol: str, limit: int = 2) -> list[Row]:
        return self._select("grades_historical", symbol, order="date.desc", limit=limit)

    # ------------------------------------------------------------ internal

    def _select(
        self,
        table: str,
        symbol: str,
        order: str | None = None,
        limit: int | None = None,
        extra: dict[str, str] | None = None,
    ) -> list[Row]:
        params: dict[str, Any] = {"select": "*", "symbol": f"eq.{symbol.upper()}"}
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        if extra:
            params.update(extra)

        try:
            resp = self.session.get(
                f"{self.url}/rest/v1/{table}", params=params, timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise CardEngineError(
                f"Backend unreachable while reading {table}: {exc}",
                code=CardEngineErrorCode.TRANSPORT,
            ) from exc

        self._check_response(resp, table)
        try:
            data = resp.json()
        except ValueError as exc:
            raise CardEngineError(
                f"Backend returned invalid JSON for {table}",
                code=CardEngineErrorCode.TRANSPORT,
            ) from exc
        if not isinstance(data, list):
            return []
        return [row for row in data if isinstance(row, dict)]

    @staticmethod
    def _first(rows: list[Row]) -> Row | None:
        return rows[0] if rows else None

    @staticmethod
    def _check_response(resp: Any, table: str) -> None:
        if resp.status_code in (401, 403):
            raise CardEngineError(
                "Backend authentication failed",
                code=CardEngineErrorCode.AUTH_FAILED,
            )
        if resp.status_code == 404:
            raise CardEngineError(
                f"Table {table} not found on backend",
                code=CardEngineErrorCode.NOT_FOUND,
            )
        if resp.status_code == 429 or resp.status_code >= 500:
            raise CardEngineError(
                f"Backend error {resp.status_code} reading {table}",
                code=CardEngineErrorCode.TRANSPORT,
            )
        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise CardEngineError(
                f"Backend request for {table} failed: {exc}",
                code=CardEngineErrorCode.TRANSPORT,
            ) from exc
