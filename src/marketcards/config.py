"""Card engine configuration and tag enums."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from marketcards.errors import CardEngineError, CardEngineErrorCode


class CardType(Enum):
    """Closed set of card type tags."""

    PRICE = "price"
    PROFILE = "profile"
    REVENUE = "revenue"
    SOLVENCY = "solvency"
    DIVIDENDS_HISTORY = "dividendshistory"
    ANALYST_GRADES = "analystgrades"
    KEY_RATIOS = "keyratios"
    CASH_USE = "cashuse"
    REVENUE_BREAKDOWN = "revenuebreakdown"

    @classmethod
    def parse(cls, tag: object) -> CardType:
        """Return the member for ``tag`` or raise ``UNREGISTERED_TYPE``."""
        if isinstance(tag, CardType):
            return tag
        for member in cls:
            if member.value == tag:
                return member
        raise CardEngineError(
            f"Unknown card type: {tag!r}",
            code=CardEngineErrorCode.UNREGISTERED_TYPE,
        )


class EventSource(Enum):
    """Why an external data event arrived (the event "reason")."""

    FETCH = "fetch"
    REALTIME = "realtime"
    STATIC_PATCH = "static-patch"


class UpdateKind(Enum):
    """Payload family an update handler is registered for."""

    LIVE_QUOTE = "live_quote"
    STATIC_PROFILE = "static_profile"
    FINANCIAL_STATEMENT = "financial_statement"
    DIVIDEND_ROW = "dividend_row"
    ANALYST_GRADES = "analyst_grades"
    RATIOS_TTM = "ratios_ttm"
    SHARES_FLOAT = "shares_float"
    REVENUE_SEGMENTATION = "revenue_segmentation"


@dataclass
class WorkspaceConfig:
    """Configuration for WorkspaceManager.

    Attributes:
        is_premium: Premium users may track any number of symbols.
        free_symbol_limit: Distinct symbols a free workspace may hold.
        storage_backend: Snapshot store type: "json", "memory", or "none".
        storage_path: Directory for the JSON snapshot file.
        storage_key: Snapshot name (file stem for the JSON store).
        supabase_url: Backend REST base URL.
        supabase_key: Backend anon/service key.
        notify_realtime_updates: Emit a notification on realtime price moves.
        log_level: Level name for the package logger.
    """

    is_premium: bool = False
    free_symbol_limit: int = 1
    storage_backend: str = "json"
    storage_path: str = "data/workspace"
    storage_key: str = "finSignal-mainWorkspace-v1"
    supabase_url: str | None = None
    supabase_key: str | None = None
    notify_realtime_updates: bool = True
    log_level: str = "INFO"
