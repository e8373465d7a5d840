"""marketcards: reconciliation engine for financial-instrument cards.

Keeps a workspace of typed cards (price, profile, revenue, solvency,
dividends history, analyst grades) in sync with fetched and realtime
backend data: one card per (symbol, type), change detection, rarity
tiers, and snapshot persistence.

Quick start::

    from marketcards import create_workspace_from_env
    ws = create_workspace_from_env()
    await ws.add_card("AAPL", "price")
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

from marketcards.config import CardType, EventSource, UpdateKind, WorkspaceConfig
from marketcards.errors import CardEngineError, CardEngineErrorCode
from marketcards.events import DataEvent, Notification
from marketcards.log import setup_logger
from marketcards.manager import WorkspaceManager
from marketcards.models import CARD_CLASSES, Card, RarityLevel, empty_card
from marketcards.rarity import RarityOutcome, evaluate_rarity
from marketcards.reconcile import ReconcileResult, reconcile
from marketcards.registry import CardRegistry, RegistryEntry, create_default_registry
from marketcards.rehydrate import rehydrate_all, rehydrate_card

__version__ = "0.1.0"

__all__ = [
    # Workspace
    "WorkspaceManager",
    "create_workspace_from_env",
    # Config
    "WorkspaceConfig",
    "CardType",
    "EventSource",
    "UpdateKind",
    # Errors
    "CardEngineError",
    "CardEngineErrorCode",
    # Events
    "DataEvent",
    "Notification",
    # Models
    "Card",
    "CARD_CLASSES",
    "RarityLevel",
    "empty_card",
    # Engine
    "CardRegistry",
    "RegistryEntry",
    "create_default_registry",
    "reconcile",
    "ReconcileResult",
    "rehydrate_card",
    "rehydrate_all",
    "evaluate_rarity",
    "RarityOutcome",
    "setup_logger",
]


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def create_workspace_from_env() -> WorkspaceManager:
    """Zero-config factory: reads backend and storage settings from env vars.

    A ``.env`` file in the working directory is loaded first.

    Environment variables:
        MARKETCARDS_PREMIUM: "true" lifts the free-tier symbol limit.
        MARKETCARDS_STORAGE: Snapshot store: "json", "memory" or "none" (default: "json").
        MARKETCARDS_STORAGE_PATH: Snapshot directory (default: "data/workspace").
        MARKETCARDS_LOG_LEVEL: Package log level (default: "INFO").
        SUPABASE_URL: Backend REST base URL.
        SUPABASE_ANON_KEY: Backend anon key.
    """
    load_dotenv()

    config = WorkspaceConfig(
        is_premium=_env_flag("MARKETCARDS_PREMIUM"),
        storage_backend=os.getenv("MARKETCARDS_STORAGE", "json"),
        storage_path=os.getenv("MARKETCARDS_STORAGE_PATH", "data/workspace"),
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_ANON_KEY"),
        log_level=os.getenv("MARKETCARDS_LOG_LEVEL", "INFO"),
    )
    setup_logger("marketcards", config.log_level)

    return WorkspaceManager(config)
