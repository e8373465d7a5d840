"""Snapshot stores for the card collection: JSON file, memory, or none."""

from __future__ import annotations

import copy
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from marketcards.config import WorkspaceConfig

logger = logging.getLogger(__name__)

Snapshot = list[dict[str, Any]]


class SnapshotStore(ABC):
    """Abstract store for the serialized card list."""

    @abstractmethod
    def load(self) -> Any:
        """Return the stored snapshot, or None when nothing is stored."""
        ...

    @abstractmethod
    def save(self, records: Snapshot) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class NoStore(SnapshotStore):
    """No-op store: nothing survives a restart."""

    def load(self):  # type: ignore[override]
        return None

    def save(self, records):  # type: ignore[override]
        pass

    def clear(self):
        pass


class JsonFileStore(SnapshotStore):
    """Snapshot kept in a single JSON file.

    Storage layout: ``{base_path}/{key}.json``. A file that cannot be read
    or parsed loads as no snapshot; the workspace then starts empty.
    """

    def __init__(self, base_path: Path | str, key: str = "finSignal-mainWorkspace-v1") -> None:
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.key = key

    @property
    def file_path(self) -> Path:
        return self.base_path / f"{self.key}.json"

    def load(self) -> Any:
        fp = self.file_path
        if not fp.exists():
            return None
        try:
            with fp.open(encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read snapshot %s: %s", fp, exc)
            return None

    def save(self, records: Snapshot) -> None:
        fp = self.file_path
        tmp = fp.with_suffix(".json.tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(records, fh, default=str)
        tmp.replace(fp)

    def clear(self) -> None:
        if self.file_path.exists():
            self.file_path.unlink()


class MemoryStore(SnapshotStore):
    """In-process store, handy for tests and ephemeral workspaces."""

    def __init__(self, records: Any = None) -> None:
        self._records = copy.deepcopy(records)
        self.saves = 0

    def load(self) -> Any:
        return copy.deepcopy(self._records)

    def save(self, records: Snapshot) -> None:
        self._records = copy.deepcopy(records)
        self.saves += 1

    def clear(self) -> None:
        self._records = None


def create_store(config: WorkspaceConfig) -> SnapshotStore:
    """Build the store named by ``config.storage_backend``."""
    if config.storage_backend == "json":
        return JsonFileStore(config.storage_path, config.storage_key)
    if config.storage_backend == "memory":
        return MemoryStore()
    return NoStore()
