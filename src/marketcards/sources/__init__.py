"""Card data source registry."""

from __future__ import annotations

import importlib

from marketcards.sources.base import BaseDataSource

# Lazy registry: classes imported on demand so the HTTP stack is only
# loaded when a real backend is configured.
SOURCE_CLASSES: dict[str, str] = {
    "supabase": "marketcards.sources.supabase.SupabaseRestSource",
    "mock": "marketcards.sources.mock.MockDataSource",
}


def create_source(name: str, **kwargs) -> BaseDataSource:
    """Instantiate a source by name, forwarding kwargs to its constructor."""
    dotted = SOURCE_CLASSES[name]
    module_path, cls_name = dotted.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls = getattr(module, cls_name)
    return cls(**kwargs)


__all__ = ["BaseDataSource", "SOURCE_CLASSES", "create_source"]
