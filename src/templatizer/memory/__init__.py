"""Persistence for repository configurations."""

from templatizer.memory.config_store import (
    ConfigStore,
    InMemoryConfigStore,
    JsonConfigStore,
    create_config_store,
)

__all__ = ["ConfigStore", "InMemoryConfigStore", "JsonConfigStore", "create_config_store"]
