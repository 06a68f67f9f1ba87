"""Persisted store of the last-known configuration of each repository."""

from __future__ import annotations

import copy
import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from templatizer.entities.config import FullRepoConfig
from templatizer.exceptions import StoreError

logger = logging.getLogger(__name__)


class ConfigStore(ABC):
    """Keyed storage of full repository configurations.

    Records are keyed by numeric repository id. Writes are idempotent,
    last-writer-wins upserts.
    """

    @abstractmethod
    def upsert(self, repo_id: int, config: FullRepoConfig) -> None:
        """Create or overwrite the record for a repository."""

    @abstractmethod
    def get(self, repo_id: int) -> FullRepoConfig | None:
        """Point lookup by repository id."""

    @abstractmethod
    def find_by_subscription(self, reference: str) -> list[FullRepoConfig]:
        """Every stored configuration whose config sets include ``reference``."""


class _DocumentConfigStore(ConfigStore):
    """Shared logic for stores holding raw JSON documents in a dict."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def _persist(self, documents: dict[str, dict[str, Any]]) -> None:
        """Write the candidate state; the in-memory state changes only if this returns."""

    def upsert(self, repo_id: int, config: FullRepoConfig) -> None:
        with self._lock:
            updated = {**self._documents, str(repo_id): config.to_document()}
            self._persist(updated)
            self._documents = updated
        logger.debug("Stored config for %s (id %s)", config.full_name, repo_id)

    def get(self, repo_id: int) -> FullRepoConfig | None:
        with self._lock:
            doc = copy.deepcopy(self._documents.get(str(repo_id)))
        if doc is None:
            return None
        try:
            return FullRepoConfig.model_validate(doc)
        except ValidationError as e:
            raise StoreError(f"Stored config for repository {repo_id} is malformed") from e

    def find_by_subscription(self, reference: str) -> list[FullRepoConfig]:
        with self._lock:
            documents = copy.deepcopy(self._documents)

        matches: list[FullRepoConfig] = []
        for repo_id, doc in documents.items():
            try:
                config = FullRepoConfig.model_validate(doc)
            except ValidationError:
                logger.warning("Skipping malformed stored config for repository %s", repo_id)
                continue
            if reference in config.config_sets:
                matches.append(config)
        return matches

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, repo_id: int) -> bool:
        return str(repo_id) in self._documents


class InMemoryConfigStore(_DocumentConfigStore):
    """Process-local store for tests and single-instance deployments."""

    def put_document(self, repo_id: int, document: dict[str, Any]) -> None:
        """Store a raw document without validation (used to seed fixtures)."""
        with self._lock:
            self._documents[str(repo_id)] = copy.deepcopy(document)


class JsonConfigStore(_DocumentConfigStore):
    """JSON-file-backed config store.

    The whole store is one JSON object ``{"configs": {repo_id: document}}``
    loaded on construction and rewritten atomically on every upsert.
    """

    def __init__(self, store_path: Path) -> None:
        """Initialize the store.

        Args:
            store_path: Path to the JSON file for persistence.

        Raises:
            StoreError: If an existing file cannot be read or parsed.
        """
        super().__init__()
        self.store_path = store_path
        self._load()

    def _load(self) -> None:
        if not self.store_path.exists():
            return
        try:
            data = json.loads(self.store_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to load config store from {self.store_path}") from e

        configs = data.get("configs", {}) if isinstance(data, dict) else None
        if not isinstance(configs, dict):
            raise StoreError(f"Config store {self.store_path} has an unexpected layout")
        self._documents = {str(k): v for k, v in configs.items()}
        logger.info("Loaded %d repository configs from %s", len(self._documents), self.store_path)

    def _persist(self, documents: dict[str, dict[str, Any]]) -> None:
        tmp_path = self.store_path.with_suffix(self.store_path.suffix + ".tmp")
        try:
            self.store_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps({"configs": documents}, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.store_path)
        except OSError as e:
            raise StoreError(f"Failed to write config store {self.store_path}") from e


def create_config_store(backend: str, store_path: Path | None = None) -> ConfigStore:
    """Create a config store by backend name (``memory`` or ``json``)."""
    if backend == "memory":
        return InMemoryConfigStore()
    if backend == "json":
        if store_path is None:
            raise StoreError("The json config store requires a store_path")
        return JsonConfigStore(store_path)
    raise StoreError(f"Unknown config store backend: {backend}")
