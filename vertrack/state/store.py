# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Persistence for tracked items, cached fetches and settings.

The tracker talks to storage through the Persistence protocol. Two
implementations are provided:

- FileStore: a JSON state file for items and cache entries, plus a YAML
  settings file (see vertrack.config)
- MemoryStore: keeps everything in memory; for tests and embedding

State file layout:

    {
      "metadata": {"vertrack_version": "0.1.0", "schema_version": "1",
                   "last_updated": "2025-..."},
      "items": [ {...TrackedItem...}, ... ],
      "cache": { "<item id>": {...CacheEntry...}, ... }
    }

Items are stored as a list so insertion order survives a round trip.

Example:
    ```python
    from pathlib import Path
    from vertrack.state import FileStore

    store = FileStore(Path("state/vertrack.json"), Path("vertrack.yaml"))
    items = store.load_items()
    ```
"""

from __future__ import annotations

from datetime import UTC, datetime
import json
from pathlib import Path
import threading
from typing import Any, Protocol

from vertrack import __version__
from vertrack.config import load_settings, save_settings
from vertrack.exceptions import ConfigError
from vertrack.models import Settings, TrackedItem

SCHEMA_VERSION = "1"


class Persistence(Protocol):
    """Storage collaborator used by the registry and the tracker."""

    def load_items(self) -> list[TrackedItem]: ...

    def save_items(self, items: list[TrackedItem]) -> None: ...

    def load_settings(self) -> Settings: ...

    def save_settings(self, settings: Settings) -> None: ...

    def load_cache(self) -> dict[str, dict[str, Any]]: ...

    def save_cache(self, cache: dict[str, dict[str, Any]]) -> None: ...


def create_default_state() -> dict[str, Any]:
    """Create an empty state structure with a metadata section."""
    return {
        "metadata": {
            "vertrack_version": __version__,
            "schema_version": SCHEMA_VERSION,
            "last_updated": datetime.now(UTC).isoformat(),
        },
        "items": [],
        "cache": {},
    }


def load_state(state_file: Path) -> dict[str, Any]:
    """Load state from JSON file.

    Raises:
        FileNotFoundError: If state file doesn't exist.
        json.JSONDecodeError: If file contains invalid JSON.

    """
    with open(state_file, encoding="utf-8") as f:
        return json.load(f)


def save_state(state: dict[str, Any], state_file: Path) -> None:
    """Save state to JSON file with pretty-printing.

    Uses 2-space indentation, sorted keys and a trailing newline so the file
    diffs cleanly. Creates parent directories if needed.
    """
    state_file.parent.mkdir(parents=True, exist_ok=True)

    with open(state_file, "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2, sort_keys=True)
        f.write("\n")


class FileStore:
    """JSON state file plus YAML settings file.

    The state file is read lazily on first access and kept in memory;
    every save rewrites the whole file.

    Attributes:
        state_file: Path to the JSON state file.
        settings_file: Path to the YAML settings file.

    """

    def __init__(self, state_file: Path, settings_file: Path):
        self.state_file = state_file
        self.settings_file = settings_file
        self._state: dict[str, Any] | None = None
        self._lock = threading.RLock()

    def _load(self) -> dict[str, Any]:
        """Load state, creating it on first run.

        A corrupted file is renamed to *.json.backup and replaced with a
        fresh state before ConfigError is raised, so the next run starts
        clean.
        """
        from vertrack.logging import get_global_logger

        logger = get_global_logger()
        try:
            state = load_state(self.state_file)
            logger.verbose("STATE", f"Loaded state from {self.state_file}")
        except FileNotFoundError:
            logger.verbose("STATE", f"State file not found, will create: {self.state_file}")
            state = create_default_state()
        except json.JSONDecodeError as err:
            backup = self.state_file.with_suffix(".json.backup")
            self.state_file.replace(backup)
            self._state = create_default_state()
            self._write()
            raise ConfigError(
                f"Corrupted state file backed up to {backup}. "
                f"Created fresh state file."
            ) from err

        if not isinstance(state, dict):
            raise ConfigError(f"State file must contain a JSON object: {self.state_file}")
        state.setdefault("items", [])
        state.setdefault("cache", {})
        return state

    def _ensure(self) -> dict[str, Any]:
        if self._state is None:
            self._state = self._load()
        return self._state

    def _write(self) -> None:
        assert self._state is not None
        self._state.setdefault("metadata", {})
        self._state["metadata"]["vertrack_version"] = __version__
        self._state["metadata"]["schema_version"] = SCHEMA_VERSION
        self._state["metadata"]["last_updated"] = datetime.now(UTC).isoformat()
        save_state(self._state, self.state_file)

    def load_items(self) -> list[TrackedItem]:
        with self._lock:
            raw_items = self._ensure()["items"]
            try:
                return [TrackedItem.from_dict(raw) for raw in raw_items]
            except (KeyError, TypeError, AttributeError) as err:
                raise ConfigError(f"Malformed item in state file {self.state_file}: {err}") from err

    def save_items(self, items: list[TrackedItem]) -> None:
        with self._lock:
            self._ensure()["items"] = [item.to_dict() for item in items]
            self._write()

    def load_cache(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            cache = self._ensure()["cache"]
            return dict(cache) if isinstance(cache, dict) else {}

    def save_cache(self, cache: dict[str, dict[str, Any]]) -> None:
        with self._lock:
            self._ensure()["cache"] = dict(cache)
            self._write()

    def load_settings(self) -> Settings:
        return load_settings(self.settings_file)

    def save_settings(self, settings: Settings) -> None:
        save_settings(settings, self.settings_file)


class MemoryStore:
    """In-memory Persistence implementation."""

    def __init__(
        self,
        items: list[TrackedItem] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.items: list[TrackedItem] = list(items or [])
        self.settings: Settings = settings or Settings()
        self.cache: dict[str, dict[str, Any]] = {}
        self.save_count = 0

    def load_items(self) -> list[TrackedItem]:
        return list(self.items)

    def save_items(self, items: list[TrackedItem]) -> None:
        self.items = list(items)
        self.save_count += 1

    def load_settings(self) -> Settings:
        return self.settings

    def save_settings(self, settings: Settings) -> None:
        self.settings = settings

    def load_cache(self) -> dict[str, dict[str, Any]]:
        return dict(self.cache)

    def save_cache(self, cache: dict[str, dict[str, Any]]) -> None:
        self.cache = dict(cache)
