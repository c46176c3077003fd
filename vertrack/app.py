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

"""VersionTracker: the operations offered to a presentation layer.

VersionTracker wires the components together around one store object:

- TrackedItemRegistry: items and the duplicate-source rule
- VersionCache: last successful fetch per item, persisted with the items
- CheckCoordinator: single and batch checks, notifications
- RefreshScheduler: periodic batch checks, driven by the cache policy

There is no ambient global state; everything the tracker touches hangs off
the instance, so several trackers (for example in tests) can coexist.

Example:
    ```python
    from pathlib import Path
    from vertrack import VersionTracker
    from vertrack.models import ItemForm, LocalProbeConfig, SourceConfig
    from vertrack.state import FileStore

    tracker = VersionTracker(FileStore(Path("state/vertrack.json"), Path("vertrack.yaml")))
    item = tracker.add_item(
        ItemForm(
            "ripgrep",
            SourceConfig("github-release", "BurntSushi/ripgrep"),
            LocalProbeConfig("rg"),
        )
    )
    result = tracker.check_one(item.id)
    tracker.start()      # auto refresh per settings
    ...
    tracker.shutdown()
    ```

"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
import threading

from vertrack.config import validate_settings
from vertrack.core import CheckCoordinator, ProbeFunc
from vertrack.logging import Logger, get_global_logger
from vertrack.models import ItemForm, Settings, TrackedItem
from vertrack.notifier import Notifier
from vertrack.registry import TrackedItemRegistry
from vertrack.results import BatchCheckResult, CheckResult
from vertrack.scheduler import RefreshScheduler
from vertrack.sources import SourceFetcher
from vertrack.state import Persistence, VersionCache


class VersionTracker:
    """Facade over the registry, coordinator, cache and scheduler."""

    def __init__(
        self,
        store: Persistence,
        *,
        fetchers: Mapping[str, SourceFetcher] | None = None,
        probe: ProbeFunc | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.store = store
        self._logger = logger
        self._settings = store.load_settings()
        self._settings_lock = threading.Lock()

        self.cache = VersionCache()
        restored = self.cache.restore(store.load_cache())
        if restored:
            self.logger.verbose("CACHE", f"Restored {restored} cache entr{'y' if restored == 1 else 'ies'}")

        self.registry = TrackedItemRegistry(store, self.cache, logger=logger)
        self.coordinator = CheckCoordinator(
            self.registry,
            self.cache,
            self.get_settings,
            fetchers=fetchers,
            probe=probe,
            notifier=notifier,
            clock=clock,
            logger=logger,
        )
        self.scheduler = RefreshScheduler(self._scheduled_refresh, logger=logger)

    @property
    def logger(self) -> Logger:
        return self._logger or get_global_logger()

    # -------------------------------
    # Items
    # -------------------------------

    def list_items(self) -> list[TrackedItem]:
        return self.registry.list()

    def get_item(self, item_id: str) -> TrackedItem:
        return self.registry.get(item_id)

    def add_item(self, form: ItemForm) -> TrackedItem:
        """Add an item and run its first check.

        If the first check fails, nothing is stored and the error is raised.
        """
        item = self.registry.add(form, initial_check=self.coordinator.initial_check)
        self._save_cache()
        return item

    def update_item(self, item_id: str, form: ItemForm) -> TrackedItem:
        item = self.registry.update(item_id, form)
        self._save_cache()
        return item

    def remove_item(self, item_id: str) -> None:
        self.registry.remove(item_id)
        self.coordinator.forget(item_id)
        self._save_cache()

    def set_enabled(self, item_id: str, enabled: bool) -> TrackedItem:
        return self.registry.set_enabled(item_id, enabled)

    # -------------------------------
    # Checks
    # -------------------------------

    def check_one(
        self, item_id: str, force_refresh: bool = False, *, notify: bool = False
    ) -> CheckResult:
        result = self.coordinator.check_one(item_id, force_refresh, notify=notify)
        if not result.from_cache:
            self._save_cache()
        return result

    def check_all(
        self, *, force_refresh: bool = False, notify: bool = False
    ) -> BatchCheckResult:
        batch = self.coordinator.check_all(force_refresh=force_refresh, notify=notify)
        if any(not result.from_cache for result in batch.results):
            self._save_cache()
        return batch

    def clear_cache(self) -> None:
        """Drop every cache entry; the next check of each item fetches."""
        self.cache.clear()
        self._save_cache()
        self.logger.verbose("CACHE", "Cache cleared")

    # -------------------------------
    # Settings and lifecycle
    # -------------------------------

    def get_settings(self) -> Settings:
        with self._settings_lock:
            return self._settings

    def save_settings(self, settings: Settings) -> None:
        """Validate, persist and apply new settings.

        The new TTL applies to the next check. The scheduler timer is
        replaced with one for the new auto refresh policy, or stopped when
        auto refresh is off.

        Raises:
            ConfigError: If a value is out of range (nothing is saved).
            SchedulerMisconfiguredError: If auto refresh is enabled with an
                interval <= 0 (nothing is saved).

        """
        validate_settings(settings)
        self.store.save_settings(settings)
        with self._settings_lock:
            self._settings = settings
        self.scheduler.configure(settings.cache)

    def start(self) -> None:
        """Arm auto refresh according to the current settings."""
        self.scheduler.configure(self.get_settings().cache)

    def shutdown(self) -> None:
        """Stop auto refresh and abandon checks still in flight."""
        self.scheduler.stop()
        self.coordinator.shutdown()
        self.logger.verbose("CHECK", "Tracker shut down")

    def _scheduled_refresh(self) -> None:
        batch = self.check_all(notify=True)
        for failure in batch.failures:
            self.logger.warning("CHECK", f"{failure.name}: {failure.error}")

    def _save_cache(self) -> None:
        self.store.save_cache(self.cache.snapshot())
