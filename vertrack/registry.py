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

"""Tracked item registry for vertrack.

The registry owns the list of tracked items and is the only gatekeeper of
the identity rule: no two items may share the same source kind and
identifier, compared case-insensitively on the identifier. The rule is
checked on add and on edit; storage does not enforce it.

Items are frozen dataclasses. Every change builds a replacement item and
swaps it in under the registry lock, then persists the full list, so a
reader never observes a half-updated item.

The registry also keeps the version cache consistent with the items:
removing an item or changing its source drops the item's cache entry,
since the cached data no longer describes it.

Example:
    ```python
    from vertrack.models import ItemForm, SourceConfig
    from vertrack.registry import TrackedItemRegistry
    from vertrack.state import MemoryStore, VersionCache

    registry = TrackedItemRegistry(MemoryStore(), VersionCache())
    item = registry.add(ItemForm("ripgrep", SourceConfig("github-release", "BurntSushi/ripgrep")))
    registry.set_enabled(item.id, False)
    ```
"""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
from datetime import datetime
import threading
import uuid

from vertrack.exceptions import (
    ConfigError,
    DuplicateSourceError,
    NotFoundError,
    SourceChangedError,
)
from vertrack.logging import Logger, get_global_logger
from vertrack.models import CacheEntry, ItemForm, SourceConfig, TrackedItem
from vertrack.state.cache import VersionCache
from vertrack.state.store import Persistence
from vertrack.validation import validate_form


class TrackedItemRegistry:
    """Owns the tracked items and enforces source uniqueness.

    Attributes:
        store: Persistence collaborator; the full item list is saved after
            every change.
        cache: Version cache kept in sync with item removal and source edits.

    """

    def __init__(
        self,
        store: Persistence,
        cache: VersionCache,
        logger: Logger | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self._logger = logger
        self._lock = threading.RLock()
        self._items: dict[str, TrackedItem] = {
            item.id: item for item in store.load_items()
        }

    @property
    def logger(self) -> Logger:
        return self._logger or get_global_logger()

    # -------------------------------
    # Queries
    # -------------------------------

    def list(self) -> list[TrackedItem]:
        """Return all items in insertion order."""
        with self._lock:
            return list(self._items.values())

    def get(self, item_id: str) -> TrackedItem:
        """Return one item.

        Raises:
            NotFoundError: If the id is unknown.

        """
        with self._lock:
            try:
                return self._items[item_id]
            except KeyError:
                raise NotFoundError(f"No tracked item with id {item_id!r}") from None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    # -------------------------------
    # Mutations
    # -------------------------------

    def add(
        self,
        form: ItemForm,
        initial_check: Callable[[TrackedItem], TrackedItem] | None = None,
    ) -> TrackedItem:
        """Create a tracked item.

        Args:
            form: Name, source and optional local probe.
            initial_check: Called with the new (not yet stored) item; returns
                the item with version fields filled in. Runs without holding
                the registry lock. If it raises, nothing is stored and the
                error propagates.

        Returns:
            The stored item.

        Raises:
            ConfigError: If the form is invalid.
            DuplicateSourceError: If another item already uses the source.
            FetchFailedError: If the initial check fails.

        """
        self._validate(form)
        with self._lock:
            self._ensure_unique(form, exclude_id=None)

        item = TrackedItem(
            id=str(uuid.uuid4()),
            name=form.name.strip(),
            source=form.source,
            local_probe=form.local_probe,
        )
        if initial_check is not None:
            item = initial_check(item)

        with self._lock:
            try:
                # Another add may have claimed the source while we checked.
                self._ensure_unique(form, exclude_id=None)
            except DuplicateSourceError:
                self.cache.clear(item.id)
                raise
            self._items[item.id] = item
            self._persist()

        self.logger.verbose("REGISTRY", f"Added {item.name} ({item.source.kind}:{item.source.identifier})")
        return item

    def update(self, item_id: str, form: ItemForm) -> TrackedItem:
        """Edit an item's name, source or local probe.

        Version fields and the enabled flag are kept. A changed source
        invalidates the item's cache entry.

        Raises:
            NotFoundError: If the id is unknown.
            ConfigError: If the form is invalid.
            DuplicateSourceError: If another item already uses the new source.

        """
        self._validate(form)
        with self._lock:
            existing = self.get(item_id)
            self._ensure_unique(form, exclude_id=item_id)

            updated = dataclasses.replace(
                existing,
                name=form.name.strip(),
                source=form.source,
                local_probe=form.local_probe,
            )
            source_changed = existing.source.identity() != form.source.identity()
            if source_changed:
                self.cache.clear(item_id)
            self._items[item_id] = updated
            self._persist()

        if source_changed:
            self.logger.verbose("CACHE", f"Source of {updated.name} changed, cache entry dropped")
        return updated

    def remove(self, item_id: str) -> None:
        """Delete an item and its cache entry.

        Raises:
            NotFoundError: If the id is unknown.

        """
        with self._lock:
            item = self.get(item_id)
            del self._items[item_id]
            self.cache.clear(item_id)
            self._persist()
        self.logger.verbose("REGISTRY", f"Removed {item.name}")

    def set_enabled(self, item_id: str, enabled: bool) -> TrackedItem:
        """Include or exclude an item from bulk and scheduled checks.

        Cached data is not touched.

        Raises:
            NotFoundError: If the id is unknown.

        """
        return self._replace(item_id, enabled=enabled)

    def record_check(
        self,
        item_id: str,
        entry: CacheEntry,
        *,
        checked_at: datetime,
        expected_source: SourceConfig | None = None,
        fetched: bool = False,
    ) -> TrackedItem:
        """Store the outcome of a completed check on the item.

        The source comparison, the cache write and the item swap happen
        under the registry lock, the same lock update() holds while it
        changes a source and drops the cache entry. Data fetched for a
        source that has since been replaced can therefore never land in
        the cache or on the item.

        Args:
            item_id: Checked item.
            entry: Fetched or cached result.
            checked_at: Completion time of the check.
            expected_source: Source the entry was produced for. None skips
                the comparison.
            fetched: True if the entry is new and must be written to the
                cache.

        Raises:
            NotFoundError: If the item was removed.
            SourceChangedError: If the item's source no longer matches
                expected_source. Nothing is written.

        """
        with self._lock:
            item = self.get(item_id)
            if (
                expected_source is not None
                and item.source.identity() != expected_source.identity()
            ):
                raise SourceChangedError(
                    f"Source of {item.name} changed from "
                    f"{expected_source.kind}:{expected_source.identifier} during the check"
                )
            if fetched:
                self.cache.put(item_id, entry)
            updated = dataclasses.replace(
                item,
                latest_version=entry.latest_version,
                local_version=entry.local_version,
                published_at=entry.published_at,
                last_checked_at=checked_at,
            )
            self._items[item_id] = updated
            self._persist()
            return updated

    def record_notification(self, item_id: str, version: str, notified_at: datetime) -> TrackedItem:
        """Remember that a notification was emitted for a version."""
        return self._replace(
            item_id, last_notified_version=version, last_notified_at=notified_at
        )

    # -------------------------------
    # Helpers
    # -------------------------------

    def _replace(self, item_id: str, **changes) -> TrackedItem:
        with self._lock:
            updated = dataclasses.replace(self.get(item_id), **changes)
            self._items[item_id] = updated
            self._persist()
            return updated

    def _validate(self, form: ItemForm) -> None:
        errors = validate_form(form)
        if errors:
            raise ConfigError("; ".join(errors))

    def _ensure_unique(self, form: ItemForm, exclude_id: str | None) -> None:
        identity = form.source.identity()
        for other in self._items.values():
            if other.id != exclude_id and other.source.identity() == identity:
                raise DuplicateSourceError(
                    f"{form.source.kind} source {form.source.identifier!r} is already "
                    f"tracked as {other.name!r}"
                )

    def _persist(self) -> None:
        self.store.save_items(list(self._items.values()))
