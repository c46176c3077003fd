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

"""Check orchestration for vertrack.

This module runs version checks: it decides between the cache and the
remote registry, probes the local install, compares versions, writes the
outcome back to the cache and the registry, and optionally hands the
result to the notification gate.

Check Flow (check_one):
    1. Wait for the item's single-flight lock
    2. Serve a fresh cache entry unless a refresh is forced
    3. Otherwise fetch the latest version (FetchFailedError leaves the item
       and the cache untouched)
    4. Probe the local version (failure is logged; local version unknown)
    5. Store the cache entry and the item's version fields, provided the
       item still has the source that was fetched; if it was edited
       meanwhile, the result is dropped and the new source is fetched
    6. Decide on and emit a notification (only when notify=True)

Single-flight:
    At most one check per item id runs at a time. A second request waits
    for the first, then re-reads the cache: a non-forced request reuses the
    result that was just produced, a forced one fetches again.

Cancellation:
    shutdown() refuses new checks. A fetch that returns after shutdown is
    discarded with CheckCancelledError before anything is written.

Example:
    ```python
    from vertrack.core import CheckCoordinator

    coordinator = CheckCoordinator(registry, cache, lambda: settings)
    result = coordinator.check_one(item.id)
    print(result.latest_version, result.has_update, result.from_cache)

    batch = coordinator.check_all()
    for failure in batch.failures:
        print(f"{failure.name}: {failure.error}")
    ```

"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
import dataclasses
from datetime import UTC, datetime
import threading

from vertrack.config import resolve_token
from vertrack.exceptions import (
    CheckCancelledError,
    ProbeUnavailableError,
    SourceChangedError,
    VertrackError,
)
from vertrack.logging import Logger, get_global_logger
from vertrack.models import CacheEntry, LocalProbeConfig, Settings, TrackedItem
from vertrack.notifier import Notifier
from vertrack.policy import build_message, decide
from vertrack.probe import detect_local_version
from vertrack.registry import TrackedItemRegistry
from vertrack.results import BatchCheckResult, CheckFailure, CheckResult
from vertrack.sources import SourceFetcher, get_fetcher
from vertrack.state.cache import VersionCache, is_fresh
from vertrack.versioning import has_update

# Upper bound on parallel registry requests during a batch check.
DEFAULT_MAX_WORKERS = 5

ProbeFunc = Callable[[LocalProbeConfig, float], str]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CheckCoordinator:
    """Runs single and batch version checks.

    Attributes:
        registry: Item registry; receives the outcome of every check.
        cache: Version cache shared with the registry.
        max_workers: Upper bound on concurrent checks in check_all().

    """

    def __init__(
        self,
        registry: TrackedItemRegistry,
        cache: VersionCache,
        settings: Callable[[], Settings],
        *,
        fetchers: Mapping[str, SourceFetcher] | None = None,
        probe: ProbeFunc | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] | None = None,
        logger: Logger | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        """Create a coordinator.

        Args:
            registry: Item registry.
            cache: Version cache.
            settings: Returns the settings in effect; called once per check
                so saved settings apply to the next check.
            fetchers: Fetcher per source kind. Kinds not in the mapping are
                looked up in the global fetcher registry.
            probe: Local version detector. Defaults to running the command.
            notifier: Receives approved notifications. Without one, checks
                never notify.
            clock: Returns the current time (timezone-aware).
            logger: Logger; defaults to the global logger.
            max_workers: Thread pool size for check_all().

        """
        self.registry = registry
        self.cache = cache
        self.max_workers = max_workers
        self._settings = settings
        self._fetchers = dict(fetchers or {})
        self._probe = probe or detect_local_version
        self._notifier = notifier
        self._clock = clock or _utcnow
        self._logger = logger
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._cancelled = threading.Event()

    @property
    def logger(self) -> Logger:
        return self._logger or get_global_logger()

    # -------------------------------
    # Public API
    # -------------------------------

    def check_one(
        self, item_id: str, force_refresh: bool = False, *, notify: bool = False
    ) -> CheckResult:
        """Check one item, from the cache when possible.

        Args:
            item_id: Id of the item to check. Disabled items can still be
                checked individually.
            force_refresh: Bypass cache freshness and always fetch.
            notify: Pass the result through the notification gate.

        Returns:
            The check result.

        Raises:
            NotFoundError: If the item is unknown (or removed mid-check).
            FetchFailedError: If the registry could not be queried.
            CheckCancelledError: If the coordinator was shut down.

        """
        self._ensure_running()
        self.registry.get(item_id)

        with self._item_lock(item_id):
            while True:
                self._ensure_running()
                # Re-read: the item may have been edited while we waited.
                item = self.registry.get(item_id)
                settings = self._settings()
                entry = self.cache.get(item_id)

                if not force_refresh and is_fresh(
                    entry, settings.cache.ttl_minutes, self._clock()
                ):
                    assert entry is not None
                    self.logger.verbose("CACHE", f"Using cached result for {item.name}")
                    from_cache = True
                else:
                    entry = self._fetch(item, settings)
                    from_cache = False

                self._ensure_running()
                try:
                    item = self.registry.record_check(
                        item_id,
                        entry,
                        checked_at=self._clock(),
                        expected_source=item.source,
                        fetched=not from_cache,
                    )
                except SourceChangedError as err:
                    self.logger.verbose("CHECK", f"{err}; checking the new source")
                    force_refresh = True
                    continue
                break

            result = _result_from_entry(item_id, entry, from_cache)
            if notify:
                self._maybe_notify(item, result, settings)
            return result

    def initial_check(self, item: TrackedItem) -> TrackedItem:
        """Fetch versions for an item that is about to be added.

        The item is not in the registry yet. The cache entry is written;
        the returned item carries the version fields for the registry to
        store.

        Raises:
            FetchFailedError: If the registry could not be queried.
            CheckCancelledError: If the coordinator was shut down.

        """
        self._ensure_running()
        # No item lock: nothing else can reach an id that is not registered.
        entry = self._fetch(item, self._settings())
        self.cache.put(item.id, entry)
        return dataclasses.replace(
            item,
            latest_version=entry.latest_version,
            local_version=entry.local_version,
            published_at=entry.published_at,
            last_checked_at=entry.fetched_at,
        )

    def check_all(
        self, *, force_refresh: bool = False, notify: bool = False
    ) -> BatchCheckResult:
        """Check every enabled item, respecting the cache unless forced.

        Each item is checked independently; a failure is recorded in the
        batch and does not stop the other checks.

        Args:
            force_refresh: Bypass cache freshness for every item.
            notify: Pass each result through the notification gate.

        Returns:
            Successful results and failures, each in registry order.

        """
        items = [item for item in self.registry.list() if item.enabled]
        if not items:
            self.logger.verbose("CHECK", "No enabled items to check")
            return BatchCheckResult()

        self.logger.verbose("CHECK", f"Checking {len(items)} item(s)")
        workers = max(1, min(self.max_workers, len(items)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="vertrack-check") as pool:
            futures = [
                pool.submit(self.check_one, item.id, force_refresh, notify=notify)
                for item in items
            ]

        results: list[CheckResult] = []
        failures: list[CheckFailure] = []
        for index, (item, future) in enumerate(zip(items, futures), start=1):
            try:
                result = future.result()
            except VertrackError as err:
                failures.append(CheckFailure(item.id, item.name, str(err)))
                self.logger.step(index, len(items), f"{item.name}: failed ({err})")
                continue
            except Exception as err:
                failures.append(CheckFailure(item.id, item.name, f"Unexpected error: {err}"))
                self.logger.step(index, len(items), f"{item.name}: failed ({err})")
                continue
            results.append(result)
            status = "update available" if result.has_update else "up to date"
            self.logger.step(
                index, len(items), f"{item.name}: {result.latest_version} ({status})"
            )
        return BatchCheckResult(results=results, failures=failures)

    def shutdown(self) -> None:
        """Refuse new checks and discard fetches that complete from now on."""
        self._cancelled.set()

    def forget(self, item_id: str) -> None:
        """Drop the single-flight lock of a removed item.

        A check still holding the lock keeps its reference and fails on the
        registry lookup; later checks of the id fail before taking a lock.
        """
        with self._locks_guard:
            self._locks.pop(item_id, None)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    # -------------------------------
    # Helpers
    # -------------------------------

    def _ensure_running(self) -> None:
        if self._cancelled.is_set():
            raise CheckCancelledError("Tracker is shutting down")

    def _item_lock(self, item_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(item_id, threading.Lock())

    def _fetcher_for(self, kind: str) -> SourceFetcher:
        fetcher = self._fetchers.get(kind)
        if fetcher is None:
            fetcher = get_fetcher(kind)
        return fetcher

    def _fetch(self, item: TrackedItem, settings: Settings) -> CacheEntry:
        """Fetch the latest version and probe the local one.

        Nothing is written here; the caller stores the returned entry.
        """
        timeout = settings.fetch_timeout_seconds
        fetcher = self._fetcher_for(item.source.kind)

        self.logger.verbose(
            "FETCH", f"Fetching {item.source.kind}:{item.source.identifier}"
        )
        remote = fetcher.fetch_latest(
            item.source.identifier,
            timeout=timeout,
            token=resolve_token(settings.github_token),
        )
        self.logger.debug("FETCH", f"{item.name}: latest is {remote.version}")

        local_version = None
        if item.local_probe is not None:
            try:
                local_version = self._probe(item.local_probe, timeout)
            except ProbeUnavailableError as err:
                self.logger.warning("PROBE", f"{item.name}: {err}")

        if self._cancelled.is_set():
            raise CheckCancelledError(f"Check of {item.name} abandoned during shutdown")

        return CacheEntry(
            latest_version=remote.version,
            published_at=remote.published_at,
            local_version=local_version,
            fetched_at=self._clock(),
        )

    def _maybe_notify(
        self, item: TrackedItem, result: CheckResult, settings: Settings
    ) -> None:
        if self._notifier is None:
            return

        policy = settings.notification
        now = self._clock()
        decision = decide(result, policy, now.astimezone())
        if not decision.notify:
            self.logger.debug("NOTIFY", f"{item.name}: not notifying ({decision.reason})")
            return

        if not policy.test_mode and item.last_notified_version == result.latest_version:
            self.logger.debug(
                "NOTIFY", f"{item.name}: already notified for {result.latest_version}"
            )
            return

        title, body = build_message(item, result, decision.level)
        try:
            self._notifier.emit(title, body)
        except Exception as err:
            self.logger.warning("NOTIFY", f"Failed to deliver notification for {item.name}: {err}")
            return

        self.logger.verbose("NOTIFY", f"Notified: {title} ({decision.reason})")
        self.registry.record_notification(item.id, result.latest_version, now)


def _result_from_entry(item_id: str, entry: CacheEntry, from_cache: bool) -> CheckResult:
    return CheckResult(
        item_id=item_id,
        latest_version=entry.latest_version,
        local_version=entry.local_version,
        published_at=entry.published_at,
        has_update=has_update(entry.local_version, entry.latest_version),
        from_cache=from_cache,
    )
