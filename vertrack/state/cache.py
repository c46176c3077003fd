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

"""Version cache for vertrack.

Holds the last successful fetch per tracked item so that repeated checks
within the TTL do not hit the remote registry again.

Entries are immutable and replaced whole: a check either overwrites the
entry for its item or, when the fetch fails, leaves it untouched. The cache
itself knows nothing about TTLs; freshness is decided by is_fresh() against
the TTL in effect at the time of the check, so changing the TTL applies to
existing entries immediately.

Example:
    ```python
    from datetime import UTC, datetime
    from vertrack.state import VersionCache, is_fresh

    cache = VersionCache()
    entry = cache.get("1b2f...")
    if is_fresh(entry, ttl_minutes=30, now=datetime.now(UTC)):
        print(f"cached: {entry.latest_version}")
    ```
"""

from __future__ import annotations

from datetime import datetime, timedelta
import threading
from typing import Any

from vertrack.models import CacheEntry


def is_fresh(entry: CacheEntry | None, ttl_minutes: float, now: datetime) -> bool:
    """Return True if the entry is younger than the TTL.

    Args:
        entry: Cache entry, or None if the item has no entry.
        ttl_minutes: Maximum age in minutes.
        now: Current time (timezone-aware).

    Returns:
        True iff entry exists and now - entry.fetched_at < ttl_minutes.

    """
    if entry is None:
        return False
    return now - entry.fetched_at < timedelta(minutes=ttl_minutes)


class VersionCache:
    """Thread-safe map of item id to CacheEntry."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, item_id: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(item_id)

    def put(self, item_id: str, entry: CacheEntry) -> None:
        """Store an entry, replacing any previous one for the item."""
        with self._lock:
            self._entries[item_id] = entry

    def clear(self, item_id: str | None = None) -> None:
        """Drop one item's entry, or every entry when item_id is None."""
        with self._lock:
            if item_id is None:
                self._entries.clear()
            else:
                self._entries.pop(item_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Serialize all entries for persistence."""
        with self._lock:
            return {key: entry.to_dict() for key, entry in self._entries.items()}

    def restore(self, data: dict[str, dict[str, Any]]) -> int:
        """Replace the contents with previously persisted entries.

        Malformed entries are skipped; a stale or missing cache only costs an
        extra fetch.

        Returns:
            Number of entries restored.

        """
        entries: dict[str, CacheEntry] = {}
        for key, raw in data.items():
            try:
                entries[key] = CacheEntry.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                continue
        with self._lock:
            self._entries = entries
        return len(entries)
