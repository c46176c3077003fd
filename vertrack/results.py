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

"""Public API return types for vertrack.

These types are what check and notification operations hand back to
callers. All dataclasses are frozen to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        batch = tracker.check_all()
        for result in batch.results:
            print(result.item_id, result.latest_version, result.has_update)
        for failure in batch.failures:
            print(f"{failure.name}: {failure.error}")
        ```

Note:
    Only public API return types belong in this module. Domain types
    (TrackedItem, CacheEntry, Settings) live in vertrack.models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from vertrack.versioning import BumpLevel


@dataclass(frozen=True)
class CheckResult:
    """Outcome of checking one tracked item.

    Attributes:
        item_id: Id of the checked item.
        latest_version: Latest published version.
        local_version: Detected installed version, None if unknown.
        published_at: Publish time of latest_version, if known.
        has_update: True if the versions differ (see versioning.has_update).
        from_cache: True if the result was served from a fresh cache entry
            without contacting the registry.
    """

    item_id: str
    latest_version: str
    local_version: str | None
    published_at: datetime | None
    has_update: bool
    from_cache: bool = False


@dataclass(frozen=True)
class CheckFailure:
    """An item whose check failed during a batch.

    Attributes:
        item_id: Id of the item.
        name: Display name of the item.
        error: Human-readable error message.
    """

    item_id: str
    name: str
    error: str


@dataclass(frozen=True)
class BatchCheckResult:
    """Outcome of checking every enabled item.

    Attributes:
        results: Successful checks, in registry order.
        failures: Items whose check failed; their stored state is unchanged.
    """

    results: list[CheckResult] = field(default_factory=list)
    failures: list[CheckFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class NotificationDecision:
    """Whether a check result should produce a notification.

    Attributes:
        notify: True if a notification should be emitted.
        level: Bump level of the change (for display).
        reason: Short explanation of the decision.
    """

    notify: bool
    level: BumpLevel
    reason: str
