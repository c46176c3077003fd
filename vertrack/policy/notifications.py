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

"""Notification decision policy for vertrack.

Decides whether a check result should produce a notification, based on the
user's NotificationPolicy and the current local time. The decision is a pure
function of its inputs: no clock, no I/O.

Decision order:

1. Notifications disabled -> never notify (test mode is irrelevant).
2. Test mode -> notify even without an update (to verify delivery).
3. No update -> do not notify. Otherwise the toggle matching the bump level
   (major / minor / patch / prerelease) must be on.
4. Quiet hours override everything above.

Example:
    ```python
    from datetime import datetime
    from vertrack.models import NotificationPolicy
    from vertrack.policy import decide

    decision = decide(result, NotificationPolicy(), datetime.now().astimezone())
    if decision.notify:
        notifier.emit(*build_message(item, result, decision.level))
    ```

"""

from __future__ import annotations

from datetime import datetime

from vertrack.models import NotificationPolicy, TrackedItem
from vertrack.results import CheckResult, NotificationDecision
from vertrack.versioning import BumpLevel, classify

_TOGGLES: dict[BumpLevel, str] = {
    BumpLevel.MAJOR: "notify_on_major",
    BumpLevel.MINOR: "notify_on_minor",
    BumpLevel.PATCH: "notify_on_patch",
    BumpLevel.PRERELEASE: "notify_on_prerelease",
}


def is_quiet_hour(policy: NotificationPolicy, hour: int) -> bool:
    """Return True if the hour falls inside the quiet window.

    The window is [start, end). It wraps past midnight when start > end
    (22 -> 8 covers 22:00-07:59) and is empty when start == end or when
    either bound is unset.
    """
    start, end = policy.silent_start_hour, policy.silent_end_hour
    if start is None or end is None or start == end:
        return False
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end


def decide(
    result: CheckResult, policy: NotificationPolicy, now: datetime
) -> NotificationDecision:
    """Decide whether to notify about a check result.

    Args:
        result: Outcome of a version check.
        policy: User's notification policy.
        now: Current wall-clock time in the user's local timezone; only the
            hour is used.

    Returns:
        The decision, the bump level between local and latest versions, and
            a short reason.

    """
    level = classify(result.local_version, result.latest_version)

    if not policy.enabled:
        return NotificationDecision(False, level, "notifications disabled")

    if policy.test_mode:
        notify, reason = True, "test mode"
    elif not result.has_update:
        notify, reason = False, "no update"
    else:
        toggle = _TOGGLES.get(level)
        if toggle is not None and getattr(policy, toggle):
            notify, reason = True, f"{level.value} update"
        else:
            notify, reason = False, f"{level.value} updates are muted"

    if notify and is_quiet_hour(policy, now.hour):
        return NotificationDecision(False, level, "quiet hours")
    return NotificationDecision(notify, level, reason)


def build_message(
    item: TrackedItem, result: CheckResult, level: BumpLevel
) -> tuple[str, str]:
    """Compose the title and body of an update notification."""
    title = f"{item.name} {result.latest_version} is available"
    if result.local_version:
        body = f"Installed: {result.local_version}\nLatest: {result.latest_version}"
        if level not in (BumpLevel.EQUAL, BumpLevel.UNKNOWN):
            body += f" ({level.value} update)"
    else:
        body = f"Latest: {result.latest_version}"
    if result.published_at is not None:
        body += f"\nPublished: {result.published_at:%Y-%m-%d}"
    return title, body
