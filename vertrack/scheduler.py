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

"""Periodic refresh scheduler for vertrack.

RefreshScheduler is a two-state machine:

    STOPPED --start(interval)--> RUNNING(interval)
    RUNNING --stop()-----------> STOPPED

While RUNNING, a daemon thread calls the callback (normally a batch check)
every interval. There is never more than one timer thread: configure() and
start() always disarm the current timer before arming a new one, so a new
interval applies from the next tick on.

Ticks are fire-and-forget. A tick that arrives while the previous callback
is still running is skipped rather than queued, and callback errors are
logged instead of killing the timer.

Example:
    ```python
    from vertrack.models import CachePolicy
    from vertrack.scheduler import RefreshScheduler

    scheduler = RefreshScheduler(lambda: coordinator.check_all(notify=True))
    scheduler.configure(CachePolicy(auto_refresh_interval_minutes=60))
    ...
    scheduler.stop()
    ```

"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
import threading

from vertrack.exceptions import SchedulerMisconfiguredError
from vertrack.logging import Logger, get_global_logger
from vertrack.models import CachePolicy


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class _Timer:
    """One armed timer: a daemon thread waiting on its own stop event."""

    def __init__(self, interval_seconds: float, tick: Callable[[], None]) -> None:
        self.interval_seconds = interval_seconds
        self._tick = tick
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="vertrack-scheduler", daemon=True
        )

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._stop.set()

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self._tick()


class RefreshScheduler:
    """Fires a callback at a fixed interval while running."""

    def __init__(self, callback: Callable[[], object], logger: Logger | None = None) -> None:
        self._callback = callback
        self._logger = logger
        self._lock = threading.Lock()
        self._running = threading.Lock()
        self._timer: _Timer | None = None
        self._interval_minutes: float | None = None
        self.tick_count = 0
        self.skipped_ticks = 0

    @property
    def logger(self) -> Logger:
        return self._logger or get_global_logger()

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return SchedulerState.RUNNING if self._timer else SchedulerState.STOPPED

    @property
    def interval_minutes(self) -> float | None:
        """Interval of the armed timer, None when stopped."""
        with self._lock:
            return self._interval_minutes

    def configure(self, policy: CachePolicy) -> None:
        """Apply an auto refresh policy.

        Disarms the current timer and, when auto refresh is enabled, arms a
        new one with the policy's interval.

        Raises:
            SchedulerMisconfiguredError: If auto refresh is enabled with an
                interval <= 0. The scheduler is left stopped.

        """
        if policy.auto_refresh_enabled:
            self.start(policy.auto_refresh_interval_minutes)
        else:
            self.stop()

    def start(self, interval_minutes: float) -> None:
        """Arm the timer, replacing any existing one.

        Raises:
            SchedulerMisconfiguredError: If interval_minutes <= 0.

        """
        if interval_minutes is None or interval_minutes <= 0:
            self.stop()
            raise SchedulerMisconfiguredError(
                f"Auto refresh interval must be > 0 minutes, got {interval_minutes}"
            )

        timer = _Timer(interval_minutes * 60, self._tick)
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = timer
            self._interval_minutes = interval_minutes
            timer.start()
        self.logger.verbose("SCHEDULER", f"Auto refresh every {interval_minutes} minute(s)")

    def stop(self) -> None:
        """Disarm the timer. A callback already running is not interrupted."""
        with self._lock:
            timer, self._timer = self._timer, None
            self._interval_minutes = None
        if timer is not None:
            timer.cancel()
            self.logger.verbose("SCHEDULER", "Auto refresh stopped")

    def _tick(self) -> None:
        if not self._running.acquire(blocking=False):
            self.skipped_ticks += 1
            self.logger.verbose("SCHEDULER", "Previous refresh still running, skipping tick")
            return
        try:
            self.tick_count += 1
            self.logger.verbose("SCHEDULER", "Running scheduled refresh")
            self._callback()
        except Exception as err:
            self.logger.warning("SCHEDULER", f"Scheduled refresh failed: {err}")
        finally:
            self._running.release()
