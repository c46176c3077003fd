"""
Tests for vertrack.scheduler module.

Tests the refresh scheduler including:
- State transitions and configuration
- Rejection of non-positive intervals
- Periodic ticks, skipped overlapping ticks and callback errors

Timer tests use intervals of a few milliseconds (fractions of a minute).
"""

from __future__ import annotations

import threading
import time

import pytest

from vertrack.exceptions import SchedulerMisconfiguredError
from vertrack.models import CachePolicy
from vertrack.scheduler import RefreshScheduler, SchedulerState

# 30 ms expressed in minutes
FAST = 0.03 / 60


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestStateMachine:
    """Tests for scheduler state transitions."""

    def test_starts_stopped(self):
        """Test the initial state."""
        scheduler = RefreshScheduler(lambda: None)
        assert scheduler.state == SchedulerState.STOPPED
        assert scheduler.interval_minutes is None

    def test_start_and_stop(self):
        """Test RUNNING after start and STOPPED after stop."""
        scheduler = RefreshScheduler(lambda: None)
        scheduler.start(60)
        try:
            assert scheduler.state == SchedulerState.RUNNING
            assert scheduler.interval_minutes == 60
        finally:
            scheduler.stop()
        assert scheduler.state == SchedulerState.STOPPED

    @pytest.mark.parametrize("interval", [0, -5])
    def test_non_positive_interval_rejected(self, interval):
        """Test that an interval <= 0 raises and leaves the scheduler stopped."""
        scheduler = RefreshScheduler(lambda: None)
        with pytest.raises(SchedulerMisconfiguredError):
            scheduler.start(interval)
        assert scheduler.state == SchedulerState.STOPPED

    def test_configure_enabled_policy(self):
        """Test that an enabled policy arms the timer with its interval."""
        scheduler = RefreshScheduler(lambda: None)
        scheduler.configure(CachePolicy(auto_refresh_enabled=True, auto_refresh_interval_minutes=15))
        try:
            assert scheduler.state == SchedulerState.RUNNING
            assert scheduler.interval_minutes == 15
        finally:
            scheduler.stop()

    def test_configure_disabled_policy_stops(self):
        """Test that disabling auto refresh disarms the timer."""
        scheduler = RefreshScheduler(lambda: None)
        scheduler.start(60)
        scheduler.configure(CachePolicy(auto_refresh_enabled=False))
        assert scheduler.state == SchedulerState.STOPPED

    def test_configure_replaces_interval(self):
        """Test that reconfiguring keeps a single timer with the new interval."""
        scheduler = RefreshScheduler(lambda: None)
        scheduler.start(60)
        try:
            first_timer = scheduler._timer
            scheduler.configure(CachePolicy(auto_refresh_interval_minutes=5))
            assert scheduler.interval_minutes == 5
            assert scheduler._timer is not first_timer
            assert _wait_for(lambda: not first_timer._thread.is_alive())
        finally:
            scheduler.stop()

    def test_misconfigured_policy_raises(self):
        """Test that an enabled policy with interval 0 raises."""
        scheduler = RefreshScheduler(lambda: None)
        with pytest.raises(SchedulerMisconfiguredError):
            scheduler.configure(CachePolicy(auto_refresh_enabled=True, auto_refresh_interval_minutes=0))


@pytest.mark.slow
class TestTicks:
    """Tests for timer firing."""

    def test_fires_repeatedly(self):
        """Test that the callback runs on every interval."""
        calls = []
        scheduler = RefreshScheduler(lambda: calls.append(1))
        scheduler.start(FAST)
        try:
            assert _wait_for(lambda: len(calls) >= 3)
        finally:
            scheduler.stop()

    def test_no_ticks_after_stop(self):
        """Test that stopping disarms the timer."""
        calls = []
        scheduler = RefreshScheduler(lambda: calls.append(1))
        scheduler.start(FAST)
        assert _wait_for(lambda: len(calls) >= 1)
        scheduler.stop()
        time.sleep(0.05)
        count = len(calls)
        time.sleep(0.15)
        assert len(calls) == count

    def test_overlapping_tick_skipped(self):
        """Test that a tick arriving mid-callback is skipped, not queued."""
        release = threading.Event()
        running = []

        def slow():
            running.append(1)
            release.wait(5)

        scheduler = RefreshScheduler(slow)
        scheduler.start(FAST)
        try:
            assert _wait_for(lambda: len(running) == 1)
            # The replacement timer ticks while the first callback still runs.
            scheduler.start(FAST)
            assert _wait_for(lambda: scheduler.skipped_ticks >= 1)
            assert len(running) == 1
        finally:
            release.set()
            scheduler.stop()

    def test_callback_errors_are_logged(self, logger):
        """Test that a failing callback does not kill the timer."""
        calls = []

        def failing():
            calls.append(1)
            raise RuntimeError("boom")

        scheduler = RefreshScheduler(failing, logger=logger)
        scheduler.start(FAST)
        try:
            assert _wait_for(lambda: len(calls) >= 2)
        finally:
            scheduler.stop()
        assert any("boom" in message for _, message in logger.warnings)
