"""
Pytest configuration and shared fixtures for vertrack tests.

This module provides reusable fixtures and test doubles used across the
test suite: a fake fetcher that counts calls, a controllable clock, an
in-memory store and a recording notifier.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
import threading

import pytest

from vertrack.app import VersionTracker
from vertrack.exceptions import FetchFailedError, ProbeUnavailableError
from vertrack.logging import SilentLogger
from vertrack.models import (
    CachePolicy,
    ItemForm,
    LocalProbeConfig,
    NotificationPolicy,
    Settings,
    SourceConfig,
)
from vertrack.sources import RemoteVersion
from vertrack.state import MemoryStore


class FakeFetcher:
    """Fetcher returning canned versions per identifier.

    Identifiers mapped to an exception instance raise it. Every call is
    recorded in `calls`.
    """

    def __init__(self, versions=None, published_at=None):
        self.versions = dict(versions or {})
        self.published_at = published_at
        self.calls: list[tuple[str, float, str | None]] = []
        self.gate: threading.Event | None = None
        self.started = threading.Event()
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def fetch_latest(self, identifier, *, timeout, token=None):
        with self._lock:
            self.calls.append((identifier, timeout, token))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.started.set()
        try:
            if self.gate is not None:
                self.gate.wait(5)
        finally:
            with self._lock:
                self.in_flight -= 1
        value = self.versions.get(identifier)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise FetchFailedError(f"package {identifier!r} not found")
        return RemoteVersion(version=value, published_at=self.published_at)

    def validate_identifier(self, identifier):
        if not identifier.strip():
            return ["identifier cannot be empty"]
        return []

    def call_count(self, identifier=None):
        with self._lock:
            if identifier is None:
                return len(self.calls)
            return sum(1 for call in self.calls if call[0] == identifier)


class FakeProbe:
    """Local version probe returning canned versions per command."""

    def __init__(self, versions=None):
        self.versions = dict(versions or {})
        self.calls: list[tuple[str, float]] = []

    def __call__(self, probe: LocalProbeConfig, timeout: float) -> str:
        self.calls.append((probe.command, timeout))
        version = self.versions.get(probe.command)
        if version is None:
            raise ProbeUnavailableError(f"Command not found: {probe.command!r}")
        return version


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingNotifier:
    """Notifier that remembers what it was asked to emit."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.emitted: list[tuple[str, str]] = []

    def emit(self, title: str, body: str) -> None:
        if self.fail:
            raise RuntimeError("notification service unavailable")
        self.emitted.append((title, body))


class RecordingLogger(SilentLogger):
    """Silent logger that keeps warnings for assertions."""

    def __init__(self):
        self.warnings: list[tuple[str, str]] = []

    def warning(self, prefix: str, message: str) -> None:
        self.warnings.append((prefix, message))


@pytest.fixture
def fetcher() -> FakeFetcher:
    """Provide a fake npm fetcher with a few known packages."""
    return FakeFetcher(
        {
            "left-pad": "1.3.0",
            "right-pad": "2.0.0",
            "center-pad": "0.4.1",
        }
    )


@pytest.fixture
def probe() -> FakeProbe:
    """Provide a fake probe; "lp" reports 1.2.0, anything else is missing."""
    return FakeProbe({"lp": "1.2.0"})


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fixed clock at noon UTC."""
    return FakeClock(datetime(2025, 3, 14, 12, 0, tzinfo=UTC))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def settings() -> Settings:
    """Provide settings with auto refresh off and quiet hours disabled."""
    return Settings(
        cache=CachePolicy(ttl_minutes=30, auto_refresh_enabled=False),
        notification=NotificationPolicy(silent_start_hour=None, silent_end_hour=None),
        fetch_timeout_seconds=12.5,
    )


@pytest.fixture
def store(settings: Settings) -> MemoryStore:
    return MemoryStore(settings=settings)


@pytest.fixture
def tracker(store, fetcher, probe, clock, notifier, logger) -> VersionTracker:
    """Provide a tracker whose npm lookups go to the fake fetcher."""
    t = VersionTracker(
        store,
        fetchers={"npm": fetcher},
        probe=probe,
        notifier=notifier,
        clock=clock,
        logger=logger,
    )
    yield t
    t.shutdown()


def npm_form(identifier: str, name: str | None = None, command: str | None = None) -> ItemForm:
    """Build an npm item form, optionally with a local probe."""
    return ItemForm(
        name=name or identifier,
        source=SourceConfig("npm", identifier),
        local_probe=LocalProbeConfig(command) if command else None,
    )


@pytest.fixture
def make_form():
    """Provide the npm form builder."""
    return npm_form
