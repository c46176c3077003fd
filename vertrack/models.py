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

"""Domain types for vertrack.

Tracked items, their source and probe descriptors, cache entries and the
settings that govern caching, auto refresh and notifications.

All types are frozen dataclasses. Components never mutate an item in place;
they build a new one with dataclasses.replace() and swap it in under a lock,
so a reader always sees either the old or the new item, never a mix.

Each type converts to and from plain dicts (JSON/YAML friendly) with
to_dict() / from_dict(). Timestamps are timezone-aware datetimes in memory
and ISO-8601 strings on disk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# Closed set of supported registries; one fetcher per kind in vertrack.sources.
SOURCE_KINDS: tuple[str, ...] = (
    "github-release",
    "github-tags",
    "homebrew",
    "npm",
    "pypi",
    "cargo",
)

DEFAULT_VERSION_ARG = "--version"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string into an aware datetime (naive means UTC)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class SourceConfig:
    """Where the latest version of an item is read from.

    Attributes:
        kind: Registry type, one of SOURCE_KINDS.
        identifier: Registry-specific key ("owner/repo", a package name).

    """

    kind: str
    identifier: str

    def identity(self) -> tuple[str, str]:
        """Key used for duplicate detection (identifier is case-insensitive)."""
        return (self.kind, self.identifier.strip().casefold())

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "identifier": self.identifier}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceConfig:
        return cls(kind=str(data["kind"]), identifier=str(data["identifier"]))


@dataclass(frozen=True)
class LocalProbeConfig:
    """How to ask the installed program for its version.

    Attributes:
        command: Executable name or path (e.g., "rg").
        version_arg: Argument(s) that make it print its version. None means
            "--version".

    """

    command: str
    version_arg: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"command": self.command, "version_arg": self.version_arg}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LocalProbeConfig:
        return cls(command=str(data["command"]), version_arg=data.get("version_arg"))


@dataclass(frozen=True)
class ItemForm:
    """User-editable fields of a tracked item, as submitted for add or edit."""

    name: str
    source: SourceConfig
    local_probe: LocalProbeConfig | None = None


@dataclass(frozen=True)
class TrackedItem:
    """A package whose latest version is being tracked.

    Attributes:
        id: Opaque unique identifier (UUID4), immutable.
        name: Display label.
        source: Registry kind and identifier.
        local_probe: Optional local command used to detect the installed
            version.
        latest_version: Last known published version, None until the first
            successful check.
        local_version: Last detected installed version, None if unknown.
        published_at: Publish time of latest_version, if the registry
            reports one.
        last_checked_at: Time of the last completed check request (cached
            results included).
        enabled: Disabled items are skipped by scheduled and bulk checks but
            can still be checked individually.
        last_notified_version: Latest version a notification was emitted for.
        last_notified_at: When that notification was emitted.

    """

    id: str
    name: str
    source: SourceConfig
    local_probe: LocalProbeConfig | None = None
    latest_version: str | None = None
    local_version: str | None = None
    published_at: datetime | None = None
    last_checked_at: datetime | None = None
    enabled: bool = True
    last_notified_version: str | None = None
    last_notified_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "source": self.source.to_dict(),
            "local_probe": self.local_probe.to_dict() if self.local_probe else None,
            "latest_version": self.latest_version,
            "local_version": self.local_version,
            "published_at": format_timestamp(self.published_at),
            "last_checked_at": format_timestamp(self.last_checked_at),
            "enabled": self.enabled,
            "last_notified_version": self.last_notified_version,
            "last_notified_at": format_timestamp(self.last_notified_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrackedItem:
        probe = data.get("local_probe")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            source=SourceConfig.from_dict(data["source"]),
            local_probe=LocalProbeConfig.from_dict(probe) if probe else None,
            latest_version=data.get("latest_version"),
            local_version=data.get("local_version"),
            published_at=parse_timestamp(data.get("published_at")),
            last_checked_at=parse_timestamp(data.get("last_checked_at")),
            enabled=bool(data.get("enabled", True)),
            last_notified_version=data.get("last_notified_version"),
            last_notified_at=parse_timestamp(data.get("last_notified_at")),
        )


@dataclass(frozen=True)
class CacheEntry:
    """Result of the last successful fetch for one item.

    Entries are replaced whole on every successful check and left alone when
    a fetch fails.
    """

    latest_version: str
    published_at: datetime | None
    local_version: str | None
    fetched_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "latest_version": self.latest_version,
            "published_at": format_timestamp(self.published_at),
            "local_version": self.local_version,
            "fetched_at": format_timestamp(self.fetched_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheEntry:
        fetched_at = parse_timestamp(data.get("fetched_at"))
        if fetched_at is None:
            raise ValueError("cache entry has no fetched_at timestamp")
        return cls(
            latest_version=str(data["latest_version"]),
            published_at=parse_timestamp(data.get("published_at")),
            local_version=data.get("local_version"),
            fetched_at=fetched_at,
        )


@dataclass(frozen=True)
class CachePolicy:
    """Cache freshness and auto refresh cadence."""

    ttl_minutes: float = 30
    auto_refresh_enabled: bool = True
    auto_refresh_interval_minutes: float = 60


@dataclass(frozen=True)
class NotificationPolicy:
    """When to alert the user about a detected update.

    Quiet hours are [silent_start_hour, silent_end_hour) in local time and
    wrap past midnight when start > end. Either bound set to None disables
    them.
    """

    enabled: bool = True
    test_mode: bool = False
    notify_on_major: bool = True
    notify_on_minor: bool = True
    notify_on_patch: bool = False
    notify_on_prerelease: bool = False
    silent_start_hour: int | None = 22
    silent_end_hour: int | None = 8


@dataclass(frozen=True)
class Settings:
    """Everything the user can configure.

    Attributes:
        cache: Freshness and auto refresh policy.
        notification: Notification gating policy.
        github_token: Optional token for the GitHub API. "${VAR}" is
            expanded from the environment at use time.
        fetch_timeout_seconds: Upper bound for each fetch and probe call.

    """

    cache: CachePolicy = field(default_factory=CachePolicy)
    notification: NotificationPolicy = field(default_factory=NotificationPolicy)
    github_token: str | None = None
    fetch_timeout_seconds: float = 30.0
