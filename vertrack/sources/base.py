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

"""Source fetcher protocol and registry for vertrack.

This module defines the foundational components for reading the latest
version of a package from a remote registry:

- SourceFetcher protocol: Interface that every fetcher implements
- RemoteVersion: What a fetcher returns
- Fetcher registry: Global dict mapping source kinds to implementations
- register_fetcher() / get_fetcher(): Registration and lookup
- get_json(): Shared HTTP helper that maps failures to FetchFailedError

Design Philosophy:
    - Fetchers are Protocol classes (structural subtyping, not inheritance)
    - Registration happens at module import time (fetchers self-register)
    - Adding a registry kind means adding one module; the check coordinator
      dispatches on source.kind and never changes
    - Each fetcher is stateless and instantiated on demand

Example:
    Implementing a custom fetcher:
        ```python
        from vertrack.sources.base import RemoteVersion, register_fetcher

        class StaticFetcher:
            def fetch_latest(self, identifier, *, timeout, token=None):
                return RemoteVersion(version="1.0.0", published_at=None)

            def validate_identifier(self, identifier):
                return []

        register_fetcher("static", StaticFetcher)
        ```

"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

import requests

from vertrack.exceptions import ConfigError, FetchFailedError

USER_AGENT = "vertrack (+https://github.com/RogerCibrian/vertrack)"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class RemoteVersion:
    """Latest version reported by a registry.

    Attributes:
        version: Version string as published (e.g., "v14.1.0").
        published_at: Publish time, if the registry reports one.

    """

    version: str
    published_at: datetime | None = None


# -------------------------------
# Fetcher Protocol
# -------------------------------


class SourceFetcher(Protocol):
    """Protocol for source fetchers (one per source kind)."""

    def fetch_latest(
        self, identifier: str, *, timeout: float, token: str | None = None
    ) -> RemoteVersion:
        """Fetch the latest published version.

        Args:
            identifier: Registry-specific key ("owner/repo", package name).
            timeout: Seconds before the request is abandoned.
            token: Optional API token (only GitHub fetchers use it).

        Returns:
            The latest version and its publish time.

        Raises:
            FetchFailedError: On network errors, timeouts, rate limiting,
                unknown packages or malformed responses.

        """
        ...

    def validate_identifier(self, identifier: str) -> list[str]:
        """Check the identifier format without network calls.

        Returns:
            List of error messages. Empty list if the identifier is valid.

        """
        ...


# -------------------------------
# Fetcher Registry
# -------------------------------

_FETCHER_REGISTRY: dict[str, type[SourceFetcher]] = {}


def register_fetcher(kind: str, fetcher_class: type[SourceFetcher]) -> None:
    """Register a fetcher class for a source kind.

    Registering the same kind twice overwrites the previous registration
    (allows monkey-patching for tests).
    """
    _FETCHER_REGISTRY[kind] = fetcher_class


def get_fetcher(kind: str) -> SourceFetcher:
    """Get a new fetcher instance for a source kind.

    Raises:
        ConfigError: If no fetcher is registered for the kind. The message
            lists the available kinds.

    """
    if kind not in _FETCHER_REGISTRY:
        available = ", ".join(sorted(_FETCHER_REGISTRY))
        raise ConfigError(f"Unknown source kind: {kind!r}. Available: {available or '(none)'}")
    return _FETCHER_REGISTRY[kind]()


def available_kinds() -> list[str]:
    return sorted(_FETCHER_REGISTRY)


# -------------------------------
# HTTP helpers
# -------------------------------


def get_json(
    url: str,
    *,
    what: str,
    timeout: float,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET a URL and decode its JSON body.

    Args:
        url: URL to fetch.
        what: Short description for error messages (e.g., "npm package 'left-pad'").
        timeout: Seconds before the request is abandoned.
        headers: Extra request headers.

    Returns:
        Decoded JSON document.

    Raises:
        FetchFailedError: On connection errors, timeouts, non-2xx responses
            or invalid JSON.

    """
    from vertrack.logging import get_global_logger

    logger = get_global_logger()
    request_headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    if headers:
        request_headers.update(headers)

    logger.debug("FETCH", f"GET {url}")
    try:
        response = requests.get(url, headers=request_headers, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.HTTPError as err:
        status = response.status_code
        if status == 404:
            raise FetchFailedError(f"{what} not found") from err
        if status in (403, 429):
            raise FetchFailedError(
                f"Rate limited while fetching {what} (HTTP {status})"
            ) from err
        raise FetchFailedError(
            f"Request for {what} failed: {status} {response.reason}"
        ) from err
    except requests.exceptions.Timeout as err:
        raise FetchFailedError(f"Timed out after {timeout}s fetching {what}") from err
    except requests.exceptions.RequestException as err:
        raise FetchFailedError(f"Failed to fetch {what}: {err}") from err

    try:
        return response.json()
    except ValueError as err:
        raise FetchFailedError(f"Malformed response for {what}: {err}") from err


def require(data: Any, *path: str, what: str) -> Any:
    """Walk nested dict keys, raising FetchFailedError if any is missing."""
    node = data
    for key in path:
        if not isinstance(node, dict) or node.get(key) in (None, ""):
            raise FetchFailedError(f"Malformed response for {what}: missing {'.'.join(path)}")
        node = node[key]
    return node


def validate_name(identifier: str, label: str) -> list[str]:
    """Common identifier check: non-empty, no whitespace."""
    if not isinstance(identifier, str) or not identifier.strip():
        return [f"{label} cannot be empty"]
    if any(ch.isspace() for ch in identifier.strip()):
        return [f"{label} cannot contain whitespace: {identifier!r}"]
    return []
