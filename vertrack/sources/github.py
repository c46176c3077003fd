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

"""GitHub fetchers for vertrack.

Two source kinds read from the GitHub REST API:

- **github-release**: `GET /repos/{owner}/{repo}/releases/latest`. The
  version is the release's tag name and the publish time is the release's
  `published_at`. GitHub's "latest" release excludes drafts and prereleases.
- **github-tags**: `GET /repos/{owner}/{repo}/tags`. The version is the name
  of the first tag returned; tags carry no publish time. Useful for projects
  that tag without publishing releases.

Identifiers are "owner/repo" (e.g., "BurntSushi/ripgrep").

Rate Limits:

- Unauthenticated: 60 requests/hour per IP
- Authenticated: 5000 requests/hour per token
- Set `github_token` in the settings (or "${GITHUB_TOKEN}") for frequent
  checks. HTTP 403/429 responses surface as FetchFailedError.

Example:
    ```python
    from vertrack.sources.github import GithubReleaseFetcher

    remote = GithubReleaseFetcher().fetch_latest("BurntSushi/ripgrep", timeout=30)
    print(remote.version, remote.published_at)
    ```
"""

from __future__ import annotations

from vertrack.exceptions import FetchFailedError
from vertrack.models import parse_timestamp

from .base import RemoteVersion, get_json, register_fetcher, require, validate_name

API_ROOT = "https://api.github.com"


def _headers(token: str | None) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _validate_repo(identifier: str) -> list[str]:
    errors = validate_name(identifier, "GitHub repository")
    if errors:
        return errors
    owner, _, name = identifier.strip().partition("/")
    if not owner or not name or "/" in name:
        return [f"GitHub repository must be in format 'owner/repo', got {identifier!r}"]
    return []


class GithubReleaseFetcher:
    """Latest GitHub release of a repository."""

    def fetch_latest(
        self, identifier: str, *, timeout: float, token: str | None = None
    ) -> RemoteVersion:
        repo = identifier.strip()
        what = f"GitHub releases of {repo!r}"
        data = get_json(
            f"{API_ROOT}/repos/{repo}/releases/latest",
            what=what,
            timeout=timeout,
            headers=_headers(token),
        )
        tag = require(data, "tag_name", what=what)
        return RemoteVersion(
            version=str(tag), published_at=parse_timestamp(data.get("published_at"))
        )

    def validate_identifier(self, identifier: str) -> list[str]:
        return _validate_repo(identifier)


class GithubTagsFetcher:
    """Most recent tag of a repository."""

    def fetch_latest(
        self, identifier: str, *, timeout: float, token: str | None = None
    ) -> RemoteVersion:
        repo = identifier.strip()
        what = f"GitHub tags of {repo!r}"
        data = get_json(
            f"{API_ROOT}/repos/{repo}/tags",
            what=what,
            timeout=timeout,
            headers=_headers(token),
        )
        if not isinstance(data, list):
            raise FetchFailedError(f"Malformed response for {what}: expected a list")
        if not data:
            raise FetchFailedError(f"Repository {repo!r} has no tags")
        return RemoteVersion(version=str(require(data[0], "name", what=what)))

    def validate_identifier(self, identifier: str) -> list[str]:
        return _validate_repo(identifier)


register_fetcher("github-release", GithubReleaseFetcher)
register_fetcher("github-tags", GithubTagsFetcher)
