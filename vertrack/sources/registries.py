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

"""Package registry fetchers for vertrack.

One fetcher per package registry, all reading public JSON APIs:

- **homebrew**: formulae.brew.sh formula JSON, `versions.stable`. No publish
  time is available.
- **npm**: registry.npmjs.org package document, `dist-tags.latest`, publish
  time from `time[<version>]`. Scoped names ("@types/node") are supported.
- **pypi**: pypi.org JSON API, `info.version`, publish time from the upload
  time of the first file of that release.
- **cargo**: crates.io API, `crate.max_version` and `crate.updated_at`.
  crates.io rejects requests without a User-Agent; get_json always sends
  one.
"""

from __future__ import annotations

from urllib.parse import quote

from vertrack.models import parse_timestamp

from .base import RemoteVersion, get_json, register_fetcher, require, validate_name


class HomebrewFetcher:
    """Stable version of a Homebrew formula."""

    def fetch_latest(
        self, identifier: str, *, timeout: float, token: str | None = None
    ) -> RemoteVersion:
        formula = identifier.strip()
        what = f"Homebrew formula {formula!r}"
        data = get_json(
            f"https://formulae.brew.sh/api/formula/{quote(formula)}.json",
            what=what,
            timeout=timeout,
        )
        return RemoteVersion(version=str(require(data, "versions", "stable", what=what)))

    def validate_identifier(self, identifier: str) -> list[str]:
        return validate_name(identifier, "Homebrew formula")


class NpmFetcher:
    """Version tagged "latest" on the npm registry."""

    def fetch_latest(
        self, identifier: str, *, timeout: float, token: str | None = None
    ) -> RemoteVersion:
        package = identifier.strip()
        what = f"npm package {package!r}"
        data = get_json(
            f"https://registry.npmjs.org/{quote(package, safe='@')}",
            what=what,
            timeout=timeout,
        )
        version = str(require(data, "dist-tags", "latest", what=what))
        times = data.get("time") if isinstance(data.get("time"), dict) else {}
        return RemoteVersion(version=version, published_at=parse_timestamp(times.get(version)))

    def validate_identifier(self, identifier: str) -> list[str]:
        errors = validate_name(identifier, "npm package")
        name = identifier.strip() if isinstance(identifier, str) else ""
        if not errors and name.startswith("@") and "/" not in name:
            errors.append(f"Scoped npm package must look like '@scope/name', got {identifier!r}")
        return errors


class PypiFetcher:
    """Current version of a PyPI project."""

    def fetch_latest(
        self, identifier: str, *, timeout: float, token: str | None = None
    ) -> RemoteVersion:
        project = identifier.strip()
        what = f"PyPI project {project!r}"
        data = get_json(
            f"https://pypi.org/pypi/{quote(project)}/json",
            what=what,
            timeout=timeout,
        )
        version = str(require(data, "info", "version", what=what))

        published_at = None
        releases = data.get("releases")
        files = releases.get(version) if isinstance(releases, dict) else None
        if files:
            first = files[0]
            published_at = parse_timestamp(
                first.get("upload_time_iso_8601") or first.get("upload_time")
            )
        return RemoteVersion(version=version, published_at=published_at)

    def validate_identifier(self, identifier: str) -> list[str]:
        return validate_name(identifier, "PyPI project")


class CargoFetcher:
    """Highest version of a crate on crates.io."""

    def fetch_latest(
        self, identifier: str, *, timeout: float, token: str | None = None
    ) -> RemoteVersion:
        crate = identifier.strip()
        what = f"crate {crate!r}"
        data = get_json(
            f"https://crates.io/api/v1/crates/{quote(crate)}",
            what=what,
            timeout=timeout,
        )
        version = str(require(data, "crate", "max_version", what=what))
        return RemoteVersion(
            version=version, published_at=parse_timestamp(data["crate"].get("updated_at"))
        )

    def validate_identifier(self, identifier: str) -> list[str]:
        return validate_name(identifier, "crate")


register_fetcher("homebrew", HomebrewFetcher)
register_fetcher("npm", NpmFetcher)
register_fetcher("pypi", PypiFetcher)
register_fetcher("cargo", CargoFetcher)
