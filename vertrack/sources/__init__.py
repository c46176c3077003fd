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

"""Source fetchers for vertrack.

This package provides one fetcher per supported registry kind. A fetcher
takes the registry-specific identifier of a tracked item and returns the
latest published version and, where available, its publish time.

The fetcher registry maps the `source.kind` of a tracked item to its
fetcher, so the check coordinator never branches on kind.

Available Kinds:
    github-release : GithubReleaseFetcher
        Latest GitHub release tag and publish time.
    github-tags : GithubTagsFetcher
        Most recent GitHub tag (no publish time).
    homebrew : HomebrewFetcher
        Stable version of a Homebrew formula.
    npm : NpmFetcher
        "latest" dist-tag of an npm package.
    pypi : PypiFetcher
        Current version of a PyPI project.
    cargo : CargoFetcher
        Highest version of a crate on crates.io.

Example:
    ```python
    from vertrack.sources import get_fetcher

    fetcher = get_fetcher("pypi")
    remote = fetcher.fetch_latest("requests", timeout=30)
    print(remote.version)
    ```

"""

# Import fetcher modules to trigger self-registration
from . import (
    github,  # noqa: F401
    registries,  # noqa: F401
)
from .base import (
    RemoteVersion,
    SourceFetcher,
    available_kinds,
    get_fetcher,
    register_fetcher,
)

__all__ = [
    "RemoteVersion",
    "SourceFetcher",
    "available_kinds",
    "get_fetcher",
    "register_fetcher",
]
