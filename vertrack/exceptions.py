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

"""Exception hierarchy for vertrack.

Every error raised by the library derives from VertrackError so callers can
catch the whole family with a single except clause, or pick out the cases
they want to present differently:

- ConfigError: Invalid settings, invalid item forms, unknown source kinds
- SchedulerMisconfiguredError: Auto refresh enabled with a non-positive interval
- DuplicateSourceError: Another tracked item already uses the same source
- NotFoundError: No tracked item with the requested id
- FetchFailedError: The remote registry could not be queried
- ProbeUnavailableError: The local version could not be detected (non-fatal)
- CheckCancelledError: A check was abandoned because the tracker shut down
- SourceChangedError: An item's source was edited while its check ran

Version strings that cannot be parsed are never an error; the comparison
degrades to BumpLevel.UNKNOWN instead.

Example:
    Distinguishing failures of an add:
        ```python
        from vertrack.exceptions import DuplicateSourceError, FetchFailedError

        try:
            tracker.add_item(form)
        except DuplicateSourceError as e:
            print(f"Already tracked: {e}")
        except FetchFailedError as e:
            print(f"Could not reach the registry: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "VertrackError",
    "ConfigError",
    "SchedulerMisconfiguredError",
    "DuplicateSourceError",
    "NotFoundError",
    "FetchFailedError",
    "ProbeUnavailableError",
    "CheckCancelledError",
    "SourceChangedError",
]


class VertrackError(Exception):
    """Base exception for all vertrack errors."""

    pass


class ConfigError(VertrackError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing of the settings file
    - Out-of-range settings values (negative TTL, quiet hours outside 0-23)
    - Item forms with missing names or malformed identifiers
    - Unknown source kinds
    - Corrupted state files (after they have been backed up)
    """

    pass


class SchedulerMisconfiguredError(ConfigError):
    """Raised when auto refresh is requested with an interval <= 0."""

    pass


class DuplicateSourceError(VertrackError):
    """Raised when an add or edit would create a second item for a source.

    Sources are compared on kind plus case-insensitive identifier. The item
    being added or edited is left unchanged.
    """

    pass


class NotFoundError(VertrackError):
    """Raised when an item id is not known to the registry."""

    pass


class FetchFailedError(VertrackError):
    """Raised when the latest version could not be fetched.

    Covers network failures, timeouts, rate limiting, unknown packages and
    malformed responses. A failed fetch never modifies the cache or the
    stored item.
    """

    pass


class ProbeUnavailableError(VertrackError):
    """Raised when the installed version of a package cannot be detected.

    The check coordinator treats this as non-fatal: the check succeeds and
    the local version is recorded as unknown.
    """

    pass


class CheckCancelledError(VertrackError):
    """Raised when a check is abandoned because the tracker is shutting down."""

    pass


class SourceChangedError(VertrackError):
    """Raised when an item's source was edited while its check was running.

    The fetched data belongs to the old source and is discarded. The check
    coordinator handles this by fetching again for the new source.
    """

    pass
