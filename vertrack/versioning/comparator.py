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

"""Version normalization and bump classification for vertrack.

This module is format-agnostic: it does NOT query registries or run
commands. It only parses version strings and decides how two of them
relate, and it is the only place in the package that does so.

Parsing rules:

- Surrounding whitespace and "+build" metadata are dropped.
- A single leading "v"/"V" is stripped when a digit follows ("v1.2" -> "1.2").
- The text is split on the first "-" into a dot-separated core and a
  prerelease suffix ("1.4.0-rc.2" -> core (1, 4, 0), suffix "rc.2").
- Tags made only of dash-separated numbers ("2024-01-15") are read as a
  dotted core (2024, 1, 15) rather than a core with a suffix.
- Core segments that are not plain integers are kept as lowercase strings
  ("1.0rc1" -> (1, "0rc1")).
- Anything whose first core segment does not start with a digit, or that has
  empty segments, becomes an opaque token compared only for equality.

Parsing never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re

_DASHED_NUMERIC = re.compile(r"^\d+(?:-\d+)+$")
_WHITESPACE = re.compile(r"\s")


class BumpLevel(str, Enum):
    """How significant the difference between two versions is."""

    EQUAL = "equal"
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    PRERELEASE = "prerelease"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class NormalizedVersion:
    """A parsed version string.

    Attributes:
        core: Dot-separated core segments; ints where numeric, lowercase
            strings otherwise. Empty for opaque versions.
        suffix: Lowercased prerelease suffix without the leading "-", or None.
        opaque: True if the input could not be parsed as a version.
        raw: Canonical text form. Normalizing it again yields an equal
            NormalizedVersion.

    """

    core: tuple[int | str, ...]
    suffix: str | None
    opaque: bool
    raw: str


def _strip_build_meta(s: str) -> str:
    """Drop '+build' metadata (ignored for comparison)."""
    i = s.find("+")
    return s if i == -1 else s[:i]


def _opaque(text: str) -> NormalizedVersion:
    return NormalizedVersion(core=(), suffix=None, opaque=True, raw=text)


def _segment(text: str) -> int | str:
    return int(text) if text.isdigit() else text.lower()


def normalize(raw: str) -> NormalizedVersion:
    """Parse a version string into core segments and a prerelease suffix.

    Args:
        raw: Version string as published or reported (e.g., "v1.4.0-rc.2").

    Returns:
        The normalized version. Unparsable input is returned as an opaque
            token rather than raising.

    Example:
        ```python
        normalize("v1.4.0-rc.2")
        # NormalizedVersion(core=(1, 4, 0), suffix='rc.2', opaque=False,
        #                   raw='1.4.0-rc.2')
        normalize("nightly").opaque  # True
        ```

    """
    text = raw.strip() if isinstance(raw, str) else ""
    if not text or _WHITESPACE.search(text):
        return _opaque(text)

    body = _strip_build_meta(text)
    if len(body) > 1 and body[0] in "vV" and body[1].isdigit():
        body = body[1:]

    if _DASHED_NUMERIC.match(body):
        core_text, suffix = body.replace("-", "."), None
    elif "-" in body:
        core_text, suffix = body.split("-", 1)
        suffix = suffix.lower() or None
    else:
        core_text, suffix = body, None

    parts = core_text.split(".")
    if not core_text or any(not p for p in parts) or not parts[0][0].isdigit():
        return _opaque(text)

    core = tuple(_segment(p) for p in parts)
    canonical = ".".join(str(c) for c in core)
    if suffix:
        canonical = f"{canonical}-{suffix}"
    return NormalizedVersion(core=core, suffix=suffix, opaque=False, raw=canonical)


def _pad_equal(
    a: tuple[int | str, ...], b: tuple[int | str, ...]
) -> tuple[tuple[int | str, ...], tuple[int | str, ...]]:
    """Pad tuples with zeros so they align for element-wise comparison."""
    n = max(len(a), len(b))
    return a + (0,) * (n - len(a)), b + (0,) * (n - len(b))


def _same_segment(a: int | str, b: int | str) -> bool:
    if isinstance(a, int) and isinstance(b, int):
        return a == b
    # Mixed or textual segments fall back to string comparison.
    return str(a) == str(b)


def classify(local: str | None, latest: str | None) -> BumpLevel:
    """Classify the difference between a local and a latest version.

    The level says how big the change is, not which side is newer:
    classify(a, b) and classify(b, a) always return the same level.

    Args:
        local: Installed version, or None if unknown.
        latest: Latest published version, or None if unknown.

    Returns:
        EQUAL when core and suffix match; MAJOR, MINOR or PATCH for the first
            differing core position (positions past the third count as
            PATCH); PRERELEASE when only the suffix differs; UNKNOWN when a
            side is missing or opaque (two opaque tokens that match ignoring
            case are EQUAL).

    Example:
        ```python
        classify("1.2.0", "1.3.0")          # BumpLevel.MINOR
        classify("v2.0.0", "2.0.0")         # BumpLevel.EQUAL
        classify("1.0.0-beta", "1.0.0")     # BumpLevel.PRERELEASE
        classify("nightly", "1.0.0")        # BumpLevel.UNKNOWN
        ```

    """
    if local is None or latest is None:
        return BumpLevel.UNKNOWN

    a = normalize(local)
    b = normalize(latest)
    if a.opaque or b.opaque:
        if a.opaque and b.opaque and a.raw.casefold() == b.raw.casefold():
            return BumpLevel.EQUAL
        return BumpLevel.UNKNOWN

    core_a, core_b = _pad_equal(a.core, b.core)
    for position, (x, y) in enumerate(zip(core_a, core_b)):
        if _same_segment(x, y):
            continue
        if position == 0:
            return BumpLevel.MAJOR
        if position == 1:
            return BumpLevel.MINOR
        return BumpLevel.PATCH

    if a.suffix != b.suffix:
        return BumpLevel.PRERELEASE
    return BumpLevel.EQUAL


def has_update(local: str | None, latest: str | None) -> bool:
    """Return True if the two versions differ in a way that counts as an update.

    EQUAL means no update; UNKNOWN is treated conservatively as no update.
    Every other level, with both sides present, is an update.
    """
    return classify(local, latest) not in (BumpLevel.EQUAL, BumpLevel.UNKNOWN)
