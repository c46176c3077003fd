"""
Version comparison utilities for vertrack.

This package normalizes version strings as registries publish them and
classifies how far apart two versions are. It is pure: no network, no
processes, no clock.

Modules
-------
comparator : module
    normalize(), classify() and has_update().

Public API
----------
BumpLevel : enum
    EQUAL, MAJOR, MINOR, PATCH, PRERELEASE or UNKNOWN.
NormalizedVersion : dataclass
    Parsed core segments, prerelease suffix and canonical text.
normalize : function
    Parse a version string. Never raises.
classify : function
    Classify the difference between a local and a latest version.
has_update : function
    True when classify() reports anything other than EQUAL or UNKNOWN.

Examples
--------
    >>> from vertrack.versioning import classify, has_update
    >>> classify("1.2.0", "1.3.0")
    <BumpLevel.MINOR: 'minor'>
    >>> has_update("v1.2.0", "1.2.0")
    False

Notes
-----
- Only enough normalization to compare common tag formats; this is not a
  complete Semantic Versioning implementation.
- The level is symmetric: classify(a, b) == classify(b, a).
"""

from .comparator import (
    BumpLevel,
    NormalizedVersion,
    classify,
    has_update,
    normalize,
)

__all__ = ["BumpLevel", "NormalizedVersion", "classify", "has_update", "normalize"]
