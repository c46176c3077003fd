"""
vertrack - Version Tracker

A Python library and CLI that tracks the latest published versions of
software packages and tells you when the copy you have installed falls
behind.

vertrack provides:
  - Latest-version lookup on GitHub (releases and tags), Homebrew, npm,
    PyPI and crates.io
  - Optional detection of the locally installed version by running a command
  - Bump classification (major / minor / patch / prerelease)
  - A TTL cache so repeated checks don't hit the registries
  - Periodic background refresh
  - Notification gating with per-severity toggles and quiet hours

Quick Start
-----------
Track a package:

    $ vertrack add ripgrep github-release BurntSushi/ripgrep --command rg

Check every enabled item:

    $ vertrack check

For full CLI documentation:

    $ vertrack --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
app : module
    VersionTracker facade wiring the components together.
core : module
    Check orchestration (cache, fetch, probe, notify).
registry : module
    Tracked items and the duplicate-source rule.
scheduler : module
    Periodic refresh timer.
sources : package
    One fetcher per registry kind.
versioning : package
    Version normalization and bump classification.
state : package
    Version cache and persistence.
config : package
    YAML settings loading and validation.
policy : package
    Notification decision policy.

Public API
----------
    from vertrack import VersionTracker
    from vertrack.models import ItemForm, SourceConfig, LocalProbeConfig
    from vertrack.state import FileStore, MemoryStore
    from vertrack.versioning import classify, has_update

For more details, see the individual module docstrings.

Project Information
-------------------
Author: Roger Cibrian
License: Apache-2.0
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Track the latest published versions of software packages"

# Re-export commonly used names for convenience
from vertrack.app import VersionTracker
from vertrack.models import ItemForm, LocalProbeConfig, SourceConfig, TrackedItem
from vertrack.versioning import BumpLevel, classify, has_update

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "VersionTracker",
    "ItemForm",
    "LocalProbeConfig",
    "SourceConfig",
    "TrackedItem",
    "BumpLevel",
    "classify",
    "has_update",
]
