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

"""Caching and persistence for vertrack.

- VersionCache / is_fresh: last successful fetch per item and the TTL rule
- Persistence: storage protocol used by the registry and the tracker
- FileStore: JSON state file (items, cache) plus YAML settings file
- MemoryStore: in-memory storage for tests and embedding
- load_state / save_state: low-level JSON helpers
"""

from .cache import VersionCache, is_fresh
from .store import FileStore, MemoryStore, Persistence, load_state, save_state

__all__ = [
    "FileStore",
    "MemoryStore",
    "Persistence",
    "VersionCache",
    "is_fresh",
    "load_state",
    "save_state",
]
