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

"""Settings loading and management for vertrack.

Settings (cache TTL, auto refresh cadence, notification policy, GitHub
token, fetch timeout) are stored as YAML and merged over built-in defaults,
so a settings file only needs the keys it changes.

Public API:

- load_settings: Load, merge and validate a settings file
- save_settings: Write settings back as YAML
- validate_settings: Range checks shared by the loader and the tracker
- resolve_token: Expand "${VAR}" tokens from the environment

Example:
    Basic usage:

        from pathlib import Path
        from vertrack.config import load_settings

        settings = load_settings(Path("vertrack.yaml"))
        print(settings.notification.silent_start_hour)

"""

from .loader import (
    load_settings,
    resolve_token,
    save_settings,
    settings_from_dict,
    settings_to_dict,
    validate_settings,
)

__all__ = [
    "load_settings",
    "resolve_token",
    "save_settings",
    "settings_from_dict",
    "settings_to_dict",
    "validate_settings",
]
