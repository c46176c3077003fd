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

"""Item form validation.

Checks a submitted ItemForm without making network calls or running
commands, so bad input is rejected before anything is stored or fetched.

Validation Checks:

- Name is present and non-blank
- Source kind is one of the supported kinds and has a registered fetcher
- Identifier passes the fetcher's format check ("owner/repo" for GitHub)
- Local probe, when given, has a non-blank command

Duplicate detection is not done here; it needs the other items and lives
in the registry.

Example:
    ```python
    from vertrack.models import ItemForm, SourceConfig
    from vertrack.validation import validate_form

    errors = validate_form(ItemForm("rg", SourceConfig("github-release", "ripgrep")))
    # ["GitHub repository must be in format 'owner/repo', got 'ripgrep'"]
    ```

"""

from __future__ import annotations

from vertrack.exceptions import ConfigError
from vertrack.models import SOURCE_KINDS, ItemForm
from vertrack.sources import get_fetcher

__all__ = ["validate_form"]


def validate_form(form: ItemForm) -> list[str]:
    """Validate an item form.

    Args:
        form: Submitted name, source and optional local probe.

    Returns:
        List of error messages. Empty list if the form is valid.

    """
    errors: list[str] = []

    if not isinstance(form.name, str) or not form.name.strip():
        errors.append("Name cannot be empty")

    kind = form.source.kind
    if kind not in SOURCE_KINDS:
        errors.append(
            f"Unsupported source kind: {kind!r}. Supported: {', '.join(SOURCE_KINDS)}"
        )
    else:
        try:
            fetcher = get_fetcher(kind)
        except ConfigError as err:
            errors.append(str(err))
        else:
            errors.extend(fetcher.validate_identifier(form.source.identifier))

    probe = form.local_probe
    if probe is not None and (not isinstance(probe.command, str) or not probe.command.strip()):
        errors.append("Local probe command cannot be empty")

    return errors
