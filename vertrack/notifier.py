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

"""Notifier interface for vertrack.

Delivery of notifications to the desktop is left to the embedding
application; the tracker only needs something with an emit(title, body)
method. Emission is fire-and-forget: the coordinator logs any exception a
notifier raises and carries on with the check.

ConsoleNotifier, used by the CLI, prints notifications to stdout, which is
what `vertrack watch` and `vertrack check --notify` show.
"""

from __future__ import annotations

import sys
from typing import Protocol, TextIO


class Notifier(Protocol):
    """Protocol for notification delivery."""

    def emit(self, title: str, body: str) -> None: ...


class ConsoleNotifier:
    """Notifier that prints to a text stream (stdout by default)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def emit(self, title: str, body: str) -> None:
        stream = self._stream or sys.stdout
        print(f"[NOTIFY] {title}", file=stream)
        for line in body.splitlines():
            print(f"         {line}", file=stream)
