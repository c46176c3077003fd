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

"""Logging interface for vertrack.

Library modules report progress through a small logger protocol instead of
printing directly, so the tracker can run silently inside another program
and verbosely from the CLI.

The logger supports four kinds of output:

- Step: Always printed (progress through a batch of checks)
- Verbose: Only printed when verbose mode is enabled
- Debug: Only printed when debug mode is enabled (implies verbose)
- Warning: Always printed, to stderr (non-fatal problems such as a missing
  local command or a notifier that failed to deliver)

Prefixes used across the package: CHECK, CACHE, FETCH, PROBE, REGISTRY,
SCHEDULER, NOTIFY, STATE, CONFIG.

Example:
    Configure the global logger from the CLI:
        ```python
        from vertrack.logging import get_logger, set_global_logger

        set_global_logger(get_logger(verbose=True))
        ```

    Use in library code:
        ```python
        from vertrack.logging import get_global_logger

        logger = get_global_logger()
        logger.step(1, 3, "Checking ripgrep...")
        logger.verbose("CACHE", "Cache hit for ripgrep")
        logger.warning("PROBE", "rg not found on PATH")
        ```

Note:
    The default global logger is silent, warnings included, so the library
    prints nothing unless a caller opts in.
"""

from __future__ import annotations

import sys
from typing import Protocol


class Logger(Protocol):
    """Protocol for logger implementations."""

    def step(self, step: int, total: int, message: str) -> None:
        """Print a step indicator.

        Args:
            step: Current step number (1-based).
            total: Total number of steps.
            message: Step description.
        """
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message.

        Args:
            prefix: Message prefix (e.g., "CHECK", "CACHE").
            message: Log message.
        """
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message.

        Args:
            prefix: Message prefix (e.g., "FETCH", "PROBE").
            message: Log message.
        """
        ...

    def warning(self, prefix: str, message: str) -> None:
        """Report a non-fatal problem.

        Args:
            prefix: Message prefix (e.g., "NOTIFY").
            message: Log message.
        """
        ...


class DefaultLogger:
    """Logger that prints to stdout, and warnings to stderr."""

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        self._verbose = verbose or debug
        self._debug = debug

    def step(self, step: int, total: int, message: str) -> None:
        print(f"[{step}/{total}] {message}")

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        if self._debug:
            print(f"[{prefix}] {message}")

    def warning(self, prefix: str, message: str) -> None:
        print(f"[{prefix}] Warning: {message}", file=sys.stderr)


class SilentLogger:
    """Logger that suppresses all output."""

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass

    def warning(self, prefix: str, message: str) -> None:
        pass


# Global logger instance (defaults to silent)
_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Get a printing logger with the given verbosity.

    Args:
        verbose: If True, logger will print verbose messages.
        debug: If True, logger will print debug messages (implies verbose).

    Returns:
        A DefaultLogger configured with the specified verbosity.
    """
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Get the global logger instance (silent unless configured)."""
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Set the global logger instance.

    Args:
        logger: Logger instance to use as the global logger.

    Note:
        Components such as CheckCoordinator and RefreshScheduler also accept
        a logger argument; pass one there for isolation in tests.
    """
    global _global_logger
    _global_logger = logger
