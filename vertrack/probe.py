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

"""Local version detection for vertrack.

Runs the installed program with its version argument and pulls the first
version-looking token out of its output, for example:

    $ rg --version
    ripgrep 14.1.0
    -> "14.1.0"

Both stdout and stderr are searched, since some tools (java, older gcc
wrappers) print their version to stderr. The exit status is ignored; only
the output matters.

Local detection is best-effort. Every failure (command not on PATH, timeout,
nothing that looks like a version) raises ProbeUnavailableError, which the
check coordinator logs and records as an unknown local version.
"""

from __future__ import annotations

import re
import shlex
import shutil
import subprocess

from vertrack.exceptions import ProbeUnavailableError
from vertrack.models import DEFAULT_VERSION_ARG, LocalProbeConfig

_VERSION_IN_OUTPUT = re.compile(r"(\d+\.\d+(?:\.\d+)?(?:-[\w.]+)?)")


def extract_version(output: str) -> str | None:
    """Return the first version-looking token in command output, if any."""
    match = _VERSION_IN_OUTPUT.search(output)
    return match.group(1) if match else None


def detect_local_version(probe: LocalProbeConfig, timeout: float) -> str:
    """Run a probe command and return the version it reports.

    Args:
        probe: Command and version argument(s). The argument string is split
            shell-style, so "version --short" becomes two arguments.
        timeout: Seconds before the command is killed.

    Returns:
        Version string found in the command output.

    Raises:
        ProbeUnavailableError: If the command is missing, times out, cannot
            be started, or prints nothing that looks like a version.

    Example:
        ```python
        from vertrack.models import LocalProbeConfig

        detect_local_version(LocalProbeConfig("node"), timeout=10)
        # '20.11.1'
        ```

    """
    from vertrack.logging import get_global_logger

    logger = get_global_logger()

    executable = shutil.which(probe.command)
    if executable is None:
        raise ProbeUnavailableError(f"Command not found: {probe.command!r}")

    try:
        args = shlex.split(probe.version_arg or DEFAULT_VERSION_ARG)
    except ValueError as err:
        raise ProbeUnavailableError(
            f"Invalid version argument {probe.version_arg!r}: {err}"
        ) from err

    logger.debug("PROBE", f"Running: {executable} {' '.join(args)}")
    try:
        result = subprocess.run(
            [executable, *args],
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise ProbeUnavailableError(
            f"{probe.command!r} did not answer within {timeout}s"
        ) from None
    except OSError as err:
        raise ProbeUnavailableError(f"Failed to run {probe.command!r}: {err}") from err

    output = f"{result.stdout or ''}{result.stderr or ''}"
    version = extract_version(output)
    if version is None:
        raise ProbeUnavailableError(
            f"Could not parse a version from {probe.command!r} output: {output.strip()[:200]!r}"
        )

    logger.debug("PROBE", f"{probe.command} reports {version}")
    return version
