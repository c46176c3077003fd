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

"""Command-line interface for vertrack.

This module provides the main CLI entry point for the vertrack tool, offering
commands for managing tracked packages, checking for updates and editing
settings.

Commands:

    list: Show tracked items and their update status
    add: Track a new package (runs a first check)
    edit: Change an item's name, source or local probe
    remove: Stop tracking an item
    enable / disable: Include or exclude an item from bulk checks
    check: Check one item, or every enabled item
    config show / config set: Display or change settings
    clear-cache: Drop all cached results
    watch: Check periodically until interrupted

Items can be referred to by full id, a unique id prefix, or by name.

Example:
    Track ripgrep and compare it to the installed binary:
        ```bash
        $ vertrack add ripgrep github-release BurntSushi/ripgrep --command rg
        ```

    Check everything, bypassing the cache:
        ```bash
        $ vertrack check --force
        ```

    Turn on patch notifications:
        ```bash
        $ vertrack config set notification.notify_on_patch true
        ```

Exit Codes:

- 0: Success
- 1: Error (configuration, fetch failure, unknown item), or a batch check
  with at least one failed item

Note:
    The CLI uses argparse for command parsing. Each command has its own
    handler function (cmd_<command>). Verbose mode shows full tracebacks on
    errors for debugging. Debug mode implies verbose mode.

"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
import time
from typing import Any

import yaml

from vertrack import __version__
from vertrack.app import VersionTracker
from vertrack.config import settings_from_dict, settings_to_dict
from vertrack.exceptions import ConfigError, NotFoundError, VertrackError
from vertrack.logging import get_logger, set_global_logger
from vertrack.models import SOURCE_KINDS, ItemForm, LocalProbeConfig, SourceConfig, TrackedItem
from vertrack.notifier import ConsoleNotifier
from vertrack.state import FileStore
from vertrack.versioning import BumpLevel, classify

DEFAULT_STATE_FILE = Path("state/vertrack.json")
DEFAULT_SETTINGS_FILE = Path("vertrack.yaml")


# -------------------------------
# Helpers
# -------------------------------


def _open_tracker(args: argparse.Namespace) -> VersionTracker:
    """Configure the global logger and build a tracker over the files."""
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)
    store = FileStore(Path(args.state_file), Path(args.settings_file))
    return VersionTracker(store, notifier=ConsoleNotifier())


def _report_error(args: argparse.Namespace, err: Exception) -> int:
    print(f"Error: {err}")
    if args.verbose or args.debug:
        import traceback

        traceback.print_exc()
    return 1


def _resolve_item(tracker: VersionTracker, ref: str) -> TrackedItem:
    """Find an item by id, unique id prefix or case-insensitive name."""
    items = tracker.list_items()
    for item in items:
        if item.id == ref:
            return item

    matches = [item for item in items if item.id.startswith(ref)]
    if not matches:
        matches = [item for item in items if item.name.casefold() == ref.casefold()]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise NotFoundError(f"No tracked item matches {ref!r}")
    names = ", ".join(f"{item.name} ({item.id[:8]})" for item in matches)
    raise ConfigError(f"{ref!r} is ambiguous: {names}")


def _probe_from_args(args: argparse.Namespace) -> LocalProbeConfig | None:
    if not args.command_name:
        return None
    return LocalProbeConfig(args.command_name, args.version_arg)


def _status(item: TrackedItem) -> str:
    if item.latest_version is None:
        return "never checked"
    if item.local_version is None:
        return "latest known"
    level = classify(item.local_version, item.latest_version)
    if level is BumpLevel.EQUAL:
        return "up to date"
    if level is BumpLevel.UNKNOWN:
        return "not comparable"
    return f"{level.value} update"


def _set_dotted(data: dict[str, Any], key: str, value: Any) -> None:
    """Set data["a"]["b"] for key "a.b"; the key must already exist."""
    parts = key.split(".")
    node = data
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            raise ConfigError(f"Unknown setting: {key}")
        node = child
    if parts[-1] not in node or isinstance(node[parts[-1]], dict):
        raise ConfigError(f"Unknown setting: {key}")
    node[parts[-1]] = value


# -------------------------------
# Command handlers
# -------------------------------


def cmd_list(args: argparse.Namespace) -> int:
    """Handler for 'vertrack list' command.

    Prints one row per tracked item, in the order items were added.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    try:
        tracker = _open_tracker(args)
        items = tracker.list_items()
    except VertrackError as err:
        return _report_error(args, err)

    if not items:
        print("No tracked items. Add one with 'vertrack add'.")
        return 0

    print(f"{'ID':<10}{'NAME':<20}{'SOURCE':<40}{'LOCAL':<14}{'LATEST':<14}STATUS")
    for item in items:
        source = f"{item.source.kind}:{item.source.identifier}"
        status = _status(item) if item.enabled else "disabled"
        print(
            f"{item.id[:8]:<10}{item.name[:19]:<20}{source[:39]:<40}"
            f"{(item.local_version or '-'):<14}{(item.latest_version or '-'):<14}{status}"
        )
    return 0


def cmd_add(args: argparse.Namespace) -> int:
    """Handler for 'vertrack add' command.

    Validates the form, rejects duplicate sources and runs a first check.
    Nothing is stored if the first check fails.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    form = ItemForm(
        name=args.name,
        source=SourceConfig(args.kind, args.identifier),
        local_probe=_probe_from_args(args),
    )
    try:
        tracker = _open_tracker(args)
        try:
            item = tracker.add_item(form)
        finally:
            tracker.shutdown()
    except VertrackError as err:
        return _report_error(args, err)

    print(f"Added {item.name} ({item.id})")
    print(f"  Latest:  {item.latest_version}")
    if item.local_probe is not None:
        print(f"  Local:   {item.local_version or 'not detected'}")
    print("[SUCCESS] Item added!")
    return 0


def cmd_edit(args: argparse.Namespace) -> int:
    """Handler for 'vertrack edit' command.

    Only the given fields change. Changing the source drops the item's
    cached result.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    try:
        tracker = _open_tracker(args)
        item = _resolve_item(tracker, args.item)

        probe = item.local_probe
        if args.no_probe:
            probe = None
        elif args.command_name:
            probe = LocalProbeConfig(args.command_name, args.version_arg)
        elif args.version_arg is not None and probe is not None:
            probe = LocalProbeConfig(probe.command, args.version_arg)

        form = ItemForm(
            name=args.name if args.name is not None else item.name,
            source=SourceConfig(
                args.kind or item.source.kind,
                args.identifier or item.source.identifier,
            ),
            local_probe=probe,
        )
        updated = tracker.update_item(item.id, form)
    except VertrackError as err:
        return _report_error(args, err)

    print(f"Updated {updated.name} ({updated.id})")
    return 0


def cmd_remove(args: argparse.Namespace) -> int:
    """Handler for 'vertrack remove' command."""
    try:
        tracker = _open_tracker(args)
        item = _resolve_item(tracker, args.item)
        tracker.remove_item(item.id)
    except VertrackError as err:
        return _report_error(args, err)

    print(f"Removed {item.name}")
    return 0


def cmd_enable(args: argparse.Namespace) -> int:
    """Handler for 'vertrack enable' and 'vertrack disable' commands."""
    try:
        tracker = _open_tracker(args)
        item = _resolve_item(tracker, args.item)
        tracker.set_enabled(item.id, args.enabled)
    except VertrackError as err:
        return _report_error(args, err)

    print(f"{'Enabled' if args.enabled else 'Disabled'} {item.name}")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Handler for 'vertrack check' command.

    With an item argument, checks that item (even when disabled). Without
    one, checks every enabled item; a failure of one item does not stop the
    others.

    Returns:
        Exit code (0 for success, 1 if any check failed).

    """
    try:
        tracker = _open_tracker(args)
        try:
            if args.item:
                item = _resolve_item(tracker, args.item)
                result = tracker.check_one(item.id, args.force, notify=args.notify)
                batch = None
            else:
                batch = tracker.check_all(force_refresh=args.force, notify=args.notify)
        finally:
            tracker.shutdown()
    except VertrackError as err:
        return _report_error(args, err)

    if batch is None:
        print("=" * 70)
        print("CHECK RESULT")
        print("=" * 70)
        print(f"Name:          {item.name}")
        print(f"Source:        {item.source.kind}:{item.source.identifier}")
        print(f"Latest:        {result.latest_version}")
        print(f"Local:         {result.local_version or '-'}")
        if result.published_at is not None:
            print(f"Published:     {result.published_at:%Y-%m-%d %H:%M} UTC")
        print(f"Update:        {'yes' if result.has_update else 'no'}")
        print(f"From cache:    {'yes' if result.from_cache else 'no'}")
        print("=" * 70)
        return 0

    print()
    updates = sum(1 for result in batch.results if result.has_update)
    print(
        f"Checked {len(batch.results) + len(batch.failures)} item(s): "
        f"{updates} update(s), {len(batch.failures)} failure(s)"
    )
    for failure in batch.failures:
        print(f"  [X] {failure.name}: {failure.error}")
    return 0 if batch.ok else 1


def cmd_config_show(args: argparse.Namespace) -> int:
    """Handler for 'vertrack config show' command."""
    try:
        tracker = _open_tracker(args)
        settings = tracker.get_settings()
    except VertrackError as err:
        return _report_error(args, err)

    print(yaml.safe_dump(settings_to_dict(settings), sort_keys=False), end="")
    return 0


def cmd_config_set(args: argparse.Namespace) -> int:
    """Handler for 'vertrack config set' command.

    KEY is dotted ("cache.ttl_minutes"); VALUE is parsed as YAML, so
    "true", "15" and "null" become a bool, a number and None.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    try:
        value = yaml.safe_load(args.value)
    except yaml.YAMLError as err:
        return _report_error(args, ConfigError(f"Invalid value {args.value!r}: {err}"))

    try:
        tracker = _open_tracker(args)
        try:
            data = settings_to_dict(tracker.get_settings())
            _set_dotted(data, args.key, value)
            tracker.save_settings(settings_from_dict(data))
        finally:
            tracker.shutdown()
    except VertrackError as err:
        return _report_error(args, err)

    print(f"Set {args.key} = {value!r}")
    return 0


def cmd_clear_cache(args: argparse.Namespace) -> int:
    """Handler for 'vertrack clear-cache' command."""
    try:
        tracker = _open_tracker(args)
        tracker.clear_cache()
    except VertrackError as err:
        return _report_error(args, err)

    print("Cache cleared")
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    """Handler for 'vertrack watch' command.

    Runs one batch check, then re-checks on the auto refresh interval until
    interrupted with Ctrl+C. Notifications are printed as they fire.

    Returns:
        Exit code (0 when interrupted, 1 on error).

    """
    try:
        tracker = _open_tracker(args)
        policy = tracker.get_settings().cache
        interval = args.interval or policy.auto_refresh_interval_minutes
        if not args.interval and not policy.auto_refresh_enabled:
            raise ConfigError(
                "Auto refresh is disabled; pass --interval or enable cache.auto_refresh_enabled"
            )
        tracker.scheduler.start(interval)
    except VertrackError as err:
        return _report_error(args, err)

    print(f"Watching {len(tracker.list_items())} item(s) every {interval} minute(s). Ctrl+C to stop.")
    try:
        tracker.check_all(notify=True)
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print()
        print("Stopping...")
    finally:
        tracker.shutdown()
    return 0


# -------------------------------
# Entry point
# -------------------------------


def _add_probe_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--command",
        dest="command_name",
        default=None,
        help="Local command that reports the installed version (e.g., rg)",
    )
    parser.add_argument(
        "--version-arg",
        default=None,
        help="Argument(s) that make the command print its version (default: --version)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the vertrack CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--state-file",
        type=Path,
        default=DEFAULT_STATE_FILE,
        help=f"State file for items and cached results (default: {DEFAULT_STATE_FILE})",
    )
    common.add_argument(
        "--settings-file",
        type=Path,
        default=DEFAULT_SETTINGS_FILE,
        help=f"YAML settings file (default: {DEFAULT_SETTINGS_FILE})",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    common.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )

    parser = argparse.ArgumentParser(
        prog="vertrack",
        description="vertrack - track the latest published versions of packages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"vertrack {__version__}",
    )

    subparsers = parser.add_subparsers(
        dest="subcommand",
        help="Available commands",
        required=True,
    )

    # 'list' command
    parser_list = subparsers.add_parser(
        "list", parents=[common], help="Show tracked items"
    )
    parser_list.set_defaults(func=cmd_list)

    # 'add' command
    parser_add = subparsers.add_parser(
        "add",
        parents=[common],
        help="Track a new package",
        description="Add a tracked item and run its first check. Nothing is saved if the check fails.",
    )
    parser_add.add_argument("name", help="Display name")
    parser_add.add_argument("kind", choices=SOURCE_KINDS, help="Source kind")
    parser_add.add_argument(
        "identifier", help="Registry identifier (owner/repo for GitHub, package name otherwise)"
    )
    _add_probe_arguments(parser_add)
    parser_add.set_defaults(func=cmd_add)

    # 'edit' command
    parser_edit = subparsers.add_parser(
        "edit", parents=[common], help="Change a tracked item"
    )
    parser_edit.add_argument("item", help="Item id, id prefix or name")
    parser_edit.add_argument("--name", default=None, help="New display name")
    parser_edit.add_argument("--kind", choices=SOURCE_KINDS, default=None, help="New source kind")
    parser_edit.add_argument("--identifier", default=None, help="New registry identifier")
    _add_probe_arguments(parser_edit)
    parser_edit.add_argument(
        "--no-probe",
        action="store_true",
        help="Stop detecting the local version",
    )
    parser_edit.set_defaults(func=cmd_edit)

    # 'remove' command
    parser_remove = subparsers.add_parser(
        "remove", parents=[common], help="Stop tracking an item"
    )
    parser_remove.add_argument("item", help="Item id, id prefix or name")
    parser_remove.set_defaults(func=cmd_remove)

    # 'enable' / 'disable' commands
    parser_enable = subparsers.add_parser(
        "enable", parents=[common], help="Include an item in bulk checks"
    )
    parser_enable.add_argument("item", help="Item id, id prefix or name")
    parser_enable.set_defaults(func=cmd_enable, enabled=True)

    parser_disable = subparsers.add_parser(
        "disable", parents=[common], help="Exclude an item from bulk checks"
    )
    parser_disable.add_argument("item", help="Item id, id prefix or name")
    parser_disable.set_defaults(func=cmd_enable, enabled=False)

    # 'check' command
    parser_check = subparsers.add_parser(
        "check",
        parents=[common],
        help="Check for updates",
        description="Check one item, or every enabled item when no item is given.",
    )
    parser_check.add_argument("item", nargs="?", default=None, help="Item id, id prefix or name")
    parser_check.add_argument(
        "--force", action="store_true", help="Ignore cached results and query the registry"
    )
    parser_check.add_argument(
        "--notify", action="store_true", help="Apply the notification policy to the results"
    )
    parser_check.set_defaults(func=cmd_check)

    # 'config' command
    parser_config = subparsers.add_parser("config", help="Show or change settings")
    config_sub = parser_config.add_subparsers(dest="config_command", required=True)
    parser_config_show = config_sub.add_parser(
        "show", parents=[common], help="Print the effective settings"
    )
    parser_config_show.set_defaults(func=cmd_config_show)
    parser_config_set = config_sub.add_parser(
        "set", parents=[common], help="Change one setting"
    )
    parser_config_set.add_argument("key", help="Dotted key, e.g. cache.ttl_minutes")
    parser_config_set.add_argument("value", help="Value, parsed as YAML")
    parser_config_set.set_defaults(func=cmd_config_set)

    # 'clear-cache' command
    parser_clear = subparsers.add_parser(
        "clear-cache", parents=[common], help="Drop all cached results"
    )
    parser_clear.set_defaults(func=cmd_clear_cache)

    # 'watch' command
    parser_watch = subparsers.add_parser(
        "watch",
        parents=[common],
        help="Check periodically until interrupted",
    )
    parser_watch.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Minutes between checks (default: cache.auto_refresh_interval_minutes)",
    )
    parser_watch.set_defaults(func=cmd_watch)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the vertrack CLI.

    This function is registered as the 'vertrack' console script in
    pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Call the appropriate command handler
    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
