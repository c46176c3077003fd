"""
Tests for vertrack.cli module.

Runs the CLI entry point end to end against a temporary state file and
settings file, with registry HTTP calls mocked by requests_mock:
- add / list / edit / remove / enable / disable
- single and batch checks, cache use and --force
- config show / config set
- error reporting and exit codes
"""

from __future__ import annotations

import json

import pytest
import requests_mock

from vertrack import __version__
from vertrack.cli import main

NPM = "https://registry.npmjs.org"


def _npm_doc(version):
    return {"dist-tags": {"latest": version}, "time": {version: "2025-01-02T03:04:05Z"}}


@pytest.fixture
def files(tmp_path):
    """Common file arguments pointing into tmp_path."""
    return [
        "--state-file",
        str(tmp_path / "state" / "vertrack.json"),
        "--settings-file",
        str(tmp_path / "vertrack.yaml"),
    ]


@pytest.fixture
def registry_mock():
    with requests_mock.Mocker() as m:
        m.get(f"{NPM}/left-pad", json=_npm_doc("1.3.0"))
        m.get(f"{NPM}/right-pad", json=_npm_doc("2.0.0"))
        yield m


def run(*argv):
    with pytest.raises(SystemExit) as excinfo:
        main(list(argv))
    return excinfo.value.code


class TestVersionFlag:
    """Tests for --version."""

    def test_version(self, capsys):
        """Test that --version prints the package version."""
        assert run("--version") == 0
        assert f"vertrack {__version__}" in capsys.readouterr().out


class TestItemCommands:
    """Tests for add, list, edit, remove, enable and disable."""

    def test_add_and_list(self, files, registry_mock, capsys):
        """Test that an added item is listed with its latest version."""
        assert run("add", "left-pad", "npm", "left-pad", *files) == 0
        out = capsys.readouterr().out
        assert "[SUCCESS] Item added!" in out
        assert "Latest:  1.3.0" in out

        assert run("list", *files) == 0
        out = capsys.readouterr().out
        assert "left-pad" in out
        assert "npm:left-pad" in out
        assert "latest known" in out

    def test_list_empty(self, files, capsys):
        """Test the hint shown when nothing is tracked."""
        assert run("list", *files) == 0
        assert "No tracked items" in capsys.readouterr().out

    def test_add_persists_to_state_file(self, files, registry_mock, tmp_path):
        """Test that the item and its cache entry are written to disk."""
        run("add", "left-pad", "npm", "left-pad", *files)

        state = json.loads((tmp_path / "state" / "vertrack.json").read_text(encoding="utf-8"))
        assert [item["name"] for item in state["items"]] == ["left-pad"]
        item_id = state["items"][0]["id"]
        assert state["cache"][item_id]["latest_version"] == "1.3.0"

    def test_add_failed_check_stores_nothing(self, files, capsys):
        """Test that an add whose first check fails leaves no item."""
        with requests_mock.Mocker() as m:
            m.get(f"{NPM}/no-such-package", status_code=404)
            assert run("add", "ghost", "npm", "no-such-package", *files) == 1
        assert "Error:" in capsys.readouterr().out

        assert run("list", *files) == 0
        assert "No tracked items" in capsys.readouterr().out

    def test_add_duplicate(self, files, registry_mock, capsys):
        """Test that the same source cannot be added twice."""
        run("add", "left-pad", "npm", "left-pad", *files)
        capsys.readouterr()

        assert run("add", "again", "npm", "LEFT-PAD", *files) == 1
        assert "already tracked" in capsys.readouterr().out

    def test_add_invalid_identifier(self, files, capsys):
        """Test that validation errors are reported before any fetch."""
        assert run("add", "rg", "github-release", "ripgrep", *files) == 1
        assert "owner/repo" in capsys.readouterr().out

    def test_edit_rename(self, files, registry_mock, capsys):
        """Test renaming an item by its name."""
        run("add", "left-pad", "npm", "left-pad", *files)

        assert run("edit", "left-pad", "--name", "Left Pad", *files) == 0
        assert "Updated Left Pad" in capsys.readouterr().out

        run("list", *files)
        assert "Left Pad" in capsys.readouterr().out

    def test_remove(self, files, registry_mock, capsys):
        """Test removing an item."""
        run("add", "left-pad", "npm", "left-pad", *files)

        assert run("remove", "left-pad", *files) == 0
        assert "Removed left-pad" in capsys.readouterr().out

        run("list", *files)
        assert "No tracked items" in capsys.readouterr().out

    def test_disable_and_enable(self, files, registry_mock, capsys):
        """Test that disabled items are shown as such."""
        run("add", "left-pad", "npm", "left-pad", *files)

        assert run("disable", "left-pad", *files) == 0
        run("list", *files)
        assert "disabled" in capsys.readouterr().out

        assert run("enable", "left-pad", *files) == 0
        run("list", *files)
        assert "disabled" not in capsys.readouterr().out

    def test_unknown_item(self, files, capsys):
        """Test that an unknown reference exits with 1."""
        assert run("remove", "nothing", *files) == 1
        assert "No tracked item matches 'nothing'" in capsys.readouterr().out


class TestCheckCommand:
    """Tests for 'vertrack check'."""

    def test_single_check_uses_cache(self, files, registry_mock, capsys):
        """Test that a check right after add is served from the cache."""
        run("add", "left-pad", "npm", "left-pad", *files)
        capsys.readouterr()

        assert run("check", "left-pad", *files) == 0
        out = capsys.readouterr().out
        assert "Latest:        1.3.0" in out
        assert "From cache:    yes" in out
        assert registry_mock.call_count == 1

    def test_force_refetches(self, files, registry_mock, capsys):
        """Test that --force bypasses the cache."""
        run("add", "left-pad", "npm", "left-pad", *files)
        registry_mock.get(f"{NPM}/left-pad", json=_npm_doc("1.4.0"))
        capsys.readouterr()

        assert run("check", "left-pad", "--force", *files) == 0
        out = capsys.readouterr().out
        assert "Latest:        1.4.0" in out
        assert "From cache:    no" in out

    def test_batch_check(self, files, registry_mock, capsys):
        """Test a batch check over every enabled item."""
        run("add", "left-pad", "npm", "left-pad", *files)
        run("add", "right-pad", "npm", "right-pad", *files)
        capsys.readouterr()

        assert run("check", *files) == 0
        assert "Checked 2 item(s): 0 update(s), 0 failure(s)" in capsys.readouterr().out

    def test_batch_check_reports_failures(self, files, registry_mock, capsys):
        """Test that one failing item does not stop the others and sets exit 1."""
        run("add", "left-pad", "npm", "left-pad", *files)
        run("add", "right-pad", "npm", "right-pad", *files)
        registry_mock.get(f"{NPM}/right-pad", status_code=500, reason="Internal Server Error")
        capsys.readouterr()

        assert run("check", "--force", *files) == 1
        out = capsys.readouterr().out
        assert "1 failure(s)" in out
        assert "[X] right-pad" in out


class TestConfigCommands:
    """Tests for 'vertrack config'."""

    def test_show_defaults(self, files, capsys):
        """Test that the effective settings are printed as YAML."""
        assert run("config", "show", *files) == 0
        out = capsys.readouterr().out
        assert "ttl_minutes: 30" in out
        assert "silent_start_hour: 22" in out

    def test_set_value(self, files, tmp_path, capsys):
        """Test that a set value is written to the settings file."""
        assert run("config", "set", "cache.ttl_minutes", "5", *files) == 0
        assert "Set cache.ttl_minutes = 5" in capsys.readouterr().out

        assert "ttl_minutes: 5" in (tmp_path / "vertrack.yaml").read_text(encoding="utf-8")
        run("config", "show", *files)
        assert "ttl_minutes: 5" in capsys.readouterr().out

    def test_set_null(self, files, capsys):
        """Test that 'null' clears an optional setting."""
        assert run("config", "set", "notification.silent_start_hour", "null", *files) == 0
        run("config", "show", *files)
        assert "silent_start_hour: null" in capsys.readouterr().out

    def test_set_unknown_key(self, files, capsys):
        """Test that unknown keys are rejected."""
        assert run("config", "set", "cache.ttl", "5", *files) == 1
        assert "Unknown setting: cache.ttl" in capsys.readouterr().out

    def test_set_invalid_interval(self, files, tmp_path, capsys):
        """Test that a zero interval with auto refresh on is refused."""
        assert run("config", "set", "cache.auto_refresh_interval_minutes", "0", *files) == 1
        assert "auto_refresh_interval_minutes" in capsys.readouterr().out
        assert not (tmp_path / "vertrack.yaml").exists()


class TestClearCache:
    """Tests for 'vertrack clear-cache'."""

    def test_clear_cache_forces_next_fetch(self, files, registry_mock, capsys):
        """Test that after clearing, the next check queries the registry."""
        run("add", "left-pad", "npm", "left-pad", *files)

        assert run("clear-cache", *files) == 0
        assert "Cache cleared" in capsys.readouterr().out

        run("check", "left-pad", *files)
        assert "From cache:    no" in capsys.readouterr().out
        assert registry_mock.call_count == 2
