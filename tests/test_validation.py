"""
Tests for vertrack.validation module.

Tests item form validation including:
- Name checks
- Source kind checks
- Identifier format checks per kind
- Local probe checks
"""

from __future__ import annotations

import pytest

from vertrack.models import ItemForm, LocalProbeConfig, SourceConfig
from vertrack.validation import validate_form


class TestValidateForm:
    """Tests for validate_form()."""

    @pytest.mark.parametrize(
        ("kind", "identifier"),
        [
            ("github-release", "BurntSushi/ripgrep"),
            ("github-tags", "neovim/neovim"),
            ("homebrew", "ripgrep"),
            ("npm", "left-pad"),
            ("npm", "@types/node"),
            ("pypi", "requests"),
            ("cargo", "serde"),
        ],
    )
    def test_valid_forms(self, kind, identifier):
        """Test that well-formed forms produce no errors."""
        assert validate_form(ItemForm("Item", SourceConfig(kind, identifier))) == []

    @pytest.mark.parametrize("name", ["", "   ", "\t"])
    def test_blank_name(self, name):
        """Test that a blank name is rejected."""
        errors = validate_form(ItemForm(name, SourceConfig("npm", "left-pad")))
        assert errors == ["Name cannot be empty"]

    def test_unsupported_kind(self):
        """Test that an unknown source kind is rejected."""
        errors = validate_form(ItemForm("x", SourceConfig("sourceforge", "x")))

        assert len(errors) == 1
        assert "Unsupported source kind" in errors[0]
        assert "github-release" in errors[0]

    def test_github_identifier_format(self):
        """Test that GitHub identifiers must be owner/repo."""
        errors = validate_form(ItemForm("rg", SourceConfig("github-release", "ripgrep")))
        assert any("owner/repo" in e for e in errors)

    def test_empty_identifier(self):
        """Test that an empty identifier is rejected for every kind."""
        errors = validate_form(ItemForm("x", SourceConfig("pypi", "")))
        assert errors == ["PyPI project cannot be empty"]

    def test_blank_probe_command(self):
        """Test that a local probe needs a command."""
        form = ItemForm("rg", SourceConfig("homebrew", "ripgrep"), LocalProbeConfig("  "))
        assert validate_form(form) == ["Local probe command cannot be empty"]

    def test_probe_with_custom_arg(self):
        """Test that a probe with a version argument is valid."""
        form = ItemForm("java", SourceConfig("homebrew", "openjdk"), LocalProbeConfig("java", "-version"))
        assert validate_form(form) == []

    def test_errors_accumulate(self):
        """Test that all problems are reported at once."""
        form = ItemForm("", SourceConfig("github-tags", "nope"), LocalProbeConfig(""))
        errors = validate_form(form)
        assert len(errors) == 3
