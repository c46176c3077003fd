"""
Tests for vertrack.versioning module.

Tests version normalization and classification including:
- Prefix, suffix and build metadata handling
- Opaque (unparsable) versions
- Bump level classification and its symmetry
- has_update rules
"""

from __future__ import annotations

import pytest

from vertrack.versioning import BumpLevel, classify, has_update, normalize

SAMPLE_VERSIONS = [
    "1.2.3",
    "v1.2.3",
    "V2.0",
    "1.4.0-rc.2",
    "1.4.0-RC.2",
    "1.0.0+build.7",
    "2024-01-15",
    "14.1.0-beta-3",
    "1.2a",
    "  3.1.4  ",
    "nightly",
    "release candidate",
    "v",
    "",
    "1..2",
]


class TestNormalize:
    """Tests for normalize()."""

    def test_core_and_suffix(self):
        """Test that core and prerelease suffix are split."""
        v = normalize("1.4.0-rc.2")
        assert v.core == (1, 4, 0)
        assert v.suffix == "rc.2"
        assert not v.opaque
        assert v.raw == "1.4.0-rc.2"

    def test_strips_single_v_prefix(self):
        """Test that a leading v/V is stripped only before a digit."""
        assert normalize("v1.2.3").core == (1, 2, 3)
        assert normalize("V1.2.3").core == (1, 2, 3)
        assert normalize("vv1.2.3").opaque

    def test_build_metadata_ignored(self):
        """Test that +build metadata does not affect the result."""
        assert normalize("1.0.0+build.7") == normalize("1.0.0")

    def test_whitespace_trimmed(self):
        """Test that surrounding whitespace is ignored."""
        assert normalize("  3.1.4\n") == normalize("3.1.4")

    def test_dashed_date_read_as_core(self):
        """Test that purely numeric dashed tags become a dotted core."""
        v = normalize("2024-01-15")
        assert v.core == (2024, 1, 15)
        assert v.suffix is None

    def test_textual_segments_kept_as_strings(self):
        """Test that non-numeric core segments are kept lowercased."""
        v = normalize("1.2A")
        assert v.core == (1, "2a")
        assert not v.opaque

    @pytest.mark.parametrize("raw", ["nightly", "release candidate", "", "1..2", "v"])
    def test_unparsable_is_opaque(self, raw):
        """Test that unparsable input becomes an opaque token instead of raising."""
        v = normalize(raw)
        assert v.opaque
        assert v.core == ()

    def test_non_string_input_is_opaque(self):
        """Test that non-string input never raises."""
        assert normalize(None).opaque  # type: ignore[arg-type]

    @pytest.mark.parametrize("raw", SAMPLE_VERSIONS)
    def test_idempotent(self, raw):
        """Test that normalizing the canonical form yields the same result."""
        once = normalize(raw)
        assert normalize(once.raw) == once


class TestClassify:
    """Tests for classify()."""

    def test_bump_levels(self):
        """Test the first differing core position decides the level."""
        assert classify("1.2.3", "2.0.0") == BumpLevel.MAJOR
        assert classify("1.2.3", "1.3.0") == BumpLevel.MINOR
        assert classify("1.2.3", "1.2.4") == BumpLevel.PATCH
        assert classify("1.2.3.4", "1.2.3.5") == BumpLevel.PATCH

    def test_shorter_core_padded_with_zeros(self):
        """Test that 1.2 and 1.2.0 are equal."""
        assert classify("1.2", "1.2.0") == BumpLevel.EQUAL
        assert classify("1", "1.0.1") == BumpLevel.PATCH

    def test_prerelease(self):
        """Test that equal cores with different suffixes are PRERELEASE."""
        assert classify("1.0.0-beta.1", "1.0.0") == BumpLevel.PRERELEASE
        assert classify("1.0.0-beta.1", "1.0.0-beta.2") == BumpLevel.PRERELEASE

    def test_v_prefix_and_case_do_not_matter(self):
        """Test that v prefix and suffix case are normalized away."""
        assert classify("v2.0.0", "2.0.0") == BumpLevel.EQUAL
        assert classify("1.0.0-RC1", "1.0.0-rc1") == BumpLevel.EQUAL

    def test_missing_side_is_unknown(self):
        """Test that a missing version gives UNKNOWN."""
        assert classify(None, "1.0.0") == BumpLevel.UNKNOWN
        assert classify("1.0.0", None) == BumpLevel.UNKNOWN

    def test_opaque_side_is_unknown(self):
        """Test that an unparsable side gives UNKNOWN."""
        assert classify("nightly", "1.0.0") == BumpLevel.UNKNOWN
        assert classify("nightly", "weekly") == BumpLevel.UNKNOWN

    def test_identical_opaque_tokens_are_equal(self):
        """Test that the same opaque token on both sides is EQUAL."""
        assert classify("nightly", "nightly") == BumpLevel.EQUAL

    def test_opaque_tokens_compare_ignoring_case(self):
        """Test that opaque tokens differing only in case or padding are EQUAL."""
        assert classify("Nightly", "nightly") == BumpLevel.EQUAL
        assert classify(" LATEST", "latest ") == BumpLevel.EQUAL
        assert has_update("Nightly", "nightly") is False

    @pytest.mark.parametrize(
        "raw", [v for v in SAMPLE_VERSIONS if v.strip()]
    )
    def test_reflexive(self, raw):
        """Test that classify(x, x) is EQUAL."""
        assert classify(raw, raw) == BumpLevel.EQUAL

    @pytest.mark.parametrize(
        ("a", "b"),
        [
            ("1.0.0", "2.0.0"),
            ("1.2.0", "1.3.0"),
            ("1.2.3", "1.2.4"),
            ("1.0.0-rc.1", "1.0.0"),
            ("1.0.0", "nightly"),
        ],
    )
    def test_level_is_symmetric(self, a, b):
        """Test that swapping the sides keeps the level."""
        assert classify(a, b) == classify(b, a)

    def test_textual_segments_compare_as_text(self):
        """Test the lexicographic fallback for textual segments."""
        assert classify("1.2a", "1.2A") == BumpLevel.EQUAL
        assert classify("1.2a", "1.2b") == BumpLevel.MINOR


class TestHasUpdate:
    """Tests for has_update()."""

    def test_equal_is_not_update(self):
        """Test that equal versions are not an update."""
        assert has_update("v1.2.0", "1.2.0") is False

    def test_any_difference_is_update(self):
        """Test that every known bump level is an update."""
        assert has_update("1.2.0", "1.3.0") is True
        assert has_update("1.0.0-rc.1", "1.0.0") is True

    def test_unknown_is_not_update(self):
        """Test that UNKNOWN is treated conservatively."""
        assert has_update(None, "1.0.0") is False
        assert has_update("nightly", "1.0.0") is False
