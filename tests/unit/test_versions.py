"""
Tests for version comparison.
"""

import pytest

from plughost.core.versions import compare_versions, is_newer


class TestCompareVersions:
    """Test semantic version comparison."""

    @pytest.mark.parametrize(
        "v1, v2, expected",
        [
            ("1.0.0", "1.0.0", 0),
            ("1.1.0", "1.0.0", 1),
            ("0.9.0", "1.0.0", -1),
            ("1.10.0", "1.9.0", 1),
            ("1.0", "1.0.0", 0),
            ("2", "1.9.9", 1),
            ("v1.2.0", "1.2.0", 0),
        ],
    )
    def test_numeric_segments(self, v1, v2, expected):
        """Segments should compare as numbers, padding with zeros."""
        assert compare_versions(v1, v2) == expected

    def test_prerelease_sorts_before_release(self):
        """A pre-release suffix should sort before the plain release."""
        assert compare_versions("1.0.0-beta", "1.0.0") == -1
        assert compare_versions("1.0.0-beta.2", "1.0.0-beta.1") == 1
        assert compare_versions("1.0.0-alpha", "1.0.0-beta") == -1

    def test_is_newer(self):
        """is_newer() should be a strict comparison."""
        assert is_newer("1.1.0", "1.0.0")
        assert not is_newer("1.0.0", "1.0.0")
        assert not is_newer("0.9.0", "1.0.0")
