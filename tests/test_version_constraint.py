"""
Tests for version parsing and numeric comparison.
"""

import pytest

from devbox.core.services.host_setup.domain.version_constraint import (
    compare_versions,
    highest_version,
    parse_version,
    series_at_least,
    series_of,
)


class TestParseVersion:
    def test_full(self):
        assert parse_version("6.4.3") == (6, 4, 3)

    def test_missing_patch_is_zero(self):
        assert parse_version("7.0") == (7, 0, 0)

    def test_leading_v_and_suffix(self):
        assert parse_version("v6.2.1-rc1") == (6, 2, 1)

    @pytest.mark.parametrize("garbage", ["", "latest", "six.four", "6", "abc1.2"])
    def test_unparseable(self, garbage):
        assert parse_version(garbage) is None


class TestSeries:
    def test_series_of(self):
        assert series_of("6.4.3") == "6.4"
        assert series_of("7.0") == "7.0"

    def test_series_of_garbage(self):
        assert series_of("latest") is None

    def test_at_least_same_series(self):
        assert series_at_least("6.4.0", "6.4")
        assert series_at_least("6.4.3", "6.4")

    def test_below_floor(self):
        assert not series_at_least("6.0", "6.4")
        assert not series_at_least("6.3.9", "6.4")

    def test_numeric_not_lexicographic(self):
        # "6.10" < "6.4" as strings, but it is the newer series
        assert series_at_least("6.10", "6.4")

    def test_garbage_never_satisfies(self):
        assert not series_at_least("latest", "6.4")
        assert not series_at_least("6.4", "nope")


class TestCompare:
    def test_ordering(self):
        assert compare_versions("6.4.3", "6.4.1") == 1
        assert compare_versions("6.4", "6.4.0") == 0
        assert compare_versions("6.9", "6.10") == -1

    def test_unparseable_raises(self):
        with pytest.raises(ValueError):
            compare_versions("6.4", "latest")


class TestHighest:
    def test_picks_numeric_max(self):
        assert highest_version(["6.2.4", "6.10", "6.4.3", "latest"]) == "6.10"

    def test_empty(self):
        assert highest_version([]) is None
        assert highest_version(["latest", "misc"]) is None
