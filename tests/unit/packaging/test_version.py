"""Tests for package versions and version ranges."""
from __future__ import annotations

import pytest


class TestVersion:
    def test_numeric_segments_compare_numerically(self) -> None:
        from contentpack.core.packaging import Version

        assert Version("1.10") > Version("1.9")
        assert Version("2") > Version("1.99.99")

    def test_trailing_zeros_do_not_change_ordering(self) -> None:
        """1.0 and 1.0.0 sort equal but stay textually distinct."""
        from contentpack.core.packaging import Version

        assert Version("1.0").compare(Version("1.0.0")) == 0
        assert Version("1.0") != Version("1.0.0")

    def test_qualifier_sorts_before_release(self) -> None:
        from contentpack.core.packaging import Version

        assert Version("1.0-SNAPSHOT") < Version("1.0")
        assert Version("1.0-rc1") < Version("1.0-rc2")
        assert Version("1.0-rc2") < Version("1.0.1")

    def test_empty_version(self) -> None:
        from contentpack.core.packaging import Version
        from contentpack.core.packaging.version import EMPTY

        assert Version.create(None) is EMPTY
        assert EMPTY.is_empty
        assert EMPTY < Version("0.1")
        assert str(EMPTY) == ""

    def test_segments_and_qualifier(self) -> None:
        from contentpack.core.packaging import Version

        v = Version("2.4.1-beta")
        assert v.segments == ["2", "4", "1"]
        assert v.qualifier == "beta"


class TestVersionRange:
    @pytest.mark.parametrize(
        "text,inside,outside",
        [
            ("[1.0,2.0)", ["1.0", "1.5", "1.99"], ["0.9", "2.0"]),
            ("(1.0,2.0]", ["1.0.1", "2.0"], ["1.0", "2.1"]),
            ("1.2", ["1.2", "9.0"], ["1.1"]),
            ("(,1.0]", ["0.1", "1.0"], ["1.0.1"]),
            ("[1.5]", ["1.5"], ["1.5.1", "1.4"]),
        ],
    )
    def test_membership(self, text, inside, outside) -> None:
        from contentpack.core.packaging import VersionRange

        rng = VersionRange.from_string(text)
        for v in inside:
            assert rng.is_in_range(v), f"{v} should be in {text}"
        for v in outside:
            assert v not in rng, f"{v} should not be in {text}"

    def test_empty_text_is_infinite(self) -> None:
        from contentpack.core.packaging import VersionRange
        from contentpack.core.packaging.version import INFINITE

        assert VersionRange.from_string("") is INFINITE
        assert INFINITE.is_infinite
        assert INFINITE.is_in_range("0.0.1-alpha")

    def test_inverted_bounds_raise(self) -> None:
        from contentpack.core.packaging import VersionRange

        with pytest.raises(ValueError):
            VersionRange.from_string("[2.0,1.0]")
        with pytest.raises(ValueError):
            VersionRange.from_string("(1.0,1.0]")

    def test_malformed_brackets_raise(self) -> None:
        from contentpack.core.packaging import VersionRange

        with pytest.raises(ValueError):
            VersionRange.from_string("1.0,2.0]")

    @pytest.mark.parametrize("text", ["[1.0,2.0)", "(1.0,]", "1.2", "[1.5]"])
    def test_string_form_is_stable(self, text) -> None:
        from contentpack.core.packaging import VersionRange

        assert str(VersionRange.from_string(text)) == text
