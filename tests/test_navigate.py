"""Tests for path navigation and search."""

import re

import pytest

from plistkit.core.errors import AccessOnNil, IndexOutOfRange, UnsupportedContainerType
from plistkit.core.navigate import find_paths, get, get_string, locate
from plistkit.core.types import Value, from_typed


@pytest.fixture
def doc():
    return from_typed(
        {
            "name": "Firefox",
            "items": [{"k": "x"}, {"k": "y", "kk": "z"}],
            "flags": {"enabled": True, "count": 3},
        }
    )


class TestLocate:
    """Test the strict walk."""

    def test_nested_lookup(self, doc):
        assert locate(doc, ["items", 1, "k"]) == Value.string("y")

    def test_empty_path_returns_root(self, doc):
        assert locate(doc, []) is doc

    def test_missing_last_key_is_none(self, doc):
        assert locate(doc, ["nope"]) is None

    def test_step_after_missing_key(self, doc):
        """Test walking on from a missing key."""
        with pytest.raises(AccessOnNil):
            locate(doc, ["nope", "deeper"])

    @pytest.mark.parametrize("index", [2, -1, "0"])
    def test_bad_index(self, doc, index):
        with pytest.raises(IndexOutOfRange):
            locate(doc, ["items", index])

    def test_step_into_scalar(self, doc):
        with pytest.raises(UnsupportedContainerType):
            locate(doc, ["name", "x"])


class TestGet:
    """Test the forgiving accessors."""

    def test_get(self, doc):
        assert get(doc, "flags", "count") == Value.integer(3)

    def test_get_failure_returns_none(self, doc, caplog):
        """Test that failures are logged, not raised."""
        assert get(doc, "items", 5) is None
        assert "IndexOutOfRange" in caplog.text

    def test_get_on_none_root(self):
        assert get(None) is None
        assert get(None, "a") is None

    def test_get_string(self, doc):
        assert get_string(doc, "flags", "enabled") == "true"
        assert get_string(doc, "flags", "count") == "3"
        assert get_string(doc, "items") == "array"
        assert get_string(doc, "missing") is None


class TestFindPaths:
    """Test partial path search."""

    def test_wildcard_then_key(self):
        """Test the wildcard array selector followed by a key pattern."""
        root = from_typed([{"k": "x"}, {"k": "y"}])
        assert find_paths(root, "*", "^k$") == [(0, "k"), (1, "k")]

    def test_key_patterns_are_searched(self, doc):
        assert find_paths(doc, "items", "*", "k") == [
            ("items", 0, "k"),
            ("items", 1, "k"),
            ("items", 1, "kk"),
        ]

    def test_index_list_and_out_of_range(self, doc):
        assert find_paths(doc, "items", [1, 9], "^k$") == [("items", 1, "k")]

    def test_single_index(self, doc):
        assert find_paths(doc, "items", 0) == [("items", 0)]

    def test_terminal_value_match(self, doc):
        """Test matching a scalar's string form with a selector left over."""
        assert find_paths(doc, "items", "*", "^k$", "^y$") == [("items", 1, "k")]

    def test_compiled_pattern(self, doc):
        assert find_paths(doc, re.compile("^fl"), "count") == [("flags", "count")]

    def test_empty_selector_matches_nothing(self, doc):
        assert find_paths(doc, "") == []
        assert find_paths(doc, None) == []

    def test_selectors_left_at_scalar(self, doc, caplog):
        assert find_paths(doc, "name", "Fire", "more") == []
        assert "not a container" in caplog.text

    def test_invalid_regex_matches_nothing(self, doc, caplog):
        assert find_paths(doc, "*") == []
        assert find_paths(doc, "items", "*", "(") == []
        assert "not a valid regular expression" in caplog.text

    def test_no_selectors(self, doc):
        assert find_paths(doc) == []
