from functools import cmp_to_key

import pytest

from eson_toolkit.core.utils import (
    MISSING,
    compare_asc,
    compare_desc,
    contains_case_insensitive,
    find_unique_name,
    json_equal,
    json_kind,
    string_convert,
    to_display_string,
    to_index,
)


class TestJsonKind:

    def test_kinds(self):
        assert json_kind([]) == "array"
        assert json_kind({}) == "object"
        assert json_kind(None) == "value"
        assert json_kind("x") == "value"

    def test_missing(self):
        assert json_kind(MISSING) is None
        assert not MISSING


class TestJsonEqual:

    def test_booleans_never_equal_numbers(self):
        assert not json_equal(True, 1)
        assert not json_equal(0, False)

    def test_numbers(self):
        assert json_equal(1, 1.0)

    def test_nested(self):
        assert json_equal({"a": [1, {"b": None}]}, {"a": [1, {"b": None}]})
        assert not json_equal({"a": [1]}, {"a": [1, 2]})
        assert not json_equal({"a": 1}, {"b": 1})


class TestDisplayString:

    def test_primitives(self):
        assert to_display_string(None) == "null"
        assert to_display_string(True) == "true"
        assert to_display_string(2.0) == "2"
        assert to_display_string(2.5) == "2.5"
        assert to_display_string("text") == "text"

    def test_contains_case_insensitive(self):
        assert contains_case_insensitive("Hello World", "lo w")
        assert contains_case_insensitive(None, "UL")
        assert not contains_case_insensitive(42, "5")


class TestFindUniqueName:

    def test_free_name_is_kept(self):
        assert find_unique_name("a", ["b"]) == "a"

    def test_copy_suffixes(self):
        assert find_unique_name("a", ["a"]) == "a (copy)"
        assert find_unique_name("a", ["a", "a (copy)"]) == "a (copy 2)"
        assert find_unique_name("a", ["a", "a (copy)", "a (copy 2)"]) == "a (copy 3)"


class TestStringConvert:

    @pytest.mark.parametrize("text, expected", [
        ("", ""),
        ("null", None),
        ("true", True),
        ("false", False),
        ("42", 42),
        ("-3", -3),
        ("2.5", 2.5),
        ("1e3", 1000.0),
        ("abc", "abc"),
        ("12abc", "12abc"),
    ])
    def test_conversion(self, text, expected):
        result = string_convert(text)
        assert result == expected
        assert type(result) is type(expected)


class TestComparators:

    def test_types_are_ranked(self):
        values = ["b", 2, None, [1], True, {"a": 1}, 1, "a"]
        ordered = sorted(values, key=cmp_to_key(compare_asc))
        assert ordered == [None, True, 1, 2, "a", "b", [1], {"a": 1}]

    def test_desc_is_reverse(self):
        assert compare_desc(1, 2) == 1
        assert compare_desc("b", "a") == -1
        assert compare_desc(3, 3) == 0


class TestToIndex:

    def test_valid_indices(self):
        assert to_index(0) == 0
        assert to_index("12") == 12

    def test_invalid_indices(self):
        assert to_index(-1) is None
        assert to_index(True) is None
        assert to_index("a") is None
        assert to_index("-") is None
        assert to_index("\u00b2") is None
        assert to_index("\u0663") is None
