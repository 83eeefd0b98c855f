# ============================================================================
# JSON NAVIGATOR TESTS
# ============================================================================
# STATUS: Tests - Payload coercion, unwrapping and navigation
# PURPOSE: Verify JsonNavigator behaviour on wrapped and nested payloads
# CREATED: 17 OCT 2026
# ============================================================================
"""
JSON Navigator Tests

Covers:
1. coerce() across input shapes (text, bytes, trees, TypedValue, objects)
2. unwrap() of base64 / embedded JSON up to the depth limit
3. find_path() through objects, arrays and embedded strings
4. find_deep() breadth-first search

Run with:
    pytest tests/test_json_navigator.py -v
"""

import base64
import json
from collections import OrderedDict

import pytest

from core.contracts import ValueKind
from core.models import TypedValue
from core.serialization import SerializationConfig
from handlers.helpers.json_navigator import JsonNavigator, NotJsonError, PathNotFoundError


def b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def wrap(tree, layers: int) -> str:
    """Base64 of JSON, then `layers - 1` more layers of base64-of-JSON-string."""
    value = b64(json.dumps(tree))
    for _ in range(layers - 1):
        value = b64(json.dumps(value))
    return value


@pytest.fixture
def navigator():
    return JsonNavigator(SerializationConfig())


# ============================================================================
# COERCE
# ============================================================================

class TestCoerce:
    """Tests for JsonNavigator.coerce."""

    def test_json_text_round_trips_unchanged(self, navigator):
        text = '{"a":[1,2,{"b":"x"}],"c":null,"d":"ž"}'
        assert navigator.dumps(navigator.coerce(text)) == text

    def test_base64_json_text(self, navigator):
        assert navigator.coerce(b64('{"a":1}')) == {"a": 1}

    def test_embedded_json_string_is_unwrapped(self, navigator):
        inner = json.dumps({"k": "v"})
        assert navigator.coerce(json.dumps(inner)) == {"k": "v"}

    def test_bytes(self, navigator):
        assert navigator.coerce(b'{"n": 5}') == {"n": 5}

    def test_invalid_bytes(self, navigator):
        with pytest.raises(NotJsonError):
            navigator.coerce(b"\xff\xfe")

    def test_tree_passthrough(self, navigator):
        assert navigator.coerce({"a": [1, 2]}) == {"a": [1, 2]}
        assert navigator.coerce([1, "x"]) == [1, "x"]

    def test_mapping_is_normalized(self, navigator):
        assert navigator.coerce(OrderedDict([("b", 2), ("a", 1)])) == {"b": 2, "a": 1}

    def test_typed_value_json(self, navigator):
        value = TypedValue(ValueKind.JSON, {"payload": {"x": 1}})
        assert navigator.coerce(value) == {"payload": {"x": 1}}

    def test_typed_value_string_is_parsed(self, navigator):
        assert navigator.coerce(TypedValue.text('{"x": 1}')) == {"x": 1}

    def test_none_is_not_json(self, navigator):
        with pytest.raises(NotJsonError):
            navigator.coerce(None)
        with pytest.raises(NotJsonError):
            navigator.coerce(TypedValue(ValueKind.NULL))

    def test_plain_text_is_not_json(self, navigator):
        with pytest.raises(NotJsonError):
            navigator.coerce("hello world")

    def test_opaque_object_uses_text_form(self, navigator):
        class Payload:
            def __str__(self):
                return '{"from": "str"}'

        assert navigator.coerce(Payload()) == {"from": "str"}

    def test_opaque_object_with_non_json_text(self, navigator):
        with pytest.raises(NotJsonError):
            navigator.coerce(object())


# ============================================================================
# UNWRAP
# ============================================================================

class TestUnwrap:
    """Tests for JsonNavigator.unwrap."""

    def test_non_string_untouched(self, navigator):
        assert navigator.unwrap({"a": 1}) == {"a": 1}
        assert navigator.unwrap(3) == 3

    def test_plain_string_stays(self, navigator):
        assert navigator.unwrap("not json") == "not json"

    def test_nesting_up_to_max_depth_fully_unwraps(self, navigator):
        tree = {"deep": True}
        assert navigator.unwrap(wrap(tree, 8)) == tree

    def test_nesting_beyond_max_depth_stays_wrapped(self, navigator):
        tree = {"deep": True}
        partial = navigator.unwrap(wrap(tree, 9))
        assert isinstance(partial, str)
        assert navigator.unwrap(partial) == tree

    def test_explicit_depth(self, navigator):
        tree = {"a": 1}
        assert isinstance(navigator.unwrap(wrap(tree, 3), max_depth=2), str)
        assert navigator.unwrap(wrap(tree, 3), max_depth=3) == tree

    def test_length_not_multiple_of_four_is_not_base64(self, navigator):
        # "abc" would decode with padding; without it, it is plain text
        assert navigator.unwrap("abc") == "abc"


# ============================================================================
# FIND PATH
# ============================================================================

class TestFindPath:
    """Tests for JsonNavigator.find_path / navigate / lookup."""

    def test_nested_objects(self, navigator):
        assert navigator.find_path({"a": {"b": {"c": 42}}}, ["a", "b", "c"]) == 42

    def test_missing_segment(self, navigator):
        with pytest.raises(PathNotFoundError):
            navigator.find_path({"a": {"b": {"c": 42}}}, ["a", "x"])

    def test_empty_path_returns_tree(self, navigator):
        assert navigator.find_path({"a": 1}, []) == {"a": 1}

    def test_hop_through_embedded_json(self, navigator):
        tree = {"payload": json.dumps({"inputPayload": {"data": {"x": 1}}})}
        assert navigator.find_path(tree, ["payload", "inputPayload", "data"]) == {"x": 1}

    def test_hop_through_base64(self, navigator):
        tree = {"payload": b64(json.dumps({"inputPayload": {"data": [1, 2]}}))}
        assert navigator.find_path(tree, "payload.inputPayload.data") == [1, 2]

    def test_array_first_element_with_key(self, navigator):
        tree = {"items": [{"a": 1}, {"b": 2}, {"b": 3}]}
        assert navigator.find_path(tree, ["items", "b"]) == 2

    def test_digit_segment_is_not_a_position(self, navigator):
        tree = {"items": [{"a": 1}, {"a": 2}]}
        with pytest.raises(PathNotFoundError):
            navigator.find_path(tree, "items.0.a")
        with pytest.raises(PathNotFoundError):
            navigator.find_path({"items": [1, 2]}, ["items", 0])

    def test_digit_segment_matches_element_key(self, navigator):
        tree = {"items": [{"a": 1}, {"0": "zero"}]}
        assert navigator.find_path(tree, "items.0") == "zero"

    def test_scalar_is_dead_end(self, navigator):
        with pytest.raises(PathNotFoundError):
            navigator.find_path({"a": 5}, ["a", "b"])

    def test_navigate_from_text(self, navigator):
        text = json.dumps({"payload": {"inputPayload": {"data": {"id": 9}}}})
        assert navigator.navigate(text, ["payload", "inputPayload", "data"]) == {"id": 9}

    def test_navigate_non_json(self, navigator):
        with pytest.raises(PathNotFoundError):
            navigator.navigate("plain text", ["a"])

    def test_lookup_default(self, navigator):
        assert navigator.lookup({"a": 1}, "b", default="none") == "none"
        assert navigator.lookup(None, "a") is None
        assert navigator.lookup({"a": {"b": 2}}, "a.b") == 2

    def test_split_path(self):
        assert JsonNavigator.split_path("a.b.0") == ["a", "b", "0"]
        assert JsonNavigator.split_path(["a", 1]) == ["a", "1"]
        assert JsonNavigator.split_path("") == []


# ============================================================================
# FIND DEEP
# ============================================================================

class TestFindDeep:
    """Tests for JsonNavigator.find_deep."""

    def test_breadth_first_prefers_shallow_match(self, navigator):
        tree = {"outer": {"inner": {"target": 5}}, "target": 1}
        assert navigator.find_deep(tree, "target") == 1

    def test_object_before_deeper_array_items(self, navigator):
        tree = {"a": {"target": "level-1"}, "b": [{"target": "level-2"}]}
        assert navigator.find_deep(tree, "target") == "level-1"

    def test_searches_inside_arrays(self, navigator):
        tree = {"list": [{"x": 1}, {"target": "found"}]}
        assert navigator.find_deep(tree, "target") == "found"

    def test_searches_embedded_strings(self, navigator):
        tree = {"wrapped": json.dumps({"target": 3})}
        assert navigator.find_deep(tree, "target") == 3

    def test_match_value_is_unwrapped(self, navigator):
        tree = {"target": json.dumps({"a": 1})}
        assert navigator.find_deep(tree, "target") == {"a": 1}

    def test_case_insensitive(self, navigator):
        tree = {"Data": {"ID": 7}}
        assert navigator.find_deep(tree, "id", case_insensitive=True) == 7
        with pytest.raises(PathNotFoundError):
            navigator.find_deep(tree, "id")

    def test_max_depth(self, navigator):
        tree = {"a": {"b": {"c": {"target": 1}}}}
        with pytest.raises(PathNotFoundError):
            navigator.find_deep(tree, "target", max_depth=2)
        assert navigator.find_deep(tree, "target", max_depth=3) == 1

    def test_not_found(self, navigator):
        with pytest.raises(PathNotFoundError):
            navigator.find_deep({"a": [1, 2, "x"]}, "missing")
