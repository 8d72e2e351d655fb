import copy
import logging

import pytest

from eson_toolkit.core.exceptions import (
    MissingFromFieldError,
    PatchError,
    PathNotFoundError,
    TestFailedError,
    TestFailureReason,
    UnknownPatchOpError,
)
from eson_toolkit.core.patch import immutable_json_patch


class TestAdd:

    def test_append_sentinel(self):
        result = immutable_json_patch({"arr": [1, 2, 3]}, [{"op": "add", "path": "/arr/-", "value": 4}])

        assert result.success
        assert result.json == {"arr": [1, 2, 3, 4]}
        assert result.revert == [{"op": "remove", "path": "/arr/3"}]

    def test_insert_in_array(self):
        result = immutable_json_patch([1, 3], [{"op": "add", "path": "/1", "value": 2}])
        assert result.json == [1, 2, 3]
        assert result.revert == [{"op": "remove", "path": "/1"}]

    def test_new_property(self):
        result = immutable_json_patch({"a": 1}, [{"op": "add", "path": "/b", "value": 2}])
        assert result.json == {"a": 1, "b": 2}
        assert result.revert == [{"op": "remove", "path": "/b"}]

    def test_existing_property_is_replaced(self):
        result = immutable_json_patch({"a": 1}, [{"op": "add", "path": "/a", "value": 2}])
        assert result.json == {"a": 2}
        assert result.revert == [{"op": "replace", "path": "/a", "value": 1}]

    def test_meta_before_positions_property(self):
        result = immutable_json_patch(
            {"a": 1, "c": 3},
            [{"op": "add", "path": "/b", "value": 2, "meta": {"before": "c"}}],
        )
        assert list(result.json) == ["a", "b", "c"]

    def test_index_out_of_range(self):
        result = immutable_json_patch([1], [{"op": "add", "path": "/5", "value": 2}])
        assert isinstance(result.error, PathNotFoundError)

    def test_missing_parent(self):
        result = immutable_json_patch({}, [{"op": "add", "path": "/a/b", "value": 2}])
        assert isinstance(result.error, PathNotFoundError)

    def test_missing_value(self):
        result = immutable_json_patch({}, [{"op": "add", "path": "/a"}])
        assert type(result.error) is PatchError

    def test_root_is_rejected(self):
        result = immutable_json_patch({}, [{"op": "add", "path": "", "value": 1}])
        assert isinstance(result.error, PathNotFoundError)


class TestRemove:

    def test_remove_property(self):
        result = immutable_json_patch({"a": 1, "b": 2}, [{"op": "remove", "path": "/a"}])
        assert result.json == {"b": 2}
        assert result.revert == [{"op": "add", "path": "/a", "value": 1}]

    def test_remove_array_item(self):
        result = immutable_json_patch({"arr": [1, 2, 3]}, [{"op": "remove", "path": "/arr/1"}])
        assert result.json == {"arr": [1, 3]}
        assert result.revert == [{"op": "add", "path": "/arr/1", "value": 2}]

    def test_missing_path(self):
        result = immutable_json_patch({"a": 1}, [{"op": "remove", "path": "/b"}])
        assert isinstance(result.error, PathNotFoundError)
        assert result.error.operation == {"op": "remove", "path": "/b"}

    @pytest.mark.parametrize("key", ["x", "²", "٣"])
    def test_non_index_key_on_array(self, key):
        document = {"arr": [1, 2]}
        result = immutable_json_patch(document, [{"op": "remove", "path": "/arr/" + key}])
        assert result.json is document
        assert result.revert == []
        assert isinstance(result.error, PathNotFoundError)


class TestReplace:

    def test_replace_value(self):
        result = immutable_json_patch({"a": {"b": 1}}, [{"op": "replace", "path": "/a/b", "value": [2]}])
        assert result.json == {"a": {"b": [2]}}
        assert result.revert == [{"op": "replace", "path": "/a/b", "value": 1}]

    def test_replace_root(self):
        result = immutable_json_patch(1, [{"op": "replace", "path": "", "value": 2}])
        assert result.json == 2
        assert result.revert == [{"op": "replace", "path": "", "value": 1}]

    def test_missing_path(self):
        result = immutable_json_patch({}, [{"op": "replace", "path": "/a", "value": 2}])
        assert isinstance(result.error, PathNotFoundError)


class TestCopy:

    def test_copy(self):
        result = immutable_json_patch({"a": {"x": 1}}, [{"op": "copy", "from": "/a", "path": "/b"}])
        assert result.json == {"a": {"x": 1}, "b": {"x": 1}}
        assert result.revert == [{"op": "remove", "path": "/b"}]

    def test_copy_into_array(self):
        result = immutable_json_patch([1, 2], [{"op": "copy", "from": "/0", "path": "/-"}])
        assert result.json == [1, 2, 1]
        assert result.revert == [{"op": "remove", "path": "/2"}]

    def test_missing_from(self):
        result = immutable_json_patch({"a": 1}, [{"op": "copy", "path": "/b"}])
        assert isinstance(result.error, MissingFromFieldError)


class TestMove:

    def test_move_with_collision(self):
        result = immutable_json_patch({"a": 2, "b": 3}, [{"op": "move", "from": "/a", "path": "/b"}])

        assert result.json == {"b": 2}
        assert result.revert == [
            {"op": "move", "from": "/b", "path": "/a"},
            {"op": "add", "path": "/b", "value": 3},
        ]

    def test_rename(self):
        result = immutable_json_patch({"a": 1, "b": 2}, [{"op": "move", "from": "/a", "path": "/c"}])
        assert result.json == {"b": 2, "c": 1}
        assert result.revert == [{"op": "move", "from": "/c", "path": "/a"}]

    def test_move_in_array(self):
        result = immutable_json_patch([1, 2, 3], [{"op": "move", "from": "/0", "path": "/2"}])
        assert result.json == [2, 3, 1]
        assert result.revert == [{"op": "move", "from": "/2", "path": "/0"}]

    def test_move_with_meta_before(self):
        result = immutable_json_patch(
            {"a": 1, "b": 2, "c": 3},
            [{"op": "move", "from": "/c", "path": "/c", "meta": {"before": "a"}}],
        )
        assert list(result.json) == ["c", "a", "b"]

    def test_missing_from(self):
        result = immutable_json_patch({"a": 1}, [{"op": "move", "path": "/b"}])
        assert isinstance(result.error, MissingFromFieldError)

    def test_missing_source(self):
        result = immutable_json_patch({"a": 1}, [{"op": "move", "from": "/x", "path": "/b"}])
        assert isinstance(result.error, PathNotFoundError)


class TestTestOperation:

    def test_passing_test_changes_nothing(self):
        data = {"a": [1, {"b": None}]}
        result = immutable_json_patch(data, [{"op": "test", "path": "/a", "value": [1, {"b": None}]}])
        assert result.success
        assert result.json is data
        assert result.revert == []

    def test_failing_test_aborts_batch(self):
        data = {"a": 1, "b": 2}
        result = immutable_json_patch(data, [
            {"op": "replace", "path": "/a", "value": 5},
            {"op": "test", "path": "/b", "value": 99},
        ])

        assert result.json is data
        assert result.revert == []
        assert isinstance(result.error, TestFailedError)
        assert result.error.reason is TestFailureReason.VALUE_MISMATCH
        assert str(result.error) == "Test failed, value differs"
        assert result.error.operation == {"op": "test", "path": "/b", "value": 99}

    def test_boolean_does_not_equal_number(self):
        result = immutable_json_patch({"a": True}, [{"op": "test", "path": "/a", "value": 1}])
        assert isinstance(result.error, TestFailedError)

    def test_no_value(self):
        result = immutable_json_patch({"a": 1}, [{"op": "test", "path": "/a"}])
        assert result.error.reason is TestFailureReason.NO_VALUE_PROVIDED

    def test_path_not_found(self):
        result = immutable_json_patch({"a": 1}, [{"op": "test", "path": "/x", "value": 1}])
        assert result.error.reason is TestFailureReason.PATH_NOT_FOUND


class TestBatch:

    def test_unknown_op(self):
        result = immutable_json_patch({}, [{"op": "merge", "path": "/a"}])
        assert isinstance(result.error, UnknownPatchOpError)
        assert result.error.operation == {"op": "merge", "path": "/a"}

    def test_operation_must_be_mapping(self):
        result = immutable_json_patch({}, ["add"])
        assert isinstance(result.error, UnknownPatchOpError)

    def test_missing_path_field(self):
        result = immutable_json_patch({}, [{"op": "remove"}])
        assert isinstance(result.error, PathNotFoundError)

    def test_input_is_not_mutated(self):
        data = {"arr": [1, 2, 3], "obj": {"a": 1}}
        snapshot = copy.deepcopy(data)

        immutable_json_patch(data, [
            {"op": "remove", "path": "/arr/0"},
            {"op": "add", "path": "/obj/b", "value": 2},
            {"op": "move", "from": "/obj/a", "path": "/moved"},
        ])
        assert data == snapshot

    def test_revert_restores_original(self):
        data = {"arr": [1, 2, 3], "obj": {"a": 1, "b": 2}, "str": "x"}
        operations = [
            {"op": "add", "path": "/arr/1", "value": 10},
            {"op": "remove", "path": "/obj/a"},
            {"op": "replace", "path": "/str", "value": "y"},
            {"op": "copy", "from": "/obj", "path": "/copy"},
            {"op": "move", "from": "/arr/0", "path": "/obj/first"},
            {"op": "move", "from": "/copy", "path": "/str"},
        ]
        result = immutable_json_patch(data, operations)
        assert result.success

        reverted = immutable_json_patch(result.json, result.revert)
        assert reverted.success
        assert reverted.json == data

    def test_unchanged_siblings_are_shared(self):
        data = {"a": {"x": 1}, "b": {"y": 2}}
        result = immutable_json_patch(data, [{"op": "replace", "path": "/a/x", "value": 5}])
        assert result.json["b"] is data["b"]

    def test_abort_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="eson_toolkit.core.patch"):
            immutable_json_patch({}, [{"op": "remove", "path": "/a"}])
        assert "JSONPatch cancelled" in caplog.text
