import pytest

from eson_toolkit.config import ConfigManager
from eson_toolkit.core import actions
from eson_toolkit.core.exceptions import PathNotFoundError
from eson_toolkit.core.models import SearchMatch, Selection, SelectionFlag
from eson_toolkit.core.services import EditorService


@pytest.fixture
def editor(person_document, id_generator):
    return EditorService(person_document, id_generator=id_generator)


def _age_validator(json):
    if isinstance(json, dict) and not isinstance(json.get("age"), int):
        return [{"dataPath": "/age", "keyword": "type", "message": "should be integer"}]
    return []


class TestDocument:

    def test_get(self, editor, person_document):
        assert editor.get() == person_document
        assert editor.tree.kind == "object"
        assert list(editor.tree.props) == ["name", "age", "address"]

    def test_set_clears_history(self, editor):
        editor.patch([{"op": "replace", "path": "/name", "value": "Jane"}])
        editor.set({"x": 1})

        assert editor.get() == {"x": 1}
        assert not editor.can_undo()

    def test_set_keeps_expanded_state(self, editor, person_document):
        editor.expand("/address")
        editor.set(dict(person_document, address={"city": "Delft", "zip": "2611"}))
        assert editor.is_expanded("/address")

    def test_text(self, editor):
        editor.set_text('{"x": [1]}')
        assert editor.get() == {"x": [1]}
        assert editor.get_text(indent=None) == '{"x": [1]}'

    def test_invalid_text(self, editor):
        with pytest.raises(ValueError):
            editor.set_text("{not json")

    def test_exists(self, editor):
        assert editor.exists("/address/city")
        assert editor.exists(["address", "zip"])
        assert not editor.exists("/address/street")


class TestPatch:

    def test_patch_and_undo_redo(self, editor):
        result = editor.patch([{"op": "replace", "path": "/name", "value": "Jane"}])

        assert result.success
        assert result.json["name"] == "Jane"
        assert result.revert == [{"op": "replace", "path": "/name", "value": "John", "meta": {"kind": "value"}}]
        assert editor.get()["name"] == "Jane"
        assert editor.tree.props["name"].value == "Jane"

        assert editor.can_undo() and not editor.can_redo()
        assert editor.undo()
        assert editor.get()["name"] == "John"
        assert editor.tree.props["name"].value == "John"

        assert editor.can_redo()
        assert editor.redo()
        assert editor.get()["name"] == "Jane"

    def test_failed_patch_changes_nothing(self, editor, person_document):
        tree = editor.tree
        result = editor.patch([
            {"op": "replace", "path": "/name", "value": "Jane"},
            {"op": "remove", "path": "/nope"},
        ])

        assert not result.success
        assert isinstance(result.error, PathNotFoundError)
        assert result.revert == []
        assert editor.get() == person_document
        assert editor.tree is tree
        assert not editor.can_undo()

    def test_operations_must_be_a_list(self, editor):
        with pytest.raises(TypeError):
            editor.patch({"op": "remove", "path": "/name"})

    def test_undo_without_history(self, editor):
        assert not editor.undo()
        assert not editor.redo()

    def test_several_undo_redo_steps(self, id_generator):
        editor = EditorService({"n": 0}, id_generator=id_generator)
        for n in range(1, 4):
            editor.patch([{"op": "replace", "path": "/n", "value": n}])

        while editor.undo():
            pass
        assert editor.get() == {"n": 0}

        while editor.redo():
            pass
        assert editor.get() == {"n": 3}

    def test_undo_rename_restores_order(self, id_generator):
        editor = EditorService({"a": 1, "b": 2, "c": 3}, id_generator=id_generator)
        original_id = editor.tree.props["a"].id

        editor.patch(actions.change_property(editor.tree, [], "a", "x"))
        assert list(editor.get()) == ["x", "b", "c"]
        assert editor.tree.props["x"].id == original_id

        editor.undo()
        assert list(editor.get()) == ["a", "b", "c"]
        assert list(editor.tree.props) == ["a", "b", "c"]
        assert editor.tree.props["a"].id == original_id

    def test_undo_remove_restores_order(self, id_generator):
        editor = EditorService({"a": 1, "b": 2, "c": 3}, id_generator=id_generator)
        editor.patch(actions.remove(["b"]))
        editor.undo()
        assert list(editor.get().items()) == [("a", 1), ("b", 2), ("c", 3)]

    def test_undo_sort(self, id_generator):
        editor = EditorService({"arr": [3, 1, 2]}, id_generator=id_generator)
        editor.patch(actions.sort(editor.tree, ["arr"]))
        assert editor.get() == {"arr": [1, 2, 3]}

        editor.undo()
        assert editor.get() == {"arr": [3, 1, 2]}

    def test_history_disabled(self, person_document, id_generator):
        editor = EditorService(person_document, history=False, id_generator=id_generator)
        editor.patch([{"op": "remove", "path": "/age"}])
        assert not editor.can_undo()

    def test_patch_keeps_expanded_state(self, editor):
        editor.expand("/address")
        editor.patch([{"op": "replace", "path": "/address/city", "value": "Delft"}])
        assert editor.is_expanded("/address")


class TestExpand:

    @pytest.fixture
    def editor(self, id_generator):
        return EditorService({"a": {"b": {"c": 1}}, "d": []}, id_generator=id_generator)

    def test_expand_path_and_parents(self, editor):
        editor.expand("/a/b")
        assert editor.is_expanded("")
        assert editor.is_expanded("/a")
        assert editor.is_expanded("/a/b")
        assert not editor.is_expanded("/d")

    def test_collapse_single_node(self, editor):
        editor.expand("/a/b")
        editor.collapse("/a")
        assert not editor.is_expanded("/a")
        assert editor.is_expanded("/a/b")

    def test_predicates(self, editor):
        editor.expand(lambda path: True)
        assert all(editor.is_expanded(p) for p in ("", "/a", "/a/b", "/d"))

        editor.collapse(lambda path: len(path) > 0)
        assert editor.is_expanded("")
        assert not editor.is_expanded("/a")
        assert not editor.is_expanded("/a/b")

    def test_values_are_never_expanded(self, editor):
        editor.expand("/a/b/c")
        assert not editor.is_expanded("/a/b/c")

    @pytest.mark.parametrize("path", ["/x", "/a/b/c/d", "/d/0"])
    def test_missing_path_is_ignored(self, editor, path):
        tree = editor.tree
        editor.expand(path)
        editor.collapse(path)
        assert editor.tree is tree


class TestSearch:

    def test_search_expands_to_active_match(self, sample_document, id_generator):
        editor = EditorService(sample_document, id_generator=id_generator)
        result = editor.search("last")

        assert result.matches == [SearchMatch(("obj", "arr", 2, "last"), "property")]
        assert result.tree is editor.tree
        assert editor.is_expanded("/obj")
        assert editor.is_expanded("/obj/arr")
        assert editor.is_expanded("/obj/arr/2")

    def test_next_and_previous(self, sample_document, id_generator):
        editor = EditorService(sample_document, id_generator=id_generator)
        editor.search("L")

        assert editor.next_result().active == SearchMatch(("bool",), "value")
        assert editor.previous_result().active == SearchMatch(("bool",), "property")
        assert editor.previous_result().active == SearchMatch(("str",), "value")
        assert editor.tree.props["str"].search_value == "active"

    def test_navigation_without_search(self, editor):
        assert editor.next_result() is None
        assert editor.previous_result() is None

    def test_search_is_refreshed_after_patch(self, editor):
        assert editor.search("jane").matches == []

        editor.patch([{"op": "replace", "path": "/name", "value": "Jane"}])

        assert editor.search_result.matches == [SearchMatch(("name",), "value")]
        assert editor.tree.props["name"].search_value == "active"


class TestSelection:

    @pytest.fixture
    def editor(self, id_generator):
        return EditorService({"arr": [1, 2, 3]}, id_generator=id_generator)

    def test_select_range(self, editor):
        editor.select(Selection(start=["arr", 0], end=["arr", 1]))
        items = editor.tree.props["arr"].items

        assert items[0].selection & SelectionFlag.SELECTED
        assert items[1].selection & SelectionFlag.LAST
        assert items[2].selection == SelectionFlag.NONE

        editor.select(None)
        assert editor.tree.props["arr"].items[0].selection == SelectionFlag.NONE

    def test_invalid_selection_is_dropped(self, editor):
        editor.select(Selection(start=["nope"], end=["nope"]))
        assert editor.selection is None

    def test_selection_follows_history(self, editor):
        before = Selection(start=["arr", 0], end=["arr", 0])
        after = Selection(after=["arr", 1])
        editor.select(before)

        editor.patch(actions.insert_after(editor.tree, ["arr", 0], [{"value": 9}]), selection_after=after)
        assert editor.selection == after
        assert editor.tree.props["arr"].items[1].selection == SelectionFlag.AFTER

        editor.undo()
        assert editor.selection == before
        assert editor.tree.props["arr"].items[0].selection & SelectionFlag.SELECTED

    def test_duplicate_selection(self, editor):
        selection = Selection(start=["arr", 1], end=["arr", 2])
        editor.select(selection)
        editor.patch(actions.duplicate(editor.tree, editor.selection))
        assert editor.get() == {"arr": [1, 2, 3, 2, 3]}


class TestErrors:

    def test_validator_runs_after_each_change(self, id_generator):
        editor = EditorService({"age": "old"}, id_generator=id_generator, validator=_age_validator)

        assert editor.errors == [{"dataPath": "/age", "keyword": "type", "message": "should be integer"}]
        assert editor.tree.props["age"].error["message"] == "should be integer"

        editor.patch([{"op": "replace", "path": "/age", "value": 3}])
        assert editor.errors == []
        assert editor.tree.props["age"].error is None

        editor.undo()
        assert editor.tree.props["age"].error is not None

    def test_set_errors(self, editor):
        editor.set_errors([{"dataPath": "/name", "message": "bad name"}])
        assert editor.tree.props["name"].error == {"dataPath": "/name", "message": "bad name"}

        editor.set_errors([{"dataPath": "/age", "message": "bad age"}])
        assert editor.tree.props["name"].error is None
        assert editor.tree.props["age"].error["message"] == "bad age"

        editor.set_errors([])
        assert editor.tree.props["age"].error is None

    def test_errors_survive_patches(self, editor):
        editor.set_errors([{"dataPath": "/age", "message": "bad age"}])
        editor.patch([{"op": "replace", "path": "/name", "value": "Jane"}])
        assert editor.tree.props["age"].error["message"] == "bad age"

    def test_errors_are_enriched(self, editor):
        editor.set_errors([{"dataPath": "", "keyword": "additionalProperties", "message": "",
                            "params": {"additionalProperty": "foo"}}])
        assert editor.errors[0]["message"] == "should NOT have additional property: foo"

    def test_errors_are_limited(self, editor):
        editor.set_errors([{"dataPath": "/name", "message": str(i)} for i in range(35)])
        errors = editor.errors
        assert len(errors) == 31
        assert errors[-1] == "(5 more errors...)"


class TestConfiguration:

    def test_defaults_from_config(self, editor):
        assert editor.history.max_history == 1000

    def test_config_overrides(self, isolated_config):
        (isolated_config / "editor.yml").write_text("max_history_items: 2\nid_generator: uuid\n", encoding="utf-8")
        ConfigManager.reset()

        editor = EditorService({"a": 1})
        assert editor.history.max_history == 2
        assert str(editor.tree.id).startswith("node-")

    def test_explicit_max_history(self, person_document):
        assert EditorService(person_document, max_history=5).history.max_history == 5
