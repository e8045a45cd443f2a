import pytest

from bubbly.context import (
    ResourceContext,
    ResourceState,
    append_input_objects,
    new_resource_context,
    sub_resource_context,
)


def test_insert_wraps_value():
    state = ResourceState()
    state.insert("query", {"a": 1})
    assert state["query"] == {"value": {"a": 1}}


def test_value_with_no_path_is_copy():
    state = ResourceState()
    state.insert("x", "y")
    result = state.value_with_path(None)
    assert result == dict(state)
    result["other"] = 1
    assert "other" not in state


def test_value_with_path_nests_state():
    state = ResourceState({"x": "y"})
    result = state.value_with_path(["a", "b"])
    assert result["x"] == "y"
    assert result["b"] == {"x": "y"}
    assert result["a"]["b"] == {"x": "y"}
    assert result["a"]["x"] == "y"


def test_value_with_single_path():
    state = ResourceState()
    state.insert("t1", "out")
    result = state.value_with_path(["task"])
    assert result["task"]["t1"] == {"value": "out"}


def test_new_resource_context():
    def factory(block):
        return block

    ctx = new_resource_context({"input": {}}, factory, "auth")
    assert ctx.inputs == {"input": {}}
    assert ctx.new_resource is factory
    assert ctx.auth == "auth"
    assert ctx.state == {}
    assert ctx.data_blocks is None


def test_sub_resource_context_carries_over():
    parent = ResourceContext(
        inputs={"input": {"a": 1}},
        data_blocks=["block"],
        new_resource=len,
        auth="auth",
    )
    parent.state.insert("k", 1)
    child = sub_resource_context({"input": {"b": 2}}, parent)
    assert child.inputs == {"input": {"b": 2}}
    assert child.data_blocks == ["block"]
    assert child.new_resource is len
    assert child.auth == "auth"
    assert child.state == {}
    assert parent.state == {"k": {"value": 1}}


def test_append_input_objects_merges():
    result = append_input_objects({"a": 1, "b": 2}, {"b": 3}, {})
    assert result == {"a": 1, "b": 3}


def test_append_input_objects_empty():
    assert append_input_objects() == {}


def test_append_input_objects_rejects_non_object():
    with pytest.raises(TypeError):
        append_input_objects({"a": 1}, [1, 2])