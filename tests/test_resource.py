import json

import pytest

from bubbly.data import dump_data_blocks, load_data_blocks
from bubbly.resource import (
    Metadata,
    Resource,
    ResourceBlock,
    ResourceKind,
    SubResource,
    resource_block_from_json,
    resource_from_data,
    resource_kind_priority,
    resource_run_kinds,
)
from bubbly.types import RESOURCE_TABLE_NAME, ResourceOutput, ResourceStatus


def _block(**kwargs):
    base = dict(
        kind=ResourceKind.EXTRACT,
        name="sonarqube",
        api_version="v1",
        metadata=Metadata(labels={"env": "dev"}),
        spec_raw="input \"x\" {}",
    )
    base.update(kwargs)
    return ResourceBlock(**base)


def test_resource_kind_priority():
    assert resource_kind_priority() == [
        ResourceKind.EXTRACT,
        ResourceKind.TRANSFORM,
        ResourceKind.LOAD,
        ResourceKind.QUERY,
        ResourceKind.PIPELINE,
        ResourceKind.CRITERIA,
        ResourceKind.RUN,
    ]
    assert set(resource_kind_priority()) == set(ResourceKind)


def test_resource_run_kinds():
    assert resource_run_kinds() == [ResourceKind.RUN]


def test_id_and_str():
    block = _block()
    assert block.kind == "extract"
    assert block.id == "extract/sonarqube"
    assert str(block) == block.id


def test_labels():
    assert _block(metadata=None).labels is None
    assert _block().labels == {"env": "dev"}


def test_json_round_trip():
    block = _block()
    assert resource_block_from_json(block.to_json()) == block
    assert resource_block_from_json(json.dumps(block.to_json())) == block


def test_to_json_keys_and_null_metadata():
    obj = _block(metadata=None).to_json()
    assert set(obj) == {"kind", "name", "api_version", "metadata", "spec"}
    assert obj["metadata"] is None
    assert resource_block_from_json(obj).metadata is None


def test_to_json_without_spec_raises():
    with pytest.raises(ValueError):
        _block(spec_raw="").to_json()


def test_spec_read_from_file(tmp_path):
    text = 'resource "extract" "x" {\n  spec {a = 1}\n}\n'
    path = tmp_path / "res.bubbly"
    path.write_text(text)
    start = text.index("{a")
    end = text.index("}") + 1
    block = _block(spec_raw="", spec_file=str(path), spec_range=(start, end))
    assert block.to_json()["spec"] == "a = 1"
    assert block.spec_raw == ""
    data = block.data()
    assert block.spec_raw == "a = 1"
    assert data.fields.values["spec"] == "a = 1"


def test_spec_file_missing(tmp_path):
    block = _block(
        spec_raw="", spec_file=str(tmp_path / "missing"), spec_range=(0, 2)
    )
    with pytest.raises(ValueError):
        block.data()


def test_spec_range_out_of_bounds(tmp_path):
    path = tmp_path / "res.bubbly"
    path.write_text("{}")
    block = _block(spec_raw="", spec_file=str(path), spec_range=(0, 10))
    with pytest.raises(ValueError):
        block.to_json()


def test_data_block():
    block = _block()
    data = block.data()
    assert data.table_name == RESOURCE_TABLE_NAME
    values = data.fields.values
    assert values["id"] == block.id
    assert values["kind"] == block.kind
    assert values["name"] == block.name
    assert values["api_version"] == block.api_version
    assert values["metadata"] == {"labels": {"env": "dev"}}
    assert values["spec"] == block.spec_raw
    assert data.is_valid_resource()


def test_data_block_without_metadata():
    assert _block(metadata=None).data().fields.values["metadata"] == {}


def test_resource_from_data_round_trip():
    block = _block()
    assert resource_from_data(block.data()) == block


def test_resource_from_data_through_json():
    block = _block()
    [data] = load_data_blocks(dump_data_blocks([block.data()]))
    assert resource_from_data(data) == block


def test_resource_from_data_unknown_field():
    data = _block().data()
    data.fields.values["colour"] = "blue"
    with pytest.raises(ValueError, match="unknown resource data field"):
        resource_from_data(data)


def test_resource_from_data_empty_spec():
    data = _block().data()
    data.fields.values["spec"] = ""
    with pytest.raises(ValueError, match="resource raw spec is empty"):
        resource_from_data(data)


def test_resource_from_data_non_string_kind():
    data = _block().data()
    data.fields.values["kind"] = 3
    with pytest.raises(ValueError):
        resource_from_data(data)


def test_resource_from_data_ignores_id():
    data = _block().data()
    data.fields.values["id"] = "something/else"
    assert resource_from_data(data).id == _block().id


def test_resource_block_from_json_rejects_non_object():
    with pytest.raises(ValueError):
        resource_block_from_json("[1, 2]")


def test_sub_resource_requires_run():
    expected = ResourceOutput(id="task/x", status=ResourceStatus.SUCCESS)

    class Incomplete(SubResource):
        pass

    class Complete(SubResource):
        def run(self, bctx, ctx):
            return expected

    with pytest.raises(TypeError):
        Incomplete()

    output = Complete().run(None, None)
    assert output is expected
    assert output.id == "task/x"
    assert output.status is ResourceStatus.SUCCESS


class _Dummy(Resource):
    def __init__(self, block):
        self._block = block

    @property
    def name(self):
        return self._block.name

    @property
    def kind(self):
        return ResourceKind(self._block.kind)

    @property
    def api_version(self):
        return self._block.api_version

    def data(self):
        return self._block.data()

    def run(self, bctx, ctx):
        return ResourceOutput(id=self.id, status=ResourceStatus.SUCCESS)


def test_resource_subclass():
    block = _block()
    res = _Dummy(block)
    assert res.id == block.id
    assert str(res) == block.id
    output = res.run(None, None)
    assert output.id == block.id
    assert output.status is ResourceStatus.SUCCESS
    assert resource_from_data(res.data()) == block


def test_resource_requires_data():
    class NoData(Resource):
        name = "n"
        kind = ResourceKind.LOAD
        api_version = "v1"

        def run(self, bctx, ctx):
            return ResourceOutput(status=ResourceStatus.SUCCESS)

    class WithData(NoData):
        def data(self):
            return _block().data()

    with pytest.raises(TypeError):
        NoData()

    assert resource_from_data(WithData().data()) == _block()