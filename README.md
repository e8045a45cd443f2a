# bubbly

`bubbly` is the core data model for resources. A resource is an extract,
transform, load, query, pipeline, criteria or run block. The package uses
only the standard library. Values are plain Python objects: dicts, lists,
strings, numbers and booleans.

## Modules

### `bubbly.context`

- `ResourceState` is a dict of values produced while a resource runs.
  - `insert(key, value)` stores `{"value": value}` under `key`.
  - `value_with_path(path)` nests the state under each element of `path`.
- `ResourceContext` is a dataclass with these fields: `inputs`,
  `data_blocks`, `state`, `new_resource` and `auth`.
- `new_resource_context(inputs, new_resource, auth)` creates a context with
  an empty state.
- `sub_resource_context(inputs, ctx)` creates a child context. It carries
  over the data blocks, the resource factory and the auth, and starts with a
  fresh state.
- `append_input_objects(*inputs)` merges mappings. When a key appears more
  than once, the later mapping wins. Anything that is not a mapping raises
  `TypeError`.

### `bubbly.inputs`

- `InputDeclaration(name, description, default, type)` declares an input. A
  default of `None` means the input has no default.
- `InputDefinition(name, value)` gives an input a value.
- `InputDefinitions` is a list of definitions. Its `value()` method returns
  `{"input": {name: value, ...}}`.
- `compare_inputs_with_decls(decls, inputs)` checks the `"input"` object in
  `inputs` against the declarations and returns `{"input": {...}}` with
  defaults filled in. It raises `InputError`, a subclass of `ValueError`, in
  two cases:
  - inputs are missing and have no default; the message lists every such
    input;
  - the inputs are not mappings.
- `merge_locals(inputs, locals_)` returns a copy of `inputs` with the local
  values stored under `"local"`.

### `bubbly.data`

- `Data` is a data block for one table. It has these fields:
  - `table_name`, `fields`, `joins`, `policy` and `ignore_nesting`;
  - `data`, which holds nested blocks.
- `Data.is_valid_resource()` is true when every field except `metadata` has
  a value.
- `DataFields` holds the named field values.
  - A value may be a plain value, a `DataRef(table_name, field)` or a
    `datetime`.
  - `to_json()` writes them as a list of `{"name": ..., "value" | "data_ref"
    | "time": ...}` entries.
- `DataBlockPolicy` is an enum with these members: `EMPTY`, `CREATE_UPDATE`
  (also named `DEFAULT`), `CREATE`, `REFERENCE` and `REFERENCE_IF_EXISTS`.
- The following functions convert between data blocks and JSON:
  - `dump_data_blocks(blocks)` and `load_data_blocks(text)` work on JSON
    text;
  - `data_from_json(obj)` and `data_fields_from_json(items)` work on parsed
    JSON.

  Data references and timestamps survive the round trip. Fields whose value
  is null are dropped when loading.

### `bubbly.types`

- `ResourceStatus` is an enum with the members `SUCCESS` and `FAILURE`.
- `ResourceOutput(status, id, error, value)` is the result of a run.
  - `output()` returns `{"id", "status", "value"}`.
  - `event_data()` returns two data blocks. The first references the
    resource in the `_resource` table. The second is an `_event` entry,
    joined to the first, that holds the status, the current UTC time and the
    error message. `event_data()` raises `ValueError` when `id` is empty.
- `CriteriaResult(result, reason)`. Its `value()` method returns
  `{"result": ..., "reason": ...}`.
- The constants `RESOURCE_TABLE_NAME`, `SCHEMA_TABLE_NAME` and
  `EVENT_TABLE_NAME` name the internal tables.

### `bubbly.table`

- `parse_type_expr(text)` reads a type expression and returns a hashable
  type value:
  - primitives: `string`, `number`, `bool`, `any` (stored as `"dynamic"`)
    and `time`;
  - collections: `list(T)`, `map(T)` and `set(T)`;
  - `object({name: T, ...})`, where `=` may be used in place of `:`;
  - `tuple([T, ...])`.

  Invalid expressions raise `TypeExprError`.
- `type_to_json(ty)` and `type_from_json(obj)` convert types to and from
  their JSON form.
- `Table`, `TableField` and `TableJoin` describe schema tables. Tables can
  nest other tables.
- `table_from_spec(spec)` and `tables_from_spec(specs)` build tables from
  dicts in which field types are written as expression strings.
- The following functions convert between tables and JSON:
  - `dump_tables(tables)` and `load_tables(text)` work on JSON text;
  - `table_from_json(obj)` builds one table from its parsed JSON form.

### `bubbly.resource`

- `ResourceKind` is an enum of the resource kinds.
- `resource_kind_priority()` returns the kinds in the order they are
  applied.
- `resource_run_kinds()` returns the kinds that start runs.
- `ResourceBlock(kind, name, api_version, metadata, spec_raw, spec_file,
  spec_range)` describes a resource.
  - `id` is `"kind/name"`.
  - `labels` returns the metadata labels.
  - `to_json()` returns the block as a dict.
  - `data()` returns a `_resource` data block.
  - When `spec_raw` is empty, the spec is read from the byte range
    `spec_range` of `spec_file`, without its enclosing braces.
- `Metadata(labels)` holds the metadata of a resource.
- `resource_block_from_json(obj)` builds a block from JSON text or a dict.
- `resource_from_data(data)` builds a block from a `_resource` data block.
  It raises `ValueError` for unknown fields or an empty spec.
- `SubResource` and `Resource` are abstract base classes for things that can
  be run.

## What this package does not do

- It has no client for a store or server. Nothing here loads data, runs
  queries or fetches resources.
- It has no concrete resource implementations, so it does not run pipelines,
  criteria or any other resource. `SubResource.run` and the `Resource`
  members are abstract.
- It does not parse resource configuration files. A resource spec is kept as
  raw text, and table specs are given as dicts.
- It has no command-line interface.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

```python
from bubbly.inputs import InputDeclaration, compare_inputs_with_decls

decls = [InputDeclaration(name="input1", default="empty")]
print(compare_inputs_with_decls(decls, {}))
# {'input': {'input1': 'empty'}}
```

```python
from bubbly.data import Data, DataFields, dump_data_blocks, load_data_blocks

blocks = [Data(table_name="release", fields=DataFields({"name": "v1.0"}))]
text = dump_data_blocks(blocks)
assert load_data_blocks(text)[0].fields.values["name"] == "v1.0"
```

```python
from bubbly.table import parse_type_expr

print(parse_type_expr("map(string)"))
# ('map', 'string')
print(parse_type_expr("object({val: string})"))
# ('object', (('val', 'string'),))
```