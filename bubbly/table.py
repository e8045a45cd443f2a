"""Schema tables: fields, joins, type expressions and their JSON form.

Types are plain hashable values. A primitive is one of the strings
``"string"``, ``"number"``, ``"bool"``, ``"dynamic"`` or ``"time"``. A
collection is ``("list", T)``, ``("map", T)`` or ``("set", T)``. An object
is ``("object", ((name, T), ...))`` with names sorted, and a tuple is
``("tuple", (T, ...))``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

TIME_TYPE = "time"
DYNAMIC_TYPE = "dynamic"

_PRIMITIVE_KEYWORDS = {
    "string": "string",
    "number": "number",
    "bool": "bool",
    "any": DYNAMIC_TYPE,
}
_JSON_PRIMITIVES = {"string", "number", "bool", DYNAMIC_TYPE, TIME_TYPE}
_COLLECTIONS = ("list", "map", "set")

_TOKEN_RE = re.compile(r"\s*(?:([A-Za-z_][A-Za-z0-9_-]*)|(\S))")


class TypeExprError(ValueError):
    """Raised when a type expression or its JSON form is invalid."""


def _tokenize(text: str) -> list[tuple[str, str]]:
    text = text.rstrip()
    tokens: list[tuple[str, str]] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match.group(1) is not None:
            tokens.append(("ident", match.group(1)))
        else:
            tokens.append(("punct", match.group(2)))
        pos = match.end()
    return tokens


class _TypeParser:
    def __init__(self, text: str) -> None:
        self._tokens = _tokenize(text)
        self._pos = 0

    def parse(self) -> Any:
        if not self._tokens:
            raise TypeExprError("invalid type: a type specification is required")
        ty = self._type()
        if self._pos < len(self._tokens):
            raise TypeExprError(
                f"invalid type: unexpected {self._tokens[self._pos][1]!r}"
            )
        return ty

    def _peek(self) -> Optional[str]:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos][1]
        return None

    def _take(self) -> tuple[str, str]:
        if self._pos >= len(self._tokens):
            raise TypeExprError(
                "invalid type: unexpected end of type specification"
            )
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def _expect(self, punct: str, context: str) -> None:
        kind, text = self._take()
        if kind != "punct" or text != punct:
            raise TypeExprError(
                f"invalid type: expected {punct!r} {context}, got {text!r}"
            )

    def _type(self) -> Any:
        kind, word = self._take()
        if kind != "ident":
            raise TypeExprError(
                f"invalid type: a type keyword is required, got {word!r}"
            )
        if word in _PRIMITIVE_KEYWORDS:
            if self._peek() == "(":
                raise TypeExprError(
                    f"invalid type: primitive type keyword {word!r} "
                    "does not expect arguments"
                )
            return _PRIMITIVE_KEYWORDS[word]
        if word in _COLLECTIONS:
            if self._peek() != "(":
                raise TypeExprError(
                    f"invalid type: the {word} type constructor requires one "
                    "argument specifying the element type"
                )
            self._take()
            elem = self._type()
            self._expect(")", f"after the {word} element type")
            return (word, elem)
        if word == "object":
            return self._object()
        if word == "tuple":
            return self._tuple()
        raise TypeExprError(
            f"invalid type: the keyword {word!r} is not a valid type specification"
        )

    def _object(self) -> Any:
        if self._peek() != "(":
            raise TypeExprError(
                "invalid type: the object type constructor requires one "
                "argument specifying the attribute types as a map"
            )
        self._take()
        self._expect("{", "to open the object attribute types")
        attrs: dict[str, Any] = {}
        while self._peek() != "}":
            kind, name = self._take()
            if kind != "ident":
                raise TypeExprError(
                    "invalid type: object constructor map keys must be "
                    f"attribute names, got {name!r}"
                )
            if name in attrs:
                raise TypeExprError(
                    f"invalid type: duplicate object attribute {name!r}"
                )
            _, sep = self._take()
            if sep not in ("=", ":"):
                raise TypeExprError(
                    f"invalid type: expected '=' or ':' after attribute {name!r}"
                )
            attrs[name] = self._type()
            if self._peek() == ",":
                self._take()
        self._take()
        self._expect(")", "after the object attribute types")
        return ("object", tuple(sorted(attrs.items())))

    def _tuple(self) -> Any:
        if self._peek() != "(":
            raise TypeExprError(
                "invalid type: the tuple type constructor requires one "
                "argument specifying the element types as a list"
            )
        self._take()
        self._expect("[", "to open the tuple element types")
        elems: list[Any] = []
        while self._peek() != "]":
            elems.append(self._type())
            nxt = self._peek()
            if nxt == ",":
                self._take()
            elif nxt != "]":
                raise TypeExprError(
                    f"invalid type: expected ',' or ']' in tuple, got {nxt!r}"
                )
        self._take()
        self._expect(")", "after the tuple element types")
        return ("tuple", tuple(elems))


def parse_type_expr(text: str) -> Any:
    """Parse a type expression such as ``map(string)`` into a type value."""
    if text.strip() == TIME_TYPE:
        return TIME_TYPE
    return _TypeParser(text).parse()


def type_to_json(ty: Any) -> Any:
    """Return the JSON-ready form of a type."""
    if isinstance(ty, str):
        if ty not in _JSON_PRIMITIVES:
            raise TypeExprError(f"unsupported type: {ty!r}")
        return ty
    if isinstance(ty, tuple) and len(ty) == 2:
        kind, arg = ty
        if kind in _COLLECTIONS:
            return [kind, type_to_json(arg)]
        if kind == "object":
            return ["object", {name: type_to_json(t) for name, t in arg}]
        if kind == "tuple":
            return ["tuple", [type_to_json(t) for t in arg]]
    raise TypeExprError(f"unsupported type: {ty!r}")


def type_from_json(obj: Any) -> Any:
    """Build a type from its JSON form."""
    if isinstance(obj, str):
        if obj in _JSON_PRIMITIVES:
            return obj
        raise TypeExprError(f"invalid type JSON: unknown primitive type {obj!r}")
    if isinstance(obj, list) and len(obj) == 2 and isinstance(obj[0], str):
        kind, arg = obj
        if kind in _COLLECTIONS:
            return (kind, type_from_json(arg))
        if kind == "object" and isinstance(arg, Mapping):
            return (
                "object",
                tuple(sorted((name, type_from_json(t)) for name, t in arg.items())),
            )
        if kind == "tuple" and isinstance(arg, list):
            return ("tuple", tuple(type_from_json(t) for t in arg))
    raise TypeExprError(f"invalid type JSON: {obj!r}")


@dataclass
class TableJoin:
    """A join from one table to another."""

    table: str
    unique: bool = False
    single: bool = False


@dataclass
class TableField:
    """A field of a schema table."""

    name: str
    type: Any
    unique: bool = False

    def to_json(self) -> dict:
        """Return the field as a JSON-ready dict."""
        obj: dict[str, Any] = {"name": self.name}
        if self.unique:
            obj["unique"] = True
        obj["type"] = type_to_json(self.type)
        return obj


def _join_to_json(join: TableJoin) -> dict:
    obj: dict[str, Any] = {"name": join.table}
    if join.unique:
        obj["unique"] = True
    if join.single:
        obj["single"] = True
    return obj


@dataclass
class Table:
    """A schema table with its fields, joins and nested tables."""

    name: str
    fields: list[TableField] = field(default_factory=list)
    joins: list[TableJoin] = field(default_factory=list)
    single: bool = False
    unique: bool = False
    tables: list[Table] = field(default_factory=list)

    def to_json(self) -> dict:
        """Return the table as a JSON-ready dict, leaving out empty parts."""
        obj: dict[str, Any] = {
            "name": self.name,
            "fields": [f.to_json() for f in self.fields],
        }
        if self.joins:
            obj["joins"] = [_join_to_json(j) for j in self.joins]
        if self.single:
            obj["single"] = True
        if self.unique:
            obj["unique"] = True
        if self.tables:
            obj["tables"] = [t.to_json() for t in self.tables]
        return obj


def _require_mapping(obj: Any, what: str) -> Mapping:
    if not isinstance(obj, Mapping):
        raise ValueError(f"{what} must be an object, not {type(obj).__name__}")
    return obj


def _field_from_spec(spec: Any) -> TableField:
    spec = _require_mapping(spec, "field")
    if "name" not in spec:
        raise ValueError("field is missing its name")
    if "type" not in spec:
        raise ValueError(f"field {spec['name']!r} is missing its type")
    return TableField(
        name=spec["name"],
        type=parse_type_expr(spec["type"]),
        unique=bool(spec.get("unique", False)),
    )


def _join_from_spec(spec: Any) -> TableJoin:
    spec = _require_mapping(spec, "join")
    if "table" not in spec:
        raise ValueError("join is missing its table")
    return TableJoin(
        table=spec["table"],
        unique=bool(spec.get("unique", False)),
        single=bool(spec.get("single", False)),
    )


def table_from_spec(spec: Mapping) -> Table:
    """Build a Table from a declared spec whose field types are expressions."""
    spec = _require_mapping(spec, "table")
    if "name" not in spec:
        raise ValueError("table is missing its name")
    return Table(
        name=spec["name"],
        fields=[_field_from_spec(f) for f in spec.get("fields") or []],
        joins=[_join_from_spec(j) for j in spec.get("joins") or []],
        single=bool(spec.get("single", False)),
        unique=bool(spec.get("unique", False)),
        tables=tables_from_spec(spec.get("tables") or []),
    )


def tables_from_spec(specs: Iterable[Mapping]) -> list[Table]:
    """Build Tables from a sequence of declared specs."""
    return [table_from_spec(spec) for spec in specs]


def table_from_json(obj: Any) -> Table:
    """Build a Table from its JSON dict form."""
    obj = _require_mapping(obj, "table")
    fields = []
    for item in obj.get("fields") or []:
        item = _require_mapping(item, "table field")
        fields.append(
            TableField(
                name=item.get("name", ""),
                type=type_from_json(item.get("type")),
                unique=bool(item.get("unique", False)),
            )
        )
    joins = []
    for item in obj.get("joins") or []:
        item = _require_mapping(item, "table join")
        joins.append(
            TableJoin(
                table=item.get("name", ""),
                unique=bool(item.get("unique", False)),
                single=bool(item.get("single", False)),
            )
        )
    return Table(
        name=obj.get("name", ""),
        fields=fields,
        joins=joins,
        single=bool(obj.get("single", False)),
        unique=bool(obj.get("unique", False)),
        tables=[table_from_json(t) for t in obj.get("tables") or []],
    )


def dump_tables(tables: Iterable[Table]) -> str:
    """Serialise tables to JSON text."""
    return json.dumps([t.to_json() for t in tables])


def load_tables(text: str | bytes) -> list[Table]:
    """Parse JSON text into a list of tables."""
    parsed = json.loads(text)
    if parsed is None:
        return []
    if not isinstance(parsed, list):
        raise ValueError("tables must be a JSON list")
    return [table_from_json(obj) for obj in parsed]