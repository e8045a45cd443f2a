"""Input declarations, definitions and their validation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, Optional


class InputError(ValueError):
    """Raised when the inputs given to a resource are invalid."""


@dataclass
class InputDeclaration:
    """An ``input "<name>" {...}`` declaration; ``None`` as default means none."""

    name: str
    description: str = ""
    default: Any = None
    type: Any = None


@dataclass
class InputDefinition:
    """An ``input "<name>" { value = ... }`` definition."""

    name: str
    value: Any = None


class InputDefinitions(list):
    """A list of input definitions."""

    def value(self) -> dict:
        """Return the definitions as ``{"input": {name: value}}``."""
        return {"input": {item.name: item.value for item in self}}


def compare_inputs_with_decls(
    decls: Iterable[InputDeclaration], inputs: Any
) -> dict:
    """Check ``inputs`` against ``decls`` and fill in defaults.

    Returns ``{"input": {...}}`` holding one value per declaration. Raises
    InputError if an input has no default and was not given.
    """
    if not isinstance(inputs, Mapping):
        raise InputError(
            f'inputs should be an object, not "{type(inputs).__name__}"'
        )
    input_vals = inputs.get("input", {})
    if not isinstance(input_vals, Mapping):
        raise InputError(
            "value of inputs to resource is invalid. Should be an object "
            f"not {type(input_vals).__name__}"
        )

    resolved: dict = {}
    undefined: list[str] = []
    for decl in decls:
        if decl.name in input_vals:
            resolved[decl.name] = input_vals[decl.name]
        else:
            if decl.default is None:
                undefined.append(decl.name)
            resolved[decl.name] = decl.default
    if undefined:
        raise InputError(
            "inputs do not have a default value and were not provided: "
            + ", ".join(undefined)
        )
    return {"input": resolved}


def merge_locals(inputs: Mapping, locals_: Optional[Mapping]) -> dict:
    """Return ``inputs`` with the local values added under ``"local"``."""
    merged = dict(inputs)
    merged["local"] = dict(locals_ or {})
    return merged