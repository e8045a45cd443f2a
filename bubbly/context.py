"""Contexts that resources are run within."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


class ResourceState(dict):
    """Values produced while running a resource, keyed by name."""

    def insert(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, wrapped as ``{"value": value}``."""
        self[key] = {"value": value}

    def value_with_path(self, path: Optional[Sequence[str]]) -> dict:
        """Return the state as an object, nested under each element of ``path``.

        The path is applied from its last element to its first. At each step
        the object built so far is stored under that element, next to the
        existing entries.
        """
        result = dict(self)
        for name in reversed(list(path or ())):
            result[name] = dict(result)
        return result


@dataclass
class ResourceContext:
    """Everything a resource needs in order to run on its own."""

    inputs: dict = field(default_factory=dict)
    data_blocks: Optional[list] = None
    state: ResourceState = field(default_factory=ResourceState)
    new_resource: Optional[Callable[[Any], Any]] = None
    auth: Any = None


def new_resource_context(
    inputs: dict, new_resource: Optional[Callable[[Any], Any]], auth: Any
) -> ResourceContext:
    """Create a fresh context with an empty state."""
    return ResourceContext(
        inputs=inputs,
        state=ResourceState(),
        new_resource=new_resource,
        auth=auth,
    )


def sub_resource_context(inputs: dict, ctx: ResourceContext) -> ResourceContext:
    """Create a context for a sub-resource of ``ctx``.

    The data blocks, resource factory and auth carry over; the state does not.
    """
    return ResourceContext(
        inputs=inputs,
        data_blocks=ctx.data_blocks,
        state=ResourceState(),
        new_resource=ctx.new_resource,
        auth=ctx.auth,
    )


def append_input_objects(*inputs: Mapping) -> dict:
    """Combine object values; later objects win on duplicate keys."""
    combined: dict = {}
    for obj in inputs:
        if not isinstance(obj, Mapping):
            raise TypeError(
                f"input must be an object, not {type(obj).__name__}"
            )
        combined.update(obj)
    return combined