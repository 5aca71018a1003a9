"""
Shared helpers for built-in node modules.

Each category module exposes a list of NodeDefinitions and a map of local
handlers for the kinds that can run without a remote provider.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from joinrender.core.data_types import PortType
from joinrender.core.execution import ExecutionContext
from joinrender.core.node_types import NodeCategory, NodeDefinition, PortSpec

# Local implementation of a node kind
NodeHandler = Callable[[dict[str, Any], ExecutionContext], Awaitable[dict[str, Any]]]

NATIVE_CLASS_PREFIX = "JoinRender"


def native_class(kind: str) -> str:
    """Interchange class name for a built-in kind, e.g. ``JoinRenderTextInput``."""
    return NATIVE_CLASS_PREFIX + "".join(part[:1].upper() + part[1:] for part in kind.split("-"))


def port(name: str, type: PortType = PortType.ANY, reference: bool = False) -> PortSpec:
    return PortSpec(name=name, type=type, reference=reference)


def builtin(
    kind: str,
    name: str,
    category: NodeCategory,
    inputs: list[PortSpec] | None = None,
    outputs: list[PortSpec] | None = None,
    default_data: dict[str, Any] | None = None,
    description: str = "",
) -> NodeDefinition:
    """Build a built-in definition with its interchange class name."""
    return NodeDefinition(
        kind=kind,
        name=name,
        category=category,
        inputs=tuple(inputs or ()),
        outputs=tuple(outputs or ()),
        default_data=default_data or {},
        description=description,
        external_class=native_class(kind),
    )


def get_value_by_path(data: Any, path: str) -> Any:
    """
    Follow a dotted path such as ``choices.0.message.content``.

    An empty path selects the whole document. Missing keys and
    out-of-range indices give None.
    """
    if not path:
        return data

    current = data
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, list):
            try:
                index = int(part)
            except ValueError:
                return None
            if not -len(current) <= index < len(current):
                return None
            current = current[index]
        else:
            return None
    return current
