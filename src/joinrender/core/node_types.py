"""
Node Type System - Definitions and registry for node kinds.

This module defines how node kinds are specified:
- PortSpec: Describes an input or output port
- NodeCategory: Library grouping
- NodeDefinition: Complete, immutable definition of a node kind
- NodeRegistry: Registry of available definitions

Registries are plain values. A graph, a translator or a session is handed
the registry it should use, so tests can build independent registries.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from joinrender.core.data_types import PortType, Widget
from joinrender.core.errors import UnknownNodeKindError


class NodeCategory(Enum):
    """Categories for organizing nodes in the library."""
    INPUT = "input"
    LLM = "llm"
    MEDIA = "media"
    AUDIO = "audio"
    MODEL3D = "3d"
    OUTPUT = "output"
    # Interchange categories
    LOADERS = "loaders"
    SAMPLING = "sampling"
    CONDITIONING = "conditioning"
    LATENT = "latent"
    IMAGE = "image"
    MASK = "mask"
    CONTROLNET = "controlnet"
    IPADAPTER = "ipadapter"
    LOGIC = "logic"
    CUSTOM = "custom"


@dataclass(frozen=True)
class PortSpec:
    """
    Definition of a port on a node kind.

    Attributes:
        name: Port name, unique within its own input or output list
        type: Type tag of the data carried
        widget: Literal editor; when present the input may be satisfied
            by a literal value instead of a connection
        reference: Marks reference-image inputs used for consistency
    """
    name: str
    type: PortType = PortType.ANY
    widget: Widget | None = None
    reference: bool = False


@dataclass(frozen=True)
class NodeDefinition:
    """
    Complete definition of a node kind.

    Definitions are templates: node instances in a graph reference a
    definition by its ``kind``.
    """
    kind: str  # Unique identifier, e.g. "text-input"
    name: str  # Display name
    category: NodeCategory = NodeCategory.CUSTOM
    inputs: tuple[PortSpec, ...] = ()
    outputs: tuple[PortSpec, ...] = ()
    default_data: dict[str, Any] = field(default_factory=dict)
    description: str = ""

    # Interchange hints
    external_class: str | None = None
    plugin_id: str | None = None
    synthesized: bool = False

    def __post_init__(self):
        _check_unique(self.kind, "input", self.inputs)
        _check_unique(self.kind, "output", self.outputs)

    def get_input(self, name: str) -> PortSpec | None:
        """Get an input spec by name."""
        for port in self.inputs:
            if port.name == name:
                return port
        return None

    def get_output(self, name: str) -> PortSpec | None:
        """Get an output spec by name."""
        for port in self.outputs:
            if port.name == name:
                return port
        return None

    @property
    def widget_inputs(self) -> list[PortSpec]:
        """Inputs that can hold a literal value, in port order."""
        return [port for port in self.inputs if port.widget is not None]

    def get_default_data(self) -> dict[str, Any]:
        """Get a fresh copy of the default literal data."""
        data = copy.deepcopy(self.default_data)
        for port in self.widget_inputs:
            data.setdefault(port.name, port.widget.default)
        return data


def _check_unique(kind: str, direction: str, ports: Iterable[PortSpec]) -> None:
    seen: set[str] = set()
    for port in ports:
        if port.name in seen:
            raise ValueError(f"Duplicate {direction} port '{port.name}' on node kind '{kind}'")
        seen.add(port.name)


class NodeRegistry:
    """
    Registry of available node definitions.

    Built-in nodes, plugins and custom nodes register here; the graph model
    and the translator resolve kinds through it.
    """

    def __init__(self, definitions: Iterable[NodeDefinition] = ()):
        self._definitions: dict[str, NodeDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: NodeDefinition) -> None:
        """Register a definition, replacing any previous one with the same kind."""
        self._definitions[definition.kind] = definition

    def unregister(self, kind: str) -> NodeDefinition | None:
        """Unregister a definition."""
        return self._definitions.pop(kind, None)

    def get(self, kind: str) -> NodeDefinition | None:
        """Get a definition by kind."""
        return self._definitions.get(kind)

    def require(self, kind: str) -> NodeDefinition:
        """Get a definition by kind, raising UnknownNodeKindError if missing."""
        definition = self._definitions.get(kind)
        if definition is None:
            raise UnknownNodeKindError(kind)
        return definition

    def get_all(self) -> list[NodeDefinition]:
        """Get all registered definitions."""
        return list(self._definitions.values())

    def list_by_category(self, category: NodeCategory) -> list[NodeDefinition]:
        """Get all definitions in a category."""
        return [d for d in self._definitions.values() if d.category == category]

    def categories(self) -> list[NodeCategory]:
        """Categories that have at least one definition, in first-seen order."""
        seen: list[NodeCategory] = []
        for definition in self._definitions.values():
            if definition.category not in seen:
                seen.append(definition.category)
        return seen

    def search(self, query: str) -> list[NodeDefinition]:
        """Search definitions by kind, name or description."""
        query = query.lower()
        return [
            d for d in self._definitions.values()
            if query in d.kind.lower()
            or query in d.name.lower()
            or query in d.description.lower()
        ]

    def find_by_external_class(self, external_class: str) -> NodeDefinition | None:
        """Find the definition that declares an explicit interchange class name."""
        for definition in self._definitions.values():
            if definition.external_class == external_class:
                return definition
        return None

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, kind: str) -> bool:
        return kind in self._definitions
