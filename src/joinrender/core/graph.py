"""
Node Graph Model - Core data structures for the node-based workflow.

This module defines the fundamental building blocks:
- Port: A materialized input or output slot on a node instance
- Node: A placed occurrence of a NodeDefinition
- Connection: A link from a node output to a node input
- NodeGraph: The complete graph containing nodes and connections
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, NewType
from uuid import uuid4

from joinrender.core.data_types import PortType, Widget
from joinrender.core.node_types import NodeDefinition, NodeRegistry

logger = logging.getLogger(__name__)


# Type aliases for clarity
NodeId = NewType("NodeId", str)
ConnectionId = NewType("ConnectionId", str)

INPUT = "input"
OUTPUT = "output"


def new_node_id() -> NodeId:
    """Generate a new unique node ID."""
    return NodeId(str(uuid4()))


def new_connection_id() -> ConnectionId:
    """Generate a new unique connection ID."""
    return ConnectionId(str(uuid4()))


def input_port_id(index: int) -> str:
    return f"input-{index}"


def output_port_id(index: int) -> str:
    return f"output-{index}"


@dataclass
class Point2D:
    """2D point for node positioning on the canvas."""
    x: float = 0.0
    y: float = 0.0


@dataclass
class Size2D:
    """2D size for node dimensions."""
    width: float = 200.0
    height: float = 100.0


@dataclass
class Port:
    """
    A port on a node instance.

    ``connected`` is a cache kept in sync by the graph; the connection list
    is the source of truth.
    """
    id: str
    name: str
    type: PortType
    direction: str
    widget: Widget | None = None
    reference: bool = False
    connected: bool = False


@dataclass
class Connection:
    """
    A connection (wire) between two nodes.

    Connects an output port of one node to an input port of another.
    """
    id: ConnectionId
    source_node_id: NodeId
    source_port_id: str
    target_node_id: NodeId
    target_port_id: str
    type: PortType | None = None

    @classmethod
    def create(
        cls,
        source_node_id: NodeId,
        source_port_id: str,
        target_node_id: NodeId,
        target_port_id: str,
        type: PortType | None = None,
    ) -> Connection:
        """Factory method to create a new connection."""
        return cls(
            id=new_connection_id(),
            source_node_id=source_node_id,
            source_port_id=source_port_id,
            target_node_id=target_node_id,
            target_port_id=target_port_id,
            type=type,
        )

    def touches(self, node_id: NodeId) -> bool:
        return self.source_node_id == node_id or self.target_node_id == node_id

    def same_endpoints(self, other: Connection) -> bool:
        return (
            self.source_node_id == other.source_node_id
            and self.source_port_id == other.source_port_id
            and self.target_node_id == other.target_node_id
            and self.target_port_id == other.target_port_id
        )


@dataclass
class Node:
    """
    A single node in the processing graph.

    Nodes have:
    - A unique ID
    - A kind (references a NodeDefinition in the registry)
    - Position and optional size on the canvas
    - Literal data for widget-bearing inputs
    - Materialized input and output ports
    """
    id: NodeId
    kind: str
    position: Point2D = field(default_factory=Point2D)
    data: dict[str, Any] = field(default_factory=dict)
    inputs: list[Port] = field(default_factory=list)
    outputs: list[Port] = field(default_factory=list)
    size: Size2D | None = None

    @classmethod
    def create(
        cls,
        definition: NodeDefinition,
        position: Point2D | None = None,
        node_id: NodeId | None = None,
    ) -> Node:
        """Instantiate a definition, seeding literal data from its defaults."""
        return cls(
            id=node_id or new_node_id(),
            kind=definition.kind,
            position=position or Point2D(),
            data=definition.get_default_data(),
            inputs=[
                Port(
                    id=input_port_id(i),
                    name=spec.name,
                    type=spec.type,
                    direction=INPUT,
                    widget=spec.widget,
                    reference=spec.reference,
                )
                for i, spec in enumerate(definition.inputs)
            ],
            outputs=[
                Port(
                    id=output_port_id(i),
                    name=spec.name,
                    type=spec.type,
                    direction=OUTPUT,
                )
                for i, spec in enumerate(definition.outputs)
            ],
        )

    def get_input(self, port_id: str) -> Port | None:
        for port in self.inputs:
            if port.id == port_id:
                return port
        return None

    def get_output(self, port_id: str) -> Port | None:
        for port in self.outputs:
            if port.id == port_id:
                return port
        return None

    def input_index(self, port_id: str) -> int:
        """Ordinal of an input port, or -1."""
        for i, port in enumerate(self.inputs):
            if port.id == port_id:
                return i
        return -1

    def output_index(self, port_id: str) -> int:
        """Ordinal of an output port, or -1."""
        for i, port in enumerate(self.outputs):
            if port.id == port_id:
                return i
        return -1

    def coerce_literal(self, key: str, value: Any) -> Any:
        """Convert a literal for a widget-bearing input into the widget's domain."""
        for port in self.inputs:
            if port.name == key and port.widget is not None:
                return port.widget.coerce(value)
        return value


class NodeGraph:
    """
    The complete node graph for a workflow.

    Contains nodes and the connections between them, and enforces the
    connection invariants:
    - at most one connection ends at any input port (last write wins)
    - self-loops and duplicate connections are ignored

    Acyclicity is not enforced here; see the validator.
    """

    def __init__(self, registry: NodeRegistry, name: str = "Untitled"):
        self.registry = registry
        self.name: str = name
        self._nodes: dict[NodeId, Node] = {}
        self._connections: list[Connection] = []

    # --- Node operations ---

    @property
    def nodes(self) -> dict[NodeId, Node]:
        """Get all nodes (read-only view)."""
        return self._nodes.copy()

    def add_node(self, kind: str, position: Point2D | None = None) -> Node | None:
        """
        Instantiate a registered node kind and add it to the graph.

        Returns the new node, or None if the kind is unknown.
        """
        definition = self.registry.get(kind)
        if definition is None:
            logger.warning("Node definition not found: %s", kind)
            return None

        node = Node.create(definition, position)
        self._nodes[node.id] = node
        return node

    def insert_node(self, node: Node) -> None:
        """Add an already-built node (used by loaders and importers)."""
        self._nodes[node.id] = node

    def remove_node(self, node_id: NodeId) -> Node | None:
        """
        Remove a node and all its connections.

        Returns the removed node, or None if not found.
        """
        node = self._nodes.pop(node_id, None)
        if node is None:
            return None

        neighbours = {
            other
            for conn in self._connections if conn.touches(node_id)
            for other in (conn.source_node_id, conn.target_node_id)
            if other != node_id
        }
        self._connections = [
            conn for conn in self._connections if not conn.touches(node_id)
        ]
        for other in neighbours:
            self._refresh_ports(other)
        return node

    def get_node(self, node_id: NodeId) -> Node | None:
        """Get a node by ID."""
        return self._nodes.get(node_id)

    def move_node(self, node_id: NodeId, position: Point2D) -> None:
        node = self._nodes.get(node_id)
        if node:
            node.position = position

    def set_literal_data(self, node_id: NodeId, patch: dict[str, Any]) -> None:
        """
        Shallow-merge ``patch`` into a node's literal data.

        Values for widget-bearing inputs are coerced by the widget: numbers
        are clamped to its bounds and unknown combo options fall back to the
        default. Other keys are stored as given.
        """
        node = self._nodes.get(node_id)
        if node:
            node.data.update({key: node.coerce_literal(key, value) for key, value in patch.items()})

    # --- Connection operations ---

    @property
    def connections(self) -> list[Connection]:
        """Get all connections (read-only copy)."""
        return self._connections.copy()

    def can_connect(
        self,
        source_node_id: NodeId,
        source_port_id: str,
        target_node_id: NodeId,
        target_port_id: str,
    ) -> bool:
        """Advisory type check for a prospective connection."""
        source = self._nodes.get(source_node_id)
        target = self._nodes.get(target_node_id)
        if not source or not target or source_node_id == target_node_id:
            return False
        out_port = source.get_output(source_port_id)
        in_port = target.get_input(target_port_id)
        if not out_port or not in_port:
            return False
        return out_port.type.is_compatible_with(in_port.type)

    def connect(
        self,
        source_node_id: NodeId,
        source_port_id: str,
        target_node_id: NodeId,
        target_port_id: str,
        connection_id: ConnectionId | None = None,
    ) -> Connection | None:
        """
        Connect an output port to an input port.

        A connection already ending at the target input is replaced.
        Self-loops, duplicates and unknown endpoints are ignored.

        Returns the new connection, or None if nothing changed.
        """
        if source_node_id == target_node_id:
            return None

        source = self._nodes.get(source_node_id)
        target = self._nodes.get(target_node_id)
        if source is None or target is None:
            return None

        out_port = source.get_output(source_port_id)
        in_port = target.get_input(target_port_id)
        if out_port is None or in_port is None:
            return None

        connection = Connection(
            id=connection_id or new_connection_id(),
            source_node_id=source_node_id,
            source_port_id=source_port_id,
            target_node_id=target_node_id,
            target_port_id=target_port_id,
            type=out_port.type,
        )
        if any(conn.same_endpoints(connection) for conn in self._connections):
            return None

        # Inputs accept a single connection
        replaced = [
            conn for conn in self._connections
            if conn.target_node_id == target_node_id and conn.target_port_id == target_port_id
        ]
        if replaced:
            self._connections = [conn for conn in self._connections if conn not in replaced]
            for conn in replaced:
                self._refresh_ports(conn.source_node_id)

        self._connections.append(connection)
        out_port.connected = True
        in_port.connected = True
        return connection

    def insert_connection(self, connection: Connection) -> Connection | None:
        """
        Add a stored connection (used by snapshot loaders).

        When both endpoints resolve, this behaves like ``connect`` and keeps
        the stored id. Otherwise the connection is kept as-is, so a damaged
        snapshot shows up as dangling references in the validator.
        Self-loops and duplicates are dropped either way.
        """
        if connection.source_node_id == connection.target_node_id:
            logger.warning("Dropping self-loop connection %s", connection.id)
            return None
        if any(conn.same_endpoints(connection) for conn in self._connections):
            return None

        source = self._nodes.get(connection.source_node_id)
        target = self._nodes.get(connection.target_node_id)
        if (
            source is not None and target is not None
            and source.get_output(connection.source_port_id) is not None
            and target.get_input(connection.target_port_id) is not None
        ):
            return self.connect(
                connection.source_node_id,
                connection.source_port_id,
                connection.target_node_id,
                connection.target_port_id,
                connection_id=connection.id,
            )

        self._connections.append(connection)
        self._refresh_ports(connection.source_node_id)
        self._refresh_ports(connection.target_node_id)
        return connection

    def disconnect(self, connection_id: ConnectionId) -> Connection | None:
        """Remove a connection by ID."""
        for i, conn in enumerate(self._connections):
            if conn.id == connection_id:
                removed = self._connections.pop(i)
                self._refresh_ports(removed.source_node_id)
                self._refresh_ports(removed.target_node_id)
                return removed
        return None

    def get_connection(self, connection_id: ConnectionId) -> Connection | None:
        for conn in self._connections:
            if conn.id == connection_id:
                return conn
        return None

    def get_input_connection(self, node_id: NodeId, port_id: str) -> Connection | None:
        """Get the connection feeding into a specific input."""
        for conn in self._connections:
            if conn.target_node_id == node_id and conn.target_port_id == port_id:
                return conn
        return None

    def get_output_connections(self, node_id: NodeId, port_id: str) -> list[Connection]:
        """Get all connections from a specific output."""
        return [
            conn for conn in self._connections
            if conn.source_node_id == node_id and conn.source_port_id == port_id
        ]

    # --- Graph analysis ---

    def get_upstream_nodes(self, node_id: NodeId) -> set[NodeId]:
        """Get all nodes that this node depends on (directly or indirectly)."""
        upstream: set[NodeId] = set()
        to_visit = [node_id]

        while to_visit:
            current = to_visit.pop()
            for conn in self._connections:
                if conn.target_node_id == current:
                    source_id = conn.source_node_id
                    if source_id not in upstream:
                        upstream.add(source_id)
                        to_visit.append(source_id)

        upstream.discard(node_id)
        return upstream

    def get_downstream_nodes(self, node_id: NodeId) -> set[NodeId]:
        """Get all nodes that depend on this node (directly or indirectly)."""
        downstream: set[NodeId] = set()
        to_visit = [node_id]

        while to_visit:
            current = to_visit.pop()
            for conn in self._connections:
                if conn.source_node_id == current:
                    target_id = conn.target_node_id
                    if target_id not in downstream:
                        downstream.add(target_id)
                        to_visit.append(target_id)

        downstream.discard(node_id)
        return downstream

    def _refresh_ports(self, node_id: NodeId) -> None:
        """Recompute the ``connected`` cache of every port on a node."""
        node = self._nodes.get(node_id)
        if node is None:
            return
        used_outputs = {
            conn.source_port_id for conn in self._connections if conn.source_node_id == node_id
        }
        used_inputs = {
            conn.target_port_id for conn in self._connections if conn.target_node_id == node_id
        }
        for port in node.outputs:
            port.connected = port.id in used_outputs
        for port in node.inputs:
            port.connected = port.id in used_inputs

    # --- Utility ---

    def clear(self) -> None:
        """Remove all nodes and connections."""
        self._nodes.clear()
        self._connections.clear()

    def __len__(self) -> int:
        """Return the number of nodes."""
        return len(self._nodes)

    def __contains__(self, node_id: NodeId) -> bool:
        """Check if a node exists in the graph."""
        return node_id in self._nodes
