"""
Workflow Validation - Pre-run checks on a node graph.

Validation is advisory: it is run by callers before scheduling or after an
import, never by the translator itself. Findings are split into errors
(the workflow must not be scheduled) and warnings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from joinrender.core.graph import NodeGraph, NodeId
from joinrender.core.node_types import NodeRegistry


class IssueCode(Enum):
    """Kinds of validation findings."""
    EMPTY_WORKFLOW = "empty_workflow"
    UNCONNECTED_NODE = "unconnected_node"
    CYCLE = "cycle"
    DANGLING_CONNECTION = "dangling_connection"
    UNCONNECTED_INPUT = "unconnected_input"
    TYPE_MISMATCH = "type_mismatch"


@dataclass
class ValidationIssue:
    code: IssueCode
    message: str
    node_id: NodeId | None = None
    port_name: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass
class ValidationResult:
    """Outcome of validating a workflow."""
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def warnings_of(self, code: IssueCode) -> list[ValidationIssue]:
        return [w for w in self.warnings if w.code == code]

    def errors_of(self, code: IssueCode) -> list[ValidationIssue]:
        return [e for e in self.errors if e.code == code]


def find_cycle(graph: NodeGraph) -> list[NodeId] | None:
    """
    Find one cycle using an iterative depth-first search.

    Returns the nodes of the first cycle found, in edge order, or None if
    the graph is acyclic. Connections to unknown nodes are ignored.
    """
    nodes = graph.nodes
    adjacency: dict[NodeId, list[NodeId]] = {node_id: [] for node_id in nodes}
    for conn in graph.connections:
        if conn.source_node_id in nodes and conn.target_node_id in nodes:
            adjacency[conn.source_node_id].append(conn.target_node_id)

    visited: set[NodeId] = set()
    for root in nodes:
        if root in visited:
            continue

        # Each frame is (node, iterator over its successors)
        path: list[NodeId] = [root]
        on_path: set[NodeId] = {root}
        stack = [(root, iter(adjacency[root]))]
        visited.add(root)

        while stack:
            node_id, successors = stack[-1]
            advanced = False
            for target_id in successors:
                if target_id in on_path:
                    return path[path.index(target_id):]
                if target_id not in visited:
                    visited.add(target_id)
                    path.append(target_id)
                    on_path.add(target_id)
                    stack.append((target_id, iter(adjacency[target_id])))
                    advanced = True
                    break
            if not advanced:
                stack.pop()
                path.pop()
                on_path.discard(node_id)

    return None


def validate_workflow(graph: NodeGraph, registry: NodeRegistry | None = None) -> ValidationResult:
    """
    Validate a workflow graph.

    Checks:
    - empty workflow (warning, still valid)
    - nodes with no connection at all when there is more than one node
    - cycles (at most one error is reported)
    - connections that reference a missing node or port (error)
    - inputs with no widget that are not connected (warning)
    - connections between incompatible port types (warning)

    Args:
        graph: Graph to check
        registry: Registry used for display names; defaults to the graph's
    """
    registry = registry or graph.registry
    result = ValidationResult()
    nodes = graph.nodes
    connections = graph.connections

    if not nodes:
        result.warnings.append(ValidationIssue(IssueCode.EMPTY_WORKFLOW, "Workflow is empty"))
        return result

    def display_name(node_id: NodeId) -> str:
        node = nodes[node_id]
        definition = registry.get(node.kind)
        return definition.name if definition else node.kind

    # Isolated nodes
    if len(nodes) > 1:
        touched: set[NodeId] = set()
        for conn in connections:
            touched.add(conn.source_node_id)
            touched.add(conn.target_node_id)
        for node_id, node in nodes.items():
            if node_id not in touched:
                result.warnings.append(ValidationIssue(
                    IssueCode.UNCONNECTED_NODE,
                    f'Node "{node.kind}" is not connected to any other node',
                    node_id=node_id,
                ))

    # Cycles
    cycle = find_cycle(graph)
    if cycle:
        result.errors.append(ValidationIssue(
            IssueCode.CYCLE,
            "Workflow contains a cycle: " + " -> ".join(display_name(n) for n in cycle),
            node_id=cycle[0],
        ))

    # Dangling references and type mismatches
    for conn in connections:
        source = nodes.get(conn.source_node_id)
        target = nodes.get(conn.target_node_id)
        out_port = source.get_output(conn.source_port_id) if source else None
        in_port = target.get_input(conn.target_port_id) if target else None
        if out_port is None or in_port is None:
            result.errors.append(ValidationIssue(
                IssueCode.DANGLING_CONNECTION,
                f"Connection {conn.id} references a missing node or port",
                node_id=conn.target_node_id if target else conn.source_node_id,
            ))
            continue
        if not out_port.type.is_compatible_with(in_port.type):
            result.warnings.append(ValidationIssue(
                IssueCode.TYPE_MISMATCH,
                f'Connection from "{display_name(source.id)}.{out_port.name}" '
                f'({out_port.type.value}) to "{display_name(target.id)}.{in_port.name}" '
                f'({in_port.type.value}) has incompatible types',
                node_id=target.id,
                port_name=in_port.name,
            ))

    # Inputs that can only be satisfied by a connection
    for node_id, node in nodes.items():
        if registry.get(node.kind) is None:
            continue
        for port in node.inputs:
            if port.widget is not None:
                continue
            if graph.get_input_connection(node_id, port.id) is None:
                result.warnings.append(ValidationIssue(
                    IssueCode.UNCONNECTED_INPUT,
                    f'Input "{port.name}" of node "{display_name(node_id)}" is not connected',
                    node_id=node_id,
                    port_name=port.name,
                ))

    return result
