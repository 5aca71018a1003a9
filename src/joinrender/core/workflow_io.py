"""
Workflow I/O - Native snapshots and format detection.

This module provides functions to serialize and deserialize a complete
graph (nodes, literal data, connections) as a native JSON snapshot, and to
load any supported workflow document:
- Native snapshots: ``{"version", "name", "nodes", "connections", "savedAt"}``
- Interchange documents (node-graph editor format), via the translator
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from joinrender.core.data_types import PortType, widget_to_dict
from joinrender.core.errors import UnrecognizedFormatError
from joinrender.core.graph import (
    Connection,
    ConnectionId,
    Node,
    NodeGraph,
    NodeId,
    Point2D,
    Port,
    Size2D,
)
from joinrender.core.node_types import NodeRegistry
from joinrender.interchange.translator import export_interchange, import_interchange

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0.0"


class WorkflowFormat(Enum):
    NATIVE = "native"
    INTERCHANGE = "comfy"


def detect_format(data: Any) -> WorkflowFormat:
    """
    Detect the schema of a parsed workflow document.

    Raises:
        UnrecognizedFormatError: Neither schema matches
    """
    if isinstance(data, dict):
        if "last_node_id" in data and "nodes" in data and "links" in data:
            return WorkflowFormat.INTERCHANGE
        if "nodes" in data and "connections" in data:
            return WorkflowFormat.NATIVE
    raise UnrecognizedFormatError("Unrecognized workflow format")


# ============================================================================
# Serialization
# ============================================================================

def _port_to_dict(port: Port) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": port.id,
        "name": port.name,
        "type": port.type.value,
        "direction": port.direction,
        "connected": port.connected,
    }
    if port.reference:
        data["isReferenceInput"] = True
    if port.widget is not None:
        data["widget"] = widget_to_dict(port.widget)
    return data


def node_to_dict(node: Node) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": node.id,
        "type": node.kind,
        "position": {"x": node.position.x, "y": node.position.y},
        "data": dict(node.data),
        "inputs": [_port_to_dict(p) for p in node.inputs],
        "outputs": [_port_to_dict(p) for p in node.outputs],
    }
    if node.size is not None:
        data["size"] = {"width": node.size.width, "height": node.size.height}
    return data


def connection_to_dict(conn: Connection) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": conn.id,
        "sourceNodeId": conn.source_node_id,
        "sourcePortId": conn.source_port_id,
        "targetNodeId": conn.target_node_id,
        "targetPortId": conn.target_port_id,
    }
    if conn.type is not None:
        data["type"] = conn.type.value
    return data


def graph_to_dict(graph: NodeGraph, description: str | None = None) -> dict[str, Any]:
    """Serialize a graph to a native snapshot."""
    data: dict[str, Any] = {
        "version": SNAPSHOT_VERSION,
        "name": graph.name,
        "nodes": [node_to_dict(node) for node in graph.nodes.values()],
        "connections": [connection_to_dict(conn) for conn in graph.connections],
        "savedAt": datetime.now(timezone.utc).isoformat(),
    }
    if description:
        data["description"] = description
    return data


# ============================================================================
# Deserialization
# ============================================================================

def _number(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def node_from_dict(entry: dict[str, Any], registry: NodeRegistry) -> Node | None:
    """
    Rebuild a node from its snapshot entry.

    Ports come from the registered definition; id, position, size and
    literal data come from the snapshot. Returns None for unknown kinds.
    """
    kind = entry.get("type")
    definition = registry.get(kind) if isinstance(kind, str) else None
    if definition is None:
        logger.warning("Skipping node %s: unknown node kind %s", entry.get("id"), kind)
        return None

    position = entry.get("position") or {}
    if not isinstance(position, dict):
        logger.warning("Ignoring malformed position of node %s: %r", entry.get("id"), position)
        position = {}
    node = Node.create(
        definition,
        Point2D(_number(position.get("x"), 0.0), _number(position.get("y"), 0.0)),
        node_id=NodeId(str(entry["id"])) if entry.get("id") else None,
    )
    data = entry.get("data") or {}
    if isinstance(data, dict):
        node.data.update(data)
    else:
        logger.warning("Ignoring malformed data of node %s: %r", entry.get("id"), data)

    size = entry.get("size")
    if isinstance(size, dict):
        node.size = Size2D(_number(size.get("width"), 200.0), _number(size.get("height"), 100.0))
    return node


def _entries(data: dict[str, Any], key: str) -> list[Any]:
    entries = data.get(key) or []
    if not isinstance(entries, list):
        logger.warning("Ignoring malformed %s list: %r", key, entries)
        return []
    return entries


def graph_from_dict(data: dict[str, Any], registry: NodeRegistry) -> NodeGraph:
    """
    Load a native snapshot into a new graph.

    Unknown node kinds and malformed entries are skipped with a log
    message. Connections between loaded ports follow the same rules as
    ``NodeGraph.connect``; references to skipped nodes are kept so the
    validator can report them.
    """
    name = data.get("name")
    graph = NodeGraph(registry, name if isinstance(name, str) and name else "Untitled")

    for entry in _entries(data, "nodes"):
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed node entry: %r", entry)
            continue
        node = node_from_dict(entry, registry)
        if node is not None:
            graph.insert_node(node)

    for entry in _entries(data, "connections"):
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed connection entry: %r", entry)
            continue
        try:
            conn = Connection.create(
                NodeId(str(entry["sourceNodeId"])),
                str(entry["sourcePortId"]),
                NodeId(str(entry["targetNodeId"])),
                str(entry["targetPortId"]),
                PortType.parse(entry["type"]) if entry.get("type") else None,
            )
        except (KeyError, TypeError) as e:
            logger.warning("Skipping malformed connection entry: %s", e)
            continue
        if entry.get("id"):
            conn.id = ConnectionId(str(entry["id"]))
        graph.insert_connection(conn)

    return graph


# ============================================================================
# Documents and files
# ============================================================================

def import_workflow(source: str | dict[str, Any], registry: NodeRegistry) -> NodeGraph:
    """
    Load a workflow document in either supported format.

    Args:
        source: JSON text or an already-parsed document
        registry: Registry used to resolve node kinds. Interchange imports
            may register synthesized definitions into it.

    Raises:
        UnrecognizedFormatError: The text is not JSON, or the document
            matches neither schema
    """
    if isinstance(source, str):
        try:
            data = json.loads(source)
        except json.JSONDecodeError as e:
            raise UnrecognizedFormatError(f"Workflow is not valid JSON: {e}") from e
    else:
        data = source

    fmt = detect_format(data)
    if fmt == WorkflowFormat.INTERCHANGE:
        return import_interchange(data, registry)
    return graph_from_dict(data, registry)


def export_workflow(
    graph: NodeGraph,
    fmt: WorkflowFormat = WorkflowFormat.NATIVE,
    description: str | None = None,
) -> dict[str, Any]:
    """Serialize a graph in the requested format."""
    if fmt == WorkflowFormat.INTERCHANGE:
        return export_interchange(graph, graph.registry)
    return graph_to_dict(graph, description)


def save_workflow(
    graph: NodeGraph,
    path: Path,
    fmt: WorkflowFormat = WorkflowFormat.NATIVE,
    description: str | None = None,
) -> Path:
    """
    Save a graph to a JSON file.

    Returns:
        Path where the workflow was saved
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(export_workflow(graph, fmt, description), f, indent=2, ensure_ascii=False)
    logger.info(f"Saved workflow to {path}")
    return path


def load_workflow(path: Path, registry: NodeRegistry) -> NodeGraph:
    """Load a workflow file in either supported format."""
    with open(path, encoding="utf-8") as f:
        text = f.read()
    graph = import_workflow(text, registry)
    logger.info(f"Loaded workflow from {path} ({len(graph)} nodes)")
    return graph
