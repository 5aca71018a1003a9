"""
Translator - Conversion between node graphs and the interchange format.

Import:
- every external node gets a fresh internal id
- kinds resolve through the type maps, then the registry; unknown classes
  get a synthesized definition that is registered for later use
- widget values are distributed over widget-bearing inputs in port order
  and coerced by each widget; the seed control entry that editors store
  after a seed value is skipped
- links whose endpoints do not remap are dropped

Export:
- external ids count up from 1 for nodes and links
- one link per connection, slots are port ordinals
- per-output link lists and per-input link references are back-filled
- connections between incompatible port types are dropped

Neither direction validates the graph; callers run the validator.
"""

from __future__ import annotations

import copy
import itertools
import logging
from typing import Any

from joinrender.core.errors import TranslationError
from joinrender.core.graph import Node, NodeGraph, NodeId, Point2D, Size2D
from joinrender.core.node_types import NodeCategory, NodeDefinition, NodeRegistry, PortSpec
from joinrender.interchange.type_maps import (
    export_port_type,
    import_port_type,
    resolve_class,
    resolve_kind,
)

logger = logging.getLogger(__name__)

INTERCHANGE_VERSION = 0.4
DEFAULT_NODE_SIZE = (200.0, 100.0)
SR_NAME_PROPERTY = "Node name for S&R"
LITERAL_DATA_PROPERTY = "literal_data"
SEED_INPUTS = frozenset({"seed", "noise_seed"})
SEED_CONTROL_VALUES = frozenset({"fixed", "increment", "decrement", "randomize"})

_MISSING = object()


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

def synthesize_definition(ext_node: dict[str, Any], kind: str) -> NodeDefinition:
    """Build a definition from the ports an external node declares."""
    class_name = str(ext_node.get("type"))
    return NodeDefinition(
        kind=kind,
        name=class_name,
        category=NodeCategory.CUSTOM,
        inputs=tuple(_ports_from_external(ext_node.get("inputs"))),
        outputs=tuple(_ports_from_external(ext_node.get("outputs"))),
        description=f"Imported node {class_name}",
        external_class=class_name,
        synthesized=True,
    )


def _ports_from_external(entries: Any) -> list[PortSpec]:
    ports: list[PortSpec] = []
    seen: set[str] = set()
    for index, entry in enumerate(entries or []):
        if not isinstance(entry, dict):
            continue
        name = str(entry.get("name") or f"slot_{index}")
        if name in seen:
            name = f"{name}_{index}"
        seen.add(name)
        ports.append(PortSpec(name=name, type=import_port_type(entry.get("type"))))
    return ports


def _pair(value: Any, default: tuple[float, float]) -> tuple[float, float]:
    """Read an [x, y] pair; LiteGraph sometimes writes {"0": x, "1": y}."""
    if isinstance(value, dict):
        value = [value.get("0"), value.get("1")]
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        try:
            return float(value[0]), float(value[1])
        except (TypeError, ValueError):
            pass
    return default


def _slot_map(node_ports: list, ext_ports: Any, prefix: str) -> dict[int, str]:
    """
    Map external slot numbers to port ids on the built node.

    External inputs usually list only connectable ports, so a slot is
    matched by port name first and by ordinal second.
    """
    by_name = {port.name: port.id for port in node_ports}
    mapping: dict[int, str] = {}
    entries = ext_ports if isinstance(ext_ports, list) else []
    for slot in range(max(len(entries), len(node_ports))):
        entry = entries[slot] if slot < len(entries) else None
        name = entry.get("name") if isinstance(entry, dict) else None
        if name in by_name:
            mapping[slot] = by_name[name]
        elif slot < len(node_ports):
            mapping[slot] = f"{prefix}-{slot}"
    return mapping


def _apply_widget_values(node: Node, values: Any) -> None:
    if isinstance(values, dict):
        for port in node.inputs:
            if port.widget is not None and port.name in values:
                node.data[port.name] = port.widget.coerce(values[port.name])
        return
    if not isinstance(values, list):
        return

    widget_ports = [port for port in node.inputs if port.widget is not None]
    if not widget_ports:
        for index, value in enumerate(values):
            node.data[f"param_{index}"] = value
        return

    # Editors store a "control after generate" entry right after seed values.
    remaining = iter(values)
    for port in widget_ports:
        value = next(remaining, _MISSING)
        if value is _MISSING:
            break
        node.data[port.name] = port.widget.coerce(value)
        if port.name in SEED_INPUTS:
            control = next(remaining, _MISSING)
            if control is not _MISSING and not (isinstance(control, str) and control in SEED_CONTROL_VALUES):
                remaining = itertools.chain([control], remaining)


def _read_link(link: Any) -> tuple[Any, Any, int, Any, int] | None:
    """Normalize a link record to (id, source, source_slot, target, target_slot)."""
    if isinstance(link, (list, tuple)) and len(link) >= 5:
        link_id, source, source_slot, target, target_slot = link[:5]
    elif isinstance(link, dict):
        link_id = link.get("id")
        source, source_slot = link.get("origin_id"), link.get("origin_slot")
        target, target_slot = link.get("target_id"), link.get("target_slot")
    else:
        return None
    try:
        return link_id, source, int(source_slot), target, int(target_slot)
    except (TypeError, ValueError):
        return None


def import_interchange(
    data: dict[str, Any],
    registry: NodeRegistry,
    name: str = "Imported workflow",
) -> NodeGraph:
    """
    Build a graph from an interchange document.

    Malformed node and link entries are skipped and logged; the rest of the
    document still imports.

    Raises:
        TranslationError: If the document is not an object with a node list
    """
    if not isinstance(data, dict) or not isinstance(data.get("nodes"), list):
        raise TranslationError("Interchange document has no node list")

    graph = NodeGraph(registry, name)
    id_map: dict[Any, NodeId] = {}
    input_slots: dict[NodeId, dict[int, str]] = {}
    output_slots: dict[NodeId, dict[int, str]] = {}

    for ext_node in data["nodes"]:
        if not isinstance(ext_node, dict) or not ext_node.get("type") or "id" not in ext_node:
            logger.warning("Skipping malformed node entry: %r", ext_node)
            continue

        class_name = str(ext_node["type"])
        kind = resolve_kind(class_name, registry)
        definition = registry.get(kind)
        if definition is None:
            definition = synthesize_definition(ext_node, kind)
            registry.register(definition)
            logger.info("Synthesized definition %s for external class %s", kind, class_name)

        x, y = _pair(ext_node.get("pos"), (0.0, 0.0))
        node = Node.create(definition, Point2D(x, y))
        if "size" in ext_node:
            width, height = _pair(ext_node.get("size"), DEFAULT_NODE_SIZE)
            node.size = Size2D(width, height)

        properties = ext_node.get("properties")
        if isinstance(properties, dict) and isinstance(properties.get(LITERAL_DATA_PROPERTY), dict):
            for key, value in copy.deepcopy(properties[LITERAL_DATA_PROPERTY]).items():
                node.data[key] = node.coerce_literal(key, value)
        _apply_widget_values(node, ext_node.get("widgets_values"))

        graph.insert_node(node)
        id_map[ext_node["id"]] = node.id
        input_slots[node.id] = _slot_map(node.inputs, ext_node.get("inputs"), "input")
        output_slots[node.id] = _slot_map(node.outputs, ext_node.get("outputs"), "output")

    links = data.get("links")
    for link in links if isinstance(links, list) else []:
        record = _read_link(link)
        if record is None:
            logger.warning("Skipping malformed link entry: %r", link)
            continue

        link_id, source, source_slot, target, target_slot = record
        source_id = id_map.get(source)
        target_id = id_map.get(target)
        if source_id is None or target_id is None:
            logger.info("Dropping link %s: endpoint not imported", link_id)
            continue

        source_port = output_slots[source_id].get(source_slot)
        target_port = input_slots[target_id].get(target_slot)
        connection = None
        if source_port is not None and target_port is not None:
            connection = graph.connect(source_id, source_port, target_id, target_port)
        if connection is None:
            logger.info("Dropping link %s: slot %s -> %s not usable", link_id, source_slot, target_slot)

    return graph


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def _widget_values(node: Node) -> list[Any]:
    widget_ports = [port for port in node.inputs if port.widget is not None]
    if widget_ports:
        values = []
        for port in widget_ports:
            values.append(node.data.get(port.name, port.widget.default))
            if port.name in SEED_INPUTS:
                values.append("fixed")
        return values

    values = []
    index = 0
    while f"param_{index}" in node.data:
        values.append(node.data[f"param_{index}"])
        index += 1
    return values


def export_interchange(graph: NodeGraph, registry: NodeRegistry | None = None) -> dict[str, Any]:
    """
    Convert a graph to an interchange document.

    Kinds without an explicit mapping export under a derived class name
    that may not import back to the same kind.
    """
    registry = registry or graph.registry
    id_map: dict[NodeId, int] = {}
    ext_nodes: dict[int, dict[str, Any]] = {}

    for ext_id, node in enumerate(graph.nodes.values(), start=1):
        id_map[node.id] = ext_id
        class_name = resolve_class(node.kind, registry)
        size = (node.size.width, node.size.height) if node.size else DEFAULT_NODE_SIZE

        inputs = []
        for port in node.inputs:
            entry: dict[str, Any] = {
                "name": port.name,
                "type": export_port_type(port.type),
                "link": None,
            }
            if port.widget is not None:
                entry["widget"] = {"name": port.name}
            inputs.append(entry)

        ext_nodes[ext_id] = {
            "id": ext_id,
            "type": class_name,
            "pos": [node.position.x, node.position.y],
            "size": list(size),
            "flags": {},
            "order": ext_id - 1,
            "mode": 0,
            "inputs": inputs,
            "outputs": [
                {
                    "name": port.name,
                    "type": export_port_type(port.type),
                    "links": [],
                    "slot_index": index,
                }
                for index, port in enumerate(node.outputs)
            ],
            "properties": {
                SR_NAME_PROPERTY: class_name,
                LITERAL_DATA_PROPERTY: copy.deepcopy(node.data),
            },
            "widgets_values": _widget_values(node),
        }

    links: list[list[Any]] = []
    for conn in graph.connections:
        source = graph.get_node(conn.source_node_id)
        target = graph.get_node(conn.target_node_id)
        if source is None or target is None:
            logger.info("Skipping connection %s: missing endpoint", conn.id)
            continue

        source_slot = source.output_index(conn.source_port_id)
        target_slot = target.input_index(conn.target_port_id)
        if source_slot < 0 or target_slot < 0:
            logger.info("Skipping connection %s: missing port", conn.id)
            continue

        out_port = source.outputs[source_slot]
        in_port = target.inputs[target_slot]
        if not out_port.type.is_compatible_with(in_port.type):
            logger.warning(
                "Dropping connection %s: %s is not compatible with %s",
                conn.id, out_port.type.value, in_port.type.value,
            )
            continue

        link_id = len(links) + 1
        source_ext = id_map[source.id]
        target_ext = id_map[target.id]
        links.append([
            link_id,
            source_ext,
            source_slot,
            target_ext,
            target_slot,
            export_port_type(out_port.type),
        ])
        ext_nodes[source_ext]["outputs"][source_slot]["links"].append(link_id)
        ext_nodes[target_ext]["inputs"][target_slot]["link"] = link_id

    return {
        "last_node_id": len(ext_nodes),
        "last_link_id": len(links),
        "nodes": list(ext_nodes.values()),
        "links": links,
        "groups": [],
        "config": {},
        "extra": {},
        "version": INTERCHANGE_VERSION,
    }
