"""
Plugins - External node definitions and plugin packs.

This module manages:
- Conversion of external node definitions into NodeDefinitions
- Category mapping for external categories
- A PluginManager that registers plugin packs into a NodeRegistry
- Loading plugin packs from JSON text, files and directories
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from joinrender.core.data_types import (
    ComboWidget,
    NumberWidget,
    PortType,
    SliderWidget,
    TextWidget,
    ToggleWidget,
    Widget,
)
from joinrender.core.node_types import NodeCategory, NodeDefinition, NodeRegistry, PortSpec
from joinrender.interchange.builtin_plugins import BUILTIN_PLUGINS
from joinrender.interchange.type_maps import EXTERNAL_TO_KIND, heuristic_kind, import_port_type

logger = logging.getLogger(__name__)


@dataclass
class Plugin:
    """A pack of external node definitions."""
    id: str
    name: str
    nodes: list[dict[str, Any]] = field(default_factory=list)
    version: str = "1.0.0"
    description: str = ""
    author: str = ""
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_id: str = "plugin") -> Plugin:
        return cls(
            id=data.get("id") or default_id,
            name=data.get("name") or "Untitled plugin",
            nodes=list(data.get("nodes") or []),
            version=data.get("version") or "1.0.0",
            description=data.get("description") or "",
            author=data.get("author") or "",
            enabled=data.get("enabled", True),
        )


def map_category(external_category: str | None) -> NodeCategory:
    """Map an external category path to a library category by keyword."""
    lower = (external_category or "").lower()
    if "loader" in lower:
        return NodeCategory.LOADERS
    if "sampl" in lower:
        return NodeCategory.SAMPLING
    if "condition" in lower:
        return NodeCategory.CONDITIONING
    if "latent" in lower:
        return NodeCategory.LATENT
    if "image" in lower:
        return NodeCategory.IMAGE
    if "mask" in lower:
        return NodeCategory.MASK
    if "controlnet" in lower:
        return NodeCategory.CONTROLNET
    if "ipadapter" in lower:
        return NodeCategory.IPADAPTER
    return NodeCategory.CUSTOM


def parse_input(spec: Any) -> tuple[PortType, Widget | None]:
    """
    Parse one external input spec.

    The spec is a list whose first element is either an option list (a
    combo) or a type name, optionally followed by a config dict. Scalar
    types get a widget; everything else is connection-only.
    """
    if not isinstance(spec, (list, tuple)) or not spec:
        return PortType.ANY, None

    first = spec[0]
    config = spec[1] if len(spec) > 1 and isinstance(spec[1], dict) else {}

    if isinstance(first, (list, tuple)):
        options = tuple(str(option) for option in first)
        default = config.get("default")
        return PortType.COMBO, ComboWidget(options=options, default=default)

    type_name = str(first)
    if type_name == "INT":
        return PortType.INT, NumberWidget(
            default=config.get("default", 0),
            min_value=config.get("min"),
            max_value=config.get("max"),
            step=config.get("step", 1),
            integer=True,
        )
    if type_name == "FLOAT":
        return PortType.FLOAT, SliderWidget(
            default=config.get("default", 0.0),
            min_value=config.get("min", 0.0),
            max_value=config.get("max", 1.0),
            step=config.get("step", 0.01),
        )
    if type_name == "STRING":
        return PortType.TEXT, TextWidget(
            default=config.get("default", ""),
            multiline=config.get("multiline") is True,
        )
    if type_name == "BOOLEAN":
        return PortType.BOOLEAN, ToggleWidget(default=bool(config.get("default", False)))

    return import_port_type(type_name), None


def kind_for_external(class_name: str) -> str:
    """Kind under which an external definition is registered."""
    return EXTERNAL_TO_KIND.get(class_name) or heuristic_kind(class_name)


def definition_from_external(spec: dict[str, Any], plugin_id: str | None = None) -> NodeDefinition:
    """
    Convert an external node definition to a NodeDefinition.

    Required inputs come first, then optional ones. Widget defaults are
    collected into the definition's default data.
    """
    class_name = spec["name"]
    inputs: list[PortSpec] = []
    default_data: dict[str, Any] = {}

    input_groups = spec.get("input") or {}
    for group in ("required", "optional"):
        for name, input_spec in (input_groups.get(group) or {}).items():
            port_type, widget = parse_input(input_spec)
            inputs.append(PortSpec(name=name, type=port_type, widget=widget))
            if widget is not None:
                default_data[name] = widget.default

    output_types = spec.get("output") or []
    output_names = spec.get("output_name") or []
    outputs = []
    for index, type_name in enumerate(output_types):
        name = output_names[index] if index < len(output_names) and output_names[index] else type_name
        outputs.append(PortSpec(name=name, type=import_port_type(type_name)))

    return NodeDefinition(
        kind=kind_for_external(class_name),
        name=spec.get("display_name") or class_name,
        category=map_category(spec.get("category")),
        inputs=tuple(inputs),
        outputs=tuple(_dedupe(outputs)),
        default_data=default_data,
        description=spec.get("description") or "",
        external_class=class_name,
        plugin_id=plugin_id,
    )


def _dedupe(ports: list[PortSpec]) -> list[PortSpec]:
    # External packs may repeat an output type without naming the outputs
    seen: dict[str, int] = {}
    result = []
    for port in ports:
        count = seen.get(port.name, 0)
        seen[port.name] = count + 1
        if count:
            port = PortSpec(name=f"{port.name}_{count + 1}", type=port.type)
        result.append(port)
    return result


class PluginManager:
    """
    Registers plugin packs into a NodeRegistry.

    A plugin never replaces a definition it does not own: when a kind is
    already registered by something else (for example a built-in node that
    an external class maps to), that plugin node is skipped.
    """

    def __init__(self, registry: NodeRegistry):
        self.registry = registry
        self._plugins: dict[str, Plugin] = {}
        self._owned: dict[str, list[str]] = {}

    def register_plugin(self, plugin: Plugin) -> None:
        """Register a plugin, replacing any earlier plugin with the same id."""
        if plugin.id in self._plugins:
            self._remove_definitions(plugin.id)
        self._plugins[plugin.id] = plugin
        if plugin.enabled:
            self._add_definitions(plugin)

    def unregister_plugin(self, plugin_id: str) -> Plugin | None:
        plugin = self._plugins.pop(plugin_id, None)
        if plugin is not None:
            self._remove_definitions(plugin_id)
        return plugin

    def toggle_plugin(self, plugin_id: str, enabled: bool) -> None:
        """Enable or disable a registered plugin."""
        plugin = self._plugins.get(plugin_id)
        if plugin is None or plugin.enabled == enabled:
            return
        plugin.enabled = enabled
        if enabled:
            self._add_definitions(plugin)
        else:
            self._remove_definitions(plugin_id)

    def get_plugin(self, plugin_id: str) -> Plugin | None:
        return self._plugins.get(plugin_id)

    def get_plugins(self) -> list[Plugin]:
        return list(self._plugins.values())

    def get_plugin_kinds(self, plugin_id: str) -> list[str]:
        """Kinds currently registered on behalf of a plugin."""
        return list(self._owned.get(plugin_id, []))

    def load_plugin_from_json(self, text: str, default_id: str | None = None) -> Plugin | None:
        """
        Parse and register a plugin pack.

        Returns None, after logging, if the text is not a plugin pack.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse plugin: {e}")
            return None

        if not isinstance(data, dict) or not isinstance(data.get("nodes"), list):
            logger.warning("Plugin has no node list")
            return None

        plugin = Plugin.from_dict(data, default_id or f"plugin-{len(self._plugins) + 1}")
        try:
            self.register_plugin(plugin)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to register plugin {plugin.id}: {e}")
            self.unregister_plugin(plugin.id)
            return None
        return plugin

    def load_plugin_file(self, path: Path) -> Plugin | None:
        """Load a plugin pack from a JSON file; the file stem is the default id."""
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to read plugin {path}: {e}")
            return None
        return self.load_plugin_from_json(text, default_id=path.stem)

    def load_plugin_dir(self, directory: Path) -> list[Plugin]:
        """Load every ``*.json`` plugin pack in a directory."""
        if not directory.is_dir():
            return []
        plugins = []
        for path in sorted(directory.glob("*.json")):
            plugin = self.load_plugin_file(path)
            if plugin is not None:
                plugins.append(plugin)
        return plugins

    def register_builtin_plugins(self) -> None:
        """Register the bundled core, ControlNet and IP-Adapter packs."""
        for data in BUILTIN_PLUGINS:
            self.register_plugin(Plugin.from_dict(data))

    def _add_definitions(self, plugin: Plugin) -> None:
        owned = self._owned.setdefault(plugin.id, [])
        for spec in plugin.nodes:
            definition = definition_from_external(spec, plugin.id)
            existing = self.registry.get(definition.kind)
            if existing is not None and existing.plugin_id != plugin.id:
                logger.debug(
                    "Plugin %s: kind %s already registered, skipping", plugin.id, definition.kind
                )
                continue
            self.registry.register(definition)
            if definition.kind not in owned:
                owned.append(definition.kind)

    def _remove_definitions(self, plugin_id: str) -> None:
        for kind in self._owned.pop(plugin_id, []):
            definition = self.registry.get(kind)
            if definition is not None and definition.plugin_id == plugin_id:
                self.registry.unregister(kind)
