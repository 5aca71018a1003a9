"""
Tests for interchange plugin packs.
"""

import json

import pytest

from joinrender.core.data_types import (
    ComboWidget,
    NumberWidget,
    PortType,
    SliderWidget,
    TextWidget,
    ToggleWidget,
)
from joinrender.core.node_types import NodeCategory, NodeRegistry
from joinrender.interchange.plugins import (
    Plugin,
    PluginManager,
    definition_from_external,
    map_category,
    parse_input,
)
from joinrender.nodes import register_builtin_nodes

SAMPLE_NODE = {
    "name": "SharpenImage",
    "display_name": "Sharpen",
    "category": "image/filters",
    "input": {
        "required": {
            "image": ["IMAGE"],
            "amount": ["FLOAT", {"default": 0.5, "min": 0.0, "max": 2.0}],
        },
        "optional": {
            "mask": ["MASK"],
            "mode": [["fast", "slow"]],
        },
    },
    "output": ["IMAGE", "IMAGE"],
    "description": "Sharpen an image",
}


@pytest.fixture
def registry():
    registry = NodeRegistry()
    register_builtin_nodes(registry)
    return registry


class TestParseInput:
    def test_combo(self):
        port_type, widget = parse_input([["a", "b"], {"default": "b"}])
        assert port_type == PortType.COMBO
        assert widget == ComboWidget(options=("a", "b"), default="b")

    def test_combo_defaults_to_first_option(self):
        _, widget = parse_input([["a", "b"]])
        assert widget.default == "a"

    def test_int(self):
        port_type, widget = parse_input(["INT", {"default": 20, "min": 1, "max": 100}])
        assert port_type == PortType.INT
        assert isinstance(widget, NumberWidget)
        assert (widget.default, widget.min_value, widget.max_value) == (20, 1, 100)

    def test_float(self):
        port_type, widget = parse_input(["FLOAT", {"default": 7.0, "max": 30.0}])
        assert port_type == PortType.FLOAT
        assert isinstance(widget, SliderWidget)
        assert widget.max_value == 30.0

    def test_string(self):
        port_type, widget = parse_input(["STRING", {"multiline": True}])
        assert port_type == PortType.TEXT
        assert widget == TextWidget(default="", multiline=True)

    def test_boolean(self):
        port_type, widget = parse_input(["BOOLEAN", {"default": True}])
        assert port_type == PortType.BOOLEAN
        assert widget == ToggleWidget(default=True)

    def test_connection_only_types(self):
        assert parse_input(["LATENT"]) == (PortType.LATENT, None)
        assert parse_input(["SOMETHING_ELSE"]) == (PortType.ANY, None)
        assert parse_input("garbage") == (PortType.ANY, None)


class TestDefinitionFromExternal:
    def test_ports_and_defaults(self):
        definition = definition_from_external(SAMPLE_NODE, "pack")

        assert definition.kind == "comfy-sharpenimage"
        assert definition.name == "Sharpen"
        assert definition.category == NodeCategory.IMAGE
        assert definition.external_class == "SharpenImage"
        assert definition.plugin_id == "pack"
        assert [p.name for p in definition.inputs] == ["image", "amount", "mask", "mode"]
        assert definition.default_data == {"amount": 0.5, "mode": "fast"}

    def test_repeated_unnamed_outputs_are_deduplicated(self):
        definition = definition_from_external(SAMPLE_NODE)
        assert [p.name for p in definition.outputs] == ["IMAGE", "IMAGE_2"]

    def test_mapped_class_uses_mapped_kind(self):
        definition = definition_from_external({"name": "KSampler"})
        assert definition.kind == "ksampler"

    @pytest.mark.parametrize("category,expected", [
        ("loaders", NodeCategory.LOADERS),
        ("sampling/custom", NodeCategory.SAMPLING),
        ("advanced/conditioning", NodeCategory.CONDITIONING),
        ("latent", NodeCategory.LATENT),
        ("ControlNet Preprocessors", NodeCategory.CONTROLNET),
        ("ipadapter", NodeCategory.IPADAPTER),
        (None, NodeCategory.CUSTOM),
    ])
    def test_map_category(self, category, expected):
        assert map_category(category) == expected


class TestPluginManager:
    def test_builtin_packs(self, registry):
        manager = PluginManager(registry)
        manager.register_builtin_plugins()

        ksampler = registry.get("ksampler")
        assert ksampler is not None
        assert ksampler.plugin_id == "comfy-core"
        assert registry.get("comfy-ipadapterapply") is not None
        assert {p.id for p in manager.get_plugins()} == {
            "comfy-core", "controlnet-preprocessors", "ipadapter",
        }

    def test_plugin_does_not_override_builtin(self, registry):
        manager = PluginManager(registry)
        manager.register_builtin_plugins()

        # SaveImage and LoadImage map onto built-in kinds
        assert registry.get("image-output").plugin_id is None
        assert registry.get("image-upload").plugin_id is None
        assert "image-output" not in manager.get_plugin_kinds("comfy-core")

    def test_toggle(self, registry):
        manager = PluginManager(registry)
        manager.register_plugin(Plugin(id="pack", name="Pack", nodes=[SAMPLE_NODE]))
        assert "comfy-sharpenimage" in registry

        manager.toggle_plugin("pack", False)
        assert "comfy-sharpenimage" not in registry
        assert not manager.get_plugin("pack").enabled

        manager.toggle_plugin("pack", True)
        assert "comfy-sharpenimage" in registry

    def test_reregister_replaces_kinds(self, registry):
        manager = PluginManager(registry)
        manager.register_plugin(Plugin(id="pack", name="Pack", nodes=[SAMPLE_NODE]))
        manager.register_plugin(Plugin(id="pack", name="Pack", nodes=[{"name": "Other"}]))

        assert "comfy-sharpenimage" not in registry
        assert "comfy-other" in registry

    def test_unregister(self, registry):
        manager = PluginManager(registry)
        manager.register_plugin(Plugin(id="pack", name="Pack", nodes=[SAMPLE_NODE]))

        removed = manager.unregister_plugin("pack")

        assert removed.id == "pack"
        assert "comfy-sharpenimage" not in registry
        assert manager.unregister_plugin("pack") is None

    def test_load_from_json(self, registry):
        manager = PluginManager(registry)
        text = json.dumps({"id": "json-pack", "name": "JSON", "nodes": [SAMPLE_NODE]})

        plugin = manager.load_plugin_from_json(text)

        assert plugin.id == "json-pack"
        assert manager.get_plugin_kinds("json-pack") == ["comfy-sharpenimage"]

    def test_load_invalid_json(self, registry):
        manager = PluginManager(registry)
        assert manager.load_plugin_from_json("{not json") is None
        assert manager.load_plugin_from_json(json.dumps({"name": "no nodes"})) is None
        assert manager.get_plugins() == []

    def test_load_node_without_name_fails(self, registry):
        manager = PluginManager(registry)
        text = json.dumps({"id": "broken", "nodes": [{"display_name": "No class"}]})
        assert manager.load_plugin_from_json(text) is None
        assert manager.get_plugin("broken") is None

    def test_load_plugin_dir(self, registry, tmp_path):
        (tmp_path / "sharpen.json").write_text(
            json.dumps({"name": "Sharpen pack", "nodes": [SAMPLE_NODE]}), encoding="utf-8"
        )
        (tmp_path / "broken.json").write_text("[]", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
        manager = PluginManager(registry)

        plugins = manager.load_plugin_dir(tmp_path)

        assert [p.id for p in plugins] == ["sharpen"]
        assert "comfy-sharpenimage" in registry

    def test_load_missing_dir(self, registry, tmp_path):
        assert PluginManager(registry).load_plugin_dir(tmp_path / "missing") == []
