"""
Tests for the workflow session.
"""

import asyncio
import json

import numpy as np
import pytest
from PIL import Image

from joinrender.core.execution import ExecutionCallbacks
from joinrender.core.session import WorkflowSession
from joinrender.core.settings import EngineSettings
from joinrender.core.validation import IssueCode
from joinrender.core.workflow_io import WorkflowFormat
from joinrender.nodes.custom import CustomNodeConfig

HOOK_NODE = {
    "id": "notify",
    "name": "Notify",
    "nodeType": "webhook",
    "inputs": [{"name": "message", "type": "text"}],
    "outputs": [{"name": "webhookUrl", "type": "text"}],
    "webhookConfig": {"path": "notify"},
}


@pytest.fixture
def settings(tmp_path):
    return EngineSettings(
        custom_nodes_path=tmp_path / "custom_nodes.json",
        plugin_dir=tmp_path / "plugins",
        webhook_base_url="http://studio.local",
    )


@pytest.fixture
def session(settings):
    return WorkflowSession(settings)


class TestRegistry:
    def test_builtins_and_plugins(self, session):
        assert "text-input" in session.registry
        assert "ksampler" in session.registry
        assert session.registry.get("image-output").plugin_id is None

    def test_user_nodes_loaded_on_request(self, settings):
        settings.custom_nodes_path.write_text(json.dumps([HOOK_NODE]), encoding="utf-8")
        settings.plugin_dir.mkdir()
        (settings.plugin_dir / "extra.json").write_text(
            json.dumps({"nodes": [{"name": "ExtraNode", "output": ["IMAGE"]}]}), encoding="utf-8"
        )

        plain = WorkflowSession(settings)
        loaded = WorkflowSession(settings, load_user_nodes=True)

        assert "custom-notify" not in plain.registry
        assert "custom-notify" in loaded.registry
        assert "comfy-extranode" in loaded.registry

    def test_add_and_remove_custom_node(self, session, settings):
        kind = session.add_custom_node(CustomNodeConfig.from_dict(HOOK_NODE))

        assert kind == "custom-notify"
        assert kind in session.registry
        assert json.loads(settings.custom_nodes_path.read_text(encoding="utf-8"))[0]["id"] == "notify"

        session.remove_custom_node("notify")
        assert kind not in session.registry
        assert json.loads(settings.custom_nodes_path.read_text(encoding="utf-8")) == []


class TestGraphLifecycle:
    def test_save_needs_a_path(self, session):
        with pytest.raises(ValueError):
            session.save()

    def test_save_and_load(self, session, tmp_path):
        text = session.graph.add_node("text-input")
        session.graph.set_literal_data(text.id, {"text": "hello"})
        path = tmp_path / "flow.json"

        session.save(path)
        assert session.path == path

        session.new()
        assert len(session.graph) == 0
        assert session.path is None

        graph = session.load(path)
        assert graph.nodes[text.id].data["text"] == "hello"
        assert session.path == path

    def test_export_interchange_does_not_change_path(self, session, tmp_path):
        session.graph.add_node("text-input")
        session.save(tmp_path / "flow.comfy.json", WorkflowFormat.INTERCHANGE)
        assert session.path is None

    def test_import_text(self, session):
        session.graph.add_node("llm")
        document = session.export(WorkflowFormat.INTERCHANGE)

        graph = session.import_text(json.dumps(document))

        assert [n.kind for n in graph.nodes.values()] == ["llm"]
        assert session.graph is graph

    def test_clear(self, session):
        session.graph.add_node("llm")
        session.clear()
        assert len(session.graph) == 0

    def test_attach_image(self, session, tmp_path):
        path = tmp_path / "face.png"
        Image.new("RGB", (2, 2)).save(path)
        node = session.graph.add_node("image-upload")

        session.attach_image(node.id, path)

        assert node.data["imageUrl"].startswith("data:image/png;base64,")
        assert node.data["fileName"] == "face.png"

    def test_attach_pixel_array(self, session):
        node = session.graph.add_node("image-upload")

        session.attach_image(node.id, np.zeros((2, 2, 3), dtype=np.uint8), file_name="frame.png")

        assert node.data["imageUrl"].startswith("data:image/png;base64,")
        assert node.data["fileName"] == "frame.png"

    def test_validate(self, session):
        session.graph.add_node("text-input")
        session.graph.add_node("text-input")
        result = session.validate()
        assert len(result.warnings_of(IssueCode.UNCONNECTED_NODE)) == 2


class TestRun:
    def test_local_and_missing_capabilities(self, session):
        graph = session.graph
        text = graph.add_node("text-input")
        llm = graph.add_node("llm")
        output = graph.add_node("image-output")
        graph.set_literal_data(text.id, {"text": "A lighthouse at dusk"})
        graph.connect(text.id, "output-0", llm.id, "input-0")
        graph.connect(llm.id, "output-0", output.id, "input-0")
        errors = {}

        outputs = asyncio.run(session.run(
            ExecutionCallbacks(on_error=lambda node_id, msg: errors.setdefault(node_id, msg))
        ))

        assert outputs[text.id] == {"文本": "A lighthouse at dusk"}
        assert llm.id not in outputs
        assert "llm" in errors[llm.id]
        assert outputs[output.id] == {"result": ""}

    def test_custom_webhook_node(self, session):
        kind = session.add_custom_node(CustomNodeConfig.from_dict(HOOK_NODE), persist=False)
        text = session.graph.add_node("text-input")
        hook = session.graph.add_node(kind)
        session.graph.set_literal_data(text.id, {"text": "done"})
        session.graph.connect(text.id, "output-0", hook.id, "input-0")

        outputs = asyncio.run(session.run())

        assert outputs[hook.id] == {
            "webhookUrl": "http://studio.local/webhook/notify",
            "method": "POST",
            "message": "done",
        }

    def test_builtin_webhook_trigger_feeds_downstream(self, session):
        trigger = session.graph.add_node("webhook-trigger")
        stringify = session.graph.add_node("json-stringify")
        session.graph.set_literal_data(trigger.id, {"path": "orders"})
        session.graph.set_literal_data(stringify.id, {"pretty": False})
        session.graph.connect(trigger.id, "output-0", stringify.id, "input-0")

        outputs = asyncio.run(session.run())

        assert outputs[trigger.id]["webhookUrl"] == "http://studio.local/webhook/orders"
        assert json.loads(outputs[stringify.id]["JSON文本"]) == {
            "message": "Webhook configured, waiting for calls"
        }
