"""
Tests for the local logic and data nodes.
"""

import asyncio
import json

import pytest

from joinrender.core.execution import ExecutionEngine
from joinrender.core.graph import NodeGraph
from joinrender.core.node_types import NodeCategory, NodeRegistry
from joinrender.executors import DispatchExecutor
from joinrender.nodes import builtin_handlers, register_builtin_nodes


class RecordingContext:
    def __init__(self):
        self.progress = []

    def report_progress(self, percent, message=""):
        self.progress.append((percent, message))


def run(kind, inputs, context=None):
    executor = DispatchExecutor(builtin_handlers())
    return asyncio.run(executor.invoke(kind, inputs, context or RecordingContext()))


@pytest.fixture
def registry():
    registry = NodeRegistry()
    register_builtin_nodes(registry)
    return registry


class TestDefinitions:
    def test_logic_category(self, registry):
        kinds = {d.kind for d in registry.list_by_category(NodeCategory.LOGIC)}
        assert kinds == {"json-parse", "json-stringify", "data-mapper", "loop", "aggregate", "delay"}

    def test_integration_kinds_registered(self, registry):
        for kind in ("http-request", "webhook-trigger", "openai-compatible", "sd-webui-api", "comfyui-api"):
            assert kind in registry

    def test_provider_kinds_registered(self, registry):
        for kind in (
            "gen4-text-to-image", "gen45-image-to-video", "kling-video", "minimax-video",
            "midjourney-image", "leonardo-image", "elevenlabs-tts", "fish-audio-tts",
            "kimi-llm", "qwen-llm", "glm-llm", "tripo-3d", "meshy-3d", "rodin-3d", "triposr-3d",
        ):
            assert kind in registry

    def test_first_frame_port(self, registry):
        definition = registry.get("gen45-image-to-video")
        assert [p.name for p in definition.inputs] == ["首帧图像", "提示词"]

    def test_providers_are_not_local(self):
        handlers = builtin_handlers()
        for kind in ("kling-video", "kimi-llm", "tripo-3d", "http-request"):
            assert kind not in handlers


class TestJsonNodes:
    def test_parse(self):
        assert run("json-parse", {"JSON文本": '{"a": [1, 2]}'}) == {"对象": {"a": [1, 2]}}

    def test_parse_invalid_and_empty(self):
        assert run("json-parse", {"JSON文本": "{oops"}) == {"对象": None}
        assert run("json-parse", {"JSON文本": None}) == {"对象": {}}

    def test_parse_passes_objects_through(self):
        assert run("json-parse", {"JSON文本": [1]}) == {"对象": [1]}

    def test_stringify_pretty(self):
        result = run("json-stringify", {"对象": {"名字": "x"}, "pretty": True})
        assert result == {"JSON文本": '{\n  "名字": "x"\n}'}

    def test_stringify_compact(self):
        assert run("json-stringify", {"对象": [1, 2], "pretty": "false"}) == {"JSON文本": "[1, 2]"}


class TestDataMapper:
    def test_maps_paths(self):
        data = {"user": {"name": "Ada", "tags": ["a", "b"]}}
        mapping = json.dumps({"name": "user.name", "second": "输入数据.user.tags.1", "all": "输入数据"})
        context = RecordingContext()

        result = run("data-mapper", {"输入数据": data, "mapping": mapping}, context)

        assert result == {"输出数据": {"name": "Ada", "second": "b", "all": data}}
        assert context.progress == [(30, "mapping data")]

    def test_missing_paths_give_none(self):
        result = run("data-mapper", {"输入数据": {"a": 1}, "mapping": {"x": "b.c", "y": 3}})
        assert result == {"输出数据": {"x": None, "y": None}}

    def test_bad_mapping_passes_input_through(self):
        result = run("data-mapper", {"输入数据": {"a": 1}, "mapping": "not json"})
        assert result == {"输出数据": {"a": 1}}


class TestFlowNodes:
    def test_loop_first_item(self):
        assert run("loop", {"数组": ["x", "y"]}) == {"当前项": "x", "索引": "0"}
        assert run("loop", {"数组": '["j"]'}) == {"当前项": "j", "索引": "0"}

    def test_loop_empty(self):
        assert run("loop", {"数组": []}) == {"当前项": None, "索引": "-1"}
        assert run("loop", {"数组": None}) == {"当前项": None, "索引": "-1"}

    def test_aggregate(self):
        assert run("aggregate", {"项目": "x"}) == {"数组": ["x"]}
        assert run("aggregate", {}) == {"数组": []}

    def test_delay(self):
        context = RecordingContext()
        assert run("delay", {"输入": 5, "delay": 0}, context) == {"输出": 5}
        assert context.progress == [(30, "waiting 0ms")]

    def test_delay_bad_value_uses_default(self, monkeypatch):
        waited = []

        async def fake_sleep(seconds):
            waited.append(seconds)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)

        assert run("delay", {"输入": "x", "delay": "soon"}) == {"输出": "x"}
        assert waited == [1.0]

    def test_pipeline(self, registry):
        """text -> json-parse -> data-mapper -> json-stringify, all local."""
        graph = NodeGraph(registry)
        text = graph.add_node("text-input")
        parse = graph.add_node("json-parse")
        mapper = graph.add_node("data-mapper")
        stringify = graph.add_node("json-stringify")
        graph.set_literal_data(text.id, {"text": json.dumps({"shot": {"prompt": "a harbour"}})})
        graph.set_literal_data(mapper.id, {"mapping": json.dumps({"prompt": "shot.prompt"})})
        graph.set_literal_data(stringify.id, {"pretty": False})
        graph.connect(text.id, "output-0", parse.id, "input-0")
        graph.connect(parse.id, "output-0", mapper.id, "input-0")
        graph.connect(mapper.id, "output-0", stringify.id, "input-0")

        outputs = asyncio.run(ExecutionEngine(DispatchExecutor(builtin_handlers())).run(graph))

        assert outputs[stringify.id] == {"JSON文本": '{"prompt": "a harbour"}'}
