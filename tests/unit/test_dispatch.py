"""
Tests for the dispatching executor and the built-in local handlers.
"""

import asyncio
import json

import numpy as np
import pytest
from PIL import Image

from joinrender.core.graph import NodeGraph
from joinrender.core.execution import ExecutionEngine
from joinrender.core.media import data_url_to_image
from joinrender.core.node_types import NodeRegistry
from joinrender.executors import CapabilityNotFoundError, DispatchExecutor
from joinrender.nodes import builtin_handlers, register_builtin_nodes


class NullContext:
    def report_progress(self, percent, message=""):
        pass


class EchoDelegate:
    def __init__(self, kinds):
        self.kinds = set(kinds)
        self.calls = []

    def handles(self, node_kind):
        return node_kind in self.kinds

    async def invoke(self, node_kind, inputs, context):
        self.calls.append(node_kind)
        return {"echo": node_kind}


class FallbackExecutor:
    async def invoke(self, node_kind, inputs, context):
        return {"fallback": node_kind}


def invoke(executor, kind, inputs=None):
    return asyncio.run(executor.invoke(kind, inputs or {}, NullContext()))


class TestDispatchExecutor:
    def test_handler_first(self):
        async def handler(inputs, context):
            return {"handled": True}

        delegate = EchoDelegate(["x"])
        executor = DispatchExecutor({"x": handler}, [delegate])

        assert invoke(executor, "x") == {"handled": True}
        assert delegate.calls == []

    def test_first_matching_delegate(self):
        first = EchoDelegate(["a"])
        second = EchoDelegate(["a", "b"])
        executor = DispatchExecutor(delegates=[first, second])

        assert invoke(executor, "a") == {"echo": "a"}
        assert invoke(executor, "b") == {"echo": "b"}
        assert first.calls == ["a"]
        assert second.calls == ["b"]

    def test_fallback(self):
        executor = DispatchExecutor(fallback=FallbackExecutor())
        assert invoke(executor, "anything") == {"fallback": "anything"}
        assert executor.can_run("anything")

    def test_nothing_can_run(self):
        executor = DispatchExecutor()
        assert not executor.can_run("image-gen")
        with pytest.raises(CapabilityNotFoundError) as excinfo:
            invoke(executor, "image-gen")
        assert excinfo.value.node_kind == "image-gen"

    def test_register_and_add(self):
        async def handler(inputs, context):
            return {}

        executor = DispatchExecutor()
        executor.register_handler("one", handler)
        executor.add_delegate(EchoDelegate(["two"]))

        assert executor.can_run("one")
        assert executor.can_run("two")
        assert not executor.can_run("three")


class TestBuiltinHandlers:
    def test_text_input(self):
        executor = DispatchExecutor(builtin_handlers())
        assert invoke(executor, "text-input", {"text": "hello"}) == {"文本": "hello"}
        assert invoke(executor, "image-upload", {}) == {"图像": ""}

    def test_json_splitter_object(self):
        executor = DispatchExecutor(builtin_handlers())
        text = json.dumps({"character": "a pilot", "action": "running", "closeup": "eyes"})

        result = invoke(executor, "json-splitter", {"JSON 文本": text})

        assert list(result.values()) == ["a pilot", "running", "eyes"]

    def test_json_splitter_short_list_and_garbage(self):
        executor = DispatchExecutor(builtin_handlers())
        assert list(invoke(executor, "json-splitter", {"JSON 文本": '["only"]'}).values()) == ["only", "", ""]
        assert list(invoke(executor, "json-splitter", {"JSON 文本": "not json"}).values()) == ["", "", ""]
        assert list(invoke(executor, "json-splitter", {"JSON 文本": None}).values()) == ["", "", ""]

    def test_output_collectors(self):
        executor = DispatchExecutor(builtin_handlers())
        assert invoke(executor, "image-output", {"图像": "data:x"}) == {"result": "data:x"}
        assert invoke(executor, "storyboard-output", {"镜头 1": "a", "镜头 3": "c"}) == {
            "result": {"shot1": "a", "shot2": "", "shot3": "c"}
        }

    def test_image_output_encodes_arrays(self):
        executor = DispatchExecutor(builtin_handlers())
        pixels = np.zeros((2, 3, 3), dtype=np.uint8)

        result = invoke(executor, "image-output", {"图像": pixels, "format": "jpg"})

        assert result["result"].startswith("data:image/jpeg;base64,")
        assert data_url_to_image(result["result"]).size == (3, 2)

    def test_image_output_encodes_pil_images(self):
        executor = DispatchExecutor(builtin_handlers())
        image = Image.new("RGBA", (4, 4), (0, 0, 255, 128))

        result = invoke(executor, "image-output", {"图像": image})

        assert result["result"].startswith("data:image/png;base64,")

    def test_image_output_bad_array(self):
        executor = DispatchExecutor(builtin_handlers())
        with pytest.raises(ValueError):
            invoke(executor, "image-output", {"图像": np.zeros((2, 2, 7), dtype=np.uint8)})

    def test_remote_kinds_have_no_handler(self):
        executor = DispatchExecutor(builtin_handlers())
        for kind in ("llm", "image-gen", "tts", "text-to-3d"):
            assert not executor.can_run(kind)

    def test_story_pipeline_runs_locally(self):
        """Text -> splitter -> storyboard runs with no provider at all."""
        registry = NodeRegistry()
        register_builtin_nodes(registry)
        graph = NodeGraph(registry)
        text = graph.add_node("text-input")
        splitter = graph.add_node("json-splitter")
        board = graph.add_node("storyboard-output")
        graph.set_literal_data(text.id, {"text": json.dumps(["s1", "s2", "s3"])})
        graph.connect(text.id, "output-0", splitter.id, "input-0")
        for index in range(3):
            graph.connect(splitter.id, f"output-{index}", board.id, f"input-{index}")

        outputs = asyncio.run(ExecutionEngine(DispatchExecutor(builtin_handlers())).run(graph))

        assert outputs[board.id] == {"result": {"shot1": "s1", "shot2": "s2", "shot3": "s3"}}
