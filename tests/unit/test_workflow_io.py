"""
Tests for native snapshots and format detection.
"""

import json

import pytest

from joinrender.core.errors import UnrecognizedFormatError
from joinrender.core.graph import NodeGraph, Point2D, Size2D
from joinrender.core.node_types import NodeRegistry
from joinrender.core.validation import IssueCode, validate_workflow
from joinrender.core.workflow_io import (
    SNAPSHOT_VERSION,
    WorkflowFormat,
    detect_format,
    export_workflow,
    graph_from_dict,
    graph_to_dict,
    import_workflow,
    load_workflow,
    save_workflow,
)
from joinrender.nodes import register_builtin_nodes


@pytest.fixture
def registry():
    registry = NodeRegistry()
    register_builtin_nodes(registry)
    return registry


@pytest.fixture
def story_graph(registry):
    graph = NodeGraph(registry, "Story")
    text = graph.add_node("text-input", Point2D(10, 20))
    llm = graph.add_node("llm", Point2D(300, 20))
    image = graph.add_node("image-gen", Point2D(600, 20))
    text.size = Size2D(250, 120)
    graph.set_literal_data(text.id, {"text": "The ship drifted toward the moon."})
    graph.connect(text.id, "output-0", llm.id, "input-0")
    graph.connect(llm.id, "output-0", image.id, "input-0")
    return graph


class TestDetectFormat:
    def test_interchange(self):
        assert detect_format({"last_node_id": 0, "nodes": [], "links": []}) == WorkflowFormat.INTERCHANGE

    def test_native(self):
        assert detect_format({"nodes": [], "connections": []}) == WorkflowFormat.NATIVE

    @pytest.mark.parametrize("data", [
        {"nodes": []},
        {"nodes": [], "links": []},
        [],
        "text",
        None,
    ])
    def test_unrecognized(self, data):
        with pytest.raises(UnrecognizedFormatError):
            detect_format(data)


class TestSnapshot:
    def test_snapshot_fields(self, story_graph):
        data = graph_to_dict(story_graph, description="Three shots")

        assert data["version"] == SNAPSHOT_VERSION
        assert data["name"] == "Story"
        assert data["description"] == "Three shots"
        assert "savedAt" in data
        assert len(data["nodes"]) == 3
        assert len(data["connections"]) == 2

        text = data["nodes"][0]
        assert text["type"] == "text-input"
        assert text["position"] == {"x": 10, "y": 20}
        assert text["size"] == {"width": 250, "height": 120}
        assert text["outputs"][0]["connected"] is True

        conn = data["connections"][0]
        assert set(conn) == {"id", "sourceNodeId", "sourcePortId", "targetNodeId", "targetPortId", "type"}
        assert conn["type"] == "text"

    def test_reference_inputs_are_marked(self, registry):
        graph = NodeGraph(registry)
        graph.add_node("image-gen")

        inputs = graph_to_dict(graph)["nodes"][0]["inputs"]

        assert any(port.get("isReferenceInput") for port in inputs)

    def test_no_description_by_default(self, story_graph):
        assert "description" not in graph_to_dict(story_graph)

    def test_round_trip(self, story_graph, registry):
        restored = graph_from_dict(json.loads(json.dumps(graph_to_dict(story_graph))), registry)

        assert restored.name == "Story"
        assert list(restored.nodes) == list(story_graph.nodes)
        for node_id, node in story_graph.nodes.items():
            other = restored.nodes[node_id]
            assert other.kind == node.kind
            assert other.position == node.position
            assert other.data == node.data
            assert other.size == node.size
        assert [c.id for c in restored.connections] == [c.id for c in story_graph.connections]
        assert all(p.connected for p in restored.nodes[list(restored.nodes)[1]].inputs)

    def test_unknown_kind_is_skipped(self, story_graph, registry):
        data = graph_to_dict(story_graph)
        data["nodes"][1]["type"] = "retired-node"

        restored = graph_from_dict(data, registry)

        assert len(restored) == 2
        # Connections to the skipped node are kept and reported
        assert len(restored.connections) == 2
        result = validate_workflow(restored)
        assert len(result.errors_of(IssueCode.DANGLING_CONNECTION)) == 2

    def test_malformed_entries_are_skipped(self, registry):
        data = {
            "nodes": ["bad", {"type": "text-input", "position": {"x": "oops"}}],
            "connections": [{"sourceNodeId": "a"}, 7],
        }

        graph = graph_from_dict(data, registry)

        assert len(graph) == 1
        node = next(iter(graph.nodes.values()))
        assert node.position == Point2D(0, 0)
        assert graph.connections == []
        assert graph.name == "Untitled"


    def test_malformed_position_and_data_degrade(self, registry):
        text = json.dumps({
            "nodes": [{"id": "n1", "type": "text-input", "position": [1, 2], "data": "oops"}],
            "connections": [],
        })

        graph = import_workflow(text, registry)

        node = graph.nodes["n1"]
        assert node.position == Point2D(0, 0)
        assert node.data == registry.get("text-input").get_default_data()

    def test_malformed_lists_degrade(self, registry):
        graph = graph_from_dict({"name": 5, "nodes": {"a": 1}, "connections": "none"}, registry)
        assert len(graph) == 0
        assert graph.connections == []
        assert graph.name == "Untitled"

    def test_loaded_connections_keep_graph_invariants(self, registry):
        def link(link_id, source, target):
            return {
                "id": link_id,
                "sourceNodeId": source,
                "sourcePortId": "output-0",
                "targetNodeId": target,
                "targetPortId": "input-0",
            }

        data = {
            "nodes": [
                {"id": "a", "type": "text-input"},
                {"id": "b", "type": "text-input"},
                {"id": "c", "type": "llm"},
            ],
            "connections": [
                link("c1", "a", "c"),
                link("c2", "b", "c"),
                link("c3", "c", "c"),
                link("c4", "b", "c"),
            ],
        }

        graph = graph_from_dict(data, registry)

        into_c = [conn for conn in graph.connections if conn.target_node_id == "c"]
        assert [conn.id for conn in into_c] == ["c2"]
        assert not graph.nodes["a"].outputs[0].connected
        assert graph.nodes["b"].outputs[0].connected
        assert graph.nodes["c"].inputs[0].connected

class TestImportExport:
    def test_import_text_native(self, story_graph, registry):
        text = json.dumps(graph_to_dict(story_graph))
        assert len(import_workflow(text, registry)) == 3

    def test_import_interchange(self, story_graph, registry):
        document = export_workflow(story_graph, WorkflowFormat.INTERCHANGE)

        graph = import_workflow(document, registry)

        assert sorted(n.kind for n in graph.nodes.values()) == ["image-gen", "llm", "text-input"]
        assert len(graph.connections) == 2

    def test_invalid_json(self, registry):
        with pytest.raises(UnrecognizedFormatError):
            import_workflow("{nope", registry)

    def test_unrecognized_document(self, registry):
        with pytest.raises(UnrecognizedFormatError):
            import_workflow('{"hello": "world"}', registry)

    def test_save_and_load(self, story_graph, registry, tmp_path):
        path = save_workflow(story_graph, tmp_path / "nested" / "story.json", description="d")

        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8"))["description"] == "d"
        graph = load_workflow(path, registry)
        assert len(graph) == 3
        assert len(graph.connections) == 2

    def test_save_interchange_keeps_unicode(self, story_graph, tmp_path):
        path = save_workflow(story_graph, tmp_path / "story.comfy.json", WorkflowFormat.INTERCHANGE)
        text = path.read_text(encoding="utf-8")
        assert "输入文本" in text
        assert json.loads(text)["version"] == 0.4
