"""
Tests for workflow validation.
"""

import pytest

from joinrender.core.data_types import PortType, TextWidget
from joinrender.core.graph import Connection, NodeGraph, new_node_id
from joinrender.core.node_types import NodeDefinition, NodeRegistry, PortSpec
from joinrender.core.validation import IssueCode, find_cycle, validate_workflow
from joinrender.nodes import register_builtin_nodes


@pytest.fixture
def registry():
    registry = NodeRegistry()
    register_builtin_nodes(registry)
    return registry


@pytest.fixture
def graph(registry):
    return NodeGraph(registry)


class TestValidateWorkflow:
    def test_empty_workflow_is_valid_with_warning(self, graph):
        result = validate_workflow(graph)

        assert result.valid
        assert [w.code for w in result.warnings] == [IssueCode.EMPTY_WORKFLOW]

    def test_single_node_is_not_isolated(self, graph):
        graph.add_node("text-input")
        result = validate_workflow(graph)
        assert result.valid
        assert result.warnings == []

    def test_isolated_node_gives_one_warning(self, graph):
        text = graph.add_node("text-input")
        llm = graph.add_node("llm")
        lonely = graph.add_node("text-input")
        graph.connect(text.id, "output-0", llm.id, "input-0")

        result = validate_workflow(graph)

        assert result.errors == []
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert warning.code == IssueCode.UNCONNECTED_NODE
        assert warning.node_id == lonely.id

    def test_type_mismatch_is_warning(self, graph):
        text = graph.add_node("text-input")
        llm = graph.add_node("llm")
        splitter = graph.add_node("json-splitter")
        graph.connect(text.id, "output-0", llm.id, "input-0")
        graph.connect(llm.id, "output-0", splitter.id, "input-0")
        image = graph.add_node("image-analyzer")
        graph.connect(splitter.id, "output-0", image.id, "input-0")

        result = validate_workflow(graph)

        # splitter text output into an image input
        mismatches = result.warnings_of(IssueCode.TYPE_MISMATCH)
        assert len(mismatches) == 1
        assert mismatches[0].port_name == "图像"
        assert result.valid

    def test_input_without_connection_warns(self):
        registry = NodeRegistry([
            NodeDefinition(kind="src", name="Src", outputs=(PortSpec("out", PortType.TEXT),)),
            NodeDefinition(
                kind="dst",
                name="Dst",
                inputs=(
                    PortSpec("needed", PortType.TEXT),
                    PortSpec("literal", PortType.TEXT, widget=TextWidget("x")),
                ),
            ),
        ])
        graph = NodeGraph(registry)
        graph.add_node("src")
        dst = graph.add_node("dst")

        result = validate_workflow(graph)

        unconnected = result.warnings_of(IssueCode.UNCONNECTED_INPUT)
        assert [(w.node_id, w.port_name) for w in unconnected] == [(dst.id, "needed")]

    def test_cycle_reported_once(self, graph):
        a = graph.add_node("llm")
        b = graph.add_node("prompt-enhancer")
        c = graph.add_node("llm")
        graph.connect(a.id, "output-0", b.id, "input-0")
        graph.connect(b.id, "output-0", a.id, "input-0")
        graph.connect(b.id, "output-0", c.id, "input-0")
        graph.connect(c.id, "output-0", a.id, "input-0")

        result = validate_workflow(graph)

        cycles = result.errors_of(IssueCode.CYCLE)
        assert len(cycles) == 1
        assert "LLM" in cycles[0].message
        assert not result.valid

    def test_dangling_connection_is_error(self, graph):
        text = graph.add_node("text-input")
        graph.insert_connection(Connection.create(text.id, "output-0", new_node_id(), "input-0"))

        result = validate_workflow(graph)

        assert [e.code for e in result.errors] == [IssueCode.DANGLING_CONNECTION]

    def test_missing_port_is_error(self, graph):
        text = graph.add_node("text-input")
        llm = graph.add_node("llm")
        graph.insert_connection(Connection.create(text.id, "output-5", llm.id, "input-0"))

        result = validate_workflow(graph)

        assert result.errors_of(IssueCode.DANGLING_CONNECTION)


class TestFindCycle:
    def test_acyclic(self, graph):
        a = graph.add_node("text-input")
        b = graph.add_node("llm")
        graph.connect(a.id, "output-0", b.id, "input-0")
        assert find_cycle(graph) is None

    def test_cycle_in_edge_order(self, graph):
        a = graph.add_node("llm")
        b = graph.add_node("prompt-enhancer")
        graph.connect(a.id, "output-0", b.id, "input-0")
        graph.connect(b.id, "output-0", a.id, "input-0")

        assert find_cycle(graph) == [a.id, b.id]
