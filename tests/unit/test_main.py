"""
Tests for the command line entry point.
"""

import json

import pytest
from PIL import Image

from joinrender.core.media import image_to_data_url
from joinrender.core.session import WorkflowSession
from joinrender.core.settings import EngineSettings
from joinrender.main import main


def cli(*args):
    return main(["--no-user-nodes", *args])


@pytest.fixture
def workflow_file(tmp_path):
    """text-input -> json-splitter and image-upload -> image-output, saved natively."""
    session = WorkflowSession(EngineSettings())
    graph = session.graph
    text = graph.add_node("text-input")
    upload = graph.add_node("image-upload")
    splitter = graph.add_node("json-splitter")
    output = graph.add_node("image-output")
    graph.set_literal_data(text.id, {"text": json.dumps({"a": "one", "b": "two", "c": "three"})})
    graph.set_literal_data(upload.id, {"imageUrl": "data:image/png;base64,AAAA"})
    graph.connect(text.id, "output-0", splitter.id, "input-0")
    graph.connect(upload.id, "output-0", output.id, "input-0")
    return session.save(tmp_path / "story.json")


@pytest.fixture
def cyclic_file(tmp_path):
    session = WorkflowSession(EngineSettings())
    a = session.graph.add_node("llm")
    b = session.graph.add_node("prompt-enhancer")
    session.graph.connect(a.id, "output-0", b.id, "input-0")
    session.graph.connect(b.id, "output-0", a.id, "input-0")
    return session.save(tmp_path / "cycle.json")


class TestNodes:
    def test_list(self, capsys):
        assert cli("nodes") == 0
        out = capsys.readouterr().out
        assert "text-input" in out
        assert "ksampler" in out

    def test_category(self, capsys):
        assert cli("nodes", "--category", "llm") == 0
        out = capsys.readouterr().out
        assert "json-splitter" in out
        assert "text-input" not in out

    def test_kind(self, capsys):
        assert cli("nodes", "--kind", "json-splitter") == 0
        out = capsys.readouterr().out
        assert "in  JSON 文本 (text)" in out
        assert "out 提示词 3 (text)" in out

    def test_search(self, capsys):
        assert cli("nodes", "--search", "storyboard") == 0
        out = capsys.readouterr().out
        assert "storyboard-output" in out
        assert "text-input" not in out

    def test_unknown_kind(self, capsys):
        assert cli("nodes", "--kind", "nope") == 2
        assert "Unknown node kind: nope" in capsys.readouterr().err


class TestValidate:
    def test_valid(self, workflow_file, capsys):
        assert cli("validate", str(workflow_file)) == 0
        assert "0 error(s)" in capsys.readouterr().out

    def test_cycle(self, cyclic_file, capsys):
        assert cli("validate", str(cyclic_file)) == 1
        assert "cycle" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert cli("validate", str(tmp_path / "missing.json")) == 2
        assert "Error" in capsys.readouterr().err

    def test_unrecognized_file(self, tmp_path):
        path = tmp_path / "odd.json"
        path.write_text('{"hello": 1}', encoding="utf-8")
        assert cli("validate", str(path)) == 2


class TestConvert:
    def test_to_stdout(self, workflow_file, capsys):
        assert cli("convert", str(workflow_file), "--to", "comfy") == 0
        document = json.loads(capsys.readouterr().out)
        assert document["version"] == 0.4
        assert len(document["links"]) == 2

    def test_to_file_and_back(self, workflow_file, tmp_path):
        comfy = tmp_path / "story.comfy.json"
        native = tmp_path / "story.native.json"

        assert cli("convert", str(workflow_file), "--to", "comfy", "-o", str(comfy)) == 0
        assert cli("convert", str(comfy), "--to", "native", "-o", str(native)) == 0

        data = json.loads(native.read_text(encoding="utf-8"))
        assert sorted(n["type"] for n in data["nodes"]) == [
            "image-output", "image-upload", "json-splitter", "text-input",
        ]


class TestOrderAndRun:
    def test_order(self, workflow_file, capsys):
        assert cli("order", str(workflow_file)) == 0
        lines = capsys.readouterr().out.splitlines()
        assert "text-input" in lines[0]
        assert "image-upload" in lines[1]
        assert "json-splitter" in lines[2]

    def test_order_reports_cycle(self, cyclic_file, capsys):
        assert cli("order", str(cyclic_file)) == 0
        assert "skipped (cycle)" in capsys.readouterr().out

    def test_run(self, workflow_file, capsys):
        assert cli("run", str(workflow_file)) == 0
        outputs = json.loads(capsys.readouterr().out)
        assert {"提示词 1": "one", "提示词 2": "two", "提示词 3": "three"} in outputs.values()
        assert {"result": "data:image/png;base64,AAAA"} in outputs.values()

    def test_run_saves_images(self, tmp_path, capsys):
        session = WorkflowSession(EngineSettings())
        upload = session.graph.add_node("image-upload")
        output = session.graph.add_node("image-output")
        session.graph.set_literal_data(upload.id, {"imageUrl": image_to_data_url(Image.new("RGB", (3, 2)))})
        session.graph.connect(upload.id, "output-0", output.id, "input-0")
        path = session.save(tmp_path / "image.json")
        out_dir = tmp_path / "images"

        assert cli("run", str(path), "--save-images", str(out_dir)) == 0

        saved = out_dir / f"{output.id}.png"
        assert saved.exists()
        with Image.open(saved) as image:
            assert image.size == (3, 2)
        assert "saved:" in capsys.readouterr().err

    def test_run_skips_undecodable_images(self, workflow_file, tmp_path):
        out_dir = tmp_path / "images"
        assert cli("run", str(workflow_file), "--save-images", str(out_dir)) == 0
        assert list(out_dir.iterdir()) == []

    def test_run_with_failures(self, tmp_path, capsys):
        session = WorkflowSession(EngineSettings())
        session.graph.add_node("llm")
        path = session.save(tmp_path / "llm.json")

        assert cli("run", str(path)) == 1
        assert "failed" in capsys.readouterr().err
