"""
CLI command tests

Runs the validate and replay commands against JSONL files on disk.
"""

import json

import pytest
from typer.testing import CliRunner

from a2ui_engine.cli.main import app

runner = CliRunner()

UPDATE = {
    "surfaceUpdate": {
        "surfaceId": "s1",
        "root": "root",
        "components": [
            {"id": "root", "component": {"Column": {"explicitList": ["t"]}}},
            {"id": "t", "component": {"Text": {"text": {"literalString": "Hi"}}}},
        ],
    }
}
BEGIN = {"beginRendering": {"surfaceId": "s1", "root": "root"}}


def _jsonl(tmp_path, *lines, name="stream.jsonl"):
    path = tmp_path / name
    path.write_text(
        "\n".join(line if isinstance(line, str) else json.dumps(line) for line in lines) + "\n",
        encoding="utf-8",
    )
    return str(path)


class TestValidate:
    """Test the validate command."""

    def test_valid_stream(self, tmp_path):
        result = runner.invoke(app, ["validate", _jsonl(tmp_path, UPDATE, BEGIN)])
        assert result.exit_code == 0
        assert "is valid" in result.output

    def test_invalid_lines_reported(self, tmp_path):
        path = _jsonl(tmp_path, UPDATE, "{oops", {"mystery": {}})
        result = runner.invoke(app, ["validate", path])
        assert result.exit_code == 1
        assert "Line 2" in result.output
        assert "Line 3" in result.output
        assert "2 problem(s) found" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "nope.jsonl")])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestReplay:
    """Test the replay command."""

    def test_renders_ready_surface(self, tmp_path):
        result = runner.invoke(app, ["replay", _jsonl(tmp_path, UPDATE, BEGIN)])
        assert result.exit_code == 0
        assert "s1" in result.output
        assert "Column" in result.output
        assert "#t" in result.output
        assert "Hi" in result.output

    def test_json_output(self, tmp_path):
        result = runner.invoke(app, ["replay", "--json", _jsonl(tmp_path, UPDATE, BEGIN)])
        assert result.exit_code == 0
        output = json.loads(result.output)
        tree = output["surfaces"]["s1"]
        assert tree["id"] == "root"
        assert tree["children"][0]["props"]["text"] == "Hi"
        assert output["errors"] == []

    def test_early_begin_applied_once_components_arrive(self, tmp_path):
        result = runner.invoke(app, ["replay", "--json", _jsonl(tmp_path, BEGIN, UPDATE)])
        assert result.exit_code == 0
        assert json.loads(result.output)["surfaces"]["s1"]["id"] == "root"

    def test_surface_without_begin_not_ready(self, tmp_path):
        result = runner.invoke(app, ["replay", _jsonl(tmp_path, UPDATE)])
        assert result.exit_code == 0
        assert "Surface s1 is not ready" in result.output

    def test_batch_sorts_stream(self, tmp_path):
        result = runner.invoke(app, ["replay", "--batch", "--json", _jsonl(tmp_path, BEGIN, UPDATE)])
        assert result.exit_code == 0
        assert json.loads(result.output)["surfaces"]["s1"]["id"] == "root"

    def test_unknown_component_reported(self, tmp_path):
        update = {
            "surfaceUpdate": {
                "surfaceId": "s1",
                "root": "x",
                "components": [{"id": "x", "component": {"Hologram": {}}}],
            }
        }
        begin = {"beginRendering": {"surfaceId": "s1"}}
        result = runner.invoke(app, ["replay", _jsonl(tmp_path, update, begin)])
        assert result.exit_code == 0
        assert "UNKNOWN_COMPONENT_TYPE" in result.output

    def test_no_surfaces(self, tmp_path):
        result = runner.invoke(app, ["replay", _jsonl(tmp_path, "")])
        assert result.exit_code == 0
        assert "No surfaces" in result.output


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
