"""
Unit tests for generated surface normalization

Tests legacy shape conversion, root inference and validation failures.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from a2ui_engine.errors import ErrorCode, GenerationError
from a2ui_engine.generation import (
    convert_legacy_component,
    generate_surface,
    normalize_generated_surface,
)
from a2ui_engine.protocol.messages import SurfaceUpdateMessage


class TestConvertLegacyComponent:
    """Test {id, type, props, children} conversion."""

    def test_converts_legacy_shape(self):
        converted = convert_legacy_component({
            "id": "col",
            "type": "Column",
            "props": {"alignment": "center"},
            "children": ["a", "b"],
        })
        assert converted == {
            "id": "col",
            "component": {"Column": {"alignment": "center", "explicitList": ["a", "b"]}},
        }

    def test_wire_shape_unchanged(self):
        wire = {"id": "t", "component": {"Text": {"text": "Hi"}}}
        assert convert_legacy_component(wire) == wire


class TestNormalizeGeneratedSurface:
    """Test normalize_generated_surface."""

    def test_infers_root_from_first_component(self):
        message = normalize_generated_surface(
            {"components": [{"id": "a", "type": "Text", "props": {"text": "Hi"}}]},
            "s1",
        )
        assert isinstance(message, SurfaceUpdateMessage)
        assert message.surfaceId == "s1"
        assert message.root == "a"
        assert message.components[0]["component"] == {"Text": {"text": "Hi"}}

    def test_accepts_envelope_and_json_text(self):
        raw = '{"surfaceUpdate": {"surfaceId": "s1", "root": "t", "components": [{"id": "t", "component": {"Text": {}}}]}}'
        assert normalize_generated_surface(raw, "s1").root == "t"

    @pytest.mark.parametrize(
        "raw",
        [
            {"type": "beginRendering", "surfaceId": "s1"},
            {"surfaceId": "other", "components": [{"id": "t", "component": {"Text": {}}}]},
            {"root": "missing", "components": [{"id": "t", "component": {"Text": {}}}]},
            {"components": []},
            {"components": [{"id": "t", "component": {"Text": {}, "Button": {}}}]},
            {"components": ["not-an-object"]},
            "{not json",
            [1, 2],
        ],
    )
    def test_invalid_results_rejected(self, raw):
        with pytest.raises(GenerationError) as exc_info:
            normalize_generated_surface(raw, "s1")
        assert exc_info.value.error_code == ErrorCode.GENERATION_FAILED


class TestGenerateSurface:
    """Test generate_surface with a generator double."""

    @pytest.mark.asyncio
    async def test_generates_and_normalizes(self):
        generator = MagicMock()
        generator.generate = AsyncMock(return_value={
            "components": [{"id": "btn", "type": "Button", "props": {"label": "Go"}}],
        })
        message = await generate_surface(generator, "a go button", "s1")
        generator.generate.assert_awaited_once_with("a go button", "s1")
        assert message.root == "btn"

    @pytest.mark.asyncio
    async def test_generator_failure_wrapped(self):
        generator = MagicMock()
        generator.generate = AsyncMock(side_effect=RuntimeError("model unavailable"))
        with pytest.raises(GenerationError, match="model unavailable"):
            await generate_surface(generator, "anything", "s1")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
