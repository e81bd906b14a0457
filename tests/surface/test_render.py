"""
Unit tests for renderable tree construction

Tests prop resolution, placeholders for unknown types, template instances
and cycle handling.
"""

import pytest

from a2ui_engine.errors import ErrorCode
from a2ui_engine.protocol.messages import (
    BeginRenderingMessage,
    DataModelUpdateMessage,
    SurfaceUpdateMessage,
)
from a2ui_engine.surface.catalog import UNKNOWN_COMPONENT, create_default_catalog
from a2ui_engine.surface.render import VALUE_PATH_PROP, TreeRenderer
from a2ui_engine.surface.state import SurfaceState


def _ready_state(components, root="root", data=None):
    state = SurfaceState("s1")
    state.apply(SurfaceUpdateMessage(surfaceId="s1", components=components, root=root))
    if data is not None:
        state.apply(DataModelUpdateMessage(surfaceId="s1", dataModel=data))
    assert state.apply(BeginRenderingMessage(surfaceId="s1"))
    return state


@pytest.fixture
def renderer():
    return TreeRenderer(create_default_catalog())


class TestTreeRenderer:
    """Test TreeRenderer functionality."""

    def test_s1_column_with_text(self, renderer, s1_components):
        tree = renderer.render(_ready_state(s1_components).snapshot())

        assert tree.id == "root"
        assert tree.type == "Column"
        assert [child.id for child in tree.children] == ["t"]
        assert tree.children[0].type == "Text"
        assert tree.children[0].props["text"] == "Hi"

    def test_not_ready_renders_nothing(self, renderer, s1_update):
        state = SurfaceState("s1")
        state.apply(s1_update)
        assert renderer.render(state.snapshot()) is None

    def test_bound_props(self, renderer):
        state = _ready_state(
            [{"id": "root", "component": {"Text": {"text": {"path": "/greeting", "literalString": "…"}}}}],
            data={"greeting": "Hello"},
        )
        assert renderer.render(state.snapshot()).props["text"] == "Hello"

    def test_unknown_type_placeholder(self, renderer):
        reported = []
        state = _ready_state([
            {"id": "root", "component": {"Column": {"explicitList": ["x", "t"]}}},
            {"id": "x", "component": {"Hologram": {"depth": 3}}},
            {"id": "t", "component": {"Text": {"text": "still here"}}},
        ])
        tree = renderer.render(state.snapshot(), on_error=reported.append)

        placeholder = tree.children[0]
        assert placeholder.type == UNKNOWN_COMPONENT
        assert placeholder.is_unknown
        assert placeholder.requested_type == "Hologram"
        assert tree.children[1].props["text"] == "still here"
        assert reported[0].error_code == ErrorCode.UNKNOWN_COMPONENT_TYPE
        assert reported[0].details["componentId"] == "x"

    def test_template_rows(self, renderer):
        state = _ready_state(
            [
                {"id": "root", "component": {"List": {}}, "template": {"children": ["row"], "dataPath": "/items"}},
                {"id": "row", "component": {"Text": {"text": {"literalString": "row"}}}},
            ],
            data={"items": ["a", "b", "c"]},
        )
        tree = renderer.render(state.snapshot())

        assert len(tree.children) == 3
        assert [child.instance.index for child in tree.children] == [0, 1, 2]
        assert tree.find("row")[1].to_dict()["dataPath"] == "/items/1"

    def test_cycle_is_cut(self, renderer):
        reported = []
        state = _ready_state([
            {"id": "root", "component": {"Column": {"explicitList": ["inner"]}}},
            {"id": "inner", "component": {"Column": {"explicitList": ["root"]}}},
        ])
        tree = renderer.render(state.snapshot(), on_error=reported.append)

        assert tree.children[0].id == "inner"
        assert tree.children[0].children == []
        assert reported[0].error_code == ErrorCode.INVALID_COMPONENT

    def test_depth_limit(self):
        components = [
            {"id": f"c{i}", "component": {"Column": {"explicitList": [f"c{i + 1}"]}}}
            for i in range(10)
        ]
        state = _ready_state(components, root="c0")
        tree = TreeRenderer(create_default_catalog(), max_depth=3).render(state.snapshot())
        assert [node.id for node in tree.iter_nodes()] == ["c0", "c1", "c2"]

    def test_invalid_props_reported(self, renderer):
        reported = []
        state = _ready_state([
            {"id": "root", "component": {"Image": {"url": "x.png", "action": "not-an-object"}}},
        ])
        tree = renderer.render(state.snapshot(), on_error=reported.append)
        assert tree.type == "Image"
        assert reported[0].error_code == ErrorCode.INVALID_PROPS


class TestRenderedProps:
    """Test which props reach the renderer and in what form."""

    def test_raw_strings_html_escaped(self, renderer):
        state = _ready_state([
            {"id": "root", "component": {"Text": {"text": "<script>alert('x')</script> & co"}}},
        ])
        props = renderer.render(state.snapshot()).props
        assert props["text"] == "&lt;script&gt;alert(&#x27;x&#x27;)&lt;/script&gt; &amp; co"

    def test_string_array_items_escaped(self, renderer):
        state = _ready_state([
            {"id": "root", "component": {"Select": {"options": ["<a>", 1, "b\"c"]}}},
        ])
        assert renderer.render(state.snapshot()).props["options"] == ["&lt;a&gt;", 1, "b&quot;c"]

    def test_structural_props_not_resolved(self, renderer):
        action = {"name": "open", "context": {"id": {"path": "/id"}}}
        state = _ready_state([
            {"id": "root", "component": {"Column": {"explicitList": ["t"], "alignment": "center"}}},
            {"id": "t", "component": {"Link": {"text": "Docs", "action": action}}},
        ])
        tree = renderer.render(state.snapshot())

        assert tree.props == {"alignment": "center"}
        link = tree.children[0]
        assert "action" not in link.props
        assert link.action == action
        assert link.to_dict()["action"] == action

    def test_button_text_dropped_when_it_has_children(self, renderer):
        state = _ready_state([
            {"id": "root", "component": {"Column": {"explicitList": ["with-child", "plain"]}}},
            {"id": "with-child", "component": {"Button": {"text": "Go", "child": "label"}}},
            {"id": "label", "component": {"Text": {"text": "Go"}}},
            {"id": "plain", "component": {"Button": {"text": "Stop"}}},
        ])
        with_child, plain = renderer.render(state.snapshot()).children

        assert "text" not in with_child.props
        assert [child.id for child in with_child.children] == ["label"]
        assert plain.props["text"] == "Stop"

    @pytest.mark.parametrize("type_name,key", [
        ("TextField", "value"),
        ("TextArea", "value"),
        ("Select", "value"),
        ("Checkbox", "checked"),
    ])
    def test_form_widgets_expose_value_path(self, renderer, type_name, key):
        state = _ready_state(
            [{"id": "root", "component": {type_name: {key: {"path": "/form/field"}}}}],
            data={"form": {"field": "Ada"}},
        )
        props = renderer.render(state.snapshot()).props
        assert props[key] == "Ada"
        assert props[VALUE_PATH_PROP] == "/form/field"

    def test_literal_or_unbound_value_has_no_path(self, renderer):
        state = _ready_state([
            {"id": "root", "component": {"Column": {"explicitList": ["a", "b"]}}},
            {"id": "a", "component": {"TextField": {"value": {"literalString": "fixed"}}}},
            {"id": "b", "component": {"Text": {"text": {"path": "/x"}}}},
        ], data={"x": "y"})
        literal, text = renderer.render(state.snapshot()).children
        assert VALUE_PATH_PROP not in literal.props
        assert VALUE_PATH_PROP not in text.props


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
