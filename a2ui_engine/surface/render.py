"""
Renderable tree construction.

Walks a surface snapshot from its root, resolving bound props, expanding
children and looking types up in the component catalog. Unknown types become
``UnknownComponent`` placeholder nodes; nothing here raises into the caller.
"""
from __future__ import annotations

import html
import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import A2UIError, ErrorCode
from .binding import BindingResolver, is_path_value
from .catalog import UNKNOWN_COMPONENT, ComponentCatalog, UnknownComponent, validate_props
from .expander import TemplateInstance, TreeExpander
from .state import SurfaceSnapshot

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

# Handled by child expansion and action dispatch, never resolved as props
STRUCTURAL_PROPS = frozenset({"explicitList", "template", "child", "action"})

# Input widgets and the prop that carries their two-way bound value
FORM_VALUE_PROPS = {"TextField": "value", "TextArea": "value", "Select": "value", "Checkbox": "checked"}

VALUE_PATH_PROP = "_valuePath"


def sanitize_props(props: Mapping[str, Any]) -> dict[str, Any]:
    """
    HTML-escape raw string props and string array items.

    Structural props, bound values and literal objects pass through untouched.
    """
    sanitized: dict[str, Any] = {}
    for key, value in props.items():
        if key in STRUCTURAL_PROPS:
            sanitized[key] = value
        elif isinstance(value, str):
            sanitized[key] = html.escape(value)
        elif isinstance(value, list):
            sanitized[key] = [html.escape(item) if isinstance(item, str) else item for item in value]
        else:
            sanitized[key] = value
    return sanitized


def value_path(type_name: str, props: Mapping[str, Any]) -> str | None:
    """The data model path an input widget writes back to, if its value is bound"""
    key = FORM_VALUE_PROPS.get(type_name)
    if key is None:
        return None
    value = props.get(key)
    if is_path_value(value) and isinstance(value["path"], str) and value["path"]:
        return value["path"]
    return None


def renderable_props(type_name: str, props: Mapping[str, Any]) -> dict[str, Any]:
    """
    Props that go through binding resolution.

    Drops structural props, and a Button's ``text`` when the button renders
    children instead.
    """
    has_children = bool(props.get("child")) or bool(
        isinstance(props.get("explicitList"), list) and props["explicitList"]
    )
    return {
        key: value
        for key, value in props.items()
        if key not in STRUCTURAL_PROPS and not (type_name == "Button" and key == "text" and has_children)
    }


@dataclass
class RenderedNode:
    """A component ready for a renderer: resolved props and rendered children"""
    id: str
    type: str
    props: dict[str, Any] = field(default_factory=dict)
    children: list[RenderedNode] = field(default_factory=list)
    extras: dict[str, Any] = field(default_factory=dict)
    action: dict[str, Any] | None = None
    instance: TemplateInstance | None = None
    requested_type: str | None = None

    @property
    def is_unknown(self) -> bool:
        return self.type == UNKNOWN_COMPONENT

    def iter_nodes(self) -> Iterator[RenderedNode]:
        yield self
        for child in self.children:
            yield from child.iter_nodes()

    def find(self, component_id: str) -> list[RenderedNode]:
        return [node for node in self.iter_nodes() if node.id == component_id]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "type": self.type, "props": self.props}
        if self.action is not None:
            data["action"] = self.action
        if self.requested_type:
            data["requestedType"] = self.requested_type
        if self.instance is not None:
            data["dataPath"] = self.instance.data_path
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


class TreeRenderer:
    """
    Builds ``RenderedNode`` trees from surface snapshots.

    Args:
        catalog: Component catalog used for type lookup and prop validation
        max_depth: Nesting limit, guards against runaway trees
    """

    def __init__(self, catalog: ComponentCatalog, max_depth: int = DEFAULT_MAX_DEPTH):
        self.catalog = catalog
        self.max_depth = max_depth

    def render(
        self,
        snapshot: SurfaceSnapshot,
        on_error: Callable[[A2UIError], None] | None = None,
    ) -> RenderedNode | None:
        """
        Render a ready surface from its root.

        Returns:
            Root node, or None when the surface is not ready
        """
        if not snapshot.is_ready or not snapshot.root:
            return None
        return self.render_component(snapshot, snapshot.root, on_error)

    def render_component(
        self,
        snapshot: SurfaceSnapshot,
        component_id: str,
        on_error: Callable[[A2UIError], None] | None = None,
    ) -> RenderedNode | None:
        return _RenderPass(self, snapshot, on_error).render_node(component_id, None, ())


class _RenderPass:
    def __init__(
        self,
        renderer: TreeRenderer,
        snapshot: SurfaceSnapshot,
        on_error: Callable[[A2UIError], None] | None,
    ):
        self.renderer = renderer
        self.snapshot = snapshot
        self.on_error = on_error
        self.expander: TreeExpander[RenderedNode] = TreeExpander(on_error=self.report)

    def report(self, error: A2UIError, component_id: str | None = None) -> None:
        if component_id and "componentId" not in error.details:
            error.details["componentId"] = component_id
        if self.on_error:
            self.on_error(error)

    def render_node(
        self,
        component_id: str,
        instance: TemplateInstance | None,
        ancestors: tuple[str, ...],
    ) -> RenderedNode | None:
        definition = self.snapshot.components.get(component_id)
        if definition is None:
            logger.debug(f"Skipping undefined component {component_id!r}")
            return None

        if component_id in ancestors:
            logger.warning(f"Cycle through {component_id!r}, skipping")
            self.report(A2UIError(
                f"Component {component_id!r} contains itself",
                ErrorCode.INVALID_COMPONENT,
            ), component_id)
            return None

        if len(ancestors) >= self.renderer.max_depth:
            logger.warning(f"Render depth limit reached at {component_id!r}")
            return None

        data_model = self.snapshot.data_model
        resolver = BindingResolver(on_error=lambda e: self.report(e, component_id))
        raw = sanitize_props(definition.props)
        props = resolver.resolve_props(renderable_props(definition.type_name, raw), data_model)
        structural = {key: raw[key] for key in STRUCTURAL_PROPS if key in raw}
        action = raw.get("action") if isinstance(raw.get("action"), dict) else None

        entry = self.renderer.catalog.resolve(definition.type_name)
        if isinstance(entry, UnknownComponent):
            logger.warning(f"Unknown component type {entry.requested_type!r} for {component_id!r}")
            self.report(A2UIError(
                f"Unknown component type '{entry.requested_type}'",
                ErrorCode.UNKNOWN_COMPONENT_TYPE,
                {"componentId": component_id, "type": entry.requested_type},
            ))
            return RenderedNode(
                id=component_id,
                type=UNKNOWN_COMPONENT,
                props=props,
                instance=instance,
                requested_type=entry.requested_type,
            )

        model, errors = validate_props(entry, {**structural, **props})
        if errors:
            self.report(A2UIError(
                f"Invalid props for {entry.type_name}",
                ErrorCode.INVALID_PROPS,
                {"componentId": component_id, "errors": errors},
            ))

        path = ancestors + (component_id,)
        children = self.expander.expand_children(
            definition,
            data_model,
            lambda child_id, child_instance: self.render_node(
                child_id, child_instance or instance, path
            ),
        )

        bound_path = value_path(entry.type_name, raw)
        if bound_path:
            props[VALUE_PATH_PROP] = bound_path

        return RenderedNode(
            id=component_id,
            type=entry.type_name,
            props=props,
            children=children,
            extras=model.extras if model is not None else {},
            action=action,
            instance=instance,
        )


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "STRUCTURAL_PROPS",
    "FORM_VALUE_PROPS",
    "VALUE_PATH_PROP",
    "sanitize_props",
    "value_path",
    "renderable_props",
    "RenderedNode",
    "TreeRenderer",
]
