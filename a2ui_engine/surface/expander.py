"""
Child expansion for component definitions.

Children come from three places:
- ``explicitList``: ordered ids, in the type's props (or under ``children``)
- ``child``: a single id, used only when no explicit list is given
- ``template``: ids repeated once per element of an array in the data model
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..errors import A2UIError, ErrorCode, PointerError
from ..protocol.messages import ComponentDefinition
from ..protocol.pointer import resolve_pointer

logger = logging.getLogger(__name__)

TNode = TypeVar("TNode")


@dataclass(frozen=True)
class TemplateInstance:
    """One repetition of a template: the array element it is bound to"""
    index: int
    data_path: str
    item: Any


def static_child_ids(definition: ComponentDefinition) -> list[str]:
    """
    Ids declared directly on a definition.

    ``explicitList`` wins over ``child``; declaring both never renders twice.
    """
    props = definition.props
    explicit = props.get("explicitList")
    if explicit is None and isinstance(props.get("children"), dict):
        explicit = props["children"].get("explicitList")

    if isinstance(explicit, list) and explicit:
        if props.get("child"):
            logger.debug(f"{definition.id}: both explicitList and child given, ignoring child")
        return [cid for cid in explicit if isinstance(cid, str)]

    child = props.get("child")
    if isinstance(child, str) and child:
        return [child]
    return []


class TreeExpander(Generic[TNode]):
    """
    Produces the ordered rendered children of a definition.

    Missing child ids are skipped: ``render_one`` returns ``None`` for them.
    Template failures are reported through ``on_error`` and skip only the
    template part.
    """

    def __init__(self, on_error: Callable[[A2UIError], None] | None = None):
        self._on_error = on_error

    def expand_children(
        self,
        definition: ComponentDefinition,
        data_model: Any,
        render_one: Callable[[str, TemplateInstance | None], TNode | None],
    ) -> list[TNode]:
        """
        Expand a definition into rendered child nodes.

        Args:
            definition: Parent component definition
            data_model: Surface data model for template arrays
            render_one: Renders one child id, or returns None to skip it

        Returns:
            Rendered children in order: static children, then template instances
        """
        nodes: list[TNode] = []

        for child_id in static_child_ids(definition):
            node = render_one(child_id, None)
            if node is not None:
                nodes.append(node)

        template = definition.template
        if template is None or not template.children:
            return nodes

        if template.dataPath is None:
            for child_id in template.children:
                node = render_one(child_id, None)
                if node is not None:
                    nodes.append(node)
            return nodes

        items = self._template_items(definition, template.dataPath, data_model)
        if items is None:
            return nodes

        for index, item in enumerate(items):
            instance = TemplateInstance(
                index=index,
                data_path=f"{template.dataPath}/{index}",
                item=item,
            )
            for child_id in template.children:
                node = render_one(child_id, instance)
                if node is not None:
                    nodes.append(node)

        return nodes

    def _template_items(
        self, definition: ComponentDefinition, data_path: str, data_model: Any
    ) -> list[Any] | None:
        try:
            items = resolve_pointer(data_model, data_path)
        except PointerError as e:
            self._report(definition, data_path, f"template dataPath failed: {e}")
            return None

        if not isinstance(items, list):
            self._report(
                definition,
                data_path,
                f"template dataPath resolved to {type(items).__name__}, expected array",
            )
            return None
        return items

    def _report(self, definition: ComponentDefinition, data_path: str, reason: str) -> None:
        logger.warning(f"Template render error in {definition.id}: {reason}")
        if self._on_error:
            self._on_error(A2UIError(
                reason,
                ErrorCode.TEMPLATE_RENDER_ERROR,
                {"componentId": definition.id, "dataPath": data_path},
            ))


def expand_children(
    definition: ComponentDefinition,
    data_model: Any,
    render_one: Callable[[str, TemplateInstance | None], TNode | None],
    on_error: Callable[[A2UIError], None] | None = None,
) -> list[TNode]:
    return TreeExpander(on_error).expand_children(definition, data_model, render_one)


__all__ = [
    "TemplateInstance",
    "TreeExpander",
    "static_child_ids",
    "expand_children",
]
