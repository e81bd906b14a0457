"""Component catalog: capability lookup by component type name.

Each entry pairs a type name with its prop model (known props plus an
``extras`` bucket for anything else) and an optional renderer callable.
Types missing from the catalog resolve to ``UnknownComponent``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

UNKNOWN_COMPONENT = "UnknownComponent"

Renderer = Callable[[Any], Any]


class ComponentProps(BaseModel):
    """Resolved props shared by every component type."""

    model_config = ConfigDict(extra="allow")

    action: Optional[dict[str, Any]] = None

    @property
    def extras(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class ContainerProps(ComponentProps):
    explicitList: Optional[list[str]] = None
    child: Optional[str] = None
    children: Optional[dict[str, Any]] = None


class TextProps(ComponentProps):
    text: Any = None
    usageHint: Optional[str] = None


class ButtonProps(ComponentProps):
    label: Any = None
    text: Any = None
    child: Optional[str] = None
    primary: Optional[bool] = None


class CardProps(ContainerProps):
    elevation: Optional[int] = None


class RowProps(ContainerProps):
    distribution: Optional[str] = None
    alignment: Optional[str] = None


class ColumnProps(ContainerProps):
    distribution: Optional[str] = None
    alignment: Optional[str] = None


class ListProps(ContainerProps):
    direction: Optional[str] = None


class TextFieldProps(ComponentProps):
    label: Any = None
    placeholder: Any = None
    value: Any = None
    text: Any = None
    name: Optional[str] = None


class TextAreaProps(TextFieldProps):
    rows: Optional[int] = None


class CheckboxProps(ComponentProps):
    label: Any = None
    value: Any = None
    checked: Any = None


class SelectProps(ComponentProps):
    label: Any = None
    options: Optional[list[Any]] = None
    value: Any = None


class ImageProps(ComponentProps):
    url: Any = None
    src: Any = None
    alt: Any = None


class LinkProps(ComponentProps):
    text: Any = None
    href: Any = None


class BadgeProps(ComponentProps):
    text: Any = None
    variant: Optional[str] = None


class DividerProps(ComponentProps):
    axis: Optional[str] = None


@dataclass
class CatalogEntry:
    """A registered component type."""

    type_name: str
    props_model: type[ComponentProps] = ComponentProps
    renderer: Renderer | None = None

    def validate_props(self, props: dict[str, Any]) -> ComponentProps:
        """Validate resolved props against this type's model.

        Raises:
            ValidationError: If a known prop has the wrong shape
        """
        return self.props_model.model_validate(props)


@dataclass
class UnknownComponent:
    """Catalog miss: the requested type has no registered entry."""

    requested_type: str
    type_name: str = UNKNOWN_COMPONENT


class ComponentCatalog:
    """Registry of renderable component types."""

    def __init__(self):
        self._entries: dict[str, CatalogEntry] = {}

    def register(
        self,
        type_name: str,
        props_model: type[ComponentProps] = ComponentProps,
        renderer: Renderer | None = None,
    ) -> CatalogEntry:
        """Register (or replace) a component type.

        Args:
            type_name: Component type name as it appears on the wire
            props_model: Model used to validate resolved props
            renderer: Optional renderer capability for this type

        Returns:
            The registered entry
        """
        entry = CatalogEntry(type_name=type_name, props_model=props_model, renderer=renderer)
        self._entries[type_name] = entry
        return entry

    def unregister(self, type_name: str) -> bool:
        return self._entries.pop(type_name, None) is not None

    def has(self, type_name: str) -> bool:
        return type_name in self._entries

    def get(self, type_name: str) -> CatalogEntry | None:
        return self._entries.get(type_name)

    def resolve(self, type_name: str) -> CatalogEntry | UnknownComponent:
        entry = self._entries.get(type_name)
        if entry is None:
            return UnknownComponent(requested_type=type_name)
        return entry

    def list_types(self) -> list[str]:
        return list(self._entries.keys())

    def __contains__(self, type_name: str) -> bool:
        return self.has(type_name)

    def __len__(self) -> int:
        return len(self._entries)


def validate_props(entry: CatalogEntry, props: dict[str, Any]) -> tuple[ComponentProps | None, list[str]]:
    """Validate props, returning (model, errors) instead of raising."""
    try:
        return entry.validate_props(props), []
    except ValidationError as e:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        logger.warning(f"Invalid props for {entry.type_name}: {errors}")
        return None, errors


STANDARD_COMPONENTS: dict[str, type[ComponentProps]] = {
    "Text": TextProps,
    "Button": ButtonProps,
    "Card": CardProps,
    "Row": RowProps,
    "Column": ColumnProps,
    "List": ListProps,
    "TextField": TextFieldProps,
    "TextArea": TextAreaProps,
    "Checkbox": CheckboxProps,
    "Select": SelectProps,
    "Image": ImageProps,
    "Link": LinkProps,
    "Badge": BadgeProps,
    "Divider": DividerProps,
}


def create_default_catalog(renderers: dict[str, Renderer] | None = None) -> ComponentCatalog:
    """Build a catalog with the standard component set.

    Args:
        renderers: Optional renderer per type name

    Returns:
        New ComponentCatalog
    """
    renderers = renderers or {}
    catalog = ComponentCatalog()
    for type_name, props_model in STANDARD_COMPONENTS.items():
        catalog.register(type_name, props_model, renderers.get(type_name))
    return catalog


# Global catalog instance
_global_catalog: ComponentCatalog | None = None


def get_component_catalog() -> ComponentCatalog:
    """Get the global component catalog.

    Returns:
        Global ComponentCatalog with the standard components
    """
    global _global_catalog
    if _global_catalog is None:
        _global_catalog = create_default_catalog()
    return _global_catalog
