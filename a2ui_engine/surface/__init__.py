"""
Surface runtime: binding resolution, child expansion, per-surface state
machines and renderable tree construction.
"""

from .binding import BindingResolver, resolve_value
from .catalog import (
    UNKNOWN_COMPONENT,
    CatalogEntry,
    ComponentCatalog,
    ComponentProps,
    UnknownComponent,
    create_default_catalog,
    get_component_catalog,
)
from .engine import SurfaceEngine, build_error_report
from .expander import TemplateInstance, TreeExpander, expand_children
from .render import RenderedNode, TreeRenderer
from .state import SurfaceSnapshot, SurfaceState, SurfaceStatus

__all__ = [
    "BindingResolver",
    "resolve_value",
    "UNKNOWN_COMPONENT",
    "CatalogEntry",
    "ComponentCatalog",
    "ComponentProps",
    "UnknownComponent",
    "create_default_catalog",
    "get_component_catalog",
    "SurfaceEngine",
    "build_error_report",
    "TemplateInstance",
    "TreeExpander",
    "expand_children",
    "RenderedNode",
    "TreeRenderer",
    "SurfaceSnapshot",
    "SurfaceState",
    "SurfaceStatus",
]
