"""
Surface engine: the index of live surfaces and the engine-facing interface.

Exposes:
- apply_message / apply_batch: drive surface state machines
- get_renderable_tree: build the rendered node tree of a ready surface
- update_data_model: two-way binding writes from input widgets

Every recoverable problem becomes an outbound ``ErrorMessage`` on the error
channel (``drain_errors`` or the ``on_error`` callback); nothing raises.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from ..errors import A2UIError, ErrorCode, InvalidMessageError
from ..protocol.messages import (
    INBOUND_MESSAGE_TYPES,
    A2UIMessage,
    DeleteSurfaceMessage,
    ErrorDetail,
    ErrorMessage,
    SurfaceUpdateMessage,
    parse_message,
    sort_messages,
)
from .catalog import ComponentCatalog, get_component_catalog
from .render import DEFAULT_MAX_DEPTH, RenderedNode, TreeRenderer
from .state import SurfaceSnapshot, SurfaceState

logger = logging.getLogger(__name__)


class SurfaceEngine:
    """
    Owns every surface keyed by ``surfaceId``.

    Surfaces are created on the first surfaceUpdate/dataModelUpdate that
    targets them. deleteSurface clears a surface in place; with
    ``prune_deleted`` the cleared surface is also dropped from the index.
    """

    def __init__(
        self,
        catalog: ComponentCatalog | None = None,
        prune_deleted: bool = False,
        max_render_depth: int = DEFAULT_MAX_DEPTH,
        on_error: Callable[[ErrorMessage], None] | None = None,
    ):
        self.catalog = catalog or get_component_catalog()
        self.prune_deleted = prune_deleted
        self._renderer = TreeRenderer(self.catalog, max_depth=max_render_depth)
        self._surfaces: dict[str, SurfaceState] = {}
        self._errors: list[ErrorMessage] = []
        self._reported: dict[str, set[tuple[Any, ...]]] = {}
        self._on_error = on_error

    # ------------------------------------------------------------------
    # Surface index
    # ------------------------------------------------------------------

    def get_surface(self, surface_id: str) -> SurfaceState | None:
        return self._surfaces.get(surface_id)

    def surface_ids(self) -> list[str]:
        return list(self._surfaces.keys())

    def snapshot(self, surface_id: str) -> SurfaceSnapshot | None:
        surface = self._surfaces.get(surface_id)
        return surface.snapshot() if surface else None

    def _ensure_surface(self, surface_id: str) -> SurfaceState:
        surface = self._surfaces.get(surface_id)
        if surface is None:
            surface = SurfaceState(
                surface_id,
                on_error=lambda error: self.report(surface_id, error),
            )
            self._surfaces[surface_id] = surface
            logger.debug(f"Created surface {surface_id}")
        return surface

    # ------------------------------------------------------------------
    # Protocol messages
    # ------------------------------------------------------------------

    def apply_message(
        self,
        message: A2UIMessage | dict[str, Any] | str,
        surface_id: str | None = None,
    ) -> bool:
        """
        Apply one inbound protocol message.

        Args:
            message: Message model or raw wire message
            surface_id: Surface being driven; a message addressed elsewhere is ignored

        Returns:
            True if a surface accepted the message
        """
        if not isinstance(message, A2UIMessage):
            try:
                message = parse_message(message)
            except InvalidMessageError as e:
                logger.warning(f"Dropping invalid message: {e}")
                raw_surface = message.get("surfaceId") if isinstance(message, dict) else None
                if isinstance(raw_surface, str) and raw_surface:
                    self.report(raw_surface, e)
                return False

        if surface_id is not None and message.surfaceId != surface_id:
            logger.debug(f"Ignoring {message.type} for {message.surfaceId} (driving {surface_id})")
            return False

        target = message.surfaceId
        if not target:
            logger.warning(f"Dropping {message.type} without surfaceId")
            return False

        if message.type not in INBOUND_MESSAGE_TYPES:
            logger.warning(f"Cannot apply outbound {message.type} message to a surface")
            return False

        if isinstance(message, DeleteSurfaceMessage):
            surface = self._surfaces.get(target)
            if surface is None:
                logger.debug(f"deleteSurface for unknown surface {target}")
                return False
            surface.apply(message)
            self._reported.pop(target, None)
            if self.prune_deleted:
                del self._surfaces[target]
                logger.debug(f"Pruned surface {target}")
            return True

        if message.type == "beginRendering" and target not in self._surfaces:
            logger.warning(f"beginRendering for unseen surface {target}, waiting for surfaceUpdate")
            return False

        accepted = self._ensure_surface(target).apply(message)
        if isinstance(message, SurfaceUpdateMessage):
            self._reported.pop(target, None)
        return accepted

    def apply_batch(self, messages: Iterable[A2UIMessage]) -> list[bool]:
        """
        Apply a delivery batch in protocol order.

        Returns:
            Acceptance flag per message, in applied (sorted) order
        """
        return [self.apply_message(message) for message in sort_messages(list(messages))]

    # ------------------------------------------------------------------
    # Rendering and two-way binding
    # ------------------------------------------------------------------

    def get_renderable_tree(self, surface_id: str) -> RenderedNode | None:
        """
        Render a surface from its root.

        Returns:
            Root RenderedNode, or None if the surface is unknown or not ready
        """
        surface = self._surfaces.get(surface_id)
        if surface is None or not surface.is_ready:
            return None
        return self._renderer.render(
            surface.snapshot(),
            on_error=lambda error: self.report(surface_id, error),
        )

    def update_data_model(self, surface_id: str, path: str, value: Any) -> bool:
        """
        Write a value into a surface's data model from an input widget.

        Returns:
            True if the write was applied
        """
        surface = self._surfaces.get(surface_id)
        if surface is None:
            logger.warning(f"update_data_model on unknown surface {surface_id}")
            return False
        return surface.update_data_model(path, value)

    # ------------------------------------------------------------------
    # Error channel
    # ------------------------------------------------------------------

    def drain_errors(self) -> list[ErrorMessage]:
        errors, self._errors = self._errors, []
        return errors

    def report(self, surface_id: str, error: A2UIError) -> None:
        """Queue an error report for a surface, once per distinct problem"""
        details = dict(error.details)
        component_id = details.pop("componentId", None)
        key = (error.error_code, component_id, str(error))

        reported = self._reported.setdefault(surface_id, set())
        if key in reported:
            return
        reported.add(key)

        message = build_error_report(surface_id, error, component_id, details)
        self._errors.append(message)
        if self._on_error:
            self._on_error(message)


def build_error_report(
    surface_id: str,
    error: A2UIError,
    component_id: str | None = None,
    context: dict[str, Any] | None = None,
) -> ErrorMessage:
    return ErrorMessage(
        surfaceId=surface_id,
        error=ErrorDetail(
            message=str(error) or error.error_code.value,
            code=ErrorCode(error.error_code).value,
            componentId=component_id,
            context=context or None,
        ),
    )


__all__ = [
    "SurfaceEngine",
    "build_error_report",
]
