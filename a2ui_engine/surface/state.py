"""
Per-surface state machine.

States: EMPTY -> POPULATED (not ready) -> READY; deleteSurface resets to EMPTY
from any state. A surface only becomes READY through beginRendering, and only
once its root component exists.

State is copy-on-write: every transition builds new component/data-model
containers instead of mutating the previous ones, so snapshots handed to a
renderer stay valid.
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from ..errors import A2UIError, ErrorCode, PointerError
from ..protocol.messages import (
    A2UIMessage,
    BeginRenderingMessage,
    ComponentDefinition,
    DataModelUpdateMessage,
    DeleteSurfaceMessage,
    SurfaceUpdateMessage,
)
from ..protocol.pointer import set_pointer, split_pointer, unescape_token

logger = logging.getLogger(__name__)


class SurfaceStatus(str, Enum):
    EMPTY = "empty"
    POPULATED = "populated"
    READY = "ready"


@dataclass(frozen=True)
class SurfaceSnapshot:
    """Point-in-time view of a surface"""
    surface_id: str
    components: Mapping[str, ComponentDefinition]
    data_model: Mapping[str, Any]
    root: str | None
    is_ready: bool
    pending_paths: frozenset[str]

    @property
    def status(self) -> SurfaceStatus:
        if self.is_ready:
            return SurfaceStatus.READY
        if self.components or self.data_model or self.root:
            return SurfaceStatus.POPULATED
        return SurfaceStatus.EMPTY


class SurfaceState:
    """
    Owns one surface's component map, data model, root and readiness.

    Invariant: ``is_ready`` implies ``root`` is set and present in ``components``.

    Local writes from input widgets (``update_data_model``) are applied
    immediately and tracked as pending until a server ``dataModelUpdate``
    covering the same top-level key arrives.
    """

    def __init__(self, surface_id: str, on_error: Callable[[A2UIError], None] | None = None):
        self.surface_id = surface_id
        self._on_error = on_error
        self._components: dict[str, ComponentDefinition] = {}
        self._data_model: dict[str, Any] = {}
        self._root: str | None = None
        self._is_ready = False
        self._pending: frozenset[str] = frozenset()

    @property
    def components(self) -> Mapping[str, ComponentDefinition]:
        return MappingProxyType(self._components)

    @property
    def data_model(self) -> Mapping[str, Any]:
        return MappingProxyType(self._data_model)

    @property
    def root(self) -> str | None:
        return self._root

    @property
    def is_ready(self) -> bool:
        return self._is_ready

    @property
    def pending_paths(self) -> frozenset[str]:
        return self._pending

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending)

    @property
    def status(self) -> SurfaceStatus:
        return self.snapshot().status

    def snapshot(self) -> SurfaceSnapshot:
        return SurfaceSnapshot(
            surface_id=self.surface_id,
            components=MappingProxyType(self._components),
            data_model=MappingProxyType(self._data_model),
            root=self._root,
            is_ready=self._is_ready,
            pending_paths=self._pending,
        )

    # ------------------------------------------------------------------
    # Protocol messages
    # ------------------------------------------------------------------

    def apply(self, message: A2UIMessage) -> bool:
        """
        Apply one protocol message.

        Args:
            message: Inbound protocol message

        Returns:
            True if the message was accepted, False if it was ignored or rejected
        """
        if message.surfaceId != self.surface_id:
            logger.debug(
                f"Ignoring {message.type} for {message.surfaceId} on surface {self.surface_id}"
            )
            return False

        if isinstance(message, SurfaceUpdateMessage):
            return self._apply_surface_update(message)
        if isinstance(message, DataModelUpdateMessage):
            return self._apply_data_model_update(message)
        if isinstance(message, BeginRenderingMessage):
            return self._apply_begin_rendering(message)
        if isinstance(message, DeleteSurfaceMessage):
            self.clear()
            return True

        logger.warning(f"Surface {self.surface_id}: cannot apply {message.type} message")
        return False

    def _apply_surface_update(self, message: SurfaceUpdateMessage) -> bool:
        components = dict(self._components)

        for raw in message.components:
            try:
                definition = ComponentDefinition.model_validate(raw)
            except ValidationError as e:
                component_id = raw.get("id") if isinstance(raw, dict) else None
                problems = [err["msg"] for err in e.errors()]
                logger.warning(
                    f"Surface {self.surface_id}: skipping invalid component {component_id!r}: {problems}"
                )
                self._report(A2UIError(
                    f"Invalid component definition {component_id!r}",
                    ErrorCode.INVALID_COMPONENT,
                    {"componentId": component_id, "errors": problems},
                ))
                continue
            components[definition.id] = definition

        self._components = components
        if message.root:
            self._root = message.root

        logger.debug(
            f"Surface {self.surface_id}: {len(components)} components, root={self._root}"
        )
        return True

    def _apply_data_model_update(self, message: DataModelUpdateMessage) -> bool:
        update = copy.deepcopy(message.dataModel)
        self._data_model = {**self._data_model, **update}

        if self._pending:
            confirmed = frozenset(p for p in self._pending if _top_level_key(p) in update)
            if confirmed:
                self._pending = self._pending - confirmed
                logger.debug(f"Surface {self.surface_id}: server confirmed {sorted(confirmed)}")
        return True

    def _apply_begin_rendering(self, message: BeginRenderingMessage) -> bool:
        root = message.root or self._root
        if not root:
            logger.warning(f"Surface {self.surface_id}: beginRendering without a root, waiting")
            return False
        if root not in self._components:
            logger.warning(
                f"Surface {self.surface_id}: beginRendering root {root!r} not defined yet, waiting"
            )
            return False

        self._root = root
        self._is_ready = True
        logger.debug(f"Surface {self.surface_id}: ready with root {root}")
        return True

    def clear(self) -> None:
        self._components = {}
        self._data_model = {}
        self._root = None
        self._is_ready = False
        self._pending = frozenset()
        logger.debug(f"Surface {self.surface_id}: cleared")

    # ------------------------------------------------------------------
    # Two-way binding
    # ------------------------------------------------------------------

    def update_data_model(self, path: str, value: Any) -> bool:
        """
        Write a value into the data model (copy-on-write).

        Args:
            path: JSON pointer of the target
            value: New value

        Returns:
            True if the write was applied
        """
        data_model = copy.deepcopy(self._data_model)

        try:
            data_model = set_pointer(data_model, path, value)
        except PointerError as e:
            logger.debug(f"Pointer set failed for {path!r} ({e}), creating intermediate objects")
            try:
                data_model = _assign_creating_parents(data_model, path, value)
            except PointerError as walk_error:
                logger.warning(f"Surface {self.surface_id}: cannot write {path!r}: {walk_error}")
                self._report(walk_error)
                return False

        if not isinstance(data_model, dict):
            logger.warning(f"Surface {self.surface_id}: data model root must stay an object")
            return False

        self._data_model = data_model
        self._pending = self._pending | {path}
        return True

    def _report(self, error: A2UIError) -> None:
        if self._on_error:
            self._on_error(error)


def _top_level_key(path: str) -> str | None:
    try:
        tokens = split_pointer(path)
    except PointerError:
        tokens = [unescape_token(t) for t in path.lstrip("/").split("/")]
    return tokens[0] if tokens else None


def _assign_creating_parents(document: dict[str, Any], path: str, value: Any) -> dict[str, Any]:
    segments = [unescape_token(s) for s in path.lstrip("/").split("/")]
    if segments == [""]:
        raise PointerError(f"Cannot assign to {path!r}", pointer=path)

    node: Any = document
    for segment in segments[:-1]:
        if isinstance(node, list) and segment.isdigit() and int(segment) < len(node):
            index = int(segment)
            if not isinstance(node[index], (dict, list)):
                node[index] = {}
            node = node[index]
        elif isinstance(node, dict):
            if not isinstance(node.get(segment), (dict, list)):
                node[segment] = {}
            node = node[segment]
        else:
            raise PointerError(f"Cannot create {segment!r} under {type(node).__name__}", pointer=path)

    leaf = segments[-1]
    if isinstance(node, dict):
        node[leaf] = value
    elif isinstance(node, list) and leaf.isdigit() and int(leaf) <= len(node):
        if int(leaf) == len(node):
            node.append(value)
        else:
            node[int(leaf)] = value
    else:
        raise PointerError(f"Cannot assign {leaf!r} in {type(node).__name__}", pointer=path)
    return document


__all__ = [
    "SurfaceStatus",
    "SurfaceSnapshot",
    "SurfaceState",
]
