"""
Binding resolution for component prop values.

A prop value is one of:
- a primitive (string, number, boolean, null) or an array of prop values
- a literal: ``{"literalString": ...}`` / ``literalBoolean`` / ``literalNumber``
- a path: ``{"path": "/json/pointer"}``
- a combined value: literal plus path; the path wins when it resolves
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from ..errors import A2UIError, ErrorCode, PointerError
from ..protocol.pointer import is_valid_pointer, resolve_pointer

logger = logging.getLogger(__name__)

# Fallback priority when a literal is needed
LITERAL_KEYS = ("literalString", "literalBoolean", "literalNumber")

BindingErrorHandler = Callable[[A2UIError], None]


def is_path_value(value: Any) -> bool:
    return isinstance(value, dict) and "path" in value


def _plain(value: Any) -> Any:
    """Detach a resolved value from the (possibly read-only) data model"""
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def is_literal_value(value: Any) -> bool:
    return isinstance(value, dict) and any(key in value for key in LITERAL_KEYS)


def literal_value(value: dict[str, Any]) -> Any:
    """First defined literal among literalString, literalBoolean, literalNumber"""
    for key in LITERAL_KEYS:
        if value.get(key) is not None:
            return value[key]
    return None


class BindingResolver:
    """
    Resolves prop values against a surface data model.

    Resolution never raises: an unresolvable path becomes ``None`` (or the
    literal fallback) and is reported through ``on_error``.
    """

    def __init__(self, on_error: BindingErrorHandler | None = None):
        self._on_error = on_error

    def resolve(self, value: Any, data_model: Any) -> Any:
        """
        Resolve one prop value.

        Args:
            value: Prop value in any of the supported shapes
            data_model: JSON document bound to the surface

        Returns:
            The resolved value
        """
        if isinstance(value, list):
            return [self.resolve(item, data_model) for item in value]

        if not isinstance(value, dict):
            return value

        has_path = is_path_value(value)
        has_literal = is_literal_value(value)

        if has_path and has_literal:
            found, resolved = self._lookup(value["path"], data_model)
            if found:
                return resolved
            logger.debug(f"Path {value['path']!r} unresolved, using literal fallback")
            return literal_value(value)

        if has_path:
            found, resolved = self._lookup(value["path"], data_model)
            if found:
                return resolved
            self._report(value["path"], data_model)
            return None

        if has_literal:
            return literal_value(value)

        return value

    def resolve_props(self, props: dict[str, Any], data_model: Any) -> dict[str, Any]:
        """Resolve every top-level prop of a component"""
        return {key: self.resolve(prop, data_model) for key, prop in props.items()}

    def _lookup(self, path: Any, data_model: Any) -> tuple[bool, Any]:
        if not is_valid_pointer(path):
            return False, None
        try:
            return True, _plain(resolve_pointer(data_model, path))
        except PointerError:
            return False, None

    def _report(self, path: Any, data_model: Any) -> None:
        if not is_valid_pointer(path):
            error: A2UIError = PointerError(f"Invalid JSON pointer syntax: {path!r}", pointer=str(path))
        else:
            error = A2UIError(
                f"Path {path!r} does not resolve against the data model",
                ErrorCode.BINDING_UNRESOLVED,
                {"path": path},
            )
        logger.warning(str(error))
        if self._on_error:
            self._on_error(error)


def resolve_value(value: Any, data_model: Any, on_error: BindingErrorHandler | None = None) -> Any:
    return BindingResolver(on_error).resolve(value, data_model)


__all__ = [
    "LITERAL_KEYS",
    "BindingErrorHandler",
    "BindingResolver",
    "is_path_value",
    "is_literal_value",
    "literal_value",
    "resolve_value",
]
