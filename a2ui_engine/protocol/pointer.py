"""
JSON Pointer (RFC 6901) helpers.

Bindings address the surface data model with pointers such as
``/user/name`` or ``/items/0/title``. ``~1`` and ``~0`` escape ``/`` and ``~``
inside a reference token. Traversal and assignment go through the
``jsonpointer`` package; this module adds strict syntax checks and maps its
failures onto ``PointerError``.
"""
from __future__ import annotations

import re
from typing import Any

from jsonpointer import JsonPointer, JsonPointerException, escape, unescape

from ..errors import PointerError

_POINTER_RE = re.compile(r"^(/([^~/]|~[01])*)*$")
_INDEX_RE = re.compile(r"^(0|[1-9][0-9]*)$")


def is_valid_pointer(pointer: Any) -> bool:
    """
    Check pointer syntax without touching any document.

    The empty string is valid and addresses the whole document.
    """
    if not isinstance(pointer, str):
        return False
    return _POINTER_RE.match(pointer) is not None


def escape_token(token: str) -> str:
    return escape(token)


def unescape_token(token: str) -> str:
    return unescape(token)


def _compile(pointer: Any) -> JsonPointer:
    if not is_valid_pointer(pointer):
        raise PointerError(f"Invalid JSON pointer syntax: {pointer!r}", pointer=str(pointer))
    try:
        return JsonPointer(pointer)
    except JsonPointerException as e:
        raise PointerError(f"Invalid JSON pointer syntax: {pointer!r}: {e}", pointer=pointer) from e


def split_pointer(pointer: str) -> list[str]:
    """
    Split a pointer into unescaped reference tokens.

    Args:
        pointer: JSON pointer string

    Returns:
        List of reference tokens (empty for the root pointer)

    Raises:
        PointerError: If the pointer syntax is invalid
    """
    return list(_compile(pointer).parts)


def join_pointer(tokens: list[str]) -> str:
    return JsonPointer.from_parts([str(token) for token in tokens]).path


def _walk(ptr: JsonPointer, document: Any, parts: list[str], pointer: str) -> Any:
    node = document
    for part in parts:
        # Strings are sequences to jsonpointer; array indexes must be canonical
        if isinstance(node, (str, bytes)) or (isinstance(node, list) and not _INDEX_RE.match(part)):
            raise PointerError(
                f"Path {pointer!r} not found: cannot step {type(node).__name__} with {part!r}",
                pointer=pointer,
            )
        try:
            node = ptr.walk(node, part)
        except JsonPointerException as e:
            raise PointerError(f"Path {pointer!r} not found: {e}", pointer=pointer) from e
    return node


def resolve_pointer(document: Any, pointer: str) -> Any:
    """
    Get the value a pointer addresses.

    Raises:
        PointerError: If the pointer is malformed or the target does not exist
    """
    ptr = _compile(pointer)
    return _walk(ptr, document, ptr.parts, pointer)


def pointer_exists(document: Any, pointer: str) -> bool:
    try:
        resolve_pointer(document, pointer)
    except PointerError:
        return False
    return True


def set_pointer(document: Any, pointer: str, value: Any) -> Any:
    """
    Assign ``value`` at ``pointer``, mutating ``document`` in place.

    The parent of the target must already exist. ``-`` (or an index equal to
    the array length) appends to an array.

    Args:
        document: JSON document to modify
        pointer: Target location
        value: Value to store

    Returns:
        The document (a new root when ``pointer`` is ``""``)

    Raises:
        PointerError: If the pointer is malformed or the parent is missing
    """
    ptr = _compile(pointer)
    if not ptr.parts:
        return value

    parent = _walk(ptr, document, ptr.parts[:-1], pointer)
    leaf = ptr.parts[-1]

    if isinstance(parent, list):
        if leaf != "-" and not (_INDEX_RE.match(leaf) and int(leaf) <= len(parent)):
            raise PointerError(f"Cannot set {pointer!r}: bad array index {leaf!r}", pointer=pointer)
        if leaf != "-" and int(leaf) == len(parent):
            parent.append(value)
            return document
    elif not isinstance(parent, dict):
        raise PointerError(
            f"Cannot set {pointer!r}: parent is {type(parent).__name__}", pointer=pointer
        )

    try:
        return ptr.set(document, value, inplace=True)
    except (JsonPointerException, TypeError) as e:
        raise PointerError(f"Cannot set {pointer!r}: {e}", pointer=pointer) from e


__all__ = [
    "is_valid_pointer",
    "escape_token",
    "unescape_token",
    "split_pointer",
    "join_pointer",
    "resolve_pointer",
    "pointer_exists",
    "set_pointer",
]
