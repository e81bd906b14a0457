"""Outbound user actions and error reports"""

from .codec import (
    build_error,
    build_user_action,
    encode_user_action,
    format_for_transport,
    iso_timestamp,
    resolve_context,
    validate_user_action,
)
from .handler import ActionHandler

__all__ = [
    "build_error",
    "build_user_action",
    "encode_user_action",
    "format_for_transport",
    "iso_timestamp",
    "resolve_context",
    "validate_user_action",
    "ActionHandler",
]
