"""
A2UI wire protocol: message models, JSONL framing and JSON Pointer helpers.
"""

from .jsonl import extract_a2ui_messages, parse_a2ui_jsonl, validate_a2ui_jsonl
from .messages import (
    INBOUND_MESSAGE_TYPES,
    MESSAGE_PRIORITY,
    A2UIMessage,
    BeginRenderingMessage,
    ComponentDefinition,
    DataModelUpdateMessage,
    DeleteSurfaceMessage,
    ErrorDetail,
    ErrorMessage,
    SurfaceUpdateMessage,
    TemplateSpec,
    UserActionMessage,
    message_priority,
    sort_messages,
    parse_message,
)
from .pointer import is_valid_pointer, resolve_pointer, set_pointer

__all__ = [
    "INBOUND_MESSAGE_TYPES",
    "MESSAGE_PRIORITY",
    "A2UIMessage",
    "BeginRenderingMessage",
    "ComponentDefinition",
    "DataModelUpdateMessage",
    "DeleteSurfaceMessage",
    "ErrorDetail",
    "ErrorMessage",
    "SurfaceUpdateMessage",
    "TemplateSpec",
    "UserActionMessage",
    "message_priority",
    "sort_messages",
    "parse_message",
    "extract_a2ui_messages",
    "parse_a2ui_jsonl",
    "validate_a2ui_jsonl",
    "is_valid_pointer",
    "resolve_pointer",
    "set_pointer",
]
