"""
Outbound envelope codec: userAction and error messages.

Envelopes are validated before they are handed to the transport; a
malformed envelope is never sent. Context values are resolved against the
surface data model so the agent receives values, not binding descriptors.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from ..errors import InvalidActionError, InvalidMessageError
from ..protocol.messages import (
    ISO_TIMESTAMP_RE,
    A2UIMessage,
    ErrorDetail,
    ErrorMessage,
    UserActionMessage,
)
from ..surface.binding import BindingResolver

logger = logging.getLogger(__name__)

REQUIRED_ACTION_FIELDS = ("name", "surfaceId", "sourceComponentId")


def iso_timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def validate_user_action(payload: Mapping[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate a userAction envelope.

    Rules:
    - name, surfaceId, sourceComponentId are non-empty strings
    - timestamp starts with an ISO-8601 date-time
    - context, if present, is a plain object

    Returns:
        Tuple of (is_valid, errors)
    """
    errors = []

    for field in REQUIRED_ACTION_FIELDS:
        value = payload.get(field)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"'{field}' must be a non-empty string")

    timestamp = payload.get("timestamp")
    if not isinstance(timestamp, str) or not ISO_TIMESTAMP_RE.match(timestamp):
        errors.append("'timestamp' must be an ISO-8601 string")

    context = payload.get("context")
    if context is not None and not isinstance(context, dict):
        errors.append("'context' must be an object")

    return (len(errors) == 0, errors)


def resolve_context(
    context: Mapping[str, Any] | None,
    data_model: Any,
    resolver: BindingResolver | None = None,
) -> dict[str, Any] | None:
    if context is None:
        return None
    resolver = resolver or BindingResolver()
    return {key: resolver.resolve(value, data_model) for key, value in context.items()}


def encode_user_action(
    payload: Mapping[str, Any],
    data_model: Any = None,
    resolver: BindingResolver | None = None,
) -> UserActionMessage:
    """
    Validate a userAction payload and resolve its context.

    Args:
        payload: ``{name, surfaceId, sourceComponentId, timestamp, context?}``
        data_model: Data model of the source surface
        resolver: Resolver for context values

    Returns:
        Validated UserActionMessage

    Raises:
        InvalidActionError: If any rule is violated
    """
    ok, errors = validate_user_action(payload)
    if not ok:
        raise InvalidActionError("Invalid action: " + "; ".join(errors), errors)

    body = {
        "name": payload["name"],
        "surfaceId": payload["surfaceId"],
        "sourceComponentId": payload["sourceComponentId"],
        "timestamp": payload["timestamp"],
        "context": resolve_context(payload.get("context"), data_model or {}, resolver),
    }
    try:
        return UserActionMessage.model_validate(body)
    except ValidationError as e:
        problems = [err["msg"] for err in e.errors()]
        raise InvalidActionError("Invalid action: " + "; ".join(problems), problems)


def build_user_action(
    name: str,
    surface_id: str,
    source_component_id: str,
    context: Mapping[str, Any] | None = None,
    data_model: Any = None,
    resolver: BindingResolver | None = None,
) -> UserActionMessage:
    """Build a userAction stamped with the current time (see encode_user_action)"""
    return encode_user_action(
        {
            "name": name,
            "surfaceId": surface_id,
            "sourceComponentId": source_component_id,
            "timestamp": iso_timestamp(),
            "context": dict(context) if context is not None else None,
        },
        data_model=data_model,
        resolver=resolver,
    )


def build_error(
    surface_id: str,
    message: str,
    code: str | None = None,
    component_id: str | None = None,
    context: Mapping[str, Any] | None = None,
) -> ErrorMessage:
    """
    Build an error report envelope.

    Raises:
        InvalidMessageError: If surface_id or message is empty
    """
    if not surface_id or not message:
        raise InvalidMessageError("Error report needs a surfaceId and a message")
    try:
        return ErrorMessage(
            surfaceId=surface_id,
            error=ErrorDetail(
                message=message,
                code=code,
                componentId=component_id,
                context=dict(context) if context is not None else None,
            ),
        )
    except ValidationError as e:
        raise InvalidMessageError(
            "Invalid error report",
            {"errors": [err["msg"] for err in e.errors()]},
        )


def format_for_transport(message: A2UIMessage) -> str:
    """Serialize an outbound envelope as the content of a user turn"""
    return message.to_json()


__all__ = [
    "REQUIRED_ACTION_FIELDS",
    "iso_timestamp",
    "validate_user_action",
    "resolve_context",
    "encode_user_action",
    "build_user_action",
    "build_error",
    "format_for_transport",
]
