"""
A2UI protocol (v0.8) message models.

Agent-to-UI declarative rendering protocol. Inbound (agent -> client):
surfaceUpdate, dataModelUpdate, beginRendering, deleteSurface.
Outbound (client -> agent): userAction, error.

Messages are accepted flat (``{"type": "surfaceUpdate", ...}``) or wrapped in
an envelope keyed by the message type (``{"surfaceUpdate": {...}}``).
"""
from __future__ import annotations

import json
import re
from typing import Any, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from ..errors import InvalidMessageError

INBOUND_MESSAGE_TYPES = [
    "surfaceUpdate",
    "dataModelUpdate",
    "beginRendering",
    "deleteSurface",
]

OUTBOUND_MESSAGE_TYPES = [
    "userAction",
    "error",
]

# Protocol-legal application order for messages addressed to one surface
MESSAGE_PRIORITY = {
    "surfaceUpdate": 0,
    "dataModelUpdate": 1,
    "beginRendering": 2,
    "deleteSurface": 3,
}
UNKNOWN_PRIORITY = 99

ISO_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")
COMPONENT_ID_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


# ============================================================================
# Component definitions
# ============================================================================

class TemplateSpec(BaseModel):
    """Children repeated once per element of the array at ``dataPath``"""
    children: list[str] = Field(default_factory=list)
    dataPath: Optional[str] = None


class ComponentDefinition(BaseModel):
    """
    One node of a surface's flat component map.

    ``component`` wraps exactly one key: the component type name mapped to
    that type's properties.
    """
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    component: dict[str, Any]
    template: Optional[TemplateSpec] = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        if not COMPONENT_ID_RE.fullmatch(v):
            raise ValueError(f"component id {v!r} may only contain letters, digits, '_' and '-'")
        return v

    @field_validator("component")
    @classmethod
    def validate_component(cls, v):
        if len(v) != 1:
            raise ValueError(
                f"component must have exactly one type key, got {len(v)}: {sorted(v)}"
            )
        type_name, props = next(iter(v.items()))
        if not type_name:
            raise ValueError("component type name must not be empty")
        if props is None:
            return {type_name: {}}
        if not isinstance(props, dict):
            raise ValueError(f"properties of {type_name} must be an object")
        return v

    @property
    def type_name(self) -> str:
        return next(iter(self.component))

    @property
    def props(self) -> dict[str, Any]:
        return self.component[self.type_name]


# ============================================================================
# Inbound messages
# ============================================================================

class A2UIMessage(BaseModel):
    """Base for every protocol message"""
    type: str
    surfaceId: Optional[str] = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True, by_alias=True)

    def to_envelope(self) -> dict[str, Any]:
        body = self.to_wire()
        msg_type = body.pop("type")
        return {msg_type: body}

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), separators=(",", ":"))


class SurfaceUpdateMessage(A2UIMessage):
    """Upsert component definitions; optionally designate the root"""
    type: Literal["surfaceUpdate"] = "surfaceUpdate"
    components: list[dict[str, Any]] = Field(default_factory=list)
    root: Optional[str] = None


class DataModelUpdateMessage(A2UIMessage):
    """Shallow-merge into the surface data model"""
    type: Literal["dataModelUpdate"] = "dataModelUpdate"
    dataModel: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("dataModel", "data"),
    )


class BeginRenderingMessage(A2UIMessage):
    """Mark the surface renderable once its root exists"""
    type: Literal["beginRendering"] = "beginRendering"
    root: Optional[str] = None


class DeleteSurfaceMessage(A2UIMessage):
    """Clear the surface"""
    type: Literal["deleteSurface"] = "deleteSurface"


# ============================================================================
# Outbound messages
# ============================================================================

class UserActionMessage(A2UIMessage):
    """User interaction reported back to the agent"""
    type: Literal["userAction"] = "userAction"
    name: str
    surfaceId: str
    sourceComponentId: str
    timestamp: str
    context: Optional[dict[str, Any]] = None

    @field_validator("name", "surfaceId", "sourceComponentId")
    @classmethod
    def validate_required(cls, v, info):
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} must be a non-empty string")
        return v

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v):
        if not ISO_TIMESTAMP_RE.match(v):
            raise ValueError("timestamp must be ISO-8601")
        return v


class ErrorDetail(BaseModel):
    message: str = Field(..., min_length=1)
    code: Optional[str] = None
    componentId: Optional[str] = None
    context: Optional[dict[str, Any]] = None


class ErrorMessage(A2UIMessage):
    """Client-side error reported back to the agent"""
    type: Literal["error"] = "error"
    surfaceId: str
    error: ErrorDetail


InboundMessage = Union[
    SurfaceUpdateMessage,
    DataModelUpdateMessage,
    BeginRenderingMessage,
    DeleteSurfaceMessage,
]

MESSAGE_MODELS: dict[str, type[A2UIMessage]] = {
    "surfaceUpdate": SurfaceUpdateMessage,
    "dataModelUpdate": DataModelUpdateMessage,
    "beginRendering": BeginRenderingMessage,
    "deleteSurface": DeleteSurfaceMessage,
    "userAction": UserActionMessage,
    "error": ErrorMessage,
}


def message_priority(message: A2UIMessage | dict[str, Any]) -> int:
    msg_type = message.get("type") if isinstance(message, dict) else message.type
    return MESSAGE_PRIORITY.get(msg_type, UNKNOWN_PRIORITY)


def sort_messages(messages: list[A2UIMessage]) -> list[A2UIMessage]:
    """
    Order messages for application: surfaceUpdate, dataModelUpdate,
    beginRendering, deleteSurface. Stable within one type.
    """
    return sorted(messages, key=message_priority)


def parse_message(data: str | dict[str, Any]) -> A2UIMessage:
    """
    Parse a wire message into its model.

    Args:
        data: JSON text or decoded object, flat or enveloped

    Returns:
        Validated message model

    Raises:
        InvalidMessageError: If the message is not JSON, has no known type,
            or fails validation
    """
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise InvalidMessageError(f"Invalid JSON: {e}")

    if not isinstance(data, dict):
        raise InvalidMessageError("Message must be an object")

    if "type" in data:
        msg_type = data["type"]
        body = data
    else:
        keys = [k for k in data if k in MESSAGE_MODELS]
        if len(keys) != 1:
            raise InvalidMessageError(
                "Message must contain exactly one of: " + ", ".join(MESSAGE_MODELS),
                {"keys": sorted(data)},
            )
        msg_type = keys[0]
        inner = data[msg_type]
        if not isinstance(inner, dict):
            raise InvalidMessageError(f"{msg_type} body must be an object")
        body = {**inner, "type": msg_type}

    model = MESSAGE_MODELS.get(msg_type)
    if model is None:
        raise InvalidMessageError(f"Unknown message type '{msg_type}'")

    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise InvalidMessageError(
            f"Invalid {msg_type} message",
            {"errors": [err["msg"] for err in e.errors()]},
        )


__all__ = [
    "INBOUND_MESSAGE_TYPES",
    "OUTBOUND_MESSAGE_TYPES",
    "MESSAGE_PRIORITY",
    "UNKNOWN_PRIORITY",
    "ISO_TIMESTAMP_RE",
    "COMPONENT_ID_RE",
    "TemplateSpec",
    "ComponentDefinition",
    "A2UIMessage",
    "SurfaceUpdateMessage",
    "DataModelUpdateMessage",
    "BeginRenderingMessage",
    "DeleteSurfaceMessage",
    "UserActionMessage",
    "ErrorDetail",
    "ErrorMessage",
    "InboundMessage",
    "MESSAGE_MODELS",
    "message_priority",
    "sort_messages",
    "parse_message",
]
