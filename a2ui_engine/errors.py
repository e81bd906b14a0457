from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    UNKNOWN_COMPONENT_TYPE = "UNKNOWN_COMPONENT_TYPE"
    INVALID_COMPONENT = "INVALID_COMPONENT"
    INVALID_POINTER = "INVALID_POINTER"
    BINDING_UNRESOLVED = "BINDING_UNRESOLVED"
    TEMPLATE_RENDER_ERROR = "TEMPLATE_RENDER_ERROR"
    INVALID_PROPS = "INVALID_PROPS"
    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_ACTION = "INVALID_ACTION"
    ROUTING_FAILED = "ROUTING_FAILED"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    GENERATION_FAILED = "GENERATION_FAILED"


class A2UIError(Exception):
    def __init__(self, message: str, error_code: ErrorCode, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code.value,
            "message": str(self),
            "details": self.details,
        }


class PointerError(A2UIError):
    def __init__(self, message: str | None = None, pointer: str | None = None):
        msg = message or "Invalid JSON pointer"
        super().__init__(msg, ErrorCode.INVALID_POINTER, {"pointer": pointer} if pointer is not None else None)
        self.pointer = pointer


class InvalidMessageError(A2UIError):
    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        msg = message or "Invalid protocol message"
        super().__init__(msg, ErrorCode.INVALID_MESSAGE, details)


class InvalidActionError(A2UIError):
    def __init__(self, message: str | None = None, errors: list[str] | None = None):
        msg = message or "Invalid user action"
        super().__init__(msg, ErrorCode.INVALID_ACTION, {"errors": errors or []})
        self.errors = errors or []


class DeliveryError(A2UIError):
    def __init__(self, message: str | None = None, turn_id: str | None = None, attempts: int = 0):
        msg = message or "Delivery failed"
        super().__init__(msg, ErrorCode.DELIVERY_FAILED, {"turnId": turn_id, "attempts": attempts})
        self.turn_id = turn_id
        self.attempts = attempts


class GenerationError(A2UIError):
    def __init__(self, message: str | None = None):
        msg = message or "Invalid generated surface"
        super().__init__(msg, ErrorCode.GENERATION_FAILED)


__all__ = [
    "ErrorCode",
    "A2UIError",
    "PointerError",
    "InvalidMessageError",
    "InvalidActionError",
    "DeliveryError",
    "GenerationError",
]
