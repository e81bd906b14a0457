"""
Duplex transport contract.

A transport delivers one outbound turn and yields the agent's response as a
stream of events: text deltas, A2UI protocol messages, errors, completion.
Each ``open_stream`` call opens a fresh stream.
"""
from __future__ import annotations

import inspect
import json
import logging
import time
import uuid
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Protocol

from ..errors import InvalidMessageError
from ..protocol.messages import A2UIMessage, parse_message

logger = logging.getLogger(__name__)

EventKind = Literal[
    "text_delta",
    "a2ui_message",
    "error",
    "complete",
    "state_snapshot",
    "state_delta",
]

EVENT_KINDS = (
    "text_delta",
    "a2ui_message",
    "error",
    "complete",
    "state_snapshot",
    "state_delta",
)


@dataclass
class OutboundTurn:
    """A user turn queued for delivery"""
    content: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    role: Literal["user"] = "user"
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "role": self.role, "content": self.content}


@dataclass
class TransportEvent:
    """One event of a response stream"""
    kind: EventKind
    data: Any = None

    def to_frame(self) -> str:
        data = self.data.to_wire() if isinstance(self.data, A2UIMessage) else self.data
        return json.dumps({"event": self.kind, "data": data}, separators=(",", ":"))

    @classmethod
    def from_frame(cls, frame: str | bytes | dict[str, Any]) -> "TransportEvent | None":
        """
        Decode a wire frame ``{"event": kind, "data": ...}``.

        Returns:
            The event, or None if the frame is not understood
        """
        if isinstance(frame, bytes):
            frame = frame.decode("utf-8")
        if isinstance(frame, str):
            try:
                frame = json.loads(frame)
            except json.JSONDecodeError as e:
                logger.warning(f"Dropping non-JSON frame: {e}")
                return None
        if not isinstance(frame, dict):
            logger.warning("Dropping frame that is not an object")
            return None

        kind = frame.get("event")
        if kind not in EVENT_KINDS:
            logger.warning(f"Dropping frame with unknown event {kind!r}")
            return None

        data = frame.get("data")
        if kind == "a2ui_message":
            try:
                data = parse_message(data)
            except InvalidMessageError as e:
                logger.warning(f"Dropping invalid A2UI message frame: {e}")
                return None
        return cls(kind=kind, data=data)


async def _call(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


@dataclass
class StreamCallbacks:
    """
    Stream callbacks for agent communication.

    Callbacks may be plain functions or coroutine functions.
    """
    on_text_delta: Optional[Callable[[str], Any]] = None
    on_a2ui_message: Optional[Callable[[A2UIMessage], Any]] = None
    on_error: Optional[Callable[[Exception], Any]] = None
    on_complete: Optional[Callable[[], Any]] = None
    on_state_snapshot: Optional[Callable[[Any], Any]] = None
    on_state_delta: Optional[Callable[[dict[str, Any]], Any]] = None

    async def dispatch(self, event: TransportEvent) -> None:
        if event.kind == "text_delta":
            await _call(self.on_text_delta, event.data)
        elif event.kind == "a2ui_message":
            await _call(self.on_a2ui_message, event.data)
        elif event.kind == "error":
            error = event.data if isinstance(event.data, Exception) else RuntimeError(str(event.data))
            await _call(self.on_error, error)
        elif event.kind == "complete":
            await _call(self.on_complete)
        elif event.kind == "state_snapshot":
            await _call(self.on_state_snapshot, event.data)
        elif event.kind == "state_delta":
            await _call(self.on_state_delta, event.data)

    async def error(self, error: Exception) -> None:
        await _call(self.on_error, error)


class DuplexTransport(Protocol):
    """Opens one response stream per delivered turn (an async generator)"""

    def open_stream(self, turn: OutboundTurn) -> AsyncIterator[TransportEvent]:
        ...


__all__ = [
    "EventKind",
    "EVENT_KINDS",
    "OutboundTurn",
    "TransportEvent",
    "StreamCallbacks",
    "DuplexTransport",
]
