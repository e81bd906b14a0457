"""
Message router: associates inbound protocol messages with conversation turns.

Routing rules:
- deleteSurface goes to the turn that recorded a surfaceUpdate for the same
  surface, else to the turn embedded in a generated surface id, else it is
  dropped
- every other message goes to the active assistant turn (see
  ``ConversationContext.active_turn``)
- a message identical to one already recorded for the target turn is dropped
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Callable, Optional

from ..errors import A2UIError, ErrorCode
from ..protocol.messages import (
    A2UIMessage,
    DeleteSurfaceMessage,
    SurfaceUpdateMessage,
    sort_messages,
)
from .turns import ConversationContext, extract_turn_id_from_surface_id, surface_id_for_turn

logger = logging.getLogger(__name__)

DEFAULT_AUTO_SURFACE_IDS = ("main", "auto")
DEFAULT_SURFACE_ID = "main"


def find_turn_for_surface(context: ConversationContext, surface_id: str) -> Optional[str]:
    """Find the turn whose recorded surfaceUpdate messages target ``surface_id``"""
    for turn in context.turns:
        for recorded in turn.messages:
            if isinstance(recorded, SurfaceUpdateMessage) and recorded.surfaceId == surface_id:
                return turn.turn_id
    return None


def route_inbound(message: A2UIMessage, context: ConversationContext) -> Optional[str]:
    """
    Pick the turn an inbound message belongs to.

    Args:
        message: Inbound protocol message
        context: Conversation turn history and active-turn references

    Returns:
        Target turn id, or None if a deleteSurface cannot be associated
    """
    if isinstance(message, DeleteSurfaceMessage):
        surface_id = message.surfaceId or ""
        turn_id = find_turn_for_surface(context, surface_id)
        if turn_id is None:
            embedded = extract_turn_id_from_surface_id(surface_id)
            if embedded is not None and context.get_turn(embedded) is not None:
                turn_id = embedded
        if turn_id is None:
            logger.warning(f"Dropping deleteSurface for {surface_id!r}: no turn owns this surface")
            return None
        context.clear_active()
        logger.debug(f"Routed deleteSurface {surface_id} to turn {turn_id}")
        return turn_id

    turn = context.active_turn()
    logger.debug(f"Routed {message.type} to turn {turn.turn_id}")
    return turn.turn_id


class MessageRouter:
    """
    Records routed messages per turn.

    Non-delete messages addressed to a placeholder surface id (``main``,
    ``auto``) are rebound to the surface generated for their turn, so
    independent turns never share a surface.
    """

    def __init__(
        self,
        context: Optional[ConversationContext] = None,
        auto_surface_ids: Iterable[str] = DEFAULT_AUTO_SURFACE_IDS,
        on_error: Optional[Callable[[str, A2UIError], None]] = None,
    ):
        self.context = context if context is not None else ConversationContext()
        self.auto_surface_ids = frozenset(auto_surface_ids)
        self._on_error = on_error

    def add_message(self, message: A2UIMessage) -> Optional[str]:
        """
        Route and record one inbound message.

        Returns:
            Turn id the message was recorded for, or None if it was dropped
        """
        turn_id = route_inbound(message, self.context)
        if turn_id is None:
            if message.surfaceId and self._on_error:
                self._on_error(message.surfaceId, A2UIError(
                    f"No turn owns surface '{message.surfaceId}'",
                    ErrorCode.ROUTING_FAILED,
                    {"messageType": message.type},
                ))
            return None
        turn = self.context.get_turn(turn_id)
        if turn is None:
            return None

        message = self._bind_surface(message, turn_id)

        wire = message.to_wire()
        if any(recorded.to_wire() == wire for recorded in turn.messages):
            logger.debug(f"Dropping duplicate {message.type} for turn {turn_id}")
            return None

        turn.messages.append(message)
        return turn_id

    def messages_for(self, turn_id: str) -> list[A2UIMessage]:
        turn = self.context.get_turn(turn_id)
        if turn is None:
            return []
        return sort_messages(turn.messages)

    def _bind_surface(self, message: A2UIMessage, turn_id: str) -> A2UIMessage:
        if isinstance(message, DeleteSurfaceMessage):
            return message
        if message.surfaceId is None or message.surfaceId in self.auto_surface_ids:
            return message.model_copy(update={"surfaceId": surface_id_for_turn(turn_id)})
        return message


def group_by_surface(
    messages: Sequence[A2UIMessage],
    default_surface_id: str = DEFAULT_SURFACE_ID,
    turn_id: Optional[str] = None,
) -> dict[str, list[A2UIMessage]]:
    """
    Group messages by surface id, keeping arrival order within each group.

    Messages without a surface id go to the turn's generated surface when
    ``turn_id`` is given, otherwise to ``default_surface_id``.
    """
    fallback = surface_id_for_turn(turn_id) if turn_id else default_surface_id
    groups: dict[str, list[A2UIMessage]] = {}
    for message in messages:
        groups.setdefault(message.surfaceId or fallback, []).append(message)
    return groups


def has_non_delete_messages(messages: Iterable[A2UIMessage]) -> bool:
    return any(not isinstance(message, DeleteSurfaceMessage) for message in messages)


__all__ = [
    "DEFAULT_AUTO_SURFACE_IDS",
    "DEFAULT_SURFACE_ID",
    "find_turn_for_surface",
    "route_inbound",
    "MessageRouter",
    "group_by_surface",
    "has_non_delete_messages",
    "sort_messages",
]
